import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from dotenv import load_dotenv

from utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class LLMProvider(Enum):
    """Supported generation backends."""
    ANTHROPIC = "anthropic"
    OPENAI = "openai"
    GEMINI = "gemini"


DEFAULT_MODELS = {
    LLMProvider.ANTHROPIC.value: "claude-sonnet-4-20250514",
    LLMProvider.OPENAI.value: "gpt-4o-mini",
    LLMProvider.GEMINI.value: "gemini-2.5-flash",
}

# First non-empty variable wins
API_KEY_ENV_VARS = {
    LLMProvider.ANTHROPIC.value: ("SPONTI_ANTHROPIC_KEY", "ANTHROPIC_API_KEY"),
    LLMProvider.OPENAI.value: ("OPENAI_API_KEY",),
    LLMProvider.GEMINI.value: ("GOOGLE_GEMINI_API_KEY",),
}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Ignoring non-integer value for {name}: {raw!r}")
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Ignoring non-numeric value for {name}: {raw!r}")
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class FetcherSettings:
    """
    Bounds for the outbound page fetch.

    verify_tls defaults to False: many small-business sites serve expired or
    self-signed certificates. Operators can turn verification back on per
    environment with FETCH_VERIFY_TLS=true.
    """
    timeout_s: float = 15.0
    max_redirects: int = 5
    max_body_bytes: int = 2 * 1024 * 1024
    verify_tls: bool = False
    user_agent: str = DEFAULT_USER_AGENT


@dataclass(frozen=True)
class ContentSettings:
    excerpt_budget: int = 8000
    min_excerpt_chars: int = 100
    max_image_candidates: int = 20
    max_display_images: int = 10
    max_competitor_samples: int = 5
    similar_vendor_sample: int = 20


@dataclass(frozen=True)
class GenerationSettings:
    provider: str = LLMProvider.ANTHROPIC.value
    model: str = DEFAULT_MODELS[LLMProvider.ANTHROPIC.value]
    api_key: str | None = None
    max_tokens: int = 3000
    temperature: float = 0.7
    timeout_s: float = 60.0
    marketplace_name: str = "SpontiCoupon"


@dataclass(frozen=True)
class RateLimitSettings:
    max_requests: int = 10
    window_seconds: int = 60 * 60
    identifier: str = "ai-scrape-website"


class Config:
    """Configuration management for the website import service."""

    def __init__(self):
        """Initialize configuration with environment variables."""
        env_path = Path(__file__).parent.parent / '.env'
        if env_path.exists():
            load_dotenv(dotenv_path=env_path)

        self.LLM_PROVIDER = os.getenv('LLM_PROVIDER', LLMProvider.ANTHROPIC.value).strip().lower()
        self.LLM_MODEL = os.getenv('LLM_MODEL') or DEFAULT_MODELS.get(self.LLM_PROVIDER, '')
        self.LLM_API_KEY = self._lookup_api_key(self.LLM_PROVIDER)

        self.fetcher = FetcherSettings(
            timeout_s=_env_float('FETCH_TIMEOUT_SECONDS', 15.0),
            max_redirects=_env_int('FETCH_MAX_REDIRECTS', 5),
            max_body_bytes=_env_int('FETCH_MAX_BODY_BYTES', 2 * 1024 * 1024),
            verify_tls=_env_bool('FETCH_VERIFY_TLS', False),
            user_agent=os.getenv('FETCH_USER_AGENT', DEFAULT_USER_AGENT),
        )

        self.content = ContentSettings(
            excerpt_budget=_env_int('EXCERPT_CHAR_BUDGET', 8000),
            min_excerpt_chars=_env_int('MIN_EXCERPT_CHARS', 100),
        )

        self.generation = GenerationSettings(
            provider=self.LLM_PROVIDER,
            model=self.LLM_MODEL,
            api_key=self.LLM_API_KEY,
            max_tokens=_env_int('GENERATION_MAX_TOKENS', 3000),
            temperature=_env_float('GENERATION_TEMPERATURE', 0.7),
            timeout_s=_env_float('GENERATION_TIMEOUT_SECONDS', 60.0),
            marketplace_name=os.getenv('MARKETPLACE_NAME', 'SpontiCoupon'),
        )

        self.rate_limit = RateLimitSettings(
            max_requests=_env_int('WEBSITE_IMPORT_RATE_LIMIT', 10),
            window_seconds=_env_int('WEBSITE_IMPORT_RATE_WINDOW_SECONDS', 60 * 60),
        )

    @staticmethod
    def _lookup_api_key(provider: str) -> str | None:
        for name in API_KEY_ENV_VARS.get(provider, ()):
            value = os.getenv(name)
            if value:
                return value
        return None

    def validate(self) -> bool:
        """
        Validate that the selected generation backend is usable.

        Returns:
            bool: True if configuration is valid, False otherwise
        """
        valid_providers = [p.value for p in LLMProvider]
        if self.LLM_PROVIDER not in valid_providers:
            logger.error(
                f"Unknown LLM_PROVIDER '{self.LLM_PROVIDER}'. Must be one of: {', '.join(valid_providers)}"
            )
            return False

        if not self.LLM_API_KEY:
            expected = " or ".join(API_KEY_ENV_VARS[self.LLM_PROVIDER])
            logger.error(f"No API key configured for {self.LLM_PROVIDER}. Set {expected}.")
            return False

        if not self.LLM_MODEL:
            logger.error("LLM_MODEL is empty")
            return False

        return True

    def get_model_info(self) -> str:
        """Human-readable description of the selected generation backend."""
        names = {
            LLMProvider.ANTHROPIC.value: "Anthropic",
            LLMProvider.OPENAI.value: "OpenAI",
            LLMProvider.GEMINI.value: "Google Gemini",
        }
        return f"{names.get(self.LLM_PROVIDER, 'Unknown')} ({self.LLM_MODEL})"
