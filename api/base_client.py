import time
import uuid
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Optional

from models.unified_response import NormalizedError, TokenUsage, UnifiedResponse


class BaseAIClient(ABC):
    """
    Abstract base class for generation backends.

    Every client returns a UnifiedResponse and never raises from
    get_completion; provider exceptions are normalized into
    ``UnifiedResponse.error``.
    """

    provider: str = "unknown"

    @abstractmethod
    def __init__(self, api_key: str, **kwargs):
        """
        Initialize the AI client.

        Args:
            api_key: API key for the AI service
            **kwargs: Additional model-specific parameters
        """
        self.api_key = api_key
        self.model_name = kwargs.get('model_name')

    @abstractmethod
    def get_completion(
        self,
        prompt: str,
        *,
        system: Optional[str] = None,
        max_tokens: int = 3000,
        temperature: float = 0.7,
        **kwargs,
    ) -> UnifiedResponse:
        """
        Get a completion from the model.

        Args:
            prompt: User message
            system: Optional system instruction
            max_tokens: Upper bound on generated tokens
            temperature: Sampling temperature

        Returns:
            UnifiedResponse with text and token usage, or with ``error`` set
        """

    @staticmethod
    def _generate_request_id() -> str:
        return str(uuid.uuid4())

    @staticmethod
    @contextmanager
    def _measure_latency():
        """Yield a dict whose ``ms`` key holds elapsed milliseconds after the block."""
        timing = {"ms": 0}
        start = time.perf_counter()
        try:
            yield timing
        finally:
            timing["ms"] = int((time.perf_counter() - start) * 1000)

    @staticmethod
    def _normalize_finish_reason(reason: Any) -> Optional[str]:
        if reason is None:
            return None
        value = str(getattr(reason, "value", reason)).lower()
        mapping = {
            "stop": "stop",
            "end_turn": "stop",
            "stop_sequence": "stop",
            "length": "length",
            "max_tokens": "length",
            "content_filter": "content_filter",
            "safety": "content_filter",
            "refusal": "content_filter",
        }
        # Gemini enums stringify as "FinishReason.STOP"
        return mapping.get(value.rsplit(".", 1)[-1], value)

    def _normalize_error(self, error: Exception) -> NormalizedError:
        """
        Map a provider exception onto the shared error codes.

        Classification is by status code when the SDK exposes one, then by
        exception type name and message.
        """
        status = getattr(error, "status_code", None) or getattr(error, "code", None)
        name = type(error).__name__.lower()
        message = str(error)
        lowered = message.lower()

        if "timeout" in name or "timed out" in lowered or "timeout" in lowered:
            code, retryable = "timeout", True
        elif status in (401, 403) or "authentication" in name or "permission" in name:
            code, retryable = "auth", False
        elif status == 429 or "ratelimit" in name or "rate limit" in lowered:
            code, retryable = "rate_limit", True
        elif status in (400, 404, 422) or "badrequest" in name or "invalid" in name:
            code, retryable = "bad_request", False
        elif (isinstance(status, int) and status >= 500) or "apiconnection" in name or "servererror" in name:
            code, retryable = "provider_error", True
        else:
            code, retryable = "unknown", False

        return NormalizedError(
            code=code,
            message=message,
            provider=self.provider,
            retryable=retryable,
            details={"error_type": type(error).__name__, "status_code": status},
        )

    def _create_error_response(
        self, request_id: str, error: NormalizedError, latency_ms: int, model: Optional[str] = None
    ) -> UnifiedResponse:
        return UnifiedResponse(
            request_id=request_id,
            text="",
            provider=self.provider,
            model=model or self.model_name or "",
            latency_ms=latency_ms,
            token_usage=TokenUsage(),
            estimated_cost=0.0,
            finish_reason="error",
            error=error,
        )
