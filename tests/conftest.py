import os

import pytest
from dotenv import load_dotenv

# Load environment variables from .env file for tests
load_dotenv()

from models.unified_response import NormalizedError, TokenUsage, UnifiedResponse  # noqa: E402

SAMPLE_PAGE = """<!doctype html>
<html>
<head>
  <title>Luigi's Pizzeria</title>
  <style>body { color: red; }</style>
  <script>window.analytics = {track: function() {}};</script>
</head>
<body>
  <!-- header -->
  <h1>Luigi's Pizzeria</h1>
  <p>Family-owned wood-fired pizza in Austin since 1998. Margherita $14, Pepperoni $16,
  Calzone $15. Catering available for parties of 20 or more. Open every day 11am to 10pm.</p>
  <img src="/images/margherita.jpg" alt="Margherita">
  <img src="https://cdn.example.com/oven.png">
  <img src="/favicon.ico">
  <img src="data:image/png;base64,AAAA">
  <svg><text>logo</text></svg>
</body>
</html>
"""

VALID_MODEL_OUTPUT = """{
  "business_summary": "A family-owned wood-fired pizzeria in Austin.",
  "extracted_info": {
    "business_name": "Luigi's Pizzeria",
    "services_or_products": ["Margherita", "Pepperoni", "Calzone"],
    "price_range": "$14-$16",
    "specialties": ["wood-fired pizza"],
    "brand_tone": "family-friendly"
  },
  "suggested_deals": [
    {
      "title": "Flash Margherita Hour",
      "description": "Two Margheritas straight from the wood oven.",
      "deal_type": "sponti_coupon",
      "original_price": 28,
      "deal_price": 19,
      "discount_percentage": 32,
      "max_claims": 40,
      "terms_and_conditions": "Dine-in only.",
      "how_it_works": "1. Claim 2. Show QR code 3. Enjoy",
      "highlights": ["Wood-fired", "Fresh basil"],
      "amenities": ["Patio"],
      "fine_print": "One per table.",
      "suggested_image_prompt": "Two pizzas on a wooden table"
    },
    {
      "title": "Family Pizza Night",
      "description": "Three large pies and a salad for the whole family.",
      "deal_type": "regular",
      "original_price": 60,
      "deal_price": 45,
      "discount_percentage": 25,
      "max_claims": 80
    },
    {
      "title": "Calzone Combo",
      "description": "A calzone with a drink.",
      "deal_type": "regular",
      "original_price": 20,
      "deal_price": 15
    }
  ],
  "recommended_images": ["https://luigis.example/images/margherita.jpg", "javascript:alert(1)"]
}"""


class FakeAIClient:
    """Generation backend double: returns queued text or a normalized error."""

    provider = "fake"

    def __init__(self, text: str = VALID_MODEL_OUTPUT, error: NormalizedError | None = None, delay_s: float = 0.0):
        self.text = text
        self.error = error
        self.delay_s = delay_s
        self.calls: list[dict] = []

    def get_completion(self, prompt: str, *, system=None, max_tokens=3000, temperature=0.7, **kwargs):
        import time

        self.calls.append(
            {"prompt": prompt, "system": system, "max_tokens": max_tokens, "temperature": temperature}
        )
        if self.delay_s:
            time.sleep(self.delay_s)

        return UnifiedResponse(
            request_id="req_fake_1",
            text="" if self.error else self.text,
            provider=self.provider,
            model="fake-model",
            latency_ms=5,
            token_usage=TokenUsage() if self.error else TokenUsage(prompt_tokens=900, completion_tokens=700),
            estimated_cost=0.0,
            finish_reason="error" if self.error else "stop",
            error=self.error,
        )


@pytest.fixture
def fake_client():
    return FakeAIClient()


@pytest.fixture
def fake_client_factory():
    return FakeAIClient


@pytest.fixture
def sample_page():
    return SAMPLE_PAGE


@pytest.fixture
def valid_model_output():
    return VALID_MODEL_OUTPUT


@pytest.fixture
def mock_env(monkeypatch):
    """Fixture to mock environment variables for testing."""
    env_vars = {
        "LLM_PROVIDER": "anthropic",
        "SPONTI_ANTHROPIC_KEY": "test-anthropic-key",
        "API_KEYS": "vendor-key:vendor-1:vendor,customer-key:customer-1:customer",
    }
    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)
    monkeypatch.delenv("DATABASE_URL", raising=False)
    return env_vars


@pytest.fixture(autouse=True)
def _no_database_by_default(monkeypatch):
    if not os.getenv("TEST_DATABASE_URL"):
        monkeypatch.delenv("DATABASE_URL", raising=False)
