from typing import Optional

import anthropic

from models.unified_response import TokenUsage, UnifiedResponse
from utils.cost_calculator import CostCalculator
from utils.logger import get_logger

from .base_client import BaseAIClient

logger = get_logger(__name__)


class AnthropicClient(BaseAIClient):
    """
    A client for the Anthropic Messages API.
    System instructions go in the dedicated ``system`` parameter.
    """

    provider = "anthropic"

    def __init__(self, api_key: str, model_name: str = "claude-sonnet-4-20250514", timeout: float = 60.0, **kwargs):
        """
        Initialize the Anthropic client.

        Args:
            api_key: The Anthropic API key
            model_name: The model to use
            timeout: Request timeout in seconds, enforced by the SDK
        """
        super().__init__(api_key, **kwargs)
        if not api_key:
            raise ValueError("API key is required for Anthropic")

        self.client = anthropic.Anthropic(api_key=api_key, timeout=timeout)
        self.model_name = model_name
        self.cost_calculator = CostCalculator(self.provider, model_name)

    def get_completion(
        self,
        prompt: str,
        *,
        system: Optional[str] = None,
        max_tokens: int = 3000,
        temperature: float = 0.7,
        **kwargs,
    ) -> UnifiedResponse:
        request_id = self._generate_request_id()
        model = kwargs.get('model', self.model_name)

        params = {
            "model": model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system:
            params["system"] = system

        with self._measure_latency() as timing:
            try:
                response = self.client.messages.create(**params)
            except Exception as e:
                error = self._normalize_error(e)
                logger.warning(
                    f"Anthropic completion failed: {error.code}",
                    extra={"extra_fields": {"request_id": request_id, "error_type": type(e).__name__}},
                )
                response = None

        if response is None:
            return self._create_error_response(request_id, error, timing["ms"], model)

        # Only text blocks carry the answer
        text = "".join(
            getattr(block, "text", "") for block in (response.content or []) if getattr(block, "type", "text") == "text"
        )

        usage = getattr(response, "usage", None)
        token_usage = TokenUsage(
            prompt_tokens=getattr(usage, "input_tokens", 0) or 0,
            completion_tokens=getattr(usage, "output_tokens", 0) or 0,
        )

        return UnifiedResponse(
            request_id=request_id,
            text=text,
            provider=self.provider,
            model=model,
            latency_ms=timing["ms"],
            token_usage=token_usage,
            estimated_cost=self.cost_calculator.calculate_cost(
                token_usage.prompt_tokens, token_usage.completion_tokens
            )["total_cost"],
            finish_reason=self._normalize_finish_reason(getattr(response, "stop_reason", None)),
        )
