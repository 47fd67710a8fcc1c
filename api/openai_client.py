from typing import Optional

import openai

from models.unified_response import TokenUsage, UnifiedResponse
from utils.cost_calculator import CostCalculator
from utils.logger import get_logger

from .base_client import BaseAIClient

logger = get_logger(__name__)


class OpenAIClient(BaseAIClient):
    """
    A client for interacting with the OpenAI API.
    Handles API calls and response processing.
    """

    provider = "openai"

    def __init__(self, api_key: str, model_name: str = "gpt-4o-mini", timeout: float = 60.0, **kwargs):
        """
        Initialize the OpenAI client.

        Args:
            api_key: The OpenAI API key
            model_name: The name of the model to use (default: gpt-4o-mini)
            timeout: Request timeout in seconds
        """
        super().__init__(api_key, **kwargs)
        self.client = openai.OpenAI(api_key=api_key, timeout=timeout)
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
        """
        Get a chat completion from the OpenAI API with token usage tracking.

        The system instruction, when given, is sent as the first message.
        """
        request_id = self._generate_request_id()
        model = kwargs.get('model', self.model_name)

        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        with self._measure_latency() as timing:
            try:
                response = self.client.chat.completions.create(
                    model=model,
                    messages=messages,
                    temperature=temperature,
                    max_tokens=max_tokens,
                )
            except Exception as e:
                error = self._normalize_error(e)
                logger.warning(
                    f"OpenAI completion failed: {error.code}",
                    extra={"extra_fields": {"request_id": request_id, "error_type": type(e).__name__}},
                )
                response = None

        if response is None:
            return self._create_error_response(request_id, error, timing["ms"], model)

        choice = response.choices[0]
        usage = getattr(response, "usage", None)
        token_usage = TokenUsage(
            prompt_tokens=getattr(usage, "prompt_tokens", 0) or 0,
            completion_tokens=getattr(usage, "completion_tokens", 0) or 0,
            total_tokens=getattr(usage, "total_tokens", 0) or 0,
        )

        return UnifiedResponse(
            request_id=request_id,
            text=choice.message.content or "",
            provider=self.provider,
            model=model,
            latency_ms=timing["ms"],
            token_usage=token_usage,
            estimated_cost=self.cost_calculator.calculate_cost(
                token_usage.prompt_tokens, token_usage.completion_tokens
            )["total_cost"],
            finish_reason=self._normalize_finish_reason(choice.finish_reason),
        )
