from typing import Optional

from google import genai

from models.unified_response import TokenUsage, UnifiedResponse
from utils.cost_calculator import CostCalculator
from utils.logger import get_logger

from .base_client import BaseAIClient

logger = get_logger(__name__)


class GeminiClient(BaseAIClient):
    """
    A client for interacting with the Google Gemini API using the google.genai package.
    """

    provider = "gemini"

    def __init__(self, api_key: str, model_name: str = "gemini-2.5-flash", **kwargs):
        """
        Initialize the Gemini client.

        Args:
            api_key: The Google Gemini API key
            model_name: The name of the model to use (default: gemini-2.5-flash)
        """
        super().__init__(api_key, **kwargs)

        if not api_key:
            raise ValueError("API key is required for Gemini")

        self.client = genai.Client(api_key=api_key)
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

        config = {
            'temperature': temperature,
            'max_output_tokens': max_tokens,
        }
        if system:
            config['system_instruction'] = system

        with self._measure_latency() as timing:
            try:
                response = self.client.models.generate_content(
                    model=model,
                    contents=prompt,
                    config=config,
                )
            except Exception as e:
                error = self._normalize_error(e)
                logger.warning(
                    f"Gemini completion failed: {error.code}",
                    extra={"extra_fields": {"request_id": request_id, "error_type": type(e).__name__}},
                )
                response = None

        if response is None:
            return self._create_error_response(request_id, error, timing["ms"], model)

        usage_metadata = getattr(response, 'usage_metadata', None)
        token_usage = TokenUsage(
            prompt_tokens=getattr(usage_metadata, 'prompt_token_count', 0) or 0,
            completion_tokens=getattr(usage_metadata, 'candidates_token_count', 0) or 0,
            total_tokens=getattr(usage_metadata, 'total_token_count', 0) or 0,
        )

        finish_reason = None
        candidates = getattr(response, 'candidates', None) or []
        if candidates:
            finish_reason = self._normalize_finish_reason(getattr(candidates[0], 'finish_reason', None))

        return UnifiedResponse(
            request_id=request_id,
            text=getattr(response, 'text', None) or "",
            provider=self.provider,
            model=model,
            latency_ms=timing["ms"],
            token_usage=token_usage,
            estimated_cost=self.cost_calculator.calculate_cost(
                token_usage.prompt_tokens, token_usage.completion_tokens
            )["total_cost"],
            finish_reason=finish_reason,
        )
