"""
Generation backend pricing.
All prices are in USD per million tokens.
"""


class ModelPricing:
    """Pricing information for the supported generation backends."""

    ANTHROPIC_PRICING = {
        "claude-sonnet-4-20250514": {"input": 3.00, "output": 15.00},
        "claude-sonnet-4-5-20250929": {"input": 3.00, "output": 15.00},
        "claude-3-5-haiku-20241022": {"input": 0.80, "output": 4.00},
        "claude-opus-4-1-20250805": {"input": 15.00, "output": 75.00},
    }

    OPENAI_PRICING = {
        "gpt-4o": {"input": 2.50, "output": 10.00},
        "gpt-4o-mini": {"input": 0.15, "output": 0.60},
        "gpt-4.1": {"input": 2.00, "output": 8.00},
        "gpt-4.1-mini": {"input": 0.40, "output": 1.60},
        "gpt-4-turbo": {"input": 10.00, "output": 30.00},
        "gpt-3.5-turbo": {"input": 0.50, "output": 1.50},
    }

    GEMINI_PRICING = {
        "gemini-1.5-flash": {"input": 0.075, "output": 0.30},
        "gemini-1.5-pro": {"input": 1.25, "output": 5.00},
        "gemini-2.0-flash": {"input": 0.10, "output": 0.40},
        "gemini-2.5-flash": {"input": 0.30, "output": 2.50},
        "gemini-2.5-flash-lite": {"input": 0.10, "output": 0.40},
    }

    @classmethod
    def _pricing_map(cls) -> dict[str, dict[str, dict[str, float]]]:
        return {
            "anthropic": cls.ANTHROPIC_PRICING,
            "openai": cls.OPENAI_PRICING,
            "gemini": cls.GEMINI_PRICING,
        }

    @classmethod
    def get_model_pricing(cls, provider: str, model_name: str) -> dict[str, float] | None:
        """
        Get pricing information for a specific model.

        Args:
            provider: 'anthropic', 'openai' or 'gemini'
            model_name: The specific model name

        Returns:
            Dictionary with 'input' and 'output' pricing per million tokens,
            or None if pricing not found
        """
        pricing_dict = cls._pricing_map().get(provider.lower())
        if not pricing_dict:
            return None
        return pricing_dict.get(model_name)

    @classmethod
    def worst_case_cost(cls, provider: str, model_name: str, max_output_tokens: int) -> float | None:
        """Upper bound of the output-side cost of one call, used for cost logging."""
        pricing = cls.get_model_pricing(provider, model_name)
        if not pricing:
            return None
        return (max_output_tokens * pricing["output"]) / 1_000_000
