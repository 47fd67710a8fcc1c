"""
Cost estimation for generation calls.
Keeps pricing lookups out of the clients and the pipeline.
"""

from config.pricing import ModelPricing


class CostCalculator:
    """Calculate the cost of one generation call from its token usage."""

    def __init__(self, provider: str, model_name: str):
        """
        Args:
            provider: 'anthropic', 'openai' or 'gemini'
            model_name: The specific model name
        """
        self.provider = provider.lower()
        self.model_name = model_name
        self.pricing = ModelPricing.get_model_pricing(self.provider, self.model_name)

    def calculate_cost(self, prompt_tokens: int, completion_tokens: int) -> dict[str, float]:
        """
        Calculate cost for a single API call.

        Returns:
            Dictionary containing input_cost, output_cost and total_cost in USD.
            All zero when the model has no pricing entry.
        """
        if not self.pricing:
            return {"input_cost": 0.0, "output_cost": 0.0, "total_cost": 0.0}

        input_cost = (prompt_tokens * self.pricing["input"]) / 1_000_000
        output_cost = (completion_tokens * self.pricing["output"]) / 1_000_000
        return {
            "input_cost": input_cost,
            "output_cost": output_cost,
            "total_cost": input_cost + output_cost,
        }

    def format_cost(self, cost: float, currency: str = "USD") -> str:
        if currency == "USD":
            return f"${cost:.6f}"
        return f"{cost:.6f} {currency}"

