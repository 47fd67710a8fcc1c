"""
Prompt assembly and the single generation call.

The backend client is synchronous; the call runs in a worker thread under
one wall-clock deadline so a hung backend cannot hold the request open.
"""

import asyncio

from api.base_client import BaseAIClient
from config.config import GenerationSettings
from config.pricing import ModelPricing
from models.deal_proposal import DealProposal, ParseError
from models.vendor import CallerProfile, CompetitorContext
from models.website import SanitizedContent
from pipeline.competitor_context import format_competitor_context
from pipeline.errors import EmptyProposal, GenerationFailed, MalformedGenerationOutput, StageTimeout
from pipeline.proposal_parser import parse_proposal
from utils.cost_calculator import CostCalculator
from utils.logger import get_logger

logger = get_logger(__name__)

UNKNOWN = "Unknown"


def build_system_prompt(marketplace_name: str = "SpontiCoupon") -> str:
    return f"""You are a deal creation expert for {marketplace_name}, a local deal/coupon platform. A vendor has given you their website. Your job is to:

1. ANALYZE their website content to understand their business (services, products, pricing, specialties, brand voice)
2. EXTRACT useful information (business name, menu items, services, pricing if visible)
3. GENERATE 3 compelling deal suggestions that would work well on {marketplace_name}

Each deal should be SPECIFIC to what this business actually offers. Reference their actual products, services, or menu items.

Return ONLY valid JSON (no markdown, no code blocks) with this structure:
{{
  "business_summary": "1-2 sentence summary of what this business is and what they offer",
  "extracted_info": {{
    "business_name": "Name if found on the page",
    "services_or_products": ["item1", "item2", ...],
    "price_range": "e.g. $10-$50 per service",
    "specialties": ["specialty1", "specialty2"],
    "brand_tone": "e.g. casual, upscale, family-friendly"
  }},
  "suggested_deals": [
    {{
      "title": "Catchy deal title (max 60 chars)",
      "description": "3-5 vivid sentences about what the customer will experience",
      "deal_type": "regular" or "sponti_coupon",
      "original_price": number,
      "deal_price": number,
      "discount_percentage": number,
      "max_claims": number (20-100),
      "terms_and_conditions": "Clear terms covering scope, restrictions, validity",
      "how_it_works": "Step-by-step: 1. Claim on {marketplace_name} 2. Show QR code 3. Enjoy",
      "highlights": ["highlight1", "highlight2", "highlight3", "highlight4"],
      "amenities": ["amenity1", "amenity2", "amenity3"],
      "fine_print": "Brief disclaimers",
      "suggested_image_prompt": "A description of what the deal image should look like"
    }}
  ],
  "recommended_images": ["url1", "url2"]
}}

RULES:
- Make deals SPECIFIC to the business and reference their actual products/services
- deal_price must be greater than 0 and lower than original_price
- discount_percentage must equal round((original_price - deal_price) / original_price * 100)
- Price deals competitively (consider the competitor data if provided)
- Include at least one Sponti Coupon (flash deal, "sponti_coupon") and one Steady Deal ("regular")
- The third deal should be the most creative/compelling option
- For suggested_image_prompt, describe a professional photo that would showcase this specific deal
- For recommended_images, pick the best 2-3 images from the website that could work as deal images"""


def build_user_prompt(
    website_url: str,
    content: SanitizedContent,
    image_urls: list[str],
    profile: CallerProfile,
    competitors: CompetitorContext | None,
    marketplace_name: str = "SpontiCoupon",
) -> str:
    parts = [
        f"WEBSITE URL: {website_url}",
        "",
        "WEBSITE CONTENT:",
        content.excerpt,
        "",
        "IMAGES FOUND ON WEBSITE:",
        "\n".join(image_urls) if image_urls else "(none)",
        "",
        "VENDOR INFO:",
        f"- Business Name: {profile.business_name or UNKNOWN}",
        f"- Category: {profile.category or UNKNOWN}",
        f"- Location: {profile.location or UNKNOWN}",
    ]

    competitor_block = format_competitor_context(competitors, marketplace_name)
    if competitor_block:
        parts.extend(["", competitor_block])

    parts.extend(
        [
            "",
            "Analyze this website and generate 3 specific, compelling deal suggestions "
            "based on what this business actually offers.",
        ]
    )
    return "\n".join(parts)


class ProposalGenerator:
    """Runs the one backend call per request and validates its output."""

    def __init__(self, client: BaseAIClient, settings: GenerationSettings | None = None):
        self.client = client
        self.settings = settings or GenerationSettings()

    async def generate(
        self,
        website_url: str,
        content: SanitizedContent,
        image_urls: list[str],
        profile: CallerProfile,
        competitors: CompetitorContext | None = None,
    ) -> DealProposal:
        """
        Produce a validated proposal.

        Raises:
            StageTimeout: the backend did not answer within the deadline
            GenerationFailed: the backend returned an error
            MalformedGenerationOutput: output had no usable JSON or violated the kind mix
            EmptyProposal: no suggested deal survived validation
        """
        system_prompt = build_system_prompt(self.settings.marketplace_name)
        user_prompt = build_user_prompt(
            website_url, content, image_urls, profile, competitors, self.settings.marketplace_name
        )

        logger.info(
            "Generation started",
            extra={
                "extra_fields": {
                    "provider": self.settings.provider,
                    "model": self.settings.model,
                    "prompt_chars": len(system_prompt) + len(user_prompt),
                    "max_output_cost": ModelPricing.worst_case_cost(
                        self.settings.provider, self.settings.model, self.settings.max_tokens
                    ),
                }
            },
        )

        try:
            response = await asyncio.wait_for(
                asyncio.to_thread(
                    self.client.get_completion,
                    user_prompt,
                    system=system_prompt,
                    max_tokens=self.settings.max_tokens,
                    temperature=self.settings.temperature,
                ),
                timeout=self.settings.timeout_s,
            )
        except asyncio.TimeoutError:
            raise StageTimeout("generation", f"no response within {self.settings.timeout_s}s") from None

        if response.is_error:
            if response.error.code == "timeout":
                raise StageTimeout("generation", response.error.message)
            raise GenerationFailed(response.error.message, code=response.error.code)

        logger.info(
            "Generation completed",
            extra={
                "extra_fields": {
                    "request_id": response.request_id,
                    "provider": response.provider,
                    "model": response.model,
                    "latency_ms": response.latency_ms,
                    "prompt_tokens": response.token_usage.prompt_tokens,
                    "completion_tokens": response.token_usage.completion_tokens,
                    "estimated_cost": CostCalculator(response.provider, response.model).format_cost(
                        response.estimated_cost
                    ),
                    "finish_reason": response.finish_reason,
                }
            },
        )

        result = parse_proposal(response.text)
        if isinstance(result, ParseError):
            if result.reason == "no_valid_deals":
                raise EmptyProposal("; ".join(result.rejected_variants) or "no suggested deals")
            raise MalformedGenerationOutput(f"{result.reason}: {result.detail}")

        return result.proposal
