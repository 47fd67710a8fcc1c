"""
Website import pipeline: one vendor URL in, one validated deal proposal out.

Gates (identity, role, tier, URL shape, backend configuration) all run
before any outbound I/O. After the fetch, page parsing and the competitor
lookup run concurrently; generation waits for both.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any

from config.config import Config, ContentSettings, GenerationSettings
from models.deal_proposal import DealProposal
from models.vendor import CallerIdentity, CallerProfile, CompetitorContext
from models.website import FetchResult, ImageCandidate, SanitizedContent
from pipeline.competitor_context import CompetitorContextBuilder
from pipeline.entitlements import WEBSITE_IMPORT_FEATURE, EntitlementTable
from pipeline.errors import Forbidden, ServiceNotConfigured, Unauthorized
from pipeline.fetcher import WebsiteFetcher, normalize_url
from pipeline.image_extractor import display_images, extract_images
from pipeline.proposal_generator import ProposalGenerator
from pipeline.sanitizer import decode_body, ensure_sufficient, parse_html, sanitize
from utils.logger import get_logger

logger = get_logger(__name__)

VENDOR_ONLY_MESSAGE = "Only vendors can use this feature"


@dataclass(frozen=True)
class WebsiteImportResult:
    analysis: DealProposal
    website_url: str
    website_images: tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        return {
            "analysis": self.analysis.to_dict(),
            "website_url": self.website_url,
            "website_images": list(self.website_images),
        }


class WebsiteDealPipeline:
    """
    Orchestrates one website import.

    Collaborators are injected so tests can replace the network, the
    database and the generation backend independently. ``generator`` may be
    None when no backend is configured; requests then fail with
    ServiceNotConfigured after the caller gates pass.
    """

    def __init__(
        self,
        fetcher: WebsiteFetcher,
        generator: ProposalGenerator | None,
        competitor_builder: CompetitorContextBuilder | None = None,
        entitlements: EntitlementTable | None = None,
        content_settings: ContentSettings | None = None,
    ):
        self.fetcher = fetcher
        self.generator = generator
        self.competitor_builder = competitor_builder
        self.entitlements = entitlements or EntitlementTable.from_yaml()
        self.content_settings = content_settings or ContentSettings()

    @classmethod
    def from_config(cls, config: Config | None = None) -> "WebsiteDealPipeline":
        """Wire the production collaborators from environment configuration."""
        from api.client_factory import create_client
        from db.engine import database_configured
        from pipeline.competitor_context import SqlCompetitorStore

        config = config or Config()
        generator = None
        if config.validate():
            generator = ProposalGenerator(create_client(config.generation), config.generation)

        competitor_builder = None
        if database_configured():
            competitor_builder = CompetitorContextBuilder(
                SqlCompetitorStore(),
                max_samples=config.content.max_competitor_samples,
                vendor_sample=config.content.similar_vendor_sample,
            )
        else:
            logger.info("DATABASE_URL not set; proposals are generated without competitor context")

        return cls(
            fetcher=WebsiteFetcher(config.fetcher),
            generator=generator,
            competitor_builder=competitor_builder,
            content_settings=config.content,
        )

    def check_caller(self, identity: CallerIdentity | None, profile: CallerProfile) -> str:
        """
        Enforce identity, role and tier.

        Returns:
            The resolved subscription tier key
        """
        if identity is None:
            raise Unauthorized("no caller identity")
        if not identity.is_vendor:
            raise Forbidden(f"role {identity.role!r} is not vendor", public_message=VENDOR_ONLY_MESSAGE)

        tier = self.entitlements.resolve_tier(profile.subscription_tier)
        if not self.entitlements.is_entitled(tier, WEBSITE_IMPORT_FEATURE):
            required = self.entitlements.minimum_tier_for(WEBSITE_IMPORT_FEATURE)
            public_message = None
            if required:
                public_message = (
                    f"Website Import requires a {self.entitlements.tier_name(required)} plan or higher. "
                    "Upgrade at /vendor/subscription."
                )
            raise Forbidden(f"tier {tier!r} lacks {WEBSITE_IMPORT_FEATURE}", public_message=public_message)
        return tier

    async def run(
        self, identity: CallerIdentity | None, profile: CallerProfile | None, url: str
    ) -> WebsiteImportResult:
        profile = profile or CallerProfile()
        tier = self.check_caller(identity, profile)
        website_url = normalize_url(url)

        if self.generator is None:
            raise ServiceNotConfigured("generation backend has no credentials")

        logger.info(
            "Website import started",
            extra={"extra_fields": {"user_id": identity.user_id, "tier": tier, "url": website_url}},
        )

        fetched = await self.fetcher.fetch(website_url)

        (content, images), competitors = await asyncio.gather(
            asyncio.to_thread(self._parse_page, fetched),
            self._competitor_context(identity, profile),
        )

        ensure_sufficient(content, self.content_settings.min_excerpt_chars)
        shown_images = display_images(images, self.content_settings.max_display_images)

        proposal = await self.generator.generate(
            fetched.final_url, content, shown_images, profile, competitors
        )

        logger.info(
            "Website import completed",
            extra={
                "extra_fields": {
                    "user_id": identity.user_id,
                    "url": website_url,
                    "final_url": fetched.final_url,
                    "excerpt_chars": len(content.excerpt),
                    "excerpt_truncated": content.truncated,
                    "images": len(shown_images),
                    "competitors": len(competitors.samples) if competitors else 0,
                    "deals": len(proposal.suggested_deals),
                }
            },
        )
        return WebsiteImportResult(
            analysis=proposal, website_url=fetched.final_url, website_images=tuple(shown_images)
        )

    def _parse_page(self, fetched: FetchResult) -> tuple[SanitizedContent, list[ImageCandidate]]:
        soup = parse_html(decode_body(fetched.body))
        # Images first: sanitize strips noise tags from the same tree
        images = extract_images(soup, fetched.final_url, self.content_settings.max_image_candidates)
        content = sanitize(soup, self.content_settings.excerpt_budget)
        return content, images

    async def _competitor_context(
        self, identity: CallerIdentity, profile: CallerProfile
    ) -> CompetitorContext | None:
        if self.competitor_builder is None:
            return None
        return await asyncio.to_thread(self.competitor_builder.build, profile, identity.user_id)
