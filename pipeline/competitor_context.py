"""
Competitive context: the caller's best-performing marketplace rivals.

The context is advisory. Any store failure or empty result yields ``None``
and the proposal is generated without benchmarks.
"""

from collections.abc import Callable
from typing import Any, Protocol

from sqlalchemy.orm import Session

from models.vendor import CallerProfile, CompetitorContext, CompetitorSample, DealKind
from utils.logger import get_logger

logger = get_logger(__name__)


class CompetitorStore(Protocol):
    def similar_vendor_ids(self, category: str, exclude_vendor_id: str, limit: int) -> list[str]: ...

    def top_active_deals(
        self, exclude_vendor_id: str, vendor_ids: list[str] | None, limit: int
    ) -> list[dict[str, Any]]: ...


class SqlCompetitorStore:
    """CompetitorStore backed by the marketplace database (read-only)."""

    def __init__(self, session_factory: Callable[[], Session] | None = None):
        if session_factory is None:
            from db.session import SessionLocal

            session_factory = SessionLocal
        self._session_factory = session_factory

    def similar_vendor_ids(self, category: str, exclude_vendor_id: str, limit: int) -> list[str]:
        from db.repository import get_similar_vendor_ids

        db = self._session_factory()
        try:
            return get_similar_vendor_ids(db, category, exclude_vendor_id, limit=limit)
        finally:
            db.close()

    def top_active_deals(
        self, exclude_vendor_id: str, vendor_ids: list[str] | None, limit: int
    ) -> list[dict[str, Any]]:
        from db.repository import get_top_active_deals

        db = self._session_factory()
        try:
            return get_top_active_deals(db, exclude_vendor_id, vendor_ids=vendor_ids, limit=limit)
        finally:
            db.close()


def _as_float(value: Any) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _to_sample(row: dict[str, Any]) -> CompetitorSample:
    return CompetitorSample(
        title=str(row.get("title") or ""),
        description=row.get("description"),
        original_price=_as_float(row.get("original_price")),
        deal_price=_as_float(row.get("deal_price")),
        discount_percent=_as_float(row.get("discount_percentage")),
        deal_kind=row.get("deal_type"),
    )


class CompetitorContextBuilder:
    """Builds a bounded, ranked list of competitor listings for prompt context."""

    def __init__(self, store: CompetitorStore, max_samples: int = 5, vendor_sample: int = 20):
        self.store = store
        self.max_samples = max_samples
        self.vendor_sample = vendor_sample

    def build(self, profile: CallerProfile, caller_id: str) -> CompetitorContext | None:
        """
        Query the store for the caller's top competitors.

        Only runs when the caller has a category or a city on file. With a
        category, listings are restricted to a sample of same-category vendors
        when that sample is non-empty; otherwise all active listings compete.

        Returns:
            CompetitorContext, or None when nothing usable was found
        """
        if not (profile.category or profile.city):
            return None

        try:
            vendor_ids: list[str] | None = None
            if profile.category:
                vendor_ids = self.store.similar_vendor_ids(
                    profile.category, caller_id, self.vendor_sample
                ) or None

            rows = self.store.top_active_deals(caller_id, vendor_ids, self.max_samples)
        except Exception as e:
            logger.warning(
                "Competitor lookup failed; continuing without benchmarks",
                extra={"extra_fields": {"error_type": type(e).__name__, "error": str(e)}},
            )
            return None

        samples = tuple(_to_sample(row) for row in rows[: self.max_samples] if row.get("title"))
        if not samples:
            logger.info(
                "No competitor listings found",
                extra={"extra_fields": {"category": profile.category, "city": profile.city}},
            )
            return None

        logger.info(
            "Competitor context built",
            extra={"extra_fields": {"samples": len(samples), "category": profile.category}},
        )
        return CompetitorContext(samples=samples, same_category=vendor_ids is not None)


def _fmt_amount(value: float | None) -> str:
    if value is None:
        return "?"
    return f"{value:g}"


def format_competitor_context(context: CompetitorContext | None, marketplace_name: str = "SpontiCoupon") -> str:
    """Render competitor samples as numbered prompt lines; empty string for no context."""
    if context is None:
        return ""

    lines = []
    for i, sample in enumerate(context.samples, start=1):
        kind = DealKind.SPONTI.label if sample.deal_kind == DealKind.SPONTI.value else DealKind.STEADY.label
        lines.append(
            f'{i}. "{sample.title}" — ${_fmt_amount(sample.original_price)} → '
            f"${_fmt_amount(sample.deal_price)} ({_fmt_amount(sample.discount_percent)}% off, {kind})"
        )
    scope = " (same category)" if context.same_category else ""
    header = f"TOP COMPETITOR DEALS ON {marketplace_name.upper()}{scope}:"
    return header + "\n" + "\n".join(lines)
