"""
Caller-side containers: who is asking, what their business looks like, and
which marketplace listings they compete with.

All of these are read-only snapshots supplied by collaborators; the pipeline
never mutates or persists them.
"""

from dataclasses import dataclass, field
from enum import Enum


class DealKind(str, Enum):
    SPONTI = "sponti_coupon"  # short-lived flash deal
    STEADY = "regular"  # longer-running deal

    @property
    def label(self) -> str:
        return "Sponti" if self is DealKind.SPONTI else "Steady"


@dataclass(frozen=True)
class CallerIdentity:
    user_id: str
    role: str = "vendor"

    @property
    def is_vendor(self) -> bool:
        return self.role == "vendor"


@dataclass(frozen=True)
class CallerProfile:
    """
    Vendor profile used only as prompt context.

    Attributes:
        business_name: Display name of the vendor's business
        category: Marketplace category, used to find competitors
        city: City of the primary location
        state: State/region of the primary location
        subscription_tier: Tier key from the entitlement table
    """

    business_name: str | None = None
    category: str | None = None
    city: str | None = None
    state: str | None = None
    subscription_tier: str | None = None

    @property
    def location(self) -> str | None:
        if self.city and self.state:
            return f"{self.city}, {self.state}"
        return None


@dataclass(frozen=True)
class CompetitorSample:
    title: str
    description: str | None
    original_price: float | None
    deal_price: float | None
    discount_percent: float | None
    deal_kind: str | None


@dataclass(frozen=True)
class CompetitorContext:
    """Ranked competitor listings; only built when at least one sample exists."""

    samples: tuple[CompetitorSample, ...] = field(default_factory=tuple)
    # False when listings were not restricted to same-category vendors
    same_category: bool = True

    def __post_init__(self):
        if not self.samples:
            raise ValueError("CompetitorContext requires at least one sample")
