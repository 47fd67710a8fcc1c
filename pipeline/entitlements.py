from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

WEBSITE_IMPORT_FEATURE = "ai_deal_assistant"


@dataclass
class EntitlementTable:
    """Subscription tier -> boolean feature flags."""

    _tiers: dict[str, dict[str, bool]]
    _tier_names: dict[str, str]
    _default_tier: str
    _tier_order: list[str]

    @classmethod
    def from_yaml(cls, path: str | None = None) -> "EntitlementTable":
        table_path = (
            Path(path)
            if path
            else Path(__file__).resolve().parent.parent / "config" / "subscription_tiers.yaml"
        )
        if not table_path.exists():
            raise ValueError(f"Subscription tier table not found at {table_path}")

        data = yaml.safe_load(table_path.read_text(encoding="utf-8"))
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "EntitlementTable":
        if not data or "tiers" not in data:
            raise ValueError("Invalid subscription tier table: missing tiers")

        tiers: dict[str, dict[str, bool]] = {}
        names: dict[str, str] = {}
        for tier, tdata in data["tiers"].items():
            features = (tdata or {}).get("features", {})
            if not isinstance(features, dict):
                raise ValueError(f"Invalid features for tier {tier}")
            tiers[tier] = {name: bool(flag) for name, flag in features.items()}
            names[tier] = (tdata or {}).get("name", str(tier).title())

        default_tier = data.get("default_tier", "starter")
        if default_tier not in tiers:
            raise ValueError(f"Default tier {default_tier!r} is not defined")

        tier_order = list(data.get("tier_order", list(tiers)))
        return cls(
            _tiers=tiers,
            _tier_names=names,
            _default_tier=default_tier,
            _tier_order=tier_order,
        )

    def resolve_tier(self, tier: str | None) -> str:
        """Unknown or missing tiers fall back to the default (lowest) tier."""
        if tier and tier in self._tiers:
            return tier
        return self._default_tier

    def is_entitled(self, tier: str | None, feature: str) -> bool:
        return self._tiers[self.resolve_tier(tier)].get(feature, False)

    def minimum_tier_for(self, feature: str) -> str | None:
        for tier in self._tier_order:
            if self._tiers.get(tier, {}).get(feature):
                return tier
        return None

    def tier_name(self, tier: str) -> str:
        return self._tier_names.get(tier, tier.title())
