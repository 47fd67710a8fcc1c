from dataclasses import dataclass, field
from typing import Any, Literal, Union

from models.vendor import DealKind


@dataclass(frozen=True)
class DealVariant:
    title: str
    description: str
    deal_kind: DealKind
    original_price: float
    deal_price: float
    discount_percent: float
    max_claims: int | None = None
    terms: str = ""
    how_it_works: str = ""
    highlights: tuple[str, ...] = ()
    amenities: tuple[str, ...] = ()
    fine_print: str = ""
    image_prompt: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "deal_type": self.deal_kind.value,
            "original_price": self.original_price,
            "deal_price": self.deal_price,
            "discount_percentage": self.discount_percent,
            "max_claims": self.max_claims,
            "terms_and_conditions": self.terms,
            "how_it_works": self.how_it_works,
            "highlights": list(self.highlights),
            "amenities": list(self.amenities),
            "fine_print": self.fine_print,
            "suggested_image_prompt": self.image_prompt,
        }


@dataclass(frozen=True)
class ExtractedInfo:
    business_name: str | None = None
    services_or_products: tuple[str, ...] = ()
    price_range: str | None = None
    specialties: tuple[str, ...] = ()
    brand_tone: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "business_name": self.business_name,
            "services_or_products": list(self.services_or_products),
            "price_range": self.price_range,
            "specialties": list(self.specialties),
            "brand_tone": self.brand_tone,
        }


@dataclass(frozen=True)
class DealProposal:
    business_summary: str
    extracted_info: ExtractedInfo
    suggested_deals: tuple[DealVariant, ...]
    recommended_images: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "business_summary": self.business_summary,
            "extracted_info": self.extracted_info.to_dict(),
            "suggested_deals": [deal.to_dict() for deal in self.suggested_deals],
            "recommended_images": list(self.recommended_images),
        }


ParseFailureReason = Literal["no_json_object", "invalid_json", "not_an_object", "no_valid_deals", "kind_mix"]


@dataclass(frozen=True)
class ParsedProposal:
    proposal: DealProposal
    rejected_variants: tuple[str, ...] = ()  # one reason per dropped variant

    ok: Literal[True] = True


@dataclass(frozen=True)
class ParseError:
    reason: ParseFailureReason
    detail: str = ""
    rejected_variants: tuple[str, ...] = field(default_factory=tuple)

    ok: Literal[False] = False


ProposalParseResult = Union[ParsedProposal, ParseError]
