"""
Turns raw model output into a validated DealProposal.

Model output is untrusted: it may wrap the JSON in prose or code fences,
omit fields, or return prices that contradict each other. Each suggested
deal is validated on its own; invalid ones are dropped with a reason and
the rest survive.
"""

import json
import math
from typing import Any

from models.deal_proposal import (
    DealProposal,
    DealVariant,
    ExtractedInfo,
    ParsedProposal,
    ParseError,
    ProposalParseResult,
)
from models.vendor import DealKind
from utils.logger import get_logger

logger = get_logger(__name__)

DISCOUNT_TOLERANCE = 1.0
MAX_RECOMMENDED_IMAGES = 10
MIN_VARIANTS_FOR_KIND_MIX = 3


class VariantRejected(ValueError):
    pass


def extract_json_object(text: str, start: int = 0) -> str | None:
    """
    Return the first balanced ``{...}`` span at or after ``start``.

    Braces inside JSON strings (including escaped quotes) do not count.
    Returns None when no opening brace exists or the object never closes.
    """
    begin = text.find("{", start)
    if begin < 0:
        return None

    depth = 0
    in_string = False
    escaped = False
    for i in range(begin, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[begin : i + 1]
    return None


def _decode_first_object(text: str) -> tuple[Any, str | None]:
    """
    Try each balanced span in order; first one that decodes wins.

    Returns:
        (decoded value, None) on success, (None, failure reason) otherwise
    """
    span = extract_json_object(text)
    if span is None:
        return None, "no_json_object"

    position = 0
    while span is not None:
        try:
            return json.loads(span), None
        except json.JSONDecodeError:
            position = text.find(span, position) + 1
            span = extract_json_object(text, position)
    return None, "invalid_json"


def _as_number(value: Any) -> float | None:
    """Coerce a model-supplied amount to a finite float; None when it is not one."""
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip().replace("$", "").replace(",", "").rstrip("%").strip()
    elif not isinstance(value, (int, float)):
        return None
    try:
        number = float(value)
    except (ValueError, OverflowError):
        return None
    # json.loads accepts Infinity and NaN
    return number if math.isfinite(number) else None


def _as_text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _as_text_tuple(value: Any) -> tuple[str, ...]:
    if not isinstance(value, list):
        return ()
    return tuple(item.strip() for item in value if isinstance(item, str) and item.strip())


def expected_discount(original_price: float, deal_price: float) -> float:
    return float(round((original_price - deal_price) / original_price * 100))


def parse_variant(raw: Any) -> DealVariant:
    """
    Validate one suggested deal.

    Raises:
        VariantRejected: with the first reason the variant is unusable
    """
    if not isinstance(raw, dict):
        raise VariantRejected("not an object")

    title = _as_text(raw.get("title"))
    if not title:
        raise VariantRejected("missing title")

    description = _as_text(raw.get("description"))
    if not description:
        raise VariantRejected("missing description")

    try:
        deal_kind = DealKind(raw.get("deal_type"))
    except ValueError:
        raise VariantRejected(f"unknown deal_type {raw.get('deal_type')!r}") from None

    original_price = _as_number(raw.get("original_price"))
    deal_price = _as_number(raw.get("deal_price"))
    if original_price is None or deal_price is None:
        raise VariantRejected("missing price")
    if not 0 < deal_price < original_price:
        raise VariantRejected(f"price order violated: {deal_price} vs {original_price}")

    computed = expected_discount(original_price, deal_price)
    discount = _as_number(raw.get("discount_percentage"))
    if discount is None:
        discount = computed
    elif abs(discount - computed) > DISCOUNT_TOLERANCE:
        raise VariantRejected(f"discount {discount} inconsistent with prices ({computed})")

    max_claims = _as_number(raw.get("max_claims"))

    return DealVariant(
        title=title,
        description=description,
        deal_kind=deal_kind,
        original_price=original_price,
        deal_price=deal_price,
        discount_percent=discount,
        max_claims=int(max_claims) if max_claims is not None and max_claims > 0 else None,
        terms=_as_text(raw.get("terms_and_conditions")),
        how_it_works=_as_text(raw.get("how_it_works")),
        highlights=_as_text_tuple(raw.get("highlights")),
        amenities=_as_text_tuple(raw.get("amenities")),
        fine_print=_as_text(raw.get("fine_print")),
        image_prompt=_as_text(raw.get("suggested_image_prompt")),
    )


def _parse_extracted_info(raw: Any) -> ExtractedInfo:
    if not isinstance(raw, dict):
        return ExtractedInfo()
    return ExtractedInfo(
        business_name=_as_text(raw.get("business_name")) or None,
        services_or_products=_as_text_tuple(raw.get("services_or_products")),
        price_range=_as_text(raw.get("price_range")) or None,
        specialties=_as_text_tuple(raw.get("specialties")),
        brand_tone=_as_text(raw.get("brand_tone")) or None,
    )


def _parse_recommended_images(raw: Any) -> tuple[str, ...]:
    images = []
    for url in _as_text_tuple(raw):
        if url.lower().startswith(("http://", "https://")) and url not in images:
            images.append(url)
    return tuple(images[:MAX_RECOMMENDED_IMAGES])


def parse_proposal(text: str) -> ProposalParseResult:
    """
    Parse model output into a ParsedProposal or a ParseError.

    Never raises; the generator decides which pipeline error a ParseError
    becomes.
    """
    data, failure = _decode_first_object(text or "")
    if failure:
        return ParseError(reason=failure, detail=(text or "")[:200])
    if not isinstance(data, dict):
        return ParseError(reason="not_an_object", detail=type(data).__name__)

    raw_deals = data.get("suggested_deals")
    if not isinstance(raw_deals, list):
        raw_deals = []

    variants: list[DealVariant] = []
    rejected: list[str] = []
    for index, raw in enumerate(raw_deals):
        try:
            variants.append(parse_variant(raw))
        except VariantRejected as e:
            rejected.append(f"deal {index}: {e}")

    if rejected:
        logger.warning(
            "Dropped invalid deal suggestions",
            extra={"extra_fields": {"rejected": rejected, "kept": len(variants)}},
        )

    if not variants:
        return ParseError(reason="no_valid_deals", rejected_variants=tuple(rejected))

    kinds = {variant.deal_kind for variant in variants}
    if len(variants) >= MIN_VARIANTS_FOR_KIND_MIX and kinds != {DealKind.SPONTI, DealKind.STEADY}:
        return ParseError(
            reason="kind_mix",
            detail=f"{len(variants)} deals of kind {sorted(k.value for k in kinds)}",
            rejected_variants=tuple(rejected),
        )

    proposal = DealProposal(
        business_summary=_as_text(data.get("business_summary")),
        extracted_info=_parse_extracted_info(data.get("extracted_info")),
        suggested_deals=tuple(variants),
        recommended_images=_parse_recommended_images(data.get("recommended_images")),
    )
    return ParsedProposal(proposal=proposal, rejected_variants=tuple(rejected))
