"""
Read-only repository for marketplace data used by the website import service.

Design principles:
- SQLAlchemy Core (select) on reflected tables, no ORM
- Functions never write and never commit
- Returns plain values / dicts; callers map them to models
"""

from typing import Any

from sqlalchemy import and_, desc, select
from sqlalchemy.orm import Session

from utils.api_key_utils import compute_api_key_hash
from utils.logger import get_logger

logger = get_logger(__name__)

ACTIVE_DEAL_STATUS = "active"


# ============================================================================
# IDENTITY & PROFILE
# ============================================================================


def get_user_id_by_api_key(db: Session, api_key: str) -> str | None:
    """
    Look up the owner of an active API key.

    Args:
        db: Database session
        api_key: Plaintext API key from X-API-Key header

    Returns:
        str: user_id if found, None otherwise
    """
    from db.tables import get_table

    api_keys = get_table("api_keys")
    key_hash = compute_api_key_hash(api_key)

    stmt = select(api_keys.c.user_id).where(
        and_(api_keys.c.key_hash == key_hash, api_keys.c.is_active)
    )
    row = db.execute(stmt).first()
    if row is None:
        logger.warning(f"API key not found or inactive: {key_hash[:8]}...")
        return None
    return str(row[0])


def get_user_role(db: Session, user_id: str) -> str | None:
    from db.tables import get_table

    user_profiles = get_table("user_profiles")
    stmt = select(user_profiles.c.role).where(user_profiles.c.id == user_id)
    row = db.execute(stmt).first()
    return row[0] if row else None


def get_vendor_profile(db: Session, vendor_id: str) -> dict[str, Any] | None:
    """
    Fetch the vendor fields used as prompt context.

    Returns:
        dict with business_name, category, city, state, subscription_tier,
        or None when the vendor row does not exist
    """
    from db.tables import get_table

    vendors = get_table("vendors")
    stmt = select(
        vendors.c.business_name,
        vendors.c.category,
        vendors.c.city,
        vendors.c.state,
        vendors.c.subscription_tier,
    ).where(vendors.c.id == vendor_id)

    row = db.execute(stmt).mappings().first()
    return dict(row) if row else None


# ============================================================================
# COMPETITOR BENCHMARKING
# ============================================================================


def get_similar_vendor_ids(
    db: Session, category: str, exclude_vendor_id: str, limit: int = 20
) -> list[str]:
    """
    Sample vendors in the same category, excluding the caller.

    The sample is bounded so the follow-up deal query never joins against an
    unbounded vendor set.
    """
    from db.tables import get_table

    vendors = get_table("vendors")
    stmt = (
        select(vendors.c.id)
        .where(and_(vendors.c.category == category, vendors.c.id != exclude_vendor_id))
        .limit(limit)
    )
    return [str(row[0]) for row in db.execute(stmt).all()]


def get_top_active_deals(
    db: Session,
    exclude_vendor_id: str,
    vendor_ids: list[str] | None = None,
    limit: int = 5,
) -> list[dict[str, Any]]:
    """
    Active deals not owned by the caller, most claimed first.

    Args:
        db: Database session
        exclude_vendor_id: The caller's vendor id
        vendor_ids: When non-empty, restrict to deals owned by these vendors
        limit: Maximum rows returned

    Returns:
        list of dicts with title, description, original_price, deal_price,
        discount_percentage, deal_type
    """
    from db.tables import get_table

    deals = get_table("deals")
    conditions = [
        deals.c.status == ACTIVE_DEAL_STATUS,
        deals.c.vendor_id != exclude_vendor_id,
    ]
    if vendor_ids:
        conditions.append(deals.c.vendor_id.in_(vendor_ids))

    stmt = (
        select(
            deals.c.title,
            deals.c.description,
            deals.c.original_price,
            deals.c.deal_price,
            deals.c.discount_percentage,
            deals.c.deal_type,
        )
        .where(and_(*conditions))
        .order_by(desc(deals.c.claims_count))
        .limit(limit)
    )
    return [dict(row) for row in db.execute(stmt).mappings().all()]
