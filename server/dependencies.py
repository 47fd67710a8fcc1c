"""FastAPI dependencies: caller identity, vendor profile, rate limiter and pipeline access."""

import asyncio
import os

from fastapi import Depends, Header, Request
from pydantic import ValidationError

from db.engine import database_configured
from models.vendor import CallerIdentity, CallerProfile
from pipeline.errors import InvalidInput, RateLimited, Unauthorized
from server.schemas.requests import WebsiteImportRequest
from utils.api_key_utils import keys_match
from utils.logger import get_logger
from utils.rate_limiter import FixedWindowRateLimiter

logger = get_logger(__name__)


def parse_static_api_keys(raw: str) -> list[tuple[str, CallerIdentity]]:
    """
    Parse ``API_KEYS`` entries of the form ``key:user_id[:role]``, comma separated.

    Entries without a user id are skipped; role defaults to ``vendor``.
    """
    entries = []
    for item in raw.split(","):
        parts = [p.strip() for p in item.strip().split(":")]
        if len(parts) < 2 or not parts[0] or not parts[1]:
            if item.strip():
                logger.warning("Ignoring malformed API_KEYS entry")
            continue
        role = parts[2] if len(parts) > 2 and parts[2] else "vendor"
        entries.append((parts[0], CallerIdentity(user_id=parts[1], role=role)))
    return entries


class IdentityResolver:
    """
    Map an X-API-Key value to a caller.

    Static keys from API_KEYS are checked first; with DATABASE_URL set, the
    hashed key is then looked up in ``api_keys`` and the role read from
    ``user_profiles``.
    """

    def __init__(self, static_keys: list[tuple[str, CallerIdentity]] | None = None, use_database: bool | None = None):
        self.static_keys = (
            static_keys if static_keys is not None else parse_static_api_keys(os.getenv("API_KEYS", ""))
        )
        self.use_database = database_configured() if use_database is None else use_database

    def resolve(self, api_key: str | None) -> CallerIdentity | None:
        if not api_key:
            return None

        for key, identity in self.static_keys:
            if keys_match(api_key, key):
                return identity

        if not self.use_database:
            return None

        from db import SessionLocal, get_user_id_by_api_key, get_user_role

        db = SessionLocal()
        try:
            user_id = get_user_id_by_api_key(db, api_key)
            if user_id is None:
                return None
            return CallerIdentity(user_id=user_id, role=get_user_role(db, user_id) or "")
        finally:
            db.close()


class ProfileStore:
    """Load the vendor profile used for tier checks and prompt context."""

    def __init__(self, use_database: bool | None = None):
        self.use_database = database_configured() if use_database is None else use_database

    def load(self, user_id: str) -> CallerProfile:
        if not self.use_database:
            return CallerProfile()

        from db import SessionLocal, get_vendor_profile

        db = SessionLocal()
        try:
            row = get_vendor_profile(db, user_id)
        finally:
            db.close()

        if row is None:
            logger.info("No vendor row for caller", extra={"extra_fields": {"user_id": user_id}})
            return CallerProfile()
        return CallerProfile(**row)


def get_identity_resolver() -> IdentityResolver:
    if not hasattr(get_identity_resolver, "_instance"):
        get_identity_resolver._instance = IdentityResolver()
    return get_identity_resolver._instance


def get_profile_store() -> ProfileStore:
    if not hasattr(get_profile_store, "_instance"):
        get_profile_store._instance = ProfileStore()
    return get_profile_store._instance


def get_rate_limiter() -> FixedWindowRateLimiter:
    """Dependency to get the process-wide rate limiter (singleton pattern)."""
    if not hasattr(get_rate_limiter, "_instance"):
        from config.config import Config

        settings = Config().rate_limit
        get_rate_limiter._instance = FixedWindowRateLimiter(
            max_requests=settings.max_requests,
            window_seconds=settings.window_seconds,
            identifier=settings.identifier,
        )
    return get_rate_limiter._instance


def get_pipeline():
    """Dependency to get pipeline instance (singleton pattern)."""
    from pipeline.core import WebsiteDealPipeline

    if not hasattr(get_pipeline, "_instance"):
        get_pipeline._instance = WebsiteDealPipeline.from_config()
    return get_pipeline._instance


async def get_caller(
    x_api_key: str | None = Header(None),
    resolver: IdentityResolver = Depends(get_identity_resolver),
    limiter: FixedWindowRateLimiter = Depends(get_rate_limiter),
) -> CallerIdentity:
    """
    Authenticate, then rate limit by caller.

    Declared ahead of the body dependency so an unauthenticated request never
    learns anything about body validation.
    """
    identity = await asyncio.to_thread(resolver.resolve, x_api_key)
    if identity is None:
        raise Unauthorized("missing or unknown API key")

    decision = limiter.hit(identity.user_id)
    if not decision.allowed:
        raise RateLimited(decision.retry_after)
    return identity


async def get_import_request(request: Request) -> WebsiteImportRequest:
    """Read and validate the JSON body; only reached after get_caller succeeds."""
    try:
        payload = await request.json()
    except ValueError as exc:
        raise InvalidInput("request body is not JSON") from exc

    try:
        return WebsiteImportRequest.model_validate(payload)
    except ValidationError as exc:
        raise InvalidInput(f"request body failed validation: {exc.error_count()} errors") from exc
