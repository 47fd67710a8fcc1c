"""Shared API key utilities."""

import hashlib
import hmac


def compute_api_key_hash(api_key: str) -> str:
    """Return SHA-256 hex hash for an API key."""
    return hashlib.sha256(api_key.encode("utf-8")).hexdigest()


def keys_match(candidate: str, expected: str) -> bool:
    """Constant-time comparison of two plaintext keys."""
    return hmac.compare_digest(candidate.encode("utf-8"), expected.encode("utf-8"))
