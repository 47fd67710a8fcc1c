"""
Models package: page artifacts, caller context, deal proposals and generation responses.
"""

from .deal_proposal import DealProposal, DealVariant, ExtractedInfo, ParsedProposal, ParseError
from .unified_response import NormalizedError, TokenUsage, UnifiedResponse
from .vendor import (
    CallerIdentity,
    CallerProfile,
    CompetitorContext,
    CompetitorSample,
    DealKind,
)
from .website import FetchResult, ImageCandidate, SanitizedContent

__all__ = [
    "CallerIdentity",
    "CallerProfile",
    "CompetitorContext",
    "CompetitorSample",
    "DealKind",
    "DealProposal",
    "DealVariant",
    "ExtractedInfo",
    "FetchResult",
    "ImageCandidate",
    "NormalizedError",
    "ParsedProposal",
    "ParseError",
    "SanitizedContent",
    "TokenUsage",
    "UnifiedResponse",
]
