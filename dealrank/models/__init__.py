"""
Pydantic models for dealrank.
All data contracts are defined here for strict validation.
"""

from .listing import ItemLocation, Listing, Money, Seller, ShippingOption
from .preferences import SearchCriteria, UserPreferences
from .scoring import (
    DealFactors,
    DealFeatures,
    DealScore,
    Explanation,
    PreferenceRankedItem,
    RankedItem,
    SemanticScore,
    SignalStatus,
    SubScoreSet,
)
from .export import RankingResult

__all__ = [
    # Listing
    "ItemLocation",
    "Listing",
    "Money",
    "Seller",
    "ShippingOption",
    # Preferences
    "SearchCriteria",
    "UserPreferences",
    # Scoring
    "DealFactors",
    "DealFeatures",
    "DealScore",
    "Explanation",
    "PreferenceRankedItem",
    "RankedItem",
    "SemanticScore",
    "SignalStatus",
    "SubScoreSet",
    # Export
    "RankingResult",
]
