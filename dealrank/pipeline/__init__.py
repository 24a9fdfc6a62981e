"""Pipeline modules for ranking."""

from .preference import PreferenceScorer
from .deal import DealScoringModel
from .fusion import RankingEngine
from .orchestrator import build_engine, rank_listings, search_and_rank

__all__ = [
    "PreferenceScorer",
    "DealScoringModel",
    "RankingEngine",
    "build_engine",
    "rank_listings",
    "search_and_rank",
]
