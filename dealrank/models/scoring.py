"""
Scoring models - preference sub-scores, deal scores, semantic scores and ranked results.
"""
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from .listing import Listing


NEUTRAL_SCORE = 50.0

Recommendation = Literal["excellent", "good", "fair", "poor"]


class SubScoreSet(BaseModel):
    """Preference match sub-scores for one listing."""
    price_score: float = Field(ge=0, le=100)
    condition_score: float = Field(ge=0, le=100)
    seller_score: float = Field(ge=0, le=100)
    shipping_score: float = Field(ge=0, le=100)
    keyword_score: float = Field(ge=0, le=100)
    composite: float = Field(ge=0, le=100, description="Fixed-weight sum of the sub-scores")

    # Preference violations that produced a zero sub-score
    hard_exclusions: list[str] = Field(default_factory=list)

    @property
    def is_hard_excluded(self) -> bool:
        return bool(self.hard_exclusions)


class DealFeatures(BaseModel):
    """Features fed to the deal quality model."""
    price_vs_average: float = Field(ge=-1, le=1, description="Negative = cheaper than market")
    seller_rating: float = Field(ge=0, le=1)
    shipping_cost_ratio: float = Field(ge=0, le=1)
    condition_score: float = Field(ge=0, le=1)
    title_quality_score: float = Field(ge=0, le=1)
    listing_age_score: float = Field(ge=0, le=1)
    bid_count_score: float = Field(ge=0, le=1)


class DealFactors(BaseModel):
    """Per-factor 0-100 breakdown of a deal score."""
    price_score: int = Field(ge=0, le=100)
    seller_score: int = Field(ge=0, le=100)
    shipping_score: int = Field(ge=0, le=100)
    condition_score: int = Field(ge=0, le=100)
    title_score: int = Field(ge=0, le=100)
    freshness_score: int = Field(ge=0, le=100)


class DealScore(BaseModel):
    """Deal quality assessment for one listing."""
    overall_score: float = Field(ge=0, le=100)
    confidence: float = Field(ge=0.1, le=1.0)
    factors: DealFactors
    recommendation: Recommendation

    @classmethod
    def neutral(cls) -> "DealScore":
        """Fallback used when a listing cannot be scored."""
        return cls(
            overall_score=NEUTRAL_SCORE,
            confidence=0.1,
            factors=DealFactors(
                price_score=50,
                seller_score=50,
                shipping_score=50,
                condition_score=50,
                title_score=50,
                freshness_score=50,
            ),
            recommendation="fair",
        )


class SignalStatus(str, Enum):
    KNOWN = "known"
    NEUTRAL = "neutral"
    UNAVAILABLE = "unavailable"


class SemanticScore(BaseModel):
    """
    Semantic relevance of a listing to the query.

    Either a known 0-100 value, neutral (no query or the embedding
    service is not configured), or unavailable (the embedding could
    not be produced). Only a known score carries a value.
    """
    model_config = ConfigDict(frozen=True)

    status: SignalStatus
    value: Optional[float] = Field(default=None, ge=0, le=100)

    @classmethod
    def known(cls, value: float) -> "SemanticScore":
        return cls(status=SignalStatus.KNOWN, value=value)

    @classmethod
    def neutral(cls) -> "SemanticScore":
        return cls(status=SignalStatus.NEUTRAL)

    @classmethod
    def unavailable(cls) -> "SemanticScore":
        return cls(status=SignalStatus.UNAVAILABLE)

    @property
    def is_known(self) -> bool:
        return self.status is SignalStatus.KNOWN

    def resolved(self) -> float:
        """Value used for combination; 50 unless known."""
        if self.status is SignalStatus.KNOWN:
            return self.value
        return NEUTRAL_SCORE


class Explanation(BaseModel):
    """Human-readable reasons behind a ranking position."""
    semantic_reason: Optional[str] = None
    deal_reason: str
    overall_reason: str


class RankedItem(BaseModel):
    """A listing with all three signals, its final score and explanation."""
    rank: int
    listing: Listing
    sub_scores: SubScoreSet
    deal_score: DealScore
    semantic_score: SemanticScore
    final_score: float = Field(ge=0)
    explanation: Explanation

    @property
    def is_good_deal(self) -> bool:
        return self.deal_score.recommendation in ("excellent", "good")


class PreferenceRankedItem(BaseModel):
    """A listing ranked on preference match only."""
    rank: int
    listing: Listing
    sub_scores: SubScoreSet
    explanation: str

    @property
    def final_score(self) -> float:
        return self.sub_scores.composite
