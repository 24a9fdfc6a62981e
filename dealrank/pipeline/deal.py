"""
Deal quality model - fixed-weight logistic scoring of how favourable a listing is.
"""
import logging
import math
import re
from typing import Mapping, Optional

from ..config import DEFAULT_MARKET_AVERAGES
from ..models.listing import Listing
from ..models.scoring import DealFactors, DealFeatures, DealScore, Recommendation


logger = logging.getLogger(__name__)


DEAL_WEIGHTS = {
    "price_vs_average": -0.35,   # cheaper than market = better deal
    "seller_rating": 0.25,
    "shipping_cost_ratio": -0.15,
    "condition_score": 0.20,
    "title_quality_score": 0.10,
    "listing_age_score": 0.05,
    "bid_count_score": 0.05,
}
DEAL_BIAS = 0.15

CONDITION_QUALITY = {
    "NEW": 1.0,
    "LIKE_NEW": 0.9,
    "EXCELLENT": 0.85,
    "VERY_GOOD": 0.75,
    "GOOD": 0.6,
    "ACCEPTABLE": 0.4,
    "USED": 0.5,
    "REFURBISHED": 0.7,
    "FOR_PARTS_OR_NOT_WORKING": 0.2,
}
DEFAULT_CONDITION_QUALITY = 0.5

# No listing age or bid data is available from the listing source
LISTING_AGE_SCORE = 0.8
BID_COUNT_SCORE = 0.6

UNKNOWN_SHIPPING_RATIO = 0.5
UNKNOWN_MARKET_MARKUP = 1.2

BRAND_MODEL_PATTERN = re.compile(r"\b[A-Z][a-z]+ [A-Z0-9]+")
CONDITION_WORD_PATTERN = re.compile(r"\b(new|used|refurbished|excellent|good)\b", re.IGNORECASE)
MEASUREMENT_PATTERN = re.compile(r"\b\d+(\.\d+)?(gb|tb|inch|\"|'|mm|cm|oz|lb)\b", re.IGNORECASE)
HYPE_PATTERN = re.compile(r"!!!|wow|amazing|incredible|must see", re.IGNORECASE)


def recommendation_for(score: float) -> Recommendation:
    """Bucket an overall deal score."""
    if score >= 80:
        return "excellent"
    if score >= 65:
        return "good"
    if score >= 40:
        return "fair"
    return "poor"


class DealScoringModel:
    """
    Scores listings for deal quality with a fixed logistic model.

    Category market averages are held in a table that is only ever
    replaced as a whole, so a scoring pass always sees one consistent
    table.
    """

    def __init__(
        self,
        market_averages: Optional[Mapping[str, float]] = None,
        default_category: str = "general",
    ):
        self._market_averages: dict[str, float] = dict(
            DEFAULT_MARKET_AVERAGES if market_averages is None else market_averages
        )
        self.default_category = default_category

    @property
    def market_averages(self) -> dict[str, float]:
        return dict(self._market_averages)

    def update_market_averages(self, category_averages: Mapping[str, float]) -> None:
        """
        Overlay new category averages and swap in the resulting table.

        Raises:
            ValueError: If any average is not positive
        """
        for category, average in category_averages.items():
            if average <= 0:
                raise ValueError(f"Market average for {category!r} must be positive, got {average}")

        table = dict(self._market_averages)
        table.update(category_averages)
        self._market_averages = table
        logger.info(f"Market averages updated for {len(category_averages)} categories")

    def score(self, listing: Listing, category: Optional[str] = None) -> DealScore:
        """
        Score one listing. Never raises; faults yield a neutral score.

        Args:
            listing: The listing to score
            category: Market category for the price baseline

        Returns:
            DealScore with overall score, confidence, factors and recommendation
        """
        return self._score_guarded(listing, category, self._market_averages)

    def score_batch(self, listings: list[Listing], category: Optional[str] = None) -> list[DealScore]:
        """Score every listing independently against the same market table."""
        table = self._market_averages
        return [self._score_guarded(listing, category, table) for listing in listings]

    def _score_guarded(
        self,
        listing: Listing,
        category: Optional[str],
        table: Mapping[str, float],
    ) -> DealScore:
        try:
            return self._score(listing, category, table)
        except Exception:
            logger.exception(f"Deal scoring failed for {listing.item_id}")
            return DealScore.neutral()

    def _score(
        self,
        listing: Listing,
        category: Optional[str],
        table: Mapping[str, float],
    ) -> DealScore:
        features = self.extract_features(listing, category, table)

        raw = self._logistic(features)
        overall = max(0.0, min(100.0, raw * 100))

        return DealScore(
            overall_score=round(overall, 2),
            confidence=round(self._calculate_confidence(features), 2),
            factors=self._calculate_factors(features),
            recommendation=recommendation_for(overall),
        )

    def extract_features(
        self,
        listing: Listing,
        category: Optional[str] = None,
        table: Optional[Mapping[str, float]] = None,
    ) -> DealFeatures:
        """Derive the model features for a listing."""
        if table is None:
            table = self._market_averages

        price = listing.price.value
        market_average = table.get(category or self.default_category) or price * UNKNOWN_MARKET_MARKUP

        return DealFeatures(
            price_vs_average=math.tanh((price / market_average - 1) * 2),
            seller_rating=listing.seller.feedback_percentage / 100,
            shipping_cost_ratio=self._shipping_ratio(listing, price),
            condition_score=self._condition_quality(listing.condition),
            title_quality_score=self._title_quality(listing.title),
            listing_age_score=LISTING_AGE_SCORE,
            bid_count_score=BID_COUNT_SCORE,
        )

    def _logistic(self, features: DealFeatures) -> float:
        x = DEAL_BIAS
        for name, weight in DEAL_WEIGHTS.items():
            x += getattr(features, name) * weight
        return 1 / (1 + math.exp(-x))

    def _shipping_ratio(self, listing: Listing, price: float) -> float:
        if not listing.shipping_options:
            return UNKNOWN_SHIPPING_RATIO

        cost = listing.shipping_options[0].cost.value
        if cost == 0:
            return 0.0

        return min(1.0, cost / price)

    def _condition_quality(self, condition: str) -> float:
        key = re.sub(r"\s+", "_", condition.upper())
        return CONDITION_QUALITY.get(key, DEFAULT_CONDITION_QUALITY)

    def _title_quality(self, title: str) -> float:
        """Heuristic completeness/clarity score for a listing title."""
        score = 0.5

        if 30 < len(title) < 120:
            score += 0.2
        if len(title) < 20:
            score -= 0.2

        if BRAND_MODEL_PATTERN.search(title):
            score += 0.15
        if CONDITION_WORD_PATTERN.search(title):
            score += 0.1
        if MEASUREMENT_PATTERN.search(title):
            score += 0.1

        # Spammy titles
        if HYPE_PATTERN.search(title):
            score -= 0.15
        if "???" in title:
            score -= 0.1

        return max(0.0, min(1.0, score))

    def _calculate_confidence(self, features: DealFeatures) -> float:
        confidence = 0.5

        if features.seller_rating > 0.95:
            confidence += 0.2
        if abs(features.price_vs_average) > 0.3:
            confidence += 0.15
        if features.title_quality_score > 0.8:
            confidence += 0.1
        if features.seller_rating < 0.9:
            confidence -= 0.15

        return max(0.1, min(1.0, confidence))

    def _calculate_factors(self, features: DealFeatures) -> DealFactors:
        return DealFactors(
            price_score=round((1 - abs(features.price_vs_average)) * 100),
            seller_score=round(features.seller_rating * 100),
            shipping_score=round((1 - features.shipping_cost_ratio) * 100),
            condition_score=round(features.condition_score * 100),
            title_score=round(features.title_quality_score * 100),
            freshness_score=round(features.listing_age_score * 100),
        )
