"""
Preference scorer - rule-based matching of a listing against user preferences.
"""
import logging
from typing import Optional

from ..models.listing import Listing
from ..models.preferences import UserPreferences
from ..models.scoring import NEUTRAL_SCORE, PreferenceRankedItem, SubScoreSet


logger = logging.getLogger(__name__)


PREFERENCE_WEIGHTS = {
    "price": 0.25,
    "condition": 0.15,
    "seller": 0.20,
    "shipping": 0.15,
    "keyword": 0.25,
}

OVER_BUDGET = "over_budget"
BELOW_SELLER_MINIMUM = "below_seller_minimum"


class PreferenceScorer:
    """
    Scores how well a listing matches stated preferences.
    All sub-scores are 0-100; a missing preference scores a neutral 50.
    """

    weights = PREFERENCE_WEIGHTS

    def score(self, listing: Listing, preferences: UserPreferences) -> SubScoreSet:
        """
        Calculate the five preference sub-scores and their weighted composite.

        Args:
            listing: The listing to score
            preferences: User preferences

        Returns:
            SubScoreSet with every sub-score and the composite
        """
        price_score = self._calculate_price_score(listing, preferences.max_price)
        condition_score = self._calculate_condition_score(listing, preferences.preferred_conditions)
        seller_score = self._calculate_seller_score(listing, preferences.minimum_seller_rating)
        shipping_score = self._calculate_shipping_score(listing, preferences.free_shipping_only)
        keyword_score = self._calculate_keyword_score(listing, preferences.keywords)

        composite = (
            price_score * self.weights["price"]
            + condition_score * self.weights["condition"]
            + seller_score * self.weights["seller"]
            + shipping_score * self.weights["shipping"]
            + keyword_score * self.weights["keyword"]
        )

        exclusions = []
        if preferences.max_price and listing.price.value > preferences.max_price:
            exclusions.append(OVER_BUDGET)
        if (
            preferences.minimum_seller_rating
            and listing.seller.feedback_percentage < preferences.minimum_seller_rating
        ):
            exclusions.append(BELOW_SELLER_MINIMUM)

        return SubScoreSet(
            price_score=price_score,
            condition_score=condition_score,
            seller_score=seller_score,
            shipping_score=shipping_score,
            keyword_score=keyword_score,
            composite=round(composite, 2),
            hard_exclusions=exclusions,
        )

    def _calculate_price_score(self, listing: Listing, max_price: Optional[float]) -> float:
        """Linear from 100 at price 0 down to 50 at the budget; 0 over budget."""
        if not max_price:
            return NEUTRAL_SCORE

        price = listing.price.value
        if price > max_price:
            return 0.0

        return max(0.0, 100 - (price / max_price) * 50)

    def _calculate_condition_score(self, listing: Listing, preferred: list[str]) -> float:
        if not preferred:
            return NEUTRAL_SCORE

        condition = listing.condition.upper()
        preferred_upper = [c.upper() for c in preferred]

        if condition in preferred_upper:
            return 100.0

        # Partial matches for similar conditions
        if "NEW" in condition and any("NEW" in c for c in preferred_upper):
            return 80.0
        if "USED" in condition and any("USED" in c for c in preferred_upper):
            return 60.0

        return 20.0

    def _calculate_seller_score(self, listing: Listing, minimum_rating: Optional[float]) -> float:
        """50 at the minimum, +2 per point above it, capped at 100; 0 below it."""
        if not minimum_rating:
            return NEUTRAL_SCORE

        rating = listing.seller.feedback_percentage
        if rating < minimum_rating:
            return 0.0

        bonus = min((rating - minimum_rating) * 2, 50)
        return min(100.0, 50 + bonus)

    def _calculate_shipping_score(self, listing: Listing, free_shipping_only: bool) -> float:
        if not free_shipping_only:
            return NEUTRAL_SCORE
        return 100.0 if listing.has_free_shipping else 0.0

    def _calculate_keyword_score(self, listing: Listing, keywords: list[str]) -> float:
        """Share of keywords found in title and description."""
        if not keywords:
            return NEUTRAL_SCORE

        text = listing.search_text
        matched = sum(1 for keyword in keywords if keyword.lower() in text)
        return min(100.0, matched / len(keywords) * 100)

    def explain(self, sub_scores: SubScoreSet) -> str:
        """Build a short comma-joined explanation of the notable sub-scores."""
        parts = []

        if sub_scores.price_score > 70:
            parts.append("Great price value")
        elif sub_scores.price_score < 30:
            parts.append("Higher priced")

        if sub_scores.condition_score > 70:
            parts.append("Preferred condition")
        elif sub_scores.condition_score < 30:
            parts.append("Condition not preferred")

        if sub_scores.seller_score > 70:
            parts.append("Excellent seller rating")
        elif sub_scores.seller_score < 30:
            parts.append("Lower seller rating")

        if sub_scores.shipping_score > 70:
            parts.append("Free shipping available")
        elif sub_scores.shipping_score == 0:
            parts.append("No free shipping")

        if sub_scores.keyword_score > 70:
            parts.append("High keyword relevance")
        elif sub_scores.keyword_score < 30:
            parts.append("Low keyword match")

        return ", ".join(parts) or "Standard match"

    def rank(
        self,
        listings: list[Listing],
        preferences: UserPreferences,
    ) -> list[PreferenceRankedItem]:
        """
        Rank listings on preference match alone.

        Listings with a composite of 0 are dropped; the rest are sorted
        by composite, highest first.
        """
        scored = [(listing, self.score(listing, preferences)) for listing in listings]
        kept = [(listing, scores) for listing, scores in scored if scores.composite > 0]

        logger.info(f"Preference ranking kept {len(kept)} of {len(listings)} listings")

        kept.sort(key=lambda x: x[1].composite, reverse=True)

        return [
            PreferenceRankedItem(
                rank=rank,
                listing=listing,
                sub_scores=scores,
                explanation=self.explain(scores),
            )
            for rank, (listing, scores) in enumerate(kept, 1)
        ]
