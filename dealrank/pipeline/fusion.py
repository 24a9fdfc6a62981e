"""
Fusion engine - combines preference, deal and semantic signals into one explained ranking.
"""
import logging
from typing import Optional

from ..ai.embeddings import (
    DimensionMismatchError,
    EmbeddingService,
    cosine_similarity,
    similarity_to_score,
)
from ..config import RankingConfig
from ..models.listing import Listing
from ..models.preferences import UserPreferences
from ..models.scoring import (
    DealScore,
    Explanation,
    RankedItem,
    SemanticScore,
    SubScoreSet,
)
from .deal import DealScoringModel
from .preference import PreferenceScorer


logger = logging.getLogger(__name__)


class RankingEngine:
    """
    Ranks listings on semantic relevance, deal quality and preference match.

    The semantic signal depends on a remote service and may be missing;
    it then counts as a neutral 50. The other two are always computed.
    """

    def __init__(
        self,
        embedding_service: EmbeddingService,
        deal_model: Optional[DealScoringModel] = None,
        preference_scorer: Optional[PreferenceScorer] = None,
        config: Optional[RankingConfig] = None,
    ):
        self.config = config or RankingConfig()
        self.embedding_service = embedding_service
        self.deal_model = deal_model or DealScoringModel(
            market_averages=self.config.market_averages,
            default_category=self.config.default_category,
        )
        self.preference_scorer = preference_scorer or PreferenceScorer()

    def rank(
        self,
        listings: list[Listing],
        preferences: UserPreferences,
        query: Optional[str] = None,
        category: Optional[str] = None,
    ) -> list[RankedItem]:
        """
        Score, combine and sort listings.

        Args:
            listings: Candidate listings
            preferences: User preferences
            query: Free-text search intent; semantic scoring is skipped without it
            category: Market category for deal scoring

        Returns:
            RankedItem list sorted by final score, highest first
        """
        logger.info(f"Ranking {len(listings)} listings")

        # Step 1: Preference scoring
        sub_scores = [self.preference_scorer.score(listing, preferences) for listing in listings]

        # Step 2: Semantic scoring
        semantic_scores = self._semantic_phase(listings, query)

        # Step 3: Deal scoring
        deal_scores = self.deal_model.score_batch(listings, category)

        # Step 4: Combine
        combined = [
            self._combine(listing, subs, deal, semantic)
            for listing, subs, deal, semantic in zip(listings, sub_scores, deal_scores, semantic_scores)
        ]

        if self.config.drop_hard_excluded:
            combined = [item for item in combined if not item[1].is_hard_excluded]
            logger.info(f"{len(combined)} listings left after dropping hard exclusions")

        # Step 5: Sort by final score descending; ties keep input order
        combined.sort(key=lambda x: x[4], reverse=True)

        ranked = [
            RankedItem(
                rank=rank,
                listing=listing,
                sub_scores=subs,
                deal_score=deal,
                semantic_score=semantic,
                final_score=final,
                explanation=self._explain(semantic, deal, subs),
            )
            for rank, (listing, subs, deal, semantic, final) in enumerate(combined, 1)
        ]

        logger.info("Ranking complete")
        return ranked

    def _semantic_phase(self, listings: list[Listing], query: Optional[str]) -> list[SemanticScore]:
        """Compute semantic scores, or neutral/unavailable ones when the signal is missing."""
        if not query or not query.strip():
            return [SemanticScore.neutral()] * len(listings)

        if not self.embedding_service.is_available():
            logger.info("Embedding service not configured, skipping semantic scoring")
            return [SemanticScore.neutral()] * len(listings)

        try:
            return self._calculate_semantic_scores(listings, query)
        except DimensionMismatchError as e:
            logger.error(f"Embedding dimension mismatch, check the deployment configuration: {e}")
        except Exception as e:
            logger.error(f"Semantic scoring failed, using neutral scores: {e}")

        return [SemanticScore.unavailable()] * len(listings)

    def _calculate_semantic_scores(self, listings: list[Listing], query: str) -> list[SemanticScore]:
        logger.info("Calculating semantic similarities")

        query_embedding = self.embedding_service.embed(query)
        if query_embedding is None:
            logger.warning("Failed to generate query embedding")
            return [SemanticScore.unavailable()] * len(listings)

        item_embeddings = self.embedding_service.embed_batch([listing.text for listing in listings])

        scores = []
        for embedding in item_embeddings:
            if embedding is None:
                scores.append(SemanticScore.unavailable())
                continue
            similarity = cosine_similarity(query_embedding, embedding)
            scores.append(SemanticScore.known(round(similarity_to_score(similarity), 2)))

        known = sum(1 for s in scores if s.is_known)
        logger.info(f"Calculated {known}/{len(listings)} semantic scores")
        return scores

    def _combine(
        self,
        listing: Listing,
        sub_scores: SubScoreSet,
        deal: DealScore,
        semantic: SemanticScore,
    ) -> tuple[Listing, SubScoreSet, DealScore, SemanticScore, float]:
        final = (
            semantic.resolved() * self.config.semantic_weight
            + deal.overall_score * self.config.deal_weight
            + sub_scores.composite * self.config.preference_weight
        )
        return listing, sub_scores, deal, semantic, round(final, 2)

    def _explain(self, semantic: SemanticScore, deal: DealScore, sub_scores: SubScoreSet) -> Explanation:
        """Build the three explanation strings from already computed scores."""
        semantic_value = semantic.resolved()

        semantic_reason = None
        if semantic.is_known:
            if semantic_value >= 75:
                semantic_reason = "Highly relevant to your search intent"
            elif semantic_value >= 60:
                semantic_reason = "Good match for your search intent"
            elif semantic_value >= 40:
                semantic_reason = "Somewhat relevant to your search"
            else:
                semantic_reason = "Limited relevance to your search intent"

        deal_value = deal.overall_score
        if semantic_value >= 70 and deal_value >= 70:
            overall = "Excellent match: highly relevant and great deal quality"
        elif semantic_value >= 60 or deal_value >= 70:
            overall = "Good option: " + (
                "relevant to your needs" if semantic_value >= 60 else "attractive deal"
            )
        else:
            overall = "Consider carefully: " + (
                "limited relevance" if semantic_value < 40 else "fair deal quality"
            )

        highlights = []
        if sub_scores.price_score > 70:
            highlights.append("great price")
        if sub_scores.seller_score > 80:
            highlights.append("excellent seller")
        if sub_scores.shipping_score > 80:
            highlights.append("free shipping")
        if sub_scores.keyword_score > 70:
            highlights.append("keyword match")

        if highlights:
            overall += f" ({', '.join(highlights)})"

        return Explanation(
            semantic_reason=semantic_reason,
            deal_reason=deal_explanation(deal),
            overall_reason=overall,
        )


def deal_explanation(deal: DealScore) -> str:
    """e.g. "good deal (71.2% quality): trusted seller, good condition"."""
    factors = []
    if deal.factors.price_score > 75:
        factors.append("competitive pricing")
    if deal.factors.seller_score > 85:
        factors.append("trusted seller")
    if deal.factors.shipping_score > 80:
        factors.append("low shipping cost")
    if deal.factors.condition_score > 80:
        factors.append("good condition")

    base = f"{deal.recommendation} deal ({deal.overall_score:g}% quality)"
    if factors:
        return f"{base}: {', '.join(factors)}"
    return base
