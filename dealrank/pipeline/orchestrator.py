"""
Search orchestrator - wires the services together and runs a full search.
"""
import logging
from typing import Optional

from ..ai.embeddings import EmbeddingService
from ..client.ebay import EbayClient
from ..config import Config, get_config
from ..models.export import RankingResult
from ..models.listing import Listing
from ..models.preferences import SearchCriteria, UserPreferences
from .deal import DealScoringModel
from .fusion import RankingEngine
from .preference import PreferenceScorer


logger = logging.getLogger(__name__)


def build_engine(config: Optional[Config] = None) -> RankingEngine:
    """Construct a RankingEngine and its services from configuration."""
    config = config or get_config()

    return RankingEngine(
        embedding_service=EmbeddingService(config.embedding),
        deal_model=DealScoringModel(
            market_averages=config.ranking.market_averages,
            default_category=config.ranking.default_category,
        ),
        preference_scorer=PreferenceScorer(),
        config=config.ranking,
    )


def rank_listings(
    listings: list[Listing],
    preferences: UserPreferences,
    query: Optional[str] = None,
    use_ai_ranking: bool = True,
    engine: Optional[RankingEngine] = None,
    category: Optional[str] = None,
    max_results: int = 50,
) -> RankingResult:
    """
    Rank listings and package the top results.

    With AI ranking, all three signals are fused and nothing is dropped.
    Without it, listings are ranked on preference match and those with a
    zero composite are removed.

    Args:
        listings: Listings from the listing source
        preferences: User preferences
        query: Free-text search intent
        use_ai_ranking: Fuse semantic and deal signals
        engine: Engine to use for AI ranking (built from config if None)
        category: Market category for deal scoring
        max_results: Number of top results to keep

    Returns:
        RankingResult with the top items and counts
    """
    if not listings:
        return RankingResult(message="No items found for your search criteria")

    if use_ai_ranking:
        logger.info("Using AI-enhanced ranking")
        engine = engine or build_engine()
        ranked = engine.rank(listings, preferences, query=query, category=category)
    else:
        logger.info("Using preference ranking")
        scorer = engine.preference_scorer if engine else PreferenceScorer()
        ranked = scorer.rank(listings, preferences)

    top_items = ranked[:max_results]

    message = f"Found {len(top_items)} relevant items out of {len(listings)} total results"
    if use_ai_ranking:
        message += " (AI-enhanced ranking)"

    return RankingResult(
        items=top_items,
        total=len(top_items),
        original_total=len(listings),
        ai_enhanced=use_ai_ranking,
        message=message,
    )


def search_and_rank(
    client: EbayClient,
    criteria: SearchCriteria,
    preferences: UserPreferences,
    use_ai_ranking: bool = True,
    engine: Optional[RankingEngine] = None,
    config: Optional[Config] = None,
    category: Optional[str] = None,
) -> RankingResult:
    """
    Fetch listings for the criteria and rank them, using the keywords as the query.

    Raises:
        ValueError: If no keywords were given
        EbayClientError: If the listing source fails
    """
    if not criteria.keywords.strip():
        raise ValueError("Keywords are required for search")

    config = config or get_config()

    logger.info(f"Searching with criteria: {criteria.model_dump(exclude_none=True)}")
    listings = client.search_items(criteria, limit=config.ebay.search_limit)

    return rank_listings(
        listings,
        preferences,
        query=criteria.keywords,
        use_ai_ranking=use_ai_ranking,
        engine=engine,
        category=category,
        max_results=config.ranking.max_results,
    )
