"""
Result models - what a search returns to its caller.
"""
from typing import Any, Union

from pydantic import BaseModel, Field

from .scoring import PreferenceRankedItem, RankedItem


class RankingResult(BaseModel):
    """Ranked items plus aggregate counts for one search."""
    items: list[Union[RankedItem, PreferenceRankedItem]] = Field(default_factory=list)
    total: int = Field(default=0, description="Number of items returned")
    original_total: int = Field(default=0, description="Listings received before ranking")
    ai_enhanced: bool = False
    message: str = ""

    def to_minimal_export(self) -> dict[str, Any]:
        """Export a compact summary without score breakdowns."""
        return {
            "total": self.total,
            "original_total": self.original_total,
            "ai_enhanced": self.ai_enhanced,
            "message": self.message,
            "results": [
                {
                    "rank": item.rank,
                    "item_id": item.listing.item_id,
                    "title": item.listing.title,
                    "price": item.listing.price.value,
                    "url": item.listing.item_web_url,
                    "score": item.final_score,
                }
                for item in self.items
            ],
        }
