"""
Preferences models - user preferences and listing-source search criteria.
"""
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator


class UserPreferences(BaseModel):
    """
    Stated user preferences for a ranking request.
    A missing field is neutral: it neither rewards nor penalizes a listing.
    """
    max_price: Optional[float] = Field(default=None, ge=0)
    preferred_conditions: list[str] = Field(default_factory=list)
    minimum_seller_rating: Optional[float] = Field(
        default=None,
        ge=0,
        le=100,
        description="Minimum seller feedback percentage"
    )
    free_shipping_only: bool = False
    keywords: list[str] = Field(default_factory=list)

    @field_validator("keywords", "preferred_conditions")
    @classmethod
    def drop_blank(cls, v: list[str]) -> list[str]:
        """Strip entries and drop empty ones."""
        return [item.strip() for item in v if item and item.strip()]


class SearchCriteria(BaseModel):
    """Coarse, server-side filters sent to the listing source."""
    keywords: str
    category_id: Optional[str] = None
    min_price: Optional[float] = Field(default=None, ge=0)
    max_price: Optional[float] = Field(default=None, ge=0)
    condition: Optional[Literal["NEW", "USED", "UNSPECIFIED"]] = None
    free_shipping: bool = False
    buy_it_now: bool = False
    sort_order: Optional[
        Literal[
            "BestMatch",
            "CurrentPriceHighest",
            "PricePlusShippingHighest",
            "PricePlusShippingLowest",
            "StartTimeNewest",
        ]
    ] = None

    def build_filter(self) -> Optional[str]:
        """Build the Browse API filter expression, or None when no filter applies."""
        filters = []

        if self.min_price or self.max_price:
            low = _format_amount(self.min_price)
            high = _format_amount(self.max_price)
            filters.append(f"price:[{low}..{high}]")

        if self.condition:
            filters.append(f"conditions:{{{self.condition}}}")

        if self.free_shipping:
            filters.append("deliveryOptions:{FAST_N_FREE}")

        if self.buy_it_now:
            filters.append("buyingOptions:{FIXED_PRICE}")

        return ",".join(filters) if filters else None


def _format_amount(amount: Optional[float]) -> str:
    if not amount:
        return ""
    return f"{amount:g}"
