"""
Listing models - immutable marketplace listings as supplied by the listing source.
"""
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Money(BaseModel):
    """An amount with its currency."""
    model_config = ConfigDict(frozen=True)

    value: float = Field(ge=0, allow_inf_nan=False)
    currency: str = "USD"

    @field_validator("value", mode="before")
    @classmethod
    def parse_value(cls, v: Any) -> Any:
        """Parse amounts sent as strings, e.g. "12.50" or "1,299.00"."""
        if isinstance(v, str):
            cleaned = v.replace(",", "").replace("$", "").strip()
            try:
                return float(cleaned)
            except ValueError:
                raise ValueError(f"Unparseable amount: {v!r}")
        return v


class Seller(BaseModel):
    """Seller reputation summary."""
    model_config = ConfigDict(frozen=True)

    username: str
    feedback_percentage: float = Field(ge=0, le=100)
    feedback_score: int = 0


class ShippingOption(BaseModel):
    """A single shipping option offered on a listing."""
    model_config = ConfigDict(frozen=True)

    cost: Money
    type: Optional[str] = None

    @property
    def is_free(self) -> bool:
        return self.cost.value == 0


class ItemLocation(BaseModel):
    model_config = ConfigDict(frozen=True)

    country: Optional[str] = None


class Listing(BaseModel):
    """
    A marketplace listing.
    Never mutated by the ranking core.
    """
    model_config = ConfigDict(frozen=True)

    item_id: str = Field(min_length=1)
    title: str
    description: Optional[str] = None
    price: Money
    condition: str = ""
    seller: Seller
    shipping_options: tuple[ShippingOption, ...] = Field(default_factory=tuple)
    location: Optional[ItemLocation] = None

    # Carried for display only
    item_web_url: Optional[str] = None
    image_url: Optional[str] = None

    @property
    def text(self) -> str:
        """Title and description joined, as used for keyword and semantic matching."""
        return f"{self.title} {self.description or ''}"

    @property
    def search_text(self) -> str:
        return self.text.lower()

    @property
    def has_free_shipping(self) -> bool:
        return any(option.is_free for option in self.shipping_options)
