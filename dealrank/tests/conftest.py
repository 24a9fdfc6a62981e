"""
Shared fixtures for dealrank tests.
"""
from types import SimpleNamespace
from typing import Optional

import pytest

from dealrank.models.listing import Listing


def build_listing(
    item_id: str = "item-1",
    title: str = "Apple iPhone 13 128GB Unlocked",
    description: Optional[str] = "Lightly used, includes case",
    price: float = 80.0,
    condition: str = "USED",
    feedback_percentage: float = 99.0,
    shipping_costs: Optional[list[float]] = None,
) -> Listing:
    """Create a listing with sensible defaults."""
    shipping_costs = [0.0] if shipping_costs is None else shipping_costs
    return Listing(
        item_id=item_id,
        title=title,
        description=description,
        price={"value": price, "currency": "USD"},
        condition=condition,
        seller={
            "username": "seller_1",
            "feedback_percentage": feedback_percentage,
            "feedback_score": 1200,
        },
        shipping_options=[
            {"cost": {"value": cost, "currency": "USD"}, "type": "FIXED"}
            for cost in shipping_costs
        ],
        location={"country": "US"},
    )


@pytest.fixture
def make_listing():
    """Factory fixture for listings."""
    return build_listing


class FakeEmbeddings:
    """Stands in for `client.embeddings` of the OpenAI SDK."""

    def __init__(self, vectors: Optional[dict[str, list[float]]] = None, failures=None):
        self.vectors = vectors or {}
        # Exceptions to raise on successive calls; None means succeed
        self.failures = list(failures or [])
        self.calls: list[list[str]] = []

    def create(self, model: str, input: list[str]):
        self.calls.append(list(input))
        if self.failures:
            failure = self.failures.pop(0)
            if failure is not None:
                raise failure
        return SimpleNamespace(
            data=[
                SimpleNamespace(index=i, embedding=self.vectors.get(text, [1.0, float(len(text)), 0.5]))
                for i, text in enumerate(input)
            ]
        )


@pytest.fixture
def fake_embeddings():
    return FakeEmbeddings
