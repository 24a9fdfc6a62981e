"""
Tests for Pydantic models.
"""
import pytest
from pydantic import ValidationError

from dealrank.models.export import RankingResult
from dealrank.models.listing import Listing, Money
from dealrank.models.preferences import SearchCriteria, UserPreferences
from dealrank.models.scoring import (
    DealScore,
    PreferenceRankedItem,
    SemanticScore,
    SignalStatus,
    SubScoreSet,
)


class TestListingModels:
    """Tests for listing models."""

    def test_money_parses_string_amount(self):
        """Test that string amounts from the API are parsed."""
        assert Money(value="1,299.50", currency="USD").value == 1299.5

    def test_money_rejects_garbage(self):
        """Test that unparseable amounts fail validation."""
        with pytest.raises(ValidationError):
            Money(value="call for price")

    @pytest.mark.parametrize("amount", [-10.0, "-0.01", float("nan"), float("inf"), "nan"])
    def test_money_rejects_negative_and_non_finite(self, amount):
        """Test that negative, NaN and infinite amounts fail validation."""
        with pytest.raises(ValidationError):
            Money(value=amount)

    def test_zero_amount_allowed(self):
        """Test that free items and free shipping are valid amounts."""
        assert Money(value=0).value == 0

    def test_listing_with_negative_price_rejected(self, make_listing):
        """Test that the fault surfaces when the listing is built, not during scoring."""
        with pytest.raises(ValidationError):
            make_listing(price=-10.0)

    def test_listing_is_immutable(self, make_listing):
        """Test that listings cannot be modified after creation."""
        listing = make_listing()

        with pytest.raises(ValidationError):
            listing.title = "Changed"

    def test_listing_requires_seller(self):
        """Test that a listing without seller data is rejected."""
        with pytest.raises(ValidationError):
            Listing(
                item_id="1",
                title="Test",
                price={"value": 10},
                condition="NEW",
            )

    def test_listing_text(self, make_listing):
        """Test combined text with and without description."""
        assert make_listing(title="Phone", description="Blue").text == "Phone Blue"
        assert make_listing(title="Phone", description=None).text == "Phone "

    def test_free_shipping_detection(self, make_listing):
        """Test free shipping requires an option costing exactly 0."""
        assert make_listing(shipping_costs=[5.0, 0.0]).has_free_shipping
        assert not make_listing(shipping_costs=[5.0]).has_free_shipping
        assert not make_listing(shipping_costs=[]).has_free_shipping


class TestPreferenceModels:
    """Tests for preferences and search criteria."""

    def test_blank_keywords_dropped(self):
        """Test that empty keywords do not count toward matching."""
        prefs = UserPreferences(keywords=["phone", " ", "", " case "])
        assert prefs.keywords == ["phone", "case"]

    def test_defaults_are_neutral(self):
        """Test that an empty preference record has no constraints."""
        prefs = UserPreferences()
        assert prefs.max_price is None
        assert prefs.preferred_conditions == []
        assert prefs.minimum_seller_rating is None
        assert prefs.free_shipping_only is False

    def test_seller_rating_bounds(self):
        """Test seller rating must be a percentage."""
        with pytest.raises(ValidationError):
            UserPreferences(minimum_seller_rating=120)

    def test_build_filter(self):
        """Test Browse API filter expression."""
        criteria = SearchCriteria(
            keywords="iphone",
            max_price=500,
            condition="USED",
            free_shipping=True,
            buy_it_now=True,
        )

        assert criteria.build_filter() == (
            "price:[..500],conditions:{USED},"
            "deliveryOptions:{FAST_N_FREE},buyingOptions:{FIXED_PRICE}"
        )

    def test_build_filter_empty(self):
        """Test that no filter is produced without constraints."""
        assert SearchCriteria(keywords="iphone").build_filter() is None


class TestScoringModels:
    """Tests for score models."""

    def test_semantic_score_known(self):
        """Test a known semantic score resolves to its value."""
        score = SemanticScore.known(72.5)
        assert score.is_known
        assert score.resolved() == 72.5

    @pytest.mark.parametrize("score", [SemanticScore.neutral(), SemanticScore.unavailable()])
    def test_semantic_score_missing_resolves_neutral(self, score):
        """Test neutral and unavailable scores both count as 50."""
        assert not score.is_known
        assert score.value is None
        assert score.resolved() == 50.0

    def test_semantic_status_values(self):
        """Test the status enum values."""
        assert SemanticScore.unavailable().status is SignalStatus.UNAVAILABLE

    def test_neutral_deal_score(self):
        """Test the neutral deal fallback."""
        deal = DealScore.neutral()

        assert deal.overall_score == 50
        assert deal.confidence == 0.1
        assert deal.recommendation == "fair"
        assert set(deal.factors.model_dump().values()) == {50}

    def test_deal_confidence_bounds(self):
        """Test confidence below 0.1 is rejected."""
        data = DealScore.neutral().model_dump()
        data["confidence"] = 0.05

        with pytest.raises(ValidationError):
            DealScore.model_validate(data)

    def test_hard_exclusion_flag(self):
        """Test hard exclusion property."""
        scores = SubScoreSet(
            price_score=0,
            condition_score=50,
            seller_score=50,
            shipping_score=50,
            keyword_score=50,
            composite=37.5,
            hard_exclusions=["over_budget"],
        )
        assert scores.is_hard_excluded


class TestRankingResult:
    """Tests for the result export."""

    def test_minimal_export(self, make_listing):
        """Test the compact export of results."""
        listing = make_listing(item_id="abc", price=42)
        subs = SubScoreSet(
            price_score=50,
            condition_score=50,
            seller_score=50,
            shipping_score=50,
            keyword_score=50,
            composite=50,
        )
        result = RankingResult(
            items=[PreferenceRankedItem(rank=1, listing=listing, sub_scores=subs, explanation="x")],
            total=1,
            original_total=3,
            message="Found 1 relevant items out of 3 total results",
        )

        export = result.to_minimal_export()

        assert export["total"] == 1
        assert export["results"][0]["item_id"] == "abc"
        assert export["results"][0]["price"] == 42
        assert export["results"][0]["score"] == 50
