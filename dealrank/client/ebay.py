"""
eBay Browse API client with token caching, retry logic and normalization.
"""
import logging
import time
from typing import Any, Optional

import requests
from pydantic import ValidationError
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception,
)

from ..config import EbayConfig
from ..models.listing import Listing
from ..models.preferences import SearchCriteria


logger = logging.getLogger(__name__)

OAUTH_SCOPE = "https://api.ebay.com/oauth/api_scope"


def _is_transient(error: BaseException) -> bool:
    """Connection problems, timeouts, 429 and 5xx responses are worth retrying."""
    if isinstance(error, requests.HTTPError):
        status = getattr(error.response, "status_code", None)
        return status is not None and (status == 429 or status >= 500)
    return isinstance(error, (requests.ConnectionError, requests.Timeout, ConnectionError))


class EbayClientError(Exception):
    """Base error for the listing source."""


class EbayAuthError(EbayClientError):
    """Could not obtain an OAuth access token."""


class EbayAPIError(EbayClientError):
    """A Browse API request failed."""


class EbayClient:
    """
    Wrapper around the eBay Browse API.
    Returns Listing models instead of raw dicts.
    """

    def __init__(self, config: EbayConfig, session: Optional[requests.Session] = None):
        self.config = config
        self.session = session or requests.Session()
        self._access_token: Optional[str] = None
        self._token_expiry: float = 0.0
        logger.info(f"EbayClient initialized for {config.base_url} ({config.marketplace_id})")

    def _get_access_token(self) -> str:
        """Get an application token, reusing it until 90% of its lifetime has passed."""
        if self._access_token and time.monotonic() < self._token_expiry:
            return self._access_token

        try:
            response = self.session.post(
                f"{self.config.base_url}/identity/v1/oauth2/token",
                auth=(self.config.client_id, self.config.client_secret),
                data={"grant_type": "client_credentials", "scope": OAUTH_SCOPE},
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                timeout=self.config.timeout_seconds,
            )
            response.raise_for_status()
            payload = response.json()
            token = payload["access_token"]
            expires_in = float(payload.get("expires_in", 7200))
        except (requests.RequestException, KeyError, ValueError) as e:
            logger.error(f"Error getting eBay access token: {e}")
            raise EbayAuthError("Failed to authenticate with eBay API") from e

        self._access_token = token
        self._token_expiry = time.monotonic() + expires_in * 0.9
        return token

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._get_access_token()}",
            "X-EBAY-C-MARKETPLACE-ID": self.config.marketplace_id,
            "Accept": "application/json",
        }

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception(_is_transient),
        before_sleep=lambda retry_state: logger.warning(
            f"Retry attempt {retry_state.attempt_number}"
        ),
        reraise=True,
    )
    def _get(self, path: str, params: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        """GET a Browse API path and return the decoded JSON body."""
        response = self.session.get(
            f"{self.config.base_url}{path}",
            params=params,
            headers=self._headers(),
            timeout=self.config.timeout_seconds,
        )
        response.raise_for_status()
        return response.json()

    def search_items(self, criteria: SearchCriteria, limit: int = 50) -> list[Listing]:
        """
        Search eBay and return normalized listings.

        Args:
            criteria: Keywords and coarse server-side filters
            limit: Maximum listings to return

        Returns:
            List of Listing objects

        Raises:
            EbayAuthError: If no access token could be obtained
            EbayAPIError: If the search request failed
        """
        logger.info(f"Searching eBay for: {criteria.keywords}")

        params: dict[str, Any] = {"q": criteria.keywords, "limit": str(limit)}
        if criteria.category_id:
            params["category_ids"] = criteria.category_id

        filter_expression = criteria.build_filter()
        if filter_expression:
            params["filter"] = filter_expression

        if criteria.sort_order:
            params["sort"] = criteria.sort_order

        try:
            result = self._get("/buy/browse/v1/item_summary/search", params=params)
        except requests.RequestException as e:
            logger.error(f"Error searching eBay items: {e}")
            raise EbayAPIError("Failed to search eBay items") from e

        listings = []
        for raw in result.get("itemSummaries") or []:
            listing = self.normalize_item(raw)
            if listing:
                listings.append(listing)

        logger.info(f"Search completed: {len(listings)} listings")
        return listings

    def get_item_details(self, item_id: str) -> Optional[Listing]:
        """Fetch a single item by id; None if it cannot be fetched or parsed."""
        try:
            raw = self._get(f"/buy/browse/v1/item/{item_id}")
        except (requests.RequestException, EbayAuthError) as e:
            logger.error(f"Error getting eBay item details for {item_id}: {e}")
            return None
        return self.normalize_item(raw)

    @staticmethod
    def normalize_item(raw: dict[str, Any]) -> Optional[Listing]:
        """Normalize a Browse API item summary to a Listing, or None if malformed."""
        if not isinstance(raw, dict):
            logger.warning(f"Skipping listing that is not an object: {raw!r}")
            return None

        try:
            seller = raw.get("seller") or {}
            shipping = []
            for option in raw.get("shippingOptions") or []:
                cost = option.get("shippingCost")
                if cost is None:
                    continue
                shipping.append({
                    "cost": cost,
                    "type": option.get("shippingCostType") or option.get("type"),
                })

            location = raw.get("itemLocation") or raw.get("location")

            return Listing(
                item_id=raw.get("itemId") or "",
                title=raw.get("title") or "",
                description=raw.get("shortDescription") or raw.get("description"),
                price=raw.get("price"),
                condition=raw.get("condition") or "",
                seller={
                    "username": seller.get("username") or "",
                    "feedback_percentage": seller.get("feedbackPercentage") or 0,
                    "feedback_score": seller.get("feedbackScore") or 0,
                },
                shipping_options=shipping,
                location={"country": location.get("country")} if location else None,
                item_web_url=raw.get("itemWebUrl"),
                image_url=(raw.get("image") or {}).get("imageUrl"),
            )
        except (ValidationError, AttributeError, TypeError) as e:
            logger.warning(f"Failed to normalize listing {raw.get('itemId')}: {e}")
            return None
