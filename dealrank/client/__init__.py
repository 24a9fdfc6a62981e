"""Listing source clients."""

from .ebay import EbayAPIError, EbayAuthError, EbayClient, EbayClientError

__all__ = ["EbayAPIError", "EbayAuthError", "EbayClient", "EbayClientError"]
