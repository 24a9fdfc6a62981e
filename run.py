#!/usr/bin/env python
"""
Run script for dealrank.
Use: python run.py "iphone 13" --max-price 400 --keywords unlocked,128gb
Or:  python run.py "iphone 13" --listings saved_items.json --no-ai
"""
import argparse
import json
import sys

from dealrank.client import EbayClient, EbayClientError
from dealrank.config import configure_logging, get_config
from dealrank.models.preferences import SearchCriteria, UserPreferences
from dealrank.pipeline import build_engine, rank_listings, search_and_rank


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Rank eBay listings against your preferences")
    parser.add_argument("keywords", help="Search keywords, also used as the semantic query")
    parser.add_argument("--listings", help="JSON file of Browse API item summaries instead of a live search")
    parser.add_argument("--category", help="Market category for deal scoring")
    parser.add_argument("--max-price", type=float)
    parser.add_argument("--conditions", default="", help="Comma-separated preferred conditions")
    parser.add_argument("--min-seller-rating", type=float)
    parser.add_argument("--free-shipping", action="store_true")
    parser.add_argument("--keywords-pref", dest="keyword_prefs", default="",
                        help="Comma-separated keywords that should appear in listings")
    parser.add_argument("--no-ai", action="store_true", help="Rank on preferences only")
    parser.add_argument("--top", type=int, default=10, help="Results to print")
    return parser.parse_args(argv)


def main(argv=None):
    """Search or load listings, rank them and print the top results."""
    args = parse_args(argv)
    config = get_config()
    configure_logging(config.log_level)

    preferences = UserPreferences(
        max_price=args.max_price,
        preferred_conditions=args.conditions.split(","),
        minimum_seller_rating=args.min_seller_rating,
        free_shipping_only=args.free_shipping,
        keywords=args.keyword_prefs.split(","),
    )
    use_ai = config.enable_ai_ranking and not args.no_ai
    engine = build_engine(config)

    try:
        if args.listings:
            with open(args.listings, "r") as f:
                raw_items = json.load(f)
            listings = [
                listing for listing in map(EbayClient.normalize_item, raw_items) if listing
            ]
            result = rank_listings(
                listings,
                preferences,
                query=args.keywords,
                use_ai_ranking=use_ai,
                engine=engine,
                category=args.category,
                max_results=config.ranking.max_results,
            )
        else:
            criteria = SearchCriteria(
                keywords=args.keywords,
                max_price=args.max_price,
                free_shipping=args.free_shipping,
            )
            result = search_and_rank(
                EbayClient(config.ebay),
                criteria,
                preferences,
                use_ai_ranking=use_ai,
                engine=engine,
                config=config,
                category=args.category,
            )
    except (EbayClientError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(result.message)
    for item in result.items[: args.top]:
        print(f"{item.rank:>3}. [{item.final_score:6.2f}] {item.listing.title} "
              f"({item.listing.price.value:g} {item.listing.price.currency})")
        if use_ai:
            if item.explanation.semantic_reason:
                print(f"       {item.explanation.semantic_reason}")
            print(f"       {item.explanation.deal_reason}")
            print(f"       {item.explanation.overall_reason}")
        else:
            print(f"       {item.explanation}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
