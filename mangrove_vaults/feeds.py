"""Chainlink feed discovery from the public reference data directory."""

import string
import sys

import requests

from mangrove_vaults.constants import DEFAULT_TIMEOUT
from mangrove_vaults.errors import FeedsError
from mangrove_vaults.formatters import is_zero_address
from mangrove_vaults.models import FeedMetadata

EXACT_PAIR_SCORE = 1000
ADDRESS_SCORE = 500
FULL_TERM_SCORE = 100
PARTIAL_TERM_SCORE = 10


def _valid_address(value) -> bool:
    if not isinstance(value, str) or len(value) != 42 or not value.startswith("0x"):
        return False
    return all(c in string.hexdigits for c in value[2:]) and not is_zero_address(value)


def parse_feed(raw: dict) -> FeedMetadata | None:
    """
    Keep crypto feeds with a usable proxy, a two-token pair and positive decimals.

    Returns: the feed, or None when the entry is filtered out.
    """
    if raw.get("feedType") != "Crypto":
        return None
    contract = raw.get("contractAddress")
    proxy = raw.get("proxyAddress")
    pair = raw.get("pair") or []
    if not isinstance(contract, str) or is_zero_address(contract) or not _valid_address(proxy):
        return None
    if len(pair) != 2:
        return None
    try:
        decimals = int(raw.get("decimals", 0))
    except (TypeError, ValueError):
        return None
    if decimals <= 0:
        return None
    docs = raw.get("docs") or {}
    return FeedMetadata(
        contract_address=contract,
        proxy_address=proxy,
        pair=(str(pair[0]), str(pair[1])),
        decimals=decimals,
        name=str(raw.get("name") or "/".join(pair)),
        hidden=bool(docs.get("hidden", False)),
    )


def get_feeds(url: str, *, session: requests.Session | None = None, timeout: int = DEFAULT_TIMEOUT) -> list[FeedMetadata]:
    """Fetch and filter the feed list published at `url`."""
    print(f"ℹ️  Getting feeds from {url}", file=sys.stderr)
    http = session or requests
    try:
        resp = http.get(url, timeout=timeout)
        resp.raise_for_status()
        payload = resp.json()
    except (requests.RequestException, ValueError) as exc:
        raise FeedsError(f"Failed to fetch feeds from {url}: {exc}") from exc
    if not isinstance(payload, list):
        raise FeedsError(f"Unexpected feed list format from {url}")
    feeds = [f for f in (parse_feed(raw) for raw in payload if isinstance(raw, dict)) if f is not None]
    print(f"✅ Got {len(feeds)} feeds", file=sys.stderr)
    return feeds


def _looks_like_address(term: str) -> bool:
    if term.startswith("0x"):
        return True
    return len(term) >= 6 and all(c in string.hexdigits for c in term)


def score_feed(feed: FeedMetadata, search: str) -> int:
    """
    Relevance of `feed` for a free-text search.

    An exact "BASE/QUOTE" pair wins, then an address fragment, then tokens matching
    a whole pair symbol, then tokens that are only part of one.
    """
    search = search.strip().lower()
    if not search:
        return 0
    pair = [p.lower() for p in feed.pair]
    if "/".join(pair) == search:
        return EXACT_PAIR_SCORE
    if _looks_like_address(search):
        if search in feed.contract_address.lower() or search in feed.proxy_address.lower():
            return ADDRESS_SCORE
    terms = [t for chunk in search.split(" ") for t in chunk.split("/") if t]
    if any(t in pair for t in terms):
        return FULL_TERM_SCORE
    if any(t in p for t in terms for p in pair):
        return PARTIAL_TERM_SCORE
    return 0


def search_feeds(
    feeds: list[FeedMetadata], search: str, *, include_hidden: bool = False, limit: int | None = None
) -> list[FeedMetadata]:
    """Feeds with a positive score, best first (stable for equal scores)."""
    scored = [
        (score_feed(f, search), i, f) for i, f in enumerate(feeds) if include_hidden or not f.hidden
    ]
    ranked = [f for score, _, f in sorted(scored, key=lambda t: (-t[0], t[1])) if score > 0]
    return ranked if limit is None else ranked[:limit]
