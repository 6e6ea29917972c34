# league_board/services/cache_aside.py
"""
Cache-aside reads shared by the services.

Cached values are JSON-compatible payloads (so they fit the durable tier);
encode/decode convert between those payloads and domain models.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, TypeVar

from ..cache import CacheCategory, TieredCache
from ..errors import UpstreamError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def read_through(
    cache: TieredCache,
    key: str,
    category: CacheCategory,
    compute: Callable[[], T],
    encode: Callable[[T], Any],
    decode: Callable[[Any], T],
    refresh: bool = False,
) -> T:
    """
    Serve key from cache or compute, store and return it.

    refresh=True skips the cached copy and recomputes. If the upstream then
    fails while an unexpired cached copy exists, that copy is served instead
    of the error. Failures and partial results are never written. A compute
    that yields nothing drops whatever copy was cached under key.
    """
    cached = cache.get(key)
    if cached is not None and not refresh:
        return decode(cached)

    try:
        value = compute()
    except UpstreamError:
        if cached is not None:
            logger.warning("upstream failed while refreshing %s; serving cached copy", key)
            return decode(cached)
        raise

    payload = encode(value)
    if payload is None:
        cache.invalidate(key)
    else:
        cache.set(key, payload, category=category)
    return value
