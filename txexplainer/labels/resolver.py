"""Account and token name resolution for explanations."""

from __future__ import annotations

import asyncio
import logging
import threading
from collections import OrderedDict
from typing import Awaitable, Callable

from txexplainer.config import get_settings
from txexplainer.models.schema import TokenInfo

logger = logging.getLogger(__name__)

Lookup = Callable[[str], Awaitable["str | None"]]


class NameCache:
    """Thread-safe LRU of address -> name. Only successful lookups are stored."""

    def __init__(self, max_size: int) -> None:
        self._max = max_size
        self._store: OrderedDict[str, str] = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: str) -> str | None:
        with self._lock:
            value = self._store.get(key)
            if value is not None:
                self._store.move_to_end(key)
            return value

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._store[key] = value
            self._store.move_to_end(key)
            while len(self._store) > self._max:
                self._store.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._store


_sui_name_cache: NameCache | None = None


def get_sui_name_cache() -> NameCache:
    """Process-wide cache shared by every Sui request."""
    global _sui_name_cache
    if _sui_name_cache is None:
        _sui_name_cache = NameCache(get_settings().name_cache_size)
    return _sui_name_cache


async def _safe_lookup(lookup: Lookup, key: str) -> str | None:
    try:
        return await lookup(key)
    except Exception as e:
        logger.debug(f"Name lookup failed for {key}: {e}")
        return None


class SuiNameResolver:
    """Resolves Sui addresses through the process-wide cache, then the upstream lookup."""

    def __init__(self, lookup: Lookup, cache: NameCache | None = None, limit: int | None = None):
        self.lookup = lookup
        self.cache = cache if cache is not None else get_sui_name_cache()
        self.limit = limit if limit is not None else get_settings().receiver_lookup_limit

    async def resolve_one(self, address: str) -> str | None:
        if not address:
            return None
        cached = self.cache.get(address)
        if cached is not None:
            return cached
        name = await _safe_lookup(self.lookup, address)
        if name:
            self.cache.set(address, name)
        return name

    async def resolve(self, sender: str, receivers: list[str]) -> dict[str, str]:
        """Sender first, then up to `limit` distinct receivers in parallel."""
        names: dict[str, str] = {}
        sender_name = await self.resolve_one(sender)
        if sender_name:
            names[sender] = sender_name

        pending = [a for a in dict.fromkeys(receivers) if a and a != sender][: self.limit]
        results = await asyncio.gather(*(self.resolve_one(a) for a in pending))
        for address, name in zip(pending, results):
            if name:
                names[address] = name
        logger.debug(f"Resolved {len(names)} Sui account names")
        return names


class HederaNameResolver:
    """One lookup per unique account id per request; no cross-request cache."""

    def __init__(self, lookup: Lookup):
        self.lookup = lookup

    async def resolve(self, accounts: list[str]) -> dict[str, str]:
        unique = [a for a in dict.fromkeys(accounts) if a]
        results = await asyncio.gather(*(_safe_lookup(self.lookup, a) for a in unique))
        return {account: name for account, name in zip(unique, results) if name}


class HederaTokenResolver:
    """Token metadata for every unique token id, fetched concurrently."""

    def __init__(self, lookup: Callable[[str], Awaitable[TokenInfo | None]]):
        self.lookup = lookup

    async def _fetch(self, token_id: str) -> TokenInfo | None:
        try:
            return await self.lookup(token_id)
        except Exception as e:
            logger.debug(f"Token lookup failed for {token_id}: {e}")
            return None

    async def resolve(self, token_ids: list[str]) -> dict[str, TokenInfo]:
        unique = [t for t in dict.fromkeys(token_ids) if t and t != "UNKNOWN"]
        results = await asyncio.gather(*(self._fetch(t) for t in unique))
        return {token_id: info for token_id, info in zip(unique, results) if info is not None}
