"""Per-chain transaction sources: fetch a canonical transaction, then explain it."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any

import httpx

from txexplainer.chain.hedera import HederaMirrorClient, fetch_hedera_transaction
from txexplainer.chain.registry import ChainConfig, resolve_chain
from txexplainer.chain.sui import BlockberryClient, SuiRpcClient, fetch_sui_transaction
from txexplainer.explain.hedera import explain_hedera_transaction
from txexplainer.explain.sui import explain_sui_transaction, receiver_addresses
from txexplainer.labels.resolver import HederaNameResolver, HederaTokenResolver, SuiNameResolver
from txexplainer.models.schema import Explanation, HederaTransaction, SuiTransaction

logger = logging.getLogger(__name__)


class TransactionSource(ABC):
    """One variant per chain family; the pipeline picks one and never branches on chain again."""

    chain: ChainConfig

    @abstractmethod
    async def fetch(self, digest: str) -> Any:
        """Fetch and normalize the transaction identified by `digest`."""

    @abstractmethod
    async def explain(self, tx: Any) -> Explanation:
        """Resolve names for `tx` and run the explanation engine."""


class HederaSource(TransactionSource):
    def __init__(self, http: httpx.AsyncClient, mirror: HederaMirrorClient | None = None):
        self.chain = resolve_chain("hedera")
        self.mirror = mirror or HederaMirrorClient(http)

    async def fetch(self, digest: str) -> HederaTransaction:
        return await fetch_hedera_transaction(self.mirror, digest)

    async def explain(self, tx: HederaTransaction) -> Explanation:
        accounts = [t.account for t in [*tx.transfers, *tx.token_transfers]]
        token_ids = [t.token_id for t in tx.token_transfers]
        names, tokens = await asyncio.gather(
            HederaNameResolver(self.mirror.get_account_name).resolve(accounts),
            HederaTokenResolver(self.mirror.get_token_info).resolve(token_ids),
        )
        logger.info(f"Hedera {tx.transaction_id}: {len(names)} account names, {len(tokens)} tokens resolved")
        return explain_hedera_transaction(tx, names, tokens)


class SuiSource(TransactionSource):
    def __init__(
        self,
        http: httpx.AsyncClient,
        blockberry: BlockberryClient | None = None,
        rpc: SuiRpcClient | None = None,
        resolver: SuiNameResolver | None = None,
    ):
        self.chain = resolve_chain("sui")
        self.blockberry = blockberry or BlockberryClient(http)
        self.rpc = rpc or SuiRpcClient(http)
        self.resolver = resolver or SuiNameResolver(self.blockberry.get_account_name)

    async def fetch(self, digest: str) -> SuiTransaction:
        return await fetch_sui_transaction(self.blockberry, self.rpc, digest)

    async def explain(self, tx: SuiTransaction) -> Explanation:
        names = await self.resolver.resolve(tx.sender, receiver_addresses(tx))
        logger.info(f"Sui {tx.digest}: {len(names)} account names resolved")
        return explain_sui_transaction(tx, names)


SOURCES: dict[str, type[TransactionSource]] = {
    "hedera": HederaSource,
    "sui": SuiSource,
}


def get_source(blockchain: str, http: httpx.AsyncClient) -> TransactionSource:
    """Raises ValueError for chains without a source."""
    chain = resolve_chain(blockchain)
    return SOURCES[chain.name](http)
