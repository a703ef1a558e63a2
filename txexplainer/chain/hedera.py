"""Hedera Mirror Node client and transaction adapter."""

from __future__ import annotations

import logging

import httpx

from txexplainer.config import get_settings
from txexplainer.errors import NotFoundError, UpstreamError, UpstreamFetchError
from txexplainer.explain.formatting import to_int
from txexplainer.models.schema import HederaTokenTransfer, HederaTransaction, HederaTransfer, TokenInfo

logger = logging.getLogger(__name__)


def normalize_transaction_id(digest: str) -> str:
    """Mirror-node form of a transaction id.

    '0.0.123@1700000000.123456789' -> '0.0.123-1700000000-123456789'. Hashes and ids
    already in dashed form pass through unchanged.
    """
    digest = digest.strip()
    if "@" in digest:
        account, _, valid_start = digest.partition("@")
        return f"{account}-{valid_start.replace('.', '-')}"
    return digest


class HederaMirrorClient:
    """Thin async wrapper over the Mirror Node REST endpoints used by the explainer."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        base_url: str | None = None,
        api_key: str | None = None,
    ):
        settings = get_settings()
        self.http = http
        self.base_url = (base_url or settings.hedera_mirror_url).rstrip("/")
        self.headers = {"Accept": "application/json"}
        key = settings.hedera_api_key if api_key is None else api_key
        if key:
            self.headers["Authorization"] = f"Bearer {key}"

    async def _get(self, path: str, params: dict | None = None) -> httpx.Response:
        return await self.http.get(f"{self.base_url}{path}", params=params, headers=self.headers)

    async def get_transaction(self, transaction_id: str) -> httpx.Response:
        return await self._get(f"/transactions/{transaction_id}")

    async def find_transaction_id_by_hash(self, tx_hash: str) -> str | None:
        """Resolve a transaction hash to its transaction id via the search endpoint."""
        try:
            resp = await self._get("/transactions", params={"transactionhash": tx_hash})
        except httpx.HTTPError as e:
            logger.warning(f"Hash search failed for {tx_hash}: {e}")
            return None
        if resp.status_code != 200:
            return None
        try:
            transactions = resp.json().get("transactions") or []
        except ValueError:
            return None
        if transactions and transactions[0].get("transaction_id"):
            return transactions[0]["transaction_id"]
        return None

    async def get_account_name(self, account_id: str) -> str | None:
        """Account alias, or None. Never raises."""
        try:
            resp = await self._get(f"/accounts/{account_id}")
            if resp.status_code != 200:
                return None
            return resp.json().get("alias") or None
        except (httpx.HTTPError, ValueError, AttributeError) as e:
            logger.debug(f"Account lookup failed for {account_id}: {e}")
            return None

    async def get_token_info(self, token_id: str) -> TokenInfo | None:
        """Symbol, name and decimals of a token, or None. Never raises."""
        try:
            resp = await self._get(f"/tokens/{token_id}")
            if resp.status_code != 200:
                return None
            data = resp.json()
            decimals = data.get("decimals")
            return TokenInfo(
                token_id=token_id,
                symbol=data.get("symbol") or None,
                name=data.get("name") or None,
                decimals=int(decimals) if decimals not in (None, "") else None,
            )
        except (httpx.HTTPError, ValueError, AttributeError, TypeError) as e:
            logger.debug(f"Token lookup failed for {token_id}: {e}")
            return None


def normalize_hedera_transaction(data: dict) -> HederaTransaction:
    """Map a Mirror Node payload (single object or {transactions: [...]}) to the canonical shape."""
    tx = data
    if isinstance(data.get("transactions"), list) and data["transactions"]:
        tx = data["transactions"][0]

    transfers = [
        HederaTransfer(account=t["account"], amount=to_int(t.get("amount", 0)))
        for t in tx.get("transfers") or []
        if t.get("account")
    ]
    token_transfers = [
        HederaTokenTransfer(
            token_id=t.get("token_id") or "UNKNOWN",
            account=t["account"],
            amount=to_int(t.get("amount", 0)),
            decimals=to_int(t["decimals"]) if t.get("decimals") not in (None, "") else None,
        )
        for t in tx.get("token_transfers") or []
        if t.get("account")
    ]
    return HederaTransaction(
        transaction_id=tx.get("transaction_id") or "",
        transaction_hash=tx.get("transaction_hash") or "",
        name=tx.get("name") or tx.get("transaction_type") or "TRANSACTION",
        result=tx.get("result") or tx.get("status") or "",
        fee=to_int(tx.get("charged_tx_fee") or tx.get("transaction_fee") or 0),
        timestamp=tx.get("consensus_timestamp"),
        transfers=transfers,
        token_transfers=token_transfers,
        raw=data,
    )


async def fetch_hedera_transaction(mirror: HederaMirrorClient, digest: str) -> HederaTransaction:
    """Direct lookup by id; on 404, resolve the digest as a hash and look up the resolved id once."""
    transaction_id = normalize_transaction_id(digest)
    try:
        resp = await mirror.get_transaction(transaction_id)
        if resp.status_code == 404:
            resolved = await mirror.find_transaction_id_by_hash(digest.strip())
            if not resolved:
                raise NotFoundError(f"Hedera transaction {digest} not found")
            logger.info(f"Resolved hash {digest} to transaction id {resolved}")
            resp = await mirror.get_transaction(normalize_transaction_id(resolved))
            if resp.status_code == 404:
                raise NotFoundError(f"Hedera transaction {resolved} not found")
    except httpx.HTTPError as e:
        raise UpstreamFetchError(f"Hedera API request failed: {e}") from e

    if resp.status_code != 200:
        raise UpstreamError(
            f"Hedera API returned {resp.status_code}: {resp.reason_phrase}",
            status_code=resp.status_code,
        )
    try:
        data = resp.json()
    except ValueError as e:
        raise UpstreamFetchError(f"Hedera API returned a malformed body: {e}") from e
    if not isinstance(data, dict):
        raise UpstreamFetchError("Hedera API returned an unexpected payload")
    return normalize_hedera_transaction(data)
