"""Sui transaction adapter: Blockberry primary, full-node JSON-RPC fallback."""

from __future__ import annotations

import logging

import httpx

from txexplainer.config import get_settings
from txexplainer.errors import UpstreamFetchError
from txexplainer.explain.formatting import to_int, to_number
from txexplainer.models.schema import (
    MoveCallInfo,
    SuiBalanceChange,
    SuiGas,
    SuiObjectChange,
    SuiTransaction,
)

logger = logging.getLogger(__name__)

RPC_OPTIONS = {
    "showInput": True,
    "showEffects": True,
    "showEvents": True,
    "showObjectChanges": True,
    "showBalanceChanges": True,
}


class BlockberryClient:
    """Blockberry Sui API: raw transactions and account labels."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        base_url: str | None = None,
        api_key: str | None = None,
    ):
        settings = get_settings()
        self.http = http
        self.base_url = (base_url or settings.blockberry_url).rstrip("/")
        key = settings.blockberry_api_key if api_key is None else api_key
        self.headers = {"Accept": "application/json"}
        if key:
            self.headers["X-API-Key"] = key

    async def get_raw_transaction(self, digest: str) -> dict:
        """Raises on transport errors, non-2xx statuses and malformed bodies."""
        resp = await self.http.get(f"{self.base_url}/raw-transactions/{digest}", headers=self.headers)
        if resp.status_code != 200:
            raise UpstreamFetchError(f"API returned {resp.status_code}: {resp.reason_phrase}")
        data = resp.json()
        if not isinstance(data, dict):
            raise UpstreamFetchError("API returned an unexpected payload")
        # Blockberry wraps the RPC shape as {id, jsonrpc, result: {...}}
        if isinstance(data.get("result"), dict):
            return data["result"]
        return data

    async def get_account_name(self, address: str) -> str | None:
        """Account label, or None. Never raises."""
        try:
            resp = await self.http.get(f"{self.base_url}/accounts/{address}", headers=self.headers)
            if resp.status_code != 200:
                return None
            return resp.json().get("accountName") or None
        except (httpx.HTTPError, ValueError, AttributeError) as e:
            logger.debug(f"Account lookup failed for {address}: {e}")
            return None


class SuiRpcClient:
    """Direct full-node JSON-RPC, used only when Blockberry fails."""

    def __init__(self, http: httpx.AsyncClient, rpc_url: str | None = None):
        self.http = http
        self.rpc_url = rpc_url or get_settings().sui_rpc_url

    async def get_transaction_block(self, digest: str) -> dict:
        payload = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": "sui_getTransactionBlock",
            "params": [digest, RPC_OPTIONS],
        }
        resp = await self.http.post(self.rpc_url, json=payload)
        resp.raise_for_status()
        data = resp.json()
        if not isinstance(data, dict):
            raise UpstreamFetchError("Sui RPC returned an unexpected response body")
        if data.get("error"):
            raise UpstreamFetchError(f"Sui RPC error: {data['error']}")
        result = data.get("result")
        if not isinstance(result, dict):
            raise UpstreamFetchError("Sui RPC returned no result")
        return result


def resolve_recipient(change: dict) -> str | None:
    """First non-null of recipient/owner x AddressOwner/ObjectOwner."""
    for field in ("recipient", "owner"):
        owner = change.get(field)
        if not isinstance(owner, dict):
            continue
        for kind in ("AddressOwner", "ObjectOwner"):
            if owner.get(kind):
                return owner[kind]
    return None


def _balance_owner(owner) -> tuple[str | None, bool]:
    if not isinstance(owner, dict):
        return None, False
    if "Shared" in owner:
        return None, True
    return owner.get("AddressOwner") or owner.get("ObjectOwner"), False


def _move_calls(raw: dict) -> list[MoveCallInfo]:
    tx_block = raw.get("transaction") or {}
    data = tx_block.get("data") or {}
    programmable = data.get("transaction") or tx_block
    calls = []
    for command in programmable.get("transactions") or []:
        call = command.get("MoveCall") if isinstance(command, dict) else None
        if not call:
            continue
        calls.append(MoveCallInfo(
            package=call.get("package", ""),
            module=call.get("module", ""),
            function=call.get("function", ""),
            arguments=call.get("arguments") or [],
        ))
    return calls


def _gas(effects: dict) -> SuiGas:
    used = effects.get("gasUsed") or {}
    total = used.get("totalCost")
    return SuiGas(
        computation_cost=to_int(used.get("computationCost", 0)),
        storage_cost=to_int(used.get("storageCost", 0)),
        storage_rebate=to_int(used.get("storageRebate", 0)),
        non_refundable_storage_fee=to_int(used.get("nonRefundableStorageFee", 0)),
        gas_price=to_int(used.get("gasPrice", 0) or (effects.get("gasData") or {}).get("price", 0)),
        total_cost=to_int(total) if total not in (None, "") else None,
    )


def normalize_sui_transaction(raw: dict) -> SuiTransaction:
    """Map a Blockberry or RPC transaction block to the canonical Sui shape."""
    effects = raw.get("effects") or raw.get("effect") or {}
    tx_block = raw.get("transaction") or {}
    sender = (tx_block.get("data") or {}).get("sender") or tx_block.get("sender") or raw.get("sender") or ""

    object_changes = []
    for change in raw.get("objectChanges") or []:
        amount = change.get("amount")
        object_changes.append(SuiObjectChange(
            type=change.get("type", ""),
            object_id=change.get("objectId", ""),
            object_type=change.get("objectType", ""),
            sender=change.get("sender"),
            recipient=resolve_recipient(change),
            amount=to_number(amount) if amount not in (None, "") else None,
        ))

    balance_changes = []
    for change in raw.get("balanceChanges") or []:
        owner, shared = _balance_owner(change.get("owner"))
        balance_changes.append(SuiBalanceChange(
            owner=owner,
            shared=shared,
            coin_type=change.get("coinType") or "0x2::sui::SUI",
            amount=to_int(change.get("amount", 0)),
        ))

    timestamp_ms = raw.get("timestampMs") or effects.get("timestampMs")
    status = effects.get("status") or {}
    return SuiTransaction(
        digest=raw.get("digest", ""),
        sender=sender,
        status=status.get("status", "") if isinstance(status, dict) else str(status),
        gas=_gas(effects),
        object_changes=object_changes,
        balance_changes=balance_changes,
        move_calls=_move_calls(raw),
        timestamp_ms=to_int(timestamp_ms) if str(timestamp_ms or "").isdigit() else None,
        timestamp=raw.get("timestamp") if isinstance(raw.get("timestamp"), str) else None,
        raw=raw,
    )


async def fetch_sui_transaction(
    primary: BlockberryClient,
    fallback: SuiRpcClient,
    digest: str,
) -> SuiTransaction:
    """Blockberry first; the full node is tried only after Blockberry has failed outright."""
    try:
        raw = await primary.get_raw_transaction(digest)
    except (httpx.HTTPError, ValueError, UpstreamFetchError) as primary_error:
        logger.warning(f"Blockberry API failed, falling back to Sui RPC: {primary_error}")
        try:
            raw = await fallback.get_transaction_block(digest)
        except (httpx.HTTPError, ValueError, UpstreamFetchError) as fallback_error:
            logger.error(f"Sui RPC fallback failed for {digest}: {fallback_error}")
            raise UpstreamFetchError(f"Failed to fetch transaction: {primary_error}") from fallback_error
    return normalize_sui_transaction(raw)
