"""
Tests for the Hedera Mirror Node adapter: id normalisation, hash fallback, error mapping and lookups.
"""

from __future__ import annotations

import httpx
import pytest

from txexplainer.chain.hedera import (
    HederaMirrorClient,
    fetch_hedera_transaction,
    normalize_hedera_transaction,
    normalize_transaction_id,
)
from txexplainer.errors import NotFoundError, UpstreamError, UpstreamFetchError

BASE = "https://mirror.test/api/v1"
TX_ID = "0.0.100-1699000000-500000000"
TX_HASH = "a1b2c3d4e5f6"


def test_normalize_transaction_id():
    assert normalize_transaction_id("0.0.100@1699000000.500000000") == TX_ID
    assert normalize_transaction_id(f"  {TX_ID} ") == TX_ID
    assert normalize_transaction_id(TX_HASH) == TX_HASH


def test_normalize_payload(hedera_payload):
    tx = normalize_hedera_transaction(hedera_payload)
    assert tx.transaction_id == TX_ID
    assert tx.name == "CRYPTOTRANSFER"
    assert tx.fee == 84000
    assert tx.timestamp == "1699000000.500000000"
    assert [(t.account, t.amount) for t in tx.transfers] == [("0.0.100", -100000000), ("0.0.200", 100000000)]
    assert tx.raw == hedera_payload


@pytest.mark.asyncio
async def test_direct_lookup_sends_bearer_token(make_http, hedera_payload):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=hedera_payload)

    async with make_http(handler) as http:
        mirror = HederaMirrorClient(http, base_url=BASE, api_key="secret")
        tx = await fetch_hedera_transaction(mirror, "0.0.100@1699000000.500000000")

    assert tx.transaction_id == TX_ID
    assert seen[0].url.path == f"/api/v1/transactions/{TX_ID}"
    assert seen[0].headers["Authorization"] == "Bearer secret"


@pytest.mark.asyncio
async def test_hash_falls_back_to_search(make_http, hedera_payload):
    paths = []

    def handler(request: httpx.Request) -> httpx.Response:
        paths.append(request.url.path)
        if request.url.path == f"/api/v1/transactions/{TX_HASH}":
            return httpx.Response(404, json={"_status": {"messages": [{"message": "Not found"}]}})
        if request.url.path == "/api/v1/transactions":
            assert request.url.params["transactionhash"] == TX_HASH
            return httpx.Response(200, json={"transactions": [{"transaction_id": TX_ID}]})
        return httpx.Response(200, json=hedera_payload)

    async with make_http(handler) as http:
        tx = await fetch_hedera_transaction(HederaMirrorClient(http, base_url=BASE, api_key=""), TX_HASH)

    assert tx.transaction_id == TX_ID
    assert paths == [
        f"/api/v1/transactions/{TX_HASH}",
        "/api/v1/transactions",
        f"/api/v1/transactions/{TX_ID}",
    ]


@pytest.mark.asyncio
async def test_not_found_when_hash_search_is_empty(make_http):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/v1/transactions":
            return httpx.Response(200, json={"transactions": []})
        return httpx.Response(404)

    async with make_http(handler) as http:
        with pytest.raises(NotFoundError):
            await fetch_hedera_transaction(HederaMirrorClient(http, base_url=BASE, api_key=""), TX_HASH)


@pytest.mark.asyncio
async def test_other_status_raises_upstream_error(make_http):
    async with make_http(lambda request: httpx.Response(503)) as http:
        with pytest.raises(UpstreamError) as exc_info:
            await fetch_hedera_transaction(HederaMirrorClient(http, base_url=BASE, api_key=""), TX_ID)
    assert exc_info.value.status_code == 503
    assert isinstance(exc_info.value, UpstreamFetchError)


@pytest.mark.asyncio
async def test_transport_error_is_wrapped(make_http):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with make_http(handler) as http:
        with pytest.raises(UpstreamFetchError, match="connection refused"):
            await fetch_hedera_transaction(HederaMirrorClient(http, base_url=BASE, api_key=""), TX_ID)


@pytest.mark.asyncio
async def test_lookups_return_none_on_failure(make_http):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/v1/accounts/0.0.200":
            return httpx.Response(200, json={"account": "0.0.200", "alias": "treasury"})
        if request.url.path == "/api/v1/tokens/0.0.5":
            return httpx.Response(200, json={"token_id": "0.0.5", "symbol": "SAUCE", "name": "Sauce", "decimals": "6"})
        if request.url.path == "/api/v1/tokens/0.0.6":
            return httpx.Response(200, content=b"<html>")
        return httpx.Response(404)

    async with make_http(handler) as http:
        mirror = HederaMirrorClient(http, base_url=BASE, api_key="")
        assert await mirror.get_account_name("0.0.200") == "treasury"
        assert await mirror.get_account_name("0.0.300") is None
        info = await mirror.get_token_info("0.0.5")
        assert (info.symbol, info.decimals) == ("SAUCE", 6)
        assert await mirror.get_token_info("0.0.6") is None
        assert await mirror.get_token_info("0.0.7") is None
