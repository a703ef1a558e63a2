"""
Pytest fixtures for txexplainer tests. Upstream APIs are replaced with httpx.MockTransport handlers.
"""

from __future__ import annotations

import httpx
import pytest

SENDER = "0x" + "a" * 64
RECEIVER = "0x" + "b" * 64
POOL = "0x" + "c" * 64
SUI = "0x2::sui::SUI"
USDC = "0x5d4b302506645c37ff133b98c4b50a5ae14841659738d6d733d59d0d217a93bf::coin::COIN"


@pytest.fixture(autouse=True)
def clean_state(monkeypatch):
    """Fresh settings, no AI key and empty process-wide caches for every test."""
    from txexplainer.ai import client as ai_client
    from txexplainer.config import get_settings
    from txexplainer.labels import resolver

    monkeypatch.setenv("ANTHROPIC_API_KEY", "")
    monkeypatch.setenv("HEDERA_API_KEY", "")
    monkeypatch.setenv("BLOCKBERRY_API_KEY", "")
    get_settings.cache_clear()
    resolver._sui_name_cache = None
    ai_client.clear_model_cache()
    yield
    get_settings.cache_clear()
    resolver._sui_name_cache = None
    ai_client.clear_model_cache()


@pytest.fixture
def hedera_payload():
    """Mirror node /transactions/{id} response for a 1 HBAR transfer."""
    return {
        "transactions": [
            {
                "transaction_id": "0.0.100-1699000000-500000000",
                "transaction_hash": "q3Lxg0bIhX3Mc0xWv4YxOg==",
                "name": "CRYPTOTRANSFER",
                "result": "SUCCESS",
                "charged_tx_fee": 84000,
                "consensus_timestamp": "1699000000.500000000",
                "transfers": [
                    {"account": "0.0.100", "amount": -100000000},
                    {"account": "0.0.200", "amount": 100000000},
                ],
                "token_transfers": [],
            }
        ]
    }


@pytest.fixture
def sui_raw():
    """Sui transaction block in the RPC shape (Blockberry wraps the same object in `result`)."""
    return {
        "digest": "9xQeWvG816bUx9EPjHmaT23yvVM2ZWbrrpZb9PusVFin",
        "timestampMs": "1699000000500",
        "transaction": {
            "data": {
                "sender": SENDER,
                "transaction": {
                    "kind": "ProgrammableTransaction",
                    "transactions": [
                        {"SplitCoins": ["GasCoin", [{"Input": 0}]]},
                        {"MoveCall": {"package": "0x2", "module": "pay", "function": "split", "arguments": []}},
                    ],
                },
            }
        },
        "effects": {
            "status": {"status": "success"},
            "gasUsed": {
                "computationCost": "1000000",
                "storageCost": "2000000",
                "storageRebate": "1500000",
                "nonRefundableStorageFee": "15000",
            },
        },
        "objectChanges": [
            {
                "type": "created",
                "objectId": "0x" + "1" * 64,
                "objectType": "0x2::coin::Coin<0x2::sui::SUI>",
                "owner": {"AddressOwner": RECEIVER},
            },
            {
                "type": "mutated",
                "objectId": "0x" + "2" * 64,
                "objectType": "0x2::coin::Coin<0x2::sui::SUI>",
                "owner": {"AddressOwner": SENDER},
            },
        ],
        "balanceChanges": [
            {"owner": {"AddressOwner": SENDER}, "coinType": SUI, "amount": "-2001515000"},
            {"owner": {"AddressOwner": RECEIVER}, "coinType": SUI, "amount": "2000000000"},
        ],
    }


def mock_http(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def make_http():
    """Factory for an AsyncClient backed by a request handler."""
    return mock_http
