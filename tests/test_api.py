"""
Tests for the HTTP surface: envelope shape, status codes, GET query parsing and CORS preflight.
"""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from txexplainer.api import app as app_module
from txexplainer.errors import UpstreamFetchError
from txexplainer.models.schema import (
    Action,
    AiStatus,
    EnhancedExplanation,
    ExplainResponse,
)


@pytest.fixture
def client():
    return TestClient(app_module.app)


@pytest.fixture
def canned_response():
    explanation = EnhancedExplanation(
        summary="0.0.100 transferred 1.000000000 HBAR to 0.0.200.",
        actions=[Action(type="transfer", description="Transferred 1.000000000 HBAR", from_="0.0.100", to="0.0.200")],
        account_names={"0.0.200": "treasury"},
        ai_status=AiStatus.DISABLED,
        ai_status_message="AI enhancement disabled by user. Using default explanation.",
    )
    return ExplainResponse(digest="0.0.100-1699000000-500000000", explanation=explanation, raw_transaction={"a": 1})


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_post_success_envelope(client, canned_response, monkeypatch):
    fake = AsyncMock(return_value=canned_response)
    monkeypatch.setattr(app_module, "explain_transaction", fake)

    resp = client.post("/api/explain", json={"digest": "0.0.100-1699000000-500000000", "useAI": False})

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["digest"] == "0.0.100-1699000000-500000000"
    assert body["rawTransaction"] == {"a": 1}
    explanation = body["explanation"]
    assert explanation["accountNames"] == {"0.0.200": "treasury"}
    assert explanation["aiStatus"] == "disabled"
    assert explanation["aiEnhanced"] is False
    assert explanation["actions"][0]["from"] == "0.0.100"

    request = fake.await_args.args[0]
    assert request.use_ai is False
    assert request.blockchain == "hedera"


def test_post_missing_digest_is_400(client):
    resp = client.post("/api/explain", json={"blockchain": "sui"})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Transaction digest is required"}


def test_post_invalid_body_is_400(client):
    resp = client.post("/api/explain", content=b"not json", headers={"Content-Type": "application/json"})
    assert resp.status_code == 400
    assert "error" in resp.json()


def test_upstream_failure_is_500(client, monkeypatch):
    monkeypatch.setattr(
        app_module,
        "explain_transaction",
        AsyncMock(side_effect=UpstreamFetchError("Failed to fetch transaction: API returned 503")),
    )
    resp = client.post("/api/explain", json={"digest": "abc", "blockchain": "sui"})
    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to fetch transaction: API returned 503"}


def test_get_parses_query(client, canned_response, monkeypatch):
    fake = AsyncMock(return_value=canned_response)
    monkeypatch.setattr(app_module, "explain_transaction", fake)

    assert client.get("/api/explain", params={"digest": "abc", "blockchain": "sui"}).status_code == 200
    request = fake.await_args.args[0]
    assert (request.digest, request.use_ai, request.blockchain) == ("abc", True, "sui")

    client.get("/api/explain", params={"digest": "abc", "useAI": "false"})
    assert fake.await_args.args[0].use_ai is False

    # only the literal "false" disables AI
    client.get("/api/explain", params={"digest": "abc", "useAI": "0"})
    assert fake.await_args.args[0].use_ai is True


def test_get_missing_digest_is_400(client):
    resp = client.get("/api/explain")
    assert resp.status_code == 400


def test_options_allows_cors(client):
    resp = client.options("/api/explain")
    assert resp.status_code == 200
    assert resp.headers["Access-Control-Allow-Origin"] == "*"
    assert "POST" in resp.headers["Access-Control-Allow-Methods"]


def test_cors_preflight(client):
    resp = client.options(
        "/api/explain",
        headers={"Origin": "https://example.com", "Access-Control-Request-Method": "POST"},
    )
    assert resp.status_code == 200
    assert resp.headers["access-control-allow-origin"] == "*"
