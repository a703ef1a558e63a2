"""FastAPI surface: /api/explain (GET, POST, OPTIONS) and /health."""

from __future__ import annotations

import logging

import pydantic
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from txexplainer.errors import ValidationError
from txexplainer.models.schema import ExplainRequest
from txexplainer.pipeline import configure_logging, explain_transaction

logger = logging.getLogger(__name__)

configure_logging()

app = FastAPI(title="Transaction Explainer", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


async def _respond(request: ExplainRequest) -> JSONResponse:
    try:
        response = await explain_transaction(request)
    except ValidationError as e:
        return _error(str(e), 400)
    except Exception as e:
        logger.exception(f"Error explaining transaction {request.digest}")
        return _error(str(e) or "Failed to explain transaction", 500)
    return JSONResponse(response.to_wire())


@app.get("/health")
async def health() -> dict:
    return {"status": "ok"}


@app.post("/api/explain")
async def explain_post(request: Request) -> JSONResponse:
    try:
        body = await request.json()
        if not isinstance(body, dict):
            raise ValueError("Request body must be a JSON object")
        parsed = ExplainRequest.model_validate(body)
    except (ValueError, pydantic.ValidationError) as e:
        logger.warning(f"Rejected request body: {e}")
        return _error(f"Invalid request body: {e}", 400)
    return await _respond(parsed)


@app.get("/api/explain")
async def explain_get(digest: str | None = None, useAI: str | None = None, blockchain: str = "hedera") -> JSONResponse:
    return await _respond(ExplainRequest(digest=digest, use_ai=useAI != "false", blockchain=blockchain))


@app.options("/api/explain")
async def explain_options() -> Response:
    return Response(
        status_code=200,
        headers={
            "Access-Control-Allow-Origin": "*",
            "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
            "Access-Control-Allow-Headers": "Content-Type, Authorization",
        },
    )
