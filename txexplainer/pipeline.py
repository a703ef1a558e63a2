"""Request pipeline: fetch -> resolve names -> explain -> optional AI enhancement -> envelope."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx
from pydantic import BaseModel

from txexplainer.ai import client as ai
from txexplainer.chain.sources import get_source
from txexplainer.config import get_settings
from txexplainer.errors import EnhancementTimeout, SerializationFailure, ValidationError
from txexplainer.models.schema import AiStatus, EnhancedExplanation, ExplainRequest, ExplainResponse, Explanation

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s | %(message)s"

STATUS_MESSAGES = {
    AiStatus.ENABLED: "AI enhancement successful",
    AiStatus.DISABLED: "AI enhancement disabled by user. Using default explanation.",
    AiStatus.NO_KEY: "AI enhancement disabled: No API key configured. Using default explanation.",
    AiStatus.TIMEOUT: "AI enhancement timed out (request took too long). Using default explanation.",
}


def configure_logging(level: int | str = logging.INFO) -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _to_data(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, dict):
        return {str(k): _to_data(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_data(v) for v in value]
    if isinstance(value, (set, frozenset)):
        return [_to_data(v) for v in value]
    if isinstance(value, BaseModel):
        return _to_data(value.model_dump(mode="json"))
    if callable(value):
        return None
    raise SerializationFailure(f"Cannot serialize {type(value).__name__}")


def serialize_raw(raw: Any) -> dict | None:
    """JSON-ready copy of the raw payload, or None when it cannot be represented."""
    try:
        data = _to_data(raw)
    except (SerializationFailure, RecursionError) as e:
        logger.warning(f"Failed to serialize rawTransaction, omitting it: {e}")
        return None
    return data if isinstance(data, dict) else {"value": data}


async def run_enhancement(explanation: Explanation, timeout: float) -> tuple[str, dict]:
    """Summary rewrite and detailed analysis together, bounded by `timeout` seconds."""
    client = ai.get_client()
    work = asyncio.gather(
        ai.enhance_summary(explanation, client),
        ai.generate_detailed_explanation(explanation, client),
    )
    try:
        summary, detail = await asyncio.wait_for(work, timeout)
    except asyncio.TimeoutError as e:
        raise EnhancementTimeout(f"AI enhancement exceeded {timeout:g}s") from e
    return summary, detail


async def enhance(explanation: Explanation, use_ai: bool) -> EnhancedExplanation:
    """Attach AI fields; every failure falls back to the generated explanation."""
    settings = get_settings()
    fields = explanation.model_dump()

    if not use_ai:
        status = AiStatus.DISABLED
    elif not settings.anthropic_api_key:
        status = AiStatus.NO_KEY
    else:
        try:
            summary, detail = await run_enhancement(explanation, settings.ai_timeout)
        except EnhancementTimeout as e:
            logger.warning(f"AI enhancement timed out, using default explanation: {e}")
            status = AiStatus.TIMEOUT
        except Exception as e:
            # AI failures never fail the request
            logger.warning(f"AI enhancement failed, using default explanation: {e}")
            return EnhancedExplanation(
                **fields,
                ai_status=AiStatus.ERROR,
                ai_status_message=f"AI enhancement failed: {e}. Using default explanation.",
            )
        else:
            fields["summary"] = summary or explanation.summary
            return EnhancedExplanation(
                **fields,
                ai_enhanced=True,
                ai_insights=detail.get("insights", []),
                ai_risks=detail.get("risks", []),
                ai_status=AiStatus.ENABLED,
                ai_status_message=STATUS_MESSAGES[AiStatus.ENABLED],
            )

    return EnhancedExplanation(**fields, ai_status=status, ai_status_message=STATUS_MESSAGES[status])


async def explain_transaction(
    request: ExplainRequest,
    http: httpx.AsyncClient | None = None,
) -> ExplainResponse:
    """Run the whole pipeline for one request. Raises ValidationError or UpstreamFetchError."""
    digest = (request.digest or "").strip()
    if not digest:
        raise ValidationError("Transaction digest is required")

    settings = get_settings()
    if http is None:
        async with httpx.AsyncClient(timeout=settings.http_timeout) as client:
            return await explain_transaction(request, client)

    try:
        source = get_source(request.blockchain, http)
    except ValueError as e:
        raise ValidationError(str(e)) from e

    logger.info(f"Explaining {source.chain.display_name} transaction {digest}")
    tx = await source.fetch(digest)
    explanation = await source.explain(tx)
    enhanced = await enhance(explanation, request.use_ai)

    return ExplainResponse(
        digest=digest,
        explanation=enhanced,
        raw_transaction=serialize_raw(tx.raw),
    )
