"""Claude integration: plain-language rewrite and insights/risks for an explanation."""

from __future__ import annotations

import json
import logging
import re
import time

import anthropic

from txexplainer.config import get_settings
from txexplainer.errors import EnhancementFailure
from txexplainer.explain.formatting import short_address
from txexplainer.models.schema import Explanation

logger = logging.getLogger(__name__)

MAX_PROMPT_ACTIONS = 10
MAX_PROMPT_CALLS = 5
MAX_PROMPT_ACCOUNTS = 10

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")

# (models, fetched_at); shared by every request in the process
_model_cache: tuple[list[str], float] | None = None


def get_client() -> anthropic.AsyncAnthropic:
    settings = get_settings()
    if not settings.anthropic_api_key:
        raise ValueError("ANTHROPIC_API_KEY not set in .env")
    return anthropic.AsyncAnthropic(api_key=settings.anthropic_api_key)


def clear_model_cache() -> None:
    global _model_cache
    _model_cache = None


async def get_available_models(client: anthropic.AsyncAnthropic) -> list[str]:
    """Claude models visible to this key, preferred model first, cached for ai_model_cache_ttl."""
    global _model_cache
    settings = get_settings()
    now = time.monotonic()
    if _model_cache and now - _model_cache[1] < settings.ai_model_cache_ttl:
        return _model_cache[0]

    try:
        discovered = [m.id async for m in client.models.list() if m.id.startswith("claude")]
    except anthropic.APIError as e:
        logger.warning(f"Failed to list models, using configured model: {e}")
        discovered = []

    models = [settings.ai_model] if settings.ai_model in discovered or not discovered else []
    models += [m for m in discovered if m != settings.ai_model]
    _model_cache = (models, now)
    logger.info(f"Discovered {len(discovered)} Claude models")
    return models


async def _generate(client: anthropic.AsyncAnthropic, prompt: str, max_tokens: int) -> str:
    """First model that accepts the request wins; unknown models are skipped."""
    last_error: Exception | None = None
    for model in await get_available_models(client):
        try:
            message = await client.messages.create(
                model=model,
                max_tokens=max_tokens,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.NotFoundError as e:
            logger.debug(f"Model {model} unavailable: {e}")
            last_error = e
            continue
        except anthropic.APIError as e:
            raise EnhancementFailure(str(e)) from e
        return "".join(block.text for block in message.content if block.type == "text").strip()
    raise EnhancementFailure(f"No working Claude model found: {last_error}")


def _account_context(explanation: Explanation) -> str:
    lines = []
    for address in explanation.involved_addresses[:MAX_PROMPT_ACCOUNTS]:
        name = explanation.account_names.get(address)
        lines.append(f"{name} ({address})" if name else short_address(address))
    return "\n".join(lines) or "No account names available - use addresses directly from transaction data"


def _calls_line(explanation: Explanation) -> str:
    calls = explanation.move_calls
    if not calls:
        return ""
    listed = ", ".join(f"{c.module}::{c.function}" for c in calls[:MAX_PROMPT_CALLS])
    more = " and more" if len(calls) > MAX_PROMPT_CALLS else ""
    return f"- Functions Called: {listed}{more}\n"


def build_enhance_prompt(explanation: Explanation) -> str:
    actions = "\n".join(
        f"{i}. {a.description}" for i, a in enumerate(explanation.actions[:MAX_PROMPT_ACTIONS], start=1)
    )
    overflow = len(explanation.actions) - MAX_PROMPT_ACTIONS
    if overflow > 0:
        actions += f"\n... and {overflow} more actions"

    return f"""You are a helpful blockchain transaction analyst. Explain this blockchain transaction in simple, friendly language that anyone can understand.

Rules:
1. Never refer to participants as "someone" or "an address".
2. Use the exact account names or addresses given in the transaction data below.
3. If a participant appears as "Name (0x1234...)", call them "Name".
4. If a participant appears as "0x1234...5678 (account name not available)", use the address "0x1234...5678".
5. Never invent names.

Transaction Data:
{explanation.summary}

Account Information Available:
{_account_context(explanation)}

Technical Details (for context):
- Gas Used: {explanation.total_gas_cost}
- Objects Created: {explanation.objects_created}
- Objects Transferred: {explanation.objects_transferred}
- Objects Mutated: {explanation.objects_mutated}
{_calls_line(explanation)}
Specific Actions:
{actions or "None"}

Write a clear, natural explanation (2-4 sentences) that says what type of transaction this is, describes what happened without jargon such as "mutated" or "Move calls", and mentions amounts and participants where relevant."""


def build_detail_prompt(explanation: Explanation) -> str:
    calls = ", ".join(f"{c.package}::{c.module}::{c.function}" for c in explanation.move_calls) or "None"
    return f"""Analyze this blockchain transaction and provide:

1. A clear summary (2-3 sentences)
2. Key insights
3. Potential risks or concerns (if any)

Transaction Data:
- Summary: {explanation.summary}
- Gas: {explanation.total_gas_cost}
- Objects Created: {explanation.objects_created}
- Objects Transferred: {explanation.objects_transferred}
- Move Calls: {calls}

Respond in JSON format:
{{
  "summary": "clear explanation",
  "insights": ["insight 1", "insight 2"],
  "risks": ["risk 1 if any", "risk 2 if any"]
}}"""


def _string_list(value) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(v) for v in value]


def parse_detail_response(text: str, fallback_summary: str) -> dict:
    """Pull {summary, insights, risks} out of a reply that may wrap the JSON in prose."""
    match = _JSON_OBJECT.search(text or "")
    if match:
        try:
            parsed = json.loads(match.group(0))
        except json.JSONDecodeError:
            parsed = None
        if isinstance(parsed, dict):
            return {
                "summary": str(parsed.get("summary") or fallback_summary),
                "insights": _string_list(parsed.get("insights")),
                "risks": _string_list(parsed.get("risks")),
            }
    return {"summary": text or fallback_summary, "insights": [], "risks": []}


async def enhance_summary(explanation: Explanation, client: anthropic.AsyncAnthropic | None = None) -> str:
    """Rewrite the generated summary for non-technical readers."""
    client = client or get_client()
    text = await _generate(client, build_enhance_prompt(explanation), max_tokens=512)
    return text or explanation.summary


async def generate_detailed_explanation(
    explanation: Explanation,
    client: anthropic.AsyncAnthropic | None = None,
) -> dict:
    """Summary, insights and risks as a dict."""
    client = client or get_client()
    text = await _generate(client, build_detail_prompt(explanation), max_tokens=1024)
    return parse_detail_response(text, explanation.summary)
