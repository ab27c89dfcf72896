"""
Turns raw model text into an :data:`AgentResponse`.

Model output is not contractually structured, so parsing happens in two stages:

1. **Strict** - pull the first JSON object out of the text (markdown fences and surrounding
   prose are tolerated) and read it as either ``{"tool_call": "<name>"}`` or
   ``{"thinking": "...", "action": "hit" | "stand"}``.
2. **Salvage** - if no object is found or it does not decode, look for a ``tool_call`` pattern,
   then for quoted ``hit`` / ``stand`` keywords and a ``thinking:`` fragment.

:func:`parse_agent_response` never raises; the worst case is a ``stand`` decision with a
placeholder justification, flagged ``recovered`` so the driver can ask again.
"""

import json
import logging
import re

from blackjack_agents.core.errors import MalformedResponse
from blackjack_agents.core.schema import (
    AgentResponse,
    FinalDecision,
    ToolRequest,
)

logger = logging.getLogger(__name__)

NO_REASONING = "No reasoning provided"
SALVAGED_REASONING = "Model response parsed via fallback"

_FENCE_RE = re.compile(r"```(?:json)?\s*(.+?)```", re.DOTALL)
_LAZY_OBJECT_RE = re.compile(r"\{[\s\S]*?\}")
_TOOL_CALL_RE = re.compile(r"tool_call['\":\s]+['\"](\w+)['\"]", re.IGNORECASE)
_THINKING_RE = re.compile(r"thinking['\":\s]+([^\"]+)", re.IGNORECASE)


# ---------------------------------------------------------------------------
# Small helpers
# ---------------------------------------------------------------------------
def _find_matching_brace(s: str, i: int) -> int:
    """Given s[i] == '{', return the index just past its matching '}' or -1."""
    depth = 0
    in_string = False
    escaped = False
    for j in range(i, len(s)):
        ch = s[j]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return j + 1
    return -1


def extract_json_object(text: str) -> str | None:
    """Return the first ``{...}`` object in *text*, or *None* when there is none."""
    # Strip markdown code blocks if present
    fenced = _FENCE_RE.search(text)
    if fenced and "{" in fenced.group(1):
        text = fenced.group(1)

    open_idx = text.find("{")
    if open_idx < 0:
        return None

    end = _find_matching_brace(text, open_idx)
    if end > 0:
        return text[open_idx:end]

    # Unbalanced: settle for the shortest brace pair
    lazy = _LAZY_OBJECT_RE.search(text, open_idx)
    return lazy.group(0) if lazy else None


def _normalize_action(raw: object) -> str:
    action = str(raw or "").lower().strip()
    return "hit" if action.startswith("hit") else "stand"


# ---------------------------------------------------------------------------
# Stages
# ---------------------------------------------------------------------------
def parse_strict(text: str) -> AgentResponse:
    """
    Parse the first JSON object in *text*.

    Raises
    ------
    MalformedResponse
        If no object is present, it does not decode, or ``tool_call`` is not a usable string.
    """
    candidate = extract_json_object(text)
    if candidate is None:
        raise MalformedResponse("No JSON object found in model response")

    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError as exc:
        raise MalformedResponse(f"Invalid JSON in model response: {exc}") from exc

    if not isinstance(parsed, dict):
        raise MalformedResponse("Model response JSON is not an object")

    tool_call = parsed.get("tool_call")
    if tool_call:
        if not isinstance(tool_call, str) or not tool_call.strip():
            raise MalformedResponse(f"'tool_call' must be a tool name, got {tool_call!r}")
        return ToolRequest(tool_name=tool_call.strip())

    thinking = parsed.get("thinking") or parsed.get("reason") or parsed.get("reasoning")
    return FinalDecision(
        thinking=str(thinking) if thinking else NO_REASONING,
        action=_normalize_action(parsed.get("action")),  # type: ignore[arg-type]
    )


def salvage_response(text: str) -> AgentResponse:
    """Best-effort keyword extraction; never raises."""
    tool_match = _TOOL_CALL_RE.search(text)
    if tool_match:
        return ToolRequest(tool_name=tool_match.group(1))

    lower = text.lower()
    has_hit = '"hit"' in lower or "'hit'" in lower
    has_stand = '"stand"' in lower or "'stand'" in lower

    thinking_match = _THINKING_RE.search(text)
    thinking = thinking_match.group(1).strip() if thinking_match else ""

    return FinalDecision(
        thinking=thinking or SALVAGED_REASONING,
        action="hit" if has_hit else "stand",
        recovered=not (has_hit or has_stand or thinking),
    )


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------
def parse_agent_response(text: str) -> AgentResponse:
    """Strict parse first, keyword salvage second."""
    try:
        return parse_strict(text)
    except MalformedResponse as exc:
        logger.warning("Strict parse failed (%s), trying fallback extraction", exc)
        return salvage_response(text)
