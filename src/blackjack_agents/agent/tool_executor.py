"""Dispatches tool calls registered in ``blackjack_agents.tools`` and wraps errors."""

import json
import logging
from typing import (
    Any,
    Dict,
)

from pydantic import (
    BaseModel,
    TypeAdapter,
    ValidationError,
)

from blackjack_agents.core.errors import (
    ToolExecutionError,
    ToolNotFoundError,
)
from blackjack_agents.core.schema import ToolResult
from blackjack_agents.tools import (
    TOOL_REGISTRY,
    ToolRegistry,
)

logger = logging.getLogger(__name__)

_RESULT_ADAPTER = TypeAdapter(ToolResult)


def normalize_result(name: str, raw: Any) -> ToolResult:
    """Coerce whatever a producer returned into the tagged result for tool *name*."""
    if isinstance(raw, BaseModel):
        raw = raw.model_dump()
    if isinstance(raw, dict):
        raw = {"tool": name, **raw}
    return _RESULT_ADAPTER.validate_python(raw)


def result_to_json(result: ToolResult) -> str:
    """Pretty JSON for the transcript, without the internal ``tool`` tag."""
    payload = result.model_dump(mode="json", exclude={"tool"}, exclude_none=True)
    return json.dumps(payload, indent=2)


def execute_tool(
    name: str, args: Dict[str, Any] | None = None, registry: ToolRegistry = TOOL_REGISTRY
) -> ToolResult:
    """
    Look up *name* in the registry and invoke it with *args*.

    Parameters
    ----------
    name:
        The registered tool name.
    args:
        Keyword arguments to pass verbatim to the tool function.  If *None*,
        an empty dict is assumed.
    registry:
        Registry to look the tool up in (the process-wide one by default).

    Returns
    -------
    ToolResult
        The tool's result, normalized to its tagged result model.

    Raises
    ------
    ToolNotFoundError
        If the tool is not registered for the current turn.
    ToolExecutionError
        If its invocation raises an exception or returns an unrecognised shape.
    """

    if args is None:
        args = {}

    tool = registry.get(name)
    if tool is None:
        raise ToolNotFoundError(f"Tool '{name}' is not registered.")

    try:
        logger.debug("Executing tool '%s' with args=%s", name, args)
        raw = tool.fn(**args)
    except TypeError as exc:
        # Argument mismatch; surface a clean exception.
        logger.exception("Argument error while executing tool '%s'", name)
        raise ToolExecutionError(f"Invalid arguments for tool '{name}': {exc}") from exc
    except Exception as exc:  # noqa: BLE001
        logger.exception("Unhandled error in tool '%s'", name)
        raise ToolExecutionError(f"Tool '{name}' raised an error: {exc}") from exc

    try:
        return normalize_result(name, raw)
    except ValidationError as exc:
        logger.error("Tool '%s' returned an unexpected result: %r", name, raw)
        raise ToolExecutionError(f"Tool '{name}' returned an invalid result: {exc}") from exc
