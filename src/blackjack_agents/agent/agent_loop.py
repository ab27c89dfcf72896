"""
Agentic tool-calling loop.

Instead of the app deciding which tools to call, the model receives the list of tools registered
for its role and decides for itself::

    user:  system prompt (persona, tools, response format)
    model: {"tool_call": "get_my_hand"}
    user:  Tool "get_my_hand" result: {...}  Now decide...
    model: {"tool_call": "get_dealer_upcard"}
    user:  Tool "get_dealer_upcard" result: {...}  Now decide...
    model: {"thinking": "I have 18, dealer shows 6...", "action": "stand"}

The exchange is bounded by ``max_turns`` model calls; when the budget runs out the agent stands.
Channel failures are not handled here - they propagate to the turn orchestrator, which falls back
to the rule-based strategy.
"""

from __future__ import annotations

import json
import logging
from typing import List

from blackjack_agents.agent.model_channel import BaseModelChannel
from blackjack_agents.agent.prompts import build_system_prompt
from blackjack_agents.agent.response_parser import parse_agent_response
from blackjack_agents.agent.tool_executor import (
    execute_tool,
    result_to_json,
)
from blackjack_agents.config import settings
from blackjack_agents.core.errors import ToolExecutionError
from blackjack_agents.core.schema import (
    ACTION_TOOLS,
    Action,
    ConversationMessage,
    FinalDecision,
    Role,
    ToolTrace,
    observation_tools,
)
from blackjack_agents.tools import (
    TOOL_REGISTRY,
    ToolRegistry,
    get_tool_schemas,
)

logger = logging.getLogger(__name__)

DIRECT_ACTION_REASONING = "Direct action via tool call."
MAX_TURNS_REASONING = "Max tool calls reached."
RETRY_MESSAGE = (
    "Error: Your response could not be understood. Respond with ONLY a JSON object: "
    '{"tool_call": "<tool_name>"} or {"thinking": "...", "action": "hit" or "stand"}.'
)
DECIDE_PROMPT = (
    "Now decide: call another tool, or respond with "
    '{"thinking": "...", "action": "hit" or "stand"}.'
)


# ---------------------------------------------------------------------------
# Conversation driver
# ---------------------------------------------------------------------------
class ConversationDriver:
    """Owns the transcript and tool traces of a single agent turn."""

    def __init__(
        self,
        role: Role,
        channel: BaseModelChannel,
        lang_instruction: str,
        tool_traces: List[ToolTrace] | None = None,
        registry: ToolRegistry = TOOL_REGISTRY,
        max_turns: int | None = None,
    ) -> None:
        self.role = Role(role)
        self.channel = channel
        self.registry = registry
        self.max_turns = max_turns if max_turns is not None else settings.MAX_AGENT_TURNS
        self.tool_traces: List[ToolTrace] = tool_traces if tool_traces is not None else []
        self.allowed_tools = observation_tools(self.role)
        system_prompt = build_system_prompt(
            self.role, get_tool_schemas(registry), lang_instruction
        )
        self.transcript: List[ConversationMessage] = [ConversationMessage.from_user(system_prompt)]
        self.model_calls = 0

    def _exchange(self, model_text: str, user_text: str) -> None:
        self.transcript.append(ConversationMessage.from_model(model_text))
        self.transcript.append(ConversationMessage.from_user(user_text))

    def run(self) -> FinalDecision:
        """Drive the loop until a decision, an action tool call, or the turn ceiling."""
        role = self.role.value
        for turn in range(self.max_turns):
            text = self.channel.send(list(self.transcript))
            self.model_calls += 1
            response = parse_agent_response(text)

            if isinstance(response, FinalDecision):
                if response.recovered:
                    logger.warning("[Agent] %s gave an unusable response, asking again", role)
                    self._exchange(text, RETRY_MESSAGE)
                    continue
                logger.info(
                    "[Agent] %s decided: %s (after %d tool calls)", role, response.action, turn
                )
                return response

            tool_name = response.tool_name
            logger.info("[Agent] %s calls tool: %s (turn %d)", role, tool_name, turn + 1)

            # The model collapsed the two-step protocol into an action tool call
            if tool_name.lower() in ACTION_TOOLS:
                logger.info("[Agent] %s called action tool '%s' - final decision", role, tool_name)
                action: Action = "hit" if tool_name.lower() == "hit" else "stand"
                return FinalDecision(thinking=DIRECT_ACTION_REASONING, action=action)

            echo = json.dumps({"tool_call": tool_name})
            if tool_name not in self.allowed_tools:
                logger.warning("[Agent] Unknown tool '%s', asking model to try again", tool_name)
                available = ", ".join([*self.allowed_tools, *ACTION_TOOLS])
                self._exchange(
                    echo,
                    f'Error: Unknown tool "{tool_name}". Available tools: {available}. '
                    "Please try again.",
                )
                continue

            try:
                result = execute_tool(tool_name, registry=self.registry)
            except ToolExecutionError as exc:
                logger.warning("[Agent] Tool '%s' execution failed: %s", tool_name, exc)
                self._exchange(
                    echo, f'Error executing tool "{tool_name}": {exc}. Please make your decision.'
                )
                continue

            self.tool_traces.append(ToolTrace(tool_name=tool_name, result=result))
            self._exchange(
                echo, f'Tool "{tool_name}" result:\n{result_to_json(result)}\n\n{DECIDE_PROMPT}'
            )

        logger.warning(
            "[Agent] %s hit max turns (%d model calls), forcing stand", role, self.model_calls
        )
        return FinalDecision(thinking=MAX_TURNS_REASONING, action="stand")


def run_agentic_loop(
    role: Role,
    channel: BaseModelChannel,
    lang_instruction: str,
    tool_traces: List[ToolTrace],
    registry: ToolRegistry = TOOL_REGISTRY,
    max_turns: int | None = None,
) -> FinalDecision:
    """Run one bounded conversation; traces are appended to *tool_traces* as tools run."""
    driver = ConversationDriver(
        role,
        channel,
        lang_instruction,
        tool_traces=tool_traces,
        registry=registry,
        max_turns=max_turns,
    )
    return driver.run()
