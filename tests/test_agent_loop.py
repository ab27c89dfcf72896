"""Conversation driver: tool dispatch, termination and the turn ceiling."""

import pytest

from blackjack_agents.agent.agent_loop import (
    DIRECT_ACTION_REASONING,
    MAX_TURNS_REASONING,
    ConversationDriver,
    run_agentic_loop,
)
from blackjack_agents.core.errors import (
    ChannelTimeout,
    RateLimited,
)
from blackjack_agents.core.schema import (
    MyHandResult,
    Role,
    ToolTrace,
)
from blackjack_agents.tools import (
    ToolDescriptor,
    ToolRegistry,
)
from blackjack_agents.tools.blackjack_tools import register_role_tools
from conftest import (
    ScriptedChannel,
    make_snapshot,
)

LANG = 'You MUST write your "thinking" field in English.'


@pytest.fixture
def ai_registry(registry: ToolRegistry) -> ToolRegistry:
    snapshot = make_snapshot(ai=("10", "6"), dealer=("9", "10"))
    register_role_tools(Role.AI_PLAYER, snapshot, registry=registry)
    return registry


def test_tool_call_then_decision(ai_registry: ToolRegistry) -> None:
    """One observation, then a case-insensitive final action."""
    channel = ScriptedChannel(
        ['{"tool_call":"get_my_hand"}', '{"thinking":"16 against a ten.","action":"HIT"}']
    )
    traces: list[ToolTrace] = []

    decision = run_agentic_loop(Role.AI_PLAYER, channel, LANG, traces, registry=ai_registry)

    assert decision.action == "hit"
    assert decision.thinking == "16 against a ten."
    assert [t.tool_name for t in traces] == ["get_my_hand"]
    assert isinstance(traces[0].result, MyHandResult)
    assert traces[0].result.value == 16
    assert len(channel.calls) == 2


def test_transcript_grows_with_tool_results(ai_registry: ToolRegistry) -> None:
    """The second call carries the echoed request and the tool's JSON result."""
    channel = ScriptedChannel(['{"tool_call":"get_dealer_upcard"}', '{"action":"stand"}'])
    run_agentic_loop(Role.AI_PLAYER, channel, LANG, [], registry=ai_registry)

    first, second = channel.calls
    assert len(first) == 1
    assert first[0].speaker == "user"
    assert "get_dealer_upcard" in first[0].text
    assert LANG in first[0].text

    assert [m.speaker for m in second] == ["user", "model", "user"]
    assert second[1].text == '{"tool_call": "get_dealer_upcard"}'
    assert 'Tool "get_dealer_upcard" result' in second[2].text
    assert '"value": 10' in second[2].text
    assert "Now decide" in second[2].text


@pytest.mark.parametrize("action", ["hit", "stand"])
def test_action_tool_call_terminates_immediately(ai_registry: ToolRegistry, action: str) -> None:
    """Calling hit/stand as a tool ends the turn on that iteration, whatever budget is left."""
    channel = ScriptedChannel([f'{{"tool_call": "{action}"}}', '{"action": "hit"}'])
    traces: list[ToolTrace] = []

    decision = run_agentic_loop(Role.AI_PLAYER, channel, LANG, traces, registry=ai_registry)

    assert decision.action == action
    assert decision.thinking == DIRECT_ACTION_REASONING
    assert len(channel.calls) == 1
    assert traces == []


def test_action_tool_call_after_observations(ai_registry: ToolRegistry) -> None:
    channel = ScriptedChannel(
        ['{"tool_call": "get_my_hand"}', '{"tool_call": "get_my_hand"}', '{"tool_call": "stand"}']
    )
    traces: list[ToolTrace] = []
    decision = run_agentic_loop(Role.AI_PLAYER, channel, LANG, traces, registry=ai_registry)
    assert decision.action == "stand"
    assert decision.thinking == DIRECT_ACTION_REASONING
    assert len(traces) == 2


def test_ceiling_with_only_observation_tools(ai_registry: ToolRegistry) -> None:
    """Never more than five model calls; then a forced stand."""
    channel = ScriptedChannel(['{"tool_call": "get_my_hand"}'] * 10)
    traces: list[ToolTrace] = []
    driver = ConversationDriver(Role.AI_PLAYER, channel, LANG, traces, registry=ai_registry)

    decision = driver.run()

    assert driver.model_calls == 5
    assert len(channel.calls) == 5
    assert decision.action == "stand"
    assert decision.thinking == MAX_TURNS_REASONING
    assert len(traces) == 5


def test_injected_ceiling(ai_registry: ToolRegistry) -> None:
    channel = ScriptedChannel(['{"tool_call": "get_dealer_upcard"}'] * 10)
    decision = run_agentic_loop(
        Role.AI_PLAYER, channel, LANG, [], registry=ai_registry, max_turns=2
    )
    assert len(channel.calls) == 2
    assert decision.thinking == MAX_TURNS_REASONING


def test_unparseable_text_every_turn(ai_registry: ToolRegistry) -> None:
    """Text with no usable signal is retried until the ceiling forces a stand."""
    channel = ScriptedChannel(["hmm, let me think about it"] * 5)
    traces: list[ToolTrace] = []

    decision = run_agentic_loop(Role.AI_PLAYER, channel, LANG, traces, registry=ai_registry)

    assert len(channel.calls) == 5
    assert decision.action == "stand"
    assert decision.thinking == MAX_TURNS_REASONING
    assert traces == []
    assert "could not be understood" in channel.calls[1][-1].text


def test_unparseable_after_valid_request_keeps_trace(ai_registry: ToolRegistry) -> None:
    channel = ScriptedChannel(['{"tool_call": "get_my_hand"}'] + ["???"] * 4)
    traces: list[ToolTrace] = []
    decision = run_agentic_loop(Role.AI_PLAYER, channel, LANG, traces, registry=ai_registry)
    assert decision.thinking == MAX_TURNS_REASONING
    assert [t.tool_name for t in traces] == ["get_my_hand"]


def test_unknown_tool_is_reported_and_counted(ai_registry: ToolRegistry) -> None:
    """Unknown tools are not final: the model is told the valid names and the loop goes on."""
    channel = ScriptedChannel(
        ['{"tool_call": "peek_deck"}', '{"thinking": "ok", "action": "stand"}']
    )
    traces: list[ToolTrace] = []

    decision = run_agentic_loop(Role.AI_PLAYER, channel, LANG, traces, registry=ai_registry)

    assert decision.action == "stand"
    assert traces == []
    error = channel.calls[1][-1].text
    assert 'Unknown tool "peek_deck"' in error
    assert "get_my_hand, get_dealer_upcard, hit, stand" in error


def test_other_roles_tool_is_unknown(registry: ToolRegistry) -> None:
    """The dealer may not ask for the player-only upcard tool."""
    register_role_tools(Role.DEALER, make_snapshot(), registry=registry)
    channel = ScriptedChannel(['{"tool_call": "get_dealer_upcard"}'] * 3)
    traces: list[ToolTrace] = []

    decision = run_agentic_loop(Role.DEALER, channel, LANG, traces, registry=registry, max_turns=3)

    assert decision.thinking == MAX_TURNS_REASONING
    assert traces == []
    assert "reveal_hidden" in channel.calls[1][-1].text


def test_tool_failure_is_reported(registry: ToolRegistry) -> None:
    def broken() -> dict:
        raise RuntimeError("shoe jammed")

    registry.register(Role.AI_PLAYER, [ToolDescriptor.from_function("get_my_hand", broken)])
    channel = ScriptedChannel(['{"tool_call": "get_my_hand"}', '{"action": "hit"}'])
    traces: list[ToolTrace] = []

    decision = run_agentic_loop(Role.AI_PLAYER, channel, LANG, traces, registry=registry)

    assert decision.action == "hit"
    assert traces == []
    assert 'Error executing tool "get_my_hand"' in channel.calls[1][-1].text
    assert "shoe jammed" in channel.calls[1][-1].text


@pytest.mark.parametrize("failure", [ChannelTimeout("slow"), RateLimited("quota")])
def test_channel_failures_propagate(ai_registry: ToolRegistry, failure: Exception) -> None:
    channel = ScriptedChannel([failure])
    with pytest.raises(type(failure)):
        run_agentic_loop(Role.AI_PLAYER, channel, LANG, [], registry=ai_registry)


def test_driver_exposes_transcript(ai_registry: ToolRegistry) -> None:
    channel = ScriptedChannel(['{"tool_call": "get_my_hand"}', '{"action": "stand"}'])
    driver = ConversationDriver(Role.AI_PLAYER, channel, LANG, registry=ai_registry)
    driver.run()
    assert driver.model_calls == 2
    assert len(driver.transcript) == 3
    assert len(driver.tool_traces) == 1
