"""
Shared fixtures: a scripted model channel, table snapshots and a private tool registry.

Run with:
$ pytest -q
"""

from typing import (
    Callable,
    List,
    Sequence,
)

import pytest

from blackjack_agents.agent.model_channel import BaseModelChannel
from blackjack_agents.core.schema import (
    ConversationMessage,
    GameSnapshot,
    Participant,
)
from blackjack_agents.game.hand import (
    Card,
    Hand,
)
from blackjack_agents.tools import ToolRegistry


class ScriptedChannel(BaseModelChannel):
    """Replays canned replies; an Exception in the script is raised instead of returned."""

    def __init__(self, replies: Sequence[object] = (), available: bool = True) -> None:
        super().__init__(timeout=1.0, probe_timeout=1.0)
        self.replies: List[object] = list(replies)
        self.available = available
        self.calls: List[List[ConversationMessage]] = []
        self.probes = 0
        self.on_send: Callable[[], None] | None = None

    def send(self, transcript: Sequence[ConversationMessage]) -> str:
        self.calls.append(list(transcript))
        if self.on_send is not None:
            self.on_send()
        reply = self.replies.pop(0) if self.replies else "I am not sure."
        if isinstance(reply, Exception):
            raise reply
        return str(reply)

    def probe(self) -> bool:
        self.probes += 1
        return self.available


def cards(*ranks: str) -> List[Card]:
    """Spades of the given ranks."""
    return [Card(rank=rank, suit="spades") for rank in ranks]  # type: ignore[arg-type]


def make_snapshot(
    ai: Sequence[str] = ("10", "8"), dealer: Sequence[str] = ("9", "6")
) -> GameSnapshot:
    """Table where the dealer's second card is the upcard."""
    return GameSnapshot(
        round_number=1,
        deck_remaining=40,
        ai_player=Participant(role="ai_player", hand=Hand(cards=cards(*ai)), bet=50),
        dealer=Participant(role="dealer", hand=Hand(cards=cards(*dealer)), chips=0),
    )


@pytest.fixture
def registry() -> ToolRegistry:
    """A registry private to the test."""
    return ToolRegistry()


@pytest.fixture
def snapshot() -> GameSnapshot:
    return make_snapshot()
