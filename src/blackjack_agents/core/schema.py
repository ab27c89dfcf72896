"""
Schema definitions for model <-> agent loop <-> tool messages.

These data models serve as the contract between the model channel, the conversation driver, the
tool registry and whoever displays a finished turn.  We keep them separate from runtime logic so
they can be imported anywhere without side-effects.
"""

import time
from enum import Enum
from typing import (
    Annotated,
    Any,
    Dict,
    List,
    Literal,
    Optional,
    Union,
)

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
)

from blackjack_agents.game.hand import (
    Card,
    Hand,
)

Action = Literal["hit", "stand"]
ACTION_TOOLS = ("hit", "stand")


class Role(str, Enum):
    """The two agent identities that can be asked to act."""

    AI_PLAYER = "ai_player"
    DEALER = "dealer"


ROLE_AVAILABLE_TOOLS: Dict[Role, List[str]] = {
    Role.AI_PLAYER: ["get_my_hand", "get_dealer_upcard", "hit", "stand"],
    Role.DEALER: ["get_my_hand", "reveal_hidden", "hit", "stand"],
}


def observation_tools(role: Role) -> List[str]:
    """Return the read-only tool names *role* may request during the loop."""
    return [name for name in ROLE_AVAILABLE_TOOLS[role] if name not in ACTION_TOOLS]


# ---------------------------------------------------------------------------
# Game snapshot (read by tool producers)
# ---------------------------------------------------------------------------
class Participant(BaseModel):
    """One seat at the table."""

    role: Literal["player", "ai_player", "dealer"]
    hand: Hand = Field(default_factory=Hand)
    chips: int = 1000
    bet: int = 0
    status: Literal["active", "stand", "bust", "blackjack"] = "active"


class GameSnapshot(BaseModel):
    """Immutable view of the table handed to tools at the start of a turn."""

    model_config = ConfigDict(frozen=True)

    round_number: int = 1
    deck_remaining: int = 0
    player: Participant = Field(default_factory=lambda: Participant(role="player"))
    ai_player: Participant = Field(default_factory=lambda: Participant(role="ai_player"))
    dealer: Participant = Field(default_factory=lambda: Participant(role="dealer", chips=0))
    dealer_hidden_revealed: bool = False

    def dealer_upcard(self) -> Optional[Card]:
        """The dealer's face-up card; index 0 is the hole card."""
        cards = self.dealer.hand.cards
        return cards[1] if len(cards) > 1 else None


# ---------------------------------------------------------------------------
# Tool results (tagged by tool name)
# ---------------------------------------------------------------------------
class MyHandResult(BaseModel):
    """Result of ``get_my_hand``; ``soft`` is only reported to the AI player."""

    tool: Literal["get_my_hand"] = "get_my_hand"
    cards: List[Card]
    value: int
    soft: Optional[bool] = None


class DealerUpcardResult(BaseModel):
    """Result of ``get_dealer_upcard``."""

    tool: Literal["get_dealer_upcard"] = "get_dealer_upcard"
    card: Optional[Card] = None
    value: int


class RevealHiddenResult(BaseModel):
    """Result of ``reveal_hidden``."""

    tool: Literal["reveal_hidden"] = "reveal_hidden"
    revealed: bool = True
    card: Optional[Card] = None


class ActionAccepted(BaseModel):
    """Result of the ``hit``/``stand`` action tools."""

    tool: Literal["hit", "stand"]
    action: Action
    accepted: bool = True


ToolResult = Annotated[
    Union[MyHandResult, DealerUpcardResult, RevealHiddenResult, ActionAccepted],
    Field(discriminator="tool"),
]


class ToolTrace(BaseModel):
    """One observation-tool invocation recorded for display."""

    model_config = ConfigDict(frozen=True)

    tool_name: str
    result: ToolResult
    timestamp: float = Field(default_factory=time.time)


# ---------------------------------------------------------------------------
# Conversation
# ---------------------------------------------------------------------------
class ConversationMessage(BaseModel):
    """A single transcript entry.  ``user`` is the requester, ``model`` the responder."""

    speaker: Literal["user", "model"]
    text: str

    @classmethod
    def from_user(cls, text: str) -> "ConversationMessage":
        return cls(speaker="user", text=text)

    @classmethod
    def from_model(cls, text: str) -> "ConversationMessage":
        return cls(speaker="model", text=text)


class ToolRequest(BaseModel):
    """The model wants a tool executed before deciding."""

    type: Literal["tool_call"] = "tool_call"
    tool_name: str = Field(..., min_length=1)


class FinalDecision(BaseModel):
    """The model's terminal decision.

    ``recovered`` marks a decision that was synthesised from text carrying no usable signal
    (no JSON, no action keyword, no reasoning); the driver asks the model again in that case.
    """

    type: Literal["action"] = "action"
    thinking: str
    action: Action
    recovered: bool = False


AgentResponse = Annotated[Union[ToolRequest, FinalDecision], Field(discriminator="type")]


# ---------------------------------------------------------------------------
# Turn outcome
# ---------------------------------------------------------------------------
class TurnOutcome(BaseModel):
    """Terminal record of one agent turn.

    ``model_action`` is what the model (or the fallback table) decided; ``action`` is what was
    applied after house rules.  The two only differ for a dealer that tried to break the rules.
    """

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    role: Role
    available_tools: List[str]
    tool_traces: List[ToolTrace] = Field(default_factory=list)
    reasoning: str
    action: Action
    model_action: Action
    is_fallback: bool = False
    lang_flag: str = ""

    @property
    def overridden(self) -> bool:
        return self.action != self.model_action

    def summary(self) -> Dict[str, Any]:
        """Compact dict for logging."""
        return {
            "role": self.role.value,
            "tools": [trace.tool_name for trace in self.tool_traces],
            "action": self.action,
            "fallback": self.is_fallback,
        }
