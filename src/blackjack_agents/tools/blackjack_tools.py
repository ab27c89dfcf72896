"""
Role-scoped tool catalogs.

The same tool name (``get_my_hand``) returns different data depending on which role's catalog is
registered: the AI player sees its own hand with a soft flag, the dealer sees its full hand
including the hole card.  Observation tools are pure reads of the snapshot they were built from;
``hit`` and ``stand`` notify the caller-supplied callbacks so the game can move forward.
"""

import logging
from functools import partial
from typing import (
    Callable,
    List,
    Optional,
)

from pydantic import BaseModel

from blackjack_agents.core.schema import (
    ActionAccepted,
    DealerUpcardResult,
    GameSnapshot,
    MyHandResult,
    RevealHiddenResult,
    Role,
)
from blackjack_agents.game.hand import card_value
from blackjack_agents.tools import (
    TOOL_REGISTRY,
    ToolDescriptor,
    ToolRegistry,
)

logger = logging.getLogger(__name__)


class ActionCallbacks(BaseModel):
    """Game mutations triggered by the action tools."""

    on_hit: Optional[Callable[[], None]] = None
    on_stand: Optional[Callable[[], None]] = None


# ---------------------------------------------------------------------------
# Producers
# ---------------------------------------------------------------------------
def ai_player_hand(snapshot: GameSnapshot) -> MyHandResult:
    hand = snapshot.ai_player.hand
    return MyHandResult(cards=hand.cards, value=hand.value.best, soft=hand.value.is_soft)


def dealer_hand(snapshot: GameSnapshot) -> MyHandResult:
    hand = snapshot.dealer.hand
    return MyHandResult(cards=hand.cards, value=hand.value.best)


def dealer_upcard(snapshot: GameSnapshot) -> DealerUpcardResult:
    upcard = snapshot.dealer_upcard()
    return DealerUpcardResult(card=upcard, value=card_value(upcard))


def reveal_hidden(snapshot: GameSnapshot) -> RevealHiddenResult:
    cards = snapshot.dealer.hand.cards
    return RevealHiddenResult(revealed=True, card=cards[0] if cards else None)


def _action(name: str, callback: Optional[Callable[[], None]]) -> ActionAccepted:
    if callback is not None:
        callback()
    logger.debug("Action tool '%s' accepted", name)
    return ActionAccepted(tool=name, action=name)  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# Catalogs
# ---------------------------------------------------------------------------
def _action_tools(callbacks: ActionCallbacks) -> List[ToolDescriptor]:
    return [
        ToolDescriptor.from_function(
            "hit",
            partial(_action, "hit", callbacks.on_hit),
            description="Request another card. Increases hand value but risks busting over 21.",
        ),
        ToolDescriptor.from_function(
            "stand",
            partial(_action, "stand", callbacks.on_stand),
            description="Keep current hand and end turn. No more cards will be dealt.",
        ),
    ]


def build_role_tools(
    role: Role, snapshot: GameSnapshot, callbacks: Optional[ActionCallbacks] = None
) -> List[ToolDescriptor]:
    """Return the fixed catalog for *role*, bound to *snapshot*."""
    callbacks = callbacks or ActionCallbacks()
    role = Role(role)

    if role is Role.AI_PLAYER:
        observations = [
            ToolDescriptor.from_function(
                "get_my_hand",
                partial(ai_player_hand, snapshot),
                description="Returns your current hand (cards, value, whether it is soft).",
            ),
            ToolDescriptor.from_function(
                "get_dealer_upcard",
                partial(dealer_upcard, snapshot),
                description="Returns the dealer's visible face-up card and its value.",
            ),
        ]
    elif role is Role.DEALER:
        observations = [
            ToolDescriptor.from_function(
                "get_my_hand",
                partial(dealer_hand, snapshot),
                description="Returns your full hand including the hidden card (cards, value).",
            ),
            ToolDescriptor.from_function(
                "reveal_hidden",
                partial(reveal_hidden, snapshot),
                description="Reveals your face-down card to all players.",
            ),
        ]
    else:
        raise ValueError(f"Unknown role: {role!r}")

    return observations + _action_tools(callbacks)


def register_role_tools(
    role: Role,
    snapshot: GameSnapshot,
    callbacks: Optional[ActionCallbacks] = None,
    registry: ToolRegistry = TOOL_REGISTRY,
) -> List[ToolDescriptor]:
    """Clear *registry* and register exactly *role*'s catalog."""
    registry.clear()
    tools = build_role_tools(role, snapshot, callbacks)
    registry.register(role, tools)
    return tools
