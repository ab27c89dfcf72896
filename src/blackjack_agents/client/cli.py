"""Terminal table: plays rounds between the AI player and the dealer and prints their thinking."""

from __future__ import annotations

import json
import logging
import random
from typing import List

from blackjack_agents.agent.model_channel import load_channel
from blackjack_agents.agent.runner import TurnOrchestrator
from blackjack_agents.agent.session import SessionContext
from blackjack_agents.common import (
    AnsiColors,
    colored_print,
    format_cards,
)
from blackjack_agents.core.i18n import ThinkingLang
from blackjack_agents.core.schema import (
    GameSnapshot,
    Participant,
    Role,
    TurnOutcome,
)
from blackjack_agents.game.hand import (
    Card,
    Hand,
    new_deck,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Table state
# ---------------------------------------------------------------------------
class Table:
    """Minimal dealing logic so the agents have something to look at."""

    def __init__(self, rng: random.Random | None = None) -> None:
        self.rng = rng or random.Random()
        self.round_number = 0
        self.deck: List[Card] = []
        self.ai_player = Participant(role="ai_player")
        self.dealer = Participant(role="dealer", chips=0)
        self.dealer_hidden_revealed = False

    def _draw(self) -> Card:
        if not self.deck:
            self.deck = new_deck(self.rng)
        return self.deck.pop()

    def deal(self, bet: int = 50) -> None:
        """Start a round: two cards each, the dealer's first card face down."""
        self.round_number += 1
        self.dealer_hidden_revealed = False
        ai_cards, dealer_cards = [], []
        for _ in range(2):
            ai_cards.append(self._draw())
            dealer_cards.append(self._draw())
        self.ai_player = self.ai_player.model_copy(
            update={"hand": Hand(cards=ai_cards), "bet": bet, "status": "active"}
        )
        self.dealer = self.dealer.model_copy(
            update={"hand": Hand(cards=dealer_cards), "status": "active"}
        )

    def seat(self, role: Role) -> Participant:
        return self.ai_player if role is Role.AI_PLAYER else self.dealer

    def hit(self, role: Role) -> None:
        seat = self.seat(role)
        hand = seat.hand.add(self._draw())
        status = "bust" if hand.value.is_bust else seat.status
        updated = seat.model_copy(update={"hand": hand, "status": status})
        if role is Role.AI_PLAYER:
            self.ai_player = updated
        else:
            self.dealer = updated

    def stand(self, role: Role) -> None:
        if role is Role.AI_PLAYER:
            self.ai_player = self.ai_player.model_copy(update={"status": "stand"})
        else:
            self.dealer = self.dealer.model_copy(update={"status": "stand"})

    def snapshot(self) -> GameSnapshot:
        return GameSnapshot(
            round_number=self.round_number,
            deck_remaining=len(self.deck),
            ai_player=self.ai_player,
            dealer=self.dealer,
            dealer_hidden_revealed=self.dealer_hidden_revealed,
        )


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------
def print_outcome(outcome: TurnOutcome) -> None:
    """Render one turn like the thinking panel: tools, reasoning, decision."""
    tag = " [fallback]" if outcome.is_fallback else ""
    colored_print(f"\n{outcome.lang_flag} {outcome.role.value}{tag}", AnsiColors.MAGENTA)
    colored_print(f"  tools: {', '.join(outcome.available_tools)}", AnsiColors.BLUE)
    for trace in outcome.tool_traces:
        result = json.dumps(trace.result.model_dump(mode="json", exclude={"tool"}))
        colored_print(f"  → {trace.tool_name}: {result}", AnsiColors.GREEN)
    colored_print(f"  💭 {outcome.reasoning}", AnsiColors.YELLOW)
    suffix = f" (house rules over '{outcome.model_action}')" if outcome.overridden else ""
    colored_print(f"  ⇒ {outcome.action.upper()}{suffix}", AnsiColors.RED)


def _hand_text(seat: Participant) -> str:
    return f"{format_cards(seat.hand.cards)} ({seat.hand.value.best})"


# ---------------------------------------------------------------------------
# Round loop
# ---------------------------------------------------------------------------
def play_turns(
    orchestrator: TurnOrchestrator, table: Table, role: Role, lang: ThinkingLang
) -> List[TurnOutcome]:
    """Ask *role* to act until it stands or busts."""
    outcomes: List[TurnOutcome] = []
    while table.seat(role).status == "active" and table.seat(role).hand.value.best < 21:
        outcome = orchestrator.run_agent_turn(role, table.snapshot(), lang)
        outcomes.append(outcome)
        print_outcome(outcome)
        if outcome.action == "hit":
            table.hit(role)
        else:
            table.stand(role)
    return outcomes


def play_round(orchestrator: TurnOrchestrator, table: Table, lang: ThinkingLang) -> str:
    """Deal and play one round; return ``win``, ``lose`` or ``push`` from the AI player's seat."""
    table.deal()
    colored_print(f"\n=== Round {table.round_number} ===", AnsiColors.YELLOW)
    dealer_cards = format_cards(table.dealer.hand.cards, hide_first=True)
    colored_print(f"Dealer: {dealer_cards}; Alex: {_hand_text(table.ai_player)}", AnsiColors.BLUE)

    play_turns(orchestrator, table, Role.AI_PLAYER, lang)
    if table.ai_player.status != "bust":
        table.dealer_hidden_revealed = True
        play_turns(orchestrator, table, Role.DEALER, lang)

    player_value = table.ai_player.hand.value.best
    dealer_value = table.dealer.hand.value.best
    if table.ai_player.status == "bust":
        result = "lose"
    elif table.dealer.status == "bust" or player_value > dealer_value:
        result = "win"
    elif player_value < dealer_value:
        result = "lose"
    else:
        result = "push"

    colored_print(
        f"\nAlex {_hand_text(table.ai_player)} vs dealer {_hand_text(table.dealer)}: {result}",
        AnsiColors.GREEN if result == "win" else AnsiColors.RED,
    )
    return result


def run_table(
    rounds: int = 1,
    lang: ThinkingLang = ThinkingLang.EN,
    channel_name: str | None = None,
    offline: bool = False,
    seed: int | None = None,
) -> List[str]:
    """Play *rounds* rounds in the terminal."""
    session = SessionContext()
    if offline:
        session.disable_model()
    orchestrator = TurnOrchestrator(load_channel(channel_name), session=session)
    table = Table(random.Random(seed))

    colored_print("🃏  Blackjack agents table", AnsiColors.YELLOW)
    results = [play_round(orchestrator, table, ThinkingLang(lang)) for _ in range(rounds)]
    logger.info("Results: %s", results)
    return results
