"""
Card and hand value model.

The agent loop only ever reads hands through tool results, so this module is kept to the
small set of rules the tools and the fallback strategy need: card values, soft/hard totals and
bust/blackjack detection.
"""

import random
from typing import (
    List,
    Literal,
    Optional,
)

from pydantic import (
    BaseModel,
    Field,
    computed_field,
)

Suit = Literal["spades", "hearts", "diamonds", "clubs"]
Rank = Literal["A", "2", "3", "4", "5", "6", "7", "8", "9", "10", "J", "Q", "K"]

SUITS: List[Suit] = ["spades", "hearts", "diamonds", "clubs"]
RANKS: List[Rank] = ["A", "2", "3", "4", "5", "6", "7", "8", "9", "10", "J", "Q", "K"]


class Card(BaseModel):
    """A single playing card."""

    rank: Rank
    suit: Suit

    def __str__(self) -> str:
        return f"{self.rank}{self.suit[0].upper()}"


class HandValue(BaseModel):
    """Totals derived from a list of cards."""

    hard: int
    soft: int
    best: int
    is_soft: bool
    is_bust: bool
    is_blackjack: bool


def card_value(card: Optional[Card]) -> int:
    """Return the blackjack value of *card* (aces count 11, missing card counts 0)."""
    if card is None:
        return 0
    if card.rank == "A":
        return 11
    if card.rank in ("K", "Q", "J"):
        return 10
    return int(card.rank)


def calculate_hand_value(cards: List[Card]) -> HandValue:
    """Compute hard/soft/best totals for *cards*."""
    total = 0
    ace_count = 0
    for card in cards:
        if card.rank == "A":
            ace_count += 1
        total += card_value(card)

    # Demote aces from 11 to 1 until the hand fits
    while total > 21 and ace_count > 0:
        total -= 10
        ace_count -= 1

    hard = sum(1 if c.rank == "A" else card_value(c) for c in cards)
    soft = total
    return HandValue(
        hard=hard,
        soft=soft,
        best=soft if soft <= 21 else hard,
        is_soft=ace_count > 0 and soft <= 21,
        is_bust=soft > 21 and hard > 21,
        is_blackjack=len(cards) == 2 and soft == 21,
    )


class Hand(BaseModel):
    """Cards held by one participant; the value is always derived from the cards."""

    cards: List[Card] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def value(self) -> HandValue:
        return calculate_hand_value(self.cards)

    def add(self, card: Card) -> "Hand":
        """Return a new hand with *card* appended."""
        return Hand(cards=[*self.cards, card])


def new_deck(rng: random.Random | None = None) -> List[Card]:
    """Return a freshly shuffled 52-card deck."""
    deck = [Card(rank=rank, suit=suit) for suit in SUITS for rank in RANKS]
    (rng or random.Random()).shuffle(deck)
    return deck
