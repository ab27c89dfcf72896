"""Terminal rendering helpers shared by the table client and the API banner."""

from enum import Enum
from typing import (
    Any,
    Iterable,
)

from blackjack_agents.game.hand import Card

RESET = "\033[0m"

SUIT_SYMBOLS = {"spades": "♠", "hearts": "♥", "diamonds": "♦", "clubs": "♣"}


class AnsiColors(Enum):
    """ANSI color codes for terminal output."""

    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[33m"
    BLUE = "\033[94m"
    MAGENTA = "\033[95m"


def colorize(text: str, color: AnsiColors) -> str:
    return f"{color.value}{text}{RESET}"


def colored_print(text: str, color: AnsiColors, *args: Any, **kwargs: Any) -> None:
    """
    Print text in color.

    Args:
        text: The text to print
        color: The color to use (AnsiColors enum)
        args: Additional positional arguments for print
        kwargs: Additional keyword arguments for print
    """
    print(colorize(text, color), *args, **kwargs)


def format_card(card: Card) -> str:
    """Rank plus suit symbol; red suits are colored."""
    text = f"{card.rank}{SUIT_SYMBOLS[card.suit]}"
    if card.suit in ("hearts", "diamonds"):
        return colorize(text, AnsiColors.RED)
    return text


def format_cards(cards: Iterable[Card], hide_first: bool = False) -> str:
    """Space-separated cards; *hide_first* masks the dealer's hole card."""
    rendered = [format_card(card) for card in cards]
    if hide_first and rendered:
        rendered[0] = "??"
    return " ".join(rendered)
