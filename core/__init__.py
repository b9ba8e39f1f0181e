"""Blackjack table core - 100% transport-agnostic."""

from core.cards import Card, Deck, Rank, Suit
from core.hand import hand_value, is_blackjack, is_bust
from core.rules import TableRules

__all__ = [
    "Card",
    "Deck",
    "Rank",
    "Suit",
    "hand_value",
    "is_blackjack",
    "is_bust",
    "TableRules",
]
