"""Hand scoring for blackjack.

Every function takes a plain sequence of cards and has no side effects, so
the same helpers score player hands, split hands and the croupier's hand.
"""

from typing import Sequence

from core.cards import Card

BLACKJACK = 21


def hand_value(cards: Sequence[Card]) -> int:
    """
    Calculate the best hand value.

    Aces start at 11 and drop to 1 one at a time while the total is over
    21. Returns the highest value that doesn't bust, or the lowest bust
    value when every Ace already counts as 1.
    """
    total = sum(card.points for card in cards)
    aces = sum(1 for card in cards if card.is_ace)

    while total > BLACKJACK and aces > 0:
        total -= 10
        aces -= 1

    return total


def is_soft(cards: Sequence[Card]) -> bool:
    """
    Check if the hand is soft (has an ace counted as 11).

    A hand is soft if it contains an ace that can be counted as 11
    without busting.
    """
    if not any(card.is_ace for card in cards):
        return False
    hard_total = sum(1 if card.is_ace else card.points for card in cards)
    return hard_total + 10 <= BLACKJACK


def is_bust(cards: Sequence[Card]) -> bool:
    return hand_value(cards) > BLACKJACK


def is_blackjack(cards: Sequence[Card]) -> bool:
    """A natural: exactly two cards worth 21."""
    return len(cards) == 2 and hand_value(cards) == BLACKJACK


def is_pair(cards: Sequence[Card]) -> bool:
    """Two cards of the same rank (K-K pairs, K-Q does not)."""
    return len(cards) == 2 and cards[0].rank == cards[1].rank


def describe(cards: Sequence[Card]) -> str:
    """Render a hand for logs, e.g. ``A♠ 6♥ (soft 17)``."""
    cards_str = " ".join(str(card) for card in cards)
    if is_blackjack(cards):
        return f"{cards_str} (BLACKJACK)"
    if is_bust(cards):
        return f"{cards_str} (BUST)"
    if is_soft(cards):
        return f"{cards_str} (soft {hand_value(cards)})"
    return f"{cards_str} ({hand_value(cards)})"
