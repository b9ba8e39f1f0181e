"""Cards and the dealing source."""

from dataclasses import dataclass
from enum import Enum, auto
from random import Random
from typing import Iterable, Iterator

from core.errors import DeckExhausted


class Suit(Enum):
    """Card suits."""

    CLUBS = auto()
    DIAMONDS = auto()
    HEARTS = auto()
    SPADES = auto()

    def __str__(self) -> str:
        return _SUIT_SYMBOLS[self]


_SUIT_SYMBOLS = {
    Suit.CLUBS: "♣",
    Suit.DIAMONDS: "♦",
    Suit.HEARTS: "♥",
    Suit.SPADES: "♠",
}


class Rank(Enum):
    """Card ranks, valued by their position (Ace high)."""

    TWO = 2
    THREE = 3
    FOUR = 4
    FIVE = 5
    SIX = 6
    SEVEN = 7
    EIGHT = 8
    NINE = 9
    TEN = 10
    JACK = 11
    QUEEN = 12
    KING = 13
    ACE = 14

    def __str__(self) -> str:
        return _RANK_LABELS.get(self, str(self.value))

    @property
    def points(self) -> int:
        """Blackjack points, counting an Ace as 11."""
        if self is Rank.ACE:
            return 11
        return min(self.value, 10)


_RANK_LABELS = {
    Rank.JACK: "J",
    Rank.QUEEN: "Q",
    Rank.KING: "K",
    Rank.ACE: "A",
}


@dataclass(frozen=True, slots=True)
class Card:
    """Immutable playing card."""

    rank: Rank
    suit: Suit

    def __str__(self) -> str:
        return f"{self.rank}{self.suit}"

    def __repr__(self) -> str:
        return f"Card({self.rank.name}, {self.suit.name})"

    @property
    def points(self) -> int:
        """Blackjack points (Ace = 11, face cards = 10)."""
        return self.rank.points

    @property
    def is_ace(self) -> bool:
        return self.rank is Rank.ACE

    @classmethod
    def from_string(cls, s: str) -> "Card":
        """Create a card from a string like '2♣', 'AS', 'Th' or '10d'."""
        s = s.strip().upper()
        if len(s) < 2:
            raise ValueError(f"Invalid card string: {s}")

        rank_str, suit_str = s[:-1], s[-1]
        ranks = {str(rank): rank for rank in Rank}
        ranks["T"] = Rank.TEN
        suits = {name[0]: suit for name, suit in Suit.__members__.items()}
        suits.update({symbol: suit for suit, symbol in _SUIT_SYMBOLS.items()})

        if rank_str not in ranks:
            raise ValueError(f"Invalid rank: {rank_str}")
        if suit_str not in suits:
            raise ValueError(f"Invalid suit: {suit_str}")
        return cls(ranks[rank_str], suits[suit_str])


def standard_cards(num_decks: int = 1) -> list[Card]:
    """Return every card of ``num_decks`` decks in suit/rank order."""
    return [
        Card(rank, suit)
        for _ in range(num_decks)
        for suit in Suit
        for rank in Rank
    ]


class Deck:
    """
    A shuffled sequence of one or more 52-card decks.

    Cards are dealt from a cursor that only moves forward; the deck is
    never reshuffled once dealing has started.
    """

    def __init__(self, num_decks: int = 1, rng: Random | None = None) -> None:
        """
        Initialize and shuffle a deck.

        Args:
            num_decks: Number of 52-card decks combined
            rng: Random number generator for shuffling
        """
        if num_decks < 1:
            raise ValueError("Deck must have at least 1 deck")

        self._num_decks = num_decks
        self._cards = standard_cards(num_decks)
        (rng or Random()).shuffle(self._cards)
        self._position = 0

    @classmethod
    def stacked(cls, cards: Iterable[Card], num_decks: int = 1) -> "Deck":
        """Build a deck that deals ``cards`` in the given order."""
        deck = cls.__new__(cls)
        deck._num_decks = num_decks
        deck._cards = list(cards)
        deck._position = 0
        return deck

    def deal(self) -> Card:
        """Deal the next card."""
        if self._position >= len(self._cards):
            raise DeckExhausted("No cards left in the deck")
        card = self._cards[self._position]
        self._position += 1
        return card

    def remaining(self) -> list[Card]:
        """Return the undealt cards in dealing order."""
        return self._cards[self._position:]

    @property
    def cards_remaining(self) -> int:
        return len(self._cards) - self._position

    @property
    def num_decks(self) -> int:
        return self._num_decks

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Deck):
            return NotImplemented
        return self._num_decks == other._num_decks and self.remaining() == other.remaining()

    __hash__ = None  # type: ignore[assignment]

    def __len__(self) -> int:
        return self.cards_remaining

    def __iter__(self) -> Iterator[Card]:
        return iter(self.remaining())
