"""Game, participant and play value types."""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum, auto
from uuid import uuid4

from core.cards import Card, Deck
from core.game.state import GamePhase, PlayerStatus, derive_phase


class Play(Enum):
    """Actions a participant can request."""

    INITIAL_BET = auto()
    HIT = auto()
    STAND = auto()
    DOUBLE = auto()
    SPLIT = auto()
    SURRENDER = auto()


class Outcome(Enum):
    """How a settled participant fared against the croupier."""

    BLACKJACK_WIN = auto()
    WIN = auto()
    PUSH = auto()
    HALF_LOSS = auto()
    LOSS = auto()


@dataclass(frozen=True)
class PlayRequest:
    """A single requested play, consumed once by the turn engine."""

    player_id: str
    play: Play
    amount: int = 0


@dataclass
class PlayerInGame:
    """
    One participant at the table.

    A player who splits owns two participants with the same ``player_id``
    and ``name``; each has its own cards, bet and status.
    """

    player_id: str
    name: str
    cards: list[Card] = field(default_factory=list)
    bet: int = 0
    status: PlayerStatus = PlayerStatus.PENDING_BET
    outcome: Outcome | None = None
    payout: Decimal = Decimal("0")


@dataclass
class Game:
    """A single round at one table."""

    id: str = field(default_factory=lambda: str(uuid4()))
    players: list[PlayerInGame] = field(default_factory=list)
    active_player_index: int = 0
    croupier_cards: list[Card] = field(default_factory=list)
    deck: Deck = field(default_factory=Deck)
    phase: GamePhase = GamePhase.BETTING
    concluded: bool = False

    @property
    def active_player(self) -> PlayerInGame:
        """Participant whose turn it is."""
        return self.players[self.active_player_index]

    def derived_phase(self) -> GamePhase:
        """Phase implied by the participants' statuses."""
        return derive_phase((p.status for p in self.players), self.concluded)

    def positions_of(self, player_id: str) -> list[int]:
        """Indices of every participant owned by ``player_id``."""
        return [i for i, p in enumerate(self.players) if p.player_id == player_id]
