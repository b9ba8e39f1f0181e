"""Table rules."""

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class TableRules:
    """
    Blackjack table rules configuration.

    Everything here is a house policy that the engine, the croupier and the
    settlement pass read instead of hardcoding.
    """

    # Deck configuration
    num_decks: int = 1

    # Seating
    playing_positions: int = 7
    simultaneous_bets_allowed: int = 2

    # Dealer rules
    dealer_hits_soft_17: bool = False  # S17 by default

    # Blackjack winnings per unit bet (3:2 = 1.5, 6:5 = 1.2)
    blackjack_payout: Decimal = Decimal("1.5")

    # Fraction of the bet returned on surrender
    surrender_refund: Decimal = Decimal("0.5")

    def __post_init__(self) -> None:
        """Validate rule combinations."""
        if self.num_decks < 1 or self.num_decks > 8:
            raise ValueError("num_decks must be between 1 and 8")
        if self.playing_positions < 1:
            raise ValueError("playing_positions must be at least 1")
        if self.simultaneous_bets_allowed < 1:
            raise ValueError("simultaneous_bets_allowed must be at least 1")
        if self.blackjack_payout < 1:
            raise ValueError("blackjack_payout must be at least 1")
        if not Decimal("0") <= self.surrender_refund <= Decimal("1"):
            raise ValueError("surrender_refund must be between 0 and 1")
