"""Builders shared by the table tests."""

from core.cards import Card, Deck
from core.game import Game, PlayerInGame, PlayerStatus


def cards(*labels: str) -> list[Card]:
    """Build a list of cards from strings like ``"AS"`` or ``"10H"``."""
    return [Card.from_string(label) for label in labels]


def seat(
    player_id: str,
    hand: list[Card] | None = None,
    bet: int = 0,
    status: PlayerStatus = PlayerStatus.PENDING_BET,
    name: str | None = None,
) -> PlayerInGame:
    """Build one participant."""
    return PlayerInGame(
        player_id=player_id,
        name=name or player_id,
        cards=list(hand or []),
        bet=bet,
        status=status,
    )


def make_game(
    *players: PlayerInGame,
    croupier: list[Card] | None = None,
    deck: list[Card] | None = None,
    active: int = 0,
) -> Game:
    """Build a game with a stacked deck that deals ``deck`` in order."""
    game = Game(
        players=list(players),
        active_player_index=active,
        croupier_cards=list(croupier or []),
        deck=Deck.stacked(deck or []),
    )
    game.phase = game.derived_phase()
    return game
