"""Croupier (dealer) hand resolution."""

import logging
from typing import Sequence

from core.cards import Card
from core.game.events import EventEmitter, EventType
from core.game.models import Game
from core.hand import describe, hand_value, is_bust, is_soft
from core.rules import TableRules

logger = logging.getLogger(__name__)

DEALER_STANDS_ON = 17


def croupier_should_hit(cards: Sequence[Card], rules: TableRules) -> bool:
    """Determine if the croupier draws another card."""
    value = hand_value(cards)
    if value < DEALER_STANDS_ON:
        return True
    return value == DEALER_STANDS_ON and rules.dealer_hits_soft_17 and is_soft(cards)


def resolve_croupier_hand(
    game: Game,
    rules: TableRules,
    events: EventEmitter | None = None,
) -> Game:
    """
    Play out the croupier's hand once every participant has finished.

    Runs even when every participant busted or surrendered. Mutates and
    returns ``game``; callers pass the copy produced by the turn engine.

    Raises:
        ValueError: The round has not concluded
        DeckExhausted: The deck ran out while drawing
    """
    if not game.concluded:
        raise ValueError(f"Game {game.id} still has participants to act")

    events = events if events is not None else EventEmitter(game.id)
    cards = game.croupier_cards

    while croupier_should_hit(cards, rules):
        cards.append(game.deck.deal())
        events.emit_new(EventType.DEALER_HITS, hand_value=hand_value(cards))

    if is_bust(cards):
        events.emit_new(EventType.DEALER_BUSTS, hand_value=hand_value(cards))
    else:
        events.emit_new(EventType.DEALER_STANDS, hand_value=hand_value(cards))

    logger.info("Game %s: croupier finished on %s", game.id, describe(cards))
    return game
