"""Settlement: score every participant against the croupier and pay out."""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Sequence

from core.accounts import AccountService
from core.cards import Card
from core.errors import AccountError
from core.game.events import EventEmitter, EventType
from core.game.models import Game, Outcome, PlayerInGame
from core.game.state import PlayerStatus
from core.hand import hand_value, is_blackjack, is_bust
from core.rules import TableRules

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Settlement:
    """Result of settling one participant."""

    index: int
    player_id: str
    outcome: Outcome
    bet: int
    payout: Decimal
    credited: bool = True
    error: str | None = None


def classify(
    participant: PlayerInGame,
    croupier_cards: Sequence[Card],
    rules: TableRules,
) -> tuple[Outcome, Decimal]:
    """
    Compare one finished participant against the croupier's hand.

    The payout is the total amount handed back to the player, stake
    included; the stake itself was debited when the bet was placed.

    Returns:
        (outcome, payout)
    """
    bet = Decimal(participant.bet)

    if participant.status is PlayerStatus.BUST:
        return Outcome.LOSS, Decimal("0")
    if participant.status is PlayerStatus.SURRENDER:
        return Outcome.HALF_LOSS, bet * rules.surrender_refund
    if participant.status is not PlayerStatus.STAND:
        raise ValueError(f"Cannot settle a participant in status {participant.status}")

    player_bj = is_blackjack(participant.cards)
    croupier_bj = is_blackjack(croupier_cards)

    if player_bj and not croupier_bj:
        return Outcome.BLACKJACK_WIN, bet * (1 + rules.blackjack_payout)
    if player_bj and croupier_bj:
        return Outcome.PUSH, bet
    if is_bust(croupier_cards):
        return Outcome.WIN, bet * 2

    player_value = hand_value(participant.cards)
    croupier_value = hand_value(croupier_cards)
    if player_value > croupier_value:
        return Outcome.WIN, bet * 2
    if player_value == croupier_value:
        return Outcome.PUSH, bet
    return Outcome.LOSS, Decimal("0")


async def settle_round(
    game: Game,
    accounts: AccountService,
    rules: TableRules,
    events: EventEmitter | None = None,
) -> list[Settlement]:
    """
    Settle every participant of a concluded round.

    Outcome and payout are recorded on each participant. A failed credit
    only marks that participant's settlement as not credited; the others
    still go through.
    """
    events = events if events is not None else EventEmitter(game.id)
    settlements = []

    for index, participant in enumerate(game.players):
        outcome, payout = classify(participant, game.croupier_cards, rules)
        participant.outcome = outcome
        participant.payout = payout

        credited, error = True, None
        if payout > 0:
            try:
                await accounts.credit(participant.player_id, payout)
            except AccountError as exc:
                credited, error = False, str(exc)
                logger.warning(
                    "Game %s: payout of %s to %s failed: %s",
                    game.id, payout, participant.player_id, exc,
                )
                events.emit_new(
                    EventType.PAYOUT_FAILED,
                    player_id=participant.player_id,
                    index=index,
                    amount=str(payout),
                    reason=error,
                )

        if credited:
            events.emit_new(
                EventType.PAYOUT,
                player_id=participant.player_id,
                index=index,
                outcome=outcome.name,
                amount=str(payout),
            )

        settlements.append(
            Settlement(
                index=index,
                player_id=participant.player_id,
                outcome=outcome,
                bet=participant.bet,
                payout=payout,
                credited=credited,
                error=error,
            )
        )

    logger.info(
        "Game %s: settled %d participants, paid %s",
        game.id, len(settlements), sum((s.payout for s in settlements if s.credited), Decimal("0")),
    )
    return settlements
