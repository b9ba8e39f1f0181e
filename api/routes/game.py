"""Game API endpoints."""

from fastapi import APIRouter, Response

from api.persistence import get_orchestrator
from api.schemas import (
    CardResponse,
    CreateGameRequest,
    CroupierResponse,
    GameResponse,
    JoinGameRequest,
    ParticipantResponse,
    PlayRequestBody,
    PlayResponse,
    SettlementResponse,
)
from core.cards import Card
from core.game.models import Game, Play, PlayerInGame, PlayRequest
from core.game.settlement import Settlement
from core.hand import hand_value

router = APIRouter()


def _card_to_response(card: Card, hidden: bool = False) -> CardResponse:
    """Convert a Card to CardResponse."""
    if hidden:
        return CardResponse(rank="?", suit="?", points=0, hidden=True)
    return CardResponse(rank=str(card.rank), suit=str(card.suit), points=card.points)


def _participant_to_response(participant: PlayerInGame) -> ParticipantResponse:
    """Convert a PlayerInGame to ParticipantResponse."""
    return ParticipantResponse(
        player_id=participant.player_id,
        name=participant.name,
        cards=[_card_to_response(c) for c in participant.cards],
        value=hand_value(participant.cards),
        bet=participant.bet,
        status=participant.status.name,
        outcome=participant.outcome.name if participant.outcome else None,
        payout=float(participant.payout),
    )


def game_to_response(game: Game) -> GameResponse:
    """Convert a game to its public view, hiding the hole card mid-round."""
    hide_hole = not game.concluded
    croupier = CroupierResponse(
        cards=[
            _card_to_response(card, hidden=hide_hole and i == 1)
            for i, card in enumerate(game.croupier_cards)
        ],
        value=None if hide_hole else hand_value(game.croupier_cards),
    )
    return GameResponse(
        id=game.id,
        phase=game.phase.name,
        concluded=game.concluded,
        active_player_index=game.active_player_index,
        players=[_participant_to_response(p) for p in game.players],
        croupier=croupier,
        cards_remaining=game.deck.cards_remaining,
    )


def _settlement_to_response(settlement: Settlement) -> SettlementResponse:
    return SettlementResponse(
        index=settlement.index,
        player_id=settlement.player_id,
        outcome=settlement.outcome.name,
        bet=settlement.bet,
        payout=float(settlement.payout),
        credited=settlement.credited,
        error=settlement.error,
    )


@router.post("", status_code=201)
async def create_game(request: CreateGameRequest) -> GameResponse:
    """Open a new table seating the requesting player."""
    orchestrator = await get_orchestrator()
    game = await orchestrator.create_game(request.player_name)
    return game_to_response(game)


@router.get("/{game_id}")
async def get_game(game_id: str) -> GameResponse:
    """Get current game state."""
    orchestrator = await get_orchestrator()
    return game_to_response(await orchestrator.get_game(game_id))


@router.post("/{game_id}/join")
async def join_game(game_id: str, request: JoinGameRequest) -> GameResponse:
    """Take a seat at a table that has not been dealt yet."""
    orchestrator = await get_orchestrator()
    game = await orchestrator.join_game(game_id, request.player_name)
    return game_to_response(game)


@router.post("/{game_id}/play")
async def play(game_id: str, request: PlayRequestBody) -> PlayResponse:
    """Execute a participant action."""
    orchestrator = await get_orchestrator()
    result = await orchestrator.execute_play(
        game_id,
        PlayRequest(player_id=request.player_id, play=Play[request.play], amount=request.amount),
    )
    return PlayResponse(
        game=game_to_response(result.game),
        settlements=[_settlement_to_response(s) for s in result.settlements],
    )


@router.delete("/{game_id}", status_code=204)
async def delete_game(game_id: str) -> Response:
    """Delete a game."""
    orchestrator = await get_orchestrator()
    await orchestrator.delete_game(game_id)
    return Response(status_code=204)
