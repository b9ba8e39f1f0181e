"""Player API endpoints."""

from fastapi import APIRouter

from api.persistence import get_account_service, get_orchestrator
from api.schemas import PlayerResponse, RenamePlayerRequest
from core.accounts import Account

router = APIRouter()


def _account_to_response(account: Account) -> PlayerResponse:
    return PlayerResponse(id=account.id, name=account.name, money=float(account.money))


@router.get("/ranking")
async def ranking() -> list[PlayerResponse]:
    """All players, richest first."""
    accounts = await get_account_service()
    return [_account_to_response(a) for a in await accounts.ranking()]


@router.get("/{player_id}")
async def get_player(player_id: str) -> PlayerResponse:
    accounts = await get_account_service()
    return _account_to_response(await accounts.get(player_id))


@router.put("/{player_id}")
async def rename_player(player_id: str, request: RenamePlayerRequest) -> PlayerResponse:
    """Rename a player and refresh the name shown in their games."""
    accounts = await get_account_service()
    account = await accounts.rename(player_id, request.name)

    orchestrator = await get_orchestrator()
    await orchestrator.update_player_name_in_games(account)
    return _account_to_response(account)
