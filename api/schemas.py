"""Pydantic schemas for API requests and responses."""

from pydantic import BaseModel, ConfigDict, Field
from typing import Literal


# Requests
class CreateGameRequest(BaseModel):
    """Request to open a new table."""

    player_name: str = Field(..., min_length=1, max_length=50)


class JoinGameRequest(BaseModel):
    """Request to take a seat at an existing table."""

    player_name: str = Field(..., min_length=1, max_length=50)


class PlayRequestBody(BaseModel):
    """Request for a participant action."""

    player_id: str
    play: Literal["INITIAL_BET", "HIT", "STAND", "DOUBLE", "SPLIT", "SURRENDER"]
    amount: int = Field(default=0, description="Bet amount, only read for INITIAL_BET")


class RenamePlayerRequest(BaseModel):
    """Request to change a player's name."""

    name: str = Field(..., min_length=1, max_length=50)


# Responses
class CardResponse(BaseModel):
    """Card representation."""

    model_config = ConfigDict(from_attributes=True)

    rank: str
    suit: str
    points: int
    hidden: bool = False


class ParticipantResponse(BaseModel):
    """One seat at the table."""

    player_id: str
    name: str
    cards: list[CardResponse]
    value: int
    bet: int
    status: str
    outcome: str | None = None
    payout: float = 0.0


class CroupierResponse(BaseModel):
    """Croupier hand; the hole card stays hidden until the round concludes."""

    cards: list[CardResponse]
    value: int | None


class GameResponse(BaseModel):
    """Current game state."""

    id: str
    phase: str
    concluded: bool
    active_player_index: int
    players: list[ParticipantResponse]
    croupier: CroupierResponse
    cards_remaining: int


class SettlementResponse(BaseModel):
    """Result of settling one participant."""

    index: int
    player_id: str
    outcome: Literal["BLACKJACK_WIN", "WIN", "PUSH", "HALF_LOSS", "LOSS"]
    bet: int
    payout: float
    credited: bool
    error: str | None = None


class PlayResponse(BaseModel):
    """Game after a play, with settlements when the play ended the round."""

    game: GameResponse
    settlements: list[SettlementResponse] = []


class PlayerResponse(BaseModel):
    """Player account."""

    id: str
    name: str
    money: float
