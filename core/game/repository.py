"""Game persistence contract."""

import copy
from abc import ABC, abstractmethod

from core.errors import GameNotFound
from core.game.models import Game


class GameRepository(ABC):
    """Abstract game store.

    Implementations hand out independent copies: a game read from the
    store is a consistent snapshot that later plays never mutate.
    """

    @abstractmethod
    async def find(self, game_id: str) -> Game:
        """Get a game, raising GameNotFound if missing."""
        ...

    @abstractmethod
    async def find_all(self) -> list[Game]:
        """Get every stored game."""
        ...

    @abstractmethod
    async def save(self, game: Game) -> Game:
        """Insert or replace a game."""
        ...

    @abstractmethod
    async def delete(self, game_id: str) -> None:
        """Delete a game, raising GameNotFound if missing."""
        ...


class InMemoryGameRepository(GameRepository):
    """In-memory game store for local development and tests."""

    def __init__(self) -> None:
        self._games: dict[str, Game] = {}

    async def find(self, game_id: str) -> Game:
        if game_id not in self._games:
            raise GameNotFound(game_id)
        return copy.deepcopy(self._games[game_id])

    async def find_all(self) -> list[Game]:
        return [copy.deepcopy(game) for game in self._games.values()]

    async def save(self, game: Game) -> Game:
        self._games[game.id] = copy.deepcopy(game)
        return game

    async def delete(self, game_id: str) -> None:
        if self._games.pop(game_id, None) is None:
            raise GameNotFound(game_id)
