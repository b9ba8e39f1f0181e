"""Domain errors raised by the table core."""


class BlackjackError(Exception):
    """Base class for every error raised by the table core."""


class InvalidPlay(BlackjackError):
    """A play that breaks a precondition. The game is left unchanged."""


class DeckExhausted(BlackjackError):
    """The deck ran out of cards in the middle of a round."""


class AccountError(BlackjackError):
    """A debit, credit or lookup against a player account failed."""


class InsufficientFunds(AccountError):
    """The account balance does not cover the requested debit."""

    def __init__(self, player_id: str, required: object, available: object) -> None:
        super().__init__(
            f"Player {player_id} cannot cover {required} (balance {available})"
        )
        self.player_id = player_id
        self.required = required
        self.available = available


class AccountNotFound(AccountError):
    """No account exists for the given player."""

    def __init__(self, player_id: str) -> None:
        super().__init__(f"No player with id: {player_id}")
        self.player_id = player_id


class DuplicatePlayerName(AccountError):
    """Another account already uses this name."""


class GameNotFound(BlackjackError):
    """No stored game has the requested identifier."""

    def __init__(self, game_id: str) -> None:
        super().__init__(f"No game with id: {game_id}")
        self.game_id = game_id


class GameNotJoinable(BlackjackError):
    """The game does not accept the joining player."""


class StorageError(BlackjackError):
    """The game store could not read or write a game."""
