"""
Exceptions shared across layers.

All of them derive from GameError. They intentionally do not derive from ValueError:
pydantic would otherwise wrap them in its own ValidationError when raised from a validator.
"""


class GameError(Exception):
    """Base class for anything that goes wrong while handling a game of chess."""


class IllegalMoveError(GameError):
    """The requested move is not allowed in the current position."""


class MalformedPositionError(GameError):
    """A FEN string (board-description) could not be interpreted."""


class NoLegalMovesError(GameError):
    """The AI was asked to move, but its side has no legal moves (checkmate or stalemate)."""


class PuzzleNotFoundError(GameError):
    """No puzzle matches the requested id / difficulty."""


class InvalidRequestError(GameError):
    """Data coming in through the boundary models does not make sense."""


class SearchConfigError(GameError):
    """The search settings fall outside of what the AI supports."""
