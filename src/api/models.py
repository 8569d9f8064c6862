"""Requests and Response models"""

from typing import Optional

from pydantic import BaseModel, field_validator

from src.chess.fen import is_valid_square
from src.chess.pieces import PROMOTION_OPTIONS
from src.core.exceptions import InvalidRequestError
from src.core.shared_types import Color, Difficulty, Status

SquareName = str
PieceCode = str
MoveUCI = str


def _validate_square_name(value: str) -> str:
    if len(value) != 2 or not is_valid_square(value):
        raise InvalidRequestError(
            f"Cannot interpret {value!r} as a valid square name."
        )
    return value


# --- REQUEST MODELS ---
class LoadPositionRequest(BaseModel):
    fen: str

    @field_validator("fen")
    @classmethod
    def validate_fen(cls, value: str) -> str:
        # only the shape is checked here. The engine rejects anything it cannot interpret.
        parts = value.strip().split(" ")
        if len(parts) != 6:
            raise InvalidRequestError(
                "FEN string must contain 6 space-separated parts."
            )
        return value.strip()


class MoveRequest(BaseModel):
    from_square: SquareName
    to_square: SquareName
    promote_to: Optional[str] = None

    @field_validator(*["from_square", "to_square"])
    @classmethod
    def validate_square(cls, value: str) -> str:
        return _validate_square_name(value)

    @field_validator("promote_to")
    @classmethod
    def validate_promotion(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        if value.lower() not in PROMOTION_OPTIONS:
            raise InvalidRequestError(
                f"A pawn cannot promote to {value!r}. Choose one of {sorted(PROMOTION_OPTIONS)}."
            )
        return value.lower()


class LegalMovesRequest(BaseModel):
    """Moves of the piece on `square`, or else all moves of `color` (the side to move if neither is given)."""

    square: Optional[SquareName] = None
    color: Optional[Color] = None

    @field_validator("square")
    @classmethod
    def validate_square(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        return _validate_square_name(value)


class AIMoveRequest(BaseModel):
    difficulty: Difficulty = Difficulty.MEDIUM
    color: Optional[Color] = None  # defaults to the side to move


class PuzzleRequest(BaseModel):
    """Pick a puzzle by id, or a random one (optionally of a given difficulty)."""

    puzzle_id: Optional[int] = None
    difficulty: Optional[Difficulty] = None

    @field_validator("puzzle_id")
    @classmethod
    def validate_puzzle_id(cls, value: Optional[int]) -> Optional[int]:
        if value is not None and value < 1:
            raise InvalidRequestError(f"Puzzle ids start at 1, got {value}.")
        return value


# --- RESPONSE MODELS ---
class GameStateResponse(BaseModel):
    fen: str
    pieces: dict[SquareName, PieceCode]
    side_to_move: Color
    in_check: bool
    status: Status
    move_history: list[MoveUCI]


class LegalMovesResponse(BaseModel):
    color: Optional[Color]
    square: Optional[SquareName]
    legal_moves: list[MoveUCI]


class AIMoveResponse(BaseModel):
    move: MoveUCI
    difficulty: Difficulty
    state: GameStateResponse


class PuzzleResponse(BaseModel):
    puzzle_id: int
    name: str
    theme: str
    difficulty: Difficulty
    description: str
    fen: str
    solution: list[str]
    mate_in: int
    state: GameStateResponse
