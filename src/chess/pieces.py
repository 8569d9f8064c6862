"""Defines the types of chess pieces"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Self


class PieceType(Enum):
    PAWN = auto()
    KNIGHT = auto()
    BISHOP = auto()
    ROOK = auto()
    QUEEN = auto()
    KING = auto()


class Color(Enum):
    WHITE = auto()
    BLACK = auto()

    @property
    def opponent(self) -> "Color":
        return Color.BLACK if self == Color.WHITE else Color.WHITE


FEN_TO_PIECE: dict[str, PieceType] = {
    "p": PieceType.PAWN,
    "n": PieceType.KNIGHT,
    "b": PieceType.BISHOP,
    "r": PieceType.ROOK,
    "q": PieceType.QUEEN,
    "k": PieceType.KING,
}

PIECE_TO_FEN: dict[PieceType, str] = {value: key for key, value in FEN_TO_PIECE.items()}

COLOR_TO_CODE: dict[Color, str] = {Color.WHITE: "w", Color.BLACK: "b"}
CODE_TO_COLOR: dict[str, Color] = {value: key for key, value in COLOR_TO_CODE.items()}

# pieces a pawn is allowed to turn into, keyed by the letter used in move intents
PROMOTION_OPTIONS: dict[str, PieceType] = {
    "q": PieceType.QUEEN,
    "r": PieceType.ROOK,
    "b": PieceType.BISHOP,
    "n": PieceType.KNIGHT,
}


@dataclass(frozen=True)
class Piece:
    type: PieceType
    color: Color

    @classmethod
    def from_fen(cls, character: str) -> Self:
        # lower case: Black pieces, upper case: White pieces
        color = Color.WHITE if character.isupper() else Color.BLACK
        piece_type = FEN_TO_PIECE[character.lower()]
        return cls(piece_type, color)

    def to_fen(self) -> str:
        return (
            PIECE_TO_FEN[self.type].upper()
            if self.color == Color.WHITE
            else PIECE_TO_FEN[self.type].lower()
        )

    @classmethod
    def from_code(cls, code: str) -> Self:
        """Two character encoding: color letter + piece letter, e.g. 'wk' for the white king."""
        if len(code) != 2 or code[0] not in CODE_TO_COLOR or code[1] not in FEN_TO_PIECE:
            raise ValueError(f"Cannot interpret {code!r} as a piece code.")
        return cls(FEN_TO_PIECE[code[1]], CODE_TO_COLOR[code[0]])

    def to_code(self) -> str:
        return f"{COLOR_TO_CODE[self.color]}{PIECE_TO_FEN[self.type]}"

    def promoted_to(self, new_type: PieceType) -> Self:
        """Pieces are immutable: promotion hands back a new piece of the same color."""
        return type(self)(new_type, self.color)
