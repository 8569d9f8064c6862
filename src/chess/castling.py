"""Helpers for implementing Castling rules. Need to be imported by multiple sources"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Self

from src.chess.pieces import Color
from src.chess.square import Square


class CastlingDirection(Enum):
    """The four castling directions. Values represent their encodings in FEN string."""

    WHITE_KING_SIDE = "K"
    WHITE_QUEEN_SIDE = "Q"
    BLACK_KING_SIDE = "k"
    BLACK_QUEEN_SIDE = "q"

    @property
    def color(self) -> Color:
        return Color.WHITE if self.value.isupper() else Color.BLACK


# order in which rights are written in a FEN string
CASTLING_ORDER: tuple[CastlingDirection, ...] = (
    CastlingDirection.WHITE_KING_SIDE,
    CastlingDirection.WHITE_QUEEN_SIDE,
    CastlingDirection.BLACK_KING_SIDE,
    CastlingDirection.BLACK_QUEEN_SIDE,
)


@dataclass(frozen=True)
class CastlingSquares:
    """
    Store the squares where king/rook start from/end up in by castling.
    NOTE: If castling rights have not been revoked, we already know the king / rook are still at their starting squares.
    """

    king_from: Square
    king_to: Square
    rook_from: Square
    rook_to: Square

    @classmethod
    def from_algebraic(cls, k_from: str, k_to: str, r_from: str, r_to: str) -> Self:
        """Convenience method: to make mapping shown below (from CastlingDirection) more readable"""
        king_from = Square.from_algebraic(k_from)
        king_to = Square.from_algebraic(k_to)
        rook_from = Square.from_algebraic(r_from)
        rook_to = Square.from_algebraic(r_to)
        return cls(king_from, king_to, rook_from, rook_to)

    @property
    def king_transit(self) -> Square:
        """The square the king passes over. Coincides with the rook's destination."""
        return self.rook_to

    @property
    def squares_between(self) -> list[Square]:
        """All squares between king and rook. These must be empty to be allowed to castle."""
        low, high = sorted((self.king_from.file, self.rook_from.file))
        return [Square(self.king_from.rank, file) for file in range(low + 1, high)]


# The moves (in classical chess) made when castling
CASTLING_RULES: dict[CastlingDirection, CastlingSquares] = {
    CastlingDirection.WHITE_KING_SIDE: CastlingSquares.from_algebraic(
        "e1", "g1", "h1", "f1"
    ),
    CastlingDirection.WHITE_QUEEN_SIDE: CastlingSquares.from_algebraic(
        "e1", "c1", "a1", "d1"
    ),
    CastlingDirection.BLACK_KING_SIDE: CastlingSquares.from_algebraic(
        "e8", "g8", "h8", "f8"
    ),
    CastlingDirection.BLACK_QUEEN_SIDE: CastlingSquares.from_algebraic(
        "e8", "c8", "a8", "d8"
    ),
}


def castling_options(color: Color) -> list[CastlingDirection]:
    """Both directions a given player could castle in"""
    return [direction for direction in CASTLING_ORDER if direction.color == color]


def castling_direction_for(color: Color, king_to: Square) -> Optional[CastlingDirection]:
    """Find which castling direction (if any) a two-file king move towards `king_to` corresponds to."""
    for direction in castling_options(color):
        if CASTLING_RULES[direction].king_to == king_to:
            return direction
    return None


def direction_for_rook_home(square: Square) -> Optional[CastlingDirection]:
    """Which castling right is tied to the rook standing on this (home) square."""
    for direction, rule in CASTLING_RULES.items():
        if rule.rook_from == square:
            return direction
    return None
