"""
Parsing and writing FEN strings (the board-description notation).

The same parsing is used when loading a position directly and when loading a puzzle from the catalog.
Parsing is strict: anything that does not follow the notation gets rejected with a MalformedPositionError,
before any state is built from it.
"""

from dataclasses import dataclass
from itertools import combinations
from typing import Callable, Optional, Self

from src.chess.castling import CASTLING_ORDER, CastlingDirection
from src.chess.pieces import CODE_TO_COLOR, COLOR_TO_CODE, FEN_TO_PIECE, Color
from src.chess.square import BOARD_DIMENSIONS, FILE_NAMES, Square
from src.core.exceptions import MalformedPositionError

STARTING_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"
STARTING_POSITION = STARTING_FEN.split(" ")[0]

NO_RIGHTS = "-"
NO_EN_PASSANT = "-"
KING_LETTERS = ("K", "k")

# every subset of KQkq, always written in the order KQkq ("-" when empty)
VALID_CASTLING_ENCODINGS: list[str] = [NO_RIGHTS] + [
    "".join(direction.value for direction in subset)
    for size in range(1, len(CASTLING_ORDER) + 1)
    for subset in combinations(CASTLING_ORDER, size)
]


# --- CASTLING RIGHTS ---
def castling_from_fen(castle_fen: str) -> dict[CastlingDirection, bool]:
    """parse the part of the FEN string that encodes castling rights"""
    return {
        direction: (direction.value in castle_fen) for direction in CastlingDirection
    }


def castling_to_fen(castling_rights: dict[CastlingDirection, bool]) -> str:
    """create the part of the FEN string that encodes castling rights"""
    castling_chars = "".join(
        [direction.value for direction in CASTLING_ORDER if castling_rights[direction]]
    )
    return castling_chars or NO_RIGHTS


# --- VALIDATION, one check per field ---
def is_valid_position(position: str) -> bool:
    """
    The placement field: 8 ranks separated by slashes.
    Each rank holds piece letters and digits (runs of empty squares) that add up to exactly 8 files.
    Both sides have exactly one king.
    """
    num_files, num_ranks = BOARD_DIMENSIONS
    rank_fens = position.split("/")
    if len(rank_fens) != num_ranks:
        return False
    if not all(_count_files(rank_fen) == num_files for rank_fen in rank_fens):
        return False
    return all(position.count(king) == 1 for king in KING_LETTERS)


def _count_files(rank_fen: str) -> Optional[int]:
    """Number of squares described by a single rank. None if it holds a character that is not allowed."""
    count = 0
    for character in rank_fen:
        if character.isdigit():
            count += int(character)
        elif character.lower() in FEN_TO_PIECE:
            count += 1
        else:
            return None
    return count


def is_valid_color_code(color: str) -> bool:
    return color in CODE_TO_COLOR


def is_valid_castling_rights(castling: str) -> bool:
    return castling in VALID_CASTLING_ENCODINGS


def is_valid_square(square: str) -> bool:
    """File letter followed by the rank number, e.g. 'e4'"""
    if len(square) < 2:
        return False
    file_char, rank_char = square[0], square[1:]
    if file_char not in FILE_NAMES or not rank_char.isdigit():
        return False
    return 1 <= int(rank_char) <= BOARD_DIMENSIONS[1]


def is_valid_en_passant(en_passant: str) -> bool:
    return en_passant == NO_EN_PASSANT or is_valid_square(en_passant)


def is_valid_move_counter(counter: str) -> bool:
    """Non-negative integer"""
    return counter.isdigit()


# in the order the fields appear in a FEN string
FIELD_VALIDATORS: tuple[Callable[[str], bool], ...] = (
    is_valid_position,
    is_valid_color_code,
    is_valid_castling_rights,
    is_valid_en_passant,
    is_valid_move_counter,
    is_valid_move_counter,
)


def is_valid_fen(fen: str) -> bool:
    """Exactly 6 fields separated by single spaces, each of them valid on its own."""
    fields = fen.split(" ")
    if len(fields) != len(FIELD_VALIDATORS):
        return False
    return all(is_valid(field) for is_valid, field in zip(FIELD_VALIDATORS, fields))


@dataclass
class FENState:
    """
    Data that can be constructed from a FEN string.
    ----

    <board position> <active color> <castling rights> <en passant square> <half move clock> <full move number>

    * board position: described in `Board.from_fen()`
    * active color: "w" or "b"
    * castling rights: K/Q for white (king/queen side), k/q for black. "-" once all of them are revoked.
    * en passant square: the square a pawn can take on right now, or "-".
    * The two counters are carried along, but the rules engine does not act on them.

    ex) The standard starting position:
    rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1
    """

    position: str
    color_to_move: Color
    castling_rights: dict[CastlingDirection, bool]
    en_passant_square: Optional[Square]
    half_move_clock: int
    num_turns: int

    @classmethod
    def from_fen(cls, fen: str) -> Self:
        if not is_valid_fen(fen):
            raise MalformedPositionError(
                f"Cannot interpret supplied string as FEN: {fen!r}"
            )

        position, color, castling, en_passant, half_moves, turns = fen.split(" ")
        return cls(
            position=position,
            color_to_move=CODE_TO_COLOR[color],
            castling_rights=castling_from_fen(castling),
            en_passant_square=(
                None if en_passant == NO_EN_PASSANT else Square.from_algebraic(en_passant)
            ),
            half_move_clock=int(half_moves),
            num_turns=int(turns),
        )

    def to_fen(self) -> str:
        en_passant = (
            self.en_passant_square.to_algebraic()
            if self.en_passant_square is not None
            else NO_EN_PASSANT
        )
        fields = [
            self.position,
            COLOR_TO_CODE[self.color_to_move],
            castling_to_fen(self.castling_rights),
            en_passant,
            str(self.half_move_clock),
            str(self.num_turns),
        ]
        return " ".join(fields)
