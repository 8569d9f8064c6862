"""The Board holds the `position` (in chess: the configuration of pieces on the board) and the basic operations on it"""

from dataclasses import dataclass, field
from typing import Optional, Self

from src.chess.moves import MOVEMENT_RULES, CandidateMovesFn, Move, is_attacked
from src.chess.pieces import Color, Piece, PieceType
from src.chess.square import BOARD_DIMENSIONS, Square


@dataclass
class Board:
    """Only occupied squares are stored. A square missing from `position` is empty."""

    position: dict[Square, Piece] = field(default_factory=dict)

    @classmethod
    def from_fen(cls, fen_str: str) -> Self:
        """Construct a board using the first part of a FEN string (the one that denotes the board position)

        ex. standard starting position:
        rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR
        means:
        * black pieces are on the 8th rank, starting with the rook on a8, knight on b8, etc.
        * pawns cover 7th rank entirely
        * ranks 6 through 3 have 8 consecutive empty squares
        * rank 2 are the white pawns (capital letters)
        * 1st rank are the white pieces.

        NOTE: assumes a well-formed string. Validate with `is_valid_position()` first.
        """
        position: dict[Square, Piece] = {}
        for rank_idx, fen_one_rank in enumerate(fen_str.split("/")):
            # FEN string is read from top rank (8th) to bottom rank (1st)
            rank = BOARD_DIMENSIONS[1] - 1 - rank_idx
            # ... but the first character is the a-file, so reads in normal direction
            file = 0
            for character in fen_one_rank:
                if character.isdigit():
                    # A number denotes the amount of empty squares after each other
                    file += int(character)
                else:
                    position[Square(rank, file)] = Piece.from_fen(character)
                    file += 1
        return cls(position)

    def to_fen(self) -> str:
        """Ranks are separated by slashes in FEN string."""
        return "/".join(
            self._rank_to_fen(rank) for rank in range(BOARD_DIMENSIONS[1] - 1, -1, -1)
        )

    def _rank_to_fen(self, rank: int) -> str:
        """FEN string of a single rank"""
        fen_characters: list[str] = []
        empty_count = 0
        for file in range(BOARD_DIMENSIONS[0]):
            piece = self.piece(Square(rank, file))

            if piece is not None:
                if empty_count > 0:
                    fen_characters.append(str(empty_count))
                    empty_count = 0
                fen_characters.append(piece.to_fen())
            else:
                empty_count += 1

        # if the entire rank is empty, then we still place this number in the string
        if empty_count > 0:
            fen_characters.append(str(empty_count))
        return "".join(fen_characters)

    def piece(self, square: Square) -> Optional[Piece]:
        return self.position.get(square)

    def place_piece(self, piece: Piece, square: Square) -> None:
        self.position[square] = piece

    def remove_piece(self, square: Square) -> Optional[Piece]:
        return self.position.pop(square, None)

    def move_piece(self, move: Move) -> Optional[Piece]:
        """Update the position on the board. Returns the piece that got taken on the target square (if any)"""
        piece_that_moved = self.position.pop(move.from_square)
        captured = self.position.get(move.to_square)
        self.position[move.to_square] = piece_that_moved
        return captured

    def is_empty(self, square: Square) -> bool:
        return square not in self.position

    def is_any_occupied(self, squares: list[Square]) -> bool:
        return any(not self.is_empty(square) for square in squares)

    def is_any_under_attack(self, squares: list[Square], by_color: Color) -> bool:
        return any(is_attacked(square, by_color, self) for square in squares)

    def locate_color(self, color: Color) -> list[Square]:
        """Squares in a fixed order (rank by rank, a-file first), so that move enumeration is deterministic"""
        return sorted(
            (square for square, piece in self.position.items() if piece.color == color),
            key=lambda square: (square.rank, square.file),
        )

    def find_king(self, color: Color) -> Optional[Square]:
        king = Piece(PieceType.KING, color)
        return next(
            (square for square, piece in self.position.items() if piece == king), None
        )

    def is_check(self, color: Color) -> bool:
        """Is the king of the given color under attack?"""
        king_square = self.find_king(color)
        if king_square is None:
            return False
        return is_attacked(king_square, color.opponent, self)

    def generate_candidate_moves(
        self, color: Color, en_passant: Optional[Square] = None
    ) -> list[Move]:
        """
        Before knowing the set of legal moves, we use raycasting to find candidate moves, which will later be tested for legality
        (making sure it does not put yourself in check, castling rights, etc.)
        """
        candidate_moves: list[Move] = []
        for starting_square in self.locate_color(color):
            piece_type = self.position[starting_square].type
            movement_rule: CandidateMovesFn = MOVEMENT_RULES[piece_type]
            candidate_moves.extend(movement_rule(starting_square, self, en_passant))
        return candidate_moves

    def snapshot(self) -> dict[str, str]:
        """Square name -> two-character piece code. Safe to hand out: modifying it does not touch the board."""
        return {
            square.to_algebraic(): piece.to_code()
            for square, piece in sorted(
                self.position.items(), key=lambda item: (item[0].rank, item[0].file)
            )
        }

    def __len__(self) -> int:
        return len(self.position)
