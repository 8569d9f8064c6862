"""
Geometry/Base movement and capturing/attacking rules

Key idea: Use strategy pattern to define the movement rules for each piece type.
Three families of rules live here:

* candidate moves: the pseudo-legal destinations a piece could reach (used to enumerate moves)
* move patterns: does a given from/to transition fit the way this piece moves (used to validate a move intent)
* attack rules: is a square in the line-of-sight of a piece of the given color

Legality (not leaving your own king in check, castling rights, ...) is checked later by the ChessEngine.
"""

from dataclasses import dataclass
from typing import Callable, Optional, Protocol, Self

from src.chess.castling import CASTLING_RULES, castling_options
from src.chess.pieces import FEN_TO_PIECE, PIECE_TO_FEN, Color, Piece, PieceType
from src.chess.square import BOARD_DIMENSIONS, Square


class Board(Protocol):
    """Just the parts the movement strategies need"""

    def piece(self, square: Square) -> Optional[Piece]: ...


Vector = tuple[int, int]  # (d_rank, d_file)

# White moves UP the board, black moves DOWN
PAWN_DIRECTION: dict[Color, int] = {Color.WHITE: 1, Color.BLACK: -1}
PAWN_START_RANK: dict[Color, int] = {Color.WHITE: 1, Color.BLACK: BOARD_DIMENSIONS[1] - 2}
PROMOTION_RANK: dict[Color, int] = {Color.WHITE: BOARD_DIMENSIONS[1] - 1, Color.BLACK: 0}
# the rank an en passant target square lies on, from the perspective of the capturing side
EN_PASSANT_TARGET_RANK: dict[Color, int] = {
    Color.WHITE: BOARD_DIMENSIONS[1] - 3,
    Color.BLACK: 2,
}

STRAIGHTS: list[Vector] = [(1, 0), (-1, 0), (0, 1), (0, -1)]
DIAGONALS: list[Vector] = [(1, 1), (1, -1), (-1, 1), (-1, -1)]
KNIGHT_DELTAS: list[Vector] = [
    (2, 1),
    (2, -1),
    (-2, 1),
    (-2, -1),
    (1, 2),
    (1, -2),
    (-1, 2),
    (-1, -2),
]
KING_DELTAS: list[Vector] = STRAIGHTS + DIAGONALS


@dataclass(frozen=True)
class Move:
    """basic definition of a move to be made"""

    from_square: Square
    to_square: Square
    promote_to: Optional[PieceType] = None

    @classmethod
    def from_uci(cls, uci: str) -> Self:
        """
        Universal Chess Interface:
        ---
        One of the standard chess notations for moves

        examples:
        * "e2e4": move the piece that was on e2 to e4
        * "e7e8q" : (pawn) moves from e7 to e8 and promotes to a queen (the q)
        * "e1g1": the king castles king side
        """
        from_sq = Square.from_algebraic(uci[:2])
        to_sq = Square.from_algebraic(uci[2:4])
        promote_to = FEN_TO_PIECE[uci[4]] if len(uci) == 5 else None
        return cls(from_sq, to_sq, promote_to)

    def to_uci(self) -> str:
        """Convert into UCI notation"""
        piece_char = PIECE_TO_FEN[self.promote_to] if self.promote_to else ""
        return f"{self.from_square.to_algebraic()}{self.to_square.to_algebraic()}{piece_char}"


def build_uci(
    from_square_alg: str, to_square_alg: str, promotion: Optional[str] = None
) -> str:
    """Glue the parts of a move intent together into UCI notation"""
    return f"{from_square_alg}{to_square_alg}{promotion or ''}"


# --- CANDIDATE MOVES (pseudo-legal destinations) ---
def raycasting_move(
    square: Square, board: Board, directions: list[Vector]
) -> list[Move]:
    """
    Raycasting algorithm
    -----

    The main trick we use to check the 'line of sight of a piece'.
    We define move directions and move along them until we hit another piece or
    the edge of the board.
    """
    player_color = board.piece(square).color
    moves: list[Move] = []
    for d_rank, d_file in directions:
        target_square = square
        while True:
            target_square = target_square.offset(d_rank, d_file)
            if not target_square.is_within_bounds():
                break

            piece_found = board.piece(target_square)
            if piece_found is not None:
                # only need to add the first occupied square found if it is the opponent's: then it can be captured.
                if piece_found.color != player_color:
                    moves.append(Move(square, target_square))
                break

            moves.append(Move(square, target_square))
    return moves


def single_step_move(square: Square, board: Board, deltas: list[Vector]) -> list[Move]:
    """Raycasting is for sliding pieces. This is the equivalent for kings and knights that just can move a single step along a direction"""
    player_color = board.piece(square).color
    moves: list[Move] = []
    for d_rank, d_file in deltas:
        target_square = square.offset(d_rank, d_file)
        if not target_square.is_within_bounds():
            continue

        piece_found = board.piece(target_square)
        if piece_found is None or piece_found.color != player_color:
            moves.append(Move(square, target_square))
    return moves


def candidate_pawn_moves(
    square: Square, board: Board, en_passant: Optional[Square] = None
) -> list[Move]:
    """
    A pawn:
    - moves by a single square forward.
    - It can move by two in their first move (so when on their starting rank)
    - takes diagonally (also onto the en passant square)
    """
    color = board.piece(square).color
    direction = PAWN_DIRECTION[color]
    moves: list[Move] = []

    one_step = square.offset(direction, 0)
    if one_step.is_within_bounds() and board.piece(one_step) is None:
        moves.append(Move(square, one_step))
        two_steps = square.offset(2 * direction, 0)
        if square.rank == PAWN_START_RANK[color] and board.piece(two_steps) is None:
            moves.append(Move(square, two_steps))

    for d_file in (-1, 1):
        target_square = square.offset(direction, d_file)
        if not target_square.is_within_bounds():
            continue
        piece_found = board.piece(target_square)
        is_opponent_piece = piece_found is not None and piece_found.color != color
        if is_opponent_piece or target_square == en_passant:
            moves.append(Move(square, target_square))
    return moves


def candidate_knight_moves(
    square: Square, board: Board, en_passant: Optional[Square] = None
) -> list[Move]:
    """Knights always move such that |delta_rank| + |delta_file| = 3"""
    return single_step_move(square, board, KNIGHT_DELTAS)


def candidate_bishop_moves(
    square: Square, board: Board, en_passant: Optional[Square] = None
) -> list[Move]:
    """Bishops move diagonally: |delta_rank| = |delta_file|"""
    return raycasting_move(square, board, DIAGONALS)


def candidate_rook_moves(
    square: Square, board: Board, en_passant: Optional[Square] = None
) -> list[Move]:
    """Rooks move either horizontally or vertically"""
    return raycasting_move(square, board, STRAIGHTS)


def candidate_queen_moves(
    square: Square, board: Board, en_passant: Optional[Square] = None
) -> list[Move]:
    """
    The Queen combines the rook moves (horizontal + vertical movements) and bishop moves (diagonal movement)
    """
    return candidate_bishop_moves(square, board) + candidate_rook_moves(square, board)


def candidate_king_moves(
    square: Square, board: Board, en_passant: Optional[Square] = None
) -> list[Move]:
    """
    The king can move by a single square at the time.

    Castling is modelled as a two-file king move. It is only added as a candidate here, the engine decides whether it is allowed.
    """
    color = board.piece(square).color
    moves = single_step_move(square, board, KING_DELTAS)
    for direction in castling_options(color):
        rule = CASTLING_RULES[direction]
        if square == rule.king_from and board.piece(rule.king_to) is None:
            moves.append(Move(square, rule.king_to))
    return moves


# -- STRATEGY PATTERN: CANDIDATE MOVES ---
CandidateMovesFn = Callable[[Square, Board, Optional[Square]], list[Move]]
MOVEMENT_RULES: dict[PieceType, CandidateMovesFn] = {
    PieceType.PAWN: candidate_pawn_moves,
    PieceType.KNIGHT: candidate_knight_moves,
    PieceType.BISHOP: candidate_bishop_moves,
    PieceType.ROOK: candidate_rook_moves,
    PieceType.QUEEN: candidate_queen_moves,
    PieceType.KING: candidate_king_moves,
}


# --- MOVE PATTERNS (validating a single move intent) ---
def is_path_clear(move: Move, board: Board) -> bool:
    """Every square strictly in between the start and the end of a straight/diagonal line must be empty"""
    d_rank = _sign(move.to_square.rank - move.from_square.rank)
    d_file = _sign(move.to_square.file - move.from_square.file)
    square = move.from_square.offset(d_rank, d_file)
    while square != move.to_square:
        if board.piece(square) is not None:
            return False
        square = square.offset(d_rank, d_file)
    return True


def is_valid_pawn_move(
    move: Move, board: Board, en_passant: Optional[Square] = None
) -> bool:
    """Pushes onto empty squares, captures diagonally forward onto an opponent's piece or the en passant square"""
    color = board.piece(move.from_square).color
    direction = PAWN_DIRECTION[color]
    rank_diff = move.to_square.rank - move.from_square.rank
    file_diff = abs(move.to_square.file - move.from_square.file)
    target = board.piece(move.to_square)

    # forward one square
    if file_diff == 0 and rank_diff == direction:
        return target is None

    # forward two squares from the starting rank
    if (
        file_diff == 0
        and rank_diff == 2 * direction
        and move.from_square.rank == PAWN_START_RANK[color]
    ):
        middle = move.from_square.offset(direction, 0)
        return board.piece(middle) is None and target is None

    # take diagonally
    if file_diff == 1 and rank_diff == direction:
        if target is not None and target.color != color:
            return True
        # en passant: only a target square on the correct rank counts (the one behind the opponent's pawn)
        return (
            move.to_square == en_passant
            and move.to_square.rank == EN_PASSANT_TARGET_RANK[color]
        )
    return False


def is_valid_knight_move(
    move: Move, board: Board, en_passant: Optional[Square] = None
) -> bool:
    rank_diff, file_diff = _abs_deltas(move)
    return (rank_diff, file_diff) in {(1, 2), (2, 1)}


def is_valid_bishop_move(
    move: Move, board: Board, en_passant: Optional[Square] = None
) -> bool:
    rank_diff, file_diff = _abs_deltas(move)
    if rank_diff != file_diff or rank_diff == 0:
        return False
    return is_path_clear(move, board)


def is_valid_rook_move(
    move: Move, board: Board, en_passant: Optional[Square] = None
) -> bool:
    rank_diff, file_diff = _abs_deltas(move)
    if (rank_diff != 0) == (file_diff != 0):
        return False
    return is_path_clear(move, board)


def is_valid_queen_move(
    move: Move, board: Board, en_passant: Optional[Square] = None
) -> bool:
    return is_valid_bishop_move(move, board) or is_valid_rook_move(move, board)


def is_valid_king_step(
    move: Move, board: Board, en_passant: Optional[Square] = None
) -> bool:
    """A single step in any direction. (Castling is validated by the engine, as it needs the castling rights)"""
    rank_diff, file_diff = _abs_deltas(move)
    return max(rank_diff, file_diff) == 1


def is_castling_attempt(move: Move, board: Board) -> bool:
    """A king moving two files along its rank"""
    piece = board.piece(move.from_square)
    rank_diff, file_diff = _abs_deltas(move)
    return (
        piece is not None
        and piece.type == PieceType.KING
        and rank_diff == 0
        and file_diff == 2
    )


# -- STRATEGY PATTERN: MOVE PATTERNS ---
MovePatternFn = Callable[[Move, Board, Optional[Square]], bool]
MOVE_PATTERNS: dict[PieceType, MovePatternFn] = {
    PieceType.PAWN: is_valid_pawn_move,
    PieceType.KNIGHT: is_valid_knight_move,
    PieceType.BISHOP: is_valid_bishop_move,
    PieceType.ROOK: is_valid_rook_move,
    PieceType.QUEEN: is_valid_queen_move,
    PieceType.KING: is_valid_king_step,
}


# --- CAPTURING RULES / ATTACKING RULES ---
def raycasting_attack(
    square: Square,
    by_color: Color,
    by_piece_types: set[PieceType],
    board: Board,
    directions: list[Vector],
) -> bool:
    """
    Raycasting algorithm for attacks.
    ---

    Where `raycasting_move()` determines
    _"What is the line-of-sight of the piece standing on the specified square?"_

    This function determines:
    _"Is the specified square in the line-of-sight of a piece of the specified color that
    is allowed to move along the given direction?"_

    ---
    Returns TRUE if the first piece encountered along a ray is of the given color and one of the given types.
    """
    for d_rank, d_file in directions:
        target_square = square
        while True:
            target_square = target_square.offset(d_rank, d_file)
            if not target_square.is_within_bounds():
                break

            piece_found = board.piece(target_square)
            if piece_found is not None:
                if piece_found.color == by_color and piece_found.type in by_piece_types:
                    return True
                break
    return False


def single_step_attack(
    square: Square,
    by_color: Color,
    by_piece_type: PieceType,
    board: Board,
    deltas: list[Vector],
) -> bool:
    """
    The equivalent of `raycasting_attack()` for pawns, kings, and knights that just can move a single step along a direction.
    """
    attacker = Piece(by_piece_type, by_color)
    for d_rank, d_file in deltas:
        target_square = square.offset(d_rank, d_file)
        if target_square.is_within_bounds() and board.piece(target_square) == attacker:
            return True
    return False


def is_attacked_by_pawn(square: Square, by_color: Color, board: Board) -> bool:
    """
    Pawns take diagonally
    ----

    NOTE: Pawn moves are not symmetric. To check IF a white pawn could take on your square -->
    Must look one rank DOWN the board. Hence, vectors are exactly opposite to the ones used in `candidate_pawn_moves()`
    """
    backwards = -PAWN_DIRECTION[by_color]
    return single_step_attack(
        square, by_color, PieceType.PAWN, board, [(backwards, 1), (backwards, -1)]
    )


def is_attacked_by_knight(square: Square, by_color: Color, board: Board) -> bool:
    return single_step_attack(square, by_color, PieceType.KNIGHT, board, KNIGHT_DELTAS)


def is_attacked_by_bishop(square: Square, by_color: Color, board: Board) -> bool:
    return raycasting_attack(square, by_color, {PieceType.BISHOP}, board, DIAGONALS)


def is_attacked_by_rook(square: Square, by_color: Color, board: Board) -> bool:
    return raycasting_attack(square, by_color, {PieceType.ROOK}, board, STRAIGHTS)


def is_attacked_by_queen(square: Square, by_color: Color, board: Board) -> bool:
    """
    The Queen combines the rook moves (horizontal + vertical movements) and bishop moves (diagonal movement)
    """
    return raycasting_attack(
        square, by_color, {PieceType.QUEEN}, board, STRAIGHTS + DIAGONALS
    )


def is_attacked_by_king(square: Square, by_color: Color, board: Board) -> bool:
    return single_step_attack(square, by_color, PieceType.KING, board, KING_DELTAS)


# --- STRATEGY PATTERN: ATTACKING RULES ---
IsAttackedFn = Callable[[Square, Color, Board], bool]
ATTACK_RULES: dict[PieceType, IsAttackedFn] = {
    PieceType.PAWN: is_attacked_by_pawn,
    PieceType.KNIGHT: is_attacked_by_knight,
    PieceType.BISHOP: is_attacked_by_bishop,
    PieceType.ROOK: is_attacked_by_rook,
    PieceType.QUEEN: is_attacked_by_queen,
    PieceType.KING: is_attacked_by_king,
}


def is_attacked(square: Square, by_color: Color, board: Board) -> bool:
    """Can any piece of `by_color` capture on this square? (Ignores whose turn it is)"""
    return any(
        is_attacked_by(square, by_color, board) for is_attacked_by in ATTACK_RULES.values()
    )


# -- PAWN PROMOTION --
def is_pawn_push_to_promotion_square(move: Move, board: Board) -> bool:
    """check if the move is a pawn move that reaches the final rank (for its color)"""
    moving_piece = board.piece(move.from_square)
    if moving_piece is None or moving_piece.type != PieceType.PAWN:
        return False
    return move.to_square.rank == PROMOTION_RANK[moving_piece.color]


# -- small helpers --
def _sign(value: int) -> int:
    return (value > 0) - (value < 0)


def _abs_deltas(move: Move) -> tuple[int, int]:
    return (
        abs(move.to_square.rank - move.from_square.rank),
        abs(move.to_square.file - move.from_square.file),
    )
