"""
Static evaluation used by the AI.

Scores are always from the perspective of the AI's side: positive means the AI is ahead.
"""

from src.chess.board import Board
from src.chess.engine import ChessEngine
from src.chess.moves import Move
from src.chess.pieces import Color, Piece, PieceType
from src.chess.square import BOARD_DIMENSIONS, Square

PIECE_VALUES: dict[PieceType, int] = {
    PieceType.PAWN: 100,
    PieceType.KNIGHT: 320,
    PieceType.BISHOP: 330,
    PieceType.ROOK: 500,
    PieceType.QUEEN: 900,
    PieceType.KING: 20_000,
}

# Piece-square tables, written as seen from white's side of the board:
# first row is the 8th rank, last row the 1st rank.
PAWN_TABLE: tuple[tuple[int, ...], ...] = (
    (0, 0, 0, 0, 0, 0, 0, 0),
    (50, 50, 50, 50, 50, 50, 50, 50),
    (10, 10, 20, 30, 30, 20, 10, 10),
    (5, 5, 10, 25, 25, 10, 5, 5),
    (0, 0, 0, 20, 20, 0, 0, 0),
    (5, -5, -10, 0, 0, -10, -5, 5),
    (5, 10, 10, -20, -20, 10, 10, 5),
    (0, 0, 0, 0, 0, 0, 0, 0),
)

KNIGHT_TABLE: tuple[tuple[int, ...], ...] = (
    (-50, -40, -30, -30, -30, -30, -40, -50),
    (-40, -20, 0, 0, 0, 0, -20, -40),
    (-30, 0, 10, 15, 15, 10, 0, -30),
    (-30, 5, 15, 20, 20, 15, 5, -30),
    (-30, 0, 15, 20, 20, 15, 0, -30),
    (-30, 5, 10, 15, 15, 10, 5, -30),
    (-40, -20, 0, 5, 5, 0, -20, -40),
    (-50, -40, -30, -30, -30, -30, -40, -50),
)

POSITION_TABLES: dict[PieceType, tuple[tuple[int, ...], ...]] = {
    PieceType.PAWN: PAWN_TABLE,
    PieceType.KNIGHT: KNIGHT_TABLE,
}

CENTER = (BOARD_DIMENSIONS[1] - 1) / 2


def piece_square_bonus(piece: Piece, square: Square) -> int:
    """Positional bonus of a piece on a square. The table is mirrored vertically for black."""
    table = POSITION_TABLES.get(piece.type)
    if table is None:
        return 0
    last_rank = BOARD_DIMENSIONS[1] - 1
    row = last_rank - square.rank if piece.color == Color.WHITE else square.rank
    return table[row][square.file]


def material_and_position(board: Board, color: Color) -> int:
    """Sum of material + positional bonus. Pieces of `color` count positively, the opponent's negatively."""
    score = 0
    for square, piece in board.position.items():
        value = PIECE_VALUES[piece.type] + piece_square_bonus(piece, square)
        score += value if piece.color == color else -value
    return score


def center_distance(square: Square) -> float:
    """Manhattan distance to the middle of the board (the point between d4, e4, d5 and e5)"""
    return abs(square.rank - CENTER) + abs(square.file - CENTER)


def capture_value(move: Move, board: Board, color: Color) -> int:
    """Value of the opponent's piece standing on the target square (0 if there is none)"""
    target = board.piece(move.to_square)
    if target is None or target.color == color:
        return 0
    return PIECE_VALUES[target.type]


def evaluate_position(
    engine: ChessEngine, color: Color, mobility_weight: int, mate_score: int
) -> int:
    """
    Leaf evaluation of the search
    ---

    material + piece-square bonus (own minus opponent's) + mobility (own legal moves minus opponent's).
    If the side to move has no legal moves, the game is over: mate (against the side to move) or stalemate (0).
    """
    board = engine.board
    own_moves = engine.get_all_legal_moves(color)
    opponent_moves = engine.get_all_legal_moves(color.opponent)

    side_to_move = engine.side_to_move
    moves_for_side_to_move = own_moves if side_to_move == color else opponent_moves
    if not moves_for_side_to_move:
        return terminal_score(engine, color, mate_score)

    mobility = (len(own_moves) - len(opponent_moves)) * mobility_weight
    return material_and_position(board, color) + mobility


def terminal_score(engine: ChessEngine, color: Color, mate_score: int) -> int:
    """Score of a position where the side to move has no legal moves"""
    side_to_move = engine.side_to_move
    if not engine.is_in_check(side_to_move):
        return 0
    return -mate_score if side_to_move == color else mate_score
