"""
The ChessEngine is the entrypoint into the domain layer.
It is the single source of truth for the state of a game: it validates move intents, executes them and
answers questions about the position (legal moves, check, checkmate, stalemate).

NOTE: The engine is not reentrant. Simulating a move temporarily changes the live board, so one caller (on one thread)
must finish a call before the next one starts.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Optional, Self

from src.chess.board import Board
from src.chess.castling import (
    CASTLING_RULES,
    CastlingDirection,
    castling_direction_for,
    castling_options,
    direction_for_rook_home,
)
from src.chess.fen import STARTING_FEN, FENState
from src.chess.moves import (
    MOVE_PATTERNS,
    PAWN_DIRECTION,
    Move,
    is_attacked,
    is_castling_attempt,
    is_pawn_push_to_promotion_square,
)
from src.chess.pieces import PROMOTION_OPTIONS, Color, Piece, PieceType
from src.chess.square import Square
from src.core.exceptions import IllegalMoveError
from src.core.models import PositionSnapshot
from src.core.shared_types import Status
from src.puzzles.catalog import PuzzleRecord, get_puzzle_by_id

logger = logging.getLogger(__name__)


@dataclass
class GameState:
    """Everything the rules need to know about the game. Owned by the ChessEngine."""

    board: Board
    side_to_move: Color
    castling_rights: dict[CastlingDirection, bool]
    en_passant_square: Optional[Square] = None
    history: list[Move] = field(default_factory=list)
    # one entry per move in `history`, the state right before that move was made
    undo_stack: list["_Snapshot"] = field(default_factory=list)
    # carried along from the FEN string. The rules never look at them.
    half_move_clock: int = 0
    num_turns: int = 1

    @classmethod
    def from_fen(cls, fen: str) -> Self:
        """Raises MalformedPositionError before anything gets built if the string is not a proper FEN."""
        fen_state = FENState.from_fen(fen)
        return cls(
            board=Board.from_fen(fen_state.position),
            side_to_move=fen_state.color_to_move,
            castling_rights=fen_state.castling_rights,
            en_passant_square=fen_state.en_passant_square,
            half_move_clock=fen_state.half_move_clock,
            num_turns=fen_state.num_turns,
        )

    def to_fen_state(self) -> FENState:
        return FENState(
            position=self.board.to_fen(),
            color_to_move=self.side_to_move,
            castling_rights=dict(self.castling_rights),
            en_passant_square=self.en_passant_square,
            half_move_clock=self.half_move_clock,
            num_turns=self.num_turns,
        )


@dataclass(frozen=True)
class _Snapshot:
    """What is needed to put a GameState back exactly the way it was before a move (simulated or made)."""

    position: dict[Square, Piece]
    side_to_move: Color
    castling_rights: dict[CastlingDirection, bool]
    en_passant_square: Optional[Square]
    half_move_clock: int
    num_turns: int
    history_length: int
    undo_length: int

    @classmethod
    def capture(cls, state: GameState) -> "_Snapshot":
        return cls(
            position=dict(state.board.position),
            side_to_move=state.side_to_move,
            castling_rights=dict(state.castling_rights),
            en_passant_square=state.en_passant_square,
            half_move_clock=state.half_move_clock,
            num_turns=state.num_turns,
            history_length=len(state.history),
            undo_length=len(state.undo_stack),
        )

    def restore(self, state: GameState) -> None:
        # update the existing containers in place, so references handed out before the simulation stay valid
        state.board.position.clear()
        state.board.position.update(self.position)
        state.castling_rights.update(self.castling_rights)
        del state.history[self.history_length :]
        del state.undo_stack[self.undo_length :]
        state.side_to_move = self.side_to_move
        state.en_passant_square = self.en_passant_square
        state.half_move_clock = self.half_move_clock
        state.num_turns = self.num_turns


class ChessEngine:
    """Rules engine: board legality and state transitions."""

    def __init__(self, fen: Optional[str] = None) -> None:
        self.state = GameState.from_fen(fen or STARTING_FEN)

    # --- STATE ACCESS ---
    @property
    def board(self) -> Board:
        return self.state.board

    @property
    def side_to_move(self) -> Color:
        return self.state.side_to_move

    @property
    def castling_rights(self) -> dict[CastlingDirection, bool]:
        return self.state.castling_rights

    @property
    def en_passant_square(self) -> Optional[Square]:
        return self.state.en_passant_square

    @property
    def history(self) -> list[Move]:
        return self.state.history

    # --- LOADING POSITIONS ---
    def reset(self) -> None:
        """Back to the standard starting position with white to move."""
        self.state = GameState.from_fen(STARTING_FEN)

    def load_from_fen(self, fen: str) -> None:
        """
        Replace the current state with the position described by the FEN string.
        The new state is fully built before it replaces the old one: a MalformedPositionError leaves the engine untouched.
        """
        new_state = GameState.from_fen(fen)
        self.state = new_state
        logger.debug("Loaded position %s", fen)

    def load_puzzle(self, puzzle_id: int) -> PuzzleRecord:
        """Look up a puzzle in the catalog and load its position. Unknown ids raise PuzzleNotFoundError."""
        puzzle = get_puzzle_by_id(puzzle_id)
        self.load_from_fen(puzzle.fen)
        logger.debug("Loaded puzzle %d (%s)", puzzle.id, puzzle.name)
        return puzzle

    def to_fen(self) -> str:
        return self.state.to_fen_state().to_fen()

    # --- LEGALITY ---
    def is_legal_move(self, move: Move) -> bool:
        """
        A move is legal if
        1. the starting square holds a piece of the side to move
        2. the target square does not hold a piece of the same side
        3. the piece is allowed to move that way
        4. it does not leave your own king in check
        """
        return self._is_legal_for(move, self.state.side_to_move)

    def _is_legal_for(self, move: Move, color: Color) -> bool:
        """Legality as if `color` were to move. Used to count the moves of the side that is not on turn."""
        if not (move.from_square.is_within_bounds() and move.to_square.is_within_bounds()):
            return False

        board = self.state.board
        piece = board.piece(move.from_square)
        if piece is None or piece.color != color:
            return False

        target = board.piece(move.to_square)
        if target is not None and target.color == color:
            return False

        if not self._matches_movement_pattern(piece, move):
            return False

        return not self._would_be_in_check_for(move, color)

    def _matches_movement_pattern(self, piece: Piece, move: Move) -> bool:
        if is_castling_attempt(move, self.state.board):
            return self.is_valid_castling(move, piece.color)
        return MOVE_PATTERNS[piece.type](
            move, self.state.board, self.state.en_passant_square
        )

    def is_valid_castling(self, move: Move, color: Color) -> bool:
        """
        you are allowed to castle if
        ---
        * the king stands on its starting square and the rook on its own.
        * Castling rights in this direction are not yet revoked.
        * All squares between king and rook are empty.
        * The king does not start in, pass through, or end up in check.
        """
        direction = castling_direction_for(color, move.to_square)
        if direction is None:
            return False

        rule = CASTLING_RULES[direction]
        board = self.state.board
        if move.from_square != rule.king_from:
            return False
        if board.piece(rule.king_from) != Piece(PieceType.KING, color):
            return False
        if not self.state.castling_rights[direction]:
            return False
        if board.piece(rule.rook_from) != Piece(PieceType.ROOK, color):
            return False
        if board.is_any_occupied(rule.squares_between):
            return False

        king_path = [rule.king_from, rule.king_transit, rule.king_to]
        return not board.is_any_under_attack(king_path, color.opponent)

    def would_be_in_check(self, move: Move) -> bool:
        """Does the move leave the king of the side to move under attack?"""
        return self._would_be_in_check_for(move, self.state.side_to_move)

    def _would_be_in_check_for(self, move: Move, color: Color) -> bool:
        with self.simulate(move):
            return self.state.board.is_check(color)

    @contextmanager
    def simulate(self, move: Move) -> Iterator[Self]:
        """
        Play the move on the live board for the duration of the `with` block.
        ---

        The state is restored when the block exits, also when an exception gets raised inside of it.
        NOTE: no legality check. The move only needs a piece on its starting square.
        """
        snapshot = _Snapshot.capture(self.state)
        try:
            self._apply_move(move)
            yield self
        finally:
            snapshot.restore(self.state)

    def is_position_under_attack(self, square: Square, victim_color: Color) -> bool:
        """Can any piece of the victim's opponent capture on this square? (Regardless of whose turn it is)"""
        return is_attacked(square, victim_color.opponent, self.state.board)

    def is_in_check(self, color: Color) -> bool:
        return self.state.board.is_check(color)

    # --- MAKING MOVES ---
    def make_move(self, move: Move) -> bool:
        """
        Attempt to make a move
        -----
        Returns False (and changes nothing) if the move is illegal.
        """
        if not self.is_legal_move(move):
            logger.debug("Rejected illegal move %s", move.to_uci())
            return False

        self.state.undo_stack.append(_Snapshot.capture(self.state))
        self._apply_move(move)
        return True

    def make_move_or_raise(self, move: Move) -> None:
        if not self.make_move(move):
            raise IllegalMoveError(f"Move not allowed: {move.to_uci()}")

    def undo_move(self) -> bool:
        """
        Take back the last move made
        -----
        Board, castling rights, en passant square, counters and turn are restored exactly.
        Returns False (and changes nothing) if no move has been made since the position was loaded.
        """
        if not self.state.undo_stack:
            return False

        snapshot = self.state.undo_stack.pop()
        undone = self.state.history[-1]
        snapshot.restore(self.state)
        logger.debug("Took back move %s", undone.to_uci())
        return True

    def _apply_move(self, move: Move) -> None:
        """
        Update the state for the given move. No legality checks.
        ---

        1. castling: also move the rook
        2. en passant: remove the pawn that got taken
        3. set (or clear) the en passant square
        4. move the piece, promote a pawn that reaches the final rank
        5. revoke castling rights if needed
        6. move counters, history, and the turn passes to the opponent
        """
        state = self.state
        board = state.board
        piece = board.piece(move.from_square)
        if piece is None:
            raise IllegalMoveError(f"No piece to move on {move.from_square.to_algebraic()}")

        color = piece.color
        is_pawn = piece.type == PieceType.PAWN
        is_promotion = is_pawn_push_to_promotion_square(move, board)

        if is_castling_attempt(move, board):
            self._move_castling_rook(move, color)

        captured = board.piece(move.to_square)
        is_diagonal = move.from_square.file != move.to_square.file
        if (
            is_pawn
            and is_diagonal
            and captured is None
            and move.to_square == state.en_passant_square
        ):
            # the pawn taken en passant stands next to the moving pawn: same rank it started on, file of the target
            captured_square = Square(move.from_square.rank, move.to_square.file)
            captured = board.remove_piece(captured_square)

        ranks_moved = abs(move.to_square.rank - move.from_square.rank)
        state.en_passant_square = (
            move.from_square.offset(PAWN_DIRECTION[color], 0)
            if is_pawn and ranks_moved == 2
            else None
        )

        board.move_piece(move)
        if is_promotion:
            promote_to = _promotion_type(move.promote_to)
            board.place_piece(piece.promoted_to(promote_to), move.to_square)
            move = Move(move.from_square, move.to_square, promote_to)
        elif move.promote_to is not None:
            # a promotion letter on any other move means nothing
            move = Move(move.from_square, move.to_square)

        self._revoke_castling_rights_if_needed(piece, move, captured)

        state.half_move_clock = 0 if (is_pawn or captured) else state.half_move_clock + 1
        if color == Color.BLACK:
            state.num_turns += 1

        state.history.append(move)
        state.side_to_move = color.opponent

    def _move_castling_rook(self, move: Move, color: Color) -> None:
        direction = castling_direction_for(color, move.to_square)
        if direction is None:
            return
        rule = CASTLING_RULES[direction]
        if self.state.board.piece(rule.rook_from) is not None:
            self.state.board.move_piece(Move(rule.rook_from, rule.rook_to))

    def _revoke_castling_rights_if_needed(
        self, piece: Piece, move: Move, captured: Optional[Piece]
    ) -> None:
        """
        Checks which rights should get revoked
        ----

        1. If you are moving your king (castling included) --> revoke both
        2. If you are moving a rook away from its starting square --> revoke the right in that direction
        3. If you are taking your opponent's rook on its starting square --> revoke the opponent's right in that direction
        """
        rights = self.state.castling_rights
        if piece.type == PieceType.KING:
            for direction in castling_options(piece.color):
                rights[direction] = False

        if piece.type == PieceType.ROOK:
            direction = direction_for_rook_home(move.from_square)
            if direction is not None and direction.color == piece.color:
                rights[direction] = False

        if captured is not None and captured.type == PieceType.ROOK:
            direction = direction_for_rook_home(move.to_square)
            if direction is not None and direction.color == captured.color:
                rights[direction] = False

    # --- MOVE GENERATION ---
    def get_all_legal_moves(self, color: Color) -> list[Move]:
        """
        List of legal moves for the player with the 'color' pieces
        ----

        1. generate the candidate destinations for every piece, using the basic movement rules (the board does this calculation)
        2. keep the ones that pass the full legality check
        NOTE: a pawn reaching the final rank is listed once (no promotion piece set, so it becomes a queen)
        """
        candidates = self.state.board.generate_candidate_moves(
            color, self.state.en_passant_square
        )
        return [move for move in candidates if self._is_legal_for(move, color)]

    def legal_moves_from(self, square: Square) -> list[Move]:
        """Legal moves of the piece standing on the given square (empty list if there is none)"""
        piece = self.state.board.piece(square)
        if piece is None:
            return []
        return [
            move
            for move in self.get_all_legal_moves(piece.color)
            if move.from_square == square
        ]

    def _has_legal_move(self, color: Color) -> bool:
        candidates = self.state.board.generate_candidate_moves(
            color, self.state.en_passant_square
        )
        return any(self._is_legal_for(move, color) for move in candidates)

    # --- CHECKS FOR ENDING THE GAME ---
    def is_checkmate(self) -> bool:
        color = self.state.side_to_move
        return self.is_in_check(color) and not self._has_legal_move(color)

    def is_stalemate(self) -> bool:
        color = self.state.side_to_move
        return not self.is_in_check(color) and not self._has_legal_move(color)

    @property
    def status(self) -> Status:
        if self.is_checkmate():
            return Status.CHECKMATE
        if self.is_stalemate():
            return Status.STALEMATE
        return Status.IN_PROGRESS

    def is_game_over(self) -> bool:
        return self.status != Status.IN_PROGRESS

    def to_snapshot(self) -> PositionSnapshot:
        """Encode the current state into the format the Service layer uses"""
        side_to_move = self.state.side_to_move
        return PositionSnapshot(
            fen=self.to_fen(),
            pieces=self.state.board.snapshot(),
            side_to_move=side_to_move.name.lower(),
            in_check=self.is_in_check(side_to_move),
            status=str(self.status),
            moves_uci=[move.to_uci() for move in self.state.history],
        )


def _promotion_type(requested: Optional[PieceType]) -> PieceType:
    """Default to a queen if nothing (or something a pawn cannot become) was requested"""
    if requested in PROMOTION_OPTIONS.values():
        return requested
    return PieceType.QUEEN
