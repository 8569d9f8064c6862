"""Orchestration of communication from the UI boundary to the rules engine and the AI (and the reverse direction)."""

import logging
from typing import Optional

from src.ai.search import ChessAI
from src.api.models import (
    AIMoveRequest,
    AIMoveResponse,
    GameStateResponse,
    LegalMovesRequest,
    LegalMovesResponse,
    LoadPositionRequest,
    MoveRequest,
    PuzzleRequest,
    PuzzleResponse,
)
from src.chess.engine import ChessEngine
from src.chess.moves import Move, build_uci
from src.chess.pieces import Color as DomainColor
from src.chess.square import Square
from src.core.exceptions import IllegalMoveError
from src.core.shared_types import Color
from src.puzzles.catalog import PuzzleRecord, get_random_puzzle

logger = logging.getLogger(__name__)


class ChessService:
    """Orchestration of layers for one chess game. Owns one engine and one AI."""

    def __init__(
        self, engine: Optional[ChessEngine] = None, ai: Optional[ChessAI] = None
    ) -> None:
        self.engine = engine or ChessEngine()
        self.ai = ai or ChessAI()

    # -- UI requests logic ---
    def new_game(self) -> GameStateResponse:
        """Start over from the standard starting position."""
        logger.info("New game requested")
        self.engine.reset()
        return self.get_state()

    def load_position(self, request: LoadPositionRequest) -> GameStateResponse:
        """Load an arbitrary FEN. A malformed one raises MalformedPositionError and keeps the current game."""
        logger.info("Load position requested: %s", request.fen)
        self.engine.load_from_fen(request.fen)
        return self.get_state()

    def load_puzzle(self, request: PuzzleRequest) -> PuzzleResponse:
        """
        Load a puzzle
        ----
        By id if one is given, otherwise a random one (of the requested difficulty, if any).
        """
        logger.info(
            "Puzzle requested: id=%s difficulty=%s",
            request.puzzle_id,
            request.difficulty,
        )
        if request.puzzle_id is not None:
            puzzle = self.engine.load_puzzle(request.puzzle_id)
        else:
            puzzle = get_random_puzzle(request.difficulty, rng=self.ai.rng)
            self.engine.load_from_fen(puzzle.fen)
        return self._create_puzzle_response(puzzle)

    def get_state(self) -> GameStateResponse:
        """
        Retrieve current game state.
        ----
        Used by the UI after every action to redraw the board.
        """
        snapshot = self.engine.to_snapshot()
        return GameStateResponse(
            fen=snapshot.fen,
            pieces=snapshot.pieces,
            side_to_move=Color(snapshot.side_to_move),
            in_check=snapshot.in_check,
            status=snapshot.status,
            move_history=snapshot.moves_uci,
        )

    def legal_moves(self, request: LegalMovesRequest) -> LegalMovesResponse:
        """Retrieve the legal moves of one piece, or of a whole side."""
        if request.square is not None:
            moves = self.engine.legal_moves_from(Square.from_algebraic(request.square))
            return LegalMovesResponse(
                color=None,
                square=request.square,
                legal_moves=[move.to_uci() for move in moves],
            )

        color = self._domain_color(request.color)
        moves = self.engine.get_all_legal_moves(color)
        return LegalMovesResponse(
            color=Color(color.name.lower()),
            square=None,
            legal_moves=[move.to_uci() for move in moves],
        )

    def make_move(self, request: MoveRequest) -> GameStateResponse:
        """Make a move attempt. Raises IllegalMoveError (and changes nothing) if it is not allowed."""

        # Parse data in MoveRequest to UCI notation
        move_uci = build_uci(
            from_square_alg=request.from_square,
            to_square_alg=request.to_square,
            promotion=request.promote_to,
        )
        logger.info("Move requested: %s", move_uci)

        move = Move.from_uci(move_uci)
        if not self.engine.make_move(move):
            raise IllegalMoveError(f"Move not allowed: {move_uci}")
        return self.get_state()

    def undo_move(self) -> GameStateResponse:
        """Take back the last move. Raises IllegalMoveError if there is none to take back."""
        logger.info("Undo requested")
        if not self.engine.undo_move():
            raise IllegalMoveError("There is no move to take back.")
        return self.get_state()

    def ai_move(self, request: AIMoveRequest) -> AIMoveResponse:
        """
        Let the AI pick a move and play it.
        ----
        Raises NoLegalMovesError if the side to play has no moves left, IllegalMoveError if it is not its turn.
        """
        color = self._domain_color(request.color)
        logger.info(
            "AI move requested for %s at %s difficulty",
            color.name.lower(),
            request.difficulty,
        )
        if color != self.engine.side_to_move:
            raise IllegalMoveError(f"It is not {color.name.lower()}'s turn.")

        move = self.ai.choose_move(self.engine, request.difficulty, color)
        self.engine.make_move_or_raise(move)
        return AIMoveResponse(
            move=self.engine.history[-1].to_uci(),
            difficulty=request.difficulty,
            state=self.get_state(),
        )

    # -- Internal helpers --
    def _domain_color(self, color: Optional[Color]) -> DomainColor:
        """Transport color to domain color, the side to move when none was given."""
        if color is None:
            return self.engine.side_to_move
        return DomainColor[color.name]

    def _create_puzzle_response(self, puzzle: PuzzleRecord) -> PuzzleResponse:
        return PuzzleResponse(
            puzzle_id=puzzle.id,
            name=puzzle.name,
            theme=puzzle.theme,
            difficulty=puzzle.difficulty,
            description=puzzle.description,
            fen=puzzle.fen,
            solution=list(puzzle.solution),
            mate_in=puzzle.mate_in,
            state=self.get_state(),
        )
