"""
Move selection for the computer controlled side.

The AI holds no reference to an engine: every call borrows the engine it is given, simulates moves on it,
and always leaves it exactly as it found it.

Three tiers
---
* EASY: a random legal move
* MEDIUM: one-ply heuristic (capture value + closeness to the center + bonus for giving check)
* HARD: two-ply minimax with alpha-beta pruning over a static evaluation
"""

import logging
import math
import random
from typing import Callable, Optional

from src.ai.config import SearchConfig
from src.ai.evaluation import (
    capture_value,
    center_distance,
    evaluate_position,
    terminal_score,
)
from src.chess.engine import ChessEngine
from src.chess.moves import Move
from src.chess.pieces import Color
from src.core.exceptions import NoLegalMovesError
from src.core.shared_types import Difficulty

logger = logging.getLogger(__name__)

MoveSelectionFn = Callable[[ChessEngine, list[Move], Color], Move]


class ChessAI:
    """Chooses moves for one side, at one of three difficulty tiers."""

    def __init__(
        self, config: Optional[SearchConfig] = None, rng: Optional[random.Random] = None
    ) -> None:
        self.config = config or SearchConfig()
        self.rng = rng or random.Random()
        # -- STRATEGY PATTERN: one move selection per difficulty --
        self._strategies: dict[Difficulty, MoveSelectionFn] = {
            Difficulty.EASY: self._random_move,
            Difficulty.MEDIUM: self._heuristic_move,
            Difficulty.HARD: self._minimax_move,
        }

    def choose_move(
        self, engine: ChessEngine, difficulty: Difficulty, color: Color
    ) -> Move:
        """
        Pick a move for `color` in the position the engine currently holds.
        ---

        NOTE: does not check that it actually is `color`'s turn. That is up to the caller.
        Raises NoLegalMovesError if `color` cannot move (checkmate / stalemate).
        """
        legal_moves = engine.get_all_legal_moves(color)
        if not legal_moves:
            raise NoLegalMovesError(
                f"No legal moves for {color.name.lower()}: the game is over."
            )

        logger.debug(
            "AI analyzing %d legal moves for %s (%s)",
            len(legal_moves),
            color.name.lower(),
            difficulty,
        )
        move = self._strategies[difficulty](engine, legal_moves, color)
        logger.info("AI (%s) plays %s for %s", difficulty, move.to_uci(), color.name.lower())
        return move

    # --- EASY ---
    def _random_move(self, engine: ChessEngine, moves: list[Move], color: Color) -> Move:
        return self.rng.choice(moves)

    # --- MEDIUM ---
    def _heuristic_move(self, engine: ChessEngine, moves: list[Move], color: Color) -> Move:
        """Highest one-ply score wins. On ties the first move found is kept."""
        best_move = moves[0]
        best_score = -math.inf
        for move in moves:
            score = self.score_move(engine, move, color)
            if score > best_score:
                best_score = score
                best_move = move
        return best_move

    def score_move(self, engine: ChessEngine, move: Move, color: Color) -> int:
        """captured piece value + center bonus + bonus if the move gives check"""
        score = capture_value(move, engine.board, color)
        score += int(7 - center_distance(move.to_square)) * self.config.center_weight
        with engine.simulate(move):
            if engine.is_in_check(color.opponent):
                score += self.config.check_bonus
        return score

    # --- HARD ---
    def _minimax_move(self, engine: ChessEngine, moves: list[Move], color: Color) -> Move:
        """Root of the search: the AI maximizes. On ties the first move found is kept."""
        best_move = moves[0]
        best_score = -math.inf
        alpha, beta = -math.inf, math.inf
        for move in moves:
            with engine.simulate(move):
                score = self._minimax(
                    engine, self.config.depth - 1, alpha, beta, False, color
                )
            if score > best_score:
                best_score = score
                best_move = move
            alpha = max(alpha, best_score)
        logger.debug("Best move %s scored %s", best_move.to_uci(), best_score)
        return best_move

    def _minimax(
        self,
        engine: ChessEngine,
        depth: int,
        alpha: float,
        beta: float,
        maximizing: bool,
        ai_color: Color,
    ) -> float:
        """
        Minimax with alpha-beta pruning
        ---

        The maximizing side is the AI, the minimizing side its opponent.
        Once `beta <= alpha` the remaining moves cannot change the outcome anymore, so they get skipped.
        """
        if depth == 0:
            return evaluate_position(
                engine, ai_color, self.config.mobility_weight, self.config.mate_score
            )

        side = ai_color if maximizing else ai_color.opponent
        moves = engine.get_all_legal_moves(side)
        if not moves:
            return terminal_score(engine, ai_color, self.config.mate_score)

        value = -math.inf if maximizing else math.inf
        for move in moves:
            with engine.simulate(move):
                score = self._minimax(
                    engine, depth - 1, alpha, beta, not maximizing, ai_color
                )
            if maximizing:
                value = max(value, score)
                alpha = max(alpha, score)
            else:
                value = min(value, score)
                beta = min(beta, score)
            if beta <= alpha:
                break
        return value
