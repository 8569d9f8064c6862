"""Unit tests for src/ai/search.py"""

import random
from typing import Callable
from unittest.mock import patch

import pytest

from src.ai.config import SearchConfig
from src.ai.search import ChessAI
from src.chess.engine import ChessEngine
from src.chess.moves import Move
from src.chess.pieces import Color
from src.core.exceptions import NoLegalMovesError
from src.core.shared_types import Difficulty

EngineFactory = Callable[[str], ChessEngine]

WHITE_BACK_RANK_MATE = "6k1/5ppp/8/8/8/8/5PPP/R5K1 w - - 0 1"
BLACK_BACK_RANK_MATE = "r5k1/5ppp/8/8/8/8/5PPP/6K1 b - - 0 1"
FOOLS_MATE = "rnb1kbnr/pppp1ppp/8/4p3/6Pq/5P2/PPPPP2P/RNBQKBNR w KQkq - 1 3"
HANGING_QUEEN = "4k3/8/8/3q4/8/8/8/3RK3 w - - 0 1"


@pytest.mark.parametrize("difficulty", list(Difficulty))
def test_returns_a_legal_move(
    engine: ChessEngine, seeded_ai: ChessAI, difficulty: Difficulty
) -> None:
    move = seeded_ai.choose_move(engine, difficulty, Color.WHITE)
    assert engine.is_legal_move(move)


@pytest.mark.parametrize("difficulty", list(Difficulty))
def test_engine_left_untouched(
    engine_from_fen: EngineFactory, seeded_ai: ChessAI, difficulty: Difficulty
) -> None:
    engine = engine_from_fen(HANGING_QUEEN)
    fen_before = engine.to_fen()
    seeded_ai.choose_move(engine, difficulty, Color.WHITE)
    assert engine.to_fen() == fen_before
    assert engine.history == []


@pytest.mark.parametrize("difficulty", list(Difficulty))
def test_no_legal_moves(
    engine_from_fen: EngineFactory, seeded_ai: ChessAI, difficulty: Difficulty
) -> None:
    engine = engine_from_fen(FOOLS_MATE)
    with pytest.raises(NoLegalMovesError):
        seeded_ai.choose_move(engine, difficulty, Color.WHITE)


# --- EASY ---
def test_easy_is_reproducible_with_seed(engine: ChessEngine) -> None:
    first = ChessAI(rng=random.Random(7)).choose_move(engine, Difficulty.EASY, Color.WHITE)
    second = ChessAI(rng=random.Random(7)).choose_move(engine, Difficulty.EASY, Color.WHITE)
    assert first == second


def test_easy_picks_from_legal_moves(engine: ChessEngine) -> None:
    ai = ChessAI(rng=random.Random(0))
    legal_moves = engine.get_all_legal_moves(Color.WHITE)
    picked = {ai.choose_move(engine, Difficulty.EASY, Color.WHITE) for _ in range(50)}
    assert picked <= set(legal_moves)
    assert len(picked) > 1


# --- MEDIUM ---
def test_medium_prefers_capture(engine_from_fen: EngineFactory) -> None:
    engine = engine_from_fen("4k3/8/8/8/8/8/p7/R3K3 w - - 0 1")
    move = ChessAI().choose_move(engine, Difficulty.MEDIUM, Color.WHITE)
    assert move == Move.from_uci("a1a2")


def test_medium_takes_the_queen(engine_from_fen: EngineFactory) -> None:
    engine = engine_from_fen(HANGING_QUEEN)
    move = ChessAI().choose_move(engine, Difficulty.MEDIUM, Color.WHITE)
    assert move == Move.from_uci("d1d5")


@pytest.mark.parametrize(
    "fen, uci, expected",
    [
        # no capture, corner square, gives check
        (WHITE_BACK_RANK_MATE, "a1a8", 50),
        # no capture, e2 lies 3 away from the center
        ("4k3/8/8/8/8/8/8/4K3 w - - 0 1", "e1e2", 40),
        # takes a queen on d5, right next to the center
        (HANGING_QUEEN, "d1d5", 900 + 60),
    ],
)
def test_medium_move_score(
    engine_from_fen: EngineFactory, fen: str, uci: str, expected: int
) -> None:
    engine = engine_from_fen(fen)
    assert ChessAI().score_move(engine, Move.from_uci(uci), Color.WHITE) == expected


def test_medium_ties_keep_first_move(engine: ChessEngine) -> None:
    with patch.object(ChessAI, "score_move", return_value=0):
        move = ChessAI().choose_move(engine, Difficulty.MEDIUM, Color.WHITE)
    assert move == engine.get_all_legal_moves(Color.WHITE)[0]


# --- HARD ---
@pytest.mark.parametrize(
    "fen, color, expected",
    [
        (WHITE_BACK_RANK_MATE, Color.WHITE, "a1a8"),
        (BLACK_BACK_RANK_MATE, Color.BLACK, "a8a1"),
    ],
)
def test_hard_finds_mate_in_one(
    engine_from_fen: EngineFactory, fen: str, color: Color, expected: str
) -> None:
    engine = engine_from_fen(fen)
    move = ChessAI().choose_move(engine, Difficulty.HARD, color)
    assert move == Move.from_uci(expected)


def test_hard_takes_the_queen(engine_from_fen: EngineFactory) -> None:
    engine = engine_from_fen(HANGING_QUEEN)
    move = ChessAI().choose_move(engine, Difficulty.HARD, Color.WHITE)
    assert move == Move.from_uci("d1d5")


def test_hard_with_depth_one(engine_from_fen: EngineFactory) -> None:
    engine = engine_from_fen(WHITE_BACK_RANK_MATE)
    ai = ChessAI(config=SearchConfig(depth=1))
    assert ai.choose_move(engine, Difficulty.HARD, Color.WHITE) == Move.from_uci("a1a8")


def test_hard_ties_keep_first_move(engine: ChessEngine) -> None:
    """Every leaf scores the same, so nothing beats the first move"""
    with patch("src.ai.search.evaluate_position", return_value=0):
        move = ChessAI().choose_move(engine, Difficulty.HARD, Color.WHITE)
    assert move == engine.get_all_legal_moves(Color.WHITE)[0]


def test_hard_does_not_blunder_the_queen(engine_from_fen: EngineFactory) -> None:
    """Qxd5 looks good one ply deep, but the pawn on e6 takes back"""
    engine = engine_from_fen("4k3/8/4p3/3p4/8/8/8/3QK3 w - - 0 1")
    move = ChessAI().choose_move(engine, Difficulty.HARD, Color.WHITE)
    assert move != Move.from_uci("d1d5")
