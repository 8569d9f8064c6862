"""
Pytest will auto-discover / import this file called 'conftest.py'.
This file defines fixtures/variables required for testing multiple layers.
"""

import random
from typing import Callable

import pytest

from src.ai.search import ChessAI
from src.chess.engine import ChessEngine
from src.chess.moves import Move


@pytest.fixture
def engine() -> ChessEngine:
    """Fresh engine in the standard starting position"""
    return ChessEngine()


@pytest.fixture
def engine_from_fen() -> Callable[[str], ChessEngine]:
    """Call the inner function with the FEN of the position to start from"""

    def _create_engine(fen: str) -> ChessEngine:
        return ChessEngine(fen)

    return _create_engine


@pytest.fixture
def play_moves() -> Callable[[ChessEngine, list[str]], None]:
    """Play a sequence of UCI moves, every one of them must be legal"""

    def _play(engine: ChessEngine, moves_uci: list[str]) -> None:
        for uci in moves_uci:
            engine.make_move_or_raise(Move.from_uci(uci))

    return _play


@pytest.fixture
def seeded_ai() -> ChessAI:
    return ChessAI(rng=random.Random(42))
