"""
Puzzle catalog: ten famous checkmate patterns.

The records are fixed, read-only data. Solutions are stored as algebraic move labels for hint display only,
they are never checked against the rules engine.
"""

import random
from dataclasses import dataclass
from typing import Optional

from src.core.exceptions import PuzzleNotFoundError
from src.core.shared_types import Difficulty


@dataclass(frozen=True)
class PuzzleRecord:
    id: int
    name: str
    theme: str
    difficulty: Difficulty
    fen: str
    description: str
    solution: tuple[str, ...]  # alternating sides, starting with the side to move
    mate_in: int = 0  # 0 for purely tactical puzzles


PUZZLES: tuple[PuzzleRecord, ...] = (
    PuzzleRecord(
        id=1,
        name="Back Rank Mate",
        theme="King trapped behind pawns",
        difficulty=Difficulty.EASY,
        fen="6k1/5ppp/8/8/8/8/5PPP/R5K1 w - - 0 1",
        description="White to move. Deliver checkmate on the back rank!",
        solution=("Ra8#",),
        mate_in=1,
    ),
    PuzzleRecord(
        id=2,
        name="Smothered Mate",
        theme="Knight checkmates king trapped by own pieces",
        difficulty=Difficulty.MEDIUM,
        fen="5rk1/5ppp/8/8/8/8/5PPP/4RNK1 w - - 0 1",
        description="Sacrifice the rook, then deliver smothered mate with knight!",
        solution=("Re8+", "Rxe8", "Nf7#"),
        mate_in=2,
    ),
    PuzzleRecord(
        id=3,
        name="Opera Mate",
        theme="Rook and bishops coordinate for mate",
        difficulty=Difficulty.MEDIUM,
        fen="r4rk1/ppp2ppp/2n5/3q4/3P4/2NB4/PPP2PPP/R2Q1RK1 w - - 0 1",
        description="Morphy's famous combination! Find the forced mate.",
        solution=("Qxd5+", "Nxd5", "Re8#"),
        mate_in=2,
    ),
    PuzzleRecord(
        id=4,
        name="Legal's Mate",
        theme="Queen sacrifice leads to checkmate",
        difficulty=Difficulty.EASY,
        fen="r1bqkb1r/pppp1ppp/2n2n2/4p2Q/2B1P3/8/PPPP1PPP/RNB1K1NR w KQkq - 0 1",
        description="Sacrifice your queen for a beautiful checkmate!",
        solution=("Qxf7+", "Kxf7", "Bc4+"),
        mate_in=2,
    ),
    PuzzleRecord(
        id=5,
        name="Arabian Mate",
        theme="Knight and rook deliver mate in corner",
        difficulty=Difficulty.MEDIUM,
        fen="5rkN/8/6R1/8/8/8/8/6K1 w - - 0 1",
        description="Knight controls escape squares, rook delivers mate!",
        solution=("Rg8#",),
        mate_in=1,
    ),
    PuzzleRecord(
        id=6,
        name="Anastasia's Mate",
        theme="Knight and rook trap king on edge",
        difficulty=Difficulty.MEDIUM,
        fen="2kr4/ppp5/8/3N4/8/8/PPP5/1K1R4 w - - 0 1",
        description="Use knight to cut off escape, rook delivers mate!",
        solution=("Rd8#",),
        mate_in=1,
    ),
    PuzzleRecord(
        id=7,
        name="Boden's Mate",
        theme="Two bishops deliver criss-cross checkmate",
        difficulty=Difficulty.HARD,
        fen="r1b1kb1r/pppp1ppp/5n2/4p3/2B1P3/2N5/PPPP1qPP/R1BQ1RK1 b kq - 0 1",
        description="Black to move. Use both bishops for a stunning mate!",
        solution=("Qxc2", "Bxf7+", "Kh8", "Bg6#"),
        mate_in=3,
    ),
    PuzzleRecord(
        id=8,
        name="Greek Gift",
        theme="Bishop sacrifice on h7 leads to attack",
        difficulty=Difficulty.MEDIUM,
        fen="r1bq1rk1/ppp2ppp/2n2n2/3p4/2BP4/2N2N2/PPP2PPP/R1BQ1RK1 w - - 0 1",
        description="Sacrifice the bishop on h7, then bring queen and knight!",
        solution=("Bxh7+", "Kxh7", "Ng5+", "Kg8", "Qh5"),
        mate_in=3,
    ),
    PuzzleRecord(
        id=9,
        name="Zugzwang",
        theme="Any move opponent makes loses",
        difficulty=Difficulty.HARD,
        fen="8/8/8/8/4k3/8/3K4/4Q3 w - - 0 1",
        description="Find the move that forces black into zugzwang!",
        solution=("Qe2+", "Kf5", "Qf3+"),
        mate_in=2,
    ),
    PuzzleRecord(
        id=10,
        name="Damiano's Mate",
        theme="Queen sacrifice leads to pawn mate",
        difficulty=Difficulty.EASY,
        fen="6k1/5p1p/6p1/8/8/6Q1/8/6K1 w - - 0 1",
        description="Sacrifice the queen for an elegant pawn checkmate!",
        solution=("Qg7+", "fxg7", "h7#"),
        mate_in=2,
    ),
)


def puzzles_by_difficulty(difficulty: Optional[Difficulty] = None) -> tuple[PuzzleRecord, ...]:
    """All puzzles of the given difficulty (all of them when no difficulty is given)"""
    if difficulty is None:
        return PUZZLES
    return tuple(puzzle for puzzle in PUZZLES if puzzle.difficulty == difficulty)


def get_random_puzzle(
    difficulty: Optional[Difficulty] = None, rng: Optional[random.Random] = None
) -> PuzzleRecord:
    """Uniform choice among the puzzles that match the difficulty filter."""
    candidates = puzzles_by_difficulty(difficulty)
    if not candidates:
        raise PuzzleNotFoundError(f"No puzzle with difficulty {difficulty!r}.")
    return (rng or random).choice(candidates)


def get_puzzle_by_id(puzzle_id: int) -> PuzzleRecord:
    puzzle = next((puzzle for puzzle in PUZZLES if puzzle.id == puzzle_id), None)
    if puzzle is None:
        raise PuzzleNotFoundError(f"Puzzle with {puzzle_id=} not found.")
    return puzzle
