"""
Type definitions used across layers
"""

from enum import StrEnum


class Status(StrEnum):
    IN_PROGRESS = "in progress"
    CHECKMATE = "checkmate"
    STALEMATE = "stalemate"


class Difficulty(StrEnum):
    """Strength tier of the AI, and how hard a puzzle is considered to be."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


# --- Color here is the transport-safe (string) version.
# --- NOTE The domain layer has its own enum in src/chess/pieces.py. Imports show which version is used where.


class Color(StrEnum):
    WHITE = "white"
    BLACK = "black"

