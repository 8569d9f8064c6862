"""
Search configuration for the chess AI.
"""

from dataclasses import dataclass

from src.core.exceptions import SearchConfigError

MAX_SEARCH_DEPTH = 2


@dataclass(frozen=True)
class SearchConfig:
    """Settings of the move selection.

    Keeps the bounds of the search explicit: the hard tier always searches to `depth` plies, there is no
    time limit or cancellation.
    """

    depth: int = 2
    """Plies searched by the hard tier (1 or 2)"""

    check_bonus: int = 50
    """Medium tier: bonus for a move that gives check"""

    center_weight: int = 10
    """Medium tier: weight of the closeness of the target square to the center of the board"""

    mobility_weight: int = 10
    """Hard tier: score per legal move of the AI's side (minus the same for the opponent)"""

    mate_score: int = 10_000
    """Hard tier: score of a position where one side is checkmated"""

    def __post_init__(self) -> None:
        if not 1 <= self.depth <= MAX_SEARCH_DEPTH:
            raise SearchConfigError(
                f"Search depth must be between 1 and {MAX_SEARCH_DEPTH}, got {self.depth}."
            )
        if self.mate_score <= 0:
            raise SearchConfigError("mate_score must be positive.")
