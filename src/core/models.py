"""
Boundary layer data model(s).

The Service reads these from the engine and turns them into responses for the UI collaborator.
(Decouples the domain objects (Board, Square, Piece, ...) from the information that needs to cross the boundary)
"""

from dataclasses import dataclass, field

# Type aliases to make PositionSnapshot easier to read
SquareName = str
PieceCode = str


@dataclass
class PositionSnapshot:
    """Transport-safe representation of the engine's current state."""

    fen: str
    pieces: dict[SquareName, PieceCode]
    side_to_move: str
    in_check: bool
    status: str
    moves_uci: list[str] = field(default_factory=list)
