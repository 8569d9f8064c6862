"""Unit tests for src/chess/engine.py"""

from typing import Callable

import pytest

from src.chess.castling import CastlingDirection
from src.chess.engine import ChessEngine
from src.chess.fen import STARTING_FEN, STARTING_POSITION
from src.chess.moves import Move
from src.chess.pieces import Color, Piece, PieceType
from src.chess.square import Square
from src.core.exceptions import (
    IllegalMoveError,
    MalformedPositionError,
    PuzzleNotFoundError,
)
from src.core.shared_types import Status

BACK_RANK_MATE_FEN = "6k1/5ppp/8/8/8/8/5PPP/R5K1 w - - 0 1"
FOOLS_MATE_FEN = "rnb1kbnr/pppp1ppp/8/4p3/6Pq/5P2/PPPPP2P/RNBQKBNR w KQkq - 1 3"
STALEMATE_FEN = "7k/5Q2/6K1/8/8/8/8/8 b - - 0 1"

EngineFactory = Callable[[str], ChessEngine]
MovePlayer = Callable[[ChessEngine, list[str]], None]


def _state_of(engine: ChessEngine) -> tuple:
    """Everything that must be restored after a simulated move"""
    return (
        dict(engine.board.position),
        engine.side_to_move,
        dict(engine.castling_rights),
        engine.en_passant_square,
        list(engine.history),
        engine.to_fen(),
    )


# --- LOADING POSITIONS ---
def test_reset_gives_standard_starting_position(
    engine_from_fen: EngineFactory,
) -> None:
    engine = engine_from_fen(BACK_RANK_MATE_FEN)
    engine.reset()
    assert len(engine.board) == 32
    assert engine.board.to_fen() == STARTING_POSITION
    assert engine.side_to_move == Color.WHITE
    assert all(engine.castling_rights.values())
    assert engine.en_passant_square is None
    assert engine.history == []


def test_starting_fen_roundtrip(engine: ChessEngine) -> None:
    assert engine.to_fen() == STARTING_FEN


@pytest.mark.parametrize(
    "fen",
    [
        "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0",
        "not a fen at all",
        "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP w KQkq - 0 1",
        "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR x KQkq - 0 1",
        "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w QK - 0 1",
    ],
)
def test_malformed_fen_keeps_prior_state(
    engine_from_fen: EngineFactory, fen: str
) -> None:
    engine = engine_from_fen(BACK_RANK_MATE_FEN)
    before = _state_of(engine)
    with pytest.raises(MalformedPositionError):
        engine.load_from_fen(fen)
    assert _state_of(engine) == before


@pytest.mark.parametrize(
    "fen",
    [
        "8/8/8/8/8/8/8/8 w - - 0 1",  # no kings
        "8/8/8/8/8/8/8/4K3 w - - 0 1",  # no black king
        "4k3/8/8/8/8/8/8/3KK3 w - - 0 1",  # two white kings
    ],
)
def test_position_without_one_king_per_side_is_rejected(
    engine_from_fen: EngineFactory, fen: str
) -> None:
    with pytest.raises(MalformedPositionError):
        ChessEngine(fen)

    engine = engine_from_fen(BACK_RANK_MATE_FEN)
    with pytest.raises(MalformedPositionError):
        engine.load_from_fen(fen)
    assert engine.to_fen() == BACK_RANK_MATE_FEN


def test_load_puzzle(engine: ChessEngine) -> None:
    puzzle = engine.load_puzzle(1)
    assert engine.to_fen() == puzzle.fen


def test_load_unknown_puzzle(engine: ChessEngine) -> None:
    with pytest.raises(PuzzleNotFoundError):
        engine.load_puzzle(42)
    assert engine.to_fen() == STARTING_FEN


# --- LEGALITY ---
@pytest.mark.parametrize(
    "uci, expected",
    [
        ("e2e4", True),
        ("g1f3", True),
        ("e2e5", False),  # too far
        ("e7e5", False),  # not white's piece
        ("e4e5", False),  # no piece
        ("a1a3", False),  # rook blocked by its own pawn
        ("d1d2", False),  # onto its own piece
        ("e1g1", False),  # castling through pieces
    ],
)
def test_is_legal_move_starting_position(
    engine: ChessEngine, uci: str, expected: bool
) -> None:
    assert engine.is_legal_move(Move.from_uci(uci)) == expected


def test_is_legal_move_does_not_mutate(engine: ChessEngine) -> None:
    """Asking twice gives the same answer, and nothing about the position changes"""
    before = _state_of(engine)
    legal_moves_before = engine.get_all_legal_moves(Color.WHITE)
    for uci in ["e2e4", "e2e5", "g1f3", "e1e2"]:
        move = Move.from_uci(uci)
        assert engine.is_legal_move(move) == engine.is_legal_move(move)
    assert _state_of(engine) == before
    assert engine.get_all_legal_moves(Color.WHITE) == legal_moves_before


def test_pinned_piece_cannot_move(engine_from_fen: EngineFactory) -> None:
    """Moving the knight would expose the king to the rook"""
    engine = engine_from_fen("4r1k1/8/8/8/8/8/4N3/4K3 w - - 0 1")
    assert engine.would_be_in_check(Move.from_uci("e2c3"))
    assert not engine.is_legal_move(Move.from_uci("e2c3"))
    assert engine.legal_moves_from(Square.from_algebraic("e2")) == []


def test_must_resolve_check(engine_from_fen: EngineFactory) -> None:
    engine = engine_from_fen("4r1k1/8/8/8/8/8/8/R3K3 w - - 0 1")
    assert engine.is_in_check(Color.WHITE)
    assert not engine.is_legal_move(Move.from_uci("a1a2"))
    assert not engine.is_legal_move(Move.from_uci("a1e1"))  # own king stands there
    assert engine.is_legal_move(Move.from_uci("e1d1"))


def test_is_position_under_attack(engine: ChessEngine) -> None:
    """Independent of whose turn it is"""
    assert engine.is_position_under_attack(Square.from_algebraic("f3"), Color.BLACK)
    assert engine.is_position_under_attack(Square.from_algebraic("f6"), Color.WHITE)
    assert not engine.is_position_under_attack(Square.from_algebraic("e4"), Color.BLACK)


# --- SIMULATION ---
def test_simulate_restores_every_legal_move(engine: ChessEngine, play_moves: MovePlayer) -> None:
    play_moves(engine, ["e2e4", "d7d5", "e4e5", "f7f5"])
    before = _state_of(engine)
    for move in engine.get_all_legal_moves(engine.side_to_move):
        with engine.simulate(move):
            assert engine.side_to_move == Color.BLACK
        assert _state_of(engine) == before


def test_simulate_restores_after_exception(engine: ChessEngine) -> None:
    before = _state_of(engine)
    with pytest.raises(RuntimeError):
        with engine.simulate(Move.from_uci("e2e4")):
            raise RuntimeError("boom")
    assert _state_of(engine) == before


def test_simulate_keeps_references_valid(engine: ChessEngine) -> None:
    """The containers of the state get restored in place"""
    board = engine.board
    rights = engine.castling_rights
    with engine.simulate(Move.from_uci("e1e2")):
        assert not rights[CastlingDirection.WHITE_KING_SIDE]
    assert engine.board is board
    assert rights[CastlingDirection.WHITE_KING_SIDE]


# --- MAKING MOVES ---
def test_make_move_updates_state(engine: ChessEngine) -> None:
    assert engine.make_move(Move.from_uci("e2e4"))
    assert engine.side_to_move == Color.BLACK
    assert engine.en_passant_square == Square.from_algebraic("e3")
    assert engine.to_fen() == "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq e3 0 1"


def test_illegal_move_changes_nothing(engine: ChessEngine) -> None:
    before = _state_of(engine)
    assert not engine.make_move(Move.from_uci("e2e5"))
    assert _state_of(engine) == before

    with pytest.raises(IllegalMoveError):
        engine.make_move_or_raise(Move.from_uci("e2e5"))
    assert _state_of(engine) == before


def test_move_counters(engine: ChessEngine, play_moves: MovePlayer) -> None:
    play_moves(engine, ["g1f3", "g8f6", "b1c3"])
    assert engine.to_fen().endswith(" 3 2")
    play_moves(engine, ["e7e5"])
    assert engine.to_fen().endswith(" 0 3")


def test_back_rank_mate(engine_from_fen: EngineFactory) -> None:
    engine = engine_from_fen(BACK_RANK_MATE_FEN)
    move = Move.from_uci("a1a8")
    assert engine.is_legal_move(move)
    assert engine.make_move(move)
    assert engine.is_checkmate()
    assert not engine.is_stalemate()
    assert engine.status == Status.CHECKMATE
    assert engine.get_all_legal_moves(Color.BLACK) == []


# --- EN PASSANT ---
def test_en_passant(engine: ChessEngine, play_moves: MovePlayer) -> None:
    play_moves(engine, ["e2e4", "e7e6", "e4e5", "d7d5"])
    assert engine.en_passant_square == Square.from_algebraic("d6")

    move = Move.from_uci("e5d6")
    assert engine.is_legal_move(move)
    assert engine.make_move(move)
    assert engine.board.is_empty(Square.from_algebraic("d5"))
    assert engine.board.piece(Square.from_algebraic("d6")) == Piece(PieceType.PAWN, Color.WHITE)
    assert engine.en_passant_square is None
    assert len(engine.board) == 31


def test_en_passant_expires(engine: ChessEngine, play_moves: MovePlayer) -> None:
    """Only available right after the two-square push"""
    play_moves(engine, ["e2e4", "e7e6", "e4e5", "d7d5", "g1f3", "g8f6"])
    assert not engine.is_legal_move(Move.from_uci("e5d6"))


# --- CASTLING ---
def test_castling_king_side(engine_from_fen: EngineFactory) -> None:
    engine = engine_from_fen("r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1")
    assert engine.make_move(Move.from_uci("e1g1"))
    assert engine.board.piece(Square.from_algebraic("g1")) == Piece(PieceType.KING, Color.WHITE)
    assert engine.board.piece(Square.from_algebraic("f1")) == Piece(PieceType.ROOK, Color.WHITE)
    assert engine.board.is_empty(Square.from_algebraic("h1"))
    assert not engine.castling_rights[CastlingDirection.WHITE_KING_SIDE]
    assert not engine.castling_rights[CastlingDirection.WHITE_QUEEN_SIDE]
    assert engine.castling_rights[CastlingDirection.BLACK_KING_SIDE]


def test_castling_queen_side(engine_from_fen: EngineFactory) -> None:
    engine = engine_from_fen("r3k2r/8/8/8/8/8/8/R3K2R b KQkq - 0 1")
    assert engine.make_move(Move.from_uci("e8c8"))
    assert engine.board.piece(Square.from_algebraic("c8")) == Piece(PieceType.KING, Color.BLACK)
    assert engine.board.piece(Square.from_algebraic("d8")) == Piece(PieceType.ROOK, Color.BLACK)
    assert engine.to_fen().split(" ")[2] == "KQ"


@pytest.mark.parametrize(
    "fen, uci",
    [
        ("4k3/8/8/8/8/8/8/4K2R w K - 0 1", "e1g1"),  # allowed
        ("r3k3/8/8/8/8/8/8/4K3 b q - 0 1", "e8c8"),
    ],
)
def test_castling_allowed(engine_from_fen: EngineFactory, fen: str, uci: str) -> None:
    engine = engine_from_fen(fen)
    assert engine.is_legal_move(Move.from_uci(uci))
    assert Move.from_uci(uci) in engine.get_all_legal_moves(engine.side_to_move)


@pytest.mark.parametrize(
    "fen",
    [
        "4kr2/8/8/8/8/8/8/4K2R w K - 0 1",  # f1 is attacked: passing through check
        "4k1r1/8/8/8/8/8/8/4K2R w K - 0 1",  # g1 is attacked: ending up in check
        "4k3/8/8/8/8/8/8/r3K2R w K - 0 1",  # e1 is attacked: castling out of check
        "4k3/8/8/8/8/8/8/4K2R w - - 0 1",  # right revoked
        "4k3/8/8/8/8/8/8/4KN1R w K - 0 1",  # piece in between
        "4k3/8/8/8/8/8/8/4K3 w K - 0 1",  # no rook
    ],
)
def test_castling_rejected(engine_from_fen: EngineFactory, fen: str) -> None:
    engine = engine_from_fen(fen)
    assert not engine.is_legal_move(Move.from_uci("e1g1"))


def test_queen_side_needs_empty_b_file(engine_from_fen: EngineFactory) -> None:
    """b1 must be empty, even though the king never crosses it"""
    engine = engine_from_fen("4k3/8/8/8/8/8/8/RN2K3 w Q - 0 1")
    assert not engine.is_legal_move(Move.from_uci("e1c1"))


@pytest.mark.parametrize(
    "moves, revoked",
    [
        (["h1g1"], [CastlingDirection.WHITE_KING_SIDE]),
        (["a1b1"], [CastlingDirection.WHITE_QUEEN_SIDE]),
        (["e1f1"], [CastlingDirection.WHITE_KING_SIDE, CastlingDirection.WHITE_QUEEN_SIDE]),
        (["a1a8"], [CastlingDirection.WHITE_QUEEN_SIDE, CastlingDirection.BLACK_QUEEN_SIDE]),
    ],
)
def test_castling_rights_revoked(
    engine_from_fen: EngineFactory,
    play_moves: MovePlayer,
    moves: list[str],
    revoked: list[CastlingDirection],
) -> None:
    engine = engine_from_fen("r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1")
    play_moves(engine, moves)
    for direction in CastlingDirection:
        assert engine.castling_rights[direction] == (direction not in revoked)


# --- PROMOTION ---
def test_promotion_defaults_to_queen(engine_from_fen: EngineFactory) -> None:
    engine = engine_from_fen("8/4P3/8/8/8/8/8/k6K w - - 0 1")
    assert engine.make_move(Move.from_uci("e7e8"))
    assert engine.board.piece(Square.from_algebraic("e8")) == Piece(PieceType.QUEEN, Color.WHITE)
    assert engine.history[-1].to_uci() == "e7e8q"


@pytest.mark.parametrize("letter", ["q", "r", "b", "n"])
def test_promotion_to_requested_piece(engine_from_fen: EngineFactory, letter: str) -> None:
    engine = engine_from_fen("8/8/8/8/8/8/4p3/k6K b - - 0 1")
    move = Move.from_uci(f"e2e1{letter}")
    assert engine.make_move(move)
    assert engine.board.piece(Square.from_algebraic("e1")) == Piece.from_fen(letter)


def test_promotion_listed_once(engine_from_fen: EngineFactory) -> None:
    engine = engine_from_fen("8/4P3/8/8/8/8/8/k6K w - - 0 1")
    moves = engine.legal_moves_from(Square.from_algebraic("e7"))
    assert moves == [Move.from_uci("e7e8")]


def test_promotion_letter_dropped_on_ordinary_move(engine: ChessEngine) -> None:
    assert engine.make_move(Move.from_uci("e2e4q"))
    assert engine.history == [Move.from_uci("e2e4")]
    assert engine.board.piece(Square.from_algebraic("e4")) == Piece(PieceType.PAWN, Color.WHITE)


# --- UNDO ---
def test_undo_without_moves(engine: ChessEngine) -> None:
    before = _state_of(engine)
    assert not engine.undo_move()
    assert _state_of(engine) == before


def test_undo_after_loading_position(engine: ChessEngine, play_moves: MovePlayer) -> None:
    """Loading a position starts a fresh history: nothing before it can be taken back"""
    play_moves(engine, ["e2e4"])
    engine.load_from_fen(BACK_RANK_MATE_FEN)
    assert not engine.undo_move()
    assert engine.to_fen() == BACK_RANK_MATE_FEN


@pytest.mark.parametrize(
    "fen, setup, uci",
    [
        ("r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1", [], "e1g1"),  # castling
        ("r3k2r/8/8/8/8/8/8/R3K2R b KQkq - 0 1", [], "e8c8"),
        (STARTING_FEN, ["e2e4", "e7e6", "e4e5", "d7d5"], "e5d6"),  # en passant
        ("8/4P3/8/8/8/8/8/k6K w - - 0 1", [], "e7e8"),  # promotion
        ("8/8/8/8/8/8/4p3/k6K b - - 0 1", [], "e2e1n"),
        ("r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1", [], "a1a8"),  # rook takes rook
    ],
)
def test_undo_restores_state_exactly(
    engine_from_fen: EngineFactory,
    play_moves: MovePlayer,
    fen: str,
    setup: list[str],
    uci: str,
) -> None:
    engine = engine_from_fen(fen)
    play_moves(engine, setup)
    before = _state_of(engine)

    assert engine.make_move(Move.from_uci(uci))
    assert _state_of(engine) != before
    assert engine.undo_move()
    assert _state_of(engine) == before


def test_undo_walks_back_whole_game(engine: ChessEngine, play_moves: MovePlayer) -> None:
    moves = ["e2e4", "e7e5", "g1f3", "b8c6", "f1c4", "g8f6", "e1g1"]
    play_moves(engine, moves)
    for expected_length in range(len(moves) - 1, -1, -1):
        assert engine.undo_move()
        assert len(engine.history) == expected_length
    assert not engine.undo_move()
    assert engine.to_fen() == STARTING_FEN
    assert all(engine.castling_rights.values())


def test_undo_then_replay(engine: ChessEngine, play_moves: MovePlayer) -> None:
    play_moves(engine, ["e2e4", "e7e5"])
    after_two = engine.to_fen()
    assert engine.undo_move()
    assert engine.make_move(Move.from_uci("e7e5"))
    assert engine.to_fen() == after_two


def test_simulate_leaves_undo_untouched(engine: ChessEngine, play_moves: MovePlayer) -> None:
    play_moves(engine, ["e2e4"])
    with engine.simulate(Move.from_uci("e7e5")):
        pass
    assert engine.undo_move()
    assert engine.to_fen() == STARTING_FEN


# --- MOVE GENERATION ---
def test_starting_position_moves(engine: ChessEngine) -> None:
    assert len(engine.get_all_legal_moves(Color.WHITE)) == 20
    assert len(engine.get_all_legal_moves(Color.BLACK)) == 20


def test_legal_moves_from(engine: ChessEngine) -> None:
    moves = engine.legal_moves_from(Square.from_algebraic("g1"))
    assert {move.to_uci() for move in moves} == {"g1f3", "g1h3"}
    assert engine.legal_moves_from(Square.from_algebraic("e4")) == []


def test_perft_depth_two(engine: ChessEngine) -> None:
    """Known count of positions after one move of each side: 400"""
    total = 0
    for move in engine.get_all_legal_moves(Color.WHITE):
        with engine.simulate(move):
            total += len(engine.get_all_legal_moves(Color.BLACK))
    assert total == 400


# --- ENDING THE GAME ---
def test_fools_mate(engine_from_fen: EngineFactory) -> None:
    engine = engine_from_fen(FOOLS_MATE_FEN)
    assert engine.is_in_check(Color.WHITE)
    assert engine.is_checkmate()
    assert engine.is_game_over()


def test_stalemate(engine_from_fen: EngineFactory) -> None:
    engine = engine_from_fen(STALEMATE_FEN)
    assert not engine.is_in_check(Color.BLACK)
    assert engine.is_stalemate()
    assert not engine.is_checkmate()
    assert engine.status == Status.STALEMATE


@pytest.mark.parametrize("fen", [STARTING_FEN, BACK_RANK_MATE_FEN, FOOLS_MATE_FEN, STALEMATE_FEN])
def test_checkmate_and_stalemate_exclusive(engine_from_fen: EngineFactory, fen: str) -> None:
    engine = engine_from_fen(fen)
    assert not (engine.is_checkmate() and engine.is_stalemate())
    if engine.is_checkmate() or engine.is_stalemate():
        assert engine.get_all_legal_moves(engine.side_to_move) == []


# --- SNAPSHOT ---
def test_snapshot(engine: ChessEngine, play_moves: MovePlayer) -> None:
    play_moves(engine, ["e2e4"])
    snapshot = engine.to_snapshot()
    assert snapshot.fen == engine.to_fen()
    assert snapshot.pieces["e4"] == "wp"
    assert "e2" not in snapshot.pieces
    assert snapshot.side_to_move == "black"
    assert not snapshot.in_check
    assert snapshot.status == "in progress"
    assert snapshot.moves_uci == ["e2e4"]
