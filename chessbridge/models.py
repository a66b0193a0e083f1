"""Shared data models for chess-bridge.

Board, Square and Piece are the snapshot a host hands to the FEN
serializer. AnalysisResult is what the engine analyzer emits for each
accepted ``info`` line.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import chess

WHITE = "white"
BLACK = "black"

FILES = "abcdefgh"


@dataclass
class Piece:
    """A piece as the host application tracks it."""

    type: str
    side: str
    move_count: int = 0
    notation: str = ""


@dataclass
class Square:
    """A board coordinate with an optional occupying piece."""

    file: str
    rank: int
    piece: Piece | None = None


@dataclass
class Board:
    """Unordered collection of squares. Missing squares are empty."""

    squares: list[Square] = field(default_factory=list)

    def square_at(self, file: str, rank: int) -> Square | None:
        for square in self.squares:
            if square.file == file and square.rank == rank:
                return square
        return None

    def piece_at(self, file: str, rank: int) -> Piece | None:
        square = self.square_at(file, rank)
        if square is None:
            return None
        return square.piece


@dataclass(frozen=True)
class AnalysisResult:
    """One analysis update parsed from an engine ``info`` line."""

    score: int
    depth: int
    mate: int | None = None
    best_move: str | None = None
    pv: tuple[str, ...] = ()


def side_to_move(board: chess.Board) -> str:
    """Return ``"white"`` or ``"black"`` for a python-chess board."""
    return WHITE if board.turn == chess.WHITE else BLACK


def snapshot_from_chess(board: chess.Board) -> Board:
    """Build a Board snapshot from a python-chess board.

    Move counts are recovered by replaying the move stack from the
    board's root position, so a king that castled counts one move and
    so does its rook.

    Args:
        board: Any python-chess board, with or without a move stack.

    Returns:
        Board holding one Square per occupied square.
    """
    replay = board.root()
    counts: dict[int, int] = {sq: 0 for sq in replay.piece_map()}

    for move in board.move_stack:
        moved = counts.pop(move.from_square, 0) + 1
        rank = chess.square_rank(move.from_square)

        if replay.is_castling(move):
            kingside = replay.is_kingside_castling(move)
            rook_from = _castling_rook_square(replay, move, kingside)
            rook_moves = counts.pop(rook_from, 0) + 1
            counts[chess.square(5 if kingside else 3, rank)] = rook_moves
            counts[chess.square(6 if kingside else 2, rank)] = moved
        else:
            if replay.is_en_passant(move):
                counts.pop(chess.square(chess.square_file(move.to_square), rank), None)
            counts.pop(move.to_square, None)
            counts[move.to_square] = moved

        replay.push(move)

    squares = []
    for sq, piece in board.piece_map().items():
        squares.append(
            Square(
                file=chess.square_name(sq)[0],
                rank=chess.square_rank(sq) + 1,
                piece=Piece(
                    type=chess.piece_name(piece.piece_type),
                    side=WHITE if piece.color == chess.WHITE else BLACK,
                    move_count=counts.get(sq, 0),
                    notation=piece.symbol().upper(),
                ),
            )
        )
    return Board(squares=squares)


def _castling_rook_square(board: chess.Board, move: chess.Move, kingside: bool) -> int:
    # In chess960 encoding the king "captures" its own rook.
    target = board.piece_at(move.to_square)
    if target is not None and target.piece_type == chess.ROOK and target.color == board.turn:
        return move.to_square
    rank = chess.square_rank(move.from_square)
    return chess.square(7 if kingside else 0, rank)
