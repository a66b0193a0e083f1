"""FEN serialization for host board snapshots.

Produces the six space-separated FEN fields from a Board. Castling
rights are derived structurally from the home squares and per-piece
move counters. The en passant target, halfmove clock and fullmove
number are always the placeholders ``-``, ``0`` and ``1``: the snapshot
carries no game history to derive them from.
"""

from __future__ import annotations

from chessbridge.models import BLACK, FILES, WHITE, Board, Piece

STARTING_PLACEMENT = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR"

_PIECE_LETTERS = {
    "pawn": "P",
    "knight": "N",
    "bishop": "B",
    "rook": "R",
    "queen": "Q",
    "king": "K",
}

# (flag, side, king square, rook square), in FEN order
_CASTLING_HOMES = [
    ("K", WHITE, ("e", 1), ("h", 1)),
    ("Q", WHITE, ("e", 1), ("a", 1)),
    ("k", BLACK, ("e", 8), ("h", 8)),
    ("q", BLACK, ("e", 8), ("a", 8)),
]

_EN_PASSANT = "-"
_HALFMOVE_CLOCK = "0"
_FULLMOVE_NUMBER = "1"


def to_fen(board: Board, current_side: str) -> str:
    """Serialize a board snapshot to FEN.

    Args:
        board: Board snapshot. Squares may be missing or empty.
        current_side: Side to move. Exactly ``"white"`` gives ``w``;
            any other value gives ``b``.

    Returns:
        FEN string with six space-separated fields.
    """
    active = "w" if current_side == WHITE else "b"
    return " ".join([
        placement(board),
        active,
        castling_rights(board),
        _EN_PASSANT,
        _HALFMOVE_CLOCK,
        _FULLMOVE_NUMBER,
    ])


def placement(board: Board) -> str:
    """Return the piece placement field, rank 8 first."""
    ranks = []
    for rank in range(8, 0, -1):
        row = []
        empty = 0
        for file in FILES:
            piece = board.piece_at(file, rank)
            if piece is None:
                empty += 1
                continue
            if empty:
                row.append(str(empty))
                empty = 0
            row.append(piece_letter(piece))
        if empty:
            row.append(str(empty))
        ranks.append("".join(row))
    return "/".join(ranks)


def piece_letter(piece: Piece) -> str:
    """FEN letter for a piece. Unknown types fall back to their notation."""
    letter = _PIECE_LETTERS.get(piece.type) or piece.notation.upper()
    if piece.side == BLACK:
        return letter.lower()
    return letter


def castling_rights(board: Board) -> str:
    """Return the castling field, or ``-`` when no pair is unmoved.

    A rook standing on its home square with a zero move count is taken
    to be the original rook, even if it was placed or promoted there.
    """
    rights = ""
    for flag, side, king_home, rook_home in _CASTLING_HOMES:
        if (_unmoved(board.piece_at(*king_home), "king", side)
                and _unmoved(board.piece_at(*rook_home), "rook", side)):
            rights += flag
    return rights or "-"


def _unmoved(piece: Piece | None, kind: str, side: str) -> bool:
    return (
        piece is not None
        and piece.type == kind
        and piece.side == side
        and piece.move_count == 0
    )
