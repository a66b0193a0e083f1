"""Parsing of the UCI engine output lines the analyzer reacts to.

Only ``info`` lines carrying a depth and ``bestmove`` lines are parsed;
every keyword lookup goes through a bounds-checked TokenCursor so a
truncated line yields nothing instead of an IndexError.
"""

from __future__ import annotations

from chessbridge.models import AnalysisResult

# Shallower info lines are too noisy to report
MIN_REPORT_DEPTH = 10

_MATE_SCORE = 10000


class TokenCursor:
    """Forward-only cursor over the whitespace-separated tokens of a line."""

    def __init__(self, line: str) -> None:
        self._tokens = line.split()
        self._pos = 0

    @property
    def at_end(self) -> bool:
        return self._pos >= len(self._tokens)

    def peek(self) -> str | None:
        if self.at_end:
            return None
        return self._tokens[self._pos]

    def next(self) -> str | None:
        token = self.peek()
        if token is not None:
            self._pos += 1
        return token

    def next_int(self) -> int | None:
        """Consume one token as an int. None if missing or not an integer."""
        token = self.next()
        if token is None:
            return None
        try:
            return int(token)
        except ValueError:
            return None

    def rest(self) -> list[str]:
        remaining = self._tokens[self._pos:]
        self._pos = len(self._tokens)
        return remaining


def parse_info_line(line: str) -> AnalysisResult | None:
    """Parse an ``info depth ...`` line into an AnalysisResult.

    Example input::

        info depth 12 seldepth 18 multipv 1 score cp 25 nodes 123456 pv e2e4 e7e5

    Args:
        line: Raw engine output line.

    Returns:
        AnalysisResult, or None when the depth is below MIN_REPORT_DEPTH
        or the line carries neither a centipawn nor a mate score.
    """
    cursor = TokenCursor(line)
    depth = 0
    score: int | None = None
    mate: int | None = None
    pv: list[str] = []

    while not cursor.at_end:
        token = cursor.next()
        if token == "depth":
            parsed = cursor.next_int()
            if parsed is not None:
                depth = parsed
        elif token == "score":
            kind = cursor.next()
            if kind == "cp":
                score = cursor.next_int()
            elif kind == "mate":
                mate = cursor.next_int()
        elif token == "pv":
            pv = cursor.rest()

    if depth < MIN_REPORT_DEPTH or (score is None and mate is None):
        return None

    if score is None:
        score = _MATE_SCORE if mate > 0 else -_MATE_SCORE

    return AnalysisResult(
        score=score,
        depth=depth,
        mate=mate,
        best_move=pv[0] if pv else None,
        pv=tuple(pv),
    )


def parse_bestmove_line(line: str) -> str | None:
    """Return the move from ``bestmove <move> [ponder <move>]``, or None."""
    cursor = TokenCursor(line)
    if cursor.next() != "bestmove":
        return None
    return cursor.next()
