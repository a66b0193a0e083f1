"""Shared test fixtures.

Fixtures:
    fake_transport  - In-memory engine channel recording sent commands.
    make_analyzer   - Builds an EngineAnalyzer wired to fake_transport.
    start_board     - Board snapshot of the standard starting position.
"""

from __future__ import annotations

import pytest

from chessbridge.analyzer import EngineAnalyzer
from chessbridge.config import AnalyzerConfig
from chessbridge.models import BLACK, WHITE, Board, Piece, Square


class FakeTransport:
    """Engine channel double: records commands, replays lines on demand."""

    def __init__(self) -> None:
        self.sent: list[str] = []
        self.closed = 0
        self.on_line = None
        self.on_close = None
        self.fail_on: str | None = None

    def open(self, on_line, on_close):
        self.on_line = on_line
        self.on_close = on_close
        return self

    def send(self, command: str) -> None:
        if self.fail_on is not None and command.startswith(self.fail_on):
            raise BrokenPipeError("engine went away")
        self.sent.append(command)

    def close(self) -> None:
        self.closed += 1

    def feed(self, *lines: str) -> None:
        for line in lines:
            self.on_line(line)


@pytest.fixture()
def fake_transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture()
def make_analyzer(fake_transport):
    """Return a factory building analyzers on the fake transport."""

    def _make(**config_kwargs) -> EngineAnalyzer:
        config_kwargs.setdefault("ready_timeout", None)
        return EngineAnalyzer(fake_transport.open, AnalyzerConfig(**config_kwargs))

    return _make


@pytest.fixture()
def ready_analyzer(make_analyzer, fake_transport) -> EngineAnalyzer:
    """Analyzer that has completed the uci/isready handshake."""
    analyzer = make_analyzer()
    analyzer.initialize()
    fake_transport.feed("uciok", "readyok")
    fake_transport.sent.clear()
    return analyzer


_BACK_RANK = ["rook", "knight", "bishop", "queen", "king", "bishop", "knight", "rook"]


def _starting_squares() -> list[Square]:
    squares = []
    for i, file in enumerate("abcdefgh"):
        squares.append(Square(file, 1, Piece(_BACK_RANK[i], WHITE)))
        squares.append(Square(file, 2, Piece("pawn", WHITE)))
        squares.append(Square(file, 7, Piece("pawn", BLACK)))
        squares.append(Square(file, 8, Piece(_BACK_RANK[i], BLACK)))
    return squares


@pytest.fixture()
def start_board() -> Board:
    return Board(squares=_starting_squares())
