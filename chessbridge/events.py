"""Typed event channel for the engine analyzer.

Three kinds only: ``ready`` (one shot, no payload), ``analysis``
(AnalysisResult) and ``bestmove`` (UCI move string).
"""

from __future__ import annotations

import logging
from typing import Callable

from chessbridge.models import AnalysisResult

_log = logging.getLogger(__name__)

ReadyListener = Callable[[], None]
AnalysisListener = Callable[[AnalysisResult], None]
BestMoveListener = Callable[[str], None]
Gate = Callable[[], bool]


def _always() -> bool:
    return True


class AnalyzerEvents:
    """Listener registry for ready, analysis and bestmove events."""

    def __init__(self) -> None:
        self._ready: list[ReadyListener] = []
        self._analysis: list[AnalysisListener] = []
        self._bestmove: list[BestMoveListener] = []
        self._ready_fired = False

    @property
    def ready_fired(self) -> bool:
        return self._ready_fired

    def on_ready(self, listener: ReadyListener) -> Callable[[], None]:
        """Register a one-shot ready listener.

        Listeners registered after ready has fired are never called.

        Returns:
            Callable that removes the listener if it has not fired yet.
        """
        if not self._ready_fired:
            self._ready.append(listener)
        return lambda: _discard(self._ready, listener)

    def on_analysis(self, listener: AnalysisListener) -> Callable[[], None]:
        self._analysis.append(listener)
        return lambda: _discard(self._analysis, listener)

    def on_bestmove(self, listener: BestMoveListener) -> Callable[[], None]:
        self._bestmove.append(listener)
        return lambda: _discard(self._bestmove, listener)

    def emit_ready(self) -> None:
        if self._ready_fired:
            return
        self._ready_fired = True
        listeners, self._ready = self._ready, []
        for listener in listeners:
            _call(listener)

    def emit_analysis(self, result: AnalysisResult, is_open: Gate = _always) -> None:
        """Deliver an analysis update while ``is_open()`` holds.

        The gate is checked before every listener so a listener that
        shuts the analyzer down stops delivery to the rest.
        """
        for listener in list(self._analysis):
            if not is_open():
                return
            _call(listener, result)

    def emit_bestmove(self, move: str, is_open: Gate = _always) -> None:
        for listener in list(self._bestmove):
            if not is_open():
                return
            _call(listener, move)

    def clear(self) -> None:
        """Drop every listener."""
        self._ready.clear()
        self._analysis.clear()
        self._bestmove.clear()


def _discard(listeners: list, listener: Callable) -> None:
    try:
        listeners.remove(listener)
    except ValueError:
        pass


def _call(listener: Callable, *args: object) -> None:
    # A failing listener must not stop delivery or kill the reader thread.
    try:
        listener(*args)
    except Exception:
        _log.exception("Event listener %r raised", listener)
