"""UCI engine analyzer.

Drives the ``uci``/``isready`` handshake, submits positions and turns
streamed engine output into typed events. All public operations are
fire-and-forget: failures end up in the log and in ``state``, never in
an exception raised to the caller.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from chessbridge.config import AnalyzerConfig, NotReadyPolicy
from chessbridge.events import AnalyzerEvents
from chessbridge.transport import EngineTransport, SubprocessTransport, TransportFactory
from chessbridge.uci_lines import parse_bestmove_line, parse_info_line

_log = logging.getLogger(__name__)


class SessionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    AWAITING_UCIOK = "awaiting_uciok"
    AWAITING_READYOK = "awaiting_readyok"
    READY = "ready"
    DEGRADED = "degraded"
    CLOSED = "closed"


_TERMINAL = (SessionState.DEGRADED, SessionState.CLOSED)


class EngineAnalyzer:
    """Client side of one UCI conversation with an analysis engine.

    One re-entrant lock serializes line dispatch (reader thread), ready
    timeouts (timer threads) and host calls, so ``quit()`` either runs
    before a line is dispatched or after its listeners have all returned.
    Listeners run with the lock held and must not block on another
    thread that uses the analyzer.
    """

    def __init__(
        self,
        transport_factory: TransportFactory | None = None,
        config: AnalyzerConfig | None = None,
    ) -> None:
        """Acquire the engine channel.

        Never raises: whatever the transport factory raises leaves the
        analyzer in the DEGRADED state with the failure logged.

        Args:
            transport_factory: Opens the engine channel given the line
                and end-of-output callbacks. Defaults to a Stockfish
                subprocess.
            config: Analyzer settings. Defaults to AnalyzerConfig().
        """
        self._config = config or AnalyzerConfig()
        self.events = AnalyzerEvents()
        self._lock = threading.RLock()
        self._state = SessionState.UNINITIALIZED
        self._current_position = ""
        self._error: Exception | None = None
        self._transport: EngineTransport | None = None
        self._pending: list[_QueuedRequest] = []

        factory = transport_factory or SubprocessTransport.factory(self._config.stockfish_path)
        with self._lock:
            try:
                self._transport = factory(self.on_line, self.on_engine_exit)
            except Exception as exc:
                self._degrade(exc, "Engine unavailable")

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state is SessionState.READY

    @property
    def current_position(self) -> str:
        """FEN most recently submitted to the engine."""
        return self._current_position

    @property
    def error(self) -> Exception | None:
        return self._error

    @property
    def policy(self) -> NotReadyPolicy:
        return self._config.not_ready_policy

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def initialize(self) -> None:
        """Start the handshake. Readiness arrives later as a ready event."""
        with self._lock:
            if self._state is not SessionState.UNINITIALIZED:
                _log.debug("initialize() ignored in state %s", self._state.value)
                return
            self._state = SessionState.AWAITING_UCIOK
            self._send("uci")

    def analyze_position(self, fen: str, depth: int | None = None) -> None:
        """Ask the engine to search a position to the given depth.

        Before the handshake completes the request is queued for replay
        on readyok or dropped, depending on the configured policy.
        """
        if depth is None:
            depth = self._config.default_depth

        with self._lock:
            if self._state in _TERMINAL:
                _log.debug("analyze_position ignored: analyzer is %s", self._state.value)
                return

            if self._state is not SessionState.READY:
                if self._config.not_ready_policy is NotReadyPolicy.DROP:
                    _log.warning("Engine not ready, dropping analysis of %s", fen)
                    return
                self._queue(fen, depth)
                return

            self._current_position = fen
            self._send(f"position fen {fen}")
            self._send(f"go depth {depth}")

    def stop_analysis(self) -> None:
        with self._lock:
            if self._state is SessionState.READY:
                self._send("stop")

    def quit(self) -> None:
        """Shut the engine down. Safe to call repeatedly.

        No analysis or bestmove event is delivered once this returns,
        nor to listeners still waiting when it is called from a listener.
        """
        with self._lock:
            if self._state is SessionState.CLOSED:
                return
            transport = self._transport
            was_degraded = self._state is SessionState.DEGRADED
            self._state = SessionState.CLOSED
            self._cancel_pending()
            self.events.clear()
            self._transport = None
        if transport is None:
            return

        try:
            if not was_degraded:
                transport.send("quit")
        except OSError as exc:
            _log.debug("Could not send quit: %s", exc)
        finally:
            transport.close()
        _log.info("Engine session closed")

    # ------------------------------------------------------------------
    # Engine callbacks
    # ------------------------------------------------------------------

    def on_line(self, line: str) -> None:
        """Handle one line of engine output, in arrival order."""
        with self._lock:
            if self._state in _TERMINAL:
                return
            line = line.strip()
            _log.debug("Received %s", line)

            if line == "uciok":
                if self._state is not SessionState.READY:
                    self._state = SessionState.AWAITING_READYOK
                self._send("isready")
            elif line == "readyok":
                if self._state is not SessionState.READY:
                    self._state = SessionState.READY
                    _log.info("Engine ready")
                    self.events.emit_ready()
            elif line.startswith("info depth"):
                result = parse_info_line(line)
                if result is not None:
                    self.events.emit_analysis(result, self._is_open)
            elif line.startswith("bestmove"):
                move = parse_bestmove_line(line)
                if move is not None:
                    self.events.emit_bestmove(move, self._is_open)

    def on_engine_exit(self) -> None:
        """Handle the engine closing its output. Ignored after quit()."""
        with self._lock:
            if self._state in _TERMINAL:
                return
            self._degrade(EOFError("engine closed its output"), "Engine exited")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _is_open(self) -> bool:
        return self._state not in _TERMINAL

    def _send(self, command: str) -> None:
        if self._transport is None or self._state in _TERMINAL:
            return
        try:
            self._transport.send(command)
        except OSError as exc:
            self._degrade(exc, "Engine channel broken")

    def _degrade(self, exc: Exception, reason: str) -> None:
        _log.error("%s: %s", reason, exc)
        self._error = exc
        self._state = SessionState.DEGRADED
        self._cancel_pending()

    def _queue(self, fen: str, depth: int) -> None:
        request = _QueuedRequest(fen, depth)

        def _replay() -> None:
            if self._forget(request):
                self.analyze_position(fen, depth)

        request.unsubscribe = self.events.on_ready(_replay)
        if self._config.ready_timeout is not None:
            request.timer = threading.Timer(self._config.ready_timeout, self._expire, args=(request,))
            request.timer.daemon = True
        self._pending.append(request)
        _log.debug("Engine not ready, queued analysis of %s", fen)
        if request.timer is not None:
            request.timer.start()

    def _expire(self, request: _QueuedRequest) -> None:
        with self._lock:
            request.unsubscribe()
            if self._forget(request):
                _log.warning("Engine not ready after %ss, discarded analysis of %s",
                             self._config.ready_timeout, request.fen)

    def _forget(self, request: _QueuedRequest) -> bool:
        try:
            self._pending.remove(request)
        except ValueError:
            return False
        if request.timer is not None:
            request.timer.cancel()
        return True

    def _cancel_pending(self) -> None:
        pending, self._pending = self._pending, []
        for request in pending:
            request.unsubscribe()
            if request.timer is not None:
                request.timer.cancel()


@dataclass(eq=False)
class _QueuedRequest:
    """analyze_position call waiting for the ready event."""

    fen: str
    depth: int
    unsubscribe: Callable[[], None] = lambda: None
    timer: threading.Timer | None = None
