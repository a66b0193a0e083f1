"""Line-oriented channel to a UCI engine process.

The analyzer only needs ``send`` and ``close``; incoming lines are
pushed to a callback from a reader thread.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import threading
from pathlib import Path
from typing import Callable, Protocol

_log = logging.getLogger(__name__)

# Stockfish search paths in priority order
_STOCKFISH_PATHS = [
    "/opt/homebrew/bin/stockfish",
    "/usr/local/bin/stockfish",
    "/usr/bin/stockfish",
    "/usr/games/stockfish",
]

_CLOSE_GRACE_SECONDS = 2.0

LineCallback = Callable[[str], None]
CloseCallback = Callable[[], None]


class EngineTransport(Protocol):
    """Bidirectional text channel to an engine."""

    def send(self, command: str) -> None:
        """Write one command line to the engine."""

    def close(self) -> None:
        """Release the channel. Safe to call more than once."""


# Called with the line callback and the end-of-output callback.
TransportFactory = Callable[[LineCallback, CloseCallback], EngineTransport]


def find_stockfish(explicit: str | None = None) -> str:
    """Locate the Stockfish binary.

    Checks the explicit path, then STOCKFISH_PATH, then known install
    paths, then falls back to PATH lookup.

    Args:
        explicit: Path supplied by the caller, if any.

    Returns:
        Path to Stockfish binary.

    Raises:
        FileNotFoundError: If Stockfish is not found anywhere.
    """
    if explicit:
        if Path(explicit).is_file():
            return explicit
        raise FileNotFoundError(f"Stockfish not found at {explicit}")

    env_path = os.environ.get("STOCKFISH_PATH")
    if env_path and Path(env_path).is_file():
        return env_path

    for path_str in _STOCKFISH_PATHS:
        if Path(path_str).is_file():
            return path_str

    which_result = shutil.which("stockfish")
    if which_result is not None:
        return which_result

    raise FileNotFoundError(
        "Stockfish not found. Install it or set STOCKFISH_PATH."
    )


class SubprocessTransport:
    """Engine binary running as a child process with piped stdio."""

    def __init__(
        self,
        command: list[str],
        on_line: LineCallback,
        on_close: CloseCallback | None = None,
    ) -> None:
        """Start the engine process and its stdout reader thread.

        Args:
            command: argv of the engine process.
            on_line: Called with each stripped stdout line, on the
                reader thread.
            on_close: Called once on the reader thread when the engine
                closes its output, whether it quit or crashed.

        Raises:
            OSError: If the process cannot be started.
        """
        self._on_line = on_line
        self._on_close = on_close
        self._closed = False
        self._proc = subprocess.Popen(
            command,
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            text=True,
            bufsize=1,
        )
        self._reader = threading.Thread(
            target=self._read_output, name="engine-reader", daemon=True
        )
        self._reader.start()
        _log.debug("Started engine process %s (pid %s)", command[0], self._proc.pid)

    @classmethod
    def factory(cls, path: str | None = None) -> TransportFactory:
        """Return a transport factory that launches Stockfish.

        The binary is resolved when the factory is called, so a missing
        engine surfaces as FileNotFoundError at that point.
        """
        def _open(on_line: LineCallback, on_close: CloseCallback) -> SubprocessTransport:
            return cls([find_stockfish(path)], on_line, on_close)
        return _open

    def _read_output(self) -> None:
        stdout = self._proc.stdout
        for raw in stdout:
            line = raw.strip()
            if line:
                self._on_line(line)
        _log.debug("Engine output closed")
        if self._on_close is not None:
            self._on_close()

    def send(self, command: str) -> None:
        if self._closed:
            raise OSError("Engine transport is closed")
        _log.debug("Sending %s", command)
        self._proc.stdin.write(command + "\n")
        self._proc.stdin.flush()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._proc.stdin.close()
        except OSError:
            pass
        try:
            self._proc.wait(timeout=_CLOSE_GRACE_SECONDS)
        except subprocess.TimeoutExpired:
            self._proc.terminate()
            try:
                self._proc.wait(timeout=_CLOSE_GRACE_SECONDS)
            except subprocess.TimeoutExpired:
                self._proc.kill()
                self._proc.wait()
        _log.debug("Engine process exited with %s", self._proc.returncode)
