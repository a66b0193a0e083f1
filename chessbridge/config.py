"""Runtime configuration for the engine analyzer, read from the environment."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from enum import Enum


class NotReadyPolicy(str, Enum):
    """What analyze_position does before the engine handshake completes."""

    QUEUE = "queue"  # replay once the engine reports readyok
    DROP = "drop"    # discard the request


DEFAULT_DEPTH = 15
DEFAULT_READY_TIMEOUT = 10.0


@dataclass
class AnalyzerConfig:
    """Analyzer settings.

    Attributes:
        stockfish_path: Explicit engine binary, or None to auto-detect.
        default_depth: Depth used when analyze_position gets none.
        not_ready_policy: Handling of requests made before readyok.
        ready_timeout: Seconds a queued request waits for readyok before
            it is discarded. None waits forever.
        log_level: Level the CLI configures logging with.
    """

    stockfish_path: str | None = None
    default_depth: int = DEFAULT_DEPTH
    not_ready_policy: NotReadyPolicy = NotReadyPolicy.QUEUE
    ready_timeout: float | None = DEFAULT_READY_TIMEOUT
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> AnalyzerConfig:
        """Build a config from environment variables.

        Raises:
            ValueError: If a variable holds an invalid value.
        """
        env = os.environ if environ is None else environ

        depth = _int_var(env, "CHESS_BRIDGE_DEPTH", DEFAULT_DEPTH)
        if depth < 1:
            raise ValueError(f"CHESS_BRIDGE_DEPTH must be positive, got {depth}")

        policy_raw = env.get("CHESS_BRIDGE_NOT_READY_POLICY", NotReadyPolicy.QUEUE.value)
        try:
            policy = NotReadyPolicy(policy_raw.strip().lower())
        except ValueError:
            raise ValueError(
                f"CHESS_BRIDGE_NOT_READY_POLICY must be 'queue' or 'drop', got {policy_raw!r}"
            ) from None

        timeout_raw = env.get("CHESS_BRIDGE_READY_TIMEOUT", "").strip()
        if not timeout_raw:
            timeout = DEFAULT_READY_TIMEOUT
        else:
            try:
                timeout = float(timeout_raw)
            except ValueError:
                raise ValueError(
                    f"CHESS_BRIDGE_READY_TIMEOUT must be a number, got {timeout_raw!r}"
                ) from None
        ready_timeout = timeout if timeout > 0 else None

        level = env.get("CHESS_BRIDGE_LOG_LEVEL", "WARNING").strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"CHESS_BRIDGE_LOG_LEVEL is not a logging level: {level!r}")

        return cls(
            stockfish_path=env.get("STOCKFISH_PATH") or None,
            default_depth=depth,
            not_ready_policy=policy,
            ready_timeout=ready_timeout,
            log_level=level,
        )


def _int_var(env, name: str, default: int) -> int:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
