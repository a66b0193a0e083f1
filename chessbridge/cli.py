"""Command line front end for chess-bridge.

Subcommands:
    fen      Serialize a position (optionally after UCI moves) to FEN
    analyze  Stream Stockfish analysis of a position
"""

from __future__ import annotations

import argparse
import logging
import sys
import threading

import chess
from rich.console import Console
from rich.live import Live
from rich.table import Table

from chessbridge.analyzer import EngineAnalyzer, SessionState
from chessbridge.config import AnalyzerConfig
from chessbridge.fen import to_fen
from chessbridge.models import AnalysisResult, side_to_move, snapshot_from_chess
from chessbridge.transport import SubprocessTransport

_DEFAULT_TIMEOUT = 60.0


def _load_board(fen: str | None, moves: list[str]) -> chess.Board:
    """Build a python-chess board from a FEN and a list of UCI moves.

    Raises:
        ValueError: If the FEN is invalid or a move is illegal.
    """
    board = chess.Board(fen) if fen else chess.Board()
    for uci in moves:
        move = chess.Move.from_uci(uci)
        if move not in board.legal_moves:
            raise ValueError(f"Illegal move {uci} in position {board.fen()}")
        board.push(move)
    return board


def _format_score(result: AnalysisResult) -> str:
    if result.mate is not None:
        return f"Mate in {result.mate}"
    return f"{result.score / 100.0:+.2f}"


def _render_table(results: list[AnalysisResult]) -> Table:
    table = Table(title="Analysis")
    table.add_column("Depth", justify="right")
    table.add_column("Score", justify="right")
    table.add_column("PV")
    for result in results:
        table.add_row(str(result.depth), _format_score(result), " ".join(result.pv[:8]))
    return table


def _cli_fen(console: Console, fen: str | None, moves: list[str]) -> int:
    try:
        board = _load_board(fen, moves)
    except ValueError as exc:
        console.print(f"[red]{exc}[/red]")
        return 1
    console.print(to_fen(snapshot_from_chess(board), side_to_move(board)), highlight=False)
    return 0


def _cli_analyze(
    console: Console,
    config: AnalyzerConfig,
    fen: str | None,
    depth: int,
    timeout: float,
) -> int:
    if fen is None:
        board = chess.Board()
        fen = to_fen(snapshot_from_chess(board), side_to_move(board))

    analyzer = EngineAnalyzer(SubprocessTransport.factory(config.stockfish_path), config)
    if analyzer.state is SessionState.DEGRADED:
        console.print(f"[red]Engine unavailable: {analyzer.error}[/red]")
        return 1

    results: list[AnalysisResult] = []
    best: list[str] = []
    done = threading.Event()

    try:
        with Live(_render_table(results), console=console, refresh_per_second=4) as live:
            def _on_analysis(result: AnalysisResult) -> None:
                results.append(result)
                live.update(_render_table(results))

            def _on_bestmove(move: str) -> None:
                best.append(move)
                done.set()

            analyzer.events.on_analysis(_on_analysis)
            analyzer.events.on_bestmove(_on_bestmove)
            analyzer.initialize()
            analyzer.analyze_position(fen, depth)
            done.wait(timeout)
    finally:
        analyzer.quit()

    if not best:
        console.print(f"[red]No best move within {timeout:.0f}s[/red]")
        return 1
    console.print(f"Position: {fen}", highlight=False)
    console.print(f"[bold]Best move:[/bold] {best[0]}")
    return 0


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="FEN serialization and UCI engine analysis"
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    fen_parser = subparsers.add_parser("fen", help="Print the FEN of a position")
    fen_parser.add_argument("fen", nargs="?", default=None, help="Starting FEN (default: start position)")
    fen_parser.add_argument("--moves", nargs="*", default=[], help="UCI moves to apply first")

    analyze_parser = subparsers.add_parser("analyze", help="Analyze a FEN position")
    analyze_parser.add_argument("fen", nargs="?", default=None, help="FEN to analyze (default: start position)")
    analyze_parser.add_argument("--depth", type=int, default=None, help="Search depth")
    analyze_parser.add_argument(
        "--timeout", type=float, default=_DEFAULT_TIMEOUT,
        help="Seconds to wait for the best move",
    )
    analyze_parser.add_argument("--engine", default=None, help="Path to the engine binary")

    args = parser.parse_args(argv)

    try:
        config = AnalyzerConfig.from_env()
    except ValueError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2
    logging.basicConfig(level=config.log_level)

    console = Console()

    if args.command == "fen":
        return _cli_fen(console, args.fen, args.moves)
    if args.command == "analyze":
        if args.engine:
            config.stockfish_path = args.engine
        depth = args.depth if args.depth is not None else config.default_depth
        return _cli_analyze(console, config, args.fen, depth, args.timeout)

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
