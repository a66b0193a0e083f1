"""Pytest tests for engine output line parsing."""

from __future__ import annotations

from chessbridge.uci_lines import (
    MIN_REPORT_DEPTH,
    TokenCursor,
    parse_bestmove_line,
    parse_info_line,
)


# ---------------------------------------------------------------------------
# Token cursor
# ---------------------------------------------------------------------------


class TestTokenCursor:

    def test_walks_tokens(self):
        cursor = TokenCursor("info  depth\t12")
        assert cursor.peek() == "info"
        assert cursor.next() == "info"
        assert cursor.next() == "depth"
        assert cursor.next_int() == 12
        assert cursor.at_end

    def test_reads_past_end(self):
        cursor = TokenCursor("depth")
        cursor.next()
        assert cursor.next() is None
        assert cursor.peek() is None
        assert cursor.next_int() is None
        assert cursor.rest() == []

    def test_next_int_rejects_non_integer(self):
        cursor = TokenCursor("abc 7")
        assert cursor.next_int() is None
        assert cursor.next_int() == 7

    def test_rest_consumes(self):
        cursor = TokenCursor("pv e2e4 e7e5")
        cursor.next()
        assert cursor.rest() == ["e2e4", "e7e5"]
        assert cursor.at_end

    def test_empty_line(self):
        assert TokenCursor("").at_end


# ---------------------------------------------------------------------------
# Info lines
# ---------------------------------------------------------------------------


class TestParseInfoLine:

    def test_depth_gate_below(self):
        assert MIN_REPORT_DEPTH == 10
        assert parse_info_line("info depth 9 score cp 50") is None

    def test_depth_gate_at_threshold(self):
        result = parse_info_line("info depth 10 score cp 50")
        assert result is not None
        assert result.score == 50
        assert result.depth == 10
        assert result.mate is None
        assert result.best_move is None
        assert result.pv == ()

    def test_full_stockfish_line(self):
        line = ("info depth 12 seldepth 18 multipv 1 score cp 25 nodes 123456 "
                "nps 100000 time 1234 pv e2e4 e7e5 g1f3")
        result = parse_info_line(line)
        assert result.depth == 12
        assert result.score == 25
        assert result.best_move == "e2e4"
        assert result.pv == ("e2e4", "e7e5", "g1f3")

    def test_negative_centipawns(self):
        assert parse_info_line("info depth 14 score cp -130 pv d7d5").score == -130

    def test_mate_positive(self):
        result = parse_info_line("info depth 12 score mate 3 pv h5f7")
        assert result.mate == 3
        assert result.score == 10000

    def test_mate_negative(self):
        result = parse_info_line("info depth 12 score mate -2")
        assert result.mate == -2
        assert result.score == -10000

    def test_mate_zero_is_negative_sentinel(self):
        assert parse_info_line("info depth 20 score mate 0").score == -10000

    def test_bound_suffix_ignored(self):
        result = parse_info_line("info depth 15 score cp 33 lowerbound nodes 10 pv c2c4")
        assert result.score == 33
        assert result.best_move == "c2c4"

    def test_no_score(self):
        assert parse_info_line("info depth 15 currmove e2e4 currmovenumber 1") is None

    def test_truncated_after_score(self):
        assert parse_info_line("info depth 15 score") is None
        assert parse_info_line("info depth 15 score cp") is None

    def test_truncated_after_depth(self):
        assert parse_info_line("info depth") is None

    def test_non_numeric_values(self):
        assert parse_info_line("info depth x score cp 10") is None
        assert parse_info_line("info depth 12 score cp abc") is None

    def test_empty_pv(self):
        result = parse_info_line("info depth 11 score cp 5 pv")
        assert result.best_move is None
        assert result.pv == ()


# ---------------------------------------------------------------------------
# Bestmove lines
# ---------------------------------------------------------------------------


class TestParseBestmoveLine:

    def test_with_ponder(self):
        assert parse_bestmove_line("bestmove e2e4 ponder e7e5") == "e2e4"

    def test_without_ponder(self):
        assert parse_bestmove_line("bestmove g1f3") == "g1f3"

    def test_missing_move(self):
        assert parse_bestmove_line("bestmove") is None

    def test_not_a_bestmove_line(self):
        assert parse_bestmove_line("info depth 1") is None
