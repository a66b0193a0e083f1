"""Pytest tests for the analyzer event channel."""

from __future__ import annotations

from chessbridge.events import AnalyzerEvents
from chessbridge.models import AnalysisResult


class TestReadyEvent:

    def test_fires_each_listener_once(self):
        events = AnalyzerEvents()
        calls = []
        events.on_ready(lambda: calls.append("a"))
        events.on_ready(lambda: calls.append("b"))
        events.emit_ready()
        events.emit_ready()
        assert calls == ["a", "b"]
        assert events.ready_fired

    def test_late_listener_not_replayed(self):
        events = AnalyzerEvents()
        events.emit_ready()
        calls = []
        events.on_ready(lambda: calls.append(1))
        assert calls == []

    def test_unsubscribe_before_fire(self):
        events = AnalyzerEvents()
        calls = []
        unsubscribe = events.on_ready(lambda: calls.append(1))
        unsubscribe()
        unsubscribe()
        events.emit_ready()
        assert calls == []


class TestPayloadEvents:

    def test_analysis_delivered_in_order(self):
        events = AnalyzerEvents()
        seen = []
        events.on_analysis(seen.append)
        first = AnalysisResult(score=10, depth=10)
        second = AnalysisResult(score=20, depth=11)
        events.emit_analysis(first)
        events.emit_analysis(second)
        assert seen == [first, second]

    def test_bestmove_unsubscribe(self):
        events = AnalyzerEvents()
        seen = []
        unsubscribe = events.on_bestmove(seen.append)
        events.emit_bestmove("e2e4")
        unsubscribe()
        events.emit_bestmove("d2d4")
        assert seen == ["e2e4"]

    def test_failing_listener_does_not_block_others(self, caplog):
        events = AnalyzerEvents()
        seen = []

        def _boom(move):
            raise RuntimeError("listener bug")

        events.on_bestmove(_boom)
        events.on_bestmove(seen.append)
        events.emit_bestmove("e2e4")
        assert seen == ["e2e4"]
        assert "listener" in caplog.text

    def test_clear(self):
        events = AnalyzerEvents()
        seen = []
        events.on_analysis(seen.append)
        events.on_bestmove(seen.append)
        events.clear()
        events.emit_analysis(AnalysisResult(score=0, depth=10))
        events.emit_bestmove("e2e4")
        assert seen == []

    def test_closed_gate_stops_delivery(self):
        events = AnalyzerEvents()
        open_ = [True]
        seen = []

        def _close(result):
            seen.append("first")
            open_[0] = False

        events.on_analysis(_close)
        events.on_analysis(seen.append)
        events.emit_analysis(AnalysisResult(score=0, depth=10), lambda: open_[0])
        events.on_bestmove(seen.append)
        events.emit_bestmove("e2e4", lambda: open_[0])
        assert seen == ["first"]
