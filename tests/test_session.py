"""
Session Controller Tests

Tests for the per-tick pipeline ordering, edge-triggered auto-stop and
the controller lifecycle (start, stop, cancel, processing, report).
"""

import pytest
import numpy as np
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

import config
from speech_profiling import synthetic, tick_io
from speech_profiling.archive import ReportArchive
from speech_profiling.features import RawFrame
from speech_profiling.motion import MotionState
from speech_profiling.report import SourceKind
from speech_profiling.session import Session, SessionController, SessionPhase


VOICED = RawFrame(raw_volume=0.02, centroid_hz=2300.0, low_energy=100.0, mid_energy=200.0, high_energy=60.0)
SILENT = RawFrame(raw_volume=0.0, centroid_hz=0.0, low_energy=0.0, mid_energy=0.0, high_energy=0.0)


def fixed_clock():
    return "2026-01-01T00:00:00+00:00"


class TestSession:
    """Tests for one Session."""

    def test_tick_counts(self):
        session = Session(SourceKind.LIVE)
        for _ in range(10):
            session.tick(VOICED)
        for _ in range(5):
            session.tick(SILENT)
        assert session.stats.frame_count == 10
        assert session.stats.silence_frames == 5
        assert session.tick_count == 15

    def test_history_cadence(self):
        """Test one history sample every third tick."""
        session = Session(SourceKind.LIVE)
        for _ in range(31):
            session.tick(VOICED)
        assert len(session.recorder) == 10

    def test_silent_tick_result(self):
        session = Session(SourceKind.LIVE)
        result = session.tick(SILENT)
        assert result.is_silent
        assert result.state is MotionState.DEFAULT
        assert result.tick == 1

    def test_voiced_tick_result(self):
        """Test a dark, clear voiced tick flows."""
        session = Session(SourceKind.LIVE)
        result = session.tick(VOICED)
        assert not result.is_silent
        # tilt 60/101 > 0.3, pitch 0.5: neither flow nor aggregation nor drip
        assert result.state is MotionState.DRIFT
        assert result.features.volume == pytest.approx(0.7)

    def test_visual_moves_gradually(self):
        session = Session(SourceKind.LIVE)
        sizes = [session.tick(VOICED).visual.size for _ in range(20)]
        assert all(b > a for a, b in zip(sizes, sizes[1:]))

    def test_finalize_requested_once(self):
        """Test auto-stop is reported only on the first qualifying tick."""
        session = Session(SourceKind.LIVE)
        for _ in range(61):
            assert not session.tick(VOICED).finalize_requested
        flags = [session.tick(SILENT).finalize_requested for _ in range(400)]
        assert flags.count(True) == 1
        assert flags.index(True) == 360
        assert session.auto_stop_pending

    def test_no_auto_stop_without_enough_voice(self):
        session = Session(SourceKind.LIVE)
        for _ in range(60):
            session.tick(VOICED)
        flags = [session.tick(SILENT).finalize_requested for _ in range(500)]
        assert not any(flags)

    def test_silence_countdown(self):
        session = Session(SourceKind.LIVE)
        for _ in range(61):
            session.tick(VOICED)
        results = [session.tick(SILENT) for _ in range(61)]
        assert results[59].silence_countdown == 0
        assert results[60].silence_countdown == 5

    def test_no_countdown_for_file_sessions(self):
        """Test file playback never shows the silence countdown."""
        session = Session(SourceKind.FILE)
        for _ in range(61):
            session.tick(VOICED)
        results = [session.tick(SILENT) for _ in range(300)]
        assert all(r.silence_countdown == 0 for r in results)

    def test_closed_session_rejects_ticks(self):
        session = Session(SourceKind.FILE)
        session.tick(VOICED)
        session.finalize([], fixed_clock())
        with pytest.raises(RuntimeError):
            session.tick(VOICED)

    def test_finalize_carries_final_visual(self):
        session = Session(SourceKind.FILE)
        for _ in range(30):
            session.tick(VOICED)
        r = session.finalize([], fixed_clock())
        assert r.final_visual.mode is MotionState.DRIFT
        assert r.final_visual.size == pytest.approx(session.visual.size)
        assert len(r.history) == 10

    def test_sessions_share_no_state(self):
        """Test a new session starts from scratch."""
        first = Session(SourceKind.LIVE)
        for _ in range(50):
            first.tick(VOICED)
        second = Session(SourceKind.LIVE)
        assert second.stats.frame_count == 0
        assert second.extractor_state.smoothed_volume == 0.0
        assert len(second.recorder) == 0


class TestSessionController:
    """Tests for the lifecycle controller."""

    def run_until_auto_stop(self, controller: SessionController):
        controller.start(SourceKind.LIVE)
        for _ in range(61):
            controller.tick(VOICED)
        for _ in range(400):
            result = controller.tick(SILENT)
            if result.finalize_requested:
                return result
        raise AssertionError("auto-stop never fired")

    def test_starts_idle(self):
        controller = SessionController(clock=fixed_clock)
        assert controller.phase is SessionPhase.IDLE
        assert controller.report is None

    def test_auto_start_level(self):
        assert SessionController.should_auto_start(0.02)
        assert not SessionController.should_auto_start(config.AUTO_START_LEVEL)
        assert not SessionController.should_auto_start(0.0)

    def test_auto_stop_finalizes(self):
        controller = SessionController(clock=fixed_clock)
        self.run_until_auto_stop(controller)
        assert controller.phase is SessionPhase.PROCESSING
        assert controller.finalize_requested
        assert controller.report is not None
        assert controller.report.id == 'lvi_00'
        assert controller.report.timestamp == fixed_clock()

    def test_no_ticks_after_stop(self):
        controller = SessionController(clock=fixed_clock)
        self.run_until_auto_stop(controller)
        with pytest.raises(RuntimeError):
            controller.tick(SILENT)

    def test_tick_while_idle_raises(self):
        controller = SessionController(clock=fixed_clock)
        with pytest.raises(RuntimeError):
            controller.tick(VOICED)

    def test_stop_without_session_raises(self):
        controller = SessionController(clock=fixed_clock)
        with pytest.raises(RuntimeError):
            controller.stop()

    def test_manual_stop(self):
        controller = SessionController(clock=fixed_clock)
        controller.start(SourceKind.FILE)
        for _ in range(90):
            controller.tick(VOICED)
        r = controller.stop()
        assert r.id == 'vr_00'
        assert r.duration == 1
        assert not controller.finalize_requested

    def test_processing_interlude(self):
        """Test the report view appears after the interlude elapses."""
        controller = SessionController(clock=fixed_clock)
        self.run_until_auto_stop(controller)
        assert controller.advance(config.PROCESSING_INTERLUDE_TICKS) is SessionPhase.PROCESSING
        assert controller.advance(1) is SessionPhase.REPORT

    def test_replay_speeds(self):
        """Test fast replay while processing and slow replay on the report."""
        controller = SessionController(clock=fixed_clock)
        self.run_until_auto_stop(controller)
        history = controller.report.history
        assert controller.replay_sample(10) == history[10 % len(history)]
        controller.advance(config.PROCESSING_INTERLUDE_TICKS + 1)
        assert controller.replay_sample(10) == history[3]

    def test_replay_outside_report(self):
        controller = SessionController(clock=fixed_clock)
        assert controller.replay_sample(5) is None
        controller.start(SourceKind.LIVE)
        controller.tick(VOICED)
        assert controller.replay_sample(5) is None

    def test_cancel_discards_session(self):
        controller = SessionController(clock=fixed_clock)
        controller.start(SourceKind.LIVE)
        for _ in range(30):
            controller.tick(VOICED)
        controller.cancel()
        assert controller.phase is SessionPhase.IDLE
        assert controller.session is None
        assert controller.report is None

    def test_reset(self):
        controller = SessionController(clock=fixed_clock)
        self.run_until_auto_stop(controller)
        controller.reset()
        assert controller.phase is SessionPhase.IDLE
        assert controller.report is None

    def test_save_without_archive_raises(self):
        controller = SessionController(clock=fixed_clock)
        self.run_until_auto_stop(controller)
        with pytest.raises(RuntimeError):
            controller.save_report()

    def test_ids_follow_archive(self, tmp_path):
        """Test consecutive saved sessions get consecutive ids."""
        archive = ReportArchive(tmp_path / 'archive.json')
        controller = SessionController(archive=archive, clock=fixed_clock)

        self.run_until_auto_stop(controller)
        assert controller.save_report() == 'lvi_00'

        self.run_until_auto_stop(controller)
        assert controller.save_report() == 'lvi_01'

        controller.start(SourceKind.FILE)
        for _ in range(70):
            controller.tick(VOICED)
        controller.stop()
        assert controller.save_report() == 'vr_00'

    def test_open_archived(self, tmp_path):
        archive = ReportArchive(tmp_path / 'archive.json')
        controller = SessionController(archive=archive, clock=fixed_clock)
        self.run_until_auto_stop(controller)
        controller.save_report()
        controller.reset()

        opened = controller.open_archived(0)
        assert controller.phase is SessionPhase.REPORT
        assert opened.id == 'lvi_00'
        assert controller.replay_sample(0) == opened.history[0]

    def test_deterministic_reports(self):
        """Test the same tick stream gives the same report."""
        ticks = synthetic.with_trailing_silence(synthetic.generate_calm_speech(4.0))

        def run():
            controller = SessionController(clock=fixed_clock)
            controller.start(SourceKind.FILE)
            for frame in tick_io.iter_frames(ticks):
                if controller.tick(frame).finalize_requested:
                    break
            return controller.report

        assert run() == run()
