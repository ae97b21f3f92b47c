"""
Session Controller Module

Own the one live session, drive the tick pipeline in arrival order and
hand finished reports to the archive.

Per tick:
    RawFrame -> features -> {accumulator, classifier} -> visual smoothing -> recorder

A session is a fresh set of state objects; nothing is shared between
sessions and nothing is process-wide.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional, Sequence

import config
from speech_profiling import accumulator
from speech_profiling.accumulator import AccumulatedStatistics
from speech_profiling.features import ExtractorState, FrameFeatures, RawFrame, extract_frame_features
from speech_profiling.history import HistoryRecorder, HistorySample, sample_for_playback
from speech_profiling.motion import MotionState, VisualState, VisualTarget, classify
from speech_profiling.params import DEFAULT_CONFIG, ProfilerConfig
from speech_profiling.report import FinalVisual, SessionReport, SourceKind, finalize


class SessionPhase(Enum):
    IDLE = 'IDLE'
    RECORDING = 'RECORDING'
    PROCESSING = 'PROCESSING'
    REPORT = 'REPORT'


@dataclass(frozen=True)
class TickResult:
    """
    What the renderer gets back for one tick.

    ``finalize_requested`` is edge-triggered: True only on the tick where the
    auto-stop condition first becomes true.
    ``silence_countdown`` is shown for live sessions only and stays 0 for
    file playback.
    """
    tick: int
    state: MotionState
    visual: VisualTarget
    features: FrameFeatures
    is_silent: bool
    finalize_requested: bool
    silence_countdown: int


def utc_timestamp() -> str:
    """Default report timestamp source."""
    return datetime.now(timezone.utc).isoformat(timespec='seconds')


class Session:
    """
    State of one recording session.

    CONTRACT:
    - tick() processes frames strictly in call order
    - The accumulator and the classifier see the same FrameFeatures per tick
    - After finalize() the session is closed and rejects further ticks
    """

    def __init__(self, source_kind: SourceKind, cfg: ProfilerConfig = DEFAULT_CONFIG) -> None:
        self.source_kind = source_kind
        self.cfg = cfg
        self.extractor_state = ExtractorState()
        self.stats = AccumulatedStatistics()
        self.visual = VisualState(cfg.classifier, cfg.visual)
        self.recorder = HistoryRecorder(cfg.recorder)
        self.motion_state = MotionState.NEUTRAL
        self.tick_count = 0
        self.noise_time = 0.0
        self.closed = False
        self._auto_stop_seen = False

    @property
    def auto_stop_pending(self) -> bool:
        """Level of the auto-stop condition."""
        return accumulator.should_finalize(self.stats, self.cfg.accumulator)

    def tick(self, raw: RawFrame) -> TickResult:
        """
        Run the pipeline for one tick.

        Raises:
            RuntimeError: If the session has already been finalized
        """
        if self.closed:
            raise RuntimeError("Session is closed; start a new session")

        cfg = self.cfg
        self.tick_count += 1

        features = extract_frame_features(raw, self.extractor_state, cfg.extractor)
        silent = accumulator.is_silent(features, cfg.accumulator)

        self.stats.observe(features, silent, cfg.accumulator.onset_threshold)

        rate = accumulator.local_speech_rate(
            self.stats,
            cfg.accumulator.tick_rate_hz,
            cfg.classifier.speech_rate_time_guard
        )
        self.noise_time += cfg.classifier.wander_step
        self.motion_state, target = classify(
            features,
            rate,
            features.harmonic_ratio,
            silent,
            noise_time=self.noise_time,
            silence_threshold=cfg.accumulator.silence_threshold,
            params=cfg.classifier
        )
        self.visual.update(target)
        self.recorder.record(self.tick_count, self.visual, self.motion_state)

        countdown = 0
        if self.source_kind is SourceKind.LIVE:
            countdown = accumulator.silence_countdown(self.stats, cfg.accumulator)

        # Edge-detect the level-triggered auto-stop condition
        pending = self.auto_stop_pending
        finalize_requested = pending and not self._auto_stop_seen
        self._auto_stop_seen = pending

        return TickResult(
            tick=self.tick_count,
            state=self.motion_state,
            visual=self.visual.snapshot(),
            features=features,
            is_silent=silent,
            finalize_requested=finalize_requested,
            silence_countdown=countdown,
        )

    def finalize(self, existing_ids: Sequence[str], timestamp: str) -> SessionReport:
        """Close the session and build its report."""
        self.closed = True
        return finalize(
            self.stats,
            self.recorder.snapshot(),
            self.source_kind,
            existing_ids,
            timestamp,
            final_visual=FinalVisual(
                mode=self.motion_state,
                size=self.visual.size,
                scatter=self.visual.scatter,
            ),
            params=self.cfg.report,
            tick_rate_hz=self.cfg.accumulator.tick_rate_hz,
        )


class SessionController:
    """
    Lifecycle owner: at most one session at a time.

    IDLE -> RECORDING (start) -> PROCESSING (stop / auto-stop / end of file)
    -> REPORT (after the processing interlude) -> IDLE (reset).
    cancel() drops the session without a report.

    Parameters:
        archive: Object with ``ids()`` and ``save(report)`` (e.g. ReportArchive), optional
        cfg: Profiler configuration
        clock: Callable returning the timestamp string stored in reports
    """

    def __init__(
        self,
        archive=None,
        cfg: ProfilerConfig = DEFAULT_CONFIG,
        clock: Callable[[], str] = utc_timestamp
    ) -> None:
        self.archive = archive
        self.cfg = cfg
        self.clock = clock
        self.phase = SessionPhase.IDLE
        self.session: Optional[Session] = None
        self.report: Optional[SessionReport] = None
        self.processing_ticks = 0
        self.finalize_requested = False

    @staticmethod
    def should_auto_start(raw_level: float) -> bool:
        """An idle live input starts recording once it hears something."""
        return raw_level > config.AUTO_START_LEVEL

    def start(self, source_kind: SourceKind = SourceKind.LIVE) -> Session:
        """Begin a new session, discarding any previous session state."""
        self.session = Session(source_kind, self.cfg)
        self.report = None
        self.finalize_requested = False
        self.processing_ticks = 0
        self.phase = SessionPhase.RECORDING
        return self.session

    def tick(self, raw: RawFrame) -> TickResult:
        """
        Feed one tick to the live session; auto-stop finalizes it.

        Raises:
            RuntimeError: If no session is recording
        """
        if self.phase is not SessionPhase.RECORDING or self.session is None:
            raise RuntimeError(f"No session is recording (phase {self.phase.value})")

        result = self.session.tick(raw)
        if result.finalize_requested:
            self.finalize_requested = True
            self.stop()
        return result

    def stop(self) -> SessionReport:
        """
        Finalize the recording session (user stop, end of file, or auto-stop).

        Raises:
            RuntimeError: If no session is recording
        """
        if self.phase is not SessionPhase.RECORDING or self.session is None:
            raise RuntimeError("No session to stop")

        existing_ids = self.archive.ids() if self.archive is not None else []
        self.report = self.session.finalize(existing_ids, self.clock())
        self.phase = SessionPhase.PROCESSING
        self.processing_ticks = 0
        return self.report

    def advance(self, ticks: int = 1) -> SessionPhase:
        """Advance the processing interlude; moves to REPORT when it elapses."""
        if self.phase is SessionPhase.PROCESSING:
            self.processing_ticks += ticks
            if self.processing_ticks > config.PROCESSING_INTERLUDE_TICKS:
                self.phase = SessionPhase.REPORT
        return self.phase

    def replay_sample(self, playback_tick: int) -> Optional[HistorySample]:
        """
        History sample the renderer should show now.

        Fast replay while processing, slow replay on the report view; None
        outside those phases or for an empty history.
        """
        if self.report is None:
            return None
        if self.phase is SessionPhase.PROCESSING:
            speed = config.PROCESSING_REPLAY_SPEED
        elif self.phase is SessionPhase.REPORT:
            speed = config.REPORT_REPLAY_SPEED
        else:
            return None
        return sample_for_playback(self.report.history, playback_tick, speed)

    def cancel(self) -> None:
        """Drop the in-progress session; no report is produced."""
        self.session = None
        self.finalize_requested = False
        self.phase = SessionPhase.IDLE

    def save_report(self) -> str:
        """
        Persist the active report.

        Raises:
            RuntimeError: If there is no report or no archive
        """
        if self.report is None:
            raise RuntimeError("No report to save")
        if self.archive is None:
            raise RuntimeError("No archive configured")
        return self.archive.save(self.report)

    def open_archived(self, index: int) -> SessionReport:
        """
        Show a stored report; it replays from its own history.

        Raises:
            RuntimeError: If no archive is configured or a session is recording
        """
        if self.archive is None:
            raise RuntimeError("No archive configured")
        if self.phase is SessionPhase.RECORDING:
            raise RuntimeError("Cannot open an archived report while recording")
        self.report = self.archive.get(index)
        self.session = None
        self.phase = SessionPhase.REPORT
        return self.report

    def reset(self) -> None:
        """Return to IDLE, keeping nothing from the last session."""
        self.session = None
        self.report = None
        self.finalize_requested = False
        self.processing_ticks = 0
        self.phase = SessionPhase.IDLE
