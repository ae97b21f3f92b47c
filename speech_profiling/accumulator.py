"""
Statistics Accumulator Module

Running sums, per-frame reading histories, silence/pause bookkeeping,
local-deviation (jitter/shimmer) accumulation and syllable onset counting
for one session.

Every observed tick increments exactly one of ``frame_count`` (voiced) or
``silence_frames`` (silent).
"""

from dataclasses import dataclass, field
from typing import List

from speech_profiling import timebase
from speech_profiling.features import FrameFeatures
from speech_profiling.params import AccumulatorParams


@dataclass
class AccumulatedStatistics:
    """
    Mutable per-session statistics. Build a fresh instance for each session.

    CONTRACT:
    - pause_count increments exactly once per contiguous silent run
    - in_pause is True throughout a silent run, reset on the first voiced tick
    - local_dev_* accumulate only between consecutive voiced readings
    - last_vol is updated on every tick, silent or not
    """
    vol_sum: float = 0.0
    pitch_sum: float = 0.0
    spectral_tilt_sum: float = 0.0
    vol_readings: List[float] = field(default_factory=list)
    pitch_readings: List[float] = field(default_factory=list)
    frame_count: int = 0
    silence_frames: int = 0
    pause_count: int = 0
    in_pause: bool = False
    local_dev_pitch: float = 0.0
    local_dev_vol: float = 0.0
    syllable_count: int = 0
    last_vol: float = 0.0

    @property
    def total_ticks(self) -> int:
        """Ticks observed so far, voiced and silent."""
        return self.frame_count + self.silence_frames

    def observe(
        self,
        features: FrameFeatures,
        is_silent: bool,
        onset_threshold: float = AccumulatorParams.onset_threshold
    ) -> None:
        """
        Fold one tick into the statistics.

        Parameters:
            features: This tick's features (instantaneous values are used)
            is_silent: Whether the tick is below the silence threshold
            onset_threshold: Volume level whose rising edge counts a syllable
        """
        volume = features.volume

        if is_silent:
            self.silence_frames += 1
            if not self.in_pause:
                self.pause_count += 1
                self.in_pause = True
        else:
            self.in_pause = False
            self.vol_sum += volume
            self.pitch_sum += features.pitch
            self.spectral_tilt_sum += features.tilt
            self.frame_count += 1
            self.vol_readings.append(volume)
            self.pitch_readings.append(features.pitch)

            # Jitter/shimmer: deltas between consecutive voiced readings
            if len(self.vol_readings) > 1:
                self.local_dev_pitch += abs(features.pitch - self.pitch_readings[-2])
                self.local_dev_vol += abs(volume - self.vol_readings[-2])

            # Syllable proxy: rising edge through the onset threshold
            if volume > onset_threshold and self.last_vol <= onset_threshold:
                self.syllable_count += 1

        self.last_vol = volume


def is_silent(features: FrameFeatures, params: AccumulatorParams = AccumulatorParams()) -> bool:
    """A tick is silent when its instantaneous volume is below the threshold."""
    return features.volume < params.silence_threshold


def local_speech_rate(
    stats: AccumulatedStatistics,
    tick_rate_hz: float = AccumulatorParams.tick_rate_hz,
    time_guard_sec: float = 0.1
) -> float:
    """
    Syllables per voiced second so far.

    The elapsed time carries a small additive guard so the rate is defined
    (and damped) at the start of a session.
    """
    elapsed = timebase.ticks_to_seconds(stats.frame_count, tick_rate_hz)
    return stats.syllable_count / (elapsed + time_guard_sec)


def should_finalize(
    stats: AccumulatedStatistics,
    params: AccumulatorParams = AccumulatorParams()
) -> bool:
    """
    Auto-stop predicate: enough silence after enough voiced input.

    Level-triggered: stays True on every later tick. Callers must act on the
    first True only.
    """
    return (stats.silence_frames > params.auto_stop_silence_ticks
            and stats.frame_count > params.auto_stop_min_voiced_ticks)


def silence_countdown(
    stats: AccumulatedStatistics,
    params: AccumulatorParams = AccumulatorParams()
) -> int:
    """
    Whole seconds left before silence alone would trigger auto-stop.

    Returns 0 until silence exceeds one second (nothing worth showing), and
    0 once the limit has been reached.
    """
    if stats.silence_frames <= params.tick_rate_hz:
        return 0
    return timebase.countdown_seconds(
        stats.silence_frames,
        params.auto_stop_silence_ticks,
        params.tick_rate_hz
    )
