"""
Statistics Accumulator Tests

Tests for silence/pause bookkeeping, jitter/shimmer accumulation,
syllable counting and the auto-stop predicate.
"""

import pytest
import numpy as np
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from speech_profiling import accumulator
from speech_profiling.accumulator import AccumulatedStatistics
from speech_profiling.features import FrameFeatures
from speech_profiling.params import AccumulatorParams


PARAMS = AccumulatorParams()


def make_features(volume: float, pitch: float = 0.5, tilt: float = 0.2) -> FrameFeatures:
    return FrameFeatures(
        volume=volume, smoothed_volume=volume,
        pitch=pitch, smoothed_pitch=pitch,
        tilt=tilt, harmonic_ratio=0.5,
    )


def feed(stats: AccumulatedStatistics, volumes, pitches=None) -> None:
    pitches = pitches if pitches is not None else [0.5] * len(volumes)
    for vol, pitch in zip(volumes, pitches):
        f = make_features(vol, pitch)
        stats.observe(f, accumulator.is_silent(f, PARAMS), PARAMS.onset_threshold)


class TestSilence:
    """Tests for silence classification and pause runs."""

    def test_silence_threshold(self):
        """Test volume below 0.05 is silent, 0.05 itself is not."""
        assert accumulator.is_silent(make_features(0.049), PARAMS)
        assert not accumulator.is_silent(make_features(0.05), PARAMS)

    def test_pause_counted_once_per_run(self):
        """Test each contiguous silent run counts one pause."""
        stats = AccumulatedStatistics()
        feed(stats, [0.5, 0.0, 0.0, 0.0, 0.5, 0.0, 0.0, 0.5])
        assert stats.pause_count == 2
        assert stats.silence_frames == 5
        assert stats.frame_count == 3

    def test_in_pause_flag(self):
        """Test in_pause holds through a run and clears on voice."""
        stats = AccumulatedStatistics()
        feed(stats, [0.5, 0.0])
        assert stats.in_pause
        feed(stats, [0.0])
        assert stats.in_pause
        feed(stats, [0.5])
        assert not stats.in_pause

    def test_leading_silence_is_a_pause(self):
        stats = AccumulatedStatistics()
        feed(stats, [0.0, 0.0, 0.5])
        assert stats.pause_count == 1

    def test_silent_tick_touches_only_silence_fields(self):
        """Test a silent tick leaves sums and readings unchanged."""
        stats = AccumulatedStatistics()
        feed(stats, [0.5])
        before = (stats.vol_sum, stats.pitch_sum, stats.spectral_tilt_sum,
                  len(stats.vol_readings), stats.local_dev_vol, stats.syllable_count)
        feed(stats, [0.01])
        after = (stats.vol_sum, stats.pitch_sum, stats.spectral_tilt_sum,
                 len(stats.vol_readings), stats.local_dev_vol, stats.syllable_count)
        assert before == after

    def test_every_tick_counted_once(self):
        """Test frame_count + silence_frames equals ticks observed."""
        rng = np.random.default_rng(7)
        stats = AccumulatedStatistics()
        volumes = rng.choice([0.0, 0.02, 0.3, 1.2, 4.0], size=1000)
        feed(stats, volumes)
        assert stats.frame_count + stats.silence_frames == 1000
        assert stats.total_ticks == 1000
        assert len(stats.vol_readings) == stats.frame_count
        assert len(stats.pitch_readings) == stats.frame_count

    def test_pause_count_matches_silent_runs(self):
        """Test pause_count equals the number of maximal silent runs."""
        rng = np.random.default_rng(11)
        for _ in range(50):
            n = int(rng.integers(1, 400))
            volumes = rng.choice([0.0, 0.01, 0.049, 0.05, 0.4, 2.0], size=n)
            stats = AccumulatedStatistics()
            feed(stats, volumes)

            silent = volumes < PARAMS.silence_threshold
            runs = int(silent[0]) + int(np.sum(silent[1:] & ~silent[:-1]))
            assert stats.pause_count == runs
            assert stats.silence_frames == int(np.sum(silent))


class TestDeviation:
    """Tests for jitter/shimmer accumulation."""

    def test_first_voiced_frame_adds_nothing(self):
        stats = AccumulatedStatistics()
        feed(stats, [0.8], [0.9])
        assert stats.local_dev_vol == 0.0
        assert stats.local_dev_pitch == 0.0

    def test_consecutive_deltas(self):
        """Test absolute deltas between consecutive voiced readings."""
        stats = AccumulatedStatistics()
        feed(stats, [0.2, 0.5, 0.3], [0.4, 0.4, 0.6])
        assert stats.local_dev_vol == pytest.approx(0.5)
        assert stats.local_dev_pitch == pytest.approx(0.2)

    def test_deltas_skip_silent_ticks(self):
        """Test the delta compares against the previous voiced reading."""
        stats = AccumulatedStatistics()
        feed(stats, [0.2, 0.5, 0.0, 0.3])
        assert stats.local_dev_vol == pytest.approx(0.3 + 0.2)


class TestSyllables:
    """Tests for onset counting."""

    def test_rising_edges(self):
        """Test each upward crossing of 0.15 counts one syllable."""
        stats = AccumulatedStatistics()
        feed(stats, [0.1, 0.2, 0.3, 0.1, 0.2])
        assert stats.syllable_count == 2

    def test_sustained_level_counts_once(self):
        stats = AccumulatedStatistics()
        feed(stats, [0.5] * 30)
        assert stats.syllable_count == 1

    def test_last_vol_updates_on_silence(self):
        """Test a silent tick resets the onset reference."""
        stats = AccumulatedStatistics()
        feed(stats, [0.2, 0.0, 0.2])
        assert stats.last_vol == pytest.approx(0.2)
        assert stats.syllable_count == 2

    def test_local_speech_rate(self):
        """Test rate = syllables / (voiced seconds + 0.1)."""
        stats = AccumulatedStatistics(frame_count=600, syllable_count=20)
        rate = accumulator.local_speech_rate(stats, 60.0, 0.1)
        assert rate == pytest.approx(20 / 10.1)

    def test_local_speech_rate_at_start(self):
        """Test the rate is defined before any voiced frame."""
        stats = AccumulatedStatistics()
        assert accumulator.local_speech_rate(stats) == 0.0


class TestAutoStop:
    """Tests for should_finalize and the silence countdown."""

    def test_thresholds_are_strict(self):
        """Test 361 silent ticks after 61 voiced ticks trips auto-stop."""
        assert accumulator.should_finalize(
            AccumulatedStatistics(frame_count=61, silence_frames=361), PARAMS)
        assert not accumulator.should_finalize(
            AccumulatedStatistics(frame_count=61, silence_frames=360), PARAMS)
        assert not accumulator.should_finalize(
            AccumulatedStatistics(frame_count=60, silence_frames=1000), PARAMS)

    def test_level_triggered(self):
        """Test the condition stays true on later ticks."""
        stats = AccumulatedStatistics()
        feed(stats, [0.5] * 61 + [0.0] * 361)
        assert accumulator.should_finalize(stats, PARAMS)
        feed(stats, [0.0] * 10)
        assert accumulator.should_finalize(stats, PARAMS)

    def test_fires_on_tick_361(self):
        """Test the first true tick is the 361st silent tick."""
        stats = AccumulatedStatistics()
        feed(stats, [0.5] * 61)
        first_true = None
        for i in range(1, 400):
            feed(stats, [0.0])
            if accumulator.should_finalize(stats, PARAMS):
                first_true = i
                break
        assert first_true == 361

    def test_countdown_hidden_for_short_silence(self):
        assert accumulator.silence_countdown(AccumulatedStatistics(silence_frames=60), PARAMS) == 0

    def test_countdown_values(self):
        assert accumulator.silence_countdown(AccumulatedStatistics(silence_frames=61), PARAMS) == 5
        assert accumulator.silence_countdown(AccumulatedStatistics(silence_frames=300), PARAMS) == 1
        assert accumulator.silence_countdown(AccumulatedStatistics(silence_frames=400), PARAMS) == 0
