"""
Parameter and Configuration Tests
"""

from dataclasses import replace

import pytest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

import config
from speech_profiling.params import (
    DEFAULT_CONFIG,
    ExtractorParams,
    ProfilerConfig,
    RecorderParams,
    ReportParams,
    VisualParams,
    validate_config,
)


class TestValidateConfig:
    """Tests for validate_config."""

    def test_default_config_valid(self):
        assert validate_config(DEFAULT_CONFIG)

    def test_all_weight_sets_sum_to_one(self):
        for name, weights in ReportParams().get_weight_sets().items():
            assert sum(weights.values()) == pytest.approx(1.0), name

    def test_bad_weight_sum(self):
        report = ReportParams(dominance_weights={'loudness': 0.5, 'hnr': 0.2})
        with pytest.raises(ValueError, match="dominance"):
            validate_config(ProfilerConfig(report=report))

    def test_negative_weight(self):
        report = ReportParams(fluency_weights={'speech_rate': 1.2, 'inv_pause_freq': -0.2})
        with pytest.raises(ValueError, match="non-negative"):
            validate_config(ProfilerConfig(report=report))

    def test_rate_out_of_range(self):
        with pytest.raises(ValueError):
            validate_config(ProfilerConfig(visual=VisualParams(position_rate=0.0)))
        with pytest.raises(ValueError):
            validate_config(ProfilerConfig(extractor=ExtractorParams(volume_smooth_rate=1.5)))

    def test_centroid_range(self):
        with pytest.raises(ValueError):
            validate_config(ProfilerConfig(extractor=ExtractorParams(centroid_min_hz=5000.0)))

    def test_sample_cadence(self):
        with pytest.raises(ValueError):
            validate_config(ProfilerConfig(recorder=RecorderParams(sample_every_ticks=0)))


class TestProfilerConfig:

    def test_to_dict(self):
        d = DEFAULT_CONFIG.to_dict()
        assert d['silence_threshold'] == 0.05
        assert d['auto_stop_silence_ticks'] == 360
        assert d['sample_every_ticks'] == 3
        assert set(d['weights']) == set(ReportParams().get_weight_sets())

    def test_params_are_frozen(self):
        with pytest.raises(Exception):
            DEFAULT_CONFIG.extractor.volume_gain = 10.0

    def test_replace(self):
        cfg = replace(DEFAULT_CONFIG, recorder=RecorderParams(sample_every_ticks=2))
        assert cfg.recorder.sample_every_ticks == 2
        assert DEFAULT_CONFIG.recorder.sample_every_ticks == 3


class TestOuterConfig:

    def test_outer_config_valid(self):
        assert config.validate_config()

    def test_seconds_to_ticks(self):
        assert config.seconds_to_ticks(6.0) == 360

    def test_interlude_is_three_seconds(self):
        assert config.PROCESSING_INTERLUDE_TICKS == config.seconds_to_ticks(3.0)
