"""
Profiler Parameters Module - All Tunable Constants

These parameters control the tick pipeline and the report builder.
Core modules receive them explicitly and never import config.

USAGE:
    from speech_profiling.params import ProfilerConfig, DEFAULT_CONFIG

    # Use default config
    cfg = DEFAULT_CONFIG

    # Create custom config
    custom = ProfilerConfig(
        accumulator=AccumulatorParams(silence_threshold=0.08),
        classifier=ClassifierParams(display_height=1080.0)
    )
"""

from dataclasses import dataclass, field
from typing import Dict


@dataclass(frozen=True)
class ExtractorParams:
    """
    Frame feature extraction parameters.

    Attributes:
        volume_gain: Multiplier applied to the raw analyzer level (default 35)
        volume_max: Upper clamp for the instantaneous volume (default 5.0)
        volume_smooth_rate: Smoothing rate of the displayed volume (default 0.2)
        centroid_min_hz: Centroid mapped to pitch factor 0 (default 100 Hz)
        centroid_max_hz: Centroid mapped to pitch factor 1 (default 4500 Hz)
        pitch_smooth_rate: Smoothing rate of the pitch factor (default 0.1)
        band_energy_max: Full-scale band energy (default 255)
    """
    volume_gain: float = 35.0
    volume_max: float = 5.0
    volume_smooth_rate: float = 0.2
    centroid_min_hz: float = 100.0
    centroid_max_hz: float = 4500.0
    pitch_smooth_rate: float = 0.1
    band_energy_max: float = 255.0


@dataclass(frozen=True)
class AccumulatorParams:
    """
    Running-statistics parameters.

    Attributes:
        silence_threshold: Instantaneous volume below which a tick is silent (default 0.05)
        onset_threshold: Volume level whose upward crossing counts a syllable (default 0.15)
        auto_stop_silence_ticks: Silent ticks that must be exceeded to auto-stop (default 360 = 6 s)
        auto_stop_min_voiced_ticks: Voiced ticks that must be exceeded to auto-stop (default 60 = 1 s)
        tick_rate_hz: Nominal tick cadence (default 60)
    """
    silence_threshold: float = 0.05
    onset_threshold: float = 0.15
    auto_stop_silence_ticks: int = 360
    auto_stop_min_voiced_ticks: int = 60
    tick_rate_hz: float = 60.0


@dataclass(frozen=True)
class ClassifierParams:
    """
    Motion-state decision thresholds and target mapping.

    Attributes:
        scatter_volume: Volume above which the state is always Scattering (default 1.5)
        scatter_rate: Speech rate above which noisy speech scatters (default 1.5)
        scatter_hnr: HNR below which fast speech scatters (default 0.4)
        vibration_rate: Speech rate above which noisy speech vibrates (default 1.0)
        vibration_hnr: HNR below which fast speech vibrates (default 0.5)
        vibration_scatter: Fixed scatter target for Vibration (default 5)
        flow_tilt: Tilt below which the state is Flow (default 0.3)
        aggregation_pitch: Pitch above which bright speech aggregates (default 0.6)
        aggregation_tilt: Tilt above which high speech aggregates (default 0.5)
        drip_pitch: Pitch below which the state is Drip (default 0.4)
        speech_rate_time_guard: Seconds added to the elapsed time of the local rate (default 0.1)
        display_width: Width of the display extent (default 1280)
        display_height: Height of the display extent (default 720)
        rest_y_fraction: Vertical rest position while silent (default 0.9)
        low_pitch_y_fraction: Vertical position of pitch factor 0 (default 0.85)
        high_pitch_y_fraction: Vertical position of pitch factor 1 (default 0.15)
        wander_min_fraction: Left edge of the horizontal wander band (default 0.4)
        wander_max_fraction: Right edge of the horizontal wander band (default 0.6)
        wander_step: Noise-time advance per tick (default 0.02)
        size_min: Size target at volume 0 (default 5)
        size_max: Size target at volume 2 (default 35)
    """
    scatter_volume: float = 1.5
    scatter_rate: float = 1.5
    scatter_hnr: float = 0.4
    vibration_rate: float = 1.0
    vibration_hnr: float = 0.5
    vibration_scatter: float = 5.0
    flow_tilt: float = 0.3
    aggregation_pitch: float = 0.6
    aggregation_tilt: float = 0.5
    drip_pitch: float = 0.4
    speech_rate_time_guard: float = 0.1
    display_width: float = 1280.0
    display_height: float = 720.0
    rest_y_fraction: float = 0.9
    low_pitch_y_fraction: float = 0.85
    high_pitch_y_fraction: float = 0.15
    wander_min_fraction: float = 0.4
    wander_max_fraction: float = 0.6
    wander_step: float = 0.02
    size_min: float = 5.0
    size_max: float = 35.0


@dataclass(frozen=True)
class VisualParams:
    """
    Visual-state smoothing parameters.

    Attributes:
        position_rate: Smoothing rate for x and y (default 0.08)
        shape_rate: Smoothing rate for size and scatter (default 0.1)
        initial_size: Size before the first tick (default 6)
    """
    position_rate: float = 0.08
    shape_rate: float = 0.1
    initial_size: float = 6.0


@dataclass(frozen=True)
class RecorderParams:
    """
    History recorder parameters.

    Attributes:
        sample_every_ticks: Record one sample every N ticks (default 3)
    """
    sample_every_ticks: int = 3


@dataclass(frozen=True)
class ReportParams:
    """
    Report normalization scales and dimension weights.

    Weight keys name normalized parameters; an ``inv_`` prefix means the
    term enters the sum as ``1 - value``.
    """
    loudness_var_scale: float = 5.0
    pitch_range_scale: float = 6.0
    speech_rate_scale: float = 4.0
    pause_freq_scale: float = 1.5
    pause_dur_scale: float = 45.0
    jitter_scale: float = 8.0
    shimmer_scale: float = 8.0
    escalation_gain: float = 2.0
    non_speech_gain: float = 0.3

    dominance_weights: Dict[str, float] = field(default_factory=lambda: {
        'loudness': 0.35,
        'inv_pause_freq': 0.25,
        'inv_pause_dur': 0.15,
        'inv_pitch': 0.15,
        'hnr': 0.10,
    })
    coherence_weights: Dict[str, float] = field(default_factory=lambda: {
        'hnr': 0.35,
        'inv_jitter': 0.20,
        'inv_shimmer': 0.20,
        'inv_pause_dur': 0.15,
        'inv_loudness_var': 0.10,
    })
    stability_weights: Dict[str, float] = field(default_factory=lambda: {
        'inv_pitch_range': 0.30,
        'inv_loudness_var': 0.25,
        'inv_jitter': 0.15,
        'inv_shimmer': 0.15,
        'inv_pause_freq': 0.15,
    })
    fluency_weights: Dict[str, float] = field(default_factory=lambda: {
        'inv_pause_freq': 0.40,
        'inv_pause_dur': 0.30,
        'speech_rate': 0.30,
    })
    effort_weights: Dict[str, float] = field(default_factory=lambda: {
        'tilt': 0.4,
        'shimmer': 0.3,
        'jitter': 0.3,
    })
    arousal_weights: Dict[str, float] = field(default_factory=lambda: {
        'loudness': 0.30,
        'pitch': 0.25,
        'speech_rate': 0.20,
        'pitch_range': 0.15,
        'loudness_var': 0.10,
    })
    aggression_weights: Dict[str, float] = field(default_factory=lambda: {
        'loudness': 0.30,
        'tilt': 0.25,
        'speech_rate': 0.20,
        'inv_pause_freq': 0.15,
        'shimmer': 0.10,
    })
    softness_ranking_weights: Dict[str, float] = field(default_factory=lambda: {
        'inv_loudness': 0.30,
        'inv_tilt': 0.30,
        'inv_pitch': 0.15,
        'hnr': 0.15,
        'inv_jitter': 0.10,
    })
    tension_ranking_weights: Dict[str, float] = field(default_factory=lambda: {
        'tilt': 0.30,
        'jitter': 0.25,
        'shimmer': 0.25,
        'speech_rate': 0.20,
    })

    def get_weight_sets(self) -> Dict[str, Dict[str, float]]:
        """Get every weight dictionary keyed by dimension name."""
        return {
            'dominance': self.dominance_weights,
            'coherence': self.coherence_weights,
            'stability': self.stability_weights,
            'fluency': self.fluency_weights,
            'effort': self.effort_weights,
            'arousal': self.arousal_weights,
            'aggression': self.aggression_weights,
            'softness_ranking': self.softness_ranking_weights,
            'tension_ranking': self.tension_ranking_weights,
        }


@dataclass
class ProfilerConfig:
    """
    Complete profiler configuration aggregating all parameter groups.

    Example usage:
        cfg = ProfilerConfig()  # All defaults
        cfg = ProfilerConfig(recorder=RecorderParams(sample_every_ticks=2))
    """
    extractor: ExtractorParams = field(default_factory=ExtractorParams)
    accumulator: AccumulatorParams = field(default_factory=AccumulatorParams)
    classifier: ClassifierParams = field(default_factory=ClassifierParams)
    visual: VisualParams = field(default_factory=VisualParams)
    recorder: RecorderParams = field(default_factory=RecorderParams)
    report: ReportParams = field(default_factory=ReportParams)

    def to_dict(self) -> Dict:
        """
        Export all parameters as a flat dictionary for JSON serialization.

        Returns:
            Dictionary with all parameter values
        """
        return {
            # Extractor params
            'volume_gain': self.extractor.volume_gain,
            'volume_max': self.extractor.volume_max,
            'volume_smooth_rate': self.extractor.volume_smooth_rate,
            'centroid_min_hz': self.extractor.centroid_min_hz,
            'centroid_max_hz': self.extractor.centroid_max_hz,
            'pitch_smooth_rate': self.extractor.pitch_smooth_rate,

            # Accumulator params
            'silence_threshold': self.accumulator.silence_threshold,
            'onset_threshold': self.accumulator.onset_threshold,
            'auto_stop_silence_ticks': self.accumulator.auto_stop_silence_ticks,
            'auto_stop_min_voiced_ticks': self.accumulator.auto_stop_min_voiced_ticks,
            'tick_rate_hz': self.accumulator.tick_rate_hz,

            # Classifier params
            'display_width': self.classifier.display_width,
            'display_height': self.classifier.display_height,

            # Visual params
            'position_rate': self.visual.position_rate,
            'shape_rate': self.visual.shape_rate,

            # Recorder params
            'sample_every_ticks': self.recorder.sample_every_ticks,

            # Report weights
            'weights': self.report.get_weight_sets(),
        }


# Default configuration instance
DEFAULT_CONFIG = ProfilerConfig()


def validate_config(cfg: ProfilerConfig) -> bool:
    """
    Validate configuration parameters for consistency.

    Parameters:
        cfg: ProfilerConfig instance to validate

    Returns:
        True if config is valid

    Raises:
        ValueError: If configuration is invalid
    """
    # Check weights sum to ~1.0
    for name, weights in cfg.report.get_weight_sets().items():
        total = sum(weights.values())
        if not (0.99 <= total <= 1.01):
            raise ValueError(f"{name} weights must sum to 1.0, got {total}")
        if any(w < 0 for w in weights.values()):
            raise ValueError(f"{name} weights must be non-negative")

    # Check rates
    rates = {
        'volume_smooth_rate': cfg.extractor.volume_smooth_rate,
        'pitch_smooth_rate': cfg.extractor.pitch_smooth_rate,
        'position_rate': cfg.visual.position_rate,
        'shape_rate': cfg.visual.shape_rate,
    }
    for name, rate in rates.items():
        if not (0.0 < rate <= 1.0):
            raise ValueError(f"{name} must be in (0, 1]")

    # Check positive values
    if cfg.extractor.centroid_max_hz <= cfg.extractor.centroid_min_hz:
        raise ValueError("centroid_max_hz must exceed centroid_min_hz")
    if cfg.accumulator.tick_rate_hz <= 0:
        raise ValueError("tick_rate_hz must be positive")
    if cfg.recorder.sample_every_ticks <= 0:
        raise ValueError("sample_every_ticks must be positive")
    if cfg.classifier.display_width <= 0 or cfg.classifier.display_height <= 0:
        raise ValueError("display extent must be positive")

    return True


# Validate default config on import
validate_config(DEFAULT_CONFIG)
