"""
Frame Feature Extraction Module

Map the spectral analyzer's per-tick scalars into bounded engineering units
(volume, pitch factor, spectral tilt, harmonic-to-noise proxy) and apply
exponential smoothing to volume and pitch.

The analyzer itself (FFT, centroid, band energies) lives outside this
package; this module only consumes its already-computed scalars.
"""

from dataclasses import dataclass

import numpy as np

from speech_profiling.params import ExtractorParams


# =============================================================================
# DATA TYPES
# =============================================================================

@dataclass(frozen=True)
class RawFrame:
    """
    Scalars handed over by the spectral analyzer for one tick.

    Attributes:
        raw_volume: Amplitude level in [0, 1]
        centroid_hz: Spectral centroid in Hz
        low_energy: Energy in the 20-250 Hz band, [0, 255]
        mid_energy: Energy in the 100-1000 Hz band, [0, 255]
        high_energy: Energy in the 2500-10000 Hz band, [0, 255]
    """
    raw_volume: float
    centroid_hz: float
    low_energy: float
    mid_energy: float
    high_energy: float


@dataclass(frozen=True)
class FrameFeatures:
    """
    Per-tick features. Recomputed every tick, never stored by the session.

    ``volume`` and ``pitch`` are the instantaneous values used by the
    accumulator and the classifier's decisions; the smoothed values drive
    the visual targets.
    """
    volume: float
    smoothed_volume: float
    pitch: float
    smoothed_pitch: float
    tilt: float
    harmonic_ratio: float


class ExtractorState:
    """
    Explicit smoothing state for the feature extractor.

    CONTRACT:
    - One instance per session, starts at zero
    - Call reset() (or build a new instance) before a new session
    """

    def __init__(self) -> None:
        self.smoothed_volume: float = 0.0
        self.smoothed_pitch: float = 0.0

    def reset(self) -> None:
        """Reset state to initial values."""
        self.smoothed_volume = 0.0
        self.smoothed_pitch = 0.0


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def lerp(current: float, target: float, rate: float) -> float:
    """Exponential smoothing step: move ``current`` toward ``target`` by ``rate``."""
    return current + (target - current) * rate


def map_range(
    value: float,
    in_start: float,
    in_stop: float,
    out_start: float,
    out_stop: float
) -> float:
    """
    Affine re-mapping of ``value`` from one range to another (unclamped).

    A degenerate input range maps everything to ``out_start``.
    """
    if in_stop == in_start:
        return float(out_start)
    return out_start + (value - in_start) * (out_stop - out_start) / (in_stop - in_start)


def map_clamped(
    value: float,
    in_start: float,
    in_stop: float,
    out_start: float,
    out_stop: float
) -> float:
    """
    Affine re-mapping clamped to the output range.

    The output range may be reversed (``out_start > out_stop``), as may the
    input range.
    """
    mapped = map_range(value, in_start, in_stop, out_start, out_stop)
    lower = min(out_start, out_stop)
    upper = max(out_start, out_stop)
    return float(np.clip(mapped, lower, upper))


# =============================================================================
# FRAME-LEVEL FEATURE EXTRACTION
# =============================================================================

def compute_volume(raw_volume: float, params: ExtractorParams) -> float:
    """Instantaneous volume in [0, volume_max]."""
    return float(np.clip(raw_volume * params.volume_gain, 0.0, params.volume_max))


def compute_pitch_factor(centroid_hz: float, params: ExtractorParams) -> float:
    """Spectral centroid mapped linearly onto [0, 1]."""
    return map_clamped(centroid_hz, params.centroid_min_hz, params.centroid_max_hz, 0.0, 1.0)


def compute_spectral_tilt(low_energy: float, high_energy: float) -> float:
    """
    High-band over low-band energy.

    Unclamped above; the ``+1`` keeps the denominator positive.
    """
    return max(high_energy, 0.0) / (max(low_energy, 0.0) + 1.0)


def compute_harmonic_ratio(mid_energy: float, params: ExtractorParams) -> float:
    """Mid-band energy normalized to [0, 1] as a clarity proxy."""
    return map_clamped(mid_energy, 0.0, params.band_energy_max, 0.0, 1.0)


def extract_frame_features(
    raw: RawFrame,
    state: ExtractorState,
    params: ExtractorParams = ExtractorParams()
) -> FrameFeatures:
    """
    Compute this tick's features and advance the smoothing state.

    CONTRACT:
    - No error conditions: every input is clamped or guarded
    - Only side effect: state.smoothed_volume / state.smoothed_pitch advance
      one smoothing step

    Parameters:
        raw: Analyzer scalars for this tick
        state: Smoothing state, updated in place
        params: Extractor parameters

    Returns:
        FrameFeatures for this tick
    """
    volume = compute_volume(raw.raw_volume, params)
    pitch = compute_pitch_factor(raw.centroid_hz, params)

    state.smoothed_volume = lerp(state.smoothed_volume, volume, params.volume_smooth_rate)
    state.smoothed_pitch = lerp(state.smoothed_pitch, pitch, params.pitch_smooth_rate)

    return FrameFeatures(
        volume=volume,
        smoothed_volume=state.smoothed_volume,
        pitch=pitch,
        smoothed_pitch=state.smoothed_pitch,
        tilt=compute_spectral_tilt(raw.low_energy, raw.high_energy),
        harmonic_ratio=compute_harmonic_ratio(raw.mid_energy, params),
    )
