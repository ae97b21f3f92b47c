"""
Motion-State Classifier Module

Stateless decision function mapping one tick's features to a discrete
motion state plus target visual parameters, and the separate stateful
smoother that moves the displayed visual state toward those targets.

DESIGN CONSTRAINTS:
- classify() has no memory of earlier ticks; same inputs -> same outputs
- Continuity across states comes only from VisualState smoothing
- The horizontal wander is a deterministic function of noise time
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Tuple

from speech_profiling.features import FrameFeatures, lerp, map_clamped, map_range
from speech_profiling.params import ClassifierParams, VisualParams


class MotionState(Enum):
    """Discrete visual/behavioral state. NEUTRAL precedes the first tick."""
    NEUTRAL = 'NEUTRAL'
    DEFAULT = 'DEFAULT'
    DRIFT = 'DRIFT'
    VIBRATION = 'VIBRATION'
    FLOW = 'FLOW'
    AGGREGATION = 'AGGREGATION'
    DRIP = 'DRIP'
    SCATTERING = 'SCATTERING'


@dataclass(frozen=True)
class VisualTarget:
    """Target (or snapshot) of the visual parameters in display units."""
    x: float
    y: float
    size: float
    scatter: float


# =============================================================================
# WANDER NOISE
# =============================================================================

def _lattice_value(i: int) -> float:
    """Hash an integer lattice point to [0, 1]."""
    n = (i * 374761393) & 0xFFFFFFFF
    n = ((n ^ (n >> 13)) * 1274126177) & 0xFFFFFFFF
    n ^= n >> 16
    return n / 0xFFFFFFFF


def wander_noise(t: float) -> float:
    """
    Smooth 1D value noise in [0, 1].

    Continuous in t; lattice values are interpolated with a smoothstep so
    consecutive ticks move gently.
    """
    i = math.floor(t)
    f = t - i
    w = f * f * (3.0 - 2.0 * f)
    return lerp(_lattice_value(i), _lattice_value(i + 1), w)


def wander_x(
    noise_time: float,
    volume: float,
    silence_threshold: float,
    params: ClassifierParams = ClassifierParams()
) -> float:
    """Horizontal target: noise inside the central band, centered when quiet."""
    if volume < silence_threshold:
        return params.display_width / 2.0
    return map_range(
        wander_noise(noise_time), 0.0, 1.0,
        params.display_width * params.wander_min_fraction,
        params.display_width * params.wander_max_fraction
    )


# =============================================================================
# CLASSIFICATION
# =============================================================================

def classify(
    features: FrameFeatures,
    local_speech_rate: float,
    harmonic_ratio: float,
    is_silent: bool,
    noise_time: float = 0.0,
    silence_threshold: float = 0.05,
    params: ClassifierParams = ClassifierParams()
) -> Tuple[MotionState, VisualTarget]:
    """
    Pick this tick's motion state and visual targets.

    Decision order (first true branch wins):
        1. silent                                         -> DEFAULT
        2. volume > 1.5 or (rate > 1.5 and hnr < 0.4)     -> SCATTERING
        3. rate > 1.0 and hnr < 0.5                       -> VIBRATION
        4. tilt < 0.3                                     -> FLOW
        5. pitch > 0.6 and tilt > 0.5                     -> AGGREGATION
        6. pitch < 0.4                                    -> DRIP
        7. otherwise                                      -> DRIFT

    Parameters:
        features: This tick's features
        local_speech_rate: Syllables per voiced second so far
        harmonic_ratio: HNR proxy in [0, 1]
        is_silent: Silence flag for this tick
        noise_time: Wander noise time (advances a fixed step per tick)
        silence_threshold: Volume under which the wander collapses to center
        params: Classifier parameters

    Returns:
        Tuple of (motion_state, target)
    """
    volume = features.volume
    pitch = features.pitch
    tilt = features.tilt
    height = params.display_height

    # Higher pitch sits higher on screen (smaller y)
    target_y = map_range(
        features.smoothed_pitch, 0.0, 1.0,
        height * params.low_pitch_y_fraction,
        height * params.high_pitch_y_fraction
    )
    target_size = map_range(volume, 0.0, 2.0, params.size_min, params.size_max)
    target_scatter = 0.0

    if is_silent:
        state = MotionState.DEFAULT
        target_y = height * params.rest_y_fraction
    elif volume > params.scatter_volume or (
            local_speech_rate > params.scatter_rate and harmonic_ratio < params.scatter_hnr):
        state = MotionState.SCATTERING
        target_scatter = map_clamped(volume, params.scatter_volume, 5.0, 20.0, 150.0)
    elif local_speech_rate > params.vibration_rate and harmonic_ratio < params.vibration_hnr:
        state = MotionState.VIBRATION
        target_scatter = params.vibration_scatter
    elif tilt < params.flow_tilt:
        state = MotionState.FLOW
    elif pitch > params.aggregation_pitch and tilt > params.aggregation_tilt:
        state = MotionState.AGGREGATION
    elif pitch < params.drip_pitch:
        state = MotionState.DRIP
    else:
        state = MotionState.DRIFT
        target_scatter = map_clamped(volume, 0.0, params.scatter_volume, 0.0, 30.0)

    target = VisualTarget(
        x=wander_x(noise_time, volume, silence_threshold, params),
        y=target_y,
        size=target_size,
        scatter=target_scatter,
    )
    return state, target


# =============================================================================
# STATEFUL SMOOTHING
# =============================================================================

class VisualState:
    """
    Smoothed visual parameters shown by the renderer.

    Approaches classifier targets by exponential smoothing, never snapping.
    One instance per session.
    """

    def __init__(
        self,
        display: ClassifierParams = ClassifierParams(),
        params: VisualParams = VisualParams()
    ) -> None:
        self.params = params
        self.x: float = display.display_width / 2.0
        self.y: float = display.display_height / 2.0
        self.size: float = params.initial_size
        self.scatter: float = 0.0

    def update(self, target: VisualTarget) -> None:
        """Advance one smoothing step toward ``target``."""
        self.x = lerp(self.x, target.x, self.params.position_rate)
        self.y = lerp(self.y, target.y, self.params.position_rate)
        self.size = lerp(self.size, target.size, self.params.shape_rate)
        self.scatter = lerp(self.scatter, target.scatter, self.params.shape_rate)

    def snapshot(self) -> VisualTarget:
        """Current values as an immutable record."""
        return VisualTarget(x=self.x, y=self.y, size=self.size, scatter=self.scatter)
