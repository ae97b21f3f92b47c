"""
Synthetic Tick Streams

Deterministic analyzer tick streams with known character, for demo mode,
fixtures, golden references and tests. No audio is involved: each row is
what the spectral analyzer would report for one tick.
"""

from typing import Dict

import numpy as np

from speech_profiling import timebase


def generate_speech(
    duration_sec: float = 10.0,
    level: float = 0.03,
    syllable_rate_hz: float = 3.0,
    centroid_hz: float = 1500.0,
    low_energy: float = 120.0,
    mid_energy: float = 200.0,
    high_energy: float = 20.0,
    phrase_sec: float = 0.0,
    pause_sec: float = 0.0,
    noise: float = 0.05,
    seed: int = 0,
    tick_rate_hz: float = timebase.DEFAULT_TICK_RATE_HZ
) -> np.ndarray:
    """
    Speech-like stream: a syllable envelope on the level, optional phrase gaps.

    The envelope never drops below 5% of ``level`` inside a phrase, so
    syllable troughs stay voiced for moderate levels while still crossing
    the onset threshold.

    Parameters:
        duration_sec: Stream length in seconds
        level: Peak raw analyzer level
        syllable_rate_hz: Syllables per second
        centroid_hz: Mean spectral centroid
        low_energy / mid_energy / high_energy: Mean band energies [0, 255]
        phrase_sec: Phrase length before each gap (0 = no gaps)
        pause_sec: Gap length between phrases
        noise: Relative Gaussian spread of centroid and band energies
        seed: RNG seed
        tick_rate_hz: Tick cadence

    Returns:
        Array (n_ticks, 5) in tick_io.TICK_COLUMNS order
    """
    rng = np.random.default_rng(seed)
    n = timebase.seconds_to_ticks(duration_sec, tick_rate_hz)
    t = np.arange(n) / tick_rate_hz

    envelope = 0.05 + 0.95 * (0.5 + 0.5 * np.sin(2 * np.pi * syllable_rate_hz * t)) ** 2
    if phrase_sec > 0 and pause_sec > 0:
        in_gap = np.mod(t, phrase_sec + pause_sec) >= phrase_sec
        envelope[in_gap] = 0.0

    def jittered(mean: float, upper: float) -> np.ndarray:
        values = mean * (1.0 + noise * rng.standard_normal(n))
        return np.clip(values, 0.0, upper)

    return np.column_stack([
        level * envelope,
        jittered(centroid_hz, 20000.0),
        jittered(low_energy, 255.0),
        jittered(mid_energy, 255.0),
        jittered(high_energy, 255.0),
    ])


def generate_silence(
    duration_sec: float,
    tick_rate_hz: float = timebase.DEFAULT_TICK_RATE_HZ
) -> np.ndarray:
    """Silent stream: zero level, zero energies."""
    n = timebase.seconds_to_ticks(duration_sec, tick_rate_hz)
    return np.zeros((n, 5))


def generate_calm_speech(duration_sec: float = 10.0, seed: int = 0) -> np.ndarray:
    """Moderate, dark, clear voice with short phrase gaps."""
    return generate_speech(
        duration_sec, level=0.03, syllable_rate_hz=3.0, centroid_hz=1500.0,
        low_energy=120.0, mid_energy=200.0, high_energy=20.0,
        phrase_sec=2.5, pause_sec=0.5, seed=seed
    )


def generate_agitated_speech(duration_sec: float = 10.0, seed: int = 1) -> np.ndarray:
    """Loud, bright, noisy and fast voice without gaps."""
    return generate_speech(
        duration_sec, level=0.06, syllable_rate_hz=5.0, centroid_hz=3200.0,
        low_energy=90.0, mid_energy=60.0, high_energy=160.0, seed=seed
    )


def generate_soft_speech(duration_sec: float = 10.0, seed: int = 2) -> np.ndarray:
    """Quiet, low, breathy voice with long gaps."""
    return generate_speech(
        duration_sec, level=0.008, syllable_rate_hz=2.0, centroid_hz=600.0,
        low_energy=150.0, mid_energy=180.0, high_energy=10.0,
        phrase_sec=2.0, pause_sec=1.5, seed=seed
    )


def with_trailing_silence(ticks: np.ndarray, silence_sec: float = 7.0) -> np.ndarray:
    """Append enough silence to trip the auto-stop condition."""
    return np.vstack([ticks, generate_silence(silence_sec)])


SCENARIOS: Dict[str, str] = {
    'calm': 'Calm speech with short phrase gaps',
    'agitated': 'Loud, bright, fast speech',
    'soft': 'Quiet, low speech with long gaps',
}


def generate_scenario(name: str, duration_sec: float = 10.0) -> np.ndarray:
    """
    Raises:
        ValueError: If the scenario name is unknown
    """
    if name == 'calm':
        return generate_calm_speech(duration_sec)
    elif name == 'agitated':
        return generate_agitated_speech(duration_sec)
    elif name == 'soft':
        return generate_soft_speech(duration_sec)
    raise ValueError(f"Unknown scenario: {name}")
