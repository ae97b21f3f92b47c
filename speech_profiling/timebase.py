"""
Timebase Module - Tick Clock Utilities

The pipeline runs once per rendering tick at a nominal fixed cadence.
Session time is always derived from tick counts, never from a wall clock,
so identical tick streams produce identical reports.

SHARED TIMEBASE:
- Elapsed seconds: t = ticks / tick_rate
- Replay index: i = floor(playback_tick * speed) mod length
"""

import math
from typing import Optional


# =============================================================================
# CONSTANTS
# =============================================================================

DEFAULT_TICK_RATE_HZ: float = 60.0


# =============================================================================
# CORE FUNCTIONS
# =============================================================================

def ticks_to_seconds(ticks: int, tick_rate_hz: float = DEFAULT_TICK_RATE_HZ) -> float:
    """
    Convert a tick count to elapsed seconds.

    Returns 0.0 for a non-positive tick rate.
    """
    if tick_rate_hz <= 0:
        return 0.0
    return ticks / tick_rate_hz


def seconds_to_ticks(seconds: float, tick_rate_hz: float = DEFAULT_TICK_RATE_HZ) -> int:
    """Convert seconds to a whole number of ticks (rounded)."""
    if seconds <= 0 or tick_rate_hz <= 0:
        return 0
    return int(round(seconds * tick_rate_hz))


def format_duration(seconds: float) -> str:
    """
    Format a duration as ``MM:SS``.

    Parameters:
        seconds: Duration in seconds (negative values clamp to 0)

    Returns:
        Zero-padded minutes and seconds, e.g. ``"01:05"``
    """
    total = max(0, int(math.floor(seconds)))
    minutes, secs = divmod(total, 60)
    return f"{minutes:02d}:{secs:02d}"


def replay_index(playback_tick: int, speed: float, length: int) -> Optional[int]:
    """
    Map a playback tick onto a recorded history used as a circular buffer.

    CONTRACT:
    - Output: floor(playback_tick * speed) mod length
    - Returns None when there is nothing to replay (length <= 0)
    - Always in [0, length) otherwise, including for negative ticks

    Parameters:
        playback_tick: Monotonic renderer tick
        speed: Samples advanced per tick (1.0 while processing, 0.3 on the report)
        length: Number of recorded samples

    Returns:
        Sample index, or None for an empty history
    """
    if length <= 0:
        return None
    return int(math.floor(playback_tick * speed)) % length


def countdown_seconds(
    elapsed_ticks: int,
    limit_ticks: int,
    tick_rate_hz: float = DEFAULT_TICK_RATE_HZ
) -> int:
    """
    Whole seconds left before ``elapsed_ticks`` reaches ``limit_ticks``.

    Rounded up; 0 once the limit is reached.
    """
    if tick_rate_hz <= 0:
        return 0
    return max(0, math.ceil((limit_ticks - elapsed_ticks) / tick_rate_hz))
