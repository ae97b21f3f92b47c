"""
History Recorder Module

Sample the smoothed visual state at a fixed cadence into an append-only,
session-scoped log. The finished log is replayed by the renderer as a
fixed-rate circular buffer.
"""

import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from speech_profiling import timebase
from speech_profiling.motion import MotionState, VisualState
from speech_profiling.params import RecorderParams


@dataclass(frozen=True)
class HistorySample:
    """One recorded visual sample; size, scatter and y are floored to integers."""
    size: int
    scatter: int
    mode: MotionState
    y: int

    def to_dict(self) -> Dict:
        return {'size': self.size, 'scatter': self.scatter, 'mode': self.mode.value, 'y': self.y}

    @classmethod
    def from_dict(cls, data: Dict) -> 'HistorySample':
        return cls(
            size=int(data['size']),
            scatter=int(data['scatter']),
            mode=MotionState(data['mode']),
            y=int(data['y']),
        )


class HistoryRecorder:
    """
    Append-only replay log for one session.

    CONTRACT:
    - record() appends on every ``sample_every_ticks``-th tick only
    - Samples are never modified or removed
    - No cap beyond session length
    """

    def __init__(self, params: RecorderParams = RecorderParams()) -> None:
        self.params = params
        self._samples: List[HistorySample] = []

    def __len__(self) -> int:
        return len(self._samples)

    def record(self, tick: int, visual: VisualState, mode: MotionState) -> bool:
        """
        Append the current visual state if ``tick`` falls on the cadence.

        Parameters:
            tick: 1-based session tick counter
            visual: Smoothed visual state after this tick's update
            mode: Motion state of this tick

        Returns:
            True if a sample was appended
        """
        if tick % self.params.sample_every_ticks != 0:
            return False
        self._samples.append(HistorySample(
            size=math.floor(visual.size),
            scatter=math.floor(visual.scatter),
            mode=mode,
            y=math.floor(visual.y),
        ))
        return True

    def snapshot(self) -> Tuple[HistorySample, ...]:
        """Immutable copy of the samples recorded so far."""
        return tuple(self._samples)


def sample_for_playback(
    history: Sequence[HistorySample],
    playback_tick: int,
    speed: float
) -> Optional[HistorySample]:
    """Sample shown at ``playback_tick`` when replaying cyclically at ``speed``."""
    index = timebase.replay_index(playback_tick, speed, len(history))
    if index is None:
        return None
    return history[index]
