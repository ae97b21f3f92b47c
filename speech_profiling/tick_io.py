"""
Tick Stream I/O Module

Load and save recorded analyzer tick streams (one row of analyzer scalars
per tick) and convert them into RawFrame records.
"""

from pathlib import Path
from typing import Iterator, Optional

import numpy as np

import config
from speech_profiling.features import RawFrame


# Column order of tick arrays and CSV files
TICK_COLUMNS = ('raw_volume', 'centroid_hz', 'low_energy', 'mid_energy', 'high_energy')


def load_ticks(file_path) -> np.ndarray:
    """
    Load a tick stream CSV with a header row naming TICK_COLUMNS.

    Columns may appear in any order; extra columns are ignored.

    Parameters:
        file_path: Path to CSV file

    Returns:
        Array of shape (n_ticks, 5) in TICK_COLUMNS order

    Raises:
        ValueError: If a required column is missing
    """
    data = np.genfromtxt(str(file_path), delimiter=',', names=True, dtype=np.float64)
    names = data.dtype.names or ()

    missing = [c for c in TICK_COLUMNS if c not in names]
    if missing:
        raise ValueError(f"Tick file {file_path} is missing columns: {', '.join(missing)}")

    data = np.atleast_1d(data)
    return np.column_stack([data[c] for c in TICK_COLUMNS])


def save_ticks(ticks: np.ndarray, output_path: Path) -> None:
    """
    Save a tick array as CSV with a header row.

    Parameters:
        ticks: Array of shape (n_ticks, 5) in TICK_COLUMNS order
        output_path: Path to output file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    np.savetxt(output_path, ticks, delimiter=',', header=','.join(TICK_COLUMNS),
               comments='', fmt='%.6f')


def validate_ticks(ticks: np.ndarray, max_ticks: Optional[int] = None) -> None:
    """
    Validate a tick array for processing.

    Parameters:
        ticks: Tick array to validate
        max_ticks: Maximum allowed number of ticks (None = use config)

    Raises:
        ValueError: If the tick array is invalid
    """
    if max_ticks is None:
        max_ticks = config.MAX_SESSION_TICKS

    if ticks.ndim != 2 or ticks.shape[1] != len(TICK_COLUMNS):
        raise ValueError(f"Tick array must have shape (n, {len(TICK_COLUMNS)}), got {ticks.shape}")

    if len(ticks) == 0:
        raise ValueError("Tick array is empty")

    if not np.isfinite(ticks).all():
        raise ValueError("Tick array contains NaN or infinite values")

    if len(ticks) > max_ticks:
        raise ValueError(f"Tick stream ({len(ticks)} ticks) exceeds maximum ({max_ticks})")


def iter_frames(ticks: np.ndarray) -> Iterator[RawFrame]:
    """Yield one RawFrame per row, in order."""
    for row in ticks:
        yield RawFrame(*(float(v) for v in row))
