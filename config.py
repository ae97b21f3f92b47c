"""
speech-profiling - Configuration

Outer-layer tunables (session lifecycle, archive, output) with documentation.
Every default value includes rationale. Pipeline and scoring parameters
live in speech_profiling/params.py.
"""

from pathlib import Path

# =============================================================================
# TICK CLOCK
# =============================================================================

# Nominal tick cadence (ticks per second)
# Why: the pipeline runs once per rendering frame, and 60 fps is the
#      renderer's target; every "seconds" threshold is expressed against it
TICK_RATE_HZ: float = 60.0

# =============================================================================
# SESSION LIFECYCLE
# =============================================================================

# Raw analyzer level that auto-starts a live session from idle
# Why: 0.01 sits just above a quiet room's noise floor, so a speaker
#      starts the session without pressing anything
AUTO_START_LEVEL: float = 0.01

# Length of the processing interlude between stop and report (ticks)
# Why: 180 ticks = 3 seconds, long enough for one fast replay pass of a
#      typical session before the report appears
PROCESSING_INTERLUDE_TICKS: int = 180

# Longest tick stream accepted from a file (ticks)
# Why: 36000 ticks = 10 minutes, keeps the unbounded reading histories
#      to a few hundred kilobytes
MAX_SESSION_TICKS: int = 36000

# =============================================================================
# REPLAY
# =============================================================================

# History samples advanced per renderer tick while processing
# Why: 1.0 replays the whole session quickly behind the processing screen
PROCESSING_REPLAY_SPEED: float = 1.0

# History samples advanced per renderer tick on the report view
# Why: 0.3 is slow enough to read the motion alongside the report text
REPORT_REPLAY_SPEED: float = 0.3

# =============================================================================
# ARCHIVE
# =============================================================================

# Default archive file
# Why: a single JSON document in the user's home survives restarts and is
#      easy to inspect or back up
ARCHIVE_PATH: Path = Path.home() / '.speech_profiling' / 'archive.json'

# =============================================================================
# OUTPUT PARAMETERS
# =============================================================================

# JSON schema version
# Why: Versioning allows future format changes while maintaining compatibility
SCHEMA_VERSION: str = "1.0.0"

# Profiler version (bump when scoring or classification logic changes)
# Why: Golden references are stored per profiler version
PROFILER_VERSION: str = "1.0.0"

# Plot resolution (dots per inch)
# Why: 150 DPI is good balance of quality and file size for screen viewing
PLOT_DPI: int = 150

# Plot figure size (width, height in inches)
# Why: wider than tall for a timeline view; three stacked series
PLOT_FIGSIZE: tuple = (14, 9)

# Default synthetic session length for demo mode (seconds)
# Why: 12 seconds gives several phrases and enough syllables for a stable rate
DEMO_DURATION_SEC: float = 12.0

# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def seconds_to_ticks(seconds: float) -> int:
    """
    Convert seconds to ticks at the nominal cadence.

    Parameters:
        seconds: Duration in seconds

    Returns:
        Number of ticks (rounded)
    """
    return int(round(seconds * TICK_RATE_HZ))


def validate_config() -> bool:
    """
    Validate configuration parameters for consistency.

    Returns:
        True if config is valid

    Raises:
        ValueError: If configuration is invalid
    """
    if TICK_RATE_HZ <= 0:
        raise ValueError("TICK_RATE_HZ must be positive")

    if not (0.0 <= AUTO_START_LEVEL <= 1.0):
        raise ValueError("AUTO_START_LEVEL must be in [0, 1]")

    if PROCESSING_INTERLUDE_TICKS < 0:
        raise ValueError("PROCESSING_INTERLUDE_TICKS must be non-negative")

    if MAX_SESSION_TICKS <= 0:
        raise ValueError("MAX_SESSION_TICKS must be positive")

    if PROCESSING_REPLAY_SPEED <= 0 or REPORT_REPLAY_SPEED <= 0:
        raise ValueError("Replay speeds must be positive")

    return True


# Validate on import
validate_config()
