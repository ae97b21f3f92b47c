"""
speech-profiling - Source Modules

This package contains the tick pipeline and report builder:
- params: Frozen parameter groups and config validation
- timebase: Tick clock conversions and replay indexing
- features: Frame feature extraction from analyzer scalars
- accumulator: Running session statistics and the auto-stop predicate
- motion: Motion-state classification and visual smoothing
- history: Visual history recording and replay
- report: Session report building and primary-pattern ranking
- session: Session lifecycle controller
- archive: Persistent report archive
- export: JSON, console and plot outputs
- tick_io: Tick stream CSV loading and validation
- synthetic: Deterministic synthetic tick streams
"""

__version__ = "1.0.0"
