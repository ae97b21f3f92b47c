"""
Session Report Module

Turn a finished session's accumulated statistics and visual history into an
immutable report: normalized parameters, temporal trend, weighted
behavioral dimensions and the best-matching primary pattern.

DESIGN CONSTRAINTS:
- Pure: identical statistics, history and timestamp -> identical report
- Every division is zero-guarded; every score is clamped where it is assigned
- Reported character values (softness, tension) and the ranking-only
  softness/tension formulas are distinct quantities and stay separate
"""

import math
import warnings
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from speech_profiling import timebase
from speech_profiling.accumulator import AccumulatedStatistics
from speech_profiling.features import map_clamped
from speech_profiling.history import HistorySample
from speech_profiling.motion import MotionState
from speech_profiling.params import ReportParams


# =============================================================================
# CONSTANTS
# =============================================================================

# Ranking candidates in tie-break order (first listed wins a tie)
PATTERN_LABELS: Dict[str, str] = {
    'arousal': 'Emotionally Activated / Expressive',
    'dominance': 'Dominant / Assertive',
    'stability': 'Stable / Calm',
    'softness': 'Soft / Intimate',
    'tension': 'Tense / Strained',
}

ID_PADDING: int = 2


class SourceKind(Enum):
    """Where the session's ticks came from."""
    LIVE = 'live'
    FILE = 'file'

    @property
    def id_prefix(self) -> str:
        return 'vr_' if self is SourceKind.FILE else 'lvi_'

    @property
    def label(self) -> str:
        return 'VOICE RECORD' if self is SourceKind.FILE else 'LIVE INTERSECTION'


# =============================================================================
# REPORT RECORDS
# =============================================================================

@dataclass(frozen=True)
class RawParameters:
    """Eleven normalized session parameters, each in [0, 1]."""
    loudness: float
    loudness_var: float
    pitch: float
    pitch_range: float
    speech_rate: float
    pause_freq: float
    pause_dur: float
    hnr: float
    tilt: float
    jitter: float
    shimmer: float


@dataclass(frozen=True)
class TemporalTrend:
    """Change over the session. Trend and escalation are signed and unclamped."""
    change: float
    loudness_trend: float
    escalation: float


@dataclass(frozen=True)
class CoreDimensions:
    dominance: float
    coherence: float
    stability: float
    fluency: float


@dataclass(frozen=True)
class VoiceCharacter:
    softness: float
    tension: float
    hesitation: float
    expressiveness: float
    presence: float
    effort: float


@dataclass(frozen=True)
class AffectiveScores:
    arousal: float
    aggression: float
    masculine_coding: float
    feminine_coding: float


@dataclass(frozen=True)
class FinalVisual:
    """Visual state at the moment the session was finalized."""
    mode: MotionState
    size: float
    scatter: float


@dataclass(frozen=True)
class SessionReport:
    """
    Finished session report. Built once by finalize(), never mutated.

    ``history`` is the recorder's full sample log; archived reports are
    replayed from it.
    """
    id: str
    source_kind: SourceKind
    timestamp: str
    duration: int
    primary_pattern: str
    raw: RawParameters
    temporal: TemporalTrend
    core: CoreDimensions
    voice_character: VoiceCharacter
    affective: AffectiveScores
    non_speech: float
    history: Tuple[HistorySample, ...]
    source_label: str = ''
    summary_text: str = ''
    final_visual: Optional[FinalVisual] = None
    ranking: Tuple[Tuple[str, float], ...] = ()

    def to_dict(self) -> Dict:
        """Persisted record: every field, JSON-compatible."""
        return {
            'id': self.id,
            'source_kind': self.source_kind.value,
            'source_label': self.source_label,
            'timestamp': self.timestamp,
            'duration': self.duration,
            'primary_pattern': self.primary_pattern,
            'summary_text': self.summary_text,
            'raw': asdict(self.raw),
            'temporal': asdict(self.temporal),
            'core': asdict(self.core),
            'voice_character': asdict(self.voice_character),
            'affective': asdict(self.affective),
            'non_speech': self.non_speech,
            'final_visual': None if self.final_visual is None else {
                'mode': self.final_visual.mode.value,
                'size': self.final_visual.size,
                'scatter': self.final_visual.scatter,
            },
            'ranking': [{'key': key, 'score': score} for key, score in self.ranking],
            'history': [sample.to_dict() for sample in self.history],
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'SessionReport':
        """
        Rebuild a report from its persisted record.

        Records written before the ranking was stored get it recomputed
        with the default report parameters.

        Raises:
            ValueError: If a required field is missing or malformed
        """
        if not isinstance(data, dict):
            raise ValueError(f"Report record must be an object, got {type(data).__name__}")

        try:
            final_visual = data.get('final_visual')
            source_kind = SourceKind(data['source_kind'])
            raw = RawParameters(**data['raw'])
            core = CoreDimensions(**data['core'])
            affective = AffectiveScores(**data['affective'])
            if data.get('ranking') is None:
                ranking = tuple(rank_patterns(compute_ranking_scores(raw, core, affective)))
            else:
                ranking = tuple(
                    (entry['key'], float(entry['score'])) for entry in data['ranking']
                )
                unknown = [key for key, _ in ranking if key not in PATTERN_LABELS]
                if unknown:
                    raise ValueError(f"Unknown ranking candidates: {unknown}")
            return cls(
                id=data['id'],
                source_kind=source_kind,
                timestamp=data['timestamp'],
                duration=int(data['duration']),
                primary_pattern=data['primary_pattern'],
                raw=raw,
                temporal=TemporalTrend(**data['temporal']),
                core=core,
                voice_character=VoiceCharacter(**data['voice_character']),
                affective=affective,
                non_speech=float(data['non_speech']),
                history=tuple(HistorySample.from_dict(s) for s in data['history']),
                source_label=data.get('source_label', source_kind.label),
                summary_text=data.get('summary_text', ''),
                final_visual=None if final_visual is None else FinalVisual(
                    mode=MotionState(final_visual['mode']),
                    size=float(final_visual['size']),
                    scatter=float(final_visual['scatter']),
                ),
                ranking=ranking,
            )
        except KeyError as e:
            raise ValueError(f"Report record is missing field {e}") from e
        except TypeError as e:
            raise ValueError(f"Malformed report record: {e}") from e


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def _clip01(value: float) -> float:
    return float(np.clip(value, 0.0, 1.0))


def _mean(values: Sequence[float]) -> float:
    if len(values) == 0:
        return 0.0
    return float(np.mean(values))


def _std(values: Sequence[float]) -> float:
    """Population standard deviation; 0 for an empty sequence."""
    if len(values) == 0:
        return 0.0
    return float(np.std(values))


def weighted_score(terms: Dict[str, float], weights: Dict[str, float]) -> float:
    """
    Weighted sum of named terms, clamped to [0, 1].

    A weight key ``inv_<name>`` contributes ``weight * (1 - terms[name])``.

    Raises:
        KeyError: If a weight names an unknown term
    """
    total = 0.0
    for key, weight in weights.items():
        if key.startswith('inv_'):
            total += weight * (1.0 - terms[key[4:]])
        else:
            total += weight * terms[key]
    return _clip01(total)


# =============================================================================
# REPORT STAGES
# =============================================================================

def compute_raw_parameters(
    stats: AccumulatedStatistics,
    params: ReportParams = ReportParams(),
    tick_rate_hz: float = timebase.DEFAULT_TICK_RATE_HZ
) -> RawParameters:
    """
    Normalize the session totals into eleven [0, 1] parameters.

    ``count = max(frame_count, 1)`` keeps per-frame quantities defined for
    sessions without voiced frames.
    """
    count = max(stats.frame_count, 1)
    total_time_sec = timebase.ticks_to_seconds(count, tick_rate_hz)

    speech_rate = (stats.syllable_count / total_time_sec) / params.speech_rate_scale if total_time_sec > 0 else 0.0
    pause_freq = (stats.pause_count / total_time_sec) / params.pause_freq_scale if total_time_sec > 0 else 0.0
    pause_dur = (stats.silence_frames / stats.pause_count) / params.pause_dur_scale if stats.pause_count > 0 else 0.0
    tilt_mean = stats.spectral_tilt_sum / count

    return RawParameters(
        loudness=_clip01(stats.vol_sum / count),
        loudness_var=_clip01(_std(stats.vol_readings) * params.loudness_var_scale),
        pitch=_clip01(stats.pitch_sum / count),
        pitch_range=_clip01(_std(stats.pitch_readings) * params.pitch_range_scale),
        speech_rate=_clip01(speech_rate),
        pause_freq=_clip01(pause_freq),
        pause_dur=_clip01(pause_dur),
        hnr=_clip01(1.0 - tilt_mean),
        tilt=_clip01(tilt_mean),
        jitter=_clip01((stats.local_dev_pitch / count) * params.jitter_scale),
        shimmer=_clip01((stats.local_dev_vol / count) * params.shimmer_scale),
    )


def compute_temporal_trend(
    vol_readings: Sequence[float],
    raw: RawParameters,
    params: ReportParams = ReportParams()
) -> TemporalTrend:
    """Second-half minus first-half mean loudness, split at the midpoint."""
    split = len(vol_readings) // 2
    loudness_trend = _mean(vol_readings[split:]) - _mean(vol_readings[:split])
    return TemporalTrend(
        change=(raw.loudness_var + raw.pitch_range) / 2.0,
        loudness_trend=loudness_trend,
        escalation=loudness_trend * params.escalation_gain,
    )


def compute_core_dimensions(raw: RawParameters, params: ReportParams = ReportParams()) -> CoreDimensions:
    terms = asdict(raw)
    return CoreDimensions(
        dominance=weighted_score(terms, params.dominance_weights),
        coherence=weighted_score(terms, params.coherence_weights),
        stability=weighted_score(terms, params.stability_weights),
        fluency=weighted_score(terms, params.fluency_weights),
    )


def compute_voice_character(
    raw: RawParameters,
    core: CoreDimensions,
    params: ReportParams = ReportParams()
) -> VoiceCharacter:
    """
    Character values as reported.

    Reported tension is the effort value; the weighted tension used for
    ranking lives in compute_ranking_scores().
    """
    effort = weighted_score(asdict(raw), params.effort_weights)
    hesitation = (1.5 * raw.pause_dur + 1.2 * raw.pause_freq + (1.0 - core.fluency)) / 3.0
    presence = 0.4 * raw.loudness + 0.4 * raw.hnr + 0.2 * core.coherence
    return VoiceCharacter(
        softness=_clip01(1.0 - raw.loudness),
        tension=effort,
        hesitation=_clip01(hesitation),
        expressiveness=raw.loudness_var,
        presence=_clip01(presence),
        effort=effort,
    )


def compute_affective(raw: RawParameters, params: ReportParams = ReportParams()) -> AffectiveScores:
    terms = asdict(raw)
    return AffectiveScores(
        arousal=weighted_score(terms, params.arousal_weights),
        aggression=weighted_score(terms, params.aggression_weights),
        masculine_coding=map_clamped(raw.pitch, 0.5, 0.1, 0.0, 1.0),
        feminine_coding=map_clamped(raw.pitch, 0.5, 0.9, 0.0, 1.0),
    )


def compute_ranking_scores(
    raw: RawParameters,
    core: CoreDimensions,
    affective: AffectiveScores,
    params: ReportParams = ReportParams()
) -> Dict[str, float]:
    """Ranking-only dimension set, in tie-break order."""
    terms = asdict(raw)
    return {
        'arousal': affective.arousal,
        'dominance': core.dominance,
        'stability': core.stability,
        'softness': weighted_score(terms, params.softness_ranking_weights),
        'tension': weighted_score(terms, params.tension_ranking_weights),
    }


def rank_patterns(scores: Dict[str, float]) -> List[Tuple[str, float]]:
    """
    Sort candidates by descending score.

    Stable: equal scores keep their insertion order.
    """
    return sorted(scores.items(), key=lambda item: item[1], reverse=True)


def select_primary_pattern(scores: Dict[str, float]) -> str:
    """Label of the top-ranked candidate."""
    top_key, _ = rank_patterns(scores)[0]
    return PATTERN_LABELS[top_key]


def make_report_id(source_kind: SourceKind, existing_ids: Sequence[str]) -> str:
    """
    Dense per-prefix identifier: prefix plus the zero-padded count of
    existing ids already carrying that prefix.
    """
    prefix = source_kind.id_prefix
    n_existing = sum(1 for existing in existing_ids if existing and existing.startswith(prefix))
    return f"{prefix}{n_existing:0{ID_PADDING}d}"


def build_summary_text(primary_pattern: str) -> str:
    return f"The interaction presents a {primary_pattern.lower()} profile."


def affect_label(report: SessionReport) -> str:
    """Single affect label shown beside the report's final visual."""
    mode = report.final_visual.mode if report.final_visual is not None else MotionState.NEUTRAL
    if mode is MotionState.SCATTERING:
        return 'ANGER'
    if mode is MotionState.DRIP:
        return 'SADNESS'
    if mode is MotionState.DRIFT and report.core.dominance > 0.5:
        return 'JOY'
    return 'CALM'


# =============================================================================
# FINALIZE
# =============================================================================

def finalize(
    stats: AccumulatedStatistics,
    history: Sequence[HistorySample],
    source_kind: SourceKind,
    existing_ids: Sequence[str],
    timestamp: str,
    final_visual: Optional[FinalVisual] = None,
    params: ReportParams = ReportParams(),
    tick_rate_hz: float = timebase.DEFAULT_TICK_RATE_HZ
) -> SessionReport:
    """
    Build the immutable report for a finished session.

    CONTRACT:
    - Does not mutate stats or history
    - Same inputs -> equal report (no clock reads; timestamp is passed in)
    - A session without voiced frames still yields a report, with a warning

    Parameters:
        stats: Session statistics
        history: Recorded visual samples
        source_kind: LIVE or FILE
        existing_ids: Ids already in the archive (for the per-prefix counter)
        timestamp: Creation timestamp to store verbatim
        final_visual: Visual state at finalize, if known
        params: Report parameters
        tick_rate_hz: Tick cadence used to convert counts to seconds

    Returns:
        SessionReport
    """
    if stats.frame_count == 0:
        warnings.warn(
            "Session has no voiced frames; report uses zero-guarded defaults"
        )

    raw = compute_raw_parameters(stats, params, tick_rate_hz)
    temporal = compute_temporal_trend(stats.vol_readings, raw, params)
    core = compute_core_dimensions(raw, params)
    voice_character = compute_voice_character(raw, core, params)
    affective = compute_affective(raw, params)

    scores = compute_ranking_scores(raw, core, affective, params)
    primary_pattern = select_primary_pattern(scores)

    total_time_sec = timebase.ticks_to_seconds(max(stats.frame_count, 1), tick_rate_hz)

    return SessionReport(
        id=make_report_id(source_kind, existing_ids),
        source_kind=source_kind,
        timestamp=timestamp,
        duration=int(math.floor(total_time_sec)),
        primary_pattern=primary_pattern,
        raw=raw,
        temporal=temporal,
        core=core,
        voice_character=voice_character,
        affective=affective,
        non_speech=_clip01(raw.shimmer * params.non_speech_gain),
        history=tuple(history),
        source_label=source_kind.label,
        summary_text=build_summary_text(primary_pattern),
        final_visual=final_visual,
        ranking=tuple(rank_patterns(scores)),
    )
