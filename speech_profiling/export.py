"""
Export Module

Generate JSON outputs, console summaries and replay plots for session
reports. All JSON outputs carry a versioned schema.
"""

import numpy as np
import json
from pathlib import Path
from typing import Dict, List, Optional
import matplotlib
matplotlib.use('Agg')  # Non-interactive backend
import matplotlib.pyplot as plt

import config
from speech_profiling import timebase
from speech_profiling.history import HistorySample
from speech_profiling.motion import MotionState
from speech_profiling.report import (
    PATTERN_LABELS,
    SessionReport,
    affect_label,
)


# Band colours for the replay plot
MODE_COLORS: Dict[MotionState, str] = {
    MotionState.NEUTRAL: 'white',
    MotionState.DEFAULT: 'lightgray',
    MotionState.DRIFT: 'skyblue',
    MotionState.VIBRATION: 'gold',
    MotionState.FLOW: 'mediumseagreen',
    MotionState.AGGREGATION: 'mediumpurple',
    MotionState.DRIP: 'steelblue',
    MotionState.SCATTERING: 'tomato',
}


class NumpyEncoder(json.JSONEncoder):
    """JSON encoder that handles numpy types."""
    def default(self, obj):
        if isinstance(obj, np.integer):
            return int(obj)
        elif isinstance(obj, np.floating):
            return float(obj)
        elif isinstance(obj, np.ndarray):
            return obj.tolist()
        elif isinstance(obj, np.bool_):
            return bool(obj)
        return super().default(obj)


def create_report_json(report: SessionReport, params: Optional[Dict] = None) -> Dict:
    """
    Create the complete report JSON.

    Parameters:
        report: Finished session report
        params: Flat parameter dict used for the session (ProfilerConfig.to_dict())

    Returns:
        Dict ready for JSON serialization
    """
    return {
        'schema_version': config.SCHEMA_VERSION,
        'params': params or {},
        'report': report.to_dict(),
    }


def create_summary_json(report: SessionReport) -> Dict:
    """
    Create summary JSON with the ranking and headline scores.

    Parameters:
        report: Finished session report

    Returns:
        Summary dict
    """
    ranking = [
        {'pattern': PATTERN_LABELS[key], 'score': score}
        for key, score in report.ranking
    ]

    return {
        'schema_version': config.SCHEMA_VERSION,
        'id': report.id,
        'source': report.source_label,
        'timestamp': report.timestamp,
        'duration': timebase.format_duration(report.duration),
        'primary_pattern': report.primary_pattern,
        'affect_label': affect_label(report),
        'ranking': ranking,
        'core': {
            'dominance': report.core.dominance,
            'coherence': report.core.coherence,
            'stability': report.core.stability,
            'fluency': report.core.fluency,
        },
        'n_history_samples': len(report.history),
    }


def save_json(data: Dict, output_path: Path) -> None:
    """
    Save data as JSON with pretty printing.

    Parameters:
        data: Dictionary to save
        output_path: Path to output file
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, 'w') as f:
        json.dump(data, f, indent=2, cls=NumpyEncoder)


def format_share_text(report: SessionReport) -> str:
    """Plain-text body for sharing a report by mail."""
    return (
        f"Analysis for {report.id}:\n"
        f"Pattern: {report.primary_pattern}\n"
        f"Dominance: {int(report.core.dominance * 100)}%\n"
        f"Stability: {int(report.core.stability * 100)}%"
    )


def format_report_lines(report: SessionReport) -> List[str]:
    """
    Report sheet as text lines, section by section.

    Parameter values print with two decimals, character and affective
    values as whole percentages, trends with an explicit sign.
    """
    def param(label: str, value: float) -> str:
        return f"{label} ... {value:.2f}"

    def pct(label: str, value: float) -> str:
        return f"{label} ... {int(np.floor(value * 100))}%"

    def trend(label: str, value: float) -> str:
        return f"{label} ... {value:+.2f}"

    raw = report.raw
    lines = [
        "SPEECH PATTERN PROFILING",
        f"Session ID: {report.id}",
        f"Input Source: {report.source_label}",
        f"Duration: {timebase.format_duration(report.duration)}",
        "",
        "INPUT SIGNAL (RAW)",
        param("Loudness", raw.loudness),
        param("Loudness Var", raw.loudness_var),
        param("Pitch Mean", raw.pitch),
        param("Pitch Range", raw.pitch_range),
        param("Speech Rate", raw.speech_rate),
        param("Pause Freq", raw.pause_freq),
        param("Pause Dur", raw.pause_dur),
        param("HNR / Tilt", raw.hnr),
        param("Jitter", raw.jitter),
        param("Shimmer", raw.shimmer),
        "",
        "TEMPORAL STATE",
        param("Temporal Change", report.temporal.change),
        trend("Loudness Trend", report.temporal.loudness_trend),
        trend("Escalation", report.temporal.escalation),
        "",
        "[ CORE ]",
        param("Dominance", report.core.dominance),
        param("Coherence", report.core.coherence),
        param("Stability", report.core.stability),
        param("Fluency", report.core.fluency),
        "",
        "[ CHARACTER ]",
        pct("Softness", report.voice_character.softness),
        pct("Tension", report.voice_character.tension),
        pct("Presence", report.voice_character.presence),
        pct("Expressive", report.voice_character.expressiveness),
        "",
        "[ AFFECTIVE ]",
        pct("Arousal", report.affective.arousal),
        pct("Aggression", report.affective.aggression),
        pct("Female-Coded", report.affective.feminine_coding),
        pct("Male-Coded", report.affective.masculine_coding),
        "",
        "SYSTEM SUMMARY",
        report.summary_text,
        f"PRIMARY PATTERN: {report.primary_pattern}",
        f"AFFECT: {affect_label(report)}",
    ]
    return lines


def print_report_summary(report: SessionReport) -> None:
    """Print the report sheet to the console."""
    print(f"\n{'='*60}")
    for line in format_report_lines(report):
        print(line)
    print(f"{'='*60}\n")


def plot_history(
    history: List[HistorySample],
    output_path: Path,
    title: str = "Session Replay",
    sample_every_ticks: int = 3,
    tick_rate_hz: float = timebase.DEFAULT_TICK_RATE_HZ
) -> None:
    """
    Plot recorded size, scatter and vertical position with mode bands.

    Parameters:
        history: Recorded samples
        output_path: Path to save plot
        title: Plot title
        sample_every_ticks: Recorder cadence (for the time axis)
        tick_rate_hz: Tick cadence (for the time axis)
    """
    n = len(history)
    times = np.arange(n, dtype=np.float32) * sample_every_ticks / tick_rate_hz
    sizes = np.array([s.size for s in history], dtype=np.float32)
    scatters = np.array([s.scatter for s in history], dtype=np.float32)
    ys = np.array([s.y for s in history], dtype=np.float32)
    step = sample_every_ticks / tick_rate_hz

    fig, axes = plt.subplots(3, 1, figsize=config.PLOT_FIGSIZE, sharex=True)

    series = [
        (axes[0], sizes, 'Size', 'black'),
        (axes[1], scatters, 'Scatter', 'red'),
        (axes[2], ys, 'Vertical position', 'blue'),
    ]
    for ax, values, label, color in series:
        # Shade contiguous runs of the same mode
        run_start = 0
        for i in range(1, n + 1):
            if i == n or history[i].mode is not history[run_start].mode:
                ax.axvspan(times[run_start], times[i - 1] + step,
                           color=MODE_COLORS[history[run_start].mode],
                           alpha=0.25, label='_nolegend_')
                run_start = i
        ax.plot(times, values, label=label, color=color, linewidth=1.5)
        ax.set_ylabel(label, fontsize=10)
        ax.legend(loc='upper right', fontsize=8)
        ax.grid(True, alpha=0.3)

    # Screen coordinates grow downward
    axes[2].invert_yaxis()
    axes[0].set_title(title, fontsize=12, fontweight='bold')
    axes[2].set_xlabel('Time (seconds)', fontsize=10)

    plt.tight_layout()

    output_path.parent.mkdir(parents=True, exist_ok=True)
    plt.savefig(output_path, dpi=config.PLOT_DPI, bbox_inches='tight')
    plt.close(fig)


def export_all_outputs(
    report: SessionReport,
    output_dir: Path,
    name: str,
    params: Optional[Dict] = None,
    generate_plots: bool = True
) -> List[Path]:
    """
    Export all outputs: JSON files and the replay plot.

    Parameters:
        report: Finished session report
        output_dir: Output directory path
        name: Base name for the files
        params: Flat parameter dict used for the session
        generate_plots: Whether to generate the plot (skipped for empty histories)

    Returns:
        List of paths to created files
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    created_files = []

    report_path = output_dir / f"{name}_report.json"
    save_json(create_report_json(report, params), report_path)
    created_files.append(report_path)

    summary_path = output_dir / f"{name}_summary.json"
    save_json(create_summary_json(report), summary_path)
    created_files.append(summary_path)

    if generate_plots and len(report.history) > 0:
        plot_path = output_dir / f"{name}_replay.png"
        sample_every = (params or {}).get('sample_every_ticks', 3)
        tick_rate = (params or {}).get('tick_rate_hz', timebase.DEFAULT_TICK_RATE_HZ)
        plot_history(
            list(report.history),
            plot_path,
            title=f"Session Replay: {report.id} ({report.primary_pattern})",
            sample_every_ticks=sample_every,
            tick_rate_hz=tick_rate
        )
        created_files.append(plot_path)

    return created_files
