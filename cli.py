#!/usr/bin/env python3
"""
speech-profiling - Command Line Interface

Main entry point for running recorded or synthetic tick streams through the
session pipeline, exporting reports and managing the archive.
"""

import argparse
import sys
from dataclasses import replace
from pathlib import Path
from typing import Callable, Optional

import numpy as np

import config
from speech_profiling import export, synthetic, tick_io
from speech_profiling.archive import ReportArchive
from speech_profiling.params import DEFAULT_CONFIG, ProfilerConfig
from speech_profiling.report import SessionReport, SourceKind
from speech_profiling.session import SessionController, utc_timestamp


def build_config() -> ProfilerConfig:
    """Default pipeline config on the configured tick clock."""
    return replace(
        DEFAULT_CONFIG,
        accumulator=replace(DEFAULT_CONFIG.accumulator, tick_rate_hz=config.TICK_RATE_HZ)
    )


def run_tick_stream(
    ticks: np.ndarray,
    source_kind: SourceKind,
    archive: Optional[ReportArchive] = None,
    cfg: Optional[ProfilerConfig] = None,
    verbose: bool = False,
    clock: Callable[[], str] = utc_timestamp
) -> SessionReport:
    """
    Run a tick array through one session and return its report.

    The session ends on auto-stop, or at the end of the stream (natural end
    of a file, or the user stopping a live recording).

    Parameters:
        ticks: Array (n_ticks, 5) in tick_io.TICK_COLUMNS order
        source_kind: LIVE or FILE
        archive: Archive used for id numbering, optional
        cfg: Pipeline config (None = build_config())
        verbose: Print progress messages
        clock: Timestamp source for the report

    Returns:
        SessionReport
    """
    controller = SessionController(archive=archive, cfg=cfg or build_config(), clock=clock)
    controller.start(source_kind)

    for frame in tick_io.iter_frames(ticks):
        result = controller.tick(frame)
        if result.finalize_requested:
            if verbose:
                print(f"   Auto-stop after {result.tick} ticks of {len(ticks)}")
            break
    else:
        controller.stop()

    if verbose:
        session = controller.session
        print(f"   Voiced ticks: {session.stats.frame_count}, "
              f"silent ticks: {session.stats.silence_frames}, "
              f"pauses: {session.stats.pause_count}, "
              f"syllables: {session.stats.syllable_count}")

    return controller.report


def process_tick_file(
    file_path: Path,
    output_dir: Path,
    source_kind: SourceKind,
    archive: Optional[ReportArchive],
    save: bool,
    generate_plots: bool,
    verbose: bool = False
) -> bool:
    """
    Process a recorded tick stream file end to end.

    Returns:
        True if successful, False otherwise
    """
    try:
        if verbose:
            print(f"\nProcessing: {file_path.name}")
            print("-" * 60)
            print("1. Loading tick stream...")

        ticks = tick_io.load_ticks(file_path)
        tick_io.validate_ticks(ticks)

        if verbose:
            print(f"   {len(ticks)} ticks ({len(ticks) / config.TICK_RATE_HZ:.2f}s)")
            print("2. Running session...")

        cfg = build_config()
        report = run_tick_stream(ticks, source_kind, archive, cfg, verbose)

        if save and archive is not None:
            archive.save(report)
            if verbose:
                print(f"   Saved {report.id} to {archive.path}")

        if verbose:
            print("3. Exporting results...")

        created_files = export.export_all_outputs(
            report, output_dir, file_path.stem,
            params=cfg.to_dict(), generate_plots=generate_plots
        )

        if verbose:
            print(f"   Created {len(created_files)} output files")

        export.print_report_summary(report)
        return True

    except Exception as e:
        print(f"ERROR processing {file_path.name}: {e}", file=sys.stderr)
        if verbose:
            import traceback
            traceback.print_exc()
        return False


def run_demo_mode(output_dir: Path, duration_sec: float, verbose: bool = False) -> bool:
    """
    Run every synthetic scenario and export its report.

    Returns:
        True if successful
    """
    print("Running demo mode with synthetic tick streams...")
    cfg = build_config()

    for name, description in synthetic.SCENARIOS.items():
        print(f"\nProcessing: {name} ({description})")
        print("-" * 60)

        try:
            ticks = synthetic.with_trailing_silence(synthetic.generate_scenario(name, duration_sec))
            report = run_tick_stream(ticks, SourceKind.FILE, cfg=cfg, verbose=verbose)

            created_files = export.export_all_outputs(
                report, output_dir / name, f"demo_{name}", params=cfg.to_dict()
            )
            print(f"Created {len(created_files)} output files in {output_dir / name}")
            export.print_report_summary(report)

        except Exception as e:
            print(f"ERROR: {e}", file=sys.stderr)
            if verbose:
                import traceback
                traceback.print_exc()
            return False

    print(f"\nDemo complete! Results saved to {output_dir}")
    return True


def run_archive_command(archive: ReportArchive, action: str, index: Optional[int]) -> bool:
    """List, show or delete archive entries."""
    if action == 'list':
        entries = archive.list()
        if not entries:
            print(f"Archive {archive.path} is empty")
        for entry in entries:
            r = entry.report
            print(f"[{entry.index:3d}] {r.id:<8} {r.timestamp:<26} "
                  f"{r.duration:4d}s  {r.primary_pattern}")
        return True

    if index is None:
        print(f"ERROR: archive {action} needs an index", file=sys.stderr)
        return False

    if action == 'show':
        report = archive.get(index)
        export.print_report_summary(report)
        print(export.format_share_text(report))
    elif action == 'delete':
        removed = archive.delete(index)
        print(f"Deleted {removed.id} ({removed.primary_pattern})")
    return True


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description='speech-profiling - Session reports from analyzer tick streams',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Analyze a recorded tick stream as a file session and save it
  %(prog)s run ticks.csv --output results/ --source file --save

  # Run demo mode
  %(prog)s demo --output demo_results/

  # Manage the archive
  %(prog)s archive list
  %(prog)s archive delete 3
        """
    )
    parser.add_argument(
        '--archive',
        type=str,
        default=str(config.ARCHIVE_PATH),
        help=f'Archive file (default: {config.ARCHIVE_PATH})'
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Print verbose progress messages'
    )

    subparsers = parser.add_subparsers(dest='command', required=True)

    run_parser = subparsers.add_parser('run', help='Analyze a tick stream CSV')
    run_parser.add_argument('input', type=str, help='Tick stream CSV file')
    run_parser.add_argument('--output', '-o', type=str, required=True,
                            help='Output directory for results')
    run_parser.add_argument('--source', choices=[k.value for k in SourceKind],
                            default=SourceKind.FILE.value,
                            help='Source kind recorded in the report (default: file)')
    run_parser.add_argument('--save', action='store_true',
                            help='Save the report to the archive')
    run_parser.add_argument('--no-plots', action='store_true',
                            help='Skip plot generation')

    demo_parser = subparsers.add_parser('demo', help='Run synthetic scenarios')
    demo_parser.add_argument('--output', '-o', type=str, required=True,
                             help='Output directory for demo results')
    demo_parser.add_argument('--duration', type=float, default=config.DEMO_DURATION_SEC,
                             help=f'Voiced seconds per scenario (default: {config.DEMO_DURATION_SEC})')

    archive_parser = subparsers.add_parser('archive', help='Manage the report archive')
    archive_parser.add_argument('action', choices=['list', 'show', 'delete'])
    archive_parser.add_argument('index', type=int, nargs='?', help='Entry index')

    args = parser.parse_args()

    try:
        if args.command == 'demo':
            success = run_demo_mode(Path(args.output), args.duration, args.verbose)
            sys.exit(0 if success else 1)

        archive = ReportArchive(args.archive)

        if args.command == 'archive':
            success = run_archive_command(archive, args.action, args.index)
            sys.exit(0 if success else 1)

        input_path = Path(args.input)
        if not input_path.is_file():
            print(f"ERROR: Input file does not exist: {input_path}", file=sys.stderr)
            sys.exit(1)

        success = process_tick_file(
            input_path,
            Path(args.output),
            SourceKind(args.source),
            archive,
            save=args.save,
            generate_plots=not args.no_plots,
            verbose=args.verbose
        )
        sys.exit(0 if success else 1)

    except (ValueError, IndexError, OSError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        sys.exit(1)


if __name__ == '__main__':
    main()
