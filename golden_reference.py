"""
Golden Reference Generator

Generates deterministic reference reports from the synthetic tick-stream
fixtures, and validates that re-running the pipeline reproduces them
byte for byte.

Usage:
    # Generate golden reports
    python golden_reference.py --output golden_outputs/

    # Validate existing golden reports
    python golden_reference.py --validate --output golden_outputs/

Directory structure:
    golden_outputs/
    └── profiler_v{PROFILER_VERSION}/
        ├── calm/
        │   ├── report.json
        │   └── summary.json
        ├── agitated/
        └── soft/
"""

import argparse
import hashlib
import json
from pathlib import Path
from typing import Dict, List, Tuple

import numpy as np

import config
from cli import build_config, run_tick_stream
from speech_profiling import export, tick_io
from speech_profiling.params import ProfilerConfig
from speech_profiling.report import SessionReport, SourceKind

# Fixed timestamp so reports depend only on their tick stream
GOLDEN_TIMESTAMP = "1970-01-01T00:00:00+00:00"


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================

def compute_file_sha256(path: Path) -> str:
    """Compute SHA256 of file bytes."""
    with open(path, 'rb') as f:
        return hashlib.sha256(f.read()).hexdigest()


def canonical_report_bytes(report: SessionReport) -> bytes:
    """Serialized report with sorted keys; the unit of byte-identity."""
    return json.dumps(report.to_dict(), sort_keys=True, cls=export.NumpyEncoder).encode('utf-8')


def compute_report_sha256(report: SessionReport) -> str:
    return hashlib.sha256(canonical_report_bytes(report)).hexdigest()


def get_versioned_output_path(output_dir: str) -> Path:
    return Path(output_dir) / f"profiler_v{config.PROFILER_VERSION}"


# =============================================================================
# FIXTURE LOADING
# =============================================================================

def load_fixture_manifest(fixtures_dir: Path) -> Dict:
    """Load fixtures_manifest.json from fixtures directory."""
    manifest_path = fixtures_dir / 'fixtures_manifest.json'
    if not manifest_path.exists():
        raise FileNotFoundError(
            f"Fixture manifest not found: {manifest_path}. "
            f"Run fixtures/generate_fixtures.py first."
        )
    with open(manifest_path, 'r') as f:
        return json.load(f)


def load_fixture(entry: Dict, fixtures_dir: Path) -> Tuple[np.ndarray, str]:
    """
    Load one tick-stream fixture and check its checksum.

    Raises:
        ValueError: If the file's SHA256 doesn't match the manifest
    """
    path = fixtures_dir / entry['file']
    digest = compute_file_sha256(path)
    if digest != entry['sha256_bytes']:
        raise ValueError(
            f"Fixture {path} SHA256 mismatch: manifest {entry['sha256_bytes']}, computed {digest}"
        )
    ticks = tick_io.load_ticks(path)
    tick_io.validate_ticks(ticks)
    return ticks, digest


def run_fixture(ticks: np.ndarray, cfg: ProfilerConfig) -> SessionReport:
    """Run a fixture as a file session with the fixed golden timestamp."""
    return run_tick_stream(ticks, SourceKind.FILE, cfg=cfg, clock=lambda: GOLDEN_TIMESTAMP)


# =============================================================================
# GOLDEN REFERENCE GENERATION
# =============================================================================

def generate_references(
    output_dir: str,
    fixtures_dir: str = 'fixtures/synthetic_ticks',
    cfg: ProfilerConfig = None
) -> List[Path]:
    """
    Generate golden reports for all fixtures.

    Parameters:
        output_dir: Base output directory
        fixtures_dir: Directory containing tick-stream fixtures
        cfg: Profiler configuration

    Returns:
        List of generated file paths
    """
    if cfg is None:
        cfg = build_config()

    fixtures_path = Path(fixtures_dir)
    manifest = load_fixture_manifest(fixtures_path)
    versioned_path = get_versioned_output_path(output_dir)

    all_files = []
    for entry in manifest['fixtures']:
        name = entry['name']
        print(f"Generating reference: {name}...")

        ticks, digest = load_fixture(entry, fixtures_path)
        report = run_fixture(ticks, cfg)

        report_json = export.create_report_json(report, cfg.to_dict())
        report_json['fixture_sha256'] = digest
        report_json['report_sha256'] = compute_report_sha256(report)

        track_dir = versioned_path / name
        report_path = track_dir / 'report.json'
        summary_path = track_dir / 'summary.json'
        export.save_json(report_json, report_path)
        export.save_json(export.create_summary_json(report), summary_path)
        all_files.extend([report_path, summary_path])

        print(f"  {report.primary_pattern} | report sha256 {report_json['report_sha256'][:12]}...")

    return all_files


def validate_references(
    output_dir: str,
    fixtures_dir: str = 'fixtures/synthetic_ticks',
    cfg: ProfilerConfig = None
) -> bool:
    """
    Validate golden reports against a fresh run.

    Validates:
    1. Fixture SHA256 matches the manifest and the golden record
    2. Re-running the fixture reproduces the report byte for byte
    3. Every normalized and composite score lies in [0, 1]

    Returns:
        True if all validations pass
    """
    if cfg is None:
        cfg = build_config()

    fixtures_path = Path(fixtures_dir)
    manifest = load_fixture_manifest(fixtures_path)
    versioned_path = get_versioned_output_path(output_dir)

    if not versioned_path.exists():
        print(f"No golden outputs found at {versioned_path}")
        return False

    all_passed = True
    for entry in manifest['fixtures']:
        name = entry['name']
        report_path = versioned_path / name / 'report.json'
        if not report_path.exists():
            print(f"SKIP: {name} - report.json not found")
            continue

        print(f"Validating: {name}...")
        with open(report_path, 'r') as f:
            golden = json.load(f)

        try:
            ticks, digest = load_fixture(entry, fixtures_path)
        except ValueError as e:
            print(f"  FAIL: {e}")
            all_passed = False
            continue

        if golden.get('fixture_sha256') != digest:
            print(f"  FAIL: golden fixture_sha256 doesn't match fixture")
            all_passed = False
            continue
        print(f"  PASS: fixture SHA256 matches")

        report = run_fixture(ticks, cfg)
        new_sha = compute_report_sha256(report)
        if new_sha != golden['report_sha256']:
            print(f"  FAIL: report differs from golden ({new_sha[:12]} vs {golden['report_sha256'][:12]})")
            all_passed = False
        else:
            print(f"  PASS: report is byte-identical")

        record = report.to_dict()
        bounded = list(record['raw'].values()) + list(record['core'].values()) \
            + list(record['voice_character'].values()) + list(record['affective'].values())
        if all(0.0 <= v <= 1.0 for v in bounded):
            print(f"  PASS: all scores within [0, 1]")
        else:
            print(f"  FAIL: score outside [0, 1]")
            all_passed = False

    return all_passed


# =============================================================================
# MAIN
# =============================================================================

def main():
    parser = argparse.ArgumentParser(
        description='Generate golden reference reports for determinism validation'
    )
    parser.add_argument(
        '--output', '-o',
        default='golden_outputs',
        help='Base output directory for golden reference files'
    )
    parser.add_argument(
        '--fixtures-dir', '-f',
        default='fixtures/synthetic_ticks',
        help='Directory containing tick-stream fixtures (default: fixtures/synthetic_ticks)'
    )
    parser.add_argument(
        '--validate', '-v',
        action='store_true',
        help='Validate existing golden references instead of generating'
    )

    args = parser.parse_args()

    if args.validate:
        print(f"Validating golden references in {args.output}/")
        success = validate_references(args.output, args.fixtures_dir)
        return 0 if success else 1

    print(f"Generating golden references to {args.output}/")
    files = generate_references(args.output, args.fixtures_dir)
    print(f"\nGenerated {len(files)} files.")
    return 0


if __name__ == '__main__':
    exit(main())
