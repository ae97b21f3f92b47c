#!/usr/bin/env python3
"""Generate deterministic synthetic tick-stream fixtures.

Materializes the synthetic scenarios as stable CSV files (with trailing
silence long enough to trip auto-stop) for golden-reference validation.

Format: CSV with header raw_volume,centroid_hz,low_energy,mid_energy,high_energy;
one row per tick at 60 ticks/s, six decimals.
"""

import hashlib
import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from speech_profiling import synthetic, tick_io  # noqa: E402

DURATION_SEC = 12.0
TRAILING_SILENCE_SEC = 7.0
OUTPUT_DIR = Path(__file__).parent / "synthetic_ticks"


def sha256_of_file(path: Path) -> str:
    with open(path, 'rb') as f:
        return hashlib.sha256(f.read()).hexdigest()


def main():
    OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
    fixtures = []

    for name, description in synthetic.SCENARIOS.items():
        ticks = synthetic.with_trailing_silence(
            synthetic.generate_scenario(name, DURATION_SEC), TRAILING_SILENCE_SEC
        )
        path = OUTPUT_DIR / f"{name}.csv"
        tick_io.save_ticks(ticks, path)

        digest = sha256_of_file(path)
        fixtures.append({
            'name': name,
            'file': path.name,
            'description': description,
            'n_ticks': int(len(ticks)),
            'voiced_duration_sec': DURATION_SEC,
            'trailing_silence_sec': TRAILING_SILENCE_SEC,
            'sha256_bytes': digest,
        })
        print(f"Wrote {path} ({len(ticks)} ticks, sha256 {digest[:12]}...)")

    manifest_path = OUTPUT_DIR / 'fixtures_manifest.json'
    with open(manifest_path, 'w') as f:
        json.dump({'fixtures': fixtures}, f, indent=2)
    print(f"Wrote {manifest_path}")


if __name__ == '__main__':
    main()
