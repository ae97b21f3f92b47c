"""
Synthetic Tick Stream Tests

End-to-end tests on deterministic synthetic streams:
- Generator determinism and shape
- Scenario behavior through the full session pipeline
- CLI file processing and archive commands
- Golden reference generation and validation
"""

import hashlib
import json

import pytest
import numpy as np
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

import cli
import golden_reference
from speech_profiling import synthetic, tick_io
from speech_profiling.archive import ReportArchive
from speech_profiling.motion import MotionState
from speech_profiling.report import SourceKind
from speech_profiling.session import SessionController


def fixed_clock():
    return "2026-01-01T00:00:00+00:00"


def run_scenario(name: str, duration_sec: float = 5.0):
    ticks = synthetic.with_trailing_silence(synthetic.generate_scenario(name, duration_sec))
    return cli.run_tick_stream(ticks, SourceKind.FILE, clock=fixed_clock)


class TestGenerators:
    """Tests for the synthetic generators."""

    def test_shape(self):
        ticks = synthetic.generate_speech(2.0)
        assert ticks.shape == (120, 5)
        tick_io.validate_ticks(ticks)

    def test_deterministic(self):
        np.testing.assert_array_equal(
            synthetic.generate_agitated_speech(3.0),
            synthetic.generate_agitated_speech(3.0)
        )

    def test_seed_changes_jitter(self):
        a = synthetic.generate_speech(2.0, seed=0)
        b = synthetic.generate_speech(2.0, seed=1)
        np.testing.assert_array_equal(a[:, 0], b[:, 0])
        assert not np.array_equal(a[:, 1], b[:, 1])

    def test_phrase_gaps_are_silent(self):
        ticks = synthetic.generate_speech(3.0, phrase_sec=1.0, pause_sec=0.5)
        # t in [1.0, 1.5) is a gap
        assert np.all(ticks[60:90, 0] == 0.0)
        assert np.all(ticks[:60, 0] > 0.0)

    def test_values_in_analyzer_range(self):
        for name in synthetic.SCENARIOS:
            ticks = synthetic.generate_scenario(name, 4.0)
            assert np.all(ticks >= 0.0)
            assert np.all(ticks[:, 0] <= 1.0)
            assert np.all(ticks[:, 2:] <= 255.0)

    def test_trailing_silence(self):
        ticks = synthetic.with_trailing_silence(synthetic.generate_calm_speech(1.0), 7.0)
        assert len(ticks) == 60 + 420
        assert np.all(ticks[60:] == 0.0)

    def test_unknown_scenario(self):
        with pytest.raises(ValueError):
            synthetic.generate_scenario('whisper')


class TestScenarios:
    """Scenario character survives the full pipeline."""

    def test_every_scenario_auto_stops(self):
        for name in synthetic.SCENARIOS:
            ticks = synthetic.with_trailing_silence(synthetic.generate_scenario(name, 5.0))
            controller = SessionController(clock=fixed_clock)
            controller.start(SourceKind.FILE)
            stopped = False
            for frame in tick_io.iter_frames(ticks):
                if controller.tick(frame).finalize_requested:
                    stopped = True
                    break
            assert stopped, name

    def test_agitated_scatters(self):
        r = run_scenario('agitated')
        modes = {s.mode for s in r.history}
        assert MotionState.SCATTERING in modes

    def test_calm_never_scatters(self):
        r = run_scenario('calm')
        modes = {s.mode for s in r.history}
        assert MotionState.SCATTERING not in modes
        assert MotionState.FLOW in modes

    def test_agitated_louder_than_soft(self):
        agitated = run_scenario('agitated')
        soft = run_scenario('soft')
        assert agitated.raw.loudness > soft.raw.loudness
        assert agitated.affective.arousal > soft.affective.arousal
        assert soft.raw.pause_freq > agitated.raw.pause_freq

    def test_reports_end_in_default(self):
        """Test the trailing silence leaves the visual at rest."""
        for name in synthetic.SCENARIOS:
            r = run_scenario(name)
            assert r.final_visual.mode is MotionState.DEFAULT
            assert r.history[-1].mode is MotionState.DEFAULT


class TestCli:
    """Tests for the command-line helpers."""

    def test_stream_without_auto_stop(self):
        """Test the end of the stream finalizes a session that never auto-stops."""
        ticks = synthetic.generate_calm_speech(2.0)
        r = cli.run_tick_stream(ticks, SourceKind.LIVE, clock=fixed_clock)
        assert r.id == 'lvi_00'
        assert r.duration <= 2

    def test_process_tick_file(self, tmp_path, capsys):
        input_path = tmp_path / 'calm.csv'
        tick_io.save_ticks(synthetic.with_trailing_silence(synthetic.generate_calm_speech(3.0)), input_path)
        archive = ReportArchive(tmp_path / 'archive.json')

        ok = cli.process_tick_file(
            input_path, tmp_path / 'out', SourceKind.FILE, archive,
            save=True, generate_plots=False
        )
        assert ok
        assert (tmp_path / 'out' / 'calm_report.json').exists()
        assert (tmp_path / 'out' / 'calm_summary.json').exists()
        assert ReportArchive(tmp_path / 'archive.json').ids() == ['vr_00']
        assert "PRIMARY PATTERN" in capsys.readouterr().out

    def test_process_bad_file(self, tmp_path, capsys):
        input_path = tmp_path / 'bad.csv'
        input_path.write_text("raw_volume\n0.1\n")
        ok = cli.process_tick_file(
            input_path, tmp_path / 'out', SourceKind.FILE, None,
            save=False, generate_plots=False
        )
        assert not ok
        assert "ERROR" in capsys.readouterr().err

    def test_archive_commands(self, tmp_path, capsys):
        archive = ReportArchive(tmp_path / 'archive.json')
        archive.save(run_scenario('calm'))

        assert cli.run_archive_command(archive, 'list', None)
        assert 'vr_00' in capsys.readouterr().out

        assert cli.run_archive_command(archive, 'show', 0)
        assert 'Analysis for vr_00' in capsys.readouterr().out

        assert not cli.run_archive_command(archive, 'delete', None)
        assert cli.run_archive_command(archive, 'delete', 0)
        assert len(ReportArchive(tmp_path / 'archive.json')) == 0

    def test_main_reports_corrupt_archive(self, tmp_path, capsys, monkeypatch):
        """Test a non-object archive entry ends in an ERROR line and exit 1."""
        archive_path = tmp_path / 'archive.json'
        archive_path.write_text('{"entries": ["oops"]}')
        monkeypatch.setattr(sys, 'argv', ['cli.py', '--archive', str(archive_path), 'archive', 'list'])

        with pytest.raises(SystemExit) as exc:
            cli.main()
        assert exc.value.code == 1
        assert capsys.readouterr().err.startswith("ERROR:")


class TestGoldenReference:
    """Golden references reproduce byte for byte."""

    def write_fixture(self, fixtures_dir: Path) -> None:
        ticks = synthetic.with_trailing_silence(synthetic.generate_calm_speech(3.0))
        path = fixtures_dir / 'calm.csv'
        tick_io.save_ticks(ticks, path)
        digest = hashlib.sha256(path.read_bytes()).hexdigest()
        with open(fixtures_dir / 'fixtures_manifest.json', 'w') as f:
            json.dump({'fixtures': [{'name': 'calm', 'file': 'calm.csv', 'sha256_bytes': digest}]}, f)

    def test_generate_then_validate(self, tmp_path):
        fixtures_dir = tmp_path / 'fixtures'
        fixtures_dir.mkdir()
        self.write_fixture(fixtures_dir)

        files = golden_reference.generate_references(str(tmp_path / 'golden'), str(fixtures_dir))
        assert len(files) == 2
        assert golden_reference.validate_references(str(tmp_path / 'golden'), str(fixtures_dir))

    def test_golden_timestamp_pinned(self, tmp_path):
        fixtures_dir = tmp_path / 'fixtures'
        fixtures_dir.mkdir()
        self.write_fixture(fixtures_dir)

        golden_reference.generate_references(str(tmp_path / 'golden'), str(fixtures_dir))
        report_path = golden_reference.get_versioned_output_path(str(tmp_path / 'golden')) / 'calm' / 'report.json'
        with open(report_path) as f:
            data = json.load(f)
        assert data['report']['timestamp'] == golden_reference.GOLDEN_TIMESTAMP

    def test_tampered_fixture_fails(self, tmp_path):
        fixtures_dir = tmp_path / 'fixtures'
        fixtures_dir.mkdir()
        self.write_fixture(fixtures_dir)
        golden_reference.generate_references(str(tmp_path / 'golden'), str(fixtures_dir))

        with open(fixtures_dir / 'calm.csv', 'a') as f:
            f.write("0.5,1000,10,10,10\n")
        assert not golden_reference.validate_references(str(tmp_path / 'golden'), str(fixtures_dir))

    def test_missing_manifest(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            golden_reference.generate_references(str(tmp_path / 'golden'), str(tmp_path))
