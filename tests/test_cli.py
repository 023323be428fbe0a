"""
Tests for scripts/analyze.py: batch analysis to JSON.
"""

import importlib.util
import json
from pathlib import Path

import pytest
import soundfile as sf

from .conftest import tone_bursts

SCRIPT = Path(__file__).parent.parent / "scripts" / "analyze.py"


@pytest.fixture(scope="module")
def cli():
    spec = importlib.util.spec_from_file_location("analyze_cli", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def wav(tmp_path) -> Path:
    path = tmp_path / "bursts.wav"
    sf.write(path, tone_bursts([1000.0, 1200.0, 1400.0]), 22050, subtype="FLOAT")
    return path


@pytest.fixture
def loud_wav(tmp_path) -> Path:
    path = tmp_path / "loud.wav"
    sf.write(path, tone_bursts([1000.0, 1300.0, 1600.0], amplitude=0.5), 22050, subtype="FLOAT")
    return path


def run(cli, monkeypatch, *argv):
    monkeypatch.setattr("sys.argv", ["analyze.py", *argv])
    cli.main()


class TestAnalyzeCli:
    def test_single_file_to_json(self, cli, monkeypatch, wav, tmp_path):
        out = tmp_path / "result.json"
        run(cli, monkeypatch, "--input", str(wav), "--strategy", "fixed", "--output", str(out))
        result = json.loads(out.read_text())
        assert result["file"] == str(wav)
        assert result["sample_rate"] == 22050
        assert result["num_hashes"] == len(result["hashes"])
        assert result["num_peaks"] == len(result["peaks"])

    def test_folder(self, cli, monkeypatch, wav, tmp_path):
        out = tmp_path / "results.json"
        sf.write(tmp_path / "second.wav", tone_bursts([800.0]), 22050)
        run(cli, monkeypatch, "--input", str(tmp_path), "--pattern", "*.wav", "--output", str(out))
        results = json.loads(out.read_text())
        assert sorted(Path(r["file"]).name for r in results) == ["bursts.wav", "second.wav"]

    def test_fft_size_override(self, cli, monkeypatch, wav, tmp_path):
        out = tmp_path / "result.json"
        run(cli, monkeypatch, "--input", str(wav), "--fft-size", "1024", "--output", str(out))
        assert json.loads(out.read_text())["n_bins"] == 512

    def test_invalid_fft_size_exits(self, cli, monkeypatch, wav):
        with pytest.raises(SystemExit) as exc:
            run(cli, monkeypatch, "--input", str(wav), "--fft-size", "1000")
        assert exc.value.code == 1

    def test_missing_input_exits(self, cli, monkeypatch, tmp_path):
        with pytest.raises(SystemExit) as exc:
            run(cli, monkeypatch, "--input", str(tmp_path / "nope.wav"))
        assert exc.value.code == 1

    def test_build_config_from_yaml(self, cli, tmp_path):
        path = tmp_path / "pipeline.yaml"
        path.write_text("peaks:\n  strategy: fixed\n")
        args = type("Args", (), {
            "config": str(path), "fft_size": None, "hop": 256, "min_db": None, "max_db": -20.0, "strategy": None,
        })()
        config = cli.build_config(args)
        assert config.peaks.strategy == "fixed"
        assert config.spectrogram.hop_size == 256
        assert config.spectrogram.max_db == -20.0

    def test_full_scale_file_with_shipped_config(self, cli, monkeypatch, loud_wav, tmp_path):
        """Normal-level audio yields peaks without any decibel flags."""
        out = tmp_path / "result.json"
        run(cli, monkeypatch, "--input", str(loud_wav), "--output", str(out))
        result = json.loads(out.read_text())
        assert result["num_peaks"] > 0
        assert result["num_pairs"] > 0
        assert len(result["physical_peaks"]) == result["num_peaks"]
        assert len(result["physical_pairs"]) == result["num_pairs"]
        assert 0.4 < max(result["envelope"]) <= 0.5

    def test_envelope_buckets(self, cli, monkeypatch, wav, tmp_path):
        out = tmp_path / "result.json"
        run(cli, monkeypatch, "--input", str(wav), "--envelope-buckets", "50", "--output", str(out))
        assert len(json.loads(out.read_text())["envelope"]) == 50
