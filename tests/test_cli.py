from __future__ import annotations

import json
from pathlib import Path

import numpy as np
import soundfile as sf

from audio_studio.cli import main


def _write_tone(path: Path, sr: int = 8000, dur: float = 0.5) -> np.ndarray:
    t = np.arange(int(sr * dur)) / sr
    data = (0.4 * np.sin(2 * np.pi * 220.0 * t)).astype(np.float32)
    sf.write(str(path), np.stack([data, -data], axis=1), sr, subtype="FLOAT")
    return data


def test_process_writes_float_wav(tmp_path: Path):
    src = tmp_path / "in.wav"
    dst = tmp_path / "out.wav"
    tone = _write_tone(src)

    assert main(["process", str(src), "-o", str(dst), "--volume", "0.5"]) == 0

    out, sr = sf.read(str(dst), dtype="float32", always_2d=True)
    assert sr == 8000
    assert out.shape == (len(tone), 2)
    np.testing.assert_allclose(out[:, 0], 0.5 * tone, atol=1e-6)
    assert sf.info(str(dst)).subtype == "FLOAT"


def test_process_with_config_file_and_override(tmp_path: Path):
    src = tmp_path / "in.wav"
    dst = tmp_path / "out.wav"
    cfg = tmp_path / "fx.json"
    tone = _write_tone(src)
    cfg.write_text(json.dumps({"tempo": 2.0, "volume": 0.1}), encoding="utf-8")

    assert main(["process", str(src), "-o", str(dst), "--config", str(cfg), "--volume", "1.0"]) == 0

    out, _ = sf.read(str(dst), dtype="float32", always_2d=True)
    assert out.shape[0] == len(tone) // 2
    np.testing.assert_allclose(out[:, 0], tone[::2], atol=1e-6)


def test_process_reports_unsupported_format(tmp_path: Path):
    src = tmp_path / "song.xyz"
    src.write_bytes(b"abc")
    assert main(["process", str(src), "-o", str(tmp_path / "out.wav")]) == 1
    assert not (tmp_path / "out.wav").exists()


def test_process_reports_bad_config(tmp_path: Path):
    src = tmp_path / "in.wav"
    _write_tone(src)
    cfg = tmp_path / "fx.json"
    cfg.write_text("[]", encoding="utf-8")
    assert main(["process", str(src), "--config", str(cfg)]) == 1


def test_analyze_json(tmp_path: Path, capsys):
    src = tmp_path / "in.wav"
    _write_tone(src)

    assert main(["analyze", str(src), "--json"]) == 0

    data = json.loads(capsys.readouterr().out)
    assert data["channels"] == 2
    assert data["sample_rate"] == 8000
    assert data["peak_levels"][0] <= 0.4 + 1e-6


def test_analyze_table(tmp_path: Path, capsys):
    src = tmp_path / "in.wav"
    _write_tone(src)
    assert main(["analyze", str(src)]) == 0
    assert "Levels for in.wav" in capsys.readouterr().out


def test_process_reports_non_scalar_option(tmp_path: Path):
    src = tmp_path / "in.wav"
    _write_tone(src)
    cfg = tmp_path / "fx.json"
    cfg.write_text(json.dumps({"reverb_seed": [1, 2]}), encoding="utf-8")
    assert main(["process", str(src), "-o", str(tmp_path / "out.wav"), "--config", str(cfg)]) == 1
