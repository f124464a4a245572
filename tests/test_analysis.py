from __future__ import annotations

import numpy as np
import pytest

from audio_studio.analysis import analyze, integrated_loudness
from audio_studio.types import AudioBuffer


def test_peak_and_rms_per_channel():
    sr = 8000
    t = np.arange(sr) / sr
    sine = np.sin(2 * np.pi * 100.0 * t).astype(np.float32)
    dc = np.full(sr, -0.5, dtype=np.float32)

    summary = analyze(AudioBuffer(channels=[sine, dc], sample_rate=sr))

    assert summary.channel_count == 2
    assert summary.samples_per_channel == sr
    assert summary.sample_rate == sr
    assert summary.duration == pytest.approx(1.0)
    assert summary.peak_levels[0] == pytest.approx(1.0, abs=1e-3)
    assert summary.rms_levels[0] == pytest.approx(1 / np.sqrt(2), rel=1e-3)
    assert summary.peak_levels[1] == pytest.approx(0.5)
    assert summary.rms_levels[1] == pytest.approx(0.5)


def test_loudness_of_a_tone_is_finite():
    sr = 48000
    t = np.arange(sr * 2) / sr
    tone = (0.5 * np.sin(2 * np.pi * 1000.0 * t)).astype(np.float32)
    lufs = integrated_loudness(AudioBuffer(channels=[tone, tone], sample_rate=sr))
    assert lufs is not None
    assert -20.0 < lufs < 0.0


def test_loudness_undefined_for_short_or_silent_audio():
    sr = 48000
    short = AudioBuffer(channels=[np.full(sr // 10, 0.5, dtype=np.float32)], sample_rate=sr)
    silent = AudioBuffer(channels=[np.zeros(sr, dtype=np.float32)], sample_rate=sr)
    assert integrated_loudness(short) is None
    assert integrated_loudness(silent) is None


def test_summary_dict_shape():
    buf = AudioBuffer(channels=[np.array([0.1, -0.2, 0.3], dtype=np.float32)], sample_rate=8000)
    data = analyze(buf).to_dict()
    assert set(data) == {
        "peak_levels",
        "rms_levels",
        "sample_rate",
        "channels",
        "duration",
        "samples_per_channel",
        "integrated_loudness",
    }
    assert data["channels"] == 1
    assert data["samples_per_channel"] == 3
    assert data["peak_levels"] == [pytest.approx(0.3)]


def test_empty_channel_reports_zero_levels():
    summary = analyze(AudioBuffer(channels=[np.zeros(0, dtype=np.float32)], sample_rate=8000))
    assert summary.peak_levels == [0.0]
    assert summary.rms_levels == [0.0]
    assert summary.integrated_loudness is None
