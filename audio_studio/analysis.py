"""Level analysis: per-channel peak and RMS plus integrated loudness.

Read-only over the buffer; nothing here modifies samples.
"""
from __future__ import annotations

import logging
from typing import Optional

import numpy as np
import pyloudnorm as pyln

from .types import AnalysisSummary, AudioBuffer

logger = logging.getLogger(__name__)

# pyloudnorm gates in 400 ms blocks and needs at least one.
LOUDNESS_BLOCK_S = 0.4


def _rms(x: np.ndarray) -> float:
    if len(x) == 0:
        return 0.0
    return float(np.sqrt(np.mean(np.square(x, dtype=np.float64))))


def _peak(x: np.ndarray) -> float:
    if len(x) == 0:
        return 0.0
    return float(np.max(np.abs(x)))


def integrated_loudness(buffer: AudioBuffer) -> Optional[float]:
    """LUFS of the channel mean, or None for short or silent audio."""
    if not buffer.channels or buffer.sample_rate <= 0:
        return None
    if buffer.duration < LOUDNESS_BLOCK_S:
        return None
    frames = min(len(ch) for ch in buffer.channels)
    mono = np.mean(np.stack([np.asarray(ch[:frames], dtype=np.float64) for ch in buffer.channels]), axis=0)
    meter = pyln.Meter(buffer.sample_rate, block_size=LOUDNESS_BLOCK_S)
    loudness = float(meter.integrated_loudness(mono))
    if not np.isfinite(loudness):
        logger.debug("Loudness undefined (silent input)")
        return None
    return loudness


def analyze(buffer: AudioBuffer) -> AnalysisSummary:
    """Summarize levels for each channel of ``buffer``."""
    return AnalysisSummary(
        peak_levels=[_peak(ch) for ch in buffer.channels],
        rms_levels=[_rms(ch) for ch in buffer.channels],
        sample_rate=int(buffer.sample_rate),
        channel_count=buffer.num_channels,
        duration=buffer.duration,
        samples_per_channel=buffer.samples_per_channel,
        integrated_loudness=integrated_loudness(buffer),
    )
