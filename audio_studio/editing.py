"""Buffer editing helpers: cut, remove, insert, join, silence, fades.

Times are in seconds and converted with ``floor(t * sample_rate)``. Every
function returns a new buffer.
"""
from __future__ import annotations

import math
from typing import List, Sequence, Tuple

import numpy as np

from .types import AudioBuffer, BufferInfo


def _to_sample(buffer: AudioBuffer, t: float) -> int:
    return int(math.floor(t * buffer.sample_rate))


def _clamped_range(buffer: AudioBuffer, start: float, end: float) -> Tuple[int, int]:
    length = buffer.samples_per_channel
    lo = max(0, min(length, _to_sample(buffer, start)))
    hi = max(lo, min(length, _to_sample(buffer, end)))
    return lo, hi


def extract_segment(buffer: AudioBuffer, start: float, end: float) -> AudioBuffer:
    lo, hi = _clamped_range(buffer, start, end)
    if lo >= hi:
        raise ValueError("Invalid time range: start time must be less than end time")
    return AudioBuffer(channels=[ch[lo:hi].copy() for ch in buffer.channels], sample_rate=buffer.sample_rate)


def remove_segment(buffer: AudioBuffer, start: float, end: float) -> AudioBuffer:
    """Cut ``[start, end)`` out and close the gap."""
    lo, hi = _clamped_range(buffer, start, end)
    if lo >= hi:
        return buffer.copy()
    if hi - lo >= buffer.samples_per_channel:
        raise ValueError("Cannot remove entire audio buffer")
    return AudioBuffer(
        channels=[np.concatenate([ch[:lo], ch[hi:]]) for ch in buffer.channels],
        sample_rate=buffer.sample_rate,
    )


def _check_compatible(a: AudioBuffer, b: AudioBuffer) -> None:
    if a.sample_rate != b.sample_rate:
        raise ValueError("Sample rates must match between buffers")
    if a.num_channels != b.num_channels:
        raise ValueError("Channel counts must match between buffers")


def insert_segment(buffer: AudioBuffer, segment: AudioBuffer, at: float) -> AudioBuffer:
    _check_compatible(buffer, segment)
    pos = max(0, min(buffer.samples_per_channel, _to_sample(buffer, at)))
    return AudioBuffer(
        channels=[
            np.concatenate([ch[:pos], seg, ch[pos:]]).astype(np.float32, copy=False)
            for ch, seg in zip(buffer.channels, segment.channels)
        ],
        sample_rate=buffer.sample_rate,
    )


def concatenate(buffers: Sequence[AudioBuffer]) -> AudioBuffer:
    if not buffers:
        raise ValueError("Cannot concatenate empty array of buffers")
    first = buffers[0]
    for other in buffers[1:]:
        _check_compatible(first, other)
    channels: List[np.ndarray] = [
        np.concatenate([b.channels[i] for b in buffers]).astype(np.float32, copy=False)
        for i in range(first.num_channels)
    ]
    return AudioBuffer(channels=channels, sample_rate=first.sample_rate)


def silent_buffer(duration: float, sample_rate: int = 44100, channels: int = 2) -> AudioBuffer:
    length = int(math.floor(duration * sample_rate))
    return AudioBuffer(
        channels=[np.zeros(length, dtype=np.float32) for _ in range(channels)],
        sample_rate=sample_rate,
    )


def apply_fade(buffer: AudioBuffer, fade_in: float = 0.0, fade_out: float = 0.0) -> AudioBuffer:
    """Linear fade in over ``fade_in`` seconds and fade out over ``fade_out`` seconds."""
    out = buffer.copy()
    fade_in_n = _to_sample(buffer, fade_in)
    fade_out_n = _to_sample(buffer, fade_out)
    for data in out.channels:
        n = len(data)
        if fade_in_n > 0:
            k = min(fade_in_n, n)
            data[:k] *= (np.arange(k, dtype=np.float64) / fade_in_n).astype(np.float32)
        if fade_out_n > 0:
            start = max(0, n - fade_out_n)
            data[start:] *= ((n - np.arange(start, n, dtype=np.float64)) / fade_out_n).astype(np.float32)
    return out


def buffer_info(buffer: AudioBuffer) -> BufferInfo:
    return BufferInfo(
        duration=buffer.duration,
        sample_rate=buffer.sample_rate,
        channel_count=buffer.num_channels,
        length=buffer.samples_per_channel,
        size_in_bytes=buffer.samples_per_channel * buffer.num_channels * 4,  # float32
    )
