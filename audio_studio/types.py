"""Shared datatypes for the audio studio core.

These dataclasses keep the interfaces between the loader, the effects
pipeline, the serializer and the command layer clear. The audio buffer is
the only thing that travels between components.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from typing import Dict, List, Mapping, Optional, Tuple

import numpy as np

logger = logging.getLogger(__name__)


@dataclass
class AudioBuffer:
    """Decoded audio, one float32 array per channel.

    Attributes:
        channels: Per-channel sample arrays, nominally in [-1.0, 1.0].
        sample_rate: Sampling frequency in Hz, fixed for the buffer's lifetime.
    """

    channels: List[np.ndarray]
    sample_rate: int

    @property
    def num_channels(self) -> int:
        return len(self.channels)

    @property
    def samples_per_channel(self) -> int:
        if not self.channels:
            return 0
        return int(len(self.channels[0]))

    @property
    def duration(self) -> float:
        """Duration in seconds, always samples-per-channel / sample_rate."""
        if self.sample_rate <= 0:
            return 0.0
        return self.samples_per_channel / float(self.sample_rate)

    def copy(self) -> "AudioBuffer":
        return AudioBuffer(
            channels=[np.array(ch, dtype=np.float32, copy=True) for ch in self.channels],
            sample_rate=int(self.sample_rate),
        )

    def validate(self) -> None:
        """Raise ValueError unless the buffer can cross a component boundary."""
        if self.sample_rate <= 0:
            raise ValueError(f"Invalid sample rate: {self.sample_rate}")
        if not self.channels:
            raise ValueError("Audio buffer has no channels")
        lengths = {len(ch) for ch in self.channels}
        if 0 in lengths:
            raise ValueError("Audio buffer has an empty channel")
        if len(lengths) > 1:
            raise ValueError(f"Channel lengths differ: {sorted(lengths)}")
        for ch in self.channels:
            if np.ndim(ch) != 1:
                raise ValueError("Each channel must be a 1-D sample array")

    def to_dict(self) -> Dict[str, object]:
        """JSON-friendly shape used by the command layer."""
        return {
            "channels": [np.asarray(ch, dtype=np.float32).tolist() for ch in self.channels],
            "sample_rate": int(self.sample_rate),
            "duration": self.duration,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> "AudioBuffer":
        # "duration" is derived, so an incoming value is ignored.
        channels = [np.asarray(ch, dtype=np.float32) for ch in data.get("channels", [])]  # type: ignore[union-attr]
        return cls(channels=channels, sample_rate=int(data["sample_rate"]))  # type: ignore[arg-type]


# Keys the front end sends that the core accepts but does not process.
IGNORED_EFFECT_KEYS = frozenset(
    {
        "nightcore",
        "pitch_shift",
        "pitcher",
        "formant_shift",
        "vocal_extractor",
        "vocal_sensitivity",
        "instrumental_separation",
    }
)

# Center frequency (Hz) per EQ band, in cascade order.
EQ_BAND_FREQS: Tuple[Tuple[str, float], ...] = (
    ("eq_low", 60.0),
    ("eq_low_mid", 250.0),
    ("eq_mid", 1000.0),
    ("eq_high_mid", 4000.0),
    ("eq_high", 16000.0),
)


def _snake_case(key: str) -> str:
    out = []
    for c in key:
        if c.isupper():
            out.append("_")
            out.append(c.lower())
        else:
            out.append(c)
    return "".join(out)


@dataclass(frozen=True)
class EffectsConfig:
    """Flat, read-only description of one processing request.

    Attributes:
        volume: Linear gain multiplier, applied first.
        tempo: Playback-rate multiplier; 1.0 leaves the buffer untouched.
        bass_boost: Low-shelf intensity, 0 disables. Shelf gain is ``bass_boost * 20`` dB.
        reverb: Wet/dry amount in [0, 1], 0 disables.
        eq_low .. eq_high: Normalized band gains in [0, 1], 0.5 is unity. ``None`` means unset.
        limiter: Enable the limiter stage.
        limiter_threshold: Limiter ceiling in dBFS (default -1 dB).
        limiter_release: Release time in seconds (default 0.1 s).
        attenuator: Enable the fixed-gain stage.
        attenuator_gain: Attenuator gain in dB (default +10 dB).
        audio_processing_enabled: Master gate for limiter and attenuator; only
            an explicit ``False`` disables them.
        reverb_seed: Seed for the reverb noise impulse. ``None`` draws fresh entropy.
        reverb_method: ``"direct"`` time-domain convolution or ``"fft"``.
    """

    volume: float = 1.0
    tempo: float = 1.0
    bass_boost: float = 0.0
    reverb: float = 0.0
    eq_low: Optional[float] = None
    eq_low_mid: Optional[float] = None
    eq_mid: Optional[float] = None
    eq_high_mid: Optional[float] = None
    eq_high: Optional[float] = None
    limiter: Optional[bool] = None
    limiter_threshold: Optional[float] = None
    limiter_release: Optional[float] = None
    attenuator: Optional[bool] = None
    attenuator_gain: Optional[float] = None
    audio_processing_enabled: Optional[bool] = None
    reverb_seed: Optional[int] = None
    reverb_method: str = field(default="direct")

    @property
    def has_eq(self) -> bool:
        return any(getattr(self, name) is not None for name, _ in EQ_BAND_FREQS)

    @property
    def processing_enabled(self) -> bool:
        return self.audio_processing_enabled is not False

    @property
    def limiter_active(self) -> bool:
        return bool(self.limiter) and self.processing_enabled

    @property
    def attenuator_active(self) -> bool:
        return bool(self.attenuator) and self.processing_enabled

    def eq_bands(self) -> List[Tuple[float, float]]:
        """(center_hz, normalized_gain) pairs; unset bands read as unity (0.5)."""
        bands = []
        for name, freq in EQ_BAND_FREQS:
            value = getattr(self, name)
            bands.append((freq, 0.5 if value is None else float(value)))
        return bands

    @classmethod
    def from_config(cls, cfg: Mapping[str, object]) -> "EffectsConfig":
        """Build a config from a plain dict (snake_case or camelCase keys)."""
        known = {f.name: f for f in fields(cls)}
        kwargs: Dict[str, object] = {}
        for raw_key, value in cfg.items():
            key = _snake_case(str(raw_key))
            if key in IGNORED_EFFECT_KEYS:
                continue
            if key not in known:
                logger.warning("Ignoring unknown effects option %r", raw_key)
                continue
            if value is None:
                continue
            kwargs[key] = _coerce(key, value)
        return cls(**kwargs)  # type: ignore[arg-type]


_BOOL_FIELDS = {"limiter", "attenuator", "audio_processing_enabled"}


def _coerce(key: str, value: object) -> object:
    if key in _BOOL_FIELDS:
        if isinstance(value, str):
            return value.strip().lower() in {"1", "true", "yes", "on"}
        return bool(value)
    if key == "reverb_method":
        method = str(value).lower()
        if method not in {"direct", "fft"}:
            raise ValueError(f"reverb_method must be 'direct' or 'fft', got {value!r}")
        return method
    if key == "reverb_seed":
        try:
            return int(value)  # type: ignore[call-overload]
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Option {key!r} expects an integer, got {value!r}") from exc
    if isinstance(value, bool):
        raise ValueError(f"Option {key!r} expects a number, got {value!r}")
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Option {key!r} expects a number, got {value!r}") from exc


@dataclass
class AnalysisSummary:
    """Read-only levels summary of a buffer.

    Attributes:
        peak_levels: Max absolute sample per channel.
        rms_levels: sqrt(mean(x^2)) per channel.
        sample_rate: Sample rate in Hz.
        channel_count: Number of channels.
        duration: Seconds.
        samples_per_channel: Frames per channel (0 for an empty buffer).
        integrated_loudness: LUFS of the channel mean, or None when it cannot be measured.
    """

    peak_levels: List[float]
    rms_levels: List[float]
    sample_rate: int
    channel_count: int
    duration: float
    samples_per_channel: int
    integrated_loudness: Optional[float] = None

    def to_dict(self) -> Dict[str, object]:
        return {
            "peak_levels": list(self.peak_levels),
            "rms_levels": list(self.rms_levels),
            "sample_rate": self.sample_rate,
            "channels": self.channel_count,
            "duration": self.duration,
            "samples_per_channel": self.samples_per_channel,
            "integrated_loudness": self.integrated_loudness,
        }


@dataclass
class BufferInfo:
    """Size and shape facts about a buffer."""

    duration: float
    sample_rate: int
    channel_count: int
    length: int
    size_in_bytes: int
