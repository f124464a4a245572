"""DSP utilities: gain, tempo, bass shelf, peaking EQ, limiter, attenuator, reverb.

Every function here works on a single mono channel (a 1-D float array) and
returns a new float32 array; the pipeline runs them per channel. The IIR
stages are evaluated with ``scipy.signal.lfilter``; the limiter's envelope
follower switches coefficients per sample and so runs as a plain loop.

Cost: the limiter loop is O(n) but interpreted, several seconds for a
few minutes of stereo, and the direct reverb is O(n * m). Those two
dominate when enabled.
"""
from __future__ import annotations

from typing import Iterable, Optional, Tuple

import numpy as np
from scipy.signal import convolve, lfilter

BASS_CUTOFF_HZ = 200.0
EQ_Q = 0.7
EQ_RANGE_DB = 40.0
EQ_MIN_GAIN_DB = 0.1
LIMITER_RATIO = 20.0
LIMITER_ATTACK_S = 0.001
DEFAULT_LIMITER_THRESHOLD_DB = -1.0
DEFAULT_LIMITER_RELEASE_S = 0.1
DEFAULT_ATTENUATOR_GAIN_DB = 10.0
REVERB_SECONDS = 2.0
REVERB_DECAY = 3.0


def db_to_linear(gain_db: float) -> float:
    return float(10.0 ** (gain_db / 20.0))


def _as_float(x: np.ndarray) -> np.ndarray:
    return np.asarray(x, dtype=np.float64)


# ================================
# Gain
# ================================

def apply_volume(x: np.ndarray, volume: float) -> np.ndarray:
    """Multiply every sample by ``volume``. No clamping."""
    return (np.asarray(x, dtype=np.float32) * np.float32(volume)).astype(np.float32, copy=False)


def attenuate(x: np.ndarray, gain_db: float = DEFAULT_ATTENUATOR_GAIN_DB) -> np.ndarray:
    """Flat gain from dB, then clamp to [-1, 1]."""
    y = _as_float(x) * db_to_linear(gain_db)
    return np.clip(y, -1.0, 1.0).astype(np.float32)


# ================================
# Tempo (pitch-coupled resampling)
# ================================

def change_tempo(x: np.ndarray, tempo: float) -> np.ndarray:
    """Time-scale a channel by linear-interpolated resampling.

    The output has ``floor(len(x) / tempo)`` samples; output ``i`` reads the
    source at ``i * tempo``. Pitch moves with duration: ``tempo > 1`` is
    shorter and higher, ``tempo < 1`` longer and lower.
    """
    if tempo <= 0.0 or not np.isfinite(tempo):
        raise ValueError(f"Tempo must be a positive number, got {tempo}")
    src = _as_float(x)
    n = src.shape[-1]
    if n == 0:
        raise ValueError("Cannot change tempo of an empty channel")
    new_length = int(np.floor(n / tempo))
    if new_length == 0:
        return np.zeros(0, dtype=np.float32)

    pos = np.arange(new_length, dtype=np.float64) * tempo
    lo = np.floor(pos).astype(np.int64)
    frac = pos - lo
    lo = np.minimum(lo, n - 1)
    hi = np.minimum(lo + 1, n - 1)
    y = src[lo] * (1.0 - frac) + src[hi] * frac
    return y.astype(np.float32)


# ================================
# Bass boost (one-pole low shelf)
# ================================

def bass_boost(x: np.ndarray, sr: int, boost: float, cutoff_hz: float = BASS_CUTOFF_HZ) -> np.ndarray:
    """Split at ``cutoff_hz`` with a one-pole low-pass, lift the lows by ``boost * 20`` dB.

    ``y[n] = alpha * x[n] + (1 - alpha) * y[n-1]`` with ``alpha = w / (1 + w)``,
    ``w = 2*pi*cutoff/sr``. Output is ``gain * low + (x - low)``, clamped.
    """
    if sr <= 0:
        raise ValueError(f"Invalid sample rate: {sr}")
    src = _as_float(x)
    omega = 2.0 * np.pi * cutoff_hz / sr
    alpha = omega / (1.0 + omega)
    low = lfilter([alpha], [1.0, -(1.0 - alpha)], src)
    gain = db_to_linear(boost * 20.0)
    y = low * gain + (src - low)
    return np.clip(y, -1.0, 1.0).astype(np.float32)


# ================================
# Peaking EQ
# ================================

def eq_gain_db(normalized: float) -> float:
    """Map a 0..1 band setting to -20..+20 dB (0.5 is 0 dB)."""
    return (float(normalized) - 0.5) * EQ_RANGE_DB


def peaking_coefficients(sr: int, center_hz: float, gain_db: float, q: float = EQ_Q) -> Tuple[np.ndarray, np.ndarray]:
    """Peaking-EQ biquad coefficients ``(b, a)``, normalized so ``a[0] == 1``."""
    A = np.sqrt(db_to_linear(gain_db))
    omega = 2.0 * np.pi * center_hz / sr
    alpha = np.sin(omega) / (2.0 * q)
    cos_w = np.cos(omega)
    b = np.array([1.0 + alpha * A, -2.0 * cos_w, 1.0 - alpha * A])
    a = np.array([1.0 + alpha / A, -2.0 * cos_w, 1.0 - alpha / A])
    return b / a[0], a / a[0]


def peaking_filter(x: np.ndarray, sr: int, center_hz: float, gain_db: float, q: float = EQ_Q) -> np.ndarray:
    """One biquad band, clamped to [-1, 1]."""
    b, a = peaking_coefficients(sr, center_hz, gain_db, q)
    y = lfilter(b, a, _as_float(x))
    return np.clip(y, -1.0, 1.0)


def equalize(x: np.ndarray, sr: int, bands: Iterable[Tuple[float, float]]) -> np.ndarray:
    """Run a serial cascade of peaking bands over a channel.

    Parameters
    ----------
    x : np.ndarray
        Mono signal.
    sr : int
        Sample rate.
    bands : Iterable[Tuple[float, float]]
        ``(center_hz, normalized_gain)`` pairs in cascade order. Bands within
        0.1 dB of unity, or centered at or above Nyquist, are skipped; each
        applied band feeds the next.
    """
    if sr <= 0:
        raise ValueError(f"Invalid sample rate: {sr}")
    nyquist = sr / 2.0
    y = _as_float(x)
    for center_hz, normalized in bands:
        gain_db = eq_gain_db(normalized)
        if abs(gain_db) < EQ_MIN_GAIN_DB:
            continue
        # The biquad is unstable once omega reaches pi.
        if center_hz >= nyquist:
            continue
        y = peaking_filter(y, sr, center_hz, gain_db)
    return y.astype(np.float32)


# ================================
# Limiter
# ================================

def limiter(
    x: np.ndarray,
    sr: int,
    threshold_db: float = DEFAULT_LIMITER_THRESHOLD_DB,
    release_s: float = DEFAULT_LIMITER_RELEASE_S,
    attack_s: float = LIMITER_ATTACK_S,
    ratio: float = LIMITER_RATIO,
) -> np.ndarray:
    """Envelope-following limiter with a hard ceiling at the threshold.

    The envelope rises with the attack coefficient and falls with the release
    coefficient, each ``exp(-1 / (time * sr))``. Above threshold the sample is
    scaled by ``(env / thr) ** (1 / ratio - 1)``, then clamped to ``+-thr``
    (never beyond full scale).
    """
    if sr <= 0:
        raise ValueError(f"Invalid sample rate: {sr}")
    if release_s <= 0.0 or attack_s <= 0.0:
        raise ValueError("Limiter attack and release times must be positive")
    thr = db_to_linear(threshold_db)
    attack_coeff = float(np.exp(-1.0 / (attack_s * sr)))
    release_coeff = float(np.exp(-1.0 / (release_s * sr)))
    exponent = 1.0 / ratio - 1.0
    ceiling = min(thr, 1.0)

    samples = _as_float(x).tolist()
    out = np.empty(len(samples), dtype=np.float64)
    env = 0.0
    for i, s in enumerate(samples):
        level = abs(s)
        if level > env:
            env = attack_coeff * env + (1.0 - attack_coeff) * level
        else:
            env = release_coeff * env + (1.0 - release_coeff) * level
        if env > thr:
            s *= (env / thr) ** exponent
        out[i] = min(max(s, -ceiling), ceiling)
    return out.astype(np.float32)


# ================================
# Convolution reverb
# ================================

def impulse_response(sr: int, seconds: float = REVERB_SECONDS, seed: Optional[int] = None) -> np.ndarray:
    """Exponentially decaying white noise: ``exp(-3 i / N) * U(-1, 1)``."""
    if sr <= 0:
        raise ValueError(f"Invalid sample rate: {sr}")
    length = int(sr * seconds)
    rng = np.random.default_rng(seed)
    decay = np.exp(-REVERB_DECAY * np.arange(length, dtype=np.float64) / max(length, 1))
    return rng.uniform(-1.0, 1.0, size=length) * decay


def reverb(x: np.ndarray, impulse: np.ndarray, amount: float, method: str = "direct") -> np.ndarray:
    """Convolve with ``impulse`` and mix wet/dry by ``amount``.

    The wet path is the convolution scaled by ``amount`` and the mix is
    ``dry * (1 - amount) + wet * amount``; the tail past ``len(x)`` is dropped.
    ``method="direct"`` costs O(len(x) * len(impulse)); ``"fft"`` gives the
    same result through the frequency domain.
    """
    if method not in ("direct", "fft"):
        raise ValueError(f"Unknown convolution method: {method}")
    dry = _as_float(x)
    n = dry.shape[-1]
    if n == 0:
        raise ValueError("Cannot apply reverb to an empty channel")
    wet = convolve(dry, _as_float(impulse), mode="full", method=method)[:n] * amount
    y = dry * (1.0 - amount) + wet * amount
    return y.astype(np.float32)
