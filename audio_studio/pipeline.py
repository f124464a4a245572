"""Effects pipeline: apply an `EffectsConfig` to an `AudioBuffer`.

Stages always run in this order, each skipped when its gate is closed:

1. volume      always
2. tempo       ``|tempo - 1| > 0.001``
3. bass boost  ``bass_boost > 0.001``
4. equalizer   any EQ band set
5. limiter     ``limiter`` and processing not disabled
6. attenuator  ``attenuator`` and processing not disabled
7. reverb      ``reverb > 0.001``

The caller's buffer is never modified. A failing stage aborts the whole call.
"""
from __future__ import annotations

import logging
from typing import Callable, List, Tuple

import numpy as np

from . import dsp
from .errors import ProcessingError
from .types import AudioBuffer, EffectsConfig

logger = logging.getLogger(__name__)

GATE_EPSILON = 0.001


def _map_channels(buffer: AudioBuffer, fn: Callable[[np.ndarray], np.ndarray]) -> AudioBuffer:
    return AudioBuffer(channels=[fn(ch) for ch in buffer.channels], sample_rate=buffer.sample_rate)


def _stage_volume(buffer: AudioBuffer, config: EffectsConfig) -> AudioBuffer:
    return _map_channels(buffer, lambda ch: dsp.apply_volume(ch, config.volume))


def _stage_tempo(buffer: AudioBuffer, config: EffectsConfig) -> AudioBuffer:
    return _map_channels(buffer, lambda ch: dsp.change_tempo(ch, config.tempo))


def _stage_bass_boost(buffer: AudioBuffer, config: EffectsConfig) -> AudioBuffer:
    sr = buffer.sample_rate
    return _map_channels(buffer, lambda ch: dsp.bass_boost(ch, sr, config.bass_boost))


def _stage_equalizer(buffer: AudioBuffer, config: EffectsConfig) -> AudioBuffer:
    sr = buffer.sample_rate
    bands = config.eq_bands()
    return _map_channels(buffer, lambda ch: dsp.equalize(ch, sr, bands))


def _stage_limiter(buffer: AudioBuffer, config: EffectsConfig) -> AudioBuffer:
    sr = buffer.sample_rate
    threshold = dsp.DEFAULT_LIMITER_THRESHOLD_DB if config.limiter_threshold is None else config.limiter_threshold
    release = dsp.DEFAULT_LIMITER_RELEASE_S if config.limiter_release is None else config.limiter_release
    return _map_channels(buffer, lambda ch: dsp.limiter(ch, sr, threshold_db=threshold, release_s=release))


def _stage_attenuator(buffer: AudioBuffer, config: EffectsConfig) -> AudioBuffer:
    gain = dsp.DEFAULT_ATTENUATOR_GAIN_DB if config.attenuator_gain is None else config.attenuator_gain
    return _map_channels(buffer, lambda ch: dsp.attenuate(ch, gain))


def _stage_reverb(buffer: AudioBuffer, config: EffectsConfig) -> AudioBuffer:
    # One impulse per call, shared by every channel.
    impulse = dsp.impulse_response(buffer.sample_rate, seed=config.reverb_seed)
    return _map_channels(
        buffer, lambda ch: dsp.reverb(ch, impulse, config.reverb, method=config.reverb_method)
    )


Stage = Callable[[AudioBuffer, EffectsConfig], AudioBuffer]


def plan_stages(config: EffectsConfig) -> List[Tuple[str, Stage]]:
    """Return ``(name, stage)`` pairs that will run for ``config``, in order."""
    stages: List[Tuple[str, Stage]] = [("volume", _stage_volume)]
    if abs(config.tempo - 1.0) > GATE_EPSILON:
        stages.append(("tempo", _stage_tempo))
    if config.bass_boost > GATE_EPSILON:
        stages.append(("bass_boost", _stage_bass_boost))
    if config.has_eq:
        stages.append(("equalizer", _stage_equalizer))
    if config.limiter_active:
        stages.append(("limiter", _stage_limiter))
    if config.attenuator_active:
        stages.append(("attenuator", _stage_attenuator))
    if config.reverb > GATE_EPSILON:
        stages.append(("reverb", _stage_reverb))
    return stages


def process_audio(buffer: AudioBuffer, config: EffectsConfig) -> AudioBuffer:
    """Run the effects chain and return a new buffer.

    Raises
    ------
    ProcessingError
        The input buffer is malformed or a stage cannot run on it.
    """
    try:
        buffer.validate()
    except ValueError as e:
        raise ProcessingError(f"Invalid audio buffer: {e}") from e

    out = buffer
    for name, stage in plan_stages(config):
        logger.debug("Applying %s", name)
        try:
            out = stage(out, config)
        except ValueError as e:
            raise ProcessingError(f"{name} failed: {e}") from e
    if out.samples_per_channel == 0:
        raise ProcessingError("Processing produced an empty buffer")
    logger.debug(
        "Processed %d ch: %d -> %d samples",
        out.num_channels,
        buffer.samples_per_channel,
        out.samples_per_channel,
    )
    return out
