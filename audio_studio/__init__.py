"""Audio studio core: decode, process and re-encode audio.

This package groups together:
- I/O utilities (decode any supported file, write float WAV)
- DSP utilities (gain, tempo, bass shelf, EQ, limiter, attenuator, reverb)
- The effects pipeline that chains them in a fixed order
- Analysis (peak, RMS, loudness) and buffer editing helpers

Data flows one way: file -> load_audio -> AudioBuffer -> process_audio ->
AudioBuffer -> save_audio -> file.
"""

from .analysis import analyze
from .errors import (
    AudioIOError,
    AudioStudioError,
    ConfigError,
    DecodeError,
    EncodeError,
    ProcessingError,
    UnsupportedFormatError,
    UnsupportedStreamChangeError,
)
from .io_utils import deinterleave, interleave, load_audio, save_audio
from .pipeline import process_audio
from .types import AnalysisSummary, AudioBuffer, EffectsConfig

__all__ = [
    "AnalysisSummary",
    "AudioBuffer",
    "AudioIOError",
    "AudioStudioError",
    "ConfigError",
    "DecodeError",
    "EffectsConfig",
    "EncodeError",
    "ProcessingError",
    "UnsupportedFormatError",
    "UnsupportedStreamChangeError",
    "analyze",
    "deinterleave",
    "interleave",
    "load_audio",
    "process_audio",
    "save_audio",
]

__version__ = "0.1.0"
