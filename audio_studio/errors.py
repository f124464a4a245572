"""Exception types raised by the audio studio core.

Every failure is terminal for the call that raised it; nothing here is
retried. The command layer turns these into user-facing messages.
"""
from __future__ import annotations


class AudioStudioError(RuntimeError):
    """Base class for all core failures."""


class UnsupportedFormatError(AudioStudioError):
    """File extension is not handled by either decode path."""


class DecodeError(AudioStudioError):
    """Probing, codec setup or packet decoding failed, or no audio stream exists."""


class AudioIOError(AudioStudioError):
    """Underlying file open/read failure (a clean end of stream is not one)."""


class UnsupportedStreamChangeError(AudioStudioError):
    """The stream changed sample rate or channel layout part way through."""


class EncodeError(AudioStudioError):
    """Output container could not be created, written or finalized."""


class ProcessingError(AudioStudioError):
    """An effects stage could not run on the given buffer."""


class ConfigError(AudioStudioError):
    """Effects configuration file is unreadable or malformed."""
