"""Audio I/O utilities.

- Loading audio into an `AudioBuffer` (WAV via soundfile, compressed formats via PyAV)
- Saving an `AudioBuffer` as 32-bit float WAV
- Interleave / deinterleave helpers shared by both directions

Notes
-----
- WAV is read and written directly. MP3, M4A, AAC, Ogg and FLAC are probed and
  decoded packet by packet; whatever sample representation the codec emits is
  normalized through `sample_formats`.
- Output is always WAV, float32 samples, at the buffer's own sample rate.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import BinaryIO, List, Optional, Sequence, Union

import av
import numpy as np
import soundfile as sf

from .errors import (
    AudioIOError,
    DecodeError,
    EncodeError,
    UnsupportedFormatError,
    UnsupportedStreamChangeError,
)
from .sample_formats import normalize_samples
from .types import AudioBuffer

logger = logging.getLogger(__name__)

WAV_EXTS = {".wav"}
COMPRESSED_EXTS = {".mp3", ".m4a", ".aac", ".ogg", ".flac"}
SUPPORTED_EXTS = WAV_EXTS | COMPRESSED_EXTS
OUTPUT_DIR = Path("output_audio")

PathLike = Union[str, Path]

# soundfile subtype -> (dtype to read raw frames as, sample format name).
# libsndfile widens 8-bit data to 16 bits and 24-bit data to 32 bits on read.
_WAV_SUBTYPES = {
    "PCM_S8": ("int16", "s16"),
    "PCM_U8": ("int16", "s16"),
    "PCM_16": ("int16", "s16"),
    "PCM_24": ("int32", "s32"),
    "PCM_32": ("int32", "s32"),
    "FLOAT": ("float32", "flt"),
    "DOUBLE": ("float64", "dbl"),
}


# ================================
# Interleaving
# ================================

def deinterleave(interleaved: Sequence[float], num_channels: int) -> List[np.ndarray]:
    """Split a frame-major sample sequence into one array per channel.

    Sample ``i`` goes to channel ``i % num_channels``. Zero channels yields ``[]``.
    """
    if num_channels <= 0:
        return []
    data = np.asarray(interleaved, dtype=np.float32).reshape(-1)
    return [data[ch::num_channels].copy() for ch in range(num_channels)]


def interleave(channels: Sequence[np.ndarray]) -> np.ndarray:
    """Merge per-channel arrays into one frame-major array.

    Frames past the end of the shortest channel are dropped.
    """
    if len(channels) == 0:
        return np.zeros(0, dtype=np.float32)
    frames = min(len(ch) for ch in channels)
    stacked = np.stack([np.asarray(ch, dtype=np.float32)[:frames] for ch in channels], axis=1)
    return stacked.reshape(-1)


# ================================
# Loading
# ================================

def load_audio(file_path: PathLike) -> AudioBuffer:
    """Load an audio file into a normalized `AudioBuffer`.

    Strategy
    --------
    - ``.wav`` goes through soundfile and is read frame by frame.
    - Compressed formats are probed and decoded with PyAV.

    Raises
    ------
    UnsupportedFormatError
        The extension is not one we decode.
    AudioIOError
        The file cannot be opened or read.
    DecodeError
        The container or codec cannot be decoded, or it holds no audio.
    UnsupportedStreamChangeError
        The stream changes sample rate or channel count part way through.
    """
    path = Path(file_path)
    ext = path.suffix.lower()
    if ext not in SUPPORTED_EXTS:
        raise UnsupportedFormatError(f"Unsupported audio format: {ext or path.name}")

    try:
        fh = open(path, "rb")
    except OSError as e:
        raise AudioIOError(f"Cannot open {path}: {e}") from e

    with fh:
        if ext in WAV_EXTS:
            logger.debug("Loading %s via soundfile", path)
            buffer = _load_wav(fh, path)
        else:
            logger.debug("Loading %s via PyAV", path)
            buffer = _load_compressed(fh, path)

    try:
        buffer.validate()
    except ValueError as e:
        raise DecodeError(f"{path.name}: {e}") from e
    logger.debug(
        "Loaded %s: %d ch, %d Hz, %.3f s",
        path.name,
        buffer.num_channels,
        buffer.sample_rate,
        buffer.duration,
    )
    return buffer


def _load_wav(fh: BinaryIO, path: Path) -> AudioBuffer:
    try:
        with sf.SoundFile(fh) as snd:
            dtype, fmt_name = _WAV_SUBTYPES.get(snd.subtype, ("float32", "flt"))
            frames = snd.read(dtype=dtype, always_2d=True)
            sample_rate = int(snd.samplerate)
            num_channels = int(snd.channels)
    except sf.SoundFileError as e:
        raise DecodeError(f"Failed to read WAV {path.name}: {e}") from e
    except OSError as e:
        raise AudioIOError(f"Failed to read {path.name}: {e}") from e

    # soundfile returns (frames, channels); flatten to frame-major order.
    samples = normalize_samples(frames.reshape(-1), fmt_name)
    return AudioBuffer(channels=deinterleave(samples, num_channels), sample_rate=sample_rate)


def _select_audio_stream(container: "av.container.InputContainer") -> "av.audio.stream.AudioStream":
    for stream in container.streams.audio:
        if stream.codec_context is not None:
            return stream
    raise DecodeError("No supported audio tracks found")


def _frame_to_interleaved(frame: "av.AudioFrame") -> np.ndarray:
    raw = frame.to_ndarray()
    if frame.format.is_planar:
        # (channels, samples) -> (samples, channels)
        raw = raw.T
    return normalize_samples(raw.reshape(-1), frame.format.name)


def _load_compressed(fh: BinaryIO, path: Path) -> AudioBuffer:
    try:
        container = av.open(fh, mode="r")
    except OSError as e:
        raise AudioIOError(f"Failed to read {path.name}: {e}") from e
    except av.error.FFmpegError as e:
        raise DecodeError(f"Unable to probe {path.name}: {e}") from e

    sample_rate: Optional[int] = None
    num_channels: Optional[int] = None
    chunks: List[np.ndarray] = []

    with container:
        stream = _select_audio_stream(container)
        try:
            for packet in container.demux(stream):
                for frame in packet.decode():
                    rate = int(frame.sample_rate)
                    count = len(frame.layout.channels)
                    if sample_rate is None:
                        sample_rate, num_channels = rate, count
                    elif (rate, count) != (sample_rate, num_channels):
                        raise UnsupportedStreamChangeError(
                            f"{path.name}: stream changed from {num_channels} ch @ {sample_rate} Hz "
                            f"to {count} ch @ {rate} Hz mid-file"
                        )
                    chunks.append(_frame_to_interleaved(frame))
        except av.error.EOFError:
            logger.debug("End of stream reached in %s", path.name)
        except OSError as e:
            raise AudioIOError(f"Failed to read {path.name}: {e}") from e
        except av.error.FFmpegError as e:
            raise DecodeError(f"Failed to decode {path.name}: {e}") from e
        except KeyError as e:
            raise DecodeError(f"{path.name}: {e}") from e

    if sample_rate is None or num_channels is None or not chunks:
        raise DecodeError(f"No audio decoded from {path.name}")

    interleaved = np.concatenate(chunks)
    logger.debug("Decoded %d frames from %s", len(chunks), path.name)
    return AudioBuffer(channels=deinterleave(interleaved, num_channels), sample_rate=sample_rate)


# ================================
# Saving
# ================================

def build_output_path(original: PathLike, output_dir: PathLike = OUTPUT_DIR) -> Path:
    """Compute the processed output path, always a WAV file."""
    stem_name = Path(original).stem
    return Path(output_dir) / f"{stem_name}_processed.wav"


def save_audio(buffer: AudioBuffer, file_path: PathLike) -> None:
    """Write a buffer as 32-bit float WAV.

    Channels of unequal length are truncated to the shortest one. The
    destination directory must already exist.

    Raises
    ------
    EncodeError
        The buffer has nothing to write, or the file cannot be created or written.
    """
    path = Path(file_path)
    if not buffer.channels:
        raise EncodeError("Cannot write a buffer with no channels")
    if buffer.sample_rate <= 0:
        raise EncodeError(f"Invalid sample rate: {buffer.sample_rate}")

    lengths = [len(ch) for ch in buffer.channels]
    if len(set(lengths)) > 1:
        logger.warning("Channel lengths differ %s; truncating to %d frames", lengths, min(lengths))
    if min(lengths) == 0:
        raise EncodeError("Cannot write a buffer with no samples")

    # soundfile expects shape (frames, channels)
    data = interleave(buffer.channels).reshape(-1, buffer.num_channels)
    try:
        with open(path, "wb") as fh:
            sf.write(fh, data, int(buffer.sample_rate), format="WAV", subtype="FLOAT")
    except OSError as e:
        raise EncodeError(f"Failed to write {path}: {e}") from e
    except sf.SoundFileError as e:
        raise EncodeError(f"Failed to encode {path}: {e}") from e
    logger.debug("Wrote %s (%d frames, %d ch)", path, data.shape[0], buffer.num_channels)
