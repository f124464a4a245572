"""Raw sample representations and their conversion to normalized float.

Decoders hand back samples as unsigned or signed integers of various widths,
or as float. Each representation is described once here by its zero point
(``midpoint``) and full-scale magnitude (``scale``), and converted with::

    (raw - midpoint) / scale

Signed integers use ``scale = 2 ** (bits - 1)`` on both decode paths, so
negative full scale maps exactly to -1.0 and positive full scale lands one
step short of +1.0.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

import numpy as np


@dataclass(frozen=True)
class SampleFormat:
    """One raw sample representation.

    Attributes:
        name: Short name ("u8", "s16", "flt", ...), matching FFmpeg's naming.
        midpoint: Raw value that represents silence (non-zero only for unsigned types).
        scale: Raw magnitude that represents full scale.
    """

    name: str
    midpoint: float
    scale: float

    def normalize(self, raw: np.ndarray) -> np.ndarray:
        """Convert raw samples of this representation to float32."""
        data = np.asarray(raw, dtype=np.float64)
        if self.midpoint:
            data = data - self.midpoint
        if self.scale != 1.0:
            data = data / self.scale
        return data.astype(np.float32, copy=False)


SAMPLE_FORMATS: Dict[str, SampleFormat] = {
    "u8": SampleFormat("u8", 128.0, 128.0),
    "u16": SampleFormat("u16", 32768.0, 32768.0),
    "u32": SampleFormat("u32", 2147483648.0, 2147483648.0),
    "s8": SampleFormat("s8", 0.0, 128.0),
    "s16": SampleFormat("s16", 0.0, 32768.0),
    "s32": SampleFormat("s32", 0.0, 2147483648.0),
    "s64": SampleFormat("s64", 0.0, 9223372036854775808.0),
    "flt": SampleFormat("flt", 0.0, 1.0),
    "dbl": SampleFormat("dbl", 0.0, 1.0),
}


def get_sample_format(name: str) -> SampleFormat:
    """Look up a representation by name; planar names ("fltp", "s16p") map to their base."""
    key = name[:-1] if name.endswith("p") and name[:-1] in SAMPLE_FORMATS else name
    try:
        return SAMPLE_FORMATS[key]
    except KeyError:
        raise KeyError(f"Unknown sample format: {name}") from None


def normalize_samples(raw: np.ndarray, name: str) -> np.ndarray:
    return get_sample_format(name).normalize(raw)
