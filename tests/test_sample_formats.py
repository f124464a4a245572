from __future__ import annotations

import numpy as np
import pytest

from audio_studio.sample_formats import get_sample_format, normalize_samples


def test_unsigned_formats_subtract_midpoint():
    out = normalize_samples(np.array([0, 128, 255], dtype=np.uint8), "u8")
    np.testing.assert_allclose(out, [-1.0, 0.0, 127 / 128], atol=1e-7)
    assert out.dtype == np.float32

    out16 = normalize_samples(np.array([0, 32768], dtype=np.uint16), "u16")
    np.testing.assert_allclose(out16, [-1.0, 0.0])


def test_signed_formats_divide_by_scale():
    np.testing.assert_allclose(normalize_samples(np.array([-128, 64], dtype=np.int8), "s8"), [-1.0, 0.5])
    np.testing.assert_allclose(
        normalize_samples(np.array([-(2**31), 2**30], dtype=np.int32), "s32"), [-1.0, 0.5]
    )


def test_float_formats_pass_through():
    x = np.array([0.25, -0.75, 1.5])
    np.testing.assert_allclose(normalize_samples(x, "dbl"), x)
    np.testing.assert_allclose(normalize_samples(x.astype(np.float32), "flt"), x)


def test_planar_names_map_to_base_format():
    assert get_sample_format("fltp") is get_sample_format("flt")
    assert get_sample_format("s16p").scale == 32768.0


def test_unknown_format_raises():
    with pytest.raises(KeyError):
        get_sample_format("s24")
