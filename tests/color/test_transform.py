import math

import numpy as np
import pytest

from cvd_sim.color import (
    linear_to_srgb,
    linear_to_srgb8,
    simulate,
    srgb8_to_linear,
    srgb_to_linear,
    transform_buffer,
    transform_pixel,
)

PROTAN_FULL = np.array([[0.152, 1.053, -0.205], [0.115, 0.786, 0.099], [-0.004, 0.048, 0.956]])


def _reference_pixel(r, g, b, m):
    def decode(c):
        c = c / 255
        return c / 12.92 if c <= 0.04045 else ((c + 0.055) / 1.055) ** 2.4

    def encode(c):
        return 12.92 * c if c <= 0.0031308 else 1.055 * c ** (1 / 2.4) - 0.055

    lin = [decode(r), decode(g), decode(b)]
    out = []
    for row in m:
        v = encode(row[0] * lin[0] + row[1] * lin[1] + row[2] * lin[2])
        out.append(math.floor(min(1.0, max(0.0, v)) * 255 + 0.5))
    return tuple(out)


def _random_rgba(shape=(16, 12), seed=1234):
    rng = np.random.default_rng(seed)
    return rng.integers(0, 256, size=(*shape, 4), dtype=np.uint8)


def test_transfer_curve_thresholds():
    assert srgb_to_linear(0.04045) == pytest.approx(0.04045 / 12.92)
    assert srgb_to_linear(1.0) == pytest.approx(1.0)
    assert linear_to_srgb(0.0031308) == pytest.approx(12.92 * 0.0031308)
    assert linear_to_srgb(1.0) == pytest.approx(1.0)
    assert srgb8_to_linear(np.array([128]))[0] == pytest.approx(0.2158605, abs=1e-6)


def test_negative_linear_clamps_to_zero():
    out = linear_to_srgb8(np.array([-0.5, -1e-9, 0.0, 2.0]))
    assert out.tolist() == [0, 0, 0, 255]


def test_8bit_roundtrip_exact():
    values = np.arange(256, dtype=np.uint8)
    np.testing.assert_array_equal(linear_to_srgb8(srgb8_to_linear(values)), values)


def test_identity_matrix_roundtrip():
    src = _random_rgba()
    dst = np.zeros_like(src)
    transform_buffer(src, dst, np.eye(3))
    diff = np.abs(dst[..., :3].astype(int) - src[..., :3].astype(int))
    assert diff.max() <= 1
    np.testing.assert_array_equal(dst[..., 3], src[..., 3])


@pytest.mark.parametrize(
    "rgb",
    [(255, 255, 255), (0, 0, 0), (255, 0, 0), (12, 200, 99), (10, 10, 10), (128, 64, 250)],
)
def test_pixel_matches_reference(rgb):
    assert transform_pixel(*rgb, PROTAN_FULL) == _reference_pixel(*rgb, PROTAN_FULL)


def test_white_pixel_full_protan():
    src = np.array([[[255, 255, 255, 255]]], dtype=np.uint8)
    dst = simulate(src, PROTAN_FULL)
    assert dst.shape == (1, 1, 4)
    assert dst.dtype == np.uint8
    assert dst[0, 0, 3] == 255
    assert all(0 <= int(c) <= 255 for c in dst[0, 0, :3])


def test_alpha_passes_through():
    src = _random_rgba()
    src[..., 3] = np.arange(src.shape[1], dtype=np.uint8)
    dst = simulate(src, PROTAN_FULL)
    np.testing.assert_array_equal(dst[..., 3], src[..., 3])


def test_transform_is_deterministic():
    src = _random_rgba()
    a = simulate(src, PROTAN_FULL)
    b = simulate(src, PROTAN_FULL)
    np.testing.assert_array_equal(a, b)


def test_pixel_order_does_not_matter():
    src = _random_rgba((10, 10))
    expected = simulate(src, PROTAN_FULL)
    flat = src.reshape(-1, 4)
    perm = np.random.default_rng(7).permutation(flat.shape[0])
    shuffled = flat[perm].reshape(1, -1, 4)
    out = simulate(shuffled, PROTAN_FULL).reshape(-1, 4)
    restored = np.empty_like(out)
    restored[perm] = out
    np.testing.assert_array_equal(restored.reshape(src.shape), expected)


@pytest.mark.parametrize("workers", [2, 3, 8, 64])
def test_threaded_bands_match_single_thread(workers):
    src = _random_rgba((37, 9))
    expected = simulate(src, PROTAN_FULL)
    out = simulate(src, PROTAN_FULL, workers=workers)
    np.testing.assert_array_equal(out, expected)


def test_in_place_transform():
    src = _random_rgba()
    expected = simulate(src, PROTAN_FULL)
    buf = src.copy()
    transform_buffer(buf, buf, PROTAN_FULL, workers=4)
    np.testing.assert_array_equal(buf, expected)


@pytest.mark.parametrize("shape", [(0, 5, 4), (5, 0, 4), (0, 0, 4)])
def test_empty_buffer_is_noop(shape):
    src = np.zeros(shape, dtype=np.uint8)
    dst = np.zeros(shape, dtype=np.uint8)
    assert transform_buffer(src, dst, PROTAN_FULL) is dst
    assert dst.shape == shape


def test_shape_mismatch_rejected():
    with pytest.raises(ValueError, match="shape"):
        transform_buffer(_random_rgba((4, 4)), np.zeros((4, 5, 4), dtype=np.uint8), PROTAN_FULL)


def test_rgb_buffer_rejected():
    src = np.zeros((4, 4, 3), dtype=np.uint8)
    with pytest.raises(ValueError, match="RGBA"):
        transform_buffer(src, src.copy(), PROTAN_FULL)


def test_float_buffer_rejected():
    src = np.zeros((2, 2, 4), dtype=np.float32)
    with pytest.raises(ValueError, match="uint8"):
        transform_buffer(src, src.copy(), PROTAN_FULL)


def test_bad_matrix_rejected():
    src = _random_rgba((2, 2))
    with pytest.raises(ValueError, match="3x3"):
        transform_buffer(src, src.copy(), np.eye(4))
