# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
Phase 5 — Histogram-preserving rank permuter tests.
The key property is that the output is a pure rearrangement of the
input's RGB triples; the rest pins down ordering and tie behaviour.
"""

import numpy as np
import pytest


# ─── Helpers ─────────────────────────────────────────────────────────────────

def _rgba_from_rgb(rgb: list, h: int, w: int) -> np.ndarray:
    img = np.zeros((h, w, 4), dtype=np.uint8)
    img[..., :3] = np.asarray(rgb, dtype=np.uint8).reshape(h, w, 3)
    img[..., 3] = 255
    return img


def _random_rgba(h: int, w: int, seed: int = 0) -> np.ndarray:
    rng = np.random.default_rng(seed)
    img = rng.integers(0, 256, size=(h, w, 4), dtype=np.uint8)
    return img


def _sorted_triples(img: np.ndarray) -> np.ndarray:
    flat = img[..., :3].reshape(-1, 3)
    return flat[np.lexsort(flat.T[::-1])]


# ─── HSV ─────────────────────────────────────────────────────────────────────

@pytest.mark.parametrize(
    "rgb, hue",
    [
        ((255, 0, 0), 0.0),
        ((255, 255, 0), 1 / 6),
        ((0, 255, 0), 2 / 6),
        ((0, 255, 255), 3 / 6),
        ((0, 0, 255), 4 / 6),
        ((255, 0, 255), 5 / 6),
    ],
)
def test_hsv_hue_of_primaries(rgb, hue):
    from pixelrank.modules.remapping.rank_permuter import hsv_components

    h, s, v = hsv_components(_rgba_from_rgb([rgb], 1, 1))
    assert h[0, 0] == pytest.approx(hue)
    assert s[0, 0] == pytest.approx(1.0)
    assert v[0, 0] == pytest.approx(1.0)


def test_hsv_achromatic_has_zero_hue_and_saturation():
    from pixelrank.modules.remapping.rank_permuter import hsv_components

    img = _rgba_from_rgb([(0, 0, 0), (128, 128, 128), (255, 255, 255)], 1, 3)
    h, s, v = hsv_components(img)
    assert list(h[0]) == [0.0, 0.0, 0.0]
    assert list(s[0]) == [0.0, 0.0, 0.0]
    assert v[0, 1] == pytest.approx(128 / 255)


def test_hsv_partial_saturation():
    from pixelrank.modules.remapping.rank_permuter import hsv_components

    h, s, v = hsv_components(_rgba_from_rgb([(200, 100, 100)], 1, 1))
    assert h[0, 0] == 0.0
    assert s[0, 0] == pytest.approx(0.5)
    assert v[0, 0] == pytest.approx(200 / 255)


def test_hsv_hue_wraps_into_unit_interval():
    from pixelrank.modules.remapping.rank_permuter import hsv_components

    # Red max with blue > green → negative sector, wrapped below 1
    h, _, _ = hsv_components(_rgba_from_rgb([(255, 0, 10)], 1, 1))
    assert 0.9 < h[0, 0] < 1.0


# ─── Source keys ─────────────────────────────────────────────────────────────

def test_hue_key_combines_components():
    from pixelrank.modules.remapping.rank_permuter import source_keys

    img = _rgba_from_rgb([(255, 0, 0), (255, 255, 0), (0, 0, 0)], 1, 3)
    keys = source_keys(img, use_hue=True)
    assert keys.shape == (3,)
    # red: 0 + 0.08 + 0.02
    assert keys[0] == pytest.approx(0.1)
    assert keys[1] == pytest.approx(1 / 6 + 0.1)
    assert keys[2] == 0.0


def test_luma_key_matches_bt709():
    from pixelrank.modules.remapping.rank_permuter import source_keys

    img = _rgba_from_rgb([(10, 20, 30), (0, 255, 0)], 1, 2)
    keys = source_keys(img, use_hue=False)
    assert keys[0] == pytest.approx(0.2126 * 10 + 0.7152 * 20 + 0.0722 * 30)
    assert keys[1] == pytest.approx(0.7152 * 255)


# ─── rank_orders / apply_permutation ─────────────────────────────────────────

def test_rank_orders_stable_on_ties():
    from pixelrank.modules.remapping.rank_permuter import rank_orders

    src, dst = rank_orders(
        np.array([1.0, 0.0, 1.0, 0.0]),
        np.array([0.5, 0.5, 0.5, 0.5]),
    )
    assert list(src) == [1, 3, 0, 2]
    assert list(dst) == [0, 1, 2, 3]
    assert src.dtype == np.int64


def test_rank_orders_length_mismatch_raises():
    from pixelrank.modules.remapping.rank_permuter import PermutationError, rank_orders

    with pytest.raises(PermutationError):
        rank_orders(np.zeros(4), np.zeros(5))


def test_apply_permutation_forces_opaque_alpha():
    from pixelrank.modules.remapping.rank_permuter import apply_permutation

    img = _random_rgba(3, 3, seed=1)
    img[..., 3] = 7
    order = np.arange(9, dtype=np.int64)
    out = apply_permutation(img, order, order)
    assert np.array_equal(out[..., :3], img[..., :3])
    assert np.all(out[..., 3] == 255)


# ─── permute_histogram ───────────────────────────────────────────────────────

def test_two_by_two_luma_example():
    from pixelrank.modules.remapping.rank_permuter import permute_histogram

    c0, c1, c2, c3 = (10, 10, 10), (200, 200, 200), (50, 50, 50), (100, 100, 100)
    img = _rgba_from_rgb([c0, c1, c2, c3], 2, 2)
    field = np.array([0.4, 0.1, 0.3, 0.2])

    out = permute_histogram(img, field, source_uses_hue_key=False)
    got = [tuple(int(c) for c in px) for px in out[..., :3].reshape(-1, 3)]
    # darkest → lowest field value (index 1), brightest → highest (index 0)
    assert got == [c1, c0, c3, c2]


def test_two_by_two_hue_example():
    from pixelrank.modules.remapping.rank_permuter import permute_histogram

    red, yellow, green, blue = (255, 0, 0), (255, 255, 0), (0, 255, 0), (0, 0, 255)
    img = _rgba_from_rgb([blue, red, green, yellow], 2, 2)
    field = np.array([0.9, 0.0, 0.5, 0.2])

    out = permute_histogram(img, field, source_uses_hue_key=True)
    got = [tuple(int(c) for c in px) for px in out[..., :3].reshape(-1, 3)]
    # hue order red < yellow < green < blue onto field order 1, 3, 2, 0
    assert got == [blue, red, green, yellow]


def test_output_preserves_rgb_multiset():
    from pixelrank.modules.remapping.luminance_field import build_luminance_field
    from pixelrank.modules.remapping.rank_permuter import permute_histogram

    img = _random_rgba(40, 40, seed=11)
    for use_hue in (True, False):
        field = build_luminance_field(img, 6.0, 0 if use_hue else 5)
        out = permute_histogram(img, field, use_hue)
        assert out.shape == img.shape
        assert out.dtype == np.uint8
        assert np.array_equal(_sorted_triples(out), _sorted_triples(img))
        assert np.all(out[..., 3] == 255)


def test_output_order_follows_field():
    from pixelrank.modules.remapping.luminance_field import luma
    from pixelrank.modules.remapping.rank_permuter import permute_histogram

    img = _random_rgba(16, 16, seed=5)
    field = np.random.default_rng(9).random(256)
    out = permute_histogram(img, field, source_uses_hue_key=False)

    out_luma = luma(out).reshape(-1)
    ranked = out_luma[np.argsort(field, kind="stable")]
    assert np.all(np.diff(ranked) >= 0)


def test_solid_image_is_unchanged():
    from pixelrank.modules.remapping.luminance_field import build_luminance_field
    from pixelrank.modules.remapping.rank_permuter import permute_histogram

    img = np.zeros((900, 900, 4), dtype=np.uint8)
    img[..., :3] = 128
    img[..., 3] = 255
    field = build_luminance_field(img, 18.0, 0)
    out = permute_histogram(img, field, source_uses_hue_key=True)
    assert np.array_equal(out, img)


def test_ties_resolve_by_pixel_index():
    from pixelrank.modules.remapping.rank_permuter import permute_histogram

    # Two pixels share a luma key; the earlier one takes the lower field slot
    a, b, c = (50, 0, 0), (0, 50, 0), (10, 10, 10)
    img = _rgba_from_rgb([a, c, a, b], 2, 2)
    field = np.array([0.3, 0.1, 0.2, 0.4])
    out = permute_histogram(img, field, source_uses_hue_key=False)
    got = [tuple(int(v) for v in px) for px in out[..., :3].reshape(-1, 3)]
    # luma: a=10.63, b=35.76, c=10 → src order [1, 0, 2, 3]
    # field order [1, 2, 0, 3]
    assert got == [a, c, a, b]


def test_plateau_field_ties_resolve_by_pixel_index():
    from pixelrank.modules.remapping.luminance_field import build_luminance_field
    from pixelrank.modules.remapping.rank_permuter import rank_orders

    img = np.zeros((120, 120, 4), dtype=np.uint8)
    img[..., :3] = 90
    img[..., 3] = 255
    field = build_luminance_field(img, 34.0, 10)
    n = field.size

    _, dst_order = rank_orders(np.zeros(n), field)
    assert np.array_equal(dst_order, np.lexsort((np.arange(n), field)))

    tied = field[dst_order[1:]] == field[dst_order[:-1]]
    assert tied.any()
    assert np.all(dst_order[1:][tied] > dst_order[:-1][tied])


def test_permute_is_deterministic():
    from pixelrank.modules.remapping.rank_permuter import permute_histogram

    img = _random_rgba(20, 20, seed=2)
    field = np.random.default_rng(3).random(400)
    assert np.array_equal(
        permute_histogram(img, field, True),
        permute_histogram(img, field, True),
    )


def test_permute_does_not_modify_inputs():
    from pixelrank.modules.remapping.rank_permuter import permute_histogram

    img = _random_rgba(8, 8, seed=4)
    field = np.random.default_rng(4).random(64)
    img_before, field_before = img.copy(), field.copy()
    permute_histogram(img, field, False)
    assert np.array_equal(img, img_before)
    assert np.array_equal(field, field_before)


def test_field_size_mismatch_raises():
    from pixelrank.modules.remapping.rank_permuter import (
        PermutationError,
        permute_histogram,
    )

    with pytest.raises(PermutationError):
        permute_histogram(_random_rgba(4, 4), np.zeros(15), False)


def test_two_dimensional_field_is_accepted():
    from pixelrank.modules.remapping.rank_permuter import permute_histogram

    img = _random_rgba(5, 5, seed=8)
    field = np.random.default_rng(8).random((5, 5))
    a = permute_histogram(img, field, False)
    b = permute_histogram(img, field.reshape(-1), False)
    assert np.array_equal(a, b)
