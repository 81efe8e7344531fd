#!/usr/bin/env python3
"""
Tests for image sampling, compositing and filters.

Verifies:
1. cover_rect crops the longer axis symmetrically and stays in bounds
2. Zero-size sources are rejected before any work is done
3. composite_layers applies each blend mode in order
4. crop_vertical extracts the requested band
5. Colour filters behave at their identity / extreme settings
"""

import numpy as np
from PIL import Image

from procedural_art.blending import BlendMode, blend_buffers
from procedural_art.errors import InvalidImageDimensions
from procedural_art.sampling import (Layer, add_grain, as_rgba, composite_layers, contrast,
                                     cover_rect, crop_vertical, fit_cover, fit_width,
                                     grayscale, linear_alpha_gradient, mask_alpha,
                                     new_buffer, vignette)


def _solid(color, size=(20, 10)):
    return Image.new("RGB", size, color)


def test_cover_rect_wide_source():
    """A 2:1 source into a square keeps the middle half."""
    print("Testing cover_rect...")
    rect = cover_rect(200, 100, 100, 100)
    assert tuple(rect) == (50.0, 0.0, 100.0, 100.0), f"Got {rect}"

    rect = cover_rect(100, 300, 200, 100)
    assert rect.sx == 0.0 and rect.sw == 100.0
    assert np.isclose(rect.sh, 50.0) and np.isclose(rect.sy, 125.0)
    print("  ✓ Longer axis cropped symmetrically")


def test_cover_rect_stays_in_bounds():
    """Crop rectangle never leaves the source and matches the dest aspect."""
    print("Testing cover_rect bounds...")
    for src in [(640, 480), (480, 640), (333, 333), (1, 900), (900, 1)]:
        for dest in [(100, 100), (1920, 1080), (37, 211)]:
            sx, sy, sw, sh = cover_rect(*src, *dest)
            assert sx >= 0 and sy >= 0, f"Negative origin for {src}->{dest}"
            assert sx + sw <= src[0] + 1e-9 and sy + sh <= src[1] + 1e-9
            assert np.isclose(sw / sh, dest[0] / dest[1], rtol=1e-6)
    print("  ✓ cover_rect in bounds for all sizes")


def test_zero_size_rejected():
    print("Testing zero-size sources...")
    for args in [(0, 10, 5, 5), (10, 0, 5, 5), (10, 10, 0, 5)]:
        try:
            cover_rect(*args)
        except InvalidImageDimensions:
            pass
        else:
            raise AssertionError(f"cover_rect{args} should raise")

    try:
        as_rgba(np.zeros((0, 10, 3), dtype=np.uint8))
    except InvalidImageDimensions as e:
        assert isinstance(e, ValueError)
    else:
        raise AssertionError("Zero-height array should raise")
    print("  ✓ InvalidImageDimensions raised")


def test_as_rgba_adds_alpha():
    arr = np.full((4, 6, 3), 9, dtype=np.uint8)
    out = as_rgba(arr)
    assert out.shape == (4, 6, 4)
    assert (out[..., 3] == 255).all()
    assert (out[..., :3] == 9).all()

    grey = as_rgba(np.full((2, 2), 40, dtype=np.uint8))
    assert (grey[0, 0] == [40, 40, 40, 255]).all()


def test_fit_cover_shapes():
    out = fit_cover(_solid((10, 20, 30), (64, 48)), 30, 17)
    assert out.shape == (17, 30, 4)
    assert np.abs(out[..., :3].astype(int) - [10, 20, 30]).max() <= 1

    wide = fit_width(_solid((0, 0, 0), (40, 20)), 80)
    assert wide.shape == (40, 80, 4)


def test_composite_screen():
    """Two mid-grey layers screen to ~75% grey."""
    print("Testing composite_layers screen...")
    grey = _solid((128, 128, 128))
    out = composite_layers([Layer(grey), Layer(grey, BlendMode.SCREEN, 1.0)], 8, 8)
    assert out.shape == (8, 8, 4)
    assert abs(int(out[4, 4, 0]) - 192) <= 1, f"Got {out[4, 4]}"
    assert out[4, 4, 3] == 255
    print("  ✓ Screen blend correct")


def test_composite_multiply_and_lighter():
    print("Testing multiply and lighter...")
    white = _solid((255, 255, 255))
    teal = _solid((0, 128, 128))
    out = composite_layers([(white, "normal", 1.0), (teal, "multiply", 1.0)], 6, 6)
    assert abs(int(out[3, 3, 1]) - 128) <= 1 and out[3, 3, 0] == 0

    bright = _solid((200, 200, 200))
    out = composite_layers([(bright, "normal", 1.0), (bright, "lighter", 1.0)], 6, 6)
    assert (out[3, 3, :3] == 255).all(), "lighter should clamp at 255"
    print("  ✓ Multiply and lighter correct")


def test_composite_background_and_opacity():
    """Half-opacity black over white background lands mid-grey."""
    out = composite_layers([Layer(_solid((0, 0, 0)), opacity=0.5)], 5, 5, background="#ffffff")
    assert abs(int(out[2, 2, 0]) - 128) <= 1
    assert out[2, 2, 3] == 255


def test_source_over_alias():
    assert BlendMode("source-over") is BlendMode.NORMAL
    assert BlendMode("SCREEN") is BlendMode.SCREEN


def test_destination_in_mask():
    print("Testing destination-in...")
    buf = new_buffer(4, 2, "#ff0000")
    mask = np.array([[0.0, 0.5, 1.0, 1.0]] * 2, dtype=np.float32)
    out = mask_alpha(buf, mask)
    assert list(out[0, :, 3]) == [0, 128, 255, 255]
    assert (out[..., 0] == 255).all(), "destination-in must not touch colour"
    print("  ✓ Alpha masked, colour kept")


def test_blend_buffers_transparent_layer_is_noop():
    base = new_buffer(3, 3, "#123456")
    out = blend_buffers(base, new_buffer(3, 3), BlendMode.SCREEN)
    assert np.array_equal(out, base)


def test_crop_vertical():
    print("Testing crop_vertical...")
    buf = np.zeros((10, 3, 4), dtype=np.uint8)
    buf[..., 0] = (np.arange(10) * 20)[:, np.newaxis]
    buf[..., 3] = 255

    band = crop_vertical(buf, (0.2, 0.6))
    assert band.shape == (4, 3, 4)
    assert list(band[:, 0, 0]) == [40, 60, 80, 100]

    scaled = crop_vertical(buf, (0.0, 0.5), target_height=20)
    assert scaled.shape == (20, 3, 4)

    try:
        crop_vertical(buf, (0.5, 0.5))
    except InvalidImageDimensions:
        pass
    else:
        raise AssertionError("Empty band should raise")
    print("  ✓ crop_vertical correct")


def test_grayscale_and_contrast():
    red = new_buffer(2, 2, "#ff0000")
    grey = grayscale(red, 1.0)
    r, g, b = (int(c) for c in grey[0, 0, :3])
    assert r == g == b and abs(r - 54) <= 1

    untouched = grayscale(red, 0.0)
    assert np.array_equal(untouched, red)

    buf = np.random.default_rng(0).integers(0, 256, (5, 5, 4), dtype=np.uint8)
    assert np.array_equal(contrast(buf, 1.0), buf), "contrast(1) is identity"


def test_vignette_darkens_corners():
    buf = new_buffer(40, 40, "#ffffff")
    out = vignette(buf, 5, 25, 0.8)
    assert out[0, 0, 0] < out[20, 20, 0]
    assert out[20, 20, 0] == 255


def test_linear_alpha_gradient():
    mask = linear_alpha_gradient(10, 3, [(0.0, 0.0), (1.0, 1.0)])
    assert mask.shape == (3, 10)
    assert (np.diff(mask[0]) > 0).all()
    assert 0.0 <= mask.min() and mask.max() <= 1.0


def test_grain_is_unbiased():
    """Grain rounds to the nearest level, so a flat buffer keeps its mean."""
    print("Testing add_grain...")
    buf = np.full((100, 100, 4), 100, dtype=np.uint8)
    buf[..., 3] = 255
    out = add_grain(buf, 8, np.random.default_rng(0))
    mean = out[..., :3].astype(np.float64).mean()
    assert abs(mean - 100.0) < 0.1, f"Grain shifted the mean to {mean:.3f}"
    assert (out[..., 0] == out[..., 2]).all(), "R, G and B share one noise sample"
    assert (out[..., 3] == 255).all()
    assert out[..., 0].min() >= 96 and out[..., 0].max() <= 104
    print("  ✓ Mean preserved")


if __name__ == "__main__":
    print("\n=== Testing Sampling ===\n")

    test_cover_rect_wide_source()
    test_cover_rect_stays_in_bounds()
    test_zero_size_rejected()
    test_as_rgba_adds_alpha()
    test_fit_cover_shapes()
    test_composite_screen()
    test_composite_multiply_and_lighter()
    test_composite_background_and_opacity()
    test_source_over_alias()
    test_destination_in_mask()
    test_blend_buffers_transparent_layer_is_noop()
    test_crop_vertical()
    test_grayscale_and_contrast()
    test_vignette_darkens_corners()
    test_linear_alpha_gradient()
    test_grain_is_unbiased()

    print("\n✓ All tests passed!\n")
