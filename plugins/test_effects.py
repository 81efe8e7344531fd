#!/usr/bin/env python3
"""
Tests for the effect renderers, registry and presets.

Verifies:
1. Every registered effect renders onto a small surface
2. Static effects finish after one frame; capped effects stop at their cap
3. Lifecycle errors: disposed effects, missing or empty images
4. Option validation and preset resolution
5. Determinism for a fixed seed
6. Dot and stroke colour, alpha and radius formulas; overlapping trails compound
"""

import numpy as np
from PIL import Image
from pydantic import ValidationError

from procedural_art.errors import (EffectDisposed, InvalidImageDimensions, MissingImages,
                                   UnknownEffect)
from procedural_art.halftone_flow import HalftoneFlow
from procedural_art.presets import PRESETS, get_presets_for_effect, list_presets
from procedural_art.registry import (EFFECT_CLASSES, create_effect, create_from_preset,
                                     get_effect_class, list_effects)
from procedural_art.surface import ArraySurface

W, H = 48, 32

# Small workloads; contours zoomed out so a 48x32 canvas crosses several levels
SMALL = {
    "contours": {"scale": 0.05},
    "flow_field": {"particle_count": 60},
    "halftone_flow": {"particle_count": 60},
    "edge_trace": {"pathfinder_count": 30},
    "luminance_scatter": {"point_count": 400},
}


def _images():
    """Two synthetic photos: a lit square on a ramp, and vertical stripes."""
    ramp = np.zeros((40, 60, 3), dtype=np.uint8)
    ramp[..., 0] = np.linspace(0, 255, 60, dtype=np.uint8)[np.newaxis, :]
    ramp[..., 2] = np.linspace(255, 0, 40, dtype=np.uint8)[:, np.newaxis]
    ramp[10:30, 20:40] = 230
    stripes = np.zeros((50, 50, 3), dtype=np.uint8)
    stripes[:, ::6] = (180, 140, 60)
    stripes[:, 1::6] = (90, 90, 90)
    return [Image.fromarray(ramp), Image.fromarray(stripes)]


def _make(name, **options):
    surface = ArraySurface(W, H)
    opts = dict(SMALL.get(name, {}))
    opts.update(options)
    effect = create_effect(name, surface, _images(), rng=np.random.default_rng(1), **opts)
    return effect, surface


def test_every_effect_renders():
    print("Testing every registered effect...")
    assert len(EFFECT_CLASSES) == 13
    for name, cls in EFFECT_CLASSES.items():
        effect, surface = _make(name)
        assert isinstance(effect, cls)
        out = effect.step_n(3)
        assert out is surface
        pixels = surface.read_pixels()
        assert pixels.shape == (H, W, 4)
        assert pixels[..., 3].any(), f"{name} drew nothing"

        if effect.animated:
            assert effect.frame == 3 and not effect.finished, name
        else:
            assert effect.frame == 1 and effect.finished, name
        assert effect.stats["effect"] == name
        effect.dispose()
        print(f"  ✓ {name}")


def test_disposed_effect_raises():
    effect, _ = _make("contours")
    effect.dispose()
    effect.dispose()
    assert effect.disposed
    try:
        effect.step()
    except EffectDisposed:
        pass
    else:
        raise AssertionError("step() after dispose() should raise")


def test_missing_and_empty_images():
    print("Testing image validation...")
    surface = ArraySurface(W, H)
    try:
        create_effect("pixel_sort", surface, _images()[:1])
    except MissingImages:
        pass
    else:
        raise AssertionError("pixel_sort needs two images")

    try:
        create_effect("halftone", surface, [np.zeros((0, 10, 3), dtype=np.uint8)])
    except InvalidImageDimensions:
        pass
    else:
        raise AssertionError("Zero-height image should be rejected")

    effect = create_effect("contours", surface)
    assert effect.images == []
    print("  ✓ Images validated up front")


def test_unknown_effect():
    try:
        get_effect_class("kaleidoscope")
    except UnknownEffect as e:
        assert isinstance(e, KeyError)
    else:
        raise AssertionError("Unknown effect should raise")

    try:
        create_from_preset("not_a_preset", ArraySurface(4, 4))
    except UnknownEffect:
        pass
    else:
        raise AssertionError("Unknown preset should raise")


def test_option_validation():
    print("Testing option validation...")
    surface = ArraySurface(W, H)
    for bad in [{"dot_spacing": 0}, {"dot_spacing": 8, "sparkle": True}, {"color": "#zzz"}]:
        try:
            create_effect("halftone", surface, _images(), **bad)
        except ValidationError:
            pass
        else:
            raise AssertionError(f"Options {bad} should be rejected")

    effect = create_effect("halftone", surface, _images(), color="rgba(10, 20, 30, 0.5)")
    assert effect.options.color == (10.0, 20.0, 30.0, 0.5)
    assert "dot_spacing" in effect.get_option_defs()
    print("  ✓ Bad options rejected, colours parsed")


def test_static_effect_rerenders_after_set_params():
    effect, surface = _make("halftone")
    effect.run()
    assert effect.finished
    effect.set_params(color="#0000ff")
    assert not effect.finished
    effect.step()
    assert effect.finished and effect.frame == 2


def test_edge_trace_stops_at_cap():
    print("Testing edge_trace frame cap...")
    effect, _ = _make("edge_trace", max_frames=5)
    effect.run()
    assert effect.finished and effect.frame == 5
    effect.step()
    assert effect.frame == 5, "Finished effects do not render again"
    print("  ✓ Stopped after 5 frames")


def test_run_requires_cap_for_endless_effects():
    effect, _ = _make("flow_field")
    try:
        effect.run()
    except ValueError:
        pass
    else:
        raise AssertionError("Endless animation should need max_frames")
    effect.run(max_frames=4)
    assert effect.frame == 4


def test_contours_deterministic():
    a, sa = _make("contours", levels=8)
    b, sb = _make("contours", levels=8)
    a.step()
    b.step()
    assert np.array_equal(sa.read_pixels(), sb.read_pixels())
    assert a.stats["segments"] > 0


def test_seeded_effects_repeat():
    first, s1 = _make("luminance_scatter")
    second, s2 = _make("luminance_scatter")
    first.step()
    second.step()
    assert np.array_equal(s1.read_pixels(), s2.read_pixels())


def test_halftone_flow_theme_and_crop():
    print("Testing halftone_flow...")
    effect, surface = _make("halftone_flow")
    effect.step_n(2)
    effect.update_theme("#000000", "#ffffff")
    assert effect.get_params()["bg_color"] == (0.0, 0.0, 0.0, 1.0)
    effect.step()
    assert effect.frame == 3
    assert effect.stats["density_total"] > 0

    surface = ArraySurface(W, H)
    top = create_from_preset("split_top", surface, _images()[:1],
                             rng=np.random.default_rng(2), particle_count=20)
    assert isinstance(top, HalftoneFlow)
    assert top.options.crop_region == (0.0, 0.45)
    assert top.options.fade_direction.value == "down"
    top.step()
    print("  ✓ Theme swap and split preset work")


def test_displacement_static_mode():
    effect, _ = _make("displacement", animated=False)
    assert not effect.animated
    plan = effect.strip_plan()
    assert sum(h for _, h, _, _ in plan) == H
    assert {idx for _, _, idx, _ in plan} <= {0, 1}
    effect.run()
    assert effect.frame == 1


def test_threshold_ghost_offsets():
    effect, _ = _make("threshold_ghost")
    _, left = effect.silhouette(0)
    _, right = effect.silhouette(1)
    assert left < 0 < right
    assert np.isclose(right - left, W * 0.15)


def test_reset_restarts():
    effect, _ = _make("particle_dissolve")
    effect.step_n(3)
    effect.reset()
    assert effect.frame == 0 and effect.time == 0


def test_presets_resolve():
    print("Testing presets...")
    effect_names = {name for name, _, _, _ in list_effects()}
    for key, preset in PRESETS.items():
        assert preset["effect"] in effect_names, f"{key} names an unknown effect"
        cls = get_effect_class(preset["effect"])
        options = {k: v for k, v in preset.items() if k not in ("effect", "name", "description")}
        cls.options_model.model_validate(options)
    assert len(list_presets()) == len(PRESETS)
    assert [k for k, _, _ in list_presets("dot_matrix")] == get_presets_for_effect("dot_matrix")
    print(f"  ✓ {len(PRESETS)} presets valid")


def test_flow_trails_compound():
    """Two particles on the same step darken the paper more than one stroke would."""
    print("Testing flow_field trail build-up...")
    effect, surface = _make("flow_field", particle_count=2)
    ps = effect.particles
    ps.x[:] = 20.3
    ps.y[:] = 15.3
    ps.speed[:] = 1.5
    ps.age[:] = 5
    ps.max_life[:] = 1000
    effect.step()

    # paper green 250 under trail green 119 at 0.3 * 0.8 per stroke
    a = 0.3 * 0.8
    once = 250 * (1 - a) + 119 * a
    twice = 250 * (1 - a) ** 2 + 119 * (1 - (1 - a) ** 2)
    green = int(surface.read_pixels()[..., 1].min())
    assert abs(green - twice) <= 1, f"Expected ~{twice:.1f}, got {green} (one stroke: {once:.1f})"
    print("  ✓ Overlapping trails compound")


def test_halftone_flow_dot_styles():
    print("Testing halftone_flow dot colours...")
    effect, _ = _make("halftone_flow")
    d = effect.dots
    i = int(np.argmax(d.edge_fade))
    colors, alpha, radius = effect.dot_styles(np.full(len(d), 0.5))

    b = d.brightness[i]
    image = d.rgb[i]
    accent = np.array([217.0, 119.0, 6.0])
    base = b * 255 * 0.6 + image * 0.2 + accent * 0.2
    bleed = 0.5 * 0.9
    expected = np.floor(base * (1 - bleed) + image * bleed + 0.5)
    assert list(colors[i]) == list(expected), f"Got {colors[i]}, expected {expected}"
    expected_alpha = min(1.0, (0.45 + (1 - b) * 0.4) * d.edge_fade[i] * 1.1)
    assert np.isclose(alpha[i], expected_alpha), f"Got {alpha[i]}, expected {expected_alpha}"
    assert np.isclose(radius[i], min(d.radius[i] * 1.125, 5.0 * 0.48))

    plain, _, _ = effect.dot_styles(np.zeros(len(d)))
    assert list(plain[i]) == list(np.floor(base + 0.5)), "No density, no bleed"

    big, _ = _make("halftone_flow", max_radius=10.0)
    _, _, radius = big.dot_styles(np.ones(len(big.dots)))
    assert radius.max() <= 5.0 * 0.48 + 1e-9
    assert np.isclose(radius[np.argmax(big.dots.radius)], 5.0 * 0.48), "Dark dots hit the cap"
    print("  ✓ Grey/image/accent mix, bleed, alpha and radius cap")


def test_halftone_alive_dot_styles():
    print("Testing halftone_alive pulse and colour shift...")
    effect, _ = _make("halftone_alive", pulse_amount=0.0, color_shift_amount=0.0)
    d = effect.dots
    colors, _, radius = effect.dot_styles(0.0)
    accent = np.array([217.0, 119.0, 6.0])
    assert np.allclose(radius, d.radius), "No pulse keeps the base radius"
    assert np.array_equal(colors, np.floor(d.rgb * 0.4 + accent * 0.6 + 0.5))

    effect, _ = _make("halftone_alive")
    d = effect.dots
    i = int(np.argmax(d.edge_fade))
    t = 3.0
    colors, alpha, radius = effect.dot_styles(t)

    s = 0.008
    x, y = d.x[i], d.y[i]
    n = float(effect.noise.fbm(x * s, y * s, octaves=3, amplitude=0.5, seed_stride=43,
                               offset=(t * 0.3, t * 0.2)))
    t2 = t * 0.7
    n2 = float(effect.noise.fbm(x * s * 1.5 + 100, y * s * 1.5 + 100, octaves=3,
                                amplitude=0.5, seed_stride=43, offset=(t2 * 0.3, t2 * 0.2)))
    expected_radius = max(0.2, d.radius[i] * (1 + (n - 0.5) * 2 * 0.35))
    mix = min(1.0, max(0.0, 0.4 + (n2 - 0.5) * 0.3))
    expected = np.floor(d.rgb[i] * mix + accent * (1 - mix) + 0.5)
    expected_alpha = (0.3 + (1 - d.brightness[i]) * 0.5 + (n - 0.5) * 0.15) * d.edge_fade[i]

    assert np.isclose(radius[i], expected_radius), f"Got {radius[i]}, expected {expected_radius}"
    assert np.abs(colors[i] - expected).max() <= 1, f"Got {colors[i]}, expected {expected}"
    assert np.isclose(alpha[i], min(1.0, max(0.0, expected_alpha)))
    print("  ✓ Pulse and colour shift follow the noise layers")


def test_edge_trace_stroke_style():
    print("Testing edge_trace stroke colour and alpha...")
    effect, _ = _make("edge_trace")
    color, width = effect.trail_style((100, 200, 50), 127.5)
    # 60% pixel underneath, 40% amber
    assert color == (147, 168, 32), f"Got {color}"
    assert np.isclose(width, 0.6 + 0.75)

    ps = effect.particles
    ps.x[:2] = [W / 2, W * 0.75]
    ps.y[:2] = H / 2
    ps.age[:2] = 10
    ps.max_life[:2] = 200
    alpha = effect.trail_alpha()
    life = 0.5 * (1 - 10 / 200)
    assert np.isclose(alpha[0], life * 0.6), f"Got {alpha[0]}"
    assert np.isclose(alpha[1], life * 0.6 * (1 - 0.5 * 0.9)), f"Got {alpha[1]}"

    effect.set_params(fade_edge=False)
    assert np.isclose(effect.trail_alpha()[1], life * 0.6)
    print("  ✓ Accent mix, width and alpha match")


if __name__ == "__main__":
    print("\n=== Testing Effects ===\n")

    test_every_effect_renders()
    test_disposed_effect_raises()
    test_missing_and_empty_images()
    test_unknown_effect()
    test_option_validation()
    test_static_effect_rerenders_after_set_params()
    test_edge_trace_stops_at_cap()
    test_run_requires_cap_for_endless_effects()
    test_contours_deterministic()
    test_seeded_effects_repeat()
    test_halftone_flow_theme_and_crop()
    test_displacement_static_mode()
    test_threshold_ghost_offsets()
    test_reset_restarts()
    test_presets_resolve()
    test_flow_trails_compound()
    test_halftone_flow_dot_styles()
    test_halftone_alive_dot_styles()
    test_edge_trace_stroke_style()

    print("\n✓ All tests passed!\n")
