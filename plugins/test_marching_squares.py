#!/usr/bin/env python3
"""
Tests for marching squares contour tracing.

Verifies:
1. Every configuration emits the right number of segments
2. Segment endpoints lie on the cell boundary
3. Saddle cells use the fixed pairing
4. Near-equal corners fall back to the edge midpoint
5. Level emphasis and noise grid sizing
"""

import numpy as np

from procedural_art.marching_squares import (SADDLES, classify, interpolate, noise_grid,
                                             trace, trace_levels)
from procedural_art.noise import NoiseField


def _corners(config):
    """Corner values (tl, tr, br, bl) that produce a configuration at 0.5."""
    return tuple(1.0 if config & bit else 0.0 for bit in (8, 4, 2, 1))


def test_all_configurations():
    print("Testing all 16 configurations...")
    for config in range(16):
        tl, tr, br, bl = _corners(config)
        assert classify(tl, tr, br, bl, 0.5) == config
        grid = np.array([[tl, tr], [bl, br]])
        segments = trace(grid, 0.5)

        if config in (0, 15):
            expected = 0
        elif config in SADDLES:
            expected = 2
        else:
            expected = 1
        assert len(segments) == expected, f"Config {config}: {len(segments)} segments"

        for a, b in segments:
            for p in (a, b):
                assert 0.0 <= p.x <= 1.0 and 0.0 <= p.y <= 1.0
                assert p.x in (0.0, 1.0) or p.y in (0.0, 1.0), \
                    f"Config {config}: {p} not on the cell boundary"
            assert (a.x, a.y) != (b.x, b.y)
    print("  ✓ Segment counts and endpoints correct")


def test_saddle_pairing():
    """Config 10 joins top-right and left-bottom without a centre sample."""
    print("Testing saddle policy...")
    grid = np.array([[0.8, 0.2],
                     [0.2, 0.8]])
    assert classify(0.8, 0.2, 0.8, 0.2, 0.5) == 10
    segments = trace(grid, 0.5)
    assert len(segments) == 2
    (a, b), (c, d) = segments
    assert np.allclose([a.x, a.y, b.x, b.y], [0.5, 0.0, 1.0, 0.5])
    assert np.allclose([c.x, c.y, d.x, d.y], [0.0, 0.5, 0.5, 1.0])

    # Config 5 is the mirror image
    grid5 = np.array([[0.2, 0.8],
                      [0.8, 0.2]])
    assert classify(0.2, 0.8, 0.2, 0.8, 0.5) == 5
    (a, b), (c, d) = trace(grid5, 0.5)
    assert np.allclose([a.x, a.y, b.x, b.y], [0.5, 0.0, 0.0, 0.5])
    assert np.allclose([c.x, c.y, d.x, d.y], [0.5, 1.0, 1.0, 0.5])
    print("  ✓ Saddles paired deterministically")


def test_interpolate_midpoint_guard():
    assert interpolate(0.0, 2.0, 0.5, 0.50001, 0.5) == 1.0
    assert interpolate(0.0, 10.0, 0.0, 1.0, 0.25) == 2.5


def test_trace_uses_step():
    grid = np.array([[1.0, 0.0],
                     [1.0, 0.0]])
    (a, b), = trace(grid, 0.5, step=4)
    assert np.allclose([a.x, a.y, b.x, b.y], [2.0, 0.0, 2.0, 4.0])


def test_trace_levels_emphasis():
    print("Testing level emphasis...")
    grid = np.linspace(0, 1, 25).reshape(5, 5)
    levels = trace_levels(grid, 10, step=2, line_width=0.7, emphasis_every=5)
    assert len(levels) == 10
    assert [lv.threshold for lv in levels] == [i / 10 for i in range(10)]
    assert levels[0].line_width == 1.4 and levels[0].alpha == 0.8
    assert levels[5].line_width == 1.4
    assert levels[1].line_width == 0.7 and levels[1].alpha == 0.4
    assert levels[3].segments, "Interior level should cross the ramp"
    print("  ✓ Every 5th level emphasised")


def test_noise_grid_shape():
    grid = noise_grid(NoiseField(seed=42), 20, 10, step=2)
    assert grid.shape == (6, 11)
    assert grid.min() >= 0.0 and grid.max() < 1.0
    again = noise_grid(NoiseField(seed=42), 20, 10, step=2)
    assert np.array_equal(grid, again)


if __name__ == "__main__":
    print("\n=== Testing Marching Squares ===\n")

    test_all_configurations()
    test_saddle_pairing()
    test_interpolate_midpoint_guard()
    test_trace_uses_step()
    test_trace_levels_emphasis()
    test_noise_grid_shape()

    print("\n✓ All tests passed!\n")
