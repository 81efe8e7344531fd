"""
Marching Squares Contour Tracing

Extracts iso-lines from a ScalarGrid. Each cell's four corners are
thresholded into a 4-bit configuration (TL*8 + TR*4 + BR*2 + BL) and
mapped to line segments between linearly interpolated edge crossings.

Saddle cells (5 and 10) always emit the same two segments: config 5
joins top-left and bottom-right crossings, config 10 joins top-right and
left-bottom. The cell centre is never sampled to disambiguate; contour
renders are tuned against these breaks.
"""

from collections import namedtuple
import math

import numpy as np


EPSILON = 1e-4

Point = namedtuple("Point", ["x", "y"])
ContourLevel = namedtuple("ContourLevel", ["threshold", "segments", "line_width", "alpha"])

# config -> ((edge, edge), ...)
SEGMENT_TABLE = {
    1: (("left", "bottom"),),
    2: (("bottom", "right"),),
    3: (("left", "right"),),
    4: (("top", "right"),),
    5: (("top", "left"), ("bottom", "right")),
    6: (("top", "bottom"),),
    7: (("top", "left"),),
    8: (("top", "left"),),
    9: (("top", "bottom"),),
    10: (("top", "right"), ("left", "bottom")),
    11: (("top", "right"),),
    12: (("left", "right"),),
    13: (("bottom", "right"),),
    14: (("left", "bottom"),),
}

SADDLES = (5, 10)


def classify(tl, tr, br, bl, threshold):
    """4-bit corner configuration, corners at or above threshold set."""
    return ((tl >= threshold) * 8 + (tr >= threshold) * 4 +
            (br >= threshold) * 2 + (bl >= threshold) * 1)


def interpolate(p1, p2, v1, v2, t):
    """Position of the threshold crossing between p1 (value v1) and p2 (v2).

    Nearly equal corner values fall back to the edge midpoint.
    """
    if abs(v2 - v1) < EPSILON:
        return (p1 + p2) / 2.0
    p = p1 + (p2 - p1) * (t - v1) / (v2 - v1)
    lo, hi = (p1, p2) if p1 <= p2 else (p2, p1)
    return min(hi, max(lo, p))


def cell_segments(tl, tr, br, bl, threshold, px=0.0, py=0.0, step=1.0):
    """
    Segments for a single cell whose top-left corner sits at (px, py).

    Returns:
        List of (Point, Point); empty for configs 0 and 15
    """
    config = int(classify(tl, tr, br, bl, threshold))
    pairs = SEGMENT_TABLE.get(config)
    if not pairs:
        return []

    crossings = {
        "top": Point(interpolate(px, px + step, tl, tr, threshold), py),
        "bottom": Point(interpolate(px, px + step, bl, br, threshold), py + step),
        "left": Point(px, interpolate(py, py + step, tl, bl, threshold)),
        "right": Point(px + step, interpolate(py, py + step, tr, br, threshold)),
    }
    return [(crossings[a], crossings[b]) for a, b in pairs]


def configurations(grid, threshold):
    """Configuration of every cell, int array (rows - 1, cols - 1)."""
    above = (np.asarray(grid) >= threshold).astype(np.int8)
    return (above[:-1, :-1] * 8 + above[:-1, 1:] * 4 +
            above[1:, 1:] * 2 + above[1:, :-1])


def trace(grid, threshold, step=1):
    """
    All contour segments of one iso-level.

    Args:
        grid: 2D ScalarGrid; grid[j, i] lives at pixel (i * step, j * step)
        threshold: Iso value
        step: Pixel stride between grid samples

    Returns:
        List of (Point, Point) segments in pixel coordinates
    """
    grid = np.asarray(grid, dtype=np.float64)
    if grid.shape[0] < 2 or grid.shape[1] < 2:
        return []
    config = configurations(grid, threshold)
    rows, cols = np.nonzero((config != 0) & (config != 15))

    segments = []
    for y, x in zip(rows.tolist(), cols.tolist()):
        segments.extend(cell_segments(
            grid[y, x], grid[y, x + 1], grid[y + 1, x + 1], grid[y + 1, x],
            threshold, x * step, y * step, step))
    return segments


def trace_levels(grid, levels, step=1, line_width=0.7, emphasis_every=5,
                 alpha=0.4, emphasis_alpha=0.8):
    """
    Trace several iso-levels independently.

    Args:
        grid: ScalarGrid
        levels: Level count n (thresholds i / n) or explicit thresholds
        step: Pixel stride of the grid
        line_width: Base stroke width
        emphasis_every: Every Nth level is drawn at double width
        alpha, emphasis_alpha: Stroke alpha of plain / emphasised levels

    Returns:
        List of ContourLevel
    """
    if isinstance(levels, int):
        thresholds = [i / levels for i in range(levels)]
    else:
        thresholds = list(levels)

    out = []
    for i, threshold in enumerate(thresholds):
        emphasised = emphasis_every > 0 and i % emphasis_every == 0
        out.append(ContourLevel(
            threshold=threshold,
            segments=trace(grid, threshold, step),
            line_width=line_width * 2 if emphasised else line_width,
            alpha=emphasis_alpha if emphasised else alpha,
        ))
    return out


def noise_grid(noise, width, height, step=2, scale=0.006, octaves=5,
               lacunarity=2.1, gain=0.5, seed_stride=0):
    """
    fBm elevation sampled every step pixels.

    Returns:
        (ceil(height/step) + 1, ceil(width/step) + 1) float64 grid
    """
    cols = math.ceil(width / step)
    rows = math.ceil(height / step)
    xs = np.arange(cols + 1, dtype=np.float64) * step * scale
    ys = np.arange(rows + 1, dtype=np.float64) * step * scale
    gx, gy = np.meshgrid(xs, ys)
    return np.asarray(noise.fbm(gx, gy, octaves=octaves, lacunarity=lacunarity,
                                gain=gain, amplitude=0.5, seed_stride=seed_stride))
