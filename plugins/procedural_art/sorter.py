"""
Pixel Sorting

Within each row or column, maximal runs of pixels whose luminance lies in
[low, high] are reordered by ascending luminance. The output is a partial
sort: every pixel in a run is blended between its unsorted colour and the
colour that lands at its position after sorting, so intensity 0 leaves
the image untouched and intensity 1 fully sorts each run.
"""

import numpy as np

from .analysis import luminance_map
from .colors import round_half_up


MIN_RUN_LENGTH = 3


def find_runs(lum, low, high, min_length=MIN_RUN_LENGTH):
    """
    Maximal runs with low <= lum <= high.

    Args:
        lum: 1D luminance values of one line
        low, high: Inclusive band
        min_length: Runs shorter than this are dropped, including a run
            that reaches the end of the line

    Returns:
        List of half-open (start, stop) index pairs
    """
    lum = np.asarray(lum)
    inside = ((lum >= low) & (lum <= high)).astype(np.int8)
    if not inside.any():
        return []
    edges = np.diff(np.concatenate(([0], inside, [0])))
    starts = np.flatnonzero(edges == 1)
    stops = np.flatnonzero(edges == -1)
    return [(int(a), int(b)) for a, b in zip(starts, stops) if b - a >= min_length]


def sort_run(pixels, intensity, lum=None):
    """
    Blend a run of pixels toward their luminance-sorted order.

    Args:
        pixels: (N, 4) uint8 run
        intensity: 0 = untouched, 1 = fully sorted
        lum: Precomputed luminance of the run (optional)

    Returns:
        New (N, 4) uint8 array; alpha is copied unchanged
    """
    pixels = np.asarray(pixels)
    if lum is None:
        lum = luminance_map(pixels)
    order = np.argsort(lum, kind="stable")
    orig = pixels[:, :3].astype(np.float64)
    target = orig[order]
    out = pixels.copy()
    out[:, :3] = np.clip(round_half_up(orig * (1.0 - intensity) + target * intensity), 0, 255)
    return out


def sort_line(line, low, high, intensity, min_length=MIN_RUN_LENGTH):
    """Sort the qualifying runs of one (N, 4) line in place."""
    lum = luminance_map(line)
    for start, stop in find_runs(lum, low, high, min_length):
        line[start:stop] = sort_run(line[start:stop], intensity, lum[start:stop])
    return line


def sort_rows(buffer, low, high, intensity, min_length=MIN_RUN_LENGTH):
    out = np.array(buffer, dtype=np.uint8, copy=True)
    for y in range(out.shape[0]):
        sort_line(out[y], low, high, intensity, min_length)
    return out


def sort_columns(buffer, low, high, intensity, min_length=MIN_RUN_LENGTH):
    out = np.array(buffer, dtype=np.uint8, copy=True)
    for x in range(out.shape[1]):
        sort_line(out[:, x], low, high, intensity, min_length)
    return out


def pixel_sort(buffer, direction="vertical", threshold=(0.2, 0.7), intensity=0.7,
               min_length=MIN_RUN_LENGTH):
    """
    Sort every column ("vertical") or row ("horizontal") of buffer.

    Returns a new buffer; lines without a qualifying run are copied as is.
    """
    low, high = threshold
    if direction == "vertical":
        return sort_columns(buffer, low, high, intensity, min_length)
    if direction == "horizontal":
        return sort_rows(buffer, low, high, intensity, min_length)
    raise ValueError(f"Unknown sort direction: {direction!r}")
