"""
Per-pixel Image Analysis

Luminance and Sobel edge gradient over RGBA8 PixelBuffers.

Luminance uses the Rec. 601 weights (0.299, 0.587, 0.114). The Sobel
operator runs on unnormalised grey values (0-255), so magnitudes land in
[0, 255] after clamping. Border pixels have no full 3x3 neighbourhood and
are left at zero in edge maps.
"""

import math
import numpy as np
from scipy.ndimage import correlate


LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114], dtype=np.float64)

SOBEL_X = np.array([[-1, 0, 1],
                    [-2, 0, 2],
                    [-1, 0, 1]], dtype=np.float64)
SOBEL_Y = np.array([[-1, -2, -1],
                    [0, 0, 0],
                    [1, 2, 1]], dtype=np.float64)


def luminance(r, g, b):
    """Normalised luminance of an 8-bit colour, in [0, 1]."""
    return (r * 0.299 + g * 0.587 + b * 0.114) / 255.0


def grey_map(buffer):
    """Weighted grey level (0-255) of every pixel, float64 (H, W)."""
    rgb = np.asarray(buffer)[..., :3].astype(np.float64)
    return rgb[..., 0] * 0.299 + rgb[..., 1] * 0.587 + rgb[..., 2] * 0.114


def luminance_map(buffer):
    """Normalised luminance of every pixel (works on any (..., >=3) array)."""
    return grey_map(buffer) / 255.0


def sobel_edge(buffer, x, y):
    """
    Sobel gradient magnitude at one interior pixel.

    Args:
        buffer: (H, W, 4) PixelBuffer
        x, y: Pixel coordinates, 1 <= x < W-1 and 1 <= y < H-1

    Returns:
        min(255, sqrt(Gx^2 + Gy^2))
    """
    h, w = buffer.shape[:2]
    if not (1 <= x < w - 1 and 1 <= y < h - 1):
        raise ValueError(f"Sobel is undefined on the border: ({x}, {y}) in {w}x{h}")
    patch = grey_map(buffer[y - 1:y + 2, x - 1:x + 2])
    gx = float((patch * SOBEL_X).sum())
    gy = float((patch * SOBEL_Y).sum())
    return min(255.0, math.sqrt(gx * gx + gy * gy))


def edge_map(buffer):
    """Sobel magnitude for every pixel, float32 (H, W); border pixels are 0."""
    grey = grey_map(buffer)
    h, w = grey.shape
    edges = np.zeros((h, w), dtype=np.float32)
    if h < 3 or w < 3:
        return edges
    gx = correlate(grey, SOBEL_X, mode="nearest")
    gy = correlate(grey, SOBEL_Y, mode="nearest")
    mag = np.minimum(255.0, np.sqrt(gx * gx + gy * gy))
    edges[1:-1, 1:-1] = mag[1:-1, 1:-1]
    return edges


def edge_points(edges, threshold=100, margin=10, stride=3):
    """
    Coarse grid of strong-edge positions, used to seed edge followers.

    Returns:
        (N, 2) float array of (x, y); empty when nothing clears threshold
    """
    h, w = edges.shape
    ys = np.arange(margin, h - margin, stride)
    xs = np.arange(margin, w - margin, stride)
    if len(ys) == 0 or len(xs) == 0:
        return np.zeros((0, 2), dtype=np.float64)
    gy, gx = np.meshgrid(ys, xs, indexing="ij")
    hit = edges[gy, gx] > threshold
    return np.stack([gx[hit], gy[hit]], axis=1).astype(np.float64)


def radial_distance(x, y, width, height):
    """Distance from the centre, normalised per axis (1.0 at mid-edges)."""
    cx = width / 2.0
    cy = height / 2.0
    dx = (np.asarray(x, dtype=np.float64) - cx) / cx
    dy = (np.asarray(y, dtype=np.float64) - cy) / cy
    return np.sqrt(dx * dx + dy * dy)
