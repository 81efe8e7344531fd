"""
Drawing Surfaces

Effects never touch a native canvas; they draw through the Surface
interface below. ArraySurface is the in-memory implementation: an
(H, W, 4) float32 buffer that shapes are composited into with the blend
modes from blending.py.

Coordinates are in pixels with the origin at the top-left corner; pixel
(i, j) covers [i, i+1) x [j, j+1), so its centre is at (i + 0.5, j + 0.5).
"""

from abc import ABC, abstractmethod
import math

import numpy as np
from PIL import Image, ImageDraw

from .blending import BlendMode, composite, to_float, to_uint8
from .colors import to_unit
from .errors import InvalidImageDimensions
from .sampling import as_rgba, image_size, resample


class Surface(ABC):
    """Abstract raster target."""

    @abstractmethod
    def size(self):
        """Return (width, height)."""

    @abstractmethod
    def read_pixels(self, rect=None):
        """Copy of the pixels in rect (x, y, w, h) as a PixelBuffer of shape (h, w, 4).

        Parts of rect outside the surface read as transparent black.
        """

    @abstractmethod
    def write_pixels(self, buffer, x=0, y=0):
        """Replace pixels starting at (x, y); no blending."""

    @abstractmethod
    def fill_rect(self, x, y, w, h, color, blend=BlendMode.NORMAL, alpha=1.0):
        """Fill an axis-aligned rectangle."""

    @abstractmethod
    def fill_circle(self, cx, cy, radius, color, blend=BlendMode.NORMAL, alpha=1.0):
        """Fill a disc."""

    @abstractmethod
    def stroke_path(self, subpaths, color, width=1.0, blend=BlendMode.NORMAL, alpha=1.0):
        """Stroke a list of polylines, each a sequence of (x, y) points."""

    @abstractmethod
    def draw_image(self, source, src_rect=None, dest_rect=None,
                   blend=BlendMode.NORMAL, alpha=1.0):
        """Scale src_rect of source into dest_rect (x, y, w, h)."""

    def fill_circles(self, xs, ys, radii, colors, alphas=1.0, blend=BlendMode.NORMAL):
        """Fill many discs in order.

        Args:
            xs, ys, radii: 1D arrays
            colors: One colour for all discs or an (N, 3|4) array of 0-255
                components
            alphas: Scalar or per-disc alpha
        """
        n = len(xs)
        alphas = np.broadcast_to(np.asarray(alphas, dtype=np.float64), (n,))
        per_disc = not isinstance(colors, str) and np.ndim(colors) == 2
        for i in range(n):
            color = tuple(colors[i]) if per_disc else colors
            self.fill_circle(xs[i], ys[i], radii[i], color, blend, alphas[i])

    def clear(self, color=None):
        """Reset every pixel to color (transparent by default)."""
        w, h = self.size()
        fill = np.zeros((h, w, 4), dtype=np.uint8)
        if color is not None:
            fill[:] = to_uint8(to_unit(color))
        self.write_pixels(fill)


def _span_coverage(start, length, n):
    """Fraction of each of n unit pixels covered by [start, start + length)."""
    edges = np.arange(n, dtype=np.float64)
    lo = np.maximum(edges, start)
    hi = np.minimum(edges + 1.0, start + length)
    return np.clip(hi - lo, 0.0, 1.0)


class ArraySurface(Surface):
    """
    numpy-backed Surface.

    Pixels are kept as straight-alpha float32 in [0, 1] so that long
    runs of low-alpha fades (trail effects) converge instead of sticking
    at an 8-bit rounding floor.
    """

    def __init__(self, width, height, background=None):
        if width <= 0 or height <= 0:
            raise InvalidImageDimensions(width, height, what="surface")
        self.width = int(width)
        self.height = int(height)
        self.pixels = np.zeros((self.height, self.width, 4), dtype=np.float32)
        if background is not None:
            self.pixels[:] = to_unit(background)

    def size(self):
        return self.width, self.height

    # -- pixel access -------------------------------------------------------

    def _clip(self, x0, y0, x1, y1):
        x0 = max(0, int(math.floor(x0)))
        y0 = max(0, int(math.floor(y0)))
        x1 = min(self.width, int(math.ceil(x1)))
        y1 = min(self.height, int(math.ceil(y1)))
        if x1 <= x0 or y1 <= y0:
            return None
        return x0, y0, x1, y1

    def read_pixels(self, rect=None):
        if rect is None:
            return to_uint8(self.pixels)
        x, y, w, h = (int(v) for v in rect)
        if w <= 0 or h <= 0:
            raise InvalidImageDimensions(w, h, what="read rect")
        # Off-surface pixels read back as transparent black
        out = np.zeros((h, w, 4), dtype=np.uint8)
        box = self._clip(x, y, x + w, y + h)
        if box is not None:
            x0, y0, x1, y1 = box
            out[y0 - y:y1 - y, x0 - x:x1 - x] = to_uint8(self.pixels[y0:y1, x0:x1])
        return out

    def write_pixels(self, buffer, x=0, y=0):
        buffer = as_rgba(buffer)
        x, y = int(x), int(y)
        h, w = buffer.shape[:2]
        box = self._clip(x, y, x + w, y + h)
        if box is None:
            return
        x0, y0, x1, y1 = box
        self.pixels[y0:y1, x0:x1] = to_float(
            buffer[y0 - y:y1 - y, x0 - x:x1 - x])

    def to_image(self):
        return Image.fromarray(self.read_pixels())

    # -- shapes -------------------------------------------------------------

    def _blend_region(self, box, color, coverage, blend, alpha):
        x0, y0, x1, y1 = box
        composite(self.pixels[y0:y1, x0:x1], color, blend, alpha, coverage)

    def fill_rect(self, x, y, w, h, color, blend=BlendMode.NORMAL, alpha=1.0):
        if w <= 0 or h <= 0 or alpha <= 0:
            return
        box = self._clip(x, y, x + w, y + h)
        if box is None:
            return
        x0, y0, x1, y1 = box
        cov_x = _span_coverage(x - x0, w, x1 - x0)
        cov_y = _span_coverage(y - y0, h, y1 - y0)
        coverage = np.outer(cov_y, cov_x).astype(np.float32)
        self._blend_region(box, to_unit(color), coverage, blend, alpha)

    def fill_circle(self, cx, cy, radius, color, blend=BlendMode.NORMAL, alpha=1.0):
        if radius <= 0 or alpha <= 0:
            return
        box = self._clip(cx - radius - 1, cy - radius - 1, cx + radius + 1, cy + radius + 1)
        if box is None:
            return
        x0, y0, x1, y1 = box
        ys, xs = np.mgrid[y0:y1, x0:x1]
        dist = np.hypot(xs + 0.5 - cx, ys + 0.5 - cy)
        coverage = np.clip(radius + 0.5 - dist, 0.0, 1.0).astype(np.float32)
        self._blend_region(box, to_unit(color), coverage, blend, alpha)

    def stroke_path(self, subpaths, color, width=1.0, blend=BlendMode.NORMAL, alpha=1.0):
        """Stroke polylines with round joins.

        Sub-pixel widths are drawn one pixel wide with alpha scaled by the
        width. All subpaths share one coverage mask, so overlaps within a
        call do not compound; separate calls do.
        """
        paths = [np.asarray(p, dtype=np.float64).reshape(-1, 2) for p in subpaths]
        paths = [p for p in paths if len(p) >= 2]
        if not paths or alpha <= 0 or width <= 0:
            return
        pad = width / 2.0 + 1.0
        allpts = np.concatenate(paths)
        box = self._clip(allpts[:, 0].min() - pad, allpts[:, 1].min() - pad,
                         allpts[:, 0].max() + pad, allpts[:, 1].max() + pad)
        if box is None:
            return
        x0, y0, x1, y1 = box

        pixel_width = max(1, int(round(width)))
        mask = Image.new("L", (x1 - x0, y1 - y0), 0)
        draw = ImageDraw.Draw(mask)
        for p in paths:
            pts = [(float(px - x0), float(py - y0)) for px, py in p]
            draw.line(pts, fill=255, width=pixel_width, joint="curve")
        coverage = np.asarray(mask, dtype=np.float32) / 255.0
        if not coverage.any():
            return
        self._blend_region(box, to_unit(color), coverage, blend, alpha * min(1.0, width))

    def draw_image(self, source, src_rect=None, dest_rect=None,
                   blend=BlendMode.NORMAL, alpha=1.0):
        src_w, src_h = image_size(source)
        if src_w <= 0 or src_h <= 0:
            raise InvalidImageDimensions(src_w, src_h)
        if src_rect is None:
            src_rect = (0, 0, src_w, src_h)
        if dest_rect is None:
            dest_rect = (0, 0, self.width, self.height)
        dx, dy, dw, dh = dest_rect
        dw = int(round(dw))
        dh = int(round(dh))
        if dw <= 0 or dh <= 0 or alpha <= 0:
            return

        sx, sy, sw, sh = src_rect
        if (sx, sy, sw, sh) == (0, 0, src_w, src_h) and (dw, dh) == (src_w, src_h):
            layer = as_rgba(source)
        else:
            layer = resample(source, src_rect, dw, dh)

        ox = int(math.floor(dx + 0.5))
        oy = int(math.floor(dy + 0.5))
        box = self._clip(ox, oy, ox + dw, oy + dh)
        if box is None:
            return
        x0, y0, x1, y1 = box
        src = to_float(layer[y0 - oy:y1 - oy, x0 - ox:x1 - ox])
        composite(self.pixels[y0:y1, x0:x1], src, blend, alpha)
