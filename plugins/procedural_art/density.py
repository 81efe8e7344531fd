"""
Decaying Density Map

Coarse float grid that remembers where particles have recently been.
Every tick all cells decay multiplicatively; particles stamp weight into
nearby cells with a linear falloff. With the default 0.92 decay a cell
loses half its value in about eight ticks, which turns a sparse moving
particle cloud into smooth, persistent pools.
"""

import math
import numpy as np


DEFAULT_DECAY = 0.92


class DensityMap:
    """Grid of accumulated particle presence aligned to cell_size pixels."""

    def __init__(self, width, height, cell_size, decay=DEFAULT_DECAY):
        self.cell_size = cell_size
        self.cols = max(1, math.ceil(width / cell_size))
        self.rows = max(1, math.ceil(height / cell_size))
        self.decay_rate = decay
        self.values = np.zeros((self.rows, self.cols), dtype=np.float32)
        self._kernels = {}

    def decay(self):
        """Multiply every cell by the decay rate."""
        self.values *= np.float32(self.decay_rate)

    def clear(self):
        self.values[:] = 0

    def _kernel(self, radius):
        """Offsets within radius and their linear falloff weights."""
        if radius not in self._kernels:
            r = int(radius)
            dy, dx = np.mgrid[-r:r + 1, -r:r + 1]
            dist = np.sqrt(dx * dx + dy * dy)
            keep = dist <= radius
            falloff = 1.0 - dist[keep] / (radius + 1)
            self._kernels[radius] = (dx[keep], dy[keep], falloff)
        return self._kernels[radius]

    def stamp(self, x, y, radius=3, weight=0.12, modulation=1.0):
        """
        Add presence around pixel positions (x, y).

        Each cell within radius (in cells) of a stamp gains
        weight * (1 - d / (radius + 1)) * modulation. Cells are capped at 1.

        Args:
            x, y: Pixel coordinates (scalars or arrays)
            radius: Stamp radius in cells
            weight: Peak weight at the centre cell
            modulation: Scalar or per-stamp intensity multiplier
        """
        x = np.atleast_1d(np.asarray(x, dtype=np.float64))
        y = np.atleast_1d(np.asarray(y, dtype=np.float64))
        mod = np.broadcast_to(np.asarray(modulation, dtype=np.float64), x.shape)
        gx = np.floor(x / self.cell_size).astype(np.int64)
        gy = np.floor(y / self.cell_size).astype(np.int64)

        for dx, dy, falloff in zip(*self._kernel(radius)):
            nx = gx + dx
            ny = gy + dy
            ok = (nx >= 0) & (nx < self.cols) & (ny >= 0) & (ny < self.rows)
            if not ok.any():
                continue
            np.add.at(self.values, (ny[ok], nx[ok]),
                      (weight * falloff * mod[ok]).astype(np.float32))
        np.minimum(self.values, 1.0, out=self.values)

    def sample(self, cell_x, cell_y):
        """Density at cell coordinates; cells outside the grid read as 0."""
        cx = np.asarray(cell_x, dtype=np.int64)
        cy = np.asarray(cell_y, dtype=np.int64)
        ok = (cx >= 0) & (cx < self.cols) & (cy >= 0) & (cy < self.rows)
        out = np.where(ok, self.values[np.clip(cy, 0, self.rows - 1),
                                       np.clip(cx, 0, self.cols - 1)], 0.0)
        if out.ndim == 0:
            return float(out)
        return out.astype(np.float32)

    def at_pixel(self, x, y):
        """Density of the cell containing pixel (x, y)."""
        return self.sample(np.floor(np.asarray(x) / self.cell_size),
                           np.floor(np.asarray(y) / self.cell_size))

    @property
    def total(self):
        return float(self.values.sum())
