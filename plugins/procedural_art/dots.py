"""
Halftone Dot Grids

A DotGrid is the precomputed sample lattice behind every halftone look:
one dot per cell centre, with a base radius from inverse luminance, the
source colour under it and a cached edge-fade weight. Grids are built
once per image and never mutated; renderers vary size and colour per
frame from these base attributes.
"""

from collections import namedtuple
import math

import numpy as np

from .analysis import luminance_map, radial_distance
from .config import FadeDirection


Dot = namedtuple("Dot", ["x", "y", "radius", "r", "g", "b", "brightness",
                         "edge_fade", "cell_x", "cell_y"])

SIDE_FADE = 0.4


def radial_fade(x, y, width, height, falloff):
    """1 - dist * falloff, floored at 0, dist normalised per axis."""
    return np.maximum(0.0, 1.0 - radial_distance(x, y, width, height) * falloff)


def directional_fade(x, y, width, height, direction, amount=0.5, side=SIDE_FADE):
    """
    Linear fade toward one edge plus a gentle fade at the sides.

    Args:
        direction: "down" (solid top, fading bottom) or "up"
        amount: Fraction of the height the fade spans
        side: Strength of the left/right fade
    """
    direction = FadeDirection(direction)
    progress = np.asarray(y, dtype=np.float64) / height
    if direction is FadeDirection.up:
        progress = 1.0 - progress
    start = 1.0 - amount
    span = max(amount, 1e-9)
    fade = np.where(progress < start, 1.0, np.maximum(0.0, 1.0 - (progress - start) / span))
    cx = width / 2.0
    dx = np.abs(np.asarray(x, dtype=np.float64) - cx) / cx
    return fade * np.maximum(0.0, 1.0 - dx * side)


class DotGrid:
    """Struct-of-arrays collection of Dots."""

    fields = Dot._fields

    def __init__(self, spacing, width, height, **columns):
        self.spacing = spacing
        self.width = width
        self.height = height
        for name in self.fields:
            setattr(self, name, np.asarray(columns[name]))

    @classmethod
    def from_buffer(cls, buffer, spacing, max_radius, min_radius=0.0):
        """
        Sample buffer at every cell centre (spacing/2 + k * spacing).

        Dots whose base radius falls below min_radius are dropped.
        """
        h, w = buffer.shape[:2]
        xs = np.arange(spacing / 2.0, w, spacing)
        ys = np.arange(spacing / 2.0, h, spacing)
        gx, gy = np.meshgrid(xs, ys)
        gx = gx.ravel()
        gy = gy.ravel()
        px = np.minimum(np.floor(gx).astype(np.int64), w - 1)
        py = np.minimum(np.floor(gy).astype(np.int64), h - 1)
        rgb = buffer[py, px, :3].astype(np.float64)
        brightness = luminance_map(rgb)
        radius = max_radius * (1.0 - brightness)

        grid = cls(spacing, w, h,
                   x=gx, y=gy, radius=radius,
                   r=rgb[:, 0], g=rgb[:, 1], b=rgb[:, 2],
                   brightness=brightness,
                   edge_fade=np.ones_like(gx),
                   cell_x=np.floor(gx / spacing).astype(np.int64),
                   cell_y=np.floor(gy / spacing).astype(np.int64))
        if min_radius > 0:
            grid = grid.select(radius >= min_radius)
        return grid

    def select(self, mask):
        return DotGrid(self.spacing, self.width, self.height,
                       **{name: getattr(self, name)[mask] for name in self.fields})

    def with_edge_fade(self, edge_fade, cull=0.0):
        """Copy with a new edge_fade column; dots with fade < cull are dropped."""
        columns = {name: getattr(self, name) for name in self.fields}
        columns["edge_fade"] = np.asarray(edge_fade, dtype=np.float64)
        grid = DotGrid(self.spacing, self.width, self.height, **columns)
        if cull > 0:
            grid = grid.select(grid.edge_fade >= cull)
        return grid

    def fade_radial(self, falloff, cull=0.0):
        return self.with_edge_fade(
            radial_fade(self.x, self.y, self.width, self.height, falloff), cull)

    def fade_directional(self, direction, amount=0.5, cull=0.0):
        return self.with_edge_fade(
            directional_fade(self.x, self.y, self.width, self.height, direction, amount), cull)

    def distance(self):
        return radial_distance(self.x, self.y, self.width, self.height)

    @property
    def rgb(self):
        return np.stack([self.r, self.g, self.b], axis=1)

    @property
    def cols(self):
        return max(1, math.ceil(self.width / self.spacing))

    @property
    def rows(self):
        return max(1, math.ceil(self.height / self.spacing))

    def __len__(self):
        return len(self.x)

    def __iter__(self):
        for values in zip(*(getattr(self, name).tolist() for name in self.fields)):
            yield Dot(*values)
