"""
Luminance Scatter

Stippling by rejection sampling: random points are accepted with a
probability that grows as the pixel underneath gets darker, so dark
areas become dense clusters and light areas stay sparse. Points fade out
radially toward the edges.
"""

from typing import Optional

from pydantic import Field
import numpy as np

from .analysis import luminance_map, radial_distance
from .config import PAPER, ColorValue, EffectOptions
from .effect_base import Effect
from .sampling import contrast


class LuminanceScatterOptions(EffectOptions):
    point_count: int = Field(default=30000, ge=0, le=1000000)
    max_size: float = Field(default=1.8, gt=0.0, le=50.0)
    bg_color: ColorValue = Field(default=PAPER)
    mono_color: Optional[ColorValue] = Field(default=None, description="None = source colours")
    fade_radius: float = Field(default=0.85, gt=0.0)
    attempts_factor: int = Field(default=5, ge=1, description="Candidate points per placed point")
    jitter: float = Field(default=3.0, ge=0.0)


class LuminanceScatter(Effect):
    effect_name = "luminance_scatter"
    effect_label = "Luminance Scatter"
    options_model = LuminanceScatterOptions
    min_images = 1
    animated = False

    def setup(self):
        self.points = None

    def scatter(self, source):
        """
        Draw candidates and keep the first point_count that pass.

        Returns:
            dict of x, y, size, alpha, colors arrays
        """
        o = self.options
        w, h = self.width, self.height
        rng = self.rng
        attempts = o.point_count * o.attempts_factor

        x = rng.random(attempts) * w
        y = rng.random(attempts) * h
        colors = source[np.floor(y).astype(np.int64), np.floor(x).astype(np.int64), :3]
        darkness = 1.0 - luminance_map(colors)

        accept = rng.random(attempts) <= darkness * 0.8 + 0.1
        dist = radial_distance(x, y, w, h)
        fade = np.maximum(0.0, 1.0 - (dist / o.fade_radius) ** 2)
        accept &= fade >= 0.02
        chosen = np.flatnonzero(accept)[:o.point_count]
        n = len(chosen)

        return {
            "x": x[chosen] + (rng.random(n) - 0.5) * o.jitter,
            "y": y[chosen] + (rng.random(n) - 0.5) * o.jitter,
            "size": o.max_size * (0.3 + darkness[chosen] * 0.7),
            "alpha": fade[chosen] * (0.15 + darkness[chosen] * 0.55),
            "colors": colors[chosen].astype(np.float64),
        }

    def render(self):
        o = self.options
        source = self.composite_sources(first=("normal", 1.0), rest=("screen", 0.5))
        source = contrast(source, 1.2)
        p = self.points = self.scatter(source)

        self.surface.clear(o.bg_color)
        colors = o.mono_color if o.mono_color is not None else p["colors"]
        self.surface.fill_circles(p["x"], p["y"], p["size"], colors, p["alpha"])

    def teardown(self):
        self.points = None

    @property
    def stats(self):
        s = super().stats
        s["points"] = 0 if self.points is None else len(self.points["x"])
        return s
