"""
Particle Dissolve

The source image resampled into thousands of small particles: dense and
solid at the centre, thinning out and drifting more toward the edges
until they dissolve into the background.
"""

import math

from pydantic import Field
import numpy as np

from .analysis import luminance_map, radial_distance
from .colors import rgb, round_half_up
from .config import AMBER, PAPER, ColorValue, EffectOptions
from .effect_base import Effect
from .sampling import contrast, grayscale


class ParticleDissolveOptions(EffectOptions):
    density: int = Field(default=3, ge=1, le=64, description="Sampling stride in pixels")
    max_particle_size: float = Field(default=2.5, gt=0.0, le=50.0)
    bg_color: ColorValue = Field(default=PAPER)
    animated: bool = Field(default=True)
    accent_mix: float = Field(default=0.25, ge=0.0, le=1.0)
    accent_color: ColorValue = Field(default=AMBER)


class ParticleDissolve(Effect):
    effect_name = "particle_dissolve"
    effect_label = "Particle Dissolve"
    options_model = ParticleDissolveOptions
    min_images = 1

    def setup(self):
        o = self.options
        self.animated = o.animated
        self.time = 0
        w, h = self.width, self.height
        rng = self.rng

        source = self.composite_sources(first=("normal", 1.0), rest=("screen", 0.6))
        source = contrast(grayscale(source, 0.3), 1.15)

        gx, gy = np.meshgrid(np.arange(0, w, o.density), np.arange(0, h, o.density))
        gx = gx.ravel()
        gy = gy.ravel()
        colors = source[gy, gx, :3].astype(np.float64)
        brightness = luminance_map(colors)
        dist = radial_distance(gx, gy, w, h)

        skip = ((rng.random(len(gx)) < dist * 0.7) & (dist > 0.5)) | (brightness > 0.95)
        keep = ~skip
        gx, gy = gx[keep], gy[keep]
        colors, brightness, dist = colors[keep], brightness[keep], dist[keep]
        n = len(gx)

        accent = np.array(rgb(o.accent_color))
        self.colors = round_half_up(colors * (1 - o.accent_mix) + accent * o.accent_mix)
        edge_fade = np.maximum(0.0, 1.0 - dist * 0.8)
        self.alpha = edge_fade * (0.3 + brightness * 0.5)
        self.size = o.max_particle_size * (0.3 + (1 - brightness) * 0.7) * (0.5 + edge_fade * 0.5)

        self.x = gx + (rng.random(n) - 0.5) * o.density
        self.y = gy + (rng.random(n) - 0.5) * o.density
        self.drift = 0.2 + rng.random(n) * 0.5 + dist * 1.5
        self.drift_angle = rng.random(n) * 2 * math.pi

    def positions(self, time=None):
        """Drifted particle positions at a frame time."""
        t = self.time if time is None else time
        ox = np.sin(t * 0.01 + self.drift_angle) * self.drift
        oy = np.cos(t * 0.013 + self.drift_angle * 1.3) * self.drift
        return self.x + ox, self.y + oy

    def render(self):
        x, y = self.positions()
        self.surface.clear(self.options.bg_color)
        self.surface.fill_circles(x, y, self.size, self.colors, self.alpha)
        if self.animated:
            self.time += 1

    def teardown(self):
        self.x = self.y = None
        self.colors = self.alpha = self.size = None

    @property
    def stats(self):
        s = super().stats
        s["particles"] = 0 if self.x is None else len(self.x)
        return s
