"""
Halftone Alive

A halftone dot grid that breathes: every frame two animated fBm layers
modulate each dot. The first pulses radius and opacity, the second
shifts the dot colour between the source pixel and the accent.
"""

from typing import Optional

from pydantic import Field
import numpy as np

from .colors import rgb, round_half_up
from .config import AMBER, PAPER, ColorValue, EffectOptions
from .dots import DotGrid
from .effect_base import Effect
from .noise import NoiseField
from .sampling import fit_cover


CULL_DISTANCE = 1.2
EDGE_FALLOFF = 0.85
SEED_STRIDE = 43


class HalftoneAliveOptions(EffectOptions):
    dot_spacing: float = Field(default=5.0, ge=1.0, le=200.0)
    max_radius: Optional[float] = Field(
        default=None, gt=0.0, description="Defaults to 0.42 * dot_spacing")
    bg_color: ColorValue = Field(default=PAPER)
    accent_color: ColorValue = Field(default=AMBER)
    color_mix: float = Field(default=0.4, ge=0.0, le=1.0,
                             description="0 = pure accent, 1 = pure image colour")
    noise_scale: float = Field(default=0.008, gt=0.0)
    noise_speed: float = Field(default=0.0008, ge=0.0)
    pulse_amount: float = Field(default=0.35, ge=0.0, le=1.0,
                                description="How much noise affects dot size")
    color_shift_amount: float = Field(default=0.3, ge=0.0, le=1.0,
                                      description="How much noise shifts colour warmth")
    fade_edge: bool = Field(default=True)


class HalftoneAlive(Effect):
    effect_name = "halftone_alive"
    effect_label = "Halftone Alive"
    options_model = HalftoneAliveOptions
    min_images = 1

    def setup(self):
        o = self.options
        self.time = 0
        self.noise = NoiseField(seed=0)
        max_radius = o.max_radius if o.max_radius is not None else o.dot_spacing * 0.42

        source = fit_cover(self.images[0], self.width, self.height)
        grid = DotGrid.from_buffer(source, o.dot_spacing, max_radius, min_radius=0.3)
        if o.fade_edge:
            grid = grid.select(grid.distance() <= CULL_DISTANCE).fade_radial(EDGE_FALLOFF)
        self.dots = grid

    def _field(self, x, y, t):
        return np.asarray(self.noise.fbm(x, y, octaves=3, amplitude=0.5,
                                         seed_stride=SEED_STRIDE,
                                         offset=(t * 0.3, t * 0.2)))

    def render(self):
        o = self.options
        d = self.dots
        colors, alpha, radius = self.dot_styles(self.time * o.noise_speed)

        keep = (alpha >= 0.01) & (radius >= 0.2)
        self.surface.clear(o.bg_color)
        self.surface.fill_circles(d.x[keep], d.y[keep], radius[keep],
                                  colors[keep], alpha[keep])
        self.time += 1

    def dot_styles(self, t):
        """Per-dot (colors, alpha, radius) at noise time t."""
        o = self.options
        d = self.dots
        s = o.noise_scale

        n = self._field(d.x * s, d.y * s, t)
        n2 = self._field(d.x * s * 1.5 + 100, d.y * s * 1.5 + 100, t * 0.7)

        radius = np.maximum(0.2, d.radius * (1 + (n - 0.5) * 2 * o.pulse_amount))

        mix = np.clip(o.color_mix + (n2 - 0.5) * o.color_shift_amount, 0.0, 1.0)[:, np.newaxis]
        accent = np.array(rgb(o.accent_color))
        colors = round_half_up(d.rgb * mix + accent * (1 - mix))

        alpha = 0.3 + (1 - d.brightness) * 0.5 + (n - 0.5) * 0.15
        if o.fade_edge:
            alpha = alpha * d.edge_fade
        alpha = np.clip(alpha, 0.0, 1.0)
        return colors, alpha, radius

    def teardown(self):
        self.dots = None

    @property
    def stats(self):
        s = super().stats
        s["dots"] = len(self.dots) if self.dots is not None else 0
        return s
