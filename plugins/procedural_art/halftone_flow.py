"""
Halftone Flow

A static halftone dot grid with an invisible flow field running on top.
Flow particles never draw; they stamp presence into a decaying density
map aligned to the dot grid. Where particles converge the source image's
true colour bleeds through; where they are sparse the dots stay a muted,
accent-tinted grey.

Supports sampling a vertical band of a tall source image (crop_region)
and fading toward one edge instead of radially, for split layouts.
"""

import logging
from typing import Optional, Tuple

from pydantic import Field
import numpy as np

from .colors import rgb, round_half_up
from .config import AMBER, PAPER, ColorValue, EffectOptions, FadeDirection
from .density import DEFAULT_DECAY, DensityMap
from .dots import DotGrid
from .effect_base import Effect
from .noise import NoiseField
from .particles import DensityStamping, NoiseAdvection, ParticleSystem
from .sampling import crop_vertical, fit_width

logger = logging.getLogger(__name__)

SEED_STRIDE = 43
RADIAL_FALLOFF = 0.7
MAX_RADIUS_FRACTION = 0.48


class HalftoneFlowOptions(EffectOptions):
    dot_spacing: float = Field(default=5.0, ge=1.0, le=200.0)
    max_radius: Optional[float] = Field(
        default=None, gt=0.0, description="Defaults to 0.48 * dot_spacing")
    bg_color: ColorValue = Field(default=PAPER)
    accent_color: ColorValue = Field(default=AMBER)
    particle_count: int = Field(default=2500, ge=0, le=100000)
    flow_noise_scale: float = Field(default=0.003, gt=0.0)
    flow_speed: float = Field(default=0.8, ge=0.0, le=50.0)
    color_bleed_strength: float = Field(default=0.9, ge=0.0, le=1.0)
    fade_edge: bool = Field(default=True)
    crop_region: Tuple[float, float] = Field(
        default=(0.0, 1.0), description="Vertical band of the source as (start, end) fractions")
    fade_direction: FadeDirection = Field(default=FadeDirection.radial)
    fade_amount: float = Field(default=0.5, gt=0.0, le=1.0,
                               description="How far the directional fade extends")
    decay: float = Field(default=DEFAULT_DECAY, ge=0.0, le=1.0)


class HalftoneFlow(Effect):
    effect_name = "halftone_flow"
    effect_label = "Halftone Flow"
    options_model = HalftoneFlowOptions
    min_images = 1

    def setup(self):
        o = self.options
        self.time = 0
        spacing = o.dot_spacing
        max_radius = o.max_radius if o.max_radius is not None else spacing * MAX_RADIUS_FRACTION

        full = fit_width(self.images[0], self.width)
        source = crop_vertical(full, o.crop_region, target_height=self.height)
        grid = DotGrid.from_buffer(source, spacing, max_radius, min_radius=0.3)
        if o.fade_edge:
            if o.fade_direction is FadeDirection.radial:
                grid = grid.fade_radial(RADIAL_FALLOFF, cull=0.01)
            else:
                grid = grid.fade_directional(o.fade_direction, o.fade_amount, cull=0.01)
        self.dots = grid

        self.noise = NoiseField(seed=0)
        self.density = DensityMap(self.width, self.height, spacing, decay=o.decay)
        self.particles = ParticleSystem(o.particle_count, self.width, self.height,
                                        speed=o.flow_speed, rng=self.rng)
        self.steering = NoiseAdvection(
            self.noise, scale=o.flow_noise_scale, time_rate=(0.0003, 0.0002),
            harmonic=2.0, octaves=4, seed_stride=SEED_STRIDE)
        self.stamping = DensityStamping(
            self.density, self.noise, scale=o.flow_noise_scale, macro=0.4,
            time_rate=(0.00008, 0.00006), octaves=3, radius=3, weight=0.12,
            floor=0.1, seed_stride=SEED_STRIDE)
        logger.debug("Halftone flow grid: %d dots, %dx%d density cells",
                     len(self.dots), self.density.cols, self.density.rows)

    def update_theme(self, bg_color, accent_color):
        """Swap background and accent; takes effect on the next frame."""
        self.set_params(bg_color=bg_color, accent_color=accent_color)

    def simulate(self):
        """Advance the invisible flow one tick and update the density map."""
        self.density.decay()
        if self.particles.count:
            self.steering.steer(self.particles, self.time)
            self.particles.advance()
            self.stamping.stamp(self.particles, self.time)
            self.particles.recycle()

    def render(self):
        o = self.options
        d = self.dots
        self.simulate()

        density = self.density.sample(d.cell_x, d.cell_y).astype(np.float64)
        colors, alpha, radius = self.dot_styles(density)

        keep = (alpha >= 0.01) & (radius >= 0.2)
        self.surface.clear(o.bg_color)
        self.surface.fill_circles(d.x[keep], d.y[keep], radius[keep],
                                  colors[keep], alpha[keep])
        self.time += 1

    def dot_styles(self, density):
        """Per-dot (colors, alpha, radius) for the given density at each dot."""
        o = self.options
        d = self.dots
        density = np.asarray(density, dtype=np.float64)

        # desaturate ~60%, then tint ~20% toward the accent
        accent = np.array(rgb(o.accent_color))
        grey = (d.brightness * 255.0)[:, np.newaxis]
        image = d.rgb
        base = grey * 0.6 + image * 0.2 + accent * 0.2
        bleed = (density * o.color_bleed_strength)[:, np.newaxis]
        colors = round_half_up(base * (1 - bleed) + image * bleed)

        alpha = np.minimum(1.0, (0.45 + (1 - d.brightness) * 0.4) * d.edge_fade * (1 + density * 0.2))
        radius = np.minimum(d.radius * (1 + density * 0.25), o.dot_spacing * MAX_RADIUS_FRACTION)
        return colors, alpha, radius

    def teardown(self):
        self.dots = None
        self.density = None
        self.particles = None

    @property
    def stats(self):
        s = super().stats
        if self.density is not None:
            s["dots"] = len(self.dots)
            s["density_total"] = self.density.total
        return s
