"""
Topographic Contours

Pure generative: an fBm elevation field traced into iso-lines at evenly
spaced levels. Every fifth level is drawn heavier, like the index
contours on a survey map. No source image needed.
"""

import logging

from pydantic import Field

from .config import ColorValue, EffectOptions
from .effect_base import Effect
from .marching_squares import noise_grid, trace_levels
from .noise import NoiseField

logger = logging.getLogger(__name__)


class ContoursOptions(EffectOptions):
    levels: int = Field(default=20, ge=1, le=200, description="Number of iso-levels")
    line_color: ColorValue = Field(default="#a8a29e")
    bg_color: ColorValue = Field(default="transparent")
    scale: float = Field(default=0.006, gt=0.0, description="Noise frequency per pixel")
    line_width: float = Field(default=0.7, gt=0.0, le=20.0)
    step: int = Field(default=2, ge=1, le=64, description="Pixel stride of the elevation grid")
    octaves: int = Field(default=5, ge=1, le=10)
    lacunarity: float = Field(default=2.1, gt=1.0, le=4.0)
    noise_seed: int = Field(default=42)
    emphasis_every: int = Field(default=5, ge=0, description="Heavier line every Nth level (0 = never)")


class Contours(Effect):
    """Marching-squares contour map of value-noise terrain."""

    effect_name = "contours"
    effect_label = "Topographic Contours"
    options_model = ContoursOptions
    animated = False

    def setup(self):
        self.noise = NoiseField(seed=self.options.noise_seed)
        self.grid = None
        self.levels = []

    def render(self):
        o = self.options
        if self.noise.seed != o.noise_seed:
            self.noise = NoiseField(seed=o.noise_seed)
        self.grid = noise_grid(self.noise, self.width, self.height, step=o.step,
                               scale=o.scale, octaves=o.octaves, lacunarity=o.lacunarity)
        self.levels = trace_levels(self.grid, o.levels, step=o.step,
                                   line_width=o.line_width, emphasis_every=o.emphasis_every)

        self.surface.clear(o.bg_color)
        for level in self.levels:
            if level.segments:
                self.surface.stroke_path(level.segments, o.line_color,
                                         width=level.line_width, alpha=level.alpha)
        logger.debug("Traced %d contour segments over %d levels",
                     sum(len(lv.segments) for lv in self.levels), len(self.levels))

    def teardown(self):
        self.grid = None
        self.levels = []

    @property
    def stats(self):
        s = super().stats
        s["segments"] = sum(len(lv.segments) for lv in self.levels)
        return s
