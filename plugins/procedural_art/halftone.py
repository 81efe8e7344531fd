"""
Halftone

An image rendered as a grid of single-colour circles, darker pixels
giving bigger dots.
"""

from typing import Optional

from pydantic import Field

from .config import AMBER, ColorValue, EffectOptions
from .dots import DotGrid
from .effect_base import Effect
from .sampling import fit_cover


class HalftoneOptions(EffectOptions):
    dot_spacing: float = Field(default=8.0, ge=1.0, le=200.0)
    max_radius: Optional[float] = Field(
        default=None, gt=0.0, description="Defaults to 0.45 * dot_spacing")
    color: ColorValue = Field(default=AMBER)
    bg_color: ColorValue = Field(default="transparent")
    min_radius: float = Field(default=0.5, ge=0.0, description="Smaller dots are skipped")


class Halftone(Effect):
    effect_name = "halftone"
    effect_label = "Halftone"
    options_model = HalftoneOptions
    min_images = 1
    animated = False

    def setup(self):
        self.dots = None

    def render(self):
        o = self.options
        max_radius = o.max_radius if o.max_radius is not None else o.dot_spacing * 0.45
        source = fit_cover(self.images[0], self.width, self.height)
        grid = DotGrid.from_buffer(source, o.dot_spacing, max_radius)
        self.dots = grid.select(grid.radius > o.min_radius)

        self.surface.clear(o.bg_color)
        self.surface.fill_circles(self.dots.x, self.dots.y, self.dots.radius, o.color)

    def teardown(self):
        self.dots = None

    @property
    def stats(self):
        s = super().stats
        s["dots"] = len(self.dots) if self.dots is not None else 0
        return s
