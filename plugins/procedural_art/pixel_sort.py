"""
Pixel Sort

Two images merged left to right through a horizontal alpha gradient,
desaturated, then pixel-sorted along columns (or rows) within a
luminance band to produce glitch streaks. Finished with a warm overlay
tint and a vignette.
"""

from typing import Tuple

from pydantic import Field

from .blending import BlendMode
from .config import AMBER, ColorValue, EffectOptions, SortDirection
from .effect_base import Effect
from .sampling import (Layer, composite_layers, contrast, grayscale,
                       linear_alpha_gradient, mask_alpha, tint, vignette)
from .sorter import MIN_RUN_LENGTH, pixel_sort

MERGE_STOPS = [(0.0, 0.0), (0.3, 0.5), (0.7, 0.9), (1.0, 1.0)]


class PixelSortOptions(EffectOptions):
    direction: SortDirection = Field(default=SortDirection.vertical)
    threshold: Tuple[float, float] = Field(default=(0.2, 0.7),
                                           description="Luminance band (low, high) that gets sorted")
    sort_intensity: float = Field(default=0.7, ge=0.0, le=1.0)
    tint_color: ColorValue = Field(default=AMBER)
    tint_opacity: float = Field(default=0.12, ge=0.0, le=1.0)
    min_run_length: int = Field(default=MIN_RUN_LENGTH, ge=1)


class PixelSort(Effect):
    effect_name = "pixel_sort"
    effect_label = "Pixel Sort"
    options_model = PixelSortOptions
    min_images = 2
    animated = False

    def setup(self):
        pass

    def merged_source(self):
        """Second image faded in across the first, desaturated."""
        mask = linear_alpha_gradient(self.width, self.height, MERGE_STOPS)
        buf = composite_layers([
            Layer(self.images[0]),
            Layer(self.images[1], filter=lambda b: mask_alpha(b, mask)),
        ], self.width, self.height)
        return contrast(grayscale(buf, 0.5), 1.2)

    def render(self):
        o = self.options
        buf = pixel_sort(self.merged_source(), o.direction.value, o.threshold,
                         o.sort_intensity, o.min_run_length)
        buf = tint(buf, o.tint_color, o.tint_opacity, BlendMode.OVERLAY)
        buf = vignette(buf, self.height * 0.35, max(self.width, self.height) * 0.65, 0.5)
        self.surface.write_pixels(buf)
