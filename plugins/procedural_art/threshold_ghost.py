"""
Threshold Ghost

Each source image is reduced to a hard-thresholded silhouette, drawn as
small square cells in its own translucent tone and shifted sideways so
the layers overlap like multiple exposures. Everything fades radially
into the background; a little grain goes on top.
"""

from typing import List

from pydantic import Field
import numpy as np

from .blending import to_uint8
from .colors import to_unit
from .config import PAPER, ColorValue, EffectOptions
from .effect_base import Effect
from .sampling import add_grain, contrast, fit_cover, grayscale


class ThresholdGhostOptions(EffectOptions):
    thresholds: List[float] = Field(default=[0.45, 0.5, 0.55], min_length=1)
    colors: List[ColorValue] = Field(
        default=["rgba(217, 119, 6, 0.25)",
                 "rgba(168, 162, 158, 0.2)",
                 "rgba(120, 113, 108, 0.15)"],
        min_length=1)
    bg_color: ColorValue = Field(default=PAPER)
    fade_strength: float = Field(default=0.9, ge=0.0)
    cell_size: int = Field(default=2, ge=1, le=64)
    layer_offset: float = Field(default=0.15, description="Horizontal shift per layer, fraction of width")
    grain: float = Field(default=8.0, ge=0.0, le=255.0)


class ThresholdGhost(Effect):
    effect_name = "threshold_ghost"
    effect_label = "Threshold Ghost"
    options_model = ThresholdGhostOptions
    min_images = 1
    animated = False

    def setup(self):
        pass

    def silhouette(self, index):
        """
        RGBA layer for one image and its horizontal offset.

        Cells whose (grayscale, contrast-boosted) brightness falls below the
        layer threshold are filled with the layer colour, alpha scaled by a
        radial fade measured at the shifted position.
        """
        o = self.options
        w, h = self.width, self.height
        cell = o.cell_size
        threshold = o.thresholds[index % len(o.thresholds)]
        color = to_unit(o.colors[index % len(o.colors)])
        offset_x = (index - (len(self.images) - 1) / 2.0) * w * o.layer_offset

        buf = contrast(grayscale(fit_cover(self.images[index], w, h), 1.0), 1.4)
        xs = np.arange(0, w, cell)
        ys = np.arange(0, h, cell)
        bright = buf[ys][:, xs, 0] / 255.0

        dx = (xs + offset_x - w / 2.0) / (w / 2.0)
        dy = (ys - h / 2.0) / (h / 2.0)
        dist = np.sqrt(dx[np.newaxis, :] ** 2 + dy[:, np.newaxis] ** 2)
        fade = np.maximum(0.0, 1.0 - dist * o.fade_strength)

        cell_alpha = np.where((bright < threshold) & (fade > 0.02), fade * color[3], 0.0)
        alpha = np.repeat(np.repeat(cell_alpha, cell, axis=0), cell, axis=1)[:h, :w]

        layer = np.empty((h, w, 4), dtype=np.float32)
        layer[..., :3] = color[:3]
        layer[..., 3] = alpha
        return to_uint8(layer), offset_x

    def render(self):
        o = self.options
        self.surface.clear(o.bg_color)
        for index in range(len(self.images)):
            layer, offset_x = self.silhouette(index)
            self.surface.draw_image(layer, dest_rect=(offset_x, 0, self.width, self.height))
        if o.grain > 0:
            self.apply_to_surface(add_grain, o.grain, self.rng)
