"""
Double Exposure

Two desaturated images blended with a screen (or any other) blend mode,
then colour graded: a multiply tint, a faint warm overlay, a vignette
and film grain.
"""

from pydantic import Field

from .blending import BlendMode
from .config import AMBER, ColorValue, EffectOptions
from .effect_base import Effect
from .sampling import (Layer, add_grain, composite_layers, contrast, grayscale,
                       tint, vignette)


class DoubleExposureOptions(EffectOptions):
    blend_mode: BlendMode = Field(default=BlendMode.SCREEN)
    tint_color: ColorValue = Field(default=AMBER)
    tint_opacity: float = Field(default=0.15, ge=0.0, le=1.0)
    vignette_strength: float = Field(default=0.6, ge=0.0, le=1.0)
    contrast: float = Field(default=1.1, ge=0.0, le=4.0)
    grain: float = Field(default=0.03, ge=0.0, le=1.0,
                         description="Grain amplitude as a fraction of full scale")


class DoubleExposure(Effect):
    effect_name = "double_exposure"
    effect_label = "Double Exposure"
    options_model = DoubleExposureOptions
    min_images = 2
    animated = False

    def setup(self):
        pass

    def render(self):
        o = self.options
        w, h = self.width, self.height
        buf = composite_layers([
            Layer(self.images[0],
                  filter=lambda b: contrast(grayscale(b, 0.4), o.contrast)),
            Layer(self.images[1], o.blend_mode,
                  filter=lambda b: contrast(grayscale(b, 0.6), o.contrast * 0.9)),
        ], w, h)

        buf = tint(buf, o.tint_color, o.tint_opacity, BlendMode.MULTIPLY)
        buf = tint(buf, o.tint_color, 0.08, BlendMode.OVERLAY)
        if o.vignette_strength > 0:
            buf = vignette(buf, h * 0.3, max(w, h) * 0.7, o.vignette_strength)
        if o.grain > 0:
            buf = add_grain(buf, 255.0 * o.grain, self.rng)
        self.surface.write_pixels(buf)
