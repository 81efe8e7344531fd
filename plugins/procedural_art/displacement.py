"""
Displacement

Two images cut into horizontal strips. Each strip shows one image or the
other, chosen by a slow vertical sine band, and is pushed sideways by
its own sine wave. Advancing the phase every frame makes the strips
undulate; with animated=False a single frame is drawn.
"""

import math

from pydantic import Field

from .blending import BlendMode
from .config import AMBER, ColorValue, EffectOptions
from .effect_base import Effect
from .sampling import contrast, fit_cover, grayscale, tint, vignette


class DisplacementOptions(EffectOptions):
    wave_amplitude: float = Field(default=30.0, ge=0.0)
    wave_frequency: float = Field(default=0.02, ge=0.0)
    strip_height: int = Field(default=4, ge=1)
    tint_color: ColorValue = Field(default=AMBER)
    animated: bool = Field(default=True)
    phase_step: float = Field(default=0.008, description="Phase advance per frame")


class Displacement(Effect):
    effect_name = "displacement"
    effect_label = "Displacement"
    options_model = DisplacementOptions
    min_images = 2

    def setup(self):
        self.animated = self.options.animated
        self.phase = 0.0
        self.layers = [
            contrast(grayscale(fit_cover(img, self.width, self.height), 0.3), 1.1)
            for img in self.images[:2]
        ]

    def strip_plan(self, phase=None):
        """(y, height, layer index, x offset) for every strip at a phase."""
        o = self.options
        phase = self.phase if phase is None else phase
        a, f = o.wave_amplitude, o.wave_frequency
        plan = []
        for y in range(0, self.height, o.strip_height):
            h = min(o.strip_height, self.height - y)
            band = (math.sin(y / self.height * math.pi * 6 + phase * 0.5) + 1) / 2
            if band > 0.5:
                plan.append((y, h, 0, math.sin(y * f + phase) * a))
            else:
                plan.append((y, h, 1, math.cos(y * f * 0.7 + phase * 1.3) * a * 0.6))
        return plan

    def render(self):
        o = self.options
        w, h = self.width, self.height
        self.surface.clear()
        for y, strip_h, index, offset in self.strip_plan():
            strip = self.layers[index][y:y + strip_h]
            self.surface.draw_image(strip, dest_rect=(offset, y, w, strip_h))

        self.apply_to_surface(tint, o.tint_color, 0.1, BlendMode.OVERLAY)
        self.apply_to_surface(vignette, h * 0.3, max(w, h) * 0.65, 0.45)

        if self.animated:
            self.phase += o.phase_step

    def teardown(self):
        self.layers = []
