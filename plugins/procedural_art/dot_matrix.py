"""
Dot Matrix

Two images blended additively and shown as an LED-style grid of dots
(or squares) whose size and opacity follow brightness, with faint
scanlines across the result.
"""

from pydantic import Field

from .blending import BlendMode
from .config import AMBER, INK, ColorValue, DotShape, EffectOptions
from .dots import DotGrid
from .effect_base import Effect
from .sampling import Layer, composite_layers


class DotMatrixOptions(EffectOptions):
    cell_size: float = Field(default=6.0, gt=0.0, le=200.0)
    gap: float = Field(default=2.0, ge=0.0, le=200.0)
    shape: DotShape = Field(default=DotShape.circle)
    bg_color: ColorValue = Field(default=INK)
    monochrome: bool = Field(default=False)
    mono_color: ColorValue = Field(default=AMBER)
    min_brightness: float = Field(default=0.05, ge=0.0, le=1.0)
    scanline_alpha: float = Field(default=0.1, ge=0.0, le=1.0)
    scanline_spacing: int = Field(default=3, ge=1)


class DotMatrix(Effect):
    effect_name = "dot_matrix"
    effect_label = "Dot Matrix"
    options_model = DotMatrixOptions
    min_images = 2
    animated = False

    def setup(self):
        self.dots = None

    def render(self):
        o = self.options
        w, h = self.width, self.height
        source = composite_layers([
            Layer(self.images[0], BlendMode.NORMAL, 0.6),
            Layer(self.images[1], BlendMode.LIGHTER, 0.5),
        ], w, h)

        step = o.cell_size + o.gap
        grid = DotGrid.from_buffer(source, step, max_radius=o.cell_size / 2.0)
        d = self.dots = grid.select(grid.brightness >= o.min_brightness)

        if o.monochrome:
            colors, alpha = o.mono_color, d.brightness
        else:
            colors, alpha = d.rgb, 0.3 + d.brightness * 0.7
        scale = 0.4 + d.brightness * 0.6

        self.surface.clear(o.bg_color)
        if o.shape is DotShape.circle:
            self.surface.fill_circles(d.x, d.y, o.cell_size / 2.0 * scale, colors, alpha)
        else:
            sizes = o.cell_size * scale
            for i in range(len(d)):
                color = o.mono_color if o.monochrome else tuple(colors[i])
                self.surface.fill_rect(d.x[i] - sizes[i] / 2, d.y[i] - sizes[i] / 2,
                                       sizes[i], sizes[i], color, alpha=float(alpha[i]))

        for y in range(0, h, o.scanline_spacing):
            self.surface.fill_rect(0, y, w, 1, "#000000", alpha=o.scanline_alpha)

    def teardown(self):
        self.dots = None
