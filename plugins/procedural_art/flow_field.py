"""
Flow Field

Pure generative particle trails. Particles are advected through a slowly
scrolling fBm angle field; each frame the canvas is washed with a
translucent layer of the background colour so older trails fade out.
"""

from pydantic import Field
import numpy as np

from .config import PAPER, ColorValue, EffectOptions
from .effect_base import Effect
from .noise import NoiseField
from .particles import NoiseAdvection, ParticleSystem


class FlowFieldOptions(EffectOptions):
    particle_count: int = Field(default=1500, ge=1, le=100000)
    noise_scale: float = Field(default=0.003, gt=0.0)
    speed: float = Field(default=1.5, ge=0.0, le=50.0)
    trail_color: ColorValue = Field(default="rgba(217, 119, 6, 0.3)")
    bg_color: ColorValue = Field(default=PAPER)
    fade_alpha: float = Field(default=0.02, ge=0.0, le=1.0,
                              description="Background wash applied every frame")
    line_width: float = Field(default=0.8, gt=0.0, le=10.0)
    octaves: int = Field(default=4, ge=1, le=8)
    time_rate: float = Field(default=0.0003, ge=0.0,
                             description="Vertical scroll of the angle field per frame")


class FlowField(Effect):
    """Noise-advected particles leaving fading trails."""

    effect_name = "flow_field"
    effect_label = "Flow Field"
    options_model = FlowFieldOptions

    def setup(self):
        o = self.options
        self.time = 0
        self.noise = NoiseField(seed=0)
        self.particles = ParticleSystem(
            o.particle_count, self.width, self.height,
            speed=o.speed, speed_jitter=(0.5, 1.0), life_range=(100, 300),
            rng=self.rng)
        self.steering = NoiseAdvection(
            self.noise, scale=o.noise_scale, time_rate=(0.0, o.time_rate),
            harmonic=2.0, octaves=o.octaves, seed_stride=0)
        self.surface.clear(o.bg_color)

    def render(self):
        o = self.options
        ps = self.particles
        self.steering.scale = o.noise_scale
        self.steering.time_rate = (0.0, o.time_rate)

        self.surface.fill_rect(0, 0, self.width, self.height, o.bg_color[:3],
                               alpha=o.fade_alpha)

        self.steering.steer(ps, self.time)
        ps.advance()

        self.draw_trails(np.flatnonzero(ps.age > 1))

        ps.recycle()
        self.time += 1

    def draw_trails(self, indices):
        """Stroke each particle's last step on its own.

        Crossing trails compound their alpha, so dense regions build up
        darker than a single shared path would.
        """
        o = self.options
        ps = self.particles
        for i in indices:
            segment = [(ps.prev_x[i], ps.prev_y[i]), (ps.x[i], ps.y[i])]
            self.surface.stroke_path([segment], o.trail_color, width=o.line_width)

    def teardown(self):
        self.particles = None
        self.steering = None

    @property
    def stats(self):
        s = super().stats
        if self.particles is not None:
            s.update(self.particles.stats)
        return s
