"""
Edge Trace

Pathfinders crawl through a blend of the source images, steering along
Sobel edges and leaving trails coloured by the pixels underneath, mixed
with an accent. Pathfinders are seeded on strong edges and reseeded there
when they die. The drawing stops by itself after a fixed number of
frames, leaving a finished etching.
"""

import logging

from pydantic import Field
import numpy as np

from .analysis import edge_map, edge_points, radial_distance
from .colors import rgb, round_half_up
from .config import AMBER, PAPER, ColorValue, EffectOptions
from .effect_base import Effect
from .particles import EdgeSeeking, ParticleSystem, Seeder

logger = logging.getLogger(__name__)

SEED_THRESHOLD = 100
SEED_MARGIN = 10
SEED_STRIDE = 3
ACCENT_MIX = 0.4


class EdgeTraceOptions(EffectOptions):
    pathfinder_count: int = Field(default=300, ge=1, le=20000)
    speed: float = Field(default=1.5, gt=0.0, le=50.0)
    line_width: float = Field(default=0.6, gt=0.0, le=10.0)
    accent_color: ColorValue = Field(default=AMBER)
    bg_color: ColorValue = Field(default=PAPER)
    fade_edge: bool = Field(default=True)
    follow_threshold: float = Field(default=50.0, ge=0.0, le=255.0,
                                    description="Edge strength a pathfinder follows")
    max_frames: int = Field(default=400, ge=1)


class EdgeTrace(Effect):
    effect_name = "edge_trace"
    effect_label = "Edge Trace"
    options_model = EdgeTraceOptions
    min_images = 1

    def setup(self):
        o = self.options
        self.max_frames = o.max_frames
        n = len(self.images)
        self.source = self.composite_sources(first=("normal", 1.0 / n),
                                             rest=("screen", 1.0 / n))
        self.edges = np.floor(edge_map(self.source))

        points = edge_points(self.edges, SEED_THRESHOLD, SEED_MARGIN, SEED_STRIDE)
        seeder = Seeder.from_points(points, self.width, self.height, rng=self.rng)
        self.particles = ParticleSystem(
            o.pathfinder_count, self.width, self.height,
            speed=o.speed, speed_jitter=(0.5, 1.5), life_range=(150, 450),
            margin=SEED_MARGIN, seeder=seeder, keep_speed=True, rng=self.rng)
        self.steering = EdgeSeeking(self.edges, lookahead=4, spread=0.5, candidates=5,
                                    threshold=o.follow_threshold, jitter=0.2, wander=0.8,
                                    rng=self.rng)
        logger.debug("Edge trace seeded from %d edge points", len(points))
        self.surface.clear(o.bg_color)

    def render(self):
        ps = self.particles
        px = np.floor(ps.x).astype(np.int64)
        py = np.floor(ps.y).astype(np.int64)

        local, inside = self.steering.steer(ps)
        ps.advance(mask=inside)

        alpha = self.trail_alpha()
        for i in np.flatnonzero(inside & (alpha > 0.01)):
            color, width = self.trail_style(self.source[py[i], px[i], :3], local[i])
            self.surface.stroke_path([((ps.prev_x[i], ps.prev_y[i]), (ps.x[i], ps.y[i]))],
                                     color, width=width, alpha=float(alpha[i]))

        ps.recycle()

    def trail_style(self, under, strength):
        """Stroke colour and width over a source pixel with edge strength 0-255."""
        o = self.options
        under = np.asarray(under, dtype=np.float64)
        accent = np.array(rgb(o.accent_color))
        color = tuple(round_half_up(under * (1 - ACCENT_MIX) + accent * ACCENT_MIX).tolist())
        return color, o.line_width + strength / 255.0 * 1.5

    def trail_alpha(self):
        """Per-pathfinder stroke alpha, scaled by lifetime and distance from centre."""
        ps = self.particles
        edge_fade = 1.0
        if self.options.fade_edge:
            dist = radial_distance(ps.x, ps.y, self.width, self.height)
            edge_fade = np.maximum(0.0, 1.0 - dist * 0.9)
        return ps.life_fade(20) * edge_fade * 0.6

    def teardown(self):
        self.source = None
        self.edges = None
        self.particles = None
        self.steering = None

    @property
    def stats(self):
        s = super().stats
        if self.particles is not None:
            s.update(self.particles.stats)
        return s
