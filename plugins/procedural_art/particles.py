"""
Advected Particle System

Fixed-size particle population stored as parallel numpy arrays. Each tick
a steering policy updates headings, particles advance along them, and any
particle that outlives its lifetime or leaves the (margin-extended)
canvas is reseeded in place. Nothing is ever allocated per tick, so a
particle system can run indefinitely.

Steering policies:
  - NoiseAdvection:  heading from an fBm field scrolling through time
  - EdgeSeeking:     follow the strongest nearby Sobel edge, else wander
  - DensityStamping: particles deposit presence into a DensityMap
"""

import logging
import math

import numpy as np

from .errors import EmptySampleSet

logger = logging.getLogger(__name__)

TWO_PI = 2.0 * math.pi


class Seeder:
    """Spawn positions: uniform over the canvas, or picked from a point set."""

    def __init__(self, width, height, points=None, rng=None):
        self.width = width
        self.height = height
        self.rng = rng if rng is not None else np.random.default_rng()
        if points is not None and len(points) == 0:
            points = None
        self.points = None if points is None else np.asarray(points, dtype=np.float64)

    @classmethod
    def from_points(cls, points, width, height, rng=None, strict=False):
        """Seed from points, falling back to uniform seeding when empty.

        Args:
            points: (N, 2) array of (x, y)
            strict: Raise EmptySampleSet instead of falling back
        """
        if points is None or len(points) == 0:
            if strict:
                raise EmptySampleSet("no seed points above threshold")
            logger.warning("No seed points found; falling back to uniform seeding")
            return cls(width, height, None, rng)
        return cls(width, height, points, rng)

    @property
    def uniform(self):
        return self.points is None

    def sample(self, n):
        """Return (xs, ys) for n new particles."""
        if self.points is None:
            return (self.rng.random(n) * self.width,
                    self.rng.random(n) * self.height)
        idx = self.rng.integers(0, len(self.points), size=n)
        chosen = self.points[idx]
        return chosen[:, 0].copy(), chosen[:, 1].copy()


class ParticleSystem:
    """
    Struct-of-arrays particle population.

    Args:
        count: Number of particles (fixed for the lifetime of the system)
        width, height: Canvas bounds
        speed: Base speed in pixels per tick
        speed_jitter: (lo, hi) multiplier range applied per particle
        life_range: (min, max) lifetime in ticks, or None for immortal
        margin: Particles may drift this far outside the canvas before
            being reseeded
        seeder: Seeder for spawn positions (uniform by default)
        keep_speed: If True, speed and hue are rolled once at creation and
            survive every later respawn
        rng: numpy Generator for all randomness
    """

    def __init__(self, count, width, height, speed=1.0, speed_jitter=(1.0, 1.0),
                 life_range=None, margin=0.0, seeder=None, keep_speed=False, rng=None):
        self.count = int(count)
        self.width = width
        self.height = height
        self.base_speed = speed
        self.speed_jitter = speed_jitter
        self.life_range = life_range
        self.margin = margin
        self.keep_speed = keep_speed
        self.rng = rng if rng is not None else np.random.default_rng()
        self.seeder = seeder if seeder is not None else Seeder(width, height, rng=self.rng)

        n = self.count
        self.x = np.zeros(n, dtype=np.float64)
        self.y = np.zeros(n, dtype=np.float64)
        self.prev_x = np.zeros(n, dtype=np.float64)
        self.prev_y = np.zeros(n, dtype=np.float64)
        self.angle = np.zeros(n, dtype=np.float64)
        self.speed = np.zeros(n, dtype=np.float64)
        self.age = np.zeros(n, dtype=np.int64)
        self.max_life = np.full(n, np.inf, dtype=np.float64)
        self.hue = np.zeros(n, dtype=np.float64)

        self.respawn(np.ones(n, dtype=bool), reroll_speed=True)

    def respawn(self, mask, reroll_speed=None):
        """Reseed the particles selected by mask in place.

        Position, heading, age and lifetime are always re-rolled. Speed and
        hue are re-rolled unless the system keeps them (see keep_speed);
        reroll_speed overrides that.
        """
        if reroll_speed is None:
            reroll_speed = not self.keep_speed
        idx = np.flatnonzero(mask)
        n = len(idx)
        if n == 0:
            return
        xs, ys = self.seeder.sample(n)
        self.x[idx] = xs
        self.y[idx] = ys
        self.prev_x[idx] = xs
        self.prev_y[idx] = ys
        self.angle[idx] = self.rng.random(n) * TWO_PI
        if reroll_speed:
            lo, hi = self.speed_jitter
            self.speed[idx] = self.base_speed * (lo + self.rng.random(n) * (hi - lo))
        self.age[idx] = 0
        if self.life_range is not None:
            lo, hi = self.life_range
            self.max_life[idx] = lo + self.rng.random(n) * (hi - lo)
        if reroll_speed:
            self.hue[idx] = self.rng.random(n)

    def out_of_bounds(self):
        m = self.margin
        return ((self.x < -m) | (self.x > self.width + m) |
                (self.y < -m) | (self.y > self.height + m))

    def expired(self):
        """Particles past their lifetime or outside the extended bounds."""
        return (self.age > self.max_life) | self.out_of_bounds()

    def advance(self, mask=None):
        """Move along the current heading and age every particle by one tick.

        Args:
            mask: Optional boolean array; only selected particles move
        """
        self.prev_x[:] = self.x
        self.prev_y[:] = self.y
        dx = np.cos(self.angle) * self.speed
        dy = np.sin(self.angle) * self.speed
        if mask is None:
            self.x += dx
            self.y += dy
        else:
            self.x[mask] += dx[mask]
            self.y[mask] += dy[mask]
        self.age += 1

    def recycle(self):
        """Respawn expired particles. Returns the mask that was reset."""
        mask = self.expired()
        if mask.any():
            self.respawn(mask)
        return mask

    def life_fade(self, ramp=20):
        """Fade in over ramp ticks, fade out linearly toward max_life."""
        fade_in = np.minimum(1.0, self.age / ramp)
        fade_out = np.maximum(0.0, 1.0 - self.age / self.max_life)
        return fade_in * fade_out

    @property
    def stats(self):
        return {
            "count": self.count,
            "mean_age": float(self.age.mean()) if self.count else 0.0,
            "out_of_bounds": int(self.out_of_bounds().sum()),
        }


# ---------------------------------------------------------------------------
# Steering policies
# ---------------------------------------------------------------------------

class NoiseAdvection:
    """
    Heading = fbm(pos * scale + time * rate) * 2pi * harmonic.

    Args:
        noise: NoiseField
        scale: Spatial frequency of the field
        time_rate: (rx, ry) scroll per tick added to the scaled position
        harmonic: Number of full turns the [0, 1) fBm range maps onto
        octaves, lacunarity, gain, seed_stride: fBm parameters
    """

    def __init__(self, noise, scale=0.003, time_rate=(0.0, 0.0003), harmonic=2.0,
                 octaves=4, lacunarity=2.0, gain=0.5, seed_stride=0):
        self.noise = noise
        self.scale = scale
        self.time_rate = time_rate
        self.harmonic = harmonic
        self.octaves = octaves
        self.lacunarity = lacunarity
        self.gain = gain
        self.seed_stride = seed_stride

    def field(self, x, y, time):
        rx, ry = self.time_rate
        return self.noise.fbm(x * self.scale + time * rx, y * self.scale + time * ry,
                              octaves=self.octaves, lacunarity=self.lacunarity,
                              gain=self.gain, amplitude=0.5,
                              seed_stride=self.seed_stride)

    def steer(self, system, time):
        system.angle[:] = np.asarray(self.field(system.x, system.y, time)) * TWO_PI * self.harmonic


class EdgeSeeking:
    """
    Steer toward strong edges in a Sobel edge map.

    On a strong edge (local magnitude above threshold) a fan of candidate
    headings within +/- spread is probed lookahead pixels ahead and the
    particle turns to the strongest one, plus a little jitter. Elsewhere it
    random-walks by up to +/- wander / 2 radians per tick.

    Args:
        edges: (H, W) edge magnitudes in [0, 255]
        lookahead: Probe distance in pixels
        spread: Half-width of the candidate fan in radians
        candidates: Number of candidate headings across the fan
        threshold: Local edge strength needed to follow
        jitter: Random heading noise while following
        wander: Random heading noise while searching
        rng: numpy Generator
    """

    def __init__(self, edges, lookahead=4.0, spread=0.5, candidates=5, threshold=50,
                 jitter=0.2, wander=0.8, rng=None):
        self.edges = np.asarray(edges, dtype=np.float32)
        self.lookahead = lookahead
        self.offsets = np.linspace(-spread, spread, candidates)
        self.threshold = threshold
        self.jitter = jitter
        self.wander = wander
        self.rng = rng if rng is not None else np.random.default_rng()

    def lookup(self, x, y):
        """Edge magnitude at pixel positions; -1 outside the map."""
        h, w = self.edges.shape
        px = np.floor(x).astype(np.int64)
        py = np.floor(y).astype(np.int64)
        inside = (px >= 0) & (px < w) & (py >= 0) & (py < h)
        vals = self.edges[np.clip(py, 0, h - 1), np.clip(px, 0, w - 1)]
        return np.where(inside, vals, -1.0), inside

    def steer(self, system, time=None):
        """Update headings in place.

        Returns:
            (local_edge, inside): edge magnitude under each particle and
            whether the particle is over the map at all
        """
        local, inside = self.lookup(system.x, system.y)

        test = system.angle[:, np.newaxis] + self.offsets[np.newaxis, :]
        tx = system.x[:, np.newaxis] + np.cos(test) * self.lookahead
        ty = system.y[:, np.newaxis] + np.sin(test) * self.lookahead
        probe, _ = self.lookup(tx, ty)
        best = np.argmax(probe, axis=1)
        rows = np.arange(system.count)
        best_edge = probe[rows, best]
        best_angle = np.where(best_edge > 0, test[rows, best], system.angle)

        following = inside & (local > self.threshold)
        searching = inside & ~following
        n = system.count
        jitter = (self.rng.random(n) - 0.5) * self.jitter
        wander = (self.rng.random(n) - 0.5) * self.wander
        system.angle[:] = np.where(following, best_angle + jitter,
                                   np.where(searching, system.angle + wander, system.angle))
        return np.maximum(local, 0.0), inside


class DensityStamping:
    """
    Deposit particle presence into a DensityMap.

    Stamp intensity is modulated by a second, slower and coarser fBm layer
    so colour pools in macro-scale zones: the [0, 1) noise is remapped to
    [floor, 1] so quiet zones still receive a little weight.

    Args:
        density: DensityMap to stamp into
        noise: NoiseField for the modulation layer
        scale: Base spatial frequency (the modulation uses scale * macro)
        macro: Frequency factor of the modulation layer
        time_rate: (rx, ry) scroll per tick of the modulation layer
        octaves: fBm octaves of the modulation layer
        radius, weight: Stamp shape (see DensityMap.stamp)
        floor: Minimum modulation
    """

    def __init__(self, density, noise, scale=0.003, macro=0.4,
                 time_rate=(0.00008, 0.00006), octaves=3, radius=3, weight=0.12,
                 floor=0.1, seed_stride=43):
        self.density = density
        self.noise = noise
        self.scale = scale
        self.macro = macro
        self.time_rate = time_rate
        self.octaves = octaves
        self.radius = radius
        self.weight = weight
        self.floor = floor
        self.seed_stride = seed_stride

    def modulation(self, x, y, time):
        rx, ry = self.time_rate
        s = self.scale * self.macro
        n = self.noise.fbm(x * s + time * rx, y * s + time * ry,
                           octaves=self.octaves, amplitude=0.5,
                           seed_stride=self.seed_stride)
        return self.floor + np.asarray(n) * (1.0 - self.floor)

    def stamp(self, system, time):
        mod = self.modulation(system.x, system.y, time)
        self.density.stamp(system.x, system.y, self.radius, self.weight, mod)
