"""
Deterministic 2D Value Noise

Integer-lattice hash noise with smoothstep interpolation, plus fractal
Brownian motion (fBm) layered on top of it. Every function accepts either
Python scalars or numpy arrays. Both paths run the same float64 arithmetic,
so a scalar call and the matching array element are bit-identical.

The hash constants are constructor parameters of NoiseField rather than
module state, so two fields with different constants never interfere.
"""

import numpy as np


DEFAULT_LATTICE_STRIDE = 104729   # prime; row stride of the integer lattice
DEFAULT_MULTIPLIER = 0x45D9F3B    # multiply-xor-shift mixing constant

_MASK32 = 0xFFFFFFFF
_HASH_SCALE = 1.0 / 65536.0       # 16-bit mask -> [0, 1)


def smoothstep(t):
    """Hermite easing t^2 (3 - 2t) on [0, 1]."""
    return t * t * (3.0 - 2.0 * t)


def _to_float(value):
    """Collapse 0-d arrays back to a Python float."""
    if np.ndim(value) == 0:
        return float(value)
    return value


class NoiseField:
    """Value noise over an integer lattice.

    Args:
        seed: Base seed added to every lattice hash
        lattice_stride: Multiplier K for the y coordinate in
            floor(x) + floor(y) * K. Large and odd so nearby lattice
            rows never alias each other.
        multiplier: 32-bit constant used by each mixing round
    """

    def __init__(self, seed=0, lattice_stride=DEFAULT_LATTICE_STRIDE,
                 multiplier=DEFAULT_MULTIPLIER):
        self.seed = int(seed)
        self.lattice_stride = int(lattice_stride)
        self.multiplier = np.uint32(int(multiplier) & _MASK32)

    def hash(self, n, seed=None):
        """Hash integer lattice ids to [0, 1).

        Two multiply-xor-shift rounds and a final xor-shift, all in
        unsigned 32-bit arithmetic, keeping the low 16 bits.
        """
        s = self.seed if seed is None else int(seed)
        n = np.asarray(n, dtype=np.int64)
        shape = n.shape
        h = np.atleast_1d((n + s) & _MASK32).astype(np.uint32)
        h = ((h >> 16) ^ h) * self.multiplier
        h = ((h >> 16) ^ h) * self.multiplier
        h = (h >> 16) ^ h
        out = (h & 0xFFFF).astype(np.float64) * _HASH_SCALE
        return _to_float(out.reshape(shape))

    def sample(self, x, y, seed=None):
        """Smoothly interpolated noise at continuous (x, y), in [0, 1)."""
        x, y = np.broadcast_arrays(np.asarray(x, dtype=np.float64),
                                   np.asarray(y, dtype=np.float64))
        ix = np.floor(x)
        iy = np.floor(y)
        sx = smoothstep(x - ix)
        sy = smoothstep(y - iy)

        k = self.lattice_stride
        ix = ix.astype(np.int64)
        iy = iy.astype(np.int64)
        row0 = iy * k
        row1 = (iy + 1) * k

        n00 = np.asarray(self.hash(ix + row0, seed))
        n10 = np.asarray(self.hash(ix + 1 + row0, seed))
        n01 = np.asarray(self.hash(ix + row1, seed))
        n11 = np.asarray(self.hash(ix + 1 + row1, seed))

        value = ((n00 * (1.0 - sx) + n10 * sx) * (1.0 - sy) +
                 (n01 * (1.0 - sx) + n11 * sx) * sy)
        return _to_float(value)

    def fbm(self, x, y, octaves=4, lacunarity=2.0, gain=0.5, amplitude=1.0,
            seed=None, seed_stride=1, offset=(0.0, 0.0)):
        """Fractal Brownian motion.

        Sums amplitude * gain^i * sample(x * lacunarity^i + ox,
        y * lacunarity^i + oy, seed + i * seed_stride) for i in
        [0, octaves). The sum is not clamped; with amplitude=0.5 and
        gain=0.5 it stays inside [0, 1).

        Args:
            x, y: Coordinates (scalars or arrays)
            octaves: Number of octaves
            lacunarity: Frequency multiplier between octaves
            gain: Amplitude multiplier between octaves
            amplitude: Amplitude of the first octave
            seed: Base seed (defaults to the field's seed)
            seed_stride: Seed increment per octave (0 = same seed)
            offset: (ox, oy) added after frequency scaling, used to scroll
                every octave at the same rate
        """
        base = self.seed if seed is None else int(seed)
        x = np.asarray(x, dtype=np.float64)
        y = np.asarray(y, dtype=np.float64)
        ox, oy = offset
        total = 0.0
        amp = amplitude
        freq = 1.0
        for i in range(octaves):
            total = total + amp * np.asarray(
                self.sample(x * freq + ox, y * freq + oy, base + i * seed_stride))
            amp *= gain
            freq *= lacunarity
        return _to_float(np.asarray(total))
