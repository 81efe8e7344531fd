"""
Abstract Base Class for Effects

Every renderer (contours, halftone, pixel sort, ...) implements this
interface so a host loop can drive any effect interchangeably: construct
it against a Surface, call step() once per frame, dispose() when done.

Static effects draw everything on their first step and then report
finished. Animated effects keep drawing until the host stops calling
step(), or until their own frame cap is reached.
"""

from abc import ABC, abstractmethod
import logging

import numpy as np

from .config import EffectOptions, option_fields
from .errors import EffectDisposed, InvalidImageDimensions, MissingImages
from .sampling import Layer, composite_layers, image_size

logger = logging.getLogger(__name__)


class Effect(ABC):
    """Base class for procedural image effects."""

    effect_name = ""    # e.g. "halftone_flow"
    effect_label = ""   # e.g. "Halftone Flow"
    options_model = EffectOptions
    min_images = 0
    animated = True
    max_frames = None   # frame cap for self-terminating effects

    def __init__(self, surface, images=(), options=None, rng=None, **overrides):
        self.surface = surface
        self.width, self.height = surface.size()
        if self.width <= 0 or self.height <= 0:
            raise InvalidImageDimensions(self.width, self.height, what="surface")

        self.images = list(images)
        if len(self.images) < self.min_images:
            raise MissingImages(
                f"{self.effect_name} needs at least {self.min_images} image(s), "
                f"got {len(self.images)}")
        for img in self.images:
            w, h = image_size(img)
            if w <= 0 or h <= 0:
                raise InvalidImageDimensions(w, h)

        self.options = self._build_options(options, overrides)
        self.rng = rng if rng is not None else np.random.default_rng(self.options.seed)
        self.frame = 0
        self.finished = False
        self.disposed = False

        self.setup()
        logger.debug("Created %s effect at %dx%d with %d image(s)",
                     self.effect_name, self.width, self.height, len(self.images))

    def _build_options(self, options, overrides):
        if options is None:
            data = {}
        elif isinstance(options, EffectOptions):
            data = options.model_dump()
        else:
            data = dict(options)
        data.update(overrides)
        return self.options_model.model_validate(data)

    @abstractmethod
    def setup(self):
        """Precompute buffers, grids and particles. Called once per reset."""

    @abstractmethod
    def render(self):
        """Draw the current frame onto the surface."""

    def step(self, dt=None):
        """
        Render one frame and return the surface.

        dt is accepted for host loops that pass frame times; animation
        clocks advance one tick per call regardless.
        """
        if self.disposed:
            raise EffectDisposed(f"{self.effect_name} effect has been disposed")
        if self.finished:
            return self.surface

        self.render()
        self.frame += 1
        if not self.animated:
            self.finished = True
        elif self.max_frames is not None and self.frame >= self.max_frames:
            self.finished = True
            logger.debug("%s reached its %d frame cap", self.effect_name, self.max_frames)
        return self.surface

    def step_n(self, n):
        """Advance n frames. Returns the surface."""
        for _ in range(n):
            self.step()
        return self.surface

    def run(self, max_frames=None):
        """Step until finished, or for at most max_frames frames."""
        if max_frames is None and self.animated and self.max_frames is None:
            raise ValueError(f"{self.effect_name} animates forever; pass max_frames")
        while not self.finished:
            if max_frames is not None and self.frame >= max_frames:
                break
            self.step()
        return self.surface

    def reset(self):
        """Rebuild precomputed state and restart from frame 0."""
        if self.disposed:
            raise EffectDisposed(f"{self.effect_name} effect has been disposed")
        self.frame = 0
        self.finished = False
        self.setup()

    def dispose(self):
        """Drop every buffer the effect owns. Further steps raise."""
        if self.disposed:
            return
        self.teardown()
        self.images = []
        self.disposed = True
        logger.debug("Disposed %s effect after %d frame(s)", self.effect_name, self.frame)

    def teardown(self):
        """Release effect-specific state. Default: nothing to release."""

    def set_params(self, **params):
        """Update options. Structural options (counts, spacing) apply after reset()."""
        data = self.options.model_dump()
        data.update(params)
        self.options = self.options_model.model_validate(data)
        if not self.animated:
            self.finished = False

    def get_params(self):
        """Return dict of current option values."""
        return self.options.model_dump()

    @classmethod
    def get_option_defs(cls):
        """Option name -> (default, description)."""
        return option_fields(cls.options_model)

    @property
    def stats(self):
        """Return current effect statistics."""
        return {
            "effect": self.effect_name,
            "frame": self.frame,
            "finished": self.finished,
            "disposed": self.disposed,
        }

    # -- helpers shared by effects -----------------------------------------

    def composite_sources(self, first=None, rest=None, background=None):
        """
        Cover-fit and blend every source image onto one buffer.

        Args:
            first: (blend, opacity) for the first image
            rest: (blend, opacity) for every other image
        """
        first = first or ("normal", 1.0)
        rest = rest or first
        layers = [Layer(img, *(first if i == 0 else rest))
                  for i, img in enumerate(self.images)]
        return composite_layers(layers, self.width, self.height, background)

    def apply_to_surface(self, func, *args, **kwargs):
        """Run a buffer -> buffer filter over the whole surface."""
        buf = self.surface.read_pixels()
        self.surface.write_pixels(func(buf, *args, **kwargs))
