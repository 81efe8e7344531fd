"""
Procedural image effects: noise, halftones, contours, particle trails and
pixel sorting rendered onto an abstract Surface.

    from procedural_art import ArraySurface, create_effect

    surface = ArraySurface(640, 360)
    effect = create_effect("halftone_flow", surface, [image], seed=7)
    effect.step_n(60)
    surface.to_image().save("frame.png")
"""

import logging

from .blending import BlendMode
from .density import DensityMap
from .effect_base import Effect
from .errors import (EffectDisposed, EmptySampleSet, InvalidImageDimensions,
                     MissingImages, ProceduralArtError, UnknownEffect)
from .noise import NoiseField
from .particles import (DensityStamping, EdgeSeeking, NoiseAdvection,
                        ParticleSystem, Seeder)
from .presets import PRESETS, get_preset, list_presets
from .registry import (EFFECT_CLASSES, create_effect, create_from_preset,
                       get_effect_class, list_effects)
from .surface import ArraySurface, Surface

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"
