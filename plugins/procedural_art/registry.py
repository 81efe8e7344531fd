"""
Effect registry: name -> Effect class, plus constructors that accept
either a bare effect name or a preset key.
"""

import logging

from .contours import Contours
from .displacement import Displacement
from .dot_matrix import DotMatrix
from .double_exposure import DoubleExposure
from .edge_trace import EdgeTrace
from .errors import UnknownEffect
from .flow_field import FlowField
from .halftone import Halftone
from .halftone_alive import HalftoneAlive
from .halftone_flow import HalftoneFlow
from .luminance_scatter import LuminanceScatter
from .particle_dissolve import ParticleDissolve
from .pixel_sort import PixelSort
from .presets import PRESET_META_KEYS, get_preset
from .threshold_ghost import ThresholdGhost

logger = logging.getLogger(__name__)


EFFECT_CLASSES = {
    cls.effect_name: cls
    for cls in (
        Contours, FlowField, Halftone, HalftoneAlive, HalftoneFlow, EdgeTrace,
        PixelSort, DoubleExposure, ThresholdGhost, DotMatrix, Displacement,
        ParticleDissolve, LuminanceScatter,
    )
}

EFFECT_ORDER = list(EFFECT_CLASSES)


def get_effect_class(name):
    """Look up an Effect class by name. Raises UnknownEffect."""
    try:
        return EFFECT_CLASSES[name]
    except KeyError:
        raise UnknownEffect(name) from None


def create_effect(name, surface, images=(), rng=None, **options):
    """Instantiate an effect by name with option overrides."""
    cls = get_effect_class(name)
    return cls(surface, images, options, rng=rng)


def create_from_preset(key, surface, images=(), rng=None, **overrides):
    """Instantiate the effect a preset names, with the preset's options."""
    preset = get_preset(key)
    if preset is None:
        raise UnknownEffect(key)
    options = {k: v for k, v in preset.items() if k not in PRESET_META_KEYS}
    options.update(overrides)
    logger.debug("Creating %s from preset %r", preset["effect"], key)
    return create_effect(preset["effect"], surface, images, rng=rng, **options)


def list_effects():
    """Return list of (name, label, min_images, animated)."""
    return [(name, cls.effect_label, cls.min_images, cls.animated)
            for name, cls in EFFECT_CLASSES.items()]
