"""
Blend Modes and Alpha Compositing

Float RGBA compositing in [0, 1] with straight (non-premultiplied) alpha.
Separable blend modes follow the usual canvas formulas; no gamma handling.

Buffers passed to composite() are (H, W, 4) float32 arrays and are
modified in place. The source may be a full buffer or a single (4,)
colour, optionally masked by an (H, W) coverage map.
"""

import enum
import numpy as np


class BlendMode(str, enum.Enum):
    """Supported compositing operations."""
    NORMAL = "normal"
    SCREEN = "screen"
    MULTIPLY = "multiply"
    LIGHTER = "lighter"
    OVERLAY = "overlay"
    DESTINATION_IN = "destination-in"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            key = value.strip().lower()
            if key == "source-over":
                return cls.NORMAL
            for member in cls:
                if member.value == key:
                    return member
        return None


def to_float(buffer):
    """uint8 RGBA -> float32 in [0, 1]."""
    return np.asarray(buffer, dtype=np.float32) / 255.0


def to_uint8(buffer):
    """float32 in [0, 1] -> uint8 RGBA, rounded."""
    return np.clip(np.asarray(buffer) * 255.0 + 0.5, 0, 255).astype(np.uint8)


def _blend_channels(mode, cb, cs):
    if mode is BlendMode.SCREEN:
        return cb + cs - cb * cs
    if mode is BlendMode.MULTIPLY:
        return cb * cs
    if mode is BlendMode.OVERLAY:
        return np.where(cb <= 0.5, 2.0 * cb * cs,
                        1.0 - 2.0 * (1.0 - cb) * (1.0 - cs))
    return cs


def composite(dst, src, mode=BlendMode.NORMAL, opacity=1.0, coverage=None):
    """Composite src onto dst in place.

    Args:
        dst: (H, W, 4) float32 destination, modified in place
        src: (H, W, 4) float32 buffer or (4,) colour, values in [0, 1]
        mode: BlendMode or its string value
        opacity: Global alpha multiplier
        coverage: Optional (H, W) mask in [0, 1] (shape antialiasing)

    Returns:
        dst
    """
    mode = BlendMode(mode)
    src = np.asarray(src, dtype=np.float32)
    a_s = src[..., 3] * np.float32(opacity)
    if coverage is not None:
        a_s = a_s * coverage
    a_s = np.asarray(a_s, dtype=np.float32)[..., np.newaxis]
    a_b = dst[..., 3:4]

    if mode is BlendMode.DESTINATION_IN:
        dst[..., 3:4] = a_b * a_s
        return dst

    cs = src[..., :3]
    cb = dst[..., :3]
    if mode is BlendMode.LIGHTER:
        co = cs * a_s + cb * a_b
        ao = np.minimum(1.0, a_s + a_b)
    else:
        if mode is not BlendMode.NORMAL:
            cs = (1.0 - a_b) * cs + a_b * _blend_channels(mode, cb, cs)
        co = cs * a_s + cb * a_b * (1.0 - a_s)
        ao = a_s + a_b * (1.0 - a_s)

    safe = np.where(ao > 0, ao, 1.0)
    dst[..., :3] = np.clip(co / safe, 0.0, 1.0)
    dst[..., 3:4] = np.clip(ao, 0.0, 1.0)
    return dst


def blend_buffers(base, layer, mode=BlendMode.NORMAL, opacity=1.0):
    """Return base with layer composited over it; uint8 in, uint8 out."""
    out = to_float(base)
    composite(out, to_float(layer), mode, opacity)
    return to_uint8(out)
