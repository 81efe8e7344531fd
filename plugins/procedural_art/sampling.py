"""
Image Sampling and Compositing

Turns one or more source images into a working PixelBuffer:

  - as_rgba:          normalise PIL images / arrays to (H, W, 4) uint8
  - cover_rect:       "background-size: cover" crop rectangle
  - fit_cover:        crop + bilinear resize to fill a destination
  - composite_layers: cover-fit each layer and blend it over the last
  - crop_vertical:    extract a horizontal band and rescale it

plus the colour filters the renderers run on composites (grayscale,
contrast, grain, vignette, overlay tints, alpha gradients).

Resampling is done with Pillow; everything else is numpy.
"""

from collections import namedtuple
import logging

import numpy as np
from PIL import Image

from .blending import BlendMode, composite, to_float, to_uint8
from .colors import to_unit, interpolate_stops
from .errors import InvalidImageDimensions

logger = logging.getLogger(__name__)


CropRect = namedtuple("CropRect", ["sx", "sy", "sw", "sh"])

# filter: optional callable applied to the cover-fitted layer before blending
Layer = namedtuple("Layer", ["image", "blend", "opacity", "filter"],
                   defaults=(BlendMode.NORMAL, 1.0, None))

_BILINEAR = Image.Resampling.BILINEAR


def image_size(image):
    """(width, height) of a PIL image or an (H, W, C) array."""
    if isinstance(image, Image.Image):
        return image.size
    shape = np.shape(image)
    if len(shape) < 2:
        raise InvalidImageDimensions(0, 0)
    return shape[1], shape[0]


def as_rgba(image):
    """Return image as a fresh (H, W, 4) uint8 PixelBuffer.

    Raises InvalidImageDimensions for zero-sized sources before any
    conversion work is done.
    """
    w, h = image_size(image)
    if w <= 0 or h <= 0:
        raise InvalidImageDimensions(w, h)

    if isinstance(image, Image.Image):
        return np.array(image.convert("RGBA"), dtype=np.uint8)

    arr = np.asarray(image)
    if arr.dtype != np.uint8:
        if np.issubdtype(arr.dtype, np.floating):
            arr = to_uint8(arr)
        else:
            arr = np.clip(arr, 0, 255).astype(np.uint8)
    if arr.ndim == 2:
        arr = np.stack([arr, arr, arr], axis=-1)
    if arr.shape[2] == 3:
        alpha = np.full(arr.shape[:2] + (1,), 255, dtype=np.uint8)
        arr = np.concatenate([arr, alpha], axis=2)
    elif arr.shape[2] != 4:
        raise ValueError(f"Expected 3 or 4 channels, got {arr.shape[2]}")
    return np.array(arr, dtype=np.uint8, copy=True)


def new_buffer(width, height, color=None):
    """Allocate a PixelBuffer, transparent unless a colour is given."""
    if width <= 0 or height <= 0:
        raise InvalidImageDimensions(width, height, what="buffer")
    buf = np.zeros((height, width, 4), dtype=np.uint8)
    if color is not None:
        buf[:] = to_uint8(to_unit(color))
    return buf


def cover_rect(src_w, src_h, dest_w, dest_h):
    """
    Source crop that fills dest_w x dest_h without letterboxing.

    The excess along the longer axis is cropped equally from both sides.
    The rectangle never leaves the source bounds.
    """
    if src_w <= 0 or src_h <= 0:
        raise InvalidImageDimensions(src_w, src_h)
    if dest_w <= 0 or dest_h <= 0:
        raise InvalidImageDimensions(dest_w, dest_h, what="destination")

    img_aspect = src_w / src_h
    dest_aspect = dest_w / dest_h
    sx, sy, sw, sh = 0.0, 0.0, float(src_w), float(src_h)

    if img_aspect > dest_aspect:
        sw = min(float(src_w), src_h * dest_aspect)
        sx = (src_w - sw) / 2.0
    else:
        sh = min(float(src_h), src_w / dest_aspect)
        sy = (src_h - sh) / 2.0
    return CropRect(sx, sy, sw, sh)


def cover_blit(source, dest_w, dest_h):
    """Cover-fit crop rectangle for a source image."""
    w, h = image_size(source)
    return cover_rect(w, h, dest_w, dest_h)


def resample(buffer, box, width, height):
    """Bilinear resize of the box (sx, sy, sw, sh) of buffer to width x height."""
    sx, sy, sw, sh = box
    img = Image.fromarray(as_rgba(buffer))
    out = img.resize((int(width), int(height)), _BILINEAR,
                     box=(sx, sy, sx + sw, sy + sh))
    return np.array(out, dtype=np.uint8)


def fit_cover(source, dest_w, dest_h):
    """Cover-fit a source image into a new dest_w x dest_h buffer."""
    rect = cover_blit(source, dest_w, dest_h)
    return resample(source, rect, dest_w, dest_h)


def fit_width(source, width):
    """Scale to a width, keeping the aspect ratio (height floored)."""
    w, h = image_size(source)
    if w <= 0 or h <= 0:
        raise InvalidImageDimensions(w, h)
    height = max(1, int(width * (h / w)))
    return resample(source, (0, 0, w, h), width, height)


def composite_layers(layers, dest_w, dest_h, background=None):
    """
    Blend layers, in order, into a dest_w x dest_h buffer.

    Args:
        layers: Sequence of Layer (or (image, blend, opacity) tuples)
        dest_w, dest_h: Output size
        background: Optional colour under the first layer (transparent
            by default)

    Returns:
        (H, W, 4) uint8 PixelBuffer
    """
    layers = [Layer(*layer) for layer in layers]
    for layer in layers:
        w, h = image_size(layer.image)
        if w <= 0 or h <= 0:
            raise InvalidImageDimensions(w, h)

    acc = to_float(new_buffer(dest_w, dest_h, background))
    for layer in layers:
        fitted = fit_cover(layer.image, dest_w, dest_h)
        if layer.filter is not None:
            fitted = layer.filter(fitted)
        composite(acc, to_float(fitted), layer.blend, layer.opacity)
    return to_uint8(acc)


def crop_vertical(buffer, region, target_height=None):
    """
    Extract rows [floor(H * start), floor(H * end)) and rescale.

    Args:
        buffer: Source PixelBuffer
        region: (start, end) fractions of the source height
        target_height: Output height (defaults to the cropped height)
    """
    buffer = as_rgba(buffer)
    h, w = buffer.shape[:2]
    start = int(h * region[0])
    end = int(h * region[1])
    cropped_h = end - start
    if cropped_h <= 0:
        raise InvalidImageDimensions(w, cropped_h, what="crop region")
    if target_height is None or target_height == cropped_h:
        return buffer[start:end].copy()
    return resample(buffer, (0, start, w, cropped_h), w, target_height)


# ---------------------------------------------------------------------------
# Filters (CSS filter semantics)
# ---------------------------------------------------------------------------

def grayscale(buffer, amount=1.0):
    """Desaturate by amount in [0, 1] using the CSS grayscale() matrix."""
    a = 1.0 - float(np.clip(amount, 0.0, 1.0))
    m = np.array([
        [0.2126 + 0.7874 * a, 0.7152 - 0.7152 * a, 0.0722 - 0.0722 * a],
        [0.2126 - 0.2126 * a, 0.7152 + 0.2848 * a, 0.0722 - 0.0722 * a],
        [0.2126 - 0.2126 * a, 0.7152 - 0.7152 * a, 0.0722 + 0.9278 * a],
    ], dtype=np.float32)
    f = to_float(buffer)
    f[..., :3] = np.clip(f[..., :3] @ m.T, 0.0, 1.0)
    return to_uint8(f)


def contrast(buffer, amount=1.0):
    """CSS contrast(): scale each channel around mid-grey."""
    f = to_float(buffer)
    f[..., :3] = np.clip((f[..., :3] - 0.5) * amount + 0.5, 0.0, 1.0)
    return to_uint8(f)


def add_grain(buffer, amplitude, rng):
    """Add the same uniform noise in [-amplitude/2, amplitude/2) to R, G and B."""
    out = np.asarray(buffer, dtype=np.float32).copy()
    noise = (rng.random(out.shape[:2], dtype=np.float32) - 0.5) * amplitude
    out[..., :3] += noise[..., np.newaxis]
    return np.clip(np.floor(out + 0.5), 0, 255).astype(np.uint8)


def radial_ramp(width, height, inner, outer):
    """Distance ramp 0 at radius inner -> 1 at radius outer, image-centred."""
    ys, xs = np.mgrid[:height, :width]
    dist = np.hypot(xs + 0.5 - width / 2.0, ys + 0.5 - height / 2.0)
    span = max(outer - inner, 1e-6)
    return np.clip((dist - inner) / span, 0.0, 1.0).astype(np.float32)


def vignette(buffer, inner, outer, strength, color="#000000"):
    """Darken toward the corners with a radial gradient."""
    h, w = buffer.shape[:2]
    mask = radial_ramp(w, h, inner, outer) * np.float32(strength)
    f = to_float(buffer)
    composite(f, to_unit(color), BlendMode.NORMAL, 1.0, coverage=mask)
    return to_uint8(f)


def tint(buffer, color, alpha, mode=BlendMode.OVERLAY):
    """Flat colour fill at alpha with the given blend mode."""
    f = to_float(buffer)
    composite(f, to_unit(color), mode, alpha)
    return to_uint8(f)


def linear_alpha_gradient(width, height, stops):
    """Horizontal alpha ramp from (position, alpha) stops; shape (H, W)."""
    t = (np.arange(width, dtype=np.float32) + 0.5) / max(width, 1)
    row = interpolate_stops(t, stops).astype(np.float32)
    return np.broadcast_to(row, (height, width)).copy()


def mask_alpha(buffer, mask):
    """destination-in with a mask: multiply alpha by mask."""
    f = to_float(buffer)
    src = np.zeros(f.shape, dtype=np.float32)
    src[..., 3] = mask
    composite(f, src, BlendMode.DESTINATION_IN)
    return to_uint8(f)
