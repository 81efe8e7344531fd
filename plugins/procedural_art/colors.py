"""
Colour parsing and gradient helpers.

Colours are normalised to (r, g, b, a) tuples with r/g/b in [0, 255] and
alpha in [0, 1], which is how the effect options describe them:
"#d97706", "rgba(217, 119, 6, 0.3)", "transparent" or a plain RGB tuple.
"""

import re
import numpy as np


_FUNC_RE = re.compile(r"^rgba?\(\s*([^)]*)\)$")

TRANSPARENT = (0.0, 0.0, 0.0, 0.0)


def parse_color(value):
    """Parse a colour value into an (r, g, b, a) float tuple."""
    if isinstance(value, str):
        text = value.strip().lower()
        if text == "transparent":
            return TRANSPARENT
        if text.startswith("#"):
            return _parse_hex(text[1:], value)
        m = _FUNC_RE.match(text)
        if m:
            parts = [p.strip() for p in m.group(1).split(",")]
            if len(parts) not in (3, 4):
                raise ValueError(f"Bad colour: {value!r}")
            r, g, b = (float(p) for p in parts[:3])
            a = float(parts[3]) if len(parts) == 4 else 1.0
            return (r, g, b, a)
        raise ValueError(f"Bad colour: {value!r}")

    parts = tuple(float(c) for c in value)
    if len(parts) == 3:
        return parts + (1.0,)
    if len(parts) == 4:
        return parts
    raise ValueError(f"Colour needs 3 or 4 components, got {value!r}")


def _parse_hex(digits, text):
    if len(digits) in (3, 4):
        digits = "".join(c * 2 for c in digits)
    if len(digits) not in (6, 8):
        raise ValueError(f"Bad colour: {text!r}")
    try:
        vals = [int(digits[i:i + 2], 16) for i in range(0, len(digits), 2)]
    except ValueError:
        raise ValueError(f"Bad colour: {text!r}") from None
    a = vals[3] / 255.0 if len(vals) == 4 else 1.0
    return (float(vals[0]), float(vals[1]), float(vals[2]), a)


def to_unit(color):
    """Colour value -> float32 RGBA array in [0, 1]."""
    r, g, b, a = parse_color(color)
    return np.array([r / 255.0, g / 255.0, b / 255.0, a], dtype=np.float32)


def rgb(color):
    """Colour value -> (r, g, b) floats in [0, 255], alpha dropped."""
    return parse_color(color)[:3]


def round_half_up(values):
    """Round like Math.round (halves go up), returning int32."""
    return np.floor(np.asarray(values, dtype=np.float64) + 0.5).astype(np.int32)


def interpolate_stops(t, stops):
    """
    Piecewise-linear gradient lookup.

    Args:
        t: Array of positions (values outside [0, 1] are clamped)
        stops: List of (position, value) with ascending positions

    Returns:
        Array shaped like t
    """
    positions = [s[0] for s in stops]
    values = [s[1] for s in stops]
    return np.interp(np.clip(t, 0.0, 1.0), positions, values)
