"""
Effect Presets

Each preset names an effect and the option overrides for one finished
look. The "effect" field determines which renderer to instantiate;
"name" and "description" are display metadata, everything else is passed
to the effect's options model.
"""

PRESET_META_KEYS = ("effect", "name", "description")

PRESETS = {
    # =====================================================================
    # GENERATIVE (no source image)
    # =====================================================================
    "survey_map": {
        "effect": "contours",
        "name": "Survey Map",
        "description": "Twenty-level topographic contours, index line every fifth",
    },
    "survey_map_dark": {
        "effect": "contours",
        "name": "Survey Map (Night)",
        "description": "Amber contours on near-black paper",
        "line_color": "#d97706", "bg_color": "#0c0a09",
    },
    "amber_drift": {
        "effect": "flow_field",
        "name": "Amber Drift",
        "description": "Translucent amber trails on warm paper",
    },
    "night_drift": {
        "effect": "flow_field",
        "name": "Night Drift",
        "description": "Flow trails over a dark background",
        "bg_color": "#0c0a09", "trail_color": "rgba(217, 119, 6, 0.35)",
    },
    # =====================================================================
    # HALFTONE
    # =====================================================================
    "press_print": {
        "effect": "halftone",
        "name": "Press Print",
        "description": "Classic single-ink halftone",
    },
    "breathing_dots": {
        "effect": "halftone_alive",
        "name": "Breathing Dots",
        "description": "Halftone dots pulsing under an animated noise field",
    },
    "color_pools": {
        "effect": "halftone_flow",
        "name": "Colour Pools",
        "description": "Muted halftone where an invisible flow lets true colour pool",
    },
    "split_top": {
        "effect": "halftone_flow",
        "name": "Split Layout (Top)",
        "description": "Top 45% of the image, fading out downward",
        "crop_region": (0.0, 0.45), "fade_direction": "down", "fade_amount": 0.4,
    },
    "split_bottom": {
        "effect": "halftone_flow",
        "name": "Split Layout (Bottom)",
        "description": "Bottom 45% of the image, fading out upward",
        "crop_region": (0.55, 1.0), "fade_direction": "up", "fade_amount": 0.4,
    },
    # =====================================================================
    # IMAGE COMPOSITES
    # =====================================================================
    "etching": {
        "effect": "edge_trace",
        "name": "Etching",
        "description": "Pathfinders trace image edges for 400 frames",
    },
    "glitch_streaks": {
        "effect": "pixel_sort",
        "name": "Glitch Streaks",
        "description": "Two cities merged and pixel-sorted vertically",
    },
    "glitch_scan": {
        "effect": "pixel_sort",
        "name": "Glitch Scan",
        "description": "Horizontal sort over a wider luminance band",
        "direction": "horizontal", "threshold": (0.15, 0.8),
    },
    "dreamy_blend": {
        "effect": "double_exposure",
        "name": "Dreamy Blend",
        "description": "Screen-blended double exposure with warm grading",
    },
    "moody_blend": {
        "effect": "double_exposure",
        "name": "Moody Blend",
        "description": "Multiply-blended double exposure, heavier vignette",
        "blend_mode": "multiply", "vignette_strength": 0.8,
    },
    "ghosts": {
        "effect": "threshold_ghost",
        "name": "Ghosts",
        "description": "Offset threshold silhouettes fading into paper",
    },
    "led_wall": {
        "effect": "dot_matrix",
        "name": "LED Wall",
        "description": "Full-colour dot matrix with scanlines",
    },
    "amber_terminal": {
        "effect": "dot_matrix",
        "name": "Amber Terminal",
        "description": "Monochrome square cells",
        "monochrome": True, "shape": "square",
    },
    "heat_haze": {
        "effect": "displacement",
        "name": "Heat Haze",
        "description": "Undulating strips alternating between two images",
    },
    "dissolve": {
        "effect": "particle_dissolve",
        "name": "Dissolve",
        "description": "Image as drifting particles, dissolving at the edges",
    },
    "stipple": {
        "effect": "luminance_scatter",
        "name": "Stipple",
        "description": "Thirty thousand luminance-weighted points",
    },
    "ink_stipple": {
        "effect": "luminance_scatter",
        "name": "Ink Stipple",
        "description": "Single-colour stipple",
        "mono_color": "#292524",
    },
}


PRESET_ORDER = list(PRESETS)


def get_preset(name):
    """Get a preset by name. Returns None if not found."""
    return PRESETS.get(name)


def get_presets_for_effect(effect_name):
    """Return ordered list of preset keys for an effect."""
    return [k for k in PRESET_ORDER if PRESETS[k]["effect"] == effect_name]


def list_presets(effect=None):
    """Return list of (key, name, description) for presets.
    If effect is specified, filter to that effect only."""
    keys = get_presets_for_effect(effect) if effect else PRESET_ORDER
    return [(k, PRESETS[k]["name"], PRESETS[k]["description"]) for k in keys]
