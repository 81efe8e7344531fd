"""
Effect option models.

Every effect declares a pydantic model of its tunables. Defaults are the
calibrated values each look was tuned with; bounds only reject values that
would break the renderer (negative counts, zero spacing, alphas outside
[0, 1]).
"""

import enum
from typing import Annotated, Optional, Tuple

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

from .colors import parse_color


# (r, g, b, a): r/g/b in [0, 255], alpha in [0, 1]
ColorValue = Annotated[Tuple[float, float, float, float], BeforeValidator(parse_color)]

AMBER = "#d97706"
PAPER = "#fafaf9"
INK = "#0c0a09"


class FadeDirection(str, enum.Enum):
    radial = "radial"
    down = "down"
    up = "up"


class SortDirection(str, enum.Enum):
    vertical = "vertical"
    horizontal = "horizontal"


class DotShape(str, enum.Enum):
    circle = "circle"
    square = "square"


class EffectOptions(BaseModel):
    """Base for all option models: unknown keys are rejected."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True, validate_default=True)

    seed: Optional[int] = Field(
        default=None,
        description="Seed for the effect's random generator (None = fresh entropy)",
    )


def option_fields(model):
    """Field name -> (default, description) for an options model class."""
    return {
        name: (info.default, info.description)
        for name, info in model.model_fields.items()
    }
