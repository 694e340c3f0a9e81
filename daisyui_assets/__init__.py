"""Build-time asset generators: avatar sprite sheets and WebP conversion."""

from .layout import (
    WEBP_MAX_DIMENSION,
    EmptyInputError,
    IndexOutOfRangeError,
    Layout,
    Placement,
    SpriteLayoutError,
    compute_layout,
    iter_placements,
    place_tile,
)

__version__ = "0.1.0"
