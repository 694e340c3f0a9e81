"""
Sprite layout engine.

Packs a sequence of fixed-size square tiles into a grid that never exceeds a
maximum pixel width. Rows fill left to right, top to bottom, in input order.
The last row is left-aligned and may be partially filled, but the canvas always
reserves its full height.
"""

from dataclasses import dataclass
from typing import Iterator

# WebP cannot encode images wider or taller than this.
WEBP_MAX_DIMENSION = 16383


class SpriteLayoutError(Exception):
    """Base class for layout failures."""


class EmptyInputError(SpriteLayoutError, ValueError):
    """Raised when asked to lay out zero tiles."""


class IndexOutOfRangeError(SpriteLayoutError, IndexError):
    """Raised when placing a tile index outside [0, tile_count)."""


@dataclass(frozen=True)
class Layout:
    tile_count: int
    tile_size: int
    max_width: int
    tiles_per_row: int
    row_count: int
    canvas_width: int
    canvas_height: int


@dataclass(frozen=True)
class Placement:
    tile_index: int
    row: int
    col: int
    x: int
    y: int


def compute_layout(tile_count: int, tile_size: int, max_width: int = WEBP_MAX_DIMENSION) -> Layout:
    if tile_count < 0:
        raise ValueError(f"tile_count must be >= 0, got {tile_count}")
    if tile_size < 1:
        raise ValueError(f"tile_size must be >= 1, got {tile_size}")
    if max_width < tile_size:
        raise ValueError(f"max_width {max_width} is smaller than tile_size {tile_size}")
    if tile_count == 0:
        raise EmptyInputError("no tiles to lay out")

    tiles_per_row = max_width // tile_size
    row_count = -(-tile_count // tiles_per_row)
    # A lone partial row is trimmed to the tiles it holds
    used_cols = min(tile_count, tiles_per_row)
    return Layout(
        tile_count=tile_count,
        tile_size=tile_size,
        max_width=max_width,
        tiles_per_row=tiles_per_row,
        row_count=row_count,
        canvas_width=min(used_cols * tile_size, max_width),
        canvas_height=row_count * tile_size,
    )


def place_tile(layout: Layout, index: int) -> Placement:
    if not 0 <= index < layout.tile_count:
        raise IndexOutOfRangeError(f"tile index {index} outside [0, {layout.tile_count})")
    row, col = divmod(index, layout.tiles_per_row)
    return Placement(
        tile_index=index,
        row=row,
        col=col,
        x=col * layout.tile_size,
        y=row * layout.tile_size,
    )


def iter_placements(layout: Layout) -> Iterator[Placement]:
    for i in range(layout.tile_count):
        yield place_tile(layout, i)
