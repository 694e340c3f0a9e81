"""
Compositor and metadata writer for avatar sprites.
"""

import io
import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from PIL import Image

from .layout import WEBP_MAX_DIMENSION, Layout, SpriteLayoutError, iter_placements
from .tiles import TRANSPARENT, Tile


class SpriteTooLargeError(SpriteLayoutError):
    """The canvas is taller or wider than WebP can encode."""


def composite(layout: Layout, images: Sequence[Image.Image]) -> Image.Image:
    """Paste images onto a transparent canvas at their layout positions."""
    if len(images) != layout.tile_count:
        raise ValueError(f"layout is for {layout.tile_count} tiles, got {len(images)} images")
    canvas = Image.new("RGBA", (layout.canvas_width, layout.canvas_height), TRANSPARENT)
    for placement in iter_placements(layout):
        image = images[placement.tile_index]
        if image.mode != "RGBA":
            image = image.convert("RGBA")
        # Tiles never overlap; copy pixels without blending
        canvas.paste(image, (placement.x, placement.y))
    return canvas


def encode_webp(canvas: Image.Image, quality: int = 80) -> bytes:
    buf = io.BytesIO()
    canvas.save(buf, "WEBP", quality=quality)
    return buf.getvalue()


def tile_record(tile: Tile) -> Any:
    if tile.item.report_image:
        return {"name": tile.identifier, "image": tile.has_image}
    return tile.identifier


def build_metadata(layout: Layout, records: List[Any]) -> Dict[str, Any]:
    """
    Geometry plus the ordered item records. Item i sits at row i // tilesPerRow,
    column i % tilesPerRow.
    """
    if len(records) != layout.tile_count:
        raise ValueError(f"layout is for {layout.tile_count} tiles, got {len(records)} records")
    return {
        "tileSize": layout.tile_size,
        "tilesPerRow": layout.tiles_per_row,
        "rowCount": layout.row_count,
        "items": list(records),
    }


def write_bytes_atomic(target: Path, data: bytes) -> None:
    tmp = target.with_suffix(target.suffix + ".tmp")
    tmp.write_bytes(data)
    os.replace(tmp, target)


def write_outputs(
    image_path: Path,
    json_path: Path,
    sprite_bytes: bytes,
    metadata: Dict[str, Any],
    indent: Optional[int] = None,
) -> None:
    image_path.parent.mkdir(parents=True, exist_ok=True)
    json_path.parent.mkdir(parents=True, exist_ok=True)
    separators = None if indent is not None else (",", ":")
    text = json.dumps(metadata, indent=indent, separators=separators, ensure_ascii=False)
    write_bytes_atomic(image_path, sprite_bytes)
    write_bytes_atomic(json_path, text.encode("utf-8"))


def render_sprite(layout: Layout, tiles: Sequence[Tile], quality: int = 80) -> bytes:
    if layout.canvas_width > WEBP_MAX_DIMENSION or layout.canvas_height > WEBP_MAX_DIMENSION:
        raise SpriteTooLargeError(
            f"sprite is {layout.canvas_width}x{layout.canvas_height}px, "
            f"over the WebP limit of {WEBP_MAX_DIMENSION}px; use fewer or smaller tiles"
        )
    return encode_webp(composite(layout, [t.image for t in tiles]), quality=quality)
