import io
import json

import pytest
from PIL import Image

from daisyui_assets.layout import compute_layout
from daisyui_assets.sources import SourceItem
from daisyui_assets.sprite import (
    SpriteTooLargeError,
    build_metadata,
    composite,
    encode_webp,
    render_sprite,
    tile_record,
    write_outputs,
)
from daisyui_assets.tiles import Tile, transparent_tile

RED = (255, 0, 0, 255)
GREEN = (0, 255, 0, 255)
BLUE = (0, 0, 255, 255)


def _solid(color, size=10):
    return Image.new("RGBA", (size, size), color)


def test_composite_places_tiles_in_row_major_order():
    layout = compute_layout(3, 10, 25)  # 2 per row
    canvas = composite(layout, [_solid(RED), _solid(GREEN), _solid(BLUE)])

    assert canvas.size == (20, 20)
    assert canvas.getpixel((5, 5)) == RED
    assert canvas.getpixel((15, 5)) == GREEN
    assert canvas.getpixel((5, 15)) == BLUE
    # Unused slot of the partial last row stays transparent
    assert canvas.getpixel((15, 15))[3] == 0


def test_composite_keeps_placeholder_transparent():
    layout = compute_layout(2, 10)
    canvas = composite(layout, [transparent_tile(10), _solid(RED)])
    assert canvas.getpixel((5, 5))[3] == 0
    assert canvas.getpixel((15, 5)) == RED


def test_composite_converts_non_rgba_tiles():
    layout = compute_layout(1, 10)
    canvas = composite(layout, [Image.new("RGB", (10, 10), (0, 255, 0))])
    assert canvas.getpixel((0, 0)) == GREEN


def test_composite_rejects_count_mismatch():
    with pytest.raises(ValueError):
        composite(compute_layout(2, 10), [_solid(RED)])


def test_encode_webp_round_trips_dimensions():
    data = encode_webp(_solid(RED, 12), quality=100)
    with Image.open(io.BytesIO(data)) as im:
        assert im.format == "WEBP"
        assert im.size == (12, 12)


def test_render_sprite_uses_layout_canvas():
    layout = compute_layout(5, 8, 20)  # 2 per row, 3 rows
    tiles = [Tile(SourceItem(f"u{i}", None), _solid(RED, 8), True) for i in range(5)]
    with Image.open(io.BytesIO(render_sprite(layout, tiles))) as im:
        assert im.size == (16, 24)


def test_tile_record_shapes():
    plain = Tile(SourceItem("octocat", "https://a"), transparent_tile(4), True)
    flagged = Tile(SourceItem("Acme", None, report_image=True), transparent_tile(4), False)
    assert tile_record(plain) == "octocat"
    assert tile_record(flagged) == {"name": "Acme", "image": False}


def test_metadata_carries_geometry_and_order():
    layout = compute_layout(300, 64, 16383)
    records = [f"user{i}" for i in range(300)]

    meta = build_metadata(layout, records)

    assert meta["tileSize"] == 64
    assert meta["tilesPerRow"] == 255
    assert meta["rowCount"] == 2
    assert meta["items"][255] == "user255"


def test_metadata_rejects_count_mismatch():
    with pytest.raises(ValueError):
        build_metadata(compute_layout(2, 10), ["only-one"])


def test_write_outputs_creates_directories(tmp_path):
    image_path = tmp_path / "generated" / "github" / "contributors.webp"
    json_path = tmp_path / "generated" / "github" / "contributors.json"
    meta = {"tileSize": 64, "tilesPerRow": 255, "rowCount": 1, "items": ["a", "b"]}

    write_outputs(image_path, json_path, b"RIFFdata", meta, indent=2)

    assert image_path.read_bytes() == b"RIFFdata"
    text = json_path.read_text(encoding="utf-8")
    assert json.loads(text) == meta
    assert "\n  " in text
    assert not list(image_path.parent.glob("*.tmp"))


def test_write_outputs_compact_json(tmp_path):
    meta = {"tileSize": 64, "tilesPerRow": 255, "rowCount": 1, "items": [{"name": "Zoë", "image": True}]}
    write_outputs(tmp_path / "s.webp", tmp_path / "s.json", b"x", meta)
    text = (tmp_path / "s.json").read_text(encoding="utf-8")
    assert "\n" not in text
    assert " " not in text
    assert "Zoë" in text


def test_composite_keeps_semi_transparent_pixels_unchanged():
    half_red = (255, 0, 0, 128)
    layout = compute_layout(2, 10)
    canvas = composite(layout, [_solid(half_red), _solid((0, 0, 255, 1))])
    assert canvas.getpixel((5, 5)) == half_red
    assert canvas.getpixel((15, 5)) == (0, 0, 255, 1)


def test_render_sprite_rejects_canvas_taller_than_webp_limit():
    layout = compute_layout(300, 64, 64)  # one column, 19200px tall
    tiles = [Tile(SourceItem(f"u{i}", None), transparent_tile(64), False) for i in range(300)]
    with pytest.raises(SpriteTooLargeError, match="19200"):
        render_sprite(layout, tiles)
