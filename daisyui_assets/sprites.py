#!/usr/bin/env python3
"""
Avatar sprite generator.

Builds a WebP sprite sheet plus a JSON metadata file for one target:
  contributors, github       GitHub contributors of --repo (needs GH_API_KEY for rate limits)
  sponsors, open-collective  Open Collective members of --collective
  testimonials               X avatars of the usernames in --testimonials

Tiles are square and wrap into rows so the sprite never exceeds --max-width.
The JSON holds tileSize, tilesPerRow, rowCount and the items in sprite order.
"""

import argparse
import logging
import os
import sys
from typing import List, Optional

from .config import (
    DEFAULT_COLLECTIVE,
    DEFAULT_MAX_WIDTH,
    DEFAULT_OUTPUT_DIR,
    DEFAULT_REPO,
    DEFAULT_TESTIMONIALS_FILE,
    DEFAULT_TIMEOUT,
    ON_ERROR_CHOICES,
    ON_ERROR_PLACEHOLDER,
    TARGETS,
    SpriteConfig,
    config_from_args,
)
from .layout import Layout, SpriteLayoutError, compute_layout
from .sources import SourceError, load_items
from .sprite import build_metadata, render_sprite, tile_record, write_outputs
from .tiles import build_tiles


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate avatar sprite sheets and their JSON metadata.")
    parser.add_argument("target", choices=sorted(TARGETS), help="Which sprite to build")
    parser.add_argument("--output-dir", default=DEFAULT_OUTPUT_DIR, help="Directory for the .webp and .json outputs")
    parser.add_argument("--tile-size", type=int, default=None, help="Tile edge in px (default: 64, testimonials 72)")
    parser.add_argument("--max-width", type=int, default=DEFAULT_MAX_WIDTH,
                        help="Maximum sprite width in px; rows wrap beyond it")
    parser.add_argument("--on-error", choices=ON_ERROR_CHOICES, default=ON_ERROR_PLACEHOLDER,
                        help="When an avatar fails: keep a transparent placeholder or drop the item")
    parser.add_argument("--threads", type=int, default=os.cpu_count() or 4, help="Concurrent avatar downloads")
    parser.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT, help="HTTP timeout in seconds")
    parser.add_argument("--quality", type=int, default=None, help="WebP quality (default: 80, testimonials 100)")
    parser.add_argument("--repo", default=DEFAULT_REPO, help="GitHub owner/name for contributor targets")
    parser.add_argument("--collective", default=DEFAULT_COLLECTIVE, help="Open Collective slug")
    parser.add_argument("--testimonials", default=DEFAULT_TESTIMONIALS_FILE, help="Testimonials JSON file")
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", help="Log every processed avatar")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="Only log warnings and errors")
    return parser.parse_args(argv)


def configure_logging(verbose: bool, quiet: bool) -> None:
    level = logging.DEBUG if verbose else (logging.WARNING if quiet else logging.INFO)
    logging.basicConfig(level=level, format="%(levelname)-7s %(name)s: %(message)s")


def generate(config: SpriteConfig) -> Layout:
    """
    Run one target end to end and return the layout used.

    Raises SourceError when the item list cannot be fetched and
    EmptyInputError when no tiles are left to lay out.
    """
    items = load_items(config)
    print(f"Processing {len(items)} {config.target.name}...")
    tiles = build_tiles(
        items,
        config.tile_size,
        on_error=config.on_error,
        threads=config.threads,
        timeout=config.timeout,
    )
    layout = compute_layout(len(tiles), config.tile_size, config.max_width)
    sprite_bytes = render_sprite(layout, tiles, quality=config.quality)
    metadata = build_metadata(layout, [tile_record(t) for t in tiles])
    write_outputs(config.image_path, config.json_path, sprite_bytes, metadata, indent=config.target.json_indent)
    print(
        f"DONE  {config.image_path} [{layout.canvas_width}x{layout.canvas_height}] "
        f"{layout.tile_count} tiles, {layout.tiles_per_row}/row, {layout.row_count} row(s)"
    )
    print(f"DONE  {config.json_path}")
    return layout


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    configure_logging(args.verbose, args.quiet)
    try:
        config = config_from_args(args)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if config.target.source == "github" and not config.github_token:
        print("Warning: GH_API_KEY not set; GitHub API rate limits will apply", file=sys.stderr)

    try:
        generate(config)
    except (SourceError, SpriteLayoutError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    print("Sprite image and JSON file created successfully.")


if __name__ == "__main__":
    main()
