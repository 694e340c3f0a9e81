"""
Avatar download and normalization into square sprite tiles.

A tile source yields items in sprite order. Each item becomes one Tile unless
its download fails under the "drop" policy. Items without an avatar URL always
keep their slot with a transparent placeholder.
"""

import concurrent.futures as cf
import io
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

import requests
from PIL import Image

from .config import ON_ERROR_DROP, ON_ERROR_PLACEHOLDER
from .sources import SourceItem

logger = logging.getLogger(__name__)

TRANSPARENT = (0, 0, 0, 0)


@dataclass(frozen=True)
class Tile:
    item: SourceItem
    image: Image.Image
    has_image: bool

    @property
    def identifier(self) -> str:
        return self.item.identifier


def transparent_tile(size: int) -> Image.Image:
    return Image.new("RGBA", (size, size), TRANSPARENT)


def normalize(image: Image.Image, size: int) -> Image.Image:
    """Convert to RGBA and stretch to size x size."""
    image = image.convert("RGBA")
    if image.size != (size, size):
        image = image.resize((size, size), Image.Resampling.LANCZOS)
    return image


def fetch_avatar(url: str, size: int, timeout: float = 30.0, headers: Optional[dict] = None) -> Image.Image:
    """
    Download an avatar and return it as a size x size RGBA image.

    Raises requests.RequestException on transport errors or a non-2xx status,
    and OSError (PIL.UnidentifiedImageError) when the body is not an image.
    """
    response = requests.get(url, timeout=timeout, headers=headers or {})
    response.raise_for_status()
    with Image.open(io.BytesIO(response.content)) as im:
        im.load()
        return normalize(im, size)


def build_tile(item: SourceItem, size: int, on_error: str, timeout: float = 30.0) -> Optional[Tile]:
    """
    Returns the tile for item, or None when the item is dropped.
    """
    if not item.image_url:
        return Tile(item, transparent_tile(size), has_image=False)
    try:
        image = fetch_avatar(item.image_url, size, timeout=timeout, headers=item.headers)
    except (requests.RequestException, OSError, Image.DecompressionBombError) as e:
        if on_error == ON_ERROR_DROP:
            logger.warning("Dropping %s: failed to process image: %s", item.identifier, e)
            return None
        logger.warning("Failed to process image for %s, using placeholder: %s", item.identifier, e)
        return Tile(item, transparent_tile(size), has_image=False)
    logger.debug("Processed avatar for: %s", item.identifier)
    return Tile(item, image, has_image=True)


def build_tiles(
    items: Sequence[SourceItem],
    size: int,
    on_error: str = ON_ERROR_PLACEHOLDER,
    threads: int = 4,
    timeout: float = 30.0,
) -> List[Tile]:
    """
    Fetch every avatar on a bounded thread pool and return tiles in item order.
    """
    if on_error not in (ON_ERROR_PLACEHOLDER, ON_ERROR_DROP):
        raise ValueError(f"unknown failure policy {on_error!r}")
    logger.info("Processing %d items...", len(items))
    with cf.ThreadPoolExecutor(max_workers=threads) as ex:
        results = list(ex.map(lambda it: build_tile(it, size, on_error, timeout), items))
    tiles = [t for t in results if t is not None]
    dropped = len(items) - len(tiles)
    if dropped:
        logger.warning("Dropped %d of %d items", dropped, len(items))
    return tiles
