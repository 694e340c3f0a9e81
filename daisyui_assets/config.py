import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

from .layout import WEBP_MAX_DIMENSION

DEFAULT_TILE_SIZE = 64
TESTIMONIAL_TILE_SIZE = 72
DEFAULT_MAX_WIDTH = WEBP_MAX_DIMENSION
DEFAULT_OUTPUT_DIR = "generated"
DEFAULT_REPO = "saadeghi/daisyui"
DEFAULT_COLLECTIVE = "daisyui"
DEFAULT_TESTIMONIALS_FILE = "data/testimonials.json"
DEFAULT_TIMEOUT = 30.0
DEFAULT_QUALITY = 80

# What to do with an item whose avatar cannot be downloaded or decoded
ON_ERROR_PLACEHOLDER = "placeholder"
ON_ERROR_DROP = "drop"
ON_ERROR_CHOICES = (ON_ERROR_PLACEHOLDER, ON_ERROR_DROP)

TOKEN_ENV = "GH_API_KEY"


@dataclass(frozen=True)
class Target:
    """Where one sprite target reads from and writes to."""
    name: str
    source: str  # "github", "opencollective" or "testimonials"
    image_name: str
    json_name: str
    tile_size: int = DEFAULT_TILE_SIZE
    json_indent: Optional[int] = None
    quality: int = DEFAULT_QUALITY


TARGETS: Dict[str, Target] = {
    "contributors": Target("contributors", "github", "contributors.webp", "contributors.json", json_indent=2),
    "github": Target("github", "github", "github/contributors.webp", "github/contributors.json", json_indent=2),
    "sponsors": Target("sponsors", "opencollective", "sponsors.webp", "sponsors.json"),
    "open-collective": Target(
        "open-collective", "opencollective",
        "open-collective/contributors.webp", "open-collective/contributors.json",
    ),
    "testimonials": Target(
        "testimonials", "testimonials", "x.webp", "x.json",
        tile_size=TESTIMONIAL_TILE_SIZE, json_indent=2, quality=100,
    ),
}


@dataclass(frozen=True)
class SpriteConfig:
    target: Target
    output_dir: Path = Path(DEFAULT_OUTPUT_DIR)
    tile_size: int = DEFAULT_TILE_SIZE
    max_width: int = DEFAULT_MAX_WIDTH
    on_error: str = ON_ERROR_PLACEHOLDER
    threads: int = 4
    timeout: float = DEFAULT_TIMEOUT
    quality: int = DEFAULT_QUALITY
    repo: str = DEFAULT_REPO
    collective: str = DEFAULT_COLLECTIVE
    testimonials_file: Path = Path(DEFAULT_TESTIMONIALS_FILE)
    github_token: Optional[str] = None

    @property
    def image_path(self) -> Path:
        return self.output_dir / self.target.image_name

    @property
    def json_path(self) -> Path:
        return self.output_dir / self.target.json_name

    def validate(self) -> "SpriteConfig":
        if self.tile_size < 1:
            raise ValueError(f"tile size must be positive, got {self.tile_size}")
        if self.max_width < self.tile_size:
            raise ValueError(f"max width {self.max_width} is smaller than tile size {self.tile_size}")
        if self.on_error not in ON_ERROR_CHOICES:
            raise ValueError(f"unknown failure policy {self.on_error!r}; expected one of {ON_ERROR_CHOICES}")
        if self.threads < 1:
            raise ValueError(f"threads must be positive, got {self.threads}")
        if self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")
        if not 0 <= self.quality <= 100:
            raise ValueError(f"quality must be within 0..100, got {self.quality}")
        return self


def config_from_args(args, environ: Optional[Dict[str, str]] = None) -> SpriteConfig:
    """
    Resolve parsed CLI arguments into a SpriteConfig.

    Per-target defaults (tile size, WebP quality) apply unless the argument was
    given explicitly. The GitHub token comes from the environment only.
    """
    env = os.environ if environ is None else environ
    target = TARGETS[args.target]
    return SpriteConfig(
        target=target,
        output_dir=Path(args.output_dir),
        tile_size=args.tile_size if args.tile_size is not None else target.tile_size,
        max_width=args.max_width,
        on_error=args.on_error,
        threads=args.threads,
        timeout=args.timeout,
        quality=args.quality if args.quality is not None else target.quality,
        repo=args.repo,
        collective=args.collective,
        testimonials_file=Path(args.testimonials),
        github_token=env.get(TOKEN_ENV) or None,
    ).validate()
