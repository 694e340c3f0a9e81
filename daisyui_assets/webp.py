#!/usr/bin/env python3
"""
PNG/JPEG -> WebP converter for the repository's own image assets.

Walks --root recursively and writes {stem}.webp next to every .png, .jpg and
.jpeg it finds. Existing WebP files are left alone unless the source is newer
or --overwrite is given. Hidden directories and node_modules are not scanned.

Requires: Python 3.8+, Pillow
"""

import argparse
import concurrent.futures as cf
import os
import sys
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from PIL import Image

SOURCE_EXTS = {".png", ".jpg", ".jpeg"}
SKIP_DIRS = {"node_modules", "__pycache__"}

# Transient and editor artefacts to ignore
TRANSIENT_SUFFIXES = {".swp", ".tmp", ".bak"}


def is_transient(p: Path) -> bool:
    n = p.name
    return (
        n.startswith(".#")         # Emacs lockfiles
        or n.endswith("~")         # backup files
        or n == ".DS_Store"
        or p.suffix.lower() in TRANSIENT_SUFFIXES
    )


def find_images(root: Path) -> List[Path]:
    images: List[Path] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if not d.startswith(".") and d not in SKIP_DIRS)
        for name in sorted(filenames):
            p = Path(dirpath) / name
            if p.suffix.lower() in SOURCE_EXTS and not is_transient(p):
                images.append(p)
    return images


def webp_path_for(src: Path) -> Path:
    return src.with_suffix(".webp")


def needs_processing(src: Path, dst: Path, overwrite: bool) -> bool:
    if overwrite or not dst.exists():
        return True
    return src.stat().st_mtime > dst.stat().st_mtime


def has_alpha(im: Image.Image) -> bool:
    return ("A" in im.mode) or (im.info.get("transparency") is not None)


def plan_targets(images: List[Path]) -> Tuple[List[Path], List[Tuple[Path, Path]]]:
    """
    Split sources into ones to convert and (duplicate, winner) pairs.

    logo.png and logo.jpg share logo.webp; the first in sorted order owns it.
    """
    owners: Dict[Path, Path] = {}
    duplicates: List[Tuple[Path, Path]] = []
    for src in sorted(images):
        dst = webp_path_for(src)
        if dst in owners:
            duplicates.append((src, owners[dst]))
        else:
            owners[dst] = src
    return list(owners.values()), duplicates


def convert_to_webp(src: Path, dst: Path, quality: int, lossless_alpha: bool) -> Tuple[int, int]:
    tmp = dst.with_name(dst.name + ".tmp")
    try:
        with Image.open(src) as im:
            alpha = has_alpha(im)
            im = im.convert("RGBA" if alpha else "RGB")
            if alpha and lossless_alpha:
                im.save(tmp, "WEBP", lossless=True, method=6)
            else:
                im.save(tmp, "WEBP", quality=quality, method=6)
            os.replace(tmp, dst)
            return im.size
    finally:
        if tmp.exists():
            tmp.unlink()


def process_one(src: Path, root: Path, quality: int, lossless_alpha: bool, overwrite: bool, dry_run: bool) -> Tuple[str, bool]:
    """
    Returns (status line, ok).
    """
    dst = webp_path_for(src)
    rel_src = src.relative_to(root)
    rel_dst = dst.relative_to(root)
    try:
        if not needs_processing(src, dst, overwrite):
            return f"SKIP  {rel_src}  up to date", True
        if dry_run:
            return f"DRY   {rel_src} -> {rel_dst}", True
        w, h = convert_to_webp(src, dst, quality, lossless_alpha)
        return f"DONE  {rel_src} -> {rel_dst} [{w}x{h}]", True
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        return f"ERR   {rel_src}: {e}", False


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Convert PNG/JPEG images to WebP next to their sources.")
    parser.add_argument("--root", default=".", help="Directory to scan recursively")
    parser.add_argument("--quality", type=int, default=80, help="WebP quality for lossy output")
    parser.add_argument("--lossless-alpha", action="store_true", help="Use lossless WebP if image has alpha")
    parser.add_argument("--threads", type=int, default=os.cpu_count() or 4, help="Worker threads")
    parser.add_argument("--overwrite", action="store_true", help="Recreate WebP even if up to date")
    parser.add_argument("--dry-run", action="store_true", help="Show planned actions only")
    args = parser.parse_args(argv)

    root = Path(args.root).resolve()
    if not root.is_dir():
        print(f"Root directory not found: {root}", file=sys.stderr)
        sys.exit(1)
    if not 0 <= args.quality <= 100 or args.threads < 1:
        print("--quality must be within 0..100 and --threads positive", file=sys.stderr)
        sys.exit(1)

    images = find_images(root)
    print(f"Found {len(images)} image(s) in {root}")
    print(f"quality={args.quality}, lossless alpha={'on' if args.lossless_alpha else 'off'}, "
          f"threads={args.threads}, overwrite={'on' if args.overwrite else 'off'}, dry-run={'on' if args.dry_run else 'off'}")

    work, duplicates = plan_targets(images)
    for src, owner in duplicates:
        print(f"SKIP  {src.relative_to(root)}  {webp_path_for(src).relative_to(root)} comes from {owner.name}")

    failures = 0
    with cf.ThreadPoolExecutor(max_workers=args.threads) as ex:
        futures = [
            ex.submit(process_one, p, root, args.quality, args.lossless_alpha, args.overwrite, args.dry_run)
            for p in work
        ]
        for fut in cf.as_completed(futures):
            status, ok = fut.result()
            print(status)
            if not ok:
                failures += 1

    if failures:
        print(f"{failures} image(s) failed to convert", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
