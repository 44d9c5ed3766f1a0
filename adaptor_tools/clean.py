#!/usr/bin/env python3
"""
Clean generated artifacts of an adaptor package and the tools' caches.

Removes:
- Generated builders (src/builders.d.ts, src/builders.js)
- Emitted declarations (types/)
- Build output (dist/, only with --dist)
- Python caches (__pycache__, .pyc files) under adaptor_tools, in a source
  checkout only
"""

from __future__ import annotations

import argparse
import shutil
from pathlib import Path
from typing import Iterable, Iterator

TOOLS_DIR = Path(__file__).resolve().parent

GENERATED_FILES: tuple[tuple[str, str], ...] = (
    ("src/builders.d.ts", "Generated builder declarations"),
    ("src/builders.js", "Generated builders"),
)

GENERATED_DIRS: tuple[tuple[str, str], ...] = (
    ("types", "Emitted declarations"),
)

DIST_DIRS: tuple[tuple[str, str], ...] = (
    ("dist", "Build output"),
)


def find_pycache_dirs(root: Path) -> Iterator[Path]:
    """Find all __pycache__ directories under root."""
    for path in root.rglob("__pycache__"):
        if path.is_dir():
            yield path


def find_pyc_files(root: Path) -> Iterator[Path]:
    """Find all .pyc files under root."""
    for path in root.rglob("*.pyc"):
        if path.is_file():
            yield path


def get_dir_size(path: Path) -> int:
    """Get total size of a directory in bytes."""
    if not path.exists():
        return 0
    total = 0
    try:
        for item in path.rglob("*"):
            if item.is_file():
                total += item.stat().st_size
    except OSError:
        pass
    return total


def format_size(size_bytes: float) -> str:
    """Format size in human-readable form."""
    for unit in ("B", "KB", "MB", "GB"):
        if size_bytes < 1024:
            return f"{size_bytes:.1f} {unit}"
        size_bytes /= 1024
    return f"{size_bytes:.1f} TB"


def clean_directory(path: Path, description: str, *, dry_run: bool = False) -> int:
    """Clean a directory, returning bytes freed."""
    if not path.exists():
        return 0

    size = get_dir_size(path)
    if dry_run:
        print(f"  Would remove: {path} ({description}) - {format_size(size)}")
    else:
        print(f"  Removing: {path} ({description}) - {format_size(size)}")
        shutil.rmtree(path, ignore_errors=True)
    return size


def clean_file(path: Path, description: str = "", *, dry_run: bool = False) -> int:
    """Clean a file, returning bytes freed."""
    if not path.exists():
        return 0

    size = path.stat().st_size
    label = f"{path} ({description})" if description else str(path)
    if dry_run:
        print(f"  Would remove: {label} - {format_size(size)}")
    else:
        print(f"  Removing: {label} - {format_size(size)}")
        path.unlink()
    return size


def is_source_checkout(tools_dir: Path) -> bool:
    """True when the tools run from a checkout rather than an installed copy."""
    return (tools_dir.parent / "pyproject.toml").is_file()


def clean_package(package_dir: Path, *, dist: bool = False, dry_run: bool = False) -> int:
    """Remove the generated artifacts of one package, returning bytes freed."""
    freed = 0
    for relative, description in GENERATED_FILES:
        freed += clean_file(package_dir / relative, description, dry_run=dry_run)

    dirs = GENERATED_DIRS + DIST_DIRS if dist else GENERATED_DIRS
    for relative, description in dirs:
        freed += clean_directory(package_dir / relative, description, dry_run=dry_run)
    return freed


def main(argv: Iterable[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        description=__doc__,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "packages",
        type=Path,
        nargs="*",
        help="Adaptor package directories to clean",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be cleaned without removing anything",
    )
    parser.add_argument(
        "--dist",
        action="store_true",
        help="Also remove dist/ build output",
    )
    args = parser.parse_args(list(argv) if argv is not None else None)

    total_freed = 0

    for package_dir in args.packages:
        print(f"Cleaning {package_dir}...")
        total_freed += clean_package(package_dir.resolve(), dist=args.dist, dry_run=args.dry_run)

    if is_source_checkout(TOOLS_DIR):
        print("\nCleaning Python caches...")
        for pycache in find_pycache_dirs(TOOLS_DIR):
            total_freed += clean_directory(pycache, "__pycache__", dry_run=args.dry_run)

        for pyc in find_pyc_files(TOOLS_DIR):
            total_freed += clean_file(pyc, dry_run=args.dry_run)

    action = "Would free" if args.dry_run else "Freed"
    print(f"\n{action}: {format_size(total_freed)}")

    if args.dry_run:
        print("\nRun without --dry-run to actually clean.")


if __name__ == "__main__":
    main()
