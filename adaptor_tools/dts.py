#!/usr/bin/env python3
"""
Emit TypeScript declaration files for an adaptor package.

Runs the TypeScript compiler in declaration-only mode against the package
entry point (src/index.ts, falling back to src/index.js) and writes the
result into the package's types/ directory.
"""

from __future__ import annotations

import argparse
import subprocess
import sys
from pathlib import Path
from typing import Final, Iterable

TOOL_DIR = Path(__file__).resolve().parent

ENTRY_POINTS: Final[tuple[str, ...]] = ("index.ts", "index.js")


class BuildError(Exception):
    """Raised when the declaration build fails."""

    pass


def resolve_package_path(name: str, root: Path | None = None) -> Path:
    """Resolve a package name (or an existing directory) to its root.

    Package names are looked up under ``root/packages``, where ``root``
    defaults to the current directory.
    """
    candidate = Path(name)
    if candidate.is_dir():
        return candidate.resolve()
    return ((root or Path.cwd()) / "packages" / name).resolve()


def find_entry_point(package_dir: Path) -> Path | None:
    """Return the first existing entry point under src/."""
    for file_name in ENTRY_POINTS:
        entry = package_dir / "src" / file_name
        if entry.exists():
            return entry
    return None


def build_tsc_command(entry: Path, package_dir: Path) -> list[str]:
    return [
        "pnpm",
        "exec",
        "tsc",
        "--allowJs",
        "--declaration",
        "--emitDeclarationOnly",
        "--lib",
        "es2020",
        "--declarationDir",
        str(package_dir / "types"),
        str(entry),
    ]


def run_command(
    command: list[str],
    cwd: Path = TOOL_DIR,
) -> subprocess.CompletedProcess:
    """Run a command, capturing its output."""
    print(f"\n$ {' '.join(str(c) for c in command)}")
    try:
        return subprocess.run(
            command,
            cwd=cwd,
            check=False,
            capture_output=True,
            text=True,
        )
    except FileNotFoundError as e:
        raise BuildError(f"Command not found: {e.filename}") from e


def build_dts(name: str, *, root: Path | None = None, check: bool = False) -> int:
    """Emit declarations for a package.

    Args:
        name: Package name under ``packages/`` or a package directory.
        root: Repository root, defaults to the current directory.
        check: Fail on compiler errors instead of only reporting them.

    Returns:
        The compiler's exit code.

    Raises:
        BuildError: If there is no entry point, the compiler cannot be
            started, or ``check`` is set and the compiler failed.
    """
    package_dir = resolve_package_path(name, root)
    print()
    print("Building DTS")
    print()

    entry = find_entry_point(package_dir)
    if entry is None:
        raise BuildError(
            f"No entry point found in {package_dir / 'src'} "
            f"(looked for {', '.join(ENTRY_POINTS)})"
        )
    print(entry)

    # The compiler runs out of the build tool dir
    result = run_command(build_tsc_command(entry, package_dir), cwd=TOOL_DIR)
    if result.stdout:
        print(result.stdout)

    if result.returncode != 0:
        if result.stderr:
            print(result.stderr, file=sys.stderr)
        if check:
            raise BuildError(f"tsc exited with code {result.returncode}")
        print(f"Warning: tsc reported errors (exit code {result.returncode})")

    return result.returncode


def main(argv: Iterable[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        description=__doc__,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "package",
        help="Package name under packages/, or a package directory",
    )
    parser.add_argument(
        "--root",
        type=Path,
        default=None,
        help="Repository root containing packages/ (default: current directory)",
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Fail when the compiler reports errors",
    )
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        build_dts(args.package, root=args.root, check=args.check)
    except BuildError as e:
        raise SystemExit(f"Error: {e}") from e


if __name__ == "__main__":
    main()
