#!/usr/bin/env python3
"""
Build tool wrapper for adaptor packages.

This is a convenience wrapper that forwards to the adaptor_tools module.
Run with --help to see available commands.

Usage:
    python build.py <command> [options]
    ./build.py <command> [options]  (on Unix with execute permission)

Commands:
    codegen     Generate resource builders from FHIR definitions
    dts         Emit TypeScript declarations for a package
    clean       Clean generated artifacts and caches

Examples:
    python build.py codegen definitions/ --package-dir packages/fhir-jembi
    python build.py dts fhir-jembi --check
    python build.py clean packages/fhir-jembi --dry-run
"""

import subprocess
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent


def main() -> int:
    """Forward all arguments to adaptor_tools module."""
    return subprocess.call(
        [sys.executable, "-m", "adaptor_tools"] + sys.argv[1:],
        cwd=ROOT,
    )


if __name__ == "__main__":
    sys.exit(main())
