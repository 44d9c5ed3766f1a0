#!/usr/bin/env python3
"""
Unified build tools CLI for adaptor packages.

Usage:
    python -m adaptor_tools <command> [options]

Commands:
    codegen     Generate resource builders from FHIR definitions
    dts         Emit TypeScript declarations for a package
    clean       Clean generated artifacts and caches

Examples:
    python -m adaptor_tools codegen definitions/ --package-dir packages/fhir-jembi
    python -m adaptor_tools dts fhir-jembi
    python -m adaptor_tools clean packages/fhir-jembi --dry-run
"""

from __future__ import annotations

import sys


def _exit_code(e: SystemExit) -> int:
    if e.code is None:
        return 0
    if isinstance(e.code, int):
        return e.code
    print(e.code, file=sys.stderr)
    return 1


def cmd_codegen(args: list[str]) -> int:
    """Generate resource builders."""
    from adaptor_tools.builder_codegen import main as codegen
    try:
        codegen.main(args)
        return 0
    except SystemExit as e:
        return _exit_code(e)


def cmd_dts(args: list[str]) -> int:
    """Emit TypeScript declarations."""
    from adaptor_tools import dts
    try:
        dts.main(args)
        return 0
    except SystemExit as e:
        return _exit_code(e)


def cmd_clean(args: list[str]) -> int:
    """Clean generated artifacts."""
    from adaptor_tools import clean
    try:
        clean.main(args)
        return 0
    except SystemExit as e:
        return _exit_code(e)


COMMANDS = {
    "codegen": (cmd_codegen, "Generate resource builders from FHIR definitions"),
    "dts": (cmd_dts, "Emit TypeScript declarations for a package"),
    "clean": (cmd_clean, "Clean generated artifacts and caches"),
}


def main(argv: list[str] | None = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    if not argv or argv[0] in ("-h", "--help"):
        print(__doc__)
        print("Available commands:")
        for name, (_, desc) in COMMANDS.items():
            print(f"  {name:12} {desc}")
        print("\nUse '<command> --help' for command-specific options.")
        return 0

    command = argv[0]
    args = argv[1:]

    if command not in COMMANDS:
        print(f"Unknown command: {command}")
        print(f"Available commands: {', '.join(COMMANDS.keys())}")
        return 1

    handler, _ = COMMANDS[command]
    return handler(args)


if __name__ == "__main__":
    sys.exit(main())
