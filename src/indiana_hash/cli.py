#!/usr/bin/env python3
"""Command-line front end for Indiana Hash.

Usage:
    # Hash a file (prints "SHA256: <hex>")
    indiana-hash hash path/to/file --algorithm SHA256

    # Read on a second thread while hashing
    indiana-hash hash big.iso -a SHA512/256 --pipelined

    # List algorithms with their selection indices
    indiana-hash algorithms

    # Write a starter ~/.indiana-hash/config.yaml
    indiana-hash init-config

    # Run the MCP server on stdio
    indiana-hash serve
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from indiana_hash import config as hash_config
from indiana_hash.algorithms import from_name
from indiana_hash.digest import Mode
from indiana_hash.errors import IndianaHashError
from indiana_hash.session import describe, selection_labels

logger = logging.getLogger("indiana_hash")
_cli_handler: logging.Handler | None = None


def _setup_logging(verbose: bool) -> None:
    """Attach a stderr handler once; -v switches it to DEBUG."""
    global _cli_handler
    if _cli_handler is None:
        _cli_handler = logging.StreamHandler(sys.stderr)
        _cli_handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
        logger.addHandler(_cli_handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


def cmd_hash(args: argparse.Namespace, cfg: hash_config.HashConfig) -> int:
    """Hash one file and print the display line."""
    algorithm = from_name(args.algorithm) if args.algorithm else cfg.algorithm
    if args.mode:
        cfg.mode = Mode(args.mode)
    if args.chunk_size is not None:
        cfg.chunk_size = args.chunk_size

    line = describe(args.path, algorithm, config=cfg)
    if line.is_error:
        print(line.text, file=sys.stderr)
        return 1
    print(line.text)
    return 0


def cmd_algorithms(args: argparse.Namespace, cfg: hash_config.HashConfig) -> int:
    """Print the selection list; index 0 means no algorithm."""
    for index, label in enumerate(selection_labels()):
        print(f"{index}  {label}")
    return 0


def cmd_init_config(args: argparse.Namespace, cfg: hash_config.HashConfig) -> int:
    p = hash_config.create_default(args.config)
    print(p)
    return 0


def cmd_serve(args: argparse.Namespace, cfg: hash_config.HashConfig) -> int:
    from indiana_hash import server

    server.main(args.config)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Compute file digests (SHA-2 family, SHA-1, MD5)",
        prog="indiana-hash",
    )
    parser.add_argument("-c", "--config", type=Path, default=None, help="Path to config.yaml")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging to stderr")
    sub = parser.add_subparsers(dest="command", required=True)

    # hash
    p1 = sub.add_parser("hash", help="Hash a file")
    p1.add_argument("path", help="File to hash")
    p1.add_argument(
        "-a", "--algorithm", default="", help="SHA512/256, SHA512, SHA384, SHA256, SHA1 or MD5"
    )
    modes = p1.add_mutually_exclusive_group()
    modes.add_argument(
        "--pipelined", dest="mode", action="store_const", const=Mode.PIPELINED.value,
        help="Read on a second thread while hashing",
    )
    modes.add_argument(
        "--sequential", dest="mode", action="store_const", const=Mode.SEQUENTIAL.value,
        help="Read and hash on one thread",
    )
    p1.add_argument("--chunk-size", type=int, default=None, help="Bytes per read (0 = page size)")
    p1.set_defaults(func=cmd_hash, mode=None)

    # algorithms
    p2 = sub.add_parser("algorithms", help="List supported algorithms")
    p2.set_defaults(func=cmd_algorithms)

    # init-config
    p3 = sub.add_parser("init-config", help="Write a starter config.yaml")
    p3.set_defaults(func=cmd_init_config)

    # serve
    p4 = sub.add_parser("serve", help="Run the MCP server on stdio")
    p4.set_defaults(func=cmd_serve)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if args.command != "serve":  # the server sets up its own handlers
        _setup_logging(args.verbose)
    try:
        cfg = hash_config.load_config(args.config)
        return args.func(args, cfg)
    except IndianaHashError as exc:
        print(exc, file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
