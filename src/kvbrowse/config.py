"""Runtime settings and command-line parsing."""

from __future__ import annotations

import argparse
from dataclasses import dataclass

from kvbrowse._fuzzy import GROUP_DELIMITER
from kvbrowse.codec import ValueFormat

DEFAULT_PAGE_SIZE = 500


@dataclass(frozen=True)
class Settings:
    db_path: str = ""
    page_size: int = DEFAULT_PAGE_SIZE
    prefetch_threshold: int = 5
    sweep_page_size: int = 1000  # page size of the pattern delete sweep
    group_delimiter: str = GROUP_DELIMITER
    default_format: ValueFormat = ValueFormat.STRUCTURED
    read_only: bool = False
    map_size: int = 1 << 30
    memory: bool = False
    log_file: str | None = None

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> Settings:
        return cls(
            db_path=args.path,
            page_size=args.page_size,
            default_format=ValueFormat(args.format),
            read_only=args.read_only,
            map_size=args.map_size,
            memory=args.memory,
            log_file=args.log_file,
        )


def _positive(value: str) -> int:
    num = int(value)
    if num <= 0:
        raise argparse.ArgumentTypeError(f"must be positive: {value}")
    return num


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kvbrowse",
        description="Browse and edit an LMDB key-value store in the terminal",
    )
    parser.add_argument(
        "path",
        nargs="?",
        default="./data/lmdb",
        help="LMDB environment directory (or file)",
    )
    parser.add_argument(
        "-R", "--read-only",
        action="store_true",
        default=False,
        help="open the store read-only; editing and deleting are disabled",
    )
    parser.add_argument(
        "--page-size",
        type=_positive,
        default=DEFAULT_PAGE_SIZE,
        help="number of keys fetched per page (default: %(default)s)",
    )
    parser.add_argument(
        "--format",
        choices=[f.value for f in ValueFormat],
        default=ValueFormat.STRUCTURED.value,
        help="initial value format (default: %(default)s)",
    )
    parser.add_argument(
        "--map-size",
        type=_positive,
        default=1 << 30,
        help="LMDB map size in bytes",
    )
    parser.add_argument(
        "--memory",
        action="store_true",
        default=False,
        help="use an empty in-memory store instead of LMDB",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="write debug logs to this file",
    )
    return parser


def parse_settings(argv: list[str] | None = None) -> Settings:
    return Settings.from_args(build_parser().parse_args(argv))
