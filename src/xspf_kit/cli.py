"""Command-line interface for XSPF Kit."""

from __future__ import annotations

import argparse
from dataclasses import replace
import logging
from pathlib import Path
import sys
from typing import Callable, Iterable, Optional

from rich.console import Console
from rich.table import Table
from rich.text import Text

from xspf_kit.catalog import build_from_directory
from xspf_kit.config import AppConfig, load_config
from xspf_kit.errors import XSPFError
from xspf_kit.export import save_m3u, save_smil, save_xspf
from xspf_kit.logging_setup import init_logging
from xspf_kit.model import AttributionKind, Playlist
from xspf_kit.parser import parse_file

logger = logging.getLogger(__name__)

FORMATS = ("xspf", "m3u", "smil")


def build_parser() -> argparse.ArgumentParser:
    """Build and return the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="xspf-kit", description="Inspect, convert and build XSPF playlists"
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Echo informational log messages to stderr",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    show = commands.add_parser("show", help="Print a playlist summary")
    show.add_argument("path", help="Path to an XSPF file")

    validate = commands.add_parser("validate", help="Check that a file parses")
    validate.add_argument("path", help="Path to an XSPF file")
    validate.add_argument(
        "--strict",
        action="store_true",
        default=None,
        help="Reject invalid values and unknown elements",
    )

    convert = commands.add_parser("convert", help="Re-export a playlist")
    convert.add_argument("path", help="Path to an XSPF file")
    convert.add_argument("--to", choices=FORMATS, default="xspf", dest="fmt")
    convert.add_argument("-o", "--output", required=True, help="Destination file")
    convert.add_argument("--strict", action="store_true", default=None)

    build = commands.add_parser("build", help="Catalog a directory of audio files")
    build.add_argument("directory", help="Directory to scan")
    build.add_argument("-o", "--output", required=True, help="Destination file")
    build.add_argument("--title", default=None, help="Playlist title")
    build.add_argument(
        "--recursive", action="store_true", default=None, help="Scan subdirectories"
    )
    return parser


def format_duration(duration_ms: Optional[int]) -> str:
    if duration_ms is None:
        return ""
    seconds = duration_ms // 1000
    minutes, seconds = divmod(seconds, 60)
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes}:{seconds:02d}"


def _render_summary(playlist: Playlist, console: Console) -> None:
    heading = Text(playlist.title or "(untitled playlist)", style="bold")
    if playlist.creator:
        heading.append(f" by {playlist.creator}", style="dim")
    console.print(heading)
    if playlist.annotation:
        console.print(Text(playlist.annotation))
    sources = playlist.get_attributions(AttributionKind.ANY)
    total = format_duration(playlist.get_duration() * 1000) or "0:00"
    console.print(
        f"{len(playlist.tracks)} tracks, {total} total, {len(sources)} attributions"
    )
    table = Table(show_header=True, header_style="bold")
    table.add_column("#", justify="right")
    table.add_column("Title")
    table.add_column("Creator")
    table.add_column("Album")
    table.add_column("Duration", justify="right")
    for index, track in enumerate(playlist.tracks, start=1):
        table.add_row(
            str(track.track_num or index),
            Text(track.title or ""),
            Text(track.creator or ""),
            Text(track.album or ""),
            format_duration(track.duration),
        )
    console.print(table)


def _cmd_show(args: argparse.Namespace, cfg: AppConfig, console: Console) -> int:
    playlist = parse_file(args.path, strict=cfg.strict_parsing)
    _render_summary(playlist, console)
    return 0


def _cmd_validate(args: argparse.Namespace, cfg: AppConfig, console: Console) -> int:
    playlist = parse_file(args.path, strict=cfg.strict_parsing)
    console.print(f"{args.path}: valid XSPF ({len(playlist.tracks)} tracks)")
    return 0


def _cmd_convert(args: argparse.Namespace, cfg: AppConfig, console: Console) -> int:
    playlist = parse_file(args.path, strict=cfg.strict_parsing)
    dest = Path(args.output)
    if args.fmt == "m3u":
        save_m3u(playlist, dest, cfg)
    elif args.fmt == "smil":
        save_smil(playlist, dest)
    else:
        save_xspf(playlist, dest, cfg)
    console.print(f"Wrote {dest}")
    return 0


def _cmd_build(args: argparse.Namespace, cfg: AppConfig, console: Console) -> int:
    recursive = cfg.recursive_build if args.recursive is None else args.recursive
    playlist = build_from_directory(
        Path(args.directory), recursive=recursive, title=args.title
    )
    dest = save_xspf(playlist, Path(args.output), cfg)
    console.print(f"Wrote {dest} ({len(playlist.tracks)} tracks)")
    return 0


_COMMANDS: dict[str, Callable[[argparse.Namespace, AppConfig, Console], int]] = {
    "show": _cmd_show,
    "validate": _cmd_validate,
    "convert": _cmd_convert,
    "build": _cmd_build,
}


def main(argv: Optional[Iterable[str]] = None) -> int:
    """Entry point for the CLI."""
    args = build_parser().parse_args(list(argv) if argv is not None else None)
    init_logging(verbose=args.verbose)

    def excepthook(exc_type, exc, tb) -> None:
        logger.critical("Uncaught exception", exc_info=(exc_type, exc, tb))
        sys.__excepthook__(exc_type, exc, tb)

    sys.excepthook = excepthook

    cfg = load_config()
    if getattr(args, "strict", None):
        cfg = replace(cfg, strict_parsing=True)

    console = Console(soft_wrap=True)
    try:
        exit_code = _COMMANDS[args.command](args, cfg, console)
    except (XSPFError, OSError) as exc:
        logger.error("%s failed: %s", args.command, exc)
        err_console = Console(stderr=True, soft_wrap=True)
        err_console.print(Text.assemble(("error: ", "red"), str(exc)))
        return 1
    logger.info("Command %s exit code=%s", args.command, exit_code)
    return exit_code


if __name__ == "__main__":
    raise SystemExit(main())
