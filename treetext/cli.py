"""Command-line front door for treetext.

Parses subcommands, resolves config defaults and the rendering font, then
dispatches into the encode/decode/list pipeline.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from .codec.hashing import HASH_ALGORITHMS
from .codec.records import DirectoryRecord
from .config import SETTING_KEYS, Settings, load_settings, save_setting, settings_as_dict
from .errors import ArchiveError
from .pipeline import Sink, decode_archive_file, encode_directory_to_file, list_archive
from .render.fonts import FontResource, find_system_font, load_font

logger = logging.getLogger(__name__)

DEFAULT_TEXT_OUTPUT = "outfile.txt"
DEFAULT_PDF_OUTPUT = "outfile.pdf"
DEFAULT_HTML_OUTPUT = "outfile.html"
LOG_FORMAT = "%(levelname)s: %(message)s"


def _configure_logging(verbose: bool, quiet: bool) -> None:
    level = logging.INFO
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr, force=True)


def _existing_directory(value: str) -> Path:
    """argparse type for an existing directory path."""
    path = Path(value)
    if not path.is_dir():
        raise argparse.ArgumentTypeError(f"not a directory: {value}")
    return path


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="treetext",
        description="Serialize a directory tree into pasteable text and restore it again.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every record.")
    parser.add_argument("-q", "--quiet", action="store_true", help="Only log errors.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    encode = subparsers.add_parser("encode", help="Encode a directory into an archive.")
    encode.add_argument("dir", type=_existing_directory, help="Directory to encode.")
    encode.add_argument("-o", "--out", default=None, help="Output path (default: outfile.txt/.pdf/.html).")
    render_group = encode.add_mutually_exclusive_group()
    render_group.add_argument("--pdf", action="store_true", help="Render the archive text into a PDF.")
    render_group.add_argument("--html", action="store_true", help="Render the archive text into an HTML page.")
    encode.add_argument("--font", default=None, help="TrueType font used for PDF/HTML rendering.")
    encode.add_argument("--style", default=None, help="Pygments style for HTML output.")
    encode.add_argument("--hash", choices=HASH_ALGORITHMS, default=None, help="Content hash algorithm.")
    encode.add_argument(
        "--skip-gitignored",
        action="store_true",
        default=None,
        help="Leave out files ignored by git.",
    )

    decode = subparsers.add_parser("decode", help="Recreate a directory from an archive.")
    decode.add_argument("archive", type=Path, help="Archive text file.")
    decode.add_argument("-d", "--dir", type=Path, required=True, help="Output directory.")
    decode.add_argument(
        "--restore-mtime",
        action="store_true",
        help="Set file modification dates from the archive.",
    )

    listing = subparsers.add_parser("list", help="List archive records without extracting.")
    listing.add_argument("archive", type=Path, help="Archive text file.")

    config = subparsers.add_parser("config", help="Show or change persisted defaults.")
    config.add_argument("key", nargs="?", choices=SETTING_KEYS, help="Setting to change.")
    config.add_argument("value", nargs="?", help="New value.")
    return parser


def resolve_font(font_arg: str | None, settings: Settings) -> FontResource | None:
    """Load the font from the flag, then config, then known system locations."""
    if font_arg:
        return load_font(Path(font_arg))
    if settings.font_path:
        return load_font(Path(settings.font_path))
    system_font = find_system_font()
    return load_font(system_font) if system_font is not None else None


def _build_sink(args: argparse.Namespace, settings: Settings) -> Sink | None:
    if not args.pdf and not args.html:
        return None
    font = resolve_font(args.font, settings)
    if args.pdf:
        if font is None:
            raise SystemExit("PDF output needs a TrueType font: pass --font or set font_path with 'treetext config'.")
        from .render.pdf import PdfSink

        return PdfSink(font, font_size=settings.pdf_font_size)
    from .render.html import HtmlSink

    return HtmlSink(font, style=args.style or settings.html_style, title=Path(args.dir).name or "archive")


def _run_encode(args: argparse.Namespace, settings: Settings) -> None:
    out = args.out
    if out is None:
        out = DEFAULT_PDF_OUTPUT if args.pdf else DEFAULT_HTML_OUTPUT if args.html else DEFAULT_TEXT_OUTPUT
    skip_gitignored = settings.skip_gitignored if args.skip_gitignored is None else args.skip_gitignored
    try:
        sink = _build_sink(args, settings)
        encode_directory_to_file(
            args.dir,
            Path(out),
            sink=sink,
            hash_algorithm=args.hash or settings.hash_algorithm,
            skip_gitignored=skip_gitignored,
        )
    except ArchiveError as exc:
        raise SystemExit(f"Encoding error: {exc}") from exc


def _run_decode(args: argparse.Namespace) -> None:
    try:
        result = decode_archive_file(args.archive, args.dir, restore_mtime=args.restore_mtime)
    except ArchiveError as exc:
        raise SystemExit(f"Decoding error: {exc}") from exc
    if result.truncated:
        raise SystemExit(1)


def _run_list(args: argparse.Namespace) -> None:
    try:
        records = list_archive(args.archive)
    except ArchiveError as exc:
        raise SystemExit(f"Decoding error: {exc}") from exc
    out: list[str] = []
    for record in records:
        if isinstance(record, DirectoryRecord):
            out.append(f"D  {record.relative_path}/\n")
            continue
        size = "?" if record.byte_length is None else str(record.byte_length)
        out.append(f"F  {record.relative_path}  {size}  {record.mod_date}  {record.content_hash}\n")
    sys.stdout.write("".join(out))


def _run_config(args: argparse.Namespace, settings: Settings) -> None:
    if args.key is None:
        sys.stdout.write(json.dumps(settings_as_dict(settings), indent=2) + "\n")
        return
    if args.value is None:
        raise SystemExit(f"Missing value for {args.key}.")
    try:
        value = save_setting(args.key, args.value)
    except ValueError as exc:
        raise SystemExit(str(exc)) from exc
    sys.stdout.write(f"{args.key} = {json.dumps(value)}\n")


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and run one subcommand.

    ``argv`` defaults to ``sys.argv[1:]``. User-facing failures exit through
    ``SystemExit`` with a message.
    """
    args = build_parser().parse_args(argv)
    _configure_logging(args.verbose, args.quiet)
    settings = load_settings()
    if args.command == "encode":
        _run_encode(args, settings)
    elif args.command == "decode":
        _run_decode(args)
    elif args.command == "list":
        _run_list(args)
    elif args.command == "config":
        _run_config(args, settings)


if __name__ == "__main__":
    main()
