from __future__ import annotations

import argparse
import json
import os
import sys
from importlib import metadata
from pathlib import Path

import tomllib
import uvicorn
from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

from .furigana import Segment, align_furigana, load_exception_table, set_debug_logging
from .logging_utils import build_uvicorn_log_config
from .romaji import to_romaji
from .segments import (
    deserialize_segments,
    segments_to_bracket_text,
    segments_to_html,
    serialize_segments,
)
from .web import WebConfig, create_app

EXCEPTIONS_ENV = "FURI_EXCEPTIONS"
OUTPUT_FORMATS = ("text", "bracket", "json", "html")


def _read_local_version() -> str | None:
    try:
        pyproject_path = Path(__file__).resolve().parents[2] / "pyproject.toml"
    except IndexError:  # pragma: no cover
        return None
    try:
        with pyproject_path.open("rb") as fh:
            data = tomllib.load(fh)
    except (FileNotFoundError, tomllib.TOMLDecodeError):
        return None
    return data.get("project", {}).get("version")


try:
    __version__ = metadata.version("furi")
except metadata.PackageNotFoundError:
    __version__ = _read_local_version() or "0.0.0+unknown"


def _add_version_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"furi {__version__}",
    )


def _add_exceptions_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--exceptions",
        default=os.environ.get(EXCEPTIONS_ENV),
        help=(
            "JSON file with extra exception entries merged over the built-in table "
            f"(default: ${EXCEPTIONS_ENV})."
        ),
    )


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        description=(
            "Align a Japanese title with its hiragana reading and print furigana segments. "
            "Use `furi romaji`, `furi batch` or `furi web` for the other tools; for a title "
            "that is itself a command name, use `furi align web よみ` or `furi -- web よみ`."
        ),
    )
    _add_version_flag(ap)
    ap.add_argument("title", help="Display title (kanji, kana, Latin, punctuation).")
    ap.add_argument("reading", help="Reading of the whole title in hiragana.")
    ap.add_argument(
        "-f",
        "--format",
        choices=OUTPUT_FORMATS,
        default="text",
        help="Output format: 'text' (table, default), 'bracket' (好(す)き), 'json' or 'html'.",
    )
    _add_exceptions_flag(ap)
    ap.add_argument(
        "--debug",
        action="store_true",
        help="Print alignment debug messages (exception hits, fallbacks).",
    )
    return ap


def build_romaji_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Transliterate kana to romaji.")
    _add_version_flag(ap)
    ap.add_argument(
        "kana",
        nargs="+",
        help="Hiragana or katakana to transliterate. Multiple arguments are joined with spaces.",
    )
    return ap


def build_batch_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        description="Align every title/reading pair of a JSON or TSV file.",
    )
    _add_version_flag(ap)
    ap.add_argument(
        "input_path",
        help=(
            "JSON array of {\"title\", \"reading\"} objects (an optional \"segments\" array is kept "
            "as is), or a .tsv file with title<TAB>reading lines."
        ),
    )
    ap.add_argument(
        "-o",
        "--output",
        help="Write the JSON result here instead of stdout.",
    )
    _add_exceptions_flag(ap)
    ap.add_argument(
        "--debug",
        action="store_true",
        help="Print alignment debug messages (exception hits, fallbacks).",
    )
    ap.add_argument(
        "--no-progress",
        action="store_true",
        help="Disable the progress bar.",
    )
    return ap


def build_web_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Serve the aligner over HTTP.")
    _add_version_flag(ap)
    ap.add_argument(
        "--host",
        default="127.0.0.1",
        help="Interface to bind (default: 127.0.0.1).",
    )
    ap.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to bind (default: 8000).",
    )
    _add_exceptions_flag(ap)
    ap.add_argument(
        "--debug",
        action="store_true",
        help="Verbose server logs and alignment debug messages.",
    )
    return ap


def _load_exceptions(value: str | None) -> dict[str, tuple[Segment, ...]]:
    if not value:
        return {}
    path = Path(value).expanduser()
    if not path.is_file():
        raise FileNotFoundError(f"Exceptions file not found: {path}")
    return load_exception_table(path)


def _print_segments(segments: list[Segment], output_format: str) -> None:
    if output_format == "json":
        print(json.dumps(serialize_segments(segments), ensure_ascii=False, indent=2))
        return
    if output_format == "html":
        print(segments_to_html(segments))
        return
    if output_format == "bracket":
        print(segments_to_bracket_text(segments))
        return
    table = Table(show_header=True, header_style="bold")
    table.add_column("#", justify="right", style="dim")
    table.add_column("text")
    table.add_column("ruby", style="cyan")
    for index, segment in enumerate(segments, start=1):
        table.add_row(str(index), segment.text, segment.ruby or "")
    Console().print(table)


def _run_align(args: argparse.Namespace) -> int:
    set_debug_logging(bool(getattr(args, "debug", False)))
    exceptions = _load_exceptions(args.exceptions)
    segments = align_furigana(args.title, args.reading, exceptions=exceptions)
    _print_segments(segments, args.format)
    return 0


def _run_romaji(args: argparse.Namespace) -> int:
    print(to_romaji(" ".join(args.kana)))
    return 0


def _read_batch_entries(path: Path) -> list[tuple[str, str, list[Segment] | None]]:
    """
    Read title/reading pairs. JSON entries may carry curated ``segments``,
    which are kept as they are instead of being aligned.
    """
    if not path.is_file():
        raise FileNotFoundError(f"Input file not found: {path}")
    text = path.read_text(encoding="utf-8")
    entries: list[tuple[str, str, list[Segment] | None]] = []
    if path.suffix.lower() == ".tsv":
        for line_no, line in enumerate(text.splitlines(), start=1):
            if not line.strip():
                continue
            parts = line.split("\t")
            if len(parts) != 2:
                raise ValueError(f"{path.name}:{line_no}: expected title<TAB>reading.")
            entries.append((parts[0], parts[1], None))
        return entries
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Failed to parse batch file: {path}") from exc
    if not isinstance(raw, list):
        raise ValueError(f"{path.name} must contain a JSON array.")
    for entry in raw:
        if not isinstance(entry, dict):
            continue
        title = entry.get("title")
        if not isinstance(title, str):
            continue
        reading = entry.get("reading")
        segments_payload = entry.get("segments")
        if isinstance(segments_payload, list):
            segments = deserialize_segments(segments_payload)
            if "".join(segment.text for segment in segments) != title:
                raise ValueError(f"{path.name}: segments for {title!r} do not spell out the title.")
            entries.append((title, reading if isinstance(reading, str) else "", segments))
            continue
        if not isinstance(reading, str):
            continue
        entries.append((title, reading, None))
    return entries


def _run_batch(args: argparse.Namespace) -> int:
    set_debug_logging(bool(getattr(args, "debug", False)))
    exceptions = _load_exceptions(args.exceptions)
    entries = _read_batch_entries(Path(args.input_path).expanduser())

    results: list[dict[str, object]] = []
    progress = Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        TimeElapsedColumn(),
        console=Console(stderr=True),
        disable=bool(args.no_progress),
    )
    with progress:
        task_id = progress.add_task("Aligning", total=len(entries))
        for title, reading, curated in entries:
            if curated is None:
                segments = align_furigana(title, reading, exceptions=exceptions)
            else:
                segments = curated
            results.append(
                {
                    "title": title,
                    "reading": reading,
                    "segments": serialize_segments(segments),
                }
            )
            progress.advance(task_id)

    payload = json.dumps(results, ensure_ascii=False, indent=2)
    if args.output:
        output_path = Path(args.output).expanduser()
        output_path.write_text(payload + "\n", encoding="utf-8")
    else:
        print(payload)
    return 0


def _run_web(args: argparse.Namespace) -> int:
    debug = bool(getattr(args, "debug", False))
    set_debug_logging(debug)
    exceptions_path = Path(args.exceptions).expanduser() if args.exceptions else None
    config = WebConfig(host=args.host, port=args.port, exceptions_path=exceptions_path)
    app = create_app(config)
    print(f"Serving furi on http://{config.host}:{config.port}/")
    print("Press Ctrl+C to stop.\n")
    uvicorn.run(
        app,
        host=config.host,
        port=config.port,
        log_config=build_uvicorn_log_config(debug=debug),
    )
    return 0


def main(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    if argv and argv[0] == "align":
        runner, args = _run_align, build_parser().parse_args(argv[1:])
    elif argv and argv[0] == "romaji":
        runner, args = _run_romaji, build_romaji_parser().parse_args(argv[1:])
    elif argv and argv[0] == "batch":
        runner, args = _run_batch, build_batch_parser().parse_args(argv[1:])
    elif argv and argv[0] == "web":
        runner, args = _run_web, build_web_parser().parse_args(argv[1:])
    else:
        parser = build_parser()
        if not argv:
            parser.print_help()
            return 0
        runner, args = _run_align, parser.parse_args(argv)

    try:
        return runner(args)
    except (FileNotFoundError, ValueError) as exc:
        print(f"furi: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
