from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Mapping, Sequence

from .kana import is_anchor_char, is_hiragana, katakana_to_hiragana

__all__ = [
    "ANCHOR_CHUNK",
    "TEXT_CHUNK",
    "Chunk",
    "Segment",
    "EXCEPTIONS",
    "chunk_title",
    "align_anchors",
    "build_segments",
    "align_furigana",
    "load_exception_table",
    "set_debug_logging",
]

ANCHOR_CHUNK = "anchor"
TEXT_CHUNK = "text"

_DEBUG_LOG = False


def set_debug_logging(enabled: bool) -> None:
    global _DEBUG_LOG
    _DEBUG_LOG = enabled


def _debug_log(message: str) -> None:
    if _DEBUG_LOG:
        print(f"[furi debug] {message}")


@dataclass(frozen=True, slots=True)
class Segment:
    """
    One display unit of a title.

    ``text`` is an exact slice of the title; ``ruby`` holds the part of the
    reading rendered above it, or ``None`` when the unit is shown plainly.
    """

    text: str
    ruby: str | None = None


@dataclass(frozen=True, slots=True)
class Chunk:
    kind: str
    raw: str
    normalized: str = ""

    @property
    def is_anchor(self) -> bool:
        return self.kind == ANCHOR_CHUNK


def _seg(text: str, ruby: str | None = None) -> Segment:
    return Segment(text=text, ruby=ruby)


# Titles whose right-most-first alignment is valid but reads wrong.
EXCEPTIONS: dict[str, tuple[Segment, ...]] = {
    "好き！雪！本気マジック": (
        _seg("好", "す"),
        _seg("き！"),
        _seg("雪", "ゆき"),
        _seg("！"),
        _seg("本気", "まじ"),
        _seg("マジック"),
    ),
}


def chunk_title(title: str) -> list[Chunk]:
    """
    Split ``title`` into anchor chunks (runs of hiragana, or of katakana and
    the long-vowel mark) and text chunks (everything in between).
    """
    chunks: list[Chunk] = []
    current: list[str] = []
    current_kind: str | None = None

    def flush() -> None:
        if not current:
            return
        raw = "".join(current)
        current.clear()
        if current_kind == TEXT_CHUNK:
            chunks.append(Chunk(kind=TEXT_CHUNK, raw=raw))
        else:
            chunks.append(Chunk(kind=ANCHOR_CHUNK, raw=raw, normalized=katakana_to_hiragana(raw)))

    for ch in title:
        if not is_anchor_char(ch):
            kind = TEXT_CHUNK
        elif is_hiragana(ch):
            kind = "hiragana"
        else:
            kind = "katakana"
        if kind != current_kind:
            flush()
            current_kind = kind
        current.append(ch)
    flush()
    return chunks


def align_anchors(reading: str, anchors: Sequence[str]) -> list[int] | None:
    """
    Place every anchor in ``reading``, last anchor first.

    Each anchor takes its right-most occurrence that ends at or before the
    start of the anchor after it; when the anchors before it cannot be
    placed, the next earlier occurrence is tried. Returns one start offset
    per anchor in title order, or ``None`` when no order-preserving,
    non-overlapping placement exists.
    """
    failed: set[tuple[int, int]] = set()
    # Explicit stack: offsets[i] / bounds[i] belong to anchor len(anchors) - 1 - i.
    offsets: list[int] = []
    bounds: list[int] = []
    k = len(anchors) - 1
    end = len(reading)
    limit = end
    while k >= 0:
        pos = -1
        if (end, k) not in failed:
            pos = reading.rfind(anchors[k], 0, limit)
        if pos >= 0:
            offsets.append(pos)
            bounds.append(end)
            k -= 1
            end = pos
            limit = pos
            continue
        failed.add((end, k))
        if not offsets:
            return None
        # Retry the anchor after this one strictly before its last match.
        previous = offsets.pop()
        end = bounds.pop()
        k += 1
        limit = previous + len(anchors[k]) - 1
    offsets.reverse()
    return offsets


def build_segments(chunks: Sequence[Chunk], reading: str, offsets: Sequence[int]) -> list[Segment]:
    segments: list[Segment] = []
    pi = 0
    a = 0
    for chunk in chunks:
        if chunk.is_anchor:
            segments.append(Segment(text=chunk.raw))
            pi = offsets[a] + len(chunk.normalized)
            a += 1
            continue
        span_end = offsets[a] if a < len(offsets) else len(reading)
        ruby = reading[pi:span_end]
        segments.append(Segment(text=chunk.raw, ruby=ruby or None))
        pi = span_end
    return segments


def align_furigana(
    title: str,
    reading: str,
    *,
    exceptions: Mapping[str, Sequence[Segment]] | None = None,
) -> list[Segment]:
    """
    Split ``title`` into display segments annotated with slices of
    ``reading`` (a hiragana reading of the whole title).

    Never raises: empty input and titles that cannot be aligned come back
    as a single unannotated segment.
    """
    if not title or not reading:
        return [Segment(text=title or "")]

    if exceptions and title in exceptions:
        _debug_log(f"user exception hit: {title!r}")
        return list(exceptions[title])
    if title in EXCEPTIONS:
        _debug_log(f"exception table hit: {title!r}")
        return list(EXCEPTIONS[title])

    chunks = chunk_title(title)
    anchors = [chunk.normalized for chunk in chunks if chunk.is_anchor]
    offsets = align_anchors(reading, anchors)
    if offsets is None:
        _debug_log(f"unalignable, falling back to plain title: {title!r} / {reading!r}")
        return [Segment(text=title)]
    return build_segments(chunks, reading, offsets)


def _parse_segment_entries(entries: Iterable[object], title: str, source: Path) -> tuple[Segment, ...]:
    segments: list[Segment] = []
    for entry in entries:
        if not isinstance(entry, dict):
            raise ValueError(f"{source.name}: segments for {title!r} must be objects.")
        text = entry.get("text")
        if not isinstance(text, str):
            raise ValueError(f"{source.name}: every segment for {title!r} needs a 'text' string.")
        ruby = entry.get("ruby")
        if not isinstance(ruby, str) or not ruby:
            ruby = None
        segments.append(Segment(text=text, ruby=ruby))
    if "".join(segment.text for segment in segments) != title:
        raise ValueError(f"{source.name}: segments for {title!r} do not spell out the title.")
    return tuple(segments)


def load_exception_table(path: Path) -> dict[str, tuple[Segment, ...]]:
    """Load extra exception entries from a JSON file."""
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ValueError(f"Failed to parse exceptions file: {path}") from exc
    entries = raw.get("exceptions") if isinstance(raw, dict) else None
    if not isinstance(entries, list):
        raise ValueError(f"{path.name} must contain an 'exceptions' array.")
    table: dict[str, tuple[Segment, ...]] = {}
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        title = entry.get("title")
        if not isinstance(title, str) or not title:
            continue
        segments = entry.get("segments")
        if not isinstance(segments, list):
            raise ValueError(f"{path.name}: entry {title!r} must contain a 'segments' array.")
        table[title] = _parse_segment_entries(segments, title, path)
    return table
