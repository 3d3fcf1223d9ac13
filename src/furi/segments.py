from __future__ import annotations

import html
from typing import Iterable, Mapping

from bs4 import BeautifulSoup
from bs4.element import Comment, NavigableString, Tag

from .furigana import Segment

__all__ = [
    "serialize_segments",
    "deserialize_segments",
    "segments_to_html",
    "segments_to_bracket_text",
    "segments_from_html",
]


def serialize_segments(segments: Iterable[Segment]) -> list[dict[str, str]]:
    payload: list[dict[str, str]] = []
    for segment in segments:
        entry = {"text": segment.text}
        if segment.ruby:
            entry["ruby"] = segment.ruby
        payload.append(entry)
    return payload


def deserialize_segments(data: Iterable[Mapping[str, object]]) -> list[Segment]:
    segments: list[Segment] = []
    for entry in data:
        if not isinstance(entry, Mapping):
            continue
        text = entry.get("text")
        if not isinstance(text, str):
            continue
        ruby = entry.get("ruby")
        if not isinstance(ruby, str) or not ruby:
            ruby = None
        segments.append(Segment(text=text, ruby=ruby))
    return segments


def segments_to_html(segments: Iterable[Segment]) -> str:
    """Render segments as inline HTML, annotated ones wrapped in <ruby>."""
    parts: list[str] = []
    for segment in segments:
        text = html.escape(segment.text)
        if segment.ruby:
            ruby = html.escape(segment.ruby)
            parts.append(f"<ruby>{text}<rp>(</rp><rt>{ruby}</rt><rp>)</rp></ruby>")
        else:
            parts.append(text)
    return "".join(parts)


def segments_to_bracket_text(segments: Iterable[Segment]) -> str:
    parts: list[str] = []
    for segment in segments:
        parts.append(segment.text)
        if segment.ruby:
            parts.append(f"({segment.ruby})")
    return "".join(parts)


def _ruby_base_text(ruby: Tag) -> str:
    """
    Base text of a <ruby>, ignoring <rt>/<rp>. Prefers segmented <rb>.
    """
    rbs = ruby.find_all("rb", recursive=False)
    if rbs:
        return "".join(rb.get_text() for rb in rbs)
    parts: list[str] = []
    for child in ruby.children:
        if isinstance(child, Comment):
            continue
        if isinstance(child, NavigableString):
            parts.append(str(child))
        elif isinstance(child, Tag) and child.name not in ("rt", "rp"):
            parts.append(child.get_text())
    return "".join(parts)


def _ruby_reading_text(ruby: Tag) -> str:
    rts = ruby.find_all("rt", recursive=False)
    return "".join("".join(rt.stripped_strings) for rt in rts)


def segments_from_html(markup: str) -> list[Segment]:
    """
    Parse inline ruby markup back into segments.

    Text outside <ruby> becomes unannotated segments; consecutive plain
    runs are merged so the result matches what the aligner would emit.
    """
    soup = BeautifulSoup(markup, "html.parser")
    segments: list[Segment] = []
    plain: list[str] = []

    def flush_plain() -> None:
        if plain:
            segments.append(Segment(text="".join(plain)))
            plain.clear()

    def walk(node: Tag) -> None:
        for child in node.children:
            if isinstance(child, Comment):
                continue
            if isinstance(child, NavigableString):
                plain.append(str(child))
            elif isinstance(child, Tag):
                if child.name == "ruby":
                    base = _ruby_base_text(child)
                    reading = _ruby_reading_text(child)
                    if not base:
                        continue
                    flush_plain()
                    segments.append(Segment(text=base, ruby=reading or None))
                else:
                    walk(child)

    walk(soup)
    flush_plain()
    return segments
