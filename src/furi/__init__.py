from .furigana import Segment, align_furigana, load_exception_table
from .romaji import to_romaji
from .segments import segments_from_html, segments_to_html, serialize_segments

__all__ = [
    "Segment",
    "align_furigana",
    "load_exception_table",
    "to_romaji",
    "segments_to_html",
    "segments_from_html",
    "serialize_segments",
]
