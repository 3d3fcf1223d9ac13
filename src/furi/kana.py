from __future__ import annotations

__all__ = [
    "is_hiragana",
    "is_katakana",
    "is_anchor_char",
    "katakana_to_hiragana",
]

_CHOONPU = "ー"


def is_hiragana(ch: str) -> bool:
    if not ch:
        return False
    code = ord(ch)
    return 0x3040 <= code <= 0x309F


def is_katakana(ch: str) -> bool:
    """Katakana block proper plus the long-vowel mark."""
    if not ch:
        return False
    code = ord(ch)
    return 0x30A1 <= code <= 0x30FA or ch == _CHOONPU


def is_anchor_char(ch: str) -> bool:
    return is_hiragana(ch) or is_katakana(ch)


def katakana_to_hiragana(text: str) -> str:
    result_chars: list[str] = []
    for ch in text:
        code = ord(ch)
        # ヷ-ヺ and ー have no hiragana counterpart
        if 0x30A1 <= code <= 0x30F6:
            result_chars.append(chr(code - 0x60))
        else:
            result_chars.append(ch)
    return "".join(result_chars)
