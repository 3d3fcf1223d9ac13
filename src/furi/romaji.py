from __future__ import annotations

from .kana import katakana_to_hiragana

__all__ = ["to_romaji"]

_SOKUON = "っ"

_HIRA_MONO = {
    "あ": "a", "い": "i", "う": "u", "え": "e", "お": "o",
    "か": "ka", "き": "ki", "く": "ku", "け": "ke", "こ": "ko",
    "さ": "sa", "し": "shi", "す": "su", "せ": "se", "そ": "so",
    "た": "ta", "ち": "chi", "つ": "tsu", "て": "te", "と": "to",
    "な": "na", "に": "ni", "ぬ": "nu", "ね": "ne", "の": "no",
    "は": "ha", "ひ": "hi", "ふ": "fu", "へ": "he", "ほ": "ho",
    "ま": "ma", "み": "mi", "む": "mu", "め": "me", "も": "mo",
    "や": "ya", "ゆ": "yu", "よ": "yo",
    "ら": "ra", "り": "ri", "る": "ru", "れ": "re", "ろ": "ro",
    "わ": "wa", "を": "o", "ん": "n",
    "が": "ga", "ぎ": "gi", "ぐ": "gu", "げ": "ge", "ご": "go",
    "ざ": "za", "じ": "ji", "ず": "zu", "ぜ": "ze", "ぞ": "zo",
    "だ": "da", "ぢ": "ji", "づ": "zu", "で": "de", "ど": "do",
    "ば": "ba", "び": "bi", "ぶ": "bu", "べ": "be", "ぼ": "bo",
    "ぱ": "pa", "ぴ": "pi", "ぷ": "pu", "ぺ": "pe", "ぽ": "po",
    # small kana
    "ぁ": "a", "ぃ": "i", "ぅ": "u", "ぇ": "e", "ぉ": "o",
    "ゃ": "ya", "ゅ": "yu", "ょ": "yo",
    "ー": "-",
}

_HIRA_DIGRAPHS = {
    "きゃ": "kya", "きゅ": "kyu", "きょ": "kyo",
    "しゃ": "sha", "しゅ": "shu", "しょ": "sho",
    "ちゃ": "cha", "ちゅ": "chu", "ちょ": "cho",
    "にゃ": "nya", "にゅ": "nyu", "にょ": "nyo",
    "ひゃ": "hya", "ひゅ": "hyu", "ひょ": "hyo",
    "みゃ": "mya", "みゅ": "myu", "みょ": "myo",
    "りゃ": "rya", "りゅ": "ryu", "りょ": "ryo",
    "ぎゃ": "gya", "ぎゅ": "gyu", "ぎょ": "gyo",
    "じゃ": "ja", "じゅ": "ju", "じょ": "jo",
    "ぢゃ": "ja", "ぢゅ": "ju", "ぢょ": "jo",
    "びゃ": "bya", "びゅ": "byu", "びょ": "byo",
    "ぴゃ": "pya", "ぴゅ": "pyu", "ぴょ": "pyo",
}


def _syllable_at(hira: str, pos: int) -> tuple[str, int]:
    """Romaji for the syllable starting at ``pos`` and how many kana it spans."""
    pair = hira[pos : pos + 2]
    if pair in _HIRA_DIGRAPHS:
        return _HIRA_DIGRAPHS[pair], 2
    return _HIRA_MONO.get(hira[pos], ""), 1


def to_romaji(kana: str) -> str:
    """
    Transliterate hiragana/katakana to Hepburn-style romaji.

    っ doubles the consonant that follows it (がっこう → gakkou), ー becomes
    ``-`` and characters without a mapping (including a っ with nothing
    romanizable after it) are copied through unchanged.
    """
    if not kana:
        return ""

    hira = katakana_to_hiragana(kana)
    result: list[str] = []
    i = 0
    length = len(hira)
    while i < length:
        ch = hira[i]
        if ch == _SOKUON and i + 1 < length:
            following, _ = _syllable_at(hira, i + 1)
            if following:
                result.append(following[0])
                i += 1
                continue
        romaji, span = _syllable_at(hira, i)
        result.append(romaji or kana[i])
        i += span
    return "".join(result)
