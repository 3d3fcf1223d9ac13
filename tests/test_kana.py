from __future__ import annotations

import pytest

from furi.kana import is_anchor_char, is_hiragana, is_katakana, katakana_to_hiragana


@pytest.mark.parametrize("ch", ["ぁ", "あ", "ん", "ゟ"])
def test_hiragana_block(ch: str) -> None:
    assert is_hiragana(ch)
    assert not is_katakana(ch)


@pytest.mark.parametrize("ch", ["ァ", "ア", "ヴ", "ヺ", "ー"])
def test_katakana_block_and_long_vowel_mark(ch: str) -> None:
    assert is_katakana(ch)
    assert is_anchor_char(ch)


@pytest.mark.parametrize("ch", ["猫", "A", "1", "！", "・", "ｱ", "ヽ", ""])
def test_non_anchor_characters(ch: str) -> None:
    assert not is_anchor_char(ch)


def test_katakana_to_hiragana_folds_by_fixed_offset() -> None:
    assert katakana_to_hiragana("マジック") == "まじっく"
    assert katakana_to_hiragana("ヴァ") == "ゔぁ"


def test_katakana_to_hiragana_leaves_other_characters() -> None:
    assert katakana_to_hiragana("タワー") == "たわー"
    assert katakana_to_hiragana("ヷ猫ねこ!") == "ヷ猫ねこ!"
