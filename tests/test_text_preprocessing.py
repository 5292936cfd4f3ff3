import pathlib
import sys

import pytest

ROOT = pathlib.Path(__file__).resolve().parents[1]
BACKEND_PATH = ROOT / "src" / "backend"
if str(BACKEND_PATH) not in sys.path:
    sys.path.insert(0, str(BACKEND_PATH))

from comment_sentiment.utils.text_preprocessing import MAX_TEXT_BYTES, byte_length, is_empty, preprocess_comment


@pytest.mark.parametrize("text", ["", "   ", "\n\t  \n"])
def test_blank_text_collapses_to_empty(text):
    assert preprocess_comment(text) == ""
    assert is_empty(text)


def test_preprocess_strips_surrounding_whitespace():
    assert preprocess_comment("  Great video!\n") == "Great video!"
    assert not is_empty("  x ")


def test_short_text_is_unchanged():
    text = "This tutorial saved my weekend."
    assert preprocess_comment(text) == text
    assert preprocess_comment(preprocess_comment(text)) == text


def test_long_ascii_text_is_truncated_to_byte_limit():
    text = "a" * 6000

    result = preprocess_comment(text)

    assert byte_length(result) <= MAX_TEXT_BYTES
    assert result == "a" * MAX_TEXT_BYTES


def test_multibyte_characters_are_never_split():
    emoji = "\U0001F600"  # 4 bytes in UTF-8
    text = emoji * 1300  # 5200 bytes, only 1300 characters

    result = preprocess_comment(text)

    assert byte_length(result) <= MAX_TEXT_BYTES
    assert result == emoji * 1250
    assert result.encode("utf-8").decode("utf-8") == result


def test_truncation_stops_on_character_boundary_with_mixed_widths():
    text = "ab" + "é" * 10  # 2 + 20 bytes
    result = preprocess_comment(text, max_bytes=7)

    assert result == "abéé"
    assert byte_length(result) == 6


def test_byte_length_counts_utf8_bytes():
    assert byte_length("abc") == 3
    assert byte_length("é") == 2
    assert byte_length("日本") == 6
    assert byte_length("\U0001F44D") == 4
