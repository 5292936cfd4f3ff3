from __future__ import annotations

import re

QUESTION_WORDS: tuple[str, ...] = ("what", "when", "where", "who", "why", "how", "which", "whose", "whom")

_LEADING_QUESTION_WORD = re.compile(rf"^({'|'.join(QUESTION_WORDS)})\s", flags=re.IGNORECASE)


class QuestionDetector:
    """Pattern based interrogative detection, independent of sentiment scores."""

    def __init__(self, question_words: tuple[str, ...] = QUESTION_WORDS) -> None:
        self._question_words = frozenset(word.lower() for word in question_words)

    def is_question(self, text: str | None) -> bool:
        if not text or not text.strip():
            return False

        trimmed = text.strip()
        if "?" in trimmed:
            return True
        if self._starts_with_question_word(trimmed):
            return True
        return bool(_LEADING_QUESTION_WORD.match(trimmed))

    def _starts_with_question_word(self, text: str) -> bool:
        first_word = text.lower().split(maxsplit=1)[0]
        return first_word in self._question_words


_DETECTOR = QuestionDetector()


def is_question(text: str | None) -> bool:
    return _DETECTOR.is_question(text)
