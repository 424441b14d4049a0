"""Sentence splitting tuned for model answers."""

from __future__ import annotations

import re

# Stand-in for a dot that must not end a sentence. Same length as ".", so
# offsets inside a sentence are unchanged.
_DOT_PLACEHOLDER = "\ue000"

ABBREVIATIONS = ("Mr.", "Mrs.", "Ms.", "Dr.", "Prof.", "U.S.", "U.K.", "e.g.", "i.e.")

_ABBREVIATION_RE = re.compile(
    "|".join(
        r"(?<![A-Za-z])" + re.escape(abbreviation)
        for abbreviation in sorted(ABBREVIATIONS, key=len, reverse=True)
    )
)
_LIST_ITEM_RE = re.compile(r"\n(?=[ \t]*(?:[-*+•]|\d+[.)])[ \t]+)")
_SENTENCE_BOUNDARY_RE = re.compile(r"(?<=[.!?])\s+(?=[A-Z])")
_TERMINATOR_RE = re.compile(r"[.!?]+(?=\s|$)")


def _protect_abbreviations(text: str) -> str:
    return _ABBREVIATION_RE.sub(lambda m: m.group(0).replace(".", _DOT_PLACEHOLDER), text)


def _restore_abbreviations(text: str) -> str:
    return text.replace(_DOT_PLACEHOLDER, ".")


def split_list_items(text: str) -> list[str]:
    """Split text so every bulleted or numbered list entry stands alone."""
    return [chunk for chunk in _LIST_ITEM_RE.split(text) if chunk.strip()]


def split_into_sentences(text: str) -> list[str]:
    """
    Split text into sentences.

    List items are separated first. Within each chunk a sentence ends at
    ``.``, ``!`` or ``?`` followed by whitespace and an uppercase letter, or
    at the end of the text. Common abbreviations (``Mr.``, ``U.S.``,
    ``e.g.`` ...) never end a sentence.
    """
    sentences: list[str] = []
    for chunk in split_list_items(text):
        protected = _protect_abbreviations(chunk)
        for sentence in _SENTENCE_BOUNDARY_RE.split(protected):
            sentence = _restore_abbreviations(sentence).strip()
            if sentence:
                sentences.append(sentence)

    if not sentences and text.strip():
        return [text.strip()]
    return sentences


def count_sentence_breaks(text: str) -> int:
    """Count sentence terminators, ignoring dots inside abbreviations and URLs."""
    return len(_TERMINATOR_RE.findall(_protect_abbreviations(text)))
