"""Locate and count entity mentions inside model answers."""

from __future__ import annotations

import logging
import re
from dataclasses import replace
from urllib.parse import quote

from common.models import AnswerDocument, Entity, EntityType, Excerpt, MentionMatch, ModelConfig
from common.urls import extract_hostname, normalize_url

logger = logging.getLogger(__name__)

CONTEXT_CHARS = 100
MAX_EXCERPTS = 5
MASK_CHAR = "#"
POSSESSIVE_MIN_LENGTH = 4
POSSESSIVE_DEDUP_DISTANCE = 2

_MARKDOWN_LINK_RE = re.compile(r"(\[[^\]]+\])\(([^)]+)\)")
_URL_SHAPE_RE = re.compile(
    r"(?:\[[^\]]+\]\()?((?:https?://)?(?:www\.)?[a-z0-9][-a-z0-9._]*\.[a-z]{2,}(?:/[^\s)]*)?)",
    re.IGNORECASE,
)
_SEPARATOR_CLASS = r"""[\s\-_.,;:!?'"()\[\]{}]+"""
# Characters encodeURIComponent leaves untouched.
_URI_SAFE = "-_.!~*'()"


def is_url_like(term: str) -> bool:
    """A term is URL-like when it contains a dot and no whitespace."""
    return "." in term and not any(ch.isspace() for ch in term)


def mask_markdown_link_urls(text: str) -> str:
    """Replace the destination of every ``[text](url)`` with ``#`` of equal length.

    Offsets are preserved, so positions found in the masked text are valid
    in the original.
    """
    return _MARKDOWN_LINK_RE.sub(
        lambda m: f"{m.group(1)}({MASK_CHAR * len(m.group(2))})",
        text,
    )


def _encoded_alternatives(chars: str) -> str:
    parts = []
    for char in chars:
        encoded = quote(char, safe=_URI_SAFE)
        if encoded != char:
            parts.append(f"(?:{re.escape(char)}|{re.escape(encoded)})")
        else:
            parts.append(re.escape(char))
    return "".join(parts)


def build_flexible_pattern(term: str) -> re.Pattern[str]:
    """
    Build a case-insensitive pattern tolerant to spacing, punctuation and
    percent-encoding differences.

    Runs of ASCII whitespace/punctuation in the term match any run of
    separators (or their encoded form); non-ASCII characters also match
    their percent-encoded form.
    """
    pieces = []
    for chunk in re.split(r"([^a-zA-Z0-9]+)", term):
        if not chunk:
            continue
        if re.fullmatch(r"[a-zA-Z0-9]+", chunk):
            pieces.append(re.escape(chunk))
        elif any(ord(char) > 127 for char in chunk):
            pieces.append(_encoded_alternatives(chunk))
        else:
            pieces.append(f"(?:{_SEPARATOR_CLASS}|{_encoded_alternatives(chunk)})")
    return re.compile("".join(pieces), re.IGNORECASE)


def _substring_spans(term: str, text: str) -> list[tuple[int, int]]:
    """Every case-insensitive occurrence of ``term``, overlapping ones included."""
    spans = []
    lower_text = text.lower()
    lower_term = term.lower()
    index = lower_text.find(lower_term)
    while index != -1:
        spans.append((index, index + len(lower_term)))
        index = lower_text.find(lower_term, index + 1)
    return spans


def _url_spans(term: str, text: str) -> list[tuple[int, int]]:
    normalized_term = normalize_url(term)
    spans: list[tuple[int, int]] = []
    for match in _URL_SHAPE_RE.finditer(text):
        found = normalize_url(match.group(1))
        if (
            found == normalized_term
            or found.startswith(normalized_term + "/")
            or normalized_term.startswith(found + "/")
        ):
            spans.append(match.span(1))

    bare = re.compile(r"\b" + re.escape(term) + r"\b", re.IGNORECASE)
    for match in bare.finditer(text):
        start, end = match.span()
        covered = any(s <= start and e >= end for s, e in spans)
        if not covered:
            spans.append((start, end))
    return spans


def _literal_spans(term: str, text: str) -> list[tuple[int, int]]:
    masked = mask_markdown_link_urls(text)
    try:
        pattern = build_flexible_pattern(term)
        spans = [match.span() for match in pattern.finditer(masked)]
    except (re.error, RecursionError) as exc:
        logger.debug("Pattern failed for term %r, using substring scan: %s", term, exc)
        spans = _substring_spans(term, masked)

    stripped = term.replace(" ", "")
    if len(term) >= POSSESSIVE_MIN_LENGTH and stripped.isalpha():
        possessive = re.compile(r"\b" + re.escape(term) + r"'s\b", re.IGNORECASE)
        for match in possessive.finditer(masked):
            start = match.start()
            if all(abs(s - start) >= POSSESSIVE_DEDUP_DISTANCE for s, _ in spans):
                spans.append(match.span())
    return spans


def _line_and_column(text: str, offset: int) -> tuple[int, int]:
    line = text.count("\n", 0, offset) + 1
    column = offset - (text.rfind("\n", 0, offset) + 1) + 1
    return line, column


def _build_excerpt(text: str, start: int, end: int) -> Excerpt:
    window = text[max(0, start - CONTEXT_CHARS):min(len(text), end + CONTEXT_CHARS)]
    line, column = _line_and_column(text, start)
    return Excerpt(offset=start, text=window.strip(), line=line, column=column)


def find_mentions(term: str, text: str) -> MentionMatch:
    """
    Find every occurrence of ``term`` in one answer.

    Args:
        term: Entity value to search for
        text: Raw answer text

    Returns:
        MentionMatch with the count, the lowest start offset (-1 if none)
        and up to five excerpts
    """
    term = term.strip()
    if not term or not text:
        return MentionMatch()

    spans = _url_spans(term, text) if is_url_like(term) else _literal_spans(term, text)
    if not spans:
        return MentionMatch()

    spans.sort(key=lambda span: span[0])
    excerpts = [_build_excerpt(text, start, end) for start, end in spans[:MAX_EXCERPTS]]
    return MentionMatch(count=len(spans), first_offset=spans[0][0], excerpts=excerpts)


def search_term_for(entity: Entity) -> str:
    """Links are counted by hostname; everything else by its value."""
    if entity.type == EntityType.LINK:
        hostname = extract_hostname(entity.value)
        if hostname:
            return hostname
    return entity.value


def calculate_mentions(
    entities: list[Entity],
    answers: list[AnswerDocument],
    models: list[ModelConfig],
    current_date: str | None = None,
) -> list[Entity]:
    """
    Count mentions of each entity in every model's answer.

    Args:
        entities: Entities of one dataset section
        answers: Answers for the question being processed
        models: Active model roster
        current_date: Only answers for this date are counted (None counts all)

    Returns:
        New Entity records with mention fields populated
    """
    roster = [model.id for model in models]
    usable = []
    for answer in answers:
        if answer.model_id not in roster:
            logger.debug("Ignoring answer from model %s outside the roster", answer.model_id)
            continue
        if current_date and answer.date and answer.date != current_date:
            continue
        usable.append(answer)

    results: list[Entity] = []
    for entity in entities:
        mentions_by_model = {model_id: 0 for model_id in roster}
        first_offsets: dict[str, int] = {}
        excerpts_by_model: dict[str, list[Excerpt]] = {}

        term = search_term_for(entity)
        if term:
            for answer in usable:
                match = find_mentions(term, answer.text)
                mentions_by_model[answer.model_id] = match.count
                if match.count > 0:
                    first_offsets[answer.model_id] = match.first_offset
                    excerpts_by_model[answer.model_id] = match.excerpts

        mentioning = sorted(model_id for model_id, count in mentions_by_model.items() if count > 0)
        results.append(
            replace(
                entity,
                mentions=sum(mentions_by_model.values()),
                mentions_by_model=mentions_by_model,
                first_offset_by_model=first_offsets,
                excerpts_by_model=excerpts_by_model,
                models=",".join(mentioning),
                model_count=len(mentioning),
            )
        )

    return calculate_mention_shares(results, roster)


def calculate_mention_shares(entities: list[Entity], roster: list[str]) -> list[Entity]:
    """Add each entity's share of all mentions, overall and per model."""
    total = sum(entity.mentions for entity in entities)
    total_by_model = {
        model_id: sum(entity.mentions_by_model.get(model_id, 0) for entity in entities)
        for model_id in roster
    }

    results = []
    for entity in entities:
        by_model = {
            model_id: round(entity.mentions_by_model.get(model_id, 0) / model_total, 5) if model_total else 0.0
            for model_id, model_total in total_by_model.items()
        }
        results.append(
            replace(
                entity,
                mentions_as_percent=round(entity.mentions / total, 5) if total else 0.0,
                mentions_as_percent_by_model=by_model,
            )
        )
    return results
