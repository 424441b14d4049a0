"""Attribute source URLs to entity mentions in model answers."""

from __future__ import annotations

import logging
import math
import re
from dataclasses import replace

from attribute_sources.models import CandidateLink, DistanceCheck
from attribute_sources.sentences import count_sentence_breaks, split_into_sentences
from common.models import Annotation, AnswerDocument, Entity, EntitySource
from common.urls import clean_source_url, decode_url

logger = logging.getLogger(__name__)

MAX_SENTENCES_FROM_SOURCE = 2
MAX_WORDS_FROM_SOURCE = 250
SENTENCE_START_LOOKAHEAD = 2
PARAGRAPH_BOUNDARY_LENGTH = 10
URL_CITATION_TYPE = "url_citation"
NON_DOMAIN_SUFFIXES = (".md", ".js", ".ts", ".json")

_CITATION_MARKER_RE = re.compile(r"\[(\d+)\]")
_MARKDOWN_LINK_RE = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")
_PLAIN_URL_RE = re.compile(r"https?://[^\s<>\"{}|\\^`\[\]()]+")
_SENTENCE_START_LINK_RE = re.compile(
    r"""^[\s*_>\-]*(?:
        \[[^\]]+\]\((?P<markdown>[^)\s]+)\)
        | (?P<plain>https?://\S+)
        | (?P<domain>(?:www\.)?[a-z0-9][-a-z0-9]*(?:\.[a-z0-9][-a-z0-9]*)*\.[a-z]{2,}(?:/\S*)?)
    )""",
    re.IGNORECASE | re.VERBOSE,
)


# ---------------------------------------------------------------------------
# Distance budget
# ---------------------------------------------------------------------------


def _entity_spans(context: str, entity_value: str) -> list[tuple[int, int]]:
    if not entity_value:
        return []
    return [match.span() for match in re.finditer(re.escape(entity_value), context, re.IGNORECASE)]


def measure_distance(
    context: str,
    entity_value: str,
    start: int,
    end: int,
    max_sentences: int = MAX_SENTENCES_FROM_SOURCE,
    max_words: int = MAX_WORDS_FROM_SOURCE,
) -> DistanceCheck:
    """
    Measure the gap between the candidate at ``context[start:end]`` and the
    nearest mention of ``entity_value``.

    Only the text strictly between the two is counted. Both the sentence
    and the word limit must hold.
    """
    min_sentences = math.inf
    min_words = math.inf
    for entity_start, entity_end in _entity_spans(context, entity_value):
        if entity_end <= start:
            between = context[entity_end:start]
        elif end <= entity_start:
            between = context[end:entity_start]
        else:
            between = ""
        min_words = min(min_words, len(between.split()))
        min_sentences = min(min_sentences, count_sentence_breaks(between))

    within = min_sentences <= max_sentences and min_words <= max_words
    return DistanceCheck(within_limits=within, min_sentences=min_sentences, min_words=min_words)


# ---------------------------------------------------------------------------
# Link extraction
# ---------------------------------------------------------------------------


def extract_markdown_links(text: str) -> list[CandidateLink]:
    """Find ``[text](url)`` links, skipping in-page anchors."""
    links = []
    for match in _MARKDOWN_LINK_RE.finditer(text):
        url = match.group(2).strip()
        if url and not url.startswith("#"):
            links.append(CandidateLink(url=url, start=match.start(), end=match.end()))
    return links


def extract_plain_urls(text: str, exclude: list[CandidateLink] | None = None) -> list[CandidateLink]:
    """Find bare ``http(s)://`` URLs not already inside one of ``exclude``."""
    taken = [(link.start, link.end) for link in exclude or []]
    links = []
    for match in _PLAIN_URL_RE.finditer(text):
        start, end = match.span()
        if any(s <= start and end <= e for s, e in taken):
            continue
        links.append(CandidateLink(url=match.group(0), start=start, end=end))
    return links


def extract_citation_markers(text: str, citations: list[str]) -> list[CandidateLink]:
    """Resolve ``[n]`` markers against the 1-based ``citations`` list."""
    links = []
    for match in _CITATION_MARKER_RE.finditer(text):
        index = int(match.group(1)) - 1
        if 0 <= index < len(citations) and citations[index]:
            links.append(CandidateLink(url=citations[index], start=match.start(), end=match.end()))
    return links


def _url_variations(entity_value: str, separators: tuple[str, ...]) -> list[str]:
    normalized = entity_value.lower().strip()
    return [normalized] + [normalized.replace(" ", separator) for separator in separators]


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------


def find_links_in_annotations(entity_value: str, annotations: list[Annotation]) -> list[str]:
    """Accept URL citations whose title, snippet or URL mentions the entity."""
    normalized = entity_value.lower().strip()
    if not normalized:
        return []

    variations = _url_variations(entity_value, ("-", "_", "%20"))
    sources = []
    for annotation in annotations:
        if annotation.type != URL_CITATION_TYPE or not annotation.url:
            continue
        if normalized in annotation.title.lower() or normalized in annotation.content.lower():
            sources.append(annotation.url)
            continue
        decoded = decode_url(annotation.url).lower()
        if any(variation in decoded for variation in variations):
            sources.append(annotation.url)
    return sources


def find_links_near_entity(
    content: str,
    entity_value: str,
    citations: list[str],
    max_sentences: int = MAX_SENTENCES_FROM_SOURCE,
    max_words: int = MAX_WORDS_FROM_SOURCE,
    rejected: set[str] | None = None,
) -> list[str]:
    """
    Collect citation markers, markdown links and bare URLs that sit in a
    sentence mentioning the entity and within the distance budget.

    URLs turned down for distance are added to ``rejected`` when given.
    """
    normalized = entity_value.lower().strip()
    if not normalized:
        return []

    sources = []
    for sentence in split_into_sentences(content):
        if normalized not in sentence.lower():
            continue

        markdown_links = extract_markdown_links(sentence)
        candidates = (
            extract_citation_markers(sentence, citations)
            + markdown_links
            + extract_plain_urls(sentence, exclude=markdown_links)
        )
        for candidate in candidates:
            check = measure_distance(
                sentence, entity_value, candidate.start, candidate.end, max_sentences, max_words
            )
            if check.within_limits:
                sources.append(candidate.url)
            else:
                if rejected is not None:
                    rejected.add(candidate.url)
                logger.debug(
                    'Skipped source "%s" for entity "%s" - distance: %s sentences, %s words '
                    "(limits: %d sentences, %d words)",
                    candidate.url,
                    entity_value,
                    check.min_sentences,
                    check.min_words,
                    max_sentences,
                    max_words,
                )
    return sources


def _link_at_sentence_start(sentence: str) -> str | None:
    match = _SENTENCE_START_LINK_RE.match(sentence)
    if not match:
        return None
    domain = match.group("domain")
    if domain and domain.lower().endswith(NON_DOMAIN_SUFFIXES):
        return None
    return match.group("markdown") or match.group("plain") or domain


def find_link_at_sentence_start(content: str, entity_value: str) -> list[str]:
    """
    Look for a sentence that starts with a link near an entity-bearing sentence.

    Scans up to two sentences forward first, then backward until a paragraph
    boundary (a sentence shorter than ten characters). Returns the first link
    found.
    """
    normalized = entity_value.lower().strip()
    if not normalized:
        return []

    sentences = split_into_sentences(content)
    for index, sentence in enumerate(sentences):
        if normalized not in sentence.lower():
            continue

        for ahead in sentences[index + 1:index + 1 + SENTENCE_START_LOOKAHEAD]:
            link = _link_at_sentence_start(ahead)
            if link:
                return [link]

        for behind in reversed(sentences[:index]):
            if len(behind.strip()) < PARAGRAPH_BOUNDARY_LENGTH:
                break
            link = _link_at_sentence_start(behind)
            if link:
                return [link]
    return []


def find_links_in_citations(entity_value: str, citations: list[str]) -> list[str]:
    """Return the first citation whose decoded URL contains the entity."""
    if not entity_value.strip():
        return []

    variations = _url_variations(entity_value, ("-", "_"))
    for citation in citations:
        if not citation:
            continue
        decoded = decode_url(citation).lower()
        if any(variation in decoded for variation in variations):
            return [citation]
    return []


def find_sources_for_entity(
    entity_value: str,
    answer: AnswerDocument,
    max_sentences: int = MAX_SENTENCES_FROM_SOURCE,
    max_words: int = MAX_WORDS_FROM_SOURCE,
) -> list[str]:
    """
    Find the URLs that substantiate an entity's mention in one answer.

    Annotation and proximity matches are always combined. Only when both
    come up empty does the sentence-start fallback run, and only when that
    also fails is the citation list searched directly. A URL rejected for
    being too far from the entity is never returned by the fallbacks.
    """
    rejected: set[str] = set()
    sources = find_links_in_annotations(entity_value, answer.annotations)
    sources += find_links_near_entity(
        answer.text, entity_value, answer.citations, max_sentences, max_words, rejected
    )
    if sources:
        return sources

    sources = [url for url in find_link_at_sentence_start(answer.text, entity_value) if url not in rejected]
    if sources:
        return sources

    citations = [citation for citation in answer.citations if citation not in rejected]
    return find_links_in_citations(entity_value, citations)


# ---------------------------------------------------------------------------
# Deduplication
# ---------------------------------------------------------------------------


def deduplicate_sources(sources: list[EntitySource]) -> list[EntitySource]:
    """
    Group sources by cleaned URL and merge their contributing models.

    First-seen order is kept. Applying it twice gives the same result.
    """
    models_by_url: dict[str, set[str]] = {}
    for source in sources:
        url = clean_source_url(source.url)
        if not url:
            continue
        models = models_by_url.setdefault(url, set())
        models.update(model for model in source.contributing_models.split(",") if model)

    return [
        EntitySource(url=url, contributing_models=",".join(sorted(models)))
        for url, models in models_by_url.items()
    ]


def attribute_sources(
    entities: list[Entity],
    answers: list[AnswerDocument],
    max_sentences: int = MAX_SENTENCES_FROM_SOURCE,
    max_words: int = MAX_WORDS_FROM_SOURCE,
) -> list[Entity]:
    """
    Attach deduplicated source URLs to each entity.

    Args:
        entities: Entities of one section
        answers: Answers for the question being processed
        max_sentences: Sentence budget between mention and link
        max_words: Word budget between mention and link

    Returns:
        New Entity records with ``sources`` set
    """
    results = []
    with_sources = 0
    for entity in entities:
        if not entity.value:
            results.append(entity)
            continue

        found: list[EntitySource] = []
        for answer in answers:
            for url in find_sources_for_entity(entity.value, answer, max_sentences, max_words):
                found.append(EntitySource(url=url, contributing_models=answer.model_id))

        sources = deduplicate_sources(found)
        if sources:
            with_sources += 1
            logger.debug("%s:%r -> %d sources", entity.type.value, entity.value, len(sources))
        results.append(replace(entity, sources=sources))

    logger.info("Found sources for %d/%d entities", with_sources, len(entities))
    return results
