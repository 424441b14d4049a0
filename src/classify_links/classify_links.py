"""Rule-based link type classification."""

from __future__ import annotations

import logging
import re
from collections import Counter
from dataclasses import replace

from classify_links.models import LinkTypeRule
from common.config import LinkTypeConfig
from common.errors import MissingConfigError, create_missing_data_error
from common.models import Entity
from common.urls import extract_hostname

logger = logging.getLogger(__name__)

STEP_NAME = "classify-links"
PREVIOUS_STEP = "match-mentions"
LINK_TYPE_KEY = "linkType"
OTHER_LINK_TYPE = "oth"
OTHER_LINK_TYPE_NAME = "Other"

_REGEX_CHARS_RE = re.compile(r"[\[\](){}+?|\\^$]")
# Contains-patterns with these characters match the whole URL, not just the host.
_FULL_URL_CHARS_RE = re.compile(r"[/?#=]")


def pattern_kind(pattern: str) -> str:
    """Return ``"regex"``, ``"ends_with"`` or ``"contains"``."""
    if _REGEX_CHARS_RE.search(pattern) or ".*" in pattern:
        return "regex"
    if pattern.startswith(("*", ".")):
        return "ends_with"
    return "contains"


def build_rules(link_types: list[LinkTypeConfig]) -> list[LinkTypeRule]:
    """
    Compile configured link types into rules, keeping config order.

    Raises:
        MissingConfigError: If a regex pattern does not compile
    """
    rules = []
    for link_type in link_types:
        rule = LinkTypeRule(code=link_type.code, name=link_type.name)
        for pattern in link_type.patterns:
            kind = pattern_kind(pattern)
            if kind == "regex":
                if len(pattern) > 1 and pattern.startswith("/") and pattern.endswith("/"):
                    pattern = pattern[1:-1]
                try:
                    rule.regexes.append(re.compile(pattern, re.IGNORECASE))
                except re.error as exc:
                    raise MissingConfigError(
                        f"Invalid pattern {pattern!r} for link type '{link_type.code}': {exc}",
                        STEP_NAME,
                    ) from exc
            elif kind == "ends_with":
                rule.ends_with.append(pattern.lstrip("*").lower())
            else:
                rule.contains.append(pattern.lower())
        rules.append(rule)
    return rules


def classify_link(url: str, rules: list[LinkTypeRule]) -> str:
    """
    Return the code of the first rule matching ``url``, or ``"oth"``.

    Within a rule, substring patterns are tried first, then hostname
    endings, then regexes against the hostname.
    """
    full = (url or "").lower()
    host = extract_hostname(url) if url else ""

    for rule in rules:
        for pattern in rule.contains:
            target = full if _FULL_URL_CHARS_RE.search(pattern) else host
            if target and pattern in target:
                return rule.code
        if host and any(host.endswith(ending) for ending in rule.ends_with):
            return rule.code
        if host and any(regex.search(host) for regex in rule.regexes):
            return rule.code
    return OTHER_LINK_TYPE


def link_type_of(entity: Entity) -> str:
    return entity.extra.get(LINK_TYPE_KEY) or OTHER_LINK_TYPE


def link_type_names(rules: list[LinkTypeRule]) -> dict[str, str]:
    """Display name per link type code, ``oth`` included."""
    names = {rule.code: rule.name for rule in rules}
    names.setdefault(OTHER_LINK_TYPE, OTHER_LINK_TYPE_NAME)
    return names


def classify_links(
    links: list[Entity] | None,
    rules: list[LinkTypeRule],
    question_folder: str | None = None,
) -> list[Entity]:
    """
    Set ``linkType`` on every link that is untyped or typed ``oth``.

    Types assigned earlier (by hand or by a previous run) are kept.

    Args:
        links: The dataset's ``links`` section
        rules: Compiled link type rules, in priority order
        question_folder: Question being processed, used in error messages

    Returns:
        New Entity records with ``linkType`` stored alongside their other fields

    Raises:
        PipelineCriticalError: If the links section is missing or empty
    """
    if not links:
        raise create_missing_data_error(question_folder or "unknown question", "links", PREVIOUS_STEP, STEP_NAME)

    stats: Counter[str] = Counter()
    results = []
    for link in links:
        if not link.value:
            logger.warning("Link without URL found in %s", question_folder)
            results.append(link)
            continue

        if link_type_of(link) != OTHER_LINK_TYPE:
            results.append(link)
            continue

        code = classify_link(link.value, rules)
        stats[code] += 1
        if code != OTHER_LINK_TYPE:
            logger.debug('Classified "%s" as "%s"', link.value, code)
        results.append(replace(link, extra={**link.extra, LINK_TYPE_KEY: code}))

    classified = sum(count for code, count in stats.items() if code != OTHER_LINK_TYPE)
    logger.info("Classified %d/%d links for %s", classified, len(links), question_folder)
    for code, count in stats.most_common():
        logger.debug("  %s: %d links", code, count)
    return results
