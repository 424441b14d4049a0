"""Group link entities into one cluster per hostname."""

from __future__ import annotations

import logging
from typing import Any

from aggregate_link_domains.models import LinkDomain
from common.errors import create_missing_data_error
from common.models import NOT_MENTIONED_ORDER, UNRANKED_ORDER, Entity, EntityType, ModelConfig
from common.urls import extract_hostname
from match_mentions.match_mentions import calculate_mention_shares
from rank_appearances.rank_appearances import average_rank

logger = logging.getLogger(__name__)

STEP_NAME = "aggregate-link-domains"
PREVIOUS_STEP = "match-mentions"
LINK_DOMAINS_KEY = "linkDomains"


def _valid_ranks(ranks: list[float]) -> list[float]:
    return [rank for rank in ranks if 0 < rank < UNRANKED_ORDER]


def cluster_rank(ranks: list[float]) -> int:
    """Nearest-integer mean of the valid ranks, 999 when there are none."""
    rank = average_rank(_valid_ranks(ranks), precision=0)
    return UNRANKED_ORDER if rank is None else rank


def merge_cluster_members(members: list[Entity], roster: list[str]) -> dict[str, Any]:
    """
    Combine member entities into the scoring fields of one cluster.

    Mentions are summed per model, models unioned and ranks averaged to
    whole numbers. A cluster nobody mentions gets rank -1.
    """
    mentions_by_model = {model_id: 0 for model_id in roster}
    for member in members:
        for model_id, mentions in member.mentions_by_model.items():
            mentions_by_model[model_id] = mentions_by_model.get(model_id, 0) + mentions
    mentions = sum(member.mentions for member in members)

    models = sorted(
        {model for member in members for model in member.models.split(",") if model}
        | {model_id for model_id, count in mentions_by_model.items() if count > 0}
    )

    rank_by_model = {}
    for model_id, count in mentions_by_model.items():
        if count > 0:
            ranks = [member.appearance_order_by_model.get(model_id, 0) for member in members]
            rank_by_model[model_id] = cluster_rank(ranks)

    if mentions <= 0:
        appearance_order = NOT_MENTIONED_ORDER
    else:
        appearance_order = cluster_rank([member.appearance_order for member in members])

    return {
        "mentions": mentions,
        "mentions_by_model": mentions_by_model,
        "models": ",".join(models),
        "model_count": len(models),
        "appearance_order": appearance_order,
        "appearance_order_by_model": rank_by_model,
    }


def _build_domain(hostname: str, members: list[Entity], roster: list[str]) -> LinkDomain:
    return LinkDomain(
        value=hostname,
        type=EntityType.LINK,
        link=f"https://{hostname}",
        link_count=len(members),
        **merge_cluster_members(members, roster),
    )


def aggregate_link_domains(
    links: list[Entity] | None,
    models: list[ModelConfig],
    question_folder: str | None = None,
) -> list[LinkDomain]:
    """
    Cluster link entities by hostname.

    Mentions are summed, ranks averaged and rounded to whole numbers.

    Args:
        links: The dataset's ``links`` section, already enriched
        models: Active model roster
        question_folder: Question being processed, used in error messages

    Returns:
        One LinkDomain per hostname, in first-seen order

    Raises:
        PipelineCriticalError: If the links section is missing or empty
    """
    if not links:
        raise create_missing_data_error(question_folder or "unknown question", "links", PREVIOUS_STEP, STEP_NAME)

    grouped: dict[str, list[Entity]] = {}
    for link in links:
        hostname = extract_hostname(link.value) if link.value else ""
        if not hostname:
            logger.debug("Skipping link without a hostname: %r", link.value)
            continue
        grouped.setdefault(hostname, []).append(link)

    roster = [model.id for model in models]
    domains = [_build_domain(hostname, members, roster) for hostname, members in grouped.items()]
    domains = calculate_mention_shares(domains, roster)

    logger.info("Created %d link domains from %d links", len(domains), len(links))
    return domains
