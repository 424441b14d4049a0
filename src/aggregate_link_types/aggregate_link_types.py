"""Group classified link entities into one cluster per link type."""

from __future__ import annotations

import logging

from aggregate_link_domains.aggregate_link_domains import merge_cluster_members
from aggregate_link_types.models import LinkTypeCluster
from classify_links.classify_links import OTHER_LINK_TYPE_NAME, link_type_of
from common.errors import create_missing_data_error
from common.models import Entity, EntityType, ModelConfig
from match_mentions.match_mentions import calculate_mention_shares

logger = logging.getLogger(__name__)

STEP_NAME = "aggregate-link-types"
PREVIOUS_STEP = "classify-links"
LINK_TYPES_KEY = "linkTypes"


def aggregate_link_types(
    links: list[Entity] | None,
    models: list[ModelConfig],
    type_names: dict[str, str] | None = None,
    question_folder: str | None = None,
) -> list[LinkTypeCluster]:
    """
    Cluster classified link entities by ``linkType``.

    Untyped links fall into ``oth``. Mentions are summed and ranks averaged
    to whole numbers, as for link domains.

    Args:
        links: The dataset's ``links`` section, already enriched and classified
        models: Active model roster
        type_names: Display name per link type code
        question_folder: Question being processed, used in error messages

    Returns:
        One LinkTypeCluster per link type, in first-seen order

    Raises:
        PipelineCriticalError: If the links section is missing or empty
    """
    if not links:
        raise create_missing_data_error(question_folder or "unknown question", "links", PREVIOUS_STEP, STEP_NAME)

    names = type_names or {}
    grouped: dict[str, list[Entity]] = {}
    for link in links:
        grouped.setdefault(link_type_of(link), []).append(link)

    roster = [model.id for model in models]
    clusters = [
        LinkTypeCluster(
            value=names.get(code, OTHER_LINK_TYPE_NAME),
            type=EntityType.LINK,
            code=code,
            link_count=len(members),
            **merge_cluster_members(members, roster),
        )
        for code, members in grouped.items()
    ]
    clusters = calculate_mention_shares(clusters, roster)

    logger.info("Created %d link types from %d links", len(clusters), len(links))
    return clusters
