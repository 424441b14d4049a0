"""Convert first-mention offsets into per-model appearance ranks."""

from __future__ import annotations

import logging
import math
from collections import defaultdict
from dataclasses import replace
from typing import Hashable, Iterable, TypeVar

from common.models import NOT_MENTIONED_ORDER, UNRANKED_ORDER, Entity, ModelConfig

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)

ENTITY_PRECISION = 2


def rank_offsets(pairs: Iterable[tuple[K, int]]) -> dict[K, int]:
    """
    Assign dense 1-based ranks by ascending offset.

    The sort is stable, so two keys sharing an offset keep their input order.
    """
    ordered = sorted(pairs, key=lambda pair: pair[1])
    return {key: index for index, (key, _) in enumerate(ordered, start=1)}


def average_rank(ranks: Iterable[float], precision: int = ENTITY_PRECISION) -> float | int | None:
    """
    Average the positive ranks.

    Args:
        ranks: Per-model ranks
        precision: Decimal places; 0 rounds half up to an integer

    Returns:
        The rounded average, or None when no rank is positive
    """
    valid = [rank for rank in ranks if rank > 0]
    if not valid:
        return None
    mean = sum(valid) / len(valid)
    if precision == 0:
        return int(math.floor(mean + 0.5))
    return round(mean, precision)


def calculate_appearance_order(entities: list[Entity], models: list[ModelConfig]) -> list[Entity]:
    """
    Rank entities within each model by first mention and aggregate across models.

    Args:
        entities: Entities of one section, with mention fields populated
        models: Active model roster

    Returns:
        New Entity records with appearance_order and appearance_order_by_model set
    """
    offsets_by_model: dict[str, list[tuple[int, int]]] = defaultdict(list)
    for index, entity in enumerate(entities):
        for model_id, offset in entity.first_offset_by_model.items():
            if offset >= 0 and entity.mentions_by_model.get(model_id, 0) > 0:
                offsets_by_model[model_id].append((index, offset))

    ranks_by_entity: dict[int, dict[str, int]] = defaultdict(dict)
    for model_id, pairs in offsets_by_model.items():
        for index, rank in rank_offsets(pairs).items():
            ranks_by_entity[index][model_id] = rank
        logger.debug("Ranked %d entities for model %s", len(pairs), model_id)

    roster = [model.id for model in models]
    results = []
    for index, entity in enumerate(entities):
        if entity.mentions <= 0:
            results.append(
                replace(entity, appearance_order=NOT_MENTIONED_ORDER, appearance_order_by_model={})
            )
            continue

        by_model = dict(ranks_by_entity.get(index, {}))
        model_ids = roster + [m for m in entity.mentions_by_model if m not in roster]
        for model_id in model_ids:
            if entity.mentions_by_model.get(model_id, 0) > 0 and model_id not in by_model:
                by_model[model_id] = UNRANKED_ORDER

        aggregate = average_rank(by_model.values())
        results.append(
            replace(
                entity,
                appearance_order=aggregate if aggregate is not None else UNRANKED_ORDER,
                appearance_order_by_model=by_model,
            )
        )

    return results
