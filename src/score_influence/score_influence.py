"""Share-of-voice influence scoring."""

from __future__ import annotations

import logging
import math
from dataclasses import replace

from common.models import UNRANKED_ORDER, Entity, ModelConfig
from score_influence.weights import normalize_model_weights

logger = logging.getLogger(__name__)

PRECISION = 5


def calculate_prominence(mentions: int, rank: float) -> float:
    """Mentions discounted logarithmically by appearance rank; 0 unless both are positive."""
    if mentions <= 0 or rank <= 0:
        return 0.0
    return mentions / math.log2(rank + 1)


def _rank_for(entity: Entity, model_id: str) -> float:
    return entity.appearance_order_by_model.get(model_id) or UNRANKED_ORDER


def total_prominence(entity: Entity) -> float:
    """Sum of per-model prominence over every model that mentions the entity."""
    return sum(
        calculate_prominence(mentions, _rank_for(entity, model_id))
        for model_id, mentions in entity.mentions_by_model.items()
        if mentions > 0
    )


def calculate_share_of_voice(
    entity: Entity,
    weights: dict[str, float],
    max_prominence: float,
) -> float:
    """
    Model coverage times quality score.

    Coverage is the summed weight of the models that mention the entity.
    Quality is the entity's total prominence over the batch maximum.

    Args:
        entity: Entity with mention and rank fields populated
        weights: Normalized model weights
        max_prominence: Largest total prominence in the batch

    Returns:
        Unrounded share of voice
    """
    if max_prominence <= 0:
        return 0.0

    coverage = sum(
        weights.get(model_id, 0.0)
        for model_id, mentions in entity.mentions_by_model.items()
        if mentions > 0
    )
    quality = total_prominence(entity) / max_prominence
    return coverage * quality


def calculate_influence_by_model(
    entity: Entity,
    weights: dict[str, float],
    max_prominence: float,
) -> dict[str, float]:
    """Each model's weighted share of the batch maximum prominence, unrounded."""
    by_model = {}
    for model_id, mentions in entity.mentions_by_model.items():
        if max_prominence <= 0:
            by_model[model_id] = 0.0
            continue
        prominence = calculate_prominence(mentions, _rank_for(entity, model_id))
        by_model[model_id] = weights.get(model_id, 0.0) * prominence / max_prominence
    return by_model


def normalize_influences(entities: list[Entity]) -> list[Entity]:
    """
    Rescale so the top entity has influence 1.0.

    Each ``influence_by_model`` map is rescaled by its own largest value.
    Inputs are expected unrounded; only the rescaled values are rounded.
    """
    max_influence = max((entity.influence for entity in entities), default=0.0)

    results = []
    for entity in entities:
        influence = entity.influence
        if max_influence > 0:
            influence = influence / max_influence

        by_model = dict(entity.influence_by_model)
        max_model = max(by_model.values(), default=0.0)
        if max_model > 0:
            by_model = {model_id: value / max_model for model_id, value in by_model.items()}

        influence = round(influence, PRECISION)
        by_model = {model_id: round(value, PRECISION) for model_id, value in by_model.items()}

        results.append(replace(entity, influence=influence, influence_by_model=by_model))
    return results


def calculate_influence(entities: list[Entity], models: list[ModelConfig]) -> list[Entity]:
    """
    Score every entity in one batch.

    Args:
        entities: Entities of one section, with mentions and ranks populated
        models: Active model roster

    Returns:
        New Entity records with influence and influence_by_model set
    """
    if not entities:
        return []

    weights = normalize_model_weights(models)
    max_prominence = max(
        (total_prominence(entity) for entity in entities if entity.mentions > 0),
        default=0.0,
    )
    logger.debug("Batch max prominence: %.5f", max_prominence)

    scored = []
    for entity in entities:
        if entity.mentions <= 0:
            scored.append(replace(entity, influence=0.0, influence_by_model={}))
            continue
        scored.append(
            replace(
                entity,
                influence=calculate_share_of_voice(entity, weights, max_prominence),
                influence_by_model=calculate_influence_by_model(entity, weights, max_prominence),
            )
        )

    return normalize_influences(scored)
