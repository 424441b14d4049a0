"""Linear mention-share influence formula.

Superseded by the share-of-voice score in ``score_influence.score_influence``.
Kept for datasets whose consumers still expect its value range.
"""

from __future__ import annotations

import math
import warnings
from dataclasses import replace

from common.models import UNRANKED_ORDER, Entity, ModelConfig
from score_influence.score_influence import normalize_influences
from score_influence.weights import normalize_model_weights


def legacy_item_influence(mentions: int, rank: float, model_weight: float, max_mentions: int) -> float:
    """``mentions / max_mentions * 1/log2(rank + 1) * weight``, clamped to [0, 1]."""
    if mentions <= 0 or max_mentions <= 0:
        return 0.0
    rank_score = 1 / math.log2(rank + 1) if rank > 0 else 0.0
    return min(1.0, max(0.0, mentions / max_mentions * rank_score * model_weight))


def calculate_legacy_influence(entities: list[Entity], models: list[ModelConfig]) -> list[Entity]:
    """
    Score entities with the linear formula, then rescale to a max of 1.0.

    Deprecated: use ``calculate_influence``.
    """
    warnings.warn(
        "calculate_legacy_influence is deprecated; use score_influence.calculate_influence",
        DeprecationWarning,
        stacklevel=2,
    )
    if not entities:
        return []

    weights = normalize_model_weights(models)
    max_mentions = max(entity.mentions for entity in entities)
    max_by_model: dict[str, int] = {}
    for entity in entities:
        for model_id, mentions in entity.mentions_by_model.items():
            max_by_model[model_id] = max(max_by_model.get(model_id, 0), mentions)

    scored = []
    for entity in entities:
        if entity.mentions <= 0:
            scored.append(replace(entity, influence=0.0, influence_by_model={}))
            continue

        total = 0.0
        by_model = {}
        for model_id, mentions in entity.mentions_by_model.items():
            rank = entity.appearance_order_by_model.get(model_id) or UNRANKED_ORDER
            weight = weights.get(model_id, 0.0)
            if mentions > 0:
                total += legacy_item_influence(mentions, rank, 1.0, max_mentions) * weight
            by_model[model_id] = legacy_item_influence(mentions, rank, weight, max_by_model.get(model_id) or 1)
        scored.append(replace(entity, influence=total, influence_by_model=by_model))

    return normalize_influences(scored)
