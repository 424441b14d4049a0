"""Model weights derived from estimated audience size."""

from __future__ import annotations

from common.models import ModelConfig

DEFAULT_MODEL_WEIGHT = 0.5
# Audience size that maps to the maximum raw weight of 1.0.
AUDIENCE_SCALE = 1_000_000_000


def raw_model_weight(model: ModelConfig) -> float:
    if model.estimated_mau and model.estimated_mau > 0:
        return min(model.estimated_mau / AUDIENCE_SCALE, 1.0)
    return DEFAULT_MODEL_WEIGHT


def normalize_model_weights(models: list[ModelConfig]) -> dict[str, float]:
    """
    Weight each model by audience size, rescaled so the weights sum to 1.0.

    Args:
        models: Active model roster

    Returns:
        Mapping of model id to normalized weight (empty for an empty roster)
    """
    weights = {model.id: raw_model_weight(model) for model in models}
    total = sum(weights.values())
    if total <= 0:
        return weights
    return {model_id: weight / total for model_id, weight in weights.items()}
