"""Tests for score_influence.weights module."""

from common.models import ModelConfig
from score_influence.weights import normalize_model_weights, raw_model_weight


class TestRawModelWeight:
    def test_scaled_by_audience(self) -> None:
        assert raw_model_weight(ModelConfig(id="m", estimated_mau=250_000_000)) == 0.25

    def test_capped_at_one(self) -> None:
        assert raw_model_weight(ModelConfig(id="m", estimated_mau=3_000_000_000)) == 1.0

    def test_unknown_defaults(self) -> None:
        assert raw_model_weight(ModelConfig(id="m")) == 0.5
        assert raw_model_weight(ModelConfig(id="m", estimated_mau=0)) == 0.5


class TestNormalizeModelWeights:
    def test_sum_to_one(self) -> None:
        models = [
            ModelConfig(id="a", estimated_mau=800_000_000),
            ModelConfig(id="b", estimated_mau=30_000_000),
            ModelConfig(id="c"),
            ModelConfig(id="d", estimated_mau=5_000_000_000),
        ]
        weights = normalize_model_weights(models)

        assert set(weights) == {"a", "b", "c", "d"}
        assert abs(sum(weights.values()) - 1.0) < 1e-9

    def test_proportional(self) -> None:
        weights = normalize_model_weights([
            ModelConfig(id="a", estimated_mau=600_000_000),
            ModelConfig(id="b", estimated_mau=400_000_000),
        ])
        assert abs(weights["a"] - 0.6) < 1e-9
        assert abs(weights["b"] - 0.4) < 1e-9

    def test_single_model(self) -> None:
        assert normalize_model_weights([ModelConfig(id="a")]) == {"a": 1.0}

    def test_empty_roster(self) -> None:
        assert normalize_model_weights([]) == {}
