"""Tests for common.serialization module."""

from dataclasses import dataclass, field
from datetime import datetime, timezone

from common.models import Entity, EntitySource, EntityType
from common.serialization import serialize_dataclass


@dataclass
class SampleData:
    name: str
    value: int


@dataclass
class SampleWithDatetime:
    name: str
    created_at: datetime


@dataclass
class SampleWithExtra:
    name: str
    extra: dict = field(default_factory=dict)


class TestSerializeDataclass:
    def test_basic_dataclass_to_dict(self) -> None:
        obj = SampleData(name="test", value=42)
        result = serialize_dataclass(obj)
        assert result == {"name": "test", "value": 42}

    def test_datetime_field_to_iso_string(self) -> None:
        dt = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
        obj = SampleWithDatetime(name="test", created_at=dt)
        result = serialize_dataclass(obj)
        assert result["createdAt"] == "2024-01-01T12:00:00+00:00"

    def test_extra_merged_into_top_level(self) -> None:
        obj = SampleWithExtra(name="test", extra={"linkType": "blog", "name": "other"})
        result = serialize_dataclass(obj)
        assert result == {"name": "test", "linkType": "blog"}

    def test_entity_uses_camel_case_and_enum_values(self) -> None:
        entity = Entity(
            value="OpenAI",
            type=EntityType.ORGANIZATION,
            mentions_by_model={"model_a": 2},
            sources=[EntitySource(url="openai.com", contributing_models="model_a")],
        )
        result = serialize_dataclass(entity)

        assert result["type"] == "organization"
        assert result["mentionsByModel"] == {"model_a": 2}
        assert result["sources"] == [{"url": "openai.com", "contributingModels": "model_a"}]
        assert "extra" not in result
