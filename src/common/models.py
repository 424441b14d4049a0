"""Shared data models for the enrichment stages."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from common.utils import get_value, to_camel_case

UNRANKED_ORDER = 999
NOT_MENTIONED_ORDER = -1


class EntityType(str, Enum):
    """Category of a tracked entity."""
    PRODUCT = "product"
    ORGANIZATION = "organization"
    PERSON = "person"
    KEYWORD = "keyword"
    PLACE = "place"
    EVENT = "event"
    LINK = "link"


SECTION_TYPES: dict[str, EntityType] = {
    "products": EntityType.PRODUCT,
    "organizations": EntityType.ORGANIZATION,
    "persons": EntityType.PERSON,
    "keywords": EntityType.KEYWORD,
    "places": EntityType.PLACE,
    "events": EntityType.EVENT,
    "links": EntityType.LINK,
}

# Older datasets stored the display text under a category-specific key.
_LEGACY_VALUE_KEYS = ("value", "link", "keyword", "organization", "name")


@dataclass
class ModelConfig:
    """An AI model in the active roster."""
    id: str
    display_name: str = ""
    estimated_mau: int | None = None


@dataclass
class Excerpt:
    """Text window around one mention."""
    offset: int
    text: str
    line: int
    column: int


@dataclass
class MentionMatch:
    """Result of searching one answer for one entity."""
    count: int = 0
    first_offset: int = -1
    excerpts: list[Excerpt] = field(default_factory=list)


@dataclass
class Annotation:
    """Structured citation attached to an answer."""
    type: str
    url: str
    title: str = ""
    content: str = ""


@dataclass
class AnswerDocument:
    """One model's answer to one question on one date."""
    model_id: str
    text: str
    citations: list[str] = field(default_factory=list)
    annotations: list[Annotation] = field(default_factory=list)
    date: str | None = None


@dataclass
class EntitySource:
    """A source URL and the models whose answer linked it to the entity."""
    url: str
    contributing_models: str


@dataclass
class Entity:
    """A tracked item and everything the enrichment stages computed for it."""
    value: str
    type: EntityType
    mentions: int = 0
    mentions_by_model: dict[str, int] = field(default_factory=dict)
    first_offset_by_model: dict[str, int] = field(default_factory=dict)
    excerpts_by_model: dict[str, list[Excerpt]] = field(default_factory=dict)
    mentions_as_percent: float = 0.0
    mentions_as_percent_by_model: dict[str, float] = field(default_factory=dict)
    models: str = ""
    model_count: int = 0
    appearance_order: float = NOT_MENTIONED_ORDER
    appearance_order_by_model: dict[str, int] = field(default_factory=dict)
    sources: list[EntitySource] = field(default_factory=list)
    influence: float = 0.0
    influence_by_model: dict[str, float] = field(default_factory=dict)
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_record(cls, record: dict[str, Any], section: str) -> Entity:
        """Build an entity from a persisted dataset record.

        Fields this package does not own are kept in ``extra`` and written
        back untouched.
        """
        value = ""
        for key in _LEGACY_VALUE_KEYS:
            candidate = get_value(record, key)
            if candidate:
                value = str(candidate)
                break

        raw_type = get_value(record, "type")
        try:
            entity_type = EntityType(raw_type)
        except ValueError:
            entity_type = SECTION_TYPES.get(section, EntityType.KEYWORD)

        known = {to_camel_case(name) for name in cls.__dataclass_fields__}
        known.update(_LEGACY_VALUE_KEYS)
        extra = {key: val for key, val in record.items() if key not in known}

        excerpts_by_model = {
            model_id: [Excerpt(**excerpt) for excerpt in excerpts]
            for model_id, excerpts in (record.get("excerptsByModel") or {}).items()
        }
        sources = [
            EntitySource(
                url=source["url"],
                contributing_models=source.get("contributingModels", ""),
            )
            for source in record.get("sources") or []
        ]

        return cls(
            value=value,
            type=entity_type,
            mentions=record.get("mentions", 0),
            mentions_by_model=dict(record.get("mentionsByModel") or {}),
            first_offset_by_model=dict(record.get("firstOffsetByModel") or {}),
            excerpts_by_model=excerpts_by_model,
            mentions_as_percent=record.get("mentionsAsPercent", 0.0),
            mentions_as_percent_by_model=dict(record.get("mentionsAsPercentByModel") or {}),
            models=record.get("models", ""),
            model_count=record.get("modelCount", 0),
            appearance_order=record.get("appearanceOrder", NOT_MENTIONED_ORDER),
            appearance_order_by_model=dict(record.get("appearanceOrderByModel") or {}),
            sources=sources,
            influence=record.get("influence", 0.0),
            influence_by_model=dict(record.get("influenceByModel") or {}),
            extra=extra,
        )


Dataset = dict[str, list[Entity]]
