"""Tests for common.models module."""

from common.models import NOT_MENTIONED_ORDER, Entity, EntityType


class TestEntityFromRecord:
    def test_value_key(self) -> None:
        entity = Entity.from_record({"value": "OpenAI", "type": "organization"}, "organizations")
        assert entity.value == "OpenAI"
        assert entity.type == EntityType.ORGANIZATION

    def test_legacy_link_key(self) -> None:
        entity = Entity.from_record({"link": "https://example.com"}, "links")
        assert entity.value == "https://example.com"
        assert entity.type == EntityType.LINK

    def test_legacy_keyword_key(self) -> None:
        entity = Entity.from_record({"keyword": "share of voice"}, "keywords")
        assert entity.value == "share of voice"
        assert entity.type == EntityType.KEYWORD

    def test_unknown_type_falls_back_to_section(self) -> None:
        entity = Entity.from_record({"name": "Paris", "type": "city"}, "places")
        assert entity.type == EntityType.PLACE

    def test_unknown_fields_kept_in_extra(self) -> None:
        entity = Entity.from_record({"value": "x", "linkType": "blog", "similar": ["y"]}, "links")
        assert entity.extra == {"linkType": "blog", "similar": ["y"]}

    def test_enrichment_fields_parsed(self) -> None:
        record = {
            "value": "Acme",
            "mentions": 3,
            "mentionsByModel": {"model_a": 3},
            "appearanceOrderByModel": {"model_a": 1},
            "excerptsByModel": {"model_a": [{"offset": 0, "text": "Acme", "line": 1, "column": 1}]},
            "sources": [{"url": "acme.com", "contributingModels": "model_a"}],
        }
        entity = Entity.from_record(record, "organizations")

        assert entity.mentions == 3
        assert entity.mentions_by_model == {"model_a": 3}
        assert entity.excerpts_by_model["model_a"][0].offset == 0
        assert entity.sources[0].contributing_models == "model_a"
        assert entity.extra == {}

    def test_defaults_for_fresh_record(self) -> None:
        entity = Entity.from_record({"value": "Acme"}, "organizations")
        assert entity.mentions == 0
        assert entity.appearance_order == NOT_MENTIONED_ORDER
        assert entity.sources == []
