"""Tests for match_mentions.match_mentions module."""

import re
from unittest.mock import patch

import pytest

from common.models import AnswerDocument, Entity, EntityType, ModelConfig
from match_mentions.match_mentions import (
    build_flexible_pattern,
    calculate_mentions,
    find_mentions,
    is_url_like,
    mask_markdown_link_urls,
    search_term_for,
)

MODELS = [ModelConfig(id="model_a"), ModelConfig(id="model_b"), ModelConfig(id="model_c")]


class TestIsUrlLike:
    def test_domain(self) -> None:
        assert is_url_like("example.com")

    def test_plain_text(self) -> None:
        assert not is_url_like("OpenAI")

    def test_dot_with_space_is_text(self) -> None:
        assert not is_url_like("Dr. Smith")


class TestMaskMarkdownLinkUrls:
    def test_masks_destination_and_keeps_length(self) -> None:
        text = "See [Example](https://example.com/naval-ravikant) now"
        masked = mask_markdown_link_urls(text)

        assert len(masked) == len(text)
        assert "naval" not in masked
        assert masked.startswith("See [Example](#")

    def test_text_without_links_unchanged(self) -> None:
        assert mask_markdown_link_urls("no links here") == "no links here"


class TestBuildFlexiblePattern:
    def test_separators_interchangeable(self) -> None:
        pattern = build_flexible_pattern("naval ravikant")
        assert pattern.search("Naval-Ravikant said")
        assert pattern.search("naval_ravikant")
        assert pattern.search("naval%20ravikant")

    def test_percent_encoded_non_ascii(self) -> None:
        pattern = build_flexible_pattern("café")
        assert pattern.search("visit caf%C3%A9 today")
        assert pattern.search("visit CAFÉ today")

    def test_metacharacters_escaped(self) -> None:
        pattern = build_flexible_pattern("C++ (beta)")
        assert pattern.search("learn c++ (beta) now")
        assert not pattern.search("learn cpp beta now")


class TestFindMentions:
    def test_scenario_possessive_at_start(self) -> None:
        result = find_mentions("OpenAI", "OpenAI's [1] new tool")

        assert result.count >= 1
        assert result.first_offset == 0

    def test_possessive_not_double_counted(self) -> None:
        result = find_mentions("Acme Corp", "Acme Corp's results beat Acme Corp.")
        assert result.count == 2

    def test_case_insensitive_all_occurrences(self) -> None:
        result = find_mentions("Acme", "Acme and acme and ACME")
        assert result.count == 3
        assert [excerpt.offset for excerpt in result.excerpts] == [0, 9, 18]

    def test_no_match_inside_masked_url_slug(self) -> None:
        text = "Read [Example](https://example.com/naval-ravikant) where naval ravikant speaks."
        result = find_mentions("naval ravikant", text)

        assert result.count == 1
        assert result.first_offset == text.index("naval ravikant")

    def test_excerpts_capped_at_five(self) -> None:
        result = find_mentions("Acme", " ".join(["Acme"] * 8))
        assert result.count == 8
        assert len(result.excerpts) == 5

    def test_excerpt_window_and_position(self) -> None:
        text = "first line\nsecond Acme " + "x" * 150
        result = find_mentions("Acme", text)
        excerpt = result.excerpts[0]

        assert excerpt.offset == 18
        assert excerpt.line == 2
        assert excerpt.column == 8
        assert excerpt.text.startswith("first line")
        assert len(excerpt.text) <= 4 + 2 * 100

    def test_url_like_term_matches_full_urls(self) -> None:
        text = "See https://www.example.com/page and example.com."
        result = find_mentions("example.com", text)

        assert result.count == 2
        assert result.first_offset == 4

    def test_url_like_term_ignores_other_domains(self) -> None:
        assert find_mentions("example.com", "Visit other.org today").count == 0

    def test_no_match(self) -> None:
        result = find_mentions("Globex", "Acme only")
        assert result.count == 0
        assert result.first_offset == -1
        assert result.excerpts == []

    def test_empty_inputs(self) -> None:
        assert find_mentions("", "text").count == 0
        assert find_mentions("Acme", "").count == 0

    @patch("match_mentions.match_mentions.build_flexible_pattern", side_effect=re.error("bad pattern"))
    def test_pattern_failure_falls_back_to_overlapping_scan(self, mock_build) -> None:
        result = find_mentions("aa", "aaa")

        assert mock_build.called
        assert result.count == 2
        assert result.first_offset == 0

    @patch("match_mentions.match_mentions.build_flexible_pattern", side_effect=RecursionError)
    def test_recursion_error_falls_back(self, mock_build) -> None:
        assert find_mentions("Acme", "Acme and acme").count == 2

    @patch("match_mentions.match_mentions.build_flexible_pattern", side_effect=TypeError("bug"))
    def test_unexpected_errors_propagate(self, mock_build) -> None:
        with pytest.raises(TypeError):
            find_mentions("Acme", "Acme")


class TestSearchTermFor:
    def test_link_searched_by_hostname(self) -> None:
        entity = Entity(value="https://www.example.com/page", type=EntityType.LINK)
        assert search_term_for(entity) == "example.com"

    def test_other_types_use_value(self) -> None:
        entity = Entity(value="Acme", type=EntityType.ORGANIZATION)
        assert search_term_for(entity) == "Acme"


class TestCalculateMentions:
    def _entities(self) -> list[Entity]:
        return [
            Entity(value="Acme", type=EntityType.ORGANIZATION),
            Entity(value="Globex", type=EntityType.ORGANIZATION),
            Entity(value="Initech", type=EntityType.ORGANIZATION),
        ]

    def _answers(self) -> list[AnswerDocument]:
        return [
            AnswerDocument(model_id="model_a", text="Acme leads. Globex follows Acme."),
            AnswerDocument(model_id="model_b", text="Globex only."),
        ]

    def test_counts_per_model(self) -> None:
        acme, globex, initech = calculate_mentions(self._entities(), self._answers(), MODELS)

        assert acme.mentions == 2
        assert acme.mentions_by_model == {"model_a": 2, "model_b": 0, "model_c": 0}
        assert acme.first_offset_by_model == {"model_a": 0}
        assert acme.models == "model_a"
        assert acme.model_count == 1

        assert globex.mentions == 2
        assert globex.models == "model_a,model_b"
        assert globex.model_count == 2
        assert set(globex.excerpts_by_model) == {"model_a", "model_b"}

        assert initech.mentions == 0
        assert initech.first_offset_by_model == {}
        assert initech.models == ""

    def test_mention_shares(self) -> None:
        acme, globex, initech = calculate_mentions(self._entities(), self._answers(), MODELS)

        assert acme.mentions_as_percent == 0.5
        assert acme.mentions_as_percent_by_model == {"model_a": 0.66667, "model_b": 0.0, "model_c": 0.0}
        assert globex.mentions_as_percent_by_model["model_b"] == 1.0
        assert initech.mentions_as_percent == 0.0
        assert acme.mentions_as_percent + globex.mentions_as_percent + initech.mentions_as_percent == 1.0

    def test_input_not_mutated(self) -> None:
        entities = self._entities()
        calculate_mentions(entities, self._answers(), MODELS)
        assert entities[0].mentions == 0
        assert entities[0].mentions_by_model == {}

    def test_ignores_models_outside_roster(self) -> None:
        answers = [AnswerDocument(model_id="model_x", text="Acme Acme")]
        (acme,) = calculate_mentions([Entity(value="Acme", type=EntityType.ORGANIZATION)], answers, MODELS)

        assert acme.mentions == 0
        assert "model_x" not in acme.mentions_by_model

    def test_ignores_answers_from_other_dates(self) -> None:
        answers = [
            AnswerDocument(model_id="model_a", text="Acme", date="2025-01-01"),
            AnswerDocument(model_id="model_b", text="Acme", date="2025-01-02"),
        ]
        (acme,) = calculate_mentions(
            [Entity(value="Acme", type=EntityType.ORGANIZATION)], answers, MODELS, current_date="2025-01-01"
        )

        assert acme.mentions_by_model["model_a"] == 1
        assert acme.mentions_by_model["model_b"] == 0

    def test_link_entity_counted_by_hostname(self) -> None:
        answers = [AnswerDocument(model_id="model_a", text="Read example.com for more")]
        (link,) = calculate_mentions(
            [Entity(value="https://www.example.com/page", type=EntityType.LINK)], answers, MODELS
        )

        assert link.mentions == 1
        assert link.first_offset_by_model == {"model_a": 5}
