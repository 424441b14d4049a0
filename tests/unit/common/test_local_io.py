"""Tests for common.local_io module."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from common.local_io import load_answers, load_dataset, parse_answer_json, save_dataset_atomic
from common.models import Entity, EntityType, ModelConfig


def _write_json(path: Path, payload: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload), encoding="utf-8")


class TestLoadDataset:
    def test_parses_requested_sections_and_keeps_raw(self, tmp_path: Path) -> None:
        path = tmp_path / "data.json"
        _write_json(path, {
            "products": [{"value": "Widget"}],
            "summary": "kept",
            "places": "not a list",
        })

        dataset, raw = load_dataset(path, ["products", "places", "persons"])

        assert list(dataset) == ["products"]
        assert dataset["products"][0].value == "Widget"
        assert raw["summary"] == "kept"


class TestSaveDatasetAtomic:
    def test_writes_sections_and_preserves_other_keys(self, tmp_path: Path) -> None:
        path = tmp_path / "out" / "data.json"
        dataset = {"products": [Entity(value="Widget", type=EntityType.PRODUCT, mentions=2)]}

        save_dataset_atomic(path, dataset, {"summary": "kept", "products": []})

        written = json.loads(path.read_text(encoding="utf-8"))
        assert written["summary"] == "kept"
        assert written["products"][0]["value"] == "Widget"
        assert written["products"][0]["mentions"] == 2
        assert list(path.parent.iterdir()) == [path]

    def test_failed_write_leaves_original(self, tmp_path: Path) -> None:
        path = tmp_path / "data.json"
        path.write_text('{"original": true}', encoding="utf-8")
        dataset = {"products": [Entity(value="Widget", type=EntityType.PRODUCT)]}

        with patch("common.local_io.json.dump", side_effect=RuntimeError("disk full")):
            with pytest.raises(RuntimeError):
                save_dataset_atomic(path, dataset)

        assert json.loads(path.read_text(encoding="utf-8")) == {"original": True}
        assert list(tmp_path.iterdir()) == [path]


class TestParseAnswerJson:
    def test_nested_url_citation(self) -> None:
        payload = {
            "choices": [{
                "message": {
                    "content": "OpenAI released a tool.",
                    "annotations": [{
                        "type": "url_citation",
                        "url_citation": {"url": "https://openai.com", "title": "OpenAI", "content": "News"},
                    }],
                },
            }],
            "citations": ["https://openai.com/blog", ""],
        }
        answer = parse_answer_json("model_a", payload, "2025-01-01")

        assert answer.text == "OpenAI released a tool."
        assert answer.citations == ["https://openai.com/blog"]
        assert answer.annotations[0].type == "url_citation"
        assert answer.annotations[0].url == "https://openai.com"
        assert answer.annotations[0].title == "OpenAI"
        assert answer.date == "2025-01-01"

    def test_flat_annotation_with_snippet(self) -> None:
        payload = {"choices": [{"message": {
            "content": "x",
            "annotations": [{"type": "url_citation", "url": "https://a.com", "snippet": "about a"}],
        }}]}
        answer = parse_answer_json("model_a", payload)
        assert answer.annotations[0].content == "about a"

    def test_annotation_without_url_dropped(self) -> None:
        payload = {"choices": [{"message": {"content": "x", "annotations": [{"type": "url_citation"}]}}]}
        assert parse_answer_json("model_a", payload).annotations == []


class TestLoadAnswers:
    def test_reads_json_and_markdown(self, tmp_path: Path) -> None:
        _write_json(tmp_path / "model_a" / "answer.json", {"choices": [{"message": {"content": "from json"}}]})
        (tmp_path / "model_b").mkdir()
        (tmp_path / "model_b" / "answer.md").write_text("from markdown", encoding="utf-8")

        answers = load_answers(tmp_path, [ModelConfig(id="model_a"), ModelConfig(id="model_b")])

        assert [(a.model_id, a.text) for a in answers] == [("model_a", "from json"), ("model_b", "from markdown")]

    def test_skips_missing_and_unreadable(self, tmp_path: Path) -> None:
        (tmp_path / "model_a").mkdir()
        (tmp_path / "model_a" / "answer.json").write_text("{not json", encoding="utf-8")

        answers = load_answers(tmp_path, [ModelConfig(id="model_a"), ModelConfig(id="model_b")])

        assert answers == []
