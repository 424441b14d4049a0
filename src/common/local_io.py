"""Local file I/O utilities."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from common.models import Annotation, AnswerDocument, Dataset, Entity, ModelConfig
from common.serialization import serialize_dataclass
from common.utils import get_value

logger = logging.getLogger(__name__)

ANSWER_JSON = "answer.json"
ANSWER_MARKDOWN = "answer.md"


def load_dataset(path: Path, sections: list[str]) -> tuple[Dataset, dict[str, Any]]:
    """
    Load an entity dataset from a JSON file.

    Args:
        path: Dataset file
        sections: Section names to parse into Entity records

    Returns:
        Tuple of (parsed sections, raw document). The raw document keeps the
        keys this package does not manage so they can be written back.
    """
    with path.open(encoding="utf-8") as f:
        raw = json.load(f)

    dataset: Dataset = {}
    for section in sections:
        records = raw.get(section)
        if not isinstance(records, list):
            logger.debug("Skipping section '%s' - not an array", section)
            continue
        dataset[section] = [Entity.from_record(record, section) for record in records]
    return dataset, raw


def save_dataset_atomic(path: Path, dataset: Dataset, raw: dict[str, Any] | None = None) -> None:
    """
    Write the dataset to ``path`` via a temporary file and rename.

    A crash mid-write leaves the previous file in place.

    Args:
        path: Destination file
        dataset: Enriched sections
        raw: Original document whose other keys are preserved
    """
    document = dict(raw or {})
    for section, entities in dataset.items():
        document[section] = [serialize_dataclass(entity) for entity in entities]

    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(document, f, ensure_ascii=False, indent=2)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise

    logger.info("Saved %d sections to %s", len(dataset), path)


def _parse_annotation(item: Any) -> Annotation | None:
    annotation_type = get_value(item, "type") or ""
    # OpenAI nests the citation fields under a key named after the type.
    details = get_value(item, annotation_type) if annotation_type else None
    if not isinstance(details, dict):
        details = item if isinstance(item, dict) else {}
    url = details.get("url")
    if not url:
        return None
    return Annotation(
        type=annotation_type,
        url=url,
        title=details.get("title") or "",
        content=details.get("content") or details.get("snippet") or "",
    )


def parse_answer_json(model_id: str, payload: dict[str, Any], date: str | None = None) -> AnswerDocument:
    """Build an AnswerDocument from a chat-completion style answer payload."""
    choices = payload.get("choices") or [{}]
    message = choices[0].get("message") or {}
    annotations = [
        annotation
        for annotation in (_parse_annotation(item) for item in message.get("annotations") or [])
        if annotation is not None
    ]
    citations = [str(url) for url in payload.get("citations") or [] if url]
    return AnswerDocument(
        model_id=model_id,
        text=message.get("content") or "",
        citations=citations,
        annotations=annotations,
        date=date,
    )


def load_answers(answers_dir: Path, models: list[ModelConfig], date: str | None = None) -> list[AnswerDocument]:
    """
    Load every roster model's answer from ``answers_dir/<model_id>/``.

    ``answer.json`` is preferred; ``answer.md`` is used as plain text when no
    JSON answer exists. A model whose answer cannot be read is skipped.
    """
    answers: list[AnswerDocument] = []
    for model in models:
        model_dir = answers_dir / model.id
        json_path = model_dir / ANSWER_JSON
        markdown_path = model_dir / ANSWER_MARKDOWN
        try:
            if json_path.exists():
                with json_path.open(encoding="utf-8") as f:
                    answers.append(parse_answer_json(model.id, json.load(f), date))
            elif markdown_path.exists():
                text = markdown_path.read_text(encoding="utf-8")
                answers.append(AnswerDocument(model_id=model.id, text=text, date=date))
            else:
                logger.debug("No answer found for model %s in %s", model.id, model_dir)
        except (OSError, ValueError, AttributeError, IndexError) as exc:
            logger.debug("Skipping unreadable answer for model %s: %s", model.id, exc)

    logger.info("Loaded %d answers from %s", len(answers), answers_dir)
    return answers
