"""Run every enrichment stage over one question/date unit."""

from __future__ import annotations

import copy
import logging
from pathlib import Path

from aggregate_link_domains.aggregate_link_domains import LINK_DOMAINS_KEY, aggregate_link_domains
from aggregate_link_types.aggregate_link_types import LINK_TYPES_KEY, aggregate_link_types
from attribute_sources.attribute_sources import attribute_sources
from classify_links.classify_links import build_rules, classify_links, link_type_names
from common.config import EnrichConfig, get_config
from common.errors import PipelineCriticalError, create_missing_file_error
from common.local_io import load_answers, load_dataset, save_dataset_atomic
from common.models import AnswerDocument, Dataset
from enrich_dataset.models import EnrichSummary, QuestionPaths
from match_mentions.match_mentions import calculate_mentions
from rank_appearances.rank_appearances import calculate_appearance_order
from score_influence.score_influence import calculate_influence

logger = logging.getLogger(__name__)

STEP_NAME = "enrich-dataset"
QUESTIONS_DIR_NAME = "questions"
LINKS_SECTION = "links"


def question_paths(project_dir: Path, question: str, date: str) -> QuestionPaths:
    """
    Locate the inputs of one question for one date.

    Layout::

        <project>/questions/<question>/data/<date>-data.json
        <project>/questions/<question>/answers/<date>/<model_id>/answer.json
    """
    question_dir = project_dir / QUESTIONS_DIR_NAME / question
    return QuestionPaths(
        question=question,
        dataset_path=question_dir / "data" / f"{date}-data.json",
        answers_dir=question_dir / "answers" / date,
    )


def list_questions(project_dir: Path) -> list[str]:
    """Question folders under the project, sorted by name."""
    questions_dir = project_dir / QUESTIONS_DIR_NAME
    if not questions_dir.is_dir():
        raise create_missing_file_error(project_dir.name, str(questions_dir), STEP_NAME)
    return sorted(path.name for path in questions_dir.iterdir() if path.is_dir())


def enrich_sections(
    dataset: Dataset,
    answers: list[AnswerDocument],
    config: EnrichConfig,
    date: str | None = None,
    question: str | None = None,
) -> Dataset:
    """
    Apply matcher, ranker, attributor and scorer to every configured section.

    When links are enabled they are then classified by type and clustered
    into ``linkDomains`` and ``linkTypes``. The input is not modified; a new
    dataset is returned.

    Raises:
        PipelineCriticalError: If links are enabled but the dataset has none
    """
    enriched: Dataset = copy.deepcopy(dataset)
    detection = config.source_detection

    for section in config.sections:
        entities = enriched.get(section)
        if entities is None:
            logger.warning("Section '%s' missing from dataset for %s", section, question)
            continue

        entities = calculate_mentions(entities, answers, config.models, current_date=date)
        entities = calculate_appearance_order(entities, config.models)
        entities = attribute_sources(
            entities,
            answers,
            max_sentences=detection.max_sentences,
            max_words=detection.max_words,
        )
        entities = calculate_influence(entities, config.models)
        enriched[section] = entities

        mentioned = sum(1 for entity in entities if entity.mentions > 0)
        logger.info("%s: %d/%d entities mentioned", section, mentioned, len(entities))

    if LINKS_SECTION in config.sections:
        rules = build_rules(config.link_types)
        links = classify_links(enriched.get(LINKS_SECTION), rules, question)
        enriched[LINKS_SECTION] = links

        domains = aggregate_link_domains(links, config.models, question)
        enriched[LINK_DOMAINS_KEY] = calculate_influence(domains, config.models)

        link_types = aggregate_link_types(links, config.models, link_type_names(rules), question)
        enriched[LINK_TYPES_KEY] = calculate_influence(link_types, config.models)

    return enriched


def enrich_question(
    project_dir: Path,
    question: str,
    date: str,
    config: EnrichConfig,
    dry_run: bool = False,
) -> Dataset:
    """
    Enrich one question's dataset and write it back.

    The file is only replaced after every stage has succeeded.

    Raises:
        PipelineCriticalError: On missing input or any stage failure
    """
    paths = question_paths(project_dir, question, date)
    if not paths.dataset_path.exists():
        raise create_missing_file_error(question, str(paths.dataset_path), STEP_NAME)

    try:
        dataset, raw = load_dataset(paths.dataset_path, config.sections)
        answers = load_answers(paths.answers_dir, config.models, date)
        if not answers:
            logger.warning("No answers found for %s in %s", question, paths.answers_dir)

        enriched = enrich_sections(dataset, answers, config, date=date, question=question)
    except PipelineCriticalError:
        raise
    except Exception as exc:
        raise PipelineCriticalError(
            f"Failed to process {question}: {exc}",
            STEP_NAME,
            question,
        ) from exc

    if dry_run:
        logger.info("Dry run: not writing %s", paths.dataset_path)
    else:
        save_dataset_atomic(paths.dataset_path, enriched, raw)
    return enriched


def enrich_project(
    project_dir: Path,
    date: str,
    config: EnrichConfig | None = None,
    questions: list[str] | None = None,
    dry_run: bool = False,
) -> EnrichSummary:
    """
    Enrich questions one at a time, stopping at the first critical error.

    Uses the process-wide config when none is given.
    """
    config = config or get_config()
    questions = questions or list_questions(project_dir)
    logger.info("Processing %d questions for date: %s", len(questions), date)

    summary = EnrichSummary()
    for index, question in enumerate(questions, start=1):
        logger.info("[%d/%d] Enriching %s", index, len(questions), question)
        enriched = enrich_question(project_dir, question, date, config, dry_run=dry_run)

        summary.processed += 1
        for section in config.sections:
            entities = enriched.get(section) or []
            summary.entities += len(entities)
            summary.mentioned += sum(1 for entity in entities if entity.mentions > 0)

    logger.info(
        "Enrichment complete. Processed: %d, Entities: %d, Mentioned: %d",
        summary.processed,
        summary.entities,
        summary.mentioned,
    )
    return summary
