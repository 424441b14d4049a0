"""CLI for enriching question datasets."""

from __future__ import annotations

import logging
import sys

from dotenv import load_dotenv

from common.cli_helpers import setup_logging
from common.config import load_config
from common.errors import PipelineCriticalError
from enrich_dataset.enrich_dataset import enrich_project
from enrich_dataset.helpers import parse_enrich_dataset_args

load_dotenv()

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    args = parse_enrich_dataset_args(argv)
    setup_logging(args.verbose)

    try:
        config = load_config(args.config)
        enrich_project(
            args.project_dir,
            args.date.isoformat(),
            config,
            questions=args.questions,
            dry_run=args.dry_run,
        )
    except PipelineCriticalError as exc:
        where = f" in {exc.question_folder}" if exc.question_folder else ""
        logger.error("Pipeline-stopping error%s (%s): %s", where, exc.step_name, exc)
        return 1
    except FileNotFoundError as exc:
        logger.error("%s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
