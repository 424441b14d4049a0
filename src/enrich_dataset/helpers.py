"""Helper functions for enrich_dataset CLI."""

from __future__ import annotations

import argparse
from datetime import datetime, timezone
from pathlib import Path

from common.cli_helpers import parse_date


def parse_enrich_dataset_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments for enrich_dataset."""

    parser = argparse.ArgumentParser(
        description="Count mentions, rank appearances, attribute sources and score influence",
    )

    # Input options
    parser.add_argument(
        "--project-dir",
        type=Path,
        required=True,
        help="Project directory containing questions/<question>/",
    )
    parser.add_argument(
        "--date",
        type=lambda v: parse_date(v, "date"),
        default=datetime.now(timezone.utc).date(),
        help="Answer date to enrich (YYYY-MM-DD, default: today UTC)",
    )
    parser.add_argument(
        "--question",
        action="append",
        dest="questions",
        default=None,
        help="Question folder to process; repeat for several (default: all)",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Config name in src/configs or path to a YAML file (default: $ENRICH_CONFIG or 'default')",
    )

    # Output options
    parser.add_argument("--dry-run", action="store_true", help="Enrich without writing datasets")
    parser.add_argument("--verbose", action="store_true", help="Log at DEBUG level")

    return parser.parse_args(argv)
