from dataclasses import dataclass
from pathlib import Path


@dataclass
class QuestionPaths:
    question: str
    dataset_path: Path
    answers_dir: Path


@dataclass
class EnrichSummary:
    processed: int = 0
    entities: int = 0
    mentioned: int = 0
