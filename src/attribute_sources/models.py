"""Data models for attribute_sources pipeline stage."""

from dataclasses import dataclass


@dataclass
class DistanceCheck:
    """Measured gap between an entity mention and a candidate link."""
    within_limits: bool
    min_sentences: float
    min_words: float


@dataclass
class CandidateLink:
    """A link found in a sentence, with its span in that sentence."""
    url: str
    start: int
    end: int
