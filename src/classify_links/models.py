"""Data models for classify_links pipeline stage."""

from __future__ import annotations

import re
from dataclasses import dataclass, field


@dataclass
class LinkTypeRule:
    """Compiled matchers for one link type."""
    code: str
    name: str
    contains: list[str] = field(default_factory=list)
    ends_with: list[str] = field(default_factory=list)
    regexes: list[re.Pattern] = field(default_factory=list)
