"""Data models for aggregate_link_domains pipeline stage."""

from __future__ import annotations

from dataclasses import dataclass

from common.models import Entity


@dataclass
class LinkDomain(Entity):
    """Link entities sharing a hostname, scored as one item."""
    link: str = ""
    link_count: int = 0
