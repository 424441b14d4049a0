"""Data models for aggregate_link_types pipeline stage."""

from __future__ import annotations

from dataclasses import dataclass

from common.models import Entity


@dataclass
class LinkTypeCluster(Entity):
    """Link entities sharing a link type, scored as one item."""
    code: str = ""
    link_count: int = 0
