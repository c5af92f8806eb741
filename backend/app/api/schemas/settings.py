"""Shared application settings schemas."""

from __future__ import annotations

from pydantic import BaseModel, Field


class KanbanColorsPayload(BaseModel):
    """Column colour classes per board flavour, e.g. {"dev": {"todo": "bg-blue-100"}}."""

    colors: dict[str, dict[str, str]] = Field(default_factory=dict)
