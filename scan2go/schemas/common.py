"""Shared Pydantic schema base with camelCase aliases."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from scan2go import __version__


class CamelModel(BaseModel):
    """API schemas speak camelCase on the wire and load straight from ORM rows."""

    model_config = ConfigDict(
        populate_by_name=True,
        alias_generator=to_camel,
        from_attributes=True,
    )


class HealthResponse(BaseModel):
    status: str = "ok"
    app: str
    env: str
    version: str = __version__
