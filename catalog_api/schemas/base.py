"""Shared pydantic configuration for wire-facing schemas."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialising field names as camelCase on the wire.

    Python code keeps snake_case attribute names; ``populate_by_name`` allows
    services to construct instances without spelling out aliases.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )
