"""
Base class for every model that crosses the UI/host process boundary.

Python attributes are snake_case; the wire format is camelCase
(visualIds, dashboardId, requestId, ...).
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Immutable pydantic model serialized with camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        use_enum_values=True,
    )

    @classmethod
    def from_raw(cls, raw: dict | None):
        """Validate a wire dict (camelCase or snake_case keys)."""
        return cls.model_validate(raw or {})

    def to_wire(self) -> dict:
        """Serialize to a JSON-ready dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
