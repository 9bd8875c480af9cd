from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict

NAME_MAX_LENGTH = 64


@runtime_checkable
class WithNumericalId(Protocol):
    """Anything paged by numerical id exposes a dense, zero-based id."""

    numerical_id: int


class CatalogModel(BaseModel):
    """Base class for immutable catalog entities."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)


def truncate_text(value: Any, limit: int = NAME_MAX_LENGTH) -> Any:
    """Silently cut strings to ``limit`` characters; other values pass through to type validation."""
    if isinstance(value, str):
        return value[:limit]
    return value
