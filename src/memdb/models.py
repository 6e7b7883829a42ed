"""Record and connection data models."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# Canonical identifier field of every record.
ID_FIELD = "id"

Record = dict[str, Any]


def is_identifier(value: Any) -> bool:
    """Check if a value can serve as a record identifier."""
    return isinstance(value, str | int | float) and not isinstance(value, bool)


def record_key(value: Any) -> str:
    """Get the collection mapping key for an identifier value."""
    return value if isinstance(value, str) else str(value)


class ConnectOptions(BaseModel):
    """Options accepted by ``connect``.

    Only ``uri`` has an effect: it is the scope key under which connections
    share a store. Driver options meant for a real database are accepted
    and ignored.
    """

    model_config = ConfigDict(extra="allow")

    uri: str | None = Field(default=None, description="Scope key shared between connections")
    name: str | None = Field(default=None, description="Database name (informational)")
