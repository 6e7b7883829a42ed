"""Field projection of records."""

import copy
from collections.abc import Iterable

from memdb.models import Record


def normalize_fields(fields: str | Iterable[str] | None) -> list[str]:
    """Turn a projection argument into a list of field names."""
    if fields is None:
        return []
    if isinstance(fields, str):
        return [fields]
    return list(fields)


def project(record: Record, fields: str | Iterable[str] | None = None) -> Record:
    """Narrow a record to the requested fields.

    The result never shares structure with ``record``, so callers can mutate
    it freely without touching stored data.

    Args:
        record: Source record
        fields: Field names to keep; empty or None keeps every field

    Returns:
        A new record holding the requested fields that exist on the source
    """
    names = normalize_fields(fields)
    if not names:
        return copy.deepcopy(record)
    return {name: copy.deepcopy(record[name]) for name in names if name in record}
