"""Query parsing and record matching.

A raw query specification is resolved once into one of three variants:

- ``IdentifierQuery``: a bare scalar, or a mapping naming only ``id``
- ``EqualityQuery``: a mapping of field names to concrete values
- ``PredicateQuery``: a mapping where at least one value is an operator
  mapping such as ``{"$gt": 3}``

Equality is strict throughout: values must have the same type as well as
the same value, so ``1``, ``1.0`` and ``True`` never match each other.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from memdb.core.exceptions import MalformedQueryError
from memdb.models import ID_FIELD, Record, is_identifier, record_key

_MISSING = object()


class Operator(StrEnum):
    """Supported field operators."""

    EQ = "$eq"
    NE = "$ne"
    GT = "$gt"
    GTE = "$gte"
    LT = "$lt"
    LTE = "$lte"
    IN = "$in"
    NIN = "$nin"
    EXISTS = "$exists"


ORDERING_OPERATORS = frozenset({Operator.GT, Operator.GTE, Operator.LT, Operator.LTE})
MEMBERSHIP_OPERATORS = frozenset({Operator.IN, Operator.NIN})


def strict_equals(left: Any, right: Any) -> bool:
    """Compare two values by type and value, recursing into containers."""
    if isinstance(left, Mapping) and isinstance(right, Mapping):
        if left.keys() != right.keys():
            return False
        return all(strict_equals(left[k], right[k]) for k in left)
    if isinstance(left, list | tuple) and isinstance(right, list | tuple):
        if type(left) is not type(right) or len(left) != len(right):
            return False
        return all(strict_equals(a, b) for a, b in zip(left, right))
    return type(left) is type(right) and left == right


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def _comparable(left: Any, right: Any) -> bool:
    if _is_number(left) and _is_number(right):
        return True
    return isinstance(left, str) and isinstance(right, str)


@dataclass(frozen=True)
class Condition:
    """A single operator applied to one field."""

    field: str
    operator: Operator
    operand: Any

    def evaluate(self, record: Record) -> bool:
        """Check the condition against a record."""
        value = record.get(self.field, _MISSING)
        missing = value is _MISSING
        op = self.operator

        if op == Operator.EXISTS:
            return (not missing) == self.operand
        if op == Operator.EQ:
            return not missing and strict_equals(value, self.operand)
        if op == Operator.NE:
            return missing or not strict_equals(value, self.operand)
        if op in MEMBERSHIP_OPERATORS:
            found = not missing and any(strict_equals(value, o) for o in self.operand)
            return found if op == Operator.IN else not found

        # Ordering operators
        if missing or not _comparable(value, self.operand):
            return False
        if op == Operator.GT:
            return value > self.operand
        if op == Operator.GTE:
            return value >= self.operand
        if op == Operator.LT:
            return value < self.operand
        return value <= self.operand


@dataclass(frozen=True)
class IdentifierQuery:
    """Lookup of a single record by identifier.

    ``exact`` is set when the identifier came from a ``{"id": ...}`` mapping;
    a hit must then also match the identifier strictly. A bare scalar query
    is shorthand and matches on the mapping key alone.
    """

    value: Any
    exact: bool = False

    @property
    def key(self) -> str:
        """Collection mapping key of the identifier."""
        return record_key(self.value)

    def matches(self, record: Record) -> bool:
        if ID_FIELD not in record:
            return False
        if self.exact:
            return strict_equals(record[ID_FIELD], self.value)
        return record_key(record[ID_FIELD]) == self.key


@dataclass(frozen=True)
class EqualityQuery:
    """Field-by-field strict equality. An empty query matches everything."""

    fields: Mapping[str, Any] = field(default_factory=dict)

    def matches(self, record: Record) -> bool:
        for name, expected in self.fields.items():
            if name not in record or not strict_equals(record[name], expected):
                return False
        return True


@dataclass(frozen=True)
class PredicateQuery:
    """Conjunction of field conditions."""

    conditions: tuple[Condition, ...] = ()

    def matches(self, record: Record) -> bool:
        return all(c.evaluate(record) for c in self.conditions)


Query = IdentifierQuery | EqualityQuery | PredicateQuery


def _is_operator_mapping(name: str, value: Any, query: Any) -> bool:
    if not isinstance(value, Mapping) or not value:
        return False
    dollar = [isinstance(k, str) and k.startswith("$") for k in value]
    if all(dollar):
        return True
    if any(dollar):
        raise MalformedQueryError(
            f"Field '{name}' mixes operators and plain keys",
            query=query,
            details={"field": name},
        )
    return False


def _parse_operand(name: str, op: Operator, operand: Any, query: Any) -> Any:
    details = {"field": name, "operator": str(op)}
    if op in MEMBERSHIP_OPERATORS:
        if not isinstance(operand, list | tuple | set | frozenset):
            raise MalformedQueryError(
                f"Operator {op} on '{name}' requires a list of values",
                query=query,
                details=details,
            )
        return tuple(operand)
    if op == Operator.EXISTS and not isinstance(operand, bool):
        raise MalformedQueryError(
            f"Operator {op} on '{name}' requires true or false",
            query=query,
            details=details,
        )
    if op in ORDERING_OPERATORS and not (_is_number(operand) or isinstance(operand, str)):
        raise MalformedQueryError(
            f"Operator {op} on '{name}' requires a number or string",
            query=query,
            details=details,
        )
    return operand


def _parse_conditions(name: str, spec: Mapping[str, Any], query: Any) -> list[Condition]:
    conditions = []
    for raw_op, operand in spec.items():
        try:
            op = Operator(raw_op)
        except ValueError:
            raise MalformedQueryError(
                f"Unsupported operator {raw_op!r} on field '{name}'",
                query=query,
                details={"field": name, "operator": raw_op},
            ) from None
        conditions.append(Condition(name, op, _parse_operand(name, op, operand, query)))
    return conditions


def parse_query(spec: Any) -> Query:
    """Resolve a raw query specification into a query variant.

    Args:
        spec: ``None``, an identifier scalar, a mapping or an already
            parsed query

    Returns:
        The parsed query

    Raises:
        MalformedQueryError: If the specification has an unsupported shape
    """
    if isinstance(spec, IdentifierQuery | EqualityQuery | PredicateQuery):
        return spec
    if spec is None:
        return EqualityQuery()
    if is_identifier(spec):
        return IdentifierQuery(spec)
    if not isinstance(spec, Mapping):
        raise MalformedQueryError(
            f"Unsupported query type: {type(spec).__name__}",
            query=spec,
        )

    for name in spec:
        if not isinstance(name, str):
            raise MalformedQueryError(
                f"Query field names must be strings, got {name!r}", query=spec
            )
        if name.startswith("$"):
            raise MalformedQueryError(
                f"Unsupported top-level operator {name!r}", query=spec
            )

    if set(spec) == {ID_FIELD} and is_identifier(spec[ID_FIELD]):
        return IdentifierQuery(spec[ID_FIELD], exact=True)

    conditions: list[Condition] = []
    has_operators = False
    for name, value in spec.items():
        if _is_operator_mapping(name, value, spec):
            has_operators = True
            conditions.extend(_parse_conditions(name, value, spec))
        else:
            conditions.append(Condition(name, Operator.EQ, value))

    if has_operators:
        return PredicateQuery(tuple(conditions))
    return EqualityQuery(dict(spec))


def matches(query: Any, record: Record) -> bool:
    """Check whether a record satisfies a query.

    Args:
        query: Raw query specification or parsed query
        record: Candidate record

    Returns:
        True if every part of the query holds for the record
    """
    return parse_query(query).matches(record)
