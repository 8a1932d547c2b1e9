"""Storage-neutral query model with MongoDB and in-memory evaluators."""

import operator
from collections.abc import Callable, Mapping
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class Operator(StrEnum):
    """Comparison operators supported by repositories."""

    EQ = "eq"  # equals
    GT = "gt"  # greater than
    GTE = "gte"  # greater than or equal
    LT = "lt"  # less than
    LTE = "lte"  # less than or equal


class Condition(BaseModel):
    """Single condition on a document field."""

    field: str = Field(..., description="Model field name")
    operator: Operator = Field(Operator.EQ, description="Comparison operator")
    value: Any = Field(..., description="Value to compare against")


class Query(BaseModel):
    """Conditions combined as: all of `all_of` AND (any of `any_of`, if given)."""

    all_of: list[Condition] = Field(default_factory=list)
    any_of: list[Condition] = Field(default_factory=list)

    @classmethod
    def where(cls, **equals: Any) -> "Query":
        """Build a query of equality conditions."""
        return cls(all_of=[Condition(field=name, value=value) for name, value in equals.items()])


class SortKey(BaseModel):
    """Sort key for repository listings."""

    field: str
    descending: bool = False


# Mapping of operators to MongoDB query operators
_MONGO_OPERATORS: dict[Operator, str] = {
    Operator.EQ: "$eq",
    Operator.GT: "$gt",
    Operator.GTE: "$gte",
    Operator.LT: "$lt",
    Operator.LTE: "$lte",
}

_PYTHON_OPERATORS: dict[Operator, Callable[[Any, Any], bool]] = {
    Operator.EQ: operator.eq,
    Operator.GT: operator.gt,
    Operator.GTE: operator.ge,
    Operator.LT: operator.lt,
    Operator.LTE: operator.le,
}


def get_field_path(field: str) -> str:
    """Get the MongoDB field path for a model field; `id` is stored as `_id`."""
    if field == "id":
        return "_id"
    return field


def build_condition_query(condition: Condition) -> dict[str, Any]:
    """Build MongoDB query document for a single condition."""
    return {get_field_path(condition.field): {_MONGO_OPERATORS[condition.operator]: condition.value}}


def build_mongo_query(query: Query | None) -> dict[str, Any]:
    """Build MongoDB query document from a query."""
    if query is None:
        return {}

    clauses = [build_condition_query(condition) for condition in query.all_of]
    if query.any_of:
        clauses.append({"$or": [build_condition_query(condition) for condition in query.any_of]})

    if not clauses:
        return {}
    if len(clauses) == 1:
        return clauses[0]
    return {"$and": clauses}


def build_mongo_sort(sort: list[SortKey]) -> list[tuple[str, int]]:
    """Build MongoDB sort specification."""
    return [(get_field_path(key.field), -1 if key.descending else 1) for key in sort]


def condition_matches(document: Mapping[str, Any], condition: Condition) -> bool:
    """Evaluate a single condition against a plain document."""
    if condition.field not in document:
        return False
    value = document[condition.field]
    if condition.operator != Operator.EQ and (value is None or condition.value is None):
        return False
    return _PYTHON_OPERATORS[condition.operator](value, condition.value)


def matches(document: Mapping[str, Any], query: Query | None) -> bool:
    """Evaluate a query against a plain document (model_dump output)."""
    if query is None:
        return True
    if not all(condition_matches(document, condition) for condition in query.all_of):
        return False
    if query.any_of and not any(condition_matches(document, condition) for condition in query.any_of):
        return False
    return True


def sort_documents(documents: list[dict[str, Any]], sort: list[SortKey]) -> list[dict[str, Any]]:
    """Sort plain documents by several keys; stable for equal keys."""
    result = list(documents)
    for key in reversed(sort):
        result.sort(key=lambda document: document[key.field], reverse=key.descending)
    return result
