"""JSON filter clauses for RT REST 2.0 collection searches."""

from __future__ import annotations

from typing import Any, Literal

Aggregator = Literal["AND", "OR"]


def clause(
    field: str, operator: str, value: Any, *, aggregator: Aggregator | None = None
) -> dict[str, Any]:
    out: dict[str, Any] = {"field": field, "operator": operator, "value": value}
    if aggregator is not None:
        out["entry_aggregator"] = aggregator
    return out


def created_range(after: str | None, before: str | None) -> list[dict[str, Any]]:
    clauses: list[dict[str, Any]] = []
    if after:
        clauses.append(clause("Created", ">", after, aggregator="AND"))
    if before:
        clauses.append(clause("Created", "<", before, aggregator="AND"))
    return clauses
