"""Read-only traversal of the base document.

Lookups return the node or None and never raise; malformed containers are
treated as empty.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator

from .address import Locator, to_number


@dataclass(frozen=True, slots=True)
class NodePath:
    """The chain of nodes from period down to one exercise."""

    period: dict[str, Any]
    block: dict[str, Any]
    week: dict[str, Any]
    day: dict[str, Any]
    exercise: dict[str, Any]

    def locator(self) -> Locator | None:
        return Locator.build(
            self.period.get("id"),
            self.block.get("id"),
            self.week.get("week"),
            self.day.get("day"),
            self.exercise.get("id"),
        )


def is_base_document(value: Any) -> bool:
    return isinstance(value, dict) and isinstance(value.get("periods"), list)


def children(node: Any, field: str) -> list[dict[str, Any]]:
    if not isinstance(node, dict):
        return []
    items = node.get(field)
    if not isinstance(items, list):
        return []
    return [item for item in items if isinstance(item, dict)]


def _find_by_number(items: list[dict[str, Any]], field: str, wanted: Any) -> dict[str, Any] | None:
    n = to_number(wanted)
    if n is None:
        return None
    return next((item for item in items if to_number(item.get(field)) == n), None)


def find_period(doc: Any, period_id: Any) -> dict[str, Any] | None:
    pid = str(period_id or "")
    if not pid:
        return None
    return next((p for p in children(doc, "periods") if str(p.get("id") or "") == pid), None)


def find_block(period: Any, block_id: Any) -> dict[str, Any] | None:
    return _find_by_number(children(period, "blocks"), "id", block_id)


def find_week(block: Any, week: Any) -> dict[str, Any] | None:
    return _find_by_number(children(block, "weeks"), "week", week)


def find_day(week: Any, day: Any) -> dict[str, Any] | None:
    return _find_by_number(children(week, "days"), "day", day)


def find_exercise(day: Any, exercise_id: Any) -> dict[str, Any] | None:
    eid = str(exercise_id or "")
    if not eid:
        return None
    return next((e for e in children(day, "exercises") if str(e.get("id") or "") == eid), None)


def locate(doc: Any, locator: Locator) -> NodePath | None:
    period = find_period(doc, locator.period_id)
    if period is None:
        return None
    block = find_block(period, locator.block_id)
    if block is None:
        return None
    week = find_week(block, locator.week)
    if week is None:
        return None
    day = find_day(week, locator.day)
    if day is None:
        return None
    exercise = find_exercise(day, locator.exercise_id)
    if exercise is None:
        return None
    return NodePath(period, block, week, day, exercise)


def iter_exercises(doc: Any) -> Iterator[NodePath]:
    """Walk every exercise in document order (period, block, week, day, exercise)."""
    for period in children(doc, "periods"):
        for block in children(period, "blocks"):
            for week in children(block, "weeks"):
                for day in children(week, "days"):
                    for exercise in children(day, "exercises"):
                        yield NodePath(period, block, week, day, exercise)
