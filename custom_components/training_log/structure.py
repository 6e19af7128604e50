"""Structural edits of the base document.

Adds validate the identifier, reject duplicates and keep the parent's
children ordered (periods by insertion, blocks/weeks/days numerically,
exercises by name). Removes purge every overlay patch under the removed node
before detaching it, so a later node with the same identifier starts clean.

reconcile_selection() is the single fallback rule used after any mutation:
keep what still exists, otherwise take the first child, creating a
placeholder when a level is empty.
"""

from __future__ import annotations

from typing import Any

from .address import Selection, decode, slugify, to_number
from .errors import DuplicateIdentifierError, InvalidIdentifierError, NotFoundError
from .hierarchy import children, find_block, find_day, find_exercise, find_period, find_week
from .overlay import Overlay

PLACEHOLDER_PERIOD_ID = "period-1"
PLACEHOLDER_PERIOD_NAME = "Period 1"


def new_period(period_id: str, name: str) -> dict[str, Any]:
    return {"id": period_id, "name": name, "blocks": []}


def new_block(block_id: int) -> dict[str, Any]:
    return {"id": block_id, "weeks": []}


def new_week(week: int) -> dict[str, Any]:
    return {"week": week, "days": []}


def new_day(day: int, label: str | None = None) -> dict[str, Any]:
    return {"day": day, "label": str(label or "").strip() or f"Day {day}", "exercises": []}


def new_exercise(exercise_id: str, name: str, work: str = "") -> dict[str, Any]:
    return {
        "id": exercise_id,
        "name": name,
        "work": str(work or "").strip(),
        "videos": [],
        "lifterComment": "",
        "coachComment": "",
        "updatedAt": None,
    }


def _validated_slug(name: Any, what: str) -> tuple[str, str]:
    display = str(name or "").strip()
    if not display:
        raise InvalidIdentifierError(f"Enter a {what} name")
    slug = slugify(display)
    if not slug:
        raise InvalidIdentifierError(f"{what.capitalize()} name '{display}' has no usable characters")
    return slug, display


def _validated_number(value: Any, what: str) -> int:
    n = to_number(value)
    if n is None or n < 1:
        raise InvalidIdentifierError(f"Enter a valid {what} number")
    return n


def _container(node: dict[str, Any] | None, field: str, what: str) -> list[Any]:
    if node is None:
        raise NotFoundError(f"{what} not found")
    items = node.get(field)
    if not isinstance(items, list):
        items = []
        node[field] = items
    return items


def _require_period(doc: dict[str, Any], period_id: Any) -> dict[str, Any]:
    period = find_period(doc, period_id)
    if period is None:
        raise NotFoundError(f"Period '{period_id}' not found")
    return period


def _require_block(doc: dict[str, Any], period_id: Any, block_id: Any) -> dict[str, Any]:
    block = find_block(_require_period(doc, period_id), block_id)
    if block is None:
        raise NotFoundError(f"Block {block_id} not found")
    return block


def _require_week(doc: dict[str, Any], period_id: Any, block_id: Any, week: Any) -> dict[str, Any]:
    week_node = find_week(_require_block(doc, period_id, block_id), week)
    if week_node is None:
        raise NotFoundError(f"Week {week} not found")
    return week_node


def _require_day(doc: dict[str, Any], period_id: Any, block_id: Any, week: Any, day: Any) -> dict[str, Any]:
    day_node = find_day(_require_week(doc, period_id, block_id, week), day)
    if day_node is None:
        raise NotFoundError(f"Day {day} not found")
    return day_node


def _sort_numeric(items: list[Any], field: str) -> None:
    items.sort(key=lambda item: to_number(item.get(field) if isinstance(item, dict) else None) or 0)


def add_period(doc: dict[str, Any], name: Any) -> dict[str, Any]:
    period_id, display = _validated_slug(name, "period")
    periods = _container(doc, "periods", "Document")
    if find_period(doc, period_id) is not None:
        raise DuplicateIdentifierError(f"Period '{period_id}' already exists")
    period = new_period(period_id, display)
    periods.append(period)
    return period


def add_block(doc: dict[str, Any], period_id: Any, block_id: Any) -> dict[str, Any]:
    n = _validated_number(block_id, "block")
    period = _require_period(doc, period_id)
    if find_block(period, n) is not None:
        raise DuplicateIdentifierError(f"Block {n} already exists")
    blocks = _container(period, "blocks", "Period")
    block = new_block(n)
    blocks.append(block)
    _sort_numeric(blocks, "id")
    return block


def add_week(doc: dict[str, Any], period_id: Any, block_id: Any, week: Any) -> dict[str, Any]:
    n = _validated_number(week, "week")
    block = _require_block(doc, period_id, block_id)
    if find_week(block, n) is not None:
        raise DuplicateIdentifierError(f"Week {n} already exists")
    weeks = _container(block, "weeks", "Block")
    week_node = new_week(n)
    weeks.append(week_node)
    _sort_numeric(weeks, "week")
    return week_node


def add_day(doc: dict[str, Any], period_id: Any, block_id: Any, week: Any, day: Any, label: str | None = None) -> dict[str, Any]:
    n = _validated_number(day, "day")
    week_node = _require_week(doc, period_id, block_id, week)
    if find_day(week_node, n) is not None:
        raise DuplicateIdentifierError(f"Day {n} already exists")
    days = _container(week_node, "days", "Week")
    day_node = new_day(n, label)
    days.append(day_node)
    _sort_numeric(days, "day")
    return day_node


def add_exercise(
    doc: dict[str, Any],
    period_id: Any,
    block_id: Any,
    week: Any,
    day: Any,
    name: Any,
    work: str = "",
) -> dict[str, Any]:
    exercise_id, display = _validated_slug(name, "exercise")
    day_node = _require_day(doc, period_id, block_id, week, day)
    if find_exercise(day_node, exercise_id) is not None:
        raise DuplicateIdentifierError(f"Exercise '{exercise_id}' already exists on this day")
    exercises = _container(day_node, "exercises", "Day")
    exercise = new_exercise(exercise_id, display, work)
    exercises.append(exercise)
    exercises.sort(key=lambda e: str(e.get("name") or "").casefold() if isinstance(e, dict) else "")
    return exercise


def purge_overlay(overlay: Overlay, prefix: Selection) -> list[str]:
    """Delete every patch whose key decodes to a locator under ``prefix``."""
    purged: list[str] = []
    for key in overlay.keys():
        locator = decode(key)
        if locator is not None and prefix.covers(locator):
            overlay.delete(key)
            purged.append(key)
    return purged


def _purge_under(overlay: Overlay, *parts: Any) -> list[str]:
    prefix = Selection.build(*parts)
    if prefix.depth != len(parts):
        # Unaddressable node (e.g. a separator in its slug): no patch can target it.
        return []
    return purge_overlay(overlay, prefix)


def _detach(items: list[Any], node: dict[str, Any]) -> None:
    for idx, item in enumerate(items):
        if item is node:
            del items[idx]
            return


def remove_period(doc: dict[str, Any], overlay: Overlay, period_id: Any) -> list[str]:
    period = _require_period(doc, period_id)
    purged = _purge_under(overlay, period.get("id"))
    _detach(doc["periods"], period)
    return purged


def remove_block(doc: dict[str, Any], overlay: Overlay, period_id: Any, block_id: Any) -> list[str]:
    period = _require_period(doc, period_id)
    block = _require_block(doc, period_id, block_id)
    purged = _purge_under(overlay, period.get("id"), block.get("id"))
    _detach(period["blocks"], block)
    return purged


def remove_week(doc: dict[str, Any], overlay: Overlay, period_id: Any, block_id: Any, week: Any) -> list[str]:
    block = _require_block(doc, period_id, block_id)
    week_node = _require_week(doc, period_id, block_id, week)
    purged = _purge_under(overlay, period_id, block.get("id"), week_node.get("week"))
    _detach(block["weeks"], week_node)
    return purged


def remove_day(doc: dict[str, Any], overlay: Overlay, period_id: Any, block_id: Any, week: Any, day: Any) -> list[str]:
    week_node = _require_week(doc, period_id, block_id, week)
    day_node = _require_day(doc, period_id, block_id, week, day)
    purged = _purge_under(overlay, period_id, block_id, week_node.get("week"), day_node.get("day"))
    _detach(week_node["days"], day_node)
    return purged


def remove_exercise(
    doc: dict[str, Any],
    overlay: Overlay,
    period_id: Any,
    block_id: Any,
    week: Any,
    day: Any,
    exercise_id: Any,
) -> list[str]:
    day_node = _require_day(doc, period_id, block_id, week, day)
    exercise = find_exercise(day_node, exercise_id)
    if exercise is None:
        raise NotFoundError(f"Exercise '{exercise_id}' not found")
    purged = _purge_under(overlay, period_id, block_id, week, day, exercise.get("id"))
    _detach(day_node["exercises"], exercise)
    return purged


def reconcile_selection(doc: dict[str, Any], selection: Selection | None) -> Selection:
    """Return a valid selection for ``doc``, creating placeholders where a level is empty.

    Each level keeps the selected child if it still exists, otherwise falls back
    to the first child; once a level falls back, every level below does too.
    Period, block, week and day always end up selected. An empty day leaves the
    exercise unselected (a day-level selection) rather than inventing an entry.
    """
    sel = selection or Selection()

    periods = _container(doc, "periods", "Document")
    if not children(doc, "periods"):
        periods.append(new_period(PLACEHOLDER_PERIOD_ID, PLACEHOLDER_PERIOD_NAME))
    period = find_period(doc, sel.period_id) if sel.period_id is not None else None
    keep = period is not None
    if period is None:
        period = children(doc, "periods")[0]

    blocks = _container(period, "blocks", "Period")
    if not children(period, "blocks"):
        blocks.append(new_block(1))
    block = find_block(period, sel.block_id) if keep and sel.block_id is not None else None
    keep = block is not None
    if block is None:
        block = children(period, "blocks")[0]

    weeks = _container(block, "weeks", "Block")
    if not children(block, "weeks"):
        weeks.append(new_week(1))
    week_node = find_week(block, sel.week) if keep and sel.week is not None else None
    keep = week_node is not None
    if week_node is None:
        week_node = children(block, "weeks")[0]

    days = _container(week_node, "days", "Week")
    if not children(week_node, "days"):
        days.append(new_day(1))
    day_node = find_day(week_node, sel.day) if keep and sel.day is not None else None
    keep = day_node is not None
    if day_node is None:
        day_node = children(week_node, "days")[0]

    exercises = children(day_node, "exercises")
    exercise = find_exercise(day_node, sel.exercise_id) if keep and sel.exercise_id is not None else None
    if exercise is None and exercises:
        exercise = exercises[0]

    return Selection.build(
        period.get("id"),
        block.get("id"),
        week_node.get("week"),
        day_node.get("day"),
        exercise.get("id") if exercise is not None else None,
    )
