"""Resolved (base + overlay) views of exercise entries."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .address import Locator, decode, encode, to_number
from .hierarchy import NodePath, children, find_block, find_day, find_period, find_week, iter_exercises, locate
from .overlay import Overlay, apply_patch


@dataclass(frozen=True, slots=True)
class ResolvedEntry:
    period_id: str
    period_name: str
    block_id: int
    week: int
    day: int
    exercise_id: str
    exercise_name: str
    work: str
    videos: tuple[str, ...]
    lifter_comment: str
    coach_comment: str
    updated_at: str | None

    @property
    def locator(self) -> Locator:
        return Locator(self.period_id, self.block_id, self.week, self.day, self.exercise_id)

    @property
    def key(self) -> str:
        return encode(self.locator)

    def as_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "periodId": self.period_id,
            "periodName": self.period_name,
            "blockId": self.block_id,
            "week": self.week,
            "day": self.day,
            "exerciseId": self.exercise_id,
            "exerciseName": self.exercise_name,
            "work": self.work,
            "videos": list(self.videos),
            "lifterComment": self.lifter_comment,
            "coachComment": self.coach_comment,
            "updatedAt": self.updated_at,
        }


def base_fields(exercise: dict[str, Any]) -> dict[str, Any]:
    """Exercise fields with missing optional values defaulted (wire names)."""
    videos = exercise.get("videos")
    updated_at = exercise.get("updatedAt")
    return {
        "work": str(exercise.get("work") or ""),
        "videos": [v for v in videos if isinstance(v, str)] if isinstance(videos, list) else [],
        "lifterComment": str(exercise.get("lifterComment") or ""),
        "coachComment": str(exercise.get("coachComment") or ""),
        "updatedAt": str(updated_at) if updated_at else None,
    }


def _resolve_path(path: NodePath, locator: Locator, overlay: Overlay) -> ResolvedEntry:
    fields = apply_patch(base_fields(path.exercise), overlay.get(encode(locator)))
    return ResolvedEntry(
        period_id=locator.period_id,
        period_name=str(path.period.get("name") or locator.period_id),
        block_id=locator.block_id,
        week=locator.week,
        day=locator.day,
        exercise_id=locator.exercise_id,
        exercise_name=str(path.exercise.get("name") or locator.exercise_id),
        work=fields["work"],
        videos=tuple(fields["videos"]),
        lifter_comment=fields["lifterComment"],
        coach_comment=fields["coachComment"],
        updated_at=fields["updatedAt"],
    )


def resolve(doc: Any, overlay: Overlay, locator: Locator) -> ResolvedEntry | None:
    path = locate(doc, locator)
    if path is None:
        return None
    return _resolve_path(path, locator, overlay)


def resolve_all(doc: Any, overlay: Overlay) -> list[ResolvedEntry]:
    out: list[ResolvedEntry] = []
    for path in iter_exercises(doc):
        locator = path.locator()
        if locator is not None:
            out.append(_resolve_path(path, locator, overlay))
    return out


def _name_key(value: Any) -> str:
    return str(value or "").strip().casefold()


def resolve_history(doc: Any, overlay: Overlay, period_id: str, exercise_name: str) -> list[ResolvedEntry]:
    """Every occurrence of an exercise (by name) within one period, oldest block/week/day first."""
    period = find_period(doc, period_id)
    if period is None:
        return []
    wanted = _name_key(exercise_name)
    matches = [
        entry
        for entry in resolve_all({"periods": [period]}, overlay)
        if _name_key(entry.exercise_name) == wanted
    ]
    matches.sort(key=lambda e: (e.block_id, e.week, e.day))
    return matches


def _haystack(entry: ResolvedEntry) -> str:
    return " ".join(
        [
            entry.period_name,
            entry.period_id,
            str(entry.block_id),
            str(entry.week),
            str(entry.day),
            entry.exercise_name,
            entry.work,
            entry.lifter_comment,
            entry.coach_comment,
        ]
    ).lower()


def search(doc: Any, overlay: Overlay, query: str) -> list[ResolvedEntry]:
    q = str(query or "").strip().lower()
    if not q:
        return []
    return [entry for entry in resolve_all(doc, overlay) if q in _haystack(entry)]


def recent_edits(doc: Any, overlay: Overlay, *, limit: int = 10) -> list[ResolvedEntry]:
    """Entries with a local patch, newest patch first. Base updatedAt values do not count."""
    stamped: list[tuple[str, ResolvedEntry]] = []
    for key, patch in overlay.items():
        locator = decode(key)
        entry = resolve(doc, overlay, locator) if locator is not None else None
        if entry is not None:
            stamped.append((patch.updated_at or "", entry))
    stamped.sort(key=lambda item: item[0], reverse=True)
    return [entry for _, entry in stamped[: max(0, int(limit))]]


def summarize(doc: Any, overlay: Overlay) -> dict[str, int]:
    periods = children(doc, "periods")
    entries = sum(1 for _ in iter_exercises(doc))
    return {
        "periods": len(periods),
        "entries": entries,
        "edited_entries": len(overlay),
        "blocks": sum(len(children(p, "blocks")) for p in periods),
    }


def list_options(doc: Any, period_id: Any = None, block_id: Any = None, week: Any = None, day: Any = None) -> list[dict[str, Any]]:
    """Child options for one drill-down level (periods when nothing is given)."""
    if period_id is None:
        return [{"id": str(p.get("id") or ""), "name": str(p.get("name") or p.get("id") or "")} for p in children(doc, "periods")]
    period = find_period(doc, period_id)
    if block_id is None:
        return [{"id": to_number(b.get("id"))} for b in children(period, "blocks")]
    block = find_block(period, block_id)
    if week is None:
        return [{"week": to_number(w.get("week"))} for w in children(block, "weeks")]
    week_node = find_week(block, week)
    if day is None:
        return [
            {"day": to_number(d.get("day")), "label": str(d.get("label") or f"Day {to_number(d.get('day'))}")}
            for d in children(week_node, "days")
        ]
    day_node = find_day(week_node, day)
    return [{"id": str(e.get("id") or ""), "name": str(e.get("name") or "")} for e in children(day_node, "exercises")]
