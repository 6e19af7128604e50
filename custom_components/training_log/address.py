"""Entry addressing.

An exercise entry is addressed by five components:
period slug, block number, week number, day number, exercise slug.

Block/week/day arrive as text from routes and as numbers from JSON; they are
normalized to int here so nothing downstream has to coerce.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Iterable

KEY_SEPARATOR = "|"
ROUTE_TAGS = ("p", "b", "w", "d", "e")

_SLUG_STRIP = re.compile(r"['\"]")
_SLUG_RUNS = re.compile(r"[^a-z0-9]+")


def slugify(value: Any) -> str:
    raw = str(value or "").strip().lower()
    raw = _SLUG_STRIP.sub("", raw)
    raw = _SLUG_RUNS.sub("-", raw)
    return raw.strip("-")


def to_number(value: Any) -> int | None:
    """Parse a block/week/day identifier; None when it is not a whole number."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    raw = str(value if value is not None else "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


def _slug_part(value: Any) -> str | None:
    s = str(value if value is not None else "").strip()
    if not s or KEY_SEPARATOR in s:
        return None
    return s


@dataclass(frozen=True, slots=True)
class Locator:
    """Complete address of exactly one exercise entry."""

    period_id: str
    block_id: int
    week: int
    day: int
    exercise_id: str

    @classmethod
    def build(cls, period_id: Any, block_id: Any, week: Any, day: Any, exercise_id: Any) -> Locator | None:
        pid = _slug_part(period_id)
        eid = _slug_part(exercise_id)
        b = to_number(block_id)
        w = to_number(week)
        d = to_number(day)
        if pid is None or eid is None or b is None or w is None or d is None:
            return None
        return cls(pid, b, w, d, eid)

    def selection(self) -> Selection:
        return Selection(self.period_id, self.block_id, self.week, self.day, self.exercise_id)


@dataclass(frozen=True, slots=True)
class Selection:
    """Partial address used for drill-down (period only, period+block, ...)."""

    period_id: str | None = None
    block_id: int | None = None
    week: int | None = None
    day: int | None = None
    exercise_id: str | None = None

    @classmethod
    def build(
        cls,
        period_id: Any = None,
        block_id: Any = None,
        week: Any = None,
        day: Any = None,
        exercise_id: Any = None,
    ) -> Selection:
        """Build from loose input, dropping everything after the first missing/invalid part."""
        parts: list[Any] = []
        for raw, parse in (
            (period_id, _slug_part),
            (block_id, to_number),
            (week, to_number),
            (day, to_number),
            (exercise_id, _slug_part),
        ):
            value = parse(raw) if raw is not None else None
            if value is None:
                break
            parts.append(value)
        parts.extend([None] * (5 - len(parts)))
        return cls(*parts)

    @property
    def depth(self) -> int:
        n = 0
        for value in (self.period_id, self.block_id, self.week, self.day, self.exercise_id):
            if value is None:
                break
            n += 1
        return n

    def is_complete(self) -> bool:
        return self.depth == 5

    def locator(self) -> Locator | None:
        if not self.is_complete():
            return None
        return Locator(self.period_id, self.block_id, self.week, self.day, self.exercise_id)  # type: ignore[arg-type]

    def covers(self, locator: Locator) -> bool:
        """True when the locator lies under this (possibly partial) selection."""
        own = (self.period_id, self.block_id, self.week, self.day, self.exercise_id)
        other = (locator.period_id, locator.block_id, locator.week, locator.day, locator.exercise_id)
        return own[: self.depth] == other[: self.depth]

    def as_dict(self) -> dict[str, Any]:
        return {
            "period_id": self.period_id,
            "block_id": self.block_id,
            "week": self.week,
            "day": self.day,
            "exercise_id": self.exercise_id,
        }


def encode(locator: Locator) -> str:
    return KEY_SEPARATOR.join(
        [
            locator.period_id,
            str(int(locator.block_id)),
            str(int(locator.week)),
            str(int(locator.day)),
            locator.exercise_id,
        ]
    )


def entry_key(period_id: Any, block_id: Any, week: Any, day: Any, exercise_id: Any) -> str | None:
    locator = Locator.build(period_id, block_id, week, day, exercise_id)
    return encode(locator) if locator is not None else None


def decode(key: Any) -> Locator | None:
    parts = str(key or "").split(KEY_SEPARATOR)
    if len(parts) != 5:
        return None
    return Locator.build(*parts)


def route(selection: Selection | Locator) -> list[tuple[str, str]]:
    if isinstance(selection, Locator):
        selection = selection.selection()
    values = (selection.period_id, selection.block_id, selection.week, selection.day, selection.exercise_id)
    tokens: list[tuple[str, str]] = []
    for tag, value in zip(ROUTE_TAGS, values):
        if value is None:
            break
        tokens.append((tag, str(value)))
    return tokens


def parse_route(tokens: Iterable[tuple[str, Any]]) -> Selection:
    found: dict[str, Any] = {}
    for tag, value in tokens:
        tag = str(tag or "").strip().lower()
        if tag in ROUTE_TAGS and tag not in found:
            found[tag] = value
    return Selection.build(*(found.get(tag) for tag in ROUTE_TAGS))


def route_path(selection: Selection | Locator) -> str:
    return "/".join(f"{tag}/{value}" for tag, value in route(selection))


def parse_route_path(path: Any) -> Selection:
    """Parse ``p/<period>/b/<block>/w/<week>/d/<day>/e/<exercise>`` (leading ``#/`` allowed)."""
    raw = str(path or "").strip().lstrip("#")
    parts = [p for p in raw.split("/") if p]
    tokens = [(parts[i], parts[i + 1]) for i in range(0, len(parts) - 1, 2)]
    return parse_route(tokens)
