"""Session state: the loaded base document, the overlay and the active selection.

All operations are synchronous and work on explicit state; persistence is
handled by storage.TrainingLogStore, which mutates a copy and swaps it in
once the write succeeded.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Mapping

from . import structure
from .address import Locator, Selection, encode
from .errors import MalformedImportError, NotFoundError
from .hierarchy import is_base_document
from .merge import merge_overlay_into_base, stale_keys
from .overlay import Overlay, Patch
from .resolver import ResolvedEntry, list_options, recent_edits, resolve, resolve_history, search, summarize


@dataclass(frozen=True, slots=True)
class StructureChange:
    """Outcome of a structural edit."""

    selection: Selection
    selection_changed: bool
    purged_keys: tuple[str, ...] = ()


@dataclass
class TrainingLogSession:
    document: dict[str, Any]
    overlay: Overlay = field(default_factory=Overlay)
    selection: Selection = field(default_factory=Selection)

    def copy(self) -> TrainingLogSession:
        return TrainingLogSession(copy.deepcopy(self.document), self.overlay.copy(), self.selection)

    # Reads

    def resolve(self, locator: Locator) -> ResolvedEntry | None:
        return resolve(self.document, self.overlay, locator)

    def current_entry(self) -> ResolvedEntry | None:
        locator = self.selection.locator()
        return self.resolve(locator) if locator is not None else None

    def search(self, query: str) -> list[ResolvedEntry]:
        return search(self.document, self.overlay, query)

    def history(self, period_id: str, exercise_name: str) -> list[ResolvedEntry]:
        return resolve_history(self.document, self.overlay, period_id, exercise_name)

    def recent_edits(self, limit: int = 10) -> list[ResolvedEntry]:
        return recent_edits(self.document, self.overlay, limit=limit)

    def summary(self) -> dict[str, int]:
        return summarize(self.document, self.overlay)

    def options(self, selection: Selection | None = None) -> dict[str, list[dict[str, Any]]]:
        """Drill-down choices for every level of ``selection`` (default: the active one)."""
        sel = selection or self.selection
        return {
            "periods": list_options(self.document),
            "blocks": list_options(self.document, sel.period_id) if sel.depth >= 1 else [],
            "weeks": list_options(self.document, sel.period_id, sel.block_id) if sel.depth >= 2 else [],
            "days": list_options(self.document, sel.period_id, sel.block_id, sel.week) if sel.depth >= 3 else [],
            "exercises": list_options(self.document, sel.period_id, sel.block_id, sel.week, sel.day) if sel.depth >= 4 else [],
        }

    def export(self) -> dict[str, Any]:
        return merge_overlay_into_base(self.document, self.overlay)

    def stale_keys(self) -> list[str]:
        return stale_keys(self.document, self.overlay)

    # Selection

    def select(self, selection: Selection, *, complete: bool = False) -> Selection:
        """Drill down; a partial selection is kept as-is when every given part exists.

        With ``complete`` the missing lower levels are filled with their first child.
        """
        if not complete and self._exists(selection):
            self.selection = selection
        else:
            self.selection = structure.reconcile_selection(self.document, selection)
        return self.selection

    def ensure_selected(self) -> StructureChange:
        previous = self.selection
        self.selection = structure.reconcile_selection(self.document, previous)
        return StructureChange(self.selection, self.selection != previous)

    def _exists(self, selection: Selection) -> bool:
        depth = selection.depth
        if depth == 0:
            return False
        opts = self.options(selection)
        checks = (
            ("periods", "id", selection.period_id),
            ("blocks", "id", selection.block_id),
            ("weeks", "week", selection.week),
            ("days", "day", selection.day),
            ("exercises", "id", selection.exercise_id),
        )
        for level, (name, attr, value) in enumerate(checks):
            if level >= depth:
                break
            if not any(opt.get(attr) == value for opt in opts[name]):
                return False
        return True

    # Overlay edits

    def save_entry(self, locator: Locator, fields: Patch | Mapping[str, Any], *, now: str | None = None) -> ResolvedEntry:
        if self.resolve(locator) is None:
            raise NotFoundError(f"No entry at {encode(locator)}")
        self.overlay.upsert(encode(locator), fields, now=now)
        entry = self.resolve(locator)
        assert entry is not None
        return entry

    def clear_edits(self) -> None:
        self.overlay.clear_all()

    # Base replacement

    def import_base(self, document: Any) -> None:
        """Replace the base document. Patches target old keys, so the overlay is cleared."""
        if not is_base_document(document):
            raise MalformedImportError("That doesn't look like a valid training log document")
        self.document = copy.deepcopy(document)
        self.overlay.clear_all()
        self.selection = Selection()
        self.ensure_selected()

    # Structure

    def _after_add(self, selection: Selection) -> StructureChange:
        previous = self.selection
        self.selection = structure.reconcile_selection(self.document, selection)
        return StructureChange(self.selection, self.selection != previous)

    def _after_remove(self, purged: list[str]) -> StructureChange:
        change = self.ensure_selected()
        return StructureChange(change.selection, change.selection_changed, tuple(purged))

    def add_period(self, name: str) -> StructureChange:
        period = structure.add_period(self.document, name)
        return self._after_add(Selection.build(period["id"]))

    def add_block(self, period_id: Any, block_id: Any) -> StructureChange:
        block = structure.add_block(self.document, period_id, block_id)
        return self._after_add(Selection.build(period_id, block["id"]))

    def add_week(self, period_id: Any, block_id: Any, week: Any) -> StructureChange:
        node = structure.add_week(self.document, period_id, block_id, week)
        return self._after_add(Selection.build(period_id, block_id, node["week"]))

    def add_day(self, period_id: Any, block_id: Any, week: Any, day: Any, label: str | None = None) -> StructureChange:
        node = structure.add_day(self.document, period_id, block_id, week, day, label)
        return self._after_add(Selection.build(period_id, block_id, week, node["day"]))

    def add_exercise(self, period_id: Any, block_id: Any, week: Any, day: Any, name: str, work: str = "") -> StructureChange:
        node = structure.add_exercise(self.document, period_id, block_id, week, day, name, work)
        return self._after_add(Selection.build(period_id, block_id, week, day, node["id"]))

    def remove_period(self, period_id: Any) -> StructureChange:
        return self._after_remove(structure.remove_period(self.document, self.overlay, period_id))

    def remove_block(self, period_id: Any, block_id: Any) -> StructureChange:
        return self._after_remove(structure.remove_block(self.document, self.overlay, period_id, block_id))

    def remove_week(self, period_id: Any, block_id: Any, week: Any) -> StructureChange:
        return self._after_remove(structure.remove_week(self.document, self.overlay, period_id, block_id, week))

    def remove_day(self, period_id: Any, block_id: Any, week: Any, day: Any) -> StructureChange:
        return self._after_remove(structure.remove_day(self.document, self.overlay, period_id, block_id, week, day))

    def remove_exercise(self, locator: Locator) -> StructureChange:
        purged = structure.remove_exercise(
            self.document,
            self.overlay,
            locator.period_id,
            locator.block_id,
            locator.week,
            locator.day,
            locator.exercise_id,
        )
        return self._after_remove(purged)
