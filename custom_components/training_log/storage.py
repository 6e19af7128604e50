"""Storage for Training Log (.storage).

Two slots per config entry:
- edits: the overlay, mapping entry key -> patch (one JSON blob)
- import_base: optional full replacement of the shipped base document
  (set by import, by structural edits and by promoting edits)

Load order: imported base if present and valid, otherwise the configured
source. Every write is size-checked first; in-memory state is only swapped
after the write went through, so a rejected write leaves nothing half-applied.
Writes are serialized by one lock per store. The edits slot is written before
the base slot, and restored when the base write fails, so a purged patch
cannot outlive the node it belonged to.

rev is a per-process revision for optimistic concurrency in the UI. Two Home
Assistant instances sharing one storage directory are last-write-wins.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Mapping, TypeVar

from homeassistant.core import HomeAssistant
from homeassistant.helpers.json import json_bytes
from homeassistant.helpers.storage import Store

from .address import Locator, Selection
from .const import DOMAIN, MAX_STORE_BYTES
from .errors import ConflictError, InvalidIdentifierError, MalformedImportError, OversizedWriteError
from .hierarchy import is_base_document
from .loader import BaseDocumentLoader
from .overlay import Overlay, Patch
from .resolver import ResolvedEntry
from .session import StructureChange, TrainingLogSession

_LOGGER = logging.getLogger(__name__)

_STORAGE_VERSION = 1

_T = TypeVar("_T")


def _payload_size(data: Any) -> int:
    return len(json_bytes(data))


class TrainingLogStore:
    """Per-config-entry storage wrapper."""

    def __init__(self, hass: HomeAssistant, entry_id: str, source: str, *, max_bytes: int = MAX_STORE_BYTES) -> None:
        self._edits_store: Store[dict[str, Any]] = Store(hass, _STORAGE_VERSION, f"{DOMAIN}.{entry_id}.edits")
        self._base_store: Store[dict[str, Any]] = Store(hass, _STORAGE_VERSION, f"{DOMAIN}.{entry_id}.import_base")
        self._loader = BaseDocumentLoader(hass, source)
        self._max_bytes = int(max_bytes)
        self._session: TrainingLogSession | None = None
        self._rev = 1
        self._imported = False
        self._lock = asyncio.Lock()

    @property
    def rev(self) -> int:
        return self._rev

    @property
    def imported(self) -> bool:
        """True when the active base comes from the import slot rather than the source."""
        return self._imported

    @property
    def source(self) -> str:
        return self._loader.source

    @property
    def session(self) -> TrainingLogSession:
        if self._session is None:
            raise RuntimeError("Training log not loaded")
        return self._session

    async def _async_load_base(self) -> dict[str, Any]:
        imported = await self._base_store.async_load()
        if imported is not None:
            if is_base_document(imported):
                self._imported = True
                return imported
            _LOGGER.warning("Ignoring malformed imported base document; falling back to %s", self.source)
        self._imported = False
        return await self._loader.async_load()

    async def _async_ensure_loaded(self) -> TrainingLogSession:
        if self._session is None:
            document = await self._async_load_base()
            overlay = Overlay.from_raw(await self._edits_store.async_load())
            self._session = TrainingLogSession(document, overlay)
            self._session.ensure_selected()
            _LOGGER.debug(
                "Training log loaded (imported=%s, edits=%s, source=%s)",
                self._imported,
                len(overlay),
                self.source,
            )
        return self._session

    async def async_load(self) -> TrainingLogSession:
        """Load once per session. Raises TransportError when no base document is available."""
        async with self._lock:
            return await self._async_ensure_loaded()

    def _assert_rev(self, expected_rev: int | None) -> None:
        if expected_rev is None:
            return
        if int(expected_rev) != self._rev:
            raise ConflictError(expected=int(expected_rev), current=self._rev)

    def _check_size(self, data: Any) -> None:
        size = _payload_size(data)
        if size > self._max_bytes:
            raise OversizedWriteError(size=size, limit=self._max_bytes)

    async def _async_write_edits(self, payload: dict[str, Any]) -> None:
        if payload:
            await self._edits_store.async_save(payload)
        else:
            await self._edits_store.async_remove()

    async def _async_commit(
        self,
        mutate: Callable[[TrainingLogSession], _T],
        *,
        expected_rev: int | None = None,
        bump_rev: bool = True,
        persist_base: bool = False,
    ) -> _T:
        """Run ``mutate`` on a copy, persist changed slots, then swap the copy in."""
        async with self._lock:
            current = await self._async_ensure_loaded()
            self._assert_rev(expected_rev)
            candidate = current.copy()
            result = mutate(candidate)

            base_changed = persist_base or candidate.document != current.document
            previous_edits = current.overlay.as_dict()
            edits_payload = candidate.overlay.as_dict()
            edits_changed = edits_payload != previous_edits
            if base_changed:
                self._check_size(candidate.document)
            if edits_changed:
                self._check_size(edits_payload)

            if edits_changed:
                await self._async_write_edits(edits_payload)
            if base_changed:
                try:
                    await self._base_store.async_save(candidate.document)
                except Exception:
                    if edits_changed:
                        _LOGGER.warning("Base write failed; restoring %s local edit(s)", len(previous_edits))
                        await self._async_write_edits(previous_edits)
                    raise
                self._imported = True

            self._session = candidate
            if bump_rev and (base_changed or edits_changed):
                self._rev += 1
            return result

    async def async_save_entry(
        self,
        locator: Locator,
        fields: Patch | Mapping[str, Any],
        *,
        expected_rev: int | None = None,
    ) -> ResolvedEntry:
        return await self._async_commit(lambda s: s.save_entry(locator, fields), expected_rev=expected_rev)

    async def async_clear_edits(self, *, expected_rev: int | None = None) -> None:
        await self._async_commit(lambda s: s.clear_edits(), expected_rev=expected_rev)

    async def async_select(self, selection: Selection, *, complete: bool = False) -> Selection:
        # Reconciling may add placeholders to an empty level; those are persisted like any edit.
        return await self._async_commit(lambda s: s.select(selection, complete=complete), bump_rev=False)

    async def async_import_base(self, document: Any, *, expected_rev: int | None = None) -> TrainingLogSession:
        """Replace the base document and clear local edits. Malformed input keeps the prior state."""
        if not is_base_document(document):
            raise MalformedImportError("That doesn't look like a valid training log document")
        await self._async_commit(lambda s: s.import_base(document), expected_rev=expected_rev, persist_base=True)
        _LOGGER.debug("Imported new base document (%s periods)", len(document["periods"]))
        return self.session

    async def async_promote_edits(self, *, expected_rev: int | None = None) -> TrainingLogSession:
        """Fold local edits into the base and keep the result as the imported base."""

        def _promote(s: TrainingLogSession) -> None:
            s.import_base(s.export())

        await self._async_commit(_promote, expected_rev=expected_rev, persist_base=True)
        return self.session

    async def async_reset_base(self, *, expected_rev: int | None = None) -> TrainingLogSession:
        """Drop the imported base and reload from the configured source.

        Local edits are kept. A transport failure leaves the current state in place.
        """
        async with self._lock:
            previous = await self._async_ensure_loaded()
            self._assert_rev(expected_rev)
            document = await self._loader.async_load()
            await self._base_store.async_remove()
            self._session = TrainingLogSession(document, previous.overlay.copy(), Selection())
            self._session.ensure_selected()
            self._imported = False
            self._rev += 1
            return self._session

    async def async_add_period(self, name: str, *, expected_rev: int | None = None) -> StructureChange:
        return await self._async_commit(lambda s: s.add_period(name), expected_rev=expected_rev)

    async def async_add_block(self, period_id: Any, block_id: Any, *, expected_rev: int | None = None) -> StructureChange:
        return await self._async_commit(lambda s: s.add_block(period_id, block_id), expected_rev=expected_rev)

    async def async_add_week(
        self, period_id: Any, block_id: Any, week: Any, *, expected_rev: int | None = None
    ) -> StructureChange:
        return await self._async_commit(lambda s: s.add_week(period_id, block_id, week), expected_rev=expected_rev)

    async def async_add_day(
        self,
        period_id: Any,
        block_id: Any,
        week: Any,
        day: Any,
        label: str | None = None,
        *,
        expected_rev: int | None = None,
    ) -> StructureChange:
        return await self._async_commit(lambda s: s.add_day(period_id, block_id, week, day, label), expected_rev=expected_rev)

    async def async_add_exercise(
        self,
        period_id: Any,
        block_id: Any,
        week: Any,
        day: Any,
        name: str,
        work: str = "",
        *,
        expected_rev: int | None = None,
    ) -> StructureChange:
        return await self._async_commit(
            lambda s: s.add_exercise(period_id, block_id, week, day, name, work),
            expected_rev=expected_rev,
        )

    async def async_remove(self, selection: Selection, *, expected_rev: int | None = None) -> StructureChange:
        """Remove the node addressed by ``selection`` (its depth picks the level)."""

        def _remove(s: TrainingLogSession) -> StructureChange:
            depth = selection.depth
            if depth == 5:
                return s.remove_exercise(selection.locator())  # type: ignore[arg-type]
            if depth == 4:
                return s.remove_day(selection.period_id, selection.block_id, selection.week, selection.day)
            if depth == 3:
                return s.remove_week(selection.period_id, selection.block_id, selection.week)
            if depth == 2:
                return s.remove_block(selection.period_id, selection.block_id)
            if depth == 1:
                return s.remove_period(selection.period_id)
            raise InvalidIdentifierError("Nothing selected to remove")

        change = await self._async_commit(_remove, expected_rev=expected_rev)
        if change.purged_keys:
            _LOGGER.debug("Purged %s local edit(s) under %s", len(change.purged_keys), selection.as_dict())
        return change
