"""Websocket state helpers."""

from __future__ import annotations

from typing import Any

from homeassistant.util import dt as dt_util

from .address import route_path
from .const import RECENT_EDITS_LIMIT
from .session import StructureChange, TrainingLogSession


def public_state(session: TrainingLogSession, *, rev: int, imported: bool, source: str) -> dict[str, Any]:
    """Return a stable public payload for the UI."""
    entry = session.current_entry()
    return {
        "schema": 1,
        "rev": int(rev),
        "imported_base": bool(imported),
        "source": source,
        "selection": session.selection.as_dict(),
        "route": route_path(session.selection),
        "options": session.options(),
        "entry": entry.as_dict() if entry is not None else None,
        "summary": session.summary(),
        "recent_edits": [e.as_dict() for e in session.recent_edits(RECENT_EDITS_LIMIT)],
        "stale_edits": session.stale_keys(),
        "generated_at": dt_util.utcnow().isoformat(),
    }


def change_payload(change: StructureChange) -> dict[str, Any]:
    return {
        "selection": change.selection.as_dict(),
        "route": route_path(change.selection),
        "selection_changed": change.selection_changed,
        "purged_keys": list(change.purged_keys),
    }
