"""Diagnostics support for Training Log.

This file is picked up by Home Assistant automatically when present.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import urlsplit

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant

from .const import CONF_SOURCE, DOMAIN
from .version import BACKEND_VERSION


def _redact_source(value: Any) -> Any:
    """Strip credentials and query strings from a source URL."""
    if value is None:
        return None
    raw = str(value)
    parts = urlsplit(raw)
    if not parts.scheme or not parts.netloc:
        return raw
    host = parts.hostname or ""
    if parts.port:
        host = f"{host}:{parts.port}"
    return f"{parts.scheme}://{host}{parts.path}"


async def async_get_config_entry_diagnostics(
    hass: HomeAssistant,
    entry: ConfigEntry,
) -> dict[str, Any]:
    """Return diagnostics for a config entry (with the source URL redacted)."""
    coordinator = hass.data.get(DOMAIN, {}).get(entry.entry_id)
    data = dict(entry.data)
    data[CONF_SOURCE] = _redact_source(data.get(CONF_SOURCE))
    options = dict(entry.options)
    if CONF_SOURCE in options:
        options[CONF_SOURCE] = _redact_source(options.get(CONF_SOURCE))

    payload: dict[str, Any] = {
        "entry": {
            "entry_id": entry.entry_id,
            "title": entry.title,
            "version": entry.version,
            "data": data,
            "options": options,
        },
        "runtime": {
            "backend_version": BACKEND_VERSION,
        },
    }

    if coordinator is not None:
        store = coordinator.store
        session = coordinator.session
        payload["coordinator"] = {
            "last_update_success": bool(getattr(coordinator, "last_update_success", False)),
            "last_exception": repr(getattr(coordinator, "last_exception", None)),
            "rev": store.rev,
            "imported_base": store.imported,
            "source": _redact_source(store.source),
            "summary": session.summary(),
            "selection": session.selection.as_dict(),
            "stale_edits": session.stale_keys(),
        }

    return payload
