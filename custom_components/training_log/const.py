"""Constants for Training Log integration."""

from __future__ import annotations

from homeassistant.const import Platform

DOMAIN = "training_log"

PLATFORMS: list[Platform] = [
    Platform.SENSOR,
    Platform.SELECT,
]

CONF_NAME = "name"
CONF_SOURCE = "source"

DEFAULT_NAME = "Training Log"
DEFAULT_SOURCE = "training_log/data.json"
DEFAULT_FETCH_TIMEOUT = 30

# Upper bound for one persisted slot. Inline local media (data: URLs) is what usually hits it.
MAX_STORE_BYTES = 8 * 1024 * 1024

RECENT_EDITS_LIMIT = 10
SEARCH_RESULT_LIMIT = 50

EXPORT_FILENAME = "training-log-export-{date}.json"

SIGNAL_LOG_UPDATED = f"{DOMAIN}_updated"
