"""Coordinator for Training Log."""

from __future__ import annotations

import logging
from typing import Any

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers.dispatcher import async_dispatcher_send
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator

from .const import CONF_SOURCE, DEFAULT_SOURCE, DOMAIN, SIGNAL_LOG_UPDATED
from .session import TrainingLogSession
from .storage import TrainingLogStore
from .ws_state import public_state

_LOGGER = logging.getLogger(__name__)


def source_from_entry(entry: ConfigEntry) -> str:
    data = entry.data or {}
    opts = entry.options or {}
    return str(opts.get(CONF_SOURCE, data.get(CONF_SOURCE, DEFAULT_SOURCE)) or DEFAULT_SOURCE).strip()


class TrainingLogCoordinator(DataUpdateCoordinator[dict[str, Any]]):
    """Owns the store (and through it the session) for one config entry."""

    def __init__(self, hass: HomeAssistant, entry: ConfigEntry) -> None:
        self.entry = entry
        self.store = TrainingLogStore(hass, entry.entry_id, source_from_entry(entry))

        super().__init__(
            hass,
            logger=_LOGGER,
            name=f"{DOMAIN}_{entry.entry_id}",
            # State only changes through our own writes; no polling.
            update_interval=None,
        )

    @property
    def session(self) -> TrainingLogSession:
        return self.store.session

    async def async_load(self) -> TrainingLogSession:
        """Load the base document and local edits. Raises TransportError on failure."""
        return await self.store.async_load()

    def snapshot(self) -> dict[str, Any]:
        return public_state(
            self.store.session,
            rev=self.store.rev,
            imported=self.store.imported,
            source=self.store.source,
        )

    async def _async_update_data(self) -> dict[str, Any]:
        # Single source of truth is the store; entities/services write to it.
        await self.store.async_load()
        return self.snapshot()

    async def async_publish(self) -> dict[str, Any]:
        """Push the current snapshot to entities after a write."""
        data = self.snapshot()
        self.async_set_updated_data(data)
        async_dispatcher_send(self.hass, f"{SIGNAL_LOG_UPDATED}_{self.entry.entry_id}")
        return data
