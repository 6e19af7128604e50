"""Sensor platform for Training Log."""

from __future__ import annotations

from typing import Any

from homeassistant.components.sensor import SensorEntity
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers.entity_platform import AddEntitiesCallback
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .const import DOMAIN
from .coordinator import TrainingLogCoordinator
from .entity import device_info_from_entry


def entry_attributes(entry: dict[str, Any]) -> dict[str, Any]:
    """Resolved entry without its video payloads (inline media can be megabytes)."""
    out = {k: v for k, v in entry.items() if k != "videos"}
    out["video_count"] = len(entry.get("videos") or [])
    return out


def edit_summary(entry: dict[str, Any]) -> dict[str, Any]:
    return {
        "key": entry.get("key"),
        "exercise": entry.get("exerciseName"),
        "updated_at": entry.get("updatedAt"),
    }


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    coordinator: TrainingLogCoordinator = hass.data[DOMAIN][entry.entry_id]
    async_add_entities(
        [
            TrainingLogEntriesSensor(entry, coordinator),
            TrainingLogEditsSensor(entry, coordinator),
            SelectedEntrySensor(entry, coordinator),
        ]
    )


class _TrainingLogSensor(CoordinatorEntity[TrainingLogCoordinator], SensorEntity):
    _attr_has_entity_name = True

    def __init__(self, entry: ConfigEntry, coordinator: TrainingLogCoordinator, key: str) -> None:
        super().__init__(coordinator)
        self._entry = entry
        self._attr_unique_id = f"{entry.entry_id}_{key}"
        self._attr_translation_key = key
        self._attr_device_info = device_info_from_entry(entry)

    def _data(self) -> dict[str, Any]:
        data = self.coordinator.data or {}
        return data if isinstance(data, dict) else {}


class TrainingLogEntriesSensor(_TrainingLogSensor):
    """Number of exercise entries in the base document."""

    _attr_name = "Entries"
    _attr_icon = "mdi:notebook"

    def __init__(self, entry: ConfigEntry, coordinator: TrainingLogCoordinator) -> None:
        super().__init__(entry, coordinator, "entries")

    @property
    def native_value(self) -> int:
        return int((self._data().get("summary") or {}).get("entries") or 0)

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        data = self._data()
        summary = data.get("summary") or {}
        return {
            "entry_id": self._entry.entry_id,
            "periods": summary.get("periods", 0),
            "blocks": summary.get("blocks", 0),
            "imported_base": bool(data.get("imported_base")),
            "source": str(data.get("source") or ""),
        }


class TrainingLogEditsSensor(_TrainingLogSensor):
    """Entries with local edits not yet merged into the base."""

    _attr_name = "Local edits"
    _attr_icon = "mdi:pencil"

    def __init__(self, entry: ConfigEntry, coordinator: TrainingLogCoordinator) -> None:
        super().__init__(entry, coordinator, "local_edits")

    @property
    def native_value(self) -> int:
        return int((self._data().get("summary") or {}).get("edited_entries") or 0)

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        data = self._data()
        return {
            "recent_edits": [edit_summary(e) for e in data.get("recent_edits") or [] if isinstance(e, dict)],
            "stale_edits": data.get("stale_edits", []),
        }


class SelectedEntrySensor(_TrainingLogSensor):
    """The currently selected exercise entry (resolved with local edits)."""

    _attr_name = "Selected entry"
    _attr_icon = "mdi:dumbbell"

    def __init__(self, entry: ConfigEntry, coordinator: TrainingLogCoordinator) -> None:
        super().__init__(entry, coordinator, "selected_entry")

    @property
    def native_value(self) -> str:
        entry = self._data().get("entry")
        if isinstance(entry, dict):
            return str(entry.get("exerciseName") or "")
        return "none"

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        data = self._data()
        entry = data.get("entry") if isinstance(data.get("entry"), dict) else {}
        return {
            "route": str(data.get("route") or ""),
            **(entry_attributes(entry) if entry else {}),
        }
