"""Select platform for Training Log.

One select per hierarchy level. Picking a value keeps the levels above it,
and the levels below fall back to their first child.
"""

from __future__ import annotations

from typing import Any

from homeassistant.components.select import SelectEntity
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers.dispatcher import async_dispatcher_connect
from homeassistant.helpers.entity_platform import AddEntitiesCallback

from .address import Selection
from .const import DOMAIN, SIGNAL_LOG_UPDATED
from .coordinator import TrainingLogCoordinator
from .entity import device_info_from_entry

# level -> (options key, option value attribute, selection attribute, depth)
_LEVELS: dict[str, tuple[str, str, str, int]] = {
    "period": ("periods", "id", "period_id", 1),
    "block": ("blocks", "id", "block_id", 2),
    "week": ("weeks", "week", "week", 3),
    "day": ("days", "day", "day", 4),
    "exercise": ("exercises", "id", "exercise_id", 5),
}


def _option_label(level: str, option: dict[str, Any]) -> str:
    if level == "block":
        return f"Block {option.get('id')}"
    if level == "week":
        return f"Week {option.get('week')}"
    if level == "day":
        return str(option.get("label") or f"Day {option.get('day')}")
    return str(option.get("name") or option.get("id") or "")


def option_labels(level: str, options: list[dict[str, Any]]) -> dict[str, Any]:
    """Map display label -> option value; repeated labels get the value appended."""
    _, attr, _, _ = _LEVELS[level]
    labels: dict[str, Any] = {}
    for opt in options:
        label = _option_label(level, opt)
        if not label or label in labels:
            label = f"{label} ({opt.get(attr)})"
        labels[label] = opt.get(attr)
    return labels


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    coordinator: TrainingLogCoordinator = hass.data[DOMAIN][entry.entry_id]
    async_add_entities([LevelSelect(entry, coordinator, level=level) for level in _LEVELS])


class LevelSelect(SelectEntity):
    """Drill-down select for one level of the training log."""

    _attr_has_entity_name = True

    def __init__(self, entry: ConfigEntry, coordinator: TrainingLogCoordinator, *, level: str) -> None:
        self._entry = entry
        self._coordinator = coordinator
        self._level = level
        self._attr_name = level.capitalize()
        self._attr_icon = "mdi:dumbbell" if level == "exercise" else "mdi:calendar-range"
        self._attr_translation_key = f"selected_{level}"
        self._attr_unique_id = f"{entry.entry_id}_selected_{level}"
        self._attr_device_info = device_info_from_entry(entry)
        self._unsub = None
        self._labels: dict[str, Any] = {}
        self._value: str | None = None

    @property
    def options(self) -> list[str]:
        return list(self._labels)

    @property
    def current_option(self) -> str | None:
        return self._value

    async def async_added_to_hass(self) -> None:
        self._unsub = async_dispatcher_connect(
            self.hass,
            f"{SIGNAL_LOG_UPDATED}_{self._entry.entry_id}",
            self._handle_updated,
        )
        self._refresh()

    async def async_will_remove_from_hass(self) -> None:
        if self._unsub:
            self._unsub()
            self._unsub = None

    async def async_select_option(self, option: str) -> None:
        if option not in self._labels:
            return
        _, _, _, depth = _LEVELS[self._level]
        current = self._coordinator.session.selection
        parts = list(current.as_dict().values())[: depth - 1]
        selection = Selection.build(*parts, self._labels[option])
        await self._coordinator.store.async_select(selection, complete=True)
        await self._coordinator.async_publish()

    def _refresh(self) -> None:
        key, _, sel_attr, _ = _LEVELS[self._level]
        session = self._coordinator.session
        self._labels = option_labels(self._level, session.options()[key])
        selected = getattr(session.selection, sel_attr)
        self._value = next((label for label, value in self._labels.items() if value == selected), None)

    @callback
    def _handle_updated(self) -> None:
        self._refresh()
        self.async_write_ha_state()
