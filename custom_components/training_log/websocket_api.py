"""Websocket API for Training Log."""

from __future__ import annotations

from typing import Any

import voluptuous as vol

from homeassistant.components import websocket_api
from homeassistant.core import HomeAssistant
from homeassistant.util import dt as dt_util

from .address import Locator, Selection, parse_route_path
from .const import DOMAIN, EXPORT_FILENAME, SEARCH_RESULT_LIMIT
from .coordinator import TrainingLogCoordinator
from .errors import NotFoundError, TrainingLogError
from .ws_state import change_payload

LEVELS = ["period", "block", "week", "day", "exercise"]

_LOCATOR_FIELDS = {
    vol.Required("period_id"): str,
    vol.Required("block_id"): vol.Coerce(int),
    vol.Required("week"): vol.Coerce(int),
    vol.Required("day"): vol.Coerce(int),
    vol.Required("exercise_id"): str,
}

_SELECTION_FIELDS = {
    vol.Optional("period_id"): vol.Any(str, None),
    vol.Optional("block_id"): vol.Any(vol.Coerce(int), None),
    vol.Optional("week"): vol.Any(vol.Coerce(int), None),
    vol.Optional("day"): vol.Any(vol.Coerce(int), None),
    vol.Optional("exercise_id"): vol.Any(str, None),
}


def _get_coordinator(
    hass: HomeAssistant,
    connection: websocket_api.ActiveConnection,
    msg: dict[str, Any],
) -> TrainingLogCoordinator | None:
    entry_id = msg["entry_id"]
    coordinator = hass.data.get(DOMAIN, {}).get(entry_id)
    if coordinator is None:
        connection.send_error(msg["id"], "entry_not_found", f"No entry found for entry_id={entry_id}")
    return coordinator


def _locator(msg: dict[str, Any]) -> Locator:
    locator = Locator.build(msg["period_id"], msg["block_id"], msg["week"], msg["day"], msg["exercise_id"])
    if locator is None:
        raise NotFoundError("Incomplete entry address")
    return locator


def _selection(msg: dict[str, Any]) -> Selection:
    return Selection.build(
        msg.get("period_id"),
        msg.get("block_id"),
        msg.get("week"),
        msg.get("day"),
        msg.get("exercise_id"),
    )


async def _async_send_state(
    coordinator: TrainingLogCoordinator,
    connection: websocket_api.ActiveConnection,
    msg: dict[str, Any],
    **extra: Any,
) -> None:
    state = await coordinator.async_publish()
    connection.send_result(msg["id"], {"entry_id": coordinator.entry.entry_id, "state": state, **extra})


@websocket_api.websocket_command({vol.Required("type"): "training_log/list_entries"})
@websocket_api.async_response
async def ws_list_entries(
    hass: HomeAssistant,
    connection: websocket_api.ActiveConnection,
    msg: dict[str, Any],
) -> None:
    entries = hass.config_entries.async_entries(DOMAIN)
    payload = [{"entry_id": entry.entry_id, "title": entry.title} for entry in entries]
    connection.send_result(msg["id"], {"entries": payload})


@websocket_api.websocket_command(
    {
        vol.Required("type"): "training_log/get_state",
        vol.Required("entry_id"): str,
    }
)
@websocket_api.async_response
async def ws_get_state(
    hass: HomeAssistant,
    connection: websocket_api.ActiveConnection,
    msg: dict[str, Any],
) -> None:
    coordinator = _get_coordinator(hass, connection, msg)
    if coordinator is None:
        return
    connection.send_result(msg["id"], {"entry_id": msg["entry_id"], "state": coordinator.snapshot()})


@websocket_api.websocket_command(
    {
        vol.Required("type"): "training_log/get_entry",
        vol.Required("entry_id"): str,
        **_LOCATOR_FIELDS,
    }
)
@websocket_api.async_response
async def ws_get_entry(
    hass: HomeAssistant,
    connection: websocket_api.ActiveConnection,
    msg: dict[str, Any],
) -> None:
    coordinator = _get_coordinator(hass, connection, msg)
    if coordinator is None:
        return
    locator = Locator.build(msg["period_id"], msg["block_id"], msg["week"], msg["day"], msg["exercise_id"])
    entry = coordinator.session.resolve(locator) if locator is not None else None
    if entry is None:
        connection.send_error(msg["id"], "not_found", "No such entry")
        return
    connection.send_result(msg["id"], {"entry_id": msg["entry_id"], "entry": entry.as_dict()})


@websocket_api.websocket_command(
    {
        vol.Required("type"): "training_log/set_selection",
        vol.Required("entry_id"): str,
        vol.Optional("route"): str,
        **_SELECTION_FIELDS,
    }
)
@websocket_api.async_response
async def ws_set_selection(
    hass: HomeAssistant,
    connection: websocket_api.ActiveConnection,
    msg: dict[str, Any],
) -> None:
    coordinator = _get_coordinator(hass, connection, msg)
    if coordinator is None:
        return
    selection = parse_route_path(msg["route"]) if "route" in msg else _selection(msg)
    try:
        await coordinator.store.async_select(selection)
    except TrainingLogError as e:
        connection.send_error(msg["id"], e.code, str(e))
        return
    await _async_send_state(coordinator, connection, msg)


@websocket_api.websocket_command(
    {
        vol.Required("type"): "training_log/save_entry",
        vol.Required("entry_id"): str,
        **_LOCATOR_FIELDS,
        vol.Optional("work"): str,
        vol.Optional("videos"): [str],
        vol.Optional("lifterComment"): str,
        vol.Optional("coachComment"): str,
        vol.Optional("expected_rev"): vol.Coerce(int),
    }
)
@websocket_api.async_response
async def ws_save_entry(
    hass: HomeAssistant,
    connection: websocket_api.ActiveConnection,
    msg: dict[str, Any],
) -> None:
    coordinator = _get_coordinator(hass, connection, msg)
    if coordinator is None:
        return
    fields = {k: msg[k] for k in ("work", "videos", "lifterComment", "coachComment") if k in msg}
    try:
        entry = await coordinator.store.async_save_entry(_locator(msg), fields, expected_rev=msg.get("expected_rev"))
    except TrainingLogError as e:
        connection.send_error(msg["id"], e.code, str(e))
        return
    await _async_send_state(coordinator, connection, msg, entry=entry.as_dict())


@websocket_api.websocket_command(
    {
        vol.Required("type"): "training_log/search",
        vol.Required("entry_id"): str,
        vol.Required("query"): str,
        vol.Optional("limit", default=SEARCH_RESULT_LIMIT): vol.All(vol.Coerce(int), vol.Range(min=1)),
    }
)
@websocket_api.async_response
async def ws_search(
    hass: HomeAssistant,
    connection: websocket_api.ActiveConnection,
    msg: dict[str, Any],
) -> None:
    coordinator = _get_coordinator(hass, connection, msg)
    if coordinator is None:
        return
    results = coordinator.session.search(msg["query"])
    connection.send_result(
        msg["id"],
        {
            "entry_id": msg["entry_id"],
            "total": len(results),
            "results": [e.as_dict() for e in results[: msg["limit"]]],
        },
    )


@websocket_api.websocket_command(
    {
        vol.Required("type"): "training_log/get_history",
        vol.Required("entry_id"): str,
        vol.Required("period_id"): str,
        vol.Required("exercise_name"): str,
    }
)
@websocket_api.async_response
async def ws_get_history(
    hass: HomeAssistant,
    connection: websocket_api.ActiveConnection,
    msg: dict[str, Any],
) -> None:
    coordinator = _get_coordinator(hass, connection, msg)
    if coordinator is None:
        return
    history = coordinator.session.history(msg["period_id"], msg["exercise_name"])
    connection.send_result(msg["id"], {"entry_id": msg["entry_id"], "history": [e.as_dict() for e in history]})


@websocket_api.websocket_command(
    {
        vol.Required("type"): "training_log/add",
        vol.Required("entry_id"): str,
        vol.Required("level"): vol.In(LEVELS),
        **_SELECTION_FIELDS,
        vol.Optional("name"): str,
        vol.Optional("number"): vol.Coerce(int),
        vol.Optional("label"): str,
        vol.Optional("work"): str,
        vol.Optional("expected_rev"): vol.Coerce(int),
    }
)
@websocket_api.async_response
async def ws_add(
    hass: HomeAssistant,
    connection: websocket_api.ActiveConnection,
    msg: dict[str, Any],
) -> None:
    """Add a period/block/week/day/exercise under the given parent address."""
    coordinator = _get_coordinator(hass, connection, msg)
    if coordinator is None:
        return
    store = coordinator.store
    level = msg["level"]
    rev = msg.get("expected_rev")
    p, b, w, d = msg.get("period_id"), msg.get("block_id"), msg.get("week"), msg.get("day")
    try:
        if level == "period":
            change = await store.async_add_period(msg.get("name") or "", expected_rev=rev)
        elif level == "block":
            change = await store.async_add_block(p, msg.get("number"), expected_rev=rev)
        elif level == "week":
            change = await store.async_add_week(p, b, msg.get("number"), expected_rev=rev)
        elif level == "day":
            change = await store.async_add_day(p, b, w, msg.get("number"), msg.get("label"), expected_rev=rev)
        else:
            change = await store.async_add_exercise(p, b, w, d, msg.get("name") or "", msg.get("work") or "", expected_rev=rev)
    except TrainingLogError as e:
        connection.send_error(msg["id"], e.code, str(e))
        return
    await _async_send_state(coordinator, connection, msg, change=change_payload(change))


@websocket_api.websocket_command(
    {
        vol.Required("type"): "training_log/remove",
        vol.Required("entry_id"): str,
        vol.Required("level"): vol.In(LEVELS),
        **_SELECTION_FIELDS,
        vol.Optional("expected_rev"): vol.Coerce(int),
    }
)
@websocket_api.async_response
async def ws_remove(
    hass: HomeAssistant,
    connection: websocket_api.ActiveConnection,
    msg: dict[str, Any],
) -> None:
    """Remove a node and everything under it (local edits included)."""
    coordinator = _get_coordinator(hass, connection, msg)
    if coordinator is None:
        return
    depth = LEVELS.index(msg["level"]) + 1
    selection = _selection(msg)
    if selection.depth < depth:
        connection.send_error(msg["id"], "invalid_identifier", f"Incomplete address for {msg['level']}")
        return
    parts = list(selection.as_dict().values())[:depth]
    try:
        change = await coordinator.store.async_remove(Selection.build(*parts), expected_rev=msg.get("expected_rev"))
    except TrainingLogError as e:
        connection.send_error(msg["id"], e.code, str(e))
        return
    await _async_send_state(coordinator, connection, msg, change=change_payload(change))


@websocket_api.websocket_command(
    {
        vol.Required("type"): "training_log/export",
        vol.Required("entry_id"): str,
    }
)
@websocket_api.async_response
async def ws_export(
    hass: HomeAssistant,
    connection: websocket_api.ActiveConnection,
    msg: dict[str, Any],
) -> None:
    coordinator = _get_coordinator(hass, connection, msg)
    if coordinator is None:
        return
    session = coordinator.session
    filename = EXPORT_FILENAME.format(date=dt_util.now().date().isoformat())
    connection.send_result(
        msg["id"],
        {
            "entry_id": msg["entry_id"],
            "filename": filename,
            "document": session.export(),
            "stale_edits": session.stale_keys(),
        },
    )


@websocket_api.websocket_command(
    {
        vol.Required("type"): "training_log/import_base",
        vol.Required("entry_id"): str,
        vol.Required("document"): dict,
        vol.Optional("expected_rev"): vol.Coerce(int),
    }
)
@websocket_api.async_response
async def ws_import_base(
    hass: HomeAssistant,
    connection: websocket_api.ActiveConnection,
    msg: dict[str, Any],
) -> None:
    coordinator = _get_coordinator(hass, connection, msg)
    if coordinator is None:
        return
    try:
        await coordinator.store.async_import_base(msg["document"], expected_rev=msg.get("expected_rev"))
    except TrainingLogError as e:
        connection.send_error(msg["id"], e.code, str(e))
        return
    await _async_send_state(coordinator, connection, msg)


@websocket_api.websocket_command(
    {
        vol.Required("type"): "training_log/promote_edits",
        vol.Required("entry_id"): str,
        vol.Optional("expected_rev"): vol.Coerce(int),
    }
)
@websocket_api.async_response
async def ws_promote_edits(
    hass: HomeAssistant,
    connection: websocket_api.ActiveConnection,
    msg: dict[str, Any],
) -> None:
    coordinator = _get_coordinator(hass, connection, msg)
    if coordinator is None:
        return
    try:
        await coordinator.store.async_promote_edits(expected_rev=msg.get("expected_rev"))
    except TrainingLogError as e:
        connection.send_error(msg["id"], e.code, str(e))
        return
    await _async_send_state(coordinator, connection, msg)


@websocket_api.websocket_command(
    {
        vol.Required("type"): "training_log/reset_base",
        vol.Required("entry_id"): str,
        vol.Optional("expected_rev"): vol.Coerce(int),
    }
)
@websocket_api.async_response
async def ws_reset_base(
    hass: HomeAssistant,
    connection: websocket_api.ActiveConnection,
    msg: dict[str, Any],
) -> None:
    coordinator = _get_coordinator(hass, connection, msg)
    if coordinator is None:
        return
    try:
        await coordinator.store.async_reset_base(expected_rev=msg.get("expected_rev"))
    except TrainingLogError as e:
        connection.send_error(msg["id"], e.code, str(e))
        return
    await _async_send_state(coordinator, connection, msg)


@websocket_api.websocket_command(
    {
        vol.Required("type"): "training_log/clear_edits",
        vol.Required("entry_id"): str,
        vol.Optional("expected_rev"): vol.Coerce(int),
    }
)
@websocket_api.async_response
async def ws_clear_edits(
    hass: HomeAssistant,
    connection: websocket_api.ActiveConnection,
    msg: dict[str, Any],
) -> None:
    coordinator = _get_coordinator(hass, connection, msg)
    if coordinator is None:
        return
    try:
        await coordinator.store.async_clear_edits(expected_rev=msg.get("expected_rev"))
    except TrainingLogError as e:
        connection.send_error(msg["id"], e.code, str(e))
        return
    await _async_send_state(coordinator, connection, msg)


def async_register(hass: HomeAssistant) -> None:
    websocket_api.async_register_command(hass, ws_list_entries)
    websocket_api.async_register_command(hass, ws_get_state)
    websocket_api.async_register_command(hass, ws_get_entry)
    websocket_api.async_register_command(hass, ws_set_selection)
    websocket_api.async_register_command(hass, ws_save_entry)
    websocket_api.async_register_command(hass, ws_search)
    websocket_api.async_register_command(hass, ws_get_history)
    websocket_api.async_register_command(hass, ws_add)
    websocket_api.async_register_command(hass, ws_remove)
    websocket_api.async_register_command(hass, ws_export)
    websocket_api.async_register_command(hass, ws_import_base)
    websocket_api.async_register_command(hass, ws_promote_edits)
    websocket_api.async_register_command(hass, ws_reset_base)
    websocket_api.async_register_command(hass, ws_clear_edits)
