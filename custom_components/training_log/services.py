"""Services for Training Log."""

from __future__ import annotations

import json
from pathlib import Path

import voluptuous as vol

from homeassistant.core import HomeAssistant, ServiceCall, ServiceResponse, SupportsResponse
from homeassistant.util import dt as dt_util

from .address import Locator
from .const import DOMAIN, EXPORT_FILENAME, SEARCH_RESULT_LIMIT
from .errors import MalformedImportError, NotFoundError, TrainingLogError

SERVICE_GET_ENTRY = "get_entry"
SERVICE_SAVE_ENTRY = "save_entry"
SERVICE_SEARCH = "search"
SERVICE_EXPORT = "export_log"
SERVICE_IMPORT = "import_log"
SERVICE_CLEAR_EDITS = "clear_edits"

_ENTRY_SCHEMA = vol.Schema({vol.Required("entry_id"): str})
_LOCATOR_SCHEMA = {
    vol.Required("entry_id"): str,
    vol.Required("period_id"): str,
    vol.Required("block_id"): vol.Coerce(int),
    vol.Required("week"): vol.Coerce(int),
    vol.Required("day"): vol.Coerce(int),
    vol.Required("exercise_id"): str,
}
_GET_ENTRY_SCHEMA = vol.Schema(_LOCATOR_SCHEMA)
_SAVE_ENTRY_SCHEMA = vol.Schema(
    {
        **_LOCATOR_SCHEMA,
        vol.Optional("work"): str,
        vol.Optional("videos"): [str],
        vol.Optional("lifter_comment"): str,
        vol.Optional("coach_comment"): str,
    }
)
_SEARCH_SCHEMA = vol.Schema(
    {
        vol.Required("entry_id"): str,
        vol.Required("query"): str,
        vol.Optional("limit", default=SEARCH_RESULT_LIMIT): vol.All(vol.Coerce(int), vol.Range(min=1)),
    }
)
_EXPORT_SCHEMA = vol.Schema({vol.Required("entry_id"): str, vol.Optional("path"): str})
_IMPORT_SCHEMA = vol.Schema({vol.Required("entry_id"): str, vol.Required("path"): str})


def _locator(call: ServiceCall) -> Locator:
    d = call.data
    locator = Locator.build(d["period_id"], d["block_id"], d["week"], d["day"], d["exercise_id"])
    if locator is None:
        raise NotFoundError("Incomplete entry address")
    return locator


def _error(err: TrainingLogError) -> dict:
    return {"ok": False, "error": err.code, "message": str(err)}


def config_dir_path(hass: HomeAssistant, raw_path: str) -> Path | None:
    """Resolve ``raw_path`` against the config directory; None when it points outside it."""
    root = Path(hass.config.config_dir).resolve()
    target = (root / raw_path.strip()).resolve()
    if target != root and root not in target.parents:
        return None
    return target


async def async_register(hass: HomeAssistant) -> None:
    async def _coordinator_for_entry(entry_id: str):
        return hass.data.get(DOMAIN, {}).get(entry_id)

    async def _async_get_entry(call: ServiceCall) -> ServiceResponse:
        entry_id = str(call.data["entry_id"])
        coordinator = await _coordinator_for_entry(entry_id)
        if coordinator is None:
            return {"ok": False, "error": "entry_not_found"}
        try:
            entry = coordinator.session.resolve(_locator(call))
        except TrainingLogError as err:
            return _error(err)
        if entry is None:
            return {"ok": False, "error": "not_found"}
        return {"ok": True, "entry_id": entry_id, "entry": entry.as_dict()}

    async def _async_save_entry(call: ServiceCall) -> ServiceResponse:
        entry_id = str(call.data["entry_id"])
        coordinator = await _coordinator_for_entry(entry_id)
        if coordinator is None:
            return {"ok": False, "error": "entry_not_found"}
        fields = {}
        for key, wire in (
            ("work", "work"),
            ("videos", "videos"),
            ("lifter_comment", "lifterComment"),
            ("coach_comment", "coachComment"),
        ):
            if key in call.data:
                fields[wire] = call.data[key]
        try:
            entry = await coordinator.store.async_save_entry(_locator(call), fields)
        except TrainingLogError as err:
            return _error(err)
        await coordinator.async_publish()
        return {"ok": True, "entry_id": entry_id, "entry": entry.as_dict()}

    async def _async_search(call: ServiceCall) -> ServiceResponse:
        entry_id = str(call.data["entry_id"])
        coordinator = await _coordinator_for_entry(entry_id)
        if coordinator is None:
            return {"ok": False, "error": "entry_not_found"}
        results = coordinator.session.search(str(call.data["query"]))
        limit = int(call.data.get("limit") or SEARCH_RESULT_LIMIT)
        return {
            "ok": True,
            "entry_id": entry_id,
            "total": len(results),
            "results": [e.as_dict() for e in results[:limit]],
        }

    async def _async_export(call: ServiceCall) -> ServiceResponse:
        entry_id = str(call.data["entry_id"])
        coordinator = await _coordinator_for_entry(entry_id)
        if coordinator is None:
            return {"ok": False, "error": "entry_not_found"}
        document = coordinator.session.export()
        response = {"ok": True, "entry_id": entry_id, "stale_edits": coordinator.session.stale_keys()}
        raw_path = str(call.data.get("path") or "").strip()
        if raw_path:
            filename = EXPORT_FILENAME.format(date=dt_util.now().date().isoformat())
            target = config_dir_path(hass, raw_path)
            if target is None:
                return {"ok": False, "error": "invalid_path", "message": f"{raw_path} is outside the config directory"}
            if target.suffix.lower() != ".json":
                target = target / filename

            def _write() -> None:
                target.parent.mkdir(parents=True, exist_ok=True)
                target.write_text(json.dumps(document, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")

            try:
                await hass.async_add_executor_job(_write)
            except OSError as err:
                return {"ok": False, "error": "write_failed", "message": f"Could not write {target}: {err}"}
            response["path"] = str(target)
        else:
            response["document"] = document
        return response

    async def _async_import(call: ServiceCall) -> ServiceResponse:
        entry_id = str(call.data["entry_id"])
        coordinator = await _coordinator_for_entry(entry_id)
        if coordinator is None:
            return {"ok": False, "error": "entry_not_found"}
        source = config_dir_path(hass, str(call.data["path"]))
        if source is None:
            return {"ok": False, "error": "invalid_path", "message": f"{call.data['path']} is outside the config directory"}

        def _read():
            return json.loads(source.read_text(encoding="utf-8"))

        try:
            document = await hass.async_add_executor_job(_read)
        except (OSError, ValueError) as err:
            return _error(MalformedImportError(f"Could not read {source}: {err}"))
        try:
            await coordinator.store.async_import_base(document)
        except TrainingLogError as err:
            return _error(err)
        state = await coordinator.async_publish()
        return {"ok": True, "entry_id": entry_id, "state": state}

    async def _async_clear_edits(call: ServiceCall) -> ServiceResponse:
        entry_id = str(call.data["entry_id"])
        coordinator = await _coordinator_for_entry(entry_id)
        if coordinator is None:
            return {"ok": False, "error": "entry_not_found"}
        await coordinator.store.async_clear_edits()
        state = await coordinator.async_publish()
        return {"ok": True, "entry_id": entry_id, "state": state}

    if not hass.services.has_service(DOMAIN, SERVICE_GET_ENTRY):
        hass.services.async_register(
            DOMAIN,
            SERVICE_GET_ENTRY,
            _async_get_entry,
            schema=_GET_ENTRY_SCHEMA,
            supports_response=SupportsResponse.ONLY,
        )
    if not hass.services.has_service(DOMAIN, SERVICE_SAVE_ENTRY):
        hass.services.async_register(
            DOMAIN,
            SERVICE_SAVE_ENTRY,
            _async_save_entry,
            schema=_SAVE_ENTRY_SCHEMA,
            supports_response=SupportsResponse.OPTIONAL,
        )
    if not hass.services.has_service(DOMAIN, SERVICE_SEARCH):
        hass.services.async_register(
            DOMAIN,
            SERVICE_SEARCH,
            _async_search,
            schema=_SEARCH_SCHEMA,
            supports_response=SupportsResponse.ONLY,
        )
    if not hass.services.has_service(DOMAIN, SERVICE_EXPORT):
        hass.services.async_register(
            DOMAIN,
            SERVICE_EXPORT,
            _async_export,
            schema=_EXPORT_SCHEMA,
            supports_response=SupportsResponse.ONLY,
        )
    if not hass.services.has_service(DOMAIN, SERVICE_IMPORT):
        hass.services.async_register(
            DOMAIN,
            SERVICE_IMPORT,
            _async_import,
            schema=_IMPORT_SCHEMA,
            supports_response=SupportsResponse.OPTIONAL,
        )
    if not hass.services.has_service(DOMAIN, SERVICE_CLEAR_EDITS):
        hass.services.async_register(
            DOMAIN,
            SERVICE_CLEAR_EDITS,
            _async_clear_edits,
            schema=_ENTRY_SCHEMA,
            supports_response=SupportsResponse.OPTIONAL,
        )
