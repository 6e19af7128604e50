"""Config flow for Training Log."""

from __future__ import annotations

from typing import Any

import voluptuous as vol

from homeassistant import config_entries
from homeassistant.core import callback

from .const import (
    CONF_NAME,
    CONF_SOURCE,
    DEFAULT_NAME,
    DEFAULT_SOURCE,
    DOMAIN,
)


def _clean(user_input: dict[str, Any]) -> dict[str, str]:
    name = str(user_input.get(CONF_NAME, DEFAULT_NAME)).strip() or DEFAULT_NAME
    source = str(user_input.get(CONF_SOURCE, DEFAULT_SOURCE)).strip()
    return {CONF_NAME: name, CONF_SOURCE: source}


def _source_error(source: str) -> str | None:
    if not source:
        return "source_required"
    if "://" in source and not source.lower().startswith(("http://", "https://")):
        return "unsupported_source"
    return None


class TrainingLogConfigFlow(config_entries.ConfigFlow, domain=DOMAIN):
    """Handle a config flow for Training Log."""

    VERSION = 1

    async def async_step_user(self, user_input: dict[str, Any] | None = None):
        errors: dict[str, str] = {}
        if user_input is not None:
            data = _clean(user_input)
            error = _source_error(data[CONF_SOURCE])
            if error is None:
                await self.async_set_unique_id(data[CONF_NAME].lower())
                self._abort_if_unique_id_configured()
                return self.async_create_entry(title=data[CONF_NAME], data=data)
            errors[CONF_SOURCE] = error

        schema = vol.Schema(
            {
                vol.Required(CONF_NAME, default=DEFAULT_NAME): str,
                vol.Required(CONF_SOURCE, default=DEFAULT_SOURCE): str,
            }
        )
        return self.async_show_form(step_id="user", data_schema=schema, errors=errors)

    @staticmethod
    @callback
    def async_get_options_flow(config_entry):
        return TrainingLogOptionsFlow(config_entry)


class TrainingLogOptionsFlow(config_entries.OptionsFlow):
    """Handle options for Training Log."""

    def __init__(self, config_entry) -> None:
        self._entry = config_entry

    async def async_step_init(self, user_input: dict[str, Any] | None = None):
        errors: dict[str, str] = {}
        if user_input is not None:
            data = _clean(user_input)
            error = _source_error(data[CONF_SOURCE])
            if error is None:
                return self.async_create_entry(title="", data=data)
            errors[CONF_SOURCE] = error

        current_name = self._entry.options.get(CONF_NAME, self._entry.data.get(CONF_NAME, DEFAULT_NAME))
        current_source = self._entry.options.get(CONF_SOURCE, self._entry.data.get(CONF_SOURCE, DEFAULT_SOURCE))
        schema = vol.Schema(
            {
                vol.Required(CONF_NAME, default=str(current_name)): str,
                vol.Required(CONF_SOURCE, default=str(current_source)): str,
            }
        )
        return self.async_show_form(step_id="init", data_schema=schema, errors=errors)
