"""Base document loader (HTTP URL or file on disk)."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import aiohttp

from homeassistant.core import HomeAssistant
from homeassistant.helpers.aiohttp_client import async_get_clientsession

from .const import DEFAULT_FETCH_TIMEOUT
from .errors import TransportError
from .hierarchy import is_base_document

_LOGGER = logging.getLogger(__name__)


class BaseDocumentLoader:
    """Fetches the shipped base document once per session."""

    def __init__(self, hass: HomeAssistant, source: str) -> None:
        self._hass = hass
        self._source = str(source or "").strip()

    @property
    def source(self) -> str:
        return self._source

    def _is_url(self) -> bool:
        return self._source.lower().startswith(("http://", "https://"))

    def _path(self) -> Path:
        path = Path(self._source)
        if not path.is_absolute():
            path = Path(self._hass.config.path(self._source))
        return path

    async def _async_fetch(self) -> Any:
        session = async_get_clientsession(self._hass)
        try:
            async with session.get(
                self._source,
                timeout=aiohttp.ClientTimeout(total=DEFAULT_FETCH_TIMEOUT),
                headers={"Cache-Control": "no-store"},
            ) as resp:
                if resp.status != 200:
                    raise TransportError(f"Failed to load base document from {self._source} (HTTP {resp.status})")
                return await resp.json(content_type=None)
        except (aiohttp.ClientError, TimeoutError) as err:
            raise TransportError(f"Failed to load base document from {self._source}: {err}") from err
        except ValueError as err:
            raise TransportError(f"Base document at {self._source} is not valid JSON: {err}") from err

    async def _async_read(self) -> Any:
        path = self._path()

        def _read() -> Any:
            return json.loads(path.read_text(encoding="utf-8"))

        try:
            return await self._hass.async_add_executor_job(_read)
        except OSError as err:
            raise TransportError(f"Failed to read base document {path}: {err}") from err
        except ValueError as err:
            raise TransportError(f"Base document {path} is not valid JSON: {err}") from err

    async def async_load(self) -> dict[str, Any]:
        if not self._source:
            raise TransportError("No base document source configured")
        raw = await (self._async_fetch() if self._is_url() else self._async_read())
        if not is_base_document(raw):
            raise TransportError(f"Base document from {self._source} has no 'periods' list")
        _LOGGER.debug("Loaded base document from %s (%s periods)", self._source, len(raw["periods"]))
        return raw
