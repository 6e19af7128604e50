"""Local edits layered over the base document.

The overlay maps an entry key (see address.encode) to a Patch. A patch is
not a diff: each write replaces the provided fields and stamps updatedAt;
fields never written fall through to the base exercise.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Iterator, Mapping

from homeassistant.util import dt as dt_util

from .address import decode

_LOGGER = logging.getLogger(__name__)

# Wire name -> Patch attribute. Wire names match the exercise fields of an exported document.
PATCH_FIELDS: dict[str, str] = {
    "work": "work",
    "videos": "videos",
    "lifterComment": "lifter_comment",
    "coachComment": "coach_comment",
    "updatedAt": "updated_at",
}


def _now_iso() -> str:
    return dt_util.utcnow().isoformat()


@dataclass(frozen=True, slots=True)
class Patch:
    """Sparse field overrides for one entry. None means the field is not overridden."""

    work: str | None = None
    videos: tuple[str, ...] | None = None
    lifter_comment: str | None = None
    coach_comment: str | None = None
    updated_at: str | None = None

    @classmethod
    def from_raw(cls, raw: Any) -> Patch:
        """Build from a JSON mapping, dropping values of the wrong shape."""
        if not isinstance(raw, Mapping):
            return cls()
        values: dict[str, Any] = {}
        for wire, attr in PATCH_FIELDS.items():
            value = raw.get(wire)
            if wire == "videos":
                if isinstance(value, (list, tuple)):
                    values[attr] = tuple(v for v in value if isinstance(v, str))
            elif isinstance(value, str):
                values[attr] = value
        return cls(**values)

    def merged_with(self, other: Patch) -> Patch:
        """Fields set on ``other`` win; the rest are kept from ``self``."""
        changes = {attr: getattr(other, attr) for attr in PATCH_FIELDS.values() if getattr(other, attr) is not None}
        return replace(self, **changes)

    def is_empty(self) -> bool:
        return all(getattr(self, attr) is None for attr in PATCH_FIELDS.values())

    def as_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        for wire, attr in PATCH_FIELDS.items():
            value = getattr(self, attr)
            if value is None:
                continue
            out[wire] = list(value) if wire == "videos" else value
        return out


def apply_patch(fields: Mapping[str, Any], patch: Patch | None) -> dict[str, Any]:
    """Override exercise fields (wire names) with whatever the patch provides.

    Field-level only: a videos patch replaces the base list.
    """
    out = dict(fields)
    if patch is None:
        return out
    for wire, attr in PATCH_FIELDS.items():
        value = getattr(patch, attr)
        if value is None:
            continue
        out[wire] = list(value) if wire == "videos" else value
    return out


class Overlay:
    """In-memory mapping entry key -> Patch."""

    def __init__(self, patches: Mapping[str, Patch] | None = None) -> None:
        self._patches: dict[str, Patch] = dict(patches or {})

    @classmethod
    def from_raw(cls, raw: Any) -> Overlay:
        """Rebuild from the persisted blob. Malformed content is treated as absent."""
        if raw is None:
            return cls()
        if not isinstance(raw, Mapping):
            _LOGGER.warning("Ignoring malformed overlay payload of type %s", type(raw).__name__)
            return cls()
        patches: dict[str, Patch] = {}
        skipped = 0
        for key, value in raw.items():
            locator = decode(key)
            if locator is None or not isinstance(value, Mapping):
                skipped += 1
                continue
            patch = Patch.from_raw(value)
            if patch.is_empty():
                skipped += 1
                continue
            patches[str(key)] = patch
        if skipped:
            _LOGGER.warning("Skipped %s malformed overlay item(s)", skipped)
        return cls(patches)

    def __contains__(self, key: object) -> bool:
        return key in self._patches

    def __len__(self) -> int:
        return len(self._patches)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._patches))

    def keys(self) -> list[str]:
        return list(self._patches)

    def items(self) -> list[tuple[str, Patch]]:
        return list(self._patches.items())

    def get(self, key: str) -> Patch | None:
        return self._patches.get(key)

    def upsert(self, key: str, fields: Patch | Mapping[str, Any], *, now: str | None = None) -> Patch:
        incoming = fields if isinstance(fields, Patch) else Patch.from_raw(fields)
        current = self._patches.get(key) or Patch()
        patch = replace(current.merged_with(incoming), updated_at=now or _now_iso())
        self._patches[key] = patch
        return patch

    def delete(self, key: str) -> None:
        self._patches.pop(key, None)

    def clear_all(self) -> None:
        self._patches.clear()

    def copy(self) -> Overlay:
        return Overlay(self._patches)

    def as_dict(self) -> dict[str, dict[str, Any]]:
        return {key: patch.as_dict() for key, patch in self._patches.items()}
