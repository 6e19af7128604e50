"""Fold the overlay into a standalone copy of the base document (export / new base)."""

from __future__ import annotations

import copy
from typing import Any

from .address import decode
from .hierarchy import locate
from .overlay import Overlay, apply_patch


def merge_overlay_into_base(doc: dict[str, Any], overlay: Overlay) -> dict[str, Any]:
    """Return a deep copy of ``doc`` with every resolvable patch written into its exercise.

    Patches whose key no longer resolves are left out silently; neither input is mutated.
    """
    out = copy.deepcopy(doc)
    for key, patch in overlay.items():
        locator = decode(key)
        if locator is None:
            continue
        path = locate(out, locator)
        if path is None:
            continue
        path.exercise.update(apply_patch({}, patch))
    return out


def stale_keys(doc: dict[str, Any], overlay: Overlay) -> list[str]:
    """Overlay keys that merge_overlay_into_base would drop."""
    stale: list[str] = []
    for key in overlay.keys():
        locator = decode(key)
        if locator is None or locate(doc, locator) is None:
            stale.append(key)
    return stale
