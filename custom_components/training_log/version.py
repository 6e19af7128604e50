from __future__ import annotations

import json
from pathlib import Path


def _read_manifest_version() -> str:
    manifest_path = Path(__file__).with_name("manifest.json")
    try:
        data = json.loads(manifest_path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return "0.0.0"
    v = str(data.get("version") or "").strip() if isinstance(data, dict) else ""
    return v or "0.0.0"


BACKEND_VERSION = _read_manifest_version()
