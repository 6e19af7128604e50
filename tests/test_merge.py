from __future__ import annotations

import copy

from custom_components.training_log.address import Locator, encode
from custom_components.training_log.hierarchy import locate
from custom_components.training_log.merge import merge_overlay_into_base, stale_keys
from custom_components.training_log.overlay import Overlay

SQUAT = Locator("serie-1-2026", 1, 1, 1, "squat")


def _base_document() -> dict:
    return {
        "title": "Team log",
        "periods": [
            {
                "id": "serie-1-2026",
                "name": "Serie 1 2026",
                "blocks": [
                    {
                        "id": 1,
                        "weeks": [
                            {
                                "week": 1,
                                "days": [
                                    {"day": 1, "exercises": [{"id": "squat", "name": "Squat", "work": "5x5", "tempo": "3-1-1"}]},
                                ],
                            }
                        ],
                    }
                ],
            }
        ],
    }


def _edited_overlay() -> Overlay:
    overlay = Overlay()
    overlay.upsert(encode(SQUAT), {"videos": ["https://youtu.be/abc123"]}, now="2026-01-01T00:00:00+00:00")
    return overlay


def test_merge_writes_patch_fields_and_keeps_unknown_fields() -> None:
    merged = merge_overlay_into_base(_base_document(), _edited_overlay())
    exercise = locate(merged, SQUAT).exercise
    assert exercise["videos"] == ["https://youtu.be/abc123"]
    assert exercise["work"] == "5x5"
    assert exercise["tempo"] == "3-1-1"
    assert exercise["updatedAt"] == "2026-01-01T00:00:00+00:00"
    assert merged["title"] == "Team log"


def test_merge_does_not_mutate_inputs() -> None:
    doc = _base_document()
    before = copy.deepcopy(doc)
    overlay = _edited_overlay()
    overlay_before = overlay.as_dict()

    merged = merge_overlay_into_base(doc, overlay)
    locate(merged, SQUAT).exercise["videos"].append("https://youtu.be/mutated")
    merged["periods"].clear()

    assert doc == before
    assert overlay.as_dict() == overlay_before


def test_merge_is_idempotent() -> None:
    overlay = _edited_overlay()
    once = merge_overlay_into_base(_base_document(), overlay)
    twice = merge_overlay_into_base(once, overlay)
    assert once == twice


def test_stale_patches_are_dropped_and_reported() -> None:
    overlay = _edited_overlay()
    stale = encode(Locator("serie-1-2026", 1, 1, 2, "bench"))
    overlay.upsert(stale, {"work": "4x6"})
    merged = merge_overlay_into_base(_base_document(), overlay)
    assert "bench" not in str(merged)
    assert stale_keys(_base_document(), overlay) == [stale]
