from __future__ import annotations

from custom_components.training_log.address import Locator, encode
from custom_components.training_log.hierarchy import locate
from custom_components.training_log.overlay import Overlay
from custom_components.training_log.resolver import (
    list_options,
    recent_edits,
    resolve,
    resolve_history,
    search,
    summarize,
)

SQUAT = Locator("serie-1-2026", 1, 1, 1, "squat")


def _base_document() -> dict:
    ex = lambda ex_id, name, work: {"id": ex_id, "name": name, "work": work}
    return {
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
                                    {"day": 1, "label": "Heavy", "exercises": [ex("squat", "Squat", "5x5")]},
                                    {"day": 2, "exercises": [ex("bench", "Bench Press", "4x6")]},
                                ],
                            },
                            {
                                "week": 2,
                                "days": [{"day": 1, "exercises": [ex("squat", "Squat", "5x3")]}],
                            },
                        ],
                    },
                    {
                        "id": 2,
                        "weeks": [{"week": 1, "days": [{"day": 1, "exercises": [ex("squat", "squat ", "3x3")]}]}],
                    },
                ],
            },
            {"id": "serie-2-2026", "name": "Serie 2 2026", "blocks": []},
        ]
    }


def test_resolve_base_entry() -> None:
    entry = resolve(_base_document(), Overlay(), SQUAT)
    assert entry is not None
    assert entry.work == "5x5"
    assert entry.videos == ()
    assert entry.lifter_comment == ""
    assert entry.updated_at is None


def test_resolve_with_videos_patch_keeps_base_work() -> None:
    doc = _base_document()
    overlay = Overlay()
    overlay.upsert(encode(SQUAT), {"videos": ["https://youtu.be/abc123"]}, now="2026-01-01T00:00:00+00:00")
    entry = resolve(doc, overlay, SQUAT)
    assert entry is not None
    assert entry.videos == ("https://youtu.be/abc123",)
    assert entry.work == "5x5"
    assert entry.updated_at == "2026-01-01T00:00:00+00:00"


def test_resolve_missing_entry() -> None:
    assert resolve(_base_document(), Overlay(), Locator("serie-1-2026", 1, 1, 1, "deadlift")) is None
    assert resolve({"periods": "broken"}, Overlay(), SQUAT) is None


def test_resolve_accepts_string_identifiers_in_document() -> None:
    doc = _base_document()
    doc["periods"][0]["blocks"][0]["id"] = "1"
    doc["periods"][0]["blocks"][0]["weeks"][0]["week"] = "1"
    assert locate(doc, SQUAT) is not None


def test_search_matches_resolved_fields() -> None:
    doc = _base_document()
    overlay = Overlay()
    overlay.upsert(encode(SQUAT), {"videos": ["https://youtu.be/abc123"], "coachComment": "Depth was great"})
    hits = search(doc, overlay, "squat")
    assert SQUAT in [h.locator for h in hits]
    assert [h.locator for h in search(doc, overlay, "DEPTH")] == [SQUAT]
    assert search(doc, overlay, "nonexistent-term") == []
    assert search(doc, overlay, "   ") == []


def test_history_orders_by_block_week_day_and_matches_name_loosely() -> None:
    history = resolve_history(_base_document(), Overlay(), "serie-1-2026", "SQUAT")
    assert [(e.block_id, e.week, e.day) for e in history] == [(1, 1, 1), (1, 2, 1), (2, 1, 1)]
    assert resolve_history(_base_document(), Overlay(), "missing", "Squat") == []


def test_recent_edits_newest_first() -> None:
    doc = _base_document()
    overlay = Overlay()
    overlay.upsert(encode(SQUAT), {"work": "5x5 @ 100"}, now="2026-01-01T00:00:00+00:00")
    bench = Locator("serie-1-2026", 1, 1, 2, "bench")
    overlay.upsert(encode(bench), {"work": "4x6 @ 80"}, now="2026-01-02T00:00:00+00:00")
    assert [e.locator for e in recent_edits(doc, overlay, limit=10)] == [bench, SQUAT]
    assert len(recent_edits(doc, overlay, limit=1)) == 1


def test_summarize() -> None:
    overlay = Overlay()
    overlay.upsert(encode(SQUAT), {"work": "x"})
    assert summarize(_base_document(), overlay) == {"periods": 2, "entries": 4, "edited_entries": 1, "blocks": 2}


def test_list_options_per_level() -> None:
    doc = _base_document()
    assert [o["id"] for o in list_options(doc)] == ["serie-1-2026", "serie-2-2026"]
    assert list_options(doc, "serie-1-2026") == [{"id": 1}, {"id": 2}]
    assert list_options(doc, "serie-1-2026", 1) == [{"week": 1}, {"week": 2}]
    assert list_options(doc, "serie-1-2026", 1, 1) == [{"day": 1, "label": "Heavy"}, {"day": 2, "label": "Day 2"}]
    assert list_options(doc, "serie-1-2026", 1, 1, 2) == [{"id": "bench", "name": "Bench Press"}]
    assert list_options(doc, "missing", 1) == []
