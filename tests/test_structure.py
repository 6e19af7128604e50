from __future__ import annotations

import pytest

from custom_components.training_log.address import Locator, Selection, encode
from custom_components.training_log.errors import DuplicateIdentifierError, InvalidIdentifierError, NotFoundError
from custom_components.training_log.overlay import Overlay
from custom_components.training_log.resolver import resolve
from custom_components.training_log.structure import (
    PLACEHOLDER_PERIOD_ID,
    add_block,
    add_day,
    add_exercise,
    add_period,
    add_week,
    reconcile_selection,
    remove_block,
    remove_day,
    remove_exercise,
    remove_period,
    remove_week,
)

SQUAT = Locator("serie-1-2026", 1, 1, 1, "squat")


def _base_document() -> dict:
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
                                    {"day": 1, "exercises": [{"id": "squat", "name": "Squat", "work": "5x5"}]},
                                ],
                            }
                        ],
                    }
                ],
            }
        ]
    }


def test_add_period_slugifies_and_rejects_duplicates() -> None:
    doc = _base_document()
    period = add_period(doc, "Serie 2 2026")
    assert period["id"] == "serie-2-2026"
    assert period["name"] == "Serie 2 2026"
    assert [p["id"] for p in doc["periods"]] == ["serie-1-2026", "serie-2-2026"]
    with pytest.raises(DuplicateIdentifierError):
        add_period(doc, "serie 2 2026")


def test_add_rejects_invalid_identifiers() -> None:
    doc = _base_document()
    with pytest.raises(InvalidIdentifierError):
        add_period(doc, "   ")
    with pytest.raises(InvalidIdentifierError):
        add_period(doc, "!!!")
    with pytest.raises(InvalidIdentifierError):
        add_block(doc, "serie-1-2026", "two")
    with pytest.raises(InvalidIdentifierError):
        add_week(doc, "serie-1-2026", 1, 0)


def test_add_under_missing_parent_raises_not_found() -> None:
    with pytest.raises(NotFoundError):
        add_block(_base_document(), "missing", 2)


def test_numeric_children_stay_sorted() -> None:
    doc = _base_document()
    add_block(doc, "serie-1-2026", 3)
    add_block(doc, "serie-1-2026", "2")
    assert [b["id"] for b in doc["periods"][0]["blocks"]] == [1, 2, 3]
    add_day(doc, "serie-1-2026", 1, 1, 3)
    day = add_day(doc, "serie-1-2026", 1, 1, 2, "Light")
    assert day["label"] == "Light"
    assert [d["day"] for d in doc["periods"][0]["blocks"][0]["weeks"][0]["days"]] == [1, 2, 3]
    with pytest.raises(DuplicateIdentifierError):
        add_day(doc, "serie-1-2026", 1, 1, "2")


def test_exercises_sorted_by_name() -> None:
    doc = _base_document()
    add_exercise(doc, "serie-1-2026", 1, 1, 1, "Bench Press", "4x6")
    add_exercise(doc, "serie-1-2026", 1, 1, 1, "deadlift")
    names = [e["name"] for e in doc["periods"][0]["blocks"][0]["weeks"][0]["days"][0]["exercises"]]
    assert names == ["Bench Press", "deadlift", "Squat"]
    with pytest.raises(DuplicateIdentifierError):
        add_exercise(doc, "serie-1-2026", 1, 1, 1, "BENCH press")


def test_remove_day_then_fallback_creates_empty_day() -> None:
    doc = _base_document()
    overlay = Overlay()
    overlay.upsert(encode(SQUAT), {"videos": ["https://youtu.be/abc123"]})
    purged = remove_day(doc, overlay, "serie-1-2026", 1, 1, 1)
    assert purged == [encode(SQUAT)]
    assert resolve(doc, overlay, SQUAT) is None

    selection = reconcile_selection(doc, SQUAT.selection())
    assert selection == Selection.build("serie-1-2026", 1, 1, 1)
    day = doc["periods"][0]["blocks"][0]["weeks"][0]["days"][0]
    assert day["day"] == 1
    assert day["exercises"] == []


def test_removed_patches_do_not_resurrect() -> None:
    doc = _base_document()
    overlay = Overlay()
    overlay.upsert(encode(SQUAT), {"coachComment": "old"})
    remove_exercise(doc, overlay, "serie-1-2026", 1, 1, 1, "squat")
    add_exercise(doc, "serie-1-2026", 1, 1, 1, "Squat")
    entry = resolve(doc, overlay, SQUAT)
    assert entry is not None
    assert entry.coach_comment == ""
    assert len(overlay) == 0


def test_remove_block_purges_only_its_subtree() -> None:
    doc = _base_document()
    add_block(doc, "serie-1-2026", 11)
    add_week(doc, "serie-1-2026", 11, 1)
    add_day(doc, "serie-1-2026", 11, 1, 1)
    add_exercise(doc, "serie-1-2026", 11, 1, 1, "Squat")
    overlay = Overlay()
    other = Locator("serie-1-2026", 11, 1, 1, "squat")
    overlay.upsert(encode(SQUAT), {"work": "a"})
    overlay.upsert(encode(other), {"work": "b"})
    assert remove_block(doc, overlay, "serie-1-2026", 1) == [encode(SQUAT)]
    assert overlay.keys() == [encode(other)]


def test_remove_missing_raises_not_found() -> None:
    with pytest.raises(NotFoundError):
        remove_period(_base_document(), Overlay(), "missing")
    with pytest.raises(NotFoundError):
        remove_exercise(_base_document(), Overlay(), "serie-1-2026", 1, 1, 1, "deadlift")


def test_reconcile_keeps_valid_selection() -> None:
    assert reconcile_selection(_base_document(), SQUAT.selection()) == SQUAT.selection()


def test_reconcile_falls_back_below_first_missing_level() -> None:
    doc = _base_document()
    add_block(doc, "serie-1-2026", 2)
    add_week(doc, "serie-1-2026", 2, 4)
    add_day(doc, "serie-1-2026", 2, 4, 2)
    # Block 9 does not exist: every level below falls back to its first child.
    selection = reconcile_selection(doc, Selection.build("serie-1-2026", 9, 4, 2))
    assert selection == SQUAT.selection()


def test_reconcile_creates_placeholders_in_empty_document() -> None:
    doc = {"periods": []}
    selection = reconcile_selection(doc, None)
    assert selection == Selection.build(PLACEHOLDER_PERIOD_ID, 1, 1, 1)
    assert doc["periods"][0]["blocks"][0]["weeks"][0]["days"][0]["exercises"] == []
    assert doc["periods"][0]["name"] == "Period 1"


def _two_week_document() -> dict:
    doc = _base_document()
    add_week(doc, "serie-1-2026", 1, 2)
    add_day(doc, "serie-1-2026", 1, 2, 1)
    add_exercise(doc, "serie-1-2026", 1, 2, 1, "Squat")
    add_period(doc, "Serie 2 2026")
    add_block(doc, "serie-2-2026", 1)
    add_week(doc, "serie-2-2026", 1, 1)
    add_day(doc, "serie-2-2026", 1, 1, 1)
    add_exercise(doc, "serie-2-2026", 1, 1, 1, "Squat")
    return doc


def test_remove_week_purges_only_its_subtree() -> None:
    doc = _two_week_document()
    overlay = Overlay()
    week_two = Locator("serie-1-2026", 1, 2, 1, "squat")
    overlay.upsert(encode(SQUAT), {"work": "a"})
    overlay.upsert(encode(week_two), {"work": "b"})
    assert remove_week(doc, overlay, "serie-1-2026", 1, 1) == [encode(SQUAT)]
    assert overlay.keys() == [encode(week_two)]
    assert resolve(doc, overlay, week_two).work == "b"


def test_remove_period_purges_every_level_below() -> None:
    doc = _two_week_document()
    overlay = Overlay()
    other_period = Locator("serie-2-2026", 1, 1, 1, "squat")
    week_two = Locator("serie-1-2026", 1, 2, 1, "squat")
    for locator in (SQUAT, week_two, other_period):
        overlay.upsert(encode(locator), {"coachComment": "x"})
    purged = remove_period(doc, overlay, "serie-1-2026")
    assert sorted(purged) == sorted([encode(SQUAT), encode(week_two)])
    assert overlay.keys() == [encode(other_period)]
    assert [p["id"] for p in doc["periods"]] == ["serie-2-2026"]


def test_orphan_patch_does_not_make_missing_entry_resolve() -> None:
    doc = _base_document()
    overlay = Overlay()
    missing = Locator("serie-1-2026", 1, 1, 1, "deadlift")
    overlay.upsert(encode(missing), {"work": "3x3", "videos": ["https://youtu.be/x"]})
    assert resolve(doc, overlay, missing) is None
    assert resolve(doc, overlay, Locator("serie-9", 1, 1, 1, "squat")) is None
