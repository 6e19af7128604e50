from __future__ import annotations

import pytest

from custom_components.training_log.address import Locator, Selection, encode
from custom_components.training_log.errors import MalformedImportError, NotFoundError
from custom_components.training_log.session import TrainingLogSession

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
                                    {"day": 1, "exercises": [ex("squat", "Squat", "5x5")]},
                                    {"day": 2, "exercises": [ex("bench", "Bench Press", "4x6")]},
                                ],
                            }
                        ],
                    }
                ],
            }
        ]
    }


def test_save_entry_and_resolve() -> None:
    session = TrainingLogSession(_base_document())
    entry = session.save_entry(SQUAT, {"lifterComment": "Felt fast"}, now="2026-02-01T00:00:00+00:00")
    assert entry.lifter_comment == "Felt fast"
    assert entry.work == "5x5"
    assert session.summary()["edited_entries"] == 1


def test_save_entry_for_missing_entry_raises() -> None:
    session = TrainingLogSession(_base_document())
    with pytest.raises(NotFoundError):
        session.save_entry(Locator("serie-1-2026", 1, 1, 1, "deadlift"), {"work": "x"})
    assert len(session.overlay) == 0


def test_copy_is_isolated() -> None:
    session = TrainingLogSession(_base_document())
    other = session.copy()
    other.add_period("Serie 2 2026")
    other.save_entry(SQUAT, {"work": "3x3"})
    assert len(session.document["periods"]) == 1
    assert len(session.overlay) == 0


def test_select_keeps_existing_partial_selection() -> None:
    session = TrainingLogSession(_base_document())
    assert session.select(Selection.build("serie-1-2026", 1)) == Selection.build("serie-1-2026", 1)


def test_select_complete_fills_lower_levels() -> None:
    session = TrainingLogSession(_base_document())
    selection = session.select(Selection.build("serie-1-2026", 1, 1, 2), complete=True)
    assert selection == Selection.build("serie-1-2026", 1, 1, 2, "bench")
    assert session.current_entry().exercise_name == "Bench Press"


def test_select_missing_part_reconciles() -> None:
    session = TrainingLogSession(_base_document())
    assert session.select(Selection.build("serie-1-2026", 7)) == SQUAT.selection()


def test_add_selects_new_node() -> None:
    session = TrainingLogSession(_base_document())
    change = session.add_week("serie-1-2026", 1, 2)
    assert change.selection_changed
    # New week has no days yet: a placeholder day is created and selected.
    assert change.selection == Selection.build("serie-1-2026", 1, 2, 1)
    assert session.options()["exercises"] == []


def test_remove_reports_purged_keys_and_reselects() -> None:
    session = TrainingLogSession(_base_document())
    session.select(SQUAT.selection())
    session.save_entry(SQUAT, {"work": "5x5 @ 120"})
    change = session.remove_exercise(SQUAT)
    assert change.purged_keys == (encode(SQUAT),)
    assert change.selection == Selection.build("serie-1-2026", 1, 1, 1)
    assert session.resolve(SQUAT) is None


def test_import_base_replaces_document_and_clears_edits() -> None:
    session = TrainingLogSession(_base_document())
    session.save_entry(SQUAT, {"work": "x"})
    replacement = {"periods": [{"id": "serie-3", "name": "Serie 3", "blocks": []}]}
    session.import_base(replacement)
    assert len(session.overlay) == 0
    assert session.selection == Selection.build("serie-3", 1, 1, 1)
    assert replacement["periods"][0]["blocks"] == []


def test_import_base_rejects_malformed_document() -> None:
    session = TrainingLogSession(_base_document())
    session.save_entry(SQUAT, {"work": "x"})
    with pytest.raises(MalformedImportError):
        session.import_base({"weeks": []})
    assert len(session.overlay) == 1
    assert session.resolve(SQUAT).work == "x"


def test_export_includes_edits() -> None:
    session = TrainingLogSession(_base_document())
    session.save_entry(SQUAT, {"videos": ["https://youtu.be/abc123"]})
    exported = session.export()
    squat = exported["periods"][0]["blocks"][0]["weeks"][0]["days"][0]["exercises"][0]
    assert squat["videos"] == ["https://youtu.be/abc123"]
    assert "videos" not in session.document["periods"][0]["blocks"][0]["weeks"][0]["days"][0]["exercises"][0]
