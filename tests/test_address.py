from __future__ import annotations

from custom_components.training_log.address import (
    Locator,
    Selection,
    decode,
    encode,
    entry_key,
    parse_route_path,
    route_path,
    slugify,
    to_number,
)


def test_entry_key_normalizes_numeric_parts() -> None:
    assert entry_key("serie-1-2026", "1", 1, 1.0, "squat") == "serie-1-2026|1|1|1|squat"
    assert entry_key("serie-1-2026", 1, 1, 1, "squat") == entry_key("serie-1-2026", "1", "1", "1", "squat")


def test_entry_key_rejects_incomplete_or_ambiguous_parts() -> None:
    assert entry_key("", 1, 1, 1, "squat") is None
    assert entry_key("p", "one", 1, 1, "squat") is None
    assert entry_key("p", 1, 1, 1.5, "squat") is None
    assert entry_key("a|b", 1, 1, 1, "squat") is None
    assert entry_key("p", True, 1, 1, "squat") is None


def test_decode_requires_five_segments() -> None:
    assert decode("p|1|2|3|bench") == Locator("p", 1, 2, 3, "bench")
    assert decode("p|1|2|3") is None
    assert decode("p|1|2|3|bench|extra") is None
    assert decode(None) is None


def test_distinct_locators_encode_to_distinct_keys() -> None:
    a = Locator("p", 1, 11, 1, "squat")
    b = Locator("p", 11, 1, 1, "squat")
    assert encode(a) != encode(b)
    assert decode(encode(a)) == a


def test_to_number() -> None:
    assert to_number(" 7 ") == 7
    assert to_number(3.0) == 3
    assert to_number(False) is None
    assert to_number("") is None
    assert to_number(None) is None


def test_slugify() -> None:
    assert slugify("Serie 1 2026") == "serie-1-2026"
    assert slugify("Lifter's Squat") == "lifters-squat"
    assert slugify("  --  ") == ""


def test_selection_build_truncates_at_first_missing_part() -> None:
    sel = Selection.build("p", None, 2, 3, "x")
    assert sel.depth == 1
    assert sel.block_id is None and sel.week is None and sel.exercise_id is None
    assert sel.locator() is None


def test_selection_covers() -> None:
    loc = Locator("p", 1, 2, 3, "squat")
    assert Selection.build("p", 1).covers(loc)
    assert not Selection.build("p", 2).covers(loc)
    assert Selection().covers(loc)


def test_route_path_round_trip_for_partial_selection() -> None:
    sel = Selection.build("serie-1-2026", 2, 3)
    path = route_path(sel)
    assert path == "p/serie-1-2026/b/2/w/3"
    assert parse_route_path(f"#/{path}") == sel


def test_parse_route_path_ignores_unknown_tags_and_bad_numbers() -> None:
    sel = parse_route_path("p/x/z/ignored/b/abc/w/1")
    assert sel == Selection.build("x")
