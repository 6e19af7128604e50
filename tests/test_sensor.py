from __future__ import annotations

from custom_components.training_log.sensor import edit_summary, entry_attributes


def _entry(videos: list[str]) -> dict:
    return {
        "key": "serie-1-2026|1|1|1|squat",
        "exerciseName": "Squat",
        "work": "5x5",
        "videos": videos,
        "lifterComment": "",
        "coachComment": "",
        "updatedAt": "2026-01-01T00:00:00+00:00",
    }


def test_entry_attributes_leave_out_video_payloads() -> None:
    inline = "data:video/mp4;base64," + "A" * 200_000
    attrs = entry_attributes(_entry([inline, "https://youtu.be/abc123"]))
    assert "videos" not in attrs
    assert attrs["video_count"] == 2
    assert attrs["work"] == "5x5"
    assert len(str(attrs)) < 1024


def test_edit_summary_is_small() -> None:
    summary = edit_summary(_entry(["data:video/mp4;base64," + "A" * 200_000]))
    assert summary == {
        "key": "serie-1-2026|1|1|1|squat",
        "exercise": "Squat",
        "updated_at": "2026-01-01T00:00:00+00:00",
    }
