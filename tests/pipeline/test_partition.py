import pytest

from src.pipeline.partition import partition_events, sanitize_type


@pytest.mark.parametrize(
    "event_type,expected",
    [
        ("Go Battle League!", "go-battle-league"),
        ("community-day", "community-day"),
        ("  --Raid   Hour--  ", "raid-hour"),
        ("pokémon-spotlight-hour", "pok-mon-spotlight-hour"),
        ("!!!", "unknown"),
        ("", "unknown"),
        (None, "unknown"),
    ],
)
def test_sanitize_type(event_type, expected):
    assert sanitize_type(event_type) == expected


def test_groups_by_type_in_encounter_order():
    events = [
        {"eventID": "a", "eventType": "raid-hour", "start": None},
        {"eventID": "b", "eventType": "community-day", "start": None},
        {"eventID": "c", "eventType": "raid-hour", "start": None},
        {"eventID": "d", "start": None},
        {"eventID": "e", "eventType": "", "start": None},
    ]

    partition = partition_events(events)

    assert list(partition.by_type) == ["raid-hour", "community-day", "unknown"]
    assert [e["eventID"] for e in partition.by_type["raid-hour"]] == ["a", "c"]
    assert [e["eventID"] for e in partition.by_type["unknown"]] == ["d", "e"]


def test_sorted_by_start_with_missing_start_first():
    events = [
        {"eventID": "late", "eventType": "event", "start": "2024-03-01T10:00:00.000"},
        {"eventID": "none", "eventType": "event", "start": None},
        {"eventID": "utc", "eventType": "event", "start": "2024-02-01T10:00:00.000Z"},
        {"eventID": "missing", "eventType": "event"},
        {"eventID": "early", "eventType": "event", "start": "2024-01-01T10:00:00.000"},
    ]

    partition = partition_events(events)

    assert [e["eventID"] for e in partition.sorted] == ["none", "missing", "early", "utc", "late"]


def test_both_views_hold_the_same_events():
    events = [
        {"eventID": str(i), "eventType": t, "start": f"2024-01-0{i}"}
        for i, t in enumerate(["a", "b", "a", "c"], start=1)
    ]

    partition = partition_events(events)
    grouped = [e for group in partition.by_type.values() for e in group]

    assert sorted(e["eventID"] for e in grouped) == sorted(e["eventID"] for e in partition.sorted)


def test_by_filename_merges_types_that_sanitize_alike():
    events = [
        {"eventID": "a", "eventType": "Go Battle League!"},
        {"eventID": "b", "eventType": "go-battle-league"},
        {"eventID": "c"},
    ]

    files = partition_events(events).by_filename()

    assert list(files) == ["go-battle-league", "unknown"]
    assert [e["eventID"] for e in files["go-battle-league"]] == ["a", "b"]


def test_start_dates_past_the_datetime_range_do_not_abort_sorting():
    events = [
        {"eventID": "far", "eventType": "event", "start": "9999-12-31T23:00:00.000-0800"},
        {"eventID": "near", "eventType": "event", "start": "2024-01-01T10:00:00.000"},
    ]

    partition = partition_events(events)

    assert {e["eventID"] for e in partition.sorted} == {"far", "near"}
