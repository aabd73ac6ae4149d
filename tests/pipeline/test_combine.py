import json

import pytest

from src.pipeline.combine import EventCombiner, flatten_event_listing
from src.pipeline.exceptions import BaseDatasetError
from src.pipeline.flatten import flatten_event
from src.pipeline.merge import DetailMerger


def write_json(path, payload):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload), encoding="utf-8")


def read_json(path):
    return json.loads(path.read_text(encoding="utf-8"))


@pytest.fixture
def data_dir(tmp_path):
    write_json(
        tmp_path / "events.min.json",
        [
            {
                "eventID": "raid-hour-mewtwo",
                "name": "Mewtwo Raid Hour",
                "eventType": "raid-hour",
                "heading": "Raid Hour",
                "image": "raid.jpg",
                "start": "2024-02-07T18:00:00.000",
                "end": "2024-02-07T19:00:00.000",
            },
            {
                "eventID": "january-community-day",
                "name": "January Community Day",
                "eventType": "community-day",
                "heading": "Community Day",
                "image": "cd.jpg",
                "start": "2024-01-06T14:00:00.000",
                "end": "2024-01-06T17:00:00.000",
            },
            {
                "eventID": "mystery",
                "name": "Mystery",
                "eventType": None,
                "heading": None,
                "image": None,
                "start": None,
                "end": None,
            },
        ],
    )
    temp = tmp_path / "temp"
    write_json(
        temp / "january-community-day_generic.json",
        {"id": "january-community-day", "type": "generic", "data": {"hasSpawns": True}},
    )
    write_json(
        temp / "january-community-day.json",
        {
            "id": "january-community-day",
            "type": "community-day",
            "data": {"spawns": [{"name": "Rowlet"}], "bonuses": [{"text": "3× Stardust"}]},
        },
    )
    write_json(
        temp / "raid-hour-mewtwo.json",
        {"id": "raid-hour-mewtwo", "type": "raid-hour", "data": {"bosses": [{"name": "Mewtwo"}]}},
    )
    (temp / "broken.json").write_text("", encoding="utf-8")
    return tmp_path


def test_flatten_event_listing_accepts_both_shapes():
    events = [{"eventID": "a"}, {"eventID": "b"}]

    assert flatten_event_listing(events) == events
    assert flatten_event_listing({"x": [events[0]], "y": [events[1]], "z": "junk"}) == events
    with pytest.raises(TypeError):
        flatten_event_listing("nope")


def test_combine_writes_sorted_dataset_and_type_files(data_dir):
    partition = EventCombiner(data_dir=data_dir).combine()

    events = read_json(data_dir / "events.min.json")
    assert isinstance(events, list)
    assert [e["eventID"] for e in events] == ["mystery", "january-community-day", "raid-hour-mewtwo"]

    community_day = events[1]
    assert community_day["pokemon"] == [{"name": "Rowlet", "source": "spawn"}]
    assert community_day["bonuses"] == [{"text": "3× Stardust"}]
    assert "hasSpawns" not in community_day
    assert events[2]["raids"] == [{"name": "Mewtwo"}]

    types_dir = data_dir / "eventTypes"
    assert sorted(p.name for p in types_dir.iterdir()) == [
        "community-day.min.json",
        "raid-hour.min.json",
        "unknown.min.json",
    ]
    assert read_json(types_dir / "community-day.min.json") == [community_day]
    assert read_json(types_dir / "unknown.min.json") == [events[0]]

    assert not (data_dir / "temp").exists()
    assert len(partition.sorted) == 3


def test_second_run_on_own_output_is_a_no_op(data_dir):
    EventCombiner(data_dir=data_dir).combine()
    first = read_json(data_dir / "events.min.json")

    EventCombiner(data_dir=data_dir).combine()

    assert read_json(data_dir / "events.min.json") == first
    assert first == [flatten_event(e) for e in first]


def test_legacy_type_keyed_base_is_read_and_written_flat(tmp_path):
    write_json(
        tmp_path / "events.min.json",
        {
            "community-day": [{"eventID": "cd", "eventType": "community-day", "start": "2024-01-06"}],
            "event": [{"id": "ev", "type": "event", "start": "2024-01-01"}],
        },
    )

    EventCombiner(data_dir=tmp_path).combine()

    events = read_json(tmp_path / "events.min.json")
    assert [e["eventID"] for e in events] == ["ev", "cd"]
    assert events[0]["eventType"] == "event"


def test_missing_temp_dir_still_writes_events(tmp_path, caplog):
    write_json(tmp_path / "events.min.json", [{"eventID": "a", "eventType": "event"}])

    EventCombiner(data_dir=tmp_path).combine()

    assert read_json(tmp_path / "events.min.json")[0]["eventID"] == "a"
    assert "Unable to scan temp directory" in caplog.text


def test_keep_temp_and_stale_type_files(data_dir):
    stale = data_dir / "eventTypes" / "old-type.min.json"
    write_json(stale, [])

    EventCombiner(data_dir=data_dir).combine(cleanup_temp=False)

    assert (data_dir / "temp").is_dir()
    assert not stale.exists()


def test_records_without_id_are_skipped(tmp_path, caplog):
    write_json(tmp_path / "events.min.json", [{"name": "no id"}, {"eventID": "ok"}])

    events = EventCombiner(data_dir=tmp_path).load_base_events()

    assert [e["eventID"] for e in events] == ["ok"]
    assert "Skipping event #0" in caplog.text


def test_injected_merger_controls_accepted_types(data_dir):
    combiner = EventCombiner(data_dir=data_dir, merger=DetailMerger(accepted_types={"generic"}))

    combiner.combine()

    events = {e["eventID"]: e for e in read_json(data_dir / "events.min.json")}
    assert "pokemon" not in events["january-community-day"]


@pytest.mark.parametrize(
    "content",
    [
        None,
        "",
        "{broken",
        '"a string"',
        '{"community-day": "oops"}',
        '[{"name": "no id"}, {"eventID": ""}]',
    ],
)
def test_unreadable_base_dataset_is_fatal(tmp_path, content):
    if content is not None:
        (tmp_path / "events.min.json").write_text(content, encoding="utf-8")

    with pytest.raises(BaseDatasetError):
        EventCombiner(data_dir=tmp_path).combine()

    assert not (tmp_path / "eventTypes").exists()


def test_unusable_base_keeps_previous_outputs(tmp_path):
    write_json(tmp_path / "events.min.json", {"community-day": "oops"})
    previous = tmp_path / "eventTypes" / "community-day.min.json"
    write_json(previous, [{"eventID": "cd"}])

    with pytest.raises(BaseDatasetError, match="no usable events"):
        EventCombiner(data_dir=tmp_path).combine()

    assert read_json(tmp_path / "events.min.json") == {"community-day": "oops"}
    assert previous.exists()


def test_empty_base_list_is_not_an_error(tmp_path):
    write_json(tmp_path / "events.min.json", [])

    partition = EventCombiner(data_dir=tmp_path).combine()

    assert partition.sorted == []
    assert read_json(tmp_path / "events.min.json") == []
