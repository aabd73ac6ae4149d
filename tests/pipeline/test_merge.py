import json
import logging

from src.pipeline.merge import DetailMerger, load_detail_documents, merge_details
from src.pipeline.models import DetailDocument


def test_later_documents_overwrite_earlier_ones():
    base = [{"eventID": "e1"}]
    details = [
        {"id": "e1", "type": "generic", "data": {"hasBonuses": True}},
        {
            "id": "e1",
            "type": "community-day",
            "data": {"hasBonuses": False, "spawns": [{"name": "Pikachu"}]},
        },
    ]

    [merged] = merge_details(base, details)

    assert merged["hasBonuses"] is False
    assert merged["spawns"] == [{"name": "Pikachu"}]


def test_nested_values_are_replaced_not_merged():
    base = [{"eventID": "e1", "eggs": {"2km": [{"name": "A"}], "5km": [{"name": "B"}]}}]
    details = [DetailDocument(id="e1", type="season", data={"eggs": {"7km": [{"name": "C"}]}})]

    [merged] = merge_details(base, details)

    assert merged["eggs"] == {"7km": [{"name": "C"}]}


def test_base_records_are_not_mutated():
    record = {"eventID": "e1", "name": "Event"}

    [merged] = merge_details([record], [{"id": "e1", "type": "generic", "data": {"hasSpawns": True}}])

    assert merged is not record
    assert "hasSpawns" not in record


def test_unmatched_documents_are_ignored(caplog):
    base = [{"eventID": "e1"}]

    with caplog.at_level(logging.DEBUG, logger="src.pipeline.merge"):
        merged = merge_details(base, [{"id": "missing", "type": "generic", "data": {"x": 1}}])

    assert merged == [{"eventID": "e1"}]
    assert "No base event for detail document missing" in caplog.text


def test_events_without_documents_pass_through():
    base = [{"eventID": "e1", "name": "One"}, {"eventID": "e2", "name": "Two"}]

    merged = merge_details(base, [{"id": "e2", "type": "event", "data": {"description": "hi"}}])

    assert merged == [
        {"eventID": "e1", "name": "One"},
        {"eventID": "e2", "name": "Two", "description": "hi"},
    ]


def test_malformed_documents_are_skipped_with_warning(caplog):
    base = [{"eventID": "e1"}]
    details = [
        {"id": "e1", "type": "promo-codes", "data": ["CODE1", "CODE2"]},
        {"type": "generic", "data": {"x": 1}},
        {"id": "e1", "type": "generic", "data": {"hasEggs": True}},
    ]

    with caplog.at_level(logging.WARNING, logger="src.pipeline.merge"):
        [merged] = merge_details(base, details)

    assert merged == {"eventID": "e1", "hasEggs": True}
    assert caplog.text.count("Skipping malformed detail document") == 2


def test_unaccepted_types_are_skipped_unless_all_types_allowed():
    base = [{"eventID": "e1"}]
    details = [{"id": "e1", "type": "brand-new-scraper", "data": {"extra": 1}}]

    assert DetailMerger().merge(base, details) == [{"eventID": "e1"}]
    assert DetailMerger(accepted_types=None).merge(base, details) == [{"eventID": "e1", "extra": 1}]


def test_load_detail_documents_skips_empty_and_invalid_files(tmp_path, caplog):
    (tmp_path / "a_generic.json").write_text(
        json.dumps({"id": "a", "type": "generic", "data": {"hasSpawns": True}}), encoding="utf-8"
    )
    (tmp_path / "b.json").write_text("", encoding="utf-8")
    (tmp_path / "c.json").write_text("{not json", encoding="utf-8")
    (tmp_path / "d.json").write_text(
        json.dumps({"id": "d", "type": "raid-day", "data": {"bosses": []}}), encoding="utf-8"
    )
    (tmp_path / "notes.txt").write_text("ignored", encoding="utf-8")

    with caplog.at_level(logging.WARNING, logger="src.pipeline.merge"):
        documents = load_detail_documents(tmp_path)

    assert [(d.id, d.type) for d in documents] == [("a", "generic"), ("d", "raid-day")]
    assert "Skipping empty temp file: b.json" in caplog.text
    assert "Skipping invalid detail document c.json" in caplog.text
