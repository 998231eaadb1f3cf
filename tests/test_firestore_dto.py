"""Tests for the Firestore document encoding."""

from datetime import datetime, timedelta, timezone

import pytest

from challenge_sync.firestore_dto import (
    document_id,
    format_timestamp,
    from_document,
    parse_completed_days,
    parse_timestamp,
    to_document,
)
from helpers import make_challenge

DOC_NAME = "projects/demo/databases/(default)/documents/users/alice/challenges/c1"


def remote_document(**fields) -> dict:
    values = {
        "title": {"stringValue": "Read"},
        "accentColor": {"stringValue": "#4ECDC4"},
        "startDate": {"timestampValue": "2026-03-01T08:30:00.123456789Z"},
        "completedDays": {"arrayValue": {"values": [{"integerValue": "5"}]}},
    }
    values.update(fields)
    return {"name": DOC_NAME, "fields": {k: v for k, v in values.items() if v is not None}}


# =============================================================================
# Encoding
# =============================================================================


def test_to_document_field_layout() -> None:
    challenge = make_challenge("c1", title="Read", accent_color="#4ECDC4", completed_days={7, 2})
    fields = to_document(challenge)["fields"]

    assert fields["id"] == {"stringValue": "c1"}
    assert fields["title"] == {"stringValue": "Read"}
    assert fields["accentColor"] == {"stringValue": "#4ECDC4"}
    assert fields["startDate"] == {"timestampValue": "2026-03-01T08:30:00.000000Z"}
    assert fields["completedDays"] == {
        "arrayValue": {"values": [{"integerValue": "2"}, {"integerValue": "7"}]}
    }


def test_empty_days_encode_as_empty_array() -> None:
    fields = to_document(make_challenge("c1"))["fields"]
    assert fields["completedDays"] == {"arrayValue": {}}


def test_round_trip_drops_only_out_of_range_days() -> None:
    original = make_challenge("c1", completed_days={0, 1, 50, 100, 101, -4})
    decoded = from_document(to_document(original))

    assert decoded == original.model_copy(update={"completed_days": {1, 50, 100}})


def test_format_timestamp_normalizes_to_utc() -> None:
    local = datetime(2026, 3, 1, 10, 0, tzinfo=timezone(timedelta(hours=2)))
    assert format_timestamp(local) == "2026-03-01T08:00:00.000000Z"


# =============================================================================
# Decoding
# =============================================================================


def test_days_are_clamped_on_decode() -> None:
    doc = remote_document(
        completedDays={
            "arrayValue": {
                "values": [{"integerValue": "-1"}, {"integerValue": "5"}, {"integerValue": "150"}]
            }
        }
    )
    assert from_document(doc).completed_days == {5}


def test_document_id_comes_from_name() -> None:
    doc = remote_document(id={"stringValue": "something-else"})
    assert from_document(doc).id == "c1"


def test_timestamp_with_nanoseconds() -> None:
    challenge = from_document(remote_document())
    assert challenge.start_date == datetime(2026, 3, 1, 8, 30, 0, 123456, tzinfo=timezone.utc)


def test_numeric_start_date_is_unix_seconds() -> None:
    challenge = from_document(remote_document(startDate={"doubleValue": 0}))
    assert challenge.start_date == datetime(1970, 1, 1, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "overrides",
    [
        {"title": None},
        {"title": {"stringValue": "   "}},
        {"title": {"integerValue": "3"}},
        {"accentColor": None},
        {"accentColor": {"stringValue": ""}},
        {"startDate": None},
        {"startDate": {"timestampValue": "not a date"}},
        {"startDate": {"stringValue": "2026-03-01"}},
    ],
)
def test_malformed_documents_are_rejected(overrides) -> None:
    assert from_document(remote_document(**overrides)) is None


def test_missing_days_decode_empty() -> None:
    assert from_document(remote_document(completedDays=None)).completed_days == set()


def test_parse_completed_days_mixed_number_types() -> None:
    field = {
        "arrayValue": {
            "values": [
                {"integerValue": "3"},
                {"doubleValue": 4.0},
                {"stringValue": "5"},
                {"nullValue": None},
                {"integerValue": "oops"},
            ]
        }
    }
    assert parse_completed_days(field) == [3, 4]


def test_parse_timestamp_accepts_offsets() -> None:
    assert parse_timestamp("2026-03-01T10:30:00+02:00") == datetime(2026, 3, 1, 8, 30, tzinfo=timezone.utc)


def test_document_id() -> None:
    assert document_id(DOC_NAME) == "c1"
    assert document_id(None) is None
