from datetime import datetime, timezone

import pytest

from membership_functions.firestore_events import (
    decode_value,
    document_data,
    document_id,
    document_path,
    parse_timestamp,
)

EVENT = {
    "oldValue": {},
    "updateMask": {},
    "value": {
        "name": "projects/club/databases/(default)/documents/notifications/n42",
        "createTime": "2024-05-01T12:00:00.123456Z",
        "fields": {
            "userId": {"stringValue": "u1"},
            "title": {"stringValue": "Membresía aprobada"},
            "body": {"stringValue": "Bienvenido al club"},
            "priority": {"integerValue": "2"},
            "read": {"booleanValue": False},
            "sentAt": {"timestampValue": "2024-05-01T12:00:00.123456789Z"},
            "meta": {"mapValue": {"fields": {"source": {"stringValue": "admin"}}}},
            "tags": {"arrayValue": {"values": [{"stringValue": "a"}, {"nullValue": None}]}},
        },
    },
}


def test_document_data_decodes_fields():
    data = document_data(EVENT)

    assert data["userId"] == "u1"
    assert data["title"] == "Membresía aprobada"
    assert data["priority"] == 2
    assert data["read"] is False
    assert data["sentAt"] == datetime(2024, 5, 1, 12, 0, 0, 123456, tzinfo=timezone.utc)
    assert data["meta"] == {"source": "admin"}
    assert data["tags"] == ["a", None]


def test_document_path_and_id():
    assert document_path(EVENT) == "notifications/n42"
    assert document_id(EVENT) == "n42"
    assert document_id({}) is None


def test_parse_timestamp_variants():
    assert parse_timestamp("2024-05-01T12:00:00Z") == datetime(2024, 5, 1, 12, tzinfo=timezone.utc)
    assert parse_timestamp("2024-05-01T12:00:00.5Z").microsecond == 500000
    assert parse_timestamp("2024-05-01T06:00:00-06:00") == datetime(2024, 5, 1, 12, tzinfo=timezone.utc)


def test_decode_value_scalars():
    assert decode_value({"doubleValue": 1.5}) == 1.5
    assert decode_value({"bytesValue": "aGk="}) == b"hi"
    assert decode_value({"geoPointValue": {"latitude": 9.93, "longitude": -84.08}}) == {
        "latitude": 9.93,
        "longitude": -84.08,
    }
    assert decode_value({"referenceValue": "projects/p/databases/(default)/documents/users/u1"}).endswith("users/u1")


def test_decode_value_rejects_unknown_types():
    with pytest.raises(ValueError):
        decode_value({"vectorValue": {}})
