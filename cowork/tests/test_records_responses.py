"""Remote id extraction from create responses and lenient value coercion."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from cowork.common import coerce
from cowork.records.errors import CreationError
from cowork.records.responses import extract_remote_id, record_id


@pytest.mark.parametrize(
    "response, expected",
    [
        ({"_id": "Ab1"}, "Ab1"),
        ({"id": 42}, "42"),
        ({"inserted": [{"_id": "In9"}]}, "In9"),
        ({"inserted": [{"id": "legacy"}]}, "legacy"),
        ("bare-id", "bare-id"),
        (1234, "1234"),
    ],
)
def test_extract_remote_id_shapes(response, expected):
    assert extract_remote_id("equipos", response) == expected


@pytest.mark.parametrize("response", [{}, {"inserted": []}, {"inserted": [{}]}, None, "", True, [1]])
def test_extract_remote_id_failures(response):
    with pytest.raises(CreationError) as excinfo:
        extract_remote_id("equipos", response)
    assert excinfo.value.collection == "equipos"


def test_record_id_prefers_underscore_id():
    assert record_id({"_id": "a", "id": "b"}) == "a"
    assert record_id({"id": "b"}) == "b"
    assert record_id({"nombre": "x"}) is None


def test_coerce_bool_variants():
    assert coerce.to_bool(True) and coerce.to_bool("TRUE") and coerce.to_bool(1)
    assert not coerce.to_bool("false") and not coerce.to_bool(0)
    assert coerce.to_bool(None, default=True)


def test_coerce_numbers_and_lists():
    assert coerce.to_int("12") == 12
    assert coerce.to_int("x", 4) == 4
    assert coerce.to_int("1e400", 5) == 5
    assert coerce.to_float("3.5") == 3.5
    assert coerce.to_float("") is None
    assert coerce.parse_id_list("3, 5,x,,7") == [3, 5, 7]
    assert coerce.parse_id_list(None) == []
    assert coerce.join_ids([3, 5]) == "3,5"


def test_coerce_datetimes():
    parsed = coerce.parse_datetime("2025-03-01T10:00:00.000Z")
    assert parsed == datetime(2025, 3, 1, 10, 0, tzinfo=timezone.utc)
    assert coerce.parse_datetime("2025-03-01T10:00:00") == parsed
    assert coerce.parse_datetime("not a date") is None
    assert coerce.format_datetime(parsed) == "2025-03-01T10:00:00Z"
