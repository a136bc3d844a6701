"""
Unit tests for models.task helpers.
"""
from datetime import datetime, timedelta, timezone

import pytest
from bson import Decimal128, ObjectId

from freelago.errors import InvalidIdentifierError, TaskValidationError
from freelago.models.task import (
    ALLOWED_UPDATE_FIELDS,
    build_update_fields,
    format_task,
    parse_object_id,
    prepare_new_task,
    utc_timestamp,
    validate_task_payload,
)


class TestTimestamps:

    def test_iso_with_millis_and_z(self):
        ts = utc_timestamp(datetime(2025, 3, 4, 5, 6, 7, 891000, tzinfo=timezone.utc))

        assert ts == "2025-03-04T05:06:07.891Z"

    def test_other_timezones_normalized_to_utc(self):
        plus_two = timezone(timedelta(hours=2))

        ts = utc_timestamp(datetime(2025, 3, 4, 12, 0, 0, tzinfo=plus_two))

        assert ts == "2025-03-04T10:00:00.000Z"

    def test_lexical_order_matches_time_order(self):
        earlier = utc_timestamp(datetime(2025, 1, 9, 23, 59, 59, tzinfo=timezone.utc))
        later = utc_timestamp(datetime(2025, 1, 10, 0, 0, 0, tzinfo=timezone.utc))

        assert earlier < later


class TestObjectIds:

    def test_valid_hex(self):
        oid = ObjectId()

        assert parse_object_id(str(oid)) == oid

    @pytest.mark.parametrize("bad", ["", "123", "g" * 24, None, 42])
    def test_invalid_values(self, bad):
        with pytest.raises(InvalidIdentifierError):
            parse_object_id(bad)


class TestDocuments:

    def test_prepare_new_task(self):
        doc = prepare_new_task(
            {"title": "t", "bidsCount": 5, "_id": "x", "id": "y"},
            now=datetime(2025, 1, 1, tzinfo=timezone.utc),
        )

        assert doc == {"title": "t", "bidsCount": 0, "createdAt": "2025-01-01T00:00:00.000Z"}

    def test_build_update_fields_writes_nulls(self):
        fields = build_update_fields({"title": "t", "userEmail": "a@x.com", "bidsCount": 3})

        assert list(fields) == list(ALLOWED_UPDATE_FIELDS)
        assert fields["title"] == "t"
        assert all(fields[k] is None for k in ALLOWED_UPDATE_FIELDS if k != "title")

    def test_format_task_adds_string_id(self):
        oid = ObjectId()

        formatted = format_task({"_id": oid, "title": "t"})

        assert formatted == {"_id": str(oid), "id": str(oid), "title": "t"}

    @pytest.mark.parametrize("stored", [None, 0])
    def test_format_task_defaults_bids(self, stored):
        doc = {"_id": ObjectId(), "bidsCount": stored}

        assert format_task(doc, default_bids=True)["bidsCount"] == 0

    def test_format_task_keeps_bids_without_default(self):
        doc = {"_id": ObjectId(), "bidsCount": 4}

        assert format_task(doc)["bidsCount"] == 4

    def test_format_task_encodes_decimal128(self):
        doc = {"_id": ObjectId(), "price": Decimal128("9.99")}

        assert format_task(doc)["price"] == "9.99"


class TestPayloadValidation:

    def test_create_requires_title_and_owner(self):
        with pytest.raises(TaskValidationError) as exc:
            validate_task_payload({"description": "d"})

        fields = {e["field"] for e in exc.value.errors}
        assert {"title", "userEmail"} <= fields

    def test_create_accepts_unknown_keys(self):
        validate_task_payload({"title": "t", "userEmail": "a@x.com", "skills": ["python"]})

    @pytest.mark.parametrize("price", [10, 10.5, "10.5"])
    def test_numeric_amounts(self, price):
        validate_task_payload({"price": price}, for_update=True)

    @pytest.mark.parametrize("price", ["ten", True, [1]])
    def test_non_numeric_amounts_rejected(self, price):
        with pytest.raises(TaskValidationError):
            validate_task_payload({"price": price}, for_update=True)

    def test_text_fields_must_be_strings(self):
        with pytest.raises(TaskValidationError):
            validate_task_payload({"title": 123}, for_update=True)
