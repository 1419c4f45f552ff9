"""
Unit tests for payload parsing and the Fuse request body.
"""

from datetime import datetime, timezone

import pytest

from fuse_relay.errors import DataError
from fuse_relay.models import Record, RecordStatus
from fuse_relay.parsing import parse_new_record_flag, parse_source_payload, to_submission

CAPTURED = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class TestNewRecordFlag:
    @pytest.mark.parametrize(
        "body, expected",
        [
            ("true", True),
            ("false", False),
            (" True \n", True),
            ('{"value": true}', True),
            ('{"value": false}', False),
            ('"false"', False),
            ("1", True),
            ("0", False),
        ],
    )
    def test_accepted_forms(self, body, expected):
        assert parse_new_record_flag(body) is expected

    @pytest.mark.parametrize("body", [None, "", "   ", "maybe", '{"other": true}', "[]", "2"])
    def test_malformed_is_error_not_false(self, body):
        with pytest.raises(DataError):
            parse_new_record_flag(body)


class TestSourcePayload:
    def test_builds_pending_record(self):
        record = parse_source_payload('{"pier": "P1", "tonnage": 10.5}', CAPTURED)

        assert record.status is RecordStatus.PENDING
        assert record.id is None
        assert record.captured_at == CAPTURED
        assert record.payload == {"pier": "P1", "tonnage": 10.5}

    @pytest.mark.parametrize("raw", [None, "", "  ", "{}", "[1, 2]", "null", "<html>"])
    def test_rejects_empty_or_non_object(self, raw):
        with pytest.raises(DataError):
            parse_source_payload(raw, CAPTURED)

    def test_rejects_naive_timestamp(self):
        with pytest.raises(DataError):
            parse_source_payload('{"a": 1}', datetime(2026, 3, 1, 12, 0))


class TestSubmission:
    def test_body_uses_wire_names(self):
        record = Record(id=42, captured_at=CAPTURED, payload={"pier": "P1"})
        body = to_submission(record, host_name="clp-01", server_name="srv").to_json()

        assert body == {
            "recordId": 42,
            "capturedAt": "2026-03-01T12:00:00Z",
            "hostName": "clp-01",
            "serverName": "srv",
            "data": {"pier": "P1"},
        }

    def test_unsaved_record_rejected(self):
        record = Record(captured_at=CAPTURED, payload={"pier": "P1"})
        with pytest.raises(DataError):
            to_submission(record, host_name="h", server_name="s")

    def test_record_is_immutable(self):
        record = Record(id=1, captured_at=CAPTURED, payload={"pier": "P1"})
        with pytest.raises(Exception):
            record.status = RecordStatus.DONE  # type: ignore
