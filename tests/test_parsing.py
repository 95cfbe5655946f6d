"""Tests for listing payload parsing and record serialization."""

from __future__ import annotations

import logging

import pytest

from job_browser.errors import ContractViolation
from job_browser.models import JobRecord
from job_browser.parsing import (
    parse_job_record,
    parse_page_payload,
    record_from_json,
    record_to_json,
)


class TestParseJobRecord:
    def test_full_listing(self):
        item = {
            "id": 42,
            "title": "  Delivery Partner ",
            "company_name": "QuickShip",
            "location": "Mumbai",
            "salary": "₹18,000 - ₹22,000",
            "experience": "Fresher",
            "jobType": "Full Time",
            "qualification": "10th Pass",
            "job_category": "Logistics",
            "job_role": "Rider",
            "description": "Deliver parcels",
            "phone": "+91 90000 00000",
            "vacancies": "12",
            "createdOn": "2026-05-01T10:00:00Z",
            "shift_timing": "Day",
            "tags": [{"value": "bike"}, "urgent", {"value": ""}, 7],
        }

        record = parse_job_record(item)

        assert record == JobRecord(
            id="42",
            title="Delivery Partner",
            company="QuickShip",
            location="Mumbai",
            salary="₹18,000 - ₹22,000",
            experience="Fresher",
            job_type="Full Time",
            qualification="10th Pass",
            category="Logistics",
            role="Rider",
            description="Deliver parcels",
            phone="+91 90000 00000",
            vacancies=12,
            created_on="2026-05-01T10:00:00Z",
            shift_timing="Day",
            tags=("bike", "urgent", "7"),
        )

    def test_first_alias_wins(self):
        record = parse_job_record({"id": "x", "company": "Direct", "company_name": "Alias"})
        assert record.company == "Direct"

    def test_fallback_alias_used_when_primary_null(self):
        record = parse_job_record({"id": "x", "jobType": None, "job_type": "Contract"})
        assert record.job_type == "Contract"

    @pytest.mark.parametrize("key", ["id", "_id", "job_id"])
    def test_identifier_keys(self, key):
        assert parse_job_record({key: "abc"}).id == "abc"

    @pytest.mark.parametrize("item", [{}, {"id": ""}, {"id": True}, {"id": None}, "str", None])
    def test_unusable_identifier_returns_none(self, item):
        assert parse_job_record(item) is None

    def test_wrong_typed_fields_become_absent(self):
        record = parse_job_record(
            {"id": "x", "title": ["list"], "salary": 25000, "vacancies": True, "tags": "a,b"}
        )

        assert record.title is None
        assert record.salary == "25000"
        assert record.vacancies is None
        assert record.tags == ()


class TestParsePagePayload:
    def test_data_envelope(self):
        records = parse_page_payload({"data": [{"id": 1}, {"id": 2}]}, page=1)
        assert [r.id for r in records] == ["1", "2"]

    def test_bare_list(self):
        assert [r.id for r in parse_page_payload([{"id": "a"}])] == ["a"]

    def test_empty_page(self):
        assert parse_page_payload({"data": []}) == []

    def test_entries_without_id_are_skipped_with_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="job_browser.parsing"):
            records = parse_page_payload({"data": [{"id": "a"}, {"title": "no id"}, 5]}, page=3)

        assert [r.id for r in records] == ["a"]
        assert "Skipped 2 listing(s)" in caplog.text

    @pytest.mark.parametrize("payload", [None, "text", 12, {"jobs": []}, {"data": {"id": 1}}])
    def test_wrong_shape_is_contract_violation(self, payload):
        with pytest.raises(ContractViolation) as excinfo:
            parse_page_payload(payload, page=4)
        assert excinfo.value.page == 4


class TestRecordJson:
    def test_round_trip_keeps_tags_and_counts(self):
        record = JobRecord(id="r1", title="Cook", vacancies=3, tags=("veg", "night"))
        assert record_from_json(record_to_json(record)) == record

    def test_non_ascii_is_kept_readable(self):
        assert "₹" in record_to_json(JobRecord(id="r1", salary="₹10,000"))

    @pytest.mark.parametrize("payload", ["{broken", "[]", '{"title": "no id"}', None])
    def test_unreadable_payload_returns_none(self, payload):
        assert record_from_json(payload) is None

    def test_unknown_keys_are_ignored(self):
        record = record_from_json('{"id": "r1", "legacy_field": 1, "title": "Cook"}')
        assert record == JobRecord(id="r1", title="Cook")
