"""Tests for detail view formatting and contact links."""

from __future__ import annotations

import pytest

from job_browser.details import (
    detail_rows,
    format_posted_on,
    format_vacancies,
    phone_link,
    tag_labels,
    whatsapp_link,
)
from job_browser.models import JobRecord


@pytest.mark.parametrize(
    "vacancies, expected",
    [(None, None), (0, None), (-2, None), (1, "1 Opening"), (5, "5 Openings")],
)
def test_format_vacancies(vacancies, expected):
    assert format_vacancies(vacancies) == expected


@pytest.mark.parametrize(
    "created_on, expected",
    [
        (None, None),
        ("", None),
        ("2026-05-01T10:00:00Z", "01 May 2026"),
        ("2026-12-31", "31 Dec 2026"),
        ("2 days ago", "2 days ago"),
    ],
)
def test_format_posted_on(created_on, expected):
    assert format_posted_on(created_on) == expected


def test_detail_rows_in_display_order_skipping_absent():
    record = JobRecord(
        id="x",
        company="Acme",
        salary="₹25,000",
        experience="Fresher",
        vacancies=2,
        created_on="2026-01-15T00:00:00Z",
        shift_timing="Night",
    )

    assert detail_rows(record) == [
        ("Company", "Acme"),
        ("Salary", "₹25,000"),
        ("Experience", "Fresher"),
        ("Vacancies", "2 Openings"),
        ("Posted On", "15 Jan 2026"),
        ("Shift Timing", "Night"),
    ]


def test_detail_rows_of_bare_record_is_empty():
    assert detail_rows(JobRecord(id="x")) == []


def test_contact_links():
    record = JobRecord(id="x", phone="+91 98765-43210")

    assert phone_link(record) == "tel:+91 98765-43210"
    assert whatsapp_link(record) == "https://wa.me/919876543210"


@pytest.mark.parametrize("phone", [None, "call the office"])
def test_whatsapp_link_needs_digits(phone):
    assert whatsapp_link(JobRecord(id="x", phone=phone)) is None


def test_phone_link_absent():
    assert phone_link(JobRecord(id="x")) is None


def test_tag_labels_drop_repeats_keep_order():
    record = JobRecord(id="x", tags=("urgent", "bike", "urgent"))
    assert tag_labels(record) == ["urgent", "bike"]
