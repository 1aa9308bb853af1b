"""
Unsubscribe Recorder Tests
==========================

POST /unsubscribe: validation, idempotent upsert, safe error responses.
"""

import logging
from datetime import datetime
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from optout.modules.unsubscribe.database import record_unsubscribe, utcnow
from optout.modules.unsubscribe.routes import clean_site, validate_email


# ---------------------------------------------------------------------------
# Happy path
# ---------------------------------------------------------------------------

def test_unsubscribe_records_row(client, stored_rows):
    before = utcnow()
    response = client.post("/unsubscribe", data={"email": "a@example.com", "site": "blog"})

    assert response.status_code == 200
    assert response.get_data(as_text=True) == "You have been unsubscribed."
    assert response.headers["Content-Type"].startswith("text/plain")

    rows = stored_rows()
    assert len(rows) == 1
    email, site, unsubscribed_at = rows[0]
    assert (email, site) == ("a@example.com", "blog")
    assert unsubscribed_at >= before.replace(microsecond=0)


def test_repeat_unsubscribe_updates_site_and_timestamp(client, stored_rows):
    client.post("/unsubscribe", data={"email": "a@example.com", "site": "blog"})
    first_at = stored_rows()[0][2]

    response = client.post("/unsubscribe", data={"email": "a@example.com", "site": "news"})
    assert response.status_code == 200

    rows = stored_rows()
    assert len(rows) == 1
    assert rows[0][1] == "news"
    assert rows[0][2] >= first_at


def test_email_is_trimmed_but_case_preserved(client, stored_rows):
    response = client.post("/unsubscribe", data={"email": "  Mixed.Case@Example.COM \n"})

    assert response.status_code == 200
    assert stored_rows()[0][0] == "Mixed.Case@Example.COM"


def test_site_is_optional(client, stored_rows):
    response = client.post("/unsubscribe", data={"email": "nosite@example.com"})

    assert response.status_code == 200
    assert stored_rows()[0][1] is None


def test_json_body_is_accepted(client, stored_rows):
    response = client.post("/unsubscribe", json={"email": "json@example.com", "site": "shop"})

    assert response.status_code == 200
    assert stored_rows()[0][:2] == ("json@example.com", "shop")


def test_long_site_is_truncated(client, stored_rows):
    client.post("/unsubscribe", data={"email": "long@example.com", "site": "x" * 250})
    assert stored_rows()[0][1] == "x" * 100


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

INVALID_EMAILS = [
    "",
    "   ",
    "plainaddress",
    "@example.com",
    "user@",
    "user@example",
    "user..dots@example.com",
    ".leading@example.com",
    "trailing.@example.com",
    "two@@example.com",
    "spaces in@example.com",
    "a" * 320 + "@example.com",
    "a" * 65 + "@example.com",
]


VALID_UNUSUAL_EMAILS = [
    "o'brien@example.com",
    "a!b@example.com",
    "first.last+tag@example.com",
    "x#y$z%w&v@example.com",
    "{curly}|pipe~tilde@example.com",
    "slash/eq=q?^`@example.com",
]


@pytest.mark.parametrize("email", VALID_UNUSUAL_EMAILS)
def test_unusual_but_valid_local_parts_accepted(client, stored_rows, email):
    response = client.post("/unsubscribe", data={"email": email})

    assert response.status_code == 200
    assert stored_rows()[0][0] == email


@pytest.mark.parametrize("email", INVALID_EMAILS)
def test_invalid_email_rejected_without_write(client, stored_rows, email):
    response = client.post("/unsubscribe", data={"email": email, "site": "blog"})

    assert response.status_code == 400
    assert response.get_data(as_text=True) == "Invalid email address"
    assert stored_rows() == []


def test_missing_email_field_rejected(client, stored_rows):
    response = client.post("/unsubscribe", data={"site": "blog"})
    assert response.status_code == 400
    assert stored_rows() == []


def test_non_string_json_email_rejected(client, stored_rows):
    response = client.post("/unsubscribe", json={"email": ["a@example.com"]})
    assert response.status_code == 400
    assert stored_rows() == []


@pytest.mark.parametrize("method", ["get", "put", "delete"])
def test_other_methods_not_allowed(client, stored_rows, method):
    response = getattr(client, method)("/unsubscribe", data={"email": "a@example.com"})

    assert response.status_code == 405
    assert response.get_data(as_text=True) == "Method Not Allowed"
    assert stored_rows() == []


def test_validate_email_helper():
    assert validate_email("first.last+tag@sub.example.co.uk")
    assert validate_email("a" * 64 + "@example.com")
    assert not validate_email(None)
    assert not validate_email("no-at-sign.example.com")


def test_clean_site_helper():
    assert clean_site("  blog ") == "blog"
    assert clean_site("   ") is None
    assert clean_site(None) is None


# ---------------------------------------------------------------------------
# Storage failures never leak details
# ---------------------------------------------------------------------------

def test_storage_failure_returns_generic_500(client):
    error = OperationalError(
        "INSERT INTO unsubscribes ...", {}, Exception("Access denied for user 'optout'@'db.internal' password=hunter2")
    )
    with patch("optout.modules.unsubscribe.routes.record_unsubscribe", side_effect=error):
        response = client.post("/unsubscribe", data={"email": "a@example.com"})

    body = response.get_data(as_text=True)
    assert response.status_code == 500
    assert body == "Internal Server Error"
    assert "hunter2" not in body
    assert "db.internal" not in body


def test_unsupported_dialect_is_plain_text_misconfiguration(client, stored_rows):
    with patch("optout.modules.unsubscribe.database.Database.dialect_name", return_value="oracle"):
        response = client.post("/unsubscribe", data={"email": "a@example.com"})

    assert response.status_code == 500
    assert response.get_data(as_text=True) == "Server misconfiguration"
    assert response.headers["Content-Type"].startswith("text/plain")
    assert stored_rows() == []


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

def test_unsubscribe_is_logged_once(client, caplog):
    caplog.set_level(logging.INFO)
    client.post("/unsubscribe", data={"email": "once@example.com", "site": "blog"})

    mentions = [r for r in caplog.records if "once@example.com" in r.getMessage()]
    assert len(mentions) == 1


# ---------------------------------------------------------------------------
# Store helper
# ---------------------------------------------------------------------------

def test_posted_timestamp_has_whole_seconds(client, stored_rows):
    client.post("/unsubscribe", data={"email": "a@example.com"})
    assert stored_rows()[0][2].microsecond == 0


def test_record_unsubscribe_drops_fractional_seconds(app, stored_rows):
    with app.app_context():
        written = record_unsubscribe("late@example.com", None, now=datetime(2025, 12, 20, 23, 59, 59, 500000))

    assert written == datetime(2025, 12, 20, 23, 59, 59)
    assert stored_rows()[0][2] == datetime(2025, 12, 20, 23, 59, 59)


def test_utcnow_has_whole_seconds():
    assert utcnow().microsecond == 0
    assert utcnow().tzinfo is None


def test_record_unsubscribe_uses_given_time(app, stored_rows):
    when = datetime(2025, 12, 15, 8, 30, 0)
    with app.app_context():
        assert record_unsubscribe("helper@example.com", "blog", now=when) == when
        record_unsubscribe("helper@example.com", "news", now=datetime(2025, 12, 16, 9, 0, 0))

    assert stored_rows() == [("helper@example.com", "news", datetime(2025, 12, 16, 9, 0, 0))]
