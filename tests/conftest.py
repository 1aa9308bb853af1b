"""
Shared fixtures: a fresh Flask app per test backed by a temporary SQLite file.

NOTE: pytest is listed under extras_require["dev"] in setup.py.
Install with: pip install -e ".[dev]"
"""

import os
import shutil
import tempfile

import pytest
from sqlalchemy import select

from optout import create_app
from optout.core.database import db
from optout.modules.unsubscribe.database import record_unsubscribe
from optout.modules.unsubscribe.models import Unsubscribe

ADMIN_TOKEN = "test-admin-token"


def make_config(db_dir, **overrides):
    config = {
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": "sqlite:///" + os.path.join(db_dir, "optout.db"),
        "ADMIN_TOKEN": ADMIN_TOKEN,
        "CORS_ORIGINS": ["*"],
    }
    config.update(overrides)
    return config


@pytest.fixture
def tmp_db_dir():
    """Create a temporary directory for test databases, cleaned up after."""
    d = tempfile.mkdtemp(prefix="optout-test-")
    yield d
    shutil.rmtree(d, ignore_errors=True)


@pytest.fixture
def app(tmp_db_dir):
    """Fully initialised app with its table already created."""
    return create_app(make_config(tmp_db_dir))


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def seed(app):
    """Insert rows with explicit timestamps: seed("a@example.com", "blog", datetime(...))."""
    def _seed(email, site, when):
        with app.app_context():
            record_unsubscribe(email, site, now=when)
    return _seed


@pytest.fixture
def stored_rows(app):
    """Return every stored row as (email, site, unsubscribed_at), newest first."""
    def _rows():
        with app.app_context():
            stmt = select(Unsubscribe.email, Unsubscribe.site, Unsubscribe.unsubscribed_at).order_by(
                Unsubscribe.unsubscribed_at.desc()
            )
            return [tuple(row) for row in db.session.execute(stmt).all()]
    return _rows
