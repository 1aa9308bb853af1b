"""
Unsubscribe Module
==================

Provides:
- POST /unsubscribe -- record an opt-out for an email (optional site label)

Exported helpers (modules/unsubscribe/database.py):
- record_unsubscribe(email, site)
- count_unsubscribes(date_range=None)
- list_unsubscribes(date_range=None, limit=500)
- stream_unsubscribes(date_range=None)
"""

from flask import Blueprint

unsubscribe_bp = Blueprint(
    'unsubscribe',
    __name__,
    url_prefix='/unsubscribe'
)

from . import routes
