"""
Unsubscribe Routes
==================

Provides:
- POST /unsubscribe -- record an opt-out (form-encoded or JSON: email, site)

Any other method gets a plain-text 405 from the app-level error handler.
"""

import re
from flask import current_app, request
from sqlalchemy.exc import SQLAlchemyError

from optout.core.errors import InvalidInput, StorageFailure, text_response
from optout.core.logging_service import LoggingService
from . import unsubscribe_bp
from .database import record_unsubscribe
from .models import EMAIL_MAX_LENGTH, SITE_MAX_LENGTH

# Dot-atom local part (RFC 5322 atext): no consecutive, leading or trailing dots
EMAIL_REGEX = re.compile(
    r"^[A-Za-z0-9!#$%&'*+/=?^_`{|}~-]+(\.[A-Za-z0-9!#$%&'*+/=?^_`{|}~-]+)*"
    r"@[a-zA-Z0-9-]+(\.[a-zA-Z0-9-]+)*\.[a-zA-Z]{2,}$"
)

LOCAL_PART_MAX_LENGTH = 64

CONFIRMATION_MESSAGE = 'You have been unsubscribed.'


def validate_email(email):
    """Validate email format"""
    if not email or len(email) > EMAIL_MAX_LENGTH:
        return False
    if EMAIL_REGEX.match(email) is None:
        return False
    return len(email.rsplit('@', 1)[0]) <= LOCAL_PART_MAX_LENGTH


def clean_site(site):
    """Trim the site label; blank becomes None, long labels are cut to the column size."""
    site = (site or '').strip()
    return site[:SITE_MAX_LENGTH] or None


def _request_fields():
    """Form fields, falling back to a JSON object body."""
    if request.form:
        return request.form
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _str_field(data, name):
    value = data.get(name, '')
    return value if isinstance(value, str) else ''


@unsubscribe_bp.route('', methods=['POST'])
def unsubscribe():
    """Record that an email has opted out for a site"""
    data = _request_fields()
    email = _str_field(data, 'email').strip()
    site = clean_site(_str_field(data, 'site'))

    if not validate_email(email):
        raise InvalidInput('Invalid email address')

    registry = current_app.extensions['optout']
    registry.ensure_schema()

    try:
        record_unsubscribe(email, site)
    except SQLAlchemyError as e:
        LoggingService.log_error_with_traceback('unsubscribe', e, {'email': email, 'site': site})
        raise StorageFailure(f"Database error in unsubscribe: {type(e).__name__}") from e

    LoggingService.info('unsubscribe', f"Unsubscribed: {email}", {'site': site})
    return text_response(200, CONFIRMATION_MESSAGE)
