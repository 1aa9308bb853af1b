"""
Admin Helpers
=============

Token check and date-range parsing for the admin viewer/exporter.
"""

import hmac
from dataclasses import dataclass
from datetime import datetime, time

from optout.core.errors import InvalidInput, Misconfigured, Unauthorized

DATE_INPUT_FORMAT = '%d/%m/%Y'
FILENAME_STAMP_FORMAT = '%Y-%m-%d_%H-%M-%S'
DISPLAY_FORMAT = '%Y-%m-%d %H:%M:%S'

END_OF_DAY = time(23, 59, 59)


@dataclass(frozen=True)
class DateRange:
    """Inclusive UTC range; both bounds are naive datetimes in UTC."""
    start: datetime
    end: datetime

    def filename_label(self):
        return f"{self.start.strftime(FILENAME_STAMP_FORMAT)}_to_{self.end.strftime(FILENAME_STAMP_FORMAT)}"


def check_admin_token(provided, configured):
    """
    Constant-time comparison of the caller's token with the configured secret.

    Raises Misconfigured if no secret is set and Unauthorized on mismatch.
    """
    if not configured:
        raise Misconfigured('ADMIN_TOKEN is not set')

    provided = provided or ''
    if not hmac.compare_digest(provided.encode('utf-8'), configured.encode('utf-8')):
        raise Unauthorized()


def parse_day(value, field):
    """Parse a DD/MM/YYYY calendar date; the error names the offending field."""
    try:
        return datetime.strptime(value, DATE_INPUT_FORMAT).date()
    except ValueError:
        raise InvalidInput(f"Invalid {field} date: use DD/MM/YYYY with a real calendar date") from None


def resolve_date_range(start_raw, end_raw):
    """
    Turn optional start/end query values into a DateRange, or None when both are absent.

    Blank values count as absent. Supplying only one of the two is an error,
    never a half-open filter.
    """
    start_raw = (start_raw or '').strip()
    end_raw = (end_raw or '').strip()

    if not start_raw and not end_raw:
        return None
    if not start_raw or not end_raw:
        raise InvalidInput('Please provide both start and end dates')

    start = datetime.combine(parse_day(start_raw, 'start'), time.min)
    end = datetime.combine(parse_day(end_raw, 'end'), END_OF_DAY)

    if end < start:
        raise InvalidInput('End date must be on or after the start date')

    return DateRange(start=start, end=end)


def export_filename(date_range):
    """CSV attachment name encoding the active range (or _all) plus a UTC marker."""
    label = date_range.filename_label() if date_range else 'all'
    return f"unsubscribes_{label}_UTC.csv"


def format_timestamp(value):
    """Render a stored timestamp for CSV/HTML; tolerates drivers that return strings."""
    if value is None:
        return ''
    if isinstance(value, datetime):
        return value.strftime(DISPLAY_FORMAT)
    return str(value)
