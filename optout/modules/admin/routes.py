"""
Admin Routes
============

GET /admin/unsubscribes?token=...&start=DD/MM/YYYY&end=DD/MM/YYYY[&download=1]

- HTML mode: total count, newest DISPLAY_LIMIT rows, link to the CSV export
- CSV mode (download=1): every matching row, streamed as an attachment

A bad date range in HTML mode renders the page with the error and runs no
query; in CSV mode it is a plain-text 400.
"""

import csv
import io
import logging

from flask import Response, current_app, render_template, request, stream_with_context, url_for
from sqlalchemy.exc import SQLAlchemyError

from optout.core.errors import InvalidInput, StorageFailure, Unauthorized
from optout.core.logging_service import LoggingService
from optout.modules.unsubscribe.database import (
    EXPORT_COLUMNS,
    count_unsubscribes,
    list_unsubscribes,
    stream_unsubscribes,
)
from . import admin_bp
from .helpers import check_admin_token, export_filename, format_timestamp, resolve_date_range

logger = logging.getLogger(__name__)

NO_CACHE_HEADERS = {
    'Cache-Control': 'no-store, no-cache, must-revalidate, max-age=0',
    'Pragma': 'no-cache',
    'Expires': '0',
}


@admin_bp.app_template_filter('utc_timestamp')
def utc_timestamp_filter(value):
    return format_timestamp(value)


def _require_token():
    token = request.args.get('token', '')
    try:
        check_admin_token(token, current_app.config.get('ADMIN_TOKEN'))
    except Unauthorized:
        LoggingService.log_security_event('Admin token rejected', {'token_supplied': bool(token)})
        raise
    return token


def _csv_line(values):
    buffer = io.StringIO()
    csv.writer(buffer).writerow(values)
    return buffer.getvalue()


def _csv_response(date_range):
    """Stream every matching row as a CSV attachment."""
    try:
        rows = stream_unsubscribes(date_range)
    except SQLAlchemyError as e:
        LoggingService.log_error_with_traceback('admin', e, {'mode': 'csv'})
        raise StorageFailure(f"Database error in export: {type(e).__name__}") from e

    def generate():
        yield _csv_line(EXPORT_COLUMNS)
        exported = 0
        try:
            for row in rows:
                yield _csv_line([row.email, row.site or '', format_timestamp(row.unsubscribed_at)])
                exported += 1
        except SQLAlchemyError as e:
            # Headers are already sent; the truncated body is all we can do
            LoggingService.log_error_with_traceback('admin', e, {'mode': 'csv', 'rows_sent': exported})
            return
        finally:
            rows.close()
        logger.info(f"Exported {exported} unsubscribes")

    filename = export_filename(date_range)
    headers = dict(NO_CACHE_HEADERS)
    headers['Content-Disposition'] = f'attachment; filename="{filename}"'
    response = Response(
        stream_with_context(generate()),
        mimetype='text/csv',
        headers=headers,
    )
    # The body may never be iterated (HEAD, client gone before the first chunk)
    response.call_on_close(rows.close)
    return response


def _export_url(token, date_range, start_raw, end_raw):
    params = {'token': token, 'download': 1}
    if date_range:
        params['start'] = start_raw.strip()
        params['end'] = end_raw.strip()
    return url_for('admin.view_unsubscribes', **params)


@admin_bp.route('', methods=['GET'])
def view_unsubscribes():
    """List or export unsubscribes, optionally filtered to an inclusive UTC date range"""
    token = _require_token()

    download = request.args.get('download') == '1'
    start_raw = request.args.get('start', '')
    end_raw = request.args.get('end', '')
    display_limit = current_app.config.get('DISPLAY_LIMIT', 500)

    try:
        date_range = resolve_date_range(start_raw, end_raw)
    except InvalidInput as e:
        if download:
            raise
        return render_template(
            'admin/unsubscribes.html',
            token=token,
            start=start_raw,
            end=end_raw,
            error=e.message,
            date_range=None,
            rows=[],
            total=None,
            display_limit=display_limit,
            export_url=None,
        ), 400

    current_app.extensions['optout'].ensure_schema()

    if download:
        return _csv_response(date_range)

    try:
        total = count_unsubscribes(date_range)
        rows = list_unsubscribes(date_range, limit=display_limit)
    except SQLAlchemyError as e:
        LoggingService.log_error_with_traceback('admin', e, {'mode': 'html'})
        raise StorageFailure(f"Database error in admin view: {type(e).__name__}") from e

    return render_template(
        'admin/unsubscribes.html',
        token=token,
        start=start_raw,
        end=end_raw,
        error=None,
        date_range=date_range,
        rows=rows,
        total=total,
        display_limit=display_limit,
        export_url=_export_url(token, date_range, start_raw, end_raw),
    )
