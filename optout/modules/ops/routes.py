"""
Ops Routes
==========

Public health endpoint. Reports database reachability only, never error text.
"""

from flask import current_app, jsonify

from optout.core.database import Database
from optout.core.logging_service import LoggingService
from . import ops_health_bp


def _check_database():
    registry = current_app.extensions['optout']
    if not registry.database_configured:
        return 'misconfigured'
    try:
        Database.ping()
    except Exception as e:
        LoggingService.log_error_with_traceback('ops', e)
        return 'unreachable'
    return 'ok'


@ops_health_bp.route('', methods=['GET'])
def health():
    """Health check for uptime monitors: 200 when the database answers, 503 otherwise"""
    database = _check_database()
    status = 'ok' if database == 'ok' else 'critical'
    return jsonify({
        'status': status,
        'checks': {'database': database},
    }), 200 if status == 'ok' else 503
