"""
Registry Errors
===============

Every failure a handler can report, each with its HTTP status and the
message that is safe to send back to the caller.
"""

import logging
from flask import make_response
from werkzeug.exceptions import MethodNotAllowed as WerkzeugMethodNotAllowed

logger = logging.getLogger(__name__)


class RegistryError(Exception):
    """Base class for errors rendered as plain-text responses."""
    status_code = 500
    public_message = 'Internal Server Error'

    def __init__(self, message=None, detail=None):
        self.message = message or self.public_message
        # Server-side only, never rendered
        self.detail = detail
        super().__init__(self.message)


class MethodNotAllowed(RegistryError):
    status_code = 405
    public_message = 'Method Not Allowed'


class InvalidInput(RegistryError):
    status_code = 400
    public_message = 'Invalid input'


class Unauthorized(RegistryError):
    status_code = 403
    public_message = 'Forbidden'


class Misconfigured(RegistryError):
    public_message = 'Server misconfiguration'

    def __init__(self, detail=None):
        super().__init__(self.public_message, detail)


class StorageFailure(RegistryError):
    public_message = 'Internal Server Error'

    def __init__(self, detail=None):
        super().__init__(self.public_message, detail)


def text_response(status_code, message):
    response = make_response(message, status_code)
    response.headers['Content-Type'] = 'text/plain; charset=utf-8'
    return response


def register_error_handlers(app):
    """Render registry errors (and werkzeug's 405) as plain text."""

    @app.errorhandler(RegistryError)
    def handle_registry_error(error):
        if error.status_code >= 500:
            logger.error(f"{type(error).__name__}: {error.detail or error.message}")
        return text_response(error.status_code, error.message)

    @app.errorhandler(WerkzeugMethodNotAllowed)
    def handle_method_not_allowed(error):
        response = text_response(405, MethodNotAllowed.public_message)
        if error.valid_methods:
            response.headers['Allow'] = ', '.join(sorted(error.valid_methods))
        return response
