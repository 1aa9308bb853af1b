"""
Admin Module
============

Shared-token protected view of the unsubscribe registry.

Features:
- HTML table of the newest unsubscribes (capped at DISPLAY_LIMIT rows)
- Optional inclusive UTC date filter (DD/MM/YYYY start and end)
- Full CSV export of the filtered list (download=1)

Usage:
    from optout.modules.admin import admin_bp

    app.register_blueprint(admin_bp)  # Registers at /admin/unsubscribes
"""

from flask import Blueprint
import os

_template_dir = os.path.join(os.path.dirname(__file__), 'templates')

admin_bp = Blueprint('admin', __name__,
                     url_prefix='/admin/unsubscribes',
                     template_folder=_template_dir)

from . import routes
