"""
Optout Flask extension and application factory.

    from optout import create_app
    app = create_app()

or, inside an existing app:

    from optout import Optout
    Optout(app)
"""

import logging

import click
from flask import Flask
from flask_cors import CORS
from sqlalchemy.exc import SQLAlchemyError

from .core.config import Config, build_database_uri, build_engine_options, missing_database_settings
from .core.database import Database, db
from .core.errors import Misconfigured, RegistryError, StorageFailure, register_error_handlers
from .core.logging_service import LoggingService, configure_logging
from .modules.admin import admin_bp
from .modules.ops import ops_health_bp
from .modules.unsubscribe import unsubscribe_bp

logger = logging.getLogger(__name__)

BLUEPRINTS = (unsubscribe_bp, admin_bp, ops_health_bp)


class Optout:
    """Wires configuration, database, blueprints and error handling onto a Flask app."""

    def __init__(self, app=None):
        self.database_configured = False
        self.schema_ready = False
        self._registered_modules = []
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        configure_logging(app)

        uri = app.config.get('SQLALCHEMY_DATABASE_URI') or build_database_uri(app.config)
        if uri:
            app.config['SQLALCHEMY_DATABASE_URI'] = uri
            app.config.setdefault('SQLALCHEMY_ENGINE_OPTIONS', build_engine_options(app.config))
            db.init_app(app)
            self.database_configured = True
        else:
            missing = ', '.join(missing_database_settings(app.config))
            logger.error(f"Database environment variables missing: {missing}")

        CORS(app, resources={
            r'/unsubscribe': {
                'origins': app.config.get('CORS_ORIGINS', ['*']),
                'methods': ['POST'],
            }
        })

        register_error_handlers(app)
        self._register_blueprints(app)
        self._register_cli(app)

        app.extensions['optout'] = self

        if self.database_configured and app.config.get('OPTOUT_INIT_DB', True):
            with app.app_context():
                try:
                    self.ensure_schema()
                except StorageFailure:
                    # Already logged; requests retry creation before touching the table
                    logger.warning("Schema creation deferred to first request")

    def _register_blueprints(self, app):
        for blueprint in BLUEPRINTS:
            app.register_blueprint(blueprint)
            self._registered_modules.append(blueprint.name)

    def _register_cli(self, app):
        @app.cli.command('init-db')
        def init_db_command():
            """Create the unsubscribes table if it does not exist."""
            try:
                self.ensure_schema()
            except RegistryError as e:
                raise click.ClickException(e.detail or e.message)
            click.echo('Unsubscribes table created/verified.')

    def get_registered_modules(self):
        return list(self._registered_modules)

    def ensure_schema(self):
        """
        Create the table once per process. Needs an app context.

        Raises Misconfigured when no database is configured and StorageFailure
        when the database cannot be reached or the DDL fails.
        """
        if not self.database_configured:
            raise Misconfigured('Database environment variables missing')
        if self.schema_ready:
            return

        try:
            Database.init_tables()
        except SQLAlchemyError as e:
            LoggingService.log_error_with_traceback('database', e)
            raise StorageFailure(f"Schema creation failed: {type(e).__name__}") from e

        self.schema_ready = True


def create_app(config=None):
    """
    Build the application. Settings come from Config (environment) and are
    overridden by the optional config mapping, e.g. in tests.
    """
    app = Flask('optout')
    app.config.from_object(Config)
    if config:
        app.config.update(config)

    Optout(app)
    return app
