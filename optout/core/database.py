import logging
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import text

logger = logging.getLogger(__name__)

db = SQLAlchemy()


class Database:

    @staticmethod
    def init_tables():
        """
        Create every registered table if it does not exist yet.
        Must run inside an application context.
        """
        # Import so the models register on db.metadata
        from optout.modules.unsubscribe import models  # noqa: F401

        db.create_all()
        logger.info("Database tables created/verified successfully")

    @staticmethod
    def ping():
        """Round-trip a trivial query; raises on connection failure."""
        with db.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True

    @staticmethod
    def dialect_name():
        return db.engine.dialect.name
