"""
Unsubscribe Models
==================

The single persisted entity: one row per opted-out email address.
"""

from sqlalchemy.dialects import mysql

from optout.core.config import Config
from optout.core.database import db

EMAIL_MAX_LENGTH = 320
SITE_MAX_LENGTH = 100

# BIGINT UNSIGNED on MySQL; SQLite only auto-increments an INTEGER primary key
_id_type = (
    db.BigInteger()
    .with_variant(mysql.BIGINT(unsigned=True), 'mysql')
    .with_variant(db.Integer(), 'sqlite')
)


class Unsubscribe(db.Model):
    __tablename__ = Config.UNSUBSCRIBES_TABLE
    __table_args__ = (
        db.UniqueConstraint('email', name='uniq_email'),
        {'mysql_engine': 'InnoDB', 'mysql_charset': 'utf8mb4'},
    )

    id = db.Column(_id_type, primary_key=True, autoincrement=True)
    email = db.Column(db.String(EMAIL_MAX_LENGTH), nullable=False)
    site = db.Column(db.String(SITE_MAX_LENGTH), nullable=True)
    # Naive UTC, written explicitly by record_unsubscribe()
    unsubscribed_at = db.Column(db.DateTime, nullable=False, server_default=db.func.current_timestamp())

    def __repr__(self):
        return f"<Unsubscribe {self.email} site={self.site!r}>"
