import os
from dotenv import load_dotenv
from sqlalchemy.engine import URL

load_dotenv()


class Config:
    """
    Base configuration for the Optout registry.
    Values are read from the environment once, at import time.
    """
    # Database settings (managed MySQL by default)
    DB_HOST = os.getenv('DB_HOST', '')
    DB_PORT = int(os.getenv('DB_PORT') or '25060')
    DB_NAME = os.getenv('DB_NAME', '')
    DB_USER = os.getenv('DB_USER', '')
    DB_PASS = os.getenv('DB_PASS', '')
    DB_SSL_CA_PATH = os.getenv('DB_SSL_CA_PATH', '')

    # Full SQLAlchemy URL, takes precedence over the DB_* parts when set
    DATABASE_URL = os.getenv('DATABASE_URL')

    # Shared secret for the admin viewer
    ADMIN_TOKEN = os.getenv('ADMIN_TOKEN', '')

    # Sites allowed to post unsubscribes cross-origin
    CORS_ORIGINS = [o.strip() for o in os.getenv('CORS_ORIGINS', '*').split(',') if o.strip()]

    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

    # Create the table when the app starts (requests retry if this fails)
    OPTOUT_INIT_DB = os.getenv('OPTOUT_INIT_DB', '1') != '0'

    # Max rows rendered by the admin page; the CSV export is unbounded
    DISPLAY_LIMIT = int(os.getenv('DISPLAY_LIMIT') or '500')

    # Table names
    UNSUBSCRIBES_TABLE = "unsubscribes"

    # Port for local server
    port = int(os.getenv('PORT', '5000'))


REQUIRED_DB_KEYS = ('DB_HOST', 'DB_NAME', 'DB_USER', 'DB_PASS')


def missing_database_settings(config):
    """Return the names of required DB_* settings that are blank."""
    return [key for key in REQUIRED_DB_KEYS if not config.get(key)]


def build_database_uri(config):
    """
    Resolve the SQLAlchemy database URI from a Flask config mapping.

    DATABASE_URL wins when present, otherwise a MySQL URL is assembled from
    the DB_* values. Returns None when the required values are missing.
    """
    if config.get('DATABASE_URL'):
        return config['DATABASE_URL']

    if missing_database_settings(config):
        return None

    url = URL.create(
        'mysql+pymysql',
        username=config['DB_USER'],
        password=config['DB_PASS'],
        host=config['DB_HOST'],
        port=int(config.get('DB_PORT') or 25060),
        database=config['DB_NAME'],
        query={'charset': 'utf8mb4'},
    )
    return url.render_as_string(hide_password=False)


def build_engine_options(config):
    """Engine options for Flask-SQLAlchemy; enables TLS only if the CA file exists."""
    options = {
        'pool_pre_ping': True,
        'pool_recycle': 280,
    }

    ca_path = config.get('DB_SSL_CA_PATH')
    if ca_path and os.path.exists(ca_path):
        # Managed MySQL certs are issued for an internal hostname
        options['connect_args'] = {
            'ssl': {
                'ca': ca_path,
                'check_hostname': False,
            }
        }

    return options
