"""
Optout Core
===========

Core utilities and shared functionality for Optout modules.
"""

from .config import Config
from .database import Database, db
from .errors import (
    RegistryError,
    MethodNotAllowed,
    InvalidInput,
    Unauthorized,
    Misconfigured,
    StorageFailure,
)
from .logging_service import LoggingService, logger

__all__ = [
    'Config', 'Database', 'db', 'LoggingService', 'logger',
    'RegistryError', 'MethodNotAllowed', 'InvalidInput', 'Unauthorized',
    'Misconfigured', 'StorageFailure',
]
