"""
ZE News Core
============

Core utilities and shared functionality for ZE News modules.
"""

from .config import Config
from .database import Database
from .errors import register_error_handlers
from .logging_service import LoggingService

__all__ = ['Config', 'Database', 'LoggingService', 'register_error_handlers']
