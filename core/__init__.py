"""
Core utilities and configuration for the collection sync service.

Modules:
    config: Application configuration and environment variable management
    database: Async engine and session factory for the SQL backend
    exceptions: Custom exception hierarchy for error handling
    logging: Logging configuration and utilities

Usage:
    from core.config import settings
    from core.exceptions import HttpFailureError, UnknownSchemaError
    from core.logging import setup_logging
"""

__all__ = [
    "settings",
    "setup_logging",
    "create_engine",
    "create_session_maker",
    # Exceptions
    "SyncException",
    "ConfigurationError",
    "UnknownSchemaError",
    "UnknownSourceMappingError",
    "SchemaDefinitionError",
    "FetchError",
    "HttpFailureError",
    "ResponseParseError",
    "UnknownServiceError",
    "ValidationFailure",
    "NoDataRetrievedError",
    "PersistenceError",
]
