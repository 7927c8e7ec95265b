"""
Custom exceptions for the sync pipeline with structured error context.

Component-level failures (one source, one record) are absorbed by the
orchestrator and recorded as diagnostics. Table-level failures are returned
as result objects. Exceptions escaping to callers are reserved for
configuration mistakes such as an unknown schema or source mapping.

Exception Hierarchy:
    SyncException (base)
    ├── ConfigurationError
    │   ├── UnknownSchemaError
    │   ├── UnknownSourceMappingError
    │   └── SchemaDefinitionError
    ├── FetchError
    │   ├── HttpFailureError
    │   ├── ResponseParseError
    │   └── UnknownServiceError
    ├── ValidationFailure
    ├── NoDataRetrievedError
    └── PersistenceError
"""

from typing import Optional, Dict, Any, List
from datetime import datetime, timezone


class SyncException(Exception):
    """
    Base exception for all sync-related errors.

    Attributes:
        message: Human-readable error message
        context: Additional context information (table, source, url, etc.)
        original_exception: The original exception that was caught (if any)
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        self.message = message
        self.context = context or {}
        self.original_exception = original_exception
        self.timestamp = datetime.now(timezone.utc)

        super().__init__(message)
        if original_exception:
            self.__cause__ = original_exception

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "original_error": str(self.original_exception) if self.original_exception else None
        }


# ============================================================================
# Configuration Errors
# ============================================================================

class ConfigurationError(SyncException):
    """Base exception for programming / configuration mistakes."""
    pass


class UnknownSchemaError(ConfigurationError):
    """Raised when a schema name is not registered."""

    def __init__(self, schema_name: str):
        super().__init__(
            f"Unknown schema: {schema_name}",
            context={"schema": schema_name}
        )
        self.schema_name = schema_name


class UnknownSourceMappingError(ConfigurationError):
    """Raised when a schema has no mapping for the requested source."""

    def __init__(self, schema_name: str, source_id: str):
        super().__init__(
            f"No mapping for {source_id} in {schema_name}",
            context={"schema": schema_name, "source": source_id}
        )
        self.schema_name = schema_name
        self.source_id = source_id


class SchemaDefinitionError(ConfigurationError):
    """Raised at registry build time when a schema breaks its invariants."""
    pass


# ============================================================================
# Fetch Errors
# ============================================================================

class FetchError(SyncException):
    """Base exception for source API failures."""
    pass


class HttpFailureError(FetchError):
    """
    Raised when a request still fails after all retry attempts.

    Context should include:
        - url: The URL that failed
        - attempts: Number of attempts made
        - last_error: Message of the last underlying error
    """

    def __init__(
        self,
        url: str,
        attempts: int,
        last_error: Exception
    ):
        super().__init__(
            f"Failed after {attempts} attempts: {last_error}",
            context={"url": url, "attempts": attempts, "last_error": str(last_error)},
            original_exception=last_error
        )
        self.attempts = attempts


class ResponseParseError(FetchError):
    """Raised when a successful response body is not valid JSON. Never retried."""
    pass


class UnknownServiceError(FetchError):
    """Raised when a request targets a service with no configuration."""
    pass


# ============================================================================
# Record / Table Errors
# ============================================================================

class ValidationFailure(SyncException):
    """
    A mapped record broke its schema rules.

    The orchestrator logs it and drops the record; it never fails a table.
    """

    def __init__(self, schema_name: str, errors: List[str], record_id: Any = None):
        super().__init__(
            f"Validation failed for {schema_name} item {record_id}: {'; '.join(errors)}",
            context={"schema": schema_name, "record_id": record_id, "errors": errors}
        )
        self.errors = errors


class NoDataRetrievedError(SyncException):
    """Raised when every configured source of a table failed."""

    def __init__(self, table: str, source_errors: Optional[List[str]] = None):
        super().__init__(
            "No API data retrieved",
            context={"table": table, "source_errors": source_errors or []}
        )


class PersistenceError(SyncException):
    """
    Raised when writing to the persistence backend fails.

    Context should include:
        - collection: Target collection name
        - operation: Operation that failed (read, write)
    """
    pass
