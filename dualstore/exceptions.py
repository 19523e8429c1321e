"""
Custom exceptions for dualstore.

Both adapters raise these exceptions so callers can handle local and
remote failures the same way.
"""


class DualStoreError(Exception):
    """Base exception for all dualstore errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(DualStoreError):
    """Raised when user input fails validation, before any adapter call."""

    def __init__(self, field: str, reason: str, value: str | None = None):
        details = {"field": field, "reason": reason}
        if value is not None:
            details["value"] = value
        super().__init__(f"Validation failed for {field}: {reason}", details)
        self.field = field
        self.reason = reason
        self.value = value


class AdapterError(DualStoreError):
    """Raised when a storage engine or network call fails.

    The message reads ``could not <operation>: <cause>`` so it can be shown
    to the end user as-is.
    """

    def __init__(self, operation: str, cause: Exception | str | None = None):
        details = {"operation": operation}
        message = f"could not {operation}"
        if cause is not None:
            details["cause"] = str(cause)
            message += f": {cause}"
        super().__init__(message, details)
        self.operation = operation
        self.cause = cause


class RecordNotFoundError(AdapterError):
    """Raised when an id-addressed operation matches no record."""

    def __init__(self, operation: str, entity: str, record_id: str):
        super().__init__(operation, f"{entity} {record_id} not found")
        self.details.update({"entity": entity, "record_id": record_id})
        self.entity = entity
        self.record_id = record_id


class ConnectivityError(DualStoreError):
    """Raised when the remote store cannot be reached.

    Note: Named ConnectivityError to avoid shadowing the builtin ConnectionError.
    """

    def __init__(self, endpoint: str, cause: Exception | None = None):
        details = {"endpoint": endpoint}
        if cause:
            details["cause"] = str(cause)
        super().__init__(
            "Remote store is unavailable. Check your network connection "
            "and the backend server.",
            details,
        )
        self.endpoint = endpoint
        self.cause = cause


class PartialSyncFailure(DualStoreError):
    """A single record could not be copied during a sync pass.

    Recorded on the sync result and logged; never raised out of a sync.
    """

    def __init__(self, key: object, target: str, cause: Exception):
        details = {"key": str(key), "target": target, "cause": str(cause)}
        super().__init__(f"Failed to copy {key} to {target}: {cause}", details)
        self.key = key
        self.target = target
        self.cause = cause


class PostalCodeNotFoundError(DualStoreError):
    """Raised when the postal-code service has no entry for a code."""

    def __init__(self, postal_code: str):
        super().__init__(f"Postal code not found: {postal_code}", {"postal_code": postal_code})
        self.postal_code = postal_code


class PostalLookupUnavailableError(DualStoreError):
    """Raised when the postal-code lookup times out or cannot connect."""

    def __init__(self, postal_code: str, cause: Exception | None = None):
        details = {"postal_code": postal_code}
        if cause:
            details["cause"] = str(cause)
        super().__init__(
            "Could not look up the postal code automatically. "
            "You can fill in the address fields manually.",
            details,
        )
        self.postal_code = postal_code
        self.cause = cause
