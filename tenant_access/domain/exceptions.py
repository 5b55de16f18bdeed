"""
Domain-level exceptions for the access engine.

Expected "not found" conditions are reported as falsy return values by the
application services; these exceptions cover validation failures and
infrastructure faults that must propagate to the caller.
"""

from typing import Optional


class DomainException(Exception):
    """Base exception for all domain-level errors."""
    pass


class ValidationError(DomainException):
    """Raised when domain validation rules are violated."""
    pass


class ConfigurationError(DomainException):
    """Raised when configuration is invalid or missing."""
    pass


class RecordStoreError(DomainException):
    """Raised when the record store fails to read or write a document."""

    def __init__(
        self,
        operation: str,
        collection: str,
        doc_id: Optional[str] = None,
        reason: Optional[str] = None,
    ):
        self.operation = operation
        self.collection = collection
        self.doc_id = doc_id
        self.reason = reason

        message = f"Record store {operation} failed on '{collection}'"
        if doc_id:
            message += f" for document '{doc_id}'"
        if reason:
            message += f": {reason}"

        super().__init__(message)


class IdentityProviderError(DomainException):
    """Raised when the identity provider cannot look up or end a session."""
    pass


__all__ = [
    "DomainException",
    "ValidationError",
    "ConfigurationError",
    "RecordStoreError",
    "IdentityProviderError",
]
