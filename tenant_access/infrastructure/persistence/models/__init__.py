"""SQLModel table definitions."""

from .document_table import DocumentTable

__all__ = ["DocumentTable"]
