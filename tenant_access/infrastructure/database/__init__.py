"""Database engine management."""

from .sqlmodel_engine import DatabaseManager

__all__ = ["DatabaseManager"]
