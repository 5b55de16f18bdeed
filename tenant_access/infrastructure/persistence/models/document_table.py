"""
SQLModel table holding schemaless documents.

Every collection of the record store shares this table; a document is
addressed by ``(collection, doc_id)`` and its fields live in a JSONB payload.
"""

from datetime import datetime
from typing import Any, Dict

from sqlalchemy import Column, DateTime, Index, String, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func
from sqlmodel import Field, SQLModel


class DocumentTable(SQLModel, table=True):
    """One stored document."""

    __tablename__ = "documents"
    __table_args__ = (
        Index("ix_documents_data_gin", "data", postgresql_using="gin"),
    )

    collection: str = Field(
        sa_column=Column(String(100), primary_key=True, nullable=False),
        description="Logical collection name"
    )

    doc_id: str = Field(
        sa_column=Column(String(255), primary_key=True, nullable=False),
        description="Document identifier within its collection"
    )

    data: Dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSONB, nullable=False, server_default=text("'{}'::jsonb")),
        description="Document fields"
    )

    created_at: datetime = Field(
        sa_column=Column(
            DateTime(timezone=True),
            nullable=False,
            server_default=func.now()
        ),
        description="Record creation timestamp"
    )

    updated_at: datetime = Field(
        sa_column=Column(
            DateTime(timezone=True),
            nullable=False,
            server_default=func.now(),
            onupdate=func.now()
        ),
        description="Record last update timestamp"
    )


__all__ = ["DocumentTable"]
