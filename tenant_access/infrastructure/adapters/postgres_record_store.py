"""PostgreSQL implementation of IRecordStore over a single JSONB table."""

from __future__ import annotations

import uuid
from typing import Any, Dict, List, Optional

import structlog
from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.sql import func

from tenant_access.domain.exceptions import RecordStoreError
from tenant_access.domain.interfaces import IRecordStore
from tenant_access.infrastructure.database.sqlmodel_engine import DatabaseManager
from tenant_access.infrastructure.persistence.models.document_table import DocumentTable

logger = structlog.get_logger(__name__)


class PostgresRecordStore(IRecordStore):
    """
    Document store backed by the ``documents`` table.

    Merge writes use ``INSERT ... ON CONFLICT DO UPDATE`` with JSONB
    concatenation, so each write is a single atomic statement.
    """

    def __init__(self, db_manager: DatabaseManager):
        self._db = db_manager

    async def check_health(self) -> Dict[str, Any]:
        health = await self._db.health_check()
        health["service"] = "PostgresRecordStore"
        return health

    async def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        stmt = select(DocumentTable.data).where(
            DocumentTable.collection == collection,
            DocumentTable.doc_id == doc_id,
        )
        try:
            async with self._db.get_session() as session:
                result = await session.execute(stmt)
                data = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise RecordStoreError("get", collection, doc_id, str(e)) from e

        if data is None:
            return None
        return {**data, "id": doc_id}

    async def query(
        self,
        collection: str,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        stmt = select(DocumentTable.doc_id, DocumentTable.data).where(
            DocumentTable.collection == collection
        )
        if filters:
            stmt = stmt.where(DocumentTable.data.contains(filters))
        if order_by:
            column = DocumentTable.data[order_by]
            stmt = stmt.order_by(
                column.desc().nulls_last() if descending else column.asc().nulls_last()
            )
        if limit is not None:
            stmt = stmt.limit(limit)

        try:
            async with self._db.get_session() as session:
                result = await session.execute(stmt)
                rows = result.all()
        except SQLAlchemyError as e:
            raise RecordStoreError("query", collection, reason=str(e)) from e

        return [{**data, "id": doc_id} for doc_id, data in rows]

    async def upsert(
        self,
        collection: str,
        doc_id: str,
        data: Dict[str, Any],
        merge: bool = True,
    ) -> Dict[str, Any]:
        payload = {key: value for key, value in data.items() if key != "id"}
        stmt = insert(DocumentTable).values(collection=collection, doc_id=doc_id, data=payload)
        merged = DocumentTable.data.op("||")(stmt.excluded.data) if merge else stmt.excluded.data
        stmt = stmt.on_conflict_do_update(
            index_elements=["collection", "doc_id"],
            set_={"data": merged, "updated_at": func.now()},
        ).returning(DocumentTable.data)

        try:
            async with self._db.get_session() as session:
                result = await session.execute(stmt)
                stored = result.scalar_one()
        except SQLAlchemyError as e:
            raise RecordStoreError("upsert", collection, doc_id, str(e)) from e

        logger.debug("Document written", collection=collection, doc_id=doc_id, merge=merge)
        return {**stored, "id": doc_id}

    async def add(self, collection: str, data: Dict[str, Any]) -> str:
        doc_id = uuid.uuid4().hex
        await self.upsert(collection, doc_id, data, merge=False)
        return doc_id


__all__ = ["PostgresRecordStore"]
