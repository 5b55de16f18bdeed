"""In-memory record store for local development and tests."""

from __future__ import annotations

import copy
import uuid
from typing import Any, Dict, List, Optional

import structlog

from tenant_access.domain.interfaces import IRecordStore

logger = structlog.get_logger(__name__)


class MemoryRecordStore(IRecordStore):
    """Dictionary-backed document store.

    Documents are deep-copied on the way in and out so callers never share
    mutable state with the store.
    """

    def __init__(self, seed: Optional[Dict[str, Dict[str, Dict[str, Any]]]] = None):
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._writes = 0
        for collection, documents in (seed or {}).items():
            for doc_id, data in documents.items():
                self._collections.setdefault(collection, {})[doc_id] = copy.deepcopy(data)

    async def check_health(self) -> Dict[str, Any]:
        return {
            "status": "healthy",
            "service": "MemoryRecordStore",
            "collections": {name: len(docs) for name, docs in self._collections.items()},
            "writes": self._writes,
        }

    async def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        document = self._collections.get(collection, {}).get(doc_id)
        if document is None:
            return None
        return _with_id(doc_id, document)

    async def query(
        self,
        collection: str,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        filters = filters or {}
        results = [
            _with_id(doc_id, document)
            for doc_id, document in self._collections.get(collection, {}).items()
            if all(document.get(key) == value for key, value in filters.items())
        ]
        if order_by:
            present = [doc for doc in results if doc.get(order_by) is not None]
            missing = [doc for doc in results if doc.get(order_by) is None]
            present.sort(key=lambda doc: doc[order_by], reverse=descending)
            results = present + missing
        if limit is not None:
            results = results[:limit]
        return results

    async def upsert(
        self,
        collection: str,
        doc_id: str,
        data: Dict[str, Any],
        merge: bool = True,
    ) -> Dict[str, Any]:
        documents = self._collections.setdefault(collection, {})
        payload = copy.deepcopy({key: value for key, value in data.items() if key != "id"})
        if merge and doc_id in documents:
            documents[doc_id].update(payload)
        else:
            documents[doc_id] = payload
        self._writes += 1
        logger.debug("Document written", collection=collection, doc_id=doc_id, merge=merge)
        return _with_id(doc_id, documents[doc_id])

    async def add(self, collection: str, data: Dict[str, Any]) -> str:
        doc_id = uuid.uuid4().hex
        await self.upsert(collection, doc_id, data, merge=False)
        return doc_id

    def snapshot(self, collection: str) -> Dict[str, Dict[str, Any]]:
        """Copy of a whole collection, keyed by document id."""
        return copy.deepcopy(self._collections.get(collection, {}))


def _with_id(doc_id: str, document: Dict[str, Any]) -> Dict[str, Any]:
    result = copy.deepcopy(document)
    result["id"] = doc_id
    return result


__all__ = ["MemoryRecordStore"]
