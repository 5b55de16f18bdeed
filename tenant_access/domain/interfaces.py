"""Domain-layer service interfaces.

These abstractions define the stable contracts that the application layer relies on,
while infrastructure adapters provide concrete implementations. The record
store, the identity provider and notification delivery are all external
collaborators of the engine.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union


class IHealthCheck:
    """Health check interface mixin."""

    @abstractmethod
    async def check_health(self) -> Dict[str, Any]:
        """Return health check details."""
        pass


class IRecordStore(IHealthCheck, ABC):
    """Document-oriented record store.

    Documents are plain dictionaries addressed by ``(collection, doc_id)``.
    Every write is a single atomic document write; there are no transactions.
    """

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        """Read a document by id. Returns ``None`` when it does not exist."""
        pass

    @abstractmethod
    async def query(
        self,
        collection: str,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """Return documents whose fields equal every value in ``filters``.

        Each returned document carries its id under the ``id`` key.
        """
        pass

    @abstractmethod
    async def upsert(
        self,
        collection: str,
        doc_id: str,
        data: Dict[str, Any],
        merge: bool = True,
    ) -> Dict[str, Any]:
        """Create or update a document; ``merge`` keeps fields not in ``data``."""
        pass

    @abstractmethod
    async def add(self, collection: str, data: Dict[str, Any]) -> str:
        """Create a document with a generated id and return that id."""
        pass


@dataclass(frozen=True)
class IdentitySession:
    """An authenticated session as seen by the identity provider."""

    session_id: str
    user_id: str
    tenant_id: str
    email: Optional[str] = None


SessionChangeCallback = Callable[[Optional[IdentitySession]], Union[Awaitable[None], None]]


class IIdentityProvider(ABC):
    """The three identity capabilities the engine relies on."""

    @abstractmethod
    async def current_session(self) -> Optional[IdentitySession]:
        """Return the active session, if any."""
        pass

    @abstractmethod
    def on_session_change(self, callback: SessionChangeCallback) -> Callable[[], None]:
        """Register a callback for sign-in/sign-out; returns an unsubscribe function."""
        pass

    @abstractmethod
    async def terminate_session(self, session_id: str) -> None:
        """Sign the session out."""
        pass


class IHandoffStore(ABC):
    """Small key/value store that survives a full page reload."""

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        pass


class TrialNoticeKind(str, Enum):
    """Kinds of trial notifications decided by the expiry sweep."""

    CLOSING_SOON = "closing_soon"
    FINAL = "final"
    EXPIRED = "expired"


@dataclass(frozen=True)
class TrialNotice:
    """What to tell a tenant about its trial; delivery is not the engine's job."""

    kind: TrialNoticeKind
    tenant_id: str
    trial_end_date: int
    days_remaining: int
    email: Optional[str] = None
    tenant_name: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "tenantId": self.tenant_id,
            "trialEndDate": self.trial_end_date,
            "daysRemaining": self.days_remaining,
            "email": self.email,
            "tenantName": self.tenant_name,
            "data": self.data,
        }


class ITrialNotifier(IHealthCheck, ABC):
    """Notification collaborator; owns delivery and last-notified bookkeeping."""

    @abstractmethod
    async def notify(self, notice: TrialNotice) -> bool:
        """Hand a notice over for delivery."""
        pass


__all__ = [
    "IHealthCheck",
    "IRecordStore",
    "IdentitySession",
    "SessionChangeCallback",
    "IIdentityProvider",
    "IHandoffStore",
    "TrialNoticeKind",
    "TrialNotice",
    "ITrialNotifier",
]
