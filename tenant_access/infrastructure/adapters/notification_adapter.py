"""Trial notice delivery for local and production environments."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx
import structlog

from tenant_access.domain.interfaces import ITrialNotifier, TrialNotice

logger = structlog.get_logger(__name__)


class LoggingTrialNotifier(ITrialNotifier):
    """Records notices and logs them locally for development."""

    def __init__(self):
        self._sent: List[TrialNotice] = []

    async def check_health(self) -> Dict[str, Any]:
        return {
            "status": "healthy",
            "service": "LoggingTrialNotifier",
            "notices_sent": len(self._sent),
        }

    async def notify(self, notice: TrialNotice) -> bool:
        self._sent.append(notice)
        logger.info(
            "Trial notice dispatched (local)",
            kind=notice.kind.value,
            tenant_id=notice.tenant_id,
            days_remaining=notice.days_remaining,
            recipient=notice.email,
        )
        return True

    @property
    def sent(self) -> List[TrialNotice]:
        return list(self._sent)


class WebhookTrialNotifier(ITrialNotifier):
    """Posts trial notices as JSON to a webhook receiver."""

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.url = url
        self.timeout = timeout
        self._client = client
        self._delivered = 0
        self._failed = 0

    async def check_health(self) -> Dict[str, Any]:
        return {
            "status": "healthy" if self._failed <= self._delivered else "degraded",
            "service": "WebhookTrialNotifier",
            "delivered": self._delivered,
            "failed": self._failed,
        }

    async def notify(self, notice: TrialNotice) -> bool:
        payload = {"event": f"trial.{notice.kind.value}", "notice": notice.to_dict()}
        try:
            if self._client is not None:
                response = await self._client.post(self.url, json=payload, timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(
                        self.url,
                        json=payload,
                        headers={"Content-Type": "application/json"},
                    )
            response.raise_for_status()

        except httpx.HTTPStatusError as e:
            self._failed += 1
            logger.error(
                "Trial notice webhook HTTP error",
                url=self.url,
                tenant_id=notice.tenant_id,
                status_code=e.response.status_code,
                error=str(e),
            )
            return False

        except httpx.RequestError as e:
            self._failed += 1
            logger.error(
                "Trial notice webhook request error",
                url=self.url,
                tenant_id=notice.tenant_id,
                error=str(e),
            )
            return False

        self._delivered += 1
        logger.debug(
            "Trial notice webhook sent",
            url=self.url,
            kind=notice.kind.value,
            tenant_id=notice.tenant_id,
        )
        return True


__all__ = ["LoggingTrialNotifier", "WebhookTrialNotifier"]
