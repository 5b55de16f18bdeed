"""Mappers for ``subscriptions`` and ``subscription_plans`` documents."""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from tenant_access.domain.entities.subscription import (
    BillingCycle,
    SubscriptionPlan,
    SubscriptionRecord,
    SubscriptionStatus,
)
from tenant_access.domain.services.time_normalizer import TimeNormalizer


def _optional_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class SubscriptionMapper:
    """Maps between SubscriptionRecord entities and stored documents."""

    @staticmethod
    def to_domain(document: Mapping[str, Any], normalizer: TimeNormalizer) -> SubscriptionRecord:
        return SubscriptionRecord(
            id=str(document["id"]),
            tenant_id=str(document.get("clientId") or document.get("businessId") or ""),
            plan_id=str(document.get("planId") or ""),
            start_date=normalizer.to_millis(document.get("startDate")),
            end_date=normalizer.to_millis(document.get("endDate")),
            status=str(document.get("status") or SubscriptionStatus.PENDING.value),
            auto_renew=document.get("autoRenew") is True,
            cancel_date=normalizer.to_optional_millis(document.get("cancelDate")),
            created_at=normalizer.to_optional_millis(document.get("createdAt")),
            updated_at=normalizer.to_optional_millis(document.get("updatedAt")),
            price=_optional_float(document.get("price")),
            currency=document.get("currency"),
            billing_cycle=document.get("billingCycle"),
            payment_method=document.get("paymentMethod"),
            notes=document.get("notes"),
        )

    @staticmethod
    def to_document(record: SubscriptionRecord) -> Dict[str, Any]:
        return {
            "clientId": record.tenant_id,
            "planId": record.plan_id,
            "startDate": record.start_date,
            "endDate": record.end_date,
            "status": record.status,
            "autoRenew": record.auto_renew,
            "cancelDate": record.cancel_date,
            "createdAt": record.created_at,
            "updatedAt": record.updated_at,
            "price": record.price,
            "currency": record.currency,
            "billingCycle": record.billing_cycle,
            "paymentMethod": record.payment_method,
            "notes": record.notes,
        }


class PlanMapper:
    """Maps between SubscriptionPlan entities and stored documents."""

    @staticmethod
    def to_domain(document: Mapping[str, Any]) -> SubscriptionPlan:
        return SubscriptionPlan(
            id=str(document["id"]),
            name=str(document.get("name") or ""),
            billing_cycle=str(document.get("billingCycle") or BillingCycle.MONTHLY.value),
            price=_optional_float(document.get("price")) or 0.0,
            currency=str(document.get("currency") or "EUR"),
            active=bool(document.get("active", True)),
            description=document.get("description"),
        )

    @staticmethod
    def to_document(plan: SubscriptionPlan) -> Dict[str, Any]:
        return {
            "name": plan.name,
            "billingCycle": plan.billing_cycle,
            "price": plan.price,
            "currency": plan.currency,
            "active": plan.active,
            "description": plan.description,
        }


__all__ = ["PlanMapper", "SubscriptionMapper"]
