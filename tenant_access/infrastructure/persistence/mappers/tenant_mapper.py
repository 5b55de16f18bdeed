"""
Mapper between Tenant domain entities and ``businesses`` documents.

Stored documents use camelCase keys and heterogeneous time representations;
every instant passes through TimeNormalizer here and nowhere else.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from tenant_access.domain.entities.tenant import Tenant, TenantStatus
from tenant_access.domain.services.time_normalizer import TimeNormalizer
from tenant_access.domain.value_objects import TrialProvenance

FIELD_NAMES: Dict[str, str] = {
    "name": "businessName",
    "email": "email",
    "contact_name": "contactName",
    "phone": "phone",
    "business_id": "businessId",
    "is_in_trial": "isInTrial",
    "trial_start_date": "trialStartDate",
    "trial_end_date": "trialEndDate",
    "status": "status",
    "created_at": "createdAt",
    "updated_at": "updatedAt",
    "trial_info": "trialInfo",
    "trial_expired_at": "trialExpiredAt",
    "subscription_plan_id": "subscriptionPlanId",
    "subscription_start_date": "subscriptionStartDate",
    "metadata": "metadata",
}


class TenantMapper:
    """Maps between Tenant entities and their stored documents."""

    @staticmethod
    def to_domain(document: Mapping[str, Any], normalizer: TimeNormalizer) -> Tenant:
        """Convert a stored document to a Tenant."""
        return Tenant(
            id=str(document["id"]),
            name=document.get("businessName") or document.get("name") or "",
            created_at=normalizer.to_millis(document.get("createdAt")),
            is_in_trial=document.get("isInTrial") is True,
            trial_start_date=normalizer.to_optional_millis(document.get("trialStartDate")),
            trial_end_date=normalizer.to_optional_millis(document.get("trialEndDate")),
            status=str(document.get("status") or TenantStatus.PENDING.value),
            email=document.get("email"),
            contact_name=document.get("contactName"),
            phone=document.get("phone"),
            business_id=document.get("businessId"),
            updated_at=normalizer.to_optional_millis(document.get("updatedAt")),
            trial_info=TenantMapper._provenance_to_domain(document.get("trialInfo")),
            trial_expired_at=normalizer.to_optional_millis(document.get("trialExpiredAt")),
            subscription_plan_id=document.get("subscriptionPlanId"),
            subscription_start_date=normalizer.to_optional_millis(
                document.get("subscriptionStartDate")
            ),
            metadata=dict(document.get("metadata") or {}),
        )

    @staticmethod
    def to_document(tenant: Tenant) -> Dict[str, Any]:
        """Convert a Tenant to a full document (without its id)."""
        return TenantMapper.to_document_fields(
            {attribute: getattr(tenant, attribute) for attribute in FIELD_NAMES}
        )

    @staticmethod
    def to_document_fields(fields: Mapping[str, Any]) -> Dict[str, Any]:
        """Translate a partial update keyed by entity attribute names."""
        document: Dict[str, Any] = {}
        for attribute, value in fields.items():
            try:
                key = FIELD_NAMES[attribute]
            except KeyError:
                raise ValueError(f"Unknown tenant field: {attribute}") from None
            if isinstance(value, TrialProvenance):
                value = value.to_dict()
            document[key] = value
        return document

    @staticmethod
    def _provenance_to_domain(raw: Any) -> Optional[TrialProvenance]:
        if not isinstance(raw, Mapping):
            return None
        return TrialProvenance(
            duration_days=int(raw.get("durationDays") or 0),
            duration_minutes=int(raw.get("durationMinutes") or 0),
            config_id=raw.get("configId"),
            period_name=raw.get("periodName"),
            source=str(raw.get("source") or "default"),
            formatted_end_date=str(raw.get("formattedEndDate") or ""),
        )


__all__ = ["TenantMapper", "FIELD_NAMES"]
