"""
Pydantic schemas for request/response validation.
"""

from glosa_audit.schemas.audit import (
    AdvanceSessionRequest,
    AuditResult,
    AuditSessionRead,
    AuditStepRead,
    BatchAuditRequest,
    CategoryTotal,
    ClaimAuditOutcome,
    EvidenceItem,
    StepResultLine,
)
from glosa_audit.schemas.glosa import GlosaRead, GlosaUpdate
from glosa_audit.schemas.rule import (
    AuditRuleCreate,
    AuditRuleRead,
    DifferencePricing,
    FixedAmountPricing,
    FullAmountPricing,
    GlosaPricing,
    GlosaTemplate,
    PercentagePricing,
    RuleConditionSchema,
)

__all__ = [
    "AdvanceSessionRequest",
    "AuditResult",
    "AuditSessionRead",
    "AuditStepRead",
    "BatchAuditRequest",
    "CategoryTotal",
    "ClaimAuditOutcome",
    "EvidenceItem",
    "StepResultLine",
    "GlosaRead",
    "GlosaUpdate",
    "AuditRuleCreate",
    "AuditRuleRead",
    "DifferencePricing",
    "FixedAmountPricing",
    "FullAmountPricing",
    "GlosaPricing",
    "GlosaTemplate",
    "PercentagePricing",
    "RuleConditionSchema",
]
