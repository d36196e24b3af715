"""
SQLAlchemy models for the glosa audit engine.
"""

from glosa_audit.models.audit_rule import AuditRule
from glosa_audit.models.audit_session import TOTAL_STEPS, AuditSession, AuditSessionStep
from glosa_audit.models.base import Base, TimeStampedModel, UUIDModel
from glosa_audit.models.claim import (
    Claim,
    ClaimStatusHistory,
    Encounter,
    LineItem,
    SupportingDocument,
)
from glosa_audit.models.glosa import Glosa
from glosa_audit.models.procedure import ProcedureCode
from glosa_audit.models.tariff import Tariff, TariffEntry

__all__ = [
    "Base",
    "TimeStampedModel",
    "UUIDModel",
    "Claim",
    "ClaimStatusHistory",
    "Encounter",
    "SupportingDocument",
    "LineItem",
    "Tariff",
    "TariffEntry",
    "ProcedureCode",
    "AuditRule",
    "Glosa",
    "AuditSession",
    "AuditSessionStep",
    "TOTAL_STEPS",
]
