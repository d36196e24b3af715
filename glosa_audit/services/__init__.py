"""
Services Layer for the Glosa Audit Engine.

Exports the audit orchestrator, the audit session service and the
components of the audit pipeline.
"""

from glosa_audit.services.audit_service import (
    AUDIT_STEPS,
    AuditService,
    AuditStepDefinition,
    StepOutcome,
)
from glosa_audit.services.audit_session_service import AuditSessionService
from glosa_audit.services.authorization_validator import (
    AuthorizationRequirementLookup,
    AuthorizationValidator,
    CatalogAuthorizationLookup,
    StaticAuthorizationLookup,
)
from glosa_audit.services.claim_state_machine import ClaimStateMachine, TransitionEvent
from glosa_audit.services.duplicate_detector import DuplicateDetector, DuplicateReport
from glosa_audit.services.line_item_pricer import LineItemPricer, PricingReport, UnknownProcedureCode
from glosa_audit.services.pertinence_validator import (
    PermissivePertinencePolicy,
    PertinencePolicy,
    PertinenceValidator,
    PrefixPertinencePolicy,
)
from glosa_audit.services.rule_engine import (
    FACT_ACCESSORS,
    FACT_FALLBACKS,
    CompiledRule,
    LineItemFacts,
    RuleEngine,
    RuleEngineReport,
    RuleMatch,
)
from glosa_audit.services.tariff_resolver import TariffResolver

__all__ = [
    # Orchestration
    "AUDIT_STEPS",
    "AuditService",
    "AuditStepDefinition",
    "StepOutcome",
    "AuditSessionService",
    # Pipeline components
    "TariffResolver",
    "LineItemPricer",
    "PricingReport",
    "UnknownProcedureCode",
    "AuthorizationRequirementLookup",
    "AuthorizationValidator",
    "CatalogAuthorizationLookup",
    "StaticAuthorizationLookup",
    "DuplicateDetector",
    "DuplicateReport",
    "PertinencePolicy",
    "PermissivePertinencePolicy",
    "PrefixPertinencePolicy",
    "PertinenceValidator",
    "FACT_ACCESSORS",
    "FACT_FALLBACKS",
    "CompiledRule",
    "LineItemFacts",
    "RuleEngine",
    "RuleEngineReport",
    "RuleMatch",
    # Claim status
    "ClaimStateMachine",
    "TransitionEvent",
]
