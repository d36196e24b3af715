"""
Claim Audit Orchestrator Service.

Runs the audit pipeline over a claim:
1. Load Claim - load and validate the claim, move it to IN_AUDIT
2. Resolve and Price - pick the tariff and price every line item
3. Validate Authorizations - prior authorization presence and window
4. Detect Duplicates - repeated procedure codes within an encounter
5. Validate Pertinence - procedure vs principal diagnosis
6. Apply Rules and Finalize - generate glosas, totals, move to AUDITED

The same step functions back both the one-shot audit (run_full_audit, one
transaction) and the step-by-step audit session (one transaction per step).
"""

import logging
import time
from collections import defaultdict
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Awaitable, Callable, Optional, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from glosa_audit.core.config import AuditSettings, get_settings
from glosa_audit.core.enums import GlosaCategory, ResultTone
from glosa_audit.core.exceptions import AuditEngineError, ClaimNotFoundError, GlosaNotFoundError
from glosa_audit.models.base import utcnow
from glosa_audit.models.claim import Claim, Encounter, LineItem
from glosa_audit.models.glosa import Glosa
from glosa_audit.schemas.audit import (
    AuditResult,
    CategoryTotal,
    ClaimAuditOutcome,
    EvidenceItem,
    StepResultLine,
)
from glosa_audit.schemas.glosa import GlosaUpdate
from glosa_audit.services.authorization_validator import (
    AuthorizationValidator,
    CatalogAuthorizationLookup,
)
from glosa_audit.services.claim_state_machine import ClaimStateMachine
from glosa_audit.services.duplicate_detector import DuplicateDetector
from glosa_audit.services.line_item_pricer import LineItemPricer
from glosa_audit.services.pertinence_validator import PertinenceValidator
from glosa_audit.services.rule_engine import RuleEngine
from glosa_audit.services.tariff_resolver import TariffResolver
from glosa_audit.utils.money import ZERO, format_money, to_money

logger = logging.getLogger(__name__)


# =============================================================================
# Step Definitions
# =============================================================================


@dataclass(frozen=True)
class AuditStepDefinition:
    number: int
    title: str
    description: str
    data_used: tuple[str, ...]


AUDIT_STEPS: tuple[AuditStepDefinition, ...] = (
    AuditStepDefinition(
        number=1,
        title="Data Loading and Validation",
        description="Load the claim with its encounters, line items, diagnoses and supporting documents and check they are consistent.",
        data_used=("Claim", "Encounters", "Line items", "ICD-10 diagnoses", "Authorizations", "Supporting documents"),
    ),
    AuditStepDefinition(
        number=2,
        title="Tariff Lookup",
        description="Resolve the applicable tariff and compare each billed price with the contracted price.",
        data_used=("Procedure code", "Payer tariff", "Reference tariff", "Billed value"),
    ),
    AuditStepDefinition(
        number=3,
        title="Authorization Validation",
        description="Check that procedures requiring prior authorization have one and that it was issued within the validity window.",
        data_used=("Authorization number", "Authorization date", "Encounter start date", "Procedure catalogue"),
    ),
    AuditStepDefinition(
        number=4,
        title="Duplicate Detection",
        description="Identify procedures billed more than once within the same encounter.",
        data_used=("Procedure code", "Encounter", "Line number"),
    ),
    AuditStepDefinition(
        number=5,
        title="Medical Pertinence Validation",
        description="Check that billed procedures are consistent with the principal diagnosis.",
        data_used=("ICD-10 diagnosis", "Procedure code", "Pertinence policy"),
    ),
    AuditStepDefinition(
        number=6,
        title="Glosa Generation",
        description="Apply the active audit rules, generate priced glosas and compute the claim totals.",
        data_used=("Tariff differences", "Missing authorizations", "Duplicates", "Pertinence findings", "Audit rules"),
    ),
)


@dataclass
class StepOutcome:
    """What an audit step found and produced."""

    evidence: list[EvidenceItem] = field(default_factory=list)
    process_notes: list[str] = field(default_factory=list)
    results: list[StepResultLine] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    observations: list[str] = field(default_factory=list)
    result: Optional[AuditResult] = None


# =============================================================================
# Audit Service
# =============================================================================


class AuditService:
    """
    Orchestrates claim audits.

    Every collaborator can be injected; defaults are built per instance from
    the session and settings.
    """

    def __init__(
        self,
        session: AsyncSession,
        settings: Optional[AuditSettings] = None,
        tariff_resolver: Optional[TariffResolver] = None,
        pricer: Optional[LineItemPricer] = None,
        authorization_validator: Optional[AuthorizationValidator] = None,
        duplicate_detector: Optional[DuplicateDetector] = None,
        pertinence_validator: Optional[PertinenceValidator] = None,
        rule_engine: Optional[RuleEngine] = None,
        state_machine: Optional[ClaimStateMachine] = None,
    ):
        self.session = session
        self.settings = settings or get_settings()
        self.tariff_resolver = tariff_resolver or TariffResolver(
            session, default_tariff_name=self.settings.DEFAULT_TARIFF_NAME
        )
        self.pricer = pricer or LineItemPricer()
        self.authorization_validator = authorization_validator or AuthorizationValidator(
            CatalogAuthorizationLookup(session),
            window_days=self.settings.AUTHORIZATION_WINDOW_DAYS,
        )
        self.duplicate_detector = duplicate_detector or DuplicateDetector()
        self.pertinence_validator = pertinence_validator or PertinenceValidator()
        self.rule_engine = rule_engine or RuleEngine(session)
        self.state_machine = state_machine or ClaimStateMachine()

        self._steps: dict[int, Callable[[Claim], Awaitable[StepOutcome]]] = {
            1: self.load_claim,
            2: self.resolve_and_price,
            3: self.validate_authorizations,
            4: self.detect_duplicates,
            5: self.validate_pertinence,
            6: self.apply_rules_and_finalize,
        }

    # =========================================================================
    # Loading
    # =========================================================================

    async def get_claim_for_audit(self, claim_id: UUID, lock: bool = False) -> Claim:
        """
        Load a claim with everything the audit steps read.

        Raises:
            ClaimNotFoundError: If the claim does not exist.
        """
        query = (
            select(Claim)
            .options(
                selectinload(Claim.encounters).selectinload(Encounter.line_items).selectinload(LineItem.glosas),
                selectinload(Claim.encounters).selectinload(Encounter.supporting_documents),
                selectinload(Claim.status_history),
            )
            .where(Claim.id == claim_id)
            .execution_options(populate_existing=True)
        )
        if lock:
            query = query.with_for_update(of=Claim)

        result = await self.session.execute(query)
        claim = result.scalar_one_or_none()
        if claim is None:
            raise ClaimNotFoundError(claim_id)
        return claim

    async def run_step(self, number: int, claim: Claim) -> StepOutcome:
        step = self._steps.get(number)
        if step is None:
            raise ValueError(f"Unknown audit step {number}")
        return await step(claim)

    # =========================================================================
    # Step 1: Load Claim
    # =========================================================================

    async def load_claim(self, claim: Claim) -> StepOutcome:
        outcome = StepOutcome()
        line_items = claim.line_items

        for encounter in claim.encounters:
            if not encounter.line_items:
                outcome.warnings.append(f"Encounter {encounter.encounter_number} has no line items")
            if not encounter.principal_diagnosis:
                outcome.warnings.append(f"Encounter {encounter.encounter_number} has no principal diagnosis")

        for item in line_items:
            expected = to_money(item.billed_unit_price * item.quantity)
            if to_money(item.billed_total) != expected:
                outcome.warnings.append(
                    f"Line {item.line_number} ({item.procedure_code}): billed total {item.billed_total} "
                    f"differs from quantity x unit price {expected}"
                )
            item.payable_amount = item.billed_total - (item.deducted_total or ZERO)

        self.state_machine.start_audit(claim)

        outcome.evidence.extend(self._claim_evidence(claim))
        outcome.process_notes = [
            "Claim loaded by ID with encounters, line items and supporting documents",
            "Provider, payer and amount fields read from the claim",
            "Each line item checked for billed total = quantity x unit price",
            "Each encounter checked for line items and principal diagnosis",
            f"Claim status set to {claim.status.value}",
        ]
        outcome.results = [
            StepResultLine(label="Encounters loaded", value=str(len(claim.encounters))),
            StepResultLine(label="Line items loaded", value=str(len(line_items))),
            StepResultLine(label="Claim total", value=self._money(claim.total_amount)),
        ]
        if outcome.warnings:
            outcome.results.append(
                StepResultLine(label="Data warnings", value=str(len(outcome.warnings)), tone=ResultTone.WARNING)
            )
        return outcome

    # =========================================================================
    # Step 2: Resolve Tariff and Price
    # =========================================================================

    async def resolve_and_price(self, claim: Claim) -> StepOutcome:
        outcome = StepOutcome()
        tariff = await self.tariff_resolver.resolve(claim.payer_id, claim.issue_date, claim.tariff_id)
        line_items = claim.line_items
        report = self.pricer.price(line_items, tariff)
        outcome.warnings.extend(report.warnings)

        outcome.evidence.append(
            EvidenceItem(
                field="Tariff",
                value=f"{tariff.name} ({tariff.tariff_type.value})",
                source="Tariff catalogue",
                location="pinned tariff" if claim.tariff_id else f"payer {claim.payer_id}, date {claim.issue_date}",
                explanation="Price catalogue the billed values are compared against",
            )
        )
        priced = [item for item in line_items if item.tariff_validated]
        if priced:
            first = priced[0]
            outcome.evidence.extend(
                [
                    EvidenceItem(
                        field="Procedure code",
                        value=f"{first.procedure_code} - {first.description or ''}".strip(" -"),
                        source="Line item",
                        location=f"line {first.line_number}",
                        explanation="Code used to look up the contracted price",
                    ),
                    EvidenceItem(
                        field="Contracted price",
                        value=self._money(first.contracted_unit_price),
                        source=f"Tariff {tariff.name}",
                        location=f"entry {first.procedure_code}",
                        explanation="Maximum unit price payable under the tariff",
                    ),
                    EvidenceItem(
                        field="Tariff difference",
                        value=self._money(first.tariff_delta),
                        source="Calculated: billed total - contracted total",
                        location=f"line {first.line_number}",
                        explanation="Positive values are overcharges",
                    ),
                ]
            )

        outcome.process_notes = [
            "Tariff pinned on the claim used when present",
            "Otherwise the payer's active tariff covering the issue date is used",
            f"Otherwise the reference tariff ({self.settings.DEFAULT_TARIFF_NAME}) is used",
            "Each procedure code looked up by exact match",
            "Contracted total = quantity x contracted unit price",
            "Tariff difference = billed total - contracted total",
        ]
        outcome.results = [
            StepResultLine(label="Tariff applied", value=tariff.name),
            StepResultLine(label="Line items priced", value=str(report.priced)),
            StepResultLine(
                label="Tariff differences",
                value=str(report.with_positive_delta),
                tone=ResultTone.WARNING if report.with_positive_delta else ResultTone.SUCCESS,
            ),
        ]
        if report.unknown_codes:
            outcome.results.append(
                StepResultLine(
                    label="Codes not in tariff",
                    value=str(len(report.unknown_codes)),
                    tone=ResultTone.WARNING,
                )
            )
        return outcome

    # =========================================================================
    # Step 3: Authorizations
    # =========================================================================

    async def validate_authorizations(self, claim: Claim) -> StepOutcome:
        outcome = StepOutcome()
        report = await self.authorization_validator.validate(claim.encounters)

        for encounter in claim.encounters:
            if encounter.authorization_required:
                outcome.evidence.append(
                    EvidenceItem(
                        field="Authorization",
                        value=encounter.authorization_number or "missing",
                        source="Encounter",
                        location=f"encounter {encounter.encounter_number}",
                        explanation=(
                            f"Authorization date {encounter.authorization_date}, encounter start "
                            f"{encounter.start_date}, valid: {encounter.authorization_valid}"
                        ),
                    )
                )
                break

        outcome.process_notes = [
            "Procedure catalogue consulted for authorization requirements",
            "Encounters without procedures requiring authorization are marked as satisfied",
            "Authorization number presence checked",
            f"Authorization must precede the encounter start by 0 to "
            f"{self.authorization_validator.window_days} days",
        ]
        outcome.results = [
            StepResultLine(label="Encounters requiring authorization", value=str(report.required)),
            StepResultLine(label="Valid authorizations", value=str(report.valid)),
            StepResultLine(
                label="Missing authorizations",
                value=str(len(report.missing)),
                tone=ResultTone.ERROR if report.missing else ResultTone.SUCCESS,
            ),
            StepResultLine(
                label="Authorizations out of window",
                value=str(len(report.expired)),
                tone=ResultTone.WARNING if report.expired else ResultTone.SUCCESS,
            ),
        ]
        return outcome

    # =========================================================================
    # Step 4: Duplicates
    # =========================================================================

    async def detect_duplicates(self, claim: Claim) -> StepOutcome:
        outcome = StepOutcome()
        report = self.duplicate_detector.detect(claim.encounters)

        for item in report.duplicates[:1]:
            outcome.evidence.append(
                EvidenceItem(
                    field="Duplicate procedure",
                    value=item.procedure_code,
                    source="Line item",
                    location=f"line {item.line_number}",
                    explanation="Same procedure code billed earlier in the same encounter",
                )
            )

        outcome.process_notes = [
            "Line items grouped by encounter and procedure code",
            "First line of each code (by line number) kept as the original",
            "Later lines with the same code flagged as duplicates",
        ]
        outcome.results = [
            StepResultLine(
                label="Duplicates found",
                value=str(report.count),
                tone=ResultTone.WARNING if report.count else ResultTone.SUCCESS,
            ),
            StepResultLine(label="Duplicated value", value=self._money(report.duplicated_value)),
        ]
        return outcome

    # =========================================================================
    # Step 5: Pertinence
    # =========================================================================

    async def validate_pertinence(self, claim: Claim) -> StepOutcome:
        outcome = StepOutcome()
        report = self.pertinence_validator.validate(claim.encounters)

        first_encounter = claim.encounters[0] if claim.encounters else None
        if first_encounter is not None and first_encounter.principal_diagnosis:
            outcome.evidence.append(
                EvidenceItem(
                    field="Principal diagnosis",
                    value=first_encounter.principal_diagnosis,
                    source="Encounter",
                    location=f"encounter {first_encounter.encounter_number}",
                    explanation="Diagnosis the billed procedures are checked against",
                )
            )

        outcome.process_notes = [
            "Principal diagnosis of each encounter read",
            "Each procedure checked against the pertinence policy",
            "Procedures without a diagnosis to compare are considered pertinent",
        ]
        outcome.results = [
            StepResultLine(label="Procedures evaluated", value=str(report.evaluated)),
            StepResultLine(
                label="Not pertinent",
                value=str(len(report.not_pertinent)),
                tone=ResultTone.WARNING if report.not_pertinent else ResultTone.SUCCESS,
            ),
        ]
        return outcome

    # =========================================================================
    # Step 6: Rules and Totals
    # =========================================================================

    async def apply_rules_and_finalize(self, claim: Claim) -> StepOutcome:
        outcome = StepOutcome()
        rules = await self.rule_engine.load_active_rules()
        report = self.rule_engine.apply(claim.encounters, rules)

        glosas = self._recompute_totals(claim)
        self.state_machine.complete_audit(claim)
        claim.audit_completed = True
        claim.audited_at = utcnow()
        await self.session.flush()

        outcome.result = self._build_result(claim, glosas, observations=list(report.observations))
        outcome.observations.extend(outcome.result.observations)

        for index, glosa in enumerate(glosas[: self.settings.MAX_EVIDENCE_GLOSAS], start=1):
            outcome.evidence.append(
                EvidenceItem(
                    field=f"Glosa #{index} - {glosa.category.value}",
                    value=self._money(glosa.amount),
                    source=f"Rule {glosa.rule_code}",
                    location="glosas",
                    explanation=glosa.description,
                )
            )
        outcome.evidence.extend(
            [
                EvidenceItem(
                    field="Claim total",
                    value=self._money(claim.total_amount),
                    source="Claim",
                    location="total_amount",
                    explanation="Net invoice amount before deductions",
                ),
                EvidenceItem(
                    field="Total deductions",
                    value=self._money(claim.total_deductions),
                    source="Sum of all glosas",
                    location="glosas",
                    explanation="Sum of all deducted amounts",
                ),
                EvidenceItem(
                    field="Accepted amount",
                    value=self._money(claim.accepted_amount),
                    source="Calculated: claim total - total deductions",
                    location="accepted_amount",
                    explanation="Amount the payer accepts after glosas",
                ),
            ]
        )
        outcome.process_notes = [
            f"{len(rules)} active audit rules evaluated in priority order",
            "Each matching rule priced by its strategy (difference, full amount, percentage or fixed)",
            "Glosas already generated for the same line item and rule are kept as they are",
            "Line item deducted and payable amounts updated",
            "Claim totals recomputed from all glosas and claim marked as audited",
        ]
        outcome.results = [
            StepResultLine(
                label="Glosas generated",
                value=str(len(report.glosas_created)),
                tone=ResultTone.WARNING if report.glosas_created else ResultTone.SUCCESS,
            ),
            StepResultLine(
                label="Total deducted",
                value=self._money(claim.total_deductions),
                tone=ResultTone.ERROR if claim.total_deductions > 0 else ResultTone.SUCCESS,
            ),
            StepResultLine(label="Accepted amount", value=self._money(claim.accepted_amount)),
        ]
        logger.info(
            f"Claim {claim.claim_number} audited: {len(glosas)} glosas, "
            f"deductions {claim.total_deductions}, accepted {claim.accepted_amount}"
        )
        return outcome

    # =========================================================================
    # Full Audit
    # =========================================================================

    async def run_full_audit(self, claim_id: UUID) -> AuditResult:
        """
        Run all six steps in one transaction.

        Raises:
            ClaimNotFoundError: If the claim does not exist.
            NoTariffFoundError: If no tariff applies.
        """
        start_time = time.perf_counter()
        try:
            claim = await self.get_claim_for_audit(claim_id, lock=True)
            warnings: list[str] = []
            observations: list[str] = []
            outcome = StepOutcome()
            for step in AUDIT_STEPS:
                outcome = await self.run_step(step.number, claim)
                warnings.extend(outcome.warnings)
                observations.extend(outcome.observations)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        processing_time_ms = int((time.perf_counter() - start_time) * 1000)
        return outcome.result.model_copy(
            update={
                "warnings": warnings,
                "observations": observations,
                "processing_time_ms": processing_time_ms,
            }
        )

    async def run_batch_audit(self, claim_ids: Sequence[UUID]) -> list[ClaimAuditOutcome]:
        """Audit each claim in its own transaction; a failure does not stop the batch."""
        outcomes = []
        for claim_id in claim_ids:
            try:
                result = await self.run_full_audit(claim_id)
                outcomes.append(ClaimAuditOutcome(claim_id=claim_id, success=True, result=result))
            except (AuditEngineError, SQLAlchemyError) as e:
                logger.error(f"Audit failed for claim {claim_id}: {e}")
                outcomes.append(ClaimAuditOutcome(claim_id=claim_id, success=False, error=str(e)))

        succeeded = sum(1 for o in outcomes if o.success)
        logger.info(f"Batch audit finished: {succeeded}/{len(outcomes)} claims audited")
        return outcomes

    # =========================================================================
    # Totals and Glosa Edits
    # =========================================================================

    async def recompute_claim_totals(self, claim_id: UUID) -> Claim:
        """Recompute line and claim totals from the stored glosas."""
        claim = await self.get_claim_for_audit(claim_id, lock=True)
        for item in claim.line_items:
            item.recompute_deductions()
        self._recompute_totals(claim)
        await self.session.commit()
        return claim

    async def update_glosa(self, glosa_id: UUID, changes: GlosaUpdate) -> Glosa:
        """
        Apply a manual glosa edit and recompute totals.

        Rules are not re-run.

        Raises:
            GlosaNotFoundError: If the glosa does not exist.
        """
        result = await self.session.execute(select(Glosa).where(Glosa.id == glosa_id))
        glosa = result.scalar_one_or_none()
        if glosa is None:
            raise GlosaNotFoundError(f"Glosa not found: {glosa_id}")

        try:
            updates = changes.model_dump(exclude_unset=True)
            if updates.get("amount") is not None:
                glosa.amount = to_money(updates["amount"])
            if updates.get("status") is not None:
                glosa.status = updates["status"]
            for name in ("justification", "observations"):
                if name in updates:
                    setattr(glosa, name, updates[name])
            if "provider_response" in updates:
                glosa.provider_response = updates["provider_response"]
                glosa.responded_at = utcnow()
            await self.session.flush()

            claim = await self.get_claim_for_audit(glosa.claim_id, lock=True)
            for item in claim.line_items:
                if item.id == glosa.line_item_id:
                    item.recompute_deductions()
            self._recompute_totals(claim)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info(
            f"Glosa {glosa.code} on claim {claim.claim_number} updated; "
            f"deductions {claim.total_deductions}, accepted {claim.accepted_amount}"
        )
        return glosa

    # =========================================================================
    # Helpers
    # =========================================================================

    def _recompute_totals(self, claim: Claim) -> list[Glosa]:
        glosas = [glosa for item in claim.line_items for glosa in item.glosas]
        claim.apply_totals(sum((g.amount for g in glosas), ZERO))
        return glosas

    def _build_result(self, claim: Claim, glosas: list[Glosa], observations: list[str]) -> AuditResult:
        by_category: dict[GlosaCategory, list[Decimal]] = defaultdict(list)
        for glosa in glosas:
            by_category[glosa.category].append(glosa.amount)

        summary = []
        if claim.total_deductions > ZERO:
            summary.append(f"{len(glosas)} glosas generated for a total of {self._money(claim.total_deductions)}")
        duplicates = sum(1 for item in claim.line_items if item.duplicate)
        if duplicates:
            summary.append(f"{duplicates} duplicate procedures detected")

        return AuditResult(
            claim_id=claim.id,
            claim_number=claim.claim_number,
            original_amount=claim.total_amount,
            total_deductions=claim.total_deductions,
            accepted_amount=claim.accepted_amount,
            glosa_count=len(glosas),
            deductions_by_category=[
                CategoryTotal(category=category, amount=sum(amounts, ZERO), count=len(amounts))
                for category, amounts in sorted(by_category.items(), key=lambda pair: pair[0].value)
            ],
            observations=summary + observations,
            audited_at=claim.audited_at,
        )

    def _claim_evidence(self, claim: Claim) -> list[EvidenceItem]:
        evidence = [
            EvidenceItem(
                field="Claim number",
                value=claim.claim_number,
                source="Claim",
                location="claim_number",
                explanation="Unique invoice identifier for tracking and audit",
            ),
            EvidenceItem(
                field="Provider tax ID",
                value=claim.provider_tax_id,
                source="Claim",
                location="provider_tax_id",
                explanation="Identifies the billing provider to match contracts and tariffs",
            ),
            EvidenceItem(
                field="Payer",
                value=claim.payer_id,
                source="Claim",
                location="payer_id",
                explanation="Identifies the payer to select the applicable tariff",
            ),
        ]

        encounter = claim.encounters[0] if claim.encounters else None
        if encounter is not None:
            evidence.append(
                EvidenceItem(
                    field="Patient document",
                    value=f"{encounter.patient_document_type.value} {encounter.patient_document_number}",
                    source="Encounter",
                    location=f"encounter {encounter.encounter_number}",
                    explanation="Identifies the patient for authorization and duplicate checks",
                )
            )
            if encounter.principal_diagnosis:
                evidence.append(
                    EvidenceItem(
                        field="ICD-10 diagnosis",
                        value=encounter.principal_diagnosis,
                        source="Encounter",
                        location="principal_diagnosis",
                        explanation="Principal diagnosis used for pertinence checks",
                    )
                )
            if encounter.authorization_number:
                evidence.append(
                    EvidenceItem(
                        field="Authorization number",
                        value=encounter.authorization_number,
                        source="Encounter",
                        location="authorization_number",
                        explanation="Payer authorization for the encounter procedures",
                    )
                )

        line_items = claim.line_items
        if line_items:
            first = line_items[0]
            evidence.append(
                EvidenceItem(
                    field="Billed value",
                    value=self._money(first.billed_total),
                    source="Line item",
                    location=f"line {first.line_number} ({first.procedure_code})",
                    explanation="Amount billed by the provider, compared against the tariff",
                )
            )
        return evidence

    def _money(self, value: Optional[Decimal]) -> str:
        return format_money(value or ZERO, self.settings.CURRENCY)
