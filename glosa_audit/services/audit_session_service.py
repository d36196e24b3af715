"""
Step-by-Step Audit Session Service.

An operator advances a claim's audit one step at a time and can inspect the
evidence, process notes and results recorded for each step.

Session State Machine:
    STARTED (step 0) -> IN_PROGRESS -> ... -> COMPLETED (step 6)
    any non-terminal -> ERROR

A step runs in its own transaction. On success the step's writes and its
COMPLETED record commit together. On failure the step's writes are rolled
back, the step and session are marked ERROR and the exception propagates.
Failed steps are not retried.
"""

import logging
import time
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from glosa_audit.core.enums import SessionStatus, StepStatus
from glosa_audit.core.exceptions import (
    AuditSessionNotFoundError,
    ClaimNotFoundError,
    InvalidStepSequenceError,
)
from glosa_audit.models.audit_session import TOTAL_STEPS, AuditSession, AuditSessionStep
from glosa_audit.models.base import utcnow
from glosa_audit.models.claim import Claim
from glosa_audit.services.audit_service import AUDIT_STEPS, AuditService, StepOutcome

logger = logging.getLogger(__name__)


class AuditSessionService:
    """Drives audit sessions through the six audit steps."""

    def __init__(self, session: AsyncSession, audit_service: Optional[AuditService] = None):
        self.session = session
        self.audit_service = audit_service or AuditService(session)

    async def start_session(self, claim_id: UUID) -> AuditSession:
        """
        Create a session with six pending steps.

        Raises:
            ClaimNotFoundError: If the claim does not exist.
        """
        exists = await self.session.execute(select(Claim.id).where(Claim.id == claim_id))
        if exists.scalar_one_or_none() is None:
            raise ClaimNotFoundError(claim_id)

        audit_session = AuditSession(
            claim_id=claim_id,
            current_step=0,
            total_steps=TOTAL_STEPS,
            status=SessionStatus.STARTED,
            steps=[
                AuditSessionStep(
                    number=definition.number,
                    title=definition.title,
                    description=definition.description,
                    status=StepStatus.PENDING,
                    data_used=list(definition.data_used),
                    evidence=[],
                    process_notes=[],
                    results=[],
                )
                for definition in AUDIT_STEPS
            ],
        )
        self.session.add(audit_session)
        await self.session.commit()

        logger.info(f"Audit session {audit_session.id} started for claim {claim_id}")
        return await self.get_session(audit_session.id)

    async def get_session(self, session_id: UUID) -> AuditSession:
        """
        Raises:
            AuditSessionNotFoundError: If the session does not exist.
        """
        query = (
            select(AuditSession)
            .options(selectinload(AuditSession.steps))
            .where(AuditSession.id == session_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(query)
        audit_session = result.scalar_one_or_none()
        if audit_session is None:
            raise AuditSessionNotFoundError(f"Audit session not found: {session_id}")
        return audit_session

    async def list_sessions(self, claim_id: UUID) -> list[AuditSession]:
        query = (
            select(AuditSession)
            .options(selectinload(AuditSession.steps))
            .where(AuditSession.claim_id == claim_id)
            .order_by(AuditSession.created_at.desc())
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    def _check_can_advance(self, audit_session: AuditSession, step_number: Optional[int]) -> int:
        """Return the next step number or raise without touching the session."""
        if audit_session.is_terminal:
            if audit_session.status == SessionStatus.COMPLETED:
                raise InvalidStepSequenceError(f"Audit session {audit_session.id} is already completed")
            raise InvalidStepSequenceError(
                f"Audit session {audit_session.id} failed at step {audit_session.current_step}"
            )

        next_step = audit_session.current_step + 1
        if next_step > audit_session.total_steps:
            raise InvalidStepSequenceError(f"Audit session {audit_session.id} has no more steps")

        if audit_session.current_step > 0:
            current = audit_session.step(audit_session.current_step)
            if current is None or current.status != StepStatus.COMPLETED:
                raise InvalidStepSequenceError(
                    f"Step {audit_session.current_step} is not completed"
                )

        if step_number is not None and step_number != next_step:
            raise InvalidStepSequenceError(f"Expected step {next_step}, got step {step_number}")

        return next_step

    async def advance_session(self, session_id: UUID, step_number: Optional[int] = None) -> AuditSession:
        """
        Execute the next step of a session.

        Raises:
            AuditSessionNotFoundError: If the session does not exist.
            InvalidStepSequenceError: If the session cannot advance to the requested step.
        """
        audit_session = await self.get_session(session_id)
        next_step = self._check_can_advance(audit_session, step_number)

        step = audit_session.step(next_step)
        step.status = StepStatus.IN_PROGRESS
        started_at = utcnow()
        step.started_at = started_at
        step.error = None
        audit_session.current_step = next_step
        audit_session.status = SessionStatus.IN_PROGRESS

        start_time = time.perf_counter()
        try:
            claim = await self.audit_service.get_claim_for_audit(audit_session.claim_id, lock=True)
            outcome = await self.audit_service.run_step(next_step, claim)
            self._record_success(audit_session, step, outcome, start_time)
            await self.session.commit()
        except Exception as e:
            await self.session.rollback()
            await self._record_failure(session_id, next_step, e, started_at, start_time)
            raise

        logger.info(
            f"Audit session {session_id}: step {next_step} '{step.title}' completed in {step.duration_ms}ms"
        )
        return await self.get_session(session_id)

    def _record_success(
        self,
        audit_session: AuditSession,
        step: AuditSessionStep,
        outcome: StepOutcome,
        start_time: float,
    ) -> None:
        step.status = StepStatus.COMPLETED
        step.finished_at = utcnow()
        step.duration_ms = int((time.perf_counter() - start_time) * 1000)
        step.evidence = [item.model_dump(mode="json") for item in outcome.evidence]
        step.process_notes = list(outcome.process_notes) + [f"Warning: {w}" for w in outcome.warnings]
        step.results = [line.model_dump(mode="json") for line in outcome.results]

        if outcome.result is not None:
            audit_session.original_amount = outcome.result.original_amount
            audit_session.total_deductions = outcome.result.total_deductions
            audit_session.accepted_amount = outcome.result.accepted_amount
            audit_session.glosa_count = outcome.result.glosa_count

        if step.number == audit_session.total_steps:
            audit_session.status = SessionStatus.COMPLETED
            audit_session.completed_at = utcnow()

    async def _record_failure(
        self,
        session_id: UUID,
        step_number: int,
        error: Exception,
        started_at: datetime,
        start_time: float,
    ) -> None:
        logger.error(f"Audit session {session_id}: step {step_number} failed: {error}")

        audit_session = await self.get_session(session_id)
        step = audit_session.step(step_number)
        step.status = StepStatus.ERROR
        step.error = str(error)
        step.started_at = started_at
        step.finished_at = utcnow()
        step.duration_ms = int((time.perf_counter() - start_time) * 1000)
        audit_session.current_step = step_number
        audit_session.status = SessionStatus.ERROR
        await self.session.commit()
