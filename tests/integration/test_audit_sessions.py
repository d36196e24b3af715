"""
Integration Tests for Step-by-Step Audit Sessions
"""

from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import select

from glosa_audit.core.enums import ClaimStatus, ConditionOperator, SessionStatus, StepStatus
from glosa_audit.core.exceptions import (
    AuditSessionNotFoundError,
    ClaimNotFoundError,
    InvalidStepSequenceError,
    NoTariffFoundError,
)
from glosa_audit.models import TOTAL_STEPS, AuditSession, Claim
from glosa_audit.schemas.audit import AuditSessionRead
from glosa_audit.schemas.rule import DifferencePricing, PercentagePricing
from glosa_audit.services.audit_service import AuditService
from glosa_audit.services.audit_session_service import AuditSessionService


@pytest.fixture
def session_service(db_session, settings):
    return AuditSessionService(db_session, audit_service=AuditService(db_session, settings=settings))


@pytest.fixture
async def audited_claim_id(create_tariff, create_claim, create_rule):
    """Claim billed 2 x 50,000 against a 40,000 tariff with two overcharge rules."""
    await create_tariff(prices={"890201": "40000"}, is_default_reference=True)
    await create_rule("DIFF", [("delta", ConditionOperator.GT, 0)], DifferencePricing(), priority=1)
    await create_rule(
        "HALF",
        [("percentage_delta", ConditionOperator.GT, 20)],
        PercentagePricing(percentage=Decimal("50")),
        priority=2,
    )
    claim = await create_claim(lines=[("890201", 2, "50000")])
    return claim.id


@pytest.mark.integration
@pytest.mark.asyncio
class TestSessionLifecycle:
    """Test creating and completing audit sessions"""

    async def test_start_session(self, session_service, audited_claim_id):
        audit_session = await session_service.start_session(audited_claim_id)

        assert audit_session.status == SessionStatus.STARTED
        assert audit_session.current_step == 0
        assert audit_session.total_steps == TOTAL_STEPS
        assert [s.number for s in audit_session.steps] == [1, 2, 3, 4, 5, 6]
        assert all(s.status == StepStatus.PENDING for s in audit_session.steps)
        assert audit_session.steps[1].title == "Tariff Lookup"

    async def test_start_session_unknown_claim(self, session_service):
        with pytest.raises(ClaimNotFoundError):
            await session_service.start_session(uuid4())

    async def test_get_unknown_session(self, session_service):
        with pytest.raises(AuditSessionNotFoundError):
            await session_service.get_session(uuid4())

    async def test_advance_through_all_steps(self, db_session, session_service, audited_claim_id):
        started = await session_service.start_session(audited_claim_id)
        session_id = started.id

        for number in range(1, TOTAL_STEPS + 1):
            audit_session = await session_service.advance_session(session_id)
            assert audit_session.current_step == number
            assert audit_session.step(number).status == StepStatus.COMPLETED

        assert audit_session.status == SessionStatus.COMPLETED
        assert audit_session.completed_at is not None
        assert audit_session.original_amount == Decimal("100000")
        assert audit_session.total_deductions == Decimal("70000")
        assert audit_session.accepted_amount == Decimal("30000")
        assert audit_session.glosa_count == 2

        for step in audit_session.steps:
            assert step.duration_ms is not None
            assert step.started_at is not None
            assert step.finished_at is not None
            assert step.process_notes
            assert step.results

        first_evidence = audit_session.step(1).evidence[0]
        assert first_evidence["field"] == "Claim number"
        assert first_evidence["source"] == "Claim"

        glosa_evidence = audit_session.step(6).evidence[0]
        assert glosa_evidence["field"] == "Glosa #1 - tariff"
        assert glosa_evidence["value"] == "$20,000.00 COP"

        status = await db_session.execute(select(Claim.status).where(Claim.id == audited_claim_id))
        assert status.scalar_one() == ClaimStatus.AUDITED

        # Serializes for the API
        read = AuditSessionRead.model_validate(audit_session)
        assert read.steps[5].results[0].label == "Glosas generated"

    async def test_explicit_step_number(self, session_service, audited_claim_id):
        started = await session_service.start_session(audited_claim_id)

        audit_session = await session_service.advance_session(started.id, step_number=1)

        assert audit_session.current_step == 1

    async def test_list_sessions(self, session_service, audited_claim_id):
        await session_service.start_session(audited_claim_id)
        await session_service.start_session(audited_claim_id)

        sessions = await session_service.list_sessions(audited_claim_id)

        assert len(sessions) == 2
        assert await session_service.list_sessions(uuid4()) == []


@pytest.mark.integration
@pytest.mark.asyncio
class TestSessionSequencing:
    """Test rejected advances leave the session untouched"""

    async def test_step_number_mismatch(self, session_service, audited_claim_id):
        started = await session_service.start_session(audited_claim_id)
        session_id = started.id

        with pytest.raises(InvalidStepSequenceError) as exc_info:
            await session_service.advance_session(session_id, step_number=2)

        assert "Expected step 1" in str(exc_info.value)
        audit_session = await session_service.get_session(session_id)
        assert audit_session.current_step == 0
        assert audit_session.status == SessionStatus.STARTED
        assert audit_session.step(1).status == StepStatus.PENDING

    async def test_current_step_not_completed(self, db_session, session_service, audited_claim_id):
        started = await session_service.start_session(audited_claim_id)
        session_id = started.id
        audit_session = await session_service.get_session(session_id)
        audit_session.current_step = 3
        audit_session.status = SessionStatus.IN_PROGRESS
        audit_session.step(3).status = StepStatus.IN_PROGRESS
        await db_session.commit()

        with pytest.raises(InvalidStepSequenceError):
            await session_service.advance_session(session_id)

        audit_session = await session_service.get_session(session_id)
        assert audit_session.current_step == 3
        assert audit_session.status == SessionStatus.IN_PROGRESS
        assert audit_session.step(4).status == StepStatus.PENDING

    async def test_completed_session_cannot_advance(self, session_service, audited_claim_id):
        started = await session_service.start_session(audited_claim_id)
        for _ in range(TOTAL_STEPS):
            await session_service.advance_session(started.id)

        with pytest.raises(InvalidStepSequenceError):
            await session_service.advance_session(started.id)

    async def test_failed_step_marks_session_error(self, db_session, session_service, create_claim):
        claim = await create_claim()
        claim_id = claim.id
        started = await session_service.start_session(claim_id)
        session_id = started.id

        await session_service.advance_session(session_id)
        with pytest.raises(NoTariffFoundError):
            await session_service.advance_session(session_id)

        audit_session = await session_service.get_session(session_id)
        assert audit_session.status == SessionStatus.ERROR
        assert audit_session.current_step == 2
        failed = audit_session.step(2)
        assert failed.status == StepStatus.ERROR
        assert "No applicable tariff" in failed.error
        assert failed.started_at is not None
        assert failed.duration_ms is not None
        assert audit_session.step(1).status == StepStatus.COMPLETED

        # Step 1 committed before the failure
        status = await db_session.execute(select(Claim.status).where(Claim.id == claim_id))
        assert status.scalar_one() == ClaimStatus.IN_AUDIT

        with pytest.raises(InvalidStepSequenceError):
            await session_service.advance_session(session_id)


@pytest.mark.parametrize(
    "status,terminal",
    [
        (SessionStatus.STARTED, False),
        (SessionStatus.IN_PROGRESS, False),
        (SessionStatus.COMPLETED, True),
        (SessionStatus.ERROR, True),
    ],
)
def test_terminal_statuses(status, terminal):
    assert AuditSession(status=status).is_terminal is terminal
