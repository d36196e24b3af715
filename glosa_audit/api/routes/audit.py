"""
Audit API Endpoints.

Provides:
- One-shot audit of a claim
- Batch audit of several claims
- Step-by-step audit sessions
- Manual glosa edits
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status

from glosa_audit.api.deps import get_audit_service, get_audit_session_service
from glosa_audit.core.exceptions import (
    AuditSessionNotFoundError,
    ClaimNotFoundError,
    ClaimStatusTransitionError,
    GlosaNotFoundError,
    InvalidStepSequenceError,
    NoTariffFoundError,
    RuleConfigurationError,
)
from glosa_audit.schemas.audit import (
    AdvanceSessionRequest,
    AuditResult,
    AuditSessionRead,
    BatchAuditRequest,
    ClaimAuditOutcome,
)
from glosa_audit.schemas.glosa import GlosaRead, GlosaUpdate
from glosa_audit.services.audit_service import AuditService
from glosa_audit.services.audit_session_service import AuditSessionService
from glosa_audit.utils.errors import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/v1/audit",
    tags=["audit"],
)


# =============================================================================
# Audit Runs
# =============================================================================


@router.post(
    "/claims/{claim_id}/run",
    response_model=AuditResult,
)
async def run_claim_audit(
    claim_id: UUID,
    service: AuditService = Depends(get_audit_service),
) -> AuditResult:
    """Run the full audit of a claim in one transaction."""
    try:
        return await service.run_full_audit(claim_id)
    except ClaimNotFoundError as e:
        raise NotFoundError(str(e))
    except (NoTariffFoundError, RuleConfigurationError) as e:
        raise ValidationError(str(e))
    except ClaimStatusTransitionError as e:
        raise ConflictError(str(e))


@router.post(
    "/claims/batch",
    response_model=list[ClaimAuditOutcome],
)
async def run_batch_audit(
    request: BatchAuditRequest,
    service: AuditService = Depends(get_audit_service),
) -> list[ClaimAuditOutcome]:
    """Audit several claims; each succeeds or fails on its own."""
    return await service.run_batch_audit(request.claim_ids)


# =============================================================================
# Audit Sessions
# =============================================================================


@router.post(
    "/claims/{claim_id}/sessions",
    response_model=AuditSessionRead,
    status_code=status.HTTP_201_CREATED,
)
async def start_audit_session(
    claim_id: UUID,
    service: AuditSessionService = Depends(get_audit_session_service),
) -> AuditSessionRead:
    try:
        audit_session = await service.start_session(claim_id)
    except ClaimNotFoundError as e:
        raise NotFoundError(str(e))
    return AuditSessionRead.model_validate(audit_session)


@router.get(
    "/claims/{claim_id}/sessions",
    response_model=list[AuditSessionRead],
)
async def list_audit_sessions(
    claim_id: UUID,
    service: AuditSessionService = Depends(get_audit_session_service),
) -> list[AuditSessionRead]:
    sessions = await service.list_sessions(claim_id)
    return [AuditSessionRead.model_validate(s) for s in sessions]


@router.post(
    "/sessions/{session_id}/advance",
    response_model=AuditSessionRead,
)
async def advance_audit_session(
    session_id: UUID,
    request: Optional[AdvanceSessionRequest] = None,
    service: AuditSessionService = Depends(get_audit_session_service),
) -> AuditSessionRead:
    """
    Execute the next step of an audit session.

    A failing step marks the session as errored; the response carries the
    step error and the session can be inspected with GET.
    """
    try:
        audit_session = await service.advance_session(session_id, request.step_number if request else None)
    except (AuditSessionNotFoundError, ClaimNotFoundError) as e:
        raise NotFoundError(str(e))
    except InvalidStepSequenceError as e:
        raise ConflictError(str(e))
    except (NoTariffFoundError, RuleConfigurationError) as e:
        raise ValidationError(str(e))
    except ClaimStatusTransitionError as e:
        raise ConflictError(str(e))
    return AuditSessionRead.model_validate(audit_session)


@router.get(
    "/sessions/{session_id}",
    response_model=AuditSessionRead,
)
async def get_audit_session(
    session_id: UUID,
    service: AuditSessionService = Depends(get_audit_session_service),
) -> AuditSessionRead:
    try:
        audit_session = await service.get_session(session_id)
    except AuditSessionNotFoundError as e:
        raise NotFoundError(str(e))
    return AuditSessionRead.model_validate(audit_session)


# =============================================================================
# Glosas
# =============================================================================


@router.patch(
    "/glosas/{glosa_id}",
    response_model=GlosaRead,
)
async def update_glosa(
    glosa_id: UUID,
    changes: GlosaUpdate,
    service: AuditService = Depends(get_audit_service),
) -> GlosaRead:
    """Edit a glosa; claim totals are recomputed, rules are not re-run."""
    try:
        glosa = await service.update_glosa(glosa_id, changes)
    except GlosaNotFoundError as e:
        raise NotFoundError(str(e))
    return GlosaRead.model_validate(glosa)
