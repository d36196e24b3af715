"""
FastAPI Dependencies
Dependency injection for database sessions and audit services
Source: https://fastapi.tiangolo.com/tutorial/dependencies/
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from glosa_audit.core.config import AuditSettings, get_settings
from glosa_audit.db.connection import get_session
from glosa_audit.services.audit_service import AuditService
from glosa_audit.services.audit_session_service import AuditSessionService


async def get_audit_service(
    session: AsyncSession = Depends(get_session),
    settings: AuditSettings = Depends(get_settings),
) -> AuditService:
    """Audit service bound to the request's database session."""
    return AuditService(session, settings=settings)


async def get_audit_session_service(
    audit_service: AuditService = Depends(get_audit_service),
) -> AuditSessionService:
    return AuditSessionService(audit_service.session, audit_service=audit_service)
