"""
Authorization Validator.

Determines, per encounter, whether prior authorization was required and,
when it was, whether an authorization exists and falls within the validity
window before the encounter start.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Optional, Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from glosa_audit.models.claim import Encounter
from glosa_audit.models.procedure import ProcedureCode

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_DAYS = 30


# =============================================================================
# Requirement Lookups
# =============================================================================


class AuthorizationRequirementLookup(Protocol):
    """Answers whether a procedure code needs prior authorization."""

    async def requires_authorization(self, procedure_code: str) -> bool: ...


class StaticAuthorizationLookup:
    """Lookup backed by a fixed set of codes."""

    def __init__(self, codes: Iterable[str] = ()):
        self.codes = frozenset(codes)

    async def requires_authorization(self, procedure_code: str) -> bool:
        return procedure_code in self.codes


class CatalogAuthorizationLookup:
    """
    Lookup backed by the procedure_codes table.

    Codes missing from the catalogue do not require authorization.
    Answers are cached for the lifetime of the instance.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self._cache: dict[str, bool] = {}

    async def requires_authorization(self, procedure_code: str) -> bool:
        if procedure_code not in self._cache:
            result = await self.session.execute(
                select(ProcedureCode.requires_authorization).where(ProcedureCode.code == procedure_code)
            )
            self._cache[procedure_code] = bool(result.scalar_one_or_none())
        return self._cache[procedure_code]


# =============================================================================
# Validator
# =============================================================================


def authorization_in_window(
    authorization_date: Optional[date],
    start_date: date,
    window_days: int = DEFAULT_WINDOW_DAYS,
) -> bool:
    """True when the authorization predates the start by 0..window_days days."""
    if authorization_date is None:
        return False
    days = (start_date - authorization_date).days
    return 0 <= days <= window_days


@dataclass
class AuthorizationReport:
    required: int = 0
    valid: int = 0
    missing: list[str] = field(default_factory=list)
    expired: list[str] = field(default_factory=list)


class AuthorizationValidator:
    def __init__(
        self,
        lookup: AuthorizationRequirementLookup,
        window_days: int = DEFAULT_WINDOW_DAYS,
    ):
        self.lookup = lookup
        self.window_days = window_days

    async def validate(self, encounters: Iterable[Encounter]) -> AuthorizationReport:
        report = AuthorizationReport()

        for encounter in encounters:
            required = False
            for item in encounter.line_items:
                item.requires_authorization = await self.lookup.requires_authorization(item.procedure_code)
                required = required or item.requires_authorization

            encounter.authorization_required = required
            if not required:
                encounter.has_authorization = True
                encounter.authorization_valid = True
                continue

            report.required += 1
            encounter.has_authorization = bool(encounter.authorization_number)
            encounter.authorization_valid = authorization_in_window(
                encounter.authorization_date, encounter.start_date, self.window_days
            )

            if not encounter.has_authorization:
                report.missing.append(encounter.encounter_number)
            elif not encounter.authorization_valid:
                report.expired.append(encounter.encounter_number)
            else:
                report.valid += 1

        if report.missing or report.expired:
            logger.info(
                f"Authorization issues: {len(report.missing)} missing, {len(report.expired)} out of window"
            )
        return report
