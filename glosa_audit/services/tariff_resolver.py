"""
Tariff Resolver.

Selects the price catalogue a claim is audited against:
1. The tariff pinned on the claim, when present
2. The payer's active tariff whose effective window contains the date
3. The default reference tariff
"""

import logging
from datetime import date
from typing import Optional
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from glosa_audit.core.exceptions import NoTariffFoundError
from glosa_audit.models.tariff import Tariff

logger = logging.getLogger(__name__)


class TariffResolver:
    """Resolves the applicable tariff for a payer and reference date."""

    def __init__(self, session: AsyncSession, default_tariff_name: str = "ISS 2004"):
        self.session = session
        self.default_tariff_name = default_tariff_name

    async def resolve(
        self,
        payer_id: Optional[str],
        reference_date: date,
        tariff_id: Optional[UUID] = None,
    ) -> Tariff:
        """
        Resolve the tariff for a claim.

        Raises:
            NoTariffFoundError: If no candidate applies.
        """
        if tariff_id is not None:
            tariff = await self._get_pinned(tariff_id)
            if tariff is None:
                raise NoTariffFoundError(
                    payer_id, f"Tariff {tariff_id} pinned on the claim does not exist or is inactive"
                )
            logger.debug(f"Using pinned tariff {tariff.name}")
            return tariff

        if payer_id:
            tariff = await self._get_payer_tariff(payer_id, reference_date)
            if tariff is not None:
                logger.debug(f"Using payer tariff {tariff.name} for {payer_id}")
                return tariff

        tariff = await self._get_default_reference()
        if tariff is not None:
            logger.debug(f"Using reference tariff {tariff.name}")
            return tariff

        raise NoTariffFoundError(payer_id)

    def _base_query(self):  # type: ignore[no-untyped-def]
        return select(Tariff).options(selectinload(Tariff.entries)).where(Tariff.is_active.is_(True))

    async def _get_pinned(self, tariff_id: UUID) -> Optional[Tariff]:
        result = await self.session.execute(self._base_query().where(Tariff.id == tariff_id))
        return result.scalar_one_or_none()

    async def _get_payer_tariff(self, payer_id: str, reference_date: date) -> Optional[Tariff]:
        query = (
            self._base_query()
            .where(
                Tariff.payer_id == payer_id,
                Tariff.effective_start <= reference_date,
                or_(Tariff.effective_end.is_(None), Tariff.effective_end >= reference_date),
            )
            .order_by(Tariff.effective_start.desc())
            .limit(1)
        )
        result = await self.session.execute(query)
        return result.scalars().first()

    async def _get_default_reference(self) -> Optional[Tariff]:
        query = (
            self._base_query()
            .where(
                or_(
                    Tariff.is_default_reference.is_(True),
                    Tariff.name == self.default_tariff_name,
                )
            )
            .order_by(Tariff.is_default_reference.desc(), Tariff.effective_start.desc())
            .limit(1)
        )
        result = await self.session.execute(query)
        return result.scalars().first()
