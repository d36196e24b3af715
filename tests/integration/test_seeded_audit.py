"""
Integration Tests for the Reference Data and the Default Audit Rules
"""

from datetime import date, timedelta
from decimal import Decimal

import pytest
from sqlalchemy import select

from glosa_audit.core.enums import GlosaCategory
from glosa_audit.db.seeds import AUDIT_RULES, PROCEDURE_CODES, TARIFFS, seed_reference_data
from glosa_audit.models import AuditRule, Glosa, Tariff
from glosa_audit.services.audit_service import AuditService
from glosa_audit.services.tariff_resolver import TariffResolver

SURA = "800088702"
ENCOUNTER_START = date(2024, 3, 10)


@pytest.fixture
async def seeded(db_session):
    return await seed_reference_data(db_session)


@pytest.fixture
def service(db_session, settings):
    return AuditService(db_session, settings=settings)


async def glosa_codes(db_session, claim_id):
    result = await db_session.execute(select(Glosa.code, Glosa.amount).where(Glosa.claim_id == claim_id))
    return sorted((code, amount) for code, amount in result.all())


@pytest.mark.integration
@pytest.mark.asyncio
class TestSeeds:
    """Test reference data seeding"""

    async def test_counts(self, seeded):
        assert seeded == {
            "procedure_codes": len(PROCEDURE_CODES),
            "tariffs": len(TARIFFS),
            "audit_rules": len(AUDIT_RULES),
        }

    async def test_idempotent(self, db_session, seeded):
        again = await seed_reference_data(db_session)
        assert again == {"procedure_codes": 0, "tariffs": 0, "audit_rules": 0}

    async def test_default_reference_tariff(self, db_session, seeded):
        tariff = await TariffResolver(db_session).resolve("unknown-payer", date(2024, 6, 1))
        assert tariff.name == "ISS 2004"
        assert tariff.is_default_reference is True

        defaults = await db_session.execute(select(Tariff.name).where(Tariff.is_default_reference.is_(True)))
        assert defaults.scalars().all() == ["ISS 2004"]

    async def test_inactive_rule_not_loaded(self, db_session, seeded, service):
        rules = await service.rule_engine.load_active_rules()
        codes = [rule.code for rule in rules]

        assert "REGLA_009" not in codes
        assert len(codes) == len(AUDIT_RULES) - 1
        priorities = [rule.priority for rule in rules]
        assert priorities == sorted(priorities)
        # REGLA_002 and REGLA_006 share priority 5
        assert codes[:2] == ["REGLA_002", "REGLA_006"]

        stored = await db_session.execute(select(AuditRule).where(AuditRule.code == "REGLA_008"))
        assert stored.scalar_one().pricing().percentage == Decimal("50")


@pytest.mark.integration
@pytest.mark.asyncio
class TestDefaultRules:
    """Test audits with the seeded tariffs and rules"""

    async def test_contract_tariff_difference_and_duplicate(self, db_session, seeded, service, create_claim):
        claim = await create_claim(
            payer_id=SURA,
            lines=[("890201", 1, "50000"), ("890201", 1, "50000")],
        )

        result = await service.run_full_audit(claim.id)

        # Contract price 43,000: 7,000 difference on both lines, second line duplicated
        assert result.total_deductions == Decimal("64000")
        assert result.accepted_amount == Decimal("36000")
        assert [(c.category, c.amount, c.count) for c in result.deductions_by_category] == [
            (GlosaCategory.DUPLICATE, Decimal("50000"), 1),
            (GlosaCategory.TARIFF, Decimal("14000"), 2),
        ]

    async def test_overcharge_above_twenty_percent(self, db_session, seeded, service, create_claim):
        claim = await create_claim(payer_id=SURA, lines=[("890201", 1, "60000")])

        await service.run_full_audit(claim.id)

        assert await glosa_codes(db_session, claim.id) == [
            ("G001", Decimal("17000")),
            ("G001-A", Decimal("17000")),
        ]

    async def test_missing_authorization(self, db_session, seeded, service, create_claim):
        claim = await create_claim(payer_id=SURA, lines=[("890301", 1, "65000")])

        result = await service.run_full_audit(claim.id)

        assert await glosa_codes(db_session, claim.id) == [("G002", Decimal("65000"))]
        assert result.accepted_amount == 0

    async def test_authorization_out_of_window(self, db_session, seeded, service, create_claim):
        claim = await create_claim(
            payer_id=SURA,
            lines=[("890301", 1, "65000")],
            authorization_number="AUT-2024-001",
            authorization_date=ENCOUNTER_START - timedelta(days=35),
        )

        await service.run_full_audit(claim.id)

        assert await glosa_codes(db_session, claim.id) == [("G002-A", Decimal("65000"))]

    async def test_valid_authorization(self, db_session, seeded, service, create_claim):
        claim = await create_claim(
            payer_id=SURA,
            lines=[("890301", 1, "65000")],
            authorization_number="AUT-2024-001",
            authorization_date=ENCOUNTER_START - timedelta(days=10),
        )

        result = await service.run_full_audit(claim.id)

        assert result.glosa_count == 0
        assert result.accepted_amount == Decimal("65000")

    async def test_missing_supporting_documents(self, db_session, seeded, service, create_claim):
        claim = await create_claim(payer_id=SURA, lines=[("890201", 1, "43000")], documents=())

        await service.run_full_audit(claim.id)

        assert await glosa_codes(db_session, claim.id) == [("G007", Decimal("43000"))]

    async def test_reference_tariff_outside_contract_window(self, db_session, seeded, service, create_claim):
        claim = await create_claim(
            payer_id=SURA,
            issue_date=date(2025, 2, 1),
            lines=[("890201", 1, "43000")],
        )

        result = await service.run_full_audit(claim.id)

        # ISS 2004 price is 42,000
        assert await glosa_codes(db_session, claim.id) == [("G001", Decimal("1000"))]
        assert result.total_deductions == Decimal("1000")
