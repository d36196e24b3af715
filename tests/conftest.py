"""
Pytest Configuration and Fixtures.
Shared test fixtures for all test modules.
"""

import os
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Sequence
from unittest.mock import AsyncMock
from uuid import UUID, uuid4

import pytest
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

os.environ.setdefault("AUDIT_ENVIRONMENT", "testing")
os.environ.setdefault("AUDIT_DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from glosa_audit.core.config import AuditSettings  # noqa: E402
from glosa_audit.core.enums import (  # noqa: E402
    ClaimStatus,
    GlosaCategory,
    LogicalOperator,
    PatientDocumentType,
    TariffType,
)
from glosa_audit.db.connection import create_all, create_session_maker  # noqa: E402
from glosa_audit.models import (  # noqa: E402
    AuditRule,
    Claim,
    Encounter,
    LineItem,
    SupportingDocument,
    Tariff,
    TariffEntry,
)
from glosa_audit.schemas.rule import (  # noqa: E402
    AuditRuleCreate,
    GlosaTemplate,
    RuleConditionSchema,
)
from glosa_audit.utils.money import ZERO  # noqa: E402

ENCOUNTER_START = date(2024, 3, 10)
ISSUE_DATE = date(2024, 3, 15)


# =============================================================================
# Settings and Database
# =============================================================================


@pytest.fixture
def settings():
    """Settings for an in-memory SQLite database."""
    return AuditSettings(
        ENVIRONMENT="testing",
        DATABASE_URL="sqlite+aiosqlite:///:memory:",
        LOG_LEVEL="DEBUG",
    )


@pytest.fixture
async def engine():
    """One in-memory database per test, shared across connections."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await create_all(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(engine):
    session_maker = create_session_maker(engine)
    async with session_maker() as session:
        yield session


@pytest.fixture
def mock_db_session():
    """Create a mock database session."""
    session = AsyncMock()
    session.execute = AsyncMock()
    session.commit = AsyncMock()
    session.flush = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    return session


# =============================================================================
# In-Memory Builders
# =============================================================================


@pytest.fixture
def build_line_item():
    """Build a transient line item with every audited field set."""

    def _build(
        procedure_code: str = "890201",
        quantity: int = 1,
        unit_price: str = "50000",
        line_number: int = 1,
        contracted_unit_price: Optional[str] = None,
        **overrides,
    ) -> LineItem:
        billed_unit_price = Decimal(unit_price)
        item = LineItem(
            id=uuid4(),
            encounter_id=uuid4(),
            claim_id=uuid4(),
            line_number=line_number,
            procedure_code=procedure_code,
            description=None,
            quantity=quantity,
            billed_unit_price=billed_unit_price,
            billed_total=billed_unit_price * quantity,
            contracted_unit_price=ZERO,
            contracted_total=ZERO,
            tariff_delta=ZERO,
            deducted_total=ZERO,
            payable_amount=billed_unit_price * quantity,
            requires_authorization=False,
            duplicate=False,
            tariff_validated=False,
            pertinence_validated=True,
        )
        if contracted_unit_price is not None:
            item.set_contracted_price(Decimal(contracted_unit_price))
        for name, value in overrides.items():
            setattr(item, name, value)
        return item

    return _build


@pytest.fixture
def build_encounter():
    """Build a transient encounter around the given line items."""

    def _build(
        line_items: Sequence[LineItem] = (),
        encounter_number: str = "ENC-001",
        principal_diagnosis: Optional[str] = "J189",
        authorization_number: Optional[str] = None,
        authorization_date: Optional[date] = None,
        start_date: date = ENCOUNTER_START,
        documents: Iterable[str] = (),
        has_authorization: bool = True,
        authorization_valid: bool = True,
    ) -> Encounter:
        encounter = Encounter(
            id=uuid4(),
            claim_id=uuid4(),
            encounter_number=encounter_number,
            patient_document_type=PatientDocumentType.CC,
            patient_document_number="1020304050",
            principal_diagnosis=principal_diagnosis,
            secondary_diagnoses=[],
            start_date=start_date,
            authorization_number=authorization_number,
            authorization_date=authorization_date,
            authorization_required=False,
            has_authorization=has_authorization,
            authorization_valid=authorization_valid,
            copayment=ZERO,
            moderating_fee=ZERO,
        )
        encounter.line_items.extend(line_items)
        encounter.supporting_documents.extend(
            SupportingDocument(document_type=doc, filename=f"{doc}.pdf") for doc in documents
        )
        return encounter

    return _build


# =============================================================================
# Persisted Builders
# =============================================================================


@pytest.fixture
def create_tariff(db_session):
    """Persist a tariff with the given code -> unit price entries."""

    async def _create(
        name: str = "ISS 2004",
        prices: Optional[dict[str, str]] = None,
        payer_id: Optional[str] = None,
        effective_start: date = date(2004, 1, 1),
        effective_end: Optional[date] = None,
        is_default_reference: bool = False,
        is_active: bool = True,
        tariff_type: TariffType = TariffType.ISS,
    ) -> Tariff:
        tariff = Tariff(
            name=name,
            tariff_type=tariff_type,
            payer_id=payer_id,
            effective_start=effective_start,
            effective_end=effective_end,
            is_active=is_active,
            is_default_reference=is_default_reference,
            entries=[
                TariffEntry(procedure_code=code, unit_price=Decimal(price))
                for code, price in (prices or {"890201": "40000"}).items()
            ],
        )
        db_session.add(tariff)
        await db_session.commit()
        return tariff

    return _create


@pytest.fixture
def create_claim(db_session):
    """
    Persist a claim with one encounter.

    lines is a list of (procedure_code, quantity, unit_price).
    """

    async def _create(
        lines: Sequence[tuple[str, int, str]] = (("890201", 2, "50000"),),
        payer_id: str = "860000001",
        issue_date: date = ISSUE_DATE,
        tariff_id: Optional[UUID] = None,
        total_amount: Optional[str] = None,
        principal_diagnosis: Optional[str] = "J189",
        authorization_number: Optional[str] = None,
        authorization_date: Optional[date] = None,
        documents: Iterable[str] = ("clinical_history",),
        status: ClaimStatus = ClaimStatus.FILED,
    ) -> Claim:
        claim_id = uuid4()
        billed = [Decimal(price) * quantity for _, quantity, price in lines]
        total = Decimal(total_amount) if total_amount is not None else sum(billed, ZERO)

        encounter = Encounter(
            claim_id=claim_id,
            encounter_number="ENC-001",
            patient_document_type=PatientDocumentType.CC,
            patient_document_number="1020304050",
            principal_diagnosis=principal_diagnosis,
            secondary_diagnoses=[],
            start_date=ENCOUNTER_START,
            authorization_number=authorization_number,
            authorization_date=authorization_date,
            line_items=[
                LineItem(
                    claim_id=claim_id,
                    line_number=number,
                    procedure_code=code,
                    quantity=quantity,
                    billed_unit_price=Decimal(price),
                    billed_total=Decimal(price) * quantity,
                )
                for number, (code, quantity, price) in enumerate(lines, start=1)
            ],
            supporting_documents=[
                SupportingDocument(document_type=doc, filename=f"{doc}.pdf") for doc in documents
            ],
        )
        claim = Claim(
            id=claim_id,
            claim_number=f"FE-{uuid4().hex[:8].upper()}",
            issue_date=issue_date,
            provider_tax_id="900123456",
            provider_name="Clinica Central",
            payer_id=payer_id,
            payer_name="EPS Test",
            tariff_id=tariff_id,
            gross_amount=total,
            total_amount=total,
            status=status,
            encounters=[encounter],
        )
        db_session.add(claim)
        await db_session.commit()
        return claim

    return _create


@pytest.fixture
def create_rule(db_session):
    """Persist an audit rule from conditions and a pricing variant."""

    async def _create(
        code: str,
        conditions: Sequence[tuple],
        pricing,
        priority: int = 100,
        logical_operator: LogicalOperator = LogicalOperator.AND,
        category: GlosaCategory = GlosaCategory.TARIFF,
        is_active: bool = True,
    ) -> AuditRule:
        rule = AuditRule.from_definition(
            AuditRuleCreate(
                code=code,
                name=f"Rule {code}",
                priority=priority,
                is_active=is_active,
                logical_operator=logical_operator,
                conditions=[
                    RuleConditionSchema(field=c[0], operator=c[1], value=c[2] if len(c) > 2 else None)
                    for c in conditions
                ],
                glosa=GlosaTemplate(
                    code=f"G-{code}",
                    category=category,
                    description=f"Glosa for {code}",
                    pricing=pricing,
                ),
            )
        )
        db_session.add(rule)
        await db_session.commit()
        return rule

    return _create


# Configure pytest markers
def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
    config.addinivalue_line(
        "markers", "api: mark test as an API test"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )
