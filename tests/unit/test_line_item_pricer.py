"""
Unit Tests for Line-Item Pricing
"""

from datetime import date
from decimal import Decimal

import pytest

from glosa_audit.core.enums import TariffType
from glosa_audit.models import Tariff, TariffEntry
from glosa_audit.services.line_item_pricer import LineItemPricer


@pytest.fixture
def tariff():
    return Tariff(
        name="ISS 2004",
        tariff_type=TariffType.ISS,
        effective_start=date(2004, 1, 1),
        is_active=True,
        entries=[
            TariffEntry(procedure_code="890201", unit_price=Decimal("100000")),
            TariffEntry(procedure_code="902210", unit_price=Decimal("23500")),
        ],
    )


@pytest.mark.unit
class TestLineItemPricer:
    """Test tariff lookups per line item"""

    def test_positive_delta(self, tariff, build_line_item):
        item = build_line_item(procedure_code="890201", unit_price="150000")

        report = LineItemPricer().price([item], tariff)

        assert item.contracted_unit_price == Decimal("100000")
        assert item.contracted_total == Decimal("100000")
        assert item.tariff_delta == Decimal("50000")
        assert item.tariff_validated is True
        assert report.priced == 1
        assert report.with_positive_delta == 1
        assert report.total_delta == Decimal("50000")
        assert report.warnings == []

    def test_contracted_total_uses_quantity(self, tariff, build_line_item):
        item = build_line_item(procedure_code="902210", quantity=3, unit_price="23500")

        report = LineItemPricer().price([item], tariff)

        assert item.contracted_total == Decimal("70500")
        assert item.tariff_delta == 0
        assert report.with_positive_delta == 0

    def test_billed_below_tariff(self, tariff, build_line_item):
        item = build_line_item(procedure_code="890201", unit_price="90000")
        LineItemPricer().price([item], tariff)
        assert item.tariff_delta == Decimal("-10000")

    def test_unknown_code_is_a_warning(self, tariff, build_line_item):
        known = build_line_item(procedure_code="890201", unit_price="100000", line_number=1)
        unknown = build_line_item(procedure_code="999999", line_number=2)

        report = LineItemPricer().price([known, unknown], tariff)

        assert report.priced == 1
        assert len(report.unknown_codes) == 1
        assert report.unknown_codes[0].procedure_code == "999999"
        assert report.warnings == ["Procedure 999999 (line 2) not found in tariff ISS 2004"]
        assert unknown.tariff_validated is False
        assert unknown.contracted_total == 0
        assert unknown.tariff_delta == 0

    def test_repricing_clears_previous_price(self, tariff, build_line_item):
        item = build_line_item(procedure_code="999999", contracted_unit_price="10000")
        assert item.tariff_validated is True

        LineItemPricer().price([item], tariff)

        assert item.tariff_validated is False
        assert item.contracted_unit_price == 0
