"""
Line-Item Pricer.

Looks up each billed procedure in the resolved tariff and records the
contracted price and the deviation from it.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable

from glosa_audit.models.claim import LineItem
from glosa_audit.models.tariff import Tariff
from glosa_audit.utils.money import ZERO

logger = logging.getLogger(__name__)


@dataclass
class UnknownProcedureCode:
    """Warning record for a code absent from the tariff."""

    procedure_code: str
    line_number: int
    tariff_name: str

    def __str__(self) -> str:
        return (
            f"Procedure {self.procedure_code} (line {self.line_number}) "
            f"not found in tariff {self.tariff_name}"
        )


@dataclass
class PricingReport:
    tariff_name: str
    priced: int = 0
    with_positive_delta: int = 0
    total_delta: Decimal = ZERO
    unknown_codes: list[UnknownProcedureCode] = field(default_factory=list)

    @property
    def warnings(self) -> list[str]:
        return [str(w) for w in self.unknown_codes]


class LineItemPricer:
    """Prices line items against a tariff by exact procedure code."""

    def price(self, line_items: Iterable[LineItem], tariff: Tariff) -> PricingReport:
        prices = tariff.price_map()
        report = PricingReport(tariff_name=tariff.name)

        for item in line_items:
            unit_price = prices.get(item.procedure_code)
            if unit_price is None:
                item.clear_contracted_price()
                warning = UnknownProcedureCode(item.procedure_code, item.line_number, tariff.name)
                report.unknown_codes.append(warning)
                logger.warning(str(warning))
                continue

            item.set_contracted_price(unit_price)
            report.priced += 1
            if item.tariff_delta > 0:
                report.with_positive_delta += 1
                report.total_delta += item.tariff_delta

        return report
