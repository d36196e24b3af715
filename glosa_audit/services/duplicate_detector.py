"""
Duplicate Detector.

Within one encounter, the first line item (by line number) of each
procedure code is canonical; every later line with the same code is a
duplicate. Running it twice gives the same flags.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable

from glosa_audit.models.claim import Encounter, LineItem
from glosa_audit.utils.money import ZERO

logger = logging.getLogger(__name__)


@dataclass
class DuplicateReport:
    duplicates: list[LineItem] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.duplicates)

    @property
    def duplicated_value(self) -> Decimal:
        return sum((item.billed_total for item in self.duplicates), ZERO)


class DuplicateDetector:
    def detect(self, encounters: Iterable[Encounter]) -> DuplicateReport:
        report = DuplicateReport()

        for encounter in encounters:
            seen: set[str] = set()
            for item in sorted(encounter.line_items, key=lambda li: li.line_number):
                if item.procedure_code in seen:
                    item.duplicate = True
                    report.duplicates.append(item)
                else:
                    item.duplicate = False
                    seen.add(item.procedure_code)

        if report.count:
            logger.info(f"Detected {report.count} duplicate line items")
        return report
