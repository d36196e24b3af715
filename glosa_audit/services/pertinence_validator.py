"""
Pertinence Validator.

Decides whether each billed procedure is clinically pertinent to the
encounter's principal diagnosis. The decision is delegated to an injected
policy; the default policy accepts everything.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional, Protocol

from glosa_audit.models.claim import Encounter, LineItem

logger = logging.getLogger(__name__)


class PertinencePolicy(Protocol):
    def is_pertinent(self, procedure_code: str, diagnosis_code: Optional[str]) -> bool: ...


class PermissivePertinencePolicy:
    """Every procedure is pertinent."""

    def is_pertinent(self, procedure_code: str, diagnosis_code: Optional[str]) -> bool:
        return True


class PrefixPertinencePolicy:
    """
    Procedure prefix -> allowed diagnosis prefixes.

    Example:
        >>> policy = PrefixPertinencePolicy({"8902": ["Z", "J"]})
        >>> policy.is_pertinent("890201", "J189")
        True
        >>> policy.is_pertinent("890201", "K359")
        False

    Procedures with no mapped prefix are pertinent.
    """

    def __init__(self, mapping: Mapping[str, Iterable[str]]):
        # Longest prefix first so the most specific mapping wins
        self.mapping = sorted(
            ((prefix, tuple(diagnoses)) for prefix, diagnoses in mapping.items()),
            key=lambda pair: len(pair[0]),
            reverse=True,
        )

    def is_pertinent(self, procedure_code: str, diagnosis_code: Optional[str]) -> bool:
        if not diagnosis_code:
            return True
        for prefix, allowed in self.mapping:
            if procedure_code.startswith(prefix):
                return any(diagnosis_code.upper().startswith(d.upper()) for d in allowed)
        return True


@dataclass
class PertinenceReport:
    evaluated: int = 0
    not_pertinent: list[LineItem] = field(default_factory=list)


class PertinenceValidator:
    def __init__(self, policy: Optional[PertinencePolicy] = None):
        self.policy = policy or PermissivePertinencePolicy()

    def validate(self, encounters: Iterable[Encounter]) -> PertinenceReport:
        report = PertinenceReport()
        for encounter in encounters:
            diagnosis = encounter.principal_diagnosis
            for item in encounter.line_items:
                report.evaluated += 1
                if not diagnosis:
                    item.pertinence_validated = True
                    continue
                item.pertinence_validated = self.policy.is_pertinent(item.procedure_code, diagnosis)
                if not item.pertinence_validated:
                    report.not_pertinent.append(item)

        if report.not_pertinent:
            logger.info(f"{len(report.not_pertinent)} line items not pertinent to the diagnosis")
        return report
