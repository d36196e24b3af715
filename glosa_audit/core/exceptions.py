"""
Audit Engine Exceptions.

Fatal errors (missing claim, missing tariff) abort an audit run.
Sequencing errors reject a session advance without mutating it.
Recoverable conditions (unknown procedure codes) are reported as warnings
and never raised.
"""

from typing import Optional


class AuditEngineError(Exception):
    """Base exception for audit engine errors."""

    pass


class ClaimNotFoundError(AuditEngineError):
    """Raised when the claim to audit does not exist."""

    def __init__(self, claim_id: object):
        super().__init__(f"Claim not found: {claim_id}")
        self.claim_id = claim_id


class NoTariffFoundError(AuditEngineError):
    """Raised when neither a payer tariff nor the reference tariff applies."""

    def __init__(self, payer_id: Optional[str], message: Optional[str] = None):
        super().__init__(message or f"No applicable tariff found for payer {payer_id}")
        self.payer_id = payer_id


class InvalidStepSequenceError(AuditEngineError):
    """Raised when a session step is requested out of order."""

    pass


class AuditSessionNotFoundError(AuditEngineError):
    """Raised when an audit session does not exist."""

    pass


class GlosaNotFoundError(AuditEngineError):
    """Raised when a glosa does not exist."""

    pass


class ClaimStatusTransitionError(AuditEngineError):
    """Raised when an invalid claim status transition is attempted."""

    pass


class RuleConfigurationError(AuditEngineError):
    """Raised when a stored audit rule cannot be turned into a valid definition."""

    def __init__(self, rule_code: str, message: str):
        super().__init__(f"Rule {rule_code}: {message}")
        self.rule_code = rule_code
