"""
Core Enumerations for the Glosa Audit Engine.

Shared vocabulary for claims, tariffs, audit rules, glosas and audit sessions.
"""

from enum import Enum


# =============================================================================
# Claim Enums
# =============================================================================


class ClaimStatus(str, Enum):
    """Claim (invoice) lifecycle status.

    Audit Transitions:
    FILED -> IN_AUDIT
    IN_AUDIT -> AUDITED
    AUDITED -> IN_AUDIT (re-audit)
    """

    FILED = "filed"  # Received from the provider, not yet audited
    IN_AUDIT = "in_audit"
    AUDITED = "audited"
    OBJECTED = "objected"  # Glosas notified to the provider
    ACCEPTED = "accepted"
    PAID = "paid"
    REJECTED = "rejected"


class PatientDocumentType(str, Enum):
    """Patient identification document types."""

    CC = "CC"  # Citizenship card
    TI = "TI"  # Identity card (minors)
    CE = "CE"  # Foreigner card
    PA = "PA"  # Passport
    RC = "RC"  # Civil registry
    OTHER = "OTHER"


# =============================================================================
# Tariff Enums
# =============================================================================


class TariffType(str, Enum):
    """Kinds of price catalogues."""

    ISS = "iss"  # ISS reference manual
    SOAT = "soat"  # SOAT reference manual
    CONTRACT = "contract"  # Negotiated payer contract
    CUSTOM = "custom"


# =============================================================================
# Audit Rule Enums
# =============================================================================


class ConditionOperator(str, Enum):
    """Operators available to audit rule conditions."""

    GT = ">"
    LT = "<"
    EQ = "="
    NE = "!="
    GTE = ">="
    LTE = "<="
    CONTAINS = "contains"
    EXISTS = "exists"
    NOT_EXISTS = "not_exists"


class LogicalOperator(str, Enum):
    """How the conditions of a rule are combined."""

    AND = "AND"
    OR = "OR"


class PricingStrategy(str, Enum):
    """How the deducted amount of a glosa is computed."""

    DIFFERENCE = "difference"  # max(0, tariff delta)
    FULL_AMOUNT = "full_amount"  # whole billed total
    PERCENTAGE = "percentage"  # percentage of billed total
    FIXED_AMOUNT = "fixed_amount"


# =============================================================================
# Glosa Enums
# =============================================================================


class GlosaCategory(str, Enum):
    """Glosa classification."""

    TARIFF = "tariff"
    SUPPORT = "support"
    PERTINENCE = "pertinence"
    DUPLICATE = "duplicate"
    AUTHORIZATION = "authorization"
    BILLING = "billing"
    OTHER = "other"


class GlosaStatus(str, Enum):
    """Glosa negotiation status."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    IN_DISCUSSION = "in_discussion"


# =============================================================================
# Audit Session Enums
# =============================================================================


class SessionStatus(str, Enum):
    """Step-by-step audit session status.

    STARTED -> IN_PROGRESS -> COMPLETED
    any non-terminal -> ERROR
    """

    STARTED = "started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ERROR = "error"


class StepStatus(str, Enum):
    """Status of a single audit session step."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ERROR = "error"


class ResultTone(str, Enum):
    """Display tone of a step result line."""

    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
