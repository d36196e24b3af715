"""
Claim Status State Machine.

Audit-driven claim status transitions. Each transition is recorded as a
ClaimStatusHistory row.

State Diagram:
    FILED -> IN_AUDIT
    AUDITED -> IN_AUDIT (re-audit)
    IN_AUDIT -> AUDITED

Starting an audit on a claim that is already IN_AUDIT (a restarted run) is
accepted and leaves the status unchanged.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from glosa_audit.core.enums import ClaimStatus
from glosa_audit.core.exceptions import ClaimStatusTransitionError
from glosa_audit.models.claim import Claim, ClaimStatusHistory

logger = logging.getLogger(__name__)


class TransitionEvent(str, Enum):
    """Events that trigger claim status transitions."""

    START_AUDIT = "start_audit"
    COMPLETE_AUDIT = "complete_audit"


@dataclass(frozen=True)
class Transition:
    """Represents a valid state transition."""

    from_status: ClaimStatus
    to_status: ClaimStatus
    event: TransitionEvent
    reason: str


# =============================================================================
# Valid Transitions Definition
# =============================================================================


VALID_TRANSITIONS: list[Transition] = [
    Transition(
        from_status=ClaimStatus.FILED,
        to_status=ClaimStatus.IN_AUDIT,
        event=TransitionEvent.START_AUDIT,
        reason="Audit started",
    ),
    Transition(
        from_status=ClaimStatus.AUDITED,
        to_status=ClaimStatus.IN_AUDIT,
        event=TransitionEvent.START_AUDIT,
        reason="Re-audit started",
    ),
    Transition(
        from_status=ClaimStatus.IN_AUDIT,
        to_status=ClaimStatus.AUDITED,
        event=TransitionEvent.COMPLETE_AUDIT,
        reason="Audit completed",
    ),
]


# =============================================================================
# State Machine
# =============================================================================


class ClaimStateMachine:
    """Validates and applies claim status transitions."""

    def __init__(self) -> None:
        self._transitions: dict[tuple[ClaimStatus, TransitionEvent], Transition] = {
            (t.from_status, t.event): t for t in VALID_TRANSITIONS
        }

    def get_next_statuses(self, status: ClaimStatus) -> list[ClaimStatus]:
        return [t.to_status for (from_status, _), t in self._transitions.items() if from_status == status]

    def can_transition(self, from_status: ClaimStatus, to_status: ClaimStatus) -> bool:
        return to_status in self.get_next_statuses(from_status)

    def start_audit(self, claim: Claim, actor_type: str = "system") -> Optional[ClaimStatusHistory]:
        if claim.status == ClaimStatus.IN_AUDIT:
            logger.debug(f"Claim {claim.claim_number} already in audit, resuming")
            return None
        return self.apply(claim, TransitionEvent.START_AUDIT, actor_type=actor_type)

    def complete_audit(self, claim: Claim, actor_type: str = "system") -> ClaimStatusHistory:
        return self.apply(claim, TransitionEvent.COMPLETE_AUDIT, actor_type=actor_type)

    def apply(
        self,
        claim: Claim,
        event: TransitionEvent,
        reason: Optional[str] = None,
        actor_type: str = "system",
    ) -> ClaimStatusHistory:
        """
        Apply an event to a claim.

        Raises:
            ClaimStatusTransitionError: If the event is not valid in the current status.
        """
        transition = self._transitions.get((claim.status, event))
        if transition is None:
            raise ClaimStatusTransitionError(
                f"Invalid transition for claim {claim.claim_number}: "
                f"{claim.status.value} + {event.value}"
            )

        history = ClaimStatusHistory(
            previous_status=claim.status,
            new_status=transition.to_status,
            actor_type=actor_type,
            reason=reason or transition.reason,
        )
        claim.status_history.append(history)
        claim.status = transition.to_status

        logger.info(
            f"Claim {claim.claim_number}: {transition.from_status.value} -> {transition.to_status.value}"
        )
        return history
