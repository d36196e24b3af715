"""
Unit Tests for Claim Status Transitions
"""

from datetime import date
from decimal import Decimal

import pytest

from glosa_audit.core.enums import ClaimStatus
from glosa_audit.core.exceptions import ClaimStatusTransitionError
from glosa_audit.models import Claim
from glosa_audit.services.claim_state_machine import ClaimStateMachine, TransitionEvent


def make_claim(status: ClaimStatus) -> Claim:
    return Claim(
        claim_number="FE-0001",
        issue_date=date(2024, 3, 15),
        provider_tax_id="900123456",
        provider_name="Clinica Central",
        payer_id="860000001",
        payer_name="EPS Test",
        total_amount=Decimal("100000"),
        status=status,
    )


@pytest.mark.unit
class TestClaimStateMachine:
    """Test audit-driven status transitions"""

    def test_next_statuses(self):
        machine = ClaimStateMachine()
        assert machine.get_next_statuses(ClaimStatus.FILED) == [ClaimStatus.IN_AUDIT]
        assert machine.get_next_statuses(ClaimStatus.IN_AUDIT) == [ClaimStatus.AUDITED]
        assert machine.get_next_statuses(ClaimStatus.PAID) == []

    def test_can_transition(self):
        machine = ClaimStateMachine()
        assert machine.can_transition(ClaimStatus.AUDITED, ClaimStatus.IN_AUDIT) is True
        assert machine.can_transition(ClaimStatus.FILED, ClaimStatus.AUDITED) is False

    def test_full_audit_cycle_records_history(self):
        claim = make_claim(ClaimStatus.FILED)
        machine = ClaimStateMachine()

        machine.start_audit(claim)
        machine.complete_audit(claim)

        assert claim.status == ClaimStatus.AUDITED
        assert [(h.previous_status, h.new_status) for h in claim.status_history] == [
            (ClaimStatus.FILED, ClaimStatus.IN_AUDIT),
            (ClaimStatus.IN_AUDIT, ClaimStatus.AUDITED),
        ]
        assert claim.status_history[0].reason == "Audit started"
        assert claim.status_history[0].actor_type == "system"

    def test_re_audit(self):
        claim = make_claim(ClaimStatus.AUDITED)
        history = ClaimStateMachine().start_audit(claim)
        assert claim.status == ClaimStatus.IN_AUDIT
        assert history.reason == "Re-audit started"

    def test_start_when_already_in_audit(self):
        claim = make_claim(ClaimStatus.IN_AUDIT)
        assert ClaimStateMachine().start_audit(claim) is None
        assert claim.status == ClaimStatus.IN_AUDIT
        assert claim.status_history == []

    def test_invalid_transition(self):
        claim = make_claim(ClaimStatus.FILED)
        with pytest.raises(ClaimStatusTransitionError):
            ClaimStateMachine().complete_audit(claim)
        assert claim.status == ClaimStatus.FILED

    def test_custom_reason(self):
        claim = make_claim(ClaimStatus.FILED)
        history = ClaimStateMachine().apply(
            claim, TransitionEvent.START_AUDIT, reason="Requested by auditor", actor_type="user"
        )
        assert history.reason == "Requested by auditor"
        assert history.actor_type == "user"
