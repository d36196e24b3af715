"""
Unit Tests for the Claim Checks
Tests duplicate detection, authorization windows and pertinence policies
"""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from glosa_audit.services.authorization_validator import (
    AuthorizationValidator,
    StaticAuthorizationLookup,
    authorization_in_window,
)
from glosa_audit.services.duplicate_detector import DuplicateDetector
from glosa_audit.services.pertinence_validator import (
    PermissivePertinencePolicy,
    PertinenceValidator,
    PrefixPertinencePolicy,
)

START = date(2024, 3, 10)


# =============================================================================
# Duplicates
# =============================================================================


@pytest.mark.unit
class TestDuplicateDetector:
    """Test duplicate flags within an encounter"""

    def test_second_occurrence_is_duplicate(self, build_line_item, build_encounter):
        first = build_line_item(procedure_code="890201", line_number=1)
        second = build_line_item(procedure_code="890201", line_number=2)
        other = build_line_item(procedure_code="902210", line_number=3, unit_price="23500")
        encounter = build_encounter([first, second, other])

        report = DuplicateDetector().detect([encounter])

        assert [first.duplicate, second.duplicate, other.duplicate] == [False, True, False]
        assert report.count == 1
        assert report.duplicated_value == Decimal("50000")

    def test_first_by_line_number_is_canonical(self, build_line_item, build_encounter):
        later = build_line_item(procedure_code="890201", line_number=5)
        earlier = build_line_item(procedure_code="890201", line_number=2)
        encounter = build_encounter([later, earlier])

        DuplicateDetector().detect([encounter])

        assert earlier.duplicate is False
        assert later.duplicate is True

    def test_encounters_are_independent(self, build_line_item, build_encounter):
        a = build_encounter([build_line_item(procedure_code="890201")], encounter_number="ENC-1")
        b = build_encounter([build_line_item(procedure_code="890201")], encounter_number="ENC-2")

        report = DuplicateDetector().detect([a, b])

        assert report.count == 0

    def test_idempotent(self, build_line_item, build_encounter):
        items = [build_line_item(line_number=n) for n in (1, 2, 3)]
        encounter = build_encounter(items)
        detector = DuplicateDetector()

        detector.detect([encounter])
        flags = [item.duplicate for item in items]
        detector.detect([encounter])

        assert [item.duplicate for item in items] == flags == [False, True, True]


# =============================================================================
# Authorizations
# =============================================================================


@pytest.mark.unit
class TestAuthorizationWindow:
    """Test the authorization validity window"""

    @pytest.mark.parametrize(
        "days_before,expected",
        [(0, True), (10, True), (30, True), (31, False), (35, False), (-1, False)],
    )
    def test_window(self, days_before, expected):
        assert authorization_in_window(START - timedelta(days=days_before), START) is expected

    def test_missing_date(self):
        assert authorization_in_window(None, START) is False

    def test_custom_window(self):
        assert authorization_in_window(START - timedelta(days=45), START, window_days=60) is True


@pytest.mark.unit
class TestAuthorizationValidator:
    """Test encounter authorization flags"""

    async def test_not_required(self, build_line_item, build_encounter):
        item = build_line_item(procedure_code="890201")
        encounter = build_encounter([item], has_authorization=False, authorization_valid=False)
        validator = AuthorizationValidator(StaticAuthorizationLookup({"890301"}))

        report = await validator.validate([encounter])

        assert item.requires_authorization is False
        assert encounter.authorization_required is False
        assert encounter.has_authorization is True
        assert encounter.authorization_valid is True
        assert report.required == 0

    async def test_valid_authorization(self, build_line_item, build_encounter):
        item = build_line_item(procedure_code="890301")
        encounter = build_encounter(
            [item],
            authorization_number="AUT-1",
            authorization_date=START - timedelta(days=10),
        )

        report = await AuthorizationValidator(StaticAuthorizationLookup({"890301"})).validate([encounter])

        assert item.requires_authorization is True
        assert encounter.authorization_required is True
        assert encounter.has_authorization is True
        assert encounter.authorization_valid is True
        assert report.valid == 1

    async def test_missing_authorization(self, build_line_item, build_encounter):
        item = build_line_item(procedure_code="890301")
        encounter = build_encounter([item])

        report = await AuthorizationValidator(StaticAuthorizationLookup({"890301"})).validate([encounter])

        assert encounter.has_authorization is False
        assert encounter.authorization_valid is False
        assert report.missing == ["ENC-001"]

    async def test_expired_authorization(self, build_line_item, build_encounter):
        item = build_line_item(procedure_code="890301")
        encounter = build_encounter(
            [item],
            authorization_number="AUT-1",
            authorization_date=START - timedelta(days=35),
        )

        report = await AuthorizationValidator(StaticAuthorizationLookup({"890301"})).validate([encounter])

        assert encounter.has_authorization is True
        assert encounter.authorization_valid is False
        assert report.expired == ["ENC-001"]

    async def test_one_line_makes_encounter_require_it(self, build_line_item, build_encounter):
        plain = build_line_item(procedure_code="890201", line_number=1)
        restricted = build_line_item(procedure_code="890301", line_number=2)
        encounter = build_encounter([plain, restricted])

        await AuthorizationValidator(StaticAuthorizationLookup({"890301"})).validate([encounter])

        assert plain.requires_authorization is False
        assert restricted.requires_authorization is True
        assert encounter.authorization_required is True


# =============================================================================
# Pertinence
# =============================================================================


@pytest.mark.unit
class TestPertinencePolicies:
    """Test procedure vs diagnosis policies"""

    def test_permissive(self):
        assert PermissivePertinencePolicy().is_pertinent("334101", "J189") is True

    def test_prefix_policy(self):
        policy = PrefixPertinencePolicy({"8902": ["Z", "J"], "3341": ["K35"]})
        assert policy.is_pertinent("890201", "J189") is True
        assert policy.is_pertinent("890201", "k359") is False
        assert policy.is_pertinent("334101", "K359") is True
        assert policy.is_pertinent("902210", "K359") is True

    def test_longest_prefix_wins(self):
        policy = PrefixPertinencePolicy({"89": ["Z"], "8903": ["I"]})
        assert policy.is_pertinent("890301", "I10") is True
        assert policy.is_pertinent("890201", "I10") is False

    def test_missing_diagnosis_is_pertinent(self):
        policy = PrefixPertinencePolicy({"8902": ["Z"]})
        assert policy.is_pertinent("890201", None) is True


@pytest.mark.unit
class TestPertinenceValidator:
    def test_default_policy_accepts_all(self, build_line_item, build_encounter):
        item = build_line_item(pertinence_validated=False)
        report = PertinenceValidator().validate([build_encounter([item])])

        assert item.pertinence_validated is True
        assert report.evaluated == 1
        assert report.not_pertinent == []

    def test_flags_non_pertinent_lines(self, build_line_item, build_encounter):
        item = build_line_item(procedure_code="334101")
        encounter = build_encounter([item], principal_diagnosis="J189")
        validator = PertinenceValidator(PrefixPertinencePolicy({"3341": ["K35"]}))

        report = validator.validate([encounter])

        assert item.pertinence_validated is False
        assert report.not_pertinent == [item]
