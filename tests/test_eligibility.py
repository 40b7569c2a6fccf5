import pytest

from foerdercheck.eligibility import (
    REASON_BOTH,
    REASON_GROSS,
    REASON_NET,
    REASON_TIER_A,
    classify,
    is_retired_household,
    thresholds_for,
)
from foerdercheck.models import FinancialRecord, FinancialSnapshot
from foerdercheck.results import HouseholdMember

RANK = {"A": 0, "B": 1, "Ineligible": 2}


def _codes(issues):
    return {r.code for r in issues}


def test_single_adult_tier_a():
    result, issues = classify(30000, 20000, 1, 0)
    assert result.tier == "A"
    assert result.eligible
    assert result.reason == REASON_TIER_A
    assert result.group_label == "Gruppe A"
    assert not issues


def test_single_adult_tier_b():
    result, _ = classify(45000, 20000, 1, 0)
    assert result.tier == "B"


@pytest.mark.parametrize(
    "gross, net, reason",
    [(60000, 20000, REASON_GROSS), (30000, 35000, REASON_NET), (60000, 35000, REASON_BOTH)],
)
def test_ineligible_reasons(gross, net, reason):
    result, _ = classify(gross, net, 1, 0)
    assert result.tier == "Ineligible"
    assert not result.eligible
    assert result.reason == reason
    assert result.group_label == "Nicht Förderungsfähig"


def test_eligibility_is_monotonic_in_income():
    for adults, children in ((1, 0), (2, 0), (1, 2), (2, 3)):
        last = 0
        for gross in range(5000, 120000, 2500):
            result, _ = classify(gross, gross * 0.6, adults, children)
            assert RANK[result.tier] >= last
            last = RANK[result.tier]


def test_invalid_composition():
    result, issues = classify(30000, 20000, 3, 0)
    assert result is None
    assert "INVALID_COMPOSITION" in _codes(issues)
    assert classify(30000, 20000, 1, -1)[0] is None


def test_no_income():
    result, issues = classify(0, 0, 1, 0)
    assert result is None
    assert "NO_INCOME" in _codes(issues)


def test_allowances_consuming_all_income_is_rejected():
    result, issues = classify(20000, 0, 2, 0, is_married=True)
    assert result is None
    assert [r.message for r in issues] == ["Das Einkommen muss größer als 0 sein."]


def test_child_bonus_from_second_child():
    base, applied, extra, _ = thresholds_for(2, 3, False, False)
    assert extra == 2
    assert base.gross_a == 57074
    assert applied.gross_a == 57074 + 2 * 11547
    assert applied.net_b == 50036 + 2 * 10346
    _, single, _, _ = thresholds_for(1, 2, False, False)
    assert single.gross_a == 53121 + 5297


def test_marriage_bonus_raises_gross_only():
    _, applied, _, bonus = thresholds_for(2, 0, True, False)
    assert bonus == 4000
    assert applied.gross_a == 51777 + 4000
    assert applied.gross_b == 69496 + 4000
    assert applied.net_a == 28350


def test_retired_household_with_children_uses_retired_row():
    result, issues = classify(30000, 20000, 1, 1, retired=True)
    assert result.base.gross_a == 31076
    assert "RETIRED_WITH_CHILDREN" in _codes(issues)


def _member(employment=None, record=None, **kw):
    return HouseholdMember(member_id=kw.pop("member_id", "main_applicant"), name="X", employment=employment,
                           record=record, **kw)


def test_retired_by_employment_status():
    assert is_retired_household([_member("retired"), _member("retired", member_id="u1")])
    assert not is_retired_household([_member("retired"), _member("employed", member_id="u1")])
    assert not is_retired_household([])


def test_members_without_income_are_ignored():
    assert is_retired_household([_member("retired"), _member("employed", member_id="u1", has_income=False)])


def test_retired_by_pension_income():
    record = FinancialRecord.model_validate({"incomepension": 1200})
    disclosure = FinancialSnapshot.model_validate({"financialData": {"haspensionincome": True}})
    assert is_retired_household([_member(record=record)], disclosure)
    assert not is_retired_household([_member(record=record)])
    salaried = FinancialSnapshot.model_validate(
        {"financialData": {"haspensionincome": True, "hasSalaryIncome": True}}
    )
    assert not is_retired_household([_member(record=record)], salaried)
