from datetime import date

from core.rules import check_declared_changes, evaluate_declared_changes
from foerdercheck.models import FinancialRecord, FinancialSnapshot

TODAY = date(2026, 6, 15)


def _codes(res):
    return {r.code for r in res}


def _record(changes=None, **fields):
    if changes is not None:
        fields["addition_change_inincome"] = {"selectedTypes": list(changes), "changes": changes}
    return FinancialRecord.model_validate(fields)


COMPLETE = {
    "date": "2026-09-01",
    "newAmount": 1200,
    "increase": True,
    "isNewIncomeMonthly": True,
    "reason": "Rentenanpassung",
}


def test_complete_change_passes():
    record = _record({"renten": COMPLETE}, incomepension=1000)
    assert check_declared_changes("Erika", record, TODAY) == []


def test_missing_details_are_errors():
    record = _record({"renten": {}}, incomepension=1000)
    res = check_declared_changes("Erika", record, TODAY)
    assert _codes(res) == {
        "CHANGE_DATE_MISSING",
        "CHANGE_AMOUNT_MISSING",
        "CHANGE_DIRECTION_MISSING",
        "CHANGE_TURNUS_MISSING",
        "CHANGE_REASON_MISSING",
    }
    assert all(r.severity == "critical" for r in res)
    assert all(r.message.startswith("Erika: ") for r in res)


def test_date_outside_window():
    record = _record({"renten": {**COMPLETE, "date": "2028-01-01"}}, incomepension=1000)
    assert _codes(check_declared_changes("Erika", record, TODAY)) == {"CHANGE_DATE_WINDOW"}


def test_direction_must_match_amounts():
    record = _record({"renten": {**COMPLETE, "newAmount": 900}}, incomepension=1000)
    res = check_declared_changes("Erika", record, TODAY)
    assert _codes(res) == {"CHANGE_DIRECTION"}
    assert "900,00 €" in res[0].message and "1.000,00 €" in res[0].message

    decrease = _record({"renten": {**COMPLETE, "increase": False}}, incomepension=1000)
    assert _codes(check_declared_changes("Erika", decrease, TODAY)) == {"CHANGE_DIRECTION"}


def test_foreign_income_compared_only_in_same_turnus():
    yearly_stored = _record(
        {"ausland": {**COMPLETE, "newAmount": 500}}, incomeforeign=12000, incomeforeignmonthly=False
    )
    assert check_declared_changes("Erika", yearly_stored, TODAY) == []
    monthly_stored = _record(
        {"ausland": {**COMPLETE, "newAmount": 500}}, incomeforeign=1000, incomeforeignmonthly=True
    )
    assert _codes(check_declared_changes("Erika", monthly_stored, TODAY)) == {"CHANGE_DIRECTION"}


def test_maintenance_paid_compared_against_items():
    record = _record(
        {"unterhaltszahlungen": {**COMPLETE, "newAmount": 300, "increase": False}},
        unterhaltszahlungen=[{"amount": 200}, {"amount": 200}],
    )
    assert check_declared_changes("Erika", record, TODAY) == []


def test_employment_change_checks():
    months = {f"income_month{i}": 2000 for i in range(1, 13)}
    record = _record(
        isEarningRegularIncome=True,
        willchangeincome=True,
        newincome=1800,
        isnewincomemonthly=True,
        willchangeincrease=True,
        **months,
    )
    codes = _codes(check_declared_changes("Erika", record, TODAY))
    assert codes == {"CHANGE_DATE_MISSING", "CHANGE_REASON_MISSING", "CHANGE_DIRECTION"}


def test_yearly_employment_change_compared_to_yearly_average():
    months = {f"income_month{i}": 2000 for i in range(1, 13)}
    record = _record(
        isEarningRegularIncome=True,
        willchangeincome=True,
        incomechangedate="2026-08-01",
        newincome=30000,
        isnewincomemonthly=False,
        willchangeincrease=True,
        newincomereason="Neue Stelle",
        **months,
    )
    assert check_declared_changes("Erika", record, TODAY) == []


def test_every_person_with_income_is_checked():
    snapshot = FinancialSnapshot.model_validate(
        {
            "userData": {
                "firstname": "Erika",
                "lastname": "Muster",
                "weitere_antragstellende_personen": {
                    "u1": {"firstName": "Max", "lastName": "Muster"},
                    "u2": {"firstName": "Tom", "noIncome": True},
                },
            },
            "financialData": {
                "additional_applicants_financials": {
                    "u1": {"addition_change_inincome": {"selectedTypes": ["sonstige"]}},
                    "u2": {"addition_change_inincome": {"selectedTypes": ["sonstige"]}},
                }
            },
        }
    )
    res = evaluate_declared_changes(snapshot, TODAY)
    assert res
    assert {r.message.split(":")[0] for r in res} == {"Max Muster"}
