from datetime import date

from core.rules import (
    RuleResult,
    check_disabled_counts,
    check_household_composition,
    check_household_size,
    check_net_vs_gross,
    check_salary_and_maintenance,
    check_self_help_sum,
    evaluate_cross_checks,
    has_blocking,
    split_results,
)
from foerdercheck.models import FinancialSnapshot, MainApplication, SelfHelp

TODAY = date(2026, 6, 15)


def _codes(res):
    return {r.code for r in res}


def _main(persons=None, **user):
    user.setdefault("birthDate", "1980-03-01")
    user.setdefault("main_behinderungsgrad", 0)
    return MainApplication.model_validate(
        {"userData": {"weitere_antragstellende_personen": persons or {}, **user}}
    )


def _snapshot(financial, persons=None):
    return FinancialSnapshot.model_validate(
        {"userData": {"weitere_antragstellende_personen": persons or {}}, "financialData": financial}
    )


def test_split_results_and_blocking():
    res = [
        RuleResult(code="A", severity="critical", message="Fehler"),
        RuleResult(code="B", severity="warn", message="Hinweis"),
        RuleResult(code="C", severity="info", message="Info"),
    ]
    assert split_results(res) == (["Fehler"], ["Hinweis"])
    assert has_blocking(res)
    assert not has_blocking(res[1:])


def test_sixteen_year_old_declared_as_adult():
    main = _main(
        {"u1": {"firstName": "Tim", "birthDate": "2010-01-01", "behinderungsgrad": 0}},
        adult_count=2,
        child_count=0,
    )
    res = check_household_composition(main, TODAY)
    mismatch = [r for r in res if r.code == "COMPOSITION_MISMATCH"]
    assert mismatch and mismatch[0].severity == "critical"
    assert "1 Erwachsene, 1 Kinder" in mismatch[0].message
    assert "COMPOSITION_DETAILS" in _codes(res)


def test_unborn_child_is_reported():
    main = _main({"u1": {"firstName": "Baby", "birthDate": "2026-10-01"}}, adult_count=1, child_count=1)
    res = check_household_composition(main, TODAY)
    assert "UNBORN_CHILDREN" in _codes(res)
    assert "Davon 1 Ungeboren" in next(r.message for r in res if r.code == "COMPOSITION_MISMATCH")


def test_household_size_mismatch_severity():
    one_off = check_household_size(_main(adult_count=2, child_count=0))
    assert [r.severity for r in one_off if r.code == "HOUSEHOLD_SIZE_MISMATCH"] == ["warn"]
    far_off = check_household_size(_main(adult_count=2, child_count=2))
    assert [r.severity for r in far_off if r.code == "HOUSEHOLD_SIZE_MISMATCH"] == ["critical"]
    assert "HOUSEHOLD_SIZE_NO_DATA" in _codes(check_household_size(None))


def test_excluded_persons_are_listed():
    main = _main({"u1": {"firstName": "Max", "notHousehold": True}}, adult_count=1, child_count=0)
    res = check_household_size(main)
    assert "HOUSEHOLD_EXCLUDED_PERSONS" in _codes(res)
    assert "HOUSEHOLD_SIZE_MISMATCH" not in _codes(res)


def test_disabled_flag_without_persons():
    main = _main(is_disabled=True, disabledadultscount=1, disabledchildrencount=0)
    codes = _codes(check_disabled_counts(main, TODAY))
    assert "DISABLED_FLAG_WITHOUT_PERSONS" in codes
    assert "DISABLED_COUNTS_MISMATCH" in codes


def test_disabled_persons_without_flag():
    main = _main(is_disabled=False, main_behinderungsgrad=60)
    assert "DISABLED_PERSONS_WITHOUT_FLAG" in _codes(check_disabled_counts(main, TODAY))


def test_disabled_counts_match():
    main = _main(is_disabled=True, disabledadultscount=1, disabledchildrencount=0, main_behinderungsgrad=80)
    assert check_disabled_counts(main, TODAY) == []


def test_self_help_sum():
    main = MainApplication.model_validate({"financeData": {"selbsthilfe": "5.000,00 €"}})
    matching = SelfHelp.model_validate({"totals": {"totalSelbsthilfe": 5000.004}})
    different = SelfHelp.model_validate({"totals": {"totalSelbsthilfe": 4500}})
    assert check_self_help_sum(main, matching) == []
    assert "SELF_HELP_MISMATCH" in _codes(check_self_help_sum(main, different))
    assert "SELF_HELP_NO_DATA" in _codes(check_self_help_sum(main, None))


def test_net_above_gross():
    declaration = _snapshot({"incomerent": 10000, "incomebusiness": 20000})
    disclosure = _snapshot({"incomerent_net": 12000, "yearlybusinessnetincome": 15000, "yearlyselfemployednetincome": 6000})
    res = check_net_vs_gross(declaration, disclosure)
    assert [r.context["field"] for r in res] == ["incomerent", "incomebusiness"]
    assert all(r.severity == "critical" for r in res)


def test_net_vs_gross_on_a_single_record():
    declaration = _snapshot({"urlaubsgeld_next12": 500, "urlaubsgeld_next12_net": 400})
    assert check_net_vs_gross(declaration) == []


def test_maintenance_aggregate_too_low():
    declaration = _snapshot({"ispayingunterhalt": True, "unterhaltszahlungen": [{"amount": 600}, {"amount": 400}]})
    disclosure = _snapshot({"unterhaltszahlungenTotal": [{"amountTotal": 650}]})
    res = check_salary_and_maintenance(declaration, disclosure)
    assert _codes(res) == {"MAINTENANCE_TOTAL_BELOW_ITEMS"}
    assert res[0].severity == "warn"


def test_maintenance_aggregate_too_high():
    declaration = _snapshot({"ispayingunterhalt": True, "unterhaltszahlungen": [{"amount": 1000}]})
    disclosure = _snapshot({"unterhaltszahlungenTotal": [{"amountTotal": 1200}]})
    assert _codes(check_salary_and_maintenance(declaration, disclosure)) == {"MAINTENANCE_TOTAL_ABOVE_ITEMS"}


def test_maintenance_only_checked_when_paying():
    declaration = _snapshot({"ispayingunterhalt": False, "unterhaltszahlungen": [{"amount": 1000}]})
    disclosure = _snapshot({"unterhaltszahlungenTotal": [{"amountTotal": 100}]})
    assert check_salary_and_maintenance(declaration, disclosure) == []


def test_salary_flags_and_ratio():
    declaration = _snapshot({"isEarningRegularIncome": False})
    disclosure = _snapshot({"hasSalaryIncome": True})
    assert "SALARY_FLAG_CONFLICT" in _codes(check_salary_and_maintenance(declaration, disclosure))

    months = {f"income_month{i}": 3000 for i in range(1, 13)}
    declaration = _snapshot({"isEarningRegularIncome": True, **months})
    low = _snapshot({"hasSalaryIncome": True, "monthlynetsalary": 1200})
    high = _snapshot({"hasSalaryIncome": True, "monthlynetsalary": 3500})
    assert "NET_SALARY_BELOW_HALF" in _codes(check_salary_and_maintenance(declaration, low))
    assert "NET_SALARY_ABOVE_GROSS" in _codes(check_salary_and_maintenance(declaration, high))


def test_additional_person_records_are_paired():
    persons = {"u1": {"firstName": "Max", "lastName": "Muster"}}
    declaration = _snapshot({"additional_applicants_financials": {"u1": {"incomerent": 1000}}}, persons)
    disclosure = _snapshot({"additional_applicants_financials": {"u1": {"incomerent_net": 2000}}}, persons)
    res = check_net_vs_gross(declaration, disclosure)
    assert len(res) == 1
    assert res[0].message.startswith("Max Muster:")


def test_missing_snapshots_only_warn():
    res = evaluate_cross_checks(None, None, None, TODAY)
    assert res
    assert not has_blocking(res)
    assert {"HOUSEHOLD_SIZE_NO_DATA", "NET_GROSS_NO_DATA", "SALARY_NO_DATA", "SELF_HELP_NO_DATA"} <= _codes(res)
