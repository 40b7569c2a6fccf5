import pytest

from foerdercheck.available_income import (
    available_income,
    monthly_expenses,
    monthly_net_income,
    subsistence_floor,
)
from foerdercheck.models import FinancialRecord, FinancialSnapshot, UserData


def _snapshot(financial, adults=1, children=0, persons=None, **user):
    return FinancialSnapshot.model_validate(
        {
            "userData": {
                "adult_count": adults,
                "child_count": children,
                "weitere_antragstellende_personen": persons or {},
                **user,
            },
            "financialData": financial,
        }
    )


def _codes(result):
    return {r.code for r in result.issues}


SALARY = {"hasSalaryIncome": True, "monthlynetsalary": "2.000,00 €", "loans": [{"amount": "500,00 €"}]}


def test_subsistence_floor():
    assert subsistence_floor(0) is None
    assert subsistence_floor(1) == 990
    assert subsistence_floor(2) == 1270
    assert subsistence_floor(4) == 1270 + 2 * 320


def test_income_lines_count_annual_figures_monthly():
    record = FinancialRecord.model_validate(
        {
            "hasSalaryIncome": True,
            "monthlynetsalary": 1800,
            "wheinachtsgeld_next12_net": 1200,
            "hascapitalincome": True,
            "yearlycapitalnetincome": 600,
            "haspensionincome": True,
            "pensionmonthlynetincome": [{"amount": 300}, {"amount": 200}],
            "haskindergeldincome": True,
            "monthlykindergeldnetincome": 255,
            "hasrentincome": False,
            "incomerent_net": 9999,
        }
    )
    assert monthly_net_income(record) == pytest.approx(1800 + 100 + 50 + 500 + 255)


def test_salary_lines_need_salary_flag():
    record = FinancialRecord.model_validate({"monthlynetsalary": 1800})
    assert monthly_net_income(record) == 0


def test_expense_lines():
    record = FinancialRecord.model_validate(
        {
            "loans": [{"amount": 300}],
            "betragotherinsurancetaxexpenses": [{"amount": 50}],
            "unterhaltszahlungenTotal": [{"amountTotal": 400}],
            "hasBausparvertraege": True,
            "sparratebausparvertraege": 100,
            "hasRentenversicherung": False,
            "praemiekapitalrentenversicherung": 999,
        }
    )
    assert monthly_expenses(record) == pytest.approx(850)


def test_single_household_above_floor():
    result = available_income(_snapshot(SALARY))
    assert result.total_available == pytest.approx(1500)
    assert result.floor == 990
    assert not result.issues


def test_family_below_floor():
    result = available_income(_snapshot(SALARY, adults=2, children=2))
    assert result.floor == 1910
    assert "BELOW_SUBSISTENCE_FLOOR" in _codes(result)
    assert "NEGATIVE_AVAILABLE_INCOME" not in _codes(result)


def test_below_single_floor_warns():
    result = available_income(_snapshot({**SALARY, "monthlynetsalary": 1400}))
    assert _codes(result) == {"BELOW_SUBSISTENCE_FLOOR", "BELOW_SINGLE_FLOOR"}


def test_negative_available_income():
    result = available_income(_snapshot({**SALARY, "monthlynetsalary": 100}))
    assert "NEGATIVE_AVAILABLE_INCOME" in _codes(result)
    assert "BELOW_SINGLE_FLOOR" not in _codes(result)


def test_unknown_household_size_skips_floor():
    result = available_income(_snapshot(SALARY, adults=0, children=0))
    assert result.floor is None
    assert "HOUSEHOLD_SIZE_UNKNOWN" in _codes(result)
    assert "BELOW_SUBSISTENCE_FLOOR" not in _codes(result)


def test_no_adults_warns():
    result = available_income(_snapshot(SALARY, adults=0, children=1))
    assert "NO_ADULTS" in _codes(result)


def test_persons_included():
    persons = {
        "u1": {"firstName": "Max", "lastName": "Muster"},
        "u2": {"firstName": "Lea", "notHousehold": True},
        "u3": {"firstName": "Tom", "noIncome": True},
        "u4": {"firstName": "Ida"},
    }
    financial = {
        **SALARY,
        "additional_applicants_financials": {
            "u1": {"hasSalaryIncome": True, "monthlynetsalary": 1000},
            "u2": {"hasSalaryIncome": True, "monthlynetsalary": 5000},
            "u3": {"hasSalaryIncome": True, "monthlynetsalary": 5000},
        },
    }
    result = available_income(_snapshot(financial, adults=2, persons=persons))
    assert [p.name for p in result.persons] == ["Hauptantragsteller", "Max Muster"]
    assert result.total_available == pytest.approx(2500)


def test_main_applicant_without_income_is_skipped():
    result = available_income(_snapshot(SALARY, noIncome=True))
    assert result.persons == []


def test_household_size_comes_from_main_application():
    snapshot = FinancialSnapshot.model_validate(
        {"userData": {}, "financialData": {"hasSalaryIncome": True, "monthlynetsalary": 1500}}
    )
    result = available_income(snapshot, UserData(adult_count=2, child_count=2))
    assert result.household_size == 4
    assert result.floor == 1910
    assert "BELOW_SUBSISTENCE_FLOOR" in _codes(result)
    assert "HOUSEHOLD_SIZE_UNKNOWN" not in _codes(result)


def test_main_application_counts_win_over_disclosure():
    result = available_income(_snapshot(SALARY, adults=1), UserData(adult_count=2, child_count=0))
    assert result.floor == 1270
