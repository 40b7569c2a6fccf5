from datetime import date

from core.navigation import actions_for
from foerdercheck.calculators import household_income
from foerdercheck.eligibility import classify
from foerdercheck.models import FinancialRecord, UserData
from foerdercheck.narrative import (
    available_income_lines,
    household_income_lines,
    income_group_lines,
    loan_ceiling_lines,
    source_lines,
)
from foerdercheck.results import (
    AvailableIncomeResult,
    HouseholdMember,
    LoanCeilingResult,
    PersonBudget,
    Projection,
    SourceContribution,
)

TODAY = date(2026, 6, 15)


def test_household_lines_for_married_couple():
    record = FinancialRecord.model_validate(
        {"isEarningRegularIncome": True, "prior_year": 2025, "prior_year_earning": 30000}
    )
    members = [
        HouseholdMember(member_id="main_applicant", name="Erika Muster", record=record, behinderungsgrad=60),
        HouseholdMember(member_id="u1", name="Max Muster", has_income=False),
    ]
    aggregate = household_income(members, UserData(adult_count=2, child_count=0, is_married=True), TODAY)
    lines = household_income_lines(aggregate)
    assert lines[0] == "Haushaltsmitglieder insgesamt: 2"
    assert "- Erika Muster -" in lines
    assert "  Vorjahreseinkommen (2025): 30.000,00 €" in lines
    assert "  Keine Abzüge für Steuern/Sozialabgaben (alle Optionen deaktiviert)" in lines
    assert "- Max Muster (kein Einkommen)" in lines
    assert "Erika Muster - GdB 50-79: 665,00 €" in lines
    assert "Ehepaar-Freibetrag (2-Personen-Haushalt): 4.000,00 €" in lines
    assert lines[-1] == "Finales bereinigtes Haushaltseinkommen: 25.335,00 €"


def test_no_allowances_line():
    aggregate = household_income(
        [HouseholdMember(member_id="main_applicant", name="Erika", has_income=False)], UserData(), TODAY
    )
    assert "Keine steuerfreien Freibeträge anwendbar" in household_income_lines(aggregate)


def test_uncounted_and_projected_sources():
    uncounted = SourceContribution(
        key="gewerbe", label="Gewerbeeinkommen", raw_value=100, annual_value=100, counted=False, year=2023
    )
    assert source_lines(uncounted) == ["  Gewerbeeinkommen (2023): 100,00 € (Nicht berücksichtigt)"]

    projection = Projection(
        status="projected", value=13000, old_annual=12000, new_annual=14400, days_old=152, days_new=213
    )
    projected = SourceContribution(
        key="renten", label="Renteneinkommen", raw_value=1000, annual_value=12000, projection=projection
    )
    lines = source_lines(projected)
    assert lines[0] == "  Hochgerechnetes Renteneinkommen (ab Antragstellung): 13.000,00 €"
    assert lines[1].startswith("  - Altes Renteneinkommen (152 Tage):")
    assert lines[2].startswith("  - Neues Renteneinkommen (213 Tage):")


def test_income_group_lines():
    result, _ = classify(30000, 20000, 2, 3, is_married=True)
    lines = income_group_lines(result)
    assert "Anzahl Erwachsene: 2" in lines
    assert "Verheiratet: Ja" in lines
    assert "Rentner-Haushalt: Nein" in lines
    assert "Gruppe A Mögliches Jahreseinkommen Brutto: 84.168,00 €" in lines
    assert "Gruppe A Gesetzliche Einkommensgrenze: 50.520,00 €" in lines
    assert lines[-1] == "Ermittelte Einkommensgruppe: Gruppe A"


def test_loan_lines():
    skipped = loan_ceiling_lines(LoanCeilingResult(skipped=True))
    assert skipped[-1] == "Grunddarlehen nicht relevant, da ein Ergänzungsdarlehen beantragt wird."
    lines = loan_ceiling_lines(
        LoanCeilingResult(
            postcode="50667",
            category=3,
            ceiling_a=14800000,
            ceiling_b=8800000,
            tier="B",
            applied_ceiling=8800000,
            requested=8000000,
            within=True,
        )
    )
    assert lines == [
        "Ermittlung der Grunddarlehensgrenze",
        "Postleitzahl: 50667",
        "Kostenkategorie: K3",
        "Zulässige Obergrenzen je Gruppe – A: 148.000,00 €, B: 88.000,00 €",
        "Ermittelte Einkommensgruppe: Gruppe B",
        "Angewendete Darlehensgrenze (Gruppe B): 88.000,00 €",
        "Beantragtes Grunddarlehen: 80.000,00 €",
        "✓ Grunddarlehen liegt innerhalb der zulässigen Grenze",
    ]


def test_available_income_lines():
    result = AvailableIncomeResult(
        persons=[PersonBudget(member_id="main_applicant", name="Erika", income=2000, expenses=500)],
        household_size=1,
        floor=990,
    )
    lines = available_income_lines(result)
    assert "Überschuss: 1.500,00 €" in lines
    assert "Mindestbedarf für 1-Personen-Haushalt: 990,00 €" in lines
    assert lines[-1] == "✓ Mindestbedarf erfüllt (Überschuss: 510,00 €)"


def test_navigation_actions():
    assert [a.route for a in actions_for("financial-available-income")] == ["/selbstauskunft", "/hauptantrag?step=2"]
    assert [a.route for a in actions_for("financial-additional")][0] == "/hauptantrag?step=6"
    assert actions_for("cross-checks") == []
    assert all(a.kind == "form" for a in actions_for("financial-income-group"))
