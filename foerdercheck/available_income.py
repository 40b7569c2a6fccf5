"""Disposable monthly income against the subsistence floor."""
from __future__ import annotations

from typing import List, Optional

from core.rules import RuleResult
from core.utils import format_currency, nz
from foerdercheck.models import MAIN_APPLICANT_ID, FinancialRecord, FinancialSnapshot, UserData, entry_sum
from foerdercheck.presets import (
    SUBSISTENCE_FLOOR_COUPLE,
    SUBSISTENCE_FLOOR_PER_EXTRA_PERSON,
    SUBSISTENCE_FLOOR_SINGLE,
)
from foerdercheck.results import AvailableIncomeResult, PersonBudget


def monthly_net_income(r: FinancialRecord) -> float:
    """Net monthly income lines of the self-disclosure; annual figures count /12."""

    total = 0.0
    if r.has_salary_income:
        total += nz(r.monthlynetsalary)
        total += nz(r.wheinachtsgeld_next12_net) / 12
        total += nz(r.urlaubsgeld_next12_net) / 12
        total += entry_sum(r.otheremploymentmonthlynetincome) / 12
    if r.hasagricultureincome:
        total += nz(r.incomeagriculture_net) / 12
    if r.hasrentincome:
        total += nz(r.incomerent_net) / 12
    if r.hascapitalincome:
        total += nz(r.yearlycapitalnetincome) / 12
    if r.hasbusinessincome:
        total += (nz(r.yearlybusinessnetincome) + nz(r.yearlyselfemployednetincome)) / 12
    if r.haspensionincome:
        total += entry_sum(r.pensionmonthlynetincome)
    if r.hastaxfreeunterhaltincome:
        total += nz(r.incomeunterhalttaxfree)
    if r.hastaxableunterhaltincome:
        total += nz(r.incomeunterhalttaxable_net)
    if r.haskindergeldincome:
        total += nz(r.monthlykindergeldnetincome)
    if r.haspflegegeldincome:
        total += nz(r.monthlypflegegeldnetincome)
    if r.haselterngeldincome:
        total += nz(r.monthlyelterngeldnetincome)
    if r.hasothernetincome:
        total += entry_sum(r.othermonthlynetincome)
    return total


def monthly_expenses(r: FinancialRecord) -> float:
    total = (
        entry_sum(r.betragotherinsurancetaxexpenses)
        + entry_sum(r.loans)
        + entry_sum(r.zwischenkredit)
        + sum(nz(e.amount_total) for e in r.unterhaltszahlungen_total)
        + entry_sum(r.otherzahlungsverpflichtung)
    )
    if r.has_bausparvertraege:
        total += nz(r.sparratebausparvertraege)
    if r.has_rentenversicherung:
        total += nz(r.praemiekapitalrentenversicherung)
    return total


def subsistence_floor(household_size: int) -> Optional[float]:
    if household_size <= 0:
        return None
    if household_size == 1:
        return SUBSISTENCE_FLOOR_SINGLE
    return SUBSISTENCE_FLOOR_COUPLE + SUBSISTENCE_FLOOR_PER_EXTRA_PERSON * (household_size - 2)


def available_income(
    disclosure: FinancialSnapshot, household: Optional[UserData] = None
) -> AvailableIncomeResult:
    """Household surplus per month from the self-disclosure.

    The household size comes from ``household``, the user data of the main
    application; without it the counts stored with the self-disclosure are used.
    """

    user = disclosure.user_data
    persons: List[PersonBudget] = []
    if not user.no_income:
        record = disclosure.financial_data
        persons.append(
            PersonBudget(
                member_id=MAIN_APPLICANT_ID,
                name=user.display_name,
                income=monthly_net_income(record),
                expenses=monthly_expenses(record),
            )
        )
    for index, (uuid, person) in enumerate(user.additional_persons.items()):
        record = disclosure.record_for(uuid)
        if record is None or person.not_household or person.no_income:
            continue
        name = person.display_name if person.first_name and person.last_name else f"Person {index + 2}"
        persons.append(
            PersonBudget(
                member_id=uuid,
                name=name,
                income=monthly_net_income(record),
                expenses=monthly_expenses(record),
            )
        )

    counts = household if household is not None else user
    adults = counts.adult_count or 0
    size = adults + (counts.child_count or 0)
    floor = subsistence_floor(size)
    total = sum(p.income - p.expenses for p in persons)

    issues: List[RuleResult] = []
    if size == 0:
        issues.append(
            RuleResult(
                code="HOUSEHOLD_SIZE_UNKNOWN",
                severity="warn",
                message=(
                    "Haushaltsgröße nicht verfügbar - Prüfung der Tragbarkeit der Belastung nicht möglich. "
                    "Die Haushaltsgröße ergibt sich aus Schritt 2 des Hauptantrags."
                ),
            )
        )
    elif adults == 0:
        issues.append(
            RuleResult(
                code="NO_ADULTS",
                severity="warn",
                message=(
                    "Keine Erwachsenen im Haushalt - Prüfung der Tragbarkeit der Belastung nicht möglich. "
                    "Die Haushaltsgröße ergibt sich aus Schritt 2 des Hauptantrags."
                ),
            )
        )
    if floor is not None and total < floor:
        issues.append(
            RuleResult(
                code="BELOW_SUBSISTENCE_FLOOR",
                severity="critical",
                message=f"Mindestbedarf nicht erfüllt (Fehlbetrag: {format_currency(floor - total)})",
                context={"floor": floor, "available": total},
            )
        )
    if total < 0:
        issues.append(
            RuleResult(
                code="NEGATIVE_AVAILABLE_INCOME",
                severity="critical",
                message="Das verfügbare Einkommen ist negativ - die Ausgaben übersteigen die Einnahmen",
            )
        )
    elif total < SUBSISTENCE_FLOOR_SINGLE:
        issues.append(
            RuleResult(
                code="BELOW_SINGLE_FLOOR",
                severity="warn",
                message="Das verfügbare Einkommen ist geringer als der Mindestbedarf für einen 1-Personen-Haushalt",
            )
        )

    return AvailableIncomeResult(persons=persons, household_size=size, floor=floor, issues=issues)
