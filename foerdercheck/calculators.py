from __future__ import annotations

import logging
from datetime import date
from typing import List, Optional, Tuple

import pandas as pd

from core.rules import RuleResult
from core.utils import age_on, is_monthly_data_stale, nz
from foerdercheck.models import FinancialRecord, Turnus, UserData
from foerdercheck.presets import (
    HOUSEHOLD_ALLOWANCE_RULES,
    MANDATORY_DEDUCTION_RATE,
    MARRIAGE_BONUS,
    MONTHLY_DATA_MAX_AGE_MONTHS,
)
from foerdercheck.projection import project
from foerdercheck.results import (
    Allowance,
    EmploymentIncome,
    ExpenseContribution,
    HouseholdIncomeAggregate,
    HouseholdMember,
    MemberAllowance,
    PersonIncome,
    Projection,
    SourceContribution,
)
from foerdercheck.sources import (
    DEDUCTIBLE_EXPENSES,
    EMPLOYMENT_LABEL,
    OTHER_SOURCES,
    IncomeSource,
    current_value,
    stored_turnus,
)

logger = logging.getLogger(__name__)

DEDUCTION_FLAGS = (
    ("ispayingincometax", "Steuern"),
    ("ispayinghealthinsurance", "Krankenversicherung"),
    ("ispayingpension", "Rentenversicherung"),
)


def _warn(issues: List[RuleResult], code: str, message: str, **context) -> None:
    issues.append(RuleResult(code=code, severity="warn", message=message, context=context))


def _projection_issue(issues: List[RuleResult], name: str, label: str, projection: Projection) -> None:
    """Explain why a declared change was not applied."""
    if projection.issue == "missing_date":
        _warn(issues, "CHANGE_DATE_MISSING", f"{name}: {label} Änderungsdatum fehlt für Projektion")
    elif projection.issue == "out_of_window":
        _warn(
            issues,
            "CHANGE_DATE_WINDOW",
            f"{name}: Änderungsdatum für {label} liegt nicht im relevanten Zeitraum (±12 Monate); "
            "es wird der bisherige Betrag berücksichtigt",
        )
    elif projection.issue == "missing_turnus":
        _warn(
            issues,
            "CHANGE_TURNUS_MISSING",
            f"{name}: Für die Änderung bei {label} ist nicht angegeben, ob der neue Betrag monatlich "
            "oder jährlich ist; es wird der bisherige Betrag berücksichtigt",
        )


def employment_income(
    record: FinancialRecord, today: date, name: str, issues: List[RuleResult]
) -> Optional[EmploymentIncome]:
    """Annual salary income for the twelve months starting ``today``.

    A prior-year total is used when it belongs to last calendar year and no
    change is declared.  Otherwise the twelve reported months plus the
    bonuses of the past twelve months are summed, as long as that window
    ended at most three months ago.  A declared change is projected from
    the average reported month; next-twelve-month bonuses are added in full.
    """

    if not record.is_earning_regular_income:
        return None

    months = [m for m in record.monthly_income if m > 0]
    monthly_sum = sum(months)
    bonuses = nz(record.wheinachtsgeld_last12) + nz(record.urlaubsgeld_last12) + nz(record.otherincome_last12)
    bonuses_next12 = nz(record.wheinachtsgeld_next12) + nz(record.urlaubsgeld_next12) + nz(record.otherincome_next12)
    prior = nz(record.prior_year_earning)
    stale = is_monthly_data_stale(
        record.end_month_past12, record.end_year_past12, today, MONTHLY_DATA_MAX_AGE_MONTHS
    )
    base = dict(
        prior_year=record.prior_year,
        prior_year_earning=prior,
        months_with_data=len(months),
        monthly_sum=monthly_sum,
        bonuses=bonuses,
        bonuses_next12=bonuses_next12,
    )
    change = record.employment_change()

    if prior > 0 and change is None:
        if record.prior_year == today.year - 1:
            return EmploymentIncome(basis="prior_year", value=prior, prior_year_counted=True, **base)
        _warn(
            issues,
            "PRIOR_YEAR_NOT_LAST_YEAR",
            f"{name}: Vorjahreseinkommen ist nicht vom letzten Kalenderjahr",
            prior_year=record.prior_year,
        )

    def _monthly_basis() -> EmploymentIncome:
        if stale:
            _warn(
                issues,
                "MONTHLY_DATA_STALE",
                f"{name}: Die Monatseinkommen der letzten 12 Monate sind älter als "
                f"{MONTHLY_DATA_MAX_AGE_MONTHS} Monate (Daten sind zu alt) und werden nicht berücksichtigt",
            )
            return EmploymentIncome(basis="none", **base)
        return EmploymentIncome(basis="monthly", value=monthly_sum + bonuses, **base)

    if change is None:
        return _monthly_basis()

    old_annual = monthly_sum / len(months) * 12 if months else 0.0
    new_turnus = Turnus.MONTHLY if record.isnewincomemonthly else Turnus.YEARLY
    projection = project(old_annual, change, today, new_turnus)
    if projection.status == "fallback":
        _projection_issue(issues, name, EMPLOYMENT_LABEL, projection)
        return _monthly_basis()
    return EmploymentIncome(
        basis="projected", value=projection.value + bonuses_next12, projection=projection, **base
    )


def other_source_income(
    record: FinancialRecord, source: IncomeSource, today: date, name: str, issues: List[RuleResult]
) -> Optional[SourceContribution]:
    """Annual contribution of one non-salary income source, or ``None`` if absent."""

    raw = nz(getattr(record, source.field))
    change = record.declared_changes.get(source.key)
    if raw == 0 and change is None:
        return None

    year = getattr(record, source.year_field) if source.year_field else None
    turnus = stored_turnus(source, record)
    if turnus is None:
        if raw > 0:
            _warn(
                issues,
                "SOURCE_TURNUS_MISSING",
                f"{name}: Für {source.label} ist nicht angegeben, ob der Betrag monatlich oder jährlich ist; "
                "das Einkommen wird nicht berücksichtigt",
                source=source.key,
            )
        return SourceContribution(
            key=source.key, label=source.label, raw_value=raw, annual_value=0.0, counted=False, year=year
        )

    annual = raw * turnus.factor
    if change is None:
        if year is not None and year != today.year - 1:
            _warn(
                issues,
                "SOURCE_YEAR_NOT_LAST_YEAR",
                f"{name}: {source.label} ({year}) ist nicht vom letzten Kalenderjahr und wird nicht berücksichtigt",
                source=source.key,
            )
            return SourceContribution(
                key=source.key, label=source.label, raw_value=raw, turnus=turnus,
                annual_value=annual, counted=False, year=year,
            )
        return SourceContribution(
            key=source.key, label=source.label, raw_value=raw, turnus=turnus, annual_value=annual, year=year
        )

    # foreign income must state the turnus of the new amount; the others default to yearly
    new_turnus = change.turnus if source.key == "ausland" else (change.turnus or Turnus.YEARLY)
    projection = project(annual, change, today, new_turnus)
    if projection.status == "fallback":
        _projection_issue(issues, name, source.label, projection)
    return SourceContribution(
        key=source.key, label=source.label, raw_value=raw, turnus=turnus,
        annual_value=annual, year=year, projection=projection,
    )


def mandatory_deduction_rate(record: FinancialRecord) -> Tuple[float, List[str]]:
    """12 percentage points for each of tax, health and pension insurance."""
    flags = [label for attr, label in DEDUCTION_FLAGS if getattr(record, attr)]
    return MANDATORY_DEDUCTION_RATE * len(flags), flags


def source_allowances(record: FinancialRecord) -> List[Allowance]:
    """Fixed allowances, once per qualifying income source present."""
    return [
        Allowance(label=s.allowance_label, amount=s.allowance)
        for s in OTHER_SOURCES
        if s.allowance and nz(getattr(record, s.field)) > 0
    ]


def deductible_expenses(
    record: FinancialRecord, today: date, name: str, issues: List[RuleResult]
) -> List[ExpenseContribution]:
    out: List[ExpenseContribution] = []
    for expense in DEDUCTIBLE_EXPENSES:
        if expense.employed_only and not record.is_earning_regular_income:
            continue
        annual = current_value(record, expense.key) * expense.turnus.factor
        change = record.declared_changes.get(expense.key)
        if annual == 0 and change is None:
            continue
        projection = None
        if change is not None:
            projection = project(annual, change, today, change.turnus or Turnus.YEARLY)
            if projection.status == "fallback":
                _projection_issue(issues, name, expense.label, projection)
        out.append(
            ExpenseContribution(key=expense.key, label=expense.label, annual_value=annual, projection=projection)
        )
    return out


def person_income(member: HouseholdMember, today: date) -> PersonIncome:
    """Gross and adjusted annual income of one member with an income record."""

    record = member.record
    issues: List[RuleResult] = []
    employment = employment_income(record, today, member.name, issues)
    sources = []
    for source in OTHER_SOURCES:
        contribution = other_source_income(record, source, today, member.name, issues)
        if contribution is not None:
            sources.append(contribution)

    gross = (employment.value if employment else 0.0) + sum(c.value for c in sources)
    rate, flags = mandatory_deduction_rate(record)
    mandatory = gross * rate
    allowances = source_allowances(record)
    allowance_total = sum(a.amount for a in allowances)
    after_allowances = max(0.0, gross - mandatory - allowance_total)
    expenses = deductible_expenses(record, today, member.name, issues)
    expense_total = sum(e.value for e in expenses)

    return PersonIncome(
        member_id=member.member_id,
        name=member.name,
        employment=employment,
        sources=sources,
        gross_annual=gross,
        deduction_flags=flags,
        deduction_rate=rate,
        mandatory_deductions=mandatory,
        allowances=allowances,
        allowance_total=allowance_total,
        after_allowances=after_allowances,
        expenses=expenses,
        expense_total=expense_total,
        adjusted_annual=max(0.0, after_allowances - expense_total),
        issues=issues,
    )


def allowance_rule(pflegegrad: int, gdb: int) -> int:
    """Number of the first household allowance rule that matches."""
    pg = pflegegrad
    if pg == 5:
        return 1
    if pg == 4 and gdb >= 80:
        return 2
    if pg == 4:
        return 3
    if gdb == 100:
        return 4
    if pg in (2, 3) and gdb >= 80:
        return 5
    if pg in (2, 3):
        return 6
    if pg == 1 and gdb >= 80:
        return 7
    if pg == 3:
        return 8
    if 80 <= gdb <= 99:
        return 9
    if pg == 1 and 0 < gdb < 80:
        return 10
    if pg == 2:
        return 11
    if 50 <= gdb <= 79:
        return 12
    if pg == 1:
        return 13
    return 14


def member_allowance(member: HouseholdMember, today: date) -> MemberAllowance:
    age = age_on(member.birth_date, today)
    unborn = age is not None and age < 0
    rule = 14 if unborn else allowance_rule(member.pflegegrad, member.behinderungsgrad)
    label, amount = HOUSEHOLD_ALLOWANCE_RULES[rule]
    return MemberAllowance(
        member_id=member.member_id,
        name=member.name,
        has_income=member.has_income,
        rule=rule,
        label=label.format(pg=member.pflegegrad),
        amount=amount,
        unborn=unborn,
    )


def household_income(members: List[HouseholdMember], user: UserData, today: date) -> HouseholdIncomeAggregate:
    """Sum member incomes and subtract the household allowances."""

    issues: List[RuleResult] = []
    persons: List[PersonIncome] = []
    for member in members:
        if not member.has_income:
            continue
        if member.record is None:
            _warn(
                issues,
                "INCOME_RECORD_MISSING",
                f"{member.name}: Keine Einkommensdaten in der Einkommenserklärung gefunden",
                member_id=member.member_id,
            )
            continue
        persons.append(person_income(member, today))

    allowances = [member_allowance(m, today) for m in members]

    totals = pd.DataFrame(
        [{"gross": p.gross_annual, "adjusted": p.adjusted_annual} for p in persons],
        columns=["gross", "adjusted"],
    ).sum()
    allowance_table = pd.DataFrame([a.model_dump() for a in allowances], columns=["member_id", "amount"])

    adult_count = user.adult_count or 1
    child_count = user.child_count or 0
    is_married = bool(user.is_married)
    marriage_bonus = MARRIAGE_BONUS if adult_count + child_count == 2 and is_married else 0
    total_allowances = float(allowance_table["amount"].sum()) + marriage_bonus
    adjusted = float(totals["adjusted"])
    logger.debug(
        "household income: %d earners, gross %.2f, adjusted %.2f, allowances %.2f",
        len(persons), totals["gross"], adjusted, total_allowances,
    )

    return HouseholdIncomeAggregate(
        members=members,
        persons=persons,
        allowances=allowances,
        marriage_bonus=marriage_bonus,
        gross_income=float(totals["gross"]),
        adjusted_income=adjusted,
        total_allowances=total_allowances,
        final_adjusted_income=max(0.0, adjusted - total_allowances),
        adult_count=adult_count,
        child_count=child_count,
        is_married=is_married,
        issues=issues,
    )
