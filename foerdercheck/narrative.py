"""German calculation lines for the validation report.

Pure rendering: every function takes computed results and returns the
lines shown under a section.  Indented lines start with two spaces.
"""
from __future__ import annotations

from typing import List

from core.utils import format_cents, format_currency
from foerdercheck.results import (
    AvailableIncomeResult,
    EligibilityResult,
    EmploymentIncome,
    ExpenseContribution,
    HouseholdIncomeAggregate,
    LoanCeilingResult,
    PersonIncome,
    Projection,
    SourceContribution,
)
from foerdercheck.sources import EMPLOYMENT_LABEL

INDENT = "  "
NOT_COUNTED = "(Nicht berücksichtigt)"


def _yes_no(flag: bool) -> str:
    return "Ja" if flag else "Nein"


def projection_lines(label: str, projection: Projection, feminine: bool = False) -> List[str]:
    if projection.status != "projected":
        return []
    projected, old, new = ("Hochgerechnete", "Alte", "Neue") if feminine else ("Hochgerechnetes", "Altes", "Neues")
    return [
        f"{INDENT}{projected} {label} (ab Antragstellung): {format_currency(projection.value)}",
        f"{INDENT}- {old} {label} ({projection.days_old} Tage): {format_currency(projection.old_part)}",
        f"{INDENT}- {new} {label} ({projection.days_new} Tage): {format_currency(projection.new_part)}",
    ]


def employment_lines(employment: EmploymentIncome) -> List[str]:
    lines: List[str] = []
    if employment.prior_year_earning > 0:
        line = f"{INDENT}Vorjahreseinkommen ({employment.prior_year or '—'}): {format_currency(employment.prior_year_earning)}"
        lines.append(line if employment.prior_year_counted else f"{line} {NOT_COUNTED}")
    if employment.basis == "monthly":
        lines.append(
            f"{INDENT}{EMPLOYMENT_LABEL} der letzten 12 Monate ({employment.months_with_data} Monate mit Angaben): "
            f"{format_currency(employment.monthly_sum)}"
        )
        if employment.bonuses:
            lines.append(f"{INDENT}Sonderzahlungen der letzten 12 Monate: {format_currency(employment.bonuses)}")
    elif employment.basis == "projected":
        lines.extend(projection_lines("Jahreseinkommen", employment.projection))
        if employment.bonuses_next12:
            lines.append(
                f"{INDENT}Sonderzahlungen der nächsten 12 Monate: {format_currency(employment.bonuses_next12)}"
            )
    elif employment.basis == "none" and employment.monthly_sum > 0:
        lines.append(
            f"{INDENT}{EMPLOYMENT_LABEL} der letzten 12 Monate: {format_currency(employment.monthly_sum)} {NOT_COUNTED}"
        )
    return lines


def source_lines(source: SourceContribution) -> List[str]:
    label = f"{source.label} ({source.year})" if source.year else source.label
    if not source.counted:
        return [f"{INDENT}{label}: {format_currency(source.annual_value)} {NOT_COUNTED}"]
    if source.projection is not None and source.projection.status == "projected":
        return projection_lines(source.label, source.projection)
    return [f"{INDENT}{label}: {format_currency(source.value)}"]


def expense_lines(expense: ExpenseContribution) -> List[str]:
    if expense.projection is not None and expense.projection.status == "projected":
        return projection_lines(expense.label, expense.projection, feminine=True)
    return [f"{INDENT}{expense.label}: -{format_currency(expense.value)}"]


def person_lines(person: PersonIncome) -> List[str]:
    lines = [f"- {person.name} -"]
    details: List[str] = []
    if person.employment is not None:
        details.extend(employment_lines(person.employment))
    for source in person.sources:
        details.extend(source_lines(source))
    if details:
        lines.append("Bruttojahreseinkommen:")
        lines.extend(details)
    lines.append(f"Summe Bruttojahreseinkommen: {format_currency(person.gross_annual)}")

    if person.deduction_flags:
        lines.append(
            f"Abzug Steuern/Sozialabgaben ({person.deduction_rate * 100:.0f}%): "
            f"-{format_currency(person.mandatory_deductions)}"
        )
        lines.append(f"{INDENT}- {', '.join(person.deduction_flags)}")
    else:
        lines.append(f"{INDENT}Keine Abzüge für Steuern/Sozialabgaben (alle Optionen deaktiviert)")
    for allowance in person.allowances:
        lines.append(f"{INDENT}{allowance.label}: -{format_currency(allowance.amount)}")

    if person.expenses:
        lines.append("Abzugsfähige Ausgaben:")
        for expense in person.expenses:
            lines.extend(expense_lines(expense))
        lines.append(f"Summe abzugsfähige Ausgaben: -{format_currency(person.expense_total)}")
    lines.append(f"Bereinigtes Jahreseinkommen: {format_currency(person.adjusted_annual)}")
    lines.append("")
    return lines


def household_income_lines(aggregate: HouseholdIncomeAggregate) -> List[str]:
    with_income = [m for m in aggregate.members if m.has_income]
    lines = [
        f"Haushaltsmitglieder insgesamt: {len(aggregate.members)}",
        f"{INDENT}- Mit Einkommen: {len(with_income)}",
        f"{INDENT}- Ohne Einkommen: {len(aggregate.members_without_income)}",
        "",
        "Einkommensberechnung der Haushaltsmitglieder",
        "",
    ]
    for person in aggregate.persons:
        lines.extend(person_lines(person))

    if aggregate.members_without_income:
        lines.append("Haushaltsmitglieder ohne Einkommen")
        lines.extend(f"- {m.name} (kein Einkommen)" for m in aggregate.members_without_income)
        lines.append("")

    lines += [
        "Summe der Haushalts-Einkommen ohne Freibeträge",
        f"Brutto-Haushaltseinkommen: {format_currency(aggregate.gross_income)}",
        f"Bereinigtes Haushaltseinkommen: {format_currency(aggregate.adjusted_income)}",
        "",
        "Freibeträge (alle Haushaltsmitglieder)",
    ]
    granted = [a for a in aggregate.allowances if a.amount > 0]
    for allowance in granted:
        status = "" if allowance.has_income else " (ohne Einkommen)"
        lines.append(f"{allowance.name}{status} - {allowance.label}: {format_currency(allowance.amount)}")
    if aggregate.marriage_bonus:
        lines.append(f"Ehepaar-Freibetrag (2-Personen-Haushalt): {format_currency(aggregate.marriage_bonus)}")
    if not granted and not aggregate.marriage_bonus:
        lines.append("Keine steuerfreien Freibeträge anwendbar")

    lines += [
        "",
        "Bereinigtes Haushalts-Einkommen",
        f"Bereinigtes Haushaltseinkommen (vor Freibeträgen): {format_currency(aggregate.adjusted_income)}",
        f"Steuerfreie Freibeträge gesamt: -{format_currency(aggregate.total_allowances)}",
        f"Finales bereinigtes Haushaltseinkommen: {format_currency(aggregate.final_adjusted_income)}",
    ]
    return lines


def available_income_lines(result: AvailableIncomeResult) -> List[str]:
    lines = ["Verfügbares Monatseinkommen", ""]
    for person in result.persons:
        lines += [
            f"- {person.name} -",
            f"Einnahmen: {format_currency(person.income)}",
            f"Ausgaben: {format_currency(person.expenses)}",
            f"Überschuss: {format_currency(person.available)}",
            "",
        ]
    lines += [
        "Haushaltssumme",
        f"Gesamt Einnahmen: {format_currency(result.total_income)}",
        f"Gesamt Ausgaben: {format_currency(result.total_expenses)}",
        f"Verfügbares Monatseinkommen gesamt: {format_currency(result.total_available)}",
    ]
    if result.floor is not None:
        lines += ["", f"Mindestbedarf für {result.household_size}-Personen-Haushalt: {format_currency(result.floor)}"]
        surplus = result.total_available - result.floor
        if surplus >= 0:
            lines.append(f"✓ Mindestbedarf erfüllt (Überschuss: {format_currency(surplus)})")
    return lines


def income_group_lines(eligibility: EligibilityResult) -> List[str]:
    limits = eligibility.thresholds
    lines = [
        "Haushaltszusammensetzung",
        f"Anzahl Erwachsene: {eligibility.adult_count}",
        f"Anzahl Kinder: {eligibility.child_count}",
        f"Verheiratet: {_yes_no(eligibility.is_married)}",
        f"Rentner-Haushalt: {_yes_no(eligibility.retired)}",
        "",
        "Berechnetes Haushalts-Einkommen",
        f"Jahreseinkommen Brutto: {format_currency(eligibility.gross_income)}",
        f"Bereinigtes Haushalts-Einkommen: {format_currency(eligibility.net_income)}",
        "",
        "Grenzen für ihre Haushaltszusammensetzung",
    ]
    if eligibility.extra_children:
        lines.append(f"{INDENT}inkl. Zuschlag für {eligibility.extra_children} weitere(s) Kind(er)")
    if eligibility.marriage_bonus:
        lines.append(f"{INDENT}inkl. Ehepaar-Zuschlag (Brutto): {format_currency(eligibility.marriage_bonus)}")
    lines += [
        f"Gruppe A Mögliches Jahreseinkommen Brutto: {format_currency(limits.gross_a)}",
        f"Gruppe A Gesetzliche Einkommensgrenze: {format_currency(limits.net_a)}",
        f"Gruppe B Mögliches Jahreseinkommen Brutto: {format_currency(limits.gross_b)}",
        f"Gruppe B Gesetzliche Einkommensgrenze: {format_currency(limits.net_b)}",
        "",
        f"Ermittelte Einkommensgruppe: {eligibility.group_label}",
    ]
    return lines


def loan_ceiling_lines(result: LoanCeilingResult) -> List[str]:
    lines = ["Ermittlung der Grunddarlehensgrenze"]
    if result.skipped:
        lines.append("Grunddarlehen nicht relevant, da ein Ergänzungsdarlehen beantragt wird.")
        return lines
    if result.category is None:
        if result.postcode or result.requested:
            lines.append(f"Postleitzahl: {result.postcode or '—'}")
        return lines

    lines += [
        f"Postleitzahl: {result.postcode or '—'}",
        f"Kostenkategorie: K{result.category}",
        f"Zulässige Obergrenzen je Gruppe – A: {format_cents(result.ceiling_a)}, B: {format_cents(result.ceiling_b)}",
    ]
    if result.tier is None:
        return lines
    group = {"A": "Gruppe A", "B": "Gruppe B"}.get(result.tier, "Nicht Förderungsfähig")
    lines.append(f"Ermittelte Einkommensgruppe: {group}")
    if result.applied_ceiling is not None:
        lines.append(f"Angewendete Darlehensgrenze ({group}): {format_cents(result.applied_ceiling)}")
    if result.requested:
        lines.append(f"Beantragtes Grunddarlehen: {format_cents(result.requested)}")
    if result.within:
        lines.append("✓ Grunddarlehen liegt innerhalb der zulässigen Grenze")
    return lines
