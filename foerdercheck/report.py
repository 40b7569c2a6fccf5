"""Build the report sections from computed results."""
from __future__ import annotations

from typing import Iterable, List, Optional, Tuple

from core.navigation import actions_for
from core.rules import RuleResult, evaluate_cross_checks, evaluate_declared_changes, split_results
from foerdercheck.available_income import available_income
from foerdercheck.calculators import household_income
from foerdercheck.eligibility import PostcodeResolver, check_loan_ceiling, classify, is_retired_household
from foerdercheck.household import household_members
from foerdercheck.narrative import (
    available_income_lines,
    household_income_lines,
    income_group_lines,
    loan_ceiling_lines,
)
from foerdercheck.results import (
    ComputationContext,
    EligibilityResult,
    HouseholdIncomeAggregate,
    ValidationSection,
)

HOUSEHOLD_INCOME = "financial-household-income"
AVAILABLE_INCOME = "financial-available-income"
INCOME_GROUP = "financial-income-group"
LOAN_CEILING = "financial-additional"
CROSS_CHECKS = "cross-checks"
DECLARED_CHANGES = "income-declaration-changes"

TITLES = {
    HOUSEHOLD_INCOME: "Berechnung des Haushalts-Einkommen",
    AVAILABLE_INCOME: "Verfügbares Monatseinkommen",
    INCOME_GROUP: "Bestimmung der Einkommensgruppe",
    LOAN_CEILING: "Einhaltung der Darlehensgrenze",
    CROSS_CHECKS: "Übergreifende Prüfungen",
    DECLARED_CHANGES: "Einkommenserklärung: Änderungen",
}
SECTION_ORDER = (HOUSEHOLD_INCOME, AVAILABLE_INCOME, INCOME_GROUP, LOAN_CEILING, CROSS_CHECKS, DECLARED_CHANGES)

# what each section needs, for the data-unavailable message
SUBJECTS = {
    HOUSEHOLD_INCOME: "die Haushaltseinkommens-Berechnung",
    AVAILABLE_INCOME: "die Berechnung des verfügbaren Monatseinkommens",
    INCOME_GROUP: "die Einkommensgruppen-Bestimmung",
    LOAN_CEILING: "die Validierung der Darlehensgrenze",
    CROSS_CHECKS: "die übergreifenden Prüfungen",
    DECLARED_CHANGES: "die Prüfung der angegebenen Änderungen",
}

INCOMPLETE_DECLARATION = (
    "Die Einkommenserklärung ist unvollständig. Die Berechnung {what} basiert auf den verfügbaren Daten, "
    "kann aber ungenau sein."
)


def make_section(
    section_id: str,
    issues: Iterable[RuleResult] = (),
    calculations: Iterable[str] = (),
    success_messages: Iterable[str] = (),
    errors: Iterable[str] = (),
    warnings: Iterable[str] = (),
) -> ValidationSection:
    found_errors, found_warnings = split_results(list(issues))
    return ValidationSection(
        id=section_id,
        title=TITLES[section_id],
        errors=[*errors, *found_errors],
        warnings=[*warnings, *found_warnings],
        calculations=list(calculations),
        success_messages=list(success_messages),
        actions=actions_for(section_id),
    )


def data_unavailable(section_id: str) -> ValidationSection:
    return make_section(section_id, errors=[f"Erforderliche Daten für {SUBJECTS[section_id]} sind nicht verfügbar"])


def internal_error(section_id: str, exc: Exception) -> ValidationSection:
    return make_section(section_id, errors=[f"Interner Fehler bei {SUBJECTS[section_id]}: {exc}"])


def household_income_section(
    ctx: ComputationContext, declaration_incomplete: bool = False
) -> Tuple[ValidationSection, Optional[HouseholdIncomeAggregate]]:
    if ctx.main_application is None:
        return data_unavailable(HOUSEHOLD_INCOME), None

    warnings: List[str] = []
    if declaration_incomplete:
        warnings.append(INCOMPLETE_DECLARATION.format(what="des Haushalts-Einkommens"))

    user = ctx.main_application.user_data
    members = household_members(user, ctx.income_declaration)
    if not members:
        return make_section(HOUSEHOLD_INCOME, errors=["Keine Haushaltsmitglieder gefunden"], warnings=warnings), None
    if ctx.income_declaration is None and any(m.has_income for m in members):
        return (
            make_section(
                HOUSEHOLD_INCOME,
                errors=["Einkommenserklärung-Daten sind für diese Berechnung erforderlich"],
                warnings=warnings,
            ),
            None,
        )

    aggregate = household_income(members, user, ctx.today)
    issues = list(aggregate.issues)
    for person in aggregate.persons:
        issues.extend(person.issues)
    section = make_section(
        HOUSEHOLD_INCOME, issues=issues, calculations=household_income_lines(aggregate), warnings=warnings
    )
    if not section.errors:
        section = section.model_copy(update={"success_messages": ["Haushalts-Einkommen erfolgreich berechnet"]})
    return section, aggregate


def available_income_section(ctx: ComputationContext) -> ValidationSection:
    if ctx.self_disclosure is None:
        return make_section(
            AVAILABLE_INCOME,
            calculations=["Verfügbares Monatseinkommen"],
            errors=["Selbstauskunft-Daten sind für diese Berechnung erforderlich"],
        )
    household = ctx.main_application.user_data if ctx.main_application is not None else None
    result = available_income(ctx.self_disclosure, household)
    section = make_section(AVAILABLE_INCOME, issues=result.issues, calculations=available_income_lines(result))
    if not section.errors:
        section = section.model_copy(
            update={"success_messages": ["Verfügbares Monatseinkommen erfolgreich ermittelt"]}
        )
    return section


def income_group_section(
    ctx: ComputationContext, declaration_incomplete: bool = False
) -> Tuple[ValidationSection, Optional[EligibilityResult]]:
    aggregate = ctx.household
    if aggregate is None:
        return make_section(INCOME_GROUP, errors=["Haushaltseinkommen muss zuerst berechnet werden"]), None

    warnings: List[str] = []
    if declaration_incomplete:
        warnings.append(INCOMPLETE_DECLARATION.format(what="der Einkommensgruppe"))
    retired = is_retired_household(aggregate.members, ctx.self_disclosure)
    eligibility, issues = classify(
        aggregate.gross_income,
        aggregate.final_adjusted_income,
        aggregate.adult_count,
        aggregate.child_count,
        aggregate.is_married,
        retired,
    )
    if eligibility is None:
        return make_section(INCOME_GROUP, issues=issues, warnings=warnings), None

    if eligibility.eligible:
        section = make_section(
            INCOME_GROUP,
            issues=issues,
            calculations=income_group_lines(eligibility),
            success_messages=[eligibility.reason],
            warnings=warnings,
        )
    else:
        section = make_section(
            INCOME_GROUP,
            issues=issues,
            calculations=income_group_lines(eligibility),
            errors=[eligibility.reason],
            warnings=warnings,
        )
    return section, eligibility


def loan_ceiling_section(ctx: ComputationContext, resolver: PostcodeResolver) -> ValidationSection:
    result = check_loan_ceiling(ctx.main_application, ctx.eligibility, resolver)
    return make_section(LOAN_CEILING, issues=result.issues, calculations=loan_ceiling_lines(result))


def cross_checks_section(ctx: ComputationContext) -> ValidationSection:
    issues = evaluate_cross_checks(
        ctx.main_application, ctx.income_declaration, ctx.self_help, ctx.today, ctx.self_disclosure
    )
    return make_section(CROSS_CHECKS, issues=issues)


def declared_changes_section(ctx: ComputationContext) -> ValidationSection:
    if ctx.income_declaration is None:
        return data_unavailable(DECLARED_CHANGES)
    return make_section(DECLARED_CHANGES, issues=evaluate_declared_changes(ctx.income_declaration, ctx.today))
