from __future__ import annotations
from datetime import date
from typing import Literal, List, Dict, Any, Optional, Tuple
from pydantic import BaseModel, Field

from core.utils import age_on, format_currency, is_within_months, nz
from foerdercheck.models import (
    MAIN_APPLICANT_ID,
    FinancialRecord,
    FinancialSnapshot,
    MainApplication,
    SelfHelp,
    Turnus,
    UserData,
    entry_sum,
)
from foerdercheck.presets import (
    ADULT_AGE,
    CHANGE_WINDOW_MONTHS,
    MAINTENANCE_MIN_RATIO,
    NET_SALARY_MIN_RATIO,
    SELF_HELP_TOLERANCE,
    SEVERE_DISABILITY_GDB,
)
from foerdercheck.sources import EMPLOYMENT_LABEL, SOURCES_BY_KEY, change_label, current_value, stored_turnus


class RuleResult(BaseModel):
    code: str
    severity: Literal["info", "warn", "critical"]
    message: str
    context: Dict[str, Any] = Field(default_factory=dict)


def has_blocking(res: List[RuleResult]) -> bool:
    return any(r.severity == "critical" for r in res)


def split_results(res: List[RuleResult]) -> Tuple[List[str], List[str]]:
    """Return ``(errors, warnings)`` message lists; ``info`` results are dropped."""
    errors = [r.message for r in res if r.severity == "critical"]
    warnings = [r.message for r in res if r.severity == "warn"]
    return errors, warnings


def _dash(value) -> str:
    return "--" if value is None else str(value)


def _household_people(user: UserData):
    """Yield ``(name, birth_date, gdb)`` for everyone living in the household."""
    if not user.not_household:
        yield "Hauptantragsteller", user.birth_date, user.behinderungsgrad
    for person in user.additional_persons.values():
        if not person.not_household:
            yield person.display_name, person.birth_date, person.behinderungsgrad


def _financial_people(declaration: FinancialSnapshot, disclosure: Optional[FinancialSnapshot] = None):
    """Yield ``(name, declared, disclosed)`` for the main applicant and every person with a record.

    ``disclosed`` is the self-disclosure record of the same person; without a
    self-disclosure both forms are read from the declaration record.
    """
    for member_id, name in _people_with_names(declaration.user_data):
        declared = declaration.record_for(member_id)
        if declared is None:
            continue
        disclosed = disclosure.record_for(member_id) if disclosure is not None else declared
        yield name, declared, disclosed or declared


def _people_with_names(user: UserData):
    yield MAIN_APPLICANT_ID, "Hauptantragsteller"
    for uuid, person in user.additional_persons.items():
        yield uuid, person.display_name


def check_household_size(main: Optional[MainApplication]) -> List[RuleResult]:
    res: List[RuleResult] = []
    if main is None:
        res.append(
            RuleResult(
                code="HOUSEHOLD_SIZE_NO_DATA",
                severity="warn",
                message="Hauptantrag-Daten nicht verfügbar für Haushaltsgrößen-Prüfung",
            )
        )
        return res

    user = main.user_data
    if user.adult_count is None or user.child_count is None:
        res.append(
            RuleResult(
                code="HOUSEHOLD_SIZE_INCOMPLETE",
                severity="warn",
                message="Überprüfung der Haushaltsgröße: Haushaltsgröße im Hauptantrag nicht vollständig angegeben",
            )
        )

    members = 0
    excluded: List[str] = []
    if user.not_household:
        excluded.append("Hauptantragsteller (nicht im Haushalt)")
    else:
        members += 1
    for person in user.additional_persons.values():
        if person.not_household:
            excluded.append(f"{person.display_name} (nicht im Haushalt)")
        else:
            members += 1

    adults = user.adult_count or 0
    children = user.child_count or 0
    declared = adults + children
    if declared != members:
        message = (
            "Haushaltsgröße stimmt nicht überein: "
            f"Im Hauptantrag angegeben: {declared} Personen ({adults} Erwachsene, {children} Kinder), "
            f"Haushalt laut Haushaltsauskunft: {members} Personen"
        )
        res.append(
            RuleResult(
                code="HOUSEHOLD_SIZE_MISMATCH",
                severity="warn" if abs(declared - members) <= 1 else "critical",
                message=message,
                context={"declared": declared, "actual": members},
            )
        )

    if excluded:
        res.append(
            RuleResult(
                code="HOUSEHOLD_EXCLUDED_PERSONS",
                severity="warn",
                message=f"{len(excluded)} Person(en) vom Haushalt ausgeschlossen: {', '.join(excluded)}",
            )
        )
    return res


def check_household_composition(main: Optional[MainApplication], today: date) -> List[RuleResult]:
    res: List[RuleResult] = []
    if main is None:
        res.append(
            RuleResult(
                code="COMPOSITION_NO_DATA",
                severity="warn",
                message="Hauptantrag-Daten nicht verfügbar für Haushaltszusammensetzung-Prüfung",
            )
        )
        return res

    user = main.user_data
    if user.adult_count is None or user.child_count is None:
        res.append(
            RuleResult(
                code="COMPOSITION_INCOMPLETE",
                severity="warn",
                message="Überprüfung der Haushaltszusammensetzung: Erwachsene/Kinder-Anzahl im Hauptantrag nicht vollständig angegeben",
            )
        )

    adults = children = unborn = 0
    missing: List[str] = []
    details: List[str] = []
    for name, birth, _ in _household_people(user):
        age = age_on(birth, today)
        if age is None:
            missing.append(name)
        elif age < 0:
            unborn += 1
            details.append(f"{name}: Ungeboren (Schwanger)")
        elif age >= ADULT_AGE:
            adults += 1
            details.append(f"{name}: {age} Jahre (Erwachsener)")
        else:
            children += 1
            details.append(f"{name}: {age} Jahre (Kind)")

    mismatch = user.adult_count != adults or user.child_count != children
    if mismatch:
        if unborn:
            actual_children = f"{children + unborn} Kinder (Davon {unborn} Ungeboren)"
        else:
            actual_children = f"{children} Kinder"
        res.append(
            RuleResult(
                code="COMPOSITION_MISMATCH",
                severity="critical",
                message=(
                    "Haushaltszusammensetzung stimmt nicht überein: "
                    f"Im Hauptantrag angegeben: {_dash(user.adult_count)} Erwachsene, {_dash(user.child_count)} Kinder, "
                    f"Laut Geburtsdaten: {adults} Erwachsene, {actual_children}"
                ),
                context={
                    "declared_adults": user.adult_count,
                    "declared_children": user.child_count,
                    "adults": adults,
                    "children": children,
                    "unborn": unborn,
                },
            )
        )
    if missing:
        res.append(
            RuleResult(
                code="BIRTH_DATES_MISSING",
                severity="warn",
                message=f"Geburtsdaten fehlen für: {', '.join(missing)}",
            )
        )
    if mismatch:
        res.append(
            RuleResult(
                code="COMPOSITION_DETAILS",
                severity="warn",
                message=f"Detaillierte Altersaufstellung: {'; '.join(details)}",
            )
        )
    if unborn:
        res.append(
            RuleResult(
                code="UNBORN_CHILDREN",
                severity="warn",
                message=f"Ungeborene Kinder werden in der Gesamtanzahl berücksichtigt: {unborn} ungeboren",
            )
        )
    return res


def check_disabled_counts(main: Optional[MainApplication], today: date) -> List[RuleResult]:
    res: List[RuleResult] = []
    if main is None:
        res.append(
            RuleResult(
                code="DISABLED_NO_DATA",
                severity="warn",
                message="Hauptantrag-Daten nicht verfügbar zur Prüfung der Schwerbehinderten Angaben",
            )
        )
        return res

    user = main.user_data
    if user.is_disabled is True:
        if user.disabled_adults_count is None or user.disabled_children_count is None:
            res.append(
                RuleResult(
                    code="DISABLED_COUNTS_INCOMPLETE",
                    severity="warn",
                    message="Überprüfung der Schwerbehinderten im Haushalt: Behindertenanzahl im Hauptantrag nicht vollständig angegeben",
                )
            )
    elif user.is_disabled is None:
        res.append(
            RuleResult(
                code="DISABLED_FLAG_MISSING",
                severity="warn",
                message="Überprüfung der Schwerbehinderten im Haushalt: Es ist nicht angegeben, ob der sich schwerbehinderte im Haushalt befinden",
            )
        )

    adults = children = 0
    missing: List[str] = []
    for name, birth, gdb in _household_people(user):
        if gdb is None:
            missing.append(name)
            continue
        if gdb < SEVERE_DISABILITY_GDB:
            continue
        age = age_on(birth, today)
        if age is None or age >= ADULT_AGE:
            adults += 1
        elif age >= 0:
            children += 1

    if user.is_disabled is True and (
        user.disabled_adults_count != adults or user.disabled_children_count != children
    ):
        res.append(
            RuleResult(
                code="DISABLED_COUNTS_MISMATCH",
                severity="critical",
                message=(
                    "Schwerbehindertenanzahl stimmt nicht überein: "
                    f"Im Hauptantrag angegeben: {_dash(user.disabled_adults_count)} schwerbehinderte Erwachsene, "
                    f"{_dash(user.disabled_children_count)} schwerbehinderte Kinder, "
                    f"Laut Haushaltsauskunft: {adults} schwerbehinderte Erwachsene, {children} schwerbehinderte Kinder"
                ),
                context={"adults": adults, "children": children},
            )
        )
    if missing:
        res.append(
            RuleResult(
                code="GDB_MISSING",
                severity="warn",
                message=f"Behinderungsgrad fehlt für: {', '.join(missing)}",
            )
        )

    found = adults + children > 0
    if user.is_disabled is True and not found:
        res.append(
            RuleResult(
                code="DISABLED_FLAG_WITHOUT_PERSONS",
                severity="critical",
                message=(
                    "Im Hauptantrag ist angegeben, dass schwerbehinderte Personen im Haushalt leben. "
                    "In der Haushaltsauskunft wurden jedoch keine Personen mit einem Behinderungsgrad "
                    "von mindestens 50 % gefunden."
                ),
            )
        )
    elif user.is_disabled is False and found:
        res.append(
            RuleResult(
                code="DISABLED_PERSONS_WITHOUT_FLAG",
                severity="critical",
                message=(
                    "Im Hauptantrag ist angegeben, dass keine schwerbehinderten Personen im Haushalt leben. "
                    "In der Haushaltsauskunft wurden jedoch Personen mit einem Behinderungsgrad "
                    "von mindestens 50 % gefunden."
                ),
            )
        )
    return res


def check_self_help_sum(main: Optional[MainApplication], self_help: Optional[SelfHelp]) -> List[RuleResult]:
    if main is None or self_help is None:
        return [
            RuleResult(
                code="SELF_HELP_NO_DATA",
                severity="warn",
                message="Selbsthilfe-Summen-Prüfung: Hauptantrag- oder Selbsthilfe-Daten nicht verfügbar",
            )
        ]
    declared = nz(main.finance_data.self_help)
    total = nz(self_help.totals.total)
    if abs(total - declared) > SELF_HELP_TOLERANCE:
        return [
            RuleResult(
                code="SELF_HELP_MISMATCH",
                severity="critical",
                message=(
                    "Selbsthilfe-Summen stimmen nicht überein: "
                    f"Selbsthilfe Eigentumsmaßnahmen: {total:.2f} €, "
                    f"Hauptantrag (Selbsthilfe): {declared:.2f} €"
                ),
                context={"form_total": total, "main_application": declared},
            )
        ]
    return []


# (gross field, net field, label)
NET_GROSS_PAIRS = (
    ("wheinachtsgeld_next12", "wheinachtsgeld_next12_net", "Weihnachtsgeld"),
    ("urlaubsgeld_next12", "urlaubsgeld_next12_net", "Urlaubsgeld"),
    ("incomeunterhalttaxable", "incomeunterhalttaxable_net", "Steuerpflichtiges Unterhaltseinkommen"),
    ("incomerent", "incomerent_net", "Mieteinkommen"),
    ("incomeagriculture", "incomeagriculture_net", "Landwirtschaftseinkommen"),
)


def _net_vs_gross(name: str, declared: FinancialRecord, disclosed: FinancialRecord) -> List[RuleResult]:
    res: List[RuleResult] = []
    for gross_field, net_field, label in NET_GROSS_PAIRS:
        gross = nz(getattr(declared, gross_field))
        net = nz(getattr(disclosed, net_field))
        if gross > 0 and net > 0 and net > gross:
            res.append(
                RuleResult(
                    code="NET_ABOVE_GROSS",
                    severity="critical",
                    message=(
                        f"{name}: {label} Netto-Wert (Selbstauskunft) ({format_currency(net)}) ist höher als "
                        f"Brutto-Wert (Einkommenserklärung) ({format_currency(gross)})"
                    ),
                    context={"field": gross_field},
                )
            )
    gross = nz(declared.incomebusiness)
    net = nz(disclosed.yearlyselfemployednetincome) + nz(disclosed.yearlybusinessnetincome)
    if gross > 0 and net > 0 and net > gross:
        res.append(
            RuleResult(
                code="NET_ABOVE_GROSS",
                severity="critical",
                message=(
                    f"{name}: Die Netto Summe der Einkünfte aus Gewerbebetrieb/selbstständiger Arbeit "
                    f"(Selbstauskunft) ({format_currency(net)}) ist höher als der Brutto-Wert "
                    f"(Einkommenserklärung) ({format_currency(gross)})"
                ),
                context={"field": "incomebusiness"},
            )
        )
    return res


def check_net_vs_gross(
    declaration: Optional[FinancialSnapshot], disclosure: Optional[FinancialSnapshot] = None
) -> List[RuleResult]:
    if declaration is None:
        return [
            RuleResult(
                code="NET_GROSS_NO_DATA",
                severity="warn",
                message="Einkommenserklärung-Daten nicht verfügbar für Netto-Brutto-Überprüfung",
            )
        ]
    res: List[RuleResult] = []
    for name, declared, disclosed in _financial_people(declaration, disclosure):
        res.extend(_net_vs_gross(name, declared, disclosed))
    return res


def average_monthly_gross(record: FinancialRecord) -> float:
    months = [m for m in record.monthly_income if m > 0]
    return sum(months) / len(months) if months else 0.0


def maintenance_aggregate(record: FinancialRecord) -> float:
    if not record.unterhaltszahlungen_total:
        return 0.0
    return nz(record.unterhaltszahlungen_total[0].amount_total)


def _salary_and_maintenance(name: str, declared: FinancialRecord, disclosed: FinancialRecord) -> List[RuleResult]:
    res: List[RuleResult] = []
    salary = disclosed.has_salary_income is True
    employed = declared.is_earning_regular_income is True

    if salary and declared.is_earning_regular_income is False:
        res.append(
            RuleResult(
                code="SALARY_FLAG_CONFLICT",
                severity="critical",
                message=(
                    f"{name}: Widerspruch bei Gehaltseinkommen: In der Selbstauskunft wurde "
                    '"Erzielen Sie Einkünfte aus nichtselbstständiger Arbeit?" mit "Ja" beantwortet, '
                    "aber in der Einkommenserklärung wurde "
                    '"Erzielen Sie Einkünfte aus nichtselbstständiger Arbeit/Versorgungsbezüge?" '
                    'mit "Nein" beantwortet'
                ),
            )
        )

    if salary and employed:
        net = nz(disclosed.monthlynetsalary)
        gross = average_monthly_gross(declared)
        if net > 0 and gross > 0:
            if net > gross:
                res.append(
                    RuleResult(
                        code="NET_SALARY_ABOVE_GROSS",
                        severity="warn",
                        message=(
                            f"{name}: Monatliches Nettogehalt (Selbstauskunft) ({format_currency(net)}) ist höher "
                            "als das durchschnittliche monatliche Bruttogehalt (Einkommenserklärung) "
                            f"({format_currency(gross)}) - bitte überprüfen "
                            "(Änderung der Einkünfte wurden nicht Berücksichtigt)"
                        ),
                    )
                )
            if net < gross * NET_SALARY_MIN_RATIO:
                res.append(
                    RuleResult(
                        code="NET_SALARY_BELOW_HALF",
                        severity="warn",
                        message=(
                            f"{name}: Monatliches Nettogehalt (Selbstauskunft) ({format_currency(net)}) ist "
                            "weniger als 50% des durchschnittlichen monatlichen Bruttogehalts "
                            f"(Einkommenserklärung) ({format_currency(gross)}) - bitte überprüfen "
                            "(Änderung der Einkünfte wurden nicht Berücksichtigt)"
                        ),
                    )
                )

    if declared.ispayingunterhalt is True:
        itemised = entry_sum(declared.unterhaltszahlungen)
        aggregated = maintenance_aggregate(disclosed)
        if itemised > 0 and aggregated > 0:
            if aggregated > itemised:
                res.append(
                    RuleResult(
                        code="MAINTENANCE_TOTAL_ABOVE_ITEMS",
                        severity="warn",
                        message=(
                            f"{name}: Unterhaltszahlungen in der Selbstauskunft ({format_currency(aggregated)}) "
                            "sind höher als die Summe der Einzelzahlungen in der Einkommenserklärung "
                            f"({format_currency(itemised)})"
                        ),
                    )
                )
            if aggregated < itemised * MAINTENANCE_MIN_RATIO:
                res.append(
                    RuleResult(
                        code="MAINTENANCE_TOTAL_BELOW_ITEMS",
                        severity="warn",
                        message=(
                            f"{name}: Unterhaltszahlungen in der Selbstauskunft ({format_currency(aggregated)}) "
                            "sind mehr als 30% niedriger als die Summe der Einzelzahlungen in der "
                            f"Einkommenserklärung ({format_currency(itemised)})"
                        ),
                    )
                )
    return res


def check_salary_and_maintenance(
    declaration: Optional[FinancialSnapshot], disclosure: Optional[FinancialSnapshot] = None
) -> List[RuleResult]:
    if declaration is None:
        return [
            RuleResult(
                code="SALARY_NO_DATA",
                severity="warn",
                message="Einkommenserklärung-Daten nicht verfügbar für Gehalts- und Unterhalts-Überprüfung",
            )
        ]
    res: List[RuleResult] = []
    for name, declared, disclosed in _financial_people(declaration, disclosure):
        res.extend(_salary_and_maintenance(name, declared, disclosed))
    return res


def evaluate_cross_checks(
    main: Optional[MainApplication],
    declaration: Optional[FinancialSnapshot],
    self_help: Optional[SelfHelp],
    today: date,
    disclosure: Optional[FinancialSnapshot] = None,
) -> List[RuleResult]:
    """Run every cross-form check; none of them stops the others."""
    res: List[RuleResult] = []
    res.extend(check_household_size(main))
    res.extend(check_household_composition(main, today))
    res.extend(check_disabled_counts(main, today))
    res.extend(check_net_vs_gross(declaration, disclosure))
    res.extend(check_salary_and_maintenance(declaration, disclosure))
    res.extend(check_self_help_sum(main, self_help))
    return res


def _direction(name: str, label: str, increases: bool, new: float, current: float) -> Optional[RuleResult]:
    if increases and new <= current:
        return RuleResult(
            code="CHANGE_DIRECTION",
            severity="critical",
            message=(
                f"{name}: {label}: Ihr neuer Betrag ist geringer als oder gleich dem alten Betrag. "
                f"{format_currency(new)} <= {format_currency(current)}"
            ),
            context={"new": new, "current": current},
        )
    if not increases and new >= current:
        return RuleResult(
            code="CHANGE_DIRECTION",
            severity="critical",
            message=(
                f"{name}: {label}: Ihr neuer Betrag ist größer als oder gleich dem alten Betrag. "
                f"{format_currency(new)} >= {format_currency(current)}"
            ),
            context={"new": new, "current": current},
        )
    return None


def _comparable(key: str, record: FinancialRecord, change) -> bool:
    """Sources with their own turnus are compared only when both sides use the same one."""
    if key not in ("ausland", "arbeitslosengeld"):
        return True
    stored = stored_turnus(SOURCES_BY_KEY[key], record)
    return stored is not None and stored == change.turnus


def check_declared_changes(name: str, record: FinancialRecord, today: date) -> List[RuleResult]:
    res: List[RuleResult] = []

    def err(code: str, message: str, key: str) -> None:
        res.append(RuleResult(code=code, severity="critical", message=f"{name}: {message}", context={"type": key}))

    for key, change in record.declared_changes.items():
        label = change_label(key)
        if change.effective_date is None:
            err("CHANGE_DATE_MISSING", f"Bitte geben Sie das Änderungsdatum für {label} an.", key)
        elif not is_within_months(change.effective_date, today, CHANGE_WINDOW_MONTHS):
            err(
                "CHANGE_DATE_WINDOW",
                f"Das Änderungsdatum für {label} darf nicht mehr als 12 Monate in der Vergangenheit "
                "liegen und nicht mehr als 12 Monate in der Zukunft.",
                key,
            )
        if change.new_amount is None:
            err("CHANGE_AMOUNT_MISSING", f"Bitte geben Sie den neuen Betrag für {label} an.", key)
        if change.increases is None:
            err(
                "CHANGE_DIRECTION_MISSING",
                f"Bitte geben Sie an, ob sich das Einkommen für {label} erhöht oder verringert.",
                key,
            )
        elif change.new_amount is not None and _comparable(key, record, change):
            found = _direction(name, label, change.increases, change.new_amount, current_value(record, key))
            if found:
                res.append(found)
        if change.turnus is None:
            err(
                "CHANGE_TURNUS_MISSING",
                f"Bitte geben Sie an, ob der neue Betrag für {label} monatlich oder jährlich ist.",
                key,
            )
        if not change.reason:
            err("CHANGE_REASON_MISSING", f"Bitte geben Sie eine Begründung für die Änderung bei {label} an.", key)

    change = record.employment_change()
    if change is not None and record.is_earning_regular_income:
        if change.effective_date is None:
            err("CHANGE_DATE_MISSING", f"Bitte geben Sie das Änderungsdatum für {EMPLOYMENT_LABEL} an.", "lohn")
        if change.new_amount is None:
            err("CHANGE_AMOUNT_MISSING", f"Bitte geben Sie den neuen Betrag für {EMPLOYMENT_LABEL} an.", "lohn")
        if not change.reason:
            err(
                "CHANGE_REASON_MISSING",
                f"Bitte geben Sie eine Begründung für die Änderung bei {EMPLOYMENT_LABEL} an.",
                "lohn",
            )
        current = average_monthly_gross(record)
        if change.increases is not None and change.new_amount is not None and change.turnus and current > 0:
            if change.turnus is Turnus.YEARLY:
                current *= 12
            found = _direction(name, EMPLOYMENT_LABEL, change.increases, change.new_amount, current)
            if found:
                res.append(found)
    return res


def evaluate_declared_changes(declaration: FinancialSnapshot, today: date) -> List[RuleResult]:
    """Check every declared change of every person who declares income."""
    res: List[RuleResult] = []
    user = declaration.user_data
    if not user.no_income:
        res.extend(check_declared_changes(user.display_name, declaration.financial_data, today))
    for uuid, person in user.additional_persons.items():
        record = declaration.record_for(uuid)
        if record is None or person.no_income:
            continue
        res.extend(check_declared_changes(person.display_name, record, today))
    return res

