"""Income tier classification and the base loan ceiling."""
from __future__ import annotations

import logging
from typing import Callable, List, Optional, Tuple

from core.postcodes import PostcodeCategory, resolve_postcode
from core.rules import RuleResult
from core.utils import format_cents, nz, to_cents
from foerdercheck.models import FinancialRecord, FinancialSnapshot, MainApplication
from foerdercheck.presets import CHILD_BONUS, INCOME_LIMITS, MARRIAGE_BONUS
from foerdercheck.results import EligibilityResult, EligibilityThresholds, HouseholdMember, LoanCeilingResult

logger = logging.getLogger(__name__)

RETIRED = "retired"

REASON_TIER_A = "Sie erfüllen die Voraussetzungen für Gruppe A."
REASON_TIER_B = "Sie erfüllen die Voraussetzungen für Gruppe B."
REASON_BOTH = "Ihr Brutto- und Nettoeinkommen liegen über den zulässigen Grenzen."
REASON_GROSS = "Ihr Bruttoeinkommen liegt über der zulässigen Grenze."
REASON_NET = "Ihr Nettoeinkommen liegt über der zulässigen Grenze."


def _draws_pension_only(declared: Optional[FinancialRecord], disclosed: Optional[FinancialRecord]) -> bool:
    if declared is None:
        return False
    disclosed = disclosed or declared
    return (
        nz(declared.incomepension) > 0
        and disclosed.haspensionincome is True
        and disclosed.has_salary_income is not True
    )


def is_retired_household(members: List[HouseholdMember], disclosure: Optional[FinancialSnapshot] = None) -> bool:
    """True when every income-earning member is retired.

    Explicit employment statuses decide first; without them every earner
    must draw pension income and no salary.  The pension and salary flags
    come from the self-disclosure when one is given.
    """

    candidates = [m for m in members if m.has_income and not m.excluded]
    if not candidates:
        return False
    if all(m.employment == RETIRED for m in candidates):
        return True
    if any(m.employment and m.employment != RETIRED for m in candidates):
        return False
    return all(
        _draws_pension_only(m.record, disclosure.record_for(m.member_id) if disclosure else None)
        for m in candidates
    )


def thresholds_for(
    adult_count: int, child_count: int, is_married: bool, retired: bool
) -> Tuple[EligibilityThresholds, EligibilityThresholds, int, float]:
    """Return ``(base, applied, extra_children, marriage_bonus)``.

    The marriage bonus raises the gross limits only.
    """

    base = EligibilityThresholds(**INCOME_LIMITS[(adult_count, child_count > 0, retired)])
    extra_children = max(0, child_count - 1)
    bonus = CHILD_BONUS["single" if adult_count == 1 else "couple"]
    marriage_bonus = MARRIAGE_BONUS if is_married else 0
    applied = EligibilityThresholds(
        gross_a=base.gross_a + extra_children * bonus["gross_a"] + marriage_bonus,
        net_a=base.net_a + extra_children * bonus["net_a"],
        gross_b=base.gross_b + extra_children * bonus["gross_b"] + marriage_bonus,
        net_b=base.net_b + extra_children * bonus["net_b"],
    )
    return base, applied, extra_children, marriage_bonus


def classify(
    gross: float,
    net: float,
    adult_count: int,
    child_count: int,
    is_married: bool = False,
    retired: bool = False,
) -> Tuple[Optional[EligibilityResult], List[RuleResult]]:
    """Map household income and composition to Tier A, Tier B or ineligible."""

    issues: List[RuleResult] = []
    if adult_count not in (1, 2) or child_count < 0:
        issues.append(
            RuleResult(
                code="INVALID_COMPOSITION",
                severity="critical",
                message="Ungültige Eingabedaten. Anzahl Erwachsene muss 1 oder 2 sein, Anzahl Kinder muss ≥ 0 sein.",
                context={"adults": adult_count, "children": child_count},
            )
        )
        return None, issues
    if gross <= 0 or net <= 0:
        issues.append(
            RuleResult(code="NO_INCOME", severity="critical", message="Das Einkommen muss größer als 0 sein.")
        )
        return None, issues
    if retired and child_count > 0:
        issues.append(
            RuleResult(
                code="RETIRED_WITH_CHILDREN",
                severity="warn",
                message=(
                    "Derzeit werden bei der Ermittlung der Einkommensgrenzen für Rentnerhaushalte keine im "
                    "Haushalt lebenden Kinder berücksichtigt. Bitte wenden Sie sich bei Fragen an die "
                    "Bewilligungsbehörde."
                ),
            )
        )

    base, limits, extra_children, marriage_bonus = thresholds_for(adult_count, child_count, is_married, retired)
    if gross <= limits.gross_a and net <= limits.net_a:
        tier, reason = "A", REASON_TIER_A
    elif gross > limits.gross_b or net > limits.net_b:
        tier = "Ineligible"
        if gross > limits.gross_b and net > limits.net_b:
            reason = REASON_BOTH
        elif gross > limits.gross_b:
            reason = REASON_GROSS
        else:
            reason = REASON_NET
    else:
        tier, reason = "B", REASON_TIER_B
    logger.debug("classified gross %.2f / net %.2f as %s", gross, net, tier)

    result = EligibilityResult(
        tier=tier,
        eligible=tier != "Ineligible",
        reason=reason,
        thresholds=limits,
        base=base,
        extra_children=extra_children,
        marriage_bonus=marriage_bonus,
        adult_count=adult_count,
        child_count=child_count,
        is_married=is_married,
        retired=retired,
        gross_income=gross,
        net_income=net,
    )
    return result, issues


PostcodeResolver = Callable[[Optional[str]], Optional[PostcodeCategory]]


def check_loan_ceiling(
    main: Optional[MainApplication],
    eligibility: Optional[EligibilityResult],
    resolver: PostcodeResolver = resolve_postcode,
) -> LoanCeilingResult:
    """Compare the requested base loan with the ceiling for the region and tier."""

    if main is None:
        return LoanCeilingResult(
            issues=[
                RuleResult(
                    code="MAIN_APPLICATION_MISSING",
                    severity="critical",
                    message="Finanzdaten (Schritt 6) konnten nicht geladen werden.",
                )
            ]
        )
    if main.user_data.has_supplementary_loan:
        return LoanCeilingResult(skipped=True)

    issues: List[RuleResult] = []
    requested = to_cents(main.finance_data.base_loan)
    if requested <= 0:
        issues.append(
            RuleResult(
                code="BASE_LOAN_MISSING",
                severity="warn",
                message="Nennbetrag des Grunddarlehens wurde noch nicht angegeben.",
            )
        )

    postcode = main.object_data.postal_code
    region = resolver(postcode)
    if region is None:
        issues.append(
            RuleResult(
                code="UNSUPPORTED_REGION",
                severity="critical",
                message=(
                    f"Für die Postleitzahl des Förderobjekts ({postcode or '—'}) kann keine "
                    "Kostenkategorie ermittelt werden."
                ),
            )
        )
        return LoanCeilingResult(postcode=postcode, requested=requested or None, issues=issues)

    result = dict(
        postcode=region.postcode,
        category=region.category,
        ceiling_a=region.ceiling_a,
        ceiling_b=region.ceiling_b,
        requested=requested or None,
    )
    if eligibility is None:
        issues.append(
            RuleResult(
                code="TIER_UNKNOWN",
                severity="warn",
                message="Einkommensgruppe wurde noch nicht bestimmt. Die Darlehensgrenze kann nicht geprüft werden.",
            )
        )
        return LoanCeilingResult(issues=issues, **result)

    if not eligibility.eligible:
        if requested > 0:
            issues.append(
                RuleResult(
                    code="LOAN_WHILE_INELIGIBLE",
                    severity="critical",
                    message="Der Haushalt ist aktuell nicht förderfähig. Ein Grunddarlehen ist daher nicht zulässig.",
                )
            )
        else:
            issues.append(
                RuleResult(code="INELIGIBLE", severity="warn", message="Der Haushalt ist aktuell nicht förderfähig.")
            )
        return LoanCeilingResult(tier=eligibility.tier, issues=issues, **result)

    ceiling = region.ceiling_a if eligibility.tier == "A" else region.ceiling_b
    within = None
    if requested > 0:
        within = requested <= ceiling
        if not within:
            issues.append(
                RuleResult(
                    code="LOAN_ABOVE_CEILING",
                    severity="critical",
                    message=(
                        f"Grunddarlehen überschreitet die zulässige Grenze für {eligibility.group_label} in "
                        f"Kostenkategorie K{region.category}: {format_cents(ceiling)} erlaubt, "
                        f"aktuell {format_cents(requested)}."
                    ),
                    context={"ceiling": ceiling, "requested": requested},
                )
            )
    return LoanCeilingResult(
        tier=eligibility.tier, applied_ceiling=ceiling, within=within, issues=issues, **result
    )
