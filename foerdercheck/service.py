"""Run one validation: fetch the form snapshots, compute, build the report."""
from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple, TypeVar

from pydantic import ValidationError

from core.postcodes import resolve_postcode as default_resolver
from core.store import FORM_IDS
from foerdercheck import report
from foerdercheck.eligibility import PostcodeResolver
from foerdercheck.models import FinancialSnapshot, MainApplication, SelfHelp
from foerdercheck.results import ComputationContext, ValidationSection

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SnapshotStore(Protocol):
    """Read-only access to the stored forms of one applicant."""

    async def fetch(self, form_id: str, subject_id: str) -> Optional[Dict[str, Any]]:
        ...


async def fetch_snapshots(store: SnapshotStore, subject_id: str) -> Dict[str, Optional[Dict[str, Any]]]:
    """Fetch every form concurrently; a failed fetch counts as not found."""
    results = await asyncio.gather(
        *(store.fetch(form_id, subject_id) for form_id in FORM_IDS), return_exceptions=True
    )
    snapshots: Dict[str, Optional[Dict[str, Any]]] = {}
    for form_id, result in zip(FORM_IDS, results):
        if isinstance(result, Exception):
            logger.error("fetching %s for %s failed: %s", form_id, subject_id, result)
            result = None
        snapshots[form_id] = result
    return snapshots


def _parse(model, raw: Optional[Dict[str, Any]], form_id: str) -> Tuple[Any, Optional[Exception]]:
    if raw is None:
        return None, None
    try:
        return model.model_validate(raw), None
    except ValidationError as exc:
        logger.exception("stored %s does not match the expected shape", form_id)
        return None, exc


def _guarded(section_id: str, build: Callable[[], T], fallback: Callable[[ValidationSection], T]) -> T:
    """Run one section builder; an exception becomes a single error in that section."""
    try:
        return build()
    except Exception as exc:
        logger.exception("section %s failed", section_id)
        return fallback(report.internal_error(section_id, exc))


def validate_snapshots(
    snapshots: Dict[str, Optional[Dict[str, Any]]],
    today: date,
    resolve_postcode: PostcodeResolver = default_resolver,
) -> List[ValidationSection]:
    """Compute every section from already fetched snapshots."""

    main, main_error = _parse(MainApplication, snapshots.get("hauptantrag"), "hauptantrag")
    declaration, declaration_error = _parse(
        FinancialSnapshot, snapshots.get("einkommenserklaerung"), "einkommenserklaerung"
    )
    disclosure, disclosure_error = _parse(FinancialSnapshot, snapshots.get("selbstauskunft"), "selbstauskunft")
    self_help, _ = _parse(SelfHelp, snapshots.get("selbsthilfe"), "selbsthilfe")

    ctx = ComputationContext(
        today=today,
        main_application=main,
        income_declaration=declaration,
        self_disclosure=disclosure,
        self_help=self_help,
    )

    def broken(section_id: str, exc: Optional[Exception]) -> Optional[ValidationSection]:
        return report.internal_error(section_id, exc) if exc is not None else None

    changes = broken(report.DECLARED_CHANGES, declaration_error) or _guarded(
        report.DECLARED_CHANGES, lambda: report.declared_changes_section(ctx), lambda s: s
    )
    incomplete = bool(changes.errors) and declaration is not None

    household_section = broken(report.HOUSEHOLD_INCOME, main_error or declaration_error)
    if household_section is None:
        household_section, aggregate = _guarded(
            report.HOUSEHOLD_INCOME,
            lambda: report.household_income_section(ctx, incomplete),
            lambda s: (s, None),
        )
        ctx = ctx.model_copy(update={"household": aggregate})

    available = broken(report.AVAILABLE_INCOME, disclosure_error) or _guarded(
        report.AVAILABLE_INCOME, lambda: report.available_income_section(ctx), lambda s: s
    )

    group_section, eligibility = _guarded(
        report.INCOME_GROUP, lambda: report.income_group_section(ctx, incomplete), lambda s: (s, None)
    )
    ctx = ctx.model_copy(update={"eligibility": eligibility})

    loan = broken(report.LOAN_CEILING, main_error) or _guarded(
        report.LOAN_CEILING, lambda: report.loan_ceiling_section(ctx, resolve_postcode), lambda s: s
    )
    cross = _guarded(report.CROSS_CHECKS, lambda: report.cross_checks_section(ctx), lambda s: s)

    sections = {
        report.HOUSEHOLD_INCOME: household_section,
        report.AVAILABLE_INCOME: available,
        report.INCOME_GROUP: group_section,
        report.LOAN_CEILING: loan,
        report.CROSS_CHECKS: cross,
        report.DECLARED_CHANGES: changes,
    }
    return [sections[section_id] for section_id in report.SECTION_ORDER]


async def run_validation(
    subject_id: str,
    store: SnapshotStore,
    today: Optional[date] = None,
    resolve_postcode: PostcodeResolver = default_resolver,
) -> List[ValidationSection]:
    """Validate the stored application of ``subject_id``.

    Never raises for bad data: every problem ends up in a section.
    """

    today = today or date.today()
    snapshots = await fetch_snapshots(store, subject_id)
    logger.info(
        "validating %s, forms found: %s",
        subject_id,
        ", ".join(form_id for form_id, raw in snapshots.items() if raw is not None) or "none",
    )
    return validate_snapshots(snapshots, today, resolve_postcode)


def run_validation_sync(
    subject_id: str,
    store: SnapshotStore,
    today: Optional[date] = None,
    resolve_postcode: PostcodeResolver = default_resolver,
) -> List[ValidationSection]:
    return asyncio.run(run_validation(subject_id, store, today, resolve_postcode))
