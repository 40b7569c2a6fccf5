"""Day-weighted projection of an annual figure under a declared change."""
from __future__ import annotations

from datetime import date
from typing import Optional

from core.utils import DAYS_PER_YEAR, add_months, is_within_months, nz
from foerdercheck.models import DeclaredChange, Turnus
from foerdercheck.presets import CHANGE_WINDOW_MONTHS
from foerdercheck.results import Projection


def split_days(effective: date, today: date):
    """Return ``(days_old, days_new)`` for the 365-day window starting today.

    A change in the future keeps the old figure until it takes effect; a
    change already in force covers the whole window.
    """

    if effective > today:
        days_old = min(max((effective - today).days, 0), DAYS_PER_YEAR)
        return days_old, DAYS_PER_YEAR - days_old
    window_end = add_months(today, CHANGE_WINDOW_MONTHS)
    days_new = min((window_end - effective).days, DAYS_PER_YEAR)
    return DAYS_PER_YEAR - days_new, days_new


def project(
    current_annual: float,
    change: Optional[DeclaredChange],
    today: date,
    new_turnus: Optional[Turnus],
) -> Projection:
    """Project ``current_annual`` over the next 365 days.

    ``new_turnus`` converts the declared new amount to an annual figure
    (monthly x12, daily x365).  Without a usable date or turnus the old
    figure is kept and ``issue`` says why.
    """

    old = nz(current_annual)
    if change is None:
        return Projection(status="unchanged", value=old, old_annual=old)

    effective = change.effective_date
    if effective is None:
        return Projection(status="fallback", value=old, old_annual=old, issue="missing_date")
    if not is_within_months(effective, today, CHANGE_WINDOW_MONTHS):
        return Projection(status="fallback", value=old, old_annual=old, issue="out_of_window")
    if new_turnus is None:
        return Projection(status="fallback", value=old, old_annual=old, issue="missing_turnus")

    new = nz(change.new_amount) * new_turnus.factor
    days_old, days_new = split_days(effective, today)
    value = old / DAYS_PER_YEAR * days_old + new / DAYS_PER_YEAR * days_new
    return Projection(
        status="projected",
        value=value,
        old_annual=old,
        new_annual=new,
        days_old=days_old,
        days_new=days_new,
    )
