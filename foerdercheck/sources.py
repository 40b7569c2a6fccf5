"""Income source and deductible expense definitions."""
from __future__ import annotations

from typing import Dict, NamedTuple, Optional

from core.utils import nz
from foerdercheck.models import FinancialRecord, Turnus, entry_sum
from foerdercheck.presets import FOREIGN_FLAT_ALLOWANCE, SOURCE_ALLOWANCE


class IncomeSource(NamedTuple):
    key: str
    label: str
    change_label: str
    field: str
    year_field: Optional[str]
    turnus: Optional[Turnus]
    allowance: int = 0
    allowance_label: str = ""


# ``turnus`` None means the stored record decides, see stored_turnus()
OTHER_SOURCES = (
    IncomeSource("gewerbe", "Gewerbeeinkommen", "Einkünfte aus Gewerbebetrieb/selbstständiger Arbeit",
                 "incomebusiness", "incomebusinessyear", Turnus.YEARLY),
    IncomeSource("landforst", "Land-/Forstwirtschaft", "Einkünfte aus Land- und Forstwirtschaft",
                 "incomeagriculture", "incomeagricultureyear", Turnus.YEARLY),
    IncomeSource("vermietung", "Vermietungseinkommen", "Einkünfte aus Vermietung und Verpachtung",
                 "incomerent", "incomerentyear", Turnus.YEARLY),
    IncomeSource("renten", "Renteneinkommen", "Renten",
                 "incomepension", None, Turnus.MONTHLY,
                 SOURCE_ALLOWANCE, "Freibetrag §22 EStG (Rente)"),
    IncomeSource("arbeitslosengeld", "Arbeitslosengeld", "Arbeitslosengeld",
                 "incomeablg", None, None,
                 SOURCE_ALLOWANCE, "Freibetrag §22 EStG (Arbeitslosengeld)"),
    IncomeSource("ausland", "Auslandseinkommen", "Ausländische Einkünfte",
                 "incomeforeign", "incomeforeignyear", None,
                 FOREIGN_FLAT_ALLOWANCE, "Freibetrag Ausland/Pauschal (Auslandseinkommen)"),
    IncomeSource("unterhaltsteuerfrei", "Unterhalt (steuerfrei)", "Unterhaltsleistungen steuerfrei",
                 "incomeunterhalttaxfree", None, Turnus.MONTHLY,
                 SOURCE_ALLOWANCE, "Freibetrag §22 EStG (Unterhalt steuerfrei)"),
    IncomeSource("unterhaltsteuerpflichtig", "Unterhalt (steuerpflichtig)", "Unterhaltsleistungen steuerpflichtig",
                 "incomeunterhalttaxable", None, Turnus.MONTHLY,
                 SOURCE_ALLOWANCE, "Freibetrag §22 EStG (Unterhalt steuerpflichtig)"),
    IncomeSource("sonstige", "Sonstige Einkünfte", "Sonstige Einkünfte",
                 "incomeothers", "incomeothersyear", Turnus.YEARLY),
    IncomeSource("pauschal", "Pauschal versteuertes Einkommen", "Vom Arbeitgeber pauschal besteuerter Arbeitslohn",
                 "incomepauschal", None, Turnus.YEARLY,
                 FOREIGN_FLAT_ALLOWANCE, "Freibetrag Ausland/Pauschal (Pauschalversteuerung)"),
)
SOURCES_BY_KEY: Dict[str, IncomeSource] = {s.key: s for s in OTHER_SOURCES}


class ExpenseType(NamedTuple):
    key: str
    label: str
    turnus: Turnus
    employed_only: bool = False


DEDUCTIBLE_EXPENSES = (
    ExpenseType("werbungskosten", "Werbungskosten", Turnus.YEARLY, employed_only=True),
    ExpenseType("kinderbetreuungskosten", "Kinderbetreuungskosten", Turnus.YEARLY),
    ExpenseType("unterhaltszahlungen", "Unterhaltszahlungen", Turnus.MONTHLY),
)
EXPENSES_BY_KEY: Dict[str, ExpenseType] = {e.key: e for e in DEDUCTIBLE_EXPENSES}

EMPLOYMENT_LABEL = "Lohn/Gehalt"


def change_label(key: str) -> str:
    if key in SOURCES_BY_KEY:
        return SOURCES_BY_KEY[key].change_label
    if key in EXPENSES_BY_KEY:
        return EXPENSES_BY_KEY[key].label
    return key


def stored_turnus(source: IncomeSource, record: FinancialRecord) -> Optional[Turnus]:
    if source.turnus is not None:
        return source.turnus
    if source.key == "arbeitslosengeld":
        return {0: Turnus.DAILY, 1: Turnus.MONTHLY}.get(record.incomealbgtype, Turnus.YEARLY)
    if record.incomeforeignmonthly is None:
        return None
    return Turnus.MONTHLY if record.incomeforeignmonthly else Turnus.YEARLY


def current_value(record: FinancialRecord, key: str) -> float:
    """The stored figure a declared change of ``key`` replaces, in its own turnus."""
    if key == "unterhaltszahlungen":
        return entry_sum(record.unterhaltszahlungen)
    if key in SOURCES_BY_KEY:
        return nz(getattr(record, SOURCES_BY_KEY[key].field))
    if key in EXPENSES_BY_KEY:
        return nz(getattr(record, key))
    return 0.0
