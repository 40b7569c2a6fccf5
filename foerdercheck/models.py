"""Typed snapshots of the stored application forms.

Every stored record is read through these models once, at the boundary.
Field names follow the stored column names; camelCase columns are exposed
under snake_case names with the stored name as alias.
"""
from __future__ import annotations

import json
from datetime import date
from enum import Enum
from typing import Annotated, Any, Dict, List, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator, model_validator

from core.utils import nz, nz_series, parse_currency, parse_date

MAIN_APPLICANT_ID = "main_applicant"


def _money(v):
    if v is None or (isinstance(v, str) and not v.strip()):
        return None
    return parse_currency(v)


def _flag(v):
    if v is None or v == "":
        return None
    if isinstance(v, str):
        return v.strip().lower() in ("true", "1", "ja", "yes")
    return bool(v)


def _count(v):
    if v is None or (isinstance(v, str) and not v.strip()):
        return None
    return int(nz(v))


def _text(v):
    if v is None:
        return None
    return str(v).strip() or None


def _entries(v):
    if v is None or v == "":
        return []
    if isinstance(v, str):
        v = json.loads(v)
    if isinstance(v, dict):
        return [v]
    return [e for e in v if isinstance(e, dict)]


Money = Annotated[Optional[float], BeforeValidator(_money)]
Flag = Annotated[Optional[bool], BeforeValidator(_flag)]
Count = Annotated[Optional[int], BeforeValidator(_count)]
Day = Annotated[Optional[date], BeforeValidator(parse_date)]
Text = Annotated[Optional[str], BeforeValidator(_text)]


class Turnus(str, Enum):
    DAILY = "daily"
    MONTHLY = "monthly"
    YEARLY = "yearly"

    @property
    def factor(self) -> int:
        return {"daily": 365, "monthly": 12, "yearly": 1}[self.value]

    @property
    def label(self) -> str:
        return {"daily": "täglich", "monthly": "monatlich", "yearly": "jährlich"}[self.value]


class FormRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


class AmountEntry(FormRecord):
    amount: Money = None
    amount_total: Money = Field(None, alias="amountTotal")


EntryList = Annotated[List[AmountEntry], BeforeValidator(_entries)]


def entry_sum(entries: List[AmountEntry]) -> float:
    return sum(nz(e.amount) for e in entries)


class DeclaredChange(FormRecord):
    """A declared change of one income or expense figure."""

    effective_date: Day = Field(None, alias="date")
    new_amount: Money = Field(None, alias="newAmount")
    increases: Flag = Field(None, alias="increase")
    is_monthly: Flag = Field(None, alias="isNewIncomeMonthly")
    is_daily: Flag = Field(None, alias="isNewIncomeDaily")
    reason: Text = None

    @property
    def turnus(self) -> Optional[Turnus]:
        if self.is_daily:
            return Turnus.DAILY
        if self.is_monthly is None:
            return None
        return Turnus.MONTHLY if self.is_monthly else Turnus.YEARLY


class AdditionalPerson(FormRecord):
    id: Text = None
    first_name: Text = Field(None, alias="firstName")
    last_name: Text = Field(None, alias="lastName")
    birth_date: Day = Field(None, alias="birthDate")
    employment: Text = None
    no_income: Flag = Field(None, alias="noIncome")
    not_household: Flag = Field(None, alias="notHousehold")
    pflegegrad: Count = None
    behinderungsgrad: Count = None

    @field_validator("employment", mode="before")
    @classmethod
    def _employment_type(cls, v):
        if isinstance(v, dict):
            return v.get("type")
        return v

    @property
    def display_name(self) -> str:
        return f"{self.first_name or 'Unbekannt'} {self.last_name or ''}".strip()


class UserData(FormRecord):
    first_name: Text = Field(None, alias="firstname")
    last_name: Text = Field(None, alias="lastname")
    birth_date: Day = Field(None, alias="birthDate")
    employment: Text = None
    no_income: Flag = Field(None, alias="noIncome")
    not_household: Flag = Field(None, alias="notHousehold")
    pflegegrad: Count = Field(None, alias="main_pflegegrad")
    behinderungsgrad: Count = Field(None, alias="main_behinderungsgrad")
    adult_count: Count = None
    child_count: Count = None
    is_married: Flag = None
    is_disabled: Flag = None
    disabled_adults_count: Count = Field(None, alias="disabledadultscount")
    disabled_children_count: Count = Field(None, alias="disabledchildrencount")
    has_supplementary_loan: Flag = Field(None, alias="hassupplementaryloan")
    additional_persons: Dict[str, AdditionalPerson] = Field(
        default_factory=dict, alias="weitere_antragstellende_personen"
    )

    @field_validator("additional_persons", mode="before")
    @classmethod
    def _keyed_persons(cls, v):
        """Legacy records store persons as a list; key them by id once."""
        if not v:
            return {}
        if isinstance(v, str):
            v = json.loads(v)
        if isinstance(v, list):
            keyed: Dict[str, Any] = {}
            for index, person in enumerate(v):
                if isinstance(person, dict):
                    keyed[str(person.get("id") or f"legacy_{index}")] = person
            return keyed
        return v

    @property
    def display_name(self) -> str:
        if self.first_name and self.last_name:
            return f"{self.first_name} {self.last_name}"
        return "Hauptantragsteller"


class ObjectData(FormRecord):
    postal_code: Text = Field(None, alias="obj_postal_code")

    @field_validator("postal_code", mode="before")
    @classmethod
    def _postcode_text(cls, v):
        return None if v is None else str(v)


class FinanceData(FormRecord):
    base_loan: Money = Field(None, alias="grunddarlehen_nennbetrag")
    self_help: Money = Field(None, alias="selbsthilfe")


class FinancialRecord(FormRecord):
    """One person's income declaration and self-disclosure figures.

    Both forms write to the same stored record: gross-oriented fields come
    from the income declaration, ``*_net`` and ``monthly*`` fields from the
    self-disclosure.
    """

    # employment
    is_earning_regular_income: Flag = Field(None, alias="isEarningRegularIncome")
    prior_year_earning: Money = None
    prior_year: Count = None
    monthly_income: List[float] = Field(default_factory=list)
    end_month_past12: Count = None
    end_year_past12: Count = None
    wheinachtsgeld_last12: Money = None
    urlaubsgeld_last12: Money = None
    otherincome_last12: Money = None
    wheinachtsgeld_next12: Money = None
    urlaubsgeld_next12: Money = None
    otherincome_next12: Money = None
    willchangeincome: Flag = None
    incomechangedate: Day = None
    newincome: Money = None
    isnewincomemonthly: Flag = None
    willchangeincrease: Flag = None
    newincomereason: Text = None

    # other income sources
    incomebusiness: Money = None
    incomebusinessyear: Count = None
    incomeagriculture: Money = None
    incomeagricultureyear: Count = None
    incomerent: Money = None
    incomerentyear: Count = None
    incomepension: Money = None
    incomeablg: Money = None
    incomealbgtype: Count = None
    incomeforeign: Money = None
    incomeforeignyear: Count = None
    incomeforeignmonthly: Flag = None
    incomeunterhalttaxfree: Money = None
    incomeunterhalttaxable: Money = None
    incomeothers: Money = None
    incomeothersyear: Count = None
    incomepauschal: Money = None

    # deductions and deductible expenses
    ispayingincometax: Flag = None
    ispayinghealthinsurance: Flag = None
    ispayingpension: Flag = None
    werbungskosten: Money = None
    kinderbetreuungskosten: Money = None
    ispayingunterhalt: Flag = None
    unterhaltszahlungen: EntryList = Field(default_factory=list)
    declared_changes: Dict[str, DeclaredChange] = Field(
        default_factory=dict, alias="addition_change_inincome"
    )

    # self-disclosure: net income lines
    has_salary_income: Flag = Field(None, alias="hasSalaryIncome")
    monthlynetsalary: Money = None
    wheinachtsgeld_next12_net: Money = None
    urlaubsgeld_next12_net: Money = None
    otheremploymentmonthlynetincome: EntryList = Field(default_factory=list)
    hasagricultureincome: Flag = None
    incomeagriculture_net: Money = None
    hasrentincome: Flag = None
    incomerent_net: Money = None
    hascapitalincome: Flag = None
    yearlycapitalnetincome: Money = None
    hasbusinessincome: Flag = None
    yearlybusinessnetincome: Money = None
    yearlyselfemployednetincome: Money = None
    haspensionincome: Flag = None
    pensionmonthlynetincome: EntryList = Field(default_factory=list)
    hastaxfreeunterhaltincome: Flag = None
    hastaxableunterhaltincome: Flag = None
    incomeunterhalttaxable_net: Money = None
    haskindergeldincome: Flag = None
    monthlykindergeldnetincome: Money = None
    haspflegegeldincome: Flag = None
    monthlypflegegeldnetincome: Money = None
    haselterngeldincome: Flag = None
    monthlyelterngeldnetincome: Money = None
    hasothernetincome: Flag = None
    othermonthlynetincome: EntryList = Field(default_factory=list)

    # self-disclosure: monthly expense lines
    betragotherinsurancetaxexpenses: EntryList = Field(default_factory=list)
    loans: EntryList = Field(default_factory=list)
    zwischenkredit: EntryList = Field(default_factory=list)
    unterhaltszahlungen_total: EntryList = Field(default_factory=list, alias="unterhaltszahlungenTotal")
    otherzahlungsverpflichtung: EntryList = Field(default_factory=list)
    has_bausparvertraege: Flag = Field(None, alias="hasBausparvertraege")
    sparratebausparvertraege: Money = None
    has_rentenversicherung: Flag = Field(None, alias="hasRentenversicherung")
    praemiekapitalrentenversicherung: Money = None

    @model_validator(mode="before")
    @classmethod
    def _collect_months(cls, data):
        if isinstance(data, dict) and "monthly_income" not in data:
            data = dict(data)
            data["monthly_income"] = nz_series([data.get(f"income_month{i}") for i in range(1, 13)]).tolist()
        return data

    @field_validator("declared_changes", mode="before")
    @classmethod
    def _selected_changes(cls, v):
        """Keep only the change types the applicant actually selected."""
        if not v:
            return {}
        if isinstance(v, str):
            v = json.loads(v)
        if not isinstance(v, dict):
            raise ValueError("declared changes must be an object")
        if "changes" not in v and "selectedTypes" not in v:
            return v
        changes = v.get("changes") or {}
        return {key: changes.get(key) or {} for key in v.get("selectedTypes") or []}

    def employment_change(self) -> Optional[DeclaredChange]:
        """The salary change declared through the employment fields, if any."""
        if not self.willchangeincome:
            return None
        return DeclaredChange(
            date=self.incomechangedate,
            newAmount=self.newincome,
            increase=self.willchangeincrease,
            isNewIncomeMonthly=self.isnewincomemonthly,
            reason=self.newincomereason,
        )


class FinancialData(FinancialRecord):
    additional_applicants_financials: Dict[str, FinancialRecord] = Field(default_factory=dict)

    @field_validator("additional_applicants_financials", mode="before")
    @classmethod
    def _no_financials(cls, v):
        return v or {}


class MainApplication(FormRecord):
    """Main application (``hauptantrag``)."""

    user_data: UserData = Field(default_factory=UserData, alias="userData")
    object_data: ObjectData = Field(default_factory=ObjectData, alias="objectData")
    finance_data: FinanceData = Field(default_factory=FinanceData, alias="financeData")

    @field_validator("user_data", "object_data", "finance_data", mode="before")
    @classmethod
    def _empty_part(cls, v):
        return v or {}


class FinancialSnapshot(FormRecord):
    """Income declaration or self-disclosure (``einkommenserklaerung``/``selbstauskunft``)."""

    user_data: UserData = Field(default_factory=UserData, alias="userData")
    financial_data: FinancialData = Field(default_factory=FinancialData, alias="financialData")

    @field_validator("user_data", "financial_data", mode="before")
    @classmethod
    def _empty_part(cls, v):
        return v or {}

    def record_for(self, member_id: str) -> Optional[FinancialRecord]:
        if member_id == MAIN_APPLICANT_ID:
            return self.financial_data
        return self.financial_data.additional_applicants_financials.get(member_id)


class SelfHelpTotals(FormRecord):
    total: Money = Field(None, alias="totalSelbsthilfe")


class SelfHelp(FormRecord):
    """Self-help labour accounting (``selbsthilfe``)."""

    finance_data: FinanceData = Field(default_factory=FinanceData, alias="financeData")
    totals: SelfHelpTotals = Field(default_factory=SelfHelpTotals)

    @field_validator("finance_data", "totals", mode="before")
    @classmethod
    def _empty_part(cls, v):
        return v or {}

