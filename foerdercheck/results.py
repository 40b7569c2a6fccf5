"""Structured results of one validation run.

These are plain numbers and flags; ``narrative`` turns them into the text
shown to applicants.
"""
from __future__ import annotations

from datetime import date
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field

from core.rules import RuleResult
from foerdercheck.models import FinancialRecord, FinancialSnapshot, MainApplication, SelfHelp, Turnus


class Result(BaseModel):
    model_config = ConfigDict(frozen=True)


class HouseholdMember(Result):
    member_id: str
    name: str
    is_main: bool = False
    has_income: bool = True
    excluded: bool = False
    pflegegrad: int = 0
    behinderungsgrad: int = 0
    birth_date: Optional[date] = None
    employment: Optional[str] = None
    record: Optional[FinancialRecord] = None


class Projection(Result):
    status: Literal["unchanged", "projected", "fallback"]
    value: float
    old_annual: float
    new_annual: Optional[float] = None
    days_old: int = 365
    days_new: int = 0
    issue: Optional[Literal["missing_date", "out_of_window", "missing_turnus"]] = None

    @property
    def old_part(self) -> float:
        return self.old_annual / 365 * self.days_old

    @property
    def new_part(self) -> float:
        return (self.new_annual or 0.0) / 365 * self.days_new


class EmploymentIncome(Result):
    basis: Literal["prior_year", "monthly", "projected", "none"]
    value: float = 0.0
    prior_year: Optional[int] = None
    prior_year_earning: float = 0.0
    prior_year_counted: bool = False
    months_with_data: int = 0
    monthly_sum: float = 0.0
    bonuses: float = 0.0
    bonuses_next12: float = 0.0
    projection: Optional[Projection] = None


class SourceContribution(Result):
    key: str
    label: str
    raw_value: float
    turnus: Optional[Turnus] = None
    annual_value: float
    counted: bool = True
    year: Optional[int] = None
    projection: Optional[Projection] = None

    @property
    def value(self) -> float:
        if not self.counted:
            return 0.0
        return self.projection.value if self.projection else self.annual_value


class Allowance(Result):
    label: str
    amount: float


class ExpenseContribution(Result):
    key: str
    label: str
    annual_value: float
    projection: Optional[Projection] = None

    @property
    def value(self) -> float:
        return self.projection.value if self.projection else self.annual_value


class PersonIncome(Result):
    member_id: str
    name: str
    employment: Optional[EmploymentIncome] = None
    sources: List[SourceContribution] = Field(default_factory=list)
    gross_annual: float = 0.0
    deduction_flags: List[str] = Field(default_factory=list)
    deduction_rate: float = 0.0
    mandatory_deductions: float = 0.0
    allowances: List[Allowance] = Field(default_factory=list)
    allowance_total: float = 0.0
    after_allowances: float = 0.0
    expenses: List[ExpenseContribution] = Field(default_factory=list)
    expense_total: float = 0.0
    adjusted_annual: float = 0.0
    issues: List[RuleResult] = Field(default_factory=list)


class MemberAllowance(Result):
    member_id: str
    name: str
    has_income: bool
    rule: int
    label: str
    amount: float
    unborn: bool = False


class HouseholdIncomeAggregate(Result):
    members: List[HouseholdMember] = Field(default_factory=list)
    persons: List[PersonIncome] = Field(default_factory=list)
    allowances: List[MemberAllowance] = Field(default_factory=list)
    marriage_bonus: float = 0.0
    gross_income: float = 0.0
    adjusted_income: float = 0.0
    total_allowances: float = 0.0
    final_adjusted_income: float = 0.0
    adult_count: int = 1
    child_count: int = 0
    is_married: bool = False
    issues: List[RuleResult] = Field(default_factory=list)

    @property
    def members_without_income(self) -> List[HouseholdMember]:
        return [m for m in self.members if not m.has_income]


class EligibilityThresholds(Result):
    gross_a: float
    net_a: float
    gross_b: float
    net_b: float


class EligibilityResult(Result):
    tier: Literal["A", "B", "Ineligible"]
    eligible: bool
    reason: str
    thresholds: EligibilityThresholds
    base: EligibilityThresholds
    extra_children: int = 0
    marriage_bonus: float = 0.0
    adult_count: int
    child_count: int
    is_married: bool = False
    retired: bool = False
    gross_income: float
    net_income: float

    @property
    def group_label(self) -> str:
        return {"A": "Gruppe A", "B": "Gruppe B"}.get(self.tier, "Nicht Förderungsfähig")


class LoanCeilingResult(Result):
    skipped: bool = False
    postcode: Optional[str] = None
    category: Optional[int] = None
    ceiling_a: Optional[int] = None
    ceiling_b: Optional[int] = None
    tier: Optional[str] = None
    applied_ceiling: Optional[int] = None
    requested: Optional[int] = None
    within: Optional[bool] = None
    issues: List[RuleResult] = Field(default_factory=list)


class PersonBudget(Result):
    member_id: str
    name: str
    income: float
    expenses: float

    @property
    def available(self) -> float:
        return self.income - self.expenses


class AvailableIncomeResult(Result):
    persons: List[PersonBudget] = Field(default_factory=list)
    household_size: int = 0
    floor: Optional[float] = None
    issues: List[RuleResult] = Field(default_factory=list)

    @property
    def total_income(self) -> float:
        return sum(p.income for p in self.persons)

    @property
    def total_expenses(self) -> float:
        return sum(p.expenses for p in self.persons)

    @property
    def total_available(self) -> float:
        return self.total_income - self.total_expenses


class ComputationContext(Result):
    """Everything one run reads, plus the intermediate results it threads on."""

    today: date
    main_application: Optional[MainApplication] = None
    income_declaration: Optional[FinancialSnapshot] = None
    self_disclosure: Optional[FinancialSnapshot] = None
    self_help: Optional[SelfHelp] = None
    household: Optional[HouseholdIncomeAggregate] = None
    eligibility: Optional[EligibilityResult] = None


class NavigationAction(Result):
    label: str
    route: str
    kind: Literal["form"] = "form"


class ValidationSection(Result):
    id: str
    title: str
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    calculations: List[str] = Field(default_factory=list)
    success_messages: List[str] = Field(default_factory=list)
    actions: List[NavigationAction] = Field(default_factory=list)

    @computed_field
    @property
    def success(self) -> bool:
        return not self.errors and not self.warnings
