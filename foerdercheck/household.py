"""Normalise the stored household into ``HouseholdMember`` values."""
from __future__ import annotations

from typing import List, Optional

from foerdercheck.models import MAIN_APPLICANT_ID, FinancialSnapshot, UserData
from foerdercheck.results import HouseholdMember


def household_members(user: UserData, declaration: Optional[FinancialSnapshot]) -> List[HouseholdMember]:
    """Main applicant first, then additional persons in stored order.

    Persons marked as not living in the household are left out.  Each member
    carries the income record stored for them, if any.
    """

    members: List[HouseholdMember] = []
    if not user.not_household:
        members.append(
            HouseholdMember(
                member_id=MAIN_APPLICANT_ID,
                name=user.display_name,
                is_main=True,
                has_income=not user.no_income,
                pflegegrad=user.pflegegrad or 0,
                behinderungsgrad=user.behinderungsgrad or 0,
                birth_date=user.birth_date,
                employment=user.employment,
                record=declaration.record_for(MAIN_APPLICANT_ID) if declaration else None,
            )
        )
    for uuid, person in user.additional_persons.items():
        if person.not_household:
            continue
        members.append(
            HouseholdMember(
                member_id=uuid,
                name=person.display_name,
                has_income=not person.no_income,
                pflegegrad=person.pflegegrad or 0,
                behinderungsgrad=person.behinderungsgrad or 0,
                birth_date=person.birth_date,
                employment=person.employment,
                record=declaration.record_for(uuid) if declaration else None,
            )
        )
    return members
