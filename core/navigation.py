"""Navigation actions offered under each report section."""
from __future__ import annotations
from typing import Dict, List, Tuple

from foerdercheck.results import NavigationAction

# section id -> (button label, form route)
ACTIONS_BY_SECTION: Dict[str, List[Tuple[str, str]]] = {
    "financial-household-income": [
        ("Zur Einkommenserklärung", "/einkommenserklaerung"),
        ("Zum Hauptantrag (Schritt 2)", "/hauptantrag?step=2"),
        ("Zur Haushaltsauskunft", "/haushaltsauskunft"),
    ],
    "financial-available-income": [
        ("Zur Selbstauskunft", "/selbstauskunft"),
        ("Zum Hauptantrag (Schritt 2)", "/hauptantrag?step=2"),
    ],
    "financial-income-group": [
        ("Zum Hauptantrag (Schritt 2)", "/hauptantrag?step=2"),
        ("Zur Einkommenserklärung", "/einkommenserklaerung"),
        ("Zur Selbstauskunft", "/selbstauskunft"),
    ],
    "financial-additional": [
        ("Zum Hauptantrag (Schritt 6)", "/hauptantrag?step=6"),
        ("Zur Einkommenserklärung", "/einkommenserklaerung"),
        ("Zur Haushaltsauskunft", "/haushaltsauskunft"),
    ],
    "income-declaration-changes": [
        ("Zur Einkommenserklärung", "/einkommenserklaerung"),
    ],
}


def actions_for(section_id: str) -> List[NavigationAction]:
    """Return the navigation actions for a section; unknown ids get none."""
    return [NavigationAction(label=label, route=route) for label, route in ACTIONS_BY_SECTION.get(section_id, [])]
