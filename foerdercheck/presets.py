
DISCLAIMER = (
    "Diese Prüfung wendet die Einkommensgrenzen und Freibeträge der Wohnraumförderung an. "
    "Die Ergebnisse sind eine Vorabeinschätzung; maßgeblich ist die Entscheidung der Bewilligungsbehörde. "
    "Der Antrag kann unabhängig von den angezeigten Hinweisen eingereicht werden."
)

# (adults, has_children, retired) -> annual limits in EUR
INCOME_LIMITS = {
    (1, False, False): {"gross_a": 38011, "net_a": 23540, "gross_b": 52724, "net_b": 32956},
    (1, False, True): {"gross_a": 31076, "net_a": 23540, "gross_b": 40911, "net_b": 32956},
    (2, False, False): {"gross_a": 51777, "net_a": 28350, "gross_b": 69496, "net_b": 39690},
    (2, False, True): {"gross_a": 42668, "net_a": 28350, "gross_b": 56244, "net_b": 39690},
    (1, True, False): {"gross_a": 53121, "net_a": 29210, "gross_b": 71377, "net_b": 40894},
    (1, True, True): {"gross_a": 31076, "net_a": 23540, "gross_b": 40911, "net_b": 32956},
    (2, True, False): {"gross_a": 57074, "net_a": 35740, "gross_b": 79411, "net_b": 50036},
    (2, True, True): {"gross_a": 42668, "net_a": 28350, "gross_b": 56244, "net_b": 39690},
}

# per child beyond the first
CHILD_BONUS = {
    "single": {"gross_a": 5297, "net_a": 7390, "gross_b": 9916, "net_b": 10346},
    "couple": {"gross_a": 11547, "net_a": 7390, "gross_b": 16166, "net_b": 10346},
}

MARRIAGE_BONUS = 4000

MANDATORY_DEDUCTION_RATE = 0.12
SOURCE_ALLOWANCE = 102
FOREIGN_FLAT_ALLOWANCE = 1230

# (rule no., label, amount); evaluated top to bottom by calculators.member_allowance
HOUSEHOLD_ALLOWANCE_RULES = {
    1: ("Pflegegrad 5", 5830),
    2: ("Pflegegrad 4 + GdB ≥80", 5830),
    3: ("Pflegegrad 4", 4500),
    4: ("GdB 100", 4500),
    5: ("Pflegegrad {pg} + GdB ≥80", 4500),
    6: ("Pflegegrad {pg} + GdB <80", 2100),
    7: ("Pflegegrad 1 + GdB ≥80", 2100),
    8: ("Pflegegrad 3", 1330),
    9: ("GdB 80-99", 1330),
    10: ("Pflegegrad 1 + GdB <80", 1330),
    11: ("Pflegegrad 2", 665),
    12: ("GdB 50-79", 665),
    13: ("Pflegegrad 1", 330),
    14: ("Kein Freibetrag", 0),
}

# cost category -> base loan ceiling per income tier, EUR
LOAN_CEILINGS = {
    1: {"A": 100000, "B": 59000},
    2: {"A": 115000, "B": 69000},
    3: {"A": 148000, "B": 88000},
    4: {"A": 184000, "B": 110000},
}
DEFAULT_COST_CATEGORY = 4

SUBSISTENCE_FLOOR_SINGLE = 990
SUBSISTENCE_FLOOR_COUPLE = 1270
SUBSISTENCE_FLOOR_PER_EXTRA_PERSON = 320

ADULT_AGE = 18
SEVERE_DISABILITY_GDB = 50
SELF_HELP_TOLERANCE = 0.01
NET_SALARY_MIN_RATIO = 0.5
MAINTENANCE_MIN_RATIO = 0.7
MONTHLY_DATA_MAX_AGE_MONTHS = 3
CHANGE_WINDOW_MONTHS = 12
