# backend/app/planner/assumptions.py

# Decision thresholds. Fixed at build time.
TARGET_SALARY_VS_NW = 0.10
CASH_BUFFER_MONTHS = 6
CLOSE_BAND_FRACTION = 0.05

# Pre-tax annual returns shown in the sensitivity band (ascending).
RETURN_SCENARIOS = [0.08, 0.09, 0.10, 0.11, 0.12]

DEFAULT_INPUTS = {
    "netWorth": 3000000.0,
    "salary": 480000.0,
    "salaryTaxRate": 0.25,
    "investReturn": 0.10,
    "investTaxRate": 0.20,
    "spend": 180000.0,
    "sideIncome": 0.0,
    "cashOnHand": 60000.0,
    "state": "AL",
    "filing": "MFJ",
}

FILING_STATUSES = ["Single", "MFJ"]

US_STATES = [
    "AL", "AK", "AZ", "AR", "CA", "CO", "CT", "DE", "FL", "GA",
    "HI", "IA", "ID", "IL", "IN", "KS", "KY", "LA", "MA", "MD",
    "ME", "MI", "MN", "MO", "MS", "MT", "NC", "ND", "NE", "NH",
    "NJ", "NM", "NV", "NY", "OH", "OK", "OR", "PA", "RI", "SC",
    "SD", "TN", "TX", "UT", "VA", "VT", "WA", "WI", "WV", "WY",
]

RULE_DESCRIPTIONS = [
    "Rule B: after-tax salary ≤ 10% of liquid net worth.",
    "Rule C: after-tax portfolio return + side income ≥ annual spending.",
    f"Cash buffer: at least {CASH_BUFFER_MONTHS} months of spending in cash.",
    "Simple tax model using the flat effective rates supplied with the inputs.",
]
