# backend/app/planner/deterministic.py
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from functools import reduce
from typing import Iterable, List, Literal, Optional

from .assumptions import CASH_BUFFER_MONTHS, CLOSE_BAND_FRACTION, TARGET_SALARY_VS_NW
from .parsers import format_pct, format_usd

logger = logging.getLogger(__name__)

ENGINE_VERSION = "coast-v1"

Verdict = Literal["YES", "CLOSE", "NOT YET"]

DRIVER_SALARY = "Salary too large vs net worth"
DRIVER_SPENDING = "Spending too high vs portfolio + side income"
DRIVER_BUFFER = "Insufficient cash buffer"
DRIVER_ALL_GOOD = "You're good"
DRIVER_MIXED = "Multiple factors"

LEVER_NW_RULE_B = "Grow net worth (Rule B)"
LEVER_SIDE_INCOME = "Add side income"
LEVER_CUT_SPENDING = "Cut spending"
LEVER_NW_RULE_C = "Grow net worth (Rule C)"
LEVER_HOLD_CASH = "Hold more cash"

COASTING_MESSAGE = "You can coast."

SUBLINES = {
    "YES": "You can coast.",
    "CLOSE": "You're within 5%, almost there.",
    "NOT YET": "Keep stacking, not quite yet.",
}


@dataclass(frozen=True)
class CoastInputs:
    net_worth: float
    salary: float
    salary_tax_rate: float
    invest_return: float
    invest_tax_rate: float
    spend: float
    side_income: float
    cash_on_hand: float
    state: str = "AL"
    filing: str = "MFJ"


@dataclass
class RuleCheck:
    key: str
    passed: bool
    gap: float

    @property
    def ranking_gap(self) -> float:
        # Passing rules never compete for the binding constraint.
        return math.inf if self.passed else self.gap


@dataclass
class DerivedMetrics:
    after_tax_salary: float
    salary_vs_nw: float
    after_tax_portfolio_return: float
    after_tax_return_rate: float
    coverage: float
    buffer_target: float


@dataclass
class Lever:
    label: str
    value: float


@dataclass
class CoastResult:
    verdict: Verdict
    subline: str
    driver: str
    rule_b: RuleCheck
    rule_c: RuleCheck
    buffer: RuleCheck
    derived: DerivedMetrics
    worst_gap: float
    next_step: str
    levers: List[Lever] = field(default_factory=list)
    best_lever: Optional[Lever] = None

    @property
    def rules(self) -> List[RuleCheck]:
        return [self.rule_b, self.rule_c, self.buffer]


# ---------- Arithmetic helpers ----------

def ieee_div(num: float, den: float) -> float:
    """Division that yields +/-inf or nan on a zero denominator instead of raising."""
    try:
        return num / den
    except ZeroDivisionError:
        if num == 0 or math.isnan(num):
            return math.nan
        return math.copysign(math.inf, num) * math.copysign(1.0, den)


def worst_of(gaps: Iterable[float]) -> float:
    """Minimum gap; nan if any gap is nan (builtin min is order-dependent on nan)."""
    values = list(gaps)
    if any(math.isnan(v) for v in values):
        return math.nan
    return min(values, default=math.inf)


def classify(checks: Iterable[RuleCheck]) -> Verdict:
    checks = list(checks)
    if all(c.passed for c in checks):
        return "YES"
    worst = worst_of(c.ranking_gap for c in checks)
    # nan compares false, so an undefined gap lands in NOT YET.
    if worst >= -CLOSE_BAND_FRACTION:
        return "CLOSE"
    return "NOT YET"


# ---------- Rules ----------

def buffer_target(spend: float) -> float:
    return spend * CASH_BUFFER_MONTHS / 12


def compute_derived(inputs: CoastInputs) -> DerivedMetrics:
    after_tax_salary = inputs.salary * (1 - inputs.salary_tax_rate)
    if inputs.net_worth > 0:
        salary_vs_nw = after_tax_salary / inputs.net_worth
    else:
        salary_vs_nw = math.inf
    after_tax_return_rate = inputs.invest_return * (1 - inputs.invest_tax_rate)
    after_tax_portfolio_return = inputs.net_worth * inputs.invest_return * (1 - inputs.invest_tax_rate)

    return DerivedMetrics(
        after_tax_salary=after_tax_salary,
        salary_vs_nw=salary_vs_nw,
        after_tax_portfolio_return=after_tax_portfolio_return,
        after_tax_return_rate=after_tax_return_rate,
        coverage=ieee_div(after_tax_portfolio_return + inputs.side_income, inputs.spend),
        buffer_target=buffer_target(inputs.spend),
    )


def check_rule_b(derived: DerivedMetrics) -> RuleCheck:
    return RuleCheck(
        key="ruleB",
        passed=derived.salary_vs_nw <= TARGET_SALARY_VS_NW,
        gap=TARGET_SALARY_VS_NW - derived.salary_vs_nw,
    )


def check_rule_c(after_tax_portfolio_return: float, side_income: float, spend: float) -> RuleCheck:
    covered = after_tax_portfolio_return + side_income
    return RuleCheck(
        key="ruleC",
        passed=covered >= spend,
        gap=ieee_div(covered - spend, spend),
    )


def check_buffer(cash_on_hand: float, spend: float) -> RuleCheck:
    target = buffer_target(spend)
    return RuleCheck(
        key="buffer",
        passed=cash_on_hand >= target,
        gap=ieee_div(cash_on_hand - target, target),
    )


# ---------- Driver & next step ----------

_DRIVER_LABELS = {
    "ruleB": DRIVER_SALARY,
    "ruleC": DRIVER_SPENDING,
    "buffer": DRIVER_BUFFER,
}


def pick_driver(checks: List[RuleCheck]) -> str:
    """Most constraining failing rule; checks are ranked in the order given."""
    failing = [c for c in checks if not c.passed]
    if not failing:
        return DRIVER_ALL_GOOD
    for c in failing:
        if all(c.gap <= other.gap for other in failing if other is not c):
            return _DRIVER_LABELS[c.key]
    return DRIVER_MIXED


def build_levers(inputs: CoastInputs, derived: DerivedMetrics, checks: List[RuleCheck]) -> List[Lever]:
    rule_b, rule_c, buf = checks
    levers: List[Lever] = []

    if not rule_b.passed:
        needed_nw = derived.after_tax_salary / TARGET_SALARY_VS_NW
        levers.append(Lever(LEVER_NW_RULE_B, max(0.0, needed_nw - inputs.net_worth)))

    if not rule_c.passed:
        shortfall = max(0.0, inputs.spend - (derived.after_tax_portfolio_return + inputs.side_income))
        rate = derived.after_tax_return_rate
        delta_nw = shortfall / rate if rate > 0 else math.inf
        levers.extend(
            [
                Lever(LEVER_SIDE_INCOME, shortfall),
                Lever(LEVER_CUT_SPENDING, shortfall),
                Lever(LEVER_NW_RULE_C, delta_nw),
            ]
        )

    if not buf.passed:
        levers.append(Lever(LEVER_HOLD_CASH, max(0.0, derived.buffer_target - inputs.cash_on_hand)))

    return levers


def pick_lever(levers: List[Lever]) -> Optional[Lever]:
    """Smallest required change; the earlier lever wins ties."""
    if not levers:
        return None
    return reduce(lambda a, b: a if a.value <= b.value else b, levers)


def describe_lever(lever: Optional[Lever]) -> str:
    if lever is None:
        return COASTING_MESSAGE

    amount = format_usd(lever.value)
    if lever.label == LEVER_NW_RULE_B:
        return f"Add about {amount} to net worth to get salary ≤ {format_pct(TARGET_SALARY_VS_NW)} of NW."
    if lever.label == LEVER_SIDE_INCOME:
        return f"Add about {amount}/yr in side income to meet spending."
    if lever.label == LEVER_CUT_SPENDING:
        return f"Trim spending by about {amount} to meet coverage."
    if lever.label == LEVER_NW_RULE_C:
        return f"Add about {amount} to net worth so returns cover spending."
    if lever.label == LEVER_HOLD_CASH:
        return f"Hold about {amount} more in cash for a {CASH_BUFFER_MONTHS}-month buffer."
    return "Make the smallest change above to flip this to YES."


# ---------- Evaluator ----------

def evaluate(inputs: CoastInputs) -> CoastResult:
    derived = compute_derived(inputs)

    rule_b = check_rule_b(derived)
    rule_c = check_rule_c(derived.after_tax_portfolio_return, inputs.side_income, inputs.spend)
    buf = check_buffer(inputs.cash_on_hand, inputs.spend)
    checks = [rule_b, rule_c, buf]

    verdict = classify(checks)
    levers = build_levers(inputs, derived, checks)
    best = pick_lever(levers)

    result = CoastResult(
        verdict=verdict,
        subline=SUBLINES[verdict],
        driver=pick_driver(checks),
        rule_b=rule_b,
        rule_c=rule_c,
        buffer=buf,
        derived=derived,
        worst_gap=worst_of(c.ranking_gap for c in checks),
        next_step=describe_lever(best),
        levers=levers,
        best_lever=best,
    )
    logger.debug("coast evaluation verdict=%s driver=%s", result.verdict, result.driver)
    return result
