import logging
import math
from dataclasses import dataclass, fields, replace
from typing import Any, Dict, List, Optional

from .assumptions import CASH_BUFFER_MONTHS, RETURN_SCENARIOS, TARGET_SALARY_VS_NW
from .deterministic import (
    ENGINE_VERSION,
    CoastInputs,
    CoastResult,
    RuleCheck,
    Verdict,
    check_rule_c,
    classify,
    evaluate,
    ieee_div,
)
from .parsers import format_currency, format_pct

logger = logging.getLogger(__name__)

INPUT_KEYS = {
    "net_worth": "netWorth",
    "salary": "salary",
    "salary_tax_rate": "salaryTaxRate",
    "invest_return": "investReturn",
    "invest_tax_rate": "investTaxRate",
    "spend": "spend",
    "side_income": "sideIncome",
    "cash_on_hand": "cashOnHand",
    "state": "state",
    "filing": "filing",
}


@dataclass
class ScenarioResult:
    rate: float
    verdict: Verdict
    after_tax_portfolio_return: float
    rule_c: RuleCheck
    coverage: float

    @property
    def yes(self) -> bool:
        return self.verdict == "YES"

    @property
    def close(self) -> bool:
        return self.verdict == "CLOSE"


# ---------- Sensitivity ----------

def scan_returns(
    inputs: CoastInputs,
    evaluation: Optional[CoastResult] = None,
    rates: Optional[List[float]] = None,
) -> List[ScenarioResult]:
    """
    Re-run the coverage rule across alternative pre-tax returns.

    Rule B and the cash buffer do not depend on the return assumption, so
    their results are taken from `evaluation` as-is.
    """
    base = evaluation if evaluation is not None else evaluate(inputs)
    scan = sorted(RETURN_SCENARIOS if rates is None else rates)

    out: List[ScenarioResult] = []
    for r in scan:
        at_ret = inputs.net_worth * r * (1 - inputs.invest_tax_rate)
        rule_c = check_rule_c(at_ret, inputs.side_income, inputs.spend)
        out.append(
            ScenarioResult(
                rate=r,
                verdict=classify([base.rule_b, rule_c, base.buffer]),
                after_tax_portfolio_return=at_ret,
                rule_c=rule_c,
                coverage=ieee_div(at_ret + inputs.side_income, inputs.spend),
            )
        )
    return out


# ---------- Rendering ----------

def json_safe(v: Any) -> Any:
    """Replace non-finite floats with None so the payload is strict JSON."""
    if isinstance(v, float) and not math.isfinite(v):
        return None
    if isinstance(v, dict):
        return {k: json_safe(x) for k, x in v.items()}
    if isinstance(v, list):
        return [json_safe(x) for x in v]
    return v


def inputs_to_dict(inputs: CoastInputs) -> Dict[str, Any]:
    return {INPUT_KEYS[f.name]: getattr(inputs, f.name) for f in fields(inputs)}


def _rule_to_dict(check: RuleCheck) -> Dict[str, Any]:
    return {"pass": check.passed, "gap": check.gap}


def build_highlights(inputs: CoastInputs, result: CoastResult) -> List[str]:
    d = result.derived
    return [
        f"Salary is {format_pct(d.salary_vs_nw)} of net worth (target ≤ {format_pct(TARGET_SALARY_VS_NW)}).",
        f"Portfolio + side covers {format_pct(d.coverage)} of spending.",
        f"Cash buffer: ${format_currency(inputs.cash_on_hand)} ({CASH_BUFFER_MONTHS} months target).",
    ]


def scenario_to_dict(s: ScenarioResult) -> Dict[str, Any]:
    return {
        "rate": s.rate,
        "rateLabel": format_pct(s.rate),
        "verdict": s.verdict,
        "yes": s.yes,
        "close": s.close,
        "afterTaxPortfolioReturn": s.after_tax_portfolio_return,
        "ruleC": _rule_to_dict(s.rule_c),
        "coverage": s.coverage,
        "coverageLabel": format_pct(s.coverage),
    }


def result_to_dict(inputs: CoastInputs, result: CoastResult) -> Dict[str, Any]:
    d = result.derived
    return {
        "meta": {
            "engineVersion": ENGINE_VERSION,
            "source": "deterministic",
            "state": inputs.state,
            "filing": inputs.filing,
        },
        "inputs": inputs_to_dict(inputs),
        "derived": {
            "afterTaxSalary": d.after_tax_salary,
            "salaryVsNW": d.salary_vs_nw,
            "afterTaxPortfolioReturn": d.after_tax_portfolio_return,
            "afterTaxReturnRate": d.after_tax_return_rate,
            "coverage": d.coverage,
            "bufferTarget": d.buffer_target,
        },
        "rules": {c.key: _rule_to_dict(c) for c in result.rules},
        "worstGap": result.worst_gap,
        "verdict": result.verdict,
        "subline": result.subline,
        "driver": result.driver,
        "nextStep": result.next_step,
        "levers": [{"label": lv.label, "value": lv.value} for lv in result.levers],
        "bestLever": result.best_lever.label if result.best_lever else None,
        "highlights": build_highlights(inputs, result),
    }


def build_coast_report(inputs: CoastInputs, include_sensitivity: bool = True) -> Dict[str, Any]:
    result = evaluate(inputs)
    report = result_to_dict(inputs, result)
    if include_sensitivity:
        report["sensitivity"] = [scenario_to_dict(s) for s in scan_returns(inputs, result)]
    return report


# ---------- What-if ----------

def apply_overrides(base: CoastInputs, overrides: Dict[str, Any]) -> CoastInputs:
    """Copy of `base` with fields replaced; accepts snake_case or camelCase keys."""
    by_camel = {camel: name for name, camel in INPUT_KEYS.items()}
    changes: Dict[str, Any] = {}
    for key, value in overrides.items():
        name = key if key in INPUT_KEYS else by_camel.get(key)
        if name is None:
            raise ValueError(f"Unknown input field: {key}")
        changes[name] = value
    return replace(base, **changes)


def simulate(base: CoastInputs, overrides: Dict[str, Any]) -> Dict[str, Any]:
    simulated = apply_overrides(base, overrides)

    base_result = evaluate(base)
    sim_result = evaluate(simulated)

    highlights: List[str] = []
    for name, camel in INPUT_KEYS.items():
        before = getattr(base, name)
        after = getattr(simulated, name)
        if before != after:
            highlights.append(f"{camel}: {before} -> {after}")
    if base_result.verdict != sim_result.verdict:
        highlights.append(f"Verdict changes from {base_result.verdict} to {sim_result.verdict}.")
    else:
        highlights.append(f"Verdict stays {base_result.verdict}.")

    deltas = {
        f"{b.key}GapDelta": s.gap - b.gap
        for b, s in zip(base_result.rules, sim_result.rules)
    }
    deltas["coverageDelta"] = sim_result.derived.coverage - base_result.derived.coverage

    logger.debug("what-if %s -> %s", base_result.verdict, sim_result.verdict)

    return {
        "baseReport": result_to_dict(base, base_result),
        "simulatedReport": result_to_dict(simulated, sim_result),
        "scenarioSummary": {
            "verdictBase": base_result.verdict,
            "verdictSimulated": sim_result.verdict,
            "driverBase": base_result.driver,
            "driverSimulated": sim_result.driver,
            "nextStepBase": base_result.next_step,
            "nextStepSimulated": sim_result.next_step,
        },
        "deltas": deltas,
        "highlights": highlights,
    }
