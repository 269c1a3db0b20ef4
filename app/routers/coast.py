# backend/app/routers/coast.py
from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException

from app.planner.assumptions import (
    CASH_BUFFER_MONTHS,
    CLOSE_BAND_FRACTION,
    DEFAULT_INPUTS,
    FILING_STATUSES,
    RETURN_SCENARIOS,
    RULE_DESCRIPTIONS,
    TARGET_SALARY_VS_NW,
    US_STATES,
)
from app.planner.deterministic import ENGINE_VERSION
from app.planner.engine import build_coast_report, json_safe, scan_returns, scenario_to_dict, simulate
from models import CoastInputsRequest, SimulationRequest

logger = logging.getLogger(__name__)

router = APIRouter(tags=["coast"])


@router.get("/coast/assumptions")
def coast_assumptions():
    return {
        "engineVersion": ENGINE_VERSION,
        "targetSalaryVsNetWorth": TARGET_SALARY_VS_NW,
        "cashBufferMonths": CASH_BUFFER_MONTHS,
        "closeBandFraction": CLOSE_BAND_FRACTION,
        "returnScenarios": RETURN_SCENARIOS,
        "defaults": DEFAULT_INPUTS,
        "states": US_STATES,
        "filingStatuses": FILING_STATUSES,
        "rules": RULE_DESCRIPTIONS,
    }


@router.post("/coast/evaluate")
def coast_evaluate(req: CoastInputsRequest, includeSensitivity: bool = True):
    inputs = req.to_inputs()
    report = build_coast_report(inputs, include_sensitivity=includeSensitivity)
    logger.info("coast evaluate verdict=%s driver=%s", report["verdict"], report["driver"])
    return json_safe(report)


@router.post("/coast/sensitivity")
def coast_sensitivity(req: CoastInputsRequest):
    scenarios = scan_returns(req.to_inputs())
    return json_safe([scenario_to_dict(s) for s in scenarios])


@router.post("/coast/simulate")
def coast_simulate(req: SimulationRequest):
    changes = req.overrides.changes()
    if not changes:
        raise HTTPException(status_code=400, detail="No overrides provided")
    try:
        response = simulate(req.inputs.to_inputs(), changes)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    summary = response["scenarioSummary"]
    logger.info(
        "coast simulate %s -> %s (%d overrides)",
        summary["verdictBase"],
        summary["verdictSimulated"],
        len(changes),
    )
    return json_safe(response)
