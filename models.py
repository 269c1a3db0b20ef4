from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator

from app.planner.assumptions import DEFAULT_INPUTS, FILING_STATUSES, US_STATES
from app.planner.deterministic import CoastInputs
from app.planner.parsers import parse_rate, parse_usd

CURRENCY_FIELDS = ("netWorth", "salary", "spend", "sideIncome", "cashOnHand")
RATE_FIELDS = ("salaryTaxRate", "investReturn", "investTaxRate")


def _coerce_currency(v: Any) -> Any:
    # Blank form fields read as zero; anything unparseable is left for pydantic to reject.
    if v is None or (isinstance(v, str) and v.strip() == ""):
        return 0.0
    parsed = parse_usd(v)
    return v if parsed is None else parsed


def _coerce_rate(v: Any) -> Any:
    if v is None or (isinstance(v, str) and v.strip() == ""):
        return 0.0
    parsed = parse_rate(v)
    if parsed is None:
        return v
    # Percent inputs never go below zero.
    return max(0.0, parsed)


def _coerce_optional_currency(v: Any) -> Any:
    return None if v is None else _coerce_currency(v)


def _coerce_optional_rate(v: Any) -> Any:
    return None if v is None else _coerce_rate(v)


def _check_state(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    v = v.strip().upper()
    if v not in US_STATES:
        raise ValueError(f"Unknown state: {v}")
    return v


def _check_filing(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    for status in FILING_STATUSES:
        if v.strip().lower() == status.lower():
            return status
    raise ValueError(f"filing must be one of {FILING_STATUSES}")


class CoastInputsRequest(BaseModel):
    netWorth: float = Field(DEFAULT_INPUTS["netWorth"], allow_inf_nan=False)
    salary: float = Field(DEFAULT_INPUTS["salary"], allow_inf_nan=False)
    salaryTaxRate: float = Field(DEFAULT_INPUTS["salaryTaxRate"], allow_inf_nan=False)
    investReturn: float = Field(DEFAULT_INPUTS["investReturn"], allow_inf_nan=False)
    investTaxRate: float = Field(DEFAULT_INPUTS["investTaxRate"], allow_inf_nan=False)
    spend: float = Field(DEFAULT_INPUTS["spend"], allow_inf_nan=False)
    sideIncome: float = Field(DEFAULT_INPUTS["sideIncome"], allow_inf_nan=False)
    cashOnHand: float = Field(DEFAULT_INPUTS["cashOnHand"], allow_inf_nan=False)
    state: str = DEFAULT_INPUTS["state"]
    filing: str = DEFAULT_INPUTS["filing"]

    class Config:
        extra = "forbid"

    coerce_currency = field_validator(*CURRENCY_FIELDS, mode="before")(_coerce_currency)
    coerce_rates = field_validator(*RATE_FIELDS, mode="before")(_coerce_rate)
    check_state = field_validator("state")(_check_state)
    check_filing = field_validator("filing")(_check_filing)

    def to_inputs(self) -> CoastInputs:
        return CoastInputs(
            net_worth=self.netWorth,
            salary=self.salary,
            salary_tax_rate=self.salaryTaxRate,
            invest_return=self.investReturn,
            invest_tax_rate=self.investTaxRate,
            spend=self.spend,
            side_income=self.sideIncome,
            cash_on_hand=self.cashOnHand,
            state=self.state,
            filing=self.filing,
        )


class CoastOverrides(BaseModel):
    netWorth: Optional[float] = Field(None, allow_inf_nan=False)
    salary: Optional[float] = Field(None, allow_inf_nan=False)
    salaryTaxRate: Optional[float] = Field(None, allow_inf_nan=False)
    investReturn: Optional[float] = Field(None, allow_inf_nan=False)
    investTaxRate: Optional[float] = Field(None, allow_inf_nan=False)
    spend: Optional[float] = Field(None, allow_inf_nan=False)
    sideIncome: Optional[float] = Field(None, allow_inf_nan=False)
    cashOnHand: Optional[float] = Field(None, allow_inf_nan=False)
    state: Optional[str] = None
    filing: Optional[str] = None

    class Config:
        extra = "forbid"

    coerce_currency = field_validator(*CURRENCY_FIELDS, mode="before")(_coerce_optional_currency)
    coerce_rates = field_validator(*RATE_FIELDS, mode="before")(_coerce_optional_rate)
    check_state = field_validator("state")(_check_state)
    check_filing = field_validator("filing")(_check_filing)

    def changes(self) -> Dict[str, Any]:
        return {k: v for k, v in self.model_dump().items() if v is not None}


class SimulationRequest(BaseModel):
    inputs: CoastInputsRequest = Field(default_factory=CoastInputsRequest)
    overrides: CoastOverrides = Field(default_factory=CoastOverrides)

    class Config:
        extra = "forbid"
