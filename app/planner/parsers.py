# backend/app/planner/parsers.py
from __future__ import annotations

import math
import re
from typing import Any, Optional


_CLEAN_RE = re.compile(r"[,\s_]")
_DOLLAR_RE = re.compile(r"\$|usd", re.IGNORECASE)
_SUFFIX_RE = re.compile(r"^(-?[0-9]*\.?[0-9]+)(k|thousand|m|mm|mn|million|b|bn|billion)$")

_SUFFIX_MULTIPLIERS = {
    "k": 1_000.0,
    "thousand": 1_000.0,
    "m": 1_000_000.0,
    "mm": 1_000_000.0,
    "mn": 1_000_000.0,
    "million": 1_000_000.0,
    "b": 1_000_000_000.0,
    "bn": 1_000_000_000.0,
    "billion": 1_000_000_000.0,
}


def parse_usd(value: Any) -> Optional[float]:
    """
    Lenient USD parser for form fields.
    Handles:
      - 180000, "180000", "180,000"
      - "$180,000", "USD 180000"
      - "480k", "3M", "3.5 million", "1.2bn"
    Returns float dollars or None when blank/unparseable.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)

    s = str(value).strip()
    if not s:
        return None

    s = _DOLLAR_RE.sub("", s).strip().lower()
    s = _CLEAN_RE.sub("", s)
    if not s:
        return None

    m = _SUFFIX_RE.match(s)
    if m:
        return float(m.group(1)) * _SUFFIX_MULTIPLIERS[m.group(2)]

    try:
        return float(s)
    except ValueError:
        return None


def parse_rate(value: Any) -> Optional[float]:
    """
    Rate parser. Numbers are taken as fractions (0.25 == 25%).
    Strings ending in '%' are divided by 100 ("25%" -> 0.25).
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)

    s = _CLEAN_RE.sub("", str(value))
    if not s:
        return None

    percent = s.endswith("%")
    if percent:
        s = s[:-1]
    try:
        num = float(s)
    except ValueError:
        return None
    return num / 100.0 if percent else num


# ---------- Display ----------

def _non_finite(n: float) -> str:
    if math.isnan(n):
        return "NaN"
    return "∞" if n > 0 else "-∞"


def round_half_up(v: float) -> float:
    # Non-finite values pass through; math.floor would raise on them.
    if not math.isfinite(v):
        return v
    return float(math.floor(v + 0.5))


def format_currency(n: float) -> str:
    """Whole-dollar amount with thousands separators, no symbol."""
    if not math.isfinite(n):
        return _non_finite(n)
    return f"{round_half_up(n):,.0f}"


def format_usd(n: float) -> str:
    """Dollar amount rounded half-up and floored at zero, e.g. '$30,000'."""
    return "$" + format_currency(max(0.0, round_half_up(n)))


def format_pct(n: float) -> str:
    """Fraction as a percentage with at most one decimal, e.g. 0.125 -> '12.5%'."""
    scaled = n * 100
    if not math.isfinite(scaled):
        return _non_finite(scaled) + "%"
    s = f"{scaled:,.1f}"
    if s.endswith(".0"):
        s = s[:-2]
    return s + "%"
