"""
Proportion estimates with Wilson score confidence intervals.

The Wilson interval is used for every rate in the report: it stays inside
[0, 1] and behaves at the small counts seen in zone and week strata.
"""

import math
import typing
from dataclasses import dataclass

import pandas as pd
from scipy.stats import norm

from .aggregate import TOTAL
from .classifier import DecisionLabel

NOT_APPLICABLE = "NA"


def wilson_interval(count: int, total: int, confidence: float = 0.95) -> tuple[float, float, float]:
    """
    Return (estimate, lower, upper) as fractions.
    A zero total gives (nan, nan, nan).
    """
    if not 0 < confidence < 1:
        raise ValueError(f"confidence must be in (0, 1), got {confidence}")
    if count < 0 or count > total:
        raise ValueError(f"count {count} outside [0, {total}]")
    if total == 0:
        return (math.nan, math.nan, math.nan)

    z = norm.ppf(1 - (1 - confidence) / 2)
    phat = count / total
    denom = 1.0 + z * z / total
    center = (phat + z * z / (2.0 * total)) / denom
    half = z * math.sqrt(phat * (1.0 - phat) / total + z * z / (4.0 * total * total)) / denom
    lower = 0.0 if count == 0 else max(0.0, center - half)
    upper = 1.0 if count == total else min(1.0, center + half)
    return (phat, min(lower, phat), max(upper, phat))


@dataclass(frozen=True)
class ProportionSpec:
    """
    Attributes:
        category: Label counted in the numerator.
        denominator: Labels summed for the denominator; None means the row total.
    """

    category: DecisionLabel
    denominator: typing.Optional[tuple[DecisionLabel, ...]] = None


# Share of validated alerts that should have been invalidated, and the reverse.
DEFAULT_PROPORTIONS = (
    ProportionSpec(
        DecisionLabel.FALSE_POSITIVE,
        (DecisionLabel.TRUE_POSITIVE, DecisionLabel.FALSE_POSITIVE),
    ),
    ProportionSpec(
        DecisionLabel.FALSE_NEGATIVE,
        (DecisionLabel.TRUE_NEGATIVE, DecisionLabel.FALSE_NEGATIVE),
    ),
)


def format_estimate(estimate: float, lower: float, upper: float, digits: int = 1) -> str:
    if math.isnan(estimate):
        return NOT_APPLICABLE
    return f"{estimate:.{digits}f} ({lower:.{digits}f}–{upper:.{digits}f})"


def add_proportions(
        table: pd.DataFrame,
        specs: typing.Sequence[ProportionSpec] = DEFAULT_PROPORTIONS,
        digits: int = 1,
        confidence: float = 0.95,
) -> pd.DataFrame:
    """
    Append `<category>_pct`, `_lower`, `_upper` (percent, rounded to `digits`)
    and `_ci` display columns to a table whose columns are decision labels.
    Returns a new DataFrame.
    """
    result = table.copy()
    for spec in specs:
        name = spec.category.value
        if table.empty:
            for suffix in ("_pct", "_lower", "_upper", "_ci"):
                result[name + suffix] = pd.Series([], index=table.index, dtype="object")
            continue
        if name not in table.columns:
            raise ValueError(f"Column {name!r} not in table")
        if spec.denominator is None:
            if TOTAL not in table.columns:
                raise ValueError(f"Column {TOTAL!r} not in table")
            denominators = table[TOTAL]
        else:
            columns = [label.value for label in spec.denominator]
            missing = [c for c in columns if c not in table.columns]
            if missing:
                raise ValueError(f"Denominator columns {missing} not in table")
            denominators = table[columns].sum(axis=1)

        estimates, lowers, uppers, displays = [], [], [], []
        for count, total in zip(table[name], denominators):
            estimate, lower, upper = (
                round(100 * v, digits) for v in wilson_interval(int(count), int(total), confidence)
            )
            estimates.append(estimate)
            lowers.append(lower)
            uppers.append(upper)
            displays.append(format_estimate(estimate, lower, upper, digits))

        result[f"{name}_pct"] = estimates
        result[f"{name}_lower"] = lowers
        result[f"{name}_upper"] = uppers
        result[f"{name}_ci"] = displays
    return result
