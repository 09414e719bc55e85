"""
Rural Productive Aging Report - Rural/Urban Comparison
Two-proportion test of indicator rates between Rural and Urban respondents, per group

Test: Pearson chi-square on the 2x2 (stratum x indicator) table with Yates
continuity correction, equivalent to the corrected two-sample proportion
test (R prop.test default).
"""

from typing import Dict, Optional

import numpy as np
import pandas as pd
from scipy import stats

from config.settings import get_settings
from src.processing.tabulation import complete_cases
from src.processing.variable_registry import RURAL, RURALITY_COLUMN, URBAN, Grouping, Indicator
from src.utils.errors import InsufficientStrataError
from src.utils.logging import get_logger

logger = get_logger(__name__)
settings = get_settings()

COMPARISON_COLUMNS = [
    "rural_n",
    "rural_proportion",
    "urban_n",
    "urban_proportion",
    "statistic",
    "p_value",
    "gap",
]


def two_proportion_test(rural_yes: int, rural_n: int, urban_yes: int, urban_n: int) -> Dict[str, float]:
    """
    Continuity-corrected two-proportion test.

    Args:
        rural_yes: Rural respondents with indicator == 1
        rural_n: Rural respondents
        urban_yes: Urban respondents with indicator == 1
        urban_n: Urban respondents

    Returns:
        Dict with rural_proportion, urban_proportion, statistic, p_value.
        statistic and p_value are NaN when every respondent (or none) has the
        indicator, since the test is undefined.
    """
    if rural_n < 1 or urban_n < 1:
        raise ValueError("Both strata need at least one respondent")

    result = {
        "rural_proportion": rural_yes / rural_n,
        "urban_proportion": urban_yes / urban_n,
        "statistic": np.nan,
        "p_value": np.nan,
    }

    table = np.array([
        [rural_yes, rural_n - rural_yes],
        [urban_yes, urban_n - urban_yes],
    ])

    if (table.sum(axis=0) == 0).any():
        logger.warning("Two-proportion test undefined: indicator constant across both strata")
        return result

    chi2, p_value, _, _ = stats.chi2_contingency(table, correction=True)
    result["statistic"] = float(chi2)
    result["p_value"] = float(p_value)

    return result


def _gap_row(counts: pd.DataFrame, missing: str) -> Dict:
    row = {col: np.nan for col in COMPARISON_COLUMNS}
    for stratum, prefix in ((RURAL, "rural"), (URBAN, "urban")):
        if stratum in counts.index:
            n = int(counts.loc[stratum, "n"])
            row[f"{prefix}_n"] = n
            row[f"{prefix}_proportion"] = counts.loc[stratum, "n_yes"] / n
        else:
            row[f"{prefix}_n"] = 0
    row["gap"] = f"no {missing} respondents"
    return row


def compare_rural_urban(
    cohort: pd.DataFrame,
    grouping: Grouping,
    indicator: Indicator,
    allow_gaps: Optional[bool] = None,
) -> pd.DataFrame:
    """
    Compare Rural vs Urban indicator rates within each group.

    Args:
        cohort: Analytic cohort with derived indicators
        grouping: Grouping column
        indicator: Indicator column
        allow_gaps: Emit gap rows instead of raising (default: settings.ALLOW_STRATA_GAPS)

    Returns:
        DataFrame with [<grouping>] + COMPARISON_COLUMNS, one row per group in
        order of first appearance

    Raises:
        InsufficientStrataError: If a group has no Rural or no Urban respondents
            and gaps are not allowed
    """
    if allow_gaps is None:
        allow_gaps = settings.ALLOW_STRATA_GAPS

    group_col = grouping.value
    data = complete_cases(cohort, grouping, indicator)

    rows = []
    for group, group_data in data.groupby(group_col, sort=False):
        counts = group_data.groupby(RURALITY_COLUMN)[indicator.value].agg(n="count", n_yes="sum")

        missing = [stratum for stratum in (RURAL, URBAN) if stratum not in counts.index]
        if missing:
            if not allow_gaps:
                raise InsufficientStrataError(field=f"{indicator.value} by {group_col}", group=group, missing=missing[0])

            logger.warning(f"{indicator.value} by {group_col}: group '{group}' has no {missing[0]} respondents")
            rows.append({group_col: group, **_gap_row(counts, missing[0])})
            continue

        tested = two_proportion_test(
            rural_yes=int(counts.loc[RURAL, "n_yes"]),
            rural_n=int(counts.loc[RURAL, "n"]),
            urban_yes=int(counts.loc[URBAN, "n_yes"]),
            urban_n=int(counts.loc[URBAN, "n"]),
        )
        rows.append({
            group_col: group,
            "rural_n": int(counts.loc[RURAL, "n"]),
            "urban_n": int(counts.loc[URBAN, "n"]),
            "gap": None,
            **tested,
        })

    result = pd.DataFrame(rows, columns=[group_col] + COMPARISON_COLUMNS)

    logger.info(f"Compared {indicator.value} by {group_col}: {len(result)} groups, {int(result['gap'].notna().sum())} gaps")

    return result
