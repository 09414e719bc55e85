"""
Rural Productive Aging Report - Tabulation
Percentage of respondents with an indicator, by geographic group and rurality

Rows missing the group, rurality or indicator are excluded from every
denominator.
"""

import pandas as pd

from src.processing.variable_registry import RURALITY_COLUMN, Grouping, Indicator
from src.utils.logging import get_logger

logger = get_logger(__name__)


def complete_cases(cohort: pd.DataFrame, grouping: Grouping, indicator: Indicator) -> pd.DataFrame:
    """
    Rows with non-missing group, rurality and indicator.

    Returns:
        DataFrame with the three columns only, in cohort order
    """
    columns = [grouping.value, RURALITY_COLUMN, indicator.value]
    subset = cohort[columns]
    complete = subset.dropna()

    dropped = len(subset) - len(complete)
    if dropped:
        logger.info(f"{indicator.value} by {grouping.value}: excluded {dropped} respondents with missing values")

    return complete


def tabulate_indicator(cohort: pd.DataFrame, grouping: Grouping, indicator: Indicator) -> pd.DataFrame:
    """
    Percentage with indicator == 1 for each (group, rurality) cell.

    Args:
        cohort: Analytic cohort with derived indicators
        grouping: Grouping column
        indicator: Indicator column

    Returns:
        DataFrame with columns [<grouping>, rurality, n, n_yes, percent].
        Groups appear in order of first appearance, rurality in order of
        first appearance within each group. percent is rounded to one decimal.
    """
    group_col = grouping.value
    data = complete_cases(cohort, grouping, indicator)

    if data.empty:
        logger.warning(f"No complete cases for {indicator.value} by {group_col}")
        return pd.DataFrame(columns=[group_col, RURALITY_COLUMN, "n", "n_yes", "percent"])

    cells = (
        data.groupby([group_col, RURALITY_COLUMN], sort=False)[indicator.value]
        .agg(n="count", n_yes="sum")
        .reset_index()
    )

    group_order = {group: rank for rank, group in enumerate(pd.unique(data[group_col]))}
    cells["_order"] = cells[group_col].map(group_order)
    cells = cells.sort_values("_order", kind="mergesort").drop(columns="_order").reset_index(drop=True)

    cells["n"] = cells["n"].astype(int)
    cells["n_yes"] = cells["n_yes"].astype(int)
    cells["percent"] = (100.0 * cells["n_yes"] / cells["n"]).round(1)

    logger.info(f"Tabulated {indicator.value} by {group_col}: {len(cells)} cells from {len(data)} respondents")

    return cells
