"""
Rural Productive Aging Report - Indicator Derivation
Derives caregiver, worker, volunteer and multiple-activity indicators

Caregiver derivation:
1. Helper sum: count ADL/IADL helper-role fields equal to the spouse code
2. Spousal resolution: "I was helped by my spouse" becomes "my spouse is a
   caregiver" via the spouse link, emitted as a separate (spouse key, flag)
   table and merged back keyed on the spouse
3. Parental / grandchild flags from the caregiving-context items
4. Composite: missing sub-flags count as 0 in the sum only

Every indicator is 0, 1 or <NA>.
"""

from typing import List, Optional

import pandas as pd

from config.settings import SPOUSE_HELPER_CODE
from src.processing.cohort import ensure_unique_key
from src.processing.recode import WORK_FOR_PAY, YES_NO, recode_binary
from src.processing.variable_registry import (
    CAREGIVER_SUBFLAGS,
    HELPER_COLUMNS,
    INDICATOR_COLUMNS,
    KEY_COLUMNS,
)
from src.utils.logging import get_logger

logger = get_logger(__name__)


def any_true(flags: List[pd.Series]) -> pd.Series:
    """
    Three-valued OR over 0/1/<NA> flags.

    1 if any flag is 1, 0 if all flags are known 0, <NA> otherwise.
    """
    result = flags[0].astype("boolean")
    for flag in flags[1:]:
        result = result | flag.astype("boolean")
    return result.astype("Int64")


def count_spouse_helpers(df: pd.DataFrame, helper_columns: Optional[List[str]] = None) -> pd.DataFrame:
    """
    Count helper-role fields naming the spouse.

    Args:
        df: Detailed survey extract with canonical helper columns
        helper_columns: Canonical helper field names (default: registry list)

    Returns:
        DataFrame with key, spouse_helper_count and has_spouse_helper
    """
    if helper_columns is None:
        helper_columns = HELPER_COLUMNS

    out = df[KEY_COLUMNS].copy()
    out["spouse_helper_count"] = (df[helper_columns] == SPOUSE_HELPER_CODE).sum(axis=1).astype(int)
    out["has_spouse_helper"] = (out["spouse_helper_count"] >= 1).astype("Int64")

    logger.info(f"{int(out['has_spouse_helper'].sum())} respondents helped by a spouse")

    return out


def resolve_spousal_caregivers(helped: pd.DataFrame, panel: pd.DataFrame) -> pd.DataFrame:
    """
    Translate "helped by spouse" on respondent A into a caregiver flag on A's spouse B.

    Args:
        helped: DataFrame with key and has_spouse_helper
        panel: Single-wave panel with key and spouse_pn

    Returns:
        DataFrame of (hhid, pn, caregiver_spousal=1) keyed on the spouse
    """
    flagged = helped.loc[helped["has_spouse_helper"] == 1, KEY_COLUMNS]
    links = flagged.merge(panel[KEY_COLUMNS + ["spouse_pn"]], on=KEY_COLUMNS, how="left")

    unresolved = links["spouse_pn"].isna()
    if unresolved.any():
        logger.warning(
            f"{int(unresolved.sum())} spouse-helped respondents have no spouse link; "
            f"spousal caregiver not attributed"
        )

    pairs = (
        links.loc[~unresolved, ["hhid", "spouse_pn"]]
        .rename(columns={"spouse_pn": "pn"})
        .drop_duplicates()
        .reset_index(drop=True)
    )
    pairs["caregiver_spousal"] = pd.Series(1, index=pairs.index, dtype="Int64")

    logger.info(f"Resolved {len(pairs)} spousal caregivers")

    return pairs


def derive_context_flags(df: pd.DataFrame) -> pd.DataFrame:
    """
    Recode grandchild and parental caregiving items.

    Args:
        df: Detailed survey extract

    Returns:
        DataFrame with key, caregiver_parental and caregiver_grandchildren
    """
    out = df[KEY_COLUMNS].copy()
    out["caregiver_grandchildren"] = recode_binary(df["grandchildren_code"], YES_NO)

    personal = recode_binary(df["parent_personal_code"], YES_NO)
    errands = recode_binary(df["parent_errands_code"], YES_NO)
    out["caregiver_parental"] = any_true([personal, errands])

    return out


def combine_caregiver_flags(df: pd.DataFrame) -> pd.DataFrame:
    """
    Composite caregiver flag from the spousal, parental and grandchild sub-flags.

    Missing sub-flags are kept as <NA> on the record and count as 0 only in
    the sum, so a respondent with all three missing is a non-caregiver.
    """
    out = df.copy()

    total = pd.Series(0, index=out.index, dtype="Int64")
    for col in CAREGIVER_SUBFLAGS:
        total = total + out[col].fillna(0)

    out["caregiver"] = (total >= 1).astype("Int64")
    return out


def derive_caregiver_table(detailed: pd.DataFrame, panel: pd.DataFrame) -> pd.DataFrame:
    """
    Build the caregiver-indicator table joined into the cohort.

    Args:
        detailed: Detailed survey extract
        panel: Single-wave panel (spouse links)

    Returns:
        DataFrame keyed on respondent with has_spouse_helper, the three
        sub-flags and caregiver. Spouses resolved in step 2 who are absent
        from the detailed survey are included.
    """
    logger.info(f"Deriving caregiver indicators for {len(detailed)} respondents")

    ensure_unique_key(detailed, stage="caregiving", name="detailed survey")

    helpers = count_spouse_helpers(detailed)
    pairs = resolve_spousal_caregivers(helpers, panel)
    context = derive_context_flags(detailed)

    table = context.merge(helpers[KEY_COLUMNS + ["has_spouse_helper"]], on=KEY_COLUMNS, how="left")
    table = table.merge(pairs, on=KEY_COLUMNS, how="outer")
    table["caregiver_spousal"] = table["caregiver_spousal"].astype("Int64")

    table = combine_caregiver_flags(table)

    logger.info(
        f"Caregiver table: {len(table)} respondents, "
        f"spousal={int(table['caregiver_spousal'].sum())}, "
        f"parental={int(table['caregiver_parental'].sum())}, "
        f"grandchildren={int(table['caregiver_grandchildren'].sum())}, "
        f"caregiver={int(table['caregiver'].sum())}"
    )

    return table[KEY_COLUMNS + ["has_spouse_helper"] + CAREGIVER_SUBFLAGS + ["caregiver"]]


def validate_indicator_domain(df: pd.DataFrame) -> None:
    """
    Check every indicator present is 0, 1 or <NA>.

    Raises:
        ValueError: If any other value is found
    """
    for col in INDICATOR_COLUMNS + CAREGIVER_SUBFLAGS:
        if col not in df.columns:
            continue
        values = df[col].dropna()
        invalid = values[~values.isin([0, 1])]
        if not invalid.empty:
            raise ValueError(f"Indicator {col} has values outside {{0, 1}}: {sorted(invalid.unique())}")


def derive_productive_indicators(cohort: pd.DataFrame) -> pd.DataFrame:
    """
    Add worker and multi indicators to the cohort.

    Args:
        cohort: Cohort with work, volunteer and caregiver columns

    Returns:
        Copy with worker and multi added
    """
    out = cohort.copy()
    out["worker"] = recode_binary(out["work"], WORK_FOR_PAY)
    out["volunteer"] = out["volunteer"].astype("Int64")
    out["caregiver"] = out["caregiver"].astype("Int64")
    out["multi"] = any_true([out["worker"], out["volunteer"], out["caregiver"]])

    validate_indicator_domain(out)

    summary = ", ".join(
        f"{col}={int(out[col].sum())}/{int(out[col].notna().sum())}" for col in INDICATOR_COLUMNS
    )
    logger.info(f"Derived indicators for {len(out)} respondents: {summary}")

    return out
