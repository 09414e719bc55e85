"""
Rural Productive Aging Report - Cohort Construction
Joins per-topic extracts into one respondent-level table and applies eligibility

Eligibility (all must hold):
- Responded in the analysis wave
- Community-dwelling (tracker nursing home status)
- Age at or above the threshold

Joins are left joins on the panel, so unmatched respondents keep <NA>
indicators rather than being dropped. Duplicate respondent keys are an error,
never silently deduplicated.
"""

from collections import OrderedDict
from typing import Optional

import pandas as pd

from config.settings import COMMUNITY_DWELLING_CODES, get_settings
from src.processing.variable_registry import KEY_COLUMNS
from src.utils.errors import JoinKeyCollisionError
from src.utils.logging import get_logger

logger = get_logger(__name__)
settings = get_settings()


def ensure_unique_key(df: pd.DataFrame, stage: str, name: str) -> None:
    """
    Raise if any (hhid, pn) key appears more than once.

    Raises:
        JoinKeyCollisionError: With the number of duplicated keys
    """
    duplicated = df.duplicated(KEY_COLUMNS, keep="first")
    if duplicated.any():
        examples = [tuple(row) for row in df.loc[duplicated, KEY_COLUMNS].head(3).itertuples(index=False)]
        raise JoinKeyCollisionError(
            stage=stage,
            field=name,
            duplicates=int(df.loc[duplicated, KEY_COLUMNS].drop_duplicates().shape[0]),
            examples=examples,
        )


def select_wave(panel: pd.DataFrame, wave: Optional[int] = None) -> pd.DataFrame:
    """
    Select one wave from the long-format panel.

    Args:
        panel: Long-format panel extract
        wave: Wave number (default: settings.WAVE)

    Returns:
        One row per respondent for the wave
    """
    if wave is None:
        wave = settings.WAVE

    selected = panel.loc[panel["wave"] == wave].reset_index(drop=True)
    ensure_unique_key(selected, stage="cohort", name=f"panel wave {wave}")

    logger.info(f"Selected {len(selected)} panel records for wave {wave}")

    return selected


def eligibility_masks(df: pd.DataFrame, min_age: Optional[int] = None) -> "OrderedDict[str, pd.Series]":
    """
    Boolean eligibility masks, in reporting order. Missing values fail.
    """
    if min_age is None:
        min_age = settings.MIN_AGE

    masks = OrderedDict()
    masks["responded in wave"] = df["in_wave"].eq(1).fillna(False).astype(bool)
    masks["community-dwelling"] = df["nursing_home_status"].isin(list(COMMUNITY_DWELLING_CODES))
    masks[f"age >= {min_age}"] = df["age"].ge(min_age).fillna(False).astype(bool)
    return masks


def join_extracts(
    panel: pd.DataFrame,
    tracker: pd.DataFrame,
    geography: pd.DataFrame,
    volunteering: pd.DataFrame,
    caregiving: pd.DataFrame,
) -> pd.DataFrame:
    """
    Left-join topic tables onto the single-wave panel by respondent key.

    Raises:
        JoinKeyCollisionError: If any input repeats a respondent key
    """
    ensure_unique_key(panel, stage="cohort", name="panel")

    joined = panel
    right_tables = [
        ("tracker", tracker[KEY_COLUMNS + ["nursing_home_status"]]),
        ("geography", geography[KEY_COLUMNS + ["rurality", "region", "division"]]),
        ("volunteering", volunteering[KEY_COLUMNS + ["volunteer"]]),
        ("caregiving", caregiving),
    ]

    for name, table in right_tables:
        ensure_unique_key(table, stage="cohort", name=name)
        joined = joined.merge(table, on=KEY_COLUMNS, how="left")
        logger.info(f"Joined {name}: {int(table.shape[0])} rows available, {len(joined)} panel rows kept")

    return joined


def apply_eligibility(joined: pd.DataFrame, min_age: Optional[int] = None) -> pd.DataFrame:
    """
    Keep respondents meeting every eligibility rule.

    Raises:
        JoinKeyCollisionError: If the finished cohort repeats a key
    """
    eligible = pd.Series(True, index=joined.index)
    for mask in eligibility_masks(joined, min_age).values():
        eligible &= mask

    cohort = joined.loc[eligible].reset_index(drop=True)
    ensure_unique_key(cohort, stage="cohort", name="cohort")

    logger.info(f"Cohort: {len(cohort)} of {len(joined)} wave respondents eligible")

    return cohort


def build_cohort(
    panel: pd.DataFrame,
    tracker: pd.DataFrame,
    geography: pd.DataFrame,
    volunteering: pd.DataFrame,
    caregiving: pd.DataFrame,
    min_age: Optional[int] = None,
) -> pd.DataFrame:
    """
    Build the analytic cohort.

    Args:
        panel: Single-wave panel (see select_wave)
        tracker: Tracker extract with nursing_home_status
        geography: Recoded region extract (rurality, region, division)
        volunteering: Volunteering table (volunteer flag)
        caregiving: Caregiver-indicator table
        min_age: Age threshold (default: settings.MIN_AGE)

    Returns:
        One row per eligible respondent
    """
    joined = join_extracts(panel, tracker, geography, volunteering, caregiving)
    return apply_eligibility(joined, min_age)


def summarize_attrition(panel: pd.DataFrame, tracker: pd.DataFrame, min_age: Optional[int] = None) -> pd.DataFrame:
    """
    Count respondents remaining after each eligibility rule, applied in order.

    Args:
        panel: Single-wave panel
        tracker: Tracker extract

    Returns:
        DataFrame with step, remaining and excluded
    """
    df = panel.merge(tracker[KEY_COLUMNS + ["nursing_home_status"]], on=KEY_COLUMNS, how="left")

    rows = [{"step": "wave records", "remaining": len(df), "excluded": 0}]
    keep = pd.Series(True, index=df.index)

    for step, mask in eligibility_masks(df, min_age).items():
        before = int(keep.sum())
        keep &= mask
        rows.append({"step": step, "remaining": int(keep.sum()), "excluded": before - int(keep.sum())})

    return pd.DataFrame(rows)
