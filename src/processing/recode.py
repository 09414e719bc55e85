"""
Rural Productive Aging Report - Recoding
Maps raw survey codes to semantic labels or 0/1 flags

Codes outside a mapping's domain become <NA>. They are never folded into a
neighbouring category.
"""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Hashable, Optional

import pandas as pd

from config.settings import (
    AFFIRMATIVE_CODE,
    DIVISION_CODES,
    NEGATIVE_CODES,
    NOT_WORKING_CODES,
    REGION_BY_DIVISION,
    RURALITY_CODES,
    WORKING_CODE,
)
from src.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class CodeMap:
    """Finite code -> label mapping; everything else is unknown"""
    name: str
    labels: Dict[int, str]

    def lookup(self, code: Hashable) -> Optional[str]:
        """Return the label for a code, or None when missing or unmapped"""
        if code is None or pd.isna(code):
            return None
        return self.labels.get(code)


@dataclass(frozen=True)
class BinaryCode:
    """Affirmative code -> 1, named negative codes -> 0, else unknown"""
    name: str
    affirmative: int = AFFIRMATIVE_CODE
    negatives: FrozenSet[int] = field(default_factory=lambda: NEGATIVE_CODES)

    def lookup(self, code: Hashable) -> Optional[int]:
        if code is None or pd.isna(code):
            return None
        if code == self.affirmative:
            return 1
        if code in self.negatives:
            return 0
        return None


RURALITY = CodeMap("rurality", RURALITY_CODES)
DIVISION = CodeMap("division", DIVISION_CODES)
REGION = CodeMap("region", REGION_BY_DIVISION)

YES_NO = BinaryCode("yes_no")
WORK_FOR_PAY = BinaryCode("work_for_pay", affirmative=WORKING_CODE, negatives=NOT_WORKING_CODES)


def _warn_unmapped(values: pd.Series, result: pd.Series, name: str) -> None:
    unmapped = values.notna() & result.isna()
    if unmapped.any():
        codes = sorted(values[unmapped].unique().tolist())
        logger.warning(f"{name}: {int(unmapped.sum())} value(s) with unmapped codes {codes} set to missing")


def recode(values: pd.Series, code_map: CodeMap) -> pd.Series:
    """
    Recode raw codes to labels.

    Args:
        values: Raw coded values
        code_map: Mapping to apply

    Returns:
        Series of dtype "string" with <NA> for missing or unmapped codes
    """
    result = values.map(code_map.lookup).astype("string")
    _warn_unmapped(values, result, code_map.name)
    return result


def recode_binary(values: pd.Series, binary: BinaryCode) -> pd.Series:
    """
    Recode raw codes to a 0/1 flag.

    Args:
        values: Raw coded values
        binary: Affirmative / negative code definition

    Returns:
        Series of dtype "Int64" with values in {0, 1, <NA>}
    """
    result = pd.Series(pd.array(values.map(binary.lookup).tolist(), dtype="Int64"), index=values.index)
    _warn_unmapped(values, result, binary.name)
    return result


def recode_geography(df: pd.DataFrame) -> pd.DataFrame:
    """
    Add rurality, region and division labels to a region-file extract.

    Region is derived from the division code, so a division without a region
    entry yields a missing region.

    Args:
        df: DataFrame with urbrur_code and division_code

    Returns:
        Copy with rurality, region and division columns added
    """
    out = df.copy()
    out["rurality"] = recode(out["urbrur_code"], RURALITY)
    out["division"] = recode(out["division_code"], DIVISION)
    out["region"] = recode(out["division_code"], REGION)

    logger.info(
        f"Recoded geography for {len(out)} respondents: "
        f"rurality missing={int(out['rurality'].isna().sum())}, "
        f"region missing={int(out['region'].isna().sum())}, "
        f"division missing={int(out['division'].isna().sum())}"
    )

    return out


def recode_volunteering(df: pd.DataFrame) -> pd.DataFrame:
    """
    Build the volunteering table (key + volunteer flag) from the detailed survey.
    """
    out = df[["hhid", "pn"]].copy()
    out["volunteer"] = recode_binary(df["volunteer_code"], YES_NO)
    return out
