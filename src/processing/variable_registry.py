"""
Rural Productive Aging Report - Variable Registry
Single source of truth for input extracts, source fields and analysis variables

This registry defines:
- Which fields are read from each extract, and their canonical names
- The enumerated helper-role fields used for spousal caregiving
- The closed set of groupings and indicators the report tabulates

NO source field should be read without being registered here.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List

KEY_COLUMNS = ["hhid", "pn"]

# Zero-padded widths for identifier columns
ID_WIDTHS = {"hhid": 6, "pn": 3, "spouse_pn": 3}

# Helper slots recorded per respondent in the detailed survey
ADL_HELPER_SLOTS = 3
IADL_HELPER_SLOTS = 3

# Canonical helper-role column names, in slot order
HELPER_COLUMNS = (
    [f"adl_helper_{slot}" for slot in range(1, ADL_HELPER_SLOTS + 1)]
    + [f"iadl_helper_{slot}" for slot in range(1, IADL_HELPER_SLOTS + 1)]
)


class Grouping(str, Enum):
    """Geographic grouping for tabulation"""
    REGION = "region"
    DIVISION = "division"


class Indicator(str, Enum):
    """Derived productive-activity indicator"""
    WORKER = "worker"
    VOLUNTEER = "volunteer"
    CAREGIVER = "caregiver"
    MULTI = "multi"


INDICATOR_LABELS = {
    Indicator.WORKER: "Working for pay",
    Indicator.VOLUNTEER: "Formal volunteering",
    Indicator.CAREGIVER: "Informal caregiving",
    Indicator.MULTI: "Any productive activity",
}

GROUPING_LABELS = {
    Grouping.REGION: "Census region",
    Grouping.DIVISION: "Census division",
}

RURALITY_COLUMN = "rurality"
RURAL = "Rural"
URBAN = "Urban"


@dataclass
class ExtractDefinition:
    """
    Definition of one input extract
    """
    name: str  # Logical extract name
    path_setting: str  # Settings attribute holding the file path
    columns: Dict[str, str]  # Source column -> canonical column
    description: str = ""
    id_columns: List[str] = field(default_factory=lambda: list(KEY_COLUMNS))

    @property
    def source_columns(self) -> List[str]:
        return list(self.columns.keys())


def helper_role_fields(prefix: str) -> Dict[str, str]:
    """
    Enumerate ADL/IADL helper relationship fields for a wave prefix.

    Returns:
        Source field -> canonical name, in HELPER_COLUMNS order
    """
    sources = [f"{prefix}G033_{slot}" for slot in range(1, ADL_HELPER_SLOTS + 1)]
    sources += [f"{prefix}G055_{slot}" for slot in range(1, IADL_HELPER_SLOTS + 1)]
    return dict(zip(sources, HELPER_COLUMNS))


def build_extract_definitions(prefix: str) -> Dict[str, ExtractDefinition]:
    """
    Build the extract definitions for a core-wave field prefix (e.g. "R" for 2020).

    Args:
        prefix: Wave letter used by tracker, region and core field names

    Returns:
        Dict of extract name -> ExtractDefinition
    """
    helper_columns = helper_role_fields(prefix)

    detailed_columns = {
        "HHID": "hhid",
        "PN": "pn",
        f"{prefix}G086": "volunteer_code",
        f"{prefix}E060": "grandchildren_code",
        f"{prefix}F119": "parent_personal_code",
        f"{prefix}F139": "parent_errands_code",
    }
    detailed_columns.update(helper_columns)

    return {
        "panel": ExtractDefinition(
            name="panel",
            path_setting="RAND_LONG_PATH",
            columns={
                "hhid": "hhid",
                "pn": "pn",
                "wave": "wave",
                "inw": "in_wave",
                "ragey_e": "age",
                "rwork": "work",
                "s_pn": "spouse_pn",
            },
            description="Long-format panel: demographics, work and spouse link",
            id_columns=["hhid", "pn", "spouse_pn"],
        ),
        "tracker": ExtractDefinition(
            name="tracker",
            path_setting="TRACKER_PATH",
            columns={
                "HHID": "hhid",
                "PN": "pn",
                f"{prefix}NURSHM": "nursing_home_status",
            },
            description="Tracker: nursing home status",
        ),
        "region": ExtractDefinition(
            name="region",
            path_setting="REGION_PATH",
            columns={
                "HHID": "hhid",
                "PN": "pn",
                f"{prefix}URBRUR": "urbrur_code",
                f"{prefix}DIVISION": "division_code",
            },
            description="Region file: urbanicity and census division",
        ),
        "detailed": ExtractDefinition(
            name="detailed",
            path_setting="DETAILED_SURVEY_PATH",
            columns=detailed_columns,
            description="Detailed core survey: volunteering, caregiving, helpers",
        ),
    }


INDICATOR_COLUMNS = [indicator.value for indicator in Indicator]
CAREGIVER_SUBFLAGS = ["caregiver_spousal", "caregiver_parental", "caregiver_grandchildren"]
