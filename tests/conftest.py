"""
Pytest configuration and shared fixtures for the rural productive aging report tests.

The sample extracts describe ten respondents aged 60-105:
- 60 is too young, 70 did not respond in the wave, 75 lives in a nursing home,
  leaving seven eligible respondents
- among the eligible, three volunteer and two work (one does both), nobody
  gives care, so four have a productive activity
"""

from typing import Dict

import pandas as pd
import pytest

from tests.factories import make_detailed, string_ids

AGES = [60, 65, 70, 75, 80, 85, 90, 95, 100, 105]
HHIDS = [f"{i:06d}" for i in range(1, 11)]
PNS = ["010"] * 10


@pytest.fixture
def sample_panel() -> pd.DataFrame:
    """Long-format panel: wave 15 for everyone plus an earlier wave for two respondents."""
    wave15 = pd.DataFrame({
        "hhid": string_ids(HHIDS),
        "pn": string_ids(PNS),
        "wave": [15] * 10,
        "in_wave": [1, 1, 0, 1, 1, 1, 1, 1, 1, 1],
        "age": AGES,
        "work": [0, 0, 1, 0, 0, 1, 1, 0, 0, 0],
        "spouse_pn": string_ids([pd.NA] * 10),
    })
    wave14 = wave15.iloc[:2].copy()
    wave14["wave"] = 14
    wave14["age"] = [58, 63]
    return pd.concat([wave14, wave15], ignore_index=True)


@pytest.fixture
def sample_tracker() -> pd.DataFrame:
    return pd.DataFrame({
        "hhid": string_ids(HHIDS),
        "pn": string_ids(PNS),
        "nursing_home_status": [5, 5, 5, 1, 5, 5, 5, 5, 5, 5],
    })


@pytest.fixture
def sample_region() -> pd.DataFrame:
    return pd.DataFrame({
        "hhid": string_ids(HHIDS),
        "pn": string_ids(PNS),
        "urbrur_code": [1, 1, 3, 1, 3, 2, 3, 1, 3, 1],
        "division_code": [2, 1, 5, 5, 1, 5, 5, 5, 9, 8],
    })


@pytest.fixture
def sample_detailed() -> pd.DataFrame:
    return make_detailed(
        HHIDS,
        PNS,
        volunteer_code=[1, 1, 5, 1, 1, 1, 5, 5, 5, 8],
    )


@pytest.fixture
def sample_extracts(sample_panel, sample_tracker, sample_region, sample_detailed) -> Dict[str, pd.DataFrame]:
    """Canonical extracts as returned by load_all_extracts."""
    return {
        "panel": sample_panel,
        "tracker": sample_tracker,
        "region": sample_region,
        "detailed": sample_detailed,
    }


@pytest.fixture
def sample_cohort() -> pd.DataFrame:
    """Small analytic cohort with indicators already derived."""
    return pd.DataFrame({
        "hhid": string_ids([f"{i:06d}" for i in range(1, 9)]),
        "pn": string_ids(["010"] * 8),
        "region": pd.Series(
            ["south", "south", "south", "west", "west", "south", pd.NA, "west"], dtype="string"
        ),
        "rurality": pd.Series(
            ["Urban", "Rural", "Urban", "Rural", "Urban", "Rural", "Urban", pd.NA], dtype="string"
        ),
        "volunteer": pd.array([1, 0, 0, 1, 1, pd.NA, 1, 1], dtype="Int64"),
    })

