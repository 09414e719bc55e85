"""
Tests for cohort construction

Run with: pytest tests/test_processing_cohort.py -v
"""

import numpy as np
import pandas as pd
import pytest

from src.processing.cohort import (
    apply_eligibility,
    build_cohort,
    ensure_unique_key,
    join_extracts,
    select_wave,
    summarize_attrition,
)
from src.processing.indicators import derive_caregiver_table
from src.processing.recode import recode_geography, recode_volunteering
from src.utils.errors import JoinKeyCollisionError


@pytest.fixture
def cohort_inputs(sample_extracts):
    panel = select_wave(sample_extracts["panel"], 15)
    return {
        "panel": panel,
        "tracker": sample_extracts["tracker"],
        "geography": recode_geography(sample_extracts["region"]),
        "volunteering": recode_volunteering(sample_extracts["detailed"]),
        "caregiving": derive_caregiver_table(sample_extracts["detailed"], panel),
    }


class TestSelectWave:
    """Test wave selection from the long panel"""

    def test_selects_one_row_per_respondent(self, sample_panel):
        result = select_wave(sample_panel, 15)

        assert len(result) == 10
        assert (result["wave"] == 15).all()
        assert result.loc[0, "age"] == 60

    def test_duplicate_wave_record_raises(self, sample_panel):
        doubled = pd.concat([sample_panel, sample_panel.tail(1)], ignore_index=True)

        with pytest.raises(JoinKeyCollisionError) as exc:
            select_wave(doubled, 15)

        assert exc.value.stage == "cohort"
        assert exc.value.duplicates == 1

    def test_wave_zero_is_not_replaced_by_default(self, sample_panel):
        assert select_wave(sample_panel, 0).empty

    def test_default_wave_from_settings(self, sample_panel):
        assert (select_wave(sample_panel)["wave"] == 15).all()


class TestBuildCohort:
    """Test joins and eligibility filters"""

    def test_eligible_respondents(self, cohort_inputs):
        cohort = build_cohort(**cohort_inputs)

        assert len(cohort) == 7
        assert cohort["age"].min() >= 65
        assert (cohort["in_wave"] == 1).all()
        assert set(cohort["nursing_home_status"]) <= {3, 5, 6}
        assert not cohort.duplicated(["hhid", "pn"]).any()

    def test_unmatched_join_keeps_row_with_missing_indicator(self, cohort_inputs):
        volunteering = cohort_inputs["volunteering"]
        cohort_inputs["volunteering"] = volunteering.loc[volunteering["hhid"] != "000002"]

        cohort = build_cohort(**cohort_inputs)

        row = cohort.loc[cohort["hhid"] == "000002"]
        assert len(row) == 1
        assert pd.isna(row["volunteer"].iloc[0])

    def test_duplicate_key_in_join_input_raises(self, cohort_inputs):
        tracker = cohort_inputs["tracker"]
        cohort_inputs["tracker"] = pd.concat([tracker, tracker.head(1)], ignore_index=True)

        with pytest.raises(JoinKeyCollisionError) as exc:
            build_cohort(**cohort_inputs)

        assert exc.value.field == "tracker"

    def test_join_is_left_preserving_before_filters(self, cohort_inputs):
        joined = join_extracts(
            cohort_inputs["panel"],
            cohort_inputs["tracker"].head(5),
            cohort_inputs["geography"],
            cohort_inputs["volunteering"],
            cohort_inputs["caregiving"],
        )

        assert len(joined) == 10
        assert joined["nursing_home_status"].isna().sum() == 5

    def test_missing_nursing_home_status_is_ineligible(self, cohort_inputs):
        tracker = cohort_inputs["tracker"].copy()
        tracker["nursing_home_status"] = tracker["nursing_home_status"].astype(float)
        tracker.loc[tracker["hhid"] == "000002", "nursing_home_status"] = np.nan
        cohort_inputs["tracker"] = tracker

        cohort = apply_eligibility(join_extracts(**cohort_inputs))

        assert "000002" not in set(cohort["hhid"])
        assert len(cohort) == 6

    def test_min_age_override(self, cohort_inputs):
        cohort = build_cohort(**cohort_inputs, min_age=90)
        assert len(cohort) == 4

    def test_min_age_zero_is_not_replaced_by_default(self, cohort_inputs):
        cohort = build_cohort(**cohort_inputs, min_age=0)

        assert len(cohort) == 8
        assert cohort["age"].min() == 60


def test_ensure_unique_key_passes_unique_frame():
    df = pd.DataFrame({"hhid": ["000001", "000001"], "pn": ["010", "020"]})
    ensure_unique_key(df, stage="test", name="frame")


def test_summarize_attrition(sample_extracts):
    panel = select_wave(sample_extracts["panel"], 15)

    attrition = summarize_attrition(panel, sample_extracts["tracker"])

    assert attrition["step"].tolist() == [
        "wave records",
        "responded in wave",
        "community-dwelling",
        "age >= 65",
    ]
    assert attrition["remaining"].tolist() == [10, 9, 8, 7]
    assert attrition["excluded"].tolist() == [0, 1, 1, 1]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
