import pandas as pd
import pytest

from src.processing.tabulation import complete_cases, tabulate_indicator
from src.processing.variable_registry import Grouping, Indicator


def test_tabulate_excludes_missing_and_keeps_first_appearance_order(sample_cohort):
    result = tabulate_indicator(sample_cohort, Grouping.REGION, Indicator.VOLUNTEER)

    assert list(result.columns) == ["region", "rurality", "n", "n_yes", "percent"]
    assert list(zip(result["region"], result["rurality"])) == [
        ("south", "Urban"),
        ("south", "Rural"),
        ("west", "Rural"),
        ("west", "Urban"),
    ]
    assert result["n"].tolist() == [2, 1, 1, 1]
    assert result["n_yes"].tolist() == [1, 0, 1, 1]
    assert result["percent"].tolist() == [50.0, 0.0, 100.0, 100.0]


def test_tabulate_groups_interleaved_rows_by_group():
    cohort = pd.DataFrame({
        "division": ["pacific", "mountain", "pacific"],
        "rurality": ["Urban", "Urban", "Rural"],
        "worker": pd.array([1, 0, 0], dtype="Int64"),
    })

    result = tabulate_indicator(cohort, Grouping.DIVISION, Indicator.WORKER)

    assert result["division"].tolist() == ["pacific", "pacific", "mountain"]
    assert result["rurality"].tolist() == ["Urban", "Rural", "Urban"]


def test_percent_rounded_to_one_decimal():
    cohort = pd.DataFrame({
        "region": ["south"] * 3,
        "rurality": ["Rural"] * 3,
        "caregiver": pd.array([1, 0, 0], dtype="Int64"),
    })

    result = tabulate_indicator(cohort, Grouping.REGION, Indicator.CAREGIVER)

    assert result["percent"].iloc[0] == pytest.approx(33.3)


def test_yes_and_no_shares_sum_to_hundred(sample_cohort):
    result = tabulate_indicator(sample_cohort, Grouping.REGION, Indicator.VOLUNTEER)

    no_share = 100.0 * (result["n"] - result["n_yes"]) / result["n"]
    totals = (result["percent"] + no_share.round(1)).tolist()
    assert totals == pytest.approx([100.0] * len(result), abs=0.1)


def test_complete_cases_drops_rows_missing_any_column(sample_cohort):
    result = complete_cases(sample_cohort, Grouping.REGION, Indicator.VOLUNTEER)
    assert len(result) == 5


def test_tabulate_no_complete_cases_returns_empty_frame():
    cohort = pd.DataFrame({
        "region": pd.Series([pd.NA], dtype="string"),
        "rurality": ["Urban"],
        "multi": pd.array([1], dtype="Int64"),
    })

    result = tabulate_indicator(cohort, Grouping.REGION, Indicator.MULTI)

    assert result.empty
    assert list(result.columns) == ["region", "rurality", "n", "n_yes", "percent"]
