import pandas as pd
import pytest

import src.ingest.extracts as extracts
from src.ingest.extracts import load_extract, normalize_id, read_column_names
from src.processing.variable_registry import build_extract_definitions
from src.utils.errors import MissingColumnError


@pytest.fixture
def definitions():
    return build_extract_definitions("R")


def test_load_extract_selects_and_renames(tmp_path, definitions):
    path = tmp_path / "tracker.csv"
    pd.DataFrame({
        "HHID": [10003, 10004],
        "PN": [10, 20],
        "RNURSHM": [5, 1],
        "RIWSTAT": [1, 1],
    }).to_csv(path, index=False)

    df = load_extract(definitions["tracker"], str(path))

    assert list(df.columns) == ["hhid", "pn", "nursing_home_status"]
    assert df["hhid"].tolist() == ["010003", "010004"]
    assert df["pn"].tolist() == ["010", "020"]
    assert df["nursing_home_status"].tolist() == [5, 1]


def test_load_extract_missing_column_fails_before_reading(tmp_path, definitions):
    path = tmp_path / "region.csv"
    pd.DataFrame({"HHID": [1], "PN": [10], "RURBRUR": [1]}).to_csv(path, index=False)

    with pytest.raises(MissingColumnError) as exc:
        load_extract(definitions["region"], str(path))

    assert exc.value.missing == ["RDIVISION"]
    assert exc.value.stage == "load:region"
    assert "RDIVISION" in str(exc.value)


def test_detailed_definition_enumerates_helper_fields(definitions):
    columns = definitions["detailed"].columns

    assert columns["RG033_1"] == "adl_helper_1"
    assert columns["RG055_3"] == "iadl_helper_3"
    assert sum(1 for name in columns.values() if "helper" in name) == 6


def test_normalize_id_handles_floats_strings_and_blanks():
    assert normalize_id(pd.Series([10.0, 20.0, None]), 3).tolist()[:2] == ["010", "020"]
    assert pd.isna(normalize_id(pd.Series([10.0, None]), 3).iloc[1])

    ids = normalize_id(pd.Series(["10", " 20", ""]), 3)
    assert ids.tolist()[:2] == ["010", "020"]
    assert pd.isna(ids.iloc[2])


def test_read_column_names_rejects_unknown_format(tmp_path):
    path = tmp_path / "extract.sav"
    path.write_text("")

    with pytest.raises(ValueError):
        read_column_names(str(path))


def test_read_column_names_uses_pyreadstat_metadata_for_dta(monkeypatch):
    class FakeMeta:
        column_names = ["HHID", "PN"]

    calls = {}

    def fake_read_dta(path, **kwargs):
        calls.update(kwargs)
        return pd.DataFrame(), FakeMeta()

    monkeypatch.setattr(extracts.pyreadstat, "read_dta", fake_read_dta)

    assert read_column_names("panel.dta") == ["HHID", "PN"]
    assert calls == {"metadataonly": True}


def test_load_all_extracts_requires_configured_paths(monkeypatch):
    monkeypatch.setattr(extracts.settings, "RAND_LONG_PATH", None, raising=False)

    with pytest.raises(ValueError):
        extracts.load_all_extracts()


def test_load_all_extracts_default_prefix_follows_wave(monkeypatch):
    loaded = {}

    def fake_load_extract(definition, path):
        loaded[definition.name] = definition.source_columns
        return pd.DataFrame()

    for setting in ["RAND_LONG_PATH", "TRACKER_PATH", "REGION_PATH", "DETAILED_SURVEY_PATH"]:
        monkeypatch.setattr(extracts.settings, setting, f"{setting.lower()}.dta", raising=False)
    monkeypatch.setattr(extracts.settings, "WAVE", 14, raising=False)
    monkeypatch.setattr(extracts, "load_extract", fake_load_extract)

    extracts.load_all_extracts()

    assert "QNURSHM" in loaded["tracker"]
    assert {"QURBRUR", "QDIVISION"} <= set(loaded["region"])
    assert "QG086" in loaded["detailed"]
