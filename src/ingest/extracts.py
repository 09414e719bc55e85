"""
Rural Productive Aging Report - Extract Loader
Reads survey extracts, selecting registered fields only

Supported formats:
- Stata .dta (via pyreadstat; value labels are NOT applied, raw codes kept)
- CSV (via pandas)

Column presence is validated against file metadata before any data is read,
so schema drift fails loudly instead of silently selecting fewer fields.
"""

import os
from typing import Dict, List, Optional

import pandas as pd
import pyreadstat

from config.settings import core_prefix_for_wave, get_settings
from src.processing.variable_registry import ID_WIDTHS, ExtractDefinition, build_extract_definitions
from src.utils.errors import MissingColumnError
from src.utils.logging import get_logger

logger = get_logger(__name__)
settings = get_settings()


def read_column_names(path: str) -> List[str]:
    """
    Read column names without loading data.

    Args:
        path: Extract file path (.dta or .csv)

    Returns:
        List of column names
    """
    suffix = os.path.splitext(path)[1].lower()

    if suffix == ".dta":
        _, meta = pyreadstat.read_dta(path, metadataonly=True)
        return list(meta.column_names)

    if suffix == ".csv":
        return list(pd.read_csv(path, nrows=0).columns)

    raise ValueError(f"Unsupported extract format: {path}")


def _read_columns(path: str, columns: List[str]) -> pd.DataFrame:
    suffix = os.path.splitext(path)[1].lower()

    if suffix == ".dta":
        df, _ = pyreadstat.read_dta(path, usecols=columns, apply_value_formats=False)
        return df

    return pd.read_csv(path, usecols=columns)


def normalize_id(values: pd.Series, width: int) -> pd.Series:
    """
    Normalize an identifier column to zero-padded nullable strings.

    Numeric ids (possibly float from Stata) become "000123"-style strings;
    blanks become <NA>.

    Args:
        values: Raw identifier values
        width: Zero-padded width

    Returns:
        Series of dtype "string"
    """
    if pd.api.types.is_numeric_dtype(values):
        ids = values.astype("Int64").astype("string")
    else:
        ids = values.astype("string").str.strip()
        ids = ids.mask(ids == "")

    return ids.str.zfill(width)


def load_extract(definition: ExtractDefinition, path: str) -> pd.DataFrame:
    """
    Load one extract, selecting and renaming its registered columns.

    Args:
        definition: Extract definition from the variable registry
        path: File path

    Returns:
        DataFrame with canonical column names

    Raises:
        MissingColumnError: If any registered source column is absent
    """
    logger.info(f"Loading {definition.name} extract from {path}")

    available = set(read_column_names(path))
    missing = [col for col in definition.source_columns if col not in available]

    if missing:
        raise MissingColumnError(stage=f"load:{definition.name}", missing=missing, source=path)

    df = _read_columns(path, definition.source_columns)
    df = df[definition.source_columns].rename(columns=definition.columns)

    for col in definition.id_columns:
        df[col] = normalize_id(df[col], ID_WIDTHS[col])

    logger.info(f"Loaded {len(df)} rows, {len(df.columns)} columns from {definition.name}")

    return df


def load_all_extracts(prefix: Optional[str] = None) -> Dict[str, pd.DataFrame]:
    """
    Load every registered extract from the paths in settings.

    Args:
        prefix: Core-wave field prefix (default: prefix for settings.WAVE)

    Returns:
        Dict of extract name -> DataFrame
    """
    if prefix is None:
        prefix = core_prefix_for_wave(settings.WAVE)
    definitions = build_extract_definitions(prefix)

    logger.info(f"Loading extracts with core field prefix {prefix}")

    extracts = {}
    for name, definition in definitions.items():
        path = getattr(settings, definition.path_setting)
        if not path:
            raise ValueError(f"{definition.path_setting} is not configured")
        extracts[name] = load_extract(definition, path)

    return extracts
