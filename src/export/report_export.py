"""
Rural Productive Aging Report - Report Export
Writes tabulation and comparison tables for embedding in the written report

Outputs:
- exports/report_latest/ (always current)
- exports/report_{YYYYMMDD}/ (versioned snapshots)

Each directory holds one CSV per table, report.txt with formatted tables,
attrition.csv, and manifest.json with checksums.
"""

import hashlib
import json
import os
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional

import pandas as pd

from config.settings import get_settings
from src.processing.variable_registry import GROUPING_LABELS, INDICATOR_LABELS, Grouping, Indicator
from src.utils.logging import get_logger

logger = get_logger(__name__)
settings = get_settings()


@dataclass
class ReportSection:
    """Tables for one (grouping, indicator) pair"""
    grouping: Grouping
    indicator: Indicator
    tabulation: pd.DataFrame
    comparison: pd.DataFrame

    @property
    def slug(self) -> str:
        return f"{self.indicator.value}_by_{self.grouping.value}"

    @property
    def title(self) -> str:
        return f"{INDICATOR_LABELS[self.indicator]} by {GROUPING_LABELS[self.grouping].lower()}"


def format_percent(value) -> str:
    if value is None or pd.isna(value):
        return "N/A"
    return f"{value:.1f}%"


def format_p(p) -> str:
    if p is None or pd.isna(p):
        return "N/A"
    if p < 0.001:
        return "<0.001"
    if p < 0.01:
        return f"{p:.3f}"
    return f"{p:.2f}"


def format_tabulation(df: pd.DataFrame) -> pd.DataFrame:
    out = df.copy()
    out["percent"] = out["percent"].apply(format_percent)
    return out


def format_comparison(df: pd.DataFrame) -> pd.DataFrame:
    out = df.copy()
    for col in ["rural_proportion", "urban_proportion"]:
        out[col] = out[col].apply(lambda x: format_percent(x * 100 if pd.notna(x) else x))
    out["statistic"] = out["statistic"].apply(lambda x: "N/A" if pd.isna(x) else f"{x:.2f}")
    out["p_value"] = out["p_value"].apply(format_p)
    out["gap"] = out["gap"].fillna("")
    return out


def render_text_report(sections: List[ReportSection], attrition: Optional[pd.DataFrame] = None) -> str:
    """
    Render all sections as a plain-text report.

    Args:
        sections: Report sections in display order
        attrition: Optional eligibility attrition table

    Returns:
        Report text
    """
    lines = [settings.REPORT_TITLE, "=" * len(settings.REPORT_TITLE), ""]

    if attrition is not None:
        lines += ["Sample construction", "-" * 19, attrition.to_string(index=False), ""]

    for section in sections:
        lines += [section.title, "-" * len(section.title)]
        lines += [format_tabulation(section.tabulation).to_string(index=False), ""]
        lines += ["Rural vs urban (chi-square, continuity corrected)"]
        lines += [format_comparison(section.comparison).to_string(index=False), ""]

    return "\n".join(lines)


def calculate_file_checksum(file_path: str) -> str:
    """
    Calculate SHA256 checksum of file.

    Args:
        file_path: Path to file

    Returns:
        Hex digest of checksum
    """
    sha256 = hashlib.sha256()

    with open(file_path, "rb") as f:
        for chunk in iter(lambda: f.read(8192), b""):
            sha256.update(chunk)

    return sha256.hexdigest()


def write_report_directory(
    output_dir: str,
    sections: List[ReportSection],
    attrition: Optional[pd.DataFrame] = None,
    wave: Optional[int] = None,
) -> Dict:
    """
    Write every table, the text report and a manifest into one directory.

    The manifest records the wave the sections were computed for
    (default: settings.WAVE).

    Returns:
        Manifest dict
    """
    os.makedirs(output_dir, exist_ok=True)
    files = {}

    def _write_csv(df: pd.DataFrame, name: str):
        path = os.path.join(output_dir, name)
        df.to_csv(path, index=False)
        files[name] = {"rows": len(df), "sha256": calculate_file_checksum(path)}

    for section in sections:
        _write_csv(section.tabulation, f"{section.slug}_percent.csv")
        _write_csv(section.comparison, f"{section.slug}_comparison.csv")

    if attrition is not None:
        _write_csv(attrition, "attrition.csv")

    report_path = os.path.join(output_dir, "report.txt")
    with open(report_path, "w", encoding="utf-8") as f:
        f.write(render_text_report(sections, attrition))
    files["report.txt"] = {"sha256": calculate_file_checksum(report_path)}

    manifest = {
        "title": settings.REPORT_TITLE,
        "generated_at": datetime.utcnow().isoformat(),
        "wave": settings.WAVE if wave is None else wave,
        "min_age": settings.MIN_AGE,
        "test": "chi-square, Yates continuity correction",
        "files": files,
    }

    with open(os.path.join(output_dir, "manifest.json"), "w", encoding="utf-8") as f:
        json.dump(manifest, f, indent=2)

    logger.info(f"Wrote {len(files)} report files to {output_dir}")

    return manifest


def run_report_export(
    sections: List[ReportSection],
    attrition: Optional[pd.DataFrame] = None,
    versioned: bool = True,
    wave: Optional[int] = None,
) -> Dict:
    """
    Main entry point for report export.

    Args:
        sections: Computed report sections
        attrition: Eligibility attrition table
        versioned: If True, create dated snapshot in addition to 'latest'
        wave: Wave the sections were computed for (default: settings.WAVE)

    Returns:
        Dict with export metadata
    """
    logger.info(f"Starting report export ({len(sections)} sections, versioned={versioned})")

    if not sections:
        raise ValueError("No report sections to export")

    latest_dir = os.path.join(settings.EXPORT_DIR, "report_latest")
    write_report_directory(latest_dir, sections, attrition, wave=wave)

    versioned_dir = None
    if versioned:
        version = datetime.utcnow().strftime("%Y%m%d")
        versioned_dir = os.path.join(settings.EXPORT_DIR, f"report_{version}")
        write_report_directory(versioned_dir, sections, attrition, wave=wave)

    logger.info("Report export completed successfully")

    return {
        "section_count": len(sections),
        "latest_path": latest_dir,
        "versioned_path": versioned_dir,
    }
