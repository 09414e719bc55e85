"""
Rural Productive Aging Report - Main Pipeline Orchestration

Runs the complete report pipeline from extract loading through export.

Pipeline stages:
1. Load extracts (panel, tracker, region, detailed survey)
2. Recode geography and volunteering
3. Derive caregiver indicators (spousal, parental, grandchild)
4. Build cohort and derive worker / multi indicators
5. Tabulate and compare rural vs urban
6. Export tables

Structural failures (missing columns, duplicate keys, untestable strata)
stop the run before anything is exported.

Usage:
    python -m src.run_pipeline
    python -m src.run_pipeline --groupings region --indicators caregiver multi
    python -m src.run_pipeline --allow-gaps --no-export
"""

import argparse
import os
import sys
from datetime import datetime
from typing import Dict, List, Optional

import pandas as pd

from config.settings import core_prefix_for_wave, get_settings
from src.export.report_export import ReportSection, run_report_export
from src.ingest.extracts import load_all_extracts
from src.processing.cohort import build_cohort, select_wave, summarize_attrition
from src.processing.comparison import compare_rural_urban
from src.processing.indicators import derive_caregiver_table, derive_productive_indicators
from src.processing.recode import recode_geography, recode_volunteering
from src.processing.tabulation import tabulate_indicator
from src.processing.variable_registry import Grouping, Indicator
from src.utils.errors import ReportPipelineError
from src.utils.logging import set_log_context, setup_logging

logger = setup_logging("pipeline")
settings = get_settings()

REQUIRED_PATHS = ["RAND_LONG_PATH", "TRACKER_PATH", "REGION_PATH", "DETAILED_SURVEY_PATH"]


def check_prerequisites() -> bool:
    """
    Check that every input extract is configured and exists.

    Returns:
        True if all checks pass, False otherwise
    """
    logger.info("Checking prerequisites")

    for var in REQUIRED_PATHS:
        path = getattr(settings, var, None)
        if not path:
            logger.error(f"Required environment variable not set: {var}")
            return False
        if not os.path.exists(path):
            logger.error(f"{var} points to a missing file: {path}")
            return False

    logger.info("Prerequisites check passed")
    return True


def build_analysis_cohort(extracts: Dict[str, pd.DataFrame], wave: Optional[int] = None):
    """
    Recode, derive indicators and build the cohort from loaded extracts.

    Args:
        extracts: Dict with panel, tracker, region and detailed extracts
        wave: Panel wave (default: settings.WAVE)

    Returns:
        Tuple of (cohort with indicators, attrition table)
    """
    panel = select_wave(extracts["panel"], wave)

    geography = recode_geography(extracts["region"])
    volunteering = recode_volunteering(extracts["detailed"])
    caregiving = derive_caregiver_table(extracts["detailed"], panel)

    cohort = build_cohort(panel, extracts["tracker"], geography, volunteering, caregiving)
    cohort = derive_productive_indicators(cohort)

    attrition = summarize_attrition(panel, extracts["tracker"])

    return cohort, attrition


def run_analysis(
    cohort: pd.DataFrame,
    groupings: List[Grouping],
    indicators: List[Indicator],
    allow_gaps: Optional[bool] = None,
) -> List[ReportSection]:
    """
    Tabulate and compare every (grouping, indicator) pair.

    Returns:
        Report sections in grouping-major order
    """
    sections = []

    for grouping in groupings:
        for indicator in indicators:
            logger.info(f"Analysing {indicator.value} by {grouping.value}")
            sections.append(
                ReportSection(
                    grouping=grouping,
                    indicator=indicator,
                    tabulation=tabulate_indicator(cohort, grouping, indicator),
                    comparison=compare_rural_urban(cohort, grouping, indicator, allow_gaps=allow_gaps),
                )
            )

    return sections


def main():
    """Main pipeline orchestration"""

    parser = argparse.ArgumentParser(
        description="Rural Productive Aging Report - Pipeline Orchestration"
    )

    parser.add_argument(
        "--wave",
        type=int,
        help=f"Panel wave to analyse (default: {settings.WAVE})"
    )

    parser.add_argument(
        "--groupings",
        type=str,
        nargs="+",
        default=[g.value for g in Grouping],
        choices=[g.value for g in Grouping],
        help="Geographic groupings to tabulate (default: all)"
    )

    parser.add_argument(
        "--indicators",
        type=str,
        nargs="+",
        default=[i.value for i in Indicator],
        choices=[i.value for i in Indicator],
        help="Indicators to tabulate (default: all)"
    )

    parser.add_argument(
        "--allow-gaps",
        action="store_true",
        help="Report groups lacking a rural or urban stratum as gaps instead of failing"
    )

    parser.add_argument(
        "--no-export",
        action="store_true",
        help="Compute tables without writing report files"
    )

    parser.add_argument(
        "--latest-only",
        action="store_true",
        help="Only update the 'latest' report directory"
    )

    args = parser.parse_args()

    start_time = datetime.now()
    logger.info("=" * 60)
    logger.info("Rural Productive Aging Report - Pipeline Start")
    logger.info(f"Time: {start_time.isoformat()}")
    logger.info(f"Arguments: {vars(args)}")
    logger.info("=" * 60)

    wave = settings.WAVE if args.wave is None else args.wave
    try:
        prefix = core_prefix_for_wave(wave)
    except ValueError as e:
        logger.error(f"Invalid wave selection: {e}")
        sys.exit(1)
    set_log_context(wave=wave)
    logger.info(f"Analysing wave {wave} (core field prefix {prefix})")

    if not check_prerequisites():
        logger.error("Prerequisites check failed, exiting")
        sys.exit(1)

    try:
        set_log_context(stage="load")
        logger.info("STAGE 1: LOAD EXTRACTS")
        extracts = load_all_extracts(prefix=prefix)

        set_log_context(stage="cohort")
        logger.info("STAGE 2: COHORT AND INDICATORS")
        cohort, attrition = build_analysis_cohort(extracts, wave=wave)

        set_log_context(stage="analysis")
        logger.info("STAGE 3: TABULATION AND COMPARISON")
        sections = run_analysis(
            cohort,
            groupings=[Grouping(g) for g in args.groupings],
            indicators=[Indicator(i) for i in args.indicators],
            allow_gaps=True if args.allow_gaps else None,
        )

        if not args.no_export:
            set_log_context(stage="export")
            logger.info("STAGE 4: EXPORT")
            result = run_report_export(sections, attrition, versioned=not args.latest_only, wave=wave)
            logger.info(f"Export complete: {result['section_count']} sections, output: {result['latest_path']}")

        duration = (datetime.now() - start_time).total_seconds()
        logger.info("=" * 60)
        logger.info("PIPELINE COMPLETE")
        logger.info(f"Cohort size: {len(cohort)}")
        logger.info(f"Duration: {duration:.1f} seconds")
        logger.info("=" * 60)

        sys.exit(0)

    except ReportPipelineError as e:
        logger.error(f"Pipeline failed (field: {e.field}): {e}", extra={"stage": e.stage})
        sys.exit(1)

    except KeyboardInterrupt:
        logger.warning("Pipeline interrupted by user")
        sys.exit(130)

    except Exception as e:
        logger.error(f"Pipeline failed with unhandled exception: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
