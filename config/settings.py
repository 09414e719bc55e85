"""
Rural Productive Aging Report - Application Settings
Manages environment variables and configuration using Pydantic
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from typing import Optional
import os


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Required (checked before the pipeline runs):
        - RAND_LONG_PATH (long-format panel extract)
        - TRACKER_PATH (tracker extract)
        - REGION_PATH (region / urbanicity extract)
        - DETAILED_SURVEY_PATH (detailed core survey extract)
    """

    # Input extracts
    RAND_LONG_PATH: Optional[str] = None
    TRACKER_PATH: Optional[str] = None
    REGION_PATH: Optional[str] = None
    DETAILED_SURVEY_PATH: Optional[str] = None

    # Analysis wave (2020 core = wave 15, field prefix "R")
    WAVE: int = 15
    # Optional override; must agree with WAVE_PREFIXES for the wave analysed
    CORE_PREFIX: Optional[str] = None

    # Eligibility
    MIN_AGE: int = 65

    # Emit explicit gap rows instead of failing on untestable groups
    ALLOW_STRATA_GAPS: bool = False

    # Application
    ENVIRONMENT: str = "production"
    LOG_LEVEL: str = "INFO"

    # File storage
    EXPORT_DIR: str = "exports"
    LOG_DIR: str = "logs"

    REPORT_TITLE: str = "Productive Activity Among Rural and Urban Older Adults"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True
    )

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        # Create directories if they don't exist
        os.makedirs(self.EXPORT_DIR, exist_ok=True)
        if self.LOG_DIR:
            os.makedirs(self.LOG_DIR, exist_ok=True)


@lru_cache()
def get_settings() -> Settings:
    """
    Returns cached settings instance.
    Uses lru_cache to avoid re-reading .env on every call.
    """
    return Settings()


# HRS core-interview field prefix by panel wave (wave 15 = 2020 = "R")
WAVE_PREFIXES = {
    9: "L",
    10: "M",
    11: "N",
    12: "O",
    13: "P",
    14: "Q",
    15: "R",
    16: "S",
}


def core_prefix_for_wave(wave: int) -> str:
    """
    Field prefix used by the tracker, region and core extracts for a wave.

    Raises:
        ValueError: If the wave has no known prefix, or CORE_PREFIX is set
            to a different wave's prefix
    """
    expected = WAVE_PREFIXES.get(wave)
    if expected is None:
        raise ValueError(f"No core field prefix known for wave {wave}")

    override = get_settings().CORE_PREFIX
    if override and override != expected:
        raise ValueError(f"CORE_PREFIX={override} does not match wave {wave} (expected {expected})")

    return expected


# Tracker nursing home status codes counted as community-dwelling
# (3 = moved out of nursing home, 5 = not in nursing home, 6 = not asked / community)
COMMUNITY_DWELLING_CODES = frozenset({3, 5, 6})

# Helper relationship code for "spouse or partner"
SPOUSE_HELPER_CODE = 2

# Yes/no survey items
AFFIRMATIVE_CODE = 1
NEGATIVE_CODES = frozenset({5, 8, 9})  # No, don't know, refused

# RAND work-for-pay flag
WORKING_CODE = 1
NOT_WORKING_CODES = frozenset({0})

# Urbanicity (Beale rural-urban continuum collapsed in the region file)
RURALITY_CODES = {
    1: "Urban",  # Urban
    2: "Urban",  # Suburban
    3: "Rural",  # Ex-urban
}

# Census divisions
DIVISION_CODES = {
    1: "new_england",
    2: "middle_atlantic",
    3: "east_north_central",
    4: "west_north_central",
    5: "south_atlantic",
    6: "east_south_central",
    7: "south_west_south",
    8: "mountain",
    9: "pacific",
}

# Census regions keyed on division code. Division 7 has no region entry.
REGION_BY_DIVISION = {
    1: "northeast",
    2: "northeast",
    3: "midwest",
    4: "midwest",
    5: "south",
    6: "south",
    8: "west",
    9: "west",
}
