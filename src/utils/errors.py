"""
Rural Productive Aging Report - Pipeline Errors

Structural failures abort the run. Data-quality problems (unmapped codes,
missing indicators) are not errors: they become <NA> and are excluded
downstream.
"""

from typing import Iterable, Optional


class ReportPipelineError(Exception):
    """Base error for structural pipeline failures"""

    def __init__(self, message: str, stage: str, field: Optional[str] = None):
        self.stage = stage
        self.field = field
        super().__init__(f"[{stage}] {message}")


class MissingColumnError(ReportPipelineError):
    """Required source column absent from an input extract"""

    def __init__(self, stage: str, missing: Iterable[str], source: str):
        self.missing = sorted(missing)
        self.source = source
        super().__init__(
            f"Required column(s) {', '.join(self.missing)} not found in {source}",
            stage=stage,
            field=self.missing[0] if self.missing else None,
        )


class JoinKeyCollisionError(ReportPipelineError):
    """Respondent key is not unique where it must be"""

    def __init__(self, stage: str, field: str, duplicates: int, examples: Iterable = ()):
        self.duplicates = duplicates
        self.examples = list(examples)
        detail = f" (e.g. {self.examples[:3]})" if self.examples else ""
        super().__init__(
            f"{duplicates} duplicated respondent key(s) in {field}{detail}",
            stage=stage,
            field=field,
        )


class InsufficientStrataError(ReportPipelineError):
    """Group lacks respondents in the Rural or Urban stratum"""

    def __init__(self, field: str, group: str, missing: str):
        self.group = group
        self.missing = missing
        super().__init__(
            f"Group '{group}' has no {missing} respondents; cannot compare",
            stage="comparison",
            field=field,
        )
