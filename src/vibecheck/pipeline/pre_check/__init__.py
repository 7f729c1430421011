"""Pre-implementation scope check."""

from vibecheck.pipeline.pre_check.engine import normalize_path, run_pre_check
from vibecheck.pipeline.pre_check.types import (
    CheckResult,
    ComplexityRating,
    PreCheckReport,
    RedFlag,
    ScopeContract,
    Severity,
)

__all__ = [
    "CheckResult",
    "ComplexityRating",
    "PreCheckReport",
    "RedFlag",
    "ScopeContract",
    "Severity",
    "normalize_path",
    "run_pre_check",
]
