"""Post-implementation compliance review."""

from vibecheck.pipeline.diff_review.contract import parse_scope_contract
from vibecheck.pipeline.diff_review.reviewer import run_diff_review
from vibecheck.pipeline.diff_review.types import (
    ComplianceReport,
    ContractParseResult,
    Violation,
    WriteBackResult,
    WriteBackStatus,
)

__all__ = [
    "ComplianceReport",
    "ContractParseResult",
    "Violation",
    "WriteBackResult",
    "WriteBackStatus",
    "parse_scope_contract",
    "run_diff_review",
]
