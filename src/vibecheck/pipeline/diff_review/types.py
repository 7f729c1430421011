"""Diff review types."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from vibecheck.pipeline.pre_check.types import ScopeContract, Severity


@dataclass(frozen=True)
class Violation:
    """Post-hoc finding that an actual change deviated from the contract."""

    type: str  # forbidden-file-modified, unapproved-change, scope-drift, etc.
    file: str
    message: str
    severity: Severity

    def to_dict(self) -> dict[str, str]:
        return {
            "type": self.type,
            "file": self.file,
            "message": self.message,
            "severity": self.severity.value,
        }


@dataclass(frozen=True)
class ContractParseResult:
    """Either a validated contract or the reasons it was rejected."""

    contract: ScopeContract | None
    errors: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return self.contract is not None


class WriteBackStatus(str, Enum):
    OK = "ok"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class WriteBackResult:
    """Outcome of the best-effort memory-bank update after a review."""

    status: WriteBackStatus
    detail: str = ""
    error: str | None = None

    @property
    def updated(self) -> bool:
        return self.status is WriteBackStatus.OK


@dataclass(frozen=True)
class ComplianceReport:
    """Verdict of comparing the actual change with its scope contract."""

    compliant: bool
    score: int
    summary: str
    in_scope_changes: tuple[str, ...]
    violations: tuple[Violation, ...]
    missing_changes: tuple[str, ...]
    recommended_actions: tuple[str, ...]
    write_back: WriteBackResult = field(default_factory=lambda: WriteBackResult(WriteBackStatus.SKIPPED))

    @property
    def memory_bank_updated(self) -> bool:
        return self.write_back.updated

    def to_dict(self) -> dict[str, Any]:
        return {
            "compliant": self.compliant,
            "score": self.score,
            "summary": self.summary,
            "inScopeChanges": list(self.in_scope_changes),
            "violations": [v.to_dict() for v in self.violations],
            "missingChanges": list(self.missing_changes),
            "recommendedActions": list(self.recommended_actions),
            "memoryBankUpdated": self.memory_bank_updated,
        }
