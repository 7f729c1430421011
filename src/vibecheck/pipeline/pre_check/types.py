"""Pre-check types: red flags, plan checks, and the scope contract."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Severity(str, Enum):
    WARNING = "warning"
    CRITICAL = "critical"


class ComplexityRating(str, Enum):
    """Size class of a proposed change, by number of files touched."""

    TRIVIAL = "trivial"
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"
    EXCESSIVE = "excessive"


@dataclass(frozen=True)
class RedFlag:
    """Static, path-pattern warning about a proposed file touch."""

    type: str
    message: str
    severity: Severity

    def to_dict(self) -> dict[str, str]:
        return {"type": self.type, "message": self.message, "severity": self.severity.value}


@dataclass(frozen=True)
class CheckResult:
    """Outcome of one plan-quality check."""

    id: str
    category: str
    description: str
    passed: bool
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "category": self.category,
            "description": self.description,
            "passed": self.passed,
            "message": self.message,
        }


@dataclass(frozen=True)
class ScopeContract:
    """Files and limits approved before implementation.

    Invariants: approved and forbidden files are disjoint and existed when the
    project was scanned; allowed new files did not.
    """

    request_summary: str
    approved_files: tuple[str, ...] = ()
    forbidden_files: tuple[str, ...] = ()
    allowed_new_files: tuple[str, ...] = ()
    complexity_rating: str = ComplexityRating.TRIVIAL.value
    red_flags: tuple[dict[str, Any], ...] = ()
    project_snapshot: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "requestSummary": self.request_summary,
            "approvedFiles": list(self.approved_files),
            "forbiddenFiles": list(self.forbidden_files),
            "allowedNewFiles": list(self.allowed_new_files),
            "complexityRating": self.complexity_rating,
            "redFlags": [dict(flag) for flag in self.red_flags],
            "projectSnapshot": dict(self.project_snapshot),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)


@dataclass(frozen=True)
class MemorySummary:
    """Compact memory-bank excerpt returned alongside a pre-check."""

    exists: bool
    project_brief: str | None = None
    tech_stack: str | None = None
    known_routes: tuple[str, ...] = ()
    active_scope: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "exists": self.exists,
            "projectBrief": self.project_brief,
            "techStack": self.tech_stack,
            "knownRoutes": list(self.known_routes),
            "activeScope": self.active_scope,
        }


@dataclass(frozen=True)
class PreCheckReport:
    """Scope contract plus plan checks and the overall verdict."""

    contract: ScopeContract
    red_flags: tuple[RedFlag, ...]
    checks: tuple[CheckResult, ...]
    score: int
    passed: bool
    recommendation: str
    memory: MemorySummary

    def to_dict(self) -> dict[str, Any]:
        """Flat payload: contract fields first, then the report fields."""
        data = self.contract.to_dict()
        data.update(
            {
                "checks": [check.to_dict() for check in self.checks],
                "score": self.score,
                "passed": self.passed,
                "recommendation": self.recommendation,
                "memoryBank": self.memory.to_dict(),
            }
        )
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)
