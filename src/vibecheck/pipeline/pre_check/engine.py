"""Pre-implementation check: issue a scope contract for a proposed change."""

from __future__ import annotations

import logging
import posixpath
from pathlib import Path, PurePosixPath

from vibecheck.config import VibecheckConfig
from vibecheck.memory.routes import parse_routes_table
from vibecheck.memory.store import MemoryBank
from vibecheck.memory.types import MemoryBankContext
from vibecheck.pipeline.pre_check.checks import PlanContext, run_plan_checks
from vibecheck.pipeline.pre_check.rules import detect_red_flags, rate_complexity
from vibecheck.pipeline.pre_check.types import (
    CheckResult,
    MemorySummary,
    PreCheckReport,
    RedFlag,
    ScopeContract,
    Severity,
)
from vibecheck.scanner.types import FileCategory
from vibecheck.scanner.walker import scan_project
from vibecheck.utils.text import excerpt, round_half_up

logger = logging.getLogger(__name__)

PROTECTED_CATEGORIES: frozenset[FileCategory] = frozenset({FileCategory.CONFIG, FileCategory.MIGRATION})
RED_FLAG_PENALTY = 15
FILE_SCORE_WEIGHT = 0.4
CHECK_SCORE_WEIGHT = 0.6
PROCEED_SCORE = 90


def normalize_path(path: str, project_root: Path | None = None) -> str:
    """Express ``path`` relative to the project root with forward slashes.

    ``.`` and ``..`` segments are collapsed. The root itself, and blank input,
    normalize to ``""``.
    """
    cleaned = path.strip().replace("\\", "/")
    if not cleaned:
        return ""
    cleaned = posixpath.normpath(cleaned)
    if project_root is not None and PurePosixPath(cleaned).is_absolute():
        for root in (Path(project_root), Path(project_root).resolve()):
            try:
                cleaned = PurePosixPath(cleaned).relative_to(root.as_posix()).as_posix()
                break
            except ValueError:
                continue
    return "" if cleaned == "." else cleaned


def _dedupe(items: list[str]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for item in items:
        if item and item not in seen:
            seen.add(item)
            out.append(item)
    return out


def partition_files(
    proposed: list[str],
    categories: dict[str, FileCategory],
) -> tuple[list[str], list[str], list[str]]:
    """Split proposed files into (approved, forbidden, new).

    Existing config and migration files are forbidden, other existing files are
    approved, and anything not on disk is a new file.
    """
    approved: list[str] = []
    forbidden: list[str] = []
    new: list[str] = []
    for file in proposed:
        category = categories.get(file)
        if category is None:
            new.append(file)
        elif category in PROTECTED_CATEGORIES:
            forbidden.append(file)
        else:
            approved.append(file)
    return approved, forbidden, new


def file_score(red_flags: list[RedFlag]) -> int:
    return max(0, 100 - len(red_flags) * RED_FLAG_PENALTY)


def combined_score(red_flags: list[RedFlag], checks: list[CheckResult], has_files: bool) -> int:
    """Blend the file score and the plan-check pass ratio into 0..100."""
    if not checks:
        return file_score(red_flags)
    check_score = round_half_up(sum(1 for c in checks if c.passed) / len(checks) * 100)
    if not has_files:
        return check_score
    return round_half_up(file_score(red_flags) * FILE_SCORE_WEIGHT + check_score * CHECK_SCORE_WEIGHT)


def build_recommendation(passed: bool, score: int, red_flags: list[RedFlag], checks: list[CheckResult]) -> str:
    if passed and score >= PROCEED_SCORE:
        return "Proceed with implementation."
    if passed:
        return "Minor concerns noted. Review red flags before proceeding: " + "; ".join(f.message for f in red_flags)

    issues = [f.message for f in red_flags if f.severity is Severity.CRITICAL]
    issues.extend(c.message for c in checks if not c.passed)
    return "Address before proceeding: " + "; ".join(issues)


def summarize_memory(ctx: MemoryBankContext, excerpt_length: int) -> tuple[MemorySummary, list[str]]:
    """Compact memory summary plus the ``METHOD route`` labels of known routes."""
    if not ctx.exists:
        return MemorySummary(exists=False), []
    known_routes = [entry.label() for entry in parse_routes_table(ctx.routes)] if ctx.routes else []
    summary = MemorySummary(
        exists=True,
        project_brief=excerpt(ctx.project_brief, excerpt_length),
        tech_stack=excerpt(ctx.tech_context, excerpt_length),
        known_routes=tuple(known_routes),
        active_scope=excerpt(ctx.active_context, excerpt_length),
    )
    return summary, known_routes


def run_pre_check(
    request: str,
    project_root: Path,
    proposed_files: list[str] | None = None,
    proposed_changes: str | None = None,
    config: VibecheckConfig | None = None,
) -> PreCheckReport:
    """Scan the project, read memory, and issue a scope contract.

    Args:
        request: The caller's original request, copied verbatim into the contract
        project_root: Project root directory
        proposed_files: Files the agent plans to touch (relative or absolute)
        proposed_changes: Free-text plan; enables the plan-quality checks

    Returns:
        PreCheckReport holding the contract, checks, score and verdict
    """
    config = config or VibecheckConfig()
    project_root = Path(project_root)

    snapshot = scan_project(project_root, config.scan)
    memory_ctx = MemoryBank(project_root, config.memory).context()
    memory_summary, known_routes = summarize_memory(memory_ctx, config.memory.excerpt_length)

    proposed = _dedupe([normalize_path(f, project_root) for f in proposed_files or []])
    categories = {info.relative_path: info.category for info in snapshot.files}
    approved, forbidden, new = partition_files(proposed, categories)

    red_flags = detect_red_flags(proposed, new, request, known_routes)
    complexity = rate_complexity(len(proposed))

    checks: list[CheckResult] = []
    if proposed_changes:
        checks = run_plan_checks(
            PlanContext(
                request=request,
                plan=proposed_changes,
                has_tests=snapshot.has_tests,
                framework=snapshot.framework,
                system_patterns=memory_ctx.system_patterns,
                active_context=memory_ctx.active_context,
            )
        )

    has_critical = any(flag.severity is Severity.CRITICAL for flag in red_flags)
    passed = not has_critical and all(check.passed for check in checks)
    score = combined_score(red_flags, checks, bool(proposed))

    contract = ScopeContract(
        request_summary=request,
        approved_files=tuple(approved),
        forbidden_files=tuple(forbidden),
        allowed_new_files=tuple(new),
        complexity_rating=complexity.value,
        red_flags=tuple(flag.to_dict() for flag in red_flags),
        project_snapshot=snapshot.summary(),
    )
    logger.debug(
        "pre-check: %d approved, %d forbidden, %d new, %d red flags, score %d",
        len(approved),
        len(forbidden),
        len(new),
        len(red_flags),
        score,
    )

    return PreCheckReport(
        contract=contract,
        red_flags=tuple(red_flags),
        checks=tuple(checks),
        score=score,
        passed=passed,
        recommendation=build_recommendation(passed, score, red_flags, checks),
        memory=memory_summary,
    )
