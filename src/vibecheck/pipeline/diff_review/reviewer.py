"""Post-implementation review of an actual change against its scope contract."""

from __future__ import annotations

import logging
from pathlib import Path

from vibecheck.config import VibecheckConfig
from vibecheck.memory.routes import parse_routes_table
from vibecheck.memory.store import MemoryBank, today_iso
from vibecheck.pipeline.diff_review.contract import parse_scope_contract
from vibecheck.pipeline.diff_review.types import (
    ComplianceReport,
    Violation,
    WriteBackResult,
    WriteBackStatus,
)
from vibecheck.pipeline.pre_check.engine import normalize_path
from vibecheck.pipeline.pre_check.types import ScopeContract, Severity
from vibecheck.utils.text import contains_any, round_half_up, shorten, tokenize

logger = logging.getLogger(__name__)

COMPLIANCE_THRESHOLD = 70
DRIFT_THRESHOLD = 0.6
DRIFT_MIN_TOKEN_LENGTH = 4
ROUTE_REQUEST_TERMS: tuple[str, ...] = ("route", "endpoint", "api", "page")
APP_ROUTE_SUFFIXES: tuple[str, ...] = ("page.tsx", "page.jsx", "route.ts", "route.js")

RECOMMENDATIONS: tuple[tuple[str, str], ...] = (
    ("forbidden-file-modified", "Revert changes to forbidden files"),
    ("unapproved-change", "Review unapproved file changes; update the scope contract if justified"),
    ("unauthorized-new-file", "Review new files; remove them if not necessary"),
    ("file-deleted", "Confirm every deletion was intentional"),
    ("route-contract-violation", "Update routes.md if new routes are intentional"),
)


def is_route_file(path: str) -> bool:
    lowered = path.lower()
    if contains_any(lowered, ("route", "api/", "pages/")):
        return True
    return "app/" in lowered and lowered.endswith(APP_ROUTE_SUFFIXES)


def drift_ratio(request: str, summary: str) -> float:
    """Fraction of summary tokens (over 3 chars) that never appear in the request."""
    request_tokens = set(tokenize(request, DRIFT_MIN_TOKEN_LENGTH))
    summary_tokens = tokenize(summary, DRIFT_MIN_TOKEN_LENGTH)
    if not summary_tokens:
        return 0.0
    unseen = [token for token in summary_tokens if token not in request_tokens]
    return len(unseen) / len(summary_tokens)


def compliance_score(total_checks: int, failed_checks: int) -> int:
    if total_checks <= 0:
        return 100
    return max(0, round_half_up((total_checks - failed_checks) / total_checks * 100))


def _invalid_contract_report(errors: tuple[str, ...]) -> ComplianceReport:
    detail = "; ".join(errors)
    return ComplianceReport(
        compliant=False,
        score=0,
        summary="Could not parse scope contract. Ensure it is valid JSON from a pre-check call.",
        in_scope_changes=(),
        violations=(
            Violation(
                type="invalid-contract",
                file="",
                message=f"Scope contract is not valid JSON or missing required fields ({detail})",
                severity=Severity.CRITICAL,
            ),
        ),
        missing_changes=(),
        recommended_actions=("Re-run pre-check and provide its output as the scope contract",),
    )


def _normalized(files: list[str], root: Path | None) -> list[str]:
    return [path for path in (normalize_path(f, root) for f in files) if path]


def _read_routes(bank: MemoryBank | None) -> tuple[bool, list[str]]:
    """Return (routes document readable, known route labels)."""
    if bank is None or not bank.exists():
        return False, []
    text = bank.read(bank.doc("routes"))
    if text is None:
        return False, []
    return True, [entry.label() for entry in parse_routes_table(text)]


def classify_changes(
    contract: ScopeContract,
    changed: list[str],
    added: list[str],
    deleted: list[str],
) -> tuple[list[str], list[Violation]]:
    """Sort actual changes into in-scope entries and violations."""
    approved = set(contract.approved_files)
    forbidden = set(contract.forbidden_files)
    allowed_new = set(contract.allowed_new_files)

    in_scope: list[str] = []
    violations: list[Violation] = []

    for file in changed:
        if file in approved:
            in_scope.append(file)
        elif file in forbidden:
            violations.append(
                Violation("forbidden-file-modified", file, f"Modified forbidden file: {file}", Severity.CRITICAL)
            )
        else:
            violations.append(
                Violation("unapproved-change", file, f"Modified file not in scope contract: {file}", Severity.WARNING)
            )

    for file in added:
        if file in allowed_new:
            in_scope.append(f"(new) {file}")
        else:
            violations.append(
                Violation("unauthorized-new-file", file, f"Created file not pre-approved: {file}", Severity.WARNING)
            )

    for file in deleted:
        violations.append(
            Violation("file-deleted", file, f"Deleted file: {file}. Verify this was intentional.", Severity.WARNING)
        )

    return in_scope, violations


def route_violations(
    request: str,
    changed: list[str],
    added: list[str],
    known_routes: list[str],
) -> list[Violation]:
    """Flag route files touched when the original request never mentioned routes."""
    if contains_any(request.lower(), ROUTE_REQUEST_TERMS):
        return []
    message = "Route file modified/added without route-related request. Check routes.md contract."
    if known_routes:
        message += f" Known routes: {', '.join(known_routes[:5])}"
    return [
        Violation("route-contract-violation", file, message, Severity.WARNING)
        for file in [*changed, *added]
        if is_route_file(file)
    ]


def recommend(violations: list[Violation], missing: list[str]) -> list[str]:
    kinds = {v.type for v in violations}
    actions = [action for kind, action in RECOMMENDATIONS if kind in kinds]
    if missing:
        actions.append(f"Complete approved changes: {', '.join(missing)}")
    if "scope-drift" in kinds:
        actions.append("Review implementation for scope creep; remove additions not in the original request")
    if not actions:
        actions.append("Implementation looks good. Ship it!")
    return actions


def write_back(
    bank: MemoryBank,
    *,
    summary: str,
    files: list[str],
    score: int,
    today: str,
) -> WriteBackResult:
    """Record a compliant change in progress.md and activeContext.md.

    The three writes are independent; a failure part-way leaves earlier
    writes in place and is reported, not raised.
    """
    if not bank.exists():
        return WriteBackResult(WriteBackStatus.SKIPPED, detail="memory bank not initialized")

    short = shorten(summary, 100)
    try:
        bank.append(bank.doc("progress"), f"| {today} | {short} | {', '.join(files)} | {score}/100 |")
        bank.append(bank.doc("active_context"), f"\n- **{today}**: Completed: {short} (compliance: {score}/100)")
        bank.touch_active_context(today)
    except (OSError, UnicodeError) as exc:
        logger.warning("memory bank write-back failed: %s", exc)
        return WriteBackResult(WriteBackStatus.FAILED, error=str(exc))
    return WriteBackResult(WriteBackStatus.OK, detail=f"recorded {len(files)} file(s)")


def run_diff_review(
    scope_contract: str,
    changed_files: list[str],
    added_files: list[str] | None = None,
    deleted_files: list[str] | None = None,
    summary: str = "",
    project_root: Path | None = None,
    today: str | None = None,
    config: VibecheckConfig | None = None,
) -> ComplianceReport:
    """Compare the actual change with a serialized scope contract.

    A malformed contract short-circuits to a critical, non-compliant report
    without touching the filesystem.
    """
    parsed = parse_scope_contract(scope_contract)
    if parsed.contract is None:
        logger.debug("rejected scope contract: %s", "; ".join(parsed.errors))
        return _invalid_contract_report(parsed.errors)
    contract = parsed.contract

    config = config or VibecheckConfig()
    root = Path(project_root) if project_root is not None else None
    changed = _normalized(changed_files, root)
    added = _normalized(added_files or [], root)
    deleted = _normalized(deleted_files or [], root)

    bank = MemoryBank(root, config.memory) if root is not None else None
    routes_readable, known_routes = _read_routes(bank)

    in_scope, violations = classify_changes(contract, changed, added, deleted)
    if routes_readable:
        violations.extend(route_violations(contract.request_summary, changed, added, known_routes))

    touched = set(changed) | set(added)
    missing = [file for file in contract.approved_files if file not in touched]

    if drift_ratio(contract.request_summary, summary) > DRIFT_THRESHOLD:
        violations.append(
            Violation(
                "scope-drift",
                "",
                "Implementation summary introduces many concepts not in original request: possible scope drift",
                Severity.WARNING,
            )
        )

    total_checks = len(changed) + len(added) + len(deleted) + 1 + (1 if missing else 0)
    failed_checks = len(violations) + (1 if missing else 0)
    score = compliance_score(total_checks, failed_checks)
    compliant = not any(v.severity is Severity.CRITICAL for v in violations) and score >= COMPLIANCE_THRESHOLD

    if compliant and not violations:
        summary_text = "Implementation fully complies with scope contract."
    elif compliant:
        summary_text = f"Implementation is mostly compliant with {len(violations)} minor issue(s)."
    else:
        summary_text = f"Implementation has {len(violations)} violation(s) against the scope contract."

    result = WriteBackResult(WriteBackStatus.SKIPPED, detail="not compliant" if not compliant else "no project root")
    if compliant and bank is not None:
        result = write_back(bank, summary=summary, files=[*changed, *added], score=score, today=today or today_iso())

    return ComplianceReport(
        compliant=compliant,
        score=score,
        summary=summary_text,
        in_scope_changes=tuple(in_scope),
        violations=tuple(violations),
        missing_changes=tuple(missing),
        recommended_actions=tuple(recommend(violations, missing)),
        write_back=result,
    )
