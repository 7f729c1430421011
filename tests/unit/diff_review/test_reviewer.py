"""run_diff_review tests."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path

import pytest

from vibecheck.config import DEFAULT_DOCUMENTS, MemoryBankConfig, VibecheckConfig
from vibecheck.memory import MemoryBank, init_memory
from vibecheck.pipeline.diff_review import WriteBackStatus, run_diff_review
from vibecheck.pipeline.diff_review.reviewer import drift_ratio, is_route_file
from vibecheck.pipeline.pre_check import ScopeContract, Severity

TODAY = "2026-05-06"


@pytest.fixture
def contract_json() -> str:
    return ScopeContract(
        request_summary="add a login page",
        approved_files=("app/layout.tsx",),
        forbidden_files=("package.json",),
        allowed_new_files=("app/login/page.tsx",),
        complexity_rating="small",
    ).to_json()


def _types(report) -> list[str]:
    return [v.type for v in report.violations]


def test_fully_compliant_change(contract_json: str) -> None:
    report = run_diff_review(
        contract_json,
        ["app/layout.tsx"],
        added_files=["app/login/page.tsx"],
        summary="add a login page",
    )

    assert report.compliant is True
    assert report.score == 100
    assert report.summary == "Implementation fully complies with scope contract."
    assert report.in_scope_changes == ("app/layout.tsx", "(new) app/login/page.tsx")
    assert report.violations == ()
    assert report.missing_changes == ()
    assert report.recommended_actions == ("Implementation looks good. Ship it!",)
    assert report.write_back.status is WriteBackStatus.SKIPPED
    assert report.to_dict()["memoryBankUpdated"] is False


def test_forbidden_file_is_critical(contract_json: str) -> None:
    report = run_diff_review(contract_json, ["package.json"], summary="add a login page")

    assert _types(report) == ["forbidden-file-modified"]
    assert report.violations[0].severity is Severity.CRITICAL
    assert report.missing_changes == ("app/layout.tsx",)
    # 4 checks (1 changed + base + missing), 2 failed
    assert report.score == 50
    assert report.compliant is False
    assert report.summary == "Implementation has 1 violation(s) against the scope contract."
    assert report.recommended_actions == (
        "Revert changes to forbidden files",
        "Complete approved changes: app/layout.tsx",
    )


def test_mostly_compliant_with_warnings(contract_json: str) -> None:
    report = run_diff_review(
        contract_json,
        ["app/layout.tsx", "app/header.tsx"],
        added_files=["app/login/page.tsx"],
        summary="add a login page",
    )

    assert _types(report) == ["unapproved-change"]
    # 4 checks, 1 failed
    assert report.score == 75
    assert report.compliant is True
    assert report.summary == "Implementation is mostly compliant with 1 minor issue(s)."


def test_unauthorized_new_file_and_deletion(contract_json: str) -> None:
    report = run_diff_review(
        contract_json,
        ["app/layout.tsx"],
        added_files=["app/login/page.tsx", "lib/auth-helpers.ts"],
        deleted_files=["app/legacy.tsx"],
        summary="add a login page",
    )

    assert _types(report) == ["unauthorized-new-file", "file-deleted"]
    assert all(v.severity is Severity.WARNING for v in report.violations)
    assert "Review new files; remove them if not necessary" in report.recommended_actions
    assert "Confirm every deletion was intentional" in report.recommended_actions


def test_invalid_contract_scores_zero() -> None:
    report = run_diff_review("{oops", ["app/layout.tsx"], summary="x")

    assert report.compliant is False
    assert report.score == 0
    assert _types(report) == ["invalid-contract"]
    assert report.violations[0].severity is Severity.CRITICAL
    assert report.in_scope_changes == ()
    assert report.recommended_actions == ("Re-run pre-check and provide its output as the scope contract",)


def test_contract_missing_fields_is_invalid() -> None:
    report = run_diff_review('{"requestSummary": "x"}', [])
    assert _types(report) == ["invalid-contract"]


def test_scope_drift(contract_json: str) -> None:
    summary = "Implemented login page plus analytics dashboard, billing integration, newsletter signup"
    assert drift_ratio("add a login page", summary) == pytest.approx(0.8)

    report = run_diff_review(
        contract_json,
        ["app/layout.tsx"],
        added_files=["app/login/page.tsx"],
        summary=summary,
    )

    assert _types(report) == ["scope-drift"]
    assert report.violations[0].file == ""
    assert report.score == 67
    assert report.compliant is False
    assert any("scope creep" in action for action in report.recommended_actions)


def test_drift_ratio_edges() -> None:
    assert drift_ratio("anything", "") == 0.0
    assert drift_ratio("add a login page", "a an of") == 0.0
    # exactly 0.6 is not drift
    assert drift_ratio("alpha beta", "alpha beta gamma delta epsilon") == pytest.approx(0.6)


def test_is_route_file() -> None:
    assert is_route_file("src/routes/users.ts")
    assert is_route_file("pages/index.tsx")
    assert is_route_file("app/settings/page.tsx")
    assert not is_route_file("app/settings/layout.tsx")
    assert not is_route_file("lib/format.ts")


def test_paths_are_normalized_against_project_root(tmp_path: Path, contract_json: str) -> None:
    report = run_diff_review(
        contract_json,
        [str(tmp_path / "app" / "layout.tsx")],
        added_files=["./app/login/page.tsx"],
        summary="add a login page",
        project_root=tmp_path,
    )

    assert report.in_scope_changes == ("app/layout.tsx", "(new) app/login/page.tsx")
    assert report.compliant is True
    assert report.write_back.status is WriteBackStatus.SKIPPED


def test_write_back_records_progress(tmp_path: Path, contract_json: str) -> None:
    init_memory(tmp_path, today="2020-01-01")

    report = run_diff_review(
        contract_json,
        ["app/layout.tsx"],
        added_files=["app/login/page.tsx"],
        summary="add a login page",
        project_root=tmp_path,
        today=TODAY,
    )

    assert report.memory_bank_updated is True
    assert report.write_back.status is WriteBackStatus.OK
    bank = MemoryBank(tmp_path)
    progress = bank.read("progress.md")
    assert progress.endswith(f"| {TODAY} | add a login page | app/layout.tsx, app/login/page.tsx | 100/100 |\n")
    active = bank.read("activeContext.md")
    assert f"- **{TODAY}**: Completed: add a login page (compliance: 100/100)" in active
    assert f"**Last updated**: {TODAY}" in active


def test_no_write_back_when_not_compliant(tmp_path: Path, contract_json: str) -> None:
    init_memory(tmp_path, today=TODAY)
    before = MemoryBank(tmp_path).read("progress.md")

    report = run_diff_review(contract_json, ["package.json"], project_root=tmp_path, today=TODAY)

    assert report.compliant is False
    assert report.memory_bank_updated is False
    assert MemoryBank(tmp_path).read("progress.md") == before


def test_write_back_failure_keeps_verdict(tmp_path: Path, contract_json: str, monkeypatch) -> None:
    init_memory(tmp_path, today=TODAY)

    def fail(self, doc: str, text: str) -> None:
        raise PermissionError(f"read-only: {doc}")

    monkeypatch.setattr(MemoryBank, "append", fail)

    report = run_diff_review(
        contract_json,
        ["app/layout.tsx"],
        added_files=["app/login/page.tsx"],
        summary="add a login page",
        project_root=tmp_path,
        today=TODAY,
    )

    assert report.compliant is True
    assert report.score == 100
    assert report.write_back.status is WriteBackStatus.FAILED
    assert "read-only: progress.md" in report.write_back.error
    assert report.to_dict()["memoryBankUpdated"] is False


def test_route_cross_check_runs_when_routes_readable(tmp_path: Path) -> None:
    init_memory(tmp_path, today=TODAY)
    MemoryBank(tmp_path).write(
        "routes.md",
        "| Route | Method | Auth | Description |\n|---|---|---|---|\n| /users | GET | session | Users |\n",
    )
    contract = ScopeContract(request_summary="fix header colors", approved_files=("src/api/users.ts",)).to_json()

    report = run_diff_review(contract, ["src/api/users.ts"], summary="fix header colors", project_root=tmp_path)

    assert _types(report) == ["route-contract-violation"]
    assert "GET /users" in report.violations[0].message
    assert "Update routes.md if new routes are intentional" in report.recommended_actions


def test_route_cross_check_skipped_without_routes_document(tmp_path: Path) -> None:
    init_memory(tmp_path, today=TODAY)
    (tmp_path / "memory-bank" / "routes.md").unlink()
    contract = ScopeContract(request_summary="fix header colors", approved_files=("src/api/users.ts",)).to_json()

    report = run_diff_review(contract, ["src/api/users.ts"], summary="fix header colors", project_root=tmp_path)

    assert report.violations == ()


def test_score_is_clamped_at_zero(tmp_path: Path) -> None:
    init_memory(tmp_path, today=TODAY)
    contract = ScopeContract(request_summary="fix header colors", approved_files=()).to_json()

    report = run_diff_review(
        contract,
        ["src/api/x.ts"],
        summary="implemented analytics dashboard billing integration",
        project_root=tmp_path,
    )

    # 2 checks (1 changed + base), 3 failed
    assert _types(report) == ["unapproved-change", "route-contract-violation", "scope-drift"]
    assert report.score == 0
    assert isinstance(report.score, int)
    assert report.compliant is False


def test_invalid_contract_leaves_memory_bank_untouched(tmp_path: Path) -> None:
    init_memory(tmp_path, today="2020-01-01")
    bank_dir = tmp_path / "memory-bank"
    before = {path.name: path.read_bytes() for path in bank_dir.iterdir() if path.is_file()}

    report = run_diff_review(
        '{"approvedFiles": ["app/layout.tsx"]}',
        ["app/layout.tsx"],
        summary="add a login page",
        project_root=tmp_path,
        today=TODAY,
    )

    assert _types(report) == ["invalid-contract"]
    assert report.memory_bank_updated is False
    after = {path.name: path.read_bytes() for path in bank_dir.iterdir() if path.is_file()}
    assert after == before


def test_undecodable_progress_log_is_not_overwritten(tmp_path: Path, contract_json: str) -> None:
    init_memory(tmp_path, today="2020-01-01")
    progress = tmp_path / "memory-bank" / "progress.md"
    raw = b"# Progress Log\n| 2020 | caf\xe9 | x | 90/100 |\n"
    progress.write_bytes(raw)
    active_before = (tmp_path / "memory-bank" / "activeContext.md").read_bytes()

    report = run_diff_review(
        contract_json,
        ["app/layout.tsx"],
        added_files=["app/login/page.tsx"],
        summary="add a login page",
        project_root=tmp_path,
        today=TODAY,
    )

    assert report.compliant is True
    assert report.write_back.status is WriteBackStatus.FAILED
    assert report.to_dict()["memoryBankUpdated"] is False
    assert progress.read_bytes() == raw
    assert (tmp_path / "memory-bank" / "activeContext.md").read_bytes() == active_before


def test_contract_paths_match_normalized_changes() -> None:
    contract = ScopeContract(
        request_summary="add a login page",
        approved_files=("./app/layout.tsx",),
        allowed_new_files=("app\\login\\page.tsx",),
    ).to_json()

    report = run_diff_review(
        contract,
        ["app/layout.tsx", "."],
        added_files=["app/login/page.tsx"],
        summary="add a login page",
    )

    assert report.violations == ()
    assert report.missing_changes == ()
    assert report.in_scope_changes == ("app/layout.tsx", "(new) app/login/page.tsx")
    assert report.score == 100


def test_write_back_uses_configured_document_names(tmp_path: Path, contract_json: str) -> None:
    renames = {"progress": "history.md", "active_context": "now.md"}
    documents = tuple((role, renames.get(role, name)) for role, name in DEFAULT_DOCUMENTS)
    config = VibecheckConfig(memory=replace(MemoryBankConfig(), documents=documents))
    init_memory(tmp_path, config=config.memory, today="2020-01-01")

    report = run_diff_review(
        contract_json,
        ["app/layout.tsx"],
        added_files=["app/login/page.tsx"],
        summary="add a login page",
        project_root=tmp_path,
        today=TODAY,
        config=config,
    )

    assert report.write_back.status is WriteBackStatus.OK
    bank_dir = tmp_path / "memory-bank"
    assert "| 100/100 |" in (bank_dir / "history.md").read_text(encoding="utf-8")
    assert f"**Last updated**: {TODAY}" in (bank_dir / "now.md").read_text(encoding="utf-8")
    assert not (bank_dir / "progress.md").exists()
