"""Red-flag rule and complexity rating tests."""

from __future__ import annotations

import pytest

from vibecheck.pipeline.pre_check import ComplexityRating, Severity
from vibecheck.pipeline.pre_check.rules import detect_red_flags, rate_complexity


@pytest.mark.parametrize(
    ("count", "expected"),
    [
        (0, ComplexityRating.TRIVIAL),
        (1, ComplexityRating.SMALL),
        (2, ComplexityRating.SMALL),
        (3, ComplexityRating.MEDIUM),
        (5, ComplexityRating.MEDIUM),
        (6, ComplexityRating.LARGE),
        (10, ComplexityRating.LARGE),
        (11, ComplexityRating.EXCESSIVE),
    ],
)
def test_rate_complexity(count: int, expected: ComplexityRating) -> None:
    assert rate_complexity(count) is expected


def _types(flags) -> list[str]:
    return [flag.type for flag in flags]


def test_package_json_without_dependency_request() -> None:
    flags = detect_red_flags(["package.json"], [], "add a login page")
    assert _types(flags) == ["config-change", "unrequested-dependency"]
    assert all(flag.severity is Severity.WARNING for flag in flags)


def test_package_json_with_dependency_request() -> None:
    flags = detect_red_flags(["package.json"], [], "install zod for form validation")
    assert _types(flags) == ["config-change"]


def test_python_manifest_counts_as_dependency_change() -> None:
    flags = detect_red_flags(["requirements.txt"], [], "fix the signup form")
    assert "unrequested-dependency" in _types(flags)


def test_ci_and_migration_are_critical() -> None:
    flags = detect_red_flags(
        [".github/workflows/deploy.yml", "prisma/migrations/002_users.sql"],
        [],
        "ship it",
    )
    by_type = {flag.type: flag for flag in flags}
    assert by_type["ci-change"].severity is Severity.CRITICAL
    assert by_type["migration"].severity is Severity.CRITICAL
    # the dotted directory also reads as config
    assert "config-change" in by_type


def test_unrequested_route() -> None:
    flags = detect_red_flags(["src/api/users.ts"], [], "tweak the header color")
    assert _types(flags) == ["unrequested-route"]
    assert "src/api/users.ts" in flags[0].message

    assert detect_red_flags(["src/api/users.ts"], [], "add a users api endpoint") == []


def test_too_many_new_files() -> None:
    new = [f"src/feature/part{i}.ts" for i in range(4)]
    flags = detect_red_flags(new, new, "add feature")
    assert _types(flags) == ["too-many-new-files"]
    assert "4 new files" in flags[0].message

    assert detect_red_flags(new[:3], new[:3], "add feature") == []


def test_route_contract_violation_needs_known_routes() -> None:
    proposed = ["app/settings/page.tsx"]
    assert detect_red_flags(proposed, [], "change the color scheme") == []

    flags = detect_red_flags(proposed, [], "change the color scheme", ["GET /", "GET /login"])
    assert _types(flags) == ["route-contract-violation"]
    assert "GET /, GET /login" in flags[0].message


def test_route_contract_violation_skipped_when_request_mentions_page() -> None:
    flags = detect_red_flags(["app/settings/page.tsx"], [], "add a settings page", ["GET /"])
    assert flags == []
