"""Plan-quality check tests."""

from __future__ import annotations

from vibecheck.pipeline.pre_check.checks import PLAN_CHECKS, PlanContext, anti_pattern_lines, run_plan_checks

CHECK_IDS = [
    "scope-alignment",
    "no-unrequested-files",
    "no-unrequested-refactoring",
    "simplest-approach",
    "no-unnecessary-abstractions",
    "no-unnecessary-dependencies",
    "no-duplication",
    "preserves-existing-functionality",
    "mentions-tests",
    "follows-conventions",
    "active-scope-alignment",
]


def _run(request: str, plan: str, **kwargs) -> dict[str, bool]:
    results = run_plan_checks(PlanContext(request=request, plan=plan, **kwargs))
    return {result.id: result.passed for result in results}


def _failed(request: str, plan: str, **kwargs) -> list[str]:
    return [check_id for check_id, passed in _run(request, plan, **kwargs).items() if not passed]


def test_check_table_order() -> None:
    assert [check.id for check in PLAN_CHECKS] == CHECK_IDS


def test_clean_plan_passes_everything() -> None:
    results = _run("add a login page", "Add a login form component on the login page and test it.")
    assert list(results) == CHECK_IDS
    assert all(results.values())


def test_scope_expansion_word_not_in_request() -> None:
    assert _failed("fix the typo", "Fix the typo and optimize the header") == ["scope-alignment"]
    assert _failed("optimize the header", "optimize the header") == []


def test_unrequested_files() -> None:
    assert "no-unrequested-files" in _failed("fix the typo", "create new module for typography")
    assert "no-unrequested-files" not in _failed("add typography", "create new module for typography")


def test_unrequested_refactoring() -> None:
    failed = _failed("fix login bug", "Fix the bug and rename the session helpers")
    assert "no-unrequested-refactoring" in failed
    assert _failed("rename the session helpers", "rename the session helpers") == []


def test_over_engineering_and_abstractions() -> None:
    failed = _failed("add logging", "add logging through an event bus with a base class for sinks")
    assert "simplest-approach" in failed
    assert "no-unnecessary-abstractions" in failed


def test_dependencies_duplication_and_breaking_changes() -> None:
    failed = _failed(
        "add date formatting",
        "pip install arrow, write our own parser, and drop support for python 3.8",
    )
    assert "no-unnecessary-dependencies" in failed
    assert "no-duplication" in failed
    assert "preserves-existing-functionality" in failed


def test_mentions_tests_only_when_project_has_tests() -> None:
    assert "mentions-tests" not in _failed("add a button", "add a button", has_tests=False)
    assert "mentions-tests" in _failed("add a button", "add a button", has_tests=True)
    assert "mentions-tests" not in _failed("add a button", "add a button and verify it", has_tests=True)


SYSTEM_PATTERNS = """# System Patterns

## Code conventions

- Components live in components/

## Anti-patterns

- Never fetch data inside client components
- [placeholder line]
- ok

## Other
- Avoid global state stores
"""


def test_anti_pattern_lines() -> None:
    assert anti_pattern_lines(SYSTEM_PATTERNS) == ["Never fetch data inside client components"]
    assert anti_pattern_lines("# Nothing here\n") is None


def test_follows_conventions_uses_documented_anti_patterns() -> None:
    failed = _failed(
        "show orders",
        "fetch orders in the client component",
        system_patterns=SYSTEM_PATTERNS,
    )
    assert "follows-conventions" in failed

    passing = _failed("show orders", "render orders on the server", system_patterns=SYSTEM_PATTERNS)
    assert "follows-conventions" not in passing


def test_follows_conventions_falls_back_to_framework() -> None:
    failed = _failed("add a page", "add a page served by a custom server", framework="Next.js")
    assert "follows-conventions" in failed

    placeholder_only = "## Anti-patterns\n\n[Things explicitly avoided]\n"
    failed = _failed(
        "add a page",
        "add a page served by a custom server",
        framework="Next.js",
        system_patterns=placeholder_only,
    )
    assert "follows-conventions" in failed


def test_active_scope_alignment_is_advisory() -> None:
    results = run_plan_checks(
        PlanContext(request="x", plan="x", active_context="# Active\n\n## Current scope\n\nbilling\n")
    )
    scope = next(result for result in results if result.id == "active-scope-alignment")
    assert scope.passed is True
    assert "verify" in scope.message
