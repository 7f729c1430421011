"""Plan-quality checks run against the free-text description of a change.

Each check compares the request with the plan (or scans the plan for marker
vocabulary) and is independent of every other check.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass

from vibecheck.pipeline.pre_check.types import CheckResult
from vibecheck.utils.text import contains_any, tokenize


@dataclass(frozen=True)
class PlanContext:
    """Inputs shared by all plan checks."""

    request: str
    plan: str
    has_tests: bool = False
    framework: str | None = None
    system_patterns: str | None = None
    active_context: str | None = None

    @property
    def request_lower(self) -> str:
        return self.request.lower()

    @property
    def plan_lower(self) -> str:
        return self.plan.lower()


Verdict = tuple[bool, str]


@dataclass(frozen=True)
class PlanCheck:
    id: str
    category: str
    description: str
    evaluate: Callable[[PlanContext], Verdict]

    def run(self, ctx: PlanContext) -> CheckResult:
        passed, message = self.evaluate(ctx)
        return CheckResult(
            id=self.id,
            category=self.category,
            description=self.description,
            passed=passed,
            message=message,
        )


SCOPE_EXPANSION_TERMS = ("refactor", "restructure", "reorganize", "migrate", "upgrade", "rewrite", "optimize", "redesign")
NEW_FILE_MARKERS = ("create new", "add new file", "new component", "new module", "new service")
NEW_FILE_REQUEST_TERMS = ("create", "add", "new")
REFACTOR_TERMS = ("refactor", "clean up", "reorganize", "rename", "restructure")
OVER_ENGINEERING_TERMS = (
    "factory",
    "abstract",
    "decorator",
    "observer pattern",
    "strategy pattern",
    "dependency injection",
    "service locator",
    "event bus",
    "pub/sub",
    "message queue",
    "microservice",
)
ABSTRACTION_TERMS = (
    "base class",
    "abstract class",
    "generic wrapper",
    "utility class",
    "helper class",
    "manager class",
    "handler class",
    "provider pattern",
    "higher-order",
)
DEPENDENCY_TERMS = ("install", "npm add", "pip install", "poetry add", "new dependency", "new package")
DUPLICATION_TERMS = (
    "similar to existing",
    "copy of",
    "duplicate",
    "re-implement",
    "reimplement",
    "write our own",
    "custom implementation of",
)
BREAKING_TERMS = (
    "remove existing",
    "delete existing",
    "replace all",
    "completely rewrite",
    "start from scratch",
    "breaking change",
    "remove backward",
    "drop support",
)
TEST_TERMS = ("test", "spec", "verify")

FRAMEWORK_ANTI_PATTERNS: dict[str, tuple[str, ...]] = {
    "Next.js": ("express server", "custom server", "webpack config"),
    "React": ("direct dom manipulation", "document.getelementby"),
    "Angular": ("jquery", "direct dom"),
    "Vue": ("react component", "jsx"),
    "Django": ("raw sql", "flask"),
    "FastAPI": ("flask", "synchronous requests"),
}

_ANTI_PATTERN_SECTION = re.compile(r"^##\s*anti[- ]?patterns\b[^\n]*$(.*?)(?=^##|\Z)", re.IGNORECASE | re.MULTILINE | re.DOTALL)
_BULLET = re.compile(r"^\s*(?:[-*+]|\d+\.)\s*")
_SCOPE_SECTION = re.compile(r"^##\s*current (?:scope|priorities)\b", re.IGNORECASE | re.MULTILINE)


def _found(text: str, terms: tuple[str, ...]) -> list[str]:
    return [term for term in terms if term in text]


def _scope_alignment(ctx: PlanContext) -> Verdict:
    request_tokens = set(tokenize(ctx.request))
    plan_tokens = set(tokenize(ctx.plan))
    expansions = [term for term in SCOPE_EXPANSION_TERMS if term in plan_tokens and term not in request_tokens]
    if expansions:
        return False, f"Proposed changes introduce unrequested scope: {', '.join(expansions)}"
    return True, "Changes appear aligned with request scope"


def _no_unrequested_files(ctx: PlanContext) -> Verdict:
    if contains_any(ctx.plan_lower, NEW_FILE_MARKERS) and not contains_any(ctx.request_lower, NEW_FILE_REQUEST_TERMS):
        return False, "Plan creates new files not explicitly requested"
    return True, "No unrequested file creation detected"


def _no_unrequested_refactoring(ctx: PlanContext) -> Verdict:
    if contains_any(ctx.plan_lower, REFACTOR_TERMS) and not contains_any(ctx.request_lower, REFACTOR_TERMS):
        return False, "Plan includes refactoring that was not requested"
    return True, "No unrequested refactoring detected"


def _simplest_approach(ctx: PlanContext) -> Verdict:
    found = _found(ctx.plan_lower, OVER_ENGINEERING_TERMS)
    if found:
        return False, f"Potentially over-engineered patterns detected: {', '.join(found)}. Are these really necessary?"
    return True, "No over-engineering patterns detected"


def _no_unnecessary_abstractions(ctx: PlanContext) -> Verdict:
    found = _found(ctx.plan_lower, ABSTRACTION_TERMS)
    if found:
        return (
            False,
            f"Abstraction patterns detected: {', '.join(found)}. Consider if direct implementation would suffice.",
        )
    return True, "No unnecessary abstractions detected"


def _no_unnecessary_dependencies(ctx: PlanContext) -> Verdict:
    if contains_any(ctx.plan_lower, DEPENDENCY_TERMS):
        return (
            False,
            "Plan adds new dependencies. Verify these are essential and can't be done with existing packages "
            "or built-in APIs.",
        )
    return True, "No new dependencies introduced"


def _no_duplication(ctx: PlanContext) -> Verdict:
    found = _found(ctx.plan_lower, DUPLICATION_TERMS)
    if found:
        return False, f"Potential duplication detected: {', '.join(found)}. Check if existing code can be reused."
    return True, "No duplication concerns detected"


def _preserves_existing_functionality(ctx: PlanContext) -> Verdict:
    found = _found(ctx.plan_lower, BREAKING_TERMS)
    if found:
        return False, f"Potentially destructive changes: {', '.join(found)}. Ensure existing behavior is preserved."
    return True, "No destructive changes detected"


def _mentions_tests(ctx: PlanContext) -> Verdict:
    if not ctx.has_tests:
        return True, "No existing test suite to consider"
    if contains_any(ctx.plan_lower, TEST_TERMS):
        return True, "Plan acknowledges testing"
    return False, "Project has tests but the plan doesn't mention updating or running them"


def anti_pattern_lines(system_patterns: str) -> list[str] | None:
    """Lines of the ``## Anti-patterns`` section, or None when there is no section.

    Bullet markers are stripped, and template placeholders (``[...]``) and
    very short lines are skipped.
    """
    match = _ANTI_PATTERN_SECTION.search(system_patterns)
    if match is None:
        return None
    lines = []
    for raw in match.group(1).splitlines():
        line = _BULLET.sub("", raw).strip()
        if len(line) <= 5 or line.startswith("["):
            continue
        lines.append(line)
    return lines


def _follows_conventions(ctx: PlanContext) -> Verdict:
    lines = anti_pattern_lines(ctx.system_patterns) if ctx.system_patterns else None
    if lines:
        plan_tokens = set(tokenize(ctx.plan))
        for line in lines:
            keywords = {word for word in tokenize(line) if len(word) > 4}
            if len(keywords & plan_tokens) >= 2:
                return False, f'Proposed changes may conflict with documented anti-pattern: "{line[:100]}"'
        return True, "Changes appear consistent with documented system patterns"

    if not ctx.framework:
        return True, "No specific framework conventions to check"

    found = _found(ctx.plan_lower, FRAMEWORK_ANTI_PATTERNS.get(ctx.framework, ()))
    if found:
        return False, f"Potential convention violation for {ctx.framework}: {', '.join(found)}"
    return True, f"Changes appear consistent with {ctx.framework} conventions"


def _active_scope_alignment(ctx: PlanContext) -> Verdict:
    if not ctx.active_context:
        return True, "No active context available to check against"
    if _SCOPE_SECTION.search(ctx.active_context) is None:
        return True, "Active context exists but has no scope/priority sections to check"
    return True, "Active context available: verify proposed changes align with documented priorities"


PLAN_CHECKS: tuple[PlanCheck, ...] = (
    PlanCheck("scope-alignment", "Scope", "Plan stays within the original request", _scope_alignment),
    PlanCheck("no-unrequested-files", "Scope", "No unrequested files or endpoints", _no_unrequested_files),
    PlanCheck("no-unrequested-refactoring", "Scope", "No unrequested refactoring", _no_unrequested_refactoring),
    PlanCheck("simplest-approach", "Complexity", "Uses the simplest approach possible", _simplest_approach),
    PlanCheck(
        "no-unnecessary-abstractions",
        "Complexity",
        "No unnecessary abstractions, factories, or wrappers",
        _no_unnecessary_abstractions,
    ),
    PlanCheck(
        "no-unnecessary-dependencies",
        "Complexity",
        "No unnecessary new dependencies",
        _no_unnecessary_dependencies,
    ),
    PlanCheck("no-duplication", "Duplication", "No duplicating existing utilities or patterns", _no_duplication),
    PlanCheck(
        "preserves-existing-functionality",
        "Safety",
        "Preserves existing functionality",
        _preserves_existing_functionality,
    ),
    PlanCheck(
        "mentions-tests",
        "Safety",
        "Considers testing when modifying code with existing tests",
        _mentions_tests,
    ),
    PlanCheck("follows-conventions", "Architecture", "Follows documented project conventions", _follows_conventions),
    PlanCheck(
        "active-scope-alignment",
        "Architecture",
        "Aligns with current project priorities",
        _active_scope_alignment,
    ),
)


def run_plan_checks(ctx: PlanContext) -> list[CheckResult]:
    return [check.run(ctx) for check in PLAN_CHECKS]
