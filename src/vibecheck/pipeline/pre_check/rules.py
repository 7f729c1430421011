"""Red-flag rules and complexity rating for proposed file touches."""

from __future__ import annotations

import posixpath
from collections.abc import Callable
from dataclasses import dataclass

from vibecheck.pipeline.pre_check.types import ComplexityRating, RedFlag, Severity
from vibecheck.utils.text import contains_any

ROUTE_REQUEST_TERMS: tuple[str, ...] = ("route", "endpoint", "api")
ROUTE_CONTRACT_REQUEST_TERMS: tuple[str, ...] = ("route", "endpoint", "api", "page")
DEPENDENCY_REQUEST_TERMS: tuple[str, ...] = ("install", "dependency", "package")

MANIFEST_FILENAMES: frozenset[str] = frozenset(
    {
        "package.json",
        "pyproject.toml",
        "requirements.txt",
        "setup.py",
        "setup.cfg",
        "cargo.toml",
        "go.mod",
        "gemfile",
        "composer.json",
    }
)

NEW_FILE_LIMIT = 3


def rate_complexity(file_count: int) -> ComplexityRating:
    """Step function over the number of proposed files."""
    if file_count == 0:
        return ComplexityRating.TRIVIAL
    if file_count <= 2:
        return ComplexityRating.SMALL
    if file_count <= 5:
        return ComplexityRating.MEDIUM
    if file_count <= 10:
        return ComplexityRating.LARGE
    return ComplexityRating.EXCESSIVE


@dataclass(frozen=True)
class FileRule:
    """Per-file red-flag rule.

    ``predicate`` receives the lowercased path and the lowercased request text.
    """

    type: str
    severity: Severity
    predicate: Callable[[str, str], bool]
    message: str

    def evaluate(self, file: str, request_lower: str) -> RedFlag | None:
        if not self.predicate(file.lower(), request_lower):
            return None
        return RedFlag(type=self.type, message=self.message.format(file=file), severity=self.severity)


def _basename(path: str) -> str:
    return posixpath.basename(path)


def _touches_config(path: str, _request: str) -> bool:
    name = _basename(path)
    return "config" in path or name in {"package.json", "tsconfig.json"} or path.startswith(".")


def _touches_ci(path: str, _request: str) -> bool:
    return contains_any(path, (".github/", ".gitlab", "dockerfile", "docker-compose"))


def _touches_migration(path: str, _request: str) -> bool:
    return "migration" in path


def _touches_unrequested_route(path: str, request: str) -> bool:
    return contains_any(path, ("route", "api/")) and not contains_any(request, ROUTE_REQUEST_TERMS)


def _touches_unrequested_manifest(path: str, request: str) -> bool:
    return _basename(path) in MANIFEST_FILENAMES and not contains_any(request, DEPENDENCY_REQUEST_TERMS)


RED_FLAG_RULES: tuple[FileRule, ...] = (
    FileRule("config-change", Severity.WARNING, _touches_config, "Modifying config file: {file}"),
    FileRule("ci-change", Severity.CRITICAL, _touches_ci, "Modifying CI/deployment file: {file}"),
    FileRule("migration", Severity.CRITICAL, _touches_migration, "Creating/modifying migration: {file}"),
    FileRule(
        "unrequested-route",
        Severity.WARNING,
        _touches_unrequested_route,
        "Adding/modifying route not mentioned in request: {file}",
    ),
    FileRule(
        "unrequested-dependency",
        Severity.WARNING,
        _touches_unrequested_manifest,
        "Modifying {file} without explicit dependency request",
    ),
)


def is_route_like(path: str) -> bool:
    lowered = path.lower()
    return contains_any(lowered, ("route", "api/", "pages/", "app/"))


def detect_red_flags(
    proposed_files: list[str],
    new_files: list[str],
    request: str,
    known_routes: list[str] | None = None,
) -> list[RedFlag]:
    """Evaluate every file rule against every proposed file, then the aggregate rules."""
    request_lower = request.lower()
    flags: list[RedFlag] = []

    for file in proposed_files:
        for rule in RED_FLAG_RULES:
            flag = rule.evaluate(file, request_lower)
            if flag is not None:
                flags.append(flag)

    if len(new_files) > NEW_FILE_LIMIT:
        flags.append(
            RedFlag(
                type="too-many-new-files",
                message=f"Creating {len(new_files)} new files: is this necessary?",
                severity=Severity.WARNING,
            )
        )

    if known_routes and not contains_any(request_lower, ROUTE_CONTRACT_REQUEST_TERMS):
        preview = ", ".join(known_routes[:5])
        for file in proposed_files:
            if is_route_like(file):
                flags.append(
                    RedFlag(
                        type="route-contract-violation",
                        message=f'Modifying route file "{file}": check routes.md contract. Known routes: {preview}',
                        severity=Severity.WARNING,
                    )
                )

    return flags
