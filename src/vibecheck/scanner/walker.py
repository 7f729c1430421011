"""Bounded project walk producing a ProjectSnapshot."""

from __future__ import annotations

import json
import logging
import os
import re
import time
import tomllib
from pathlib import Path

from vibecheck.config import ScanConfig
from vibecheck.scanner.classify import classify_file, detect_framework
from vibecheck.scanner.types import FileCategory, FileInfo, ProjectSnapshot

logger = logging.getLogger(__name__)

CI_PREFIXES: tuple[str, ...] = (".github/", ".gitlab-ci", ".circleci/")

PATTERN_MARKERS: tuple[tuple[str, str], ...] = (
    ("middleware", "middleware"),
    ("hooks/", "custom-hooks"),
    ("store/", "state-management"),
    ("prisma/", "prisma-orm"),
    ("drizzle/", "drizzle-orm"),
)

_REQUIREMENT_NAME = re.compile(r"^\s*([A-Za-z0-9][A-Za-z0-9._-]*)")


class _Walk:
    """Mutable state of one walk: collected files and the deadline."""

    def __init__(self, root: Path, config: ScanConfig) -> None:
        self.root = root
        self.config = config
        self.deadline = time.monotonic() + config.deadline_seconds
        self.files: list[FileInfo] = []
        self.timed_out = False

    def expired(self) -> bool:
        if time.monotonic() > self.deadline:
            self.timed_out = True
            return True
        return False

    def visit(self, directory: Path, depth: int) -> None:
        if depth > self.config.max_depth or self.expired():
            return

        try:
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda e: e.name)
        except OSError as exc:
            logger.debug("skipping unreadable directory %s: %s", directory, exc)
            return

        for entry in entries:
            if self.expired():
                return
            try:
                is_dir = entry.is_dir(follow_symlinks=False)
                is_file = not is_dir and entry.is_file()
            except OSError:
                continue

            if is_dir:
                if entry.name in self.config.skip_dirs:
                    continue
                self.visit(Path(entry.path), depth + 1)
            elif is_file:
                self._record(Path(entry.path))

    def _record(self, path: Path) -> None:
        try:
            size = path.stat().st_size
        except OSError as exc:
            logger.debug("skipping unreadable file %s: %s", path, exc)
            return
        relative = path.relative_to(self.root).as_posix()
        self.files.append(
            FileInfo(
                path=str(path),
                relative_path=relative,
                size=size,
                category=classify_file(relative),
            )
        )


def read_manifest_deps(root: Path) -> list[str]:
    """Return declared dependency names from the project manifest.

    ``package.json`` wins when present; otherwise ``pyproject.toml`` and then
    ``requirements.txt`` are consulted. Unparseable manifests yield no deps.
    """
    package_json = root / "package.json"
    if package_json.is_file():
        try:
            pkg = json.loads(package_json.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            return []
        if not isinstance(pkg, dict):
            return []
        deps: list[str] = []
        for key in ("dependencies", "devDependencies"):
            section = pkg.get(key)
            if isinstance(section, dict):
                deps.extend(name for name in section if name not in deps)
        return deps

    pyproject = root / "pyproject.toml"
    if pyproject.is_file():
        try:
            with open(pyproject, "rb") as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError):
            return []
        project = data.get("project")
        if not isinstance(project, dict):
            return []
        specs: list[str] = []
        if isinstance(project.get("dependencies"), list):
            specs.extend(project["dependencies"])
        optional = project.get("optional-dependencies")
        if isinstance(optional, dict):
            for group in optional.values():
                if isinstance(group, list):
                    specs.extend(group)
        return _requirement_names(specs)

    requirements = root / "requirements.txt"
    if requirements.is_file():
        try:
            lines = requirements.read_text(encoding="utf-8").splitlines()
        except OSError:
            return []
        return _requirement_names(line for line in lines if not line.lstrip().startswith(("#", "-")))

    return []


def _requirement_names(specs) -> list[str]:
    names: list[str] = []
    for spec in specs:
        if not isinstance(spec, str):
            continue
        match = _REQUIREMENT_NAME.match(spec)
        if match and match.group(1).lower() not in names:
            names.append(match.group(1).lower())
    return names


def scan_project(root: Path, config: ScanConfig | None = None) -> ProjectSnapshot:
    """Walk ``root`` and build a snapshot.

    The walk stops at the configured deadline and returns what it has
    collected; unreadable entries are skipped rather than failing the scan.
    """
    config = config or ScanConfig()
    root = Path(root)
    walk = _Walk(root, config)
    walk.visit(root, 0)
    if walk.timed_out:
        logger.warning(
            "scan of %s hit the %.1fs deadline; returning %d files collected so far",
            root,
            config.deadline_seconds,
            len(walk.files),
        )

    files = tuple(walk.files)
    package_deps = read_manifest_deps(root)
    has_tests = any(info.category is FileCategory.TEST for info in files)
    has_ci = any(info.relative_path.startswith(CI_PREFIXES) for info in files)

    patterns = [
        tag
        for marker, tag in PATTERN_MARKERS
        if any(marker in info.relative_path for info in files)
    ]
    if has_tests:
        patterns.append("testing")
    if has_ci:
        patterns.append("ci-cd")

    return ProjectSnapshot(
        files=files,
        framework=detect_framework(package_deps),
        detected_patterns=tuple(patterns),
        has_tests=has_tests,
        has_ci=has_ci,
        package_deps=tuple(package_deps),
        timed_out=walk.timed_out,
    )
