"""Scanner and memory-bank configuration.

Defaults live in frozen dataclasses so callers and tests can override a
deadline or a document list without patching module globals. A project may
also carry ``.vibecheck/config.yaml`` to adjust them.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

import yaml  # type: ignore[import-untyped]

if TYPE_CHECKING:
    from pathlib import Path

DEFAULT_SKIP_DIRS: frozenset[str] = frozenset(
    {
        "node_modules",
        ".git",
        "dist",
        "build",
        ".next",
        "__pycache__",
        "venv",
        ".venv",
        ".cache",
        ".turbo",
        "coverage",
        ".output",
        ".nuxt",
        ".mypy_cache",
        ".pytest_cache",
        ".tox",
    }
)

# Core documents as (role, filename) pairs in canonical order. Code addresses
# documents by role so a project can rename the files.
DEFAULT_DOCUMENTS: tuple[tuple[str, str], ...] = (
    ("project_brief", "projectbrief.md"),
    ("active_context", "activeContext.md"),
    ("tech_context", "techContext.md"),
    ("system_patterns", "systemPatterns.md"),
    ("routes", "routes.md"),
    ("progress", "progress.md"),
)
DOCUMENT_ROLES: tuple[str, ...] = tuple(role for role, _ in DEFAULT_DOCUMENTS)

CONFIG_RELATIVE_PATH = ".vibecheck/config.yaml"

CONFIG_REASON_PARSE_ERROR = "CONFIG_PARSE_ERROR"
CONFIG_REASON_SCHEMA_INVALID = "CONFIG_SCHEMA_INVALID"


class ConfigError(ValueError):
    """Project configuration could not be loaded."""

    reason_code: str

    def __init__(self, message: str, reason_code: str = CONFIG_REASON_SCHEMA_INVALID) -> None:
        super().__init__(message)
        self.reason_code = reason_code


@dataclass(frozen=True)
class ScanConfig:
    """Bounds for a single project walk."""

    skip_dirs: frozenset[str] = DEFAULT_SKIP_DIRS
    deadline_seconds: float = 5.0
    max_depth: int = 6


@dataclass(frozen=True)
class MemoryBankConfig:
    """Layout of the on-disk memory bank."""

    dir_name: str = "memory-bank"
    documents: tuple[tuple[str, str], ...] = DEFAULT_DOCUMENTS
    features_dir: str = "features"
    slug_max_length: int = 60
    excerpt_length: int = 500

    def __post_init__(self) -> None:
        roles = tuple(role for role, _ in self.documents)
        if roles != DOCUMENT_ROLES:
            raise ConfigError(f"memory documents must map roles {', '.join(DOCUMENT_ROLES)} in order")
        names = self.core_files
        if len(set(names)) != len(names):
            raise ConfigError("memory document filenames must be distinct")
        for name in names:
            if not name.endswith(".md") or "/" in name or "\\" in name or name == ".md":
                raise ConfigError(f"memory document `{name}` must be a plain .md filename")

    @property
    def core_files(self) -> tuple[str, ...]:
        return tuple(name for _, name in self.documents)

    def document(self, role: str) -> str:
        """Filename of the core document playing ``role``."""
        for known, name in self.documents:
            if known == role:
                return name
        raise KeyError(role)


@dataclass(frozen=True)
class VibecheckConfig:
    """Top-level configuration handed to the checkers."""

    scan: ScanConfig = field(default_factory=ScanConfig)
    memory: MemoryBankConfig = field(default_factory=MemoryBankConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> VibecheckConfig:
        """Overlay a parsed config mapping on the defaults."""
        scan = ScanConfig()
        scan_raw = data.get("scan") or {}
        if not isinstance(scan_raw, dict):
            raise ConfigError("config `scan` must be a mapping")
        if "skip_dirs" in scan_raw:
            skip_dirs = scan_raw["skip_dirs"]
            if not isinstance(skip_dirs, list) or not all(isinstance(d, str) for d in skip_dirs):
                raise ConfigError("config `scan.skip_dirs` must be a list of directory names")
            scan = replace(scan, skip_dirs=frozenset(skip_dirs))
        if "extra_skip_dirs" in scan_raw:
            extra = scan_raw["extra_skip_dirs"]
            if not isinstance(extra, list) or not all(isinstance(d, str) for d in extra):
                raise ConfigError("config `scan.extra_skip_dirs` must be a list of directory names")
            scan = replace(scan, skip_dirs=scan.skip_dirs | frozenset(extra))
        if "deadline_seconds" in scan_raw:
            scan = replace(scan, deadline_seconds=_positive_number(scan_raw["deadline_seconds"], "scan.deadline_seconds"))
        if "max_depth" in scan_raw:
            max_depth = scan_raw["max_depth"]
            if not isinstance(max_depth, int) or isinstance(max_depth, bool) or max_depth < 0:
                raise ConfigError("config `scan.max_depth` must be a non-negative integer")
            scan = replace(scan, max_depth=max_depth)

        memory = MemoryBankConfig()
        memory_raw = data.get("memory") or {}
        if not isinstance(memory_raw, dict):
            raise ConfigError("config `memory` must be a mapping")
        if "dir_name" in memory_raw:
            dir_name = memory_raw["dir_name"]
            if not isinstance(dir_name, str) or not dir_name.strip():
                raise ConfigError("config `memory.dir_name` must be a non-empty string")
            memory = replace(memory, dir_name=dir_name.strip())
        if "excerpt_length" in memory_raw:
            excerpt = memory_raw["excerpt_length"]
            if not isinstance(excerpt, int) or isinstance(excerpt, bool) or excerpt <= 0:
                raise ConfigError("config `memory.excerpt_length` must be a positive integer")
            memory = replace(memory, excerpt_length=excerpt)
        if "documents" in memory_raw:
            memory = replace(memory, documents=_documents(memory_raw["documents"], memory.documents))

        return cls(scan=scan, memory=memory)


def _positive_number(value: Any, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ConfigError(f"config `{name}` must be a positive number")
    return float(value)


def _documents(value: Any, current: tuple[tuple[str, str], ...]) -> tuple[tuple[str, str], ...]:
    """Apply a ``role: filename`` override mapping; unnamed roles keep their file."""
    if not isinstance(value, dict):
        raise ConfigError("config `memory.documents` must be a mapping of role to filename")
    unknown = sorted(str(role) for role in value if role not in DOCUMENT_ROLES)
    if unknown:
        raise ConfigError(f"config `memory.documents` has unknown role(s): {', '.join(unknown)}")
    for role, name in value.items():
        if not isinstance(name, str) or not name.strip():
            raise ConfigError(f"config `memory.documents.{role}` must be a non-empty filename")
    return tuple((role, value[role].strip() if role in value else name) for role, name in current)


def load_config(project_root: Path) -> VibecheckConfig:
    """Load ``.vibecheck/config.yaml`` from a project, falling back to defaults."""
    path = project_root / CONFIG_RELATIVE_PATH
    if not path.is_file():
        return VibecheckConfig()

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"{path} parse error: {exc}", CONFIG_REASON_PARSE_ERROR) from exc
    if raw is None:
        return VibecheckConfig()
    if not isinstance(raw, dict):
        raise ConfigError(f"{path} parse error: expected mapping at top level", CONFIG_REASON_PARSE_ERROR)

    return VibecheckConfig.from_dict(raw)
