"""Project scanner types."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class FileCategory(str, Enum):
    """Semantic bucket a project file falls into."""

    ROUTE = "route"
    TEST = "test"
    CONFIG = "config"
    ENTRY = "entry"
    COMPONENT = "component"
    UTILITY = "utility"
    STYLE = "style"
    MIGRATION = "migration"
    TYPE = "type"
    OTHER = "other"


@dataclass(frozen=True)
class FileInfo:
    """One scanned file."""

    path: str
    relative_path: str
    size: int
    category: FileCategory


@dataclass(frozen=True)
class ProjectSnapshot:
    """Result of one project walk. Never persisted."""

    files: tuple[FileInfo, ...]
    framework: str | None
    detected_patterns: tuple[str, ...]
    has_tests: bool
    has_ci: bool
    package_deps: tuple[str, ...]
    timed_out: bool = False

    @property
    def total_files(self) -> int:
        return len(self.files)

    def file_index(self) -> dict[str, FileInfo]:
        """Map relative path to file info."""
        return {info.relative_path: info for info in self.files}

    def category_counts(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for info in self.files:
            counts[info.category.value] = counts.get(info.category.value, 0) + 1
        return counts

    def summary(self) -> dict[str, Any]:
        """Compact projection embedded in scope contracts."""
        return {
            "totalFiles": self.total_files,
            "framework": self.framework,
            "detectedPatterns": list(self.detected_patterns),
            "hasTests": self.has_tests,
            "fileCategories": self.category_counts(),
        }
