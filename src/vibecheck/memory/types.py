"""Memory bank types."""

from __future__ import annotations

from dataclasses import dataclass, field

from vibecheck.config import DEFAULT_DOCUMENTS


@dataclass(frozen=True)
class RouteEntry:
    """One row of the routes.md contract table."""

    route: str
    method: str
    auth: str
    description: str
    status: str

    def label(self) -> str:
        return f"{self.method} {self.route}"


@dataclass(frozen=True)
class MemoryBankContext:
    """All six core documents plus the feature-spec listing, read in one batch."""

    exists: bool
    project_brief: str | None = None
    active_context: str | None = None
    tech_context: str | None = None
    system_patterns: str | None = None
    routes: str | None = None
    progress: str | None = None
    feature_specs: tuple[str, ...] = field(default_factory=tuple)
    document_names: tuple[tuple[str, str], ...] = DEFAULT_DOCUMENTS

    def documents(self) -> dict[str, str | None]:
        """Core documents keyed by filename, in canonical order."""
        return {name: getattr(self, role) for role, name in self.document_names}
