"""Seed documents written by ``memory init``."""

from __future__ import annotations

from pathlib import Path

RULES_MARKER = "<!-- vibecheck-rules -->"

WORKFLOW_RULES = f"""{RULES_MARKER}
## vibecheck workflow rules

- At project start, run `vibecheck memory init` to set up project context
- Before any implementation, run `vibecheck pre-check` to get a scope contract
- After coding, run `vibecheck diff-review` to verify compliance
- Use `vibecheck memory read` to review project context before making changes
- Use `vibecheck memory update` to keep context current as the project evolves
"""


def render_template(
    role: str,
    *,
    today: str,
    project_name: str | None = None,
    tech_stack: str | None = None,
    description: str | None = None,
) -> str:
    """Render the seed text for the core document playing ``role``."""
    if role == "project_brief":
        title = f"# Project Brief: {project_name}" if project_name else "# Project Brief"
        return f"""{title}

**Created**: {today}

## What this project is

{description or "[Describe the project: what it does, who it's for, and why it exists.]"}

## Primary user & audience

[Who is the primary user? What problem does this solve for them?]

## Core product loop

1. [Step 1]
2. [Step 2]
3. [Step 3]

## Out of scope

[What is this project explicitly NOT doing?]
"""
    if role == "active_context":
        return f"""# Active Context

**Last updated**: {today}

## Current scope

[What pages/features/areas are actively being worked on?]

## Current priorities

1. [Priority 1]
2. [Priority 2]
3. [Priority 3]

## Recent Changes

[Log of recent changes, appended by diff-review]
"""
    if role == "tech_context":
        return f"""# Tech Context

## Stack

{tech_stack or "[List your tech stack: framework, language, database, etc.]"}

## Dependencies

[Key dependencies and their purposes]

## Architecture notes

[High-level architecture decisions, deployment setup, etc.]
"""
    if role == "system_patterns":
        return """# System Patterns

## Code conventions

[Naming conventions, file organization patterns, import ordering, etc.]

## Architecture patterns

[State management, data fetching, error handling, routing patterns, etc.]

## Anti-patterns

[Things explicitly avoided in this codebase and why]
"""
    if role == "routes":
        return f"""# Route Contract

**Last updated**: {today}

## Routes

| Route | Method | Auth | Description | Status |
|-------|--------|------|-------------|--------|
| | | | | |

## Route rules

- All new routes must be added to this table before implementation
- Route changes are flagged by pre-check when the request does not mention them
- Deprecated routes should be marked with status "deprecated"
"""
    if role == "progress":
        return """# Progress Log

[Cumulative log of completed work, appended by diff-review]

## Completed

| Date | Summary | Files Changed | Compliance Score |
|------|---------|---------------|-----------------|
"""
    raise KeyError(f"No template for memory document role {role!r}")


def ensure_workflow_rules(project_root: Path) -> dict[str, object]:
    """Make sure ``.claude/CLAUDE.md`` carries the workflow rules block exactly once."""
    path = project_root / ".claude" / "CLAUDE.md"
    existing: str | None = None
    if path.is_file():
        existing = path.read_text(encoding="utf-8")

    if existing is not None and RULES_MARKER in existing:
        return {"created": False, "updated": False, "path": str(path)}

    path.parent.mkdir(parents=True, exist_ok=True)
    if existing:
        path.write_text(existing.rstrip() + "\n\n" + WORKFLOW_RULES, encoding="utf-8")
        return {"created": False, "updated": True, "path": str(path)}

    path.write_text(WORKFLOW_RULES, encoding="utf-8")
    return {"created": True, "updated": False, "path": str(path)}
