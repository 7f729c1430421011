"""Memory bank read/update/init operations with structured results.

These never raise for a bad target or a missing memory bank; the caller gets
a payload with ``found``/``updated``/``initialized`` set to False instead.
"""

from __future__ import annotations

import logging
from pathlib import Path, PurePosixPath
from typing import Any

from vibecheck.config import MemoryBankConfig
from vibecheck.memory.store import MemoryBank, generate_slug, today_iso
from vibecheck.memory.templates import ensure_workflow_rules, render_template

logger = logging.getLogger(__name__)

UPDATE_MODES: tuple[str, ...] = ("replace", "append")


def resolve_target(target: str, config: MemoryBankConfig) -> str | None:
    """Normalize a document target, or return None if it is not addressable.

    Core documents may be named with or without ``.md``. Feature specs must be
    ``<features_dir>/<name>.md`` with no traversal segments.
    """
    target = target.strip().replace("\\", "/")
    if target in config.core_files:
        return target
    if f"{target}.md" in config.core_files:
        return f"{target}.md"

    path = PurePosixPath(target)
    if (
        len(path.parts) == 2
        and path.parts[0] == config.features_dir
        and path.suffix == ".md"
        and path.name != ".md"
        and ".." not in path.parts
    ):
        return target
    return None


def _valid_targets_text(config: MemoryBankConfig) -> str:
    return ", ".join([*config.core_files, f"{config.features_dir}/<name>.md"])


def read_memory(project_root: Path, target: str, config: MemoryBankConfig | None = None) -> dict[str, Any]:
    """Read one document, or every core document when ``target`` is ``all``."""
    bank = MemoryBank(project_root, config)
    if not bank.exists():
        return {"found": False, "file": target, "content": None}

    if target == "all":
        ctx = bank.context()
        documents = ctx.documents()
        files = {
            name: {
                "exists": content is not None,
                "lineCount": len(content.split("\n")) if content else 0,
            }
            for name, content in documents.items()
        }
        sections = [f"--- {name} ---\n{content}" for name, content in documents.items() if content]
        return {
            "found": True,
            "file": "all",
            "content": "\n\n".join(sections),
            "summary": {"files": files, "featureSpecs": list(ctx.feature_specs)},
        }

    resolved = resolve_target(target, bank.config)
    if resolved is None:
        return {
            "found": False,
            "file": target,
            "content": f'Invalid file target: "{target}". Valid targets: {_valid_targets_text(bank.config)}, or "all"',
        }

    content = bank.read(resolved)
    return {"found": content is not None, "file": resolved, "content": content}


def update_memory(
    project_root: Path,
    target: str,
    content: str,
    mode: str = "replace",
    config: MemoryBankConfig | None = None,
    today: str | None = None,
) -> dict[str, Any]:
    """Replace or append to one document and refresh the active-context stamp."""
    bank = MemoryBank(project_root, config)
    if not bank.exists():
        return {
            "updated": False,
            "message": "Memory bank does not exist. Run `vibecheck memory init` first.",
            "file": target,
        }

    resolved = resolve_target(target, bank.config)
    if resolved is None:
        return {
            "updated": False,
            "message": f'Invalid file target: "{target}". Valid targets: {_valid_targets_text(bank.config)}',
            "file": target,
        }
    if mode not in UPDATE_MODES:
        return {
            "updated": False,
            "message": f'Invalid mode: "{mode}". Use "replace" or "append".',
            "file": resolved,
        }

    if mode == "append":
        bank.append(resolved, content)
    else:
        bank.write(resolved, content)

    if resolved != bank.doc("active_context"):
        bank.touch_active_context(today)

    verb = "appended to" if mode == "append" else "updated"
    logger.debug("memory bank %s %s", verb, resolved)
    return {"updated": True, "message": f"Successfully {verb} {resolved}", "file": resolved}


def init_memory(
    project_root: Path,
    project_name: str | None = None,
    tech_stack: str | None = None,
    description: str | None = None,
    config: MemoryBankConfig | None = None,
    today: str | None = None,
) -> dict[str, Any]:
    """Seed the memory bank from templates; an existing bank is left untouched."""
    bank = MemoryBank(project_root, config)
    project_root = Path(project_root)

    if bank.exists():
        rules = ensure_workflow_rules(project_root)
        return {
            "initialized": False,
            "message": (
                "Memory bank already exists at this location. Use `vibecheck memory update` "
                "to modify files, or delete the directory to reinitialize."
            ),
            "createdFiles": [],
            "path": str(bank.root),
            "claudeMd": rules,
        }

    bank.features_root.mkdir(parents=True, exist_ok=True)
    stamp = today or today_iso()
    created: list[str] = []
    for role, name in bank.config.documents:
        bank.write(
            name,
            render_template(
                role,
                today=stamp,
                project_name=project_name,
                tech_stack=tech_stack,
                description=description,
            ),
        )
        created.append(name)

    rules = ensure_workflow_rules(project_root)
    logger.info("initialized memory bank at %s", bank.root)
    return {
        "initialized": True,
        "message": f"Memory bank created with {len(created)} files.",
        "createdFiles": created,
        "path": str(bank.root),
        "claudeMd": rules,
    }


def save_feature_spec(
    project_root: Path,
    title: str,
    content: str,
    config: MemoryBankConfig | None = None,
    today: str | None = None,
) -> dict[str, Any]:
    """Store a feature spec under a fresh ``features/<slug>.md`` name.

    Earlier specs with the same title are kept; the new one gets a numeric
    suffix. A dated link is appended to the active context.
    """
    bank = MemoryBank(project_root, config)
    if not bank.exists():
        return {
            "saved": False,
            "message": "Memory bank does not exist. Run `vibecheck memory init` first.",
            "file": None,
        }

    slug = generate_slug(title, bank.config.slug_max_length)
    if not slug:
        return {"saved": False, "message": f'Cannot derive a file name from title "{title}"', "file": None}

    doc = bank.unique_spec_path(slug)
    bank.write(doc, content)
    stamp = today or today_iso()
    name = PurePosixPath(doc).stem
    bank.append(bank.doc("active_context"), f"\n- **{stamp}**: New feature spec created: [{name}]({doc})")
    bank.touch_active_context(stamp)
    logger.debug("saved feature spec %s", doc)
    return {"saved": True, "message": f"Saved feature spec to {doc}", "file": doc}
