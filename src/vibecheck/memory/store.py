"""File-backed memory bank document store."""

from __future__ import annotations

import logging
import re
from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime
from pathlib import Path

from vibecheck.config import MemoryBankConfig
from vibecheck.memory.types import MemoryBankContext

logger = logging.getLogger(__name__)

_LAST_UPDATED = re.compile(r"\*\*Last updated\*\*:\s*\d{4}-\d{2}-\d{2}")
_SLUG_STRIP = re.compile(r"[^a-z0-9\s-]")
_SLUG_SPACE = re.compile(r"\s+")
_SLUG_DASHES = re.compile(r"-+")


def today_iso() -> str:
    return datetime.now(UTC).date().isoformat()


def generate_slug(text: str, max_length: int = 60) -> str:
    """Turn free text into a filename-safe slug."""
    slug = _SLUG_STRIP.sub("", text.lower())
    slug = _SLUG_SPACE.sub("-", slug)
    slug = _SLUG_DASHES.sub("-", slug).strip("-")
    return slug[:max_length].rstrip("-")


class MemoryBank:
    """Read/write access to ``<project>/memory-bank``.

    Documents are addressed by their path inside the memory bank, e.g.
    ``routes.md`` or ``features/login.md``. Nothing is cached between calls.
    """

    def __init__(self, project_root: Path, config: MemoryBankConfig | None = None) -> None:
        self.project_root = Path(project_root)
        self.config = config or MemoryBankConfig()

    @property
    def root(self) -> Path:
        return self.project_root / self.config.dir_name

    @property
    def features_root(self) -> Path:
        return self.root / self.config.features_dir

    def exists(self) -> bool:
        return self.root.is_dir()

    def path_for(self, doc: str) -> Path:
        return self.root / doc

    def read(self, doc: str) -> str | None:
        """Return document text, or None when it is absent or unreadable."""
        try:
            return self.path_for(doc).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            return None

    def write(self, doc: str, text: str) -> None:
        path = self.path_for(doc)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")

    def doc(self, role: str) -> str:
        """Document name for a core role such as ``progress``."""
        return self.config.document(role)

    def read_strict(self, doc: str) -> str | None:
        """Return document text, or None only when the file does not exist.

        Undecodable or unreadable files raise.
        """
        path = self.path_for(doc)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def append(self, doc: str, text: str) -> None:
        existing = self.read_strict(doc)
        if existing:
            self.write(doc, existing.rstrip() + "\n" + text + "\n")
        else:
            self.write(doc, text)

    def touch_active_context(self, today: str | None = None) -> bool:
        """Refresh the ``**Last updated**`` stamp; returns False if there is no document."""
        name = self.doc("active_context")
        content = self.read_strict(name)
        if not content:
            return False
        stamp = f"**Last updated**: {today or today_iso()}"
        self.write(name, _LAST_UPDATED.sub(stamp, content, count=1))
        return True

    def feature_specs(self) -> list[str]:
        try:
            return sorted(p.name for p in self.features_root.iterdir() if p.name.endswith(".md"))
        except OSError:
            return []

    def context(self) -> MemoryBankContext:
        """Read every core document concurrently and merge them into one record."""
        if not self.exists():
            return MemoryBankContext(exists=False)

        roles = [role for role, _ in self.config.documents]
        names = self.config.core_files
        with ThreadPoolExecutor(max_workers=len(names) or 1) as pool:
            contents = dict(zip(roles, pool.map(self.read, names)))

        return MemoryBankContext(
            exists=True,
            **contents,
            feature_specs=tuple(self.feature_specs()),
            document_names=self.config.documents,
        )

    def unique_spec_path(self, slug: str) -> str:
        """Return an unused ``features/<slug>[-N].md`` document name."""
        self.features_root.mkdir(parents=True, exist_ok=True)
        candidate = f"{slug}.md"
        counter = 1
        while (self.features_root / candidate).exists():
            candidate = f"{slug}-{counter}.md"
            counter += 1
        logger.debug("allocated feature spec %s", candidate)
        return f"{self.config.features_dir}/{candidate}"
