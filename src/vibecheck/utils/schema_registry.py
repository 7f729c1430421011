"""Schema registry backed by the ``vibecheck_schemas`` package data.

Schemas are resolved through ``importlib.resources`` so validation behaves the
same in an editable checkout and an installed wheel.
"""

import json
from dataclasses import dataclass
from importlib.resources import files
from typing import Any

SCHEMA_PACKAGE = "vibecheck_schemas"
SCHEMA_SUFFIX = ".schema.json"


@dataclass(frozen=True)
class SchemaRegistry:
    """Registry of available schemas from package data.

    Attributes:
        available: Sorted tuple of canonical schema names (without .schema.json suffix)
    """

    available: tuple[str, ...] = ()

    def __init__(self) -> None:
        object.__setattr__(self, "available", tuple(sorted(self._discover_schemas())))

    def _discover_schemas(self) -> list[str]:
        try:
            return [
                item.name.removesuffix(SCHEMA_SUFFIX)
                for item in files(SCHEMA_PACKAGE).iterdir()
                if item.name.endswith(SCHEMA_SUFFIX)
            ]
        except (ModuleNotFoundError, FileNotFoundError):
            return []

    def get_text(self, name: str) -> str:
        """Load schema text by name.

        Raises:
            KeyError: If schema not found (the message lists what is available)
        """
        canonical_name = name.removesuffix(SCHEMA_SUFFIX)
        if canonical_name not in self.available:
            raise KeyError(
                f"Schema '{canonical_name}' not found in vibecheck package data. "
                f"Available schemas: {', '.join(self.available) or '(none)'}"
            )
        return (files(SCHEMA_PACKAGE) / f"{canonical_name}{SCHEMA_SUFFIX}").read_text(encoding="utf-8")

    def get_json(self, name: str) -> dict[str, Any]:
        """Load schema as a parsed dictionary.

        Raises:
            KeyError: If schema not found
            ValueError: If schema JSON is malformed
        """
        text = self.get_text(name)
        try:
            res: dict[str, Any] = json.loads(text)
            return res
        except json.JSONDecodeError as e:
            raise ValueError(
                f"Schema '{name}' contains invalid JSON: {e}\n"
                f"This may indicate a corrupted installation. Try reinstalling vibecheck."
            ) from e


_registry: SchemaRegistry | None = None


def get_registry() -> SchemaRegistry:
    """Get global schema registry instance (singleton)."""
    global _registry
    if _registry is None:
        _registry = SchemaRegistry()
    return _registry
