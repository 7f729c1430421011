"""Path-pattern classification of project files and framework detection.

Both lookups are ordered rule tables: the first matching rule wins, so new
conventions can be added by inserting a row rather than touching control flow.
"""

from __future__ import annotations

import posixpath
from collections.abc import Callable
from dataclasses import dataclass

from vibecheck.scanner.types import FileCategory


@dataclass(frozen=True)
class PathParts:
    """Normalized view of a relative path used by the category predicates."""

    name: str
    ext: str
    parts: frozenset[str]

    @classmethod
    def from_relative(cls, relative_path: str) -> PathParts:
        lowered = relative_path.replace("\\", "/").lower()
        name = posixpath.basename(lowered)
        return cls(
            name=name,
            ext=posixpath.splitext(name)[1],
            parts=frozenset(lowered.split("/")),
        )


CONFIG_FILENAMES: frozenset[str] = frozenset(
    {
        "package.json",
        "tsconfig.json",
        "jest.config.ts",
        "jest.config.js",
        "vitest.config.ts",
        "vite.config.ts",
        "next.config.js",
        "next.config.mjs",
        "tailwind.config.js",
        "tailwind.config.ts",
        "postcss.config.js",
        "webpack.config.js",
        "eslint.config.js",
        "prettier.config.js",
        "pyproject.toml",
        "setup.cfg",
        "setup.py",
        "tox.ini",
        "requirements.txt",
        "dockerfile",
        "docker-compose.yml",
        "docker-compose.yaml",
    }
)

ENTRY_FILENAMES: frozenset[str] = frozenset(
    {
        "index.ts",
        "index.js",
        "main.ts",
        "main.js",
        "app.ts",
        "app.js",
        "server.ts",
        "server.js",
        "main.py",
        "app.py",
        "manage.py",
        "wsgi.py",
        "asgi.py",
        "__main__.py",
    }
)

APP_ROUTE_FILENAMES: frozenset[str] = frozenset({"page.tsx", "page.jsx", "route.ts", "route.js"})
COMPONENT_EXTENSIONS: frozenset[str] = frozenset({".tsx", ".jsx", ".vue", ".svelte"})
STYLE_EXTENSIONS: frozenset[str] = frozenset({".css", ".scss", ".less", ".sass"})


def _is_test(p: PathParts) -> bool:
    return (
        ".test." in p.name
        or ".spec." in p.name
        or p.name.startswith("test")
        or p.name.endswith("_test.py")
        or bool(p.parts & {"__tests__", "tests", "test"})
    )


def _is_config(p: PathParts) -> bool:
    return (
        p.name.startswith(".")
        or p.name in CONFIG_FILENAMES
        or p.name.endswith((".config.ts", ".config.js", ".config.mjs"))
    )


def _is_route(p: PathParts) -> bool:
    if p.parts & {"routes", "api", "pages"}:
        return True
    return "app" in p.parts and p.name in APP_ROUTE_FILENAMES


def _is_entry(p: PathParts) -> bool:
    return p.name in ENTRY_FILENAMES


def _is_component(p: PathParts) -> bool:
    return bool(p.parts & {"components", "ui"}) or p.ext in COMPONENT_EXTENSIONS


def _is_style(p: PathParts) -> bool:
    return p.ext in STYLE_EXTENSIONS


def _is_migration(p: PathParts) -> bool:
    return bool(p.parts & {"migrations", "migrate"})


def _is_type(p: PathParts) -> bool:
    return (
        p.name.endswith(".d.ts")
        or p.ext == ".pyi"
        or "types" in p.parts
        or p.name in {"types.ts", "types.py"}
    )


def _is_utility(p: PathParts) -> bool:
    return bool(p.parts & {"utils", "lib", "helpers", "shared"})


CATEGORY_RULES: tuple[tuple[Callable[[PathParts], bool], FileCategory], ...] = (
    (_is_test, FileCategory.TEST),
    (_is_config, FileCategory.CONFIG),
    (_is_route, FileCategory.ROUTE),
    (_is_entry, FileCategory.ENTRY),
    (_is_component, FileCategory.COMPONENT),
    (_is_style, FileCategory.STYLE),
    (_is_migration, FileCategory.MIGRATION),
    (_is_type, FileCategory.TYPE),
    (_is_utility, FileCategory.UTILITY),
)


def classify_file(relative_path: str) -> FileCategory:
    """Return the category of a project-relative path (first matching rule wins)."""
    parts = PathParts.from_relative(relative_path)
    for predicate, category in CATEGORY_RULES:
        if predicate(parts):
            return category
    return FileCategory.OTHER


FRAMEWORK_RULES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("next",), "Next.js"),
    (("nuxt",), "Nuxt"),
    (("@angular/core",), "Angular"),
    (("svelte", "@sveltejs/kit"), "SvelteKit"),
    (("remix", "@remix-run/node"), "Remix"),
    (("astro",), "Astro"),
    (("express",), "Express"),
    (("fastify",), "Fastify"),
    (("hono",), "Hono"),
    (("react",), "React"),
    (("vue",), "Vue"),
    (("@modelcontextprotocol/sdk",), "MCP Server"),
    (("django",), "Django"),
    (("fastapi",), "FastAPI"),
    (("flask",), "Flask"),
)


def detect_framework(deps: list[str] | tuple[str, ...]) -> str | None:
    """Match declared dependency names against the framework table."""
    names = {dep.lower() for dep in deps}
    for packages, framework in FRAMEWORK_RULES:
        if any(package in names for package in packages):
            return framework
    return None
