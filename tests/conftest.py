"""Pytest configuration and fixtures for vibecheck tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest


def write_files(root: Path, files: dict[str, str]) -> None:
    """Create ``files`` (relative path -> text) under ``root``."""
    for relative, text in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")


@pytest.fixture
def nextjs_project(tmp_path: Path) -> Path:
    """Small Next.js-style project with a test suite and CI."""
    root = tmp_path / "app-project"
    write_files(
        root,
        {
            "package.json": json.dumps(
                {
                    "name": "demo",
                    "dependencies": {"next": "14.0.0", "react": "18.2.0"},
                    "devDependencies": {"vitest": "1.0.0"},
                }
            ),
            "tsconfig.json": "{}",
            "app/page.tsx": "export default function Home() {}\n",
            "app/dashboard/page.tsx": "export default function Dashboard() {}\n",
            "components/Button.tsx": "export const Button = () => null\n",
            "lib/utils.ts": "export const noop = () => {}\n",
            "styles/globals.css": "body {}\n",
            "prisma/migrations/001_init.sql": "create table users();\n",
            "__tests__/page.test.tsx": "test('renders', () => {})\n",
            ".github/workflows/ci.yml": "on: push\n",
            "node_modules/next/index.js": "module.exports = {}\n",
        },
    )
    return root


@pytest.fixture
def make_files():
    """Return the ``write_files`` helper for ad-hoc project layouts."""
    return write_files
