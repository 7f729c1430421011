"""File classification and framework detection tests."""

from __future__ import annotations

import pytest

from vibecheck.scanner import FileCategory, classify_file, detect_framework


@pytest.mark.parametrize(
    ("path", "expected"),
    [
        ("src/__tests__/login.tsx", FileCategory.TEST),
        ("src/login.test.ts", FileCategory.TEST),
        ("tests/test_login.py", FileCategory.TEST),
        ("package.json", FileCategory.CONFIG),
        (".env", FileCategory.CONFIG),
        ("vite.config.ts", FileCategory.CONFIG),
        ("pyproject.toml", FileCategory.CONFIG),
        ("app/login/page.tsx", FileCategory.ROUTE),
        ("src/api/users.ts", FileCategory.ROUTE),
        ("src/index.ts", FileCategory.ENTRY),
        ("manage.py", FileCategory.ENTRY),
        ("components/Button.tsx", FileCategory.COMPONENT),
        ("styles/site.scss", FileCategory.STYLE),
        ("db/migrations/0001_init.sql", FileCategory.MIGRATION),
        ("src/global.d.ts", FileCategory.TYPE),
        ("src/lib/format.ts", FileCategory.UTILITY),
        ("README.md", FileCategory.OTHER),
    ],
)
def test_classify_file(path: str, expected: FileCategory) -> None:
    assert classify_file(path) is expected


def test_first_matching_rule_wins() -> None:
    """A test file inside a routes directory is still a test."""
    assert classify_file("routes/users.test.ts") is FileCategory.TEST
    # config beats route for dotfiles under api/
    assert classify_file("api/.eslintrc") is FileCategory.CONFIG


def test_classify_accepts_backslashes() -> None:
    assert classify_file("src\\components\\Nav.jsx") is FileCategory.COMPONENT


def test_detect_framework_prefers_meta_frameworks() -> None:
    assert detect_framework(["react", "next"]) == "Next.js"
    assert detect_framework(["react"]) == "React"
    assert detect_framework(["fastapi", "pydantic"]) == "FastAPI"


def test_detect_framework_unknown() -> None:
    assert detect_framework([]) is None
    assert detect_framework(["lodash"]) is None
