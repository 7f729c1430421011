"""Parser for the routes.md contract table."""

from __future__ import annotations

from vibecheck.memory.types import RouteEntry

_SEPARATOR_CHARS = frozenset("-: ")


def parse_routes_table(text: str) -> list[RouteEntry]:
    """Extract rows from the ``| Route | Method | ...`` pipe table.

    A table starts at a header row mentioning both ``| Route`` and
    ``| Method``. Dash separator rows are skipped, rows with fewer than four
    non-empty cells are ignored, and the first non-pipe line ends the table.
    """
    routes: list[RouteEntry] = []
    in_table = False

    for line in text.splitlines():
        if "| Route" in line and "| Method" in line:
            in_table = True
            continue
        if not in_table:
            continue
        if not line.startswith("|"):
            in_table = False
            continue

        cells = [cell.strip() for cell in line.split("|")]
        cells = [cell for cell in cells if cell]
        if cells and all(set(cell) <= _SEPARATOR_CHARS for cell in cells):
            continue
        if len(cells) < 4:
            continue

        routes.append(
            RouteEntry(
                route=cells[0],
                method=cells[1] or "GET",
                auth=cells[2],
                description=cells[3],
                status=cells[4] if len(cells) > 4 else "active",
            )
        )

    return routes
