"""Parse an externally supplied scope contract.

The contract travels between pre-check and diff-review as serialized JSON the
caller may have edited, so it is re-validated against the packaged schema and
never trusted beyond what the schema guarantees.
"""

from __future__ import annotations

import json
from typing import Any

from vibecheck.pipeline.diff_review.types import ContractParseResult
from vibecheck.pipeline.pre_check.engine import normalize_path
from vibecheck.pipeline.pre_check.types import ComplexityRating, ScopeContract
from vibecheck.schemas.validator import validate_data

SCOPE_CONTRACT_SCHEMA = "scope_contract"


def _string_items(value: Any) -> tuple[str, ...]:
    if not isinstance(value, list):
        return ()
    return tuple(item for item in value if isinstance(item, str))


def _path_items(value: Any) -> tuple[str, ...]:
    """String items as normalized relative paths, blanks and duplicates dropped."""
    paths: list[str] = []
    for item in _string_items(value):
        path = normalize_path(item)
        if path and path not in paths:
            paths.append(path)
    return tuple(paths)


def parse_scope_contract(raw: str) -> ContractParseResult:
    """Decode and validate a serialized contract without raising."""
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as exc:
        return ContractParseResult(contract=None, errors=(f"invalid JSON: {exc}",))

    ok, errors = validate_data(data, SCOPE_CONTRACT_SCHEMA, strict=False)
    if not ok:
        return ContractParseResult(contract=None, errors=tuple(errors))

    complexity = data.get("complexityRating")
    red_flags = data.get("redFlags")
    snapshot = data.get("projectSnapshot")
    contract = ScopeContract(
        request_summary=data["requestSummary"],
        approved_files=_path_items(data["approvedFiles"]),
        forbidden_files=_path_items(data.get("forbiddenFiles")),
        allowed_new_files=_path_items(data.get("allowedNewFiles")),
        complexity_rating=complexity if isinstance(complexity, str) else ComplexityRating.TRIVIAL.value,
        red_flags=tuple(flag for flag in red_flags if isinstance(flag, dict)) if isinstance(red_flags, list) else (),
        project_snapshot=snapshot if isinstance(snapshot, dict) else {},
    )
    return ContractParseResult(contract=contract)
