import pytest

from vibecheck.schemas.validator import validate_data
from vibecheck.utils.schema_registry import SchemaRegistry, get_registry


class TestSchemaRegistry:
    """Packaged schema discovery and validation."""

    def test_registry_lists_scope_contract(self):
        """Registry should discover the scope contract schema."""
        assert "scope_contract" in SchemaRegistry().available

    def test_registry_loads_scope_contract(self):
        schema = get_registry().get_json("scope_contract.schema.json")
        assert schema["title"] == "Scope contract"
        assert schema["required"] == ["requestSummary", "approvedFiles"]

    def test_unknown_schema_names_available(self):
        with pytest.raises(KeyError, match="scope_contract"):
            get_registry().get_text("does_not_exist")


class TestValidateData:
    def test_valid_contract(self):
        assert validate_data({"requestSummary": "x", "approvedFiles": []}, "scope_contract") == (True, [])

    def test_non_strict_returns_errors(self):
        ok, errors = validate_data({"requestSummary": 3}, "scope_contract", strict=False)
        assert not ok
        assert any("approvedFiles" in e for e in errors)
        assert any(e.startswith("requestSummary:") for e in errors)

    def test_strict_raises(self):
        with pytest.raises(ValueError, match="Schema validation failed for 'scope_contract'"):
            validate_data([], "scope_contract")
