"""
Tests for schema parsing and the allowed-values check.
"""

from itertools import permutations

import pytest

from pdf_fill_backend.errors import SchemaError
from pdf_fill_backend.validation import parse_schema, validate

SCHEMA = {"sex": ("M", "F"), "country": ("US", "DE"), "plan": ("basic", "pro")}


def _violating_fields(result):
    return {violation.field for violation in result.violations}


class TestParseSchema:
    def test_parses_object_of_string_arrays(self):
        assert parse_schema(b'{"sex": ["M", "F"]}') == {"sex": ("M", "F")}

    def test_empty_object_is_valid(self):
        assert parse_schema(b"{}") == {}

    @pytest.mark.parametrize(
        "raw",
        [b"not json", b'["M", "F"]', b'{"sex": "M"}', b'{"sex": [1, 2]}'],
    )
    def test_rejects_malformed_schema(self, raw):
        with pytest.raises(SchemaError):
            parse_schema(raw)


class TestValidate:
    def test_all_allowed_values_are_valid(self):
        result = validate(SCHEMA, {"sex": "F", "country": "US", "plan": "pro"})
        assert result.is_valid
        assert result.violations == []

    def test_reports_every_violation(self):
        """All offending fields are reported, not just the first."""
        result = validate(SCHEMA, {"sex": "X", "country": "FR", "plan": "pro"})
        assert not result.is_valid
        assert _violating_fields(result) == {"sex", "country"}

    def test_violation_carries_value_and_allowed_set(self):
        result = validate(SCHEMA, {"country": "FR"})
        violation = result.violations[0]
        assert violation.field == "country"
        assert violation.value == "FR"
        assert violation.allowed == ["US", "DE"]

    def test_ignores_fields_absent_from_schema(self):
        assert validate(SCHEMA, {"name": "Alice", "ghost": "x"}).is_valid

    def test_ignores_schema_fields_absent_from_submission(self):
        assert validate(SCHEMA, {"sex": "M"}).is_valid
        assert validate(SCHEMA, {}).is_valid

    def test_membership_is_exact(self):
        assert not validate(SCHEMA, {"sex": "m"}).is_valid
        assert not validate(SCHEMA, {"sex": " M"}).is_valid

    def test_null_and_empty_are_checked_alike(self):
        schema = {"middle_name": ("", "A", "B"), "sex": ("M", "F")}
        assert validate(schema, {"middle_name": None}).is_valid
        assert validate(schema, {"middle_name": ""}).is_valid
        assert _violating_fields(validate(schema, {"sex": None})) == {"sex"}
        assert _violating_fields(validate(schema, {"sex": ""})) == {"sex"}

    def test_result_does_not_depend_on_submission_order(self):
        items = [("plan", "enterprise"), ("name", "Alice"), ("sex", "X"), ("country", "US")]
        results = {tuple(v.field for v in validate(SCHEMA, dict(order)).violations) for order in permutations(items)}
        assert results == {("sex", "plan")}

    def test_is_deterministic(self):
        submitted = {"sex": "X", "country": "FR"}
        assert validate(SCHEMA, submitted) == validate(SCHEMA, submitted)
