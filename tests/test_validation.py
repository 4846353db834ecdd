import pytest

from generation.exceptions import MissingVariables
from generation.registry import ARRANGE_VENUE_FIELDS
from generation.schema import FieldSpec
from generation.validation import validate_variables

SCHEMA = [FieldSpec("A"), FieldSpec("B")]


def test_reports_exactly_the_missing_key():
    with pytest.raises(MissingVariables) as exc:
        validate_variables({"A": "x"}, SCHEMA)
    assert exc.value.missing == ["B"]
    assert str(exc.value) == "Missing required variables: B"


def test_reports_all_missing_keys_in_schema_order():
    with pytest.raises(MissingVariables) as exc:
        validate_variables({"B": ""}, SCHEMA)
    assert exc.value.missing == ["A", "B"]


def test_drops_extraneous_keys():
    assert validate_variables({"A": "x", "B": "y", "C": "z"}, SCHEMA) == {"A": "x", "B": "y"}


def test_keys_are_case_sensitive():
    with pytest.raises(MissingVariables) as exc:
        validate_variables({"a": "x", "B": "y"}, SCHEMA)
    assert exc.value.missing == ["A"]


def test_blank_allowed_field_accepts_empty_string_only():
    schema = [FieldSpec("Meeting_Type", "select", options=("Virtual", "None"), blank_allowed=True)]
    assert validate_variables({"Meeting_Type": ""}, schema) == {"Meeting_Type": ""}
    with pytest.raises(MissingVariables):
        validate_variables({"Meeting_Type": None}, schema)
    with pytest.raises(MissingVariables):
        validate_variables({}, schema)


def test_image_fields_are_not_required():
    schema = [FieldSpec("A"), FieldSpec("logo", "image")]
    assert validate_variables({"A": 1}, schema) == {"A": 1}


def test_registered_venue_schema_requires_computed_values():
    names = {f.name for f in ARRANGE_VENUE_FIELDS if not f.is_image}
    with pytest.raises(MissingVariables) as exc:
        validate_variables({}, ARRANGE_VENUE_FIELDS)
    assert set(exc.value.missing) == names
    assert "Total_Time" in exc.value.missing
    assert "logo" not in exc.value.missing
