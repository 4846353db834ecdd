"""
Variable validator.

Only the keys named by the schema survive validation; anything else found
in the input is dropped so that it can never reach the template.
"""
from typing import Any, Dict, Mapping, Sequence

from .exceptions import MissingVariables
from .schema import FieldSpec


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value == "")


def validate_variables(data: Mapping[str, Any], schema: Sequence[FieldSpec]) -> Dict[str, Any]:
    """Return the whitelisted subset of `data` or raise MissingVariables.

    Keys are matched with exact casing. Image fields are not checked here;
    images travel in their own mapping.
    """
    if not isinstance(data, Mapping):
        raise TypeError("Variable data must be a mapping")

    sanitized: Dict[str, Any] = {}
    missing = []

    for spec in schema:
        if spec.is_image:
            continue
        value = data.get(spec.name)
        if spec.blank_allowed:
            if value is None:
                missing.append(spec.name)
                continue
        elif _is_blank(value):
            missing.append(spec.name)
            continue
        sanitized[spec.name] = value

    if missing:
        raise MissingVariables(missing)
    return sanitized
