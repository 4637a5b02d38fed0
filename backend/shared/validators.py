"""Validation helpers for service settings read from the environment."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, ClassVar

from pydantic_settings import EnvSettingsSource

if TYPE_CHECKING:
    from pydantic.fields import FieldInfo


def parse_string_list(value: str | list[str], *, allow_empty: bool = False) -> list[str]:
    """Parse a list of strings given either as a JSON array or as CSV.

    '["a","b"]' and 'a, b' both give ["a", "b"]. Lists pass through.
    Raises ValueError on malformed JSON, non-string items, or (unless
    allow_empty) an empty result.
    """
    if isinstance(value, list):
        items = value
    elif value.strip().startswith("["):
        try:
            items = json.loads(value)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON array: {e}") from e
        if not isinstance(items, list) or not all(isinstance(item, str) for item in items):
            raise ValueError("JSON value must be an array of strings")
    else:
        items = [part.strip() for part in value.split(",") if part.strip()]

    if not items and not allow_empty:
        raise ValueError("String list value must not be empty")
    return items


class StringListEnvSettingsSource(EnvSettingsSource):
    """Env source that leaves string-list fields as raw strings.

    pydantic-settings JSON-decodes list fields before validators run, which
    rejects the CSV form. Fields named in string_list_fields are handed to
    the field validator untouched so parse_string_list sees the raw value.
    """

    string_list_fields: ClassVar[frozenset[str]] = frozenset({"cors_origins"})

    def prepare_field_value(
        self,
        field_name: str,
        field: FieldInfo,
        value: Any,  # noqa: ANN401
        value_is_complex: bool,  # noqa: FBT001
    ) -> Any:  # noqa: ANN401
        if field_name in self.string_list_fields and isinstance(value, str):
            return value
        return super().prepare_field_value(field_name, field, value, value_is_complex)
