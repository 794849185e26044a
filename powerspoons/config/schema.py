"""
Configuration Schema.

This module provides typed field declarations and validation for the manager
configuration.

Key features:
- Field definitions with default, description and constraints
- min/max for numbers (value) and strings/lists (length)
- Missing keys fall back to defaults; unknown keys are rejected
"""

from dataclasses import dataclass
from typing import Any


class SchemaError(Exception):
    """Base exception for schema-related errors."""

    pass


class ValidationError(SchemaError):
    """Raised when a configuration value fails validation."""

    pass


def _type_matches(value: Any, type_: type) -> bool:
    if type_ is float:
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if type_ is int:
        return isinstance(value, int) and not isinstance(value, bool)
    return isinstance(value, type_)


@dataclass
class ConfigField:
    """
    A configuration field with type and constraints.

    Attributes:
        type_: Expected value type (int values are accepted for float fields)
        default: Default value
        description: Human-readable description (written as a TOML comment)
        min: Minimum value, or minimum length for str/list
        max: Maximum value, or maximum length for str/list
        choices: Allowed values
    """

    type_: type
    default: Any
    description: str = ""
    min: Any = None
    max: Any = None
    choices: list[Any] | None = None

    def __post_init__(self):
        if not _type_matches(self.default, self.type_):
            raise SchemaError(
                f"Default value {self.default!r} does not match type {self.type_.__name__}"
            )

        if (self.min is not None or self.max is not None) and self.type_ not in (
            int,
            float,
            str,
            list,
        ):
            raise SchemaError(
                f"min/max constraints only supported for int, float, str, list. Got {self.type_.__name__}"
            )

        if self.choices is not None and self.default not in self.choices:
            raise SchemaError(
                f"Default value {self.default!r} not in choices {self.choices}"
            )

    def validate(self, value: Any) -> Any:
        """
        Validate a value against this field.

        Args:
            value: Candidate value

        Returns:
            The value, coerced to float for float fields

        Raises:
            ValidationError: If validation fails
        """
        if not _type_matches(value, self.type_):
            raise ValidationError(
                f"Expected type {self.type_.__name__}, got {type(value).__name__}"
            )

        if self.type_ is float:
            value = float(value)

        if self.choices is not None and value not in self.choices:
            raise ValidationError(
                f"Value {value!r} not in allowed choices {self.choices}"
            )

        if self.type_ in (int, float):
            if self.min is not None and value < self.min:
                raise ValidationError(f"Value {value} is less than minimum {self.min}")
            if self.max is not None and value > self.max:
                raise ValidationError(
                    f"Value {value} is greater than maximum {self.max}"
                )
        elif self.type_ in (str, list):
            if self.min is not None and len(value) < self.min:
                raise ValidationError(
                    f"Length {len(value)} is less than minimum {self.min}"
                )
            if self.max is not None and len(value) > self.max:
                raise ValidationError(
                    f"Length {len(value)} is greater than maximum {self.max}"
                )

        return value


def validate_config(
    config: dict[str, Any], schema: dict[str, ConfigField]
) -> dict[str, Any]:
    """
    Validate a configuration section and fill in defaults.

    Args:
        config: Section read from the config file
        schema: field name -> ConfigField

    Returns:
        Complete, validated configuration

    Raises:
        ValidationError: On unknown fields or invalid values
    """
    for key in config:
        if key not in schema:
            raise ValidationError(f"Unknown configuration field: {key}")

    resolved = {}
    for field_name, field in schema.items():
        if field_name not in config:
            resolved[field_name] = field.default
            continue
        try:
            resolved[field_name] = field.validate(config[field_name])
        except ValidationError as e:
            raise ValidationError(f"Field '{field_name}': {e}") from e

    return resolved


def generate_default_config(schema: dict[str, ConfigField]) -> dict[str, Any]:
    """Default value for every field of the schema."""
    return {field_name: field.default for field_name, field in schema.items()}
