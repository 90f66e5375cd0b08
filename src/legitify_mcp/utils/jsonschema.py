"""JSON Schema validation of tool arguments."""

from __future__ import annotations

from dataclasses import dataclass

from jsonschema import Draft202012Validator

_VALIDATOR_TO_TYPE = {
    "required": "missing_required",
    "type": "invalid_type",
    "enum": "enum_violation",
    "minLength": "min_length_violation",
    "maxLength": "max_length_violation",
    "minimum": "minimum_violation",
    "maximum": "maximum_violation",
    "additionalProperties": "additional_property",
    "minItems": "min_items_violation",
    "maxItems": "max_items_violation",
}


@dataclass
class ArgumentError:
    """Structured validation error for a single tool argument.

    Attributes:
        type: Error category (missing_required, invalid_type, enum_violation, ...).
        message: Human-readable error message from the validator.
        path: Dotted path to the offending field, or None for the root object.
        allowed_values: Valid values for enum violations.
    """

    type: str
    message: str
    path: str | None = None
    allowed_values: list[str] | None = None


def validate_arguments(
    schema: dict[str, object],
    payload: dict[str, object],
) -> list[ArgumentError]:
    """Validate ``payload`` against ``schema`` and return every violation."""
    validator = Draft202012Validator(schema)
    errors: list[ArgumentError] = []
    for error in sorted(validator.iter_errors(payload), key=lambda e: list(e.absolute_path)):
        path = ".".join(str(p) for p in error.absolute_path) if error.absolute_path else None
        allowed_values = None
        if error.validator == "enum" and error.validator_value:
            allowed_values = [str(v) for v in error.validator_value]
        errors.append(
            ArgumentError(
                type=_VALIDATOR_TO_TYPE.get(str(error.validator), "validation_error"),
                message=error.message,
                path=path,
                allowed_values=allowed_values,
            )
        )
    return errors


def format_argument_errors(errors: list[ArgumentError]) -> dict[str, object]:
    """Group argument errors into ``missing``/``invalid`` lists for a tool response."""
    missing: list[str] = []
    invalid: list[dict[str, object]] = []

    for err in errors:
        if err.type == "missing_required":
            # jsonschema phrases these as "'<field>' is a required property"
            field = err.message.split("'")[1] if "'" in err.message else (err.path or "unknown")
            missing.append(field)
            continue
        entry: dict[str, object] = {"path": err.path, "type": err.type, "reason": err.message}
        if err.allowed_values:
            entry["allowed_values"] = err.allowed_values
        invalid.append(entry)

    return {
        "missing": missing or None,
        "invalid": invalid or None,
        "retryable": True,
    }
