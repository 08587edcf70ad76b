"""Validation of policy documents and audit reports against bundled schemas."""

from functools import lru_cache
from typing import Any

from jsonschema.exceptions import ValidationError
from jsonschema.validators import Draft202012Validator

from topocheck.utils.schema_registry import get_registry


class SchemaValidationError(ValueError):
    """Document does not match a bundled schema; `errors` holds one line per problem."""

    def __init__(self, schema_name: str, errors: list[str]) -> None:
        super().__init__(
            f"Schema validation failed for '{schema_name}':\n" + "\n".join(f"  - {msg}" for msg in errors)
        )
        self.schema_name = schema_name
        self.errors = errors


@lru_cache(maxsize=None)
def _validator_for(schema_name: str) -> Draft202012Validator:
    schema = get_registry().get_json(schema_name)
    Draft202012Validator.check_schema(schema)
    return Draft202012Validator(schema)


def _document_path(error: ValidationError) -> str:
    # $.allowed_to_fail.openshift-console, $.violations[0].name
    return "$" + "".join(f"[{p}]" if isinstance(p, int) else f".{p}" for p in error.absolute_path)


def schema_errors(data: Any, schema_name: str) -> list[str]:
    """Return `path: message` lines for every schema violation, ordered by document path."""
    errors = sorted(_validator_for(schema_name).iter_errors(data), key=_document_path)
    return [f"{_document_path(e)}: {e.message}" for e in errors]


def validate_data(
    data: dict[str, Any],
    schema_name: str,
    strict: bool = True
) -> tuple[bool, list[str]]:
    """Validate data against a schema from package data.

    Raises:
        KeyError: If schema not found in package data
        SchemaValidationError: If validation fails and strict=True
    """
    errors = schema_errors(data, schema_name)
    if errors and strict:
        raise SchemaValidationError(schema_name, errors)
    return not errors, errors
