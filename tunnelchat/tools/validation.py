"""
Argument validation against a tool's JSON Schema.

Runs before dispatch so malformed model arguments never reach a backend.
"""

import logging
from typing import Any, Dict

from jsonschema import SchemaError
from jsonschema.exceptions import best_match
from jsonschema.validators import validator_for

from ..errors import ArgumentError

logger = logging.getLogger(__name__)


def _is_object_schema(schema: Any) -> bool:
    if not isinstance(schema, dict) or not schema:
        return False
    return schema.get("type") == "object" or "properties" in schema


def merge_defaults(defaults: Dict[str, Any], args: Dict[str, Any]) -> Dict[str, Any]:
    """Defaults first, model-supplied values win. None counts as missing."""
    merged = dict(defaults)
    for key, value in args.items():
        if value is None and key in defaults:
            continue
        merged[key] = value
    return merged


def validate_arguments(tool_name: str, schema: Dict[str, Any], args: Any) -> None:
    """
    Validate *args* against *schema*

    Schemas that are empty or not object schemas are not enforced. A schema
    that is itself invalid is logged and skipped.

    Raises:
        ArgumentError: If the arguments are not an object or fail validation
    """
    if not isinstance(args, dict):
        raise ArgumentError(tool_name, f"expected an object, got {type(args).__name__}")

    if not _is_object_schema(schema):
        return

    cls = validator_for(schema)
    try:
        cls.check_schema(schema)
    except SchemaError as e:
        logger.warning(f"Tool '{tool_name}' publishes an invalid schema, skipping validation: {e.message}")
        return

    error = best_match(cls(schema).iter_errors(args))
    if error is None:
        return

    path = ".".join(str(p) for p in error.absolute_path) or None
    message = f"{path}: {error.message}" if path else error.message
    raise ArgumentError(tool_name, message, path=path)
