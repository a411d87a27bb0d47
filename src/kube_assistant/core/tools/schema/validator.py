from typing import Any, Dict, Set

from ...exceptions import ToolValidationError
from ...logger import get_logger

logger = get_logger(__name__)

_METADATA_KEYS = ("$defs", "$schema", "$id", "title", "definitions")


class SchemaValidator:
    """
    Helpers for checking and cleaning the JSON schemas generated for tools.
    """

    @staticmethod
    def assert_no_recursive_refs(schema: Dict[str, Any]) -> None:
        """
        Walks the ``$ref`` graph of a schema and fails on cycles.

        Args:
            schema: The JSON schema to check.

        Raises:
            ToolValidationError: If a recursive reference is found.
        """
        defs = schema.get("$defs", {}) or schema.get("definitions", {})

        def check(node: Any, path: Set[str]) -> None:
            if isinstance(node, dict):
                ref = node.get("$ref")
                if ref is not None:
                    if ref in path:
                        msg = f"Recursive structure detected: {ref}. Tool arguments must be flat values."
                        logger.error(msg)
                        raise ToolValidationError(msg)
                    # e.g. #/$defs/PodSelector
                    if ref.startswith("#"):
                        def_name = ref.split("/")[-1]
                        if def_name in defs:
                            check(defs[def_name], path | {ref})
                    return

                for value in node.values():
                    check(value, path)
            elif isinstance(node, list):
                for item in node:
                    check(item, path)

        check(schema, set())

    @staticmethod
    def sanitize_schema(schema: Any) -> Any:
        """
        Cleans a pydantic-generated schema for the chat completions API.

        Removes metadata keys, collapses ``Optional[X]`` (anyOf with null) into
        ``X``, drops ``default: null`` and closes every object with
        ``additionalProperties: false``.

        Args:
            schema: The JSON schema to sanitize.

        Returns:
            The sanitized schema.
        """
        if not isinstance(schema, dict):
            return schema

        cleaned = {k: v for k, v in schema.items() if k not in _METADATA_KEYS}

        if "anyOf" in cleaned:
            non_null = [option for option in cleaned["anyOf"] if option.get("type") != "null"]
            if len(non_null) == 1 and isinstance(non_null[0], dict):
                merged = {k: v for k, v in cleaned.items() if k != "anyOf"}
                merged.update({k: v for k, v in non_null[0].items() if k not in merged})
                return SchemaValidator.sanitize_schema(merged)

        if "default" in cleaned and cleaned["default"] is None:
            cleaned.pop("default")

        if cleaned.get("type") == "object":
            cleaned.setdefault("properties", {})
            cleaned.setdefault("additionalProperties", False)

        for key, value in cleaned.items():
            if isinstance(value, dict):
                cleaned[key] = SchemaValidator.sanitize_schema(value)
            elif isinstance(value, list):
                cleaned[key] = [
                    SchemaValidator.sanitize_schema(item) if isinstance(item, dict) else item for item in value
                ]

        return cleaned
