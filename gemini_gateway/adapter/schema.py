"""
Tool Schema Converter

Converts JSON-schema-like function parameter descriptions into Gemini's typed
Schema representation.
"""

from typing import Any, Optional

from gemini_gateway.domain.gemini import FunctionDeclaration, Schema, SchemaType
from gemini_gateway.domain.openai import Tool

_TYPE_MAP: dict[str, SchemaType] = {
    "string": SchemaType.STRING,
    "integer": SchemaType.INTEGER,
    "number": SchemaType.NUMBER,
    "boolean": SchemaType.BOOLEAN,
    "array": SchemaType.ARRAY,
    "object": SchemaType.OBJECT,
}


def _resolve_type(raw: Any) -> tuple[SchemaType, bool]:
    """Return (schema type, nullable); a list type picks its first non-null entry."""
    if isinstance(raw, list):
        names = [t for t in raw if isinstance(t, str)]
        nullable = "null" in names
        non_null = [t for t in names if t != "null"]
        if not non_null:
            return SchemaType.UNSPECIFIED, nullable
        return _TYPE_MAP.get(non_null[0].lower(), SchemaType.UNSPECIFIED), nullable
    if isinstance(raw, str):
        return _TYPE_MAP.get(raw.lower(), SchemaType.UNSPECIFIED), False
    return SchemaType.UNSPECIFIED, False


def convert_schema(node: Any) -> Schema:
    """
    Recursively convert a JSON schema node

    Unknown or missing types map to TYPE_UNSPECIFIED instead of failing, so an
    incomplete tool schema never blocks the request.

    Args:
        node: JSON schema node (dict); anything else yields an unspecified schema

    Returns:
        Schema: Gemini schema
    """
    if not isinstance(node, dict):
        return Schema()

    schema_type, nullable = _resolve_type(node.get("type"))
    schema = Schema(type=schema_type, nullable=nullable or bool(node.get("nullable")))

    description = node.get("description")
    if isinstance(description, str) and description:
        schema.description = description
    fmt = node.get("format")
    if isinstance(fmt, str) and fmt:
        schema.format = fmt

    enum = node.get("enum")
    if isinstance(enum, list):
        schema.enum = [v if isinstance(v, str) else _stringify(v) for v in enum if v is not None]

    if "items" in node:
        schema.items = convert_schema(node["items"])

    properties = node.get("properties")
    if isinstance(properties, dict):
        schema.properties = {name: convert_schema(sub) for name, sub in properties.items()}
    required = node.get("required")
    if isinstance(required, list):
        schema.required = [r for r in required if isinstance(r, str)]

    return schema


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def convert_parameters(params: Optional[dict[str, Any]]) -> Optional[Schema]:
    """Convert function parameters; the root of a parameter schema is always an object."""
    if not params:
        return None
    schema = convert_schema(params)
    schema.type = SchemaType.OBJECT
    schema.nullable = False
    if schema.properties is None:
        schema.properties = {}
    return schema


def convert_tools(tools: Optional[list[Tool]]) -> list[FunctionDeclaration]:
    """
    Convert tool declarations to function declarations

    All declarations are sent as a single Gemini tool entry; non-function tools are skipped.
    """
    declarations: list[FunctionDeclaration] = []
    for tool in tools or []:
        if tool.type != "function":
            continue
        declarations.append(
            FunctionDeclaration(
                name=tool.function.name,
                description=tool.function.description,
                parameters=convert_parameters(tool.function.parameters),
            )
        )
    return declarations
