"""
Tool Schema Converter Unit Tests
"""

from gemini_gateway.adapter.schema import convert_parameters, convert_schema, convert_tools
from gemini_gateway.domain.gemini import SchemaType
from gemini_gateway.domain.openai import Tool


def test_nested_schema_conversion():
    schema = convert_schema(
        {
            "type": "object",
            "description": "Weather query",
            "properties": {
                "city": {"type": "string", "description": "City name"},
                "days": {"type": "integer", "format": "int32"},
                "units": {"type": "string", "enum": ["c", "f"]},
                "hours": {"type": "array", "items": {"type": "number"}},
                "flags": {
                    "type": "object",
                    "properties": {"verbose": {"type": "boolean"}},
                    "required": ["verbose"],
                },
            },
            "required": ["city"],
        }
    )

    assert schema.type is SchemaType.OBJECT
    assert schema.description == "Weather query"
    assert schema.required == ["city"]
    props = schema.properties
    assert props["city"].type is SchemaType.STRING
    assert props["city"].description == "City name"
    assert props["days"].type is SchemaType.INTEGER
    assert props["days"].format == "int32"
    assert props["units"].enum == ["c", "f"]
    assert props["hours"].type is SchemaType.ARRAY
    assert props["hours"].items.type is SchemaType.NUMBER
    assert props["flags"].properties["verbose"].type is SchemaType.BOOLEAN
    assert props["flags"].required == ["verbose"]


def test_unknown_or_missing_type_is_unspecified():
    assert convert_schema({"type": "date"}).type is SchemaType.UNSPECIFIED
    assert convert_schema({"description": "anything"}).type is SchemaType.UNSPECIFIED
    assert convert_schema("not a schema").type is SchemaType.UNSPECIFIED


def test_list_type_with_null_is_nullable():
    schema = convert_schema({"type": ["string", "null"]})
    assert schema.type is SchemaType.STRING
    assert schema.nullable is True
    assert schema.to_dict() == {"type": "STRING", "nullable": True}


def test_enum_values_are_stringified():
    schema = convert_schema({"type": "integer", "enum": [1, 2, True]})
    assert schema.enum == ["1", "2", "true"]


def test_convert_parameters_forces_object_root():
    schema = convert_parameters({"properties": {"q": {"type": "string"}}})
    assert schema.type is SchemaType.OBJECT
    assert schema.to_dict() == {"type": "OBJECT", "properties": {"q": {"type": "STRING"}}}
    assert convert_parameters(None) is None
    assert convert_parameters({}) is None


def test_convert_tools_skips_non_function_tools():
    tools = [
        Tool.model_validate(
            {
                "type": "function",
                "function": {
                    "name": "get_weather",
                    "description": "Get weather",
                    "parameters": {"type": "object", "properties": {"city": {"type": "string"}}},
                },
            }
        ),
        Tool.model_validate({"type": "retrieval", "function": {"name": "ignored"}}),
    ]

    declarations = convert_tools(tools)

    assert len(declarations) == 1
    assert declarations[0].to_dict() == {
        "name": "get_weather",
        "description": "Get weather",
        "parameters": {"type": "OBJECT", "properties": {"city": {"type": "STRING"}}},
    }
