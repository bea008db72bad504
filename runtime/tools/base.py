"""Tool base utilities — schema checks for PetalKit tool descriptors."""

from __future__ import annotations

import jsonschema

from contracts.tool_sdk import ToolDescriptor


def check_descriptor(descriptor: ToolDescriptor) -> None:
    """Verify the descriptor exports a valid JSON Schema.

    Parameter examples, when given, must satisfy their own property schema.
    Raises ``jsonschema.SchemaError`` or ``jsonschema.ValidationError``.
    """
    schema = descriptor.input_schema()
    jsonschema.Draft7Validator.check_schema(schema)
    for param in descriptor.parameters:
        if param.example is None:
            continue
        jsonschema.validate(instance=param.example, schema=schema["properties"][param.name])
