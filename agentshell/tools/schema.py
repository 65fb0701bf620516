"""Parameter/result schemas for tool declarations.

A small subset of the OpenAPI schema the Gemini API understands: string,
number, integer, boolean, array-of-T and object-with-properties. Schemas
serialise to the wire form sent to the model and validate the arguments
the model sends back.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional


class SchemaType(str, Enum):
    """Primitive kinds usable in a tool schema."""

    STRING = "STRING"
    NUMBER = "NUMBER"
    INTEGER = "INTEGER"
    BOOLEAN = "BOOLEAN"
    ARRAY = "ARRAY"
    OBJECT = "OBJECT"


@dataclass(frozen=True)
class Schema:
    type: SchemaType
    description: str = ""
    properties: Mapping[str, "Schema"] = field(default_factory=dict)
    required: tuple[str, ...] = ()
    items: Optional["Schema"] = None

    # Constructors keep declarations readable.

    @classmethod
    def string(cls, description: str = "") -> "Schema":
        return cls(SchemaType.STRING, description)

    @classmethod
    def number(cls, description: str = "") -> "Schema":
        return cls(SchemaType.NUMBER, description)

    @classmethod
    def boolean(cls, description: str = "") -> "Schema":
        return cls(SchemaType.BOOLEAN, description)

    @classmethod
    def array(cls, items: "Schema", description: str = "") -> "Schema":
        return cls(SchemaType.ARRAY, description, items=items)

    @classmethod
    def object(
        cls,
        properties: Mapping[str, "Schema"],
        required: tuple[str, ...] = (),
        description: str = "",
    ) -> "Schema":
        return cls(SchemaType.OBJECT, description, properties=dict(properties), required=tuple(required))

    def to_dict(self) -> dict[str, Any]:
        """Serialise to the Gemini ``Schema`` JSON form."""
        data: dict[str, Any] = {"type": self.type.value}
        if self.description:
            data["description"] = self.description
        if self.type == SchemaType.OBJECT and self.properties:
            data["properties"] = {name: prop.to_dict() for name, prop in self.properties.items()}
        if self.required:
            data["required"] = list(self.required)
        if self.items is not None:
            data["items"] = self.items.to_dict()
        return data

    def validate(self, value: Any, path: str = "args") -> list[str]:
        """Check ``value`` against this schema.

        Returns a list of human-readable problems; empty means valid.
        Unknown object keys are tolerated since the schema is advisory to
        the model.
        """
        errors: list[str] = []
        if not _matches(self.type, value):
            errors.append(f"{path}: expected {self.type.value.lower()}, got {_type_name(value)}")
            return errors

        if self.type == SchemaType.OBJECT:
            for name in self.required:
                if name not in value or value[name] is None:
                    errors.append(f"{path}.{name}: required")
            for name, prop in self.properties.items():
                if name in value and value[name] is not None:
                    errors.extend(prop.validate(value[name], f"{path}.{name}"))

        elif self.type == SchemaType.ARRAY and self.items is not None:
            for idx, item in enumerate(value):
                errors.extend(self.items.validate(item, f"{path}[{idx}]"))

        return errors


def _matches(kind: SchemaType, value: Any) -> bool:
    # bool is an int subclass; keep it out of the numeric kinds.
    if kind == SchemaType.STRING:
        return isinstance(value, str)
    if kind == SchemaType.BOOLEAN:
        return isinstance(value, bool)
    if kind == SchemaType.INTEGER:
        if isinstance(value, bool):
            return False
        return isinstance(value, int) or (isinstance(value, float) and value.is_integer())
    if kind == SchemaType.NUMBER:
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if kind == SchemaType.ARRAY:
        return isinstance(value, (list, tuple))
    if kind == SchemaType.OBJECT:
        return isinstance(value, Mapping)
    return False


def _type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, Mapping):
        return "object"
    return type(value).__name__
