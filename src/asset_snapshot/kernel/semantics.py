"""Semantic annotation records."""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class SemanticKind(str, Enum):
    """How a property's value is interpreted."""
    SYMBOL_DEFINITION = "symbolDefinition"
    SYMBOL_REFERENCE = "symbolReference"
    LITERAL_CHOICE = "literalChoice"
    ASSET_PATH = "assetPath"
    INLINE_OR_REFERENCE = "inlineOrReference"
    COLOR = "color"


class ValueShape(str, Enum):
    """JSON shape of the annotated value."""
    STRING = "string"
    NUMBER = "number"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    OBJECT = "object"
    ARRAY = "array"
    NULL = "null"
    STRING_OR_OBJECT = "stringOrObject"
    OBJECT_KEY = "objectKey"


_JSON_TYPE_SHAPES = {
    "string": ValueShape.STRING,
    "number": ValueShape.NUMBER,
    "integer": ValueShape.INTEGER,
    "boolean": ValueShape.BOOLEAN,
    "object": ValueShape.OBJECT,
    "array": ValueShape.ARRAY,
    "null": ValueShape.NULL,
}


def infer_value_shape(node: Dict[str, Any], fallback: ValueShape = ValueShape.STRING) -> ValueShape:
    """Value shape from a schema node's declared ``type``.

    A type union containing both string and object is ``stringOrObject``;
    any other union takes its first recognized string entry.
    """
    declared = node.get("type")
    if isinstance(declared, str):
        return _JSON_TYPE_SHAPES.get(declared, fallback)
    if isinstance(declared, list):
        names = [entry for entry in declared if isinstance(entry, str) and entry in _JSON_TYPE_SHAPES]
        if "string" in names and "object" in names:
            return ValueShape.STRING_OR_OBJECT
        if names:
            return _JSON_TYPE_SHAPES[names[0]]
    return fallback


class SemanticRecord(BaseModel):
    """Inferred meaning of one schema property."""
    property_key: str
    semantic_kind: SemanticKind
    value_shape: ValueShape = ValueShape.STRING
    extra: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(extra="forbid")

    def to_annotation(self) -> Dict[str, Any]:
        """Form written into the schema node (no property key)."""
        annotation: Dict[str, Any] = {
            "semanticKind": self.semantic_kind.value,
            "valueShape": self.value_shape.value,
        }
        annotation.update(self.extra)
        return annotation

    def to_dict(self) -> Dict[str, Any]:
        document = {"propertyKey": self.property_key}
        document.update(self.to_annotation())
        return document


def registry_domain_source(domain: str) -> Dict[str, str]:
    return {"kind": "registryDomain", "domain": domain}


def string_list(value: Any) -> List[str]:
    """Coerce a JSON array to strings, dropping nulls; non-arrays are empty."""
    if not isinstance(value, list):
        return []
    result = []
    for element in value:
        if element is None:
            continue
        result.append(element if isinstance(element, str) else _stringify(element))
    return result


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def string_value(node: Dict[str, Any], key: str) -> Optional[str]:
    value = node.get(key)
    return value if isinstance(value, str) else None


def object_value(node: Dict[str, Any], key: str) -> Optional[Dict[str, Any]]:
    value = node.get(key)
    return value if isinstance(value, dict) else None
