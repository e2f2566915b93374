"""Flatten schema documents into a (schema file, JSON Pointer) keyed index."""

from typing import Any, Dict, Mapping

from .json_pointer import append_pointer, build_property_key


def index_property_nodes(schema_documents: Mapping[str, Any]) -> Dict[str, dict]:
    """Index every object node sitting directly under a ``properties`` object.

    All child keys are recursed into (definitions, anyOf branches, items,
    ...), not only ``properties``, since nested definitions appear
    anywhere. Keys are visited in sorted order, so the result is ordered
    by discovery and stable across runs.

    Returns:
        property key -> the property node (the live node, not a copy).
    """
    index: Dict[str, dict] = {}
    for schema_file in sorted(schema_documents):
        _index_recursive(schema_file, "", schema_documents[schema_file], index)
    return dict(sorted(index.items()))


def _index_recursive(schema_file: str, pointer: str, value: Any, index: Dict[str, dict]) -> None:
    if isinstance(value, dict):
        properties = value.get("properties")
        if isinstance(properties, dict):
            properties_pointer = append_pointer(pointer, "properties")
            for name in sorted(properties):
                node = properties[name]
                if isinstance(node, dict):
                    key = build_property_key(schema_file, append_pointer(properties_pointer, name))
                    index[key] = node

        for key in sorted(value):
            _index_recursive(schema_file, append_pointer(pointer, key), value[key], index)
        return

    if isinstance(value, list):
        for position, child in enumerate(value):
            _index_recursive(schema_file, append_pointer(pointer, str(position)), child, index)
