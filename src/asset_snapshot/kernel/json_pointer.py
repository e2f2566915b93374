"""JSON Pointer helpers (RFC 6901) and property-key addressing.

A property key is ``<schema file>#<json pointer>``, e.g.
``common.json#/definitions/MaterialAsset/properties/Solid``.
"""

from typing import Any, Optional, Tuple


def escape_token(token: str) -> str:
    """Escape one pointer segment (``~`` -> ``~0``, ``/`` -> ``~1``)."""
    return token.replace("~", "~0").replace("/", "~1")


def unescape_token(token: str) -> str:
    """Reverse of :func:`escape_token`."""
    return token.replace("~1", "/").replace("~0", "~")


def append_pointer(pointer: str, token: str) -> str:
    """Append an (unescaped) token to a pointer."""
    return f"{pointer}/{escape_token(token)}"


def build_property_key(schema_file: str, pointer: str) -> str:
    return f"{schema_file}#{pointer}"


def split_property_key(property_key: str) -> Optional[Tuple[str, str]]:
    """Split a property key into (schema file, pointer); None if malformed."""
    schema_file, sep, pointer = property_key.partition("#")
    if not sep:
        return None
    return schema_file, pointer


def resolve_pointer(root: Any, pointer: str) -> Optional[dict]:
    """Resolve a pointer against a JSON document.

    Returns the addressed node only when it is an object; any miss
    (unknown key, bad index, scalar in the path) yields None.
    """
    if pointer in ("", "#"):
        return root if isinstance(root, dict) else None
    if pointer.startswith("#"):
        pointer = pointer[1:]
    if not pointer:
        return root if isinstance(root, dict) else None
    if not pointer.startswith("/"):
        return None

    current = root
    for raw_token in pointer[1:].split("/"):
        key = unescape_token(raw_token)
        if isinstance(current, dict):
            if key not in current:
                return None
            current = current[key]
        elif isinstance(current, list):
            try:
                index = int(key)
            except ValueError:
                return None
            if index < 0 or index >= len(current):
                return None
            current = current[index]
        else:
            return None

    return current if isinstance(current, dict) else None
