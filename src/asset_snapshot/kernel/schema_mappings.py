"""Match asset files to schema files using the exported editor mappings.

``schemaMappings`` holds the editor configuration the host produced; its
``json.schemas`` entries pair ``fileMatch`` globs with a schema ``url``.
"""

import posixpath
import re
from typing import Any, List, Mapping, NamedTuple, Optional, Pattern

JSON_SCHEMAS_KEY = "json.schemas"
RESOURCES_MARKER = "/src/main/resources/"


class SchemaMappingRule(NamedTuple):
    file_match: List[str]
    schema_file: str
    patterns: List[Pattern]


def _normalize(value: str) -> str:
    return value.replace("\\", "/")


def glob_to_regex(glob: str) -> Pattern:
    """Compile an editor ``fileMatch`` glob.

    ``**/`` matches zero or more directories, ``**`` anything, ``*`` and
    ``?`` stay within one path segment. Patterns are anchored at a
    leading ``/``.
    """
    normalized = _normalize(glob)
    if not normalized.startswith("/"):
        normalized = "/" + normalized
    parts = ["^"]
    i = 0
    while i < len(normalized):
        char = normalized[i]
        if char == "*":
            if normalized[i + 1:i + 2] == "*":
                if normalized[i + 2:i + 3] == "/":
                    parts.append("(?:.*/)?")
                    i += 3
                    continue
                parts.append(".*")
                i += 2
                continue
            parts.append("[^/]*")
        elif char == "?":
            parts.append("[^/]")
        else:
            parts.append(re.escape(char))
        i += 1
    parts.append("$")
    return re.compile("".join(parts))


def schema_file_from_url(url: str) -> str:
    normalized = _normalize(url)
    if normalized.startswith("./"):
        normalized = normalized[2:]
    return posixpath.basename(normalized) if normalized else ""


def parse_schema_mapping_rules(schema_mappings: Any) -> List[SchemaMappingRule]:
    """Usable rules from a ``schemaMappings`` object, in declaration order."""
    if not isinstance(schema_mappings, Mapping):
        return []
    entries = schema_mappings.get(JSON_SCHEMAS_KEY)
    if not isinstance(entries, list):
        return []
    rules: List[SchemaMappingRule] = []
    for entry in entries:
        if not isinstance(entry, Mapping):
            continue
        file_match = entry.get("fileMatch")
        globs = [g for g in file_match if isinstance(g, str)] if isinstance(file_match, list) else []
        url = entry.get("url")
        schema_file = schema_file_from_url(url) if isinstance(url, str) else ""
        if not globs or not schema_file:
            continue
        rules.append(SchemaMappingRule(globs, schema_file, [glob_to_regex(g) for g in globs]))
    return rules


def normalize_asset_path(asset_path: str) -> str:
    """Asset path relative to a resources root, with a leading ``/``."""
    normalized = _normalize(asset_path)
    marker = normalized.find(RESOURCES_MARKER)
    if marker >= 0:
        normalized = normalized[marker + len(RESOURCES_MARKER):]
    if not normalized.startswith("/"):
        normalized = "/" + normalized
    return re.sub(r"/{2,}", "/", normalized)


def match_schema_file(asset_path: str, rules: List[SchemaMappingRule]) -> Optional[str]:
    """First rule whose globs match the asset path wins."""
    normalized = normalize_asset_path(asset_path)
    for rule in rules:
        if any(pattern.match(normalized) for pattern in rule.patterns):
            return rule.schema_file
    return None
