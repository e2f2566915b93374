"""Read an exported snapshot back, the way an editor consumes it."""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from asset_snapshot._internal.io.snapshot_writer import MAPPINGS_FILE, SCHEMAS_DIRECTORY, VERSION_FIELD
from asset_snapshot.kernel.property_index import index_property_nodes
from asset_snapshot.kernel.rule_tables import ANNOTATION_KEY
from asset_snapshot.kernel.schema_mappings import match_schema_file, parse_schema_mapping_rules
from asset_snapshot.kernel.values import INDEXES_DIRECTORY, IndexKind


class SnapshotReadError(Exception):
    """Raised when a snapshot directory cannot be read."""
    pass


def _read_json(path: Path) -> Any:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, ValueError) as e:
        raise SnapshotReadError(f"Cannot read {path}: {e}") from e


class SnapshotView(BaseModel):
    """In-memory view of one exported snapshot."""
    root: str
    version: Optional[str] = None
    generated_at: Optional[str] = None
    schema_mappings: Dict[str, Any] = Field(default_factory=dict)
    schemas: Dict[str, Any] = Field(default_factory=dict)
    # index kind -> group key -> shard document
    indexes: Dict[str, Dict[str, Dict[str, Any]]] = Field(default_factory=dict)

    model_config = ConfigDict(extra="forbid")

    _property_nodes: Optional[Dict[str, dict]] = PrivateAttr(default=None)

    @property
    def property_nodes(self) -> Dict[str, dict]:
        if self._property_nodes is None:
            self._property_nodes = index_property_nodes(self.schemas)
        return self._property_nodes

    def annotation(self, property_key: str) -> Optional[Dict[str, Any]]:
        """Semantic annotation of one property, or None if it has none."""
        node = self.property_nodes.get(property_key)
        if node is None:
            return None
        annotation = node.get(ANNOTATION_KEY)
        return annotation if isinstance(annotation, dict) else None

    def annotated_keys(self) -> List[str]:
        return [key for key, node in self.property_nodes.items() if isinstance(node.get(ANNOTATION_KEY), dict)]

    def shard(self, index_kind: Union[IndexKind, str], key: str) -> Optional[Any]:
        """``values`` of one index shard, or None if it was not exported."""
        kind = IndexKind(index_kind).value
        document = self.indexes.get(kind, {}).get(key)
        return None if document is None else document.get("values")

    def shard_counts(self) -> Dict[str, int]:
        return {kind: len(self.indexes[kind]) for kind in sorted(self.indexes)}

    def schema_file_for(self, asset_path: str) -> Optional[str]:
        """Schema file the editor mappings assign to an asset file."""
        return match_schema_file(asset_path, parse_schema_mapping_rules(self.schema_mappings))


def load_snapshot(root: Union[str, Path]) -> SnapshotView:
    """Load ``schema_mappings.json``, every schema and every index shard.

    Raises:
        SnapshotReadError: If the mappings file or any artifact is missing
            or not valid JSON.
    """
    root = Path(root)
    mappings_path = root / MAPPINGS_FILE
    if not mappings_path.is_file():
        raise SnapshotReadError(f"Missing {MAPPINGS_FILE} in {root}")
    mappings = _read_json(mappings_path)
    if not isinstance(mappings, dict):
        raise SnapshotReadError(f"{mappings_path} must contain a JSON object")

    schemas: Dict[str, Any] = {}
    schemas_dir = root / SCHEMAS_DIRECTORY
    if schemas_dir.is_dir():
        for path in sorted(schemas_dir.rglob("*.json")):
            schemas[path.relative_to(schemas_dir).as_posix()] = _read_json(path)

    indexes: Dict[str, Dict[str, Dict[str, Any]]] = {}
    indexes_dir = root / INDEXES_DIRECTORY
    if indexes_dir.is_dir():
        for path in sorted(indexes_dir.rglob("*.json")):
            document = _read_json(path)
            if not isinstance(document, dict):
                raise SnapshotReadError(f"{path} must contain a JSON object")
            kind = document.get("indexKind")
            key = document.get("key")
            if not isinstance(kind, str) or not isinstance(key, str):
                raise SnapshotReadError(f"{path} is missing indexKind or key")
            indexes.setdefault(kind, {})[key] = document

    version = mappings.get(VERSION_FIELD)
    generated_at = mappings.get("generatedAt")
    schema_mappings = mappings.get("schemaMappings")
    return SnapshotView(
        root=str(root),
        version=version if isinstance(version, str) else None,
        generated_at=generated_at if isinstance(generated_at, str) else None,
        schema_mappings=schema_mappings if isinstance(schema_mappings, dict) else {},
        schemas=schemas,
        indexes=indexes,
    )
