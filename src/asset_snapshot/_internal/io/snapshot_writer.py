"""Writes a snapshot to its output directory."""

import json
import logging
import shutil
from pathlib import Path, PurePosixPath
from typing import Any, Dict, Iterable, List, Mapping, Optional

from asset_snapshot._internal.canonical_json import snapshot_dumps
from asset_snapshot.kernel.values import INDEXES_DIRECTORY, IndexShard

logger = logging.getLogger(__name__)

MAPPINGS_FILE = "schema_mappings.json"
SCHEMAS_DIRECTORY = "schemas"
VERSION_FIELD = "version"

_LEGACY_STEMS = (
    "stores_info",
    "codecs_info",
    "asset_key_domains",
    "material_solid_values",
    "material_fluid_values",
    "schemas",
    "asset_types_info",
    "property_semantics",
    "index_manifest",
)

LEGACY_ARTIFACTS = tuple(
    [f"{stem}.{ext}" for stem in _LEGACY_STEMS for ext in ("json", "bson")]
    + [
        "schemaMappings.bson",
        "schemaMappings.json",
        "autocomplete_semantics_v1.json",
        "autocomplete_semantics_v1.bson",
        "reference_indexes_v1.json",
        "reference_indexes_v1.bson",
    ]
)


def read_recorded_version(output_directory: Path) -> Optional[str]:
    """Version recorded by a previous export, or None.

    Any read or parse problem means "no valid prior version".
    """
    mappings_path = output_directory / MAPPINGS_FILE
    try:
        if not mappings_path.is_file():
            return None
        raw = mappings_path.read_text(encoding="utf-8")
        if not raw.strip():
            return None
        document = json.loads(raw)
    except (OSError, ValueError):
        logger.debug("Ignoring unreadable %s", mappings_path, exc_info=True)
        return None
    if not isinstance(document, dict):
        return None
    version = document.get(VERSION_FIELD)
    if isinstance(version, str) and version.strip():
        return version
    return None


def mappings_document(version: str, generated_at: str, schema_mappings: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        VERSION_FIELD: version,
        "generatedAt": generated_at,
        "schemaMappings": dict(schema_mappings),
    }


def safe_relative_path(relative: str) -> PurePosixPath:
    """Reject absolute paths and parent segments coming from the host."""
    path = PurePosixPath(relative.replace("\\", "/"))
    if path.is_absolute() or ".." in path.parts or not path.parts:
        raise ValueError(f"Unsafe artifact path: {relative!r}")
    return path


def clear_directory(directory: Path) -> None:
    if directory.exists():
        shutil.rmtree(directory)
    directory.mkdir(parents=True, exist_ok=True)


class SnapshotWriter:
    """Writes one snapshot's files under ``output_directory``.

    Each ``write_*`` method returns the number of files it wrote.
    Directories are cleared before being written into; nothing is rolled
    back if a later write fails.
    """

    def __init__(self, output_directory: Path):
        self.output_directory = Path(output_directory)

    def _write(self, relative: str, document: Any) -> None:
        target = self.output_directory.joinpath(*safe_relative_path(relative).parts)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(snapshot_dumps(document), encoding="utf-8")

    def write_mappings(self, version: str, generated_at: str, schema_mappings: Mapping[str, Any]) -> int:
        self.output_directory.mkdir(parents=True, exist_ok=True)
        self._write(MAPPINGS_FILE, mappings_document(version, generated_at, schema_mappings))
        return 1

    def write_schemas(self, schemas: Mapping[str, Any]) -> int:
        clear_directory(self.output_directory / SCHEMAS_DIRECTORY)
        for schema_file in sorted(schemas):
            self._write(f"{SCHEMAS_DIRECTORY}/{schema_file}", schemas[schema_file])
        return len(schemas)

    def write_indexes(self, shards: Iterable[IndexShard], version: str, generated_at: str) -> int:
        clear_directory(self.output_directory / INDEXES_DIRECTORY)
        count = 0
        for shard in shards:
            self._write(shard.relative_path, shard.to_document(version, generated_at))
            count += 1
        return count

    def remove_legacy_artifacts(self) -> List[str]:
        """Delete obsolete top-level files; returns the names removed."""
        removed: List[str] = []
        for name in LEGACY_ARTIFACTS:
            path = self.output_directory / name
            if path.is_file():
                path.unlink()
                removed.append(name)
        if removed:
            logger.debug("Removed legacy artifacts: %s", ", ".join(removed))
        return removed
