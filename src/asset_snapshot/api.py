"""Public API for asset_snapshot.

High-level functions that return complete, structured results.
Hosts and tools should use these instead of importing from _internal.
"""

import logging
import os
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from asset_snapshot._internal.canonical_json import snapshot_digest
from asset_snapshot._internal.io.snapshot_reader import SnapshotReadError, SnapshotView, load_snapshot
from asset_snapshot._internal.io.snapshot_writer import (
    MAPPINGS_FILE,
    SCHEMAS_DIRECTORY,
    SnapshotWriter,
    mappings_document,
    read_recorded_version,
)
from asset_snapshot.codes import ExportStage, ExportStatus
from asset_snapshot.host import ExportHost, host_language_roots, resolve_version
from asset_snapshot.indexes import ReferenceIndexBuilder
from asset_snapshot.kernel.classifier import annotate_schemas, classify_properties
from asset_snapshot.kernel.codec_graph import collect_enum_descriptors
from asset_snapshot.kernel.property_index import index_property_nodes
from asset_snapshot.kernel.registry import RegistrySnapshot
from asset_snapshot.kernel.semantics import SemanticRecord
from asset_snapshot.kernel.values import IndexShard

logger = logging.getLogger(__name__)

__all__ = [
    "SnapshotExportError",
    "SnapshotArtifacts",
    "ExportResult",
    "SnapshotReadError",
    "SnapshotView",
    "build_snapshot",
    "export_snapshot",
    "load_snapshot",
]


class SnapshotExportError(Exception):
    """Raised when a pipeline stage fails; carries the stage name."""

    def __init__(self, stage: Union[ExportStage, str], cause: BaseException):
        self.stage = ExportStage(stage).value
        self.cause = cause
        super().__init__(f"{self.stage} failed: {cause}")


@contextmanager
def _stage(stage: ExportStage) -> Iterator[None]:
    try:
        yield
    except SnapshotExportError:
        raise
    except Exception as e:
        raise SnapshotExportError(stage, e) from e


class SnapshotArtifacts(BaseModel):
    """Everything one export writes, before it is written."""
    version: str
    schema_mappings: Dict[str, Any] = Field(default_factory=dict)
    schemas: Dict[str, Any]  # annotated schema documents by file name
    records: Dict[str, SemanticRecord] = Field(default_factory=dict)  # property key -> record
    shards: List[IndexShard] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")

    def documents(self) -> List[Tuple[str, Any]]:
        """(relative path, document) pairs without generation timestamps."""
        documents: List[Tuple[str, Any]] = [
            (MAPPINGS_FILE, mappings_document(self.version, "", self.schema_mappings)),
        ]
        documents += [(f"{SCHEMAS_DIRECTORY}/{name}", doc) for name, doc in self.schemas.items()]
        documents += [(shard.relative_path, shard.to_document(self.version, "")) for shard in self.shards]
        return documents

    def digest(self) -> str:
        return snapshot_digest(self.documents())


class ExportResult(BaseModel):
    """Outcome of one export run."""
    status: ExportStatus
    output_directory: str
    version: str
    generated_at: Optional[str] = None
    schema_count: int = 0
    shard_count: int = 0
    files_written: int = 0
    removed_legacy: List[str] = Field(default_factory=list)
    digest: Optional[str] = None
    stage: Optional[str] = None  # failing stage when status is FAILED
    error: Optional[str] = None


def build_snapshot(
    schemas: Mapping[str, Any],
    registry: RegistrySnapshot,
    version: str,
    *,
    editor_config: Optional[Mapping[str, Any]] = None,
    language_roots: Iterable[Union[str, os.PathLike]] = (),
) -> SnapshotArtifacts:
    """Classify and index a set of base schemas against a registry snapshot.

    Reads pack files (language files, common assets) but writes nothing.

    Args:
        schemas: Base schema documents keyed by schema file name. Not modified.
        registry: Live registry snapshot.
        version: Version recorded in every artifact.
        editor_config: Editor schema mapping configuration, carried as
            ``schemaMappings``.
        language_roots: Extra directories holding ``.lang`` files.

    Raises:
        SnapshotExportError: If classification or index extraction fails.
    """
    with _stage(ExportStage.CLASSIFY):
        property_nodes = index_property_nodes(schemas)
        enum_descriptors = collect_enum_descriptors(registry.codecs())
        records = classify_properties(schemas, property_nodes, enum_descriptors)
        annotated = annotate_schemas(schemas, records)

    with _stage(ExportStage.EXTRACT_INDEXES):
        builder = ReferenceIndexBuilder(
            registry,
            schemas,
            property_nodes,
            language_roots=[Path(root) for root in language_roots],
        )
        shards = builder.build()

    logger.debug("Classified %d of %d properties; built %d index shards",
                 len(records), len(property_nodes), len(shards))
    return SnapshotArtifacts(
        version=version,
        schema_mappings=dict(editor_config or {}),
        schemas=annotated,
        records=records,
        shards=shards,
    )


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def export_snapshot(
    host: ExportHost,
    output_directory: Union[str, os.PathLike],
    *,
    generated_at: Optional[str] = None,
) -> ExportResult:
    """Run one full export. Never raises; failures come back as FAILED.

    A snapshot already on disk with the same version is left untouched.
    The metadata file is written last, after legacy cleanup, so a failed
    run never records a version and the next run retries the full export.
    """
    output_directory = Path(output_directory)
    version = resolve_version(host)

    if read_recorded_version(output_directory) == version:
        logger.info("Same-version snapshot already found at %s (version=%s); skipping export.",
                    output_directory, version)
        return ExportResult(
            status=ExportStatus.SKIPPED,
            output_directory=str(output_directory),
            version=version,
        )

    generated_at = generated_at or _utc_timestamp()
    try:
        with _stage(ExportStage.GENERATE_SCHEMAS):
            editor_config: Dict[str, Any] = {}
            schemas = dict(host.generate_schemas({}, editor_config))
            registry = host.registry_snapshot()
            language_roots = host_language_roots(host)

        artifacts = build_snapshot(
            schemas,
            registry,
            version,
            editor_config=editor_config,
            language_roots=language_roots,
        )

        writer = SnapshotWriter(output_directory)
        with _stage(ExportStage.WRITE_ARTIFACTS):
            files_written = writer.write_schemas(artifacts.schemas)
            files_written += writer.write_indexes(artifacts.shards, version, generated_at)

        with _stage(ExportStage.CLEANUP):
            removed = writer.remove_legacy_artifacts()

        with _stage(ExportStage.WRITE_ARTIFACTS):
            files_written += writer.write_mappings(version, generated_at, artifacts.schema_mappings)
    except SnapshotExportError as e:
        logger.error("Failed to export snapshot artifacts to %s", output_directory, exc_info=True)
        return ExportResult(
            status=ExportStatus.FAILED,
            output_directory=str(output_directory),
            version=version,
            generated_at=generated_at,
            stage=e.stage,
            error=str(e),
        )

    logger.info("Exported snapshot artifacts to %s", output_directory)
    return ExportResult(
        status=ExportStatus.EXPORTED,
        output_directory=str(output_directory),
        version=version,
        generated_at=generated_at,
        schema_count=len(artifacts.schemas),
        shard_count=len(artifacts.shards),
        files_written=files_written,
        removed_legacy=removed,
        digest=artifacts.digest(),
    )
