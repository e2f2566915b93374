"""Status constants for asset_snapshot.api.export_snapshot()."""

from enum import Enum


class ExportStatus(str, Enum):
    """Outcome of one export run."""

    EXPORTED = "exported"
    SKIPPED = "skipped"  # same version already on disk
    FAILED = "failed"


class ExportStage(str, Enum):
    """Pipeline stages named in export failures."""

    GENERATE_SCHEMAS = "generate_schemas"
    CLASSIFY = "classify"
    EXTRACT_INDEXES = "extract_indexes"
    WRITE_ARTIFACTS = "write_artifacts"
    CLEANUP = "cleanup"
