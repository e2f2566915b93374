"""asset_snapshot: schema semantics and reference indexes exported from a live asset registry."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("asset-snapshot")
except PackageNotFoundError:
    __version__ = "dev"

# Public API exports
from asset_snapshot.api import (
    ExportResult,
    SnapshotArtifacts,
    SnapshotExportError,
    SnapshotReadError,
    SnapshotView,
    build_snapshot,
    export_snapshot,
    load_snapshot,
)
from asset_snapshot.codes import ExportStage, ExportStatus
from asset_snapshot.config import ExportSettings, SettingsError
from asset_snapshot.host import ExportHost, on_boot

__all__ = [
    "__version__",
    "build_snapshot",
    "export_snapshot",
    "load_snapshot",
    "on_boot",
    "ExportHost",
    "ExportResult",
    "ExportSettings",
    "ExportStage",
    "ExportStatus",
    "SettingsError",
    "SnapshotArtifacts",
    "SnapshotExportError",
    "SnapshotReadError",
    "SnapshotView",
]
