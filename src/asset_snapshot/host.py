"""Boundary to the running game server.

The exporter never touches server globals; everything it needs comes
through an :class:`ExportHost`.
"""

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Iterable, Mapping, Optional, Protocol, runtime_checkable

from asset_snapshot.config import ExportSettings, resolve_output_directory
from asset_snapshot.kernel.registry import RegistrySnapshot

if TYPE_CHECKING:
    from asset_snapshot.api import ExportResult

logger = logging.getLogger(__name__)

UNKNOWN_VERSION = "unknown"


@runtime_checkable
class ExportHost(Protocol):
    """What the server provides to one export run.

    Hosts may also expose ``language_roots()`` returning extra directories
    holding ``.lang`` files; it is optional.
    """

    data_directory: Path

    def generate_schemas(self, context: Dict[str, Any], editor_config: Dict[str, Any]) -> Mapping[str, dict]:
        """Base schema documents keyed by schema file name.

        The host fills ``editor_config`` with the editor's schema mapping
        configuration, written out verbatim as ``schemaMappings``.
        """
        ...

    def registry_snapshot(self) -> RegistrySnapshot:
        ...

    def server_version(self) -> Optional[str]:
        ...


def resolve_version(host: Any) -> str:
    """Server version, or ``"unknown"`` when it cannot be determined."""
    try:
        version = host.server_version()
    except Exception:
        logger.debug("Server version lookup failed", exc_info=True)
        return UNKNOWN_VERSION
    if version is None:
        return UNKNOWN_VERSION
    version = str(version).strip()
    return version or UNKNOWN_VERSION


def host_language_roots(host: Any) -> Iterable[Path]:
    """Extra language roots the host reports, if it reports any."""
    provider = getattr(host, "language_roots", None)
    if provider is None:
        return ()
    try:
        roots = provider() if callable(provider) else provider
        return [Path(root) for root in roots or ()]
    except Exception:
        logger.debug("Language root lookup failed", exc_info=True)
        return ()


def on_boot(host: ExportHost, settings: Optional[ExportSettings] = None) -> "ExportResult":
    """Startup handler: export synchronously to the configured directory."""
    from asset_snapshot.api import export_snapshot

    settings = settings or ExportSettings()
    output_directory = resolve_output_directory(settings, host.data_directory)
    return export_snapshot(host, output_directory)
