"""On-disk asset pack discovery (internal).

Every helper here is best-effort: a directory that cannot be listed or
walked contributes nothing, and collection carries on.
"""

import logging
import os
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set

from asset_snapshot.kernel.registry import RegistrySnapshot

logger = logging.getLogger(__name__)

SERVER_DIRECTORY = "Server"
COMMON_DIRECTORY = "Common"
LANGUAGES_DIRECTORY = "Languages"
NO_EXTENSION = "no_extension"


def resolve_pack_root(file_path: Path) -> Optional[Path]:
    """Parent of the nearest ``Server`` directory above ``file_path``."""
    current = Path(os.path.abspath(file_path))
    for candidate in (current, *current.parents):
        if candidate.name == SERVER_DIRECTORY:
            return candidate.parent
    return None


def collect_pack_roots(registry: RegistrySnapshot) -> List[Path]:
    """Distinct pack roots of every asset that has a source file."""
    roots: Set[Path] = set()
    for store in registry:
        for key in list(store.assets.keys()):
            path = store.path_for_key(key)
            if path is None:
                continue
            root = resolve_pack_root(path)
            if root is not None:
                roots.add(root)
    return sorted(roots)


def _walk_files(root: Path) -> Iterable[Path]:
    def _on_error(exc: OSError) -> None:
        logger.debug("Skipping unreadable directory: %s", exc)

    for directory, _, file_names in os.walk(root, onerror=_on_error, followlinks=True):
        for file_name in file_names:
            path = Path(directory) / file_name
            if path.is_file():
                yield path


def collect_language_files(language_root: Path) -> List[Path]:
    """All ``.lang`` files below ``language_root`` (absolute, normalized)."""
    if not language_root.is_dir():
        return []
    return sorted(
        Path(os.path.abspath(path))
        for path in _walk_files(language_root)
        if path.name.lower().endswith(".lang")
    )


def language_files_for_packs(pack_roots: Iterable[Path], extra_roots: Iterable[Path] = ()) -> List[Path]:
    files: Set[Path] = set()
    for root in pack_roots:
        files.update(collect_language_files(root / SERVER_DIRECTORY / LANGUAGES_DIRECTORY))
        files.update(collect_language_files(root / COMMON_DIRECTORY / LANGUAGES_DIRECTORY))
    for root in extra_roots:
        files.update(collect_language_files(Path(os.path.abspath(root))))
    return sorted(files)


def resolve_file_type(file_name: str) -> str:
    """Lower-case extension, or ``no_extension`` (dotfiles and trailing dots too)."""
    dot = file_name.rfind(".")
    if dot <= 0 or dot == len(file_name) - 1:
        return NO_EXTENSION
    return file_name[dot + 1:].lower()


def list_common_assets(pack_roots: Iterable[Path]) -> Dict[str, Dict[str, List[str]]]:
    """Files under each pack's ``Common/`` tree: parent dir -> extension -> names.

    Parent directories are relative to ``Common`` with ``/`` separators
    (``.`` for the top level). All levels are sorted.
    """
    grouped: Dict[str, Dict[str, Set[str]]] = {}
    for root in pack_roots:
        common = root / COMMON_DIRECTORY
        if not common.is_dir():
            continue
        for path in _walk_files(common):
            relative = path.relative_to(common).as_posix()
            if not relative:
                continue
            parent, _, file_name = relative.rpartition("/")
            if not file_name:
                continue
            grouped.setdefault(parent or ".", {}).setdefault(resolve_file_type(file_name), set()).add(file_name)

    return {
        parent: {file_type: sorted(names) for file_type, names in sorted(by_type.items())}
        for parent, by_type in sorted(grouped.items())
    }
