"""Explicit snapshot of the host's live asset registry."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator, List, Mapping, Optional, Sequence, Tuple

from .codecs import Codec

logger = logging.getLogger(__name__)


@dataclass
class AssetStore:
    """One asset type as loaded by the host.

    Attributes:
        asset_type: Class of the loaded assets; its ``__name__`` is the
            type name used throughout the indexes.
        codec: Root codec describing the asset type.
        key_type: Type of the asset keys (only ``str``-keyed stores back
            registry-domain lookups).
        assets: Loaded assets, key -> live value.
        paths: Optional key -> source file lookup.
    """
    asset_type: type
    codec: Optional[Codec] = None
    key_type: type = str
    assets: Mapping[Any, Any] = field(default_factory=dict)
    paths: Mapping[Any, Any] = field(default_factory=dict)

    @property
    def type_name(self) -> str:
        return self.asset_type.__name__

    def path_for_key(self, key: Any) -> Optional[Path]:
        """Source file for ``key``, or None. Never raises."""
        if key is None:
            return None
        try:
            raw = self.paths.get(key)
        except Exception:
            logger.debug("Path lookup failed for %r in %s", key, self.type_name)
            return None
        if raw is None:
            return None
        return Path(raw)

    def file_for_key(self, key: Any) -> Optional[str]:
        path = self.path_for_key(key)
        return None if path is None else str(path)

    def items(self) -> Iterator[Tuple[Any, Any]]:
        return iter(list(self.assets.items()))


class RegistrySnapshot:
    """Stores ordered by asset type name, for deterministic traversal."""

    def __init__(self, stores: Sequence[AssetStore]):
        self.stores: List[AssetStore] = sorted(stores, key=lambda store: store.type_name)

    def __iter__(self) -> Iterator[AssetStore]:
        return iter(self.stores)

    def __len__(self) -> int:
        return len(self.stores)

    def codecs(self) -> List[Codec]:
        return [store.codec for store in self.stores if store.codec is not None]

    def store_named(self, type_name: str) -> Optional[AssetStore]:
        for store in self.stores:
            if store.type_name == type_name:
                return store
        return None
