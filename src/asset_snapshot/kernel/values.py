"""Discovered values and the index shards that carry them."""

from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

INDEXES_DIRECTORY = "indexes"


class IndexKind(str, Enum):
    """Index categories and the directory each one is written under."""
    EXPORTS_BY_FAMILY = "exportsByFamily"
    REGISTERED_ASSETS = "registeredAssets"
    REFERENCE_BUNDLE = "referenceBundle"
    LOCALIZATION_KEYS = "localizationKeys"
    COSMETICS_BY_TYPE = "cosmeticsByType"
    UI_DATA_SETS = "uiDataSets"
    COMMON_ASSETS_BY_ROOT = "commonAssetsByRoot"

    @property
    def directory(self) -> str:
        return _INDEX_DIRECTORIES[self]


_INDEX_DIRECTORIES = {
    IndexKind.EXPORTS_BY_FAMILY: "exportFamilies",
    IndexKind.REGISTERED_ASSETS: "registeredAssets",
    IndexKind.REFERENCE_BUNDLE: "referenceBundle",
    IndexKind.LOCALIZATION_KEYS: "localization",
    IndexKind.COSMETICS_BY_TYPE: "cosmeticDomain",
    IndexKind.UI_DATA_SETS: "uiDataSet",
    IndexKind.COMMON_ASSETS_BY_ROOT: "assetPaths",
}


class ValueRecord(BaseModel):
    """A concrete value plus where it came from."""
    name: str
    file: Optional[str] = None
    extra: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(extra="forbid")

    def sort_key(self) -> tuple:
        return (self.name, self.file or "")


def sort_records(records: Iterable[ValueRecord]) -> List[ValueRecord]:
    """Total order on (name, file-or-empty)."""
    return sorted(records, key=ValueRecord.sort_key)


def unique_names(records: Iterable[ValueRecord]) -> List[str]:
    """Non-blank names in first-seen order, deduplicated."""
    names: Dict[str, None] = {}
    for record in records:
        if record.name and record.name.strip():
            names.setdefault(record.name)
    return list(names)


def names_with_sources(records: Iterable[ValueRecord]) -> Dict[str, Dict[str, Optional[str]]]:
    """``{name: {"sourcedFromFile": file}}``, first occurrence per name wins."""
    values: Dict[str, Dict[str, Optional[str]]] = {}
    for record in sort_records(records):
        if not record.name or not record.name.strip() or record.name in values:
            continue
        values[record.name] = {"sourcedFromFile": record.file}
    return values


def names_with_translations(records: Iterable[ValueRecord]) -> Dict[str, Optional[str]]:
    """``{key: translation}``, first occurrence per key wins."""
    values: Dict[str, Optional[str]] = {}
    for record in sort_records(records):
        if not record.name or not record.name.strip() or record.name in values:
            continue
        translation = record.extra.get("translation")
        values[record.name] = translation if isinstance(translation, str) else None
    return values


def sanitize_index_key(key: str) -> str:
    """File-name-safe form of a group key.

    Letters, digits, ``.``, ``-`` and ``_`` are kept; anything else
    becomes ``_``. A blank result becomes ``index``.
    """
    sanitized = "".join(c if c.isalnum() or c in ".-_" else "_" for c in key)
    return sanitized if sanitized.strip() else "index"


class IndexShard(BaseModel):
    """One independently written index artifact."""
    index_kind: IndexKind
    key: str
    relative_path: str
    values: Any

    model_config = ConfigDict(extra="forbid")

    def to_document(self, version: str, generated_at: str) -> Dict[str, Any]:
        return {
            "version": version,
            "generatedAt": generated_at,
            "indexKind": self.index_kind.value,
            "key": self.key,
            "values": self.values,
        }


def shard_path(index_kind: IndexKind, key: str) -> str:
    return f"{INDEXES_DIRECTORY}/{index_kind.directory}/{sanitize_index_key(key)}.json"


def make_shards(index_kind: IndexKind, values_by_key: Mapping[str, Any]) -> List[IndexShard]:
    """One shard per group, in sorted key order.

    Keys that sanitize to the same file name get a numeric suffix in
    key order (``a_b.json``, ``a_b-2.json``).
    """
    shards: List[IndexShard] = []
    used = set()
    for key in sorted(values_by_key):
        base = shard_path(index_kind, key)
        path, suffix = base, 1
        while path in used:
            suffix += 1
            path = f"{base[:-len('.json')]}-{suffix}.json"
        used.add(path)
        shards.append(IndexShard(index_kind=index_kind, key=key, relative_path=path, values=values_by_key[key]))
    return shards
