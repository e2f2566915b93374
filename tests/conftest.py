"""Pytest configuration and shared fixtures.

No sys.path hacks - tests should import from the installed asset_snapshot package.
"""

import copy
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

from asset_snapshot.kernel.codecs import BuilderCodec, EnumCodec, EnumStyle
from asset_snapshot.kernel.registry import AssetStore, RegistrySnapshot


class Blend(Enum):
    MIN = 1
    MAX = 2


@dataclass
class ItemAsset:
    category: Optional[str] = None
    categories: List[str] = field(default_factory=list)


@dataclass
class EnvironmentAsset:
    name: str = ""


SAMPLE_SCHEMAS: Dict[str, Any] = {
    "common.json": {
        "definitions": {
            "MaterialAsset": {
                "type": "object",
                "properties": {
                    "Solid": {"type": "string", "enum": ["Stone", "Dirt"]},
                    "Fluid": {"type": "string"},
                },
            },
            "DensityAsset": {
                "type": "object",
                "properties": {
                    "ExportAs": {"type": "string"},
                    "Blend": {"type": "string", "enum": ["Min", "Max"]},
                },
            },
        },
    },
    "Item.json": {
        "type": "object",
        "properties": {
            "Category": {
                "type": "string",
                "hytale": {"uiEditorComponent": {"component": "Dropdown", "dataSet": "ItemCategories"}},
            },
            "Environment": {"type": "string", "hytaleAssetRef": "Environment"},
            "Tint": {"type": "string", "hytale": {"type": "ColorAlpha"}},
            "Title": {
                "type": "string",
                "hytale": {"uiEditorComponent": {"component": "LocalizationKey"}},
            },
        },
    },
}

EDITOR_CONFIG: Dict[str, Any] = {
    "json.schemas": [
        {"fileMatch": ["/Server/Item/Items/**/*.json"], "url": "./schemas/Item.json"},
    ],
}


def make_registry(pack_root: Path) -> RegistrySnapshot:
    """Two small stores whose items live under ``pack_root/Server``."""
    item_codec = BuilderCodec().add_field("Blend", EnumCodec(Blend))
    items = AssetStore(
        asset_type=ItemAsset,
        codec=item_codec,
        assets={
            "Sword": ItemAsset(category="Weapons", categories=["Weapons", "Melee"]),
            "Apple": ItemAsset(category="Food"),
        },
        paths={
            "Sword": pack_root / "Server" / "Item" / "Items" / "Sword.json",
            "Apple": pack_root / "Server" / "Item" / "Items" / "Apple.json",
        },
    )
    environments = AssetStore(
        asset_type=EnvironmentAsset,
        assets={"Forest": EnvironmentAsset("Forest"), "Desert": EnvironmentAsset("Desert")},
    )
    return RegistrySnapshot([items, environments])


def make_pack(root: Path) -> Path:
    """Lay out a pack with a language file and a few common assets."""
    languages = root / "Server" / "Languages" / "en-US"
    languages.mkdir(parents=True)
    (languages / "items.lang").write_text(
        "\ufeff# items\nsword.name=Sword\nsword.lore=Sharp \\\nblade\n", encoding="utf-8"
    )
    icons = root / "Common" / "Icons"
    icons.mkdir(parents=True)
    (icons / "sword.PNG").write_bytes(b"")
    (icons / "apple.png").write_bytes(b"")
    (root / "Common" / "README").write_text("", encoding="utf-8")
    return root


class FakeHost:
    """In-memory ExportHost."""

    def __init__(self, data_directory: Path, pack_root: Path, version: Optional[str] = "2026.1",
                 schemas: Optional[Dict[str, Any]] = None):
        self.data_directory = data_directory
        self.pack_root = pack_root
        self.version = version
        self.schemas = copy.deepcopy(schemas if schemas is not None else SAMPLE_SCHEMAS)
        self.generate_calls = 0

    def generate_schemas(self, context, editor_config):
        self.generate_calls += 1
        editor_config.update(copy.deepcopy(EDITOR_CONFIG))
        return copy.deepcopy(self.schemas)

    def registry_snapshot(self) -> RegistrySnapshot:
        return make_registry(self.pack_root)

    def server_version(self) -> Optional[str]:
        return self.version


@pytest.fixture
def sample_schemas() -> Dict[str, Any]:
    return copy.deepcopy(SAMPLE_SCHEMAS)


@pytest.fixture
def pack_root(tmp_path) -> Path:
    return make_pack(tmp_path / "Pack")


@pytest.fixture
def host(tmp_path, pack_root) -> FakeHost:
    return FakeHost(tmp_path / "data", pack_root)


@pytest.fixture
def legacy_enum_codec() -> EnumCodec:
    return EnumCodec(Blend, enum_style=EnumStyle.LEGACY)
