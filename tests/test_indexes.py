"""Tests for reference index extraction."""

from dataclasses import dataclass
from typing import Any, List, Optional

from asset_snapshot.indexes import (
    ReferenceIndexBuilder,
    domain_aliases,
    is_type_or_subtype_named,
    normalize_token,
)
from asset_snapshot.kernel.registry import AssetStore, RegistrySnapshot
from asset_snapshot.kernel.rule_tables import ExportFamilyRule
from asset_snapshot.kernel.values import IndexKind

from conftest import make_registry

PACKAGE = __name__
FAMILIES = (
    ExportFamilyRule("Density", f"{PACKAGE}.DensityAsset"),
    ExportFamilyRule("Curve", f"{PACKAGE}.CurveAsset"),
)


class DensityAsset:
    def __init__(self, export_name: Optional[str] = None, inputs: Optional[List[Any]] = None):
        self.export_name = export_name
        self.inputs = inputs or []


class NoiseDensityAsset(DensityAsset):
    pass


class CurveAsset:
    def __init__(self, export_name=None):
        self.export_name = export_name


class OutsideRecord:
    def __init__(self, payload):
        self.payload = payload


OutsideRecord.__module__ = "somewhere.else"


@dataclass
class Entry:
    name: str


class DecimalConstantsFrameworkAsset:
    def __init__(self, entries):
        self.entry_assets = entries


class BaseHeightContentFieldAsset:
    def __init__(self, name):
        self.name = name


class WorldStructureAsset:
    def __init__(self, frameworks=(), content_fields=()):
        self.framework_assets = list(frameworks)
        self.content_field_assets = list(content_fields)


@dataclass
class BlockGroupAsset:
    group: Optional[str] = None


@dataclass
class HaircutAsset:
    color: str = ""


@dataclass
class CategoryAsset:
    label: str = ""


def _builder(stores, schemas=None, property_nodes=None, **kwargs) -> ReferenceIndexBuilder:
    return ReferenceIndexBuilder(
        RegistrySnapshot(stores),
        schemas or {},
        property_nodes or {},
        export_families=FAMILIES,
        package_prefix=PACKAGE,
        **kwargs,
    )


class TestTypeMatching:
    def test_ancestor_names_match(self):
        assert is_type_or_subtype_named(NoiseDensityAsset, f"{PACKAGE}.DensityAsset")
        assert not is_type_or_subtype_named(CurveAsset, f"{PACKAGE}.DensityAsset")

    def test_domain_aliases(self):
        assert normalize_token("Block-Groups!") == "blockgroups"
        assert domain_aliases("CategoryAsset") == {"categoryasset", "category", "categorys", "categories"}


class TestExportsByFamily:
    def test_nested_exports_found_once_with_source_file(self):
        shared = CurveAsset("Falloff")
        root = DensityAsset("Hills", inputs=[NoiseDensityAsset("Ridge"), shared, shared, DensityAsset()])
        store = AssetStore(asset_type=DensityAsset, assets={"hills": root}, paths={"hills": "/p/Server/Hills.json"})
        exports = _builder([store]).build_exports_by_family()
        assert exports == {
            "Curve": {"Falloff": {"sourcedFromFile": "/p/Server/Hills.json"}},
            "Density": {
                "Hills": {"sourcedFromFile": "/p/Server/Hills.json"},
                "Ridge": {"sourcedFromFile": "/p/Server/Hills.json"},
            },
        }

    def test_cycle_does_not_hang(self):
        a = DensityAsset("A")
        b = DensityAsset("B", inputs=[a])
        a.inputs.append(b)
        store = AssetStore(asset_type=DensityAsset, assets={"a": a})
        assert sorted(_builder([store]).build_exports_by_family()["Density"]) == ["A", "B"]

    def test_records_outside_namespace_are_not_entered(self):
        hidden = OutsideRecord(DensityAsset("Hidden"))
        store = AssetStore(asset_type=DensityAsset, assets={"root": DensityAsset("Root", inputs=[hidden])})
        assert list(_builder([store]).build_exports_by_family()["Density"]) == ["Root"]


class TestRegisteredAssets:
    def test_grouped_by_type(self, pack_root):
        registered = ReferenceIndexBuilder(make_registry(pack_root), {}, {}).build_registered_assets()
        assert list(registered) == ["EnvironmentAsset", "ItemAsset"]
        assert registered["EnvironmentAsset"] == {
            "Desert": {"sourcedFromFile": None},
            "Forest": {"sourcedFromFile": None},
        }
        assert registered["ItemAsset"]["Sword"]["sourcedFromFile"].endswith("Sword.json")


class TestReferenceBundles:
    def test_decimal_constants_merged_across_worlds(self):
        first = WorldStructureAsset(
            frameworks=[DecimalConstantsFrameworkAsset([Entry("Sea"), Entry("Base")]), object()],
        )
        second = WorldStructureAsset(
            frameworks=[DecimalConstantsFrameworkAsset([Entry("Sea")])],
            content_fields=[BaseHeightContentFieldAsset("Bedrock")],
        )
        store = AssetStore(asset_type=WorldStructureAsset, assets={"b": second, "a": first})
        assert _builder([store]).build_reference_bundles() == {
            "DecimalConstants": ["Base", "Sea", "Bedrock"],
        }

    def test_no_world_structures(self):
        assert _builder([]).build_reference_bundles() == {}


class TestLocalizationAndCommonAssets:
    def test_localization_from_pack_roots(self, pack_root):
        builder = ReferenceIndexBuilder(make_registry(pack_root), {}, {})
        assert builder.build_localization_keys() == {
            "en-US": {"items.sword.lore": "Sharp blade", "items.sword.name": "Sword"},
        }

    def test_extra_language_roots(self, tmp_path):
        extra = tmp_path / "extra" / "Languages" / "fr-FR"
        extra.mkdir(parents=True)
        (extra / "menu.lang").write_text("play=Jouer\n", encoding="utf-8")
        builder = _builder([], language_roots=[tmp_path / "extra"])
        assert builder.build_localization_keys() == {"fr-FR": {"menu.play": "Jouer"}}

    def test_common_assets(self, pack_root):
        builder = ReferenceIndexBuilder(make_registry(pack_root), {}, {})
        assert builder.build_common_assets() == {
            ".": {"no_extension": ["README"]},
            "Icons": {"png": ["apple.png", "sword.PNG"]},
        }


class TestDomainValues:
    def test_cosmetics_resolved_by_domain_alias(self):
        haircuts = AssetStore(asset_type=HaircutAsset, assets={"Short": HaircutAsset(), "Long": HaircutAsset()})
        int_keyed = AssetStore(asset_type=CategoryAsset, key_type=int, assets={1: CategoryAsset()})
        nodes = {
            "P.json#/properties/Hair": {"hytaleCosmeticAsset": "Haircuts"},
            "P.json#/properties/Cat": {"hytaleCosmeticAsset": "Categories"},
        }
        cosmetics = _builder([haircuts, int_keyed], property_nodes=nodes).build_cosmetics_by_type()
        assert cosmetics == {"Haircuts": ["Long", "Short"]}

    def test_ui_data_set_heuristics(self, pack_root):
        schemas = {"Block.json": {"properties": {"Group": {
            "hytale": {"uiEditorComponent": {"component": "Text", "dataSet": "BlockGroups"}},
        }}}}
        nodes = {
            "Item.json#/properties/Category": {
                "hytale": {"uiEditorComponent": {"component": "Dropdown", "dataSet": "ItemCategories"}},
            },
            "Item.json#/properties/Environment": {
                "hytale": {"uiEditorComponent": {"component": "Dropdown", "dataSet": "Environments"}},
            },
        }
        registry = make_registry(pack_root)
        stores = list(registry) + [
            AssetStore(asset_type=BlockGroupAsset, assets={"x": BlockGroupAsset("Stone"), "y": BlockGroupAsset()}),
        ]
        builder = ReferenceIndexBuilder(RegistrySnapshot(stores), schemas, nodes)
        assert builder.ui_data_set_names() == ["BlockGroups", "Environments", "ItemCategories"]
        assert builder.build_ui_data_sets() == {
            "BlockGroups": ["Stone"],
            "Environments": ["Desert", "Forest"],
            "ItemCategories": ["Food", "Melee", "Weapons"],
        }


class TestBuild:
    def test_shard_kinds_in_order(self, pack_root, sample_schemas):
        from asset_snapshot.kernel.property_index import index_property_nodes

        builder = ReferenceIndexBuilder(make_registry(pack_root), sample_schemas, index_property_nodes(sample_schemas))
        shards = builder.build()
        assert [(s.index_kind, s.key) for s in shards] == [
            (IndexKind.REGISTERED_ASSETS, "EnvironmentAsset"),
            (IndexKind.REGISTERED_ASSETS, "ItemAsset"),
            (IndexKind.LOCALIZATION_KEYS, "en-US"),
            (IndexKind.UI_DATA_SETS, "ItemCategories"),
            (IndexKind.COMMON_ASSETS_BY_ROOT, "all"),
        ]
        assert shards[-1].relative_path == "indexes/assetPaths/common.json"
        assert shards[2].relative_path == "indexes/localization/en-US.json"
