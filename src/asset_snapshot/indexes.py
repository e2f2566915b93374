"""Reference index extraction from the live registry.

Each builder returns ``group key -> values`` for one index kind; :meth:`ReferenceIndexBuilder.build`
turns them into :class:`IndexShard` objects in a fixed kind order.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Set

from asset_snapshot._internal.io.lang_files import collect_localization_records
from asset_snapshot._internal.io.pack_files import (
    collect_pack_roots,
    language_files_for_packs,
    list_common_assets,
)
from asset_snapshot.kernel.classifier import cosmetic_domain, find_ui_data_set
from asset_snapshot.kernel.registry import RegistrySnapshot
from asset_snapshot.kernel.rule_tables import (
    BASE_HEIGHT_CONTENT_FIELD_MARKER,
    CONTENT_FIELD_ASSETS_FIELD,
    DECIMAL_CONSTANTS_BUNDLE,
    DECIMAL_FRAMEWORK_TYPE_MARKER,
    ENTRY_ASSETS_FIELD,
    EXPORT_FAMILY_RULES,
    EXPORT_NAME_FIELD,
    FRAMEWORK_ASSETS_FIELD,
    GENERATOR_ASSETS_PACKAGE,
    UI_DATA_SET_COLLECTIONS,
    UI_DATA_SET_FIELDS,
    WORLD_STRUCTURE_TYPE,
    ExportFamilyRule,
)
from asset_snapshot.kernel.values import (
    INDEXES_DIRECTORY,
    IndexKind,
    IndexShard,
    ValueRecord,
    make_shards,
    names_with_sources,
    names_with_translations,
    sort_records,
    unique_names,
)
from asset_snapshot.kernel.walker import is_mapping, is_scalar, is_sequence, walk_graph

logger = logging.getLogger(__name__)

COMMON_ASSETS_KEY = "all"
COMMON_ASSETS_PATH = f"{INDEXES_DIRECTORY}/{IndexKind.COMMON_ASSETS_BY_ROOT.directory}/common.json"


def qualified_type_name(cls: type) -> str:
    return f"{cls.__module__}.{cls.__qualname__}"


def is_type_or_subtype_named(cls: type, type_name: str) -> bool:
    """True if ``cls`` or any ancestor has the qualified name ``type_name``."""
    return any(qualified_type_name(ancestor) == type_name for ancestor in cls.__mro__ if ancestor is not object)


def read_field(target: Any, name: str) -> Any:
    """Attribute value or None; never raises."""
    if target is None:
        return None
    try:
        return getattr(target, name, None)
    except Exception:
        logger.debug("Cannot read %s from %r", name, type(target))
        return None


def read_string_field(target: Any, name: str) -> Optional[str]:
    value = read_field(target, name)
    return None if value is None else str(value)


def normalize_token(value: str) -> str:
    """Lower-case letters and digits only."""
    return "".join(c.lower() for c in value if c.isalnum())


def family_name(type_name: str) -> str:
    return type_name[: -len("Asset")] if type_name.endswith("Asset") else type_name


def domain_aliases(type_name: str) -> Set[str]:
    """Names under which a store answers a registry-domain lookup."""
    family = family_name(type_name)
    aliases = {type_name, family, family + "s"}
    if family.endswith("y") and len(family) > 1:
        aliases.add(family[:-1] + "ies")
    return {normalize_token(alias) for alias in aliases}


class ReferenceIndexBuilder:
    """Builds every reference index from one registry snapshot.

    Args:
        registry: The live registry snapshot.
        schema_documents: Base schema documents (scanned for UI data sets).
        property_nodes: Flat property index (scanned for cosmetic domains
            and UI data sets).
        export_families: Family -> base type table for export extraction.
        package_prefix: Namespace whose typed records are descended into
            while searching for exports. Only bounds the traversal.
        language_roots: Extra directories holding ``.lang`` files.
    """

    def __init__(
        self,
        registry: RegistrySnapshot,
        schema_documents: Mapping[str, Any],
        property_nodes: Mapping[str, dict],
        export_families: Sequence[ExportFamilyRule] = EXPORT_FAMILY_RULES,
        package_prefix: str = GENERATOR_ASSETS_PACKAGE,
        language_roots: Iterable[Path] = (),
    ):
        self.registry = registry
        self.schema_documents = schema_documents
        self.property_nodes = property_nodes
        self.export_families = tuple(export_families)
        self.package_prefix = package_prefix
        self.language_roots = [Path(root) for root in language_roots]
        self._pack_roots: Optional[List[Path]] = None

    @property
    def pack_roots(self) -> List[Path]:
        if self._pack_roots is None:
            self._pack_roots = collect_pack_roots(self.registry)
        return self._pack_roots

    def build(self) -> List[IndexShard]:
        shards: List[IndexShard] = []
        shards += make_shards(IndexKind.EXPORTS_BY_FAMILY, self.build_exports_by_family())
        shards += make_shards(IndexKind.REGISTERED_ASSETS, self.build_registered_assets())
        shards += make_shards(IndexKind.REFERENCE_BUNDLE, self.build_reference_bundles())
        shards += make_shards(IndexKind.LOCALIZATION_KEYS, self.build_localization_keys())
        shards += make_shards(IndexKind.COSMETICS_BY_TYPE, self.build_cosmetics_by_type())
        shards += make_shards(IndexKind.UI_DATA_SETS, self.build_ui_data_sets())
        shards.append(IndexShard(
            index_kind=IndexKind.COMMON_ASSETS_BY_ROOT,
            key=COMMON_ASSETS_KEY,
            relative_path=COMMON_ASSETS_PATH,
            values=self.build_common_assets(),
        ))
        return shards

    # --- export families ------------------------------------------------------

    def export_family_for(self, cls: type) -> Optional[str]:
        for rule in self.export_families:
            if is_type_or_subtype_named(cls, rule.base_type_name):
                return rule.family
        return None

    def in_package_scope(self, value: Any) -> bool:
        return qualified_type_name(type(value)).startswith(self.package_prefix + ".")

    def collect_export_records(self, root: Any, file: Optional[str],
                               by_family: Dict[str, List[ValueRecord]]) -> None:
        """Walk one asset graph, recording every named export it contains."""

        def visit(node: Any) -> None:
            if is_scalar(node) or is_sequence(node) or is_mapping(node):
                return
            family = self.export_family_for(type(node))
            if family is None:
                return
            export_name = read_string_field(node, EXPORT_NAME_FIELD)
            if export_name:
                by_family.setdefault(family, []).append(ValueRecord(name=export_name, file=file))

        walk_graph(root, visit, descend=self.in_package_scope)

    def build_exports_by_family(self) -> Dict[str, Dict[str, Dict[str, Optional[str]]]]:
        by_family: Dict[str, List[ValueRecord]] = {}
        for store in self.registry:
            for key, asset in store.items():
                self.collect_export_records(asset, store.file_for_key(key), by_family)
        return {family: names_with_sources(records) for family, records in sorted(by_family.items())}

    # --- registered assets ------------------------------------------------------

    def build_registered_assets(self) -> Dict[str, Dict[str, Dict[str, Optional[str]]]]:
        by_type: Dict[str, List[ValueRecord]] = {}
        for store in self.registry:
            for key in list(store.assets.keys()):
                if key is None:
                    continue
                by_type.setdefault(store.type_name, []).append(
                    ValueRecord(name=str(key), file=store.file_for_key(key))
                )
        return {type_name: names_with_sources(records) for type_name, records in sorted(by_type.items())}

    # --- reference bundles ----------------------------------------------------------

    def collect_decimal_constants(self) -> Dict[str, List[ValueRecord]]:
        """Constant names per world structure, sorted within each world."""
        store = self.registry.store_named(WORLD_STRUCTURE_TYPE)
        if store is None:
            return {}
        by_world: Dict[str, List[ValueRecord]] = {}
        for key, world in store.items():
            if key is None:
                continue
            names = framework_constant_names(world) + legacy_content_field_names(world)
            if not names:
                continue
            file = store.file_for_key(key)
            by_world.setdefault(str(key), []).extend(ValueRecord(name=name, file=file) for name in names)
        return {world: sort_records(records) for world, records in sorted(by_world.items())}

    def build_reference_bundles(self) -> Dict[str, List[str]]:
        merged: List[ValueRecord] = []
        for records in self.collect_decimal_constants().values():
            merged.extend(records)
        if not merged:
            return {}
        return {DECIMAL_CONSTANTS_BUNDLE: unique_names(merged)}

    # --- localization ---------------------------------------------------------------

    def build_localization_keys(self) -> Dict[str, Dict[str, Optional[str]]]:
        if not self.pack_roots and not self.language_roots:
            return {}
        files = language_files_for_packs(self.pack_roots, self.language_roots)
        by_locale = collect_localization_records(files)
        return {locale: names_with_translations(records) for locale, records in sorted(by_locale.items())}

    # --- cosmetics ------------------------------------------------------------------

    def cosmetic_domains(self) -> List[str]:
        domains = {cosmetic_domain(node) for node in self.property_nodes.values()}
        return sorted(domain for domain in domains if domain is not None)

    def build_cosmetics_by_type(self) -> Dict[str, List[str]]:
        result: Dict[str, List[str]] = {}
        for domain in self.cosmetic_domains():
            records = self.registry_values_for_domain(domain)
            if records:
                result[domain] = unique_names(sort_records(records))
        return result

    # --- UI data sets -----------------------------------------------------------------

    def ui_data_set_names(self) -> List[str]:
        names: Set[str] = set()
        for schema_file in sorted(self.schema_documents):
            _collect_ui_data_sets(self.schema_documents[schema_file], names)
        for node in self.property_nodes.values():
            found = find_ui_data_set(node)
            if found is not None:
                names.add(found[1])
        return sorted(names)

    def build_ui_data_sets(self) -> Dict[str, List[str]]:
        result: Dict[str, List[str]] = {}
        for data_set in self.ui_data_set_names():
            records: List[ValueRecord] = []
            for field_name in UI_DATA_SET_FIELDS.get(data_set, ()):
                records += self.field_backed_values(field_name)
            for field_name in UI_DATA_SET_COLLECTIONS.get(data_set, ()):
                records += self.collection_backed_values(field_name)
            if not records:
                records = self.registry_values_for_domain(data_set)
            if records:
                result[data_set] = unique_names(sort_records(records))
        return result

    # --- shared lookups ----------------------------------------------------------------

    def registry_values_for_domain(self, domain: str) -> List[ValueRecord]:
        """Keys of every string-keyed store whose type name matches ``domain``."""
        wanted = normalize_token(domain)
        records: List[ValueRecord] = []
        for store in self.registry:
            if store.key_type is not str or wanted not in domain_aliases(store.type_name):
                continue
            for key in list(store.assets.keys()):
                if key is None:
                    continue
                records.append(ValueRecord(name=str(key), file=store.file_for_key(key)))
        return records

    def field_backed_values(self, field_name: str) -> List[ValueRecord]:
        """One value per asset whose ``field_name`` is set and non-blank."""
        records: List[ValueRecord] = []
        for store in self.registry:
            for key, asset in store.items():
                value = read_string_field(asset, field_name)
                if value is None or not value.strip():
                    continue
                records.append(ValueRecord(name=value, file=store.file_for_key(key)))
        return records

    def collection_backed_values(self, field_name: str) -> List[ValueRecord]:
        """Every non-blank element of each asset's ``field_name`` collection."""
        records: List[ValueRecord] = []
        for store in self.registry:
            for key, asset in store.items():
                values = _string_elements(read_field(asset, field_name))
                if not values:
                    continue
                file = store.file_for_key(key)
                records.extend(ValueRecord(name=value, file=file) for value in values)
        return records

    # --- common assets ----------------------------------------------------------------

    def build_common_assets(self) -> Dict[str, Dict[str, List[str]]]:
        if not self.pack_roots:
            return {}
        return list_common_assets(self.pack_roots)


def framework_constant_names(world: Any) -> List[str]:
    """Entry names of every decimal-constants framework on a world structure."""
    names: List[str] = []
    frameworks = read_field(world, FRAMEWORK_ASSETS_FIELD)
    if not isinstance(frameworks, (list, tuple)):
        return names
    for framework in frameworks:
        if framework is None or DECIMAL_FRAMEWORK_TYPE_MARKER not in type(framework).__name__:
            continue
        entries = read_field(framework, ENTRY_ASSETS_FIELD)
        if not isinstance(entries, (list, tuple)):
            continue
        for entry in entries:
            name = read_string_field(entry, "name")
            if name:
                names.append(name)
    return names


def legacy_content_field_names(world: Any) -> List[str]:
    """Names of base-height content fields (older world structure layout)."""
    names: List[str] = []
    content_fields = read_field(world, CONTENT_FIELD_ASSETS_FIELD)
    if not isinstance(content_fields, (list, tuple)):
        return names
    for content_field in content_fields:
        if content_field is None or BASE_HEIGHT_CONTENT_FIELD_MARKER not in type(content_field).__name__:
            continue
        name = read_string_field(content_field, "name")
        if name:
            names.append(name)
    return names


def _collect_ui_data_sets(value: Any, output: Set[str]) -> None:
    if isinstance(value, dict):
        found = find_ui_data_set(value)
        if found is not None:
            output.add(found[1])
        for child in value.values():
            _collect_ui_data_sets(child, output)
    elif isinstance(value, list):
        for child in value:
            _collect_ui_data_sets(child, output)


def _string_elements(value: Any) -> List[str]:
    if not isinstance(value, (list, tuple, set, frozenset)):
        return []
    items = sorted(value, key=str) if isinstance(value, (set, frozenset)) else value
    return [str(item) for item in items if item is not None and str(item).strip()]
