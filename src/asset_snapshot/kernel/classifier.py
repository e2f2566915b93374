"""Semantic classification of indexed schema properties.

Classification is an ordered cascade of rules. Each rule looks at one
property and either returns a :class:`SemanticRecord` or None; the first
rule that answers wins, and a property no rule answers stays
unannotated. Rule order is the precedence order:

1. symbol definitions        (fixed locations)
2. symbol imports            (fixed locations)
3. reference bundles         (fixed consumers + derived definition)
4. hidden registries         (fixed allow-list)
5. discriminators            (``hytaleSchemaTypeField`` hints)
6. generic shape-driven rules, in the order of ``GENERIC_RULES``
"""

import copy
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Set, Tuple

from .codec_graph import EnumDescriptor, match_enum_descriptor
from .json_pointer import append_pointer, build_property_key, resolve_pointer, split_property_key
from .rule_tables import (
    ALPHA_COLOR_MODE,
    ANNOTATION_KEY,
    BLOCK_MASK_EXPORT_AS_KEY,
    BLOCK_MASK_FAMILY,
    BLOCK_MASK_IMPORT_KEY,
    COLOR_MODES,
    COMMON_SCHEMA,
    DATA_SET_COMPONENTS,
    DECIMAL_CONSTANT_CONSUMER_KEYS,
    DECIMAL_CONSTANT_ENTRY_PATH,
    DECIMAL_CONSTANTS_BUNDLE,
    EXPORT_AS_COMMON_PATTERN,
    HIDDEN_REGISTRY_RULES,
    IMPORTED_FAMILY_PROPERTY_PATTERN,
    LOCALE_STRATEGY,
    LOCALIZATION_COMPONENT,
)
from .semantics import (
    SemanticKind,
    SemanticRecord,
    ValueShape,
    infer_value_shape,
    object_value,
    registry_domain_source,
    string_list,
    string_value,
)


@dataclass
class ClassificationContext:
    """Whole-schema facts precomputed once per run."""
    schema_documents: Mapping[str, Any]
    property_nodes: Mapping[str, dict]
    enum_descriptors: Mapping[str, EnumDescriptor] = field(default_factory=dict)
    discriminator_hints: Dict[str, dict] = field(default_factory=dict)
    bundle_definition_keys: Set[str] = field(default_factory=set)
    hidden_registry_domains: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def build(
        cls,
        schema_documents: Mapping[str, Any],
        property_nodes: Mapping[str, dict],
        enum_descriptors: Optional[Mapping[str, EnumDescriptor]] = None,
    ) -> "ClassificationContext":
        return cls(
            schema_documents=schema_documents,
            property_nodes=property_nodes,
            enum_descriptors=dict(enum_descriptors or {}),
            discriminator_hints=find_discriminator_hints(schema_documents),
            bundle_definition_keys=find_bundle_definition_keys(schema_documents),
            hidden_registry_domains={rule.property_key: rule.domain for rule in HIDDEN_REGISTRY_RULES},
        )


RuleFunction = Callable[[str, dict, ClassificationContext], Optional[SemanticRecord]]


@dataclass(frozen=True)
class ClassificationRule:
    """A named (predicate + builder) step of the cascade."""
    name: str
    apply: RuleFunction


# --- 1. symbol definitions ---------------------------------------------------

def classify_symbol_definition(key: str, node: dict, ctx: ClassificationContext) -> Optional[SemanticRecord]:
    family = None
    if key == BLOCK_MASK_EXPORT_AS_KEY:
        family = BLOCK_MASK_FAMILY
    else:
        match = EXPORT_AS_COMMON_PATTERN.match(key)
        if match:
            family = match.group(1)
    if not family or not family.strip():
        return None
    return SemanticRecord(
        property_key=key,
        semantic_kind=SemanticKind.SYMBOL_DEFINITION,
        value_shape=infer_value_shape(node),
        extra={"namespace": {"kind": "importFamily", "family": family}},
    )


# --- 2. symbol imports -------------------------------------------------------

def classify_symbol_import(key: str, node: dict, ctx: ClassificationContext) -> Optional[SemanticRecord]:
    if key == BLOCK_MASK_IMPORT_KEY:
        family, form = BLOCK_MASK_FAMILY, "directImportField"
    else:
        match = IMPORTED_FAMILY_PROPERTY_PATTERN.match(key)
        if not match:
            return None
        family, form = match.group(1), "typeImportedName"
    return SemanticRecord(
        property_key=key,
        semantic_kind=SemanticKind.SYMBOL_REFERENCE,
        value_shape=infer_value_shape(node),
        extra={
            "target": "value",
            "source": {"kind": "importFamily", "family": family, "importForm": form},
        },
    )


# --- 3. reference bundles ----------------------------------------------------

def classify_reference_bundle(key: str, node: dict, ctx: ClassificationContext) -> Optional[SemanticRecord]:
    if key in DECIMAL_CONSTANT_CONSUMER_KEYS:
        return SemanticRecord(
            property_key=key,
            semantic_kind=SemanticKind.SYMBOL_REFERENCE,
            value_shape=infer_value_shape(node),
            extra={
                "target": "value",
                "source": {"kind": "referenceBundle", "bundleType": DECIMAL_CONSTANTS_BUNDLE},
            },
        )
    if key in ctx.bundle_definition_keys:
        return SemanticRecord(
            property_key=key,
            semantic_kind=SemanticKind.SYMBOL_DEFINITION,
            value_shape=infer_value_shape(node),
            extra={
                "namespace": {"kind": "referenceBundle", "bundleType": DECIMAL_CONSTANTS_BUNDLE},
                "valueField": "Value",
            },
        )
    return None


def find_bundle_definition_keys(schema_documents: Mapping[str, Any]) -> Set[str]:
    """Follow the bundle entry ``$ref`` in common.json to its Name property."""
    common = schema_documents.get(COMMON_SCHEMA)
    if not isinstance(common, dict):
        return set()

    node: Any = common
    for segment in DECIMAL_CONSTANT_ENTRY_PATH:
        node = node.get(segment) if isinstance(node, dict) else None
    if not isinstance(node, dict):
        return set()

    ref = string_value(node, "$ref")
    if not ref or not ref.strip():
        return set()

    schema_file, _, pointer = ref.partition("#")
    if not schema_file.strip():
        schema_file = COMMON_SCHEMA
    if not pointer.startswith("/"):
        return set()
    return {build_property_key(schema_file, f"{pointer}/properties/Name")}


# --- 4. hidden registries ----------------------------------------------------

def classify_hidden_registry(key: str, node: dict, ctx: ClassificationContext) -> Optional[SemanticRecord]:
    domain = ctx.hidden_registry_domains.get(key)
    if domain is None:
        return None
    return SemanticRecord(
        property_key=key,
        semantic_kind=SemanticKind.SYMBOL_REFERENCE,
        value_shape=infer_value_shape(node),
        extra={"target": "value", "source": registry_domain_source(domain)},
    )


# --- 5. discriminators -------------------------------------------------------

def classify_discriminator(key: str, node: dict, ctx: ClassificationContext) -> Optional[SemanticRecord]:
    type_field = ctx.discriminator_hints.get(key)
    if type_field is None:
        return None
    extra: Dict[str, Any] = {
        "values": string_list(type_field.get("values")),
        "role": "discriminator",
    }
    default_value = string_value(type_field, "defaultValue")
    if default_value is not None:
        extra["defaultValue"] = default_value
    parent_property_key = string_value(type_field, "parentPropertyKey")
    if parent_property_key is not None:
        extra["parentPropertyKey"] = parent_property_key
    return SemanticRecord(
        property_key=key,
        semantic_kind=SemanticKind.LITERAL_CHOICE,
        value_shape=infer_value_shape(node),
        extra=extra,
    )


def find_discriminator_hints(schema_documents: Mapping[str, Any]) -> Dict[str, dict]:
    """Map the sibling ``properties/<name>`` key of each type-field hint to the hint."""
    hints: Dict[str, dict] = {}
    for schema_file in sorted(schema_documents):
        _find_hints_recursive(schema_file, "", schema_documents[schema_file], hints)
    return hints


def _find_hints_recursive(schema_file: str, pointer: str, value: Any, hints: Dict[str, dict]) -> None:
    if isinstance(value, dict):
        type_field = object_value(value, "hytaleSchemaTypeField")
        if type_field is not None:
            name = string_value(type_field, "property")
            if name and name.strip() and string_list(type_field.get("values")):
                key = build_property_key(schema_file, append_pointer(append_pointer(pointer, "properties"), name))
                hints.setdefault(key, type_field)
        for child_key in sorted(value):
            _find_hints_recursive(schema_file, append_pointer(pointer, child_key), value[child_key], hints)
    elif isinstance(value, list):
        for position, child in enumerate(value):
            _find_hints_recursive(schema_file, append_pointer(pointer, str(position)), child, hints)


# --- 6. generic shape-driven rules ---------------------------------------------

def classify_inline_or_reference(key: str, node: dict, ctx: ClassificationContext) -> Optional[SemanticRecord]:
    asset_type = find_contained_asset_type(node)
    if asset_type is None:
        return None
    return SemanticRecord(
        property_key=key,
        semantic_kind=SemanticKind.INLINE_OR_REFERENCE,
        value_shape=ValueShape.STRING_OR_OBJECT,
        extra={
            "referenceSource": registry_domain_source(asset_type),
            "acceptsInlineValue": True,
            "acceptsAssetKey": True,
        },
    )


def find_contained_asset_type(node: dict) -> Optional[str]:
    """Asset type of an ``anyOf`` branch that is itself a string-or-$ref union."""
    any_of = node.get("anyOf")
    if not isinstance(any_of, list):
        return None
    for option in any_of:
        if not isinstance(option, dict):
            continue
        asset_type = string_value(option, "hytaleAssetRef")
        if asset_type is None:
            continue
        nested = option.get("anyOf")
        if isinstance(nested, list) and _is_string_or_ref_union(nested):
            return asset_type
    return None


def _is_string_or_ref_union(options: List[Any]) -> bool:
    has_string = any(isinstance(o, dict) and o.get("type") == "string" for o in options)
    has_ref = any(isinstance(o, dict) and "$ref" in o for o in options)
    return has_string and has_ref


def classify_allowed_map_keys(key: str, node: dict, ctx: ClassificationContext) -> Optional[SemanticRecord]:
    hint = object_value(node, "hytale")
    if hint is None or string_value(hint, "type") != "EnumMap":
        return None
    property_names = object_value(node, "propertyNames")
    if property_names is None:
        return None
    allowed = string_list(property_names.get("enum"))
    if not allowed:
        return None
    return SemanticRecord(
        property_key=key,
        semantic_kind=SemanticKind.SYMBOL_REFERENCE,
        value_shape=ValueShape.OBJECT_KEY,
        extra={
            "target": "objectKey",
            "source": {"kind": "literalSet", "allowedValues": allowed},
            "excludeExistingObjectKeys": True,
        },
    )


def classify_registry_map_keys(key: str, node: dict, ctx: ClassificationContext) -> Optional[SemanticRecord]:
    property_names = object_value(node, "propertyNames")
    domain = string_value(property_names, "hytaleAssetRef") if property_names is not None else None
    if domain is None:
        return None
    return SemanticRecord(
        property_key=key,
        semantic_kind=SemanticKind.SYMBOL_REFERENCE,
        value_shape=ValueShape.OBJECT_KEY,
        extra={
            "target": "objectKey",
            "source": registry_domain_source(domain),
            "excludeExistingObjectKeys": True,
        },
    )


def classify_registry_reference(key: str, node: dict, ctx: ClassificationContext) -> Optional[SemanticRecord]:
    domain = None
    for hint_key in ("hytaleAssetRef", "hytaleCustomAssetRef"):
        candidate = string_value(node, hint_key)
        if candidate and candidate.strip():
            domain = candidate
            break
    if domain is None:
        return None
    return SemanticRecord(
        property_key=key,
        semantic_kind=SemanticKind.SYMBOL_REFERENCE,
        value_shape=infer_value_shape(node),
        extra={"target": "value", "source": registry_domain_source(domain)},
    )


def classify_enum(key: str, node: dict, ctx: ClassificationContext) -> Optional[SemanticRecord]:
    literal_values = string_list(node.get("enum"))
    if not literal_values:
        return None
    descriptor = match_enum_descriptor(literal_values, ctx.enum_descriptors)
    canonical = descriptor.canonical_values if descriptor else literal_values
    accepted = descriptor.accepted_values if descriptor else literal_values
    extra: Dict[str, Any] = {
        "values": list(canonical),
        "acceptedValues": list(accepted),
        "role": "enum",
    }
    if descriptor is not None:
        extra["normalizeToCanonical"] = list(accepted) != list(canonical)
    return SemanticRecord(
        property_key=key,
        semantic_kind=SemanticKind.LITERAL_CHOICE,
        value_shape=infer_value_shape(node),
        extra=extra,
    )


def classify_asset_path(key: str, node: dict, ctx: ClassificationContext) -> Optional[SemanticRecord]:
    metadata = object_value(node, "hytaleCommonAsset")
    if metadata is None:
        return None
    extra: Dict[str, Any] = {"requiredRoots": string_list(metadata.get("requiredRoots"))}
    required_extension = string_value(metadata, "requiredExtension")
    if required_extension is not None:
        extra["requiredExtension"] = required_extension
    is_ui_asset = metadata.get("isUIAsset")
    if isinstance(is_ui_asset, bool):
        extra["isUIAsset"] = is_ui_asset
    return SemanticRecord(
        property_key=key,
        semantic_kind=SemanticKind.ASSET_PATH,
        value_shape=infer_value_shape(node),
        extra=extra,
    )


def _ui_editor_component(node: dict) -> Optional[dict]:
    hint = object_value(node, "hytale")
    return object_value(hint, "uiEditorComponent") if hint is not None else None


def classify_localization_key(key: str, node: dict, ctx: ClassificationContext) -> Optional[SemanticRecord]:
    component = _ui_editor_component(node)
    if component is None or string_value(component, "component") != LOCALIZATION_COMPONENT:
        return None
    return SemanticRecord(
        property_key=key,
        semantic_kind=SemanticKind.SYMBOL_REFERENCE,
        value_shape=infer_value_shape(node),
        extra={
            "target": "value",
            "source": {"kind": "localization", "localeStrategy": LOCALE_STRATEGY},
        },
    )


def classify_cosmetic(key: str, node: dict, ctx: ClassificationContext) -> Optional[SemanticRecord]:
    domain = cosmetic_domain(node)
    if domain is None:
        return None
    return SemanticRecord(
        property_key=key,
        semantic_kind=SemanticKind.SYMBOL_REFERENCE,
        value_shape=infer_value_shape(node),
        extra={"target": "value", "source": {"kind": "cosmeticDomain", "domain": domain}},
    )


def cosmetic_domain(node: dict) -> Optional[str]:
    domain = string_value(node, "hytaleCosmeticAsset")
    return domain if domain and domain.strip() else None


def classify_parent_reference(key: str, node: dict, ctx: ClassificationContext) -> Optional[SemanticRecord]:
    settings = object_value(node, "hytaleParent")
    if settings is None:
        return None
    domain = string_value(settings, "type")
    if not domain or not domain.strip():
        return None
    source: Dict[str, Any] = {"kind": "parentDomain", "domain": domain}
    for optional_key in ("mapKey", "mapKeyValue"):
        value = string_value(settings, optional_key)
        if value and value.strip():
            source[optional_key] = value
    source["excludeSelf"] = True
    return SemanticRecord(
        property_key=key,
        semantic_kind=SemanticKind.SYMBOL_REFERENCE,
        value_shape=infer_value_shape(node),
        extra={"target": "value", "source": source},
    )


def find_ui_data_set(node: dict) -> Optional[Tuple[str, str]]:
    """(component, data set) of a Text/Dropdown editor hint, if any."""
    component = _ui_editor_component(node)
    if component is None:
        return None
    name = string_value(component, "component")
    if name not in DATA_SET_COMPONENTS:
        return None
    data_set = string_value(component, "dataSet")
    if not data_set or not data_set.strip():
        return None
    return name, data_set


def classify_ui_data_set(key: str, node: dict, ctx: ClassificationContext) -> Optional[SemanticRecord]:
    found = find_ui_data_set(node)
    if found is None:
        return None
    component, data_set = found
    return SemanticRecord(
        property_key=key,
        semantic_kind=SemanticKind.SYMBOL_REFERENCE,
        value_shape=infer_value_shape(node),
        extra={
            "target": "value",
            "source": {"kind": "uiDataSet", "dataSet": data_set, "component": component},
        },
    )


def classify_color(key: str, node: dict, ctx: ClassificationContext) -> Optional[SemanticRecord]:
    hint = object_value(node, "hytale")
    mode = COLOR_MODES.get(string_value(hint, "type") or "") if hint is not None else None
    if mode is None:
        return None
    return SemanticRecord(
        property_key=key,
        semantic_kind=SemanticKind.COLOR,
        value_shape=infer_value_shape(node),
        extra={"colorMode": mode, "supportsAlpha": mode == ALPHA_COLOR_MODE},
    )


LOCATION_RULES: Tuple[ClassificationRule, ...] = (
    ClassificationRule("symbolDefinition", classify_symbol_definition),
    ClassificationRule("symbolImport", classify_symbol_import),
    ClassificationRule("referenceBundle", classify_reference_bundle),
    ClassificationRule("hiddenRegistry", classify_hidden_registry),
    ClassificationRule("discriminator", classify_discriminator),
)

GENERIC_RULES: Tuple[ClassificationRule, ...] = (
    ClassificationRule("inlineOrReference", classify_inline_or_reference),
    ClassificationRule("allowedMapKeys", classify_allowed_map_keys),
    ClassificationRule("registryMapKeys", classify_registry_map_keys),
    ClassificationRule("registryReference", classify_registry_reference),
    ClassificationRule("enum", classify_enum),
    ClassificationRule("assetPath", classify_asset_path),
    ClassificationRule("localizationKey", classify_localization_key),
    ClassificationRule("cosmeticDomain", classify_cosmetic),
    ClassificationRule("parentReference", classify_parent_reference),
    ClassificationRule("uiDataSet", classify_ui_data_set),
    ClassificationRule("color", classify_color),
)

DEFAULT_RULES: Tuple[ClassificationRule, ...] = LOCATION_RULES + GENERIC_RULES


def classify_property(
    key: str,
    node: dict,
    ctx: ClassificationContext,
    rules: Sequence[ClassificationRule] = DEFAULT_RULES,
) -> Optional[SemanticRecord]:
    """Run the cascade on one property; first answering rule wins."""
    for rule in rules:
        record = rule.apply(key, node, ctx)
        if record is not None:
            return record
    return None


def classify_properties(
    schema_documents: Mapping[str, Any],
    property_nodes: Mapping[str, dict],
    enum_descriptors: Optional[Mapping[str, EnumDescriptor]] = None,
    rules: Sequence[ClassificationRule] = DEFAULT_RULES,
) -> Dict[str, SemanticRecord]:
    """Classify every indexed property.

    Returns:
        property key -> record, sorted by property key. Unclassified
        properties are absent.
    """
    ctx = ClassificationContext.build(schema_documents, property_nodes, enum_descriptors)
    records: Dict[str, SemanticRecord] = {}
    for key in sorted(property_nodes):
        record = classify_property(key, property_nodes[key], ctx, rules)
        if record is not None:
            records[key] = record
    return records


def annotate_schemas(
    schema_documents: Mapping[str, Any],
    records: Mapping[str, SemanticRecord],
) -> Dict[str, Any]:
    """Return copies of the schemas with each record mirrored into its node.

    The input documents are left untouched. Records whose key does not
    resolve to an object node are ignored.
    """
    annotated = {name: copy.deepcopy(document) for name, document in sorted(schema_documents.items())}
    for key in sorted(records):
        split = split_property_key(key)
        if split is None:
            continue
        schema_file, pointer = split
        document = annotated.get(schema_file)
        if document is None:
            continue
        node = resolve_pointer(document, pointer)
        if node is None:
            continue
        node[ANNOTATION_KEY] = records[key].to_annotation()
    return annotated
