"""Fixed classification and extraction tables.

These locations are not derivable from schema shape; they mirror where
the engine's generated schemas put symbol definitions, imports and
registry references.
"""

import re
from typing import NamedTuple, Tuple

ANNOTATION_KEY = "hytaleDevtools"

COMMON_SCHEMA = "common.json"


class HiddenRegistryRule(NamedTuple):
    property_key: str
    domain: str


class ExportFamilyRule(NamedTuple):
    family: str
    base_type_name: str


# --- symbol definitions / imports -------------------------------------------

BLOCK_MASK_EXPORT_AS_KEY = "BlockMaskAsset.json#/properties/ExportAs"
BLOCK_MASK_IMPORT_KEY = "BlockMaskAsset.json#/properties/Import"
BLOCK_MASK_FAMILY = "BlockMask"

EXPORT_AS_COMMON_PATTERN = re.compile(r"^common\.json#/definitions/(.+)Asset/properties/ExportAs$")
IMPORTED_FAMILY_PROPERTY_PATTERN = re.compile(r"^common\.json#/definitions/Imported(.+)Asset/properties/Name$")

# --- reference bundles ------------------------------------------------------

DECIMAL_CONSTANTS_BUNDLE = "DecimalConstants"

DECIMAL_CONSTANT_CONSUMER_KEYS: Tuple[str, ...] = (
    "common.json#/definitions/BaseHeightDensityAsset/properties/BaseHeightName",
    "common.json#/definitions/SimpleHorizontalMaterialProviderAsset/properties/TopBaseHeight",
    "common.json#/definitions/SimpleHorizontalMaterialProviderAsset/properties/BottomBaseHeight",
    "common.json#/definitions/BaseHeightPositionProviderAsset/properties/BedName",
    "common.json#/definitions/ColumnLinearScannerAsset/properties/BaseHeightName",
    "common.json#/definitions/ColumnRandomScannerAsset/properties/BaseHeightName",
)

# Path inside common.json whose $ref names the bundle entry definition.
DECIMAL_CONSTANT_ENTRY_PATH: Tuple[str, ...] = (
    "definitions",
    "DecimalConstantsFrameworkAsset",
    "properties",
    "Entries",
    "items",
)

# --- hidden registries ------------------------------------------------------

HIDDEN_REGISTRY_RULES: Tuple[HiddenRegistryRule, ...] = (
    HiddenRegistryRule("common.json#/definitions/MaterialAsset/properties/Solid", "BlockType"),
    HiddenRegistryRule("common.json#/definitions/MaterialAsset/properties/Fluid", "Fluid"),
    HiddenRegistryRule("common.json#/definitions/ConstantEnvironmentProviderAsset/properties/Environment", "Environment"),
    HiddenRegistryRule("common.json#/definitions/ConnectedBlockPatternRule/properties/BlockTypes", "BlockType"),
    HiddenRegistryRule("common.json#/definitions/ConnectedBlockPatternRule/properties/BlockTypeLists", "BlockTypeListAsset"),
    HiddenRegistryRule("common.json#/definitions/DurabilityLossBlockTypes/properties/BlockTypes", "BlockType"),
    HiddenRegistryRule("common.json#/definitions/DurabilityLossBlockTypes/properties/BlockSets", "BlockSet"),
    HiddenRegistryRule("common.json#/definitions/DefaultFluidTicker/properties/SupportedBy", "Fluid"),
    HiddenRegistryRule("common.json#/definitions/FireFluidTicker/properties/SupportedBy", "Fluid"),
    HiddenRegistryRule("common.json#/definitions/FiniteFluidTicker/properties/SupportedBy", "Fluid"),
    HiddenRegistryRule("common.json#/definitions/FluidCollisionConfig/properties/BlockToPlace", "BlockType"),
    HiddenRegistryRule("common.json#/definitions/FlammabilityConfig/properties/ResultingBlock", "BlockType"),
)

# --- color hints -------------------------------------------------------------

COLOR_MODES = {
    "Color": "color",
    "ColorAlpha": "colorAlpha",
    "ColorShort": "colorLight",
}
ALPHA_COLOR_MODE = "colorAlpha"

# --- UI editor components ----------------------------------------------------

LOCALIZATION_COMPONENT = "LocalizationKey"
DATA_SET_COMPONENTS = ("Text", "Dropdown")
LOCALE_STRATEGY = "activeThenEnUs"

# --- export families ---------------------------------------------------------

GENERATOR_ASSETS_PACKAGE = "com.hypixel.hytale.builtin.hytalegenerator.assets"


def _generator_type(relative_name: str) -> str:
    return f"{GENERATOR_ASSETS_PACKAGE}.{relative_name}"


EXPORT_FAMILY_RULES: Tuple[ExportFamilyRule, ...] = (
    ExportFamilyRule("BlockMask", _generator_type("blockmask.BlockMaskAsset")),
    ExportFamilyRule("Density", _generator_type("density.DensityAsset")),
    ExportFamilyRule("MaterialProvider", _generator_type("materialproviders.MaterialProviderAsset")),
    ExportFamilyRule("PositionProvider", _generator_type("positionproviders.PositionProviderAsset")),
    ExportFamilyRule("Assignments", _generator_type("propassignments.AssignmentsAsset")),
    ExportFamilyRule("Prop", _generator_type("props.PropAsset")),
    ExportFamilyRule("Directionality", _generator_type("props.prefabprop.directionality.DirectionalityAsset")),
    ExportFamilyRule("Pattern", _generator_type("patterns.PatternAsset")),
    ExportFamilyRule("Scanner", _generator_type("scanners.ScannerAsset")),
    ExportFamilyRule("Curve", _generator_type("curves.CurveAsset")),
    ExportFamilyRule("ReturnType", _generator_type("density.positions.returntypes.ReturnTypeAsset")),
    ExportFamilyRule("VectorProvider", _generator_type("vectorproviders.VectorProviderAsset")),
    ExportFamilyRule("EnvironmentProvider", _generator_type("environmentproviders.EnvironmentProviderAsset")),
    ExportFamilyRule("TintProvider", _generator_type("tintproviders.TintProviderAsset")),
    ExportFamilyRule("PointGenerator", _generator_type("pointgenerators.PointGeneratorAsset")),
)

EXPORT_NAME_FIELD = "export_name"

# --- reference bundle extraction ----------------------------------------------

WORLD_STRUCTURE_TYPE = "WorldStructureAsset"
FRAMEWORK_ASSETS_FIELD = "framework_assets"
DECIMAL_FRAMEWORK_TYPE_MARKER = "DecimalConstantsFrameworkAsset"
ENTRY_ASSETS_FIELD = "entry_assets"
CONTENT_FIELD_ASSETS_FIELD = "content_field_assets"
BASE_HEIGHT_CONTENT_FIELD_MARKER = "BaseHeightContentFieldAsset"

# --- UI data sets ------------------------------------------------------------

UI_DATA_SET_FIELDS = {
    "BlockGroups": ("group",),
    "ItemCategories": ("category",),
    "GradientSets": ("gradient_set",),
    "GradientIds": ("gradient_id",),
}
UI_DATA_SET_COLLECTIONS = {
    "ItemCategories": ("categories",),
}
