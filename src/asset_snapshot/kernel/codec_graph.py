"""Codec graph walker and enum descriptor extraction."""

import logging
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from .codecs import BuilderCodec, Codec, CodecMapCodec, EnumCodec, EnumStyle, KeyedCodec
from .walker import IdentitySet, iter_fields

logger = logging.getLogger(__name__)

# Unit separator: never appears inside an enum literal.
ENUM_SIGNATURE_DELIMITER = "\x1f"

# Attribute collections larger than this are not scanned for child codecs.
MAX_REFLECTED_COLLECTION = 64

# Attributes already enumerated by the structured child rules.
_BUILDER_SKIP_FIELDS = frozenset({"entries", "parent"})
_CODEC_MAP_SKIP_FIELDS = frozenset({"codecs", "default_codec"})


def enum_signature(values: List[str]) -> str:
    """Join canonical enum values into one lookup key."""
    return ENUM_SIGNATURE_DELIMITER.join(values)


class EnumDescriptor(BaseModel):
    """Canonical and accepted spellings of one enum type."""
    enum_class: str
    enum_simple_name: Optional[str] = None
    enum_style: str = "Unknown"
    constant_names: List[str] = Field(default_factory=list)
    serialized_values: List[str] = Field(default_factory=list)
    canonical_values: List[str] = Field(default_factory=list)
    accepted_values: List[str] = Field(default_factory=list)
    decode_case_insensitive: bool = False

    model_config = ConfigDict(extra="forbid")

    @property
    def signature(self) -> str:
        return enum_signature(self.canonical_values)


def _qualified_name(cls: type) -> str:
    return f"{cls.__module__}.{cls.__qualname__}"


def _style_name(style: Any) -> str:
    if isinstance(style, EnumStyle):
        return style.value
    return "Unknown" if style is None else str(style)


def build_enum_descriptor(codec: EnumCodec) -> EnumDescriptor:
    """Describe an enum codec, encoding each constant to learn its wire form."""
    enum_class = getattr(codec, "enum_class", None)
    enum_class_name = _qualified_name(enum_class) if isinstance(enum_class, type) else _qualified_name(type(codec))
    style = _style_name(getattr(codec, "enum_style", None))
    legacy = style == EnumStyle.LEGACY.value

    constants = list(getattr(codec, "enum_constants", None) or [])
    keys = list(getattr(codec, "enum_keys", None) or [])

    constant_names: List[str] = []
    serialized: List[str] = []
    canonical: List[str] = []
    accepted: Dict[str, None] = {}

    for index, constant in enumerate(constants):
        name = getattr(constant, "name", str(constant))
        constant_names.append(name)
        if legacy:
            accepted.setdefault(name)
        try:
            encoded = codec.encode(constant)
        except Exception:
            encoded = None
        if isinstance(encoded, str):
            serialized.append(encoded)
            accepted.setdefault(encoded)
        if index < len(keys):
            canonical.append(keys[index])
            accepted.setdefault(keys[index])

    return EnumDescriptor(
        enum_class=enum_class_name,
        enum_simple_name=enum_class.__name__ if isinstance(enum_class, type) else None,
        enum_style=style,
        constant_names=constant_names,
        serialized_values=serialized,
        canonical_values=canonical,
        accepted_values=list(accepted),
        decode_case_insensitive=legacy,
    )


class CodecGraphWalker:
    """Walks codec graphs, assigning first-seen ids and collecting enums.

    Ids are memoized by identity, which is what terminates cyclic graphs.
    """

    def __init__(self) -> None:
        self._codec_ids: Dict[int, str] = {}
        self._seen = IdentitySet()
        self._enum_types: Dict[str, EnumDescriptor] = {}
        self._next_id = 1

    def collect(self, codec: Codec) -> str:
        """Walk ``codec`` and everything reachable from it; return its id."""
        root_id = self._assign_id(codec)
        stack = [codec]
        while stack:
            current = stack.pop()
            if isinstance(current, EnumCodec):
                self._register_enum(current)
            children = codec_children(current)
            # Reverse so children are entered in declared order.
            for child in reversed(children):
                if child not in self._seen:
                    self._assign_id(child)
                    stack.append(child)
        return root_id

    def codec_id(self, codec: Codec) -> Optional[str]:
        return self._codec_ids.get(id(codec)) if codec in self._seen else None

    @property
    def codec_count(self) -> int:
        return len(self._seen)

    def enum_descriptors(self) -> List[EnumDescriptor]:
        """Collected descriptors ordered by enum class name."""
        return [self._enum_types[name] for name in sorted(self._enum_types)]

    def _assign_id(self, codec: Codec) -> str:
        if self._seen.add(codec):
            self._codec_ids[id(codec)] = f"c{self._next_id}"
            self._next_id += 1
        return self._codec_ids[id(codec)]

    def _register_enum(self, codec: EnumCodec) -> None:
        enum_class = getattr(codec, "enum_class", None)
        name = _qualified_name(enum_class) if isinstance(enum_class, type) else _qualified_name(type(codec))
        if name not in self._enum_types:
            self._enum_types[name] = build_enum_descriptor(codec)


def codec_children(codec: Any) -> List[Codec]:
    """Direct child codecs of ``codec``.

    Composite codecs yield their parent, then each field's child codec in
    (field name, min version) order. Tagged unions yield each registered
    variant by sorted id, then the default variant. Any remaining
    attribute holding a codec, keyed codec, or a small collection of
    codecs is added last.
    """
    children: List[Codec] = []
    skip: frozenset = frozenset()

    if isinstance(codec, BuilderCodec):
        skip = _BUILDER_SKIP_FIELDS
        if isinstance(codec.parent, Codec):
            children.append(codec.parent)
        for name in sorted(codec.entries):
            fields = sorted(codec.entries[name], key=lambda field: getattr(field, "min_version", 0))
            for field in fields:
                keyed = getattr(field, "codec", None)
                child = getattr(keyed, "child_codec", None)
                if isinstance(child, Codec):
                    children.append(child)

    if isinstance(codec, CodecMapCodec):
        skip = skip | _CODEC_MAP_SKIP_FIELDS
        try:
            registered = sorted(codec.registered_ids(), key=str)
        except Exception:
            registered = []
        for type_id in registered:
            child = codec.codec_for(type_id)
            if isinstance(child, Codec):
                children.append(child)
        if isinstance(codec.default_codec, Codec):
            children.append(codec.default_codec)

    children.extend(_reflected_children(codec, skip))
    return children


def _reflected_children(codec: Any, skip: frozenset) -> List[Codec]:
    children: List[Codec] = []
    for name, value in iter_fields(codec):
        if name in skip or value is None:
            continue
        if isinstance(value, Codec):
            children.append(value)
        elif isinstance(value, KeyedCodec):
            if isinstance(value.child_codec, Codec):
                children.append(value.child_codec)
        elif isinstance(value, (list, tuple)) and len(value) <= MAX_REFLECTED_COLLECTION:
            children.extend(item for item in value if isinstance(item, Codec))
        elif isinstance(value, (set, frozenset)) and len(value) <= MAX_REFLECTED_COLLECTION:
            codecs = [item for item in value if isinstance(item, Codec)]
            children.extend(sorted(codecs, key=lambda item: type(item).__qualname__))
        elif isinstance(value, Mapping) and len(value) <= MAX_REFLECTED_COLLECTION:
            for key in sorted(value, key=str):
                if isinstance(value[key], Codec):
                    children.append(value[key])
    return children


def collect_enum_descriptors(codecs: List[Codec]) -> Dict[str, EnumDescriptor]:
    """Map canonical-value signature -> descriptor for every enum reachable.

    Descriptors without canonical values are dropped. When two enum types
    share a signature the first in enum-class order is kept.
    """
    walker = CodecGraphWalker()
    for codec in codecs:
        if codec is not None:
            walker.collect(codec)

    by_signature: Dict[str, EnumDescriptor] = {}
    for descriptor in walker.enum_descriptors():
        if not descriptor.canonical_values:
            continue
        if not descriptor.accepted_values:
            descriptor = descriptor.model_copy(update={"accepted_values": list(descriptor.canonical_values)})
        existing = by_signature.get(descriptor.signature)
        if existing is not None:
            logger.debug(
                "Enum signature collision between %s and %s; keeping %s",
                existing.enum_class, descriptor.enum_class, existing.enum_class,
            )
            continue
        by_signature[descriptor.signature] = descriptor
    return by_signature


def match_enum_descriptor(
    literal_values: List[str],
    descriptors: Mapping[str, EnumDescriptor],
) -> Optional[EnumDescriptor]:
    """Descriptor for a schema enum.

    An exact canonical-signature match wins. Otherwise the first
    descriptor (in enum-class order) with the same number of canonical
    values whose accepted spellings cover every literal is used.
    """
    if not literal_values:
        return None
    exact = descriptors.get(enum_signature(literal_values))
    if exact is not None:
        return exact
    for descriptor in descriptors.values():
        if len(descriptor.canonical_values) != len(literal_values):
            continue
        accepted = set(descriptor.accepted_values)
        if all(value in accepted for value in literal_values):
            return descriptor
    return None
