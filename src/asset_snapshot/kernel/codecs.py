"""Codec capability classes.

The host's encode/decode descriptors are adapted to these shapes so the
codec graph walker can enumerate children without knowing concrete codec
implementations. Only the attributes the walker reads are modelled.
"""

from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence


class Codec:
    """Base descriptor: encodes a value to its wire form."""

    def encode(self, value: Any) -> Any:
        raise NotImplementedError(f"{type(self).__name__} cannot encode")


class KeyedCodec:
    """A named slot wrapping a child codec."""

    def __init__(self, key: str, child_codec: Codec):
        self.key = key
        self.child_codec = child_codec


class BuilderField:
    """One versioned field of a composite codec."""

    def __init__(self, codec: KeyedCodec, min_version: int = 0):
        self.codec = codec
        self.min_version = min_version


class BuilderCodec(Codec):
    """Composite/layered codec: optional parent plus named, versioned fields."""

    def __init__(
        self,
        parent: Optional["BuilderCodec"] = None,
        entries: Optional[Mapping[str, Sequence[BuilderField]]] = None,
    ):
        self.parent = parent
        self.entries: Dict[str, List[BuilderField]] = {
            name: list(fields) for name, fields in (entries or {}).items()
        }

    def add_field(self, name: str, codec: Codec, min_version: int = 0) -> "BuilderCodec":
        self.entries.setdefault(name, []).append(BuilderField(KeyedCodec(name, codec), min_version))
        return self


class CodecMapCodec(Codec):
    """Tagged-union codec keyed by a discriminator id."""

    def __init__(self, codecs: Optional[Mapping[Any, Codec]] = None, default_codec: Optional[Codec] = None):
        self.codecs: Dict[Any, Codec] = dict(codecs or {})
        self.default_codec = default_codec

    def register(self, type_id: Any, codec: Codec) -> "CodecMapCodec":
        self.codecs[type_id] = codec
        return self

    def registered_ids(self) -> Iterable[Any]:
        return list(self.codecs.keys())

    def codec_for(self, type_id: Any) -> Optional[Codec]:
        return self.codecs.get(type_id)


class EnumStyle(str, Enum):
    """How an enum codec spells its constants on the wire."""
    CAMEL_CASE = "CAMEL_CASE"
    LEGACY = "LEGACY"


class EnumCodec(Codec):
    """Enum codec.

    ``enum_keys`` are the canonical schema spellings, parallel to the
    members of ``enum_class``. LEGACY-style codecs also decode raw member
    names case-insensitively.
    """

    def __init__(
        self,
        enum_class: type,
        enum_keys: Optional[Sequence[str]] = None,
        enum_style: EnumStyle = EnumStyle.CAMEL_CASE,
        encoder: Optional[Callable[[Any], Any]] = None,
    ):
        self.enum_class = enum_class
        self.enum_style = enum_style
        constants = list(enum_class) if isinstance(enum_class, type) and issubclass(enum_class, Enum) else []
        self.enum_constants = constants
        if enum_keys is None:
            enum_keys = [_camel_case(constant.name) for constant in constants]
        self.enum_keys = list(enum_keys)
        self._encoder = encoder

    def encode(self, value: Any) -> Any:
        if self._encoder is not None:
            return self._encoder(value)
        index = self.enum_constants.index(value)
        return self.enum_keys[index]


def _camel_case(name: str) -> str:
    parts = [part for part in name.split("_") if part]
    return "".join(part[:1].upper() + part[1:].lower() for part in parts)
