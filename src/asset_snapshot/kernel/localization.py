"""Parsing of ``.lang`` localization files.

Format: one ``key=value`` per line, ``#`` comments, a trailing backslash
joins the next physical line, and the first line may carry a UTF-8 BOM.
Keys are prefixed with the file's location below its locale directory::

    Server/Languages/en-US/items/swords.lang:  name=Sword
    -> locale "en-US", key "items.swords.name"
"""

from pathlib import PurePath
from typing import Iterable, List, NamedTuple, Optional, Tuple

from .values import ValueRecord


LANG_SUFFIX = ".lang"
LANGUAGES_SEGMENT = "languages"
FALLBACK_LOCALE = "fallback"
BOM = "\ufeff"


class LangPathInfo(NamedTuple):
    locale: str
    prefix: str


def parse_lang_lines(lines: Iterable[str]) -> List[Tuple[str, str]]:
    """Parse logical ``(key, value)`` entries from physical lines."""
    entries: List[Tuple[str, str]] = []
    pending: Optional[str] = None

    for index, raw in enumerate(lines):
        if index == 0 and raw.startswith(BOM):
            raw = raw[1:]

        content = raw if pending is None else pending + raw
        if content.endswith("\\"):
            pending = content[:-1]
            continue
        pending = None

        stripped = content.strip()
        if not stripped or stripped.startswith("#"):
            continue

        equals = content.find("=")
        if equals <= 0:
            continue
        key = content[:equals].strip()
        if not key:
            continue
        entries.append((key, content[equals + 1:].strip()))

    # An unterminated continuation at end of file is dropped.
    return entries


def split_lines(text: str) -> List[str]:
    """Split text read with universal newlines, without a trailing empty line."""
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return lines


def resolve_lang_path_info(path: PurePath) -> Optional[LangPathInfo]:
    """Locale and key prefix from a lang file's position below ``Languages``.

    A file directly under ``Languages`` belongs to the ``fallback`` locale.
    Returns None when the path has no ``Languages`` segment or nothing
    below it.
    """
    segments = list(path.parts)
    try:
        languages_index = next(i for i, part in enumerate(segments) if part.lower() == LANGUAGES_SEGMENT)
    except StopIteration:
        return None

    first_index = languages_index + 1
    if first_index >= len(segments):
        return None

    first = segments[first_index]
    if first.lower().endswith(LANG_SUFFIX):
        locale, content_start = FALLBACK_LOCALE, first_index
    else:
        locale, content_start = first, first_index + 1
    if content_start >= len(segments):
        return None

    content = segments[content_start:]
    stem = content.pop()
    dot = stem.rfind(".")
    if dot >= 0:
        stem = stem[:dot]
    if stem:
        content.append(stem)
    prefix = ".".join(part for part in content if part.strip())
    return LangPathInfo(locale, prefix)



def lang_records(info: LangPathInfo, text: str, file: str) -> List[ValueRecord]:
    """Records of one lang file's text, keys prefixed by its location."""
    records = []
    for local_key, translation in parse_lang_lines(split_lines(text)):
        full_key = f"{info.prefix}.{local_key}" if info.prefix else local_key
        records.append(ValueRecord(name=full_key, file=file, extra={"translation": translation}))
    return records
