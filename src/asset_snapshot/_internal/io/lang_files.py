"""Reading ``.lang`` files from disk (internal).

Unreadable files and files outside a ``Languages`` tree contribute
nothing; collection carries on.
"""

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from asset_snapshot.kernel.localization import lang_records, resolve_lang_path_info
from asset_snapshot.kernel.values import ValueRecord

logger = logging.getLogger(__name__)


def parse_lang_file(path: Path) -> Tuple[Optional[str], List[ValueRecord]]:
    """Read one lang file into (locale, records)."""
    info = resolve_lang_path_info(path)
    if info is None:
        return None, []
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.debug("Skipping unreadable language file %s: %s", path, exc)
        return None, []
    return info.locale, lang_records(info, text, str(path))


def collect_localization_records(files: Iterable[Path]) -> Dict[str, List[ValueRecord]]:
    """Group the records of many lang files by locale."""
    by_locale: Dict[str, List[ValueRecord]] = {}
    for path in sorted(set(files)):
        locale, records = parse_lang_file(path)
        if locale is not None and records:
            by_locale.setdefault(locale, []).extend(records)
    return by_locale
