"""Guardrails to keep kernel free of side effects and I/O."""

import re
from pathlib import Path


FORBIDDEN_PATTERNS = {
    "argparse": re.compile(r"\bargparse\b"),
    "pathlib.Path": re.compile(r"\bpathlib\.Path\b"),
    "open(": re.compile(r"(?<![A-Za-z0-9_])open\s*\("),
    "print(": re.compile(r"(?<![A-Za-z0-9_])print\s*\("),
    "warnings.": re.compile(r"\bwarnings\."),
    "datetime.now": re.compile(r"\bdatetime\.now\b"),
    "time.time": re.compile(r"\btime\.time\b"),
    "os.path": re.compile(r"\bos\.path\b"),
    ".read_text(": re.compile(r"\.read_text\s*\("),
    ".read_bytes(": re.compile(r"\.read_bytes\s*\("),
    ".write_text(": re.compile(r"\.write_text\s*\("),
    "os.walk": re.compile(r"\bos\.walk\b"),
    "asset_snapshot._internal": re.compile(r"\basset_snapshot\._internal\b"),
    "asset_snapshot.api": re.compile(r"\basset_snapshot\.api\b"),
}

KERNEL_DIR = Path(__file__).resolve().parents[1] / "src" / "asset_snapshot" / "kernel"


def test_kernel_has_no_forbidden_tokens():
    assert KERNEL_DIR.is_dir()
    offenders = []

    for path in KERNEL_DIR.glob("*.py"):
        contents = path.read_text(encoding="utf-8")
        for token, pattern in FORBIDDEN_PATTERNS.items():
            if pattern.search(contents):
                offenders.append(f"{path.name}: {token}")

    assert not offenders, "Forbidden kernel tokens found: " + ", ".join(offenders)
