"""Text normalization helpers."""

import re
import unicodedata

_UNSAFE_FILE_CHARS = re.compile(r"[^A-Za-z0-9_.\-() ]")


def normalize_text(value: str | None) -> str:
    """Lowercase, trim and strip diacritics ("DÉBITO" -> "debito")."""
    decomposed = unicodedata.normalize("NFD", value or "")
    stripped = "".join(c for c in decomposed if not unicodedata.combining(c))
    return stripped.lower().strip()


def only_digits(value: str | None) -> str:
    """Return the decimal digits of ``value`` in order."""
    return re.sub(r"\D", "", value or "")


def safe_file_name(name: str) -> str:
    """Replace characters unsafe in file or storage names with underscores."""
    return _UNSAFE_FILE_CHARS.sub("_", name)
