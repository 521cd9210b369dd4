"""
Text normalization utilities for entity names found in the dashboard datasets.

Source tables spell the same country or community in several ways
("Cataluña", "Catalunya", "Comunidad (ES51) Cataluña"). The helpers below reduce
those spellings to comparable keys without any locale-specific collation.
"""

import re
import unicodedata
from typing import Optional

# Parenthetical NUTS code embedded in a name, e.g. "(ES51)" or "(ES511)"
REGION_CODE_PATTERN = re.compile(r"\(\s*([A-Z]{2}[0-9A-Z]{1,3})\s*\)")


def remove_tildes(text: str) -> str:
    """
    Remove diacritics (tildes/accents) from text using Unicode decomposition.

    Args:
        text: Text containing accented characters.

    Returns:
        Text with diacritics removed.

    Example:
        >>> remove_tildes("Andalucía")
        'Andalucia'
    """
    return "".join(
        char for char in unicodedata.normalize("NFD", text) if unicodedata.category(char) != "Mn"
    )


def normalize(text: Optional[str]) -> str:
    """
    Canonicalize a free-text entity name for comparison.

    Lowercases, decomposes accents (NFD) and strips combining marks. Lowercasing
    runs first so that characters whose lowercase form decomposes (e.g. "İ")
    still end up without marks, which keeps the function idempotent.

    Args:
        text: Name to normalize. ``None`` is accepted.

    Returns:
        Normalized name, or an empty string for missing input.

    Example:
        >>> normalize("CATALUÑA") == normalize("Cataluna")
        True
        >>> normalize(None)
        ''
    """
    if not text:
        return ""
    return remove_tildes(str(text).lower())


def extract_region_code(text: Optional[str]) -> Optional[str]:
    """
    Extract a parenthetical NUTS code from a source name.

    Example:
        >>> extract_region_code("Comunidad (ES51) Cataluña")
        'ES51'
    """
    if not text:
        return None
    match = REGION_CODE_PATTERN.search(str(text).upper())
    return match.group(1) if match else None


def strip_region_code(text: Optional[str]) -> str:
    """
    Remove parenthetical NUTS codes and collapse the remaining whitespace.

    Example:
        >>> strip_region_code("Comunidad (ES51) Cataluña")
        'Comunidad Cataluña'
    """
    if not text:
        return ""
    stripped = re.sub(r"\(\s*[A-Za-z]{2}[0-9A-Za-z]{1,3}\s*\)", " ", str(text))
    return re.sub(r"\s+", " ", stripped).strip()
