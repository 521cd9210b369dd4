"""
Number formatting for KPI tiles and tooltips.

Spanish output follows the es-ES convention: ',' as decimal separator, '.' for
thousands, and no grouping for four-digit integers (1234 but 12.345).
"""

from typing import Optional

MISSING = "-"


def format_number(value: Optional[float], language: str = "es", decimals: int = 0) -> str:
    """
    Format a number for display in the given language.

    Args:
        value: Number to format; None renders as '-'.
        language: 'es' or 'en'.
        decimals: Fixed number of decimals.

    Example:
        >>> format_number(12345.678, "es", 1)
        '12.345,7'
        >>> format_number(12345.678, "en", 1)
        '12,345.7'
        >>> format_number(1234, "es")
        '1234'
    """
    if value is None:
        return MISSING

    text = f"{abs(value):,.{decimals}f}"
    integer_part = text.split(".")[0]

    if language == "es":
        if len(integer_part.replace(",", "")) < 5:
            text = text.replace(",", "")
        text = text.replace(",", "\0").replace(".", ",").replace("\0", ".")

    # No sign on values that round to zero
    sign = "-" if value < 0 and any(ch not in "0,." for ch in text) else ""
    return sign + text


def format_change(pct: Optional[float], decimals: int = 1) -> str:
    """
    Signed percentage for YoY and peer-difference badges.

    Example:
        >>> format_change(12.345)
        '+12.3%'
        >>> format_change(-3)
        '-3.0%'
    """
    if pct is None:
        return MISSING
    sign = "+" if pct >= 0 else ""
    return f"{sign}{pct:.{decimals}f}%"
