"""Display formatters (pure functions)."""

from typing import Optional

PLACEHOLDER = "—"


def _group_indian(digits: str) -> str:
    """Lakh/crore grouping: 1234567 -> 12,34,567."""
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups) + "," + tail


def format_number(value: float, decimals: int = 2, locale: str = "en-IN") -> str:
    """Format number with locale thousand separators."""
    if locale != "en-IN":
        return f"{value:,.{decimals}f}"
    text = f"{abs(value):.{decimals}f}"
    whole, _, frac = text.partition(".")
    grouped = _group_indian(whole)
    sign = "-" if value < 0 and float(text) != 0 else ""
    return sign + grouped + ("." + frac if frac else "")


def format_currency(
    value: Optional[float],
    symbol: str = "₹",
    locale: str = "en-IN",
    decimals: int = 2,
) -> str:
    """Currency with fixed symbol; sign goes before the symbol."""
    value = value or 0.0
    formatted = format_number(abs(value), decimals, locale)
    sign = "-" if value < 0 and formatted.strip("0.,") else ""
    return f"{sign}{symbol}{formatted}"


def format_percent(value: Optional[float], decimals: int = 2, signed: bool = True) -> str:
    """Percentage; positive values get a '+' when signed."""
    value = value or 0.0
    sign = "+" if signed and value > 0 else ""
    return f"{sign}{value:.{decimals}f}%"


def format_volume(volume: Optional[float]) -> str:
    """Compact volume: 1.5M, 12.3K, 950."""
    if volume is None:
        return PLACEHOLDER
    if volume >= 1_000_000:
        return f"{volume / 1_000_000:.1f}M"
    if volume >= 1_000:
        return f"{volume / 1_000:.1f}K"
    return f"{volume:.0f}"


def truncate_text(text: str, max_length: int, suffix: str = "...") -> str:
    """Truncate text to max length with suffix."""
    if len(text) <= max_length:
        return text
    return text[:max_length - len(suffix)] + suffix
