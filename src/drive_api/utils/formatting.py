"""Human readable helpers used in API responses."""

SIZE_UNITS = ("Bytes", "KB", "MB", "GB", "TB")


def format_bytes(num_bytes: int, decimals: int = 2) -> str:
    """Format a byte count with 1024-based units, e.g. ``1536 -> "1.5 KB"``."""
    if num_bytes <= 0:
        return "0 Bytes"
    decimals = max(decimals, 0)
    exponent = 0
    value = float(num_bytes)
    while value >= 1024 and exponent < len(SIZE_UNITS) - 1:
        value /= 1024
        exponent += 1
    formatted = f"{value:.{decimals}f}"
    if decimals:
        # 1.50 -> 1.5, 2.00 -> 2
        formatted = formatted.rstrip("0").rstrip(".")
    return f"{formatted} {SIZE_UNITS[exponent]}"
