"""Human-readable byte sizes."""

from __future__ import annotations

_UNITS = {
    "": 1,
    "kb": 1024,
    "mb": 1024 * 1024,
    "gb": 1024 * 1024 * 1024,
}


def parse_size(text: str) -> int:
    """Parse strings like ``500KB``, ``20 MB`` or ``123`` into bytes."""
    text = text.strip()
    digits = ""
    for char in text:
        if not char.isascii() or not char.isdigit():
            break
        digits += char
    unit = text[len(digits):].strip()

    if not digits:
        raise ValueError("No number found in input")

    multiplier = _UNITS.get(unit.lower())
    if multiplier is None:
        raise ValueError(f"Invalid unit: '{unit}'")
    return int(digits) * multiplier


def format_size(num_bytes: int) -> str:
    value = float(num_bytes)
    for unit in ("B", "KB", "MB", "GB"):
        if value < 1024 or unit == "GB":
            break
        value /= 1024
    if unit == "B":
        return f"{num_bytes} B"
    return f"{value:.1f} {unit}"
