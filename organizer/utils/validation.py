from __future__ import annotations

import re

_HEX_COLOR_RE = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


def validate_required_name(value: str | None, label: str = "Name") -> tuple[bool, str | None]:
    """Validate that a user-entered name is present."""
    if value is None or not value.strip():
        return False, f"{label} is required"
    return True, None


def validate_hex_color(value: str | None) -> tuple[bool, str | None]:
    """Validate an optional ``#rgb`` / ``#rrggbb`` color."""
    if value is None or value == "":
        return True, None
    if not _HEX_COLOR_RE.match(value):
        return False, "Color must be a hex value like #3b82f6"
    return True, None
