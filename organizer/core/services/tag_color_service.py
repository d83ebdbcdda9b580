from __future__ import annotations

import string
from typing import TYPE_CHECKING

from organizer.core.schemas.document_view import DocumentView, TagChip

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from organizer.core.models.document import Document
    from organizer.core.models.tag import Tag

BLACK = "#000000"
WHITE = "#ffffff"
INHERIT = "inherit"

_HEX_DIGITS = frozenset(string.hexdigits)


def color_of(tag_name: str, tags: Iterable[Tag]) -> str | None:
    """Color of the tag named ``tag_name`` in the given snapshot, if any."""
    for tag in tags:
        if tag.name == tag_name:
            return tag.color
    return None


def contrast_text_color(hex_color: str | None) -> str:
    """Pick black or white text for legibility on ``hex_color``.

    Uses the YIQ luminance ``(299R + 587G + 114B) / 1000`` with a threshold of
    128. Anything other than ``#rgb`` or ``#rrggbb`` yields ``"inherit"``.
    """
    if not hex_color or not hex_color.startswith("#"):
        return INHERIT
    digits = hex_color[1:]
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    elif len(digits) != 6:
        return INHERIT
    if not set(digits) <= _HEX_DIGITS:
        return INHERIT

    r = int(digits[0:2], 16)
    g = int(digits[2:4], 16)
    b = int(digits[4:6], 16)
    luminance = (299 * r + 587 * g + 114 * b) / 1000
    return BLACK if luminance >= 128 else WHITE


def resolve_tag_chips(document: Document, tags: Sequence[Tag]) -> list[TagChip]:
    chips: list[TagChip] = []
    for name in document.tags:
        color = color_of(name, tags)
        chips.append(TagChip(name=name, color=color, text_color=contrast_text_color(color)))
    return chips


def decorate_documents(documents: Iterable[Document], tags: Sequence[Tag]) -> list[DocumentView]:
    """Attach freshly resolved tag chips to every document, keeping order."""
    return [DocumentView(document=doc, tags=resolve_tag_chips(doc, tags)) for doc in documents]
