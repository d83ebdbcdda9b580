from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from organizer.core.models.document import Document


def order_documents(documents: Iterable[Document]) -> list[Document]:
    """Pinned first, then most recently updated first.

    Both passes use Python's stable sort, so equal keys keep their input order
    and applying the ordering twice changes nothing.
    """
    by_recency = sorted(documents, key=lambda d: d.updated_at, reverse=True)
    return sorted(by_recency, key=lambda d: not getattr(d, "is_pinned", False))


def matches_query(document: Document, query: str) -> bool:
    needle = query.lower()
    return any(needle in (field or "").lower() for field in document.text_fields)


def filter_documents(documents: Iterable[Document], query: str) -> list[Document]:
    """Case-insensitive substring filter over each document's text fields."""
    if not query:
        return list(documents)
    return [d for d in documents if matches_query(d, query)]


def hide_archived(documents: Iterable[Document]) -> list[Document]:
    return [d for d in documents if not getattr(d, "is_archived", False)]
