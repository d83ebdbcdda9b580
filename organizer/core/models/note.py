from __future__ import annotations

from pydantic import Field, field_validator

from .base import TimestampedModel


def normalize_tag_names(v: list[str]) -> list[str]:
    """Trim tag names and drop blanks and duplicates, keeping first-seen order."""
    normalized: list[str] = []
    for tag in v or []:
        if tag and len(tag.strip()) > 0:
            name = tag.strip()
            if name not in normalized:
                normalized.append(name)
    return normalized


class Note(TimestampedModel):
    """Note domain model."""

    id: int = Field(description="Unique note identifier")

    title: str = Field(default="", description="Note title")
    content: str = Field(default="", description="Note content")

    # Organization
    folder_id: int | None = Field(default=None, description="Folder the note is filed in; None when unfiled")
    tags: list[str] = Field(default_factory=list, description="Tag names, ordered")
    is_pinned: bool = Field(default=False, description="Pinned notes sort first")
    is_archived: bool = Field(default=False, description="Whether note is archived")
    color: str | None = Field(default=None, description="Hex color for UI representation")

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: list[str]) -> list[str]:
        return normalize_tag_names(v)

    @property
    def text_fields(self) -> tuple[str, ...]:
        return (self.title, self.content)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "id": 1,
                    "title": "Dentist Appointment",
                    "content": "Monday at 10:00 AM. Don't forget to bring insurance card.",
                    "folder_id": None,
                    "tags": ["health", "appointment"],
                    "is_pinned": False,
                    "is_archived": False,
                }
            ]
        }
    }
