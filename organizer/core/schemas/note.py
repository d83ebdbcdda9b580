from __future__ import annotations

from pydantic import Field, field_validator, model_validator

from organizer.core.models.base import AppBaseModel
from organizer.core.models.note import normalize_tag_names
from organizer.utils.validation import validate_hex_color


def _check_color(v: str | None) -> str | None:
    ok, message = validate_hex_color(v)
    if not ok:
        raise ValueError(message)
    return v or None


class NoteCreate(AppBaseModel):
    title: str = Field(default="", description="Note title")
    content: str = Field(default="", description="Note content")
    folder_id: int | None = None
    tags: list[str] = Field(default_factory=list, description="Tag names for categorization")
    is_pinned: bool = False
    is_archived: bool = False
    color: str | None = None

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: list[str]) -> list[str]:
        return normalize_tag_names(v)

    @field_validator("color")
    @classmethod
    def validate_color(cls, v: str | None) -> str | None:
        return _check_color(v)

    @model_validator(mode="after")
    def validate_title_or_content(self) -> NoteCreate:
        self.title = self.title.strip()
        if not self.title and not self.content.strip():
            raise ValueError("Either title or content must be provided and non-empty")
        return self


class NoteUpdate(AppBaseModel):
    title: str | None = None
    content: str | None = None
    folder_id: int | None = None
    tags: list[str] | None = None
    is_pinned: bool | None = None
    is_archived: bool | None = None
    color: str | None = None

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: list[str] | None) -> list[str] | None:
        if v is None:
            return v
        return normalize_tag_names(v)

    @field_validator("color")
    @classmethod
    def validate_color(cls, v: str | None) -> str | None:
        return _check_color(v)

    @model_validator(mode="after")
    def normalize_title(self) -> NoteUpdate:
        if self.title is not None:
            self.title = self.title.strip()
        return self
