from datetime import datetime, timezone
from typing import Annotated
from pydantic import BaseModel, ConfigDict, StringConstraints, field_validator

from blogapi.constants import (
    MAX_DESCRIPTION_LENGTH,
    MAX_NAME_LENGTH,
    MAX_TAGS_LENGTH,
)
from blogapi.models.db_models import Articles

NameStr = Annotated[
    str, StringConstraints(strip_whitespace=True, min_length=1, max_length=MAX_NAME_LENGTH)
]
DescriptionStr = Annotated[
    str,
    StringConstraints(
        strip_whitespace=True, min_length=1, max_length=MAX_DESCRIPTION_LENGTH
    ),
]
ContentStr = Annotated[str, StringConstraints(min_length=1)]
TagsStr = Annotated[str, StringConstraints(max_length=MAX_TAGS_LENGTH)]
ImageStr = Annotated[str, StringConstraints(min_length=1)]


def _to_naive_utc(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class ArticleCreate(BaseModel):
    """Body of a create request. ``image`` is a base64 encoded cover image."""

    category_id: int
    name: NameStr
    description: DescriptionStr
    content: ContentStr
    image: ImageStr
    tags: TagsStr = ""
    publish_at: datetime | None = None

    @field_validator("publish_at")
    @classmethod
    def normalize_publish_at(cls, value: datetime | None) -> datetime | None:
        return _to_naive_utc(value)


class ArticleUpdate(BaseModel):
    """
    Body of an update request

    Only fields present in the request body are applied, see
    ``model_fields_set``. A field sent as null counts as absent. ``tags`` may
    be an empty string, which clears the tags; every other text field must be
    non-empty when present.
    """

    category_id: int | None = None
    name: NameStr | None = None
    description: DescriptionStr | None = None
    content: ContentStr | None = None
    image: ImageStr | None = None
    tags: TagsStr | None = None
    publish_at: datetime | None = None

    @field_validator("publish_at")
    @classmethod
    def normalize_publish_at(cls, value: datetime | None) -> datetime | None:
        return _to_naive_utc(value)

    def provided(self) -> dict:
        """Fields that were sent with a non-null value"""
        return {
            name: getattr(self, name)
            for name in self.model_fields_set
            if getattr(self, name) is not None
        }


class ArticleOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    user_name: str
    category_id: int
    cover_id: int | None = None
    content_id: int | None = None
    name: str
    description: str
    tags: str
    publish_at: datetime
    created_at: datetime
    updated_at: datetime
    content: str | None = None

    @classmethod
    def from_db(cls, article: Articles, content: str | None = None) -> "ArticleOut":
        out = cls.model_validate(article)
        out.content = content
        return out


class DeletedResponse(BaseModel):
    id: int
