from sqlmodel import Field, SQLModel
from sqlalchemy import Column, Index, LargeBinary, Text
from datetime import datetime, timezone

from blogapi.constants import Role


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every datetime column is stored in"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Users(SQLModel, table=True):
    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(max_length=100)
    email: str = Field(index=True, unique=True, nullable=False)
    role: int = Field(default=int(Role.SUBSCRIBER), index=True)
    password_hash: str = Field(nullable=False)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Categories(SQLModel, table=True):
    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(max_length=100)
    description: str = Field(default="")
    tag: str = Field(default="", index=True)
    display_order: int = Field(default=0)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Attachments(SQLModel, table=True):
    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    name: str = Field(max_length=100)
    description: str = Field(default="")
    mime: str
    width: int = Field(default=0)
    height: int = Field(default=0)
    size: int = Field(default=0)
    data: bytes = Field(sa_column=Column(LargeBinary, nullable=False))
    created_at: datetime = Field(default_factory=utcnow)


class Articles(SQLModel, table=True):
    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    user_name: str
    category_id: int = Field(foreign_key="categories.id")
    cover_id: int | None = Field(default=None, foreign_key="attachments.id")
    content_id: int | None = Field(default=None)
    name: str = Field(max_length=100)
    description: str = Field(default="", sa_column=Column(Text, nullable=False))
    tags: str = Field(default="")
    publish_at: datetime = Field(default_factory=utcnow, index=True)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    __table_args__ = (
        Index("ix_articles_category_publish_at", "category_id", "publish_at"),
    )


class Texts(SQLModel, table=True):
    id: int | None = Field(default=None, primary_key=True)
    ref_id: int = Field(index=True)
    value: str = Field(sa_column=Column(Text, nullable=False))
    created_at: datetime = Field(default_factory=utcnow)
