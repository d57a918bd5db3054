"""
Core data models for the CMS API

Defines the SQLModel tables (posts, their comments, the blocklist record and the
admin credential record) and the camelCase base used by API schemas.
"""

from datetime import datetime, timezone
from typing import List, Optional
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlalchemy import Column, DateTime, JSON, LargeBinary
from sqlmodel import SQLModel, Field

from core.identifiers import Identifier, LegacyId, NativeId

SINGLETON_ID = "singleton"


def utcnow() -> datetime:
    """Timezone-aware UTC timestamp"""
    return datetime.now(timezone.utc)


def timestamp_column() -> Column:
    return Column(DateTime(timezone=True), nullable=False)


class Post(SQLModel, table=True):
    """
    Blog post. Exactly one of `native_id` / `legacy_id` is set.
    """

    __tablename__ = "posts"

    pk: Optional[int] = Field(default=None, primary_key=True)
    native_id: Optional[bytes] = Field(
        default=None, sa_column=Column(LargeBinary(12), unique=True, index=True)
    )
    legacy_id: Optional[str] = Field(
        default=None, max_length=64, unique=True, index=True
    )
    title: str = Field(max_length=255)
    description: str
    paragraph: str = ""
    short_text: str = ""
    main_photo: str = Field(max_length=1024)
    images: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    visible: bool = True
    comments_allowed: bool = True
    created_at: datetime = Field(default_factory=utcnow, sa_column=timestamp_column())
    updated_at: datetime = Field(default_factory=utcnow, sa_column=timestamp_column())

    @property
    def identifier(self) -> Identifier:
        if self.native_id is not None:
            return NativeId(self.native_id)
        return LegacyId(self.legacy_id)

    @property
    def public_id(self) -> str:
        return str(self.identifier)


class PostComment(SQLModel, table=True):
    """
    One comment on a post. The auto-increment `id` fixes insertion order; it
    is not exposed, comments are addressed by position.
    """

    __tablename__ = "post_comments"

    id: Optional[int] = Field(default=None, primary_key=True)
    post_pk: int = Field(foreign_key="posts.pk", index=True)
    text: str
    created_at: datetime = Field(default_factory=utcnow, sa_column=timestamp_column())


class Blocklist(SQLModel, table=True):
    """Single record of lowercase forbidden substrings"""

    __tablename__ = "blocklist"

    id: str = Field(default=SINGLETON_ID, primary_key=True)
    words: List[str] = Field(default_factory=list, sa_column=Column(JSON))


class AdminCredential(SQLModel, table=True):
    """Single admin account: username and bcrypt hash"""

    __tablename__ = "admin_credentials"

    id: str = Field(default=SINGLETON_ID, primary_key=True)
    username: str = Field(max_length=255)
    password_hash: str = Field(max_length=255)


class CamelModel(BaseModel):
    """API schema base: camelCase on the wire, snake_case accepted on input"""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )
