"""
Database Models for the Slug Service

This module defines the SQLModel schemas for:
- SlugRecord: a short token mapped to a redirect target, owned by a user
- HitEvent: an append-only log entry written each time a slug is resolved

Design Decisions:
- Column names (userid, createdat, updatedat, hittedat) keep the field names of
  the documents written by the previous storage backend
- pk is an autoincrement insertion sequence; id is the opaque public identifier
- HitEvent embeds a snapshot of the slug instead of referencing it, so later
  edits or deletion never rewrite history (no foreign key)
- slug tokens are indexed but NOT unique
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlmodel import Field, SQLModel


class Slug(SQLModel):
    """
    Public view of a slug: what callers see and what hit events embed.
    """
    id: str
    slug: str
    domain: str
    userid: str

    @classmethod
    def from_record(cls, record: "SlugRecord") -> "Slug":
        return cls(id=record.id, slug=record.slug, domain=record.domain, userid=record.userid)


class SlugRecord(SQLModel, table=True):
    """
    Persisted slug.

    Indexes:
    - id: unique, public identifier
    - slug: token lookups on resolve (most critical path)
    - userid + createdat: listing and the rate limit window count
    """
    __tablename__ = "slugs"

    pk: Optional[int] = Field(
        default=None,
        sa_column=Column(Integer, primary_key=True, autoincrement=True)
    )
    id: str = Field(sa_column=Column(String(32), nullable=False, unique=True, index=True))
    slug: str = Field(sa_column=Column(String(255), nullable=False, index=True))
    domain: str = Field(sa_column=Column(Text, nullable=False))
    userid: str = Field(sa_column=Column(String(128), nullable=False, index=True))
    createdat: datetime = Field(
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True)
    )
    updatedat: datetime = Field(
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )


class HitEvent(SQLModel, table=True):
    """
    Hit log entry.

    slug_id/slug/domain/userid are a copy of the slug as it was at resolution time.
    """
    __tablename__ = "hits"

    pk: Optional[int] = Field(
        default=None,
        sa_column=Column(Integer, primary_key=True, autoincrement=True)
    )
    slug_id: str = Field(sa_column=Column(String(32), nullable=False, index=True))
    slug: str = Field(sa_column=Column(String(255), nullable=False))
    domain: str = Field(sa_column=Column(Text, nullable=False))
    userid: str = Field(sa_column=Column(String(128), nullable=False))
    hittedat: datetime = Field(
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True)
    )
