from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, String, Table, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from storyshelf.db.session import Base
from storyshelf.models.common import TimestampMixin, UUIDMixin

story_tags = Table(
    "story_tags",
    Base.metadata,
    Column("story_id", Uuid(as_uuid=True), ForeignKey("stories.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", Uuid(as_uuid=True), ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)


class Story(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "stories"

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    owner_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), ForeignKey("authors.id"), nullable=False, index=True)
    published_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, index=True)

    owner: Mapped["Author"] = relationship(back_populates="stories")
    chapters: Mapped[list["Chapter"]] = relationship(back_populates="story", order_by="Chapter.order")
    tags: Mapped[list["Tag"]] = relationship(secondary=story_tags, back_populates="stories")
