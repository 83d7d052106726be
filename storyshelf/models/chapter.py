import uuid

from sqlalchemy import ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from storyshelf.db.session import Base
from storyshelf.models.common import UUIDMixin, TimestampMixin

class Chapter(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "chapters"
    story_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), ForeignKey("stories.id", ondelete="CASCADE"), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    body: Mapped[str | None] = mapped_column(Text, nullable=True)

    story: Mapped["Story"] = relationship(back_populates="chapters")
