from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from storyshelf.db.session import Base
from storyshelf.models.common import UUIDMixin, TimestampMixin

class Author(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "authors"
    name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)

    stories: Mapped[list["Story"]] = relationship(back_populates="owner")
