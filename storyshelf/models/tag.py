from sqlalchemy import String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from storyshelf.db.session import Base
from storyshelf.models.common import UUIDMixin, TimestampMixin
from storyshelf.models.story import story_tags

class Tag(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "tags"
    __table_args__ = (UniqueConstraint("category", "subcategory", "value", name="uq_tags_category_subcategory_value"),)
    category: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    subcategory: Mapped[str | None] = mapped_column(String(50), nullable=True)
    value: Mapped[str] = mapped_column(String(100), nullable=False)

    stories: Mapped[list["Story"]] = relationship(secondary=story_tags, back_populates="tags")
