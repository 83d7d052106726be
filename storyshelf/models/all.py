# Importing this module registers every mapped class on Base.metadata.
from storyshelf.models.author import Author
from storyshelf.models.chapter import Chapter
from storyshelf.models.story import Story, story_tags
from storyshelf.models.tag import Tag

__all__ = ["Author", "Chapter", "Story", "Tag", "story_tags"]
