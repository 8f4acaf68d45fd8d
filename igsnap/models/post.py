"""Post and image data models."""

from pydantic import Field

from igsnap.models.base import CamelModel


class Image(CamelModel):
    """A single post image; dimensions are 0 when unknown."""

    url: str
    width: int = Field(default=0, ge=0)
    height: int = Field(default=0, ge=0)


class Post(CamelModel):
    """Normalized Instagram post."""

    id: str
    short_code: str = ""
    caption: str = ""
    url: str = ""
    comments_count: int = Field(default=0, ge=0)
    likes_count: int = Field(default=0, ge=0)
    timestamp: str = ""

    images: list[Image] = []
    videos: list[str] = []
    mentions: list[str] = []
    hashtags: list[str] = []
