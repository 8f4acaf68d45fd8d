"""Profile data model."""

from pydantic import Field

from igsnap.models.base import CamelModel


class Profile(CamelModel):
    """Normalized Instagram profile. Every field always carries a value."""

    username: str = ""
    full_name: str = ""
    biography: str = ""
    followers_count: int = Field(default=0, ge=0)
    following_count: int = Field(default=0, ge=0)
    profile_pic_url: str = ""
    external_url: str = ""
    verified: bool = False
