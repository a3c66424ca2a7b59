"""Public profile schema as served by the Backend API."""

from pydantic import BaseModel, ConfigDict, Field


class Profile(BaseModel):
    """Public part of a user's profile."""

    model_config = ConfigDict(extra="ignore")

    handle: str = Field(min_length=1)
    name: str = ""
    description: str | None = None
    image: str | None = None
