"""Authenticated GitHub user."""

from pydantic import BaseModel


class User(BaseModel):
    """Owner of the personal access token."""

    login: str
    avatar_url: str = ""
    name: str | None = None
