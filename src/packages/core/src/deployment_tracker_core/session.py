"""Authenticated session supplied by the host application."""
from typing import Callable

from pydantic import BaseModel, Field


class Session(BaseModel):
    """The signed-in user and their bearer token."""

    user_id: str
    access_token: str | None = Field(default=None, repr=False)


SessionProvider = Callable[[], Session | None]


def looks_like_jwt(token: str | None) -> bool:
    """Cheap shape check: three non-empty dot-separated segments."""
    if not token or not isinstance(token, str):
        return False
    parts = token.split(".")
    return len(parts) == 3 and all(parts)


def static_session(user_id: str, access_token: str | None = None) -> SessionProvider:
    """Provider for a fixed session; unauthenticated when user_id is empty."""
    session = Session(user_id=user_id, access_token=access_token or None) if user_id else None

    def provider() -> Session | None:
        return session

    return provider
