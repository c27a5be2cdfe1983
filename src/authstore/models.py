"""Default record types for users, keys and sessions.

Each dataclass declares its persisted columns with :func:`~authstore.schema.column`;
the ``attributes`` bag carries columns the type does not know about (a
``username`` on the user table, for instance).  Applications with their own
schema pass their own dataclasses to :class:`~authstore.adapter.AuthAdapter`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from authstore.schema import attributes, column


@dataclass
class UserSchema:
    id: str = column("id", default="")
    attributes: dict[str, Any] = attributes()


@dataclass
class KeySchema:
    id: str = column("id", default="")
    user_id: str = column("user_id", default="")
    hashed_password: str | None = column("hashed_password", default=None)


@dataclass
class SessionSchema:
    id: str = column("id", default="")
    user_id: str = column("user_id", default="")
    active_expires: int = column("active_expires", default=0)
    idle_expires: int = column("idle_expires", default=0)
    attributes: dict[str, Any] = attributes()


@dataclass
class UserJoinSession(UserSchema):
    """A user row as returned by the session join, tagged with the session id."""

    session_id: str = column("__session_id", default="")


__all__ = [
    "UserSchema",
    "KeySchema",
    "SessionSchema",
    "UserJoinSession",
]
