from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class Role(str, Enum):
    ADMIN = "admin"
    INSTRUCTOR = "instructor"
    STUDENT = "student"


@dataclass(frozen=True)
class User:
    id: int | None
    username: str
    email: str
    role: Role = Role.STUDENT
    created_at: datetime | None = None


@dataclass(frozen=True)
class UserRef:
    """Публичная часть пользователя: только id и username."""
    id: int
    username: str


@dataclass(frozen=True)
class Announcement:
    id: int
    title: str
    content: str
    author: UserRef
    created_at: datetime


@dataclass(frozen=True)
class Resource:
    id: int
    stored_filename: str
    original_filename: str
    mime_type: str
    size_bytes: int
    server_path: str
    uploaded_by: UserRef
    created_at: datetime
