from dataclasses import dataclass
from typing import BinaryIO

from ..domain.entities import Role


@dataclass(frozen=True)
class TokenClaims:
    user_id: int
    role: Role


@dataclass
class UploadedFile:
    filename: str
    content_type: str
    stream: BinaryIO
    size: int | None = None


@dataclass(frozen=True)
class StoredFile:
    stored_filename: str
    server_path: str
    size_bytes: int
