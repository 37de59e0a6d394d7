"""Хранение загруженных файлов на локальном диске."""
import os
import secrets
import time
from pathlib import Path

from ..application.dto import StoredFile
from ..application.use_cases.upload_resource import IFileStorage
from ..domain.errors import PayloadTooLarge

CHUNK_SIZE = 1024 * 1024


def ensure_directory(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


class LocalFileStorage(IFileStorage):
    def __init__(self, root: Path | str, chunk_size: int = CHUNK_SIZE):
        self.root = Path(root).resolve()
        self.chunk_size = chunk_size

    def generate_name(self, original_filename: str) -> str:
        # имя клиента не используется: только время, случайная часть и расширение
        ext = os.path.splitext(original_filename)[1].lower()
        return f"file-{int(time.time() * 1000)}-{secrets.randbelow(10**9)}{ext}"

    def save(self, stream, stored_filename: str, max_bytes: int) -> StoredFile:
        """Пишет поток по кускам и обрывает запись, как только превышен лимит."""
        ensure_directory(self.root)
        destination = self._path_for(stored_filename)
        written = 0
        out = destination.open("xb")
        try:
            while True:
                chunk = stream.read(self.chunk_size)
                if not chunk:
                    break
                written += len(chunk)
                if written > max_bytes:
                    raise PayloadTooLarge(f"File exceeds the {max_bytes} byte limit")
                out.write(chunk)
        except BaseException:
            out.close()
            destination.unlink(missing_ok=True)
            raise
        out.close()
        return StoredFile(stored_filename=stored_filename, server_path=str(destination), size_bytes=written)

    def delete(self, server_path: str) -> None:
        Path(server_path).unlink(missing_ok=True)

    def exists(self, server_path: str) -> bool:
        return Path(server_path).is_file()

    def _path_for(self, stored_filename: str) -> Path:
        destination = (self.root / stored_filename).resolve()
        if destination.parent != self.root:
            raise ValueError(f"Refusing to write outside upload directory: {stored_filename!r}")
        return destination
