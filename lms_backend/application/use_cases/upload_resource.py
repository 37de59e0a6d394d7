import os
from dataclasses import dataclass, field

import structlog

from ..dto import StoredFile, UploadedFile
from ...domain.entities import Resource, User
from ...domain.errors import PayloadTooLarge, UnsupportedMediaType, ValidationError

logger = structlog.get_logger()

# расширение -> допустимые mime-типы
ALLOWED_TYPES: dict[str, frozenset[str]] = {
    ".pdf": frozenset({"application/pdf"}),
    ".doc": frozenset({"application/msword"}),
    ".docx": frozenset({"application/vnd.openxmlformats-officedocument.wordprocessingml.document"}),
    ".ppt": frozenset({"application/vnd.ms-powerpoint"}),
    ".pptx": frozenset({"application/vnd.openxmlformats-officedocument.presentationml.presentation"}),
    ".jpeg": frozenset({"image/jpeg"}),
    ".jpg": frozenset({"image/jpeg"}),
    ".png": frozenset({"image/png"}),
}

MAX_UPLOAD_BYTES = 5 * 1024 * 1024
FILENAME_MAX_LENGTH = 255


class IResourceRepository:
    def list_newest_first(self) -> list[Resource]: ...
    def get(self, resource_id: int) -> Resource | None: ...
    def add(self, stored_filename: str, original_filename: str, mime_type: str,
            size_bytes: int, server_path: str, uploader_id: int) -> int:
        """Вставляет запись и коммитит; возвращает id."""


class IFileStorage:
    def generate_name(self, original_filename: str) -> str: ...
    def save(self, stream, stored_filename: str, max_bytes: int) -> StoredFile: ...
    def delete(self, server_path: str) -> None: ...
    def exists(self, server_path: str) -> bool: ...


@dataclass(frozen=True)
class UploadPolicy:
    max_bytes: int = MAX_UPLOAD_BYTES
    allowed_types: dict[str, frozenset[str]] = field(default_factory=lambda: dict(ALLOWED_TYPES))

    def check_type(self, filename: str, content_type: str | None) -> str:
        """Возвращает расширение файла или кидает UnsupportedMediaType.

        Проверяются оба сигнала: расширение имени и заявленный mime-тип.
        """
        ext = os.path.splitext(filename)[1].lower()
        mime = (content_type or "").split(";")[0].strip().lower()
        # mime должен соответствовать именно этому расширению
        if ext not in self.allowed_types or mime not in self.allowed_types[ext]:
            raise UnsupportedMediaType()
        return ext

    def check_size(self, size: int | None) -> None:
        if size is not None and size > self.max_bytes:
            raise PayloadTooLarge(f"File exceeds the {self.max_bytes} byte limit")


class UploadResource:
    def __init__(self, repo: IResourceRepository, storage: IFileStorage, policy: UploadPolicy | None = None):
        self.repo = repo
        self.storage = storage
        self.policy = policy or UploadPolicy()

    def execute(self, uploader: User, upload: UploadedFile | None) -> Resource:
        if upload is None or not upload.filename:
            raise ValidationError({"file": "Please upload a file."}, "Please upload a file.")
        original_filename = os.path.basename(upload.filename)
        if len(original_filename) > FILENAME_MAX_LENGTH:
            raise ValidationError(
                {"file": f"File name must be at most {FILENAME_MAX_LENGTH} characters long."},
                "File name is too long.",
            )

        # всё отклоняем до записи на диск
        self.policy.check_type(upload.filename, upload.content_type)
        self.policy.check_size(upload.size)

        stored_name = self.storage.generate_name(upload.filename)
        stored = self.storage.save(upload.stream, stored_name, self.policy.max_bytes)

        # файл удаляется только если сама вставка не прошла
        try:
            resource_id = self.repo.add(
                stored_filename=stored.stored_filename,
                original_filename=original_filename,
                mime_type=upload.content_type.split(";")[0].strip().lower(),
                size_bytes=stored.size_bytes,
                server_path=stored.server_path,
                uploader_id=uploader.id,
            )
        except Exception:
            self._remove_orphan(stored.server_path)
            raise

        # запись уже закоммичена: файл остаётся при любой ошибке чтения
        resource = self.repo.get(resource_id)
        logger.info("resource_uploaded", resource_id=resource_id, uploader_id=uploader.id,
                    size_bytes=stored.size_bytes)
        return resource

    def _remove_orphan(self, server_path: str) -> None:
        # ошибка удаления только логируется, клиент получает исходную ошибку
        try:
            self.storage.delete(server_path)
        except OSError as exc:
            logger.error("orphan_cleanup_failed", stored_path=server_path, error=str(exc))
        else:
            logger.warning("orphan_file_removed", stored_path=server_path)
