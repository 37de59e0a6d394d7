from ...application.use_cases.upload_resource import UploadPolicy
from ...config import settings
from ...infrastructure.security import TokenService
from ...infrastructure.storage import LocalFileStorage


def get_token_service() -> TokenService:
    return TokenService.from_settings(settings)


def get_storage() -> LocalFileStorage:
    return LocalFileStorage(settings.UPLOAD_DIR)


def get_upload_policy() -> UploadPolicy:
    return UploadPolicy(max_bytes=settings.MAX_UPLOAD_BYTES)
