import structlog

from ...domain.entities import Resource
from ...domain.errors import NotFound
from .upload_resource import IFileStorage, IResourceRepository

logger = structlog.get_logger()


class ResolveDownload:
    """id ресурса -> запись с путём на диске. Путь наружу не отдаётся."""

    def __init__(self, repo: IResourceRepository, storage: IFileStorage):
        self.repo = repo
        self.storage = storage

    def execute(self, resource_id: int) -> Resource:
        resource = self.repo.get(resource_id)
        if resource is None:
            raise NotFound("Resource not found")
        if not self.storage.exists(resource.server_path):
            logger.warning("resource_file_missing", resource_id=resource.id)
            raise NotFound("Resource not found")
        return resource
