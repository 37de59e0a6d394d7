from fastapi import APIRouter, Depends, File, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session
from ....application.dto import UploadedFile
from ....application.use_cases.download_resource import ResolveDownload
from ....application.use_cases.upload_resource import UploadPolicy, UploadResource
from ....config import settings
from ....domain.entities import User
from ....domain.errors import AppError
from ....infrastructure.db import get_db
from ....infrastructure.repositories import ResourceRepository
from ....infrastructure.storage import LocalFileStorage
from ....infrastructure.cache import RESOURCES_KEY, get_cache, set_cache, delete_cache
from ....infrastructure.metrics import cache_hits_total, cache_misses_total, uploads_total
from ..schemas import ResourceOut
from ..authz import get_current_user, require_staff
from ..dependencies import get_storage, get_upload_policy

router = APIRouter(prefix="/api/resources", tags=["resources"])

@router.get("/health")
def health(): return {"status":"ok"}

@router.get("", response_model=list[ResourceOut], dependencies=[Depends(get_current_user)])
def list_resources(db: Session = Depends(get_db)):
    cached = get_cache(RESOURCES_KEY) if settings.CACHE_ENABLED else None
    if cached is not None:
        cache_hits_total.labels(key=RESOURCES_KEY).inc()
        return cached

    cache_misses_total.labels(key=RESOURCES_KEY).inc()
    result = [ResourceOut.from_domain(r) for r in ResourceRepository(db).list_newest_first()]
    if settings.CACHE_ENABLED:
        set_cache(RESOURCES_KEY, [r.model_dump(mode="json") for r in result])
    return result

# --- Admin/instructor only:

@router.post("/upload", response_model=ResourceOut, status_code=status.HTTP_201_CREATED)
def upload_resource(file: UploadFile | None = File(default=None),
                    uploader: User = Depends(require_staff),
                    db: Session = Depends(get_db),
                    storage: LocalFileStorage = Depends(get_storage),
                    policy: UploadPolicy = Depends(get_upload_policy)):
    upload = None
    if file is not None:
        upload = UploadedFile(filename=file.filename or "", content_type=file.content_type or "",
                              stream=file.file, size=file.size)
    try:
        resource = UploadResource(ResourceRepository(db), storage, policy).execute(uploader, upload)
    except AppError as exc:
        uploads_total.labels(outcome=type(exc).__name__).inc()
        raise
    uploads_total.labels(outcome="accepted").inc()
    if settings.CACHE_ENABLED:
        delete_cache(RESOURCES_KEY)
    return ResourceOut.from_domain(resource)

# --- Any authenticated role:

@router.get("/download/{resource_id}", response_class=FileResponse, dependencies=[Depends(get_current_user)])
def download_resource(resource_id: int,
                      db: Session = Depends(get_db),
                      storage: LocalFileStorage = Depends(get_storage)):
    resource = ResolveDownload(ResourceRepository(db), storage).execute(resource_id)
    # клиенту уходит исходное имя, путь на сервере остаётся внутри
    return FileResponse(resource.server_path, media_type=resource.mime_type,
                        filename=resource.original_filename)
