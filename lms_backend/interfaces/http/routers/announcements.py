from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from ....application.use_cases.create_announcement import CreateAnnouncement
from ....config import settings
from ....domain.entities import User
from ....infrastructure.db import get_db
from ....infrastructure.repositories import AnnouncementRepository
from ....infrastructure.cache import ANNOUNCEMENTS_KEY, get_cache, set_cache, delete_cache
from ....infrastructure.metrics import cache_hits_total, cache_misses_total
from ..schemas import AnnouncementCreate, AnnouncementOut
from ..authz import get_current_user, require_admin

router = APIRouter(prefix="/api/announcements", tags=["announcements"])

@router.get("/health")
def health(): return {"status":"ok"}

@router.get("", response_model=list[AnnouncementOut], dependencies=[Depends(get_current_user)])
def list_announcements(db: Session = Depends(get_db)):
    # Кэширование списка объявлений
    cached = get_cache(ANNOUNCEMENTS_KEY) if settings.CACHE_ENABLED else None
    if cached is not None:
        cache_hits_total.labels(key=ANNOUNCEMENTS_KEY).inc()
        return cached

    cache_misses_total.labels(key=ANNOUNCEMENTS_KEY).inc()
    rows = AnnouncementRepository(db).list_newest_first()
    result = [AnnouncementOut.model_validate(row) for row in rows]
    if settings.CACHE_ENABLED:
        set_cache(ANNOUNCEMENTS_KEY, [r.model_dump(mode="json") for r in result])
    return result

# --- Admin-only:

@router.post("", response_model=AnnouncementOut, status_code=status.HTTP_201_CREATED)
def create_announcement(payload: AnnouncementCreate,
                        author: User = Depends(require_admin),
                        db: Session = Depends(get_db)):
    row = CreateAnnouncement(AnnouncementRepository(db)).execute(author, payload.title, payload.content)
    # Инвалидируем кэш списка
    if settings.CACHE_ENABLED:
        delete_cache(ANNOUNCEMENTS_KEY)
    return AnnouncementOut.model_validate(row)
