from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from .models import AnnouncementORM, ResourceORM, UserORM
from ..domain.entities import Announcement, Resource, Role, User, UserRef
from ..domain.errors import Conflict
from ..application.use_cases.register_user import IUserRepository
from ..application.use_cases.create_announcement import IAnnouncementRepository
from ..application.use_cases.upload_resource import IResourceRepository

def to_domain(u: UserORM) -> User:
    return User(id=u.id, username=u.username, email=u.email, role=Role(u.role), created_at=u.created_at)

def to_ref(u: UserORM) -> UserRef:
    return UserRef(id=u.id, username=u.username)

def announcement_to_domain(a: AnnouncementORM) -> Announcement:
    return Announcement(id=a.id, title=a.title, content=a.content, author=to_ref(a.author), created_at=a.created_at)

def resource_to_domain(r: ResourceORM) -> Resource:
    return Resource(
        id=r.id,
        stored_filename=r.stored_filename,
        original_filename=r.original_filename,
        mime_type=r.mime_type,
        size_bytes=r.size_bytes,
        server_path=r.server_path,
        uploaded_by=to_ref(r.uploader),
        created_at=r.created_at,
    )

class UserRepository(IUserRepository):
    def __init__(self, db: Session): self.db = db

    def get_by_id(self, user_id: int) -> User | None:
        row = self.db.get(UserORM, user_id)
        return to_domain(row) if row else None

    def get_by_username(self, username: str) -> User | None:
        row = self.db.query(UserORM).filter(UserORM.username == username).first()
        return to_domain(row) if row else None

    def get_by_email(self, email: str) -> User | None:
        row = self.db.query(UserORM).filter(UserORM.email == email).first()
        return to_domain(row) if row else None

    def get_password_hash(self, user_id: int) -> str | None:
        return self.db.execute(select(UserORM.password_hash).where(UserORM.id == user_id)).scalar_one_or_none()

    def create(self, username: str, email: str, password_hash: str, role: Role = Role.STUDENT) -> User:
        row = UserORM(username=username, email=email, password_hash=password_hash, role=Role(role).value)
        self.db.add(row)
        try:
            self.db.commit()
        except IntegrityError:
            # параллельная регистрация с тем же username/email
            self.db.rollback()
            raise Conflict()
        self.db.refresh(row)
        return to_domain(row)

class AnnouncementRepository(IAnnouncementRepository):
    def __init__(self, db: Session): self.db = db

    def list_newest_first(self) -> list[Announcement]:
        rows = (self.db.query(AnnouncementORM)
                .order_by(AnnouncementORM.created_at.desc(), AnnouncementORM.id.desc())
                .all())
        return [announcement_to_domain(r) for r in rows]

    def create(self, title: str, content: str, author_id: int) -> Announcement:
        row = AnnouncementORM(title=title, content=content, author_id=author_id)
        self.db.add(row); self.db.commit(); self.db.refresh(row)
        return announcement_to_domain(row)

class ResourceRepository(IResourceRepository):
    def __init__(self, db: Session): self.db = db

    def list_newest_first(self) -> list[Resource]:
        rows = (self.db.query(ResourceORM)
                .order_by(ResourceORM.created_at.desc(), ResourceORM.id.desc())
                .all())
        return [resource_to_domain(r) for r in rows]

    def get(self, resource_id: int) -> Resource | None:
        row = self.db.get(ResourceORM, resource_id)
        return resource_to_domain(row) if row else None

    def add(self, stored_filename: str, original_filename: str, mime_type: str,
            size_bytes: int, server_path: str, uploader_id: int) -> int:
        row = ResourceORM(
            stored_filename=stored_filename,
            original_filename=original_filename,
            mime_type=mime_type,
            size_bytes=size_bytes,
            server_path=server_path,
            uploader_id=uploader_id,
        )
        self.db.add(row)
        try:
            self.db.flush()
            resource_id = row.id
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return resource_id
