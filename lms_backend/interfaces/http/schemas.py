from datetime import datetime

from pydantic import BaseModel, EmailStr

from ...domain.entities import Role

class RegisterReq(BaseModel):
    username: str
    email: EmailStr
    password: str

class LoginReq(BaseModel):
    username: str
    password: str

class UserResp(BaseModel):
    id: int
    username: str
    email: str
    role: Role
    class Config: from_attributes = True

class AuthResp(BaseModel):
    user: UserResp
    token: str
    token_type: str = "bearer"

class UserRefOut(BaseModel):
    id: int
    username: str
    class Config: from_attributes = True

class AnnouncementCreate(BaseModel):
    title: str
    content: str

class AnnouncementOut(BaseModel):
    id: int
    title: str
    content: str
    author: UserRefOut
    created_at: datetime
    class Config: from_attributes = True

class ResourceOut(BaseModel):
    # server_path намеренно отсутствует
    id: int
    filename: str
    original_name: str
    mime_type: str
    size: int
    uploaded_by: UserRefOut
    created_at: datetime

    @classmethod
    def from_domain(cls, r) -> "ResourceOut":
        return cls(
            id=r.id,
            filename=r.stored_filename,
            original_name=r.original_filename,
            mime_type=r.mime_type,
            size=r.size_bytes,
            uploaded_by=UserRefOut(id=r.uploaded_by.id, username=r.uploaded_by.username),
            created_at=r.created_at,
        )
