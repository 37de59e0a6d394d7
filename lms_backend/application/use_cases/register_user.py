import structlog

from ...domain.entities import Role, User
from ...domain.errors import Conflict
from ...domain.validation import validate_registration, validate_role

logger = structlog.get_logger()


class IUserRepository:
    def get_by_id(self, user_id: int) -> User | None: ...
    def get_by_username(self, username: str) -> User | None: ...
    def get_by_email(self, email: str) -> User | None: ...
    def get_password_hash(self, user_id: int) -> str | None: ...
    def create(self, username: str, email: str, password_hash: str, role: Role = Role.STUDENT) -> User: ...


class IPasswordHasher:
    def hash(self, plain: str) -> str: ...
    def verify(self, plain: str, hashed: str) -> bool: ...
    def dummy_verify(self) -> None: ...


class RegisterUser:
    def __init__(self, repo: IUserRepository, hasher: IPasswordHasher):
        self.repo = repo
        self.hasher = hasher

    def execute(self, username: str, email: str, password: str, role: str = Role.STUDENT.value) -> User:
        username, email = validate_registration(username, email, password)
        role = validate_role(role)
        # быстрая проверка; гонку закрывает уникальный индекс в БД (repo.create -> Conflict)
        if self.repo.get_by_username(username) or self.repo.get_by_email(email):
            raise Conflict()
        pwd_hash = self.hasher.hash(password)
        user = self.repo.create(username, email, pwd_hash, role)
        logger.info("user_registered", user_id=user.id, role=user.role.value)
        return user
