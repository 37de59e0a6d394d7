import structlog

from ...domain.entities import User
from ...domain.errors import Unauthenticated
from .register_user import IPasswordHasher, IUserRepository

logger = structlog.get_logger()


class AuthenticateUser:
    """Логин по username/паролю.

    Клиент всегда получает одно и то же сообщение, чтобы нельзя было
    перебором выяснить, какие username существуют.
    """

    def __init__(self, repo: IUserRepository, hasher: IPasswordHasher):
        self.repo = repo
        self.hasher = hasher

    def verify_password(self, user: User, plain: str) -> bool:
        hashed = self.repo.get_password_hash(user.id)
        if not hashed:
            return False
        return self.hasher.verify(plain, hashed)

    def execute(self, username: str, password: str) -> User:
        user = self.repo.get_by_username((username or "").strip())
        if user is None:
            # выравниваем время ответа с веткой "пароль неверный"
            self.hasher.dummy_verify()
            logger.info("login_failed", reason="unknown_user")
            raise Unauthenticated("Invalid username or password")
        if not self.verify_password(user, password):
            logger.info("login_failed", reason="bad_password", user_id=user.id)
            raise Unauthenticated("Invalid username or password")
        return user
