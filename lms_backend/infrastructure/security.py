from datetime import datetime, timedelta, timezone
from typing import Callable

from passlib.context import CryptContext
from jose import jwt, JWTError

from ..application.dto import TokenClaims
from ..config import Settings
from ..domain.entities import Role
from ..domain.errors import InvalidToken

pwd = CryptContext(
    schemes=["bcrypt_sha256"],
    deprecated="auto",
    bcrypt_sha256__truncate_error=False,
)

class PasswordHasher:
    def hash(self, plain: str) -> str: return pwd.hash(plain)
    def verify(self, plain: str, hashed: str) -> bool: return pwd.verify(plain, hashed)
    def dummy_verify(self) -> None: pwd.dummy_verify()


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TokenService:
    """Выдаёт и проверяет подписанные JWT c user id и ролью.

    Срок жизни проверяется здесь, а не в jose, чтобы граница была строгой
    (токен недействителен начиная с момента exp) и часы можно было подменить.
    """

    def __init__(self, secret: str, algorithm: str = "HS256", expires_minutes: int = 60,
                 clock: Callable[[], datetime] = utc_now):
        self.secret = secret
        self.algorithm = algorithm
        self.expires_minutes = expires_minutes
        self.clock = clock

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenService":
        return cls(
            secret=settings.SECRET_KEY,
            algorithm=settings.JWT_ALGORITHM,
            expires_minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES,
        )

    def issue(self, user_id: int, role: Role | str) -> str:
        now = self.clock()
        exp = now + timedelta(minutes=self.expires_minutes)
        payload = {
            "sub": str(user_id),
            "role": Role(role).value,
            "iat": int(now.timestamp()),
            "exp": int(exp.timestamp()),
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify(self, token: str) -> TokenClaims:
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm],
                                 options={"verify_exp": False})
        except JWTError as exc:
            raise InvalidToken(str(exc)) from exc

        exp = payload.get("exp")
        if not isinstance(exp, int):
            raise InvalidToken("No expiry")
        if self.clock().timestamp() >= exp:
            raise InvalidToken("Token expired")

        try:
            return TokenClaims(user_id=int(payload["sub"]), role=Role(payload["role"]))
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidToken("Malformed claims") from exc
