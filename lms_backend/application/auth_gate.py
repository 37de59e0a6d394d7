"""Проверка доступа к запросу как явный конвейер стадий.

NoToken -> TokenPresent -> Verified -> UserLoaded -> Authorized

Каждая стадия получает контекст и либо возвращает его дополненным,
либо кидает Unauthenticated. Причина отказа пишется в лог, клиент
видит одно общее сообщение. Проверка роли (Authorized) вынесена в
отдельный RoleGate.
"""
from dataclasses import dataclass, replace
from typing import Callable, Iterable

import structlog

from .dto import TokenClaims
from .use_cases.register_user import IUserRepository
from ..domain.entities import Role, User
from ..domain.errors import Forbidden, InvalidToken, Unauthenticated

logger = structlog.get_logger()

BEARER_PREFIX = "bearer "


class ITokenService:
    def issue(self, user_id: int, role: Role) -> str: ...
    def verify(self, token: str) -> TokenClaims: ...


@dataclass(frozen=True)
class AuthContext:
    authorization: str | None
    token: str | None = None
    claims: TokenClaims | None = None
    user: User | None = None


Stage = Callable[[AuthContext], AuthContext]


class AuthGate:
    def __init__(self, tokens: ITokenService, users: IUserRepository):
        self.tokens = tokens
        self.users = users
        self.stages: list[Stage] = [self.extract_bearer, self.verify_token, self.load_user]

    def authenticate(self, authorization: str | None) -> User:
        ctx = AuthContext(authorization=authorization)
        for stage in self.stages:
            ctx = stage(ctx)
        return ctx.user

    def extract_bearer(self, ctx: AuthContext) -> AuthContext:
        header = (ctx.authorization or "").strip()
        if not header.lower().startswith(BEARER_PREFIX):
            raise self._reject("no_token")
        token = header[len(BEARER_PREFIX):].strip()
        if not token:
            raise self._reject("no_token")
        return replace(ctx, token=token)

    def verify_token(self, ctx: AuthContext) -> AuthContext:
        try:
            claims = self.tokens.verify(ctx.token)
        except InvalidToken as exc:
            raise self._reject("invalid_token", error=str(exc))
        return replace(ctx, claims=claims)

    def load_user(self, ctx: AuthContext) -> AuthContext:
        user = self.users.get_by_id(ctx.claims.user_id)
        if user is None:
            raise self._reject("user_not_found", user_id=ctx.claims.user_id)
        return replace(ctx, user=user)

    @staticmethod
    def _reject(reason: str, **details) -> Unauthenticated:
        logger.info("auth_rejected", reason=reason, **details)
        return Unauthenticated()


class RoleGate:
    def __init__(self, roles: Iterable[Role | str]):
        self.roles = tuple(Role(r) for r in roles)

    def check(self, user: User) -> User:
        if user.role not in self.roles:
            logger.info("role_rejected", user_id=user.id, role=user.role.value)
            raise Forbidden(tuple(r.value for r in self.roles))
        return user
