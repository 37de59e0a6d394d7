from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from ...application.auth_gate import AuthGate, RoleGate
from ...domain.entities import Role, User
from ...infrastructure.db import get_db
from ...infrastructure.repositories import UserRepository
from ...infrastructure.security import TokenService
from .dependencies import get_token_service


def get_current_user(
    request: Request,
    authorization: str | None = Header(default=None),
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
) -> User:
    user = AuthGate(tokens, UserRepository(db)).authenticate(authorization)
    request.state.user = user
    return user


def require_roles(*roles: Role):
    gate = RoleGate(roles)

    def check_role(user: User = Depends(get_current_user)) -> User:
        return gate.check(user)

    return check_role


require_admin = require_roles(Role.ADMIN)
require_staff = require_roles(Role.ADMIN, Role.INSTRUCTOR)
