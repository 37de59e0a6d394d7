from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from ....application.use_cases.authenticate_user import AuthenticateUser
from ....application.use_cases.register_user import RegisterUser
from ....domain.entities import User
from ....infrastructure.db import get_db
from ....infrastructure.repositories import UserRepository
from ....infrastructure.security import PasswordHasher, TokenService
from ..authz import get_current_user
from ..dependencies import get_token_service
from ..ratelimit import LOGIN_LIMIT, REGISTER_LIMIT, limiter
from ..schemas import AuthResp, LoginReq, RegisterReq, UserResp

router = APIRouter(prefix="/api/auth", tags=["auth"])

@router.get("/health")
def health():
    return {"status": "ok"}

def _auth_response(user: User, tokens: TokenService) -> AuthResp:
    return AuthResp(user=UserResp.model_validate(user), token=tokens.issue(user.id, user.role))

@router.post("/register", response_model=AuthResp, status_code=status.HTTP_201_CREATED)
@limiter.limit(REGISTER_LIMIT)
def register(
    request: Request,
    payload: RegisterReq,
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
):
    uc = RegisterUser(repo=UserRepository(db), hasher=PasswordHasher())
    user = uc.execute(payload.username, payload.email, payload.password)
    return _auth_response(user, tokens)

@router.post("/login", response_model=AuthResp)
@limiter.limit(LOGIN_LIMIT)
def login(
    request: Request,
    payload: LoginReq,
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
):
    uc = AuthenticateUser(repo=UserRepository(db), hasher=PasswordHasher())
    user = uc.execute(payload.username, payload.password)
    return _auth_response(user, tokens)

@router.get("/me", response_model=UserResp)
def me(user: User = Depends(get_current_user)):
    return UserResp.model_validate(user)
