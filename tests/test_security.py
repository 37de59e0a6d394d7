from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from lms_backend.application.dto import TokenClaims
from lms_backend.domain.entities import Role
from lms_backend.domain.errors import InvalidToken
from lms_backend.infrastructure.security import PasswordHasher, TokenService


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock():
    return FakeClock(datetime(2025, 3, 1, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def tokens(clock):
    return TokenService("test-secret", algorithm="HS256", expires_minutes=60, clock=clock)


def test_password_hash_is_not_plaintext():
    """Хэш не совпадает с паролем и проверяется только правильным паролем"""
    hasher = PasswordHasher()
    hashed = hasher.hash("password123")
    assert hashed != "password123"
    assert "password123" not in hashed
    assert hasher.verify("password123", hashed) is True
    for other in ["password124", "", "PASSWORD123", "password123 "]:
        assert hasher.verify(other, hashed) is False


def test_password_hash_is_salted():
    hasher = PasswordHasher()
    assert hasher.hash("password123") != hasher.hash("password123")


def test_issue_and_verify(tokens):
    token = tokens.issue(42, Role.INSTRUCTOR)
    assert tokens.verify(token) == TokenClaims(user_id=42, role=Role.INSTRUCTOR)


def test_token_valid_until_expiry_instant(tokens, clock):
    """Токен валиден до момента exp и невалиден начиная с него"""
    token = tokens.issue(7, Role.STUDENT)
    expiry = clock.now + timedelta(minutes=60)

    clock.now = expiry - timedelta(seconds=1)
    assert tokens.verify(token).user_id == 7

    clock.now = expiry
    with pytest.raises(InvalidToken):
        tokens.verify(token)

    clock.now = expiry + timedelta(seconds=1)
    with pytest.raises(InvalidToken):
        tokens.verify(token)


def test_tampered_signature_rejected(tokens):
    token = tokens.issue(1, Role.STUDENT)
    header, payload, signature = token.split(".")
    bad_signature = ("A" if signature[0] != "A" else "B") + signature[1:]
    with pytest.raises(InvalidToken):
        tokens.verify(f"{header}.{payload}.{bad_signature}")


def test_token_signed_with_other_secret_rejected(tokens, clock):
    forged = TokenService("attacker-secret", clock=clock).issue(1, Role.ADMIN)
    with pytest.raises(InvalidToken):
        tokens.verify(forged)


def test_payload_swap_rejected(tokens):
    """Подмена payload (роль admin) при старой подписи не проходит"""
    student_token = tokens.issue(1, Role.STUDENT)
    admin_token = TokenService("other", expires_minutes=60).issue(1, Role.ADMIN)
    header, _, signature = student_token.split(".")
    _, admin_payload, _ = admin_token.split(".")
    with pytest.raises(InvalidToken):
        tokens.verify(f"{header}.{admin_payload}.{signature}")


@pytest.mark.parametrize("token", ["", "not-a-token", "a.b.c", "Bearer x"])
def test_garbage_rejected(tokens, token):
    with pytest.raises(InvalidToken):
        tokens.verify(token)


def test_malformed_claims_rejected(tokens, clock):
    future = int((clock.now + timedelta(hours=1)).timestamp())
    cases = [
        {"sub": "abc", "role": "student", "exp": future},
        {"sub": "1", "role": "superuser", "exp": future},
        {"role": "student", "exp": future},
        {"sub": "1", "role": "student"},
    ]
    for payload in cases:
        token = jwt.encode(payload, "test-secret", algorithm="HS256")
        with pytest.raises(InvalidToken):
            tokens.verify(token)
