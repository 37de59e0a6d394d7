import threading
from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from lms_backend.application.use_cases.register_user import RegisterUser
from lms_backend.domain.entities import Role
from lms_backend.domain.errors import Conflict
from lms_backend.infrastructure.db import Base
from lms_backend.infrastructure.models import UserORM
from lms_backend.infrastructure.repositories import UserRepository
from lms_backend.infrastructure.security import PasswordHasher
from lms_backend.interfaces.http.ratelimit import limiter


def register(client, username="student1", email="student1@example.com", password="password123"):
    return client.post(
        "/api/auth/register",
        json={"username": username, "email": email, "password": password}
    )


def test_register_user_success(client, session):
    """Тест успешной регистрации пользователя"""
    response = register(client)
    assert response.status_code == 201
    data = response.json()
    assert data["user"]["username"] == "student1"
    assert data["user"]["email"] == "student1@example.com"
    assert data["user"]["role"] == "student"
    assert "id" in data["user"]
    assert "password" not in data["user"]
    assert "password_hash" not in data["user"]
    assert data["token"]
    assert data["token_type"] == "bearer"

    row = session.query(UserORM).filter(UserORM.username == "student1").one()
    assert row.password_hash != "password123"
    assert PasswordHasher().verify("password123", row.password_hash)


def test_register_normalizes_email(client):
    response = register(client, email="Student1@Example.COM")
    assert response.status_code == 201
    assert response.json()["user"]["email"] == "student1@example.com"


def test_register_user_duplicate_username(client):
    """Тест регистрации с существующим username"""
    assert register(client).status_code == 201
    response = register(client, email="other@example.com")
    assert response.status_code == 400
    assert response.json()["detail"] == "User already exists"


def test_register_user_duplicate_email(client):
    assert register(client).status_code == 201
    response = register(client, username="someone_else")
    assert response.status_code == 400


def test_register_user_invalid_email(client):
    """Тест регистрации с невалидным email"""
    response = register(client, email="invalid-email")
    assert response.status_code == 400
    fields = [e["field"] for e in response.json()["errors"]]
    assert "email" in fields


def test_register_user_short_password(client):
    """Тест регистрации с коротким паролем"""
    response = register(client, password="123")
    assert response.status_code == 400
    errors = {e["field"]: e["message"] for e in response.json()["errors"]}
    assert "password" in errors


def test_register_user_short_username(client):
    response = register(client, username=" ab ")
    assert response.status_code == 400
    assert [e["field"] for e in response.json()["errors"]] == ["username"]


def test_register_missing_fields(client):
    response = client.post("/api/auth/register", json={"username": "x"})
    assert response.status_code == 400


def test_login_success(client, create_user):
    """Тест успешного входа"""
    user = create_user("instructor1", role=Role.INSTRUCTOR)
    response = client.post(
        "/api/auth/login",
        json={"username": "instructor1", "password": "password123"}
    )
    assert response.status_code == 200
    data = response.json()
    assert data["user"]["id"] == user.id
    assert data["user"]["role"] == "instructor"
    assert data["token_type"] == "bearer"


def test_login_invalid_credentials(client, create_user):
    """Тест входа с неверным паролем"""
    create_user("student1")
    response = client.post(
        "/api/auth/login",
        json={"username": "student1", "password": "wrongpassword"}
    )
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid username or password"


def test_login_nonexistent_user(client):
    """Тест входа несуществующего пользователя: то же сообщение, что и при неверном пароле"""
    response = client.post(
        "/api/auth/login",
        json={"username": "ghost", "password": "password123"}
    )
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid username or password"


def test_me_endpoint_success(client, create_user, auth_headers):
    """Тест получения информации о текущем пользователе"""
    user = create_user("student1")
    response = client.get("/api/auth/me", headers=auth_headers(user))
    assert response.status_code == 200
    data = response.json()
    assert data["username"] == "student1"
    assert data["id"] == user.id


def test_me_endpoint_invalid_token(client):
    """Тест получения информации с невалидным токеном"""
    response = client.get(
        "/api/auth/me",
        headers={"Authorization": "Bearer invalid_token"}
    )
    assert response.status_code == 401
    assert response.json()["detail"] == "Not authorized"


def test_me_endpoint_no_token(client):
    """Тест получения информации без токена"""
    response = client.get("/api/auth/me")
    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"
    assert response.json()["detail"] == "Not authorized"


def test_me_endpoint_deleted_user(client, session, create_user, auth_headers):
    user = create_user("student1")
    headers = auth_headers(user)
    session.query(UserORM).filter(UserORM.id == user.id).delete()
    session.commit()

    response = client.get("/api/auth/me", headers=headers)
    assert response.status_code == 401
    assert response.json()["detail"] == "Not authorized"


def test_token_from_register_works(client):
    token = register(client).json()["token"]
    response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200


class NoPrecheckRepository(UserRepository):
    """Репозиторий, в котором предварительная проверка ничего не находит"""
    def get_by_username(self, username):
        return None

    def get_by_email(self, email):
        return None


def test_unique_index_turns_duplicate_into_conflict(session):
    """Если предварительная проверка проскочила, дубликат ловит уникальный индекс"""
    uc = RegisterUser(repo=NoPrecheckRepository(session), hasher=PasswordHasher())
    uc.execute("racer", "racer@example.com", "password123")
    with pytest.raises(Conflict):
        uc.execute("racer", "racer2@example.com", "password123")
    assert session.query(UserORM).count() == 1


def test_concurrent_registration_single_winner(tmp_path):
    """Две одновременные регистрации одного username: ровно один успех и один Conflict"""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'race.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    SessionFactory = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    barrier = threading.Barrier(2)

    def attempt(i):
        db = SessionFactory()
        try:
            uc = RegisterUser(repo=UserRepository(db), hasher=PasswordHasher())
            barrier.wait()
            try:
                uc.execute("racer", f"racer{i}@example.com", "password123")
                return "ok"
            except Conflict:
                return "conflict"
        finally:
            db.close()

    try:
        with ThreadPoolExecutor(max_workers=2) as pool:
            results = list(pool.map(attempt, range(2)))
        assert sorted(results) == ["conflict", "ok"]
    finally:
        engine.dispose()


def test_login_rate_limited(client, create_user):
    """Лимит на логин: 10 запросов в минуту"""
    create_user("student1")
    limiter.reset()
    limiter.enabled = True
    try:
        statuses = [
            client.post("/api/auth/login", json={"username": "student1", "password": "wrongpassword"}).status_code
            for _ in range(11)
        ]
    finally:
        limiter.enabled = False
        limiter.reset()
    assert statuses[:10] == [401] * 10
    assert statuses[10] == 429
