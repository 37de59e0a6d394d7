import os
import sys
import pytest

CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.dirname(CURRENT_DIR)
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

# Настройки до импорта приложения: без Redis-кэша и без rate limiting
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("CACHE_ENABLED", "false")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from lms_backend.config import settings
from lms_backend.domain.entities import Role
from lms_backend.infrastructure import security
from lms_backend.infrastructure.db import Base, get_db
from lms_backend.infrastructure.repositories import UserRepository
from lms_backend.infrastructure.security import PasswordHasher, TokenService
from lms_backend.infrastructure.storage import LocalFileStorage
from lms_backend.interfaces.http.dependencies import get_storage
from lms_backend.main import app

# bcrypt с минимальной стоимостью, чтобы тесты не тормозили
security.pwd.update(bcrypt_sha256__default_rounds=4)

# Тестовая БД в памяти
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"
test_engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture
def session():
    """Чистая БД на каждый тест"""
    Base.metadata.create_all(bind=test_engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def upload_dir(tmp_path):
    return tmp_path / "uploads"


@pytest.fixture
def client(session, upload_dir):
    """Фикстура для тестового клиента"""
    def override_get_db():
        yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: LocalFileStorage(upload_dir)
    yield TestClient(app)
    # Очищаем после теста
    app.dependency_overrides.clear()


@pytest.fixture
def create_user(session):
    """Создаёт пользователя с нужной ролью напрямую через репозиторий"""
    def _create(username="student1", role=Role.STUDENT, password="password123", email=None):
        repo = UserRepository(session)
        return repo.create(username, email or f"{username}@example.com", PasswordHasher().hash(password), role)
    return _create


@pytest.fixture
def auth_headers():
    tokens = TokenService.from_settings(settings)

    def _headers(user):
        return {"Authorization": f"Bearer {tokens.issue(user.id, user.role)}"}
    return _headers
