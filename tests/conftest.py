"""Pytest fixtures for testing"""

import pytest
from pathlib import Path
from typing import Generator, Iterator
from unittest.mock import AsyncMock, patch
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session
from tabunganku.api.main import create_app
from tabunganku.config import Settings
from tabunganku.domain.models import AuthUser, Student
from tabunganku.infrastructure.database.models import Base, StudentRecord
from tabunganku.infrastructure.database.repositories import to_student
from tabunganku.infrastructure.database.session import build_engine, build_session_factory, get_db


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Settings pointing at a throwaway SQLite file"""
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'test.db'}",
        auto_create_schema=False,
        auth_api_base="http://identity.test",
        session_secret="test-secret",
        log_level="WARNING",
    )


@pytest.fixture
def engine(test_settings: Settings) -> Iterator[Engine]:
    engine = build_engine(test_settings.database_url)
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def db(engine: Engine) -> Generator[Session, None, None]:
    """Create test database and session"""
    db = build_session_factory(engine)()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client(db: Session, test_settings: Settings) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app(test_settings)

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


@pytest.fixture
def operator() -> AuthUser:
    return AuthUser(uid="guru-1", email="guru@sekolah.sch.id", id_token="token-abc")


@pytest.fixture
def auth_client(client: TestClient, operator: AuthUser) -> TestClient:
    """Test client whose session cookie is signed in"""
    with patch(
        "tabunganku.infrastructure.clients.identity.IdentityClient.sign_in",
        new_callable=AsyncMock,
    ) as mock_sign_in:
        mock_sign_in.return_value = operator
        response = client.post(
            "/v1/auth/sign-in",
            json={"email": operator.email, "password": "rahasia"},
        )
    assert response.status_code == 200
    return client


def add_student(db: Session, nama: str, kelas: str, saldo: int = 0) -> Student:
    record = StudentRecord(nama=nama, kelas=kelas, saldo=saldo)
    db.add(record)
    db.commit()
    return to_student(record)


@pytest.fixture
def ahmad(db: Session) -> Student:
    """Ahmad, kelas 1A, saldo 10000"""
    return add_student(db, "Ahmad", "1A", 10000)


@pytest.fixture
def sample_students(db: Session) -> list[Student]:
    """Students inserted out of order to exercise sorting"""
    return [
        add_student(db, "Rina", "2A", 7500),
        add_student(db, "Budi", "1B", 0),
        add_student(db, "Ahmad", "1A", 10000),
        add_student(db, "Siti", "2A", 2500),
        add_student(db, "Agus", "1B", 5000),
    ]
