"""Integration tests for API endpoints"""

import pytest
import uuid
from unittest.mock import AsyncMock, patch
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session
from tabunganku.api.main import create_app
from tabunganku.config import Settings
from tabunganku.domain.exceptions import AuthUnavailable, InvalidCredentialsError
from tabunganku.domain.models import AuthUser, Student
from tabunganku.infrastructure.database.session import get_db
from tabunganku.infrastructure.database.models import StudentRecord, TransactionRecord


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_metrics_endpoint(client: TestClient):
    """Test Prometheus metrics endpoint"""
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "tabunganku_transaction_total" in response.text


def test_request_id_header(client: TestClient):
    response = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"

    assert client.get("/health").headers["X-Request-ID"]


def test_dashboard_redirects_when_signed_out(client: TestClient):
    response = client.get("/v1/dashboard", follow_redirects=False)

    assert response.status_code == 302
    assert response.headers["location"] == "/"


def test_api_requires_session(client: TestClient, ahmad: Student):
    assert client.get("/v1/students").status_code == 401
    assert client.post("/v1/students", json={"nama": "Siti", "kelas": "2B"}).status_code == 401
    response = client.post(
        f"/v1/students/{ahmad.id}/transactions",
        json={"type": "setor", "amount": 5000},
    )
    assert response.status_code == 401


def test_dashboard_lists_students_with_summary(auth_client: TestClient, sample_students: list[Student]):
    response = auth_client.get("/v1/dashboard")

    assert response.status_code == 200
    data = response.json()
    assert data["user"]["email"] == "guru@sekolah.sch.id"
    assert [s["nama"] for s in data["students"]] == ["Ahmad", "Agus", "Budi", "Rina", "Siti"]
    assert data["summary"] == {"total_students": 5, "total_saldo": 25000, "average_saldo": 5000.0}


def test_dashboard_empty(auth_client: TestClient):
    data = auth_client.get("/v1/dashboard").json()

    assert data["students"] == []
    assert data["summary"]["total_students"] == 0
    assert data["summary"]["average_saldo"] == 0


def test_session_endpoint(auth_client: TestClient):
    data = auth_client.get("/v1/auth/session").json()
    assert data["authenticated"] is True
    assert data["user"]["uid"] == "guru-1"


def test_kelas_options(client: TestClient):
    data = client.get("/v1/kelas").json()
    assert data["kelas"][0] == "1A"
    assert data["kelas"][-1] == "6B"
    assert len(data["kelas"]) == 12


def test_create_student_defaults_saldo(auth_client: TestClient, db: Session):
    """Siti, 2B, no initial saldo → 0"""
    response = auth_client.post("/v1/students", json={"nama": "Siti", "kelas": "2B"})

    assert response.status_code == 201
    data = response.json()
    assert data["saldo"] == 0
    assert data["kelas"] == "2B"
    assert db.query(StudentRecord).count() == 1


@pytest.mark.parametrize(
    "body",
    [
        {"nama": "", "kelas": "2B"},
        {"nama": "Siti", "kelas": ""},
        {"nama": "Siti", "kelas": "9Z"},
        {"nama": "Siti", "kelas": "2B", "saldo": -100},
    ],
)
def test_create_student_rejected(auth_client: TestClient, db: Session, body):
    response = auth_client.post("/v1/students", json=body)

    assert response.status_code == 422
    assert db.query(StudentRecord).count() == 0


def test_get_student(auth_client: TestClient, ahmad: Student):
    response = auth_client.get(f"/v1/students/{ahmad.id}")
    assert response.status_code == 200
    assert response.json()["saldo"] == 10000


def test_get_student_not_found(auth_client: TestClient):
    assert auth_client.get(f"/v1/students/{uuid.uuid4()}").status_code == 404
    assert auth_client.get("/v1/students/not-a-uuid").status_code == 400


def test_deposit(auth_client: TestClient, db: Session, ahmad: Student):
    """Ahmad 10000, setor 5000 → 15000"""
    response = auth_client.post(
        f"/v1/students/{ahmad.id}/transactions",
        json={"type": "setor", "amount": 5000, "keterangan": "uang saku"},
    )

    assert response.status_code == 201
    data = response.json()
    assert data["student"]["saldo"] == 15000
    assert data["transaction"]["type"] == "setor"
    assert data["transaction"]["saldo_before"] == 10000
    assert data["transaction"]["saldo_after"] == 15000
    assert data["transaction"]["keterangan"] == "uang saku"
    assert auth_client.get(f"/v1/students/{ahmad.id}").json()["saldo"] == 15000


def test_withdraw_more_than_saldo(auth_client: TestClient, db: Session, ahmad: Student):
    """Ahmad 10000, tarik 20000 → rejected, saldo unchanged"""
    response = auth_client.post(
        f"/v1/students/{ahmad.id}/transactions",
        json={"type": "tarik", "amount": 20000},
    )

    assert response.status_code == 422
    assert response.json()["detail"] == "Saldo tidak mencukupi"
    assert auth_client.get(f"/v1/students/{ahmad.id}").json()["saldo"] == 10000
    assert db.query(TransactionRecord).count() == 0


def test_withdraw_entire_saldo(auth_client: TestClient, ahmad: Student):
    """Ahmad 10000, tarik 10000 → 0"""
    response = auth_client.post(
        f"/v1/students/{ahmad.id}/transactions",
        json={"type": "tarik", "amount": 10000},
    )

    assert response.status_code == 201
    data = response.json()
    assert data["student"]["saldo"] == 0
    assert data["transaction"]["saldo_after"] == 0
    assert data["transaction"]["keterangan"] == "-"


@pytest.mark.parametrize("amount", [0, -1000])
def test_non_positive_amount_rejected(auth_client: TestClient, db: Session, ahmad: Student, amount):
    response = auth_client.post(
        f"/v1/students/{ahmad.id}/transactions",
        json={"type": "setor", "amount": amount},
    )

    assert response.status_code == 422
    assert response.json()["detail"] == "Jumlah harus lebih dari 0"
    assert db.query(TransactionRecord).count() == 0


def test_unknown_transaction_type(auth_client: TestClient, ahmad: Student):
    response = auth_client.post(
        f"/v1/students/{ahmad.id}/transactions",
        json={"type": "transfer", "amount": 1000},
    )
    assert response.status_code == 422


def test_stale_expected_saldo_conflicts(auth_client: TestClient, db: Session, ahmad: Student):
    """Two forms opened at saldo 10000; the second submit must not overwrite the first"""
    first = auth_client.post(
        f"/v1/students/{ahmad.id}/transactions",
        json={"type": "setor", "amount": 5000, "expected_saldo": 10000},
    )
    assert first.status_code == 201

    second = auth_client.post(
        f"/v1/students/{ahmad.id}/transactions",
        json={"type": "tarik", "amount": 10000, "expected_saldo": 10000},
    )

    assert second.status_code == 409
    assert auth_client.get(f"/v1/students/{ahmad.id}").json()["saldo"] == 15000
    assert db.query(TransactionRecord).count() == 1


@pytest.fixture
def last_write_wins_client(db: Session, test_settings: Settings, operator: AuthUser) -> TestClient:
    """Signed-in client for an app running without the saldo precondition"""
    app = create_app(test_settings.model_copy(update={"enforce_balance_precondition": False}))

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    client = TestClient(app)
    with patch(
        "tabunganku.infrastructure.clients.identity.IdentityClient.sign_in",
        new_callable=AsyncMock,
    ) as mock_sign_in:
        mock_sign_in.return_value = operator
        assert client.post("/v1/auth/sign-in", json={"email": operator.email, "password": "rahasia"}).status_code == 200
    return client


@pytest.mark.parametrize("client_fixture", ["auth_client", "last_write_wins_client"])
@pytest.mark.parametrize("transaction_type", ["setor", "tarik"])
def test_negative_expected_saldo_rejected(request, db: Session, ahmad: Student, client_fixture, transaction_type):
    """A negative expected_saldo must never reach the store, with or without the precondition"""
    api = request.getfixturevalue(client_fixture)

    response = api.post(
        f"/v1/students/{ahmad.id}/transactions",
        json={"type": transaction_type, "amount": 1, "expected_saldo": -50000},
    )

    assert response.status_code == 422
    assert api.get(f"/v1/students/{ahmad.id}").json()["saldo"] == 10000
    assert db.query(TransactionRecord).count() == 0


def test_stale_expected_saldo_overwrites_without_precondition(last_write_wins_client: TestClient, ahmad: Student):
    """Legacy mode applies the client's view as-is"""
    response = last_write_wins_client.post(
        f"/v1/students/{ahmad.id}/transactions",
        json={"type": "setor", "amount": 1000, "expected_saldo": 0},
    )

    assert response.status_code == 201
    assert last_write_wins_client.get(f"/v1/students/{ahmad.id}").json()["saldo"] == 1000


def test_transaction_for_missing_student(auth_client: TestClient):
    response = auth_client.post(
        f"/v1/students/{uuid.uuid4()}/transactions",
        json={"type": "setor", "amount": 1000},
    )
    assert response.status_code == 404


def test_preview(auth_client: TestClient, db: Session, ahmad: Student):
    response = auth_client.get(
        f"/v1/students/{ahmad.id}/transactions/preview",
        params={"type": "tarik", "amount": 2500},
    )

    assert response.status_code == 200
    assert response.json()["saldo_after"] == 7500
    assert db.query(TransactionRecord).count() == 0

    too_much = auth_client.get(
        f"/v1/students/{ahmad.id}/transactions/preview",
        params={"type": "tarik", "amount": 10001},
    )
    assert too_much.status_code == 422


def test_sign_in_invalid_credentials(client: TestClient):
    with patch(
        "tabunganku.infrastructure.clients.identity.IdentityClient.sign_in",
        new_callable=AsyncMock,
    ) as mock_sign_in:
        mock_sign_in.side_effect = InvalidCredentialsError("Email atau kata sandi salah")
        response = client.post("/v1/auth/sign-in", json={"email": "guru@sekolah.sch.id", "password": "salah"})

    assert response.status_code == 401
    assert client.get("/v1/auth/session").json()["authenticated"] is False


def test_sign_in_provider_down(client: TestClient):
    with patch(
        "tabunganku.infrastructure.clients.identity.IdentityClient.sign_in",
        new_callable=AsyncMock,
    ) as mock_sign_in:
        mock_sign_in.side_effect = AuthUnavailable("timeout")
        response = client.post("/v1/auth/sign-in", json={"email": "guru@sekolah.sch.id", "password": "rahasia"})

    assert response.status_code == 503


@patch("tabunganku.infrastructure.clients.identity.IdentityClient.sign_out", new_callable=AsyncMock)
def test_sign_out(mock_sign_out: AsyncMock, auth_client: TestClient):
    response = auth_client.post("/v1/auth/sign-out")

    assert response.status_code == 204
    mock_sign_out.assert_awaited_once_with("token-abc")
    assert auth_client.get("/v1/dashboard", follow_redirects=False).status_code == 302


def test_sign_out_without_session(client: TestClient):
    assert client.post("/v1/auth/sign-out").status_code == 503
