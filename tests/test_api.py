import httpx
import pytest
from fastapi.testclient import TestClient

from pestops.services.notifications import email as email_service
from pestops.services.routing import service as routing_service

ADMIN = {"Authorization": "Bearer admin-token"}
OPERATOR = {"Authorization": "Bearer operator-token"}

ADMIN_DATA_ENDPOINTS = [
    ("POST", "/api/reports/operator-performance", {"start_date": "2024-03-01", "end_date": "2024-03-31"}),
    ("GET", "/api/reports/receivables", None),
    ("GET", "/api/reports/revenue?year=2024&month=3", None),
    ("GET", "/api/reports/runs", None),
    ("GET", "/api/reports/exports", None),
    ("GET", "/api/reports/exports/run-1/summary.json", None),
    ("GET", "/api/operators/locations", None),
    ("GET", "/api/operators/mileage/weekly", None),
    ("GET", "/api/operators/op-1/distances?start_date=2024-03-01&end_date=2024-03-31", None),
    ("POST", "/api/routes/optimize", {"operator_id": "op-1", "day": "2024-03-04"}),
]


@pytest.fixture
def auth_users(fake_supabase):
    fake_supabase.auth.add_token("admin-token", "admin-1", "admin@example.com", role="admin")
    fake_supabase.auth.add_token("operator-token", "op-1", "operator@example.com", role="operator")
    return fake_supabase


def test_health(api_client: TestClient):
    response = api_client.get("/api/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_database_health(api_client: TestClient, fake_supabase):
    assert api_client.get("/api/health/database").json()["connected"] is True

    fake_supabase.failing_tables.add("operators")
    assert api_client.get("/api/health/database").json()["connected"] is False


def test_unknown_route_returns_error_body(api_client: TestClient):
    response = api_client.get("/api/nope")

    assert response.status_code == 404
    assert response.json() == {"error": "Not Found"}


def test_validation_failure_returns_error_body(api_client: TestClient, auth_users):
    response = api_client.post("/api/reports/operator-performance", headers=ADMIN, json={"start_date": "March"})

    assert response.status_code == 422
    body = response.json()
    assert list(body) == ["error"]
    assert "start_date" in body["error"]
    assert "end_date" in body["error"]


def test_operator_performance_endpoint(api_client: TestClient, auth_users, pricing_dataset):
    response = api_client.post(
        "/api/reports/operator-performance",
        headers=ADMIN,
        json={"start_date": "2024-03-01", "end_date": "2024-03-31", "persist": True, "run_label": "March"},
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["summary"]["total_revenue"] == pytest.approx(1100)
    assert payload["top_performers"][0]["operator_name"] == "Ayse"

    runs = api_client.get("/api/reports/runs", headers=ADMIN).json()
    assert runs[0]["id"] == payload["metadata"]["output_dir"]
    assert runs[0]["runLabel"] == "March"

    download = api_client.get(f"/api/reports/exports/{runs[0]['id']}/performance.csv", headers=ADMIN)
    assert download.status_code == 200
    assert download.text.startswith("operator_id,operator_name")


def test_invalid_range_returns_error_body(api_client: TestClient, auth_users, pricing_dataset):
    response = api_client.post(
        "/api/reports/operator-performance",
        headers=ADMIN,
        json={"start_date": "2024-04-01", "end_date": "2024-03-01"},
    )

    assert response.status_code == 400
    assert "start_date" in response.json()["error"]


def test_backend_failure_returns_500(api_client: TestClient, auth_users, pricing_dataset):
    pricing_dataset.failing_tables.add("visits")

    response = api_client.post(
        "/api/reports/operator-performance",
        headers=ADMIN,
        json={"start_date": "2024-03-01", "end_date": "2024-03-31"},
    )

    assert response.status_code == 500
    assert "visits" in response.json()["error"]


def test_malformed_stored_timestamp_is_a_server_error(api_client: TestClient, auth_users, pricing_dataset):
    pricing_dataset.tables["visits"][0]["visit_date"] = "2024-03-04Tmorning"

    response = api_client.post(
        "/api/reports/operator-performance",
        headers=ADMIN,
        json={"start_date": "2024-03-01", "end_date": "2024-03-31"},
    )

    assert response.status_code == 500
    assert "Unable to parse timestamp" in response.json()["error"]


def test_unconfigured_backend_returns_503(api_client: TestClient, auth_users, monkeypatch):
    from pestops.data import repository

    monkeypatch.setattr(repository, "get_supabase_client", lambda: None)

    response = api_client.get("/api/reports/receivables", headers=ADMIN)

    assert response.status_code == 503


def test_missing_export_returns_404(api_client: TestClient, auth_users):
    response = api_client.get("/api/reports/exports/nope/summary.json", headers=ADMIN)

    assert response.status_code == 404
    assert "error" in response.json()


@pytest.mark.parametrize("method,url,body", ADMIN_DATA_ENDPOINTS)
def test_data_endpoints_require_bearer_token(api_client: TestClient, auth_users, method, url, body):
    response = api_client.request(method, url, json=body)

    assert response.status_code == 401
    assert "error" in response.json()


@pytest.mark.parametrize("method,url,body", ADMIN_DATA_ENDPOINTS)
def test_data_endpoints_require_admin_role(api_client: TestClient, auth_users, method, url, body):
    response = api_client.request(method, url, json=body, headers=OPERATOR)

    assert response.status_code == 403
    assert response.json()["error"].startswith("Unauthorized")
    assert auth_users.executed == []


def test_places_need_a_signed_in_caller(api_client: TestClient, auth_users, monkeypatch):
    monkeypatch.setattr(routing_service, "search_places", lambda query: [])

    assert api_client.get("/api/places/search", params={"query": "otel"}).status_code == 401
    assert api_client.get("/api/places/p1").status_code == 401
    assert api_client.get("/api/places/search", params={"query": "otel"}, headers={"Authorization": "Bearer forged"}).status_code == 401
    assert api_client.get("/api/places/search", params={"query": "otel"}, headers=OPERATOR).status_code == 200


def test_admin_endpoints_require_bearer_token(api_client: TestClient, auth_users):
    assert api_client.get("/api/admin/users").status_code == 401
    assert api_client.get("/api/admin/users", headers={"Authorization": "Bearer forged"}).status_code == 401
    assert api_client.get("/api/admin/users", headers={"Authorization": "Basic abc"}).status_code == 401


def test_admin_endpoints_require_admin_role(api_client: TestClient, auth_users):
    response = api_client.get("/api/admin/users", headers=OPERATOR)

    assert response.status_code == 403
    assert response.json()["error"].startswith("Unauthorized")


def test_admin_role_from_user_metadata(api_client: TestClient, fake_supabase):
    fake_supabase.auth.add_token("legacy", "admin-2", "legacy@example.com", role="admin", in_app_metadata=False)

    assert api_client.get("/api/admin/users", headers={"Authorization": "Bearer legacy"}).status_code == 200


def test_list_and_get_users(api_client: TestClient, auth_users):
    users = api_client.get("/api/admin/users", headers=ADMIN).json()
    assert {user["email"] for user in users} == {"admin@example.com", "operator@example.com"}

    assert api_client.get("/api/admin/users/op-1", headers=ADMIN).json() == {"id": "op-1", "email": "operator@example.com"}
    assert api_client.get("/api/admin/users/ghost", headers=ADMIN).status_code == 404


def test_create_operator(api_client: TestClient, auth_users):
    response = api_client.post(
        "/api/admin/operators",
        headers=ADMIN,
        json={"name": "Cem", "email": "cem@example.com", "password": "secret123", "phone": "555"},
    )

    assert response.status_code == 201
    created = response.json()
    row = auth_users.tables["operators"][0]
    assert row["id"] == row["auth_id"] == created["id"]
    assert auth_users.auth.admin.users[created["id"]].user_metadata == {"name": "Cem", "role": "operator"}


def test_create_operator_rolls_back_auth_user(api_client: TestClient, auth_users):
    auth_users.failing_tables.add("operators")

    response = api_client.post(
        "/api/admin/operators",
        headers=ADMIN,
        json={"name": "Cem", "email": "cem@example.com", "password": "secret123"},
    )

    assert response.status_code == 500
    assert len(auth_users.auth.admin.deleted) == 1
    assert auth_users.auth.admin.deleted[0] not in auth_users.auth.admin.users


def test_create_operator_validates_fields(api_client: TestClient, auth_users):
    response = api_client.post(
        "/api/admin/operators",
        headers=ADMIN,
        json={"name": " ", "email": "cem@example.com", "password": "secret123"},
    )

    assert response.status_code == 400
    assert auth_users.auth.admin.users.keys() == {"admin-1", "op-1"}


def test_download_private_file(api_client: TestClient, auth_users):
    auth_users.storage.buckets["documents"] = {"customers/c1/contract.pdf": b"%PDF-1.4"}

    response = api_client.get("/api/admin/files/customers/c1/contract.pdf", headers=OPERATOR)

    assert response.status_code == 200
    assert response.content == b"%PDF-1.4"
    assert api_client.get("/api/admin/files/customers/c1/contract.pdf").status_code == 401


def test_receipt_check_is_admin_only(api_client: TestClient, auth_users):
    auth_users.tables["collection_receipts"] = [{"id": "r1", "customer_id": "c1", "amount": 5}]
    url = "/api/reports/receivables/receipts/r1/check"

    assert api_client.post(url, json={"checked": True}, headers=OPERATOR).status_code == 403
    assert api_client.post(url, json={"checked": True}, headers=ADMIN).status_code == 200
    assert auth_users.tables["collection_receipts"][0]["is_checked_by_admin"] is True
    missing = api_client.post("/api/reports/receivables/receipts/r9/check", json={"checked": True}, headers=ADMIN)
    assert missing.status_code == 404


def test_send_email_logs_success(api_client: TestClient, auth_users, monkeypatch):
    sent = {}

    def handler(request: httpx.Request) -> httpx.Response:
        sent["auth"] = request.headers["Authorization"]
        sent["body"] = request.read()
        return httpx.Response(200, json={"id": "email-1"})

    monkeypatch.setattr(email_service.settings, "resend_api_key", "re_test")
    monkeypatch.setattr(
        email_service.ResendEmailClient,
        "_get_client",
        lambda self: httpx.Client(transport=httpx.MockTransport(handler)),
    )

    response = api_client.post(
        "/api/notifications/email",
        headers=OPERATOR,
        json={"to": "customer@example.com", "subject": "Visit plan", "html": "<p>Tuesday</p>"},
    )

    assert response.status_code == 200
    assert response.json() == {"success": True, "id": "email-1"}
    assert sent["auth"] == "Bearer re_test"
    assert auth_users.tables["email_logs"][0]["status"] == "success"


def test_send_email_logs_failure(api_client: TestClient, auth_users, monkeypatch):
    monkeypatch.setattr(email_service.settings, "resend_api_key", "re_test")
    monkeypatch.setattr(
        email_service.ResendEmailClient,
        "_get_client",
        lambda self: httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(422, text="bad sender"))),
    )

    response = api_client.post(
        "/api/notifications/email",
        headers=OPERATOR,
        json={"to": "customer@example.com", "subject": "Visit plan", "html": "<p>Tuesday</p>"},
    )

    assert response.status_code == 500
    log = auth_users.tables["email_logs"][0]
    assert log["status"] == "failed"
    assert "bad sender" in log["error_message"]


def test_send_email_requires_fields(api_client: TestClient, auth_users):
    response = api_client.post(
        "/api/notifications/email",
        headers=OPERATOR,
        json={"to": "customer@example.com", "subject": "", "html": "<p>x</p>"},
    )

    assert response.status_code == 400
    assert "email_logs" not in auth_users.tables


def test_send_email_succeeds_when_log_write_fails(api_client: TestClient, auth_users, monkeypatch):
    auth_users.failing_tables.add("email_logs")
    monkeypatch.setattr(email_service.settings, "resend_api_key", "re_test")
    monkeypatch.setattr(
        email_service.ResendEmailClient,
        "_get_client",
        lambda self: httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(200, json={"id": "email-2"}))),
    )

    response = api_client.post(
        "/api/notifications/email",
        headers=OPERATOR,
        json={"to": "customer@example.com", "subject": "Visit plan", "html": "<p>Tuesday</p>"},
    )

    assert response.status_code == 200
    assert response.json() == {"success": True, "id": "email-2"}
    assert "email_logs" in auth_users.executed


def test_send_failure_is_reported_when_log_write_fails(api_client: TestClient, auth_users, monkeypatch):
    auth_users.failing_tables.add("email_logs")
    monkeypatch.setattr(email_service.settings, "resend_api_key", "re_test")
    monkeypatch.setattr(
        email_service.ResendEmailClient,
        "_get_client",
        lambda self: httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(422, text="bad sender"))),
    )

    response = api_client.post(
        "/api/notifications/email",
        headers=OPERATOR,
        json={"to": "customer@example.com", "subject": "Visit plan", "html": "<p>Tuesday</p>"},
    )

    assert response.status_code == 500
    assert "bad sender" in response.json()["error"]
    assert "email_logs" not in response.json()["error"]


def test_create_operator_reports_insert_error_when_rollback_fails(api_client: TestClient, auth_users, monkeypatch):
    auth_users.failing_tables.add("operators")

    def refuse_delete(user_id):
        raise RuntimeError("auth admin unavailable")

    monkeypatch.setattr(auth_users.auth.admin, "delete_user", refuse_delete)

    response = api_client.post(
        "/api/admin/operators",
        headers=ADMIN,
        json={"name": "Cem", "email": "cem@example.com", "password": "secret123"},
    )

    assert response.status_code == 500
    error = response.json()["error"]
    assert "operators" in error
    assert "auth admin unavailable" not in error


def test_operator_submits_own_weekly_mileage(api_client: TestClient, auth_users):
    auth_users.tables.update({"operators": [{"id": "op-1", "name": "Ayse"}], "vehicles": []})

    created = api_client.post("/api/operators/mileage/weekly", headers=OPERATOR, json={"start_km": 100, "end_km": 180})
    rejected = api_client.post("/api/operators/mileage/weekly", headers=OPERATOR, json={"start_km": 180, "end_km": 100})
    listed = api_client.get("/api/operators/mileage/weekly", headers=ADMIN, params={"weeks": 4})

    assert created.status_code == 201
    assert created.json()["operator_id"] == "op-1"
    assert created.json()["total_km"] == pytest.approx(80)
    assert rejected.status_code == 400
    assert listed.json()[0]["operator_name"] == "Ayse"


def test_weekly_mileage_for_another_operator_is_admin_only(api_client: TestClient, auth_users):
    auth_users.tables.update({"operators": [{"id": "op-1", "name": "Ayse"}, {"id": "op-2", "name": "Burak"}]})
    body = {"operator_id": "op-2", "start_km": 100, "end_km": 150}

    assert api_client.post("/api/operators/mileage/weekly", json=body).status_code == 401
    refused = api_client.post("/api/operators/mileage/weekly", headers=OPERATOR, json=body)
    assert refused.status_code == 403
    assert "operator_weekly_km" not in auth_users.tables

    accepted = api_client.post("/api/operators/mileage/weekly", headers=ADMIN, json=body)
    assert accepted.status_code == 201
    assert auth_users.tables["operator_weekly_km"][0]["operator_id"] == "op-2"
