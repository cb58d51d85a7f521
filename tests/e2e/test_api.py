# pylint: disable=redefined-outer-name
"""FastAPI 로 구현된 엔드포인트 테스트입니다."""
import pytest
from fastapi.testclient import TestClient

from visitorhub.api import app, init_app
from visitorhub.core import TransactionClosedError
from visitorhub.services import VisitorService
from tests.e2e import PASSWORD, auth_headers, create_tenant, me, sign_up


@pytest.fixture
def client(get_session, config):
    init_app(config)
    yield TestClient(app)


@pytest.fixture
def admin(client):
    return sign_up(client, "admin@example.com")


@pytest.fixture
def tenant_id(client, admin):
    return create_tenant(client, admin)


def visitors_url(tenant_id: str) -> str:
    return f"/api/tenant/{tenant_id}/visitor"


def test_sign_up_and_current_user(client):
    headers = sign_up(client, "Ann@Example.com")

    user = me(client, headers)

    assert user["email"] == "ann@example.com"
    assert user["first_name"] == "ann"
    assert user["tenants"] == []
    assert "password" not in user


def test_sign_up_twice(client):
    sign_up(client, "ann@example.com")
    r = client.post(
        "/api/auth/sign-up", json={"email": "ann@example.com", "password": PASSWORD}
    )
    assert r.status_code == 400
    assert r.json() == {"message": "Email is already in use"}


def test_sign_up_with_short_password(client):
    r = client.post("/api/auth/sign-up", json={"email": "ann@example.com", "password": "short"})
    assert r.status_code == 422


def test_sign_in(client):
    sign_up(client, "ann@example.com")

    r = client.post("/api/auth/sign-in", json={"email": "ann@example.com", "password": PASSWORD})
    assert r.status_code == 200
    assert me(client, auth_headers(r.json()["token"]))["email"] == "ann@example.com"

    r = client.post("/api/auth/sign-in", json={"email": "ann@example.com", "password": "nope"})
    assert r.status_code == 400
    assert r.json() == {"message": "Sorry, we don't recognize your credentials"}


def test_requests_without_valid_token(client, tenant_id):
    r = client.get("/api/auth/me")
    assert r.status_code == 401
    assert r.json() == {"message": "Your session has expired, please sign in again"}

    r = client.get(visitors_url(tenant_id), headers=auth_headers("garbage"))
    assert r.status_code == 401


def test_messages_fall_back_to_english(client):
    r = client.get("/api/auth/me", headers={"Accept-Language": "pt-BR,pt;q=0.9"})
    assert r.status_code == 401
    assert r.json() == {"message": "Your session has expired, please sign in again"}


def test_create_and_read_tenant(client, admin, tenant_id):
    r = client.get(f"/api/tenant/{tenant_id}", headers=admin)
    assert r.status_code == 200
    assert r.json()["name"] == "Lobby"
    assert r.json()["plan"] == "free"

    [membership] = me(client, admin)["tenants"]
    assert membership["tenant_id"] == tenant_id
    assert membership["roles"] == ["admin"]


def test_tenant_url_must_be_unique(client, admin):
    create_tenant(client, admin, url="lobby")
    r = client.post("/api/tenant", json={"name": "Copy", "url": "lobby"}, headers=admin)
    assert r.status_code == 400
    assert r.json() == {"message": "This workspace URL is already in use."}


def test_update_tenant(client, admin, tenant_id):
    r = client.put(f"/api/tenant/{tenant_id}", json={"name": "Front Desk"}, headers=admin)
    assert r.status_code == 200
    assert r.json()["name"] == "Front Desk"

    r = client.put(f"/api/tenant/{tenant_id}", json={"plan": "gold"}, headers=admin)
    assert r.status_code == 400
    assert r.json() == {"message": "gold is not a valid plan."}


def test_unknown_tenant_and_non_member(client, tenant_id):
    stranger = sign_up(client)

    assert client.get("/api/tenant/missing", headers=stranger).status_code == 404
    r = client.get(f"/api/tenant/{tenant_id}", headers=stranger)
    assert r.status_code == 403
    assert r.json() == {"message": "Forbidden"}
    assert client.get(visitors_url(tenant_id), headers=stranger).status_code == 403


def test_visitor_crud(client, admin, tenant_id):
    url = visitors_url(tenant_id)

    r = client.post(url, json={"first_name": "Ann", "email": "Ann@Example.com"}, headers=admin)
    assert r.status_code == 201, r.text
    visitor = r.json()
    assert visitor["email"] == "ann@example.com"
    assert visitor["tenant_id"] == tenant_id
    assert visitor["created_by_id"] == me(client, admin)["id"]

    r = client.get(f"{url}/{visitor['id']}", headers=admin)
    assert r.status_code == 200
    assert r.json()["first_name"] == "Ann"

    r = client.put(
        f"{url}/{visitor['id']}", json={"first_name": "Ann", "last_name": "Lee"}, headers=admin
    )
    assert r.status_code == 200
    assert r.json()["last_name"] == "Lee"
    assert r.json()["email"] == "ann@example.com"

    r = client.delete(url, params={"ids": [visitor["id"]]}, headers=admin)
    assert r.status_code == 204

    r = client.get(f"{url}/{visitor['id']}", headers=admin)
    assert r.status_code == 404
    assert r.json() == {"message": "Not Found"}


def test_visitor_requires_first_name(client, admin, tenant_id):
    r = client.post(visitors_url(tenant_id), json={"email": "a@example.com"}, headers=admin)
    assert r.status_code == 422


def test_duplicate_visitor_email(client, admin, tenant_id):
    url = visitors_url(tenant_id)
    assert client.post(url, json={"first_name": "Ann", "email": "ann@example.com"}, headers=admin).status_code == 201

    r = client.post(url, json={"first_name": "Bob", "email": "ANN@example.com"}, headers=admin)

    assert r.status_code == 400
    assert r.json() == {"message": "Visitor with this email already exists"}


def test_update_and_delete_missing_visitor(client, admin, tenant_id):
    url = visitors_url(tenant_id)
    r = client.put(f"{url}/missing", json={"first_name": "Ann"}, headers=admin)
    assert r.status_code == 404

    r = client.delete(url, params={"ids": ["missing"]}, headers=admin)
    assert r.status_code == 404


def test_records_are_isolated_between_tenants(client, admin, tenant_id):
    other_admin = sign_up(client)
    other_tenant_id = create_tenant(client, other_admin)

    r = client.post(visitors_url(tenant_id), json={"first_name": "Ann"}, headers=admin)
    visitor_id = r.json()["id"]

    r = client.get(f"{visitors_url(other_tenant_id)}/{visitor_id}", headers=other_admin)
    assert r.status_code == 404
    r = client.get(visitors_url(other_tenant_id), headers=other_admin)
    assert r.json() == {"rows": [], "count": 0}


def test_import(client, admin, tenant_id):
    url = visitors_url(tenant_id) + "/import"
    data = {"data": {"first_name": "Ann"}, "import_hash": "row-1"}

    r = client.post(url, json=data, headers=admin)
    assert r.status_code == 201
    assert r.json()["import_hash"] == "row-1"

    r = client.post(url, json=data, headers=admin)
    assert r.status_code == 400
    assert r.json() == {"message": "Data has already been imported"}

    r = client.post(url, json={"data": {"first_name": "Bob"}}, headers=admin)
    assert r.status_code == 400
    assert r.json() == {"message": "Import hash is required"}


def test_list_filter_order_and_paging(client, admin, tenant_id):
    url = visitors_url(tenant_id)
    for name in ["Alice", "Bob", "Carol", "Bobby"]:
        client.post(url, json={"first_name": name}, headers=admin)

    r = client.get(url, params={"first_name": "bob", "order_by": "first_name_ASC"}, headers=admin)
    assert r.status_code == 200
    assert r.json()["count"] == 2
    assert [v["first_name"] for v in r.json()["rows"]] == ["Bob", "Bobby"]

    r = client.get(
        url, params={"order_by": "first_name_DESC", "limit": 2, "offset": 1}, headers=admin
    )
    assert r.json()["count"] == 4
    assert [v["first_name"] for v in r.json()["rows"]] == ["Bobby", "Bob"]


def test_autocomplete(client, admin, tenant_id):
    url = visitors_url(tenant_id)
    ann = client.post(url, json={"first_name": "Ann", "last_name": "Lee"}, headers=admin).json()
    client.post(url, json={"first_name": "Bob"}, headers=admin)

    r = client.get(url + "/autocomplete", params={"query": "lee"}, headers=admin)

    assert r.status_code == 200
    assert r.json() == [{"id": ann["id"], "label": "Ann Lee"}]


def test_meeting_range_filter_and_references(client, admin, tenant_id):
    visitor = client.post(visitors_url(tenant_id), json={"first_name": "Ann"}, headers=admin).json()
    url = f"/api/tenant/{tenant_id}/meeting"
    for day in (1, 10, 20):
        r = client.post(
            url,
            json={
                "purpose_of_visit": f"day {day}",
                "time_of_visit": f"2021-03-{day:02d}T09:00:00+00:00",
                "visitor_id": visitor["id"],
                "host_id": "not-a-host",
            },
            headers=admin,
        )
        assert r.status_code == 201
        assert r.json()["visitor_id"] == visitor["id"]
        assert r.json()["host_id"] is None

    r = client.get(
        url,
        params={"time_of_visit_range": "2021-03-05T00:00:00,2021-03-15T00:00:00"},
        headers=admin,
    )
    assert r.json()["count"] == 1
    assert r.json()["rows"][0]["purpose_of_visit"] == "day 10"


def test_cdc_questionnaire(client, admin, tenant_id):
    url = f"/api/tenant/{tenant_id}/cdc-questionnaire"

    r = client.post(url, json={"cough": True}, headers=admin)
    assert r.status_code == 201
    assert r.json()["cough"] is True
    assert r.json()["has_symptoms"] is True

    r = client.post(url, json={}, headers=admin)
    assert r.json()["has_symptoms"] is False

    r = client.get(url, params={"cough": "true"}, headers=admin)
    assert r.json()["count"] == 1


def test_invited_visitor_permissions(client, admin, tenant_id):
    r = client.post(
        f"/api/tenant/{tenant_id}/user",
        json={"emails": ["guest@example.com"], "roles": ["visitor"]},
        headers=admin,
    )
    assert r.status_code == 201
    [invitation] = r.json()
    assert invitation["status"] == "invited"

    guest = sign_up(client, "guest@example.com", invitation_token=invitation["invitation_token"])
    [membership] = me(client, guest)["tenants"]
    assert membership["status"] == "active"

    url = visitors_url(tenant_id)
    r = client.post(url, json={"first_name": "Guest"}, headers=guest)
    assert r.status_code == 201
    assert client.get(url, headers=guest).status_code == 403

    r = client.delete(url, params={"ids": [r.json()["id"]]}, headers=guest)
    assert r.status_code == 403
    assert r.json() == {"message": "Forbidden"}

    r = client.put(f"/api/tenant/{tenant_id}", json={"name": "Mine"}, headers=guest)
    assert r.status_code == 403


def test_accept_invitation_endpoint(client, admin, tenant_id):
    [invitation] = client.post(
        f"/api/tenant/{tenant_id}/user",
        json={"emails": ["host@example.com"], "roles": ["host"]},
        headers=admin,
    ).json()
    user = sign_up(client, "someone@example.com")

    token = invitation["invitation_token"]
    r = client.put(f"/api/tenant/invitation/{token}/accept", headers=user)
    assert r.status_code == 200
    assert r.json()["roles"] == ["host"]

    r = client.put(f"/api/tenant/invitation/{token}/accept", headers=user)
    assert r.status_code == 400


def test_update_roles(client, admin, tenant_id):
    admin_id = me(client, admin)["id"]
    r = client.put(f"/api/tenant/{tenant_id}/user/{admin_id}", json={"roles": ["host"]}, headers=admin)
    assert r.status_code == 400
    assert r.json() == {"message": "You can't revoke your own admin permission."}

    r = client.put(f"/api/tenant/{tenant_id}/user/{admin_id}", json={"roles": ["owner"]}, headers=admin)
    assert r.status_code == 400
    assert r.json() == {"message": "owner is not a valid role."}


def test_change_password(client):
    headers = sign_up(client, "ann@example.com")
    r = client.put(
        "/api/auth/change-password",
        json={"old_password": PASSWORD, "new_password": "changed-password"},
        headers=headers,
    )
    assert r.status_code == 200

    r = client.post(
        "/api/auth/sign-in", json={"email": "ann@example.com", "password": "changed-password"}
    )
    assert r.status_code == 200


def test_password_reset_email(client):
    sign_up(client, "ann@example.com")

    r = client.post("/api/auth/send-password-reset-email", json={"email": "ann@example.com"})
    assert r.status_code == 202
    assert r.json() == {}

    r = client.post("/api/auth/send-password-reset-email", json={"email": "x@example.com"})
    assert r.status_code == 400
    assert r.json() == {"message": "Email not recognized"}

    r = client.put("/api/auth/password-reset", json={"token": "bogus", "password": "whatever-pw"})
    assert r.status_code == 400


def test_email_verification(client):
    headers = sign_up(client, "ann@example.com")

    r = client.post("/api/auth/send-email-address-verification-email", headers=headers)
    assert r.status_code == 200

    r = client.put("/api/auth/verify-email", json={"token": r.json()["token"]}, headers=headers)
    assert r.status_code == 200
    assert r.json()["email_verified"] is True
    assert me(client, headers)["email_verified"] is True


def test_internal_errors_use_generic_message(client, admin, tenant_id, monkeypatch):
    def closed(self, id):
        raise TransactionClosedError()

    monkeypatch.setattr(VisitorService, "find_by_id", closed)

    r = client.get(f"{visitors_url(tenant_id)}/any-id", headers=admin)

    assert r.status_code == 500
    assert r.json() == {"message": "Ops, something went wrong"}
