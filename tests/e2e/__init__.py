"""E2E 테스트 모듈입니다."""
from typing import Optional

from fastapi.testclient import TestClient

from tests import random_email

PASSWORD = "s3cret-password"


def auth_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def sign_up(client: TestClient, email: str = "", **kwargs) -> dict[str, str]:
    """서비스 엔드포인트 `POST /api/auth/sign-up` 으로 가입하고 인증 헤더를 리턴합니다."""
    data = {"email": email or random_email(), "password": PASSWORD, **kwargs}
    r = client.post("/api/auth/sign-up", json=data)
    assert r.status_code == 200, r.text
    return auth_headers(r.json()["token"])


def create_tenant(client: TestClient, headers: dict[str, str], url: Optional[str] = None) -> str:
    r = client.post("/api/tenant", json={"name": "Lobby", "url": url}, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()["id"]


def me(client: TestClient, headers: dict[str, str]) -> dict:
    r = client.get("/api/auth/me", headers=headers)
    assert r.status_code == 200, r.text
    return r.json()
