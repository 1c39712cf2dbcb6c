"""
게이트웨이 인증 헤더 / 학년도 설정 / 알림 클라이언트 테스트

Run with: pytest tests/test_security_and_config.py -v
"""

from datetime import date

import httpx
import pytest

from config.settings import settings
from routers.config import get_current_year_semester
from services.notification_client import NotificationClient
from tests.conftest import ADMIN_ID, auth_headers


# =============================================================================
# get_auth_context
# =============================================================================

@pytest.mark.parametrize("headers", [
    {"Authorization": "Bearer wrong-token", "X-User-Id": "1", "X-User-Role": "admin"},
    {"Authorization": f"Basic {settings.GATEWAY_TOKEN}", "X-User-Id": "1", "X-User-Role": "admin"},
    {"Authorization": settings.GATEWAY_TOKEN, "X-User-Id": "1", "X-User-Role": "admin"},
    {"Authorization": f"Bearer {settings.GATEWAY_TOKEN}", "X-User-Role": "admin"},
    {"Authorization": f"Bearer {settings.GATEWAY_TOKEN}", "X-User-Id": "1", "X-User-Role": "principal"},
])
def test_rejected_gateway_headers(client, headers):
    resp = client.get("/v1/grade-improvement/periods", headers=headers)
    assert resp.status_code == 401
    body = resp.json()
    assert body["success"] is False
    assert body["error"]["code"] == "UNAUTHORIZED"
    assert resp.headers["WWW-Authenticate"] == "Bearer"


def test_role_header_is_case_insensitive(client):
    headers = auth_headers(ADMIN_ID, "ADMIN")
    resp = client.get("/v1/grade-improvement/periods", headers=headers)
    assert resp.status_code == 200


def test_latency_header(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert "X-Latency-Ms" in resp.headers


# =============================================================================
# 학년도 / 학기
# =============================================================================

@pytest.mark.parametrize("today,expected", [
    (date(2025, 9, 5), (2025, 1)),
    (date(2025, 12, 31), (2025, 1)),
    (date(2026, 1, 15), (2025, 1)),
    (date(2026, 2, 1), (2025, 2)),
    (date(2026, 8, 20), (2025, 2)),
])
def test_current_year_semester(today, expected):
    assert get_current_year_semester(today) == expected


def test_academic_config_endpoint(client):
    resp = client.get("/v1/config/academic")
    data = resp.json()["data"]
    assert data["academic_year"] == f"{data['start_year']}-{data['start_year'] + 1}"
    assert data["semester"] in (1, 2)


# =============================================================================
# NotificationClient
# =============================================================================

def test_notification_skipped_without_base_url():
    client = NotificationClient(base_url="")
    assert client.enabled is False
    assert client.grade_improvement_resolved({"request_id": 1}) is None


def test_notification_posts_payload(monkeypatch):
    sent = {}

    def fake_post(self, path, json):
        sent["url"] = f"{self.base}{path}"
        sent["json"] = json
        sent["headers"] = self.headers

    monkeypatch.setattr(NotificationClient, "post", fake_post)
    client = NotificationClient(base_url="http://notify.local/", token="secret")
    client.grade_improvement_resolved({"request_id": 7, "status": "approved"})

    assert sent["url"] == "http://notify.local/notifications/grade-improvement"
    assert sent["json"]["request_id"] == 7
    assert sent["headers"] == {"Authorization": "Bearer secret"}


@pytest.mark.parametrize("reply,expected", [
    (httpx.Response(200, json={"id": 3}), {"id": 3}),
    (httpx.Response(200, text="OK"), None),
    (httpx.Response(204), None),
])
def test_notification_reply_body(reply, expected):
    client = NotificationClient(base_url="http://notify.local", transport=httpx.MockTransport(lambda request: reply))
    assert client.grade_improvement_resolved({"request_id": 7}) == expected


def test_notification_error_status_raises():
    client = NotificationClient(
        base_url="http://notify.local", transport=httpx.MockTransport(lambda request: httpx.Response(503))
    )
    with pytest.raises(httpx.HTTPStatusError):
        client.grade_improvement_resolved({"request_id": 7})
