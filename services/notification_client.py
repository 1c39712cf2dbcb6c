import logging
from typing import Optional

import httpx
from config.settings import settings

logger = logging.getLogger(__name__)


class NotificationClient:
    """
    점수 개선 신청 처리 결과를 알림 서버(메일 발송 담당)로 전달
    - NOTIFY_API_BASE_URL 미설정이면 전송 생략
    - 전송 실패는 호출자에게 예외로 올려보냄 (호출자가 로그만 남기고 무시)
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[int] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        base = base_url if base_url is not None else settings.NOTIFY_API_BASE_URL
        self.base = base.rstrip("/") if base else None
        token = token if token is not None else settings.NOTIFY_INTERNAL_TOKEN
        self.headers = {"Authorization": f"Bearer {token}"} if token else {}
        self.timeout = timeout or settings.NOTIFY_TIMEOUT
        self.transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self.base)

    def post(self, path: str, json: dict):
        url = f"{self.base}{path}"
        with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
            r = client.post(url, json=json, headers=self.headers)
            r.raise_for_status()
        if not r.content:
            return None
        try:
            return r.json()
        except ValueError:
            # 2xx 인데 본문이 JSON 이 아님 (예: "OK") → 전송은 성공으로 간주
            logger.warning("알림 서버 응답이 JSON 이 아님: %s %s", r.status_code, url)
            return None

    def grade_improvement_resolved(self, payload: dict):
        if not self.enabled:
            logger.debug("알림 서버 미설정 - 전송 생략: request_id=%s", payload.get("request_id"))
            return None
        return self.post("/notifications/grade-improvement", payload)


notification_client = NotificationClient()
