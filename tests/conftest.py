from __future__ import annotations

from typing import Any, Dict, Iterator, List, Optional

import pytest
from fastapi.testclient import TestClient

from main import app
from server import dependencies
from server.config import Settings, get_settings
from tutorhub.adapters.zalo import ZaloClient
from tutorhub.config import ZaloSettings
from tutorhub.services.quota_log import QuotaLogService
from tutorhub.services.recipient_directory import ClassRoster, Recipient
from tutorhub.services.smart_sender import SmartSender
from tutorhub.services.token_manager import ZaloTokenManager
from tutorhub.types import (
    ConsultationMessage,
    PromotionMessage,
    QuotaStats,
    SmartSendResult,
    ZaloSendResponse,
)

ACCESS_TOKEN = "test-access-token"
SIGN_KEY = "test-sign-key"


@pytest.fixture(autouse=True)
def test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENV", "test")
    monkeypatch.setenv("TEMPORAL_ENABLED", "0")
    monkeypatch.setenv("ZALO_ACCESS_TOKEN", ACCESS_TOKEN)
    monkeypatch.setenv("ZALO_REFRESH_TOKEN", "test-refresh-token")
    monkeypatch.setenv("ZALO_APP_ID", "test-app")
    monkeypatch.setenv("ZALO_APP_SECRET", "test-secret")


@pytest.fixture()
def zalo_settings() -> ZaloSettings:
    return ZaloSettings(
        access_token=ACCESS_TOKEN,
        refresh_token="test-refresh-token",
        app_id="test-app",
        app_secret="test-secret",
        oa_id="oa-1",
        webhook_sign_key=SIGN_KEY,
        batch_delay_seconds=0,
    )


class StaticTokenProvider:
    def __init__(self, token: str = ACCESS_TOKEN) -> None:
        self.token = token
        self.calls = 0

    async def get_valid_access_token(self) -> str:
        self.calls += 1
        return self.token


class ScriptedAdapter:
    """MessagingAdapter fake answering from per-user scripts."""

    def __init__(
        self,
        consultation: Optional[Dict[str, Any]] = None,
        promotion: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.consultation = consultation or {}
        self.promotion = promotion or {}
        self.sent: List[tuple[str, str, Optional[str]]] = []

    @staticmethod
    def _answer(script: Dict[str, Any], user_id: str, default_id: str) -> ZaloSendResponse:
        outcome = script.get(user_id, 0)
        if isinstance(outcome, Exception):
            raise outcome
        if outcome == 0:
            return ZaloSendResponse(error_code=0, message_id=f"{default_id}-{user_id}")
        return ZaloSendResponse(error_code=outcome, message=f"error {outcome}")

    async def send_consultation(
        self, message: ConsultationMessage, access_token: Optional[str] = None
    ) -> ZaloSendResponse:
        self.sent.append(("consultation", message.user_id, access_token))
        return self._answer(self.consultation, message.user_id, "cs")

    async def send_promotion(
        self, message: PromotionMessage, access_token: Optional[str] = None
    ) -> ZaloSendResponse:
        self.sent.append(("promotion", message.user_id, access_token))
        return self._answer(self.promotion, message.user_id, "promo")

    def verify_signature(self, body: bytes | str, signature: Optional[str]) -> bool:
        return True

    def normalize_event(self, body: Dict[str, Any]):  # pragma: no cover
        raise NotImplementedError


class FakeDirectory:
    def __init__(self, rosters: Optional[Dict[int, ClassRoster]] = None, available: bool = True) -> None:
        self.rosters = rosters or {}
        self.available = available
        self.users: Dict[int, Recipient] = {}
        self.updates_fail = False

    def is_available(self) -> bool:
        return self.available

    def get_class_recipients(self, class_id: int) -> Optional[ClassRoster]:
        return self.rosters.get(class_id)

    def get_user(self, user_id: int) -> Optional[Recipient]:
        return self.users.get(user_id)

    def set_zalo_user_id(self, user_id: int, zalo_user_id: Optional[str]) -> bool:
        if self.updates_fail or user_id not in self.users:
            return False
        self.users[user_id].zalo_user_id = zalo_user_id
        return True


class RecordingQuotaLog(QuotaLogService):
    def __init__(self) -> None:
        super().__init__(None, None)
        self.recorded: List[SmartSendResult] = []

    def record(self, results) -> int:
        rows = [r for r in results if r.success]
        self.recorded.extend(rows)
        return len(rows)

    def get_monthly_stats(self, month: Optional[str] = None) -> QuotaStats:
        return QuotaStats(
            month=month or "2026-10",
            quota_used=1850,
            promotion_count=1850,
            total_messages=1900,
            consultation_count=50,
            quota_limit=self.monthly_limit,
            percentage_used=93,
        )


class FakeTemporal:
    def __init__(self, client: Any = None) -> None:
        self.client = client

    def get_client(self) -> Any:
        return self.client


def roster(class_id: int, *zalo_ids: Optional[str]) -> ClassRoster:
    return ClassRoster(
        class_id=class_id,
        class_name="IELTS 6.5",
        recipients=[
            Recipient(user_id=index + 1, name=f"Student {index + 1}", zalo_user_id=zalo_id)
            for index, zalo_id in enumerate(zalo_ids)
        ],
    )


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        zalo_access_token=ACCESS_TOKEN,
        zalo_refresh_token="test-refresh-token",
        zalo_app_id="test-app",
        zalo_app_secret="test-secret",
        zalo_webhook_sign_key=SIGN_KEY,
        zalo_webhook_verify_token="verify-me",
        zalo_default_attachment_id="default_att",
        zalo_reminder_attachment_id=None,
        zalo_batch_delay_ms=0,
        api_auth_token=None,
        temporal_enabled=False,
    )


@pytest.fixture()
def services(settings: Settings) -> Dict[str, Any]:
    zalo_settings = settings.zalo_settings()
    tokens = ZaloTokenManager(zalo_settings)
    zalo = ZaloClient(zalo_settings, tokens)
    return {
        "tokens": tokens,
        "zalo": zalo,
        "sender": SmartSender(zalo, tokens, batch_delay_seconds=0),
        "directory": FakeDirectory(),
        "quota_log": RecordingQuotaLog(),
        "temporal": FakeTemporal(),
    }


@pytest.fixture()
def client(settings: Settings, services: Dict[str, Any]) -> Iterator[TestClient]:
    app.dependency_overrides.update(
        {
            get_settings: lambda: settings,
            dependencies.get_token_manager: lambda: services["tokens"],
            dependencies.get_zalo_client: lambda: services["zalo"],
            dependencies.get_smart_sender: lambda: services["sender"],
            dependencies.get_recipient_directory: lambda: services["directory"],
            dependencies.get_quota_log: lambda: services["quota_log"],
            dependencies.get_temporal: lambda: services["temporal"],
        }
    )
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
