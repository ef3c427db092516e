"""测试实时通知 WebSocket 端点."""

import asyncio
import json
import logging
from collections.abc import Iterator
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import WebSocketDisconnect
from fastapi.testclient import TestClient

from newsroom.api import realtime
from newsroom.config import Settings, get_settings
from newsroom.core.notifier import ConnectionDirectory
from newsroom.core.security import create_access_token
from newsroom.main import app
from newsroom.models.database import get_session
from newsroom.models.user import Role, User


@pytest.fixture
def ws_user() -> User:
    """已登录的作者."""
    return User(
        id="user-ws",
        name="Willa Writer",
        email="willa@newsroom.test",
        password_hash="",
        role=Role.WRITER,
    )


@pytest.fixture
def ws_client(monkeypatch: pytest.MonkeyPatch, ws_user: User) -> Iterator[TestClient]:
    """同步测试客户端，会话替换为返回固定用户的模拟对象."""
    monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
    get_settings.cache_clear()

    session = MagicMock()
    session.get = AsyncMock(side_effect=lambda model, key: ws_user if key == ws_user.id else None)
    session.close = AsyncMock()
    app.dependency_overrides[get_session] = lambda: session

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()
    get_settings.cache_clear()


class TestNotificationsSocket:
    """测试 /api/ws."""

    def test_connect_and_receive_event(self, ws_client: TestClient, ws_user: User) -> None:
        """连接后收到确认，审核事件推送到该连接."""
        token = create_access_token(ws_user.id)
        relay = app.state.notifier

        with ws_client.websocket_connect(f"/api/ws?token={token}") as ws:
            assert ws.receive_json() == {"type": "connected", "data": {"user_id": ws_user.id}}
            assert relay.directory.is_online(ws_user.id)

            delivered = ws_client.portal.call(
                relay.notify,
                ws_user.id,
                "article_rejected",
                {"article_id": "a1", "comment": "Please add sources"},
            )
            assert delivered == 1

            message = json.loads(ws.receive_text())
            assert message["type"] == "article_rejected"
            assert message["data"]["comment"] == "Please add sources"

    def test_ping_pong(self, ws_client: TestClient, ws_user: User) -> None:
        """客户端心跳得到回应."""
        token = create_access_token(ws_user.id)

        with ws_client.websocket_connect(f"/api/ws?token={token}") as ws:
            ws.receive_json()
            ws.send_text("ping")
            assert ws.receive_text() == "pong"

    def test_invalid_token_is_refused(self, ws_client: TestClient) -> None:
        """令牌无效时连接被关闭."""
        with pytest.raises(WebSocketDisconnect) as exc_info:
            with ws_client.websocket_connect("/api/ws?token=garbage") as ws:
                ws.receive_text()

        assert exc_info.value.code == 1008

    def test_unknown_user_is_refused(self, ws_client: TestClient) -> None:
        """令牌对应的用户不存在."""
        token = create_access_token("user-gone")

        with pytest.raises(WebSocketDisconnect):
            with ws_client.websocket_connect(f"/api/ws?token={token}") as ws:
                ws.receive_text()

    def test_binary_frame_is_ignored(self, ws_client: TestClient, ws_user: User) -> None:
        """二进制帧被忽略，连接保持可用."""
        token = create_access_token(ws_user.id)

        with ws_client.websocket_connect(f"/api/ws?token={token}") as ws:
            ws.receive_json()
            ws.send_bytes(b"\x00\x01")
            ws.send_text("ping")
            assert ws.receive_text() == "pong"
            assert app.state.notifier.directory.is_online(ws_user.id)


class TestHeartbeat:
    """测试服务端心跳."""

    async def test_failed_ping_closes_and_logs(
        self,
        ws_user: User,
        monkeypatch: pytest.MonkeyPatch,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """心跳发送失败时记录日志、退出循环并注销连接."""
        monkeypatch.setattr(
            realtime, "get_settings", lambda: Settings(ws_heartbeat_seconds=0.01)
        )
        directory = ConnectionDirectory()

        async def silent() -> dict:
            await asyncio.Event().wait()
            return {}

        websocket = MagicMock()
        websocket.app.state.notifier.directory = directory
        websocket.accept = AsyncMock()
        websocket.send_json = AsyncMock()
        websocket.receive = silent
        websocket.send_text = AsyncMock(side_effect=RuntimeError("socket closed"))
        session = MagicMock()
        session.get = AsyncMock(return_value=ws_user)
        session.close = AsyncMock()
        caplog.set_level(logging.DEBUG, logger="newsroom.api.realtime")

        await realtime.notifications_endpoint(
            websocket, token=create_access_token(ws_user.id), session=session
        )

        websocket.send_text.assert_awaited_once_with("ping")
        assert not directory.is_online(ws_user.id)
        assert "心跳发送失败" in caplog.text
