"""实时通知 WebSocket."""

import asyncio
import logging

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status
from sqlalchemy.ext.asyncio import AsyncSession

from newsroom.api.deps import resolve_user
from newsroom.config import get_settings
from newsroom.core.errors import AuthenticationError
from newsroom.models.database import get_session

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["realtime"])


@router.websocket("/ws")
async def notifications_endpoint(
    websocket: WebSocket,
    token: str | None = Query(None, description="访问令牌"),
    session: AsyncSession = Depends(get_session),
) -> None:
    """WebSocket 端点，推送当前用户的审稿结果."""
    try:
        user = await resolve_user(session, token or "")
    except AuthenticationError as e:
        logger.warning(f"WebSocket 认证失败: {e.message}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    finally:
        # 认证完成后不再占用数据库连接
        await session.close()

    await websocket.accept()
    directory = websocket.app.state.notifier.directory
    directory.register(user.id, websocket)
    heartbeat = get_settings().ws_heartbeat_seconds

    try:
        await websocket.send_json({"type": "connected", "data": {"user_id": user.id}})

        # 保持连接，等待消息或断开
        while True:
            try:
                message = await asyncio.wait_for(websocket.receive(), timeout=heartbeat)
            except TimeoutError:
                # 发送心跳检测
                try:
                    await websocket.send_text("ping")
                except Exception as e:
                    logger.debug(f"心跳发送失败，关闭连接: {user.id} ({e!r})")
                    break
                continue

            if message["type"] == "websocket.disconnect":
                break
            # 只处理文本心跳，二进制帧忽略
            if message.get("text") == "ping":
                await websocket.send_text("pong")

    except WebSocketDisconnect:
        pass
    finally:
        directory.unregister(user.id, websocket)
