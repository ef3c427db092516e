"""实时通知 - 按用户推送审稿结果."""

import json
import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from fastapi import WebSocket

logger = logging.getLogger(__name__)


class NotificationEvent:
    """通知事件类型."""

    ARTICLE_APPROVED = "article_approved"
    ARTICLE_REJECTED = "article_rejected"


class ConnectionDirectory:
    """在线连接表：user_id -> WebSocket 集合.

    连接建立时登记，断开时注销。只在事件循环内访问，不需要加锁。
    """

    def __init__(self) -> None:
        self._connections: dict[str, set["WebSocket"]] = {}

    def register(self, user_id: str, ws: "WebSocket") -> None:
        """登记连接."""
        self._connections.setdefault(user_id, set()).add(ws)
        logger.debug(f"用户上线: {user_id} (连接数 {len(self._connections[user_id])})")

    def unregister(self, user_id: str, ws: "WebSocket") -> None:
        """注销连接."""
        sockets = self._connections.get(user_id)
        if not sockets:
            return
        sockets.discard(ws)
        if not sockets:
            del self._connections[user_id]

    def connections_for(self, user_id: str) -> set["WebSocket"]:
        """获取用户当前的所有连接（副本）."""
        return set(self._connections.get(user_id, ()))

    def is_online(self, user_id: str) -> bool:
        """用户是否在线."""
        return bool(self._connections.get(user_id))

    def __len__(self) -> int:
        return sum(len(s) for s in self._connections.values())


class NotificationRelay:
    """尽力而为的通知推送：不确认、不重试、不持久化."""

    def __init__(self, directory: ConnectionDirectory) -> None:
        self.directory = directory

    async def notify(self, user_id: str, event: str, payload: dict[str, Any]) -> int:
        """
        推送事件到用户的所有在线连接.

        Returns:
            成功送达的连接数，用户不在线时为 0
        """
        sockets = self.directory.connections_for(user_id)
        if not sockets:
            logger.debug(f"用户不在线，丢弃通知: {event} -> {user_id}")
            return 0

        data = json.dumps({"type": event, "data": payload}, ensure_ascii=False, default=str)
        delivered = 0

        for ws in sockets:
            try:
                await ws.send_text(data)
                delivered += 1
            except Exception:
                # 清理断开的连接
                logger.warning(f"推送失败，移除连接: {event} -> {user_id}")
                self.directory.unregister(user_id, ws)

        return delivered
