"""API 公共依赖：当前用户、通知推送."""

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from newsroom.core.errors import AuthenticationError
from newsroom.core.notifier import NotificationRelay
from newsroom.core.security import decode_access_token
from newsroom.models.database import get_session
from newsroom.models.user import User

bearer_scheme = HTTPBearer(auto_error=False)


async def resolve_user(session: AsyncSession, token: str) -> User:
    """令牌 -> 启用中的用户."""
    user_id = decode_access_token(token)
    user = await session.get(User, user_id)
    if user is None:
        msg = "Not authorized, user not found"
        raise AuthenticationError(msg)
    if not user.is_active:
        msg = "User account is inactive"
        raise AuthenticationError(msg)
    return user


async def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: AsyncSession = Depends(get_session),
) -> User | None:
    """可选登录：没有令牌时返回 None，令牌无效时仍然拒绝."""
    if credentials is None:
        return None
    return await resolve_user(session, credentials.credentials)


async def get_current_user(
    user: User | None = Depends(get_optional_user),
) -> User:
    """必须登录."""
    if user is None:
        msg = "Not authorized, no token"
        raise AuthenticationError(msg)
    return user


def get_notifier(request: Request) -> NotificationRelay:
    """应用级通知推送实例."""
    return request.app.state.notifier
