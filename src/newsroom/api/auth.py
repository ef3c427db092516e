"""认证 API."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from newsroom.api.deps import get_current_user
from newsroom.core.accounts import AccountService
from newsroom.core.security import create_access_token
from newsroom.models.database import get_session
from newsroom.models.user import User

router = APIRouter(prefix="/api/auth", tags=["auth"])


class RegisterRequest(BaseModel):
    """注册请求."""

    name: str
    email: str
    password: str
    role: str | None = None


class LoginRequest(BaseModel):
    """登录请求."""

    email: str
    password: str


@router.post("/register", status_code=201)
async def register(
    request: RegisterRequest,
    session: AsyncSession = Depends(get_session),
) -> dict:
    """注册新账号."""
    user = await AccountService(session).register(
        request.name, request.email, request.password, request.role
    )
    return {"token": create_access_token(user.id), "user": user.to_public()}


@router.post("/login")
async def login(
    request: LoginRequest,
    session: AsyncSession = Depends(get_session),
) -> dict:
    """邮箱密码登录."""
    user = await AccountService(session).authenticate(request.email, request.password)
    return {"token": create_access_token(user.id), "user": user.to_public()}


@router.get("/me")
async def me(user: User = Depends(get_current_user)) -> dict:
    """当前登录用户."""
    return user.to_public()
