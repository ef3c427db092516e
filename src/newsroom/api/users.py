"""用户管理 API."""

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from newsroom.api.deps import get_current_user
from newsroom.core.accounts import AccountService
from newsroom.models.database import get_session
from newsroom.models.user import User

router = APIRouter(prefix="/api/users", tags=["users"])


class RoleUpdateRequest(BaseModel):
    """角色变更请求."""

    role: str | None = None


@router.get("/editors")
async def list_editors(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> dict:
    """可选的审稿编辑."""
    editors = await AccountService(session).list_editors(user)
    return {"count": len(editors), "items": editors}


@router.get("/writers")
async def list_writers(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> dict:
    """作者列表."""
    writers = await AccountService(session).list_writers(user)
    return {"count": len(writers), "items": writers}


@router.get("/stats")
async def get_user_stats(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> dict:
    """用户统计."""
    return await AccountService(session).stats(user)


@router.get("")
async def list_users(
    role: str | None = Query(None, description="按角色筛选"),
    search: str | None = Query(None, description="姓名或邮箱"),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> dict:
    """全部用户."""
    users = await AccountService(session).list_users(user, role=role, search=search)
    return {"count": len(users), "items": users}


@router.get("/{user_id}")
async def get_user(
    user_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> dict:
    """用户详情."""
    target = await AccountService(session).get_user(user, user_id)
    return target.to_public()


@router.put("/{user_id}/role")
async def update_user_role(
    user_id: str,
    request: RoleUpdateRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> dict:
    """调整角色（编辑/作者）."""
    target, old_role = await AccountService(session).change_role(user, user_id, request.role)
    return {
        "message": f"User role updated from {old_role} to {target.role}",
        "user": target.to_public(),
    }


@router.put("/{user_id}/toggle-status")
async def toggle_user_status(
    user_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> dict:
    """启用/停用账号."""
    target = await AccountService(session).toggle_status(user, user_id)
    state = "activated" if target.is_active else "deactivated"
    return {
        "message": f"User {state} successfully",
        "user": target.to_public(),
    }
