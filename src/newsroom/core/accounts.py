"""账号服务：注册、登录和用户管理."""

import logging
import re
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from newsroom.core.access import Operation, ensure_allowed
from newsroom.core.errors import AuthenticationError, Forbidden, NotFound, ValidationError
from newsroom.core.security import hash_password, verify_password
from newsroom.models.user import Role, User

logger = logging.getLogger(__name__)

# 自助注册允许的角色
SELF_SERVICE_ROLES = frozenset({Role.WRITER, Role.READER})
# 管理员可以互相调整的角色
ASSIGNABLE_ROLES = frozenset({Role.EDITOR, Role.WRITER})

PASSWORD_MIN_LENGTH = 6
# bcrypt 只处理前 72 字节
PASSWORD_MAX_BYTES = 72
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class AccountService:
    """用户账号."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def register(
        self, name: str, email: str, password: str, role: str | None = None
    ) -> User:
        """自助注册（仅作者或读者）."""
        name = (name or "").strip()
        email = (email or "").strip().lower()
        role = role or Role.READER

        if not name:
            msg = "Name is required"
            raise ValidationError(msg)
        if not _EMAIL_RE.match(email):
            msg = "Please provide a valid email"
            raise ValidationError(msg)
        if len(password or "") < PASSWORD_MIN_LENGTH:
            msg = f"Password must be at least {PASSWORD_MIN_LENGTH} characters"
            raise ValidationError(msg)
        if len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
            msg = f"Password must be at most {PASSWORD_MAX_BYTES} bytes"
            raise ValidationError(msg)
        if role not in SELF_SERVICE_ROLES:
            msg = "Role must be either writer or reader"
            raise ValidationError(msg)

        if await self.find_by_email(email):
            msg = "User already exists"
            raise ValidationError(msg)

        user = User(name=name, email=email, password_hash=hash_password(password), role=role)
        self.session.add(user)
        await self.session.commit()
        await self.session.refresh(user)

        logger.info(f"新用户注册: {user.id} ({role})")
        return user

    async def authenticate(self, email: str, password: str) -> User:
        """邮箱密码登录."""
        user = await self.find_by_email((email or "").strip().lower())
        if user is None or not verify_password(password or "", user.password_hash):
            logger.warning(f"登录失败: {email}")
            msg = "Invalid email or password"
            raise AuthenticationError(msg)
        if not user.is_active:
            msg = "User account is inactive"
            raise AuthenticationError(msg)
        return user

    async def find_by_email(self, email: str) -> User | None:
        """按邮箱查找."""
        result = await self.session.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def ensure_admin(self, name: str, email: str, password: str) -> User | None:
        """没有管理员时创建初始管理员."""
        result = await self.session.execute(select(User).where(User.role == Role.ADMIN).limit(1))
        if result.scalar_one_or_none() is not None:
            return None

        email = email.strip().lower()
        existing = await self.find_by_email(email)
        if existing is not None:
            existing.role = Role.ADMIN
            existing.is_active = True
            existing.updated_at = datetime.now(UTC)
            admin = existing
        else:
            admin = User(
                name=name,
                email=email,
                password_hash=hash_password(password),
                role=Role.ADMIN,
            )
            self.session.add(admin)

        await self.session.commit()
        logger.info(f"已创建初始管理员: {email}")
        return admin

    async def list_editors(self, actor: User) -> list[dict[str, str]]:
        """启用中的编辑列表（供作者选择审稿人）."""
        ensure_allowed(actor, Operation.LIST_EDITORS)
        stmt = (
            select(User)
            .where(User.role == Role.EDITOR, User.is_active == True)  # noqa: E712
            .order_by(User.name.asc())
        )
        result = await self.session.execute(stmt)
        return [u.summary() for u in result.scalars().all()]

    async def list_writers(self, actor: User) -> list[dict[str, Any]]:
        """作者列表."""
        ensure_allowed(actor, Operation.LIST_WRITERS)
        stmt = select(User).where(User.role == Role.WRITER).order_by(User.name.asc())
        result = await self.session.execute(stmt)
        return [u.to_public() for u in result.scalars().all()]

    async def list_users(
        self, actor: User, role: str | None = None, search: str | None = None
    ) -> list[dict[str, Any]]:
        """全部用户（可按角色、姓名/邮箱筛选）."""
        ensure_allowed(actor, Operation.LIST_USERS)
        stmt = select(User)
        if role and role in set(Role):
            stmt = stmt.where(User.role == role)
        if search:
            stmt = stmt.where(
                or_(
                    User.name.icontains(search, autoescape=True),  # type: ignore[attr-defined]
                    User.email.icontains(search, autoescape=True),  # type: ignore[attr-defined]
                )
            )
        stmt = stmt.order_by(User.created_at.desc())
        result = await self.session.execute(stmt)
        return [u.to_public() for u in result.scalars().all()]

    async def get_user(self, actor: User, user_id: str) -> User:
        """按 ID 获取用户."""
        ensure_allowed(actor, Operation.VIEW_USER)
        return await self._get(user_id)

    async def change_role(self, actor: User, user_id: str, role: str | None) -> tuple[User, str]:
        """在编辑和作者之间调整角色，返回 (用户, 原角色)."""
        ensure_allowed(actor, Operation.CHANGE_ROLE)
        if role not in ASSIGNABLE_ROLES:
            msg = "Can only promote/demote between editor and writer roles"
            raise ValidationError(msg)

        user = await self._get(user_id)
        if user.role == Role.ADMIN:
            msg = "Cannot change admin role"
            raise Forbidden(msg)
        if user.id == actor.id:
            msg = "Cannot change your own role"
            raise Forbidden(msg)

        old_role = user.role
        user.role = role
        user.updated_at = datetime.now(UTC)
        await self.session.commit()

        logger.info(f"角色变更: {user.id} {old_role} -> {role}")
        return user, old_role

    async def toggle_status(self, actor: User, user_id: str) -> User:
        """启用/停用账号."""
        ensure_allowed(actor, Operation.TOGGLE_STATUS)
        user = await self._get(user_id)
        if user.role == Role.ADMIN:
            msg = "Cannot deactivate admin account"
            raise Forbidden(msg)
        if user.id == actor.id:
            msg = "Cannot deactivate your own account"
            raise Forbidden(msg)

        user.is_active = not user.is_active
        user.updated_at = datetime.now(UTC)
        await self.session.commit()

        logger.info(f"账号{'启用' if user.is_active else '停用'}: {user.id}")
        return user

    async def stats(self, actor: User) -> dict[str, Any]:
        """用户统计."""
        ensure_allowed(actor, Operation.USER_STATS)

        total_result = await self.session.execute(select(func.count()).select_from(User))
        total = total_result.scalar_one()

        active_result = await self.session.execute(
            select(func.count()).select_from(User).where(User.is_active == True)  # noqa: E712
        )
        active = active_result.scalar_one()

        role_stmt = select(User.role, func.count()).group_by(User.role)
        role_result = await self.session.execute(role_stmt)
        by_role = {role: count for role, count in role_result.all()}

        return {
            "total": total,
            "active": active,
            "inactive": total - active,
            "by_role": by_role,
        }

    async def _get(self, user_id: str) -> User:
        user = await self.session.get(User, user_id)
        if user is None:
            msg = "User not found"
            raise NotFound(msg)
        return user
