"""User 用户模型."""

from datetime import UTC, datetime
from enum import StrEnum
from uuid import uuid4

from sqlmodel import Field, SQLModel


class Role(StrEnum):
    """用户角色."""

    ADMIN = "admin"
    EDITOR = "editor"
    WRITER = "writer"
    READER = "reader"


class User(SQLModel, table=True):
    """新闻编辑室用户."""

    __tablename__ = "users"  # type: ignore[assignment]

    id: str = Field(default_factory=lambda: uuid4().hex, primary_key=True)
    name: str = Field(description="姓名")
    email: str = Field(unique=True, index=True, description="邮箱（小写）")
    password_hash: str = Field(description="bcrypt 哈希")
    role: str = Field(default=Role.READER, index=True, description="admin|editor|writer|reader")
    is_active: bool = Field(default=True, description="是否启用")
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    def summary(self) -> dict[str, str]:
        """嵌入到文章中的简要信息."""
        return {"id": self.id, "name": self.name, "email": self.email}

    def to_public(self) -> dict:
        """对外返回的用户信息（不含密码）."""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat(),
        }
