"""Article 文章模型."""

from datetime import UTC, datetime
from enum import StrEnum
from uuid import uuid4

from sqlalchemy import Column, Index, Text
from sqlmodel import Field, SQLModel


class ArticleStatus(StrEnum):
    """审稿流程状态."""

    DRAFT = "draft"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"


class Article(SQLModel, table=True):
    """新闻稿件."""

    __tablename__ = "articles"  # type: ignore[assignment]
    __table_args__ = (
        Index("ix_articles_author_status", "author_id", "status"),
        Index("ix_articles_editor_status", "assigned_editor_id", "status"),
    )

    id: str = Field(default_factory=lambda: uuid4().hex, primary_key=True)
    title: str = Field(index=True, max_length=200, description="标题")
    content: str = Field(sa_column=Column(Text, nullable=False), description="清洗后的 HTML")
    author_id: str = Field(foreign_key="users.id", description="作者")
    status: str = Field(
        default=ArticleStatus.DRAFT, description="draft|submitted|approved|rejected"
    )
    assigned_editor_id: str | None = Field(
        default=None, foreign_key="users.id", description="指派的编辑"
    )
    approved_by_id: str | None = Field(
        default=None, foreign_key="users.id", description="通过审核的编辑"
    )
    rejection_comment: str = Field(default="", description="退稿意见")
    submitted_at: datetime | None = Field(default=None, description="提交时间")
    reviewed_at: datetime | None = Field(default=None, description="审核时间")
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
