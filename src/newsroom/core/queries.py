"""文章查询服务：列表、搜索、详情和统计."""

from collections.abc import Iterable
from typing import Any

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from newsroom.core.access import Operation, article_filters, can_view, ensure_allowed
from newsroom.core.errors import Forbidden, NotFound, ValidationError
from newsroom.models.article import Article, ArticleStatus
from newsroom.models.user import User

SEARCH_LIMIT = 20
TOP_AUTHORS_LIMIT = 5


class ArticleQueries:
    """文章读取."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list_articles(
        self,
        actor: User | None,
        status: str | None = None,
        author_id: str | None = None,
        editor_id: str | None = None,
        search: str | None = None,
    ) -> list[dict[str, Any]]:
        """按角色可见性获取文章列表（最新在前）."""
        clauses = article_filters(
            actor,
            status=status,
            author_id=author_id,
            editor_id=editor_id,
            search=search,
        )
        stmt = select(Article).where(*clauses).order_by(Article.created_at.desc())
        result = await self.session.execute(stmt)
        return await self.serialize_many(result.scalars().all())

    async def search_public(self, q: str | None) -> list[dict[str, Any]]:
        """公开搜索：仅已发布文章，按标题模糊匹配."""
        q = (q or "").strip()
        if not q:
            msg = "Search query is required"
            raise ValidationError(msg)

        stmt = (
            select(Article)
            .where(
                Article.status == ArticleStatus.APPROVED,
                Article.title.icontains(q, autoescape=True),  # type: ignore[attr-defined]
            )
            .order_by(Article.created_at.desc())
            .limit(SEARCH_LIMIT)
        )
        result = await self.session.execute(stmt)
        return await self.serialize_many(result.scalars().all())

    async def get_article(self, actor: User | None, article_id: str) -> dict[str, Any]:
        """获取单篇文章（校验查看权限）."""
        article = await self.session.get(Article, article_id)
        if article is None:
            msg = "Article not found"
            raise NotFound(msg)

        if not can_view(actor, article):
            msg = "Not authorized to view this article"
            raise Forbidden(msg)

        return await self.serialize(article)

    async def stats(self, actor: User) -> dict[str, Any]:
        """文章统计：总数、按状态、发稿最多的作者."""
        ensure_allowed(actor, Operation.ARTICLE_STATS)

        total_result = await self.session.execute(select(func.count()).select_from(Article))
        total = total_result.scalar_one()

        status_stmt = select(Article.status, func.count()).group_by(Article.status)
        status_result = await self.session.execute(status_stmt)
        by_status = {status: count for status, count in status_result.all()}

        author_count = func.count(Article.id).label("count")
        top_stmt = (
            select(User.id, User.name, author_count)
            .join(Article, Article.author_id == User.id)
            .group_by(User.id, User.name)
            .order_by(author_count.desc())
            .limit(TOP_AUTHORS_LIMIT)
        )
        top_result = await self.session.execute(top_stmt)
        top_authors = [
            {"id": user_id, "author_name": name, "count": count}
            for user_id, name, count in top_result.all()
        ]

        return {
            "total": total,
            "by_status": by_status,
            "top_authors": top_authors,
        }

    async def serialize(self, article: Article) -> dict[str, Any]:
        """构建单篇文章响应."""
        return (await self.serialize_many([article]))[0]

    async def serialize_many(self, articles: Iterable[Article]) -> list[dict[str, Any]]:
        """构建文章响应，作者/编辑信息一次性加载."""
        articles = list(articles)
        user_ids = {
            uid
            for a in articles
            for uid in (a.author_id, a.assigned_editor_id, a.approved_by_id)
            if uid
        }
        users: dict[str, User] = {}
        if user_ids:
            stmt = select(User).where(User.id.in_(user_ids))  # type: ignore[attr-defined]
            result = await self.session.execute(stmt)
            users = {u.id: u for u in result.scalars().all()}

        return [build_article_response(a, users) for a in articles]


def _user_ref(users: dict[str, User], user_id: str | None) -> dict[str, str] | None:
    if not user_id or user_id not in users:
        return None
    return users[user_id].summary()


def build_article_response(article: Article, users: dict[str, User]) -> dict[str, Any]:
    """构建文章响应数据."""
    return {
        "id": article.id,
        "title": article.title,
        "content": article.content,
        "status": str(article.status),
        "author": _user_ref(users, article.author_id),
        "assigned_editor": _user_ref(users, article.assigned_editor_id),
        "approved_by": _user_ref(users, article.approved_by_id),
        "rejection_comment": article.rejection_comment,
        "submitted_at": article.submitted_at.isoformat() if article.submitted_at else None,
        "reviewed_at": article.reviewed_at.isoformat() if article.reviewed_at else None,
        "created_at": article.created_at.isoformat(),
        "updated_at": article.updated_at.isoformat(),
    }
