"""文章 API."""

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from newsroom.api.deps import get_current_user, get_notifier, get_optional_user
from newsroom.core.notifier import NotificationRelay
from newsroom.core.queries import ArticleQueries
from newsroom.core.workflow import ArticleWorkflow
from newsroom.models.database import get_session
from newsroom.models.user import User

router = APIRouter(prefix="/api/articles", tags=["articles"])


class ArticleCreateRequest(BaseModel):
    """创建稿件请求."""

    title: str
    content: str


class ArticleUpdateRequest(BaseModel):
    """修改稿件请求."""

    title: str | None = None
    content: str | None = None


class SubmitRequest(BaseModel):
    """提交审核请求."""

    editor_id: str | None = None


class RejectRequest(BaseModel):
    """退稿请求."""

    comment: str | None = None


@router.post("", status_code=201)
async def create_article(
    request: ArticleCreateRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> dict:
    """创建草稿."""
    article = await ArticleWorkflow(session).create(user, request.title, request.content)
    return {
        "message": "Article created successfully",
        "article": await ArticleQueries(session).serialize(article),
    }


@router.get("")
async def list_articles(
    status: str | None = Query(None, description="按状态筛选"),
    author: str | None = Query(None, description="按作者筛选"),
    editor: str | None = Query(None, description="按指派编辑筛选"),
    search: str | None = Query(None, description="标题关键词"),
    user: User | None = Depends(get_optional_user),
    session: AsyncSession = Depends(get_session),
) -> dict:
    """获取文章列表（按角色可见性过滤）."""
    items = await ArticleQueries(session).list_articles(
        user,
        status=status,
        author_id=author,
        editor_id=editor,
        search=search,
    )
    return {"count": len(items), "items": items}


@router.get("/search")
async def search_articles(
    q: str | None = Query(None, description="标题关键词"),
    session: AsyncSession = Depends(get_session),
) -> dict:
    """公开搜索已发布文章."""
    items = await ArticleQueries(session).search_public(q)
    return {"count": len(items), "items": items}


@router.get("/stats")
async def get_article_stats(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> dict:
    """文章统计（管理员）."""
    return await ArticleQueries(session).stats(user)


@router.get("/{article_id}")
async def get_article(
    article_id: str,
    user: User | None = Depends(get_optional_user),
    session: AsyncSession = Depends(get_session),
) -> dict:
    """获取文章详情."""
    return await ArticleQueries(session).get_article(user, article_id)


@router.put("/{article_id}")
async def update_article(
    article_id: str,
    request: ArticleUpdateRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> dict:
    """修改草稿或被退回的稿件."""
    article = await ArticleWorkflow(session).update(
        user, article_id, title=request.title, content=request.content
    )
    return {
        "message": "Article updated successfully",
        "article": await ArticleQueries(session).serialize(article),
    }


@router.delete("/{article_id}")
async def delete_article(
    article_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> dict:
    """删除稿件."""
    await ArticleWorkflow(session).delete(user, article_id)
    return {"message": "Article deleted successfully"}


@router.put("/{article_id}/submit")
async def submit_article(
    article_id: str,
    request: SubmitRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> dict:
    """提交给编辑审核."""
    article = await ArticleWorkflow(session).submit(user, article_id, request.editor_id)
    return {
        "message": "Article submitted successfully",
        "article": await ArticleQueries(session).serialize(article),
    }


@router.put("/{article_id}/approve")
async def approve_article(
    article_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    notifier: NotificationRelay = Depends(get_notifier),
) -> dict:
    """审核通过."""
    article = await ArticleWorkflow(session, notifier).approve(user, article_id)
    return {
        "message": "Article approved successfully",
        "article": await ArticleQueries(session).serialize(article),
    }


@router.put("/{article_id}/reject")
async def reject_article(
    article_id: str,
    request: RejectRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    notifier: NotificationRelay = Depends(get_notifier),
) -> dict:
    """退回修改."""
    article = await ArticleWorkflow(session, notifier).reject(user, article_id, request.comment)
    return {
        "message": "Article rejected",
        "article": await ArticleQueries(session).serialize(article),
    }
