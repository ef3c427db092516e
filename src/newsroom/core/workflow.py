"""审稿流程引擎.

状态流转::

    draft ──submit──> submitted ──approve──> approved
      ^                   │
      │                 reject
      │                   v
      └──(update)──── rejected ──submit──> submitted

校验顺序：角色 -> 输入 -> 文章存在 -> 当前状态 -> 归属。
"""

import logging
from datetime import UTC, datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from newsroom.core.access import Operation, ensure_allowed, is_assigned_editor, is_author
from newsroom.core.errors import (
    Forbidden,
    InternalError,
    InvalidTransition,
    NotFound,
    ValidationError,
)
from newsroom.core.notifier import NotificationEvent, NotificationRelay
from newsroom.models.article import Article, ArticleStatus
from newsroom.models.user import Role, User
from newsroom.utils.html_parser import sanitize_html, text_length

logger = logging.getLogger(__name__)

TITLE_MIN_LENGTH = 5
TITLE_MAX_LENGTH = 200
CONTENT_MIN_LENGTH = 50
COMMENT_MIN_LENGTH = 10

# 操作 -> 允许的源状态
SOURCE_STATES: dict[Operation, frozenset[str]] = {
    Operation.UPDATE: frozenset({ArticleStatus.DRAFT, ArticleStatus.REJECTED}),
    Operation.SUBMIT: frozenset({ArticleStatus.DRAFT, ArticleStatus.REJECTED}),
    Operation.APPROVE: frozenset({ArticleStatus.SUBMITTED}),
    Operation.REJECT: frozenset({ArticleStatus.SUBMITTED}),
    Operation.DELETE: frozenset({ArticleStatus.DRAFT}),
}


def validate_title(title: str | None) -> str:
    """校验标题，返回去除首尾空白后的值."""
    title = (title or "").strip()
    if not title:
        msg = "Title is required"
        raise ValidationError(msg)
    if not TITLE_MIN_LENGTH <= len(title) <= TITLE_MAX_LENGTH:
        msg = f"Title must be between {TITLE_MIN_LENGTH} and {TITLE_MAX_LENGTH} characters"
        raise ValidationError(msg)
    return title


def validate_content(content: str | None) -> str:
    """校验正文，返回清洗后的 HTML."""
    content = (content or "").strip()
    if not content:
        msg = "Content is required"
        raise ValidationError(msg)

    sanitized = sanitize_html(content)
    if text_length(sanitized) < CONTENT_MIN_LENGTH:
        msg = f"Content must be at least {CONTENT_MIN_LENGTH} characters long"
        raise ValidationError(msg)
    return sanitized


def validate_comment(comment: str | None) -> str:
    """校验退稿意见."""
    comment = (comment or "").strip()
    if not comment:
        msg = "Rejection comment is required"
        raise ValidationError(msg)
    if len(comment) < COMMENT_MIN_LENGTH:
        msg = f"Comment must be at least {COMMENT_MIN_LENGTH} characters long"
        raise ValidationError(msg)
    return comment


def _now() -> datetime:
    return datetime.now(UTC)


class ArticleWorkflow:
    """文章审稿流程."""

    def __init__(self, session: AsyncSession, relay: NotificationRelay | None = None) -> None:
        self.session = session
        self.relay = relay

    async def create(self, actor: User, title: str, content: str) -> Article:
        """作者创建草稿."""
        ensure_allowed(actor, Operation.CREATE)
        title = validate_title(title)
        content = validate_content(content)

        article = Article(
            title=title,
            content=content,
            author_id=actor.id,
            status=ArticleStatus.DRAFT,
        )
        self.session.add(article)
        await self._commit()
        await self.session.refresh(article)

        logger.info(f"创建草稿: {article.id} by {actor.id}")
        return article

    async def update(
        self,
        actor: User,
        article_id: str,
        title: str | None = None,
        content: str | None = None,
    ) -> Article:
        """修改草稿或被退回的稿件."""
        ensure_allowed(actor, Operation.UPDATE)
        new_title = validate_title(title) if title is not None else None
        new_content = validate_content(content) if content is not None else None

        article = await self._get(article_id)
        self._ensure_state(Operation.UPDATE, article)
        if not is_author(actor, article):
            msg = "Not authorized to update this article"
            raise Forbidden(msg)

        if new_title is not None:
            article.title = new_title
        if new_content is not None:
            article.content = new_content
        article.updated_at = _now()
        await self._commit()

        logger.info(f"更新稿件: {article.id}")
        return article

    async def submit(self, actor: User, article_id: str, editor_id: str | None) -> Article:
        """提交给指定编辑审核."""
        ensure_allowed(actor, Operation.SUBMIT)
        if not editor_id:
            msg = "Please select an editor"
            raise ValidationError(msg)

        article = await self._get(article_id)
        self._ensure_state(Operation.SUBMIT, article)
        if not is_author(actor, article):
            msg = "Not authorized to submit this article"
            raise Forbidden(msg)

        editor = await self.session.get(User, editor_id)
        if editor is None:
            msg = "Editor not found"
            raise NotFound(msg)
        if editor.role != Role.EDITOR or not editor.is_active:
            msg = "Invalid editor selected"
            raise ValidationError(msg)

        now = _now()
        article.status = ArticleStatus.SUBMITTED
        article.assigned_editor_id = editor.id
        article.submitted_at = now
        article.rejection_comment = ""
        article.updated_at = now
        await self._commit()

        logger.info(f"提交审核: {article.id} -> 编辑 {editor.id}")
        return article

    async def approve(self, actor: User, article_id: str) -> Article:
        """指派编辑通过稿件，并通知作者."""
        ensure_allowed(actor, Operation.APPROVE)

        article = await self._get(article_id)
        self._ensure_state(Operation.APPROVE, article)
        if not is_assigned_editor(actor, article):
            msg = "Not authorized to approve this article"
            raise Forbidden(msg)

        now = _now()
        article.status = ArticleStatus.APPROVED
        article.approved_by_id = actor.id
        article.reviewed_at = now
        article.rejection_comment = ""
        article.updated_at = now
        await self._commit()

        logger.info(f"审核通过: {article.id} by {actor.id}")
        await self._notify(
            article,
            NotificationEvent.ARTICLE_APPROVED,
            {
                "article_id": article.id,
                "title": article.title,
                "actor_name": actor.name,
                "message": f'Your article "{article.title}" has been approved!',
            },
        )
        return article

    async def reject(self, actor: User, article_id: str, comment: str | None) -> Article:
        """指派编辑退回稿件，并通知作者."""
        ensure_allowed(actor, Operation.REJECT)
        comment = validate_comment(comment)

        article = await self._get(article_id)
        self._ensure_state(Operation.REJECT, article)
        if not is_assigned_editor(actor, article):
            msg = "Not authorized to reject this article"
            raise Forbidden(msg)

        now = _now()
        article.status = ArticleStatus.REJECTED
        article.rejection_comment = comment
        article.reviewed_at = now
        article.updated_at = now
        await self._commit()

        logger.info(f"退回修改: {article.id} by {actor.id}")
        await self._notify(
            article,
            NotificationEvent.ARTICLE_REJECTED,
            {
                "article_id": article.id,
                "title": article.title,
                "actor_name": actor.name,
                "comment": comment,
                "message": f'Your article "{article.title}" needs revisions',
            },
        )
        return article

    async def delete(self, actor: User, article_id: str) -> None:
        """删除稿件：作者只能删草稿，管理员不限状态."""
        ensure_allowed(actor, Operation.DELETE)

        article = await self._get(article_id)
        is_admin = actor.role == Role.ADMIN
        if not is_admin:
            if article.status not in SOURCE_STATES[Operation.DELETE]:
                msg = "Can only delete draft articles"
                raise InvalidTransition(Operation.DELETE, article.status, msg)
            if not is_author(actor, article):
                msg = "Not authorized to delete this article"
                raise Forbidden(msg)

        await self.session.delete(article)
        await self._commit()

        logger.info(f"删除稿件: {article_id} by {actor.id}")

    async def _get(self, article_id: str) -> Article:
        """按 ID 读取文章."""
        article = await self.session.get(Article, article_id)
        if article is None:
            msg = "Article not found"
            raise NotFound(msg)
        return article

    def _ensure_state(self, operation: Operation, article: Article) -> None:
        """校验源状态."""
        if article.status not in SOURCE_STATES[operation]:
            raise InvalidTransition(operation, article.status)

    async def _commit(self) -> None:
        """提交事务，数据库异常转换为 InternalError."""
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.exception("保存稿件失败")
            msg = "Error saving article"
            raise InternalError(msg) from e

    async def _notify(self, article: Article, event: str, payload: dict) -> None:
        """通知作者（尽力而为）."""
        if self.relay is None:
            return
        delivered = await self.relay.notify(article.author_id, event, payload)
        if delivered:
            logger.info(f"已通知作者 {article.author_id}: {event}")
