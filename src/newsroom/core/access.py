"""访问控制：角色白名单、归属判断和列表可见性."""

from enum import StrEnum
from typing import Any

from sqlalchemy import false, or_

from newsroom.core.errors import Forbidden
from newsroom.models.article import Article, ArticleStatus
from newsroom.models.user import Role, User


class Operation(StrEnum):
    """受控操作."""

    # 文章
    CREATE = "create"
    UPDATE = "update"
    SUBMIT = "submit"
    APPROVE = "approve"
    REJECT = "reject"
    DELETE = "delete"
    ARTICLE_STATS = "article_stats"

    # 用户管理
    LIST_EDITORS = "list_editors"
    LIST_WRITERS = "list_writers"
    LIST_USERS = "list_users"
    VIEW_USER = "view_user"
    CHANGE_ROLE = "change_role"
    TOGGLE_STATUS = "toggle_status"
    USER_STATS = "user_stats"


# 操作 -> 允许的角色
PERMISSIONS: dict[Operation, frozenset[Role]] = {
    Operation.CREATE: frozenset({Role.WRITER}),
    Operation.UPDATE: frozenset({Role.WRITER}),
    Operation.SUBMIT: frozenset({Role.WRITER}),
    Operation.APPROVE: frozenset({Role.EDITOR}),
    Operation.REJECT: frozenset({Role.EDITOR}),
    Operation.DELETE: frozenset({Role.WRITER, Role.ADMIN}),
    Operation.ARTICLE_STATS: frozenset({Role.ADMIN}),
    Operation.LIST_EDITORS: frozenset({Role.WRITER, Role.EDITOR, Role.ADMIN}),
    Operation.LIST_WRITERS: frozenset({Role.ADMIN, Role.EDITOR}),
    Operation.LIST_USERS: frozenset({Role.ADMIN}),
    Operation.VIEW_USER: frozenset({Role.ADMIN}),
    Operation.CHANGE_ROLE: frozenset({Role.ADMIN}),
    Operation.TOGGLE_STATUS: frozenset({Role.ADMIN}),
    Operation.USER_STATS: frozenset({Role.ADMIN}),
}


def is_allowed(role: str, operation: Operation) -> bool:
    """角色是否允许执行该操作."""
    return role in PERMISSIONS[operation]


def ensure_allowed(actor: User, operation: Operation) -> None:
    """角色校验，不通过时抛出 Forbidden."""
    if not is_allowed(actor.role, operation):
        msg = f"User role '{actor.role}' is not authorized to access this route"
        raise Forbidden(msg)


def is_author(actor: User, article: Article) -> bool:
    """是否为文章作者."""
    return article.author_id == actor.id


def is_assigned_editor(actor: User, article: Article) -> bool:
    """是否为文章指派的编辑."""
    return article.assigned_editor_id is not None and article.assigned_editor_id == actor.id


def can_view(actor: User | None, article: Article) -> bool:
    """单篇文章的查看权限：已发布文章公开，其余仅作者、指派编辑和管理员可见."""
    if article.status == ArticleStatus.APPROVED:
        return True
    if actor is None:
        return False
    if actor.role == Role.ADMIN:
        return True
    return is_author(actor, article) or is_assigned_editor(actor, article)


def visibility_filter(actor: User | None) -> Any:
    """
    按角色生成文章列表的可见性条件.

    读者和匿名用户只能看到已发布文章；作者只能看到自己的文章；
    编辑能看到指派给自己或由自己通过的文章；管理员不受限制。
    返回 None 表示不加限制。
    """
    if actor is None or actor.role == Role.READER:
        return Article.status == ArticleStatus.APPROVED

    if actor.role == Role.WRITER:
        return Article.author_id == actor.id

    if actor.role == Role.EDITOR:
        return or_(
            Article.assigned_editor_id == actor.id,
            Article.approved_by_id == actor.id,
        )

    if actor.role == Role.ADMIN:
        return None

    # 未知角色什么都看不到
    return false()


def article_filters(
    actor: User | None,
    status: str | None = None,
    author_id: str | None = None,
    editor_id: str | None = None,
    search: str | None = None,
) -> list[Any]:
    """组合可见性条件和查询参数，查询参数只会收窄结果."""
    clauses: list[Any] = []

    scope = visibility_filter(actor)
    if scope is not None:
        clauses.append(scope)

    # 读者和匿名用户固定只看已发布文章，忽略状态参数
    if status and actor is not None and actor.role != Role.READER:
        clauses.append(Article.status == status)
    if author_id:
        clauses.append(Article.author_id == author_id)
    if editor_id:
        clauses.append(Article.assigned_editor_id == editor_id)
    if search:
        clauses.append(Article.title.icontains(search, autoescape=True))  # type: ignore[attr-defined]

    return clauses

