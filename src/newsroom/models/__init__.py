"""数据模型."""

from newsroom.models.article import Article, ArticleStatus
from newsroom.models.database import get_session, init_db
from newsroom.models.user import Role, User

__all__ = [
    "Article",
    "ArticleStatus",
    "Role",
    "User",
    "get_session",
    "init_db",
]
