"""核心业务逻辑."""

from newsroom.core.accounts import AccountService
from newsroom.core.notifier import ConnectionDirectory, NotificationRelay
from newsroom.core.queries import ArticleQueries
from newsroom.core.workflow import ArticleWorkflow

__all__ = [
    "AccountService",
    "ArticleQueries",
    "ArticleWorkflow",
    "ConnectionDirectory",
    "NotificationRelay",
]
