"""业务异常定义.

核心层只抛出这些异常，由 ``newsroom.main`` 统一转换为 HTTP 响应。
"""


class NewsroomError(Exception):
    """业务异常基类."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(NewsroomError):
    """输入不合法（标题过短、内容过短、缺少退稿意见等）."""

    status_code = 400


class InvalidTransition(NewsroomError):
    """当前状态不允许该操作."""

    status_code = 400

    def __init__(self, operation: str, status: str, message: str | None = None) -> None:
        super().__init__(message or f"Cannot {operation} article with status: {status}")
        self.operation = operation
        self.status = status


class AuthenticationError(NewsroomError):
    """未登录或凭证无效."""

    status_code = 401


class Forbidden(NewsroomError):
    """角色或归属校验失败."""

    status_code = 403


class NotFound(NewsroomError):
    """文章或用户不存在."""

    status_code = 404


class InternalError(NewsroomError):
    """持久化或其他意外错误."""

    status_code = 500
