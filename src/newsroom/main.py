"""Newsroom 主应用入口."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from newsroom import __version__
from newsroom.api import articles, auth, realtime, users
from newsroom.config import Settings, get_settings
from newsroom.core.errors import NewsroomError
from newsroom.core.notifier import ConnectionDirectory, NotificationRelay
from newsroom.models.database import async_session_maker, close_db, init_db

# 配置日志
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


async def _bootstrap_admin(app_settings: Settings) -> None:
    """按配置创建初始管理员."""
    from newsroom.core.accounts import AccountService

    if not (app_settings.admin_email and app_settings.admin_password):
        return

    session_factory = async_session_maker()
    async with session_factory() as session:
        await AccountService(session).ensure_admin(
            app_settings.admin_name,
            app_settings.admin_email,
            app_settings.admin_password,
        )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """应用生命周期管理."""
    app_settings = get_settings()

    # 启动时初始化
    logger.info("正在初始化数据库...")
    await init_db(app_settings.database_url)

    logger.info("正在检查初始管理员...")
    await _bootstrap_admin(app_settings)

    logger.info("Newsroom 启动完成！")
    yield

    # 关闭时清理
    logger.info("正在关闭...")
    await close_db()
    logger.info("Newsroom 已关闭")


app = FastAPI(
    title="Newsroom",
    description="新闻编辑室 - 稿件撰写、审核与发布",
    version=__version__,
    lifespan=lifespan,
)

# 在线连接表与通知推送
app.state.notifier = NotificationRelay(ConnectionDirectory())

# CORS 配置
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 注册路由
app.include_router(auth.router)
app.include_router(articles.router)
app.include_router(users.router)
app.include_router(realtime.router)


@app.exception_handler(NewsroomError)
async def newsroom_error_handler(request: Request, exc: NewsroomError) -> JSONResponse:
    """业务异常 -> HTTP 响应."""
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """请求格式错误统一返回 400."""
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    else:
        message = "Invalid request"
    return JSONResponse(status_code=400, content={"detail": message})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """未预期的异常."""
    logger.exception(f"请求处理失败: {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})


@app.get("/")
async def root() -> dict:
    """根路径."""
    return {
        "name": "Newsroom",
        "version": __version__,
        "description": "新闻编辑室 API",
    }


@app.get("/health")
async def health() -> dict:
    """健康检查."""
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "newsroom.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
