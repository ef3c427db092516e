"""测试配置和 fixtures."""

from collections.abc import AsyncGenerator, Callable

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from newsroom.api.deps import get_notifier
from newsroom.core.notifier import ConnectionDirectory, NotificationRelay
from newsroom.core.security import create_access_token, hash_password
from newsroom.main import app
from newsroom.models.article import Article, ArticleStatus
from newsroom.models.database import get_session
from newsroom.models.user import Role, User

PASSWORD = "secret-pass"
# bcrypt 较慢，整个测试会话只计算一次
PASSWORD_HASH = hash_password(PASSWORD)

BODY = (
    "<p>City council approved the new transit budget on Tuesday evening "
    "after a long public hearing.</p>"
)


@pytest_asyncio.fixture
async def engine():
    """创建测试数据库引擎."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    """创建测试会话工厂."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture
async def async_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """创建测试用的内存数据库会话."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def users(async_session: AsyncSession) -> dict[str, User]:
    """各角色的测试用户."""
    specs = {
        "admin": ("Ada Admin", Role.ADMIN, True),
        "editor": ("Eddie Editor", Role.EDITOR, True),
        "other_editor": ("Olga Editor", Role.EDITOR, True),
        "inactive_editor": ("Ian Inactive", Role.EDITOR, False),
        "writer": ("Wendy Writer", Role.WRITER, True),
        "other_writer": ("Walt Writer", Role.WRITER, True),
        "reader": ("Rita Reader", Role.READER, True),
    }
    created: dict[str, User] = {}
    for key, (name, role, active) in specs.items():
        user = User(
            id=f"user-{key}",
            name=name,
            email=f"{key}@newsroom.test",
            password_hash=PASSWORD_HASH,
            role=role,
            is_active=active,
        )
        async_session.add(user)
        created[key] = user
    await async_session.commit()
    return created


@pytest_asyncio.fixture
async def make_article(async_session: AsyncSession, users: dict[str, User]):
    """按指定状态直接写入文章."""

    async def _make(
        status: str = ArticleStatus.DRAFT,
        author: str = "writer",
        editor: str | None = None,
        title: str = "Transit budget approved",
        **fields,
    ) -> Article:
        article = Article(
            title=title,
            content=BODY,
            author_id=users[author].id,
            status=status,
            assigned_editor_id=users[editor].id if editor else None,
            **fields,
        )
        if status == ArticleStatus.APPROVED and editor:
            article.approved_by_id = users[editor].id
        if status == ArticleStatus.REJECTED and not article.rejection_comment:
            article.rejection_comment = "Needs more sources."
        async_session.add(article)
        await async_session.commit()
        return article

    return _make


@pytest.fixture
def relay() -> NotificationRelay:
    """独立的通知推送实例."""
    return NotificationRelay(ConnectionDirectory())


@pytest.fixture
def auth_headers() -> Callable[[User], dict[str, str]]:
    """生成带令牌的请求头."""

    def _headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}

    return _headers


@pytest_asyncio.fixture
async def client(session_factory, users, relay) -> AsyncGenerator[AsyncClient, None]:
    """创建测试客户端."""

    async def override_get_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_notifier] = lambda: relay

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def body() -> str:
    """满足长度要求的正文."""
    return BODY


@pytest.fixture
def password() -> str:
    """测试用户的登录密码."""
    return PASSWORD
