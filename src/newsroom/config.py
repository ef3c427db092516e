"""应用配置管理."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """应用配置（环境变量）."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # 数据库配置
    database_url: str = "sqlite+aiosqlite:///./newsroom.db"

    # JWT 配置
    jwt_secret: str = "change-me-in-production-newsroom-signing-key"
    jwt_algorithm: str = "HS256"
    jwt_expire_days: int = 7

    # CORS 配置（逗号分隔）
    cors_origins: str = "http://localhost:3000"

    # 初始管理员（仅在没有管理员时创建）
    admin_name: str = "Administrator"
    admin_email: str = ""
    admin_password: str = ""

    # WebSocket 心跳间隔（秒）
    ws_heartbeat_seconds: float = 30.0

    @property
    def cors_origin_list(self) -> list[str]:
        """CORS 允许的来源列表."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    """获取应用配置（带缓存）."""
    return Settings()
