"""
配置管理 - 从环境变量加载配置
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """应用配置"""

    # 应用配置
    app_name: str = "hwboard"
    app_version: str = "0.1.0"
    debug: bool = False

    # 数据库类型: sqlite / postgresql
    database_type: str = "sqlite"
    sqlite_path: str = "./data/hwboard.db"

    # PostgreSQL配置
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_user: str = "hwboard"
    postgres_password: str = "hwboard_dev_pass"
    postgres_db: str = "hwboard"

    # 显式指定连接URL时优先使用 (例如测试用 sqlite+aiosqlite:///:memory:)
    database_url_override: Optional[str] = None

    # 日志配置
    log_level: str = "INFO"
    log_dir: str = "./logs"
    log_file_prefix: str = "hwboard"
    log_backup_count: int = 30

    # 操作日志分页上限
    operation_list_max_limit: int = 500

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

    @property
    def postgres_url(self) -> str:
        """PostgreSQL异步连接URL"""
        return f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"

    @property
    def sqlite_url(self) -> str:
        """SQLite异步连接URL"""
        return f"sqlite+aiosqlite:///{self.sqlite_path}"

    @property
    def database_url(self) -> str:
        if self.database_url_override:
            return self.database_url_override
        if self.database_type == "sqlite":
            return self.sqlite_url
        return self.postgres_url


# 全局配置实例
settings = Settings()
