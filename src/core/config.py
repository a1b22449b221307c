import logging
import sys
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict

# 启动前必须配置的变量
REQUIRED_SETTINGS = ("API_BASE_URL", "API_TOKEN")


class Settings(BaseSettings):
    # CODING Open API
    API_BASE_URL: str | None = None
    API_TOKEN: str | None = None  # Authorization: token <API_TOKEN>

    LOG_LEVEL: str = "INFO"

    # 多项目查询时同时在途的请求数，1 表示顺序执行
    FANOUT_CONCURRENCY: int = 1

    # HTTP 包装服务
    ENABLE_HTTP_SERVER: bool = True
    HTTP_HOST: str = "0.0.0.0"
    HTTP_PORT: int = 8002

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    def get_log_level(self) -> int:
        """将 LOG_LEVEL 字符串转换为 logging 级别，无法识别时回退到 INFO"""
        level = logging.getLevelName(self.LOG_LEVEL.strip().upper())
        return level if isinstance(level, int) else logging.INFO

    def missing_required(self) -> List[str]:
        """返回未配置（或为空）的必填变量名"""
        return [name for name in REQUIRED_SETTINGS if not getattr(self, name)]


settings = Settings()


def require_settings() -> None:
    """
    校验必填配置，缺失时输出诊断信息并退出进程

    必须在接受任何工具调用之前执行。
    """
    missing = settings.missing_required()
    if not missing:
        return

    sys.stderr.write("❌ 缺少必要的环境变量:\n")
    for name in missing:
        sys.stderr.write(f"   - {name}\n")
    sys.stderr.write("请在 MCP 客户端配置或 .env 文件中设置这些环境变量。\n")
    sys.exit(1)
