"""
MCP Server - CODING 查询工具接口

提供给 LLM 调用的只读查询工具，数据来自 CODING Open API。

工具列表:
- get_current_user: 获取当前用户信息
- get_user_projects: 获取指定用户的项目列表
- get_project_issues: 获取指定项目的需求和缺陷统计
- get_current_user_projects: 获取当前用户的项目列表
- get_my_defects: 获取当前用户名下所有项目的缺陷统计
- get_user_summary: 获取用户工作概览

重要说明:
- 工具参数名（userId、projectName 等）是对外声明的 schema，保持 camelCase
- 所有工具返回一段中文文本；失败时抛出 ToolError，消息以操作名称开头
"""

import functools
import logging
import re
import sys
from pathlib import Path
from typing import Any, Callable, Optional

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError

from src.core.config import require_settings, settings
from src.core.errors import BackendError, InvalidArgumentsError
from src.services import formatters
from src.services.coding_service import CodingService


def _mask_sensitive_in_error(error_msg: str) -> str:
    """
    对错误信息中的敏感数据进行脱敏

    Args:
        error_msg: 原始错误信息

    Returns:
        脱敏后的错误信息
    """
    # Authorization: token xxx
    error_msg = re.sub(r"(?i)\btoken\s+[^\s,;\"']+", "token ***", error_msg)
    # 可能的长十六进制密钥 (32位及以上)
    error_msg = re.sub(r"[a-fA-F0-9]{32,}", "***", error_msg)
    error_msg = re.sub(
        r"(?i)(token|secret|authorization)[=:]\s*[^\s,;\"']+",
        r"\1=***",
        error_msg,
    )
    return error_msg


def _extract_safe_error_message(exc: Exception, max_length: int = 200) -> str:
    """
    从异常中提取安全的错误消息，移除堆栈跟踪

    Args:
        exc: 异常对象
        max_length: 最大返回长度

    Returns:
        安全的错误消息字符串
    """
    lines = str(exc).split("\n")
    safe_lines = []
    for line in lines:
        stripped = line.strip()
        if stripped.startswith(('File "', "Traceback", "    at ")):
            break
        safe_lines.append(line)

    result = " ".join(safe_lines[:3]).strip()
    return result[:max_length]


# 在模块级别配置日志（确保在 logger 创建前配置）
if not logging.root.handlers:
    log_dir = Path("log")
    if log_dir.exists() and log_dir.is_dir():
        logging.basicConfig(
            level=settings.get_log_level(),
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            filename=str(log_dir / "agent.log"),
            filemode="a",
            encoding="utf-8",
        )
    else:
        # stdout 是 MCP 的通信通道，日志只能写 stderr
        logging.basicConfig(
            level=settings.get_log_level(),
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            stream=sys.stderr,
        )

logger = logging.getLogger(__name__)

mcp = FastMCP("coding-simple-mcp")


def tool_errors(operation: str) -> Callable[..., Any]:
    """
    装饰器：将工具内的异常统一转换为 ToolError

    - 参数错误和后端错误：透传脱敏后的原始信息
    - 其他异常：记录完整堆栈，对外只返回 "系统内部错误"

    Args:
        operation: 操作名称，作为错误信息前缀，如 "获取用户信息"
    """

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except (BackendError, InvalidArgumentsError) as e:
                logger.error("%s失败: %s", operation, e, exc_info=True)
                safe_msg = _mask_sensitive_in_error(_extract_safe_error_message(e))
                raise ToolError(f"{operation}失败: {safe_msg}") from e
            except Exception as e:
                logger.critical("Unexpected error in %s: %s", func.__name__, e, exc_info=True)
                raise ToolError(f"{operation}失败: 系统内部错误") from e

        return wrapper

    return decorator


def _service() -> CodingService:
    return CodingService()


@mcp.tool()
@tool_errors("获取用户信息")
async def get_current_user() -> str:
    """
    获取当前用户信息。

    返回当前 API 令牌对应用户的 ID、姓名、邮箱、电话和状态。
    其他需要 userId 的工具可以先调用此工具获取 ID。
    """
    logger.info("Getting current user")
    user = await _service().get_current_user()
    return formatters.render_current_user(user)


@mcp.tool()
@tool_errors("获取项目列表")
async def get_user_projects(userId: int, projectName: str = "") -> str:
    """
    获取指定用户的项目列表。

    Args:
        userId: 用户ID（必填）。
        projectName: 项目名称（可选，用于过滤，由后端匹配）。

    Returns:
        按后端返回顺序编号的项目列表，包含显示名、项目标识、描述、状态和创建时间。

    Examples:
        get_user_projects(userId=12345)
        get_user_projects(userId=12345, projectName="demo")
    """
    logger.info("Getting projects: user_id=%s, has_filter=%s", userId, bool(projectName))
    projects = await _service().list_projects(userId, projectName)
    return formatters.render_projects(projects)


@mcp.tool()
@tool_errors("获取项目问题")
async def get_project_issues(
    projectName: str,
    pageNumber: int = 1,
    pageSize: int = 100,
    issueType: str = "ALL",
) -> str:
    """
    获取指定项目的需求和缺陷统计信息。

    Args:
        projectName: 项目名称（必填），即项目列表中括号内的项目标识。
        pageNumber: 页码，默认1。
        pageSize: 每页数量，默认100，最大500（超过时按500处理）。
        issueType: 问题类型：ALL（全部）、REQUIREMENT（需求）、DEFECT（缺陷）、
                   MISSION（任务）、EPIC（史诗），默认 ALL。

    Returns:
        类型统计、状态统计（已完成/进行中/待处理）、前5个问题预览以及总页数和总数量。
    """
    logger.info(
        "Getting project issues: project=%s, page=%s/%s, type=%s",
        projectName,
        pageNumber,
        pageSize,
        issueType,
    )
    page, stats = await _service().get_project_issues(
        projectName, pageNumber, pageSize, issueType
    )
    return formatters.render_project_issues(projectName, page, stats)


@mcp.tool()
@tool_errors("获取当前用户项目列表")
async def get_current_user_projects(projectName: str = "") -> str:
    """
    获取当前用户的项目列表（便利方法，自动获取当前用户ID）。

    Args:
        projectName: 项目名称（可选，用于过滤）。
    """
    logger.info("Getting current user projects: has_filter=%s", bool(projectName))
    projects = await _service().list_current_user_projects(projectName)
    return formatters.render_projects(projects)


@mcp.tool()
@tool_errors("获取缺陷信息")
async def get_my_defects(pageSize: int = 50, includeCompleted: bool = False) -> str:
    """
    获取当前用户名下所有项目的缺陷列表和统计信息。

    每个项目只查询一页（按更新时间倒序）。某个项目查询失败时会被跳过。

    Args:
        pageSize: 每个项目查询的缺陷数量，默认50，最大500。
        includeCompleted: 是否包含已完成的缺陷，默认false（只显示未完成的）。

    Returns:
        缺陷总数/活跃/已完成统计、优先级分布、项目分布和最近更新的10个缺陷。
    """
    logger.info(
        "Getting my defects: page_size=%s, include_completed=%s",
        pageSize,
        includeCompleted,
    )
    report = await _service().aggregate_defects(pageSize, includeCompleted)
    return formatters.render_defect_report(report)


@mcp.tool()
@tool_errors("获取用户概览")
async def get_user_summary() -> str:
    """
    获取用户完整工作概览：用户信息 + 项目列表 + 各项目的需求缺陷统计。

    只统计前10个项目；查询失败的项目会标记为 "获取失败"。
    """
    logger.info("Getting user summary")
    summary = await _service().summarize()
    return formatters.render_work_summary(summary)


def main():
    """
    MCP Server 入口点

    用于通过 uv tool install 安装后的命令行调用
    """
    require_settings()

    logger.info("Starting MCP Server (CODING)")
    logger.info("Log level: %s", settings.LOG_LEVEL)

    try:
        mcp.run()
    except KeyboardInterrupt:
        logger.info("MCP Server stopped by user")
    except Exception as e:
        logger.critical("MCP Server crashed: %s", e, exc_info=True)
        raise


if __name__ == "__main__":
    main()
