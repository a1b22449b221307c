"""
工具分发器 - 工具名称到处理函数的封闭映射

MCP 通道由 FastMCP 负责路由；HTTP 包装器和其他非 MCP 调用方通过 dispatch() 调用。
ToolName 是唯一的工具名称来源，注册表必须与其完全一致。
"""

import inspect
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Tuple

from src.core.errors import InvalidArgumentsError, MethodNotFoundError

logger = logging.getLogger(__name__)


class ToolName(str, Enum):
    GET_CURRENT_USER = "get_current_user"
    GET_USER_PROJECTS = "get_user_projects"
    GET_PROJECT_ISSUES = "get_project_issues"
    GET_CURRENT_USER_PROJECTS = "get_current_user_projects"
    GET_MY_DEFECTS = "get_my_defects"
    GET_USER_SUMMARY = "get_user_summary"


@dataclass(frozen=True)
class ToolDefinition:
    """工具定义"""

    name: ToolName
    description: str
    func: Callable[..., Awaitable[str]]
    required: Tuple[str, ...] = ()


# 参数类型归一化（HTTP 调用方可能把数字和布尔值传成字符串）
_INT_ARGUMENTS = frozenset({"userId", "pageNumber", "pageSize"})
_BOOL_ARGUMENTS = frozenset({"includeCompleted"})


def _build_registry() -> dict[ToolName, ToolDefinition]:
    """构建工具注册表（延迟导入，避免循环依赖）"""
    from src.mcp_server import (
        get_current_user,
        get_current_user_projects,
        get_my_defects,
        get_project_issues,
        get_user_projects,
        get_user_summary,
    )

    registry = {
        ToolName.GET_CURRENT_USER: ToolDefinition(
            name=ToolName.GET_CURRENT_USER,
            description="获取当前用户信息",
            func=get_current_user,
        ),
        ToolName.GET_USER_PROJECTS: ToolDefinition(
            name=ToolName.GET_USER_PROJECTS,
            description="获取指定用户的项目列表",
            func=get_user_projects,
            required=("userId",),
        ),
        ToolName.GET_PROJECT_ISSUES: ToolDefinition(
            name=ToolName.GET_PROJECT_ISSUES,
            description="获取指定项目的需求和缺陷统计信息",
            func=get_project_issues,
            required=("projectName",),
        ),
        ToolName.GET_CURRENT_USER_PROJECTS: ToolDefinition(
            name=ToolName.GET_CURRENT_USER_PROJECTS,
            description="获取当前用户的项目列表（自动获取当前用户ID）",
            func=get_current_user_projects,
        ),
        ToolName.GET_MY_DEFECTS: ToolDefinition(
            name=ToolName.GET_MY_DEFECTS,
            description="获取当前用户名下所有项目的缺陷列表和统计信息",
            func=get_my_defects,
        ),
        ToolName.GET_USER_SUMMARY: ToolDefinition(
            name=ToolName.GET_USER_SUMMARY,
            description="获取用户完整工作概览",
            func=get_user_summary,
        ),
    }

    missing = set(ToolName) - set(registry)
    if missing:
        raise RuntimeError(f"工具注册表缺少: {sorted(m.value for m in missing)}")
    return registry


_tool_registry: Optional[dict[ToolName, ToolDefinition]] = None


def get_tool_registry() -> dict[ToolName, ToolDefinition]:
    """获取工具注册表（带缓存）"""
    global _tool_registry
    if _tool_registry is None:
        _tool_registry = _build_registry()
    return _tool_registry


def resolve_tool(tool_name: str) -> ToolDefinition:
    """
    按名称查找工具

    Raises:
        MethodNotFoundError: 未知的工具名称
    """
    try:
        name = ToolName(tool_name)
    except ValueError:
        raise MethodNotFoundError(tool_name) from None
    return get_tool_registry()[name]


def _normalize_arguments(arguments: dict[str, Any]) -> dict[str, Any]:
    normalized = {}
    for key, value in arguments.items():
        if key in _INT_ARGUMENTS and isinstance(value, str) and value.strip():
            try:
                value = int(value)
            except ValueError:
                raise InvalidArgumentsError(f"{key} 必须是整数，当前值: {value}") from None
        elif key in _BOOL_ARGUMENTS and isinstance(value, str):
            lowered = value.strip().lower()
            if lowered not in ("true", "false"):
                raise InvalidArgumentsError(f"{key} 必须是 true 或 false，当前值: {value}")
            value = lowered == "true"
        normalized[key] = value
    return normalized


async def dispatch(tool_name: str, arguments: Optional[dict[str, Any]] = None) -> str:
    """
    校验参数并调用工具

    Args:
        tool_name: 工具名称
        arguments: 工具参数（参数名与 MCP schema 一致）

    Returns:
        工具返回的文本

    Raises:
        MethodNotFoundError: 未知的工具名称
        InvalidArgumentsError: 缺少必填参数
    """
    tool = resolve_tool(tool_name)
    arguments = {k: v for k, v in (arguments or {}).items() if v is not None}

    missing = [name for name in tool.required if name not in arguments]
    if missing:
        raise InvalidArgumentsError(f"缺少必填参数: {', '.join(missing)}")

    accepted = inspect.signature(tool.func).parameters
    unknown = sorted(name for name in arguments if name not in accepted)
    if unknown:
        raise InvalidArgumentsError(f"不支持的参数: {', '.join(unknown)}")

    logger.info("Dispatching tool %s with args=%s", tool.name.value, sorted(arguments))
    return await tool.func(**_normalize_arguments(arguments))
