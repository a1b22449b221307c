"""
HTTP API 包装器 - 将 MCP 工具包装成 HTTP 服务供 n8n 等调用

启动方式:
    python -m src.http_server

API 端点:
    POST /call_tool
    请求体: {"tool_name": "get_current_user", "parameters": {...}}
    返回: {"success": true, "data": "<工具返回的文本>"}
"""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from fastapi import FastAPI, HTTPException
from mcp.server.fastmcp.exceptions import ToolError
from pydantic import BaseModel

from src.core.config import require_settings, settings
from src.core.errors import InvalidArgumentsError, MethodNotFoundError
from src.dispatcher import dispatch, get_tool_registry

# =============================================================================
# 日志配置：Stderr + File
# =============================================================================
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(log_dir: Path = Path("log")) -> None:
    """将 root 和 uvicorn 的日志统一输出到 stderr 和 log/agent.log"""
    log_dir.mkdir(exist_ok=True)
    formatter = logging.Formatter(LOG_FORMAT)

    # Stderr Handler (不污染 stdout)
    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(formatter)

    file_handler = logging.FileHandler(log_dir / "agent.log", encoding="utf-8")
    file_handler.setFormatter(formatter)

    logging.basicConfig(
        level=settings.get_log_level(),
        handlers=[stderr_handler, file_handler],
        force=True,
    )
    for logger_name in ["uvicorn", "uvicorn.error", "uvicorn.access"]:
        logger_obj = logging.getLogger(logger_name)
        logger_obj.handlers = [stderr_handler, file_handler]
        logger_obj.propagate = False  # 防止双重打印


logger = logging.getLogger(__name__)


class ToolCallRequest(BaseModel):
    """工具调用请求模型"""

    tool_name: str
    parameters: dict[str, Any] = {}


class ToolCallResponse(BaseModel):
    """工具调用响应模型"""

    success: bool
    data: Any = None
    error: str | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    logger.info("Starting HTTP wrapper for MCP Server")
    yield
    logger.info("Shutting down HTTP wrapper")


app = FastAPI(
    title="CODING MCP Server HTTP Wrapper",
    description="将 CODING MCP 工具包装成 HTTP API 供外部调用",
    version="1.0.0",
    lifespan=lifespan,
)


@app.post("/call_tool", response_model=ToolCallResponse)
async def call_tool(request: ToolCallRequest):
    """调用 MCP 工具的 HTTP 接口"""
    logger.info("Calling tool over HTTP: %s", request.tool_name)
    try:
        result = await dispatch(request.tool_name, request.parameters)
        return ToolCallResponse(success=True, data=result)
    except MethodNotFoundError as e:
        allowed_tools = [name.value for name in get_tool_registry()]
        raise HTTPException(
            status_code=404,
            detail=f"不支持的工具: {e.tool_name}。支持的工具: {allowed_tools}",
        )
    except InvalidArgumentsError as e:
        logger.warning("Validation error: %s", e)
        raise HTTPException(status_code=400, detail=str(e))
    except ToolError as e:
        # 工具内部已记录日志
        return ToolCallResponse(success=False, error=str(e))
    except Exception as e:
        logger.error("Internal error calling %s: %s", request.tool_name, e, exc_info=True)
        return ToolCallResponse(success=False, error="调用工具失败: 系统内部错误")


@app.get("/health")
async def health_check():
    """健康检查接口"""
    return {"status": "healthy", "service": "coding-mcp-http-wrapper"}


@app.get("/tools")
async def list_available_tools():
    """获取可用工具列表"""
    registry = get_tool_registry()
    tools = [
        {
            "name": tool_def.name.value,
            "description": tool_def.description,
            "required": list(tool_def.required),
        }
        for tool_def in registry.values()
    ]

    return {"tools": tools, "count": len(tools)}


def main():
    """启动 HTTP 包装器服务器"""
    import uvicorn

    require_settings()
    configure_logging()

    # 强制将 stdout 重定向到 stderr，防止任何库（如 uvicorn）污染 stdout
    original_stdout = sys.stdout
    sys.stdout = sys.stderr

    logger.info(
        "Starting HTTP wrapper server on http://%s:%d", settings.HTTP_HOST, settings.HTTP_PORT
    )

    try:
        # log_config=None: 沿用上面配置好的 logging
        uvicorn.run(
            "src.http_server:app",
            host=settings.HTTP_HOST,
            port=settings.HTTP_PORT,
            reload=False,
            log_config=None,
        )
    finally:
        sys.stdout = original_stdout


if __name__ == "__main__":
    main()
