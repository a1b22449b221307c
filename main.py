"""
CODING MCP Server 入口点

启动前校验 API_BASE_URL / API_TOKEN，缺失时直接退出。

支持同时启动:
1. MCP Server (Stdio模式，供 Claude Desktop / Cursor 等调用) - 运行在主进程
2. HTTP Server (API模式，供 n8n 等调用) - 运行在子进程，可通过 ENABLE_HTTP_SERVER 关闭
"""

import logging
import multiprocessing
import sys
from multiprocessing.synchronize import Event

from src.core.config import require_settings, settings

logger = logging.getLogger(__name__)

# HTTP 服务启动超时时间（秒）
HTTP_STARTUP_TIMEOUT = 5.0


def start_http_service(ready_event: Event | None = None):
    """
    在独立进程中启动 HTTP 服务

    Args:
        ready_event: 可选的 Event 对象，用于通知主进程服务已就绪
    """
    from src.http_server import main as run_http_server

    try:
        # uvicorn.run 是阻塞的，只能在启动前标记就绪
        if ready_event is not None:
            ready_event.set()
        run_http_server()
    except Exception as e:
        # stdout 是 MCP 的通信通道
        sys.stderr.write(f"HTTP Server process failed: {e}\n")


def main():
    """主入口"""
    require_settings()

    from src.mcp_server import main as run_mcp_server

    http_process = None
    if settings.ENABLE_HTTP_SERVER:
        http_ready = multiprocessing.Event()
        http_process = multiprocessing.Process(
            target=start_http_service,
            args=(http_ready,),
            name="Coding-HTTP-Server",
        )
        http_process.daemon = True
        http_process.start()

        if not http_ready.wait(timeout=HTTP_STARTUP_TIMEOUT):
            sys.stderr.write(
                f"警告: HTTP Server 未能在 {HTTP_STARTUP_TIMEOUT} 秒内启动，继续启动 MCP Server\n"
            )
        if not http_process.is_alive():
            sys.stderr.write("警告: HTTP Server 进程已退出，可能启动失败\n")

    # MCP Server 必须运行在主进程以正确处理标准输入输出 (Stdio)
    try:
        run_mcp_server()
    except KeyboardInterrupt:
        pass
    except Exception as e:
        logger.critical(f"MCP Server crashed: {e}", exc_info=True)
    finally:
        if http_process is not None and http_process.is_alive():
            http_process.terminate()
            http_process.join(timeout=1.0)


if __name__ == "__main__":
    # 显式使用 spawn，子进程拥有全新的内存空间
    try:
        multiprocessing.set_start_method("spawn")
    except RuntimeError:
        pass

    main()
