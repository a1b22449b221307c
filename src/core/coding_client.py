"""
CODING Open API 异步客户端

所有接口都是 POST + JSON:
- 通用接口: POST {API_BASE_URL}/?Action=<Action>&action=<Action>，请求体同时携带 Action
- 事项分页接口: POST {API_BASE_URL}/DescribeIssueListWithPage?Action=DescribeIssueListWithPage
"""

import logging
import threading
from typing import Any, Dict, Optional

import httpx

from src.core.config import settings
from src.core.errors import BackendError

logger = logging.getLogger(__name__)

_coding_client = None
_coding_client_lock = threading.Lock()  # 线程安全锁

ISSUE_LIST_ACTION = "DescribeIssueListWithPage"


class TokenAuth(httpx.Auth):
    """
    Custom Auth for CODING Open API.
    Injects `Authorization: token <API_TOKEN>` on every request.
    """

    def __init__(self, token: Optional[str] = None):
        self._token = token

    def auth_flow(self, request: httpx.Request):
        token = self._token or settings.API_TOKEN
        if token:
            request.headers["Authorization"] = f"token {token}"
        yield request


class CodingClient:
    """
    CODING Open API 异步客户端

    特性:
    - 自动注入认证头 (Authorization: token ...)
    - 统一解析 Response 包裹层，错误统一转换为 BackendError
    - 不做自动重试
    """

    TIMEOUT = 30.0  # 秒

    def __init__(self, base_url: Optional[str] = None, token: Optional[str] = None):
        self.base_url = base_url or settings.API_BASE_URL
        if not self.base_url:
            raise ValueError("API_BASE_URL 未配置")
        logger.info("Initializing CodingClient with base_url=%s", self.base_url)
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "Accept": "application/json",
                "Content-Type": "application/json",
            },
            auth=TokenAuth(token),
            timeout=httpx.Timeout(self.TIMEOUT),
            trust_env=False,  # 禁用环境变量代理，避免 socksio 依赖问题
        )
        logger.debug("CodingClient initialized successfully")

    async def call(self, action: str, body: Optional[Dict[str, Any]] = None) -> Dict:
        """
        调用通用 Action 接口

        Args:
            action: 后端 Action 名称，如 "DescribeCodingCurrentUser"
            body: 请求体（可选）

        Returns:
            响应中的 Response 对象

        Raises:
            BackendError: 网络错误、非 2xx 状态码或响应结构异常
        """
        payload: Dict[str, Any] = {"Action": action}
        payload.update(body or {})
        return await self._post(
            "/", action, payload, params={"Action": action, "action": action}
        )

    async def call_issue_list(self, body: Dict[str, Any]) -> Dict:
        """调用事项分页接口 DescribeIssueListWithPage"""
        return await self._post(
            f"/{ISSUE_LIST_ACTION}",
            ISSUE_LIST_ACTION,
            body,
            params={"Action": ISSUE_LIST_ACTION},
        )

    async def _post(
        self,
        path: str,
        action: str,
        payload: Dict[str, Any],
        params: Dict[str, str],
    ) -> Dict:
        logger.debug("POST %s action=%s payload_keys=%s", path, action, list(payload))
        try:
            response = await self.client.post(path, json=payload, params=params)
        except httpx.HTTPError as e:
            logger.error("Request failed: action=%s, error=%s", action, e)
            raise BackendError(f"{action} 请求失败: {e}", action=action) from e

        logger.debug("Response status: %d for %s", response.status_code, action)

        if response.status_code >= 400:
            logger.error(
                "HTTP error %d for %s: %s",
                response.status_code,
                action,
                response.text[:200],
            )
            raise BackendError(
                f"{action} 请求失败: HTTP {response.status_code}",
                action=action,
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise BackendError(
                f"{action} 返回的不是合法 JSON",
                action=action,
                status_code=response.status_code,
            ) from e

        result = data.get("Response") if isinstance(data, dict) else None
        if not isinstance(result, dict):
            raise BackendError(f"{action} 响应缺少 Response 字段", action=action)

        error = result.get("Error")
        if error:
            code = error.get("Code", "Unknown") if isinstance(error, dict) else error
            message = error.get("Message", "") if isinstance(error, dict) else ""
            logger.error("Backend error for %s: code=%s, message=%s", action, code, message)
            raise BackendError(f"{action} 失败: {code} {message}".strip(), action=action)

        logger.info("Request successful: %s -> %d", action, response.status_code)
        return result

    async def close(self):
        """关闭客户端连接"""
        logger.info("Closing CodingClient connection")
        await self.client.aclose()
        logger.debug("CodingClient connection closed")


def get_coding_client() -> CodingClient:
    """
    获取全局单例客户端（线程安全）

    使用双重检查锁定模式，防止多线程/多协程并发时重复实例化。

    Returns:
        CodingClient: CODING API 客户端实例
    """
    global _coding_client

    # 快速路径：已初始化则直接返回
    if _coding_client is not None:
        return _coding_client

    # 慢路径：使用锁保护初始化
    with _coding_client_lock:
        if _coding_client is not None:
            return _coding_client

        logger.debug("Creating new CodingClient singleton instance")
        _coding_client = CodingClient()

    return _coding_client
