"""
错误类型

- InvalidArgumentsError: 调用方参数缺失或无效，在发起网络请求前抛出
- BackendError: 传输失败或后端返回了非预期的数据结构
- MethodNotFoundError: 调用了未声明的工具
"""

from typing import Optional


class InvalidArgumentsError(ValueError):
    """调用参数错误"""


class BackendError(Exception):
    """CODING 后端调用失败"""

    def __init__(
        self,
        message: str,
        action: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        self.action = action
        self.status_code = status_code
        super().__init__(message)


class MethodNotFoundError(LookupError):
    """未知的工具名称"""

    def __init__(self, tool_name: str):
        self.tool_name = tool_name
        super().__init__(f"Unknown tool: {tool_name}")
