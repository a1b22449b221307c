"""
UserAPI - 用户相关原子能力层

API: POST /?Action=DescribeCodingCurrentUser
"""

import logging
from typing import Optional

from pydantic import ValidationError

from src.core.coding_client import CodingClient, get_coding_client
from src.core.errors import BackendError
from src.schemas.coding import User

logger = logging.getLogger(__name__)

ACTION_CURRENT_USER = "DescribeCodingCurrentUser"


class UserAPI:
    """CODING 用户 API 封装"""

    def __init__(self, client: Optional[CodingClient] = None):
        self.client = client or get_coding_client()

    async def get_current_user(self) -> User:
        """
        获取当前令牌对应的用户

        Returns:
            User

        Raises:
            BackendError: 请求失败或响应中没有合法的 User
        """
        data = await self.client.call(ACTION_CURRENT_USER, {})

        raw_user = data.get("User")
        if not isinstance(raw_user, dict):
            raise BackendError("获取当前用户失败: 响应缺少 User", action=ACTION_CURRENT_USER)

        try:
            user = User.model_validate(raw_user)
        except ValidationError as e:
            raise BackendError(
                f"获取当前用户失败: 用户数据格式错误 ({e.error_count()} 处)",
                action=ACTION_CURRENT_USER,
            ) from e

        logger.info("Resolved current user: id=%d", user.id)
        return user
