"""
ProjectAPI - 项目维度原子能力层

API: POST /?Action=DescribeUserProjects
"""

import logging
from typing import List, Optional

from pydantic import ValidationError

from src.core.coding_client import CodingClient, get_coding_client
from src.core.errors import BackendError
from src.schemas.coding import Project

logger = logging.getLogger(__name__)

ACTION_USER_PROJECTS = "DescribeUserProjects"


class ProjectAPI:
    """CODING 项目 API 封装"""

    def __init__(self, client: Optional[CodingClient] = None):
        self.client = client or get_coding_client()

    async def list_user_projects(
        self, user_id: int, project_name: str = ""
    ) -> List[Project]:
        """
        获取用户的项目列表

        Args:
            user_id: 用户 ID
            project_name: 项目名称过滤条件，空字符串表示不过滤（过滤语义由后端决定）

        Returns:
            项目列表，保持后端返回顺序

        Raises:
            BackendError: 请求失败或响应格式错误
        """
        payload = {"UserId": user_id, "ProjectName": project_name or ""}

        logger.debug(
            "Listing projects: user_id=%s, has_filter=%s", user_id, bool(project_name)
        )
        data = await self.client.call(ACTION_USER_PROJECTS, payload)

        raw_projects = data.get("ProjectList") or []
        if not isinstance(raw_projects, list):
            raise BackendError(
                "获取项目列表失败: ProjectList 不是列表", action=ACTION_USER_PROJECTS
            )

        try:
            projects = [Project.model_validate(p) for p in raw_projects]
        except ValidationError as e:
            raise BackendError(
                f"获取项目列表失败: 项目数据格式错误 ({e.error_count()} 处)",
                action=ACTION_USER_PROJECTS,
            ) from e

        logger.info("Retrieved %d projects for user %s", len(projects), user_id)
        return projects
