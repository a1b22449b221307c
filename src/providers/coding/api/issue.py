"""
IssueAPI - 事项原子能力层

API: POST /DescribeIssueListWithPage?Action=DescribeIssueListWithPage

注意: PageNumber / PageSize 以字符串形式传递
"""

import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError

from src.core.coding_client import CodingClient, get_coding_client
from src.core.errors import BackendError
from src.schemas.coding import IssuePage

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 500

# 事项类型
ISSUE_TYPE_ALL = "ALL"
ISSUE_TYPE_DEFECT = "DEFECT"

# 排序
SORT_BY_CODE = "CODE"
SORT_BY_UPDATED_AT = "UPDATED_AT"
SORT_DESC = "DESC"


def clamp_page_size(page_size: int) -> int:
    """每页数量超过上限时静默修正为上限"""
    return min(page_size, MAX_PAGE_SIZE)


class IssueAPI:
    """CODING 事项 API 封装"""

    def __init__(self, client: Optional[CodingClient] = None):
        self.client = client or get_coding_client()

    async def list_issues(
        self,
        project_name: str,
        page_number: int = 1,
        page_size: int = 100,
        issue_type: str = ISSUE_TYPE_ALL,
        sort_key: str = SORT_BY_CODE,
        sort_value: str = SORT_DESC,
    ) -> IssuePage:
        """
        分页获取项目事项（不含子任务，包含子事项）

        Args:
            project_name: 项目标识 (Project.name)
            page_number: 页码
            page_size: 每页数量，超过 500 时按 500 处理
            issue_type: ALL / REQUIREMENT / DEFECT / MISSION / EPIC
            sort_key: 排序字段，CODE 或 UPDATED_AT
            sort_value: 排序方向

        Returns:
            IssuePage

        Raises:
            BackendError: 请求失败或响应格式错误
        """
        page_size = clamp_page_size(page_size)
        payload: Dict[str, Any] = {
            "Conditions": [],
            "ExcludeSubTask": True,
            "IssueType": issue_type,
            "PageNumber": str(page_number),
            "PageSize": str(page_size),
            "ProjectName": project_name,
            "ShowSubIssues": True,
            "SortKey": sort_key,
            "SortValue": sort_value,
        }

        logger.debug(
            "Listing issues: project=%s, type=%s, page=%d/%d, sort=%s %s",
            project_name,
            issue_type,
            page_number,
            page_size,
            sort_key,
            sort_value,
        )
        data = await self.client.call_issue_list(payload)

        raw_page = data.get("Data")
        if not isinstance(raw_page, dict):
            raise BackendError(
                "获取事项列表失败: 响应缺少 Data", action="DescribeIssueListWithPage"
            )

        try:
            page = IssuePage.model_validate(raw_page)
        except ValidationError as e:
            raise BackendError(
                f"获取事项列表失败: 事项数据格式错误 ({e.error_count()} 处)",
                action="DescribeIssueListWithPage",
            ) from e

        logger.info(
            "Retrieved %d issues from %s (total: %d)",
            len(page.items),
            project_name,
            page.total_count,
        )
        return page
