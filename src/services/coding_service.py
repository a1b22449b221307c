import asyncio
import logging
from typing import Any, Awaitable, Callable, List, Optional, Sequence

from src.core.config import settings
from src.core.errors import InvalidArgumentsError
from src.providers.coding.api import IssueAPI, ProjectAPI, UserAPI
from src.providers.coding.api.issue import (
    ISSUE_TYPE_ALL,
    ISSUE_TYPE_DEFECT,
    SORT_BY_CODE,
    SORT_BY_UPDATED_AT,
    SORT_DESC,
    clamp_page_size,
)
from src.schemas.coding import IssuePage, Project, User
from src.services.aggregator import (
    SUMMARY_PROJECT_LIMIT,
    DefectReport,
    IssueStatistics,
    ProjectResult,
    WorkSummary,
    build_defect_report,
    build_work_summary,
    compute_issue_statistics,
)

logger = logging.getLogger(__name__)


class CodingService:
    """
    CODING 查询服务 (Application Layer)
    负责参数校验、组合原子 API 调用，以及多项目查询的扇出与失败隔离。
    """

    def __init__(
        self,
        user_api: Optional[UserAPI] = None,
        project_api: Optional[ProjectAPI] = None,
        issue_api: Optional[IssueAPI] = None,
        concurrency: Optional[int] = None,
    ):
        self.user_api = user_api or UserAPI()
        self.project_api = project_api or ProjectAPI()
        self.issue_api = issue_api or IssueAPI()
        self.concurrency = max(1, concurrency or settings.FANOUT_CONCURRENCY)

    async def get_current_user(self) -> User:
        return await self.user_api.get_current_user()

    async def list_projects(
        self, user_id: Optional[int], project_name: Optional[str] = None
    ) -> List[Project]:
        """
        获取指定用户的项目列表

        Raises:
            InvalidArgumentsError: user_id 缺失或为 0
        """
        if not user_id:
            raise InvalidArgumentsError("UserId 参数是必填的")
        return await self.project_api.list_user_projects(user_id, project_name or "")

    async def list_current_user_projects(
        self, project_name: Optional[str] = None
    ) -> List[Project]:
        user = await self.get_current_user()
        return await self.list_projects(user.id, project_name)

    async def get_project_issues(
        self,
        project_name: Optional[str],
        page_number: int = 1,
        page_size: int = 100,
        issue_type: str = ISSUE_TYPE_ALL,
    ) -> tuple[IssuePage, IssueStatistics]:
        """
        获取单个项目的事项并统计

        Raises:
            InvalidArgumentsError: 项目名称为空，或分页参数小于 1
        """
        if not project_name:
            raise InvalidArgumentsError("ProjectName 参数是必填的")
        if page_number < 1:
            raise InvalidArgumentsError(f"pageNumber 必须大于 0，当前值: {page_number}")
        if page_size < 1:
            raise InvalidArgumentsError(f"pageSize 必须大于 0，当前值: {page_size}")

        page = await self.issue_api.list_issues(
            project_name,
            page_number=page_number,
            page_size=clamp_page_size(page_size),
            issue_type=issue_type or ISSUE_TYPE_ALL,
            sort_key=SORT_BY_CODE,
            sort_value=SORT_DESC,
        )
        return page, compute_issue_statistics(page.items)

    async def aggregate_defects(
        self, page_size: int = 50, include_completed: bool = False
    ) -> DefectReport:
        """
        汇总当前用户所有项目的缺陷

        每个项目只拉取一页（按更新时间倒序）；单个项目失败时跳过并继续。
        """
        if page_size < 1:
            raise InvalidArgumentsError(f"pageSize 必须大于 0，当前值: {page_size}")
        page_size = clamp_page_size(page_size)
        user = await self.get_current_user()
        projects = await self.list_projects(user.id)
        logger.info(
            "Aggregating defects: user=%d, projects=%d, page_size=%d, include_completed=%s",
            user.id,
            len(projects),
            page_size,
            include_completed,
        )

        async def fetch_defects(project: Project):
            page = await self.issue_api.list_issues(
                project.name,
                page_number=1,
                page_size=page_size,
                issue_type=ISSUE_TYPE_DEFECT,
                sort_key=SORT_BY_UPDATED_AT,
                sort_value=SORT_DESC,
            )
            return page.items

        results = await self._fan_out(projects, fetch_defects)
        report = build_defect_report(user, results, include_completed)
        logger.info(
            "Defect report ready: total=%d, active=%d, completed=%d, skipped=%d",
            report.total,
            report.active,
            report.completed,
            len(report.skipped_projects),
        )
        return report

    async def summarize(self) -> WorkSummary:
        """
        当前用户的工作概览

        只查询前 10 个项目，每个项目请求 1 条记录以读取 TotalCount。
        """
        user = await self.get_current_user()
        projects = await self.list_projects(user.id)

        async def fetch_total(project: Project):
            page = await self.issue_api.list_issues(
                project.name,
                page_number=1,
                page_size=1,
                issue_type=ISSUE_TYPE_ALL,
                sort_key=SORT_BY_CODE,
                sort_value=SORT_DESC,
            )
            return page.total_count

        results = await self._fan_out(projects[:SUMMARY_PROJECT_LIMIT], fetch_total)
        return build_work_summary(user, len(projects), results)

    async def _fan_out(
        self,
        projects: Sequence[Project],
        fetch: Callable[[Project], Awaitable[Any]],
    ) -> List[ProjectResult]:
        """
        对每个项目执行 fetch，单个项目的异常被捕获为该项目的结果

        并发数受 self.concurrency 限制；返回顺序与 projects 一致。
        """
        semaphore = asyncio.Semaphore(self.concurrency)

        async def run(project: Project) -> ProjectResult:
            async with semaphore:
                try:
                    return ProjectResult(project, value=await fetch(project))
                except Exception as e:
                    logger.warning(
                        "Fetch failed for project %s: %s", project.name, e
                    )
                    return ProjectResult(project, error=e)

        return list(await asyncio.gather(*(run(p) for p in projects)))
