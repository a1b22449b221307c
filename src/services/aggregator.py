"""
多项目汇总逻辑

纯函数，不做任何网络请求。输入为按项目顺序排列的拉取结果（成功值或异常），
输出为事项统计、缺陷报告和工作概览。
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, NamedTuple, Optional

from src.schemas.coding import Issue, Project, User

COMPLETED_STATUS = "已完成"
IN_PROGRESS_KEYWORD = "进行中"

TRACKED_ISSUE_TYPES = ("REQUIREMENT", "DEFECT", "MISSION")
PRIORITY_LEVELS = ("0", "1", "2", "3", "4")

DEFECT_PREVIEW_LIMIT = 10
SUMMARY_PROJECT_LIMIT = 10


class StatusBucket(str, Enum):
    COMPLETED = "completed"
    IN_PROGRESS = "in_progress"
    PENDING = "pending"


def is_completed(issue: Issue) -> bool:
    return issue.status_name == COMPLETED_STATUS


def classify_status(status_name: str) -> StatusBucket:
    """
    状态三分类:
    - 完全等于 "已完成" -> completed
    - 包含 "进行中" -> in_progress
    - 其他 -> pending
    """
    if status_name == COMPLETED_STATUS:
        return StatusBucket.COMPLETED
    if IN_PROGRESS_KEYWORD in status_name:
        return StatusBucket.IN_PROGRESS
    return StatusBucket.PENDING


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class ProjectResult(NamedTuple):
    """单个项目的拉取结果，value 与 error 二选一"""

    project: Project
    value: Any = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


# =============================================================================
# 单项目事项统计
# =============================================================================


@dataclass
class IssueStatistics:
    total: int = 0
    type_counts: Dict[str, int] = field(
        default_factory=lambda: {t: 0 for t in TRACKED_ISSUE_TYPES}
    )
    status_counts: Dict[StatusBucket, int] = field(
        default_factory=lambda: {b: 0 for b in StatusBucket}
    )

    @property
    def completed(self) -> int:
        return self.status_counts[StatusBucket.COMPLETED]

    @property
    def in_progress(self) -> int:
        return self.status_counts[StatusBucket.IN_PROGRESS]

    @property
    def pending(self) -> int:
        return self.status_counts[StatusBucket.PENDING]


def compute_issue_statistics(issues: Iterable[Issue]) -> IssueStatistics:
    """按类型和状态统计事项；未跟踪的类型（如 EPIC）只计入 total"""
    stats = IssueStatistics()
    for issue in issues:
        stats.total += 1
        if issue.type in stats.type_counts:
            stats.type_counts[issue.type] += 1
        stats.status_counts[classify_status(issue.status_name)] += 1
    return stats


# =============================================================================
# 跨项目缺陷报告
# =============================================================================


class TaggedDefect(NamedTuple):
    issue: Issue
    project_display_name: str


@dataclass
class DefectReport:
    user: User
    include_completed: bool = False
    total: int = 0
    active: int = 0
    completed: int = 0
    displayed_count: int = 0
    # 项目显示名 -> 展示中的缺陷数（为 0 的项目不出现）
    project_counts: Dict[str, int] = field(default_factory=dict)
    priority_counts: Dict[str, int] = field(
        default_factory=lambda: {p: 0 for p in PRIORITY_LEVELS}
    )
    recent: List[TaggedDefect] = field(default_factory=list)
    skipped_projects: List[str] = field(default_factory=list)


def build_defect_report(
    user: User,
    results: Iterable[ProjectResult],
    include_completed: bool = False,
    preview_limit: int = DEFECT_PREVIEW_LIMIT,
) -> DefectReport:
    """
    汇总各项目的缺陷拉取结果

    total/active/completed 基于每个项目未过滤的结果统计；
    项目分布、优先级分布和预览列表只使用过滤后的缺陷。
    拉取失败的项目不计入任何统计。

    Args:
        user: 当前用户
        results: 按项目顺序排列的结果，value 为该项目的缺陷列表
        include_completed: 是否展示已完成的缺陷
        preview_limit: 预览列表长度上限

    Returns:
        DefectReport
    """
    report = DefectReport(user=user, include_completed=include_completed)
    displayed: List[TaggedDefect] = []

    for result in results:
        if not result.ok:
            report.skipped_projects.append(result.project.name)
            continue

        defects: List[Issue] = result.value or []
        for defect in defects:
            report.total += 1
            if is_completed(defect):
                report.completed += 1
            else:
                report.active += 1

        visible = (
            defects if include_completed else [d for d in defects if not is_completed(d)]
        )
        if visible:
            display_name = result.project.display_name
            report.project_counts[display_name] = len(visible)
            displayed.extend(TaggedDefect(d, display_name) for d in visible)

    for tagged in displayed:
        if tagged.issue.priority in report.priority_counts:
            report.priority_counts[tagged.issue.priority] += 1

    report.displayed_count = len(displayed)
    report.recent = displayed[:preview_limit]
    return report


# =============================================================================
# 工作概览
# =============================================================================


class ProjectIssueCount(NamedTuple):
    project: Project
    count: Optional[int]  # None 表示获取失败

    @property
    def failed(self) -> bool:
        return self.count is None


@dataclass
class WorkSummary:
    user: User
    project_count: int = 0
    project_counts: List[ProjectIssueCount] = field(default_factory=list)
    total_issues: int = 0
    project_limit: int = SUMMARY_PROJECT_LIMIT

    @property
    def queried_count(self) -> int:
        return min(self.project_count, self.project_limit)

    @property
    def average_per_project(self) -> int:
        if self.project_count == 0:
            return 0
        return round_half_up(self.total_issues / self.queried_count)


def build_work_summary(
    user: User,
    project_count: int,
    results: Iterable[ProjectResult],
    project_limit: int = SUMMARY_PROJECT_LIMIT,
) -> WorkSummary:
    """汇总各项目的事项总数，失败的项目保留为失败标记且不计入总数"""
    summary = WorkSummary(
        user=user, project_count=project_count, project_limit=project_limit
    )
    for result in results:
        if result.ok:
            count = int(result.value or 0)
            summary.total_issues += count
            summary.project_counts.append(ProjectIssueCount(result.project, count))
        else:
            summary.project_counts.append(ProjectIssueCount(result.project, None))
    return summary
