"""
文本报告渲染

每个工具的结果都是一段中文纯文本，供 LLM 直接阅读。
"""

from datetime import datetime
from typing import List

from src.schemas.coding import IssuePage, Project, User
from src.services.aggregator import (
    DEFECT_PREVIEW_LIMIT,
    DefectReport,
    IssueStatistics,
    WorkSummary,
)

ISSUE_PREVIEW_LIMIT = 5

_PRIORITY_LABELS = (
    ("0", "最高（0级）"),
    ("1", "高（1级）"),
    ("2", "中（2级）"),
    ("3", "低（3级）"),
    ("4", "最低（4级）"),
)


def format_date(timestamp_ms: int) -> str:
    """毫秒时间戳 -> 本地日期"""
    if not timestamp_ms:
        return "-"
    try:
        return datetime.fromtimestamp(timestamp_ms / 1000).strftime("%Y/%m/%d")
    except (ValueError, OverflowError, OSError):
        return "-"


def _status_label(is_active: bool) -> str:
    return "正常" if is_active else "禁用"


def render_current_user(user: User) -> str:
    return (
        "当前用户信息：\n"
        f"ID: {user.id}\n"
        f"姓名: {user.name}\n"
        f"邮箱: {user.email}\n"
        f"电话: {user.phone}\n"
        f"状态: {_status_label(user.is_active)}"
    )


def render_projects(projects: List[Project]) -> str:
    entries = [
        f"{index}. {project.display_name} ({project.name})\n"
        f"   描述: {project.description or '无'}\n"
        f"   状态: {_status_label(project.is_active)}\n"
        f"   创建时间: {format_date(project.created_at)}"
        for index, project in enumerate(projects, start=1)
    ]
    return f"用户项目列表 (共 {len(projects)} 个项目)：\n\n" + "\n\n".join(entries)


def render_project_issues(
    project_name: str, page: IssuePage, stats: IssueStatistics
) -> str:
    preview = "\n\n".join(
        f"{index}. [{issue.type}] {issue.name}\n"
        f"   状态: {issue.status_name}\n"
        f"   优先级: {issue.priority}\n"
        f"   创建时间: {format_date(issue.created_at)}"
        for index, issue in enumerate(page.items[:ISSUE_PREVIEW_LIMIT], start=1)
    )
    return (
        f'项目 "{project_name}" 的问题统计：\n\n'
        "📊 问题类型统计：\n"
        f"- 用户故事/需求 (REQUIREMENT): {stats.type_counts['REQUIREMENT']}\n"
        f"- 缺陷 (DEFECT): {stats.type_counts['DEFECT']}\n"
        f"- 任务 (MISSION): {stats.type_counts['MISSION']}\n"
        f"- 总计: {stats.total}\n\n"
        "📈 状态统计：\n"
        f"- 已完成: {stats.completed}\n"
        f"- 进行中: {stats.in_progress}\n"
        f"- 待处理: {stats.pending}\n\n"
        f"📝 最近{ISSUE_PREVIEW_LIMIT}个问题：\n"
        f"{preview or '暂无问题'}\n\n"
        f"总页数: {page.total_pages}, 总数量: {page.total_count}"
    )


def render_defect_report(report: DefectReport) -> str:
    priorities = "\n".join(
        f"- {label}: {report.priority_counts[level]}"
        for level, label in _PRIORITY_LABELS
    )
    projects = "\n".join(
        f"{name}: {count} 个" for name, count in report.project_counts.items()
    )
    recent = "\n\n".join(
        f"{index}. 【{tagged.issue.priority}级】{tagged.issue.name}\n"
        f"   项目: {tagged.project_display_name}\n"
        f"   状态: {tagged.issue.status_name}\n"
        f"   更新时间: {format_date(tagged.issue.updated_at)}"
        for index, tagged in enumerate(report.recent, start=1)
    )
    filter_note = "" if report.include_completed else "（已过滤已完成）"
    return (
        f"🐛 {report.user.name} 的缺陷总览\n\n"
        "📊 统计信息：\n"
        f"- 总缺陷数: {report.total}\n"
        f"- 活跃缺陷: {report.active}\n"
        f"- 已完成缺陷: {report.completed}\n"
        f"- 当前显示: {report.displayed_count} 个{filter_note}\n\n"
        "🎯 优先级分布：\n"
        f"{priorities}\n\n"
        "📋 项目分布：\n"
        f"{projects or '暂无缺陷'}\n\n"
        f"🔍 最近更新的{DEFECT_PREVIEW_LIMIT}个缺陷：\n"
        f"{recent or '暂无缺陷'}\n\n"
        "💡 提示: 使用 includeCompleted=true 可以查看包含已完成的缺陷"
    )


def render_work_summary(summary: WorkSummary) -> str:
    lines = [
        "👤 用户信息：",
        f"姓名: {summary.user.name}",
        f"邮箱: {summary.user.email}",
        f"项目总数: {summary.project_count}",
        "",
        "📋 项目工作概览：",
    ]
    for entry in summary.project_counts:
        if entry.failed:
            lines.append(f"{entry.project.display_name}: 获取失败")
        else:
            lines.append(f"{entry.project.display_name}: {entry.count} 个问题")

    lines += [
        "",
        "📊 工作总结：",
        f"- 管理项目: {summary.project_count} 个",
        f"- 问题总数: {summary.total_issues} 个（仅统计前{summary.project_limit}个项目）",
        f"- 平均每项目: {summary.average_per_project} 个问题",
    ]
    return "\n".join(lines)
