"""
单元测试共享数据构造

提供 CODING 接口原始数据（PascalCase）及对应模型的构造函数。
"""

from __future__ import annotations

from typing import Any

from src.schemas.coding import Issue, Project, User


def user_payload(**overrides: Any) -> dict[str, Any]:
    data = {
        "Id": 1001,
        "Name": "张三",
        "Email": "zhangsan@example.com",
        "Phone": "13800000000",
        "Status": 1,
        "GlobalKey": "zhangsan",
        "Avatar": "https://example.com/a.png",
        "NamePinYin": "zhangsan",
    }
    data.update(overrides)
    return data


def project_payload(name: str = "demo", **overrides: Any) -> dict[str, Any]:
    data = {
        "Id": sum(map(ord, name)),
        "Name": name,
        "DisplayName": f"{name}-显示名",
        "Description": f"{name} 项目",
        "Status": 1,
        "CreatedAt": 1700000000000,
        "UpdatedAt": 1700000500000,
    }
    data.update(overrides)
    return data


def issue_payload(
    code: int = 1,
    issue_type: str = "DEFECT",
    status: str = "待处理",
    priority: str = "2",
    **overrides: Any,
) -> dict[str, Any]:
    data = {
        "Code": code,
        "Type": issue_type,
        "Name": f"事项 {code}",
        "Description": "",
        "IssueStatusName": status,
        "Priority": priority,
        "CreatedAt": 1700000000000,
        "UpdatedAt": 1700000500000,
    }
    data.update(overrides)
    return data


def make_user(**overrides: Any) -> User:
    return User.model_validate(user_payload(**overrides))


def make_project(name: str = "demo", **overrides: Any) -> Project:
    return Project.model_validate(project_payload(name, **overrides))


def make_issue(
    code: int = 1,
    issue_type: str = "DEFECT",
    status: str = "待处理",
    priority: str = "2",
    **overrides: Any,
) -> Issue:
    return Issue.model_validate(
        issue_payload(code, issue_type, status, priority, **overrides)
    )
