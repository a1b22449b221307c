"""
CODING API 层 - 原子能力封装

该模块提供 CODING Open API 的原子接口封装，每个方法对应一个后端 Action。

- UserAPI: 当前用户 (DescribeCodingCurrentUser)
- ProjectAPI: 用户项目列表 (DescribeUserProjects)
- IssueAPI: 事项分页列表 (DescribeIssueListWithPage)

使用示例:
    from src.providers.coding.api import UserAPI, ProjectAPI

    user = await UserAPI().get_current_user()
    projects = await ProjectAPI().list_user_projects(user.id)
"""

from .user import UserAPI
from .project import ProjectAPI
from .issue import IssueAPI, MAX_PAGE_SIZE

__all__ = [
    "UserAPI",
    "ProjectAPI",
    "IssueAPI",
    "MAX_PAGE_SIZE",
]
