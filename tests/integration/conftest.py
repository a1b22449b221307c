"""
Integration Test Configuration
集成测试配置 - 使用 respx 模拟 CODING Open API

FakeCoding 按请求中的 Action 参数分发，记录每次请求体，便于断言线上格式。
"""

import json
from typing import Any, Callable, Dict, List

import httpx
import pytest
import respx

from tests.unit.conftest import project_payload, user_payload


class FakeCoding:
    """内存中的 CODING 后端"""

    def __init__(self):
        self.user: Dict[str, Any] = user_payload()
        self.projects: List[Dict[str, Any]] = []
        # 项目名 -> 事项列表；项目名 -> 失败状态码
        self.issues: Dict[str, List[Dict[str, Any]]] = {}
        self.failing: Dict[str, int] = {}
        self.requests: List[Dict[str, Any]] = []

    def add_project(self, name: str, issues=None, fail_with: int = 0, **overrides):
        self.projects.append(project_payload(name, **overrides))
        self.issues[name] = issues or []
        if fail_with:
            self.failing[name] = fail_with

    def calls(self, action: str) -> List[Dict[str, Any]]:
        return [r["body"] for r in self.requests if r["action"] == action]

    def handle(self, request: httpx.Request) -> httpx.Response:
        action = request.url.params.get("Action")
        body = json.loads(request.content or b"{}")
        self.requests.append(
            {"action": action, "path": request.url.path, "body": body}
        )
        handler: Callable[[Dict[str, Any]], httpx.Response] = getattr(
            self, f"_{action}", None
        )
        if handler is None:
            return httpx.Response(
                200,
                json={"Response": {"Error": {"Code": "InvalidAction", "Message": action}}},
            )
        return handler(body)

    def _DescribeCodingCurrentUser(self, body):
        return httpx.Response(200, json={"Response": {"User": self.user}})

    def _DescribeUserProjects(self, body):
        keyword = body.get("ProjectName") or ""
        projects = [p for p in self.projects if keyword in p["Name"]]
        return httpx.Response(200, json={"Response": {"ProjectList": projects}})

    def _DescribeIssueListWithPage(self, body):
        name = body["ProjectName"]
        if name in self.failing:
            return httpx.Response(self.failing[name], text="upstream error")

        issues = self.issues.get(name, [])
        if body["IssueType"] != "ALL":
            issues = [i for i in issues if i["Type"] == body["IssueType"]]
        size = int(body["PageSize"])
        number = int(body["PageNumber"])
        window = issues[(number - 1) * size : number * size]
        return httpx.Response(
            200,
            json={
                "Response": {
                    "Data": {
                        "List": window,
                        "PageNumber": number,
                        "PageSize": size,
                        "TotalCount": len(issues),
                        "TotalPage": max(1, -(-len(issues) // size)),
                    }
                }
            },
        )


@pytest.fixture
def fake_coding(coding_settings):
    backend = FakeCoding()
    with respx.mock(assert_all_called=False) as router:
        router.post(url__startswith=coding_settings.API_BASE_URL).mock(side_effect=backend.handle)
        yield backend

