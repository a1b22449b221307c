"""
IssueAPI 测试模块

测试覆盖:
1. list_issues - 请求体契约、pageSize 上限、排序参数、空列表、格式错误
"""

import pytest
from unittest.mock import AsyncMock, patch

from src.core.errors import BackendError
from src.providers.coding.api.issue import MAX_PAGE_SIZE, IssueAPI, clamp_page_size
from tests.unit.conftest import issue_payload


@pytest.fixture
def mock_client():
    """模拟 CodingClient"""
    with patch("src.providers.coding.api.issue.get_coding_client") as mock:
        client_instance = AsyncMock()
        client_instance.call_issue_list.return_value = {
            "Data": {"List": [], "TotalPage": 0, "TotalCount": 0}
        }
        mock.return_value = client_instance
        yield client_instance


@pytest.fixture
def api(mock_client):
    return IssueAPI()


def _sent_payload(mock_client) -> dict:
    return mock_client.call_issue_list.call_args[0][0]


class TestListIssues:
    @pytest.mark.asyncio
    async def test_default_request_body(self, api, mock_client):
        await api.list_issues("demo")

        assert _sent_payload(mock_client) == {
            "Conditions": [],
            "ExcludeSubTask": True,
            "IssueType": "ALL",
            "PageNumber": "1",
            "PageSize": "100",
            "ProjectName": "demo",
            "ShowSubIssues": True,
            "SortKey": "CODE",
            "SortValue": "DESC",
        }

    @pytest.mark.asyncio
    async def test_custom_type_and_sort(self, api, mock_client):
        await api.list_issues(
            "demo",
            page_number=3,
            page_size=20,
            issue_type="DEFECT",
            sort_key="UPDATED_AT",
        )

        payload = _sent_payload(mock_client)
        assert payload["IssueType"] == "DEFECT"
        assert payload["PageNumber"] == "3"
        assert payload["PageSize"] == "20"
        assert payload["SortKey"] == "UPDATED_AT"
        assert payload["SortValue"] == "DESC"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("requested", [501, 1000, 10**6])
    async def test_page_size_capped(self, api, mock_client, requested):
        await api.list_issues("demo", page_size=requested)

        assert _sent_payload(mock_client)["PageSize"] == str(MAX_PAGE_SIZE)

    @pytest.mark.asyncio
    async def test_page_size_at_limit_unchanged(self, api, mock_client):
        await api.list_issues("demo", page_size=500)

        assert _sent_payload(mock_client)["PageSize"] == "500"

    @pytest.mark.asyncio
    async def test_parses_page(self, api, mock_client):
        mock_client.call_issue_list.return_value = {
            "Data": {
                "List": [
                    issue_payload(3, "REQUIREMENT", "已完成", "1"),
                    issue_payload(2, "DEFECT", "处理中", 0),
                ],
                "TotalPage": 4,
                "TotalCount": 7,
                "PageNumber": 1,
                "PageSize": 2,
            }
        }

        page = await api.list_issues("demo", page_size=2)

        assert [i.code for i in page.items] == [3, 2]
        assert page.items[1].priority == "0"
        assert page.total_pages == 4
        assert page.total_count == 7

    @pytest.mark.asyncio
    async def test_null_list_is_empty(self, api, mock_client):
        mock_client.call_issue_list.return_value = {
            "Data": {"List": None, "TotalPage": 0, "TotalCount": 0}
        }

        page = await api.list_issues("demo")

        assert page.items == []

    @pytest.mark.asyncio
    async def test_missing_data_raises(self, api, mock_client):
        mock_client.call_issue_list.return_value = {"RequestId": "x"}

        with pytest.raises(BackendError):
            await api.list_issues("demo")


def test_clamp_page_size():
    assert clamp_page_size(50) == 50
    assert clamp_page_size(500) == 500
    assert clamp_page_size(501) == 500
