from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# 状态码：1 为正常，其余视为禁用
STATUS_ACTIVE = 1


class CodingModel(BaseModel):
    # CODING 接口字段为 PascalCase，额外字段忽略以兼容后续版本
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class User(CodingModel):
    id: int = Field(alias="Id")
    name: str = Field(alias="Name")
    email: str = Field(default="", alias="Email")
    phone: str = Field(default="", alias="Phone")
    status: int = Field(default=STATUS_ACTIVE, alias="Status")

    @field_validator("email", "phone", mode="before")
    @classmethod
    def _contact_as_str(cls, value: Any) -> str:
        # 未填写的联系方式返回 null
        return value or ""

    @property
    def is_active(self) -> bool:
        return self.status == STATUS_ACTIVE


class Project(CodingModel):
    id: int = Field(alias="Id")
    name: str = Field(alias="Name")  # 项目标识，用于后续接口调用
    display_name: str = Field(alias="DisplayName")
    description: Optional[str] = Field(default=None, alias="Description")
    status: int = Field(default=STATUS_ACTIVE, alias="Status")
    created_at: int = Field(default=0, alias="CreatedAt")
    updated_at: int = Field(default=0, alias="UpdatedAt")

    @field_validator("display_name", mode="before")
    @classmethod
    def _display_name_as_str(cls, value: Any) -> Any:
        return "" if value is None else value

    @property
    def is_active(self) -> bool:
        return self.status == STATUS_ACTIVE


class Issue(CodingModel):
    code: int = Field(alias="Code")
    type: str = Field(alias="Type")
    name: str = Field(alias="Name")
    description: Optional[str] = Field(default=None, alias="Description")
    status_name: str = Field(default="", alias="IssueStatusName")
    priority: str = Field(default="", alias="Priority")
    created_at: int = Field(default=0, alias="CreatedAt")
    updated_at: int = Field(default=0, alias="UpdatedAt")

    @field_validator("priority", mode="before")
    @classmethod
    def _priority_as_str(cls, value: Any) -> str:
        # 部分接口以数字返回优先级
        if value is None:
            return ""
        return str(value)

    @field_validator("status_name", mode="before")
    @classmethod
    def _status_name_as_str(cls, value: Any) -> str:
        return value or ""


class IssuePage(CodingModel):
    """DescribeIssueListWithPage 的 Response.Data"""

    items: List[Issue] = Field(default_factory=list, alias="List")
    total_pages: int = Field(default=0, alias="TotalPage")
    total_count: int = Field(default=0, alias="TotalCount")
    page_number: int = Field(default=1, alias="PageNumber")
    page_size: int = Field(default=0, alias="PageSize")

    @field_validator("items", mode="before")
    @classmethod
    def _null_list(cls, value: Any) -> Any:
        return value or []
