"""페이징 결과 모델"""

import math
from typing import Any

from pydantic import BaseModel, Field


class PageMeta(BaseModel):
    """페이징 메타데이터"""
    total: int = Field(ge=0, description="전체 행 수")
    per_page: int = Field(ge=1, description="페이지 크기")
    current_page: int = Field(ge=1, description="요청한 페이지 번호")
    last_page: int = Field(ge=0, description="마지막 페이지 번호")


class Page(BaseModel):
    """페이징 응답"""
    data: list[dict[str, Any]]
    meta: PageMeta

    @classmethod
    def create(cls, data: list[dict[str, Any]], total: int, page: int, per_page: int) -> "Page":
        last_page = math.ceil(total / per_page)
        return cls(
            data=data,
            meta=PageMeta(total=total, per_page=per_page, current_page=page, last_page=last_page),
        )
