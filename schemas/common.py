"""
schemas/common.py

- 프로젝트 전반에서 재사용할 공용 스키마 모음
- Pydantic v2 기준
- 포함 내용:
  1) 에러 상세: ErrorDetail
  2) 서비스 결과 타입: Ok[T] / Err  (success/data/error 대신 태그로 구분)
  3) 페이지네이션 메타: Pagination, MetaInfo, make_meta()
"""

from __future__ import annotations

from math import ceil
from typing import Generic, Literal, Optional, TypeVar, Union

from pydantic import BaseModel, Field, ConfigDict


# =========================================================
# 1) 에러 응답 표준
# =========================================================

class ErrorDetail(BaseModel):
    """에러 코드/메시지를 담는 최소 단위"""
    code: str = Field(..., description="에러 식별 코드 (예: FORBIDDEN, DUPLICATE_REQUEST)")
    message: str = Field(..., description="사용자에게 그대로 보여줄 메시지")


# =========================================================
# 2) 서비스 결과 타입 (Ok / Err)
# =========================================================

T = TypeVar("T")


class Ok(BaseModel, Generic[T]):
    """성공 결과. data에 실제 payload, message는 화면 표시용(선택)"""
    ok: Literal[True] = True
    data: T
    message: Optional[str] = None


class Err(BaseModel):
    """실패 결과. 예외 대신 값으로 반환되어 호출자가 그대로 사용자에게 노출"""
    ok: Literal[False] = False
    error: ErrorDetail

    @classmethod
    def of(cls, code: str, message: str) -> "Err":
        return cls(error=ErrorDetail(code=code, message=message))

    @property
    def code(self) -> str:
        return self.error.code

    @property
    def message(self) -> str:
        return self.error.message


Result = Union[Ok, Err]


# =========================================================
# 3) 페이지네이션 요청/메타
# =========================================================

class Pagination(BaseModel):
    """
    목록 조회 시 공통으로 쓰는 페이징 파라미터
    - page: 1부터 시작
    - limit: 1~100
    """
    page: int = Field(1, ge=1, description="현재 페이지(1부터 시작)")
    limit: int = Field(10, ge=1, le=100, description="페이지당 항목 수")

    model_config = ConfigDict(extra="ignore")


class MetaInfo(BaseModel):
    """
    목록 응답에 포함시키는 메타 정보
    - total: 전체 개수
    - page/limit: 현재 페이지와 크기
    - total_pages: 총 페이지 수 (total=0이면 0)
    """
    total: int = Field(..., ge=0)
    page: int = Field(..., ge=1)
    limit: int = Field(..., ge=1)
    total_pages: int = Field(..., ge=0)

    model_config = ConfigDict(extra="ignore")


def make_meta(total: int, page: int, limit: int) -> MetaInfo:
    """페이징 메타 계산 (total_pages = ceil(total / limit))"""
    total_pages = ceil(total / max(1, limit))
    return MetaInfo(total=total, page=page, limit=limit, total_pages=total_pages)
