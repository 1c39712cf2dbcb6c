from datetime import date, datetime
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, ConfigDict

from schemas.common import MetaInfo, Pagination


class RequestStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


# ==========================================================
# [입력용 스키마]
# ==========================================================
class ImprovementPeriodCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    grade_reporting_period_id: int
    start_date: date
    end_date: date


class ImprovementPeriodStatusUpdate(BaseModel):
    is_active: bool


class ImprovementRequestCreate(BaseModel):
    improvement_period_id: int
    subject_id: int
    request_reason: Optional[str] = Field(default=None, max_length=1000)


class ImprovementResolve(BaseModel):
    status: Literal["approved", "rejected"]
    admin_comment: Optional[str] = Field(default=None, max_length=1000)


class ImprovementRequestFilters(Pagination):
    status: Optional[RequestStatus] = None
    improvement_period_id: Optional[int] = None
    subject_id: Optional[int] = None


# ==========================================================
# [출력용 스키마]
# ==========================================================
class ImprovementPeriodOut(BaseModel):
    id: int
    name: str
    grade_reporting_period_id: int
    grade_reporting_period_name: Optional[str] = None
    start_date: date
    end_date: date
    is_active: bool
    created_by: int
    created_by_name: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ImprovementRequestOut(BaseModel):
    id: int
    improvement_period_id: int
    improvement_period_name: Optional[str] = None
    student_id: int
    student_name: Optional[str] = None
    subject_id: int
    subject_name: Optional[str] = None
    request_reason: Optional[str] = None
    status: RequestStatus
    admin_comment: Optional[str] = None
    reviewed_by: Optional[int] = None
    reviewed_by_name: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ImprovementRequestPage(BaseModel):
    requests: List[ImprovementRequestOut]
    meta: MetaInfo


class ImprovementSubjectOut(BaseModel):
    """신청 가능한 과목 (학생이 현재 반에서 점수를 가진 과목)"""
    id: int
    code: str
    name: str
    category: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
