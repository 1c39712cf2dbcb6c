from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from config.settings import settings
from database.db import get_db
from dependencies.security import AuthContext, get_auth_context
from schemas.grade_improvement import (
    ImprovementPeriodCreate,
    ImprovementPeriodStatusUpdate,
    ImprovementRequestCreate,
    ImprovementRequestFilters,
    ImprovementResolve,
    RequestStatus,
)
from services.grade_improvement_service import GradeImprovementService
from utils.responses import to_response

router = APIRouter(prefix="/grade-improvement", tags=["점수 개선 신청"])


def get_service(db: Session = Depends(get_db)) -> GradeImprovementService:
    return GradeImprovementService(db)


# ==========================================================
# [1단계] 관리자 - 개선 신청 기간
# ==========================================================

# ✅ [CREATE] 개선 신청 기간 생성
@router.post("/periods")
def create_period(
    data: ImprovementPeriodCreate,
    auth: AuthContext = Depends(get_auth_context),
    service: GradeImprovementService = Depends(get_service),
):
    return to_response(service.create_improvement_period(auth, data), status_code=201)


# ✅ [READ] 전체 개선 신청 기간 조회
@router.get("/periods")
def list_periods(
    auth: AuthContext = Depends(get_auth_context),
    service: GradeImprovementService = Depends(get_service),
):
    return to_response(service.list_improvement_periods(auth))


# ✅ [READ] 학생용 - 현재 열려 있는 기간
@router.get("/periods/open")
def list_open_periods(
    auth: AuthContext = Depends(get_auth_context),
    service: GradeImprovementService = Depends(get_service),
):
    return to_response(service.list_open_improvement_periods(auth))


# ✅ [UPDATE] 기간 열기/닫기 (삭제 없음)
@router.patch("/periods/{period_id}")
def update_period_status(
    period_id: int,
    data: ImprovementPeriodStatusUpdate,
    auth: AuthContext = Depends(get_auth_context),
    service: GradeImprovementService = Depends(get_service),
):
    return to_response(service.set_improvement_period_active(auth, period_id, data.is_active))


# ==========================================================
# [2단계] 신청서
# ==========================================================

# ✅ [CREATE] 학생 신청서 제출
@router.post("/requests")
def file_request(
    data: ImprovementRequestCreate,
    auth: AuthContext = Depends(get_auth_context),
    service: GradeImprovementService = Depends(get_service),
):
    return to_response(service.file_improvement_request(auth, data), status_code=201)


# ✅ [READ] 학생 - 신청 가능한 과목 (점수가 있는 과목)
@router.get("/subjects/mine")
def list_my_subjects(
    auth: AuthContext = Depends(get_auth_context),
    service: GradeImprovementService = Depends(get_service),
):
    return to_response(service.list_my_improvement_subjects(auth))


# ✅ [READ] 관리자 - 신청서 목록 (필터 + 페이지)
@router.get("/requests")
def list_requests(
    status: Optional[RequestStatus] = None,
    improvement_period_id: Optional[int] = None,
    subject_id: Optional[int] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=100),
    auth: AuthContext = Depends(get_auth_context),
    service: GradeImprovementService = Depends(get_service),
):
    filters = ImprovementRequestFilters(
        status=status,
        improvement_period_id=improvement_period_id,
        subject_id=subject_id,
        page=page,
        limit=limit,
    )
    return to_response(service.list_improvement_requests(auth, filters))


# ✅ [READ] 학생 - 내 신청서
@router.get("/requests/mine")
def list_my_requests(
    auth: AuthContext = Depends(get_auth_context),
    service: GradeImprovementService = Depends(get_service),
):
    return to_response(service.list_my_improvement_requests(auth))


# ✅ [UPDATE] 관리자 - 승인/반려 (1회만 가능)
@router.post("/requests/{request_id}/resolve")
def resolve_request(
    request_id: int,
    data: ImprovementResolve,
    auth: AuthContext = Depends(get_auth_context),
    service: GradeImprovementService = Depends(get_service),
):
    return to_response(service.resolve_improvement_request(auth, request_id, data.status, data.admin_comment))
