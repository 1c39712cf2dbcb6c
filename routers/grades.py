from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database.db import get_db
from dependencies.security import AuthContext, get_auth_context
from schemas.grades import GradeCorrectionRequest, GradeEntryRequest
from services.grade_service import GradeService
from utils.responses import to_response

router = APIRouter(prefix="/grades", tags=["grades"])


def get_service(db: Session = Depends(get_db)) -> GradeService:
    return GradeService(db)


# ==========================================================
# [1단계] 점수 입력 / 정정
# ==========================================================

# ✅ [CREATE/UPDATE] 성분 점수 일괄 입력 (교사/관리자)
@router.post("/components")
def enter_components(
    data: GradeEntryRequest,
    auth: AuthContext = Depends(get_auth_context),
    service: GradeService = Depends(get_service),
):
    return to_response(service.enter_component_grades(auth, data))


# ✅ [UPDATE] 기간 종료 후 정정 (관리자, 감사 로그 기록)
@router.put("/components/{grade_id}/correction")
def correct_component(
    grade_id: int,
    data: GradeCorrectionRequest,
    auth: AuthContext = Depends(get_auth_context),
    service: GradeService = Depends(get_service),
):
    return to_response(service.correct_component_grade(auth, grade_id, data))


# ==========================================================
# [2단계] 조회 화면
# ==========================================================

# ✅ [READ] 학생 상세 성적 (가중 평균)
@router.get("/students/{student_id}")
def get_student_grades(
    student_id: int,
    period_id: int,
    auth: AuthContext = Depends(get_auth_context),
    service: GradeService = Depends(get_service),
):
    return to_response(service.get_student_subject_averages(auth, student_id, period_id))


# ✅ [READ] 학생 성적 요약 통계 (대시보드)
@router.get("/students/{student_id}/overview")
def get_student_overview(
    student_id: int,
    period_id: int,
    auth: AuthContext = Depends(get_auth_context),
    service: GradeService = Depends(get_service),
):
    return to_response(service.get_student_grade_overview(auth, student_id, period_id))


# ✅ [READ] 담임 반 성적 (giữa kỳ / cuối kỳ 단순 평균)
@router.get("/homeroom/{class_id}")
def get_homeroom_grades(
    class_id: int,
    period_id: int,
    auth: AuthContext = Depends(get_auth_context),
    service: GradeService = Depends(get_service),
):
    return to_response(service.get_homeroom_summary(auth, class_id, period_id))
