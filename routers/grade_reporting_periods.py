from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database.db import get_db
from dependencies.security import AuthContext, get_auth_context, require_role
from models.grade_reporting_periods import GradeReportingPeriod as PeriodModel
from models.users import UserRole
from schemas.grade_reporting_periods import GradeReportingPeriod as PeriodSchema, GradeReportingPeriodCreate
from utils.responses import error_response

router = APIRouter(prefix="/grade-reporting-periods", tags=["성적 보고 기간"])


# ==========================================================
# [1단계] CRUD 기본 라우터 (관리자)
# ==========================================================

# ✅ [CREATE] 성적 보고 기간 생성
@router.post("/", status_code=201)
def create_period(
    data: GradeReportingPeriodCreate,
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
):
    require_role(auth, UserRole.ADMIN)
    db_period = PeriodModel(**data.model_dump())
    db.add(db_period)
    db.commit()
    db.refresh(db_period)
    return {
        "success": True,
        "data": PeriodSchema.model_validate(db_period).model_dump(mode="json"),
        "message": "Grade reporting period created",
    }


# ✅ [READ] 전체 성적 보고 기간 조회 (최근 시작일 순)
@router.get("/")
def read_periods(auth: AuthContext = Depends(get_auth_context), db: Session = Depends(get_db)):
    require_role(auth, UserRole.ADMIN, UserRole.TEACHER)
    records = db.query(PeriodModel).order_by(PeriodModel.start_date.desc()).all()
    return {
        "success": True,
        "data": [PeriodSchema.model_validate(r).model_dump(mode="json") for r in records],
    }


# ✅ [READ] 성적 보고 기간 상세
@router.get("/{period_id}")
def read_period(period_id: int, auth: AuthContext = Depends(get_auth_context), db: Session = Depends(get_db)):
    require_role(auth, UserRole.ADMIN, UserRole.TEACHER)
    period = db.get(PeriodModel, period_id)
    if period is None:
        return error_response("NOT_FOUND", "Grade reporting period not found")
    return {"success": True, "data": PeriodSchema.model_validate(period).model_dump(mode="json")}
