from fastapi import APIRouter

from utils.dates import local_today

router = APIRouter(prefix="/config", tags=["설정"])

# ==========================================================
# [1단계] 현재 학년도/학기 계산 함수
# ==========================================================
def get_current_year_semester(today=None):
    """
    날짜 기준 베트남 학년도(năm học)/학기 계산
    - 9~12월 → 당해년도 시작 학년도 1학기
    - 1월    → 전년도 시작 학년도 1학기 (1학기는 1월 중순 종료)
    - 2~8월  → 전년도 시작 학년도 2학기 (여름방학 포함)
    """
    today = today or local_today()
    year, month = today.year, today.month

    if month >= 9:
        return year, 1
    elif month == 1:
        return year - 1, 1
    else:
        return year - 1, 2


# ==========================================================
# [2단계] Config 라우터
# ==========================================================

# ✅ [READ] 현재 학년도/학기 반환
@router.get("/academic")
def get_academic_config():
    """현재 학년도(예: 2025-2026), 학기 반환"""
    start_year, semester = get_current_year_semester()
    return {
        "success": True,
        "data": {
            "academic_year": f"{start_year}-{start_year + 1}",
            "start_year": start_year,
            "semester": semester
        },
        "message": f"Năm học {start_year}-{start_year + 1}, học kỳ {semester}"
    }
