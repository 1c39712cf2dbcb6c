from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, List, Optional

from pydantic import AfterValidator, BaseModel, Field, ConfigDict, model_validator


class ComponentType(str, Enum):
    REGULAR = "regular"     # thường xuyên (hệ số 1)
    MIDTERM = "midterm"     # giữa kỳ (hệ số 2)
    FINAL = "final"         # cuối kỳ (hệ số 3)
    SUMMARY = "summary"     # tổng kết (교사 확정 점수)


def _check_one_decimal(value: float) -> float:
    # DB 컬럼이 Numeric(3,1) → 소수 둘째 자리부터는 저장 시 잘려나감
    if Decimal(str(value)).as_tuple().exponent < -1:
        raise ValueError("grades allow at most one decimal place")
    return value


# 0.0 ~ 10.0, 소수 1자리까지
GradeValue = Annotated[float, Field(ge=0, le=10), AfterValidator(_check_one_decimal)]


# ==========================================================
# [입력용 스키마]
# ==========================================================
class GradeComponentIn(BaseModel):
    student_id: int
    subject_id: int
    component_type: ComponentType
    sequence: int = Field(1, ge=1, le=20)                         # 정기 점수 순번
    value: GradeValue

    @model_validator(mode="after")
    def _single_slot_components(self):
        # ✅ midterm/final/summary 는 과목당 1건 → 순번 1 고정
        if self.component_type != ComponentType.REGULAR and self.sequence != 1:
            raise ValueError("sequence is only meaningful for regular grades")
        return self


class GradeEntryRequest(BaseModel):
    period_id: int
    class_id: int
    entries: List[GradeComponentIn] = Field(..., min_length=1)


class GradeCorrectionRequest(BaseModel):
    new_value: GradeValue
    reason: str = Field(..., min_length=1, max_length=1000)


# ==========================================================
# [출력용 스키마]
# ==========================================================
class GradeComponentOut(BaseModel):
    id: int
    component_type: ComponentType
    sequence: int
    value: float

    model_config = ConfigDict(from_attributes=True)


class SubjectAverageOut(BaseModel):
    subject_id: int
    subject_name: str
    components: List[GradeComponentOut]
    average: Optional[float] = None               # 가중 평균 (없으면 null)
    classification: Optional[str] = None          # excellent / good / average / below_average


class StudentGradesOut(BaseModel):
    student_id: int
    student_name: str
    period_id: int
    subjects: List[SubjectAverageOut]


class HomeroomSubjectOut(BaseModel):
    subject_id: int
    subject_name: str
    midterm: Optional[float] = None
    final: Optional[float] = None
    average: Optional[float] = None               # (giữa kỳ + cuối kỳ) / 2


class HomeroomStudentOut(BaseModel):
    student_id: int
    student_number: str
    student_name: str
    subjects: List[HomeroomSubjectOut]


class GradeOverviewOut(BaseModel):
    student_id: int
    period_id: int
    total_subjects: int
    graded_subjects: int
    average: Optional[float] = None
    highest: Optional[float] = None
    lowest: Optional[float] = None
    excellent_count: int = 0
    good_count: int = 0
    average_count: int = 0
    below_average_count: int = 0


class GradeCorrectionOut(BaseModel):
    id: int
    grade_id: int
    old_value: float
    new_value: float
    reason: str
    corrected_by: int
    corrected_at: datetime

    model_config = ConfigDict(from_attributes=True)
