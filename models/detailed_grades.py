from datetime import datetime

from sqlalchemy import Column, Integer, String, Numeric, DateTime, Text, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from database.db import Base

class StudentDetailedGrade(Base):
    __tablename__ = "student_detailed_grades"  # 성분별 점수 (thường xuyên/giữa kỳ/cuối kỳ/tổng kết)
    __table_args__ = (
        # ✅ 같은 학생/과목/기간에서 midterm/final/summary는 1건만 (sequence=1 고정)
        UniqueConstraint(
            "student_id", "subject_id", "period_id", "component_type", "sequence",
            name="uq_detailed_grade_component",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False, index=True)
    subject_id = Column(Integer, ForeignKey("subjects.id"), nullable=False)
    period_id = Column(Integer, ForeignKey("grade_reporting_periods.id"), nullable=False, index=True)
    class_id = Column(Integer, ForeignKey("classes.id"), nullable=False)
    component_type = Column(String(20), nullable=False)       # regular / midterm / final / summary
    sequence = Column(Integer, nullable=False, default=1)     # 정기 점수 순번 (thường xuyên 1..n)
    grade_value = Column(Numeric(3, 1), nullable=False)       # 0.0 ~ 10.0
    entered_by = Column(Integer, ForeignKey("users.id"))
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    subject = relationship("Subject")


class GradeCorrection(Base):
    __tablename__ = "grade_corrections"  # 기간 종료 후 점수 정정 감사 로그

    id = Column(Integer, primary_key=True, index=True)
    grade_id = Column(Integer, ForeignKey("student_detailed_grades.id"), nullable=False, index=True)
    old_value = Column(Numeric(3, 1), nullable=False)
    new_value = Column(Numeric(3, 1), nullable=False)
    reason = Column(Text, nullable=False)
    corrected_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    corrected_at = Column(DateTime, default=datetime.utcnow)
