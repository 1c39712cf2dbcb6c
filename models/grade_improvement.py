from datetime import datetime

from sqlalchemy import Column, Integer, String, Date, DateTime, Boolean, Text, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from database.db import Base


class GradeImprovementPeriod(Base):
    __tablename__ = "grade_improvement_periods"  # 점수 개선 신청 기간 (Kỳ cải thiện điểm)

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    grade_reporting_period_id = Column(Integer, ForeignKey("grade_reporting_periods.id"), nullable=False, index=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)                   # 상위 보고 기간 end_date보다 앞서야 함
    is_active = Column(Boolean, nullable=False, default=True)  # 삭제 대신 비활성화
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    grade_reporting_period = relationship("GradeReportingPeriod")
    created_by_user = relationship("User", foreign_keys=[created_by])
    requests = relationship("GradeImprovementRequest", back_populates="improvement_period")


class GradeImprovementRequest(Base):
    __tablename__ = "grade_improvement_requests"  # 점수 개선 신청서
    __table_args__ = (
        # ✅ 동시 신청 경쟁 상태까지 막기 위해 DB 레벨에서 유일성 보장
        UniqueConstraint(
            "improvement_period_id", "student_id", "subject_id",
            name="uq_improvement_request_period_student_subject",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    improvement_period_id = Column(Integer, ForeignKey("grade_improvement_periods.id"), nullable=False, index=True)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False, index=True)
    subject_id = Column(Integer, ForeignKey("subjects.id"), nullable=False)
    request_reason = Column(Text)                              # 신청 사유
    status = Column(String(20), nullable=False, default="pending")  # pending / approved / rejected
    admin_comment = Column(Text)                               # 반려 시 필수
    reviewed_by = Column(Integer, ForeignKey("users.id"))
    reviewed_at = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow)

    improvement_period = relationship("GradeImprovementPeriod", back_populates="requests")
    student = relationship("Student")
    subject = relationship("Subject")
    reviewed_by_user = relationship("User", foreign_keys=[reviewed_by])
